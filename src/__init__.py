"""
Local AI Authority Engine

Measures how visible a local business is inside AI assistant answers:
1. Builds a business profile and a geo-aware prompt set
2. Runs the prompts across AI models (or a deterministic simulator)
3. Scores visibility per layer, with confidence and an action plan
4. Caches identical scans and verifies cited URLs
"""

__version__ = "0.1.0"
