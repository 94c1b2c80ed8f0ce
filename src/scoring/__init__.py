"""
Scoring Module for the Local Authority Engine

Two strategies share one per-outcome primitive (``score_outcome``):

1. **Local Visibility Score** (0-100)
   Flat score over a fixed prompt x model matrix.
   Not mentioned < 30 <= Mentioned Occasionally < 70 <= Frequently Recommended

2. **Authority Score** (0-100)
   Four 0-25 components: geo presence, implicit recall,
   entity association, share of voice. Capped by call coverage.

Example Usage:
    from src.scoring import score_outcome, compute_authority_score

    score_outcome(mentioned=True, recommended=True, position=1)  # 3.0
"""

from .outcome import (
    score_outcome,
    max_possible_score,
    normalize_score,
    status_label,
    rank_competitors,
    PromptOutcome,
    LocalVisibilityScore,
    calculate_local_visibility_score,
)
from .authority import AuthorityOutcome, AuthorityScore, compute_authority_score
from .recommendations import ActionRecommendation, generate_recommendations

__all__ = [
    # Shared primitive
    "score_outcome",
    "max_possible_score",
    "normalize_score",
    "status_label",
    "rank_competitors",
    # Flat strategy
    "PromptOutcome",
    "LocalVisibilityScore",
    "calculate_local_visibility_score",
    # Layered strategy
    "AuthorityOutcome",
    "AuthorityScore",
    "compute_authority_score",
    # Action plan
    "ActionRecommendation",
    "generate_recommendations",
]
