"""
Local Authority - Answer Collection Package

Gets answers from AI models and turns them into signals:
- Deterministic response simulator
- Model caller contract (live or simulated)
- Answer extraction (recommendations, competitors, places)
- Run executor with bounded fan-out
- Citation accessibility verification
"""

from .simulator import simulate_response, estimate_google_maps_visibility, SimulatedResponse
from .model_caller import ModelCaller, ModelAnswer, ModelCallError, SimulatedModelCaller
from .extraction import BrandConfig, ExtractedResponse, extract_response
from .citations import verify_citations, validate_and_update_citations, CitationVerificationResult

__all__ = [
    # Simulator
    "simulate_response",
    "estimate_google_maps_visibility",
    "SimulatedResponse",
    # Model caller
    "ModelCaller",
    "ModelAnswer",
    "ModelCallError",
    "SimulatedModelCaller",
    # Extraction
    "BrandConfig",
    "ExtractedResponse",
    "extract_response",
    # Citations
    "verify_citations",
    "validate_and_update_citations",
    "CitationVerificationResult",
]
