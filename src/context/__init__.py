"""
Business Context Package

Describes a local business and expands it into prompts:
- Profile input types and validation
- Prompt taxonomy generation across four layers

Usage:
    from src.context import TaxonomyInput, generate_prompt_templates

    templates = generate_prompt_templates(
        TaxonomyInput(city="Austin", state="TX", categories=["plumber"]),
    )
"""

from .models import (
    Location,
    ServiceArea,
    CompetitorOverride,
    ProfileInput,
    ProfileCreated,
    ProfileUpdated,
    ProfileUpsertResult,
    validate_profile_input,
)
from .prompt_taxonomy import (
    PromptTemplateSpec,
    TaxonomyInput,
    generate_prompt_templates,
    count_by_layer,
)

__all__ = [
    # Profile types
    "Location",
    "ServiceArea",
    "CompetitorOverride",
    "ProfileInput",
    "ProfileCreated",
    "ProfileUpdated",
    "ProfileUpsertResult",
    "validate_profile_input",
    # Taxonomy
    "PromptTemplateSpec",
    "TaxonomyInput",
    "generate_prompt_templates",
    "count_by_layer",
]
