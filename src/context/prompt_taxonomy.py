"""
Prompt Taxonomy Generator

Expands a business profile into the prompt set used for an authority run.

Four families (layers), emitted in this order:
- geo_cluster: city-qualified superlative and trust phrasings
- implicit: no location words at all (reliability, reputation, price, quality)
- radius_neighborhood: neighborhood-scoped and service-radius-scoped variants
- problem_intent: urgency, value and availability framed questions

Within each family, categories are walked in profile order and each
category contributes its phrasings in a fixed order. Texts are deduplicated
case-insensitively across all families; the first occurrence keeps its
layer and intent.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from src.database.models import PromptLayer, IntentTag

logger = logging.getLogger(__name__)

MAX_NEIGHBORHOODS = 4
DEFAULT_RADIUS_MILES = 15
DEFAULT_MAX_PROMPTS = 60

# Lower number survives the cap first
LAYER_PRIORITY: Dict[PromptLayer, int] = {
    PromptLayer.PROBLEM_INTENT: 1,
    PromptLayer.GEO_CLUSTER: 2,
    PromptLayer.IMPLICIT: 3,
    PromptLayer.RADIUS_NEIGHBORHOOD: 4,
}


@dataclass(frozen=True)
class PromptTemplateSpec:
    """A generated prompt before persistence."""
    layer: PromptLayer
    prompt_text: str
    intent_tag: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "layer": self.layer.value,
            "prompt_text": self.prompt_text,
            "intent_tag": self.intent_tag,
        }


@dataclass(frozen=True)
class TaxonomyInput:
    """Profile fields the generator reads."""
    city: str
    state: str
    categories: Sequence[str]
    neighborhoods: Sequence[str] = ()
    service_radius_miles: Optional[int] = None


Phrasing = Tuple[str, IntentTag]


# =============================================================================
# FAMILY PHRASINGS
# =============================================================================

def _geo_cluster(category: str, inp: TaxonomyInput) -> List[Phrasing]:
    place = f"{inp.city}, {inp.state}"
    return [
        (f"Who are the best {category} providers in {place}?", IntentTag.BEST),
        (f"Recommend the top-rated {category} in {place}.", IntentTag.BEST),
        (f"What are the most trusted {category} businesses in {place}?", IntentTag.BEST),
        (f"Compare the top {category} options in {place} and recommend 3.", IntentTag.COMPARISON),
        (f"Which {category} in {place} is known for great service and easy scheduling?", IntentTag.HOURS),
    ]


def _implicit(category: str, inp: TaxonomyInput) -> List[Phrasing]:
    return [
        (f"Who is a reliable {category} I can trust?", IntentTag.TRUST),
        (f"Recommend a top-rated {category} and explain why.", IntentTag.BEST),
        (f"Who is an affordable {category} with consistently good reviews?", IntentTag.PRICE),
        (f"Which {category} has the best reputation for quality work?", IntentTag.TRUST),
    ]


def _radius_neighborhood(category: str, inp: TaxonomyInput) -> List[Phrasing]:
    place = f"{inp.city}, {inp.state}"
    radius = inp.service_radius_miles or DEFAULT_RADIUS_MILES
    phrasings: List[Phrasing] = []

    for neighborhood in list(inp.neighborhoods)[:MAX_NEIGHBORHOODS]:
        phrasings.extend([
            (f"Recommend a {category} near {neighborhood}.", IntentTag.NEAR_ME),
            (f"Best {category} near {neighborhood} with strong reviews.", IntentTag.NEAR_ME),
            (f"Most trusted {category} near {neighborhood}.", IntentTag.NEAR_ME),
        ])

    phrasings.extend([
        (f"Recommend a {category} within {radius} miles of {place}.", IntentTag.NEAR_ME),
        (f"Best {category} within {radius} miles of downtown {place}.", IntentTag.NEAR_ME),
        (f"Most trusted {category} near me in {place}.", IntentTag.NEAR_ME),
        (f"If I live near {place}, which {category} should I choose and why?", IntentTag.COMPARISON),
        (f"Which {category} is easiest to book quickly near {place}?", IntentTag.HOURS),
    ])
    return phrasings


def _specialty(category: str, place: str) -> Phrasing:
    lower = category.lower()
    if any(k in lower for k in ("dentist", "orthodontist", "invisalign", "dental")):
        return (f"Best {category} in {place} for Invisalign or cosmetic work?", IntentTag.SPECIALTY)
    if any(k in lower for k in ("plumber", "hvac", "electrician", "heating", "cooling", "ac repair")):
        return (f"Best {category} in {place} for same-day service?", IntentTag.EMERGENCY)
    if any(k in lower for k in ("restaurant", "coffee", "bar", "cafe", "bistro", "dining")):
        return (f"Where should I go for the best {category} experience in {place}?", IntentTag.BEST)
    return (f"Who is the best {category} in {place} for my situation and why?", IntentTag.SPECIALTY)


def _problem_intent(category: str, inp: TaxonomyInput) -> List[Phrasing]:
    place = f"{inp.city}, {inp.state}"
    return [
        (f"Who should I call for urgent {category} help in {place}?", IntentTag.EMERGENCY),
        (f"Which {category} in {place} is available on weekends?", IntentTag.HOURS),
        (f"Which {category} is known for honest pricing and good communication in {place}?", IntentTag.TRUST),
        (f"Recommend a {category} in {place} that's good value for the money.", IntentTag.PRICE),
        _specialty(category, place),
    ]


FAMILIES: List[Tuple[PromptLayer, Callable[[str, TaxonomyInput], List[Phrasing]]]] = [
    (PromptLayer.GEO_CLUSTER, _geo_cluster),
    (PromptLayer.IMPLICIT, _implicit),
    (PromptLayer.RADIUS_NEIGHBORHOOD, _radius_neighborhood),
    (PromptLayer.PROBLEM_INTENT, _problem_intent),
]


# =============================================================================
# GENERATION
# =============================================================================

def generate_prompt_templates(
    profile: TaxonomyInput,
    max_prompts: Optional[int] = DEFAULT_MAX_PROMPTS,
) -> List[PromptTemplateSpec]:
    """
    Generate the deduplicated prompt set for a profile.

    Output order is family order, then category order, then the fixed
    within-family order. Identical input always yields identical output.

    Args:
        profile: Location, categories, neighborhoods and radius
        max_prompts: Cap on total prompts (None disables the cap). When
            exceeded, lower-priority layers are dropped first; survivors
            keep their original order.
    """
    templates: List[PromptTemplateSpec] = []
    seen = set()
    categories = [c.strip() for c in profile.categories if c and c.strip()]

    for layer, family in FAMILIES:
        for category in categories:
            for text, intent in family(category, profile):
                key = text.lower().strip()
                if key in seen:
                    continue
                seen.add(key)
                templates.append(PromptTemplateSpec(layer=layer, prompt_text=text, intent_tag=intent.value))

    if max_prompts is not None and len(templates) > max_prompts:
        logger.info(f"Capping {len(templates)} prompts to {max_prompts} by layer priority")
        ranked = sorted(
            range(len(templates)),
            key=lambda i: (LAYER_PRIORITY[templates[i].layer], i),
        )
        keep = sorted(ranked[:max_prompts])
        templates = [templates[i] for i in keep]

    return templates


def count_by_layer(templates: Sequence[PromptTemplateSpec]) -> Dict[str, int]:
    """Count prompts per layer, always including every layer."""
    counts = {layer.value: 0 for layer, _ in FAMILIES}
    for template in templates:
        counts[template.layer.value] += 1
    return counts
