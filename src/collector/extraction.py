"""
AI Response Extraction

Pulls structured signals out of free-text model answers:
- Brand matching (name, domain stem, synonyms)
- Ordered recommendations (numbered lists, bullet fallback)
- Competitor mentions (known overrides first, then list items)
- Places (city, state, neighborhoods)
- Brand mention snippets
- Strong brand-to-location association language
"""

import re
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Sequence

from src.utils.normalize import normalize_name, domain_stem

MAX_RECOMMENDATIONS = 15
MAX_COMPETITORS = 10
MAX_BRAND_MENTIONS = 10
SNIPPET_LENGTH = 200

_NUMBERED_ITEM = re.compile(
    r"(\d+)\.\s*\*?\*?([A-Z][a-zA-Z0-9\s&'.-]+?)(?:\*?\*?)(?:\s*[-–—:](.+?))?(?=\n\d+\.|\n\n|$)",
    re.DOTALL,
)
_BULLET_ITEM = re.compile(
    r"[-•]\s*\*?\*?([A-Z][a-zA-Z0-9\s&'.-]+?)(?:\*?\*?)(?:\s*[-–—:](.+?))?(?=\n[-•]|\n\n|$)",
    re.DOTALL,
)
_LIST_NAME = re.compile(
    r"\d+\.\s*\*?\*?([A-Z][a-zA-Z0-9\s&'.-]+?)(?:\*?\*?)(?:\s*[-–—:]|\s*\(|$)",
    re.MULTILINE,
)
_SENTENCE_SPLIT = re.compile(r"[.!?]+")


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class BrandConfig:
    """How the business can appear in an answer."""
    business_name: str
    domain: Optional[str] = None
    brand_synonyms: List[str] = field(default_factory=list)


@dataclass
class ExtractedRecommendation:
    name: str
    position: Optional[int]
    is_brand: bool
    confidence: float
    reason: Optional[str] = None


@dataclass
class CompetitorMention:
    name: str
    confidence: float


@dataclass
class ExtractedPlace:
    name: str
    type: str  # city, state, neighborhood
    confidence: float


@dataclass
class BrandMention:
    snippet: str
    confidence: float


@dataclass
class ExtractedResponse:
    """Everything extracted from one answer."""
    recommendations: List[ExtractedRecommendation] = field(default_factory=list)
    competitors: List[CompetitorMention] = field(default_factory=list)
    places: List[ExtractedPlace] = field(default_factory=list)
    brand_mentions: List[BrandMention] = field(default_factory=list)
    strong_association: bool = False

    @property
    def brand_hit(self) -> bool:
        """Brand appears either as a recommendation or in prose."""
        return any(r.is_brand for r in self.recommendations) or bool(self.brand_mentions)

    @property
    def brand_position(self) -> Optional[int]:
        for rec in self.recommendations:
            if rec.is_brand and rec.position is not None:
                return rec.position
        return None

    @property
    def brand_in_top_three(self) -> bool:
        return any(r.is_brand and r.position is not None and r.position <= 3 for r in self.recommendations)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recommendations": [asdict(r) for r in self.recommendations],
            "places": [asdict(p) for p in self.places],
            "brand_mentions": [asdict(m) for m in self.brand_mentions],
            "competitor_mentions": [asdict(c) for c in self.competitors],
            "strong_association": self.strong_association,
        }


# =============================================================================
# MATCHING
# =============================================================================

def matches_brand(text: str, config: BrandConfig) -> bool:
    """Check whether text refers to the business."""
    normalized = normalize_name(text)
    name = normalize_name(config.business_name)
    if name and name in normalized:
        return True

    stem = domain_stem(config.domain)
    if len(stem) > 2 and stem in normalized:
        return True

    for synonym in config.brand_synonyms or []:
        synonym_normalized = normalize_name(synonym)
        if synonym_normalized and synonym_normalized in normalized:
            return True

    return False


def extract_recommendations(text: str, config: BrandConfig) -> List[ExtractedRecommendation]:
    """Extract ordered recommendations from numbered lists, falling back to bullets."""
    recommendations: List[ExtractedRecommendation] = []
    seen = set()

    for match in _NUMBERED_ITEM.finditer(text):
        name = match.group(2).strip()
        key = normalize_name(name)
        if len(key) < 2 or key in seen:
            continue
        seen.add(key)
        reason = match.group(3).strip() if match.group(3) else None
        recommendations.append(ExtractedRecommendation(
            name=name,
            position=int(match.group(1)),
            is_brand=matches_brand(name, config),
            confidence=0.8,
            reason=reason,
        ))

    if not recommendations:
        position = 1
        for match in _BULLET_ITEM.finditer(text):
            name = match.group(1).strip()
            key = normalize_name(name)
            if len(key) < 2 or key in seen:
                continue
            seen.add(key)
            recommendations.append(ExtractedRecommendation(
                name=name,
                position=position,
                is_brand=matches_brand(name, config),
                confidence=0.7,
            ))
            position += 1

    return recommendations[:MAX_RECOMMENDATIONS]


def extract_competitors(
    text: str,
    config: BrandConfig,
    known_competitors: Optional[Sequence[Dict[str, Any]]] = None,
) -> List[CompetitorMention]:
    """Extract competitor names, known overrides first."""
    competitors: List[CompetitorMention] = []
    seen = set()
    lowered = text.lower()

    for known in known_competitors or []:
        name = (known or {}).get("name")
        if not name:
            continue
        key = normalize_name(name)
        if key and key in lowered and key not in seen:
            seen.add(key)
            competitors.append(CompetitorMention(name=name, confidence=0.9))

    for match in _LIST_NAME.finditer(text):
        name = match.group(1).strip()
        key = normalize_name(name)
        if len(key) < 3 or key in seen or matches_brand(name, config):
            continue
        seen.add(key)
        competitors.append(CompetitorMention(name=name, confidence=0.6))

    return competitors[:MAX_COMPETITORS]


def extract_places(
    text: str,
    city: str,
    state: str,
    neighborhoods: Optional[Sequence[str]] = None,
) -> List[ExtractedPlace]:
    """Find the profile's city, state and neighborhoods in text."""
    places: List[ExtractedPlace] = []
    lowered = text.lower()

    if city and city.lower() in lowered:
        places.append(ExtractedPlace(name=city, type="city", confidence=0.9))
    if state and state.lower() in lowered:
        places.append(ExtractedPlace(name=state, type="state", confidence=0.9))
    for hood in neighborhoods or []:
        if hood and hood.lower() in lowered:
            places.append(ExtractedPlace(name=hood, type="neighborhood", confidence=0.8))

    return places


def extract_brand_mentions(text: str, config: BrandConfig) -> List[BrandMention]:
    """Sentences that reference the brand, trimmed to snippets."""
    mentions = []
    for sentence in _SENTENCE_SPLIT.split(text):
        if matches_brand(sentence, config):
            mentions.append(BrandMention(snippet=sentence.strip()[:SNIPPET_LENGTH], confidence=0.8))
    return mentions[:MAX_BRAND_MENTIONS]


def has_strong_association_language(text: str, city: str, state: str) -> bool:
    """Check for explicit brand-to-place phrasing like "based in Austin"."""
    if not city:
        return False
    lowered = text.lower()
    city_lower = city.lower()
    state_lower = (state or "").lower()

    patterns = [
        f"based in {city_lower}",
        f"serving {city_lower}",
        f"located in {city_lower}",
        f"{city_lower} area",
        f"{city_lower}, {state_lower}",
        f"serves {city_lower}",
        f"headquartered in {city_lower}",
    ]
    return any(p in lowered for p in patterns)


def extract_response(
    text: str,
    config: BrandConfig,
    city: str,
    state: str,
    neighborhoods: Optional[Sequence[str]] = None,
    known_competitors: Optional[Sequence[Dict[str, Any]]] = None,
) -> ExtractedResponse:
    """Run every extractor over one answer."""
    recommendations = extract_recommendations(text, config)
    brand_mentions = extract_brand_mentions(text, config)
    return ExtractedResponse(
        recommendations=recommendations,
        competitors=extract_competitors(text, config, known_competitors),
        places=extract_places(text, city, state, neighborhoods),
        brand_mentions=brand_mentions,
        strong_association=bool(brand_mentions) and has_strong_association_language(text, city, state),
    )
