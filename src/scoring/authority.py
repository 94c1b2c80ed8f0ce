"""
Local Authority Scoring

Layered scoring strategy for authority runs. Four components, each 0-25:

1. Geo presence (geo_cluster + radius_neighborhood prompts)
   25 * (0.70 * presence_rate + 0.30 * top3_rate)

2. Implicit recall (implicit prompts only)
   25 * (implicit_rate - 0.50 * competitor_only_rate)

3. Entity association (all prompts)
   25 * (0.80 * brand+place co-occurrence rate + 0.20 * strong language rate)

4. Share of voice
   round(25 * brand / (brand + competitor + 1)), +2 when the brand is top-3
   in at least half of answers, -3 when it never appears in geo_cluster

Total is the sum, capped at 50 below 50% call coverage and at 70 below 70%.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from src.database.models import PromptLayer
from src.scoring.outcome import (
    round_half_up,
    score_outcome,
    max_possible_score,
    normalize_score,
    rank_competitors,
)

logger = logging.getLogger(__name__)

COMPONENT_MAX = 25

GEO_LAYERS = (PromptLayer.GEO_CLUSTER, PromptLayer.RADIUS_NEIGHBORHOOD)


@dataclass
class AuthorityOutcome:
    """Signals extracted from one successful prompt x model call."""
    layer: PromptLayer
    intent_tag: str
    mentioned: bool
    recommended: bool
    position: Optional[int] = None
    competitors: List[str] = field(default_factory=list)
    location_match: bool = False
    strong_association: bool = False

    @property
    def in_top_three(self) -> bool:
        return self.position is not None and self.position <= 3

    @property
    def points(self) -> float:
        return score_outcome(self.mentioned, self.recommended, self.position)


@dataclass
class IntentStats:
    intent_tag: str
    total: int = 0
    brand_hits: int = 0
    competitor_hits: int = 0

    @property
    def brand_hit_rate(self) -> int:
        return round_half_up(self.brand_hits / self.total * 100) if self.total else 0

    @property
    def competitor_hit_rate(self) -> int:
        return round_half_up(self.competitor_hits / self.total * 100) if self.total else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intent_tag": self.intent_tag,
            "total": self.total,
            "brand_hits": self.brand_hits,
            "competitor_hits": self.competitor_hits,
            "brand_hit_rate": self.brand_hit_rate,
            "competitor_hit_rate": self.competitor_hit_rate,
        }


@dataclass
class AuthorityScore:
    """Result of layered scoring."""
    score_total: int
    score_geo: int
    score_implicit: int
    score_association: int
    score_sov: int
    breakdown: Dict[str, Any]

    @property
    def top_competitors(self) -> List[Dict[str, Any]]:
        return self.breakdown.get("top_competitors", [])

    @property
    def losing_intents(self) -> List[Dict[str, Any]]:
        return self.breakdown.get("losing_intents", [])


def _clamp(value: int) -> int:
    return max(0, min(COMPONENT_MAX, value))


def _rate(count: int, total: int) -> float:
    return count / total if total > 0 else 0.0


def _pct(rate: float) -> int:
    return round_half_up(rate * 100)


def compute_intent_stats(outcomes: Sequence[AuthorityOutcome]) -> List[IntentStats]:
    """Brand vs competitor hit counts per intent, in first-seen order."""
    stats: Dict[str, IntentStats] = {}
    for outcome in outcomes:
        entry = stats.setdefault(outcome.intent_tag, IntentStats(intent_tag=outcome.intent_tag))
        entry.total += 1
        if outcome.mentioned:
            entry.brand_hits += 1
        if outcome.competitors:
            entry.competitor_hits += 1
    return list(stats.values())


def compute_authority_score(
    outcomes: Sequence[AuthorityOutcome],
    total_calls: int,
    model_count: int = 1,
) -> AuthorityScore:
    """
    Score a run's successful outcomes.

    Args:
        outcomes: One entry per successful call
        total_calls: Calls attempted (prompts x models), for coverage
        model_count: Models in the roster, for the outcome-points index
    """
    successful = len(outcomes)
    coverage = _rate(successful, total_calls)

    geo = [o for o in outcomes if o.layer in GEO_LAYERS]
    implicit = [o for o in outcomes if o.layer == PromptLayer.IMPLICIT]
    geo_cluster = [o for o in outcomes if o.layer == PromptLayer.GEO_CLUSTER]

    # (1) Geo presence
    geo_presence_rate = _rate(sum(1 for o in geo if o.mentioned), len(geo))
    geo_top3_rate = _rate(sum(1 for o in geo if o.in_top_three), len(geo))
    score_geo = _clamp(round_half_up(COMPONENT_MAX * (0.70 * geo_presence_rate + 0.30 * geo_top3_rate)))

    # (2) Implicit recall
    implicit_rate = _rate(sum(1 for o in implicit if o.mentioned), len(implicit))
    implicit_penalty = _rate(
        sum(1 for o in implicit if o.competitors and not o.mentioned), len(implicit)
    )
    implicit_raw = COMPONENT_MAX * (implicit_rate - 0.50 * implicit_penalty)
    score_implicit = _clamp(round_half_up(implicit_raw)) if implicit_raw > 0 else 0

    # (3) Entity association
    assoc_rate = _rate(sum(1 for o in outcomes if o.mentioned and o.location_match), successful)
    strong_assoc_rate = _rate(sum(1 for o in outcomes if o.strong_association), successful)
    score_association = _clamp(round_half_up(COMPONENT_MAX * (0.80 * assoc_rate + 0.20 * strong_assoc_rate)))

    # (4) Share of voice
    brand_mentions = sum(1 for o in outcomes if o.mentioned)
    competitor_mentions = sum(1 for o in outcomes if o.competitors)
    sov = brand_mentions / (brand_mentions + competitor_mentions + 1)
    sov_score = round_half_up(COMPONENT_MAX * sov)
    top3_overall = _rate(sum(1 for o in outcomes if o.in_top_three), successful)
    if top3_overall >= 0.50:
        sov_score += 2
    if geo and not any(o.mentioned for o in geo_cluster):
        sov_score -= 3
    score_sov = _clamp(sov_score)

    total = score_geo + score_implicit + score_association + score_sov
    if coverage < 0.5:
        total = min(total, 50)
    elif coverage < 0.7:
        total = min(total, 70)

    intent_stats = compute_intent_stats(outcomes)
    winning = sorted(
        (s for s in intent_stats if s.brand_hit_rate > s.competitor_hit_rate),
        key=lambda s: -s.brand_hit_rate,
    )
    losing = sorted(
        (s for s in intent_stats if s.competitor_hit_rate > s.brand_hit_rate),
        key=lambda s: -s.competitor_hit_rate,
    )

    # Shared outcome-points index, comparable with flat scans
    raw_points = sum(o.points for o in outcomes)
    prompt_count = (total_calls // model_count) if model_count else 0
    max_points = max_possible_score(prompt_count, model_count)

    breakdown = {
        "geo_presence_rate": _pct(geo_presence_rate),
        "geo_top3_rate": _pct(geo_top3_rate),
        "implicit_rate": _pct(implicit_rate),
        "implicit_competitor_penalty": _pct(implicit_penalty),
        "assoc_rate": _pct(assoc_rate),
        "strong_assoc_rate": _pct(strong_assoc_rate),
        "sov_rate": _pct(sov),
        "brand_mentions": brand_mentions,
        "competitor_mentions": competitor_mentions,
        "coverage": _pct(coverage),
        "outcome_points": raw_points,
        "outcome_points_max": max_points,
        "visibility_index": normalize_score(raw_points, max_points),
        "top_competitors": rank_competitors(o.competitors for o in outcomes),
        "winning_intents": [s.to_dict() for s in winning],
        "losing_intents": [s.to_dict() for s in losing],
    }

    logger.info(
        f"Authority score {total} (geo={score_geo}, implicit={score_implicit}, "
        f"assoc={score_association}, sov={score_sov}, coverage={breakdown['coverage']}%)"
    )

    return AuthorityScore(
        score_total=total,
        score_geo=score_geo,
        score_implicit=score_implicit,
        score_association=score_association,
        score_sov=score_sov,
        breakdown=breakdown,
    )
