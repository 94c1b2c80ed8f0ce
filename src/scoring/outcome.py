"""
Outcome Scoring and the Flat Local Visibility Strategy

Per-outcome points shared by both scoring strategies, plus the flat
0-100 visibility score used by local scans.

Points per prompt x model outcome:
    0   not mentioned
    1   mentioned, not recommended
    2   recommended
    +1  ranked #1, +0.5 ranked #2-3
    capped at 3
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

MAX_POINTS_PER_OUTCOME = 3
TOP_COMPETITOR_LIMIT = 5

STATUS_NOT_MENTIONED = "Not Mentioned"
STATUS_OCCASIONAL = "Mentioned Occasionally"
STATUS_FREQUENT = "Frequently Recommended"


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def score_outcome(mentioned: bool, recommended: bool, position: Optional[int]) -> float:
    """
    Score a single prompt x model outcome.

    Returns:
        Points between 0 and 3
    """
    if not mentioned:
        score = 0.0
    elif recommended:
        score = 2.0
    else:
        score = 1.0

    if position == 1:
        score += 1.0
    elif position in (2, 3):
        score += 0.5

    return min(score, MAX_POINTS_PER_OUTCOME)


def max_possible_score(prompt_count: int, model_count: int) -> int:
    return prompt_count * model_count * MAX_POINTS_PER_OUTCOME


def normalize_score(raw_score: float, max_possible: float) -> int:
    """Scale a raw score to 0-100."""
    if max_possible <= 0:
        return 0
    normalized = round_half_up(raw_score / max_possible * 100)
    return max(0, min(100, normalized))


def status_label(normalized_score: int) -> str:
    """Label a normalized score (lower bound inclusive)."""
    if normalized_score < 30:
        return STATUS_NOT_MENTIONED
    if normalized_score < 70:
        return STATUS_OCCASIONAL
    return STATUS_FREQUENT


def rank_competitors(
    competitor_lists: Iterable[Sequence[str]],
    limit: int = TOP_COMPETITOR_LIMIT,
) -> List[Dict[str, Any]]:
    """
    Rank competitors by mention count across outcomes.

    Ties keep first-seen order.
    """
    counts: Dict[str, int] = {}
    for names in competitor_lists:
        for name in names:
            counts[name] = counts.get(name, 0) + 1

    # dicts keep insertion order and sorted() is stable
    ranked = sorted(counts.items(), key=lambda item: -item[1])
    return [{"name": name, "mentions": mentions} for name, mentions in ranked[:limit]]


# =============================================================================
# FLAT STRATEGY
# =============================================================================

@dataclass
class PromptOutcome:
    """One prompt x model outcome fed into flat scoring."""
    prompt: str
    model: str
    mentioned: bool
    recommended: bool
    position: Optional[int]
    competitors: List[str] = field(default_factory=list)

    @property
    def score(self) -> float:
        return score_outcome(self.mentioned, self.recommended, self.position)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "prompt": self.prompt,
            "model": self.model,
            "mentioned": self.mentioned,
            "recommended": self.recommended,
            "position": self.position,
            "competitors_mentioned": list(self.competitors),
            "score": self.score,
        }


@dataclass
class LocalVisibilityScore:
    """Flat visibility score over a fixed prompt x model matrix."""
    raw_score: float
    max_possible_score: int
    normalized_score: int
    status_label: str
    top_competitors: List[Dict[str, Any]]
    prompt_results: List[PromptOutcome]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "raw_score": self.raw_score,
            "max_possible_score": self.max_possible_score,
            "normalized_score": self.normalized_score,
            "status_label": self.status_label,
            "top_competitors": self.top_competitors,
            "prompt_results": [r.to_dict() for r in self.prompt_results],
        }


def calculate_local_visibility_score(
    outcomes: Sequence[PromptOutcome],
    prompt_count: int,
    model_count: int,
) -> LocalVisibilityScore:
    """
    Score a full prompt x model matrix with the flat strategy.

    Args:
        outcomes: Every prompt x model outcome
        prompt_count: Prompts in the matrix
        model_count: Models in the matrix
    """
    raw = sum(o.score for o in outcomes)
    max_possible = max_possible_score(prompt_count, model_count)
    normalized = normalize_score(raw, max_possible)

    return LocalVisibilityScore(
        raw_score=raw,
        max_possible_score=max_possible,
        normalized_score=normalized,
        status_label=status_label(normalized),
        top_competitors=rank_competitors(o.competitors for o in outcomes),
        prompt_results=list(outcomes),
    )
