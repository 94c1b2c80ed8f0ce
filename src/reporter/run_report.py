"""
Run Report Builder

Turns a stored run, its score and its results into the payload the
results page renders: score with component labels, plain-language
highlights, competitor mention rates, sample answers and confidence.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from src.database.models import BusinessProfile, ScanResult, ScanRun, ScoreRecord
from src.scoring.outcome import round_half_up

logger = logging.getLogger(__name__)

SNIPPET_LENGTH = 400
MAX_SAMPLES = 5
# Results loaded for samples and mention rates
RESULT_SAMPLE_LIMIT = 50

LOW_LABEL_MAX = 8
MEDIUM_LABEL_MAX = 17


def score_label(score: int) -> str:
    """Low / Medium / High label for a 0-25 component."""
    if score <= LOW_LABEL_MAX:
        return "Low"
    if score <= MEDIUM_LABEL_MAX:
        return "Medium"
    return "High"


def snippet(text: Optional[str], length: int = SNIPPET_LENGTH) -> str:
    text = text or ""
    return text[:length] + ("..." if len(text) > length else "")


def competitor_mention_rates(
    ranked: Sequence[Dict[str, Any]],
    result_count: int,
) -> List[Dict[str, Any]]:
    """Attach mention_rate (% of results) to ranked competitors."""
    return [
        {
            "name": c["name"],
            "mention_count": c["mentions"],
            "mention_rate": round_half_up(c["mentions"] / result_count * 100) if result_count else 0,
        }
        for c in ranked
    ]


def sample_responses(results: Sequence[ScanResult], limit: int = MAX_SAMPLES) -> List[Dict[str, Any]]:
    """One sample per new layer or new layer/model pair, in result order."""
    seen = set()
    samples = []
    for result in results:
        layer = result.layer.value
        key = (layer, result.model)
        if layer in seen and key in seen:
            continue
        seen.add(layer)
        seen.add(key)
        samples.append({
            "layer": layer,
            "prompt_text": result.prompt_text,
            "model": result.model,
            "snippet": snippet(result.raw_response),
            "citations": result.citations or [],
        })
    return samples[:limit]


def build_highlights(breakdown: Dict[str, Any], top_competitors: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    highlights = []

    if "geo_presence_rate" in breakdown:
        rate = breakdown["geo_presence_rate"]
        if rate > 0:
            highlights.append({
                "type": "brand_present",
                "text": f"Your brand appears in {rate}% of geo-targeted prompts",
                "value": rate,
            })
        else:
            highlights.append({
                "type": "brand_absent",
                "text": "Your brand is not appearing in geo-targeted AI responses",
                "value": 0,
            })

    if breakdown.get("geo_top3_rate", 0) > 0:
        highlights.append({
            "type": "top_position",
            "text": f"Ranked in top 3 for {breakdown['geo_top3_rate']}% of geo prompts",
            "value": breakdown["geo_top3_rate"],
        })

    if "implicit_rate" in breakdown:
        highlights.append({
            "type": "implicit_recall",
            "text": f"AI recalls your brand in {breakdown['implicit_rate']}% of implicit (non-local) queries",
            "value": breakdown["implicit_rate"],
        })

    if top_competitors:
        top = top_competitors[0]
        highlights.append({
            "type": "competitor_top",
            "text": f'Top competitor "{top["name"]}" appears in {top["mention_rate"]}% of responses',
            "value": top["mention_rate"],
        })

    if "sov_rate" in breakdown:
        highlights.append({
            "type": "share_of_voice",
            "text": f"Your share of voice is {breakdown['sov_rate']}% compared to competitors",
            "value": breakdown["sov_rate"],
        })

    if breakdown.get("assoc_rate", 0) > 0:
        highlights.append({
            "type": "association",
            "text": f"AI associates your brand with your location in {breakdown['assoc_rate']}% of responses",
            "value": breakdown["assoc_rate"],
        })

    return highlights


def build_run_report(
    profile: BusinessProfile,
    run: ScanRun,
    score: Optional[ScoreRecord],
    results: Sequence[ScanResult],
    result_count: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Full results payload for one run. Score fields are empty until the run completes.

    ``results`` may be a sample; ``result_count`` is the run's full result
    count and defaults to ``len(results)``.
    """
    breakdown = (score.breakdown if score else None) or {}
    if result_count is None:
        result_count = len(results)
    top_competitors = competitor_mention_rates(breakdown.get("top_competitors", []), result_count)

    score_payload = None
    confidence = None
    if score is not None:
        score_payload = {
            "total": score.score_total,
            "geo": score.score_geo,
            "implicit": score.score_implicit,
            "association": score.score_association,
            "sov": score.score_sov,
            "labels": {
                "geo": score_label(score.score_geo),
                "implicit": score_label(score.score_implicit),
                "association": score_label(score.score_association),
                "sov": score_label(score.score_sov),
            },
            "breakdown": breakdown,
        }
        confidence = {
            "level": score.confidence_level.value,
            "reasons": list(score.confidence_reasons or []),
        }

    return {
        "profile": {
            "id": str(profile.id),
            "business_name": profile.business_name,
            "domain": profile.domain,
            "primary_location": profile.primary_location,
            "categories": profile.categories,
        },
        "run": {
            "id": str(run.id),
            "status": run.status.value,
            "started_at": run.started_at.isoformat() if run.started_at else None,
            "finished_at": run.finished_at.isoformat() if run.finished_at else None,
            "models_used": run.models_used,
            "error_count": run.error_count,
            "quality_flags": run.quality_flags or {},
        },
        "score": score_payload,
        "highlights": build_highlights(breakdown, top_competitors) if score else [],
        "top_competitors": top_competitors,
        "winning_intents": breakdown.get("winning_intents", []),
        "losing_intents": breakdown.get("losing_intents", []),
        "sample_responses": sample_responses(results),
        "recommendations": (score.recommendations if score else None) or [],
        "confidence": confidence,
    }
