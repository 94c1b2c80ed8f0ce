"""
Local Visibility Scan Service

The quick, flat scan used on the free checker: six fixed prompts across
three models, simulated, scored 0-100 and cached by input fingerprint
for 24 hours.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from src.cache import ScanCache, fingerprint
from src.collector.simulator import estimate_google_maps_visibility, simulate_response
from src.database.models import LocalScan
from src.scoring.outcome import PromptOutcome, calculate_local_visibility_score
from src.services.errors import ValidationFailedError

logger = logging.getLogger(__name__)

SCAN_MODELS = ["ChatGPT", "Gemini", "Perplexity"]


@dataclass
class LocalScanInput:
    business_name: str
    city: str
    category: str
    website: Optional[str] = None


def generate_scan_prompts(category: str, city: str) -> List[str]:
    """The six standard local visibility prompts."""
    return [
        f"Best {category} near me in {city}",
        f"Who is the most trusted {category} in {city}?",
        f"Which {category} should I call in {city}?",
        f"Top-rated {category} in {city}",
        f"Recommended {category} in {city}",
        f"Local {category} businesses in {city}",
    ]


def _validate(data: LocalScanInput) -> List[str]:
    errors = []
    if not (data.business_name or "").strip():
        errors.append("business_name is required")
    if not (data.city or "").strip():
        errors.append("city is required")
    if not (data.category or "").strip():
        errors.append("category is required")
    return errors


def _scan_payload(scan: LocalScan, cached: bool) -> Dict[str, Any]:
    return {
        "scan_id": str(scan.id),
        "cached": cached,
        "business_name": scan.business_name,
        "website": scan.website,
        "city": scan.city,
        "category": scan.category,
        "raw_score": scan.raw_score,
        "max_possible_score": scan.max_possible_score,
        "normalized_score": scan.normalized_score,
        "status_label": scan.status_label,
        "top_competitors": scan.top_competitors or [],
        "prompt_results": scan.prompt_results or [],
        "google_maps_estimate": scan.google_maps_estimate,
        "cache_expires_at": scan.cache_expires_at.isoformat(),
        "created_at": scan.created_at.isoformat() if scan.created_at else None,
    }


def run_local_visibility_scan(
    db: Session,
    data: LocalScanInput,
    force: bool = False,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Score a business with the flat strategy, reusing a fresh cached scan.

    Args:
        db: Database session
        data: Business name, city, category and optional website
        force: Skip the cache and always run a new scan
        now: Reference time (UTC)

    Raises:
        ValidationFailedError: Missing name, city or category
    """
    errors = _validate(data)
    if errors:
        raise ValidationFailedError(errors)

    now = now or datetime.utcnow()
    business_name = data.business_name.strip()
    city = data.city.strip()
    category = data.category.strip()
    website = (data.website or "").strip() or None
    input_fingerprint = fingerprint(business_name, website, city, category)

    cache = ScanCache(db)
    if not force:
        cached = cache.find_cached_scan(input_fingerprint, now=now)
        if cached is not None:
            logger.info(f"Returning cached local scan {cached.id} for {business_name}, {city}")
            return _scan_payload(cached, cached=True)

    prompts = generate_scan_prompts(category, city)
    outcomes = []
    for prompt in prompts:
        for model in SCAN_MODELS:
            response = simulate_response(business_name, prompt, model, category=category, city=city)
            outcomes.append(PromptOutcome(
                prompt=prompt,
                model=model,
                mentioned=response.mentioned,
                recommended=response.recommended,
                position=response.position,
                competitors=response.competitors,
            ))

    score = calculate_local_visibility_score(outcomes, len(prompts), len(SCAN_MODELS))

    scan = LocalScan(
        business_name=business_name,
        website=website,
        city=city,
        category=category,
        input_fingerprint=input_fingerprint,
        raw_score=score.raw_score,
        max_possible_score=score.max_possible_score,
        normalized_score=score.normalized_score,
        status_label=score.status_label,
        top_competitors=score.top_competitors,
        prompt_results=[r.to_dict() for r in score.prompt_results],
        google_maps_estimate=estimate_google_maps_visibility(business_name, city),
        cache_expires_at=ScanCache.local_scan_expiry(now),
        created_at=now,
    )
    db.add(scan)
    db.commit()
    db.refresh(scan)

    logger.info(
        f"Local scan {scan.id} for {business_name}, {city}: "
        f"{score.normalized_score}/100 ({score.status_label}, force={force})"
    )
    return _scan_payload(scan, cached=False)
