"""
Repository Layer - Clean Interface for Scan Data Operations

Provides simple functions to store and retrieve profiles, prompt
templates, runs, results and scores. Handles all SQLAlchemy
complexity internally; every write commits.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from .models import (
    BusinessProfile,
    PromptTemplate,
    PromptLayer,
    ScanRun,
    ScanResult,
    ScoreRecord,
    RunStatus,
    ConfidenceLevel,
)
from src.auth.models import Subscriber
from src.context.models import ProfileInput, ProfileCreated, ProfileUpdated, ProfileUpsertResult
from src.context.prompt_taxonomy import PromptTemplateSpec
from src.services.errors import NotFoundError, AccessDeniedError, InvalidRunStateError
from src.utils.config import get_settings
from src.utils.normalize import normalize_domain

logger = logging.getLogger(__name__)

# Allowed run status transitions (terminal states have none)
RUN_TRANSITIONS = {
    RunStatus.QUEUED: {RunStatus.RUNNING, RunStatus.ERROR},
    RunStatus.RUNNING: {RunStatus.COMPLETE, RunStatus.ERROR},
    RunStatus.COMPLETE: set(),
    RunStatus.ERROR: set(),
}


# =============================================================================
# SUBSCRIPTIONS
# =============================================================================

def get_subscriber(db: Session, user_id: UUID) -> Optional[Subscriber]:
    """Subscription row for a user, if any."""
    return db.query(Subscriber).filter(Subscriber.user_id == user_id).first()


# =============================================================================
# PROFILES
# =============================================================================

def upsert_profile(db: Session, user_id: UUID, data: ProfileInput) -> ProfileUpsertResult:
    """
    Create or update a profile keyed on (user, normalized domain).

    Input must already be validated.

    Returns:
        ProfileCreated or ProfileUpdated
    """
    domain = normalize_domain(data.domain)
    profile = (
        db.query(BusinessProfile)
        .filter(BusinessProfile.user_id == user_id, BusinessProfile.domain == domain)
        .first()
    )
    created = profile is None
    if created:
        profile = BusinessProfile(user_id=user_id, domain=domain)
        db.add(profile)

    profile.business_name = data.business_name.strip()
    profile.primary_location = data.primary_location.to_dict()
    profile.service_areas = [area.to_dict() for area in data.service_areas]
    profile.service_radius_miles = data.service_radius_miles or get_settings().DEFAULT_SERVICE_RADIUS_MILES
    profile.categories = [c.strip() for c in data.categories if c and c.strip()]
    profile.neighborhoods = [n.strip() for n in data.neighborhoods if n and n.strip()]
    profile.brand_synonyms = [s.strip() for s in data.brand_synonyms if s and s.strip()]
    profile.competitor_overrides = [c.to_dict() for c in data.competitor_overrides]
    profile.gbp_url = data.gbp_url
    profile.phone = data.phone
    profile.address = data.address
    profile.updated_at = datetime.utcnow()

    db.commit()
    db.refresh(profile)

    if created:
        logger.info(f"Created profile {profile.id} for {domain}")
        return ProfileCreated(profile_id=profile.id)
    logger.info(f"Updated profile {profile.id} for {domain}")
    return ProfileUpdated(profile_id=profile.id)


def get_owned_profile(db: Session, user_id: UUID, profile_id: UUID) -> BusinessProfile:
    """
    Load a profile owned by the user.

    Raises:
        NotFoundError: Profile does not exist
        AccessDeniedError: Profile belongs to someone else
    """
    profile = db.query(BusinessProfile).filter(BusinessProfile.id == profile_id).first()
    if profile is None:
        raise NotFoundError("Profile not found")
    if profile.user_id != user_id:
        raise AccessDeniedError("Access denied to this profile")
    return profile


# =============================================================================
# PROMPT TEMPLATES
# =============================================================================

def replace_prompt_templates(
    db: Session,
    profile_id: UUID,
    templates: Sequence[PromptTemplateSpec],
) -> int:
    """Delete a profile's templates and insert the new set in one transaction."""
    try:
        deleted = (
            db.query(PromptTemplate)
            .filter(PromptTemplate.profile_id == profile_id)
            .delete(synchronize_session=False)
        )
        for order, spec in enumerate(templates):
            db.add(PromptTemplate(
                profile_id=profile_id,
                layer=spec.layer,
                prompt_text=spec.prompt_text,
                intent_tag=spec.intent_tag,
                active=True,
                sort_order=order,
            ))
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.expire_all()
    logger.info(f"Replaced {deleted} prompt templates with {len(templates)} for profile {profile_id}")
    return len(templates)


def get_active_templates(db: Session, profile_id: UUID) -> List[PromptTemplate]:
    return (
        db.query(PromptTemplate)
        .filter(PromptTemplate.profile_id == profile_id, PromptTemplate.active.is_(True))
        .order_by(PromptTemplate.sort_order)
        .all()
    )


def count_active_templates(db: Session, profile_id: UUID) -> int:
    return (
        db.query(PromptTemplate)
        .filter(PromptTemplate.profile_id == profile_id, PromptTemplate.active.is_(True))
        .count()
    )


# =============================================================================
# RUNS
# =============================================================================

def create_run(
    db: Session,
    profile_id: UUID,
    user_id: UUID,
    models: List[str],
    prompt_count: int,
    cache_key: str,
) -> ScanRun:
    """Insert a queued run."""
    run = ScanRun(
        profile_id=profile_id,
        user_id=user_id,
        status=RunStatus.QUEUED,
        models_used=list(models),
        prompt_count=prompt_count,
        cache_key=cache_key,
        error_count=0,
        quality_flags={},
    )
    db.add(run)
    db.commit()
    db.refresh(run)
    logger.info(f"Created run {run.id} ({prompt_count} prompts x {len(models)} models)")
    return run


def get_run(db: Session, run_id: UUID) -> Optional[ScanRun]:
    return db.query(ScanRun).filter(ScanRun.id == run_id).first()


def get_owned_run(db: Session, user_id: UUID, run_id: UUID) -> ScanRun:
    """
    Load a run owned by the user.

    Raises:
        NotFoundError: Run does not exist
        AccessDeniedError: Run belongs to someone else
    """
    run = get_run(db, run_id)
    if run is None:
        raise NotFoundError("Run not found")
    if run.user_id != user_id:
        raise AccessDeniedError("Access denied to this run")
    return run


def update_run_status(
    db: Session,
    run: ScanRun,
    status: RunStatus,
    error_count: Optional[int] = None,
    quality_flags: Optional[Dict[str, Any]] = None,
    error_message: Optional[str] = None,
) -> ScanRun:
    """
    Move a run forward.

    Sets started_at when entering running and finished_at when entering
    a terminal status.

    Raises:
        InvalidRunStateError: Transition would reopen or skip a state
    """
    if status not in RUN_TRANSITIONS[run.status]:
        raise InvalidRunStateError(
            f"Run {run.id} cannot move from {run.status.value} to {status.value}"
        )

    now = datetime.utcnow()
    run.status = status
    if status == RunStatus.RUNNING:
        run.started_at = now
    if status.is_terminal:
        run.finished_at = now
    if error_count is not None:
        run.error_count = error_count
    if quality_flags is not None:
        run.quality_flags = quality_flags
    if error_message is not None:
        run.error_message = error_message

    db.commit()
    logger.info(f"Run {run.id} -> {status.value}")
    return run


# =============================================================================
# RESULTS & SCORES
# =============================================================================

def store_result(
    db: Session,
    run_id: UUID,
    layer: PromptLayer,
    intent_tag: str,
    prompt_text: str,
    model: str,
    mentioned: bool,
    recommended: bool,
    position: Optional[int],
    competitors: List[str],
    raw_response: str,
    citations: List[Dict[str, Any]],
    extracted: Dict[str, Any],
) -> ScanResult:
    """Insert one write-once result row."""
    result = ScanResult(
        run_id=run_id,
        layer=layer,
        intent_tag=intent_tag,
        prompt_text=prompt_text,
        model=model,
        mentioned=mentioned,
        recommended=recommended,
        position=position,
        competitors=list(competitors),
        raw_response=raw_response,
        citations=list(citations),
        all_citations=list(citations),
        extracted=extracted,
    )
    db.add(result)
    db.commit()
    return result


def get_results(db: Session, run_id: UUID, limit: Optional[int] = None) -> List[ScanResult]:
    query = db.query(ScanResult).filter(ScanResult.run_id == run_id).order_by(ScanResult.created_at)
    if limit:
        query = query.limit(limit)
    return query.all()


def count_results(db: Session, run_id: UUID) -> int:
    return db.query(ScanResult).filter(ScanResult.run_id == run_id).count()


def store_score(
    db: Session,
    run: ScanRun,
    score_total: int,
    score_geo: int,
    score_implicit: int,
    score_association: int,
    score_sov: int,
    breakdown: Dict[str, Any],
    recommendations: List[Dict[str, Any]],
    confidence_level: ConfidenceLevel,
    confidence_reasons: List[str],
) -> ScoreRecord:
    """
    Insert the run's score record (one per run, never updated).

    Raises:
        InvalidRunStateError: Run already has a score
    """
    existing = db.query(ScoreRecord).filter(ScoreRecord.run_id == run.id).first()
    if existing is not None:
        raise InvalidRunStateError(f"Run {run.id} already has a score")

    record = ScoreRecord(
        run_id=run.id,
        profile_id=run.profile_id,
        score_total=score_total,
        score_geo=score_geo,
        score_implicit=score_implicit,
        score_association=score_association,
        score_sov=score_sov,
        breakdown=breakdown,
        top_competitors=breakdown.get("top_competitors", []),
        recommendations=recommendations,
        confidence_level=confidence_level,
        confidence_reasons=list(confidence_reasons),
    )
    db.add(record)
    db.commit()
    logger.info(f"Stored score {score_total} for run {run.id}")
    return record


def get_score(db: Session, run_id: UUID) -> Optional[ScoreRecord]:
    return db.query(ScoreRecord).filter(ScoreRecord.run_id == run_id).first()
