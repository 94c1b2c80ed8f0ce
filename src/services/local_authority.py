"""
Local AI Authority Service

The operations behind the Local AI Authority product:

- upsert_profile:    validate and store a business profile
- generate_prompts:  replace the profile's prompt set from the taxonomy
- create_run:        gate, check the cache, queue a new run
- get_run:           assemble the results payload for a run

Every operation enforces ownership. Errors are ScanServiceError
subclasses so the API layer can map each kind to a response.
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from src.auth.gating import check_scan_access
from src.auth.models import User
from src.cache import ScanCache, run_cache_key
from src.context.models import ProfileInput, ProfileUpsertResult, validate_profile_input
from src.context.prompt_taxonomy import TaxonomyInput, count_by_layer, generate_prompt_templates
from src.database import repository
from src.reporter.run_report import RESULT_SAMPLE_LIMIT, build_run_report
from src.services.errors import NoPromptsError, ValidationFailedError
from src.services.run_queue import RunQueue, RunTask
from src.utils.config import get_settings

logger = logging.getLogger(__name__)


def upsert_profile(db: Session, user: User, data: ProfileInput) -> ProfileUpsertResult:
    """
    Create or update the user's profile for a domain.

    Raises:
        ValidationFailedError: With one message per invalid field
    """
    errors = validate_profile_input(data)
    if errors:
        logger.info(f"Profile validation failed for user {user.id}: {errors}")
        raise ValidationFailedError(errors)
    return repository.upsert_profile(db, user.id, data)


def generate_prompts(db: Session, user: User, profile_id: UUID) -> Dict[str, Any]:
    """
    Regenerate a profile's prompt templates.

    Returns:
        {"counts_by_layer": {layer: n}, "total": n}
    """
    profile = repository.get_owned_profile(db, user.id, profile_id)
    settings = get_settings()

    templates = generate_prompt_templates(
        TaxonomyInput(
            city=profile.city,
            state=profile.state,
            categories=list(profile.categories or []),
            neighborhoods=tuple(profile.neighborhoods or []),
            service_radius_miles=profile.service_radius_miles,
        ),
        max_prompts=settings.MAX_PROMPTS_PER_PROFILE,
    )
    total = repository.replace_prompt_templates(db, profile.id, templates)
    counts = count_by_layer(templates)

    logger.info(f"Generated {total} prompts for profile {profile.id}: {counts}")
    return {"counts_by_layer": counts, "total": total}


def create_run(
    db: Session,
    user: User,
    profile_id: UUID,
    models_requested: Optional[List[str]] = None,
    force: bool = False,
    queue: Optional[RunQueue] = None,
) -> Dict[str, Any]:
    """
    Start (or reuse) an authority run for a profile.

    A complete run with the same cache key that finished inside the TTL
    is returned instead of a new one unless ``force`` is set. New runs
    are created queued and handed to ``queue`` when one is given.

    Returns:
        {"run_id", "cached", "models", "prompt_count"} plus "task" for new runs

    Raises:
        NotFoundError / AccessDeniedError: Profile missing or not owned
        SubscriptionRequiredError / PlanUpgradeRequiredError: Gating failed
        NoPromptsError: No active prompt templates
    """
    profile = repository.get_owned_profile(db, user.id, profile_id)
    access = check_scan_access(repository.get_subscriber(db, user.id))

    prompt_count = repository.count_active_templates(db, profile.id)
    if prompt_count == 0:
        raise NoPromptsError()

    models = access.resolve_models(models_requested)
    cache_key = run_cache_key(profile.id, models, prompt_count)

    if not force:
        cached = ScanCache(db).find_cached_run(cache_key)
        if cached is not None:
            return {
                "run_id": cached.id,
                "cached": True,
                "models": list(cached.models_used or models),
                "prompt_count": cached.prompt_count,
            }

    run = repository.create_run(
        db,
        profile_id=profile.id,
        user_id=user.id,
        models=models,
        prompt_count=prompt_count,
        cache_key=cache_key,
    )

    task: Optional[RunTask] = queue.submit(run.id) if queue is not None else None

    return {
        "run_id": run.id,
        "cached": False,
        "models": models,
        "prompt_count": prompt_count,
        "task": task,
    }


def get_run(db: Session, user: User, run_id: UUID) -> Dict[str, Any]:
    """
    Results payload for one of the user's runs.

    Raises:
        NotFoundError / AccessDeniedError: Run missing or not owned
    """
    run = repository.get_owned_run(db, user.id, run_id)
    score = repository.get_score(db, run.id)
    results = repository.get_results(db, run.id, limit=RESULT_SAMPLE_LIMIT)
    return build_run_report(
        run.profile, run, score, results,
        result_count=repository.count_results(db, run.id),
    )
