"""
Run Executor

Executes a queued authority run end to end:

1. queued -> running
2. Fan out every active template x model call (bounded, with timeouts)
3. Extract each answer and store a result row
4. Score, assess confidence, build the action plan, store the score
5. running -> complete
6. Validate citations on results that carry any

A failed call is counted, never fatal. Anything else that goes wrong
moves the run to error.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

import httpx
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.collector.citations import best_effort_cleanup, validate_and_update_citations
from src.collector.extraction import BrandConfig, ExtractedResponse, extract_response
from src.collector.model_caller import ModelAnswer, ModelCaller, ModelCallError
from src.database import repository
from src.database.models import PromptTemplate, RunStatus, ScanRun
from src.reporter.confidence import assess_confidence
from src.scoring.authority import AuthorityOutcome, compute_authority_score
from src.scoring.recommendations import generate_recommendations
from src.services.errors import InvalidRunStateError, NoPromptsError, NotFoundError
from src.utils.config import get_settings

logger = logging.getLogger(__name__)

# An answer this long with no list items means list detection likely missed
LIST_DETECTION_MIN_CHARS = 100
PARTIAL_COVERAGE = 0.5


@dataclass
class CallOutcome:
    """One template x model call, successful or not."""
    template: PromptTemplate
    model: str
    answer: Optional[ModelAnswer] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.answer is not None


@dataclass
class ExecutionSummary:
    run_id: UUID
    status: RunStatus
    total_calls: int = 0
    error_count: int = 0
    score_total: Optional[int] = None
    citation_results: int = 0
    quality_flags: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": str(self.run_id),
            "status": self.status.value,
            "total_calls": self.total_calls,
            "error_count": self.error_count,
            "score_total": self.score_total,
            "citation_results": self.citation_results,
            "quality_flags": self.quality_flags,
        }


class RunExecutor:
    """
    Executes authority runs against a model caller.

    The database session is only touched from the coroutine driving
    ``execute``; model calls run concurrently but never write.
    """

    def __init__(
        self,
        db: Session,
        caller: ModelCaller,
        max_concurrent: Optional[int] = None,
        call_timeout: Optional[float] = None,
        validate_citations: bool = True,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self.db = db
        self.caller = caller
        self.max_concurrent = max_concurrent or settings.MODEL_MAX_CONCURRENT
        self.call_timeout = call_timeout or settings.MODEL_CALL_TIMEOUT_SECONDS
        self.validate_citations = validate_citations
        self.http_client = http_client
        self.citation_max_concurrent = settings.CITATION_RUN_MAX_CONCURRENT
        self.citation_timeout = settings.CITATION_RUN_TIMEOUT_SECONDS

    async def execute(self, run_id: UUID) -> ExecutionSummary:
        """
        Execute a queued run.

        Raises:
            NotFoundError: Run does not exist
            InvalidRunStateError: Run is not queued
        """
        run = repository.get_run(self.db, run_id)
        if run is None:
            raise NotFoundError("Run not found")
        if run.status != RunStatus.QUEUED:
            raise InvalidRunStateError(f"Run {run_id} is {run.status.value}, only queued runs execute")

        repository.update_run_status(self.db, run, RunStatus.RUNNING)

        try:
            summary = await self._execute_running(run)
        except Exception as e:
            logger.error(f"Run {run_id} failed: {e}", exc_info=True)
            best_effort_cleanup(self.db.rollback, f"rollback for run {run_id}")
            best_effort_cleanup(
                lambda: repository.update_run_status(
                    self.db, run, RunStatus.ERROR, error_message=str(e),
                ),
                f"mark run {run_id} as error",
            )
            raise

        if self.validate_citations:
            summary.citation_results = await self._validate_citations(run)
        return summary

    # =========================================================================
    # PHASES
    # =========================================================================

    async def _execute_running(self, run: ScanRun) -> ExecutionSummary:
        profile = run.profile
        templates = repository.get_active_templates(self.db, run.profile_id)
        if not templates:
            raise NoPromptsError()

        models = list(run.models_used or [])
        total_calls = len(templates) * len(models)
        logger.info(f"Executing run {run.id}: {len(templates)} prompts x {len(models)} models")

        calls = await self._call_all(templates, models)

        brand = BrandConfig(
            business_name=profile.business_name,
            domain=profile.domain,
            brand_synonyms=list(profile.brand_synonyms or []),
        )

        outcomes: List[AuthorityOutcome] = []
        error_count = 0
        list_detection_low = False

        for call in calls:
            if not call.ok:
                error_count += 1
                logger.warning(
                    f"Call failed for run {run.id} ({call.model}, {call.template.intent_tag}): {call.error}"
                )
                continue

            extracted = extract_response(
                call.answer.text,
                brand,
                city=profile.city,
                state=profile.state,
                neighborhoods=profile.neighborhoods,
                known_competitors=profile.competitor_overrides,
            )
            if not extracted.recommendations and len(call.answer.text) > LIST_DETECTION_MIN_CHARS:
                list_detection_low = True

            outcome = _to_outcome(call.template, extracted)
            try:
                repository.store_result(
                    self.db,
                    run_id=run.id,
                    layer=call.template.layer,
                    intent_tag=call.template.intent_tag,
                    prompt_text=call.template.prompt_text,
                    model=call.model,
                    mentioned=outcome.mentioned,
                    recommended=outcome.recommended,
                    position=outcome.position,
                    competitors=outcome.competitors,
                    raw_response=call.answer.text,
                    citations=call.answer.citations,
                    extracted=extracted.to_dict(),
                )
            except SQLAlchemyError as e:
                self.db.rollback()
                error_count += 1
                logger.warning(f"Failed to store result for run {run.id}: {e}")
                continue
            outcomes.append(outcome)

        coverage = len(outcomes) / total_calls if total_calls else 0.0
        quality_flags = {
            "error_count": error_count,
            "list_detection_low": list_detection_low,
            "coverage": round(coverage * 100),
            "partial_results": coverage < PARTIAL_COVERAGE,
        }

        score = compute_authority_score(outcomes, total_calls, model_count=len(models) or 1)
        recommendations = generate_recommendations(score, profile.city, profile.state)
        confidence = assess_confidence(error_count, len(outcomes), quality_flags)

        repository.store_score(
            self.db,
            run,
            score_total=score.score_total,
            score_geo=score.score_geo,
            score_implicit=score.score_implicit,
            score_association=score.score_association,
            score_sov=score.score_sov,
            breakdown=score.breakdown,
            recommendations=[r.to_dict() for r in recommendations],
            confidence_level=confidence.level,
            confidence_reasons=confidence.reasons,
        )
        repository.update_run_status(
            self.db, run, RunStatus.COMPLETE,
            error_count=error_count,
            quality_flags=quality_flags,
        )

        logger.info(
            f"Run {run.id} complete: score {score.score_total}, "
            f"{len(outcomes)}/{total_calls} calls, confidence {confidence.level.value}"
        )
        return ExecutionSummary(
            run_id=run.id,
            status=RunStatus.COMPLETE,
            total_calls=total_calls,
            error_count=error_count,
            score_total=score.score_total,
            quality_flags=quality_flags,
        )

    async def _call_all(self, templates: List[PromptTemplate], models: List[str]) -> List[CallOutcome]:
        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def call(template: PromptTemplate, model: str) -> CallOutcome:
            async with semaphore:
                try:
                    answer = await asyncio.wait_for(
                        self.caller.answer(template.prompt_text, model),
                        timeout=self.call_timeout,
                    )
                    return CallOutcome(template, model, answer=answer)
                except asyncio.TimeoutError:
                    return CallOutcome(template, model, error=f"timeout after {self.call_timeout}s")
                except ModelCallError as e:
                    return CallOutcome(template, model, error=str(e))
                except Exception as e:
                    logger.warning(f"Unexpected {type(e).__name__} from {model}: {e}")
                    return CallOutcome(template, model, error=str(e) or type(e).__name__)

        pairs: List[Tuple[PromptTemplate, str]] = [(t, m) for t in templates for m in models]
        return await asyncio.gather(*(call(t, m) for t, m in pairs))

    async def _validate_citations(self, run: ScanRun) -> int:
        """Validate citations on every result that has any. Returns the count."""
        validated = 0
        for result in repository.get_results(self.db, run.id):
            if not result.citations:
                continue
            await validate_and_update_citations(
                self.db,
                result.id,
                max_concurrent=self.citation_max_concurrent,
                timeout=self.citation_timeout,
                client=self.http_client,
            )
            validated += 1
        if validated:
            logger.info(f"Validated citations on {validated} results for run {run.id}")
        return validated


def _to_outcome(template: PromptTemplate, extracted: ExtractedResponse) -> AuthorityOutcome:
    return AuthorityOutcome(
        layer=template.layer,
        intent_tag=template.intent_tag,
        mentioned=extracted.brand_hit,
        recommended=any(r.is_brand for r in extracted.recommendations),
        position=extracted.brand_position,
        competitors=[c.name for c in extracted.competitors],
        location_match=bool(extracted.places),
        strong_association=extracted.strong_association,
    )


async def execute_run(db: Session, run_id: UUID, caller: ModelCaller, **options) -> ExecutionSummary:
    """Execute a queued run with a fresh executor."""
    return await RunExecutor(db, caller, **options).execute(run_id)
