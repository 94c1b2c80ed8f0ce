"""
Citation Accessibility Verifier

Checks that URLs cited in AI answers are reachable.

- HEAD requests only (no body fetch)
- Bounded concurrency: citations are checked in batches of
  ``max_concurrent``; a batch finishes before the next one starts
- Hard per-request timeout
- A broken link is data, not an exception: failures are recorded on
  the citation and never raised
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID

import httpx
from sqlalchemy.orm import Session

from src.database.models import ScanResult, CitationValidationStatus

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; LocalAuthorityBot/1.0; +citation-check)"
VALIDATION_VERSION = "inline-v1"
TIMEOUT_MARKER = "timeout"

DEFAULT_MAX_CONCURRENT = 5
DEFAULT_TIMEOUT_SECONDS = 5.0

# In-run validation is tighter so it never holds up a run for long
RUN_MAX_CONCURRENT = 3
RUN_TIMEOUT_SECONDS = 3.0


@dataclass
class CitationVerificationResult:
    """Outcome of verifying one response's citations."""
    validated_citations: List[Dict[str, Any]] = field(default_factory=list)
    accessible_citations: List[Dict[str, Any]] = field(default_factory=list)
    validated_at: Optional[str] = None

    @property
    def total_count(self) -> int:
        return len(self.validated_citations)

    @property
    def accessible_count(self) -> int:
        return len(self.accessible_citations)

    @property
    def filtered_count(self) -> int:
        return self.total_count - self.accessible_count

    @property
    def status(self) -> str:
        return "no_citations" if not self.validated_citations else "validated"

    def metadata(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "original_count": self.total_count,
            "validated_count": self.total_count,
            "accessible_count": self.accessible_count,
            "filtered_count": self.filtered_count,
            "validated_at": self.validated_at,
            "validation_version": VALIDATION_VERSION,
        }


# =============================================================================
# VERIFICATION
# =============================================================================

async def check_citation(
    client: httpx.AsyncClient,
    citation: Dict[str, Any],
    timeout: float,
) -> Dict[str, Any]:
    """
    Check a single citation and return it with validation fields added.

    Fields added: is_accessible, validation_status_code (0 when no
    response), validated_at and, on failure, validation_error.
    """
    checked = dict(citation)
    url = citation.get("url") or ""

    try:
        response = await asyncio.wait_for(client.head(url), timeout=timeout)
        checked["is_accessible"] = 200 <= response.status_code < 400
        checked["validation_status_code"] = response.status_code
    except (asyncio.TimeoutError, httpx.TimeoutException):
        checked["is_accessible"] = False
        checked["validation_status_code"] = 0
        checked["validation_error"] = TIMEOUT_MARKER
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        checked["is_accessible"] = False
        checked["validation_status_code"] = 0
        checked["validation_error"] = str(e) or type(e).__name__
    except Exception as e:
        logger.warning(f"Unexpected error checking citation {url}: {e}")
        checked["is_accessible"] = False
        checked["validation_status_code"] = 0
        checked["validation_error"] = str(e) or type(e).__name__

    checked["validated_at"] = datetime.utcnow().isoformat()
    return checked


async def verify_citations(
    citations: List[Dict[str, Any]],
    max_concurrent: int = DEFAULT_MAX_CONCURRENT,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    client: Optional[httpx.AsyncClient] = None,
) -> CitationVerificationResult:
    """
    Verify a response's citations in sequential batches.

    Args:
        citations: Citation dicts with at least a ``url``
        max_concurrent: Batch size (peak concurrent requests)
        timeout: Per-request timeout in seconds
        client: Optional shared client (created and closed here otherwise)

    Returns:
        CitationVerificationResult with every citation resolved
    """
    result = CitationVerificationResult(validated_at=datetime.utcnow().isoformat())
    if not citations:
        return result

    batch_size = max(1, max_concurrent)
    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            timeout=httpx.Timeout(timeout),
        )

    try:
        for start in range(0, len(citations), batch_size):
            batch = citations[start:start + batch_size]
            checked = await asyncio.gather(
                *(check_citation(client, c, timeout) for c in batch)
            )
            result.validated_citations.extend(checked)
    finally:
        if owns_client:
            await client.aclose()

    result.accessible_citations = [c for c in result.validated_citations if c.get("is_accessible")]
    logger.info(
        f"Verified {result.total_count} citations: "
        f"{result.accessible_count} accessible, {result.filtered_count} filtered"
    )
    return result


# =============================================================================
# RECORD STATE MACHINE
# =============================================================================

def best_effort_cleanup(action: Callable[[], None], description: str) -> bool:
    """
    Run a failure-path cleanup step, logging and suppressing any error.

    This is the single place where cleanup errors are swallowed.

    Returns:
        True if the step succeeded
    """
    try:
        action()
        return True
    except Exception as e:
        logger.error(f"Best-effort cleanup failed ({description}): {e}")
        return False


async def validate_and_update_citations(
    db: Session,
    result_id: UUID,
    max_concurrent: int = RUN_MAX_CONCURRENT,
    timeout: float = RUN_TIMEOUT_SECONDS,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[CitationValidationStatus]:
    """
    Validate a stored result's citations and write them back.

    State machine: none -> validating -> completed, or -> failed when the
    pass raises. Only accessible citations stay in ``citations``; the full
    list is kept in ``all_citations``.

    Returns:
        Final validation status, or None if the result does not exist
    """
    record = db.query(ScanResult).filter(ScanResult.id == result_id).first()
    if record is None:
        logger.warning(f"Citation validation skipped, result {result_id} not found")
        return None

    if record.citations_validation_status == CitationValidationStatus.VALIDATING:
        logger.info(f"Citation validation already in progress for result {result_id}")
        return record.citations_validation_status

    original = list(record.all_citations or record.citations or [])
    record.citations_validation_status = CitationValidationStatus.VALIDATING
    db.commit()

    try:
        verification = await verify_citations(
            original, max_concurrent=max_concurrent, timeout=timeout, client=client,
        )
        record.citations = verification.accessible_citations
        record.all_citations = verification.validated_citations
        record.citation_validation = verification.metadata()
        record.citations_validation_status = CitationValidationStatus.COMPLETED
        db.commit()
        return CitationValidationStatus.COMPLETED

    except Exception as e:
        logger.error(f"Citation validation failed for result {result_id}: {e}")
        best_effort_cleanup(db.rollback, f"rollback for result {result_id}")

        def mark_failed():
            record.citations_validation_status = CitationValidationStatus.FAILED
            record.citation_validation = {
                "status": "failed",
                "error": str(e),
                "validated_at": datetime.utcnow().isoformat(),
                "validation_version": VALIDATION_VERSION,
            }
            db.commit()

        best_effort_cleanup(mark_failed, f"mark result {result_id} failed")
        return CitationValidationStatus.FAILED
