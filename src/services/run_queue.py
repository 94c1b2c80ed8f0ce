"""
Run Queue

Tracks background execution of authority runs from submission to
completion. Each submitted run gets a ``RunTask`` handle backed by an
asyncio task; callers poll the stored run (or the handle) for status.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from src.collector.executor import RunExecutor
from src.collector.model_caller import ModelCaller, SimulatedModelCaller
from src.database import repository
from src.database.models import BusinessProfile, RunStatus
from src.database.session import get_session_factory

logger = logging.getLogger(__name__)

CallerFactory = Callable[[BusinessProfile], ModelCaller]


def simulated_caller_for(profile: BusinessProfile) -> ModelCaller:
    """Default caller: deterministic simulated answers for the profile."""
    categories = profile.categories or []
    return SimulatedModelCaller(
        business_name=profile.business_name,
        category=categories[0] if categories else None,
        city=profile.city,
        state=profile.state,
        domain=profile.domain,
    )


@dataclass
class RunTask:
    """Handle for one submitted run."""
    run_id: UUID
    status: RunStatus = RunStatus.QUEUED
    submitted_at: datetime = field(default_factory=datetime.utcnow)
    finished_at: Optional[datetime] = None
    error_message: Optional[str] = None
    _task: Optional["asyncio.Task"] = field(default=None, repr=False, compare=False)

    @property
    def done(self) -> bool:
        return self.status.is_terminal

    def update_status(self, status: RunStatus, error_message: Optional[str] = None):
        self.status = status
        if error_message:
            self.error_message = error_message
        if status.is_terminal:
            self.finished_at = datetime.utcnow()

    async def wait(self) -> "RunTask":
        """Wait for the underlying task to finish."""
        if self._task is not None:
            await self._task
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": str(self.run_id),
            "status": self.status.value,
            "submitted_at": self.submitted_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "error_message": self.error_message,
        }


class RunQueue:
    """
    In-process queue of run executions.

    Only live runs are tracked; a handle is dropped once its run finishes
    and the stored run is the source of truth from then on.

    Every execution opens its own session; the request session that
    created the run is never shared with the background task.
    """

    def __init__(
        self,
        caller_factory: CallerFactory = simulated_caller_for,
        session_factory: Optional[Callable[[], Session]] = None,
        **executor_options,
    ):
        self.caller_factory = caller_factory
        self._session_factory = session_factory
        self.executor_options = executor_options
        self._tasks: Dict[UUID, RunTask] = {}

    @property
    def session_factory(self) -> Callable[[], Session]:
        return self._session_factory or get_session_factory()

    def submit(self, run_id: UUID) -> RunTask:
        """
        Schedule a queued run on the running event loop.

        Submitting a run that already has a live task returns that task.
        """
        existing = self._tasks.get(run_id)
        if existing is not None and not existing.done:
            return existing

        handle = RunTask(run_id=run_id)
        handle._task = asyncio.get_running_loop().create_task(self._execute(handle))
        self._tasks[run_id] = handle
        logger.info(f"Submitted run {run_id}")
        return handle

    def get(self, run_id: UUID) -> Optional[RunTask]:
        return self._tasks.get(run_id)

    def list_active(self) -> List[RunTask]:
        return [t for t in self._tasks.values() if not t.done]

    async def _execute(self, handle: RunTask) -> None:
        db = self.session_factory()
        try:
            handle.update_status(RunStatus.RUNNING)
            run = repository.get_run(db, handle.run_id)
            if run is None:
                handle.update_status(RunStatus.ERROR, "Run not found")
                logger.error(f"Run {handle.run_id} not found, nothing to execute")
                return
            executor = RunExecutor(db, self.caller_factory(run.profile), **self.executor_options)
            summary = await executor.execute(handle.run_id)
            handle.update_status(summary.status)
        except Exception as e:
            logger.error(f"Background execution of run {handle.run_id} failed: {e}")
            handle.update_status(RunStatus.ERROR, str(e))
        finally:
            db.close()
            if self._tasks.get(handle.run_id) is handle:
                del self._tasks[handle.run_id]


_queue: Optional[RunQueue] = None


def get_run_queue() -> RunQueue:
    """Process-wide run queue."""
    global _queue
    if _queue is None:
        _queue = RunQueue()
    return _queue
