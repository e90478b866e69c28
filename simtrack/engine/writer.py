"""Completion writer: the only code path that marks a task complete."""
import logging
from dataclasses import dataclass

from simtrack.engine.cache import LocalProgressCache
from simtrack.engine.errors import InvalidTaskIndexError, RemoteStoreError
from simtrack.engine.gating import TaskStatus, task_status
from simtrack.engine.reconcile import Reconciler, normalize_indices
from simtrack.engine.store import AttemptStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletionResult:
    ok: bool
    task_index: int
    already_completed: bool = False
    reason: str | None = None


class CompletionWriter:
    """Local part is synchronous (``record``), remote part asynchronous (``push``).

    A failed push leaves the local completion in place; the next
    reconciliation pass pushes it again.
    """

    def __init__(self, cache: LocalProgressCache, store: AttemptStore, reconciler: Reconciler):
        self.cache = cache
        self.store = store
        self.reconciler = reconciler

    @property
    def attempt_id(self) -> str:
        return self.reconciler.attempt_id

    @property
    def total_task_count(self) -> int:
        return self.reconciler.total_task_count

    def validate(self, completed: tuple[int, ...], index: int) -> bool:
        """Raise for out-of-range or locked indices; True when already completed."""
        if isinstance(index, bool) or not isinstance(index, int):
            raise InvalidTaskIndexError(index, self.total_task_count, "not an integer")
        if not 0 <= index < self.total_task_count:
            raise InvalidTaskIndexError(index, self.total_task_count, "out of range")
        status = task_status(index, completed)
        if status is TaskStatus.COMPLETED:
            return True
        if status is TaskStatus.LOCKED:
            raise InvalidTaskIndexError(index, self.total_task_count, "locked")
        return False

    def record(self, completed: tuple[int, ...], index: int) -> tuple[int, ...]:
        """Add ``index`` to ``completed`` and mirror the result to the local cache."""
        if self.validate(completed, index):
            logger.debug("task %s of attempt %s already completed", index, self.attempt_id)
            return completed

        cached = self.cache.read(self.reconciler.simulation_id)
        merged = set(completed) | {index}
        if self.reconciler.is_current(cached):
            merged |= set(cached.completed_task_indices)
        updated = normalize_indices(merged, self.total_task_count)
        self.cache.write(self.reconciler.snapshot_for(updated, previous=cached))
        logger.debug("task %s of attempt %s completed locally", index, self.attempt_id)
        return updated

    async def push(self, index: int) -> CompletionResult:
        try:
            await self.store.write_completion(self.attempt_id, index)
        except RemoteStoreError as exc:
            logger.warning("remote completion of task %s for attempt %s failed: %s", index, self.attempt_id, exc)
            return CompletionResult(ok=False, task_index=index, reason=str(exc))
        return CompletionResult(ok=True, task_index=index)
