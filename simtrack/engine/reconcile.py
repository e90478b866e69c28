"""Merge local, remote and in-memory progress into one canonical completed set."""
import logging
from typing import Iterable

from simtrack.engine.cache import LocalProgressCache, LocalProgressSnapshot

logger = logging.getLogger(__name__)


def normalize_indices(indices: Iterable[int] | None, total_task_count: int) -> tuple[int, ...]:
    """Sorted, deduplicated indices inside ``[0, total_task_count)``."""
    if not indices:
        return ()
    kept = {
        i for i in indices
        if isinstance(i, int) and not isinstance(i, bool) and 0 <= i < total_task_count
    }
    return tuple(sorted(kept))


def merge_completed(
    local_snapshot: LocalProgressSnapshot | None,
    remote_completed: Iterable[int] | None,
    *,
    is_authenticated: bool,
    simulation_id: str,
    attempt_id: str,
    total_task_count: int,
    in_memory: Iterable[int] = (),
) -> tuple[int, ...]:
    """Pure merge policy.

    Guests: the local side wins outright when present, remote is the fallback.
    Authenticated: union of both sides.
    The local side is the snapshot (only when it belongs to this attempt)
    plus whatever the current view holds in memory.
    """
    local: set[int] | None = None
    if local_snapshot is not None and local_snapshot.matches(simulation_id, attempt_id):
        local = set(local_snapshot.completed_task_indices)
    memory = set(in_memory)
    if memory:
        local = (local or set()) | memory

    remote = set(remote_completed or ())

    if is_authenticated:
        merged = (local or set()) | remote
    elif local is not None:
        merged = local
    else:
        merged = remote
    return normalize_indices(merged, total_task_count)


class Reconciler:
    """Runs :func:`merge_completed` for one attempt and heals the local cache."""

    def __init__(self, cache: LocalProgressCache, simulation_id: str, attempt_id: str, total_task_count: int):
        self.cache = cache
        self.simulation_id = simulation_id
        self.attempt_id = attempt_id
        self.total_task_count = total_task_count
        self.last_result: tuple[int, ...] | None = None

    def is_current(self, snapshot: LocalProgressSnapshot | None) -> bool:
        return snapshot is not None and snapshot.matches(self.simulation_id, self.attempt_id)

    def reconcile(
        self,
        local_snapshot: LocalProgressSnapshot | None,
        remote_completed: Iterable[int] | None,
        is_authenticated: bool,
        in_memory: Iterable[int] = (),
    ) -> tuple[int, ...]:
        if local_snapshot is not None and not self.is_current(local_snapshot):
            logger.info(
                "ignoring stale local progress for attempt %s (viewing %s)",
                local_snapshot.attempt_id,
                self.attempt_id,
            )
        merged = merge_completed(
            local_snapshot,
            remote_completed,
            is_authenticated=is_authenticated,
            simulation_id=self.simulation_id,
            attempt_id=self.attempt_id,
            total_task_count=self.total_task_count,
            in_memory=in_memory,
        )
        self.cache.write(self.snapshot_for(merged, previous=local_snapshot))
        self.last_result = merged
        return merged

    def snapshot_for(
        self,
        completed: tuple[int, ...],
        previous: LocalProgressSnapshot | None = None,
    ) -> LocalProgressSnapshot:
        """Snapshot of ``completed``; keeps ``captured_at`` when nothing changed."""
        snapshot = LocalProgressSnapshot(
            simulation_id=self.simulation_id,
            attempt_id=self.attempt_id,
            completed_task_indices=list(completed),
            total_task_count=self.total_task_count,
        )
        if (
            self.is_current(previous)
            and previous.completed_task_indices == snapshot.completed_task_indices
            and previous.total_task_count == snapshot.total_task_count
        ):
            snapshot.captured_at = previous.captured_at
        return snapshot
