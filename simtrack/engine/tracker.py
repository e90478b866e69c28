"""Progress tracker: the object a simulation view talks to.

It owns the in-memory canonical completed set for one attempt view and runs
reconciliation passes when a sync trigger fires:

* ``mount()`` when the view first opens,
* ``on_focus()`` when the tab regains focus,
* a storage event from another tab touching this simulation's cache key,
* right after ``complete_task()``,
* optionally on a timer (``start_periodic()``).

Passes never overlap. A trigger that fires while a pass is in flight asks for
one trailing re-run, however many triggers arrive in the meantime.
"""
import asyncio
import logging
from enum import Enum
from typing import Callable

import httpx

from simtrack.core.config import get_settings
from simtrack.engine.cache import LocalProgressCache
from simtrack.engine.errors import InvalidTaskIndexError, RemoteStoreError
from simtrack.engine.gating import TaskStatus, all_completed, task_status, task_statuses
from simtrack.engine.reconcile import Reconciler
from simtrack.engine.storage import StorageEvent, TabStorage
from simtrack.engine.store import AttemptStore, HttpAttemptStore, RemoteProgress
from simtrack.engine.writer import CompletionResult, CompletionWriter

logger = logging.getLogger(__name__)

ProgressListener = Callable[[tuple[int, ...]], None]


class SyncState(str, Enum):
    UNINITIALIZED = "uninitialized"
    RECONCILING = "reconciling"
    SETTLED = "settled"


class ProgressTracker:
    def __init__(
        self,
        simulation_id: str,
        attempt_id: str,
        total_task_count: int,
        cache: LocalProgressCache,
        store: AttemptStore,
        user_id: int | str | None = None,
        storage: TabStorage | None = None,
    ):
        if total_task_count < 0:
            raise ValueError("total_task_count must be >= 0")
        self.simulation_id = simulation_id
        self.attempt_id = attempt_id
        self.total_task_count = total_task_count
        self.cache = cache
        self.store = store
        self.user_id = user_id
        self.reconciler = Reconciler(cache, simulation_id, attempt_id, total_task_count)
        self.writer = CompletionWriter(cache, store, self.reconciler)
        self.state = SyncState.UNINITIALIZED

        self._storage = storage
        self._unsubscribe_storage: Callable[[], None] | None = None
        self._completed: tuple[int, ...] = ()
        self._listeners: list[ProgressListener] = []
        self._inflight: asyncio.Future | None = None
        self._rerun_requested = False
        self._reset_epoch = 0
        self._background: set[asyncio.Task] = set()
        self._periodic: asyncio.Task | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def completed_task_indices(self) -> tuple[int, ...]:
        return self._completed

    # ---------- queries ----------

    def get_task_status(self, index: int) -> TaskStatus:
        if not 0 <= index < self.total_task_count:
            raise InvalidTaskIndexError(index, self.total_task_count, "out of range")
        return task_status(index, self._completed)

    def task_statuses(self) -> list[TaskStatus]:
        return task_statuses(self._completed, self.total_task_count)

    def is_all_tasks_completed(self) -> bool:
        return all_completed(self._completed, self.total_task_count)

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """Call ``listener(completed)`` after every pass and completion."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ---------- triggers ----------

    async def mount(self) -> tuple[int, ...]:
        if self._storage is not None and self._unsubscribe_storage is None:
            self._unsubscribe_storage = self._storage.add_listener(self._on_storage_event)
        return await self.sync("mount")

    async def on_focus(self) -> tuple[int, ...]:
        return await self.sync("focus")

    async def on_attempt_reset(self) -> tuple[int, ...]:
        """The attempt was reset elsewhere: forget local progress and resync."""
        logger.info("attempt %s reset; clearing local progress", self.attempt_id)
        self._reset_epoch += 1
        self.cache.clear(self.simulation_id)
        self._completed = ()
        self._notify()
        return await self.sync("reset")

    def start_periodic(self, interval: float | None = None) -> asyncio.Task:
        if self._periodic is None or self._periodic.done():
            self._periodic = asyncio.get_running_loop().create_task(self.run_periodic(interval))
        return self._periodic

    async def run_periodic(self, interval: float | None = None) -> None:
        settings = get_settings()
        if interval is None:
            interval = settings.resync_interval_seconds
        interval = max(interval, settings.min_resync_interval_seconds)
        while True:
            await asyncio.sleep(interval)
            await self.sync("periodic")

    def _on_storage_event(self, event: StorageEvent) -> None:
        if event.key != self.cache.key_for(self.simulation_id):
            return
        if event.new_value is None:
            # Another tab cleared this simulation: treat it as a reset.
            self._reset_epoch += 1
            self._completed = ()
            self._notify()
        self._schedule("storage")

    def _schedule(self, reason: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("no running loop for %s trigger on attempt %s", reason, self.attempt_id)
            return
        task = loop.create_task(self.sync(reason))
        self._background.add(task)
        task.add_done_callback(self._background_done)

    def _background_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("background sync failed for attempt %s", self.attempt_id, exc_info=task.exception())

    # ---------- reconciliation ----------

    async def sync(self, reason: str = "manual") -> tuple[int, ...]:
        """Run a pass, or fold this trigger into the pass already running."""
        if self._inflight is not None:
            logger.debug("%s trigger during pass on attempt %s; re-run queued", reason, self.attempt_id)
            self._rerun_requested = True
            return await asyncio.shield(self._inflight)
        self._inflight = asyncio.ensure_future(self._run_passes(reason))
        return await asyncio.shield(self._inflight)

    async def wait_settled(self) -> None:
        """Wait for scheduled triggers and the current pass to finish."""
        while self._background or self._inflight is not None:
            pending = list(self._background)
            if self._inflight is not None:
                pending.append(self._inflight)
            await asyncio.gather(*pending, return_exceptions=True)

    async def _run_passes(self, reason: str) -> tuple[int, ...]:
        try:
            while True:
                self._rerun_requested = False
                self._set_state(SyncState.RECONCILING, reason)
                await self._reconcile_once()
                if not self._rerun_requested:
                    break
                reason = "coalesced"
        finally:
            self._inflight = None
            self._set_state(SyncState.SETTLED, reason)
        return self._completed

    async def _reconcile_once(self) -> None:
        authenticated = self.is_authenticated
        epoch = self._reset_epoch
        remote: RemoteProgress | None = None
        if authenticated or not self._has_local_progress():
            remote = await self._read_remote()
        if epoch != self._reset_epoch:
            # Answer predates a reset; the queued re-run reads the store again.
            logger.info("attempt %s reset during remote read; discarding it", self.attempt_id)
            remote = None

        # Read local state only after the remote await so completions made
        # meanwhile are part of this pass.
        local = self.cache.read(self.simulation_id)
        remote_completed = remote.completed_task_indices if remote is not None else None
        self._completed = self.reconciler.reconcile(local, remote_completed, authenticated, in_memory=self._completed)
        self._notify()

        if authenticated and remote is not None:
            await self._repush_missing(remote, epoch)

    def _has_local_progress(self) -> bool:
        return bool(self._completed) or self.reconciler.is_current(self.cache.read(self.simulation_id))

    async def _read_remote(self) -> RemoteProgress | None:
        try:
            remote = await self.store.read_progress(self.attempt_id)
        except RemoteStoreError as exc:
            logger.warning("remote progress unavailable for attempt %s: %s", self.attempt_id, exc)
            return None
        if remote.total_task_count != self.total_task_count:
            logger.warning(
                "attempt %s: remote reports %s tasks, view has %s",
                self.attempt_id,
                remote.total_task_count,
                self.total_task_count,
            )
        return remote

    async def _repush_missing(self, remote: RemoteProgress, epoch: int) -> None:
        missing = [i for i in self._completed if i not in remote.completed_task_indices]
        for index in missing:
            if epoch != self._reset_epoch:
                break
            logger.info("re-sending completion of task %s for attempt %s", index, self.attempt_id)
            result = await self.writer.push(index)
            if not result.ok:
                break

    # ---------- completion ----------

    async def complete_task(self, index: int) -> CompletionResult:
        """Mark ``index`` complete.

        The in-memory set and local cache change before the first await, so
        listeners see the new state immediately. Raises
        :class:`InvalidTaskIndexError` for out-of-range or locked tasks.
        """
        before = self._completed
        updated = self.writer.record(before, index)
        if updated == before:
            return CompletionResult(ok=True, task_index=index, already_completed=True)

        self._completed = updated
        self._notify()

        result = await self.writer.push(index)
        await self.sync("completion")
        return result

    # ---------- lifecycle ----------

    def close(self) -> None:
        if self._unsubscribe_storage is not None:
            self._unsubscribe_storage()
            self._unsubscribe_storage = None
        if self._periodic is not None:
            self._periodic.cancel()
            self._periodic = None
        for task in list(self._background):
            task.cancel()
        self._listeners.clear()

    def _set_state(self, state: SyncState, reason: str) -> None:
        if state is not self.state:
            logger.debug("attempt %s: %s -> %s (%s)", self.attempt_id, self.state.value, state.value, reason)
        self.state = state

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._completed)
            except Exception:
                logger.exception("progress listener failed for attempt %s", self.attempt_id)


def http_tracker(
    client: httpx.AsyncClient,
    storage: TabStorage,
    simulation_id: str,
    attempt_id: str,
    total_task_count: int,
    user_id: int | str | None = None,
) -> ProgressTracker:
    """Tracker wired to the HTTP attempt store and a tab's storage."""
    return ProgressTracker(
        simulation_id=simulation_id,
        attempt_id=attempt_id,
        total_task_count=total_task_count,
        cache=LocalProgressCache(storage),
        store=HttpAttemptStore(client),
        user_id=user_id,
        storage=storage,
    )
