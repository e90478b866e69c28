from simtrack.engine.cache import LocalProgressCache, LocalProgressSnapshot
from simtrack.engine.errors import InvalidTaskIndexError, ProgressError, RemoteStoreError, StorageError
from simtrack.engine.gating import TaskStatus, all_completed, task_status, task_statuses
from simtrack.engine.reconcile import Reconciler, merge_completed, normalize_indices
from simtrack.engine.storage import SharedStorage, StorageEvent, TabStorage
from simtrack.engine.store import AttemptStore, HttpAttemptStore, RemoteProgress, remote_client
from simtrack.engine.tracker import ProgressTracker, SyncState, http_tracker
from simtrack.engine.writer import CompletionResult, CompletionWriter

__all__ = [
    "LocalProgressCache",
    "LocalProgressSnapshot",
    "InvalidTaskIndexError",
    "ProgressError",
    "RemoteStoreError",
    "StorageError",
    "TaskStatus",
    "all_completed",
    "task_status",
    "task_statuses",
    "Reconciler",
    "merge_completed",
    "normalize_indices",
    "SharedStorage",
    "StorageEvent",
    "TabStorage",
    "AttemptStore",
    "HttpAttemptStore",
    "RemoteProgress",
    "ProgressTracker",
    "SyncState",
    "http_tracker",
    "remote_client",
    "CompletionResult",
    "CompletionWriter",
]
