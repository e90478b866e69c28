"""Error taxonomy of the progress engine."""


class ProgressError(Exception):
    """Base class for progress engine errors."""


class InvalidTaskIndexError(ProgressError, ValueError):
    """A completion was requested for an index that is out of range or locked.

    This signals a bug in the caller (a locked task was submitted) and is
    always raised, never absorbed.
    """

    def __init__(self, index: int, total_task_count: int, reason: str):
        self.index = index
        self.total_task_count = total_task_count
        self.reason = reason
        super().__init__(f"task index {index} rejected ({reason}); simulation has {total_task_count} tasks")


class RemoteStoreError(ProgressError):
    """The attempt store could not be read or written (network, timeout, auth)."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class StorageError(ProgressError):
    """Client-local storage is unavailable or over quota."""
