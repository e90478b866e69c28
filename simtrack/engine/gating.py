"""Task gating: strict linear unlocking over a completed-task set."""
from enum import Enum
from typing import Collection


class TaskStatus(str, Enum):
    COMPLETED = "completed"
    AVAILABLE = "available"
    LOCKED = "locked"


def task_status(index: int, completed: Collection[int]) -> TaskStatus:
    """Return the status of one task.

    Membership in ``completed`` wins over sequencing, so indices completed out
    of order (admin override, malformed record) still report ``completed``.
    Only the immediate predecessor unlocks a task; task 0 is always open.
    """
    if index in completed:
        return TaskStatus.COMPLETED
    if index == 0:
        return TaskStatus.AVAILABLE
    if (index - 1) in completed:
        return TaskStatus.AVAILABLE
    return TaskStatus.LOCKED


def task_statuses(completed: Collection[int], total_task_count: int) -> list[TaskStatus]:
    return [task_status(i, completed) for i in range(total_task_count)]


def all_completed(completed: Collection[int], total_task_count: int) -> bool:
    """True when every task of a non-empty simulation is in ``completed``."""
    if total_task_count <= 0:
        return False
    return all(i in completed for i in range(total_task_count))
