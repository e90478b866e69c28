"""Local progress cache: a typed snapshot per simulation in client-local storage."""
import logging
from datetime import datetime, timezone

from pydantic import BaseModel, Field, ValidationError

from simtrack.core.config import get_settings
from simtrack.engine.errors import StorageError
from simtrack.engine.storage import StorageArea

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class LocalProgressSnapshot(BaseModel):
    """Client-side mirror of one attempt's completed set."""

    simulation_id: str
    attempt_id: str
    completed_task_indices: list[int] = Field(default_factory=list)
    total_task_count: int = Field(ge=0)
    captured_at: datetime = Field(default_factory=_now)

    def matches(self, simulation_id: str, attempt_id: str) -> bool:
        return self.simulation_id == simulation_id and self.attempt_id == attempt_id


class LocalProgressCache:
    """read / write / clear over a :class:`StorageArea`.

    Every operation degrades to a no-op when storage is unavailable, and
    unreadable entries are reported as absent.
    """

    def __init__(self, storage: StorageArea | None, key_prefix: str | None = None):
        self.storage = storage
        self.key_prefix = key_prefix if key_prefix is not None else get_settings().progress_cache_prefix

    def key_for(self, simulation_id: str) -> str:
        return f"{self.key_prefix}{simulation_id}"

    def read(self, simulation_id: str) -> LocalProgressSnapshot | None:
        if self.storage is None:
            return None
        key = self.key_for(simulation_id)
        try:
            raw = self.storage.get_item(key)
        except (StorageError, OSError) as exc:
            logger.info("local progress unavailable for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            snapshot = LocalProgressSnapshot.model_validate_json(raw)
        except ValidationError:
            logger.warning("discarding malformed local progress entry %s", key)
            return None
        if snapshot.simulation_id != simulation_id:
            logger.warning("discarding local progress entry %s for simulation %s", key, snapshot.simulation_id)
            return None
        return snapshot

    def write(self, snapshot: LocalProgressSnapshot) -> None:
        if self.storage is None:
            return
        key = self.key_for(snapshot.simulation_id)
        try:
            self.storage.set_item(key, snapshot.model_dump_json())
        except (StorageError, OSError) as exc:
            logger.info("could not persist local progress %s: %s", key, exc)

    def clear(self, simulation_id: str) -> None:
        if self.storage is None:
            return
        key = self.key_for(simulation_id)
        try:
            self.storage.remove_item(key)
        except (StorageError, OSError) as exc:
            logger.info("could not clear local progress %s: %s", key, exc)
