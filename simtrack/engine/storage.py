"""Client-local key/value storage shared between the tabs of one browser profile."""
import logging
from dataclasses import dataclass
from typing import Callable, Protocol

from simtrack.engine.errors import StorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageEvent:
    """Change notification delivered to the other tabs of a storage."""

    key: str
    old_value: str | None
    new_value: str | None


StorageListener = Callable[[StorageEvent], None]


class StorageArea(Protocol):
    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class SharedStorage:
    """In-process string store; ``area()`` hands out one view per tab.

    ``quota_bytes`` bounds the total size of keys plus values; a write that
    would exceed it raises :class:`StorageError` and leaves the store as it was.
    """

    def __init__(self, quota_bytes: int | None = None):
        self.quota_bytes = quota_bytes
        self._items: dict[str, str] = {}
        self._tabs: list["TabStorage"] = []

    def area(self) -> "TabStorage":
        tab = TabStorage(self)
        self._tabs.append(tab)
        return tab

    def detach(self, tab: "TabStorage") -> None:
        if tab in self._tabs:
            self._tabs.remove(tab)

    def _size_with(self, key: str, value: str) -> int:
        size = sum(len(k) + len(v) for k, v in self._items.items() if k != key)
        return size + len(key) + len(value)

    def _get(self, key: str) -> str | None:
        return self._items.get(key)

    def _set(self, origin: "TabStorage", key: str, value: str) -> None:
        if self.quota_bytes is not None and self._size_with(key, value) > self.quota_bytes:
            raise StorageError(f"storage quota of {self.quota_bytes} bytes exceeded")
        old = self._items.get(key)
        self._items[key] = value
        if old != value:
            self._broadcast(origin, StorageEvent(key, old, value))

    def _remove(self, origin: "TabStorage", key: str) -> None:
        old = self._items.pop(key, None)
        if old is not None:
            self._broadcast(origin, StorageEvent(key, old, None))

    def _broadcast(self, origin: "TabStorage", event: StorageEvent) -> None:
        # Like the browser "storage" event: the writing tab is not notified.
        for tab in list(self._tabs):
            if tab is not origin:
                tab._dispatch(event)


class TabStorage:
    """One tab's view of a :class:`SharedStorage`."""

    def __init__(self, shared: SharedStorage):
        self._shared = shared
        self._listeners: list[StorageListener] = []

    def get_item(self, key: str) -> str | None:
        return self._shared._get(key)

    def set_item(self, key: str, value: str) -> None:
        self._shared._set(self, key, value)

    def remove_item(self, key: str) -> None:
        self._shared._remove(self, key)

    def add_listener(self, listener: StorageListener) -> Callable[[], None]:
        """Register for changes made by other tabs; returns the unsubscribe callable."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def close(self) -> None:
        self._listeners.clear()
        self._shared.detach(self)

    def _dispatch(self, event: StorageEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("storage listener failed for key %s", event.key)
