"""Deduplicating merge store for one fetch.

Every relay session forwards every event it receives, duplicates included;
[EventStore][kindscope.explorer.store.EventStore] keeps exactly one copy per
event id. The first copy seen wins.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from kindscope.models.event import Event


CountCallback = Callable[[int], None]


class EventStore:
    """Mapping of event id to [Event][kindscope.models.event.Event], shared by all sessions of a fetch.

    The "already present?" check and the insert happen under one lock, so
    concurrent deliveries of the same id from different relays (tasks or
    transport threads) can never store it twice or lose an insert.

    Args:
        on_count: Optional callback receiving the new distinct-event count
            after each newly stored event. Called outside the lock.

    Examples:
        ```python
        store = EventStore()
        store.insert(event)   # True
        store.insert(event)   # False, already stored
        store.count()         # 1
        ```
    """

    __slots__ = ("_events", "_lock", "_on_count")

    def __init__(self, on_count: CountCallback | None = None) -> None:
        self._events: dict[str, Event] = {}
        self._lock = threading.Lock()
        self._on_count = on_count

    def insert(self, event: Event) -> bool:
        """Store *event* unless its id is already present.

        Returns:
            ``True`` if the event was newly added.
        """
        with self._lock:
            if event.id in self._events:
                return False
            self._events[event.id] = event
            count = len(self._events)

        if self._on_count is not None:
            self._on_count(count)
        return True

    def count(self) -> int:
        """Current number of distinct events."""
        with self._lock:
            return len(self._events)

    def all(self) -> list[Event]:
        """Snapshot of all stored events, in no guaranteed order."""
        with self._lock:
            return list(self._events.values())

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, event_id: object) -> bool:
        with self._lock:
            return event_id in self._events

    def __iter__(self) -> Iterator[Event]:
        return iter(self.all())
