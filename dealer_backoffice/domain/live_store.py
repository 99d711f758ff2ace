"""In-memory collection kept current by change events from the row store"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ChangeKind(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class ChangeEvent(Generic[T]):
    """A single row change; for deletes only the entity id has to be set"""

    kind: ChangeKind
    entity: T


class LiveCollection(Generic[T]):
    """
    Ordered snapshot of entities merged from change events.

    Merge rules:
    - insert appends, or replaces the entity in place if the id already exists
    - update replaces by id, or appends if the id is unknown
    - delete removes by id; unknown ids are ignored

    Events are applied in arrival order, so the last event for an id wins.
    Subscribers get the new snapshot after every applied event.
    """

    def __init__(self, key: Callable[[T], Any], initial: Optional[List[T]] = None):
        self._key = key
        self._items: List[T] = list(initial or [])
        self._listeners: List[Callable[[List[T]], None]] = []

    def subscribe(self, on_change: Callable[[List[T]], None]) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it"""
        self._listeners.append(on_change)
        return lambda: self.unsubscribe(on_change)

    def unsubscribe(self, on_change: Callable[[List[T]], None]) -> None:
        if on_change in self._listeners:
            self._listeners.remove(on_change)

    def get_snapshot(self) -> List[T]:
        return list(self._items)

    def replace_all(self, items: List[T]) -> None:
        """Swap in a freshly fetched list, e.g. after a full reload"""
        self._items = list(items)
        self._notify()

    def _index_of(self, entity_id: Any) -> int:
        for idx, item in enumerate(self._items):
            if self._key(item) == entity_id:
                return idx
        return -1

    def apply(self, event: ChangeEvent[T]) -> None:
        entity_id = self._key(event.entity)
        idx = self._index_of(entity_id)

        if event.kind in (ChangeKind.INSERT, ChangeKind.UPDATE):
            if idx >= 0:
                self._items[idx] = event.entity
            else:
                self._items.append(event.entity)
        elif event.kind == ChangeKind.DELETE:
            if idx < 0:
                logger.debug("Delete for unknown id ignored", extra={"entity_id": str(entity_id)})
                return
            del self._items[idx]
        else:
            raise ValueError(f"Unknown change kind: {event.kind}")

        self._notify()

    def _notify(self) -> None:
        snapshot = self.get_snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
