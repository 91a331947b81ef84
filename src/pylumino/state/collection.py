"""Normalized collection store.

Records live in a single ``dict`` keyed by id. Python dicts keep insertion
order and reassigning an existing key does not move it, which gives the
ordering rules this store needs directly:

* a new id is appended to the end;
* an existing id keeps its first-seen position while its value is replaced;
* removing an id leaves the relative order of the others untouched.

Lookups, upserts and removals are O(1); ``get_all`` materializes the ordered
list once per mutation and caches it until the next one.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Hashable, Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Generic, TypeVar

from pylumino.state.models import CollectionState
from pylumino.state.notifier import Notifier, Subscription
from pylumino.state.policy import check_id, item_id, utcnow

_logger = logging.getLogger(__name__)

T = TypeVar("T")
TId = TypeVar("TId", bound=Hashable)


class CollectionStore(Generic[T, TId]):
    """Holds many records keyed by ``id_field`` plus loading/error metadata.

    Subscribers receive ``(items, previous_items)`` as ordered tuples, never
    the normalized mapping. The tuples are shared by every listener of a
    delivery pass.
    """

    def __init__(
        self,
        name: str = "",
        id_field: str = "id",
        *,
        clock: Callable[[], datetime] = utcnow,
        model: type | None = None,
    ) -> None:
        self.name = name
        self.id_field = id_field
        self.model = model
        self._clock = clock
        self._lock = threading.RLock()
        self._by_id: dict[TId, T] = {}
        self._loading = False
        self._error: Any | None = None
        self._last_updated: datetime | None = None
        self._items_cache: tuple[T, ...] | None = None
        self._notifier: Notifier[tuple[T, ...]] = Notifier()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def notifier(self) -> Notifier[tuple[T, ...]]:
        return self._notifier

    @property
    def count(self) -> int:
        return len(self._by_id)

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> Any | None:
        return self._error

    @property
    def last_updated(self) -> datetime | None:
        return self._last_updated

    def _items(self) -> tuple[T, ...]:
        if self._items_cache is None:
            self._items_cache = tuple(self._by_id.values())
        return self._items_cache

    def get_all(self) -> list[T]:
        with self._lock:
            return list(self._items())

    def get_by_id(self, id_: TId) -> T | None:
        return self._by_id.get(id_)

    def get_ids(self) -> list[TId]:
        with self._lock:
            return list(self._by_id)

    def get_state(self) -> CollectionState[T]:
        with self._lock:
            return CollectionState(
                by_id=dict(self._by_id),
                ids=list(self._by_id),
                loading=self._loading,
                error=self._error,
                last_updated=self._last_updated,
            )

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, id_: object) -> bool:
        return id_ in self._by_id

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _keyed(self, items: Iterable[T]) -> list[tuple[TId, T]]:
        # Resolve every id up front so a bad item leaves the store untouched.
        return [(item_id(item, self.id_field, store=self.name), item) for item in items]

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        with self._lock:
            previous = self._items()
            try:
                yield
            finally:
                self._items_cache = None
            self._notifier.notify(self._items(), previous)

    def set_all(self, items: Iterable[T]) -> None:
        """Replace every record.

        Duplicate ids keep the position of their first occurrence and the
        value of their last one.
        """
        keyed = self._keyed(items)
        with self._mutation():
            by_id: dict[TId, T] = {}
            for id_, item in keyed:
                by_id[id_] = item
            if len(by_id) != len(keyed):
                _logger.debug("Collection %r: set_all collapsed %d duplicate ids", self.name, len(keyed) - len(by_id))
            self._by_id = by_id
            self._loading = False
            self._error = None
            self._last_updated = self._clock()

    def upsert(self, item: T) -> None:
        self.upsert_many((item,))

    def upsert_many(self, items: Iterable[T]) -> None:
        """Insert or replace each item in order, then notify once."""
        keyed = self._keyed(items)
        with self._mutation():
            for id_, item in keyed:
                self._by_id[id_] = item
            self._last_updated = self._clock()

    def remove(self, id_: TId) -> None:
        """Remove one record; an unknown id still notifies."""
        self.remove_many((id_,))

    def remove_many(self, ids: Iterable[TId]) -> None:
        checked = [check_id(id_, store=self.name) for id_ in ids]
        with self._mutation():
            for id_ in checked:
                self._by_id.pop(id_, None)
            self._last_updated = self._clock()

    def set_loading(self, loading: bool) -> None:
        with self._mutation():
            self._loading = loading

    def set_error(self, error: Any) -> None:
        with self._mutation():
            self._error = error
            self._loading = False

    def clear(self) -> None:
        with self._mutation():
            self._by_id = {}
            self._loading = False
            self._error = None
            self._last_updated = None

    def subscribe(self, listener: Callable[[tuple[T, ...], tuple[T, ...]], None]) -> Subscription:
        return self._notifier.subscribe(listener)

    def __repr__(self) -> str:
        return f"CollectionStore(name={self.name!r}, id_field={self.id_field!r}, count={self.count})"
