"""Single-record store."""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import datetime
from typing import Any, Generic, TypeVar

from pylumino.state.models import EntityState
from pylumino.state.notifier import Notifier, Subscription
from pylumino.state.policy import utcnow

T = TypeVar("T")


class EntityStore(Generic[T]):
    """Holds at most one record plus loading/error/timestamp metadata.

    Usage::

        store = manager.create_entity_store("current_user")
        store.set_loading(True)
        try:
            store.set_data(await fetch_user())
        except Exception as exc:
            store.set_error(exc)
    """

    def __init__(
        self,
        name: str = "",
        *,
        clock: Callable[[], datetime] = utcnow,
        model: type | None = None,
    ) -> None:
        self.name = name
        self.model = model
        self._clock = clock
        self._lock = threading.RLock()
        self._state: EntityState[T] = EntityState()
        self._notifier: Notifier[EntityState[T]] = Notifier()

    @property
    def notifier(self) -> Notifier[EntityState[T]]:
        return self._notifier

    @property
    def data(self) -> T | None:
        return self._state.data

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def error(self) -> Any | None:
        return self._state.error

    @property
    def last_updated(self) -> datetime | None:
        return self._state.last_updated

    def get_state(self) -> EntityState[T]:
        return self._state

    def _update(self, **changes: Any) -> None:
        with self._lock:
            previous = self._state
            self._state = previous.model_copy(update=changes)
            self._notifier.notify(self._state, previous)

    def set_data(self, data: T) -> None:
        """Replace the record; clears loading and error."""
        self._update(data=data, loading=False, error=None, last_updated=self._clock())

    def set_loading(self, loading: bool) -> None:
        self._update(loading=loading)

    def set_error(self, error: Any) -> None:
        """Store *error* verbatim and clear the loading flag."""
        self._update(error=error, loading=False)

    def clear(self) -> None:
        self._update(data=None, loading=False, error=None, last_updated=None)

    def subscribe(self, listener: Callable[[EntityState[T], EntityState[T]], None]) -> Subscription:
        return self._notifier.subscribe(listener)

    def subscribe_to_data(self, listener: Callable[[T | None, T | None], None]) -> Subscription:
        """Called only when ``data`` changes."""
        return self._notifier.subscribe_selector(lambda state: state.data, listener)

    def __repr__(self) -> str:
        return f"EntityStore(name={self.name!r}, loading={self.loading}, has_data={self.data is not None})"
