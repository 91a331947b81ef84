"""Synchronous publish/subscribe primitive used by every store.

Delivery rules:

* Listeners are called on the notifying thread, in registration order,
  with ``(current, previous)``.
* The listener list is snapshotted when ``notify`` starts. A listener
  added during delivery is not called in that pass; a listener removed
  during delivery is skipped if it has not been reached yet.
* A raising listener does not stop delivery. Each failure is logged at
  DEBUG and, once every listener has run, the first exception is re-raised
  to the caller.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

_logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

Listener = Callable[[T, T], None]


@dataclass(slots=True, eq=False)
class _Registration(Generic[T]):
    listener: Listener[T]
    active: bool = True


class Subscription:
    """Handle returned by ``subscribe``; call it to unsubscribe.

    Calling it more than once is a no-op.
    """

    __slots__ = ("_notifier", "_registration")

    def __init__(self, notifier: Notifier[Any], registration: _Registration[Any]) -> None:
        self._notifier = notifier
        self._registration = registration

    @property
    def active(self) -> bool:
        return self._registration.active

    def __call__(self) -> None:
        self._notifier._remove(self._registration)  # noqa: SLF001


class Notifier(Generic[T]):
    """Deliver ``(current, previous)`` values to registered listeners."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._registrations: list[_Registration[T]] = []
        self._defer_depth = 0
        self._pending: tuple[T, T] | None = None

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._registrations)

    def subscribe(self, listener: Listener[T]) -> Subscription:
        registration = _Registration(listener)
        with self._lock:
            self._registrations.append(registration)
        return Subscription(self, registration)

    def subscribe_selector(
        self,
        selector: Callable[[T], R],
        listener: Callable[[R, R], None],
    ) -> Subscription:
        """Subscribe to a derived value; called only when it compares unequal."""

        def _on_change(current: T, previous: T) -> None:
            new_value = selector(current)
            old_value = selector(previous)
            if new_value != old_value:
                listener(new_value, old_value)

        return self.subscribe(_on_change)

    def _remove(self, registration: _Registration[T]) -> None:
        with self._lock:
            if not registration.active:
                return
            registration.active = False
            self._registrations.remove(registration)

    def clear(self) -> None:
        """Detach every listener."""
        with self._lock:
            for registration in self._registrations:
                registration.active = False
            self._registrations.clear()

    def notify(self, current: T, previous: T) -> None:
        with self._lock:
            if self._defer_depth:
                if self._pending is None:
                    self._pending = (current, previous)
                else:
                    # Keep the state from before the first deferred change.
                    self._pending = (current, self._pending[1])
                return
        self._deliver(current, previous)

    @contextmanager
    def defer(self) -> Iterator[None]:
        """Coalesce notifications until the outermost ``defer`` block exits."""
        with self._lock:
            self._defer_depth += 1
        try:
            yield
        finally:
            with self._lock:
                self._defer_depth -= 1
                pending = self._pending if self._defer_depth == 0 else None
                if pending is not None:
                    self._pending = None
            if pending is not None:
                self._deliver(*pending)

    def _deliver(self, current: T, previous: T) -> None:
        with self._lock:
            snapshot = list(self._registrations)

        first_error: Exception | None = None
        for registration in snapshot:
            if not registration.active:
                continue
            try:
                registration.listener(current, previous)
            except Exception as exc:
                _logger.debug("State listener %r failed", registration.listener, exc_info=True)
                if first_error is None:
                    first_error = exc

        if first_error is not None:
            raise first_error
