"""Central state manager.

Owns the named entity/collection store registries, one :class:`TTLCache`,
and the global application slices (loading flags, locale, theme, user,
meta). Slice mutations notify the manager's own subscribers with the full
:class:`AppState`; store mutations only notify that store's subscribers.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator, Mapping
from contextlib import ExitStack, contextmanager
from datetime import datetime, timedelta
from typing import Any, TypeVar

from pydantic import ValidationError

from pylumino._redact import redact_for_log
from pylumino.cache import TTLCache
from pylumino.config import StateConfig
from pylumino.exceptions import LuminoConfigError, LuminoStoreMismatchError
from pylumino.state.collection import CollectionStore
from pylumino.state.entity import EntityStore
from pylumino.state.events import StateEvent
from pylumino.state.models import AppState, LoadingState
from pylumino.state.notifier import Notifier, Subscription
from pylumino.state.policy import utcnow

_logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

EventHook = Callable[[str, dict[str, Any]], None]


class StateManager:
    """Composition root for application state.

    Construct one per application (or per test) and pass it to whatever
    needs it; there is no module-level instance.

    Usage::

        manager = StateManager()
        users = manager.create_collection_store("users", id_field="id")
        users.set_all(await fetch_users())

        manager.set_api_loading("users.list", True)
        unsubscribe = manager.subscribe(lambda state, prev: render(state))
    """

    def __init__(
        self,
        config: StateConfig | None = None,
        *,
        initial_state: AppState | Mapping[str, Any] | None = None,
        clock: Callable[[], datetime] = utcnow,
        on_event: EventHook | None = None,
    ) -> None:
        self._config = config or StateConfig()
        self._clock = clock
        self._on_event_cb = on_event
        self._lock = threading.RLock()
        self._state = self._initial_state(initial_state)
        self._notifier: Notifier[AppState] = Notifier()
        self._entity_stores: dict[str, EntityStore[Any]] = {}
        self._collection_stores: dict[str, CollectionStore[Any, Any]] = {}
        self._cache = TTLCache(
            default_ttl=self._config.cache_default_ttl,
            max_entries=self._config.cache_max_entries,
            clock=clock,
        )

    @staticmethod
    def _initial_state(initial_state: AppState | Mapping[str, Any] | None) -> AppState:
        if initial_state is None:
            return AppState()
        if isinstance(initial_state, AppState):
            return initial_state
        try:
            return AppState.model_validate(dict(initial_state))
        except ValidationError as exc:
            raise LuminoConfigError(f"invalid initial_state: {exc}") from exc

    @property
    def config(self) -> StateConfig:
        return self._config

    # ------------------------------------------------------------------
    # Slice plumbing
    # ------------------------------------------------------------------

    def _update(self, **changes: Any) -> None:
        with self._lock:
            previous = self._state
            self._state = previous.model_copy(update=changes)
            self._notifier.notify(self._state, previous)

    def _emit(self, event: StateEvent, payload: dict[str, Any]) -> None:
        if self._on_event_cb is None:
            return
        try:
            self._on_event_cb(str(event), payload)
        except Exception:
            _logger.debug("on_event callback failed for %s", event, exc_info=True)

    def _set_loading_flag(self, kind: str, key: str, loading: bool) -> None:
        with self._lock:
            current = self._state.loading
            flags = {**getattr(current, kind), key: loading}
            self._update(loading=current.model_copy(update={kind: flags}))

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def is_loading(self) -> bool:
        return self._state.loading.global_loading

    def set_global_loading(self, loading: bool) -> None:
        try:
            with self._lock:
                self._update(loading=self._state.loading.model_copy(update={"global_loading": loading}))
        finally:
            self._emit(StateEvent.LOADER_SHOW if loading else StateEvent.LOADER_HIDE, {})

    def set_api_loading(self, api_id: str, loading: bool) -> None:
        self._set_loading_flag("apis", api_id, loading)

    def is_api_loading(self, api_id: str) -> bool:
        return self._state.loading.apis.get(api_id, False)

    def set_form_loading(self, form_id: str, loading: bool) -> None:
        self._set_loading_flag("forms", form_id, loading)

    def is_form_loading(self, form_id: str) -> bool:
        return self._state.loading.forms.get(form_id, False)

    def set_page_loading(self, page_id: str, loading: bool) -> None:
        self._set_loading_flag("pages", page_id, loading)

    def is_page_loading(self, page_id: str) -> bool:
        return self._state.loading.pages.get(page_id, False)

    def on_loading_change(self, listener: Callable[[LoadingState, LoadingState], None]) -> Subscription:
        """Subscribe to the loading slice only."""
        return self._notifier.subscribe_selector(lambda state: state.loading, listener)

    # ------------------------------------------------------------------
    # Locale, theme, user, meta
    # ------------------------------------------------------------------

    def get_locale(self) -> str:
        return self._state.locale

    def set_locale(self, locale: str) -> None:
        with self._lock:
            previous_locale = self._state.locale
            try:
                self._update(locale=locale)
            finally:
                self._emit(StateEvent.LOCALE_CHANGE, {"locale": locale, "previous_locale": previous_locale})

    def get_theme(self) -> str:
        return self._state.theme

    def set_theme(self, theme: str) -> None:
        self._update(theme=theme)

    def get_user(self) -> Any | None:
        return self._state.user

    def set_user(self, user: Any) -> None:
        _logger.debug("Setting current user: %s", redact_for_log(user))
        self._update(user=user)

    def clear_user(self) -> None:
        self._update(user=None)

    def get_meta(self, key: str, default: Any = None) -> Any:
        return self._state.meta.get(key, default)

    def set_meta(self, key: str, value: Any) -> None:
        _logger.debug("Setting meta %s=%s", key, redact_for_log({key: value})[key])
        with self._lock:
            self._update(meta={**self._state.meta, key: value})

    def clear_meta(self) -> None:
        self._update(meta={})

    # ------------------------------------------------------------------
    # Entity stores
    # ------------------------------------------------------------------

    def create_entity_store(self, name: str, model: type[T] | None = None) -> EntityStore[T]:
        """Return the store registered as *name*, creating it if needed.

        *model* is an optional type tag. Asking for an existing name with a
        different tag raises :class:`LuminoStoreMismatchError`.
        """
        with self._lock:
            store = self._entity_stores.get(name)
            if store is None:
                store = EntityStore(name, clock=self._clock, model=model)
                self._entity_stores[name] = store
                _logger.debug("Created entity store %r", name)
                return store
            if model is not None:
                if store.model is None:
                    store.model = model
                elif store.model is not model:
                    raise LuminoStoreMismatchError(
                        f"entity store {name!r} holds {store.model.__name__}, not {model.__name__}",
                        store=name,
                    )
            return store

    def get_entity_store(self, name: str) -> EntityStore[Any] | None:
        return self._entity_stores.get(name)

    def remove_entity_store(self, name: str) -> EntityStore[Any] | None:
        """Deregister *name*; its listeners are detached without a final notification."""
        with self._lock:
            store = self._entity_stores.pop(name, None)
        if store is not None:
            store.notifier.clear()
            _logger.debug("Removed entity store %r", name)
        return store

    def entity_store_names(self) -> list[str]:
        return list(self._entity_stores)

    # ------------------------------------------------------------------
    # Collection stores
    # ------------------------------------------------------------------

    def create_collection_store(
        self,
        name: str,
        id_field: str | None = None,
        model: type[T] | None = None,
    ) -> CollectionStore[T, Any]:
        """Return the collection registered as *name*, creating it if needed.

        A new store keys records by *id_field* (``"id"`` when omitted).
        An existing store is returned as-is unless *id_field* or *model*
        contradict it.
        """
        with self._lock:
            store = self._collection_stores.get(name)
            if store is None:
                store = CollectionStore(name, id_field or "id", clock=self._clock, model=model)
                self._collection_stores[name] = store
                _logger.debug("Created collection store %r keyed by %r", name, store.id_field)
                return store
            if id_field is not None and id_field != store.id_field:
                raise LuminoStoreMismatchError(
                    f"collection store {name!r} is keyed by {store.id_field!r}, not {id_field!r}",
                    store=name,
                )
            if model is not None:
                if store.model is None:
                    store.model = model
                elif store.model is not model:
                    raise LuminoStoreMismatchError(
                        f"collection store {name!r} holds {store.model.__name__}, not {model.__name__}",
                        store=name,
                    )
            return store

    def get_collection_store(self, name: str) -> CollectionStore[Any, Any] | None:
        return self._collection_stores.get(name)

    def remove_collection_store(self, name: str) -> CollectionStore[Any, Any] | None:
        """Deregister *name*; its listeners are detached without a final notification."""
        with self._lock:
            store = self._collection_stores.pop(name, None)
        if store is not None:
            store.notifier.clear()
            _logger.debug("Removed collection store %r", name)
        return store

    def collection_store_names(self) -> list[str]:
        return list(self._collection_stores)

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    @property
    def cache(self) -> TTLCache:
        return self._cache

    def get_cached(self, key: str) -> Any | None:
        return self._cache.get(key)

    def set_cached(self, key: str, value: Any, ttl: float | timedelta | None = None) -> None:
        self._cache.set(key, value, ttl)

    def clear_cached(self, key: str) -> None:
        self._cache.delete(key)

    def clear_all_cache(self) -> None:
        self._cache.clear()

    # ------------------------------------------------------------------
    # Subscriptions and snapshots
    # ------------------------------------------------------------------

    def subscribe(self, listener: Callable[[AppState, AppState], None]) -> Subscription:
        return self._notifier.subscribe(listener)

    def subscribe_to_selector(
        self,
        selector: Callable[[AppState], R],
        listener: Callable[[R, R], None],
    ) -> Subscription:
        return self._notifier.subscribe_selector(selector, listener)

    def get_state(self) -> AppState:
        return self._state

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Defer notifications until the block exits.

        Covers the manager and every store registered when the block opens.
        Each of them notifies at most once on exit, with the state from
        before its first change as ``previous``.
        """
        with self._lock:
            notifiers: list[Notifier[Any]] = [self._notifier]
            notifiers.extend(store.notifier for store in self._entity_stores.values())
            notifiers.extend(store.notifier for store in self._collection_stores.values())
        with ExitStack() as stack:
            for notifier in notifiers:
                stack.enter_context(notifier.defer())
            yield

    def reset(self) -> None:
        """Restore every slice to its default and drop all stores and cached values."""
        with self._lock:
            stores: list[EntityStore[Any] | CollectionStore[Any, Any]] = [
                *self._entity_stores.values(),
                *self._collection_stores.values(),
            ]
            self._entity_stores.clear()
            self._collection_stores.clear()
            self._cache.clear()
            for store in stores:
                store.notifier.clear()
            _logger.debug("State reset; dropped %d stores", len(stores))
            previous = self._state
            self._state = AppState()
            self._notifier.notify(self._state, previous)
