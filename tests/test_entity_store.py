from __future__ import annotations

from datetime import UTC, datetime

from pylumino.state.entity import EntityStore
from pylumino.state.models import EntityState


def _dt() -> datetime:
    return datetime(2026, 1, 1, tzinfo=UTC)


def test_set_data_clears_loading_and_error_and_stamps_time() -> None:
    store: EntityStore[dict] = EntityStore("user", clock=_dt)
    store.set_loading(True)
    store.set_error("boom")
    store.set_loading(True)

    store.set_data({"name": "Ada"})

    assert store.data == {"name": "Ada"}
    assert store.loading is False
    assert store.error is None
    assert store.last_updated == _dt()


def test_set_error_after_loading_clears_loading() -> None:
    store: EntityStore[dict] = EntityStore()
    error = RuntimeError("fetch failed")

    store.set_loading(True)
    store.set_error(error)

    assert store.loading is False
    assert store.error is error


def test_set_loading_keeps_data_and_error() -> None:
    store: EntityStore[int] = EntityStore(clock=_dt)
    store.set_data(1)
    store.set_error("stale")

    store.set_loading(True)

    state = store.get_state()
    assert state.data == 1
    assert state.error == "stale"
    assert state.loading is True


def test_clear_resets_everything() -> None:
    store: EntityStore[int] = EntityStore(clock=_dt)
    store.set_data(5)

    store.clear()

    assert store.get_state() == EntityState()


def test_subscribers_receive_new_and_previous_snapshots() -> None:
    store: EntityStore[int] = EntityStore(clock=_dt)
    seen: list[tuple[EntityState[int], EntityState[int]]] = []
    store.subscribe(lambda cur, prev: seen.append((cur, prev)))

    store.set_data(1)
    store.set_data(2)

    assert [(cur.data, prev.data) for cur, prev in seen] == [(1, None), (2, 1)]
    # Previous snapshots are not mutated by later updates.
    assert seen[0][0].data == 1


def test_subscribe_to_data_ignores_metadata_changes() -> None:
    store: EntityStore[str] = EntityStore(clock=_dt)
    seen: list[tuple[str | None, str | None]] = []
    store.subscribe_to_data(lambda new, old: seen.append((new, old)))

    store.set_loading(True)
    store.set_data("a")
    store.set_loading(True)
    store.set_data("a")
    store.clear()

    assert seen == [("a", None), (None, "a")]


def test_unsubscribe_stops_delivery() -> None:
    store: EntityStore[int] = EntityStore(clock=_dt)
    seen: list[int | None] = []
    unsubscribe = store.subscribe(lambda cur, prev: seen.append(cur.data))

    store.set_data(1)
    unsubscribe()
    store.set_data(2)

    assert seen == [1]
