from __future__ import annotations

import pytest

from pylumino.state.notifier import Notifier


def test_listeners_called_in_registration_order_with_current_and_previous() -> None:
    notifier: Notifier[int] = Notifier()
    calls: list[tuple[str, int, int]] = []

    notifier.subscribe(lambda cur, prev: calls.append(("a", cur, prev)))
    notifier.subscribe(lambda cur, prev: calls.append(("b", cur, prev)))
    notifier.notify(2, 1)

    assert calls == [("a", 2, 1), ("b", 2, 1)]


def test_unsubscribe_is_idempotent_and_only_removes_its_registration() -> None:
    notifier: Notifier[int] = Notifier()
    calls: list[str] = []

    def listener(cur: int, prev: int) -> None:
        calls.append("x")

    first = notifier.subscribe(listener)
    notifier.subscribe(listener)
    first()
    first()

    assert not first.active
    assert notifier.listener_count == 1
    notifier.notify(1, 0)
    assert calls == ["x"]


def test_listener_added_during_delivery_waits_for_next_pass() -> None:
    notifier: Notifier[int] = Notifier()
    late_calls: list[int] = []

    def adder(cur: int, prev: int) -> None:
        notifier.subscribe(lambda c, p: late_calls.append(c))

    notifier.subscribe(adder)
    notifier.notify(1, 0)
    assert late_calls == []

    notifier.notify(2, 1)
    assert late_calls == [2]


def test_listener_removed_during_delivery_is_skipped() -> None:
    notifier: Notifier[int] = Notifier()
    calls: list[str] = []
    handles = {}

    def remover(cur: int, prev: int) -> None:
        calls.append("remover")
        handles["victim"]()

    notifier.subscribe(remover)
    handles["victim"] = notifier.subscribe(lambda c, p: calls.append("victim"))
    notifier.notify(1, 0)

    assert calls == ["remover"]


def test_failing_listener_does_not_block_others_and_first_error_is_raised() -> None:
    notifier: Notifier[int] = Notifier()
    calls: list[str] = []

    def boom(cur: int, prev: int) -> None:
        raise ValueError("first")

    def boom_again(cur: int, prev: int) -> None:
        raise RuntimeError("second")

    notifier.subscribe(boom)
    notifier.subscribe(lambda c, p: calls.append("ok"))
    notifier.subscribe(boom_again)

    with pytest.raises(ValueError, match="first"):
        notifier.notify(1, 0)
    assert calls == ["ok"]


def test_selector_subscription_fires_only_on_change() -> None:
    notifier: Notifier[dict[str, int]] = Notifier()
    seen: list[tuple[int, int]] = []

    notifier.subscribe_selector(lambda state: state["a"], lambda new, old: seen.append((new, old)))
    notifier.notify({"a": 1, "b": 1}, {"a": 1, "b": 0})
    notifier.notify({"a": 2, "b": 1}, {"a": 1, "b": 1})

    assert seen == [(2, 1)]


def test_defer_coalesces_into_one_delivery() -> None:
    notifier: Notifier[int] = Notifier()
    calls: list[tuple[int, int]] = []
    notifier.subscribe(lambda cur, prev: calls.append((cur, prev)))

    with notifier.defer():
        notifier.notify(1, 0)
        with notifier.defer():
            notifier.notify(2, 1)
        assert calls == []
        notifier.notify(3, 2)

    assert calls == [(3, 0)]


def test_defer_without_changes_delivers_nothing() -> None:
    notifier: Notifier[int] = Notifier()
    calls: list[int] = []
    notifier.subscribe(lambda cur, prev: calls.append(cur))

    with notifier.defer():
        pass

    assert calls == []


def test_clear_detaches_every_listener() -> None:
    notifier: Notifier[int] = Notifier()
    handle = notifier.subscribe(lambda c, p: None)
    notifier.subscribe(lambda c, p: None)

    notifier.clear()

    assert notifier.listener_count == 0
    assert not handle.active
    handle()


def test_same_callable_subscribed_twice_unsubscribes_by_handle() -> None:
    notifier: Notifier[int] = Notifier()
    calls: list[int] = []

    def listener(cur: int, prev: int) -> None:
        calls.append(cur)

    first = notifier.subscribe(listener)
    second = notifier.subscribe(listener)

    second()
    assert first.active
    assert not second.active
    assert notifier.listener_count == 1
    notifier.notify(1, 0)
    assert calls == [1]

    first()
    assert notifier.listener_count == 0
