"""Unit tests for Observable and Scope behavior."""

import asyncio
import logging

import pytest

from sessionview import Observable, Scope, ScopeClosedError, combine
from tests.test_factories import settle


@pytest.mark.unit
def test_observable_holds_initial_value():
    """Observable exposes its initial value through value and get()"""
    obs = Observable("count", 3)

    assert obs.value == 3
    assert obs.get() == 3
    assert obs.key == "count"


@pytest.mark.unit
def test_observable_set_notifies_subscribers_in_order():
    """Subscribers are called synchronously, in subscription order"""
    obs = Observable("name", "a")
    calls = []

    obs.subscribe(lambda v: calls.append(("first", v)))
    obs.subscribe(lambda v: calls.append(("second", v)))
    obs.set("b")

    assert calls == [("first", "b"), ("second", "b")]


@pytest.mark.unit
def test_observable_emits_even_when_value_is_unchanged(tracker):
    """Setting an equal value is still an emission"""
    obs = Observable("flag", True)
    obs.subscribe(tracker.record)

    obs.set(True)
    obs.value = True

    assert tracker.values == [True, True]


@pytest.mark.unit
def test_observable_subscribe_call_immediately(tracker):
    """call_immediately delivers the current value on subscription"""
    obs = Observable("x", 10)

    obs.subscribe(tracker.record, call_immediately=True)

    assert tracker.values == [10]


@pytest.mark.unit
def test_observable_unsubscribe_is_idempotent(tracker):
    """Unsubscribe stops delivery and can be called twice"""
    obs = Observable("x", 0)
    unsubscribe = obs.subscribe(tracker.record)

    obs.set(1)
    unsubscribe()
    unsubscribe()
    obs.set(2)

    assert tracker.values == [1]
    assert obs.subscriber_count == 0


@pytest.mark.unit
def test_observable_allows_unsubscribe_during_emission():
    """A subscriber removing itself does not skip the others"""
    obs = Observable("x", 0)
    calls = []
    unsubscribers = []

    def once(value):
        calls.append(("once", value))
        unsubscribers[0]()

    unsubscribers.append(obs.subscribe(once))
    obs.subscribe(lambda v: calls.append(("always", v)))

    obs.set(1)
    obs.set(2)

    assert calls == [("once", 1), ("always", 1), ("always", 2)]


@pytest.mark.unit
def test_scope_creates_keyed_observables(scope):
    """Scope hands out observables with generated or explicit keys"""
    first = scope.observable(1)
    named = scope.observable("x", key="label")

    assert first.key == "obs$1"
    assert named.key == "label"
    assert scope.stats()["observable_count"] == 2


@pytest.mark.unit
def test_scope_collect_into_sets_every_item(tracker):
    """collect_into pushes each item of an async iterable into the target"""

    async def numbers():
        for i in range(3):
            yield i

    async def scenario():
        scope = Scope()
        target = scope.observable(None)
        target.subscribe(tracker.record)
        await scope.collect_into(target, numbers())
        scope.close()

    asyncio.run(scenario())

    assert tracker.values == [0, 1, 2]


@pytest.mark.unit
def test_scope_close_cancels_tasks_and_runs_cleanups():
    """Closing a scope cancels running tasks and runs cleanups in reverse"""
    order = []

    async def forever():
        await asyncio.Event().wait()

    async def scenario():
        scope = Scope()
        task = scope.launch(forever())
        scope.add_cleanup(lambda: order.append("first"))
        scope.add_cleanup(lambda: order.append("second"))
        await settle()

        scope.close()
        await settle()
        return scope, task

    scope, task = asyncio.run(scenario())

    assert task.cancelled()
    assert order == ["second", "first"]
    assert scope.closed
    assert scope.stats()["active_tasks"] == 0


@pytest.mark.unit
def test_scope_close_is_idempotent():
    """A second close does not rerun cleanups"""
    scope = Scope()
    calls = []
    scope.add_cleanup(lambda: calls.append(1))

    scope.close()
    scope.close()

    assert calls == [1]


@pytest.mark.unit
def test_scope_launch_after_close_raises():
    """No work can be launched on a closed scope"""

    async def noop():
        pass

    async def scenario():
        scope = Scope()
        scope.close()
        with pytest.raises(ScopeClosedError):
            scope.launch(noop())

    asyncio.run(scenario())


@pytest.mark.unit
def test_scope_cleanup_added_after_close_runs_immediately():
    """Late cleanups are not lost"""
    scope = Scope()
    scope.close()
    calls = []

    scope.add_cleanup(lambda: calls.append("late"))

    assert calls == ["late"]


@pytest.mark.unit
def test_scope_logs_task_failures(caplog):
    """A task failing at its boundary is logged"""

    async def boom():
        raise RuntimeError("exploded")

    async def scenario():
        scope = Scope()
        scope.launch(boom())
        await settle()
        scope.close()

    with caplog.at_level(logging.ERROR):
        asyncio.run(scenario())

    assert "exploded" in caplog.text


@pytest.mark.unit
def test_set_from_subscriber_is_delivered_after_current_emission():
    """A subscriber reacting with a new set does not reorder later subscribers"""
    source = Observable("a", 0)
    combined = combine(0, lambda prev, a: a, source)
    seen = []

    def react(value):
        if value == 1:
            source.set(2)

    combined.subscribe(react)
    combined.subscribe(seen.append)

    source.set(1)

    assert seen == [1, 2]
    assert seen[-1] == combined.value


@pytest.mark.unit
def test_failed_subscriber_does_not_leave_queued_notifications():
    """A raising subscriber drops the rest of its emission and later sets still work"""
    obs = Observable("x", 0)
    seen = []

    def explode(value):
        if value == 1:
            raise RuntimeError("render failed")

    obs.subscribe(explode)
    obs.subscribe(seen.append)

    with pytest.raises(RuntimeError):
        obs.set(1)
    obs.set(2)

    assert seen == [2]
