"""Change sets, the subscription registry and change fan-out."""

from __future__ import annotations

import threading

import pytest

from lib_reloadable_config.application.fanout import dispatch_changes
from lib_reloadable_config.domain.changes import ChangeSet
from lib_reloadable_config.domain.subscriptions import ALL, SubscriptionRegistry


def test_change_set_views() -> None:
    changes = ChangeSet.of(added=["a"], changed=["b"], removed=["c"])
    assert changes.touched == {"a", "b", "c"}
    assert changes
    assert not ChangeSet()
    assert changes.as_dict() == {"added": ["a"], "changed": ["b"], "removed": ["c"]}


def test_change_set_restriction() -> None:
    changes = ChangeSet.of(added=["db.host", "web.port"], removed=["db.user"])
    narrowed = changes.restricted_to(lambda name: name.startswith("db."))
    assert narrowed == ChangeSet.of(added=["db.host"], removed=["db.user"])


def test_subscribe_rejects_non_callables() -> None:
    with pytest.raises(TypeError):
        SubscriptionRegistry().subscribe("not callable")  # type: ignore[arg-type]


def test_dispatch_delivers_once_to_global_and_matching_topics() -> None:
    registry = SubscriptionRegistry()
    calls: list[str] = []
    registry.subscribe(lambda changes: calls.append("all"))
    registry.subscribe(lambda changes: calls.append("a"), topic="a")
    registry.subscribe(lambda changes: calls.append("z"), topic="z")
    delivered = dispatch_changes(registry, ChangeSet.of(added=["a"], changed=["b"]))
    assert delivered == 2
    assert calls == ["all", "a"]


def test_dispatch_isolates_failures() -> None:
    registry = SubscriptionRegistry()
    calls: list[ChangeSet] = []

    def broken(changes: ChangeSet) -> None:
        raise ValueError("listener bug")

    registry.subscribe(broken)
    registry.subscribe(calls.append)
    dispatch_changes(registry, ChangeSet.of(added=["a"]))
    assert len(calls) == 1


def test_subscribing_during_fan_out_does_not_affect_the_running_delivery() -> None:
    registry = SubscriptionRegistry()
    late: list[ChangeSet] = []

    def adder(changes: ChangeSet) -> None:
        registry.subscribe(late.append)

    registry.subscribe(adder)
    dispatch_changes(registry, ChangeSet.of(added=["a"]))
    assert late == []
    assert len(registry) == 2


def test_cancel_is_idempotent() -> None:
    registry = SubscriptionRegistry()
    handle = registry.subscribe(print, topic=ALL)
    assert handle.active
    handle.cancel()
    handle.cancel()
    assert not handle.active
    assert len(registry) == 0


def test_concurrent_subscribe_and_cancel() -> None:
    registry = SubscriptionRegistry()

    def churn() -> None:
        for _ in range(200):
            registry.subscribe(print).cancel()

    threads = [threading.Thread(target=churn) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(registry) == 0
