"""Notification fan-out with per-listener isolation.

Every delivery iterates a snapshot taken before the first call, so listeners
may subscribe or cancel while a fan-out is in progress. A listener that raises
is logged and skipped; delivery continues with the next one.
"""

from __future__ import annotations

from typing import Iterable

from ..domain.changes import ChangeSet
from ..domain.property import Property
from ..domain.subscriptions import SubscriptionRegistry
from ..observability import log_error


def dispatch_changes(registry: SubscriptionRegistry, changes: ChangeSet) -> int:
    """Deliver *changes* once to each matching subscription; return the count."""

    delivered = 0
    for subscription in registry.matching(changes.touched):
        listener = subscription.listener
        if listener is None:
            continue
        try:
            listener(changes)
        except Exception as exc:  # noqa: BLE001 - one listener must not starve the others
            log_error(
                "listener_failed",
                topic=subscription.topic,
                listener=_describe(listener),
                error=f"{type(exc).__name__}: {exc}",
            )
        delivered += 1
    return delivered


def notify_observers(properties: Iterable[Property]) -> None:
    """Call every observer of each property in *properties* with that property."""

    for prop in properties:
        for subscription in prop.observers():
            observer = subscription.listener
            if observer is None:
                continue
            try:
                observer(prop)
            except Exception as exc:  # noqa: BLE001
                log_error(
                    "observer_failed",
                    property=prop.name,
                    listener=_describe(observer),
                    error=f"{type(exc).__name__}: {exc}",
                )


def _describe(listener: object) -> str:
    return getattr(listener, "__qualname__", None) or type(listener).__name__
