"""Thread-safe subscription registry.

Purpose
-------
Replace per-object observer lists with one explicit registry that maps a
topic (a property name, or :data:`ALL` for every change) to listener handles.
Fan-out code always works on a snapshot, so listeners may subscribe or cancel
from any thread, including from inside a callback, without disturbing the
delivery that is in progress.

Contents
--------
* :data:`ALL` – topic matching every property name.
* :class:`Subscription` – handle returned to subscribers; ``cancel()`` it.
* :class:`SubscriptionRegistry` – the registry itself.

System Role
-----------
Owned by :class:`~lib_reloadable_config.domain.property.Property` (per-property
observers) and by the provider (provider-level listeners). Delivery and error
isolation live in :mod:`lib_reloadable_config.application.fanout`; this module
stays free of logging.
"""

from __future__ import annotations

import inspect
import threading
import weakref
from typing import Any, Callable, Collection, Final

ALL: Final[str] = "*"


class Subscription:
    """Handle for one registered listener.

    Bound methods are referenced weakly: when the object that owns the method
    is garbage collected the subscription becomes inactive and is pruned on
    the next snapshot. Plain functions and other callables are held strongly.
    """

    __slots__ = ("topic", "_ref", "_registry", "__weakref__")

    def __init__(self, registry: SubscriptionRegistry, topic: str, listener: Callable[..., Any]) -> None:
        self.topic = topic
        self._registry = registry
        if inspect.ismethod(listener):
            self._ref: Callable[[], Callable[..., Any] | None] = weakref.WeakMethod(listener)
        else:
            self._ref = lambda: listener

    @property
    def listener(self) -> Callable[..., Any] | None:
        """Return the listener, or ``None`` when its owner has been collected."""

        return self._ref()

    @property
    def active(self) -> bool:
        return self._ref() is not None and self._registry.contains(self)

    def cancel(self) -> None:
        """Remove this subscription from its registry (idempotent)."""

        self._registry.unsubscribe(self)

    def __repr__(self) -> str:
        return f"Subscription(topic={self.topic!r})"


class SubscriptionRegistry:
    """Ordered, lock-guarded collection of :class:`Subscription` handles.

    Examples
    --------
    >>> registry = SubscriptionRegistry()
    >>> seen = []
    >>> handle = registry.subscribe(seen.append, topic="db.host")
    >>> [s.topic for s in registry.matching({"db.host"})]
    ['db.host']
    >>> registry.matching({"web.port"})
    []
    >>> handle.cancel()
    >>> len(registry)
    0
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: list[Subscription] = []

    def subscribe(self, listener: Callable[..., Any], topic: str = ALL) -> Subscription:
        """Register *listener* for *topic* and return its handle."""

        if not callable(listener):
            raise TypeError(f"listener must be callable, got {type(listener).__name__}")
        subscription = Subscription(self, topic, listener)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscriptions = [s for s in self._subscriptions if s is not subscription]

    def contains(self, subscription: Subscription) -> bool:
        with self._lock:
            return any(s is subscription for s in self._subscriptions)

    def snapshot(self) -> list[Subscription]:
        """Return the live subscriptions in registration order, pruning dead ones."""

        with self._lock:
            live = [s for s in self._subscriptions if s.listener is not None]
            self._subscriptions = live
            return list(live)

    def matching(self, names: Collection[str]) -> list[Subscription]:
        """Return live subscriptions for :data:`ALL` or for any of *names*."""

        return [s for s in self.snapshot() if s.topic == ALL or s.topic in names]

    def clear(self) -> None:
        with self._lock:
            self._subscriptions = []

    def __len__(self) -> int:
        return len(self.snapshot())
