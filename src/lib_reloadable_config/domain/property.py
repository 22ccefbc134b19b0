"""Domain value holder for a single configuration entry.

Purpose
-------
Model one named entry of the merged namespace: its resolved value, the raw
value it was resolved from, and the observers interested in its changes.

Contents
--------
* :class:`Property` – the entry itself.

System Role
-----------
Created and mutated exclusively by
:class:`~lib_reloadable_config.application.provider.ConfigProvider` during
reconciliation. Clients receive :class:`Property` objects, read them, and may
subscribe to them, but have no public way to change their values. The
invariant ``value == resolve_chain(unresolved_value)`` is maintained by the
provider.
"""

from __future__ import annotations

import threading
from typing import Callable

from .subscriptions import Subscription, SubscriptionRegistry


class Property:
    """Named configuration entry holding resolved and unresolved values.

    Parameters
    ----------
    name:
        Flat dotted/bracketed key (``"db.hosts[0]"``).
    value:
        Value after the full resolver chain ran.
    unresolved_value:
        Raw value as produced by the flattened documents.
    synthetic:
        ``True`` for properties synthesised from a lookup default rather than
        read from a source.

    Examples
    --------
    >>> prop = Property("server.port", "8080", "8080")
    >>> prop.as_int()
    8080
    >>> Property("feature.on", "TRUE", "TRUE").is_true()
    True
    """

    __slots__ = ("_name", "_value", "_unresolved_value", "_synthetic", "_lock", "_observers")

    def __init__(self, name: str, value: str, unresolved_value: str, *, synthetic: bool = False) -> None:
        self._name = name
        self._value = value
        self._unresolved_value = unresolved_value
        self._synthetic = synthetic
        self._lock = threading.Lock()
        self._observers = SubscriptionRegistry()

    @property
    def name(self) -> str:
        return self._name

    @property
    def value(self) -> str:
        """The resolved (possibly decrypted) value."""

        with self._lock:
            return self._value

    @property
    def unresolved_value(self) -> str:
        """The raw value before any resolver ran."""

        with self._lock:
            return self._unresolved_value

    @property
    def synthetic(self) -> bool:
        with self._lock:
            return self._synthetic

    def as_int(self) -> int:
        """Parse the value as an ``int``; raises :class:`ValueError` otherwise."""

        return int(self.value)

    def as_float(self) -> float:
        return float(self.value)

    def is_true(self) -> bool:
        """Return ``True`` when the value is ``"true"`` (case-insensitive)."""

        return self.value.strip().lower() == "true"

    def subscribe(self, observer: Callable[[Property], object]) -> Subscription:
        """Register *observer* to be called with this property when its value changes."""

        return self._observers.subscribe(observer)

    def unsubscribe(self, subscription: Subscription) -> None:
        self._observers.unsubscribe(subscription)

    def observers(self) -> list[Subscription]:
        """Return a stable snapshot of the live observer subscriptions."""

        return self._observers.snapshot()

    def _apply(self, value: str, unresolved_value: str) -> bool:
        """Store new values and report whether the resolved value changed.

        Reserved for the reconciliation loop. A synthetic property becomes a
        regular one as soon as a source provides it.
        """

        with self._lock:
            changed = value != self._value
            self._value = value
            self._unresolved_value = unresolved_value
            self._synthetic = False
            return changed

    def __repr__(self) -> str:
        # Values stay out of the repr so a stray log line cannot leak a secret.
        return f"Property(name={self._name!r}, synthetic={self._synthetic})"
