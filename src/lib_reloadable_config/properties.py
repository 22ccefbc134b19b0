"""Client facades over a :class:`~lib_reloadable_config.application.provider.ConfigProvider`.

Purpose
-------
Give application code small, typed handles on the live namespace: one named
value, every value under a prefix, an indexed list, or a bundled resource.
Handles stay current by subscribing to the provider's change notifications.

Contents
--------
* :class:`ConfigProperty` – one named value with typed accessors.
* :class:`ConfigPropertyGroup` – snapshot of everything under a prefix.
* :class:`ConfigPropertyList` – ``name[0]``, ``name[1]``, … as a list.
* :class:`ConfigFile` – a resource re-read through the provider on each call.

System Role
-----------
Facades subscribe with bound methods, which the subscription registry holds
weakly: a facade that is garbage collected drops out of fan-out on its own.
Calling ``close()`` releases the subscription eagerly. Change callbacks run on
the reconciling thread; a raising callback is logged by the fan-out and never
disturbs other listeners.
"""

from __future__ import annotations

import threading
from typing import Callable, Iterator

from .application.provider import ConfigProvider
from .domain.changes import ChangeSet
from .domain.errors import PropertyNotFound
from .domain.property import Property
from .observability import log_debug

PropertyCallback = Callable[["ConfigProperty"], object]
GroupCallback = Callable[["ConfigPropertyGroup", ChangeSet], object]
ListCallback = Callable[["ConfigPropertyList"], object]


class ConfigProperty:
    """Live handle on one property.

    Parameters
    ----------
    provider:
        Source of values and change notifications.
    name:
        Flat property name (``"server.port"``).
    default:
        Value used when no source provides *name*. Without a default an absent
        property raises :class:`PropertyNotFound` immediately.

    Examples
    --------
    >>> from lib_reloadable_config.testing import InMemoryResourceLocator
    >>> locator = InMemoryResourceLocator({"default/application.yml": "server:\\n  port: 8080\\n"})
    >>> provider = ConfigProvider(["default"], locators=[locator])
    >>> ConfigProperty(provider, "server.port").as_int()
    8080
    >>> ConfigProperty(provider, "server.host", "localhost").value
    'localhost'
    >>> provider.stop_reloading()
    """

    def __init__(self, provider: ConfigProvider, name: str, default: str | None = None) -> None:
        self._provider = provider
        self._name = name
        self._lock = threading.Lock()
        self._callback: PropertyCallback | None = None
        if default is None:
            self._property = provider.require(name)
        else:
            self._property = provider.property_by_name(name, default)
        self._subscription = provider.add_properties_changed_listener(self._on_changes, name=name)

    @property
    def name(self) -> str:
        return self._name

    @property
    def value(self) -> str:
        return self._property.value

    def as_int(self) -> int:
        return self._property.as_int()

    def as_float(self) -> float:
        return self._property.as_float()

    def is_true(self) -> bool:
        return self._property.is_true()

    def set_change_listener(self, callback: PropertyCallback, fire_initial: bool = True) -> None:
        """Install *callback* in the single listener slot, replacing any previous one.

        With ``fire_initial`` the callback runs once right away so callers can
        apply the current value through the same code path as later updates.
        """

        with self._lock:
            self._callback = callback
        if fire_initial:
            callback(self)

    def clear_change_listener(self) -> None:
        with self._lock:
            self._callback = None

    def close(self) -> None:
        """Stop following the provider (idempotent)."""

        self._subscription.cancel()
        self.clear_change_listener()

    def _on_changes(self, changes: ChangeSet) -> None:
        if self._name not in changes.added and self._name not in changes.changed:
            return
        current = self._provider.property_by_name(self._name)
        if current is not None:
            self._property = current
        with self._lock:
            callback = self._callback
        if callback is not None:
            callback(self)

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"ConfigProperty({self._name!r})"


class ConfigPropertyGroup:
    """Snapshot of every property under ``prefix + "."``.

    Names passed to :meth:`get`, :meth:`as_int` and ``in`` are relative to the
    prefix (``group.get("host")`` for ``db.host``). The snapshot is rebuilt
    once per reconciliation cycle that touches the prefix, and the change
    listener receives one batched call with the change set narrowed to the
    group.
    """

    def __init__(self, provider: ConfigProvider, prefix: str) -> None:
        self._provider = provider
        self._prefix = prefix
        self._marker = f"{prefix}."
        self._lock = threading.Lock()
        self._callback: GroupCallback | None = None
        self._properties = provider.properties_by_prefix(prefix)
        self._subscription = provider.add_properties_changed_listener(self._on_changes)

    @property
    def prefix(self) -> str:
        return self._prefix

    def get(self, name: str, default: str | None = None) -> str | None:
        prop = self._properties.get(self._marker + name)
        return prop.value if prop is not None else default

    def as_int(self, name: str) -> int:
        prop = self._properties.get(self._marker + name)
        if prop is None:
            raise PropertyNotFound(self._marker + name)
        return prop.as_int()

    def as_mapping(self, strip_prefix: bool = False) -> dict[str, str]:
        """Return ``{name: value}`` for the current snapshot.

        Examples
        --------
        >>> from lib_reloadable_config.testing import InMemoryResourceLocator
        >>> locator = InMemoryResourceLocator({"default/application.yml": "db:\\n  host: h\\n  port: 1\\n"})
        >>> provider = ConfigProvider(["default"], locators=[locator])
        >>> ConfigPropertyGroup(provider, "db").as_mapping(strip_prefix=True)
        {'host': 'h', 'port': '1'}
        >>> provider.stop_reloading()
        """

        cut = len(self._marker) if strip_prefix else 0
        return {name[cut:]: prop.value for name, prop in self._properties.items()}

    def properties(self) -> dict[str, Property]:
        return dict(self._properties)

    def set_change_listener(self, callback: GroupCallback, fire_initial: bool = True) -> None:
        with self._lock:
            self._callback = callback
        if fire_initial:
            callback(self, ChangeSet.of(added=self._properties))

    def clear_change_listener(self) -> None:
        with self._lock:
            self._callback = None

    def close(self) -> None:
        self._subscription.cancel()
        self.clear_change_listener()

    def _on_changes(self, changes: ChangeSet) -> None:
        relevant = changes.restricted_to(lambda name: name.startswith(self._marker))
        if not relevant:
            return
        self._properties = self._provider.properties_by_prefix(self._prefix)
        log_debug("group_refreshed", prefix=self._prefix, size=len(self._properties))
        with self._lock:
            callback = self._callback
        if callback is not None:
            callback(self, relevant)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._marker + name in self._properties

    def __len__(self) -> int:
        return len(self._properties)

    def __iter__(self) -> Iterator[str]:
        return iter(self._properties)

    def __repr__(self) -> str:
        return f"ConfigPropertyGroup({self._prefix!r}, size={len(self._properties)})"


class ConfigPropertyList:
    """Ordered values of ``name[0]``, ``name[1]``, … up to the first gap."""

    def __init__(self, provider: ConfigProvider, name: str) -> None:
        self._provider = provider
        self._name = name
        self._lock = threading.Lock()
        self._callback: ListCallback | None = None
        self._values = self._probe()
        self._subscription = provider.add_properties_changed_listener(self._on_changes)

    @property
    def name(self) -> str:
        return self._name

    @property
    def values(self) -> tuple[str, ...]:
        return self._values

    def to_list(self) -> list[str]:
        return list(self._values)

    def set_change_listener(self, callback: ListCallback, fire_initial: bool = True) -> None:
        with self._lock:
            self._callback = callback
        if fire_initial:
            callback(self)

    def clear_change_listener(self) -> None:
        with self._lock:
            self._callback = None

    def close(self) -> None:
        self._subscription.cancel()
        self.clear_change_listener()

    def _probe(self) -> tuple[str, ...]:
        values: list[str] = []
        while (prop := self._provider.property_by_name(f"{self._name}[{len(values)}]")) is not None:
            values.append(prop.value)
        return tuple(values)

    def _on_changes(self, changes: ChangeSet) -> None:
        marker = f"{self._name}["
        if not any(name.startswith(marker) for name in changes.touched):
            return
        self._values = self._probe()
        with self._lock:
            callback = self._callback
        if callback is not None:
            callback(self)

    def __len__(self) -> int:
        return len(self._values)

    def __getitem__(self, index: int) -> str:
        return self._values[index]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __repr__(self) -> str:
        return f"ConfigPropertyList({self._name!r}, {list(self._values)!r})"


class ConfigFile:
    """Named resource read through the provider's resource search on every call."""

    def __init__(self, provider: ConfigProvider, name: str) -> None:
        self._provider = provider
        self.name = name

    def read_bytes(self) -> bytes:
        with self._provider.resource_as_stream(self.name) as stream:
            return stream.read()

    def read_text(self, encoding: str = "utf-8") -> str:
        return self._provider.resource_as_string(self.name, encoding)

    def __repr__(self) -> str:
        return f"ConfigFile({self.name!r})"
