"""Test harness helpers for applications embedding the provider.

Purpose
    Give test suites deterministic, in-process stand-ins for the external
    collaborators of a :class:`ConfigProvider` plus an explicit init/teardown
    scope, so tests never depend on process-wide state or background timers.

Contents
    - ``InMemoryResourceLocator``: mutable ``{path: payload}`` locator that can
      also be told to fail, for reload and failure-isolation scenarios.
    - ``InMemoryKeyValueStore``: dictionary-backed :class:`KeyValueStore`.
    - ``config_provider_scope``: context manager building a provider and
      stopping it afterwards.

System Integration
    Used by the project's own test suite and doctests; safe to import from
    applications' tests. Nothing here starts threads unless asked to.
"""

from __future__ import annotations

import io
import threading
from contextlib import contextmanager
from typing import Any, BinaryIO, Iterator, Mapping, Sequence

from .adapters.locators.base import BaseResourceLocator
from .application.ports import PropertyResolver, ResourceLocator
from .application.provider import DEFAULT_FILE_NAME, ConfigProvider
from .domain.errors import LocatorFailure


class InMemoryResourceLocator(BaseResourceLocator):
    """Serve resources from a mutable mapping of logical path to payload.

    Examples
    --------
    >>> locator = InMemoryResourceLocator({"default/application.yml": "a: 1"}, name="mem")
    >>> locator.find_as_string("default/application.yml")
    'a: 1'
    >>> locator.remove("default/application.yml")
    >>> locator.find("default/application.yml") is None
    True
    """

    def __init__(self, resources: Mapping[str, str | bytes] | None = None, *, name: str = "memory") -> None:
        self._lock = threading.Lock()
        self._resources: dict[str, bytes] = {}
        self._failure: str | None = None
        self.lookups: list[str] = []
        self.base_path = f"memory://{name}/"
        for path, payload in (resources or {}).items():
            self.put(path, payload)

    def put(self, resource_path: str, payload: str | bytes) -> None:
        data = payload.encode("utf-8") if isinstance(payload, str) else payload
        with self._lock:
            self._resources[resource_path.lstrip("/")] = data

    def remove(self, resource_path: str) -> None:
        with self._lock:
            self._resources.pop(resource_path.lstrip("/"), None)

    def fail_with(self, message: str | None) -> None:
        """Make every lookup raise :class:`LocatorFailure`; ``None`` restores normal behaviour."""

        with self._lock:
            self._failure = message

    def find(self, resource_path: str) -> BinaryIO | None:
        path = resource_path.lstrip("/")
        with self._lock:
            self.lookups.append(path)
            if self._failure is not None:
                raise LocatorFailure(self._failure)
            payload = self._resources.get(path)
        if payload is None:
            return None
        return io.BytesIO(payload)


class InMemoryKeyValueStore:
    """Dictionary-backed key-value store keyed by ``(environment, service)``."""

    def __init__(self, items: Mapping[tuple[str, str], Mapping[str, Any]] | None = None) -> None:
        self._lock = threading.Lock()
        self.items: dict[tuple[str, str], dict[str, Any]] = {key: dict(value) for key, value in (items or {}).items()}
        self.puts: list[tuple[str, str]] = []

    def get(self, environment: str, service: str) -> Mapping[str, Any] | None:
        with self._lock:
            document = self.items.get((environment, service))
            return dict(document) if document is not None else None

    def put(self, environment: str, service: str, document: Mapping[str, Any]) -> None:
        with self._lock:
            self.items[(environment, service)] = dict(document)
            self.puts.append((environment, service))


@contextmanager
def config_provider_scope(
    profile_paths: Sequence[str],
    *,
    locators: Sequence[ResourceLocator],
    resolvers: Sequence[PropertyResolver] = (),
    file_name: str = DEFAULT_FILE_NAME,
    reload_interval: float = 0.0,
) -> Iterator[ConfigProvider]:
    """Yield a freshly loaded provider and stop it on exit.

    Examples
    --------
    >>> locator = InMemoryResourceLocator({"default/application.yml": "a: 1"})
    >>> with config_provider_scope(["default"], locators=[locator]) as provider:
    ...     provider.require("a").value
    '1'
    >>> provider.state.value
    'stopped'
    """

    provider = ConfigProvider(
        profile_paths,
        file_name,
        locators=locators,
        resolvers=resolvers,
        reload_interval=reload_interval,
    )
    try:
        yield provider
    finally:
        provider.stop_reloading()
