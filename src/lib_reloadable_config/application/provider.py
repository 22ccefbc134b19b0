"""Reloadable configuration provider.

Purpose
-------
Own the merged property namespace. The provider queries every registered
locator for every active profile, flattens and overlays the documents it
finds, runs the resolver chain, diffs the result against the current
namespace, commits the new state atomically, and fans the changes out to
observers and listeners. A daemon timer thread repeats the cycle.

Contents
--------
* :class:`ProviderState` – lifecycle states.
* :class:`ConfigProvider` – the provider itself.

System Role
-----------
Constructed by :func:`lib_reloadable_config.core.create_config_provider` (or
directly by tests and applications) and threaded through to the facades in
:mod:`lib_reloadable_config.properties`. Precedence rules:

* overlay: locators in registration order, profiles in declared order; later
  documents win;
* resource lookup: locators last-registered first, profiles in declared
  order; the first hit wins.

Concurrency: reconciliations are serialised by a re-entrant lock; locator I/O
and resolution run outside the namespace lock, and the namespace is swapped in
under it, so readers see either the previous or the new cycle, never a mix.
"""

from __future__ import annotations

import enum
import threading
from typing import BinaryIO, Callable, Iterable, Sequence, TypeVar, overload

from ..domain.changes import ChangeSet
from ..domain.errors import InitialLoadError, InvalidFormat, PropertyNotFound, ResourceNotFound
from ..domain.property import Property
from ..domain.subscriptions import ALL, Subscription, SubscriptionRegistry
from ..observability import log_debug, log_error, log_info, log_warning, make_event, mask_value, new_trace_id
from ..adapters.parsers.structured import parser_for
from .fanout import dispatch_changes, notify_observers
from .flatten import flatten
from .merge import merge_documents
from .ports import DocumentParser, PropertiesChangedListener, PropertyResolver, ResourceLocator

T = TypeVar("T")

DEFAULT_FILE_NAME = "application.yml"


class ProviderState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    STOPPED = "stopped"


class ConfigProvider:
    """Layered, reloadable property namespace.

    Parameters
    ----------
    profile_paths:
        Profile folders in overlay order (``["default", "dev"]``); later
        profiles override earlier ones.
    file_name:
        Per-profile document name; the parser is chosen from its suffix.
    locators:
        Resource locators in registration order.
    resolvers:
        Property resolvers, applied in order, each seeing the previous output.
    reload_interval:
        Seconds between background reconciliations; ``0`` disables the timer.
    parser:
        Overrides the suffix-based document parser.

    Raises
    ------
    InitialLoadError
        When the first reconciliation parses no document at all.
    """

    def __init__(
        self,
        profile_paths: Sequence[str],
        file_name: str = DEFAULT_FILE_NAME,
        *,
        locators: Iterable[ResourceLocator] = (),
        resolvers: Iterable[PropertyResolver] = (),
        reload_interval: float = 0.0,
        parser: DocumentParser | None = None,
    ) -> None:
        self._file_name = file_name
        self._parser = parser or parser_for(file_name)
        self._profile_paths: tuple[str, ...] = tuple(profile_paths)
        self._locators: list[ResourceLocator] = list(locators)
        self._resolvers: list[PropertyResolver] = list(resolvers)
        self._resolver_generation = 0
        self._resolved_generation = 0
        self._reload_interval = float(reload_interval)

        self._chain_lock = threading.Lock()
        self._reload_lock = threading.RLock()
        self._namespace_lock = threading.RLock()
        self._namespace: dict[str, Property] = {}
        self._listeners = SubscriptionRegistry()
        self._state = ProviderState.UNINITIALIZED
        self._stop_event = threading.Event()
        self._timer: threading.Thread | None = None

        log_info("active_profiles", profiles=list(self._profile_paths), file=file_name)
        if self.reload() == 0:
            raise InitialLoadError(file_name, self.search_locations(file_name))
        self._state = ProviderState.READY
        self._start_reload_timer()

    # ------------------------------------------------------------------ state

    @property
    def state(self) -> ProviderState:
        return self._state

    @property
    def file_name(self) -> str:
        return self._file_name

    @property
    def reload_interval(self) -> float:
        return self._reload_interval

    @property
    def profile_paths(self) -> tuple[str, ...]:
        with self._chain_lock:
            return self._profile_paths

    @property
    def locators(self) -> tuple[ResourceLocator, ...]:
        with self._chain_lock:
            return tuple(self._locators)

    @property
    def resolvers(self) -> tuple[PropertyResolver, ...]:
        with self._chain_lock:
            return tuple(self._resolvers)

    def set_profile_paths(self, profile_paths: Sequence[str], reload_immediately: bool = False) -> None:
        """Replace the profile list, optionally reconciling before returning."""

        with self._chain_lock:
            self._profile_paths = tuple(profile_paths)
        log_info("active_profiles", profiles=list(profile_paths), file=self._file_name)
        if reload_immediately:
            self.reload()

    def add_locator(self, locator: ResourceLocator, *, first: bool = False) -> None:
        """Register *locator*; ``first=True`` gives it the lowest precedence."""

        with self._chain_lock:
            if first:
                self._locators.insert(0, locator)
            else:
                self._locators.append(locator)
        log_debug("locator_registered", locator=locator.base_path, first=first)

    def add_resolver(self, resolver: PropertyResolver) -> None:
        """Append *resolver*; the next reload re-resolves every loaded property."""

        with self._chain_lock:
            self._resolvers.append(resolver)
            self._resolver_generation += 1
        log_debug("resolver_registered", resolver=repr(resolver))

    # ---------------------------------------------------------------- lookups

    @overload
    def property_by_name(self, name: str) -> Property | None: ...

    @overload
    def property_by_name(self, name: str, default: str) -> Property: ...

    def property_by_name(self, name: str, default: str | None = None) -> Property | None:
        """Return the property called *name*.

        When it is absent and *default* is given, a synthetic property holding
        the default is cached and returned; a later source value for the same
        name replaces it in place.
        """

        with self._namespace_lock:
            prop = self._namespace.get(name)
            if prop is None and default is not None:
                prop = Property(name, default, default, synthetic=True)
                self._namespace[name] = prop
                log_debug("property_defaulted", property=name)
            return prop

    def require(self, name: str) -> Property:
        """Return the property called *name* or raise :class:`PropertyNotFound`."""

        prop = self.property_by_name(name)
        if prop is None:
            raise PropertyNotFound(name)
        return prop

    def properties_by_prefix(self, prefix: str) -> dict[str, Property]:
        """Return every property whose name starts with ``prefix + "."``, sorted by name."""

        marker = f"{prefix}."
        with self._namespace_lock:
            return {name: prop for name, prop in sorted(self._namespace.items()) if name.startswith(marker)}

    def snapshot(self) -> dict[str, str]:
        """Return a coherent copy of every resolved value, sorted by name."""

        with self._namespace_lock:
            return {name: prop.value for name, prop in sorted(self._namespace.items())}

    def is_sensitive(self, name: str, value: str | None = None) -> bool:
        """Return ``True`` when any resolver flags *name* as sensitive."""

        if value is None:
            prop = self.property_by_name(name)
            value = prop.unresolved_value if prop is not None else ""
        return self._is_sensitive(name, value, self.resolvers)

    # -------------------------------------------------------------- listeners

    def add_properties_changed_listener(
        self, listener: PropertiesChangedListener, *, name: str | None = None
    ) -> Subscription:
        """Subscribe *listener* to every cycle's changes, or only those touching *name*."""

        return self._listeners.subscribe(listener, topic=name or ALL)

    def remove_properties_changed_listener(self, subscription: Subscription) -> None:
        self._listeners.unsubscribe(subscription)

    # -------------------------------------------------------------- resources

    def resource_as_stream(self, name: str) -> BinaryIO:
        """Return the first matching resource as an open binary stream.

        Raises
        ------
        ResourceNotFound
            Listing every attempted location when nothing matched.
        """

        return self._search(name, lambda locator, path: locator.find(path))

    def resource_as_string(self, name: str, encoding: str = "utf-8") -> str:
        """Return the first matching resource decoded as text."""

        return self._search(name, lambda locator, path: locator.find_as_string(path, encoding))

    def search_locations(self, name: str) -> list[str]:
        """Return every location a lookup for *name* visits, in search order."""

        relative = name.lstrip("/")
        with self._chain_lock:
            locators = list(reversed(self._locators))
            profiles = self._profile_paths
        return [f"{locator.base_path}{profile}/{relative}" for locator in locators for profile in profiles]

    def _search(self, name: str, fetch: Callable[[ResourceLocator, str], T | None]) -> T:
        relative = name.lstrip("/")
        locators, profiles, _ = self._chain_snapshot()
        for locator in reversed(locators):
            for profile in profiles:
                resource_path = f"{profile}/{relative}"
                try:
                    found = fetch(locator, resource_path)
                except Exception as exc:  # noqa: BLE001 - a broken locator means "not found here"
                    log_warning("locator_failed", locator=locator.base_path, path=resource_path, error=str(exc))
                    continue
                if found is not None:
                    log_debug("resource_found", locator=locator.base_path, path=resource_path)
                    return found
        raise ResourceNotFound(name, self.search_locations(name))

    # --------------------------------------------------------- reconciliation

    def reload(self) -> int:
        """Run one reconciliation cycle and return the number of parsed documents.

        Why
        ----
        Sources change underneath a running service; the cycle converges the
        namespace onto them and tells interested parties exactly what moved.

        What
        ----
        Collects and overlays the documents, diffs by raw value, resolves new
        and changed values, commits under the namespace lock, then notifies
        property observers and provider-level listeners. Locator, parser and
        resolver failures are logged and never abort the cycle.

        Returns
        -------
        int
            Count of documents parsed; ``0`` signals that no source answered.
        """

        with self._reload_lock:
            if self._state is ProviderState.STOPPED:
                log_warning("reload_skipped", reason="provider stopped")
                return 0
            new_trace_id()
            locators, profiles, resolvers = self._chain_snapshot()
            with self._chain_lock:
                generation = self._resolver_generation
            documents = self._collect_documents(locators, profiles)
            merged = merge_documents(documents)
            full = generation != self._resolved_generation
            changes, changed_properties, failures = self._reconcile(merged, resolvers, full=full)
            if not failures:
                self._resolved_generation = generation
            log_info(
                "reload_complete",
                documents=len(documents),
                added=len(changes.added),
                changed=len(changes.changed),
                removed=len(changes.removed),
            )
            notify_observers(changed_properties)
            if changes:
                dispatch_changes(self._listeners, changes)
            return len(documents)

    def _chain_snapshot(
        self,
    ) -> tuple[list[ResourceLocator], tuple[str, ...], list[PropertyResolver]]:
        with self._chain_lock:
            return list(self._locators), self._profile_paths, list(self._resolvers)

    def _collect_documents(
        self, locators: Sequence[ResourceLocator], profiles: Sequence[str]
    ) -> list[dict[str, str]]:
        documents: list[dict[str, str]] = []
        for locator in locators:
            for profile in profiles:
                resource_path = f"{profile}/{self._file_name}"
                source = f"{locator.base_path}{resource_path}"
                try:
                    stream = locator.find(resource_path)
                except Exception as exc:  # noqa: BLE001 - treated as "not found" for this locator
                    log_error("locator_failed", **make_event(locator.base_path, resource_path, {"error": str(exc)}))
                    continue
                if stream is None:
                    continue
                try:
                    with stream:
                        payload = stream.read()
                    document = self._parser.parse(payload, source=source)
                except (InvalidFormat, OSError) as exc:
                    log_warning("document_skipped", **make_event(locator.base_path, resource_path, {"error": str(exc)}))
                    continue
                flat = flatten(document)
                log_debug("document_loaded", **make_event(locator.base_path, resource_path, {"keys": len(flat)}))
                documents.append(flat)
        return documents

    def _reconcile(
        self, merged: dict[str, str], resolvers: Sequence[PropertyResolver], *, full: bool = False
    ) -> tuple[ChangeSet, list[Property], int]:
        """Diff *merged* against the namespace; *full* re-resolves unchanged raw values too."""

        with self._namespace_lock:
            current = dict(self._namespace)

        created: dict[str, Property] = {}
        updates: list[tuple[Property, str, str]] = []
        failures = 0
        for name in sorted(merged):
            raw = merged[name]
            prop = current.get(name)
            if prop is not None and prop.unresolved_value == raw and not prop.synthetic and not full:
                continue
            try:
                value = self._resolve(name, raw, resolvers)
            except Exception as exc:  # noqa: BLE001 - keep the previous value, retry next cycle
                log_error(
                    "property_resolution_failed",
                    property=name,
                    retained=prop is not None,
                    error=f"{type(exc).__name__}: {exc}",
                )
                failures += 1
                continue
            if prop is None:
                created[name] = Property(name, value, raw)
            else:
                updates.append((prop, value, raw))
        vanished = [name for name, prop in current.items() if name not in merged and not prop.synthetic]

        added: list[str] = []
        changed: list[Property] = []
        with self._namespace_lock:
            namespace = dict(self._namespace)
            for name, prop in created.items():
                existing = namespace.get(name)
                if existing is not None:
                    # synthesised by a default lookup while this cycle was resolving
                    updates.append((existing, prop.value, prop.unresolved_value))
                    continue
                namespace[name] = prop
                added.append(name)
            for prop, value, raw in updates:
                if prop._apply(value, raw):
                    changed.append(prop)
            removed = [name for name in vanished if namespace.pop(name, None) is not None]
            self._namespace = namespace

        for name in added:
            self._log_property("property_added", created[name], resolvers)
        for prop in changed:
            self._log_property("property_changed", prop, resolvers)
        for name in removed:
            log_info("property_removed", property=name)
        changes = ChangeSet.of(added=added, changed=(prop.name for prop in changed), removed=removed)
        return changes, changed, failures

    @staticmethod
    def _resolve(name: str, raw: str, resolvers: Sequence[PropertyResolver]) -> str:
        value = raw
        for resolver in resolvers:
            value = resolver.resolve(name, value)
        return value

    @staticmethod
    def _is_sensitive(name: str, raw: str, resolvers: Sequence[PropertyResolver]) -> bool:
        return any(resolver.is_sensitive(name, raw) for resolver in resolvers)

    def _log_property(self, message: str, prop: Property, resolvers: Sequence[PropertyResolver]) -> None:
        sensitive = self._is_sensitive(prop.name, prop.unresolved_value, resolvers)
        log_info(message, property=prop.name, value=mask_value(prop.value, sensitive))

    # -------------------------------------------------------------- lifecycle

    def _start_reload_timer(self) -> None:
        if self._reload_interval <= 0:
            return
        self._timer = threading.Thread(
            target=self._reload_loop,
            name=f"{type(self).__name__}-reload",
            daemon=True,
        )
        self._timer.start()
        log_debug("reload_timer_started", interval=self._reload_interval)

    def _reload_loop(self) -> None:
        while not self._stop_event.wait(self._reload_interval):
            try:
                self.reload()
            except Exception as exc:  # noqa: BLE001 - the loop must survive any single cycle
                log_error("reload_failed", error=f"{type(exc).__name__}: {exc}")

    def stop_reloading(self) -> None:
        """Cancel the background timer; further reloads become no-ops (idempotent)."""

        self._stop_event.set()
        if self._state is not ProviderState.STOPPED:
            self._state = ProviderState.STOPPED
            log_info("reload_stopped")
        self._timer = None

    close = stop_reloading

    def __enter__(self) -> ConfigProvider:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop_reloading()

    def __repr__(self) -> str:
        return (
            f"ConfigProvider(profiles={list(self.profile_paths)!r}, file_name={self._file_name!r}, "
            f"state={self._state.value!r})"
        )
