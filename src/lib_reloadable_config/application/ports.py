"""Application-layer ports describing adapter responsibilities.

Purpose
-------
Define the structural contracts that adapters must satisfy so the provider can
orchestrate locators, parsers and resolvers without depending on concrete
implementations.

Contents
--------
* :class:`ResourceLocator` – produces a byte stream for a logical path.
* :class:`PropertyResolver` – transforms raw values and flags secrets.
* :class:`DocumentParser` – decodes a located document into a mapping.
* :class:`KeyValueStore` – storage behind the key-value locator.
* :data:`PropertiesChangedListener` – callable receiving a ``ChangeSet``.

System Role
-----------
These protocols enforce Dependency Inversion. Each adapter implements one
protocol; the contract tests in ``tests/adapters`` check them with
``isinstance``.
"""

from __future__ import annotations

from typing import Any, BinaryIO, Callable, Mapping, Protocol, runtime_checkable

from ..domain.changes import ChangeSet

PropertiesChangedListener = Callable[[ChangeSet], Any]
"""Provider-level listener; invoked once per cycle with that cycle's changes."""


@runtime_checkable
class ResourceLocator(Protocol):
    """Locate resources by logical path (``<profile>/<name>``).

    Contract
    --------
    ``find`` returns ``None`` for "not found" and never raises for it. It may
    raise for internal failures (malformed remote response, I/O errors); the
    provider treats those as "not found for this locator" and moves on.
    ``base_path`` is a human readable description used only in diagnostics.
    """

    base_path: str

    def find(self, resource_path: str) -> BinaryIO | None:
        """Return an open binary stream for *resource_path* or ``None``."""

    def find_as_string(self, resource_path: str, encoding: str = "utf-8") -> str | None:
        """Return the resource decoded as text, or ``None``."""

    def find_as_json(self, resource_path: str) -> object | None:
        """Return the resource decoded as JSON, or ``None``."""


@runtime_checkable
class PropertyResolver(Protocol):
    """Transform raw property values before they are exposed.

    ``resolve`` must be idempotent and leave no global side effects. It raises
    :class:`~lib_reloadable_config.domain.errors.ResolverFailure` instead of
    returning a value it could not make safe. ``is_sensitive`` is advisory and
    only suppresses values in diagnostics.
    """

    def resolve(self, name: str, value: str) -> str:
        """Return the resolved value for *name*."""

    def is_sensitive(self, name: str, value: str) -> bool:
        """Return ``True`` when *value* must never be displayed or logged."""


@runtime_checkable
class DocumentParser(Protocol):
    """Decode raw document bytes into a mapping or raise ``InvalidFormat``."""

    def parse(self, payload: bytes, *, source: str) -> Mapping[str, object]:
        """Parse *payload*; *source* names the document in error messages."""


@runtime_checkable
class KeyValueStore(Protocol):
    """Document storage keyed by ``(environment, service)``."""

    def get(self, environment: str, service: str) -> Mapping[str, object] | None:
        """Return the stored document or ``None`` when absent."""

    def put(self, environment: str, service: str, document: Mapping[str, object]) -> None:
        """Store *document* for the given key."""
