"""Domain-level exception hierarchy.

Purpose
-------
Expose the error taxonomy shared by locators, resolvers, the provider, and
consuming applications. The hierarchy lives in the domain layer so adapters
and the application layer can raise it without depending on each other.

Contents
--------
* :class:`ConfigError` – umbrella base class for all configuration issues.
* :class:`LocatorFailure` – a locator failed internally (I/O, bad response).
* :class:`InvalidFormat` – a located document could not be decoded.
* :class:`ResourceNotFound` – no locator/profile combination produced a resource.
* :class:`PropertyNotFound` – a required property is absent.
* :class:`ResolverFailure` – a resolver could not produce a safe value.
* :class:`InitialLoadError` – the first reconciliation parsed no document.

System Role
-----------
Only :class:`ResourceNotFound`, :class:`PropertyNotFound` and
:class:`InitialLoadError` reach callers of the public API. The other types are
raised by adapters and absorbed (logged) by the reconciliation loop. Messages
never carry resolved property values.
"""

from __future__ import annotations

from typing import Sequence


class ConfigError(Exception):
    """Base type for all exceptions emitted by ``lib_reloadable_config``.

    Why
    ----
    Provide a single catch-all type for consumers that do not need fine-grained
    handling.
    """


class LocatorFailure(ConfigError):
    """Raised when a resource locator fails for reasons other than "not found".

    Why
    ----
    The provider treats such a failure as "not found for this locator" and
    continues with the next locator; the distinct type keeps that path
    observable in logs.
    """


class InvalidFormat(LocatorFailure):
    """Raised when a located document cannot be parsed into a mapping.

    Typical Sources
    ---------------
    Structured document parsers (:mod:`yaml`, :mod:`json`, :mod:`tomllib`).
    """


class ResourceNotFound(ConfigError):
    """No locator/profile combination produced the requested resource.

    Attributes
    ----------
    name:
        Logical resource name that was requested.
    search_locations:
        Every location attempted, in search order, for diagnostics.

    Examples
    --------
    >>> err = ResourceNotFound("logo.png", ["file://cfg/default/logo.png"])
    >>> err.search_locations
    ['file://cfg/default/logo.png']
    """

    def __init__(self, name: str, search_locations: Sequence[str]) -> None:
        self.name = name
        self.search_locations = list(search_locations)
        listing = "\n".join(f"  {location}" for location in self.search_locations)
        super().__init__(f"Resource not found resourceName={name} in:\n{listing}")


class PropertyNotFound(ConfigError):
    """Raised by lookups without a default when the property does not exist."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Property not found propertyName={name}")


class ResolverFailure(ConfigError):
    """Raised by a resolver that cannot produce a safe value for *name*.

    The message must describe the failure without including the raw or
    resolved value.
    """

    def __init__(self, name: str, reason: str) -> None:
        self.name = name
        self.reason = reason
        super().__init__(f"Unable to resolve property {name}: {reason}")


class InitialLoadError(ConfigError):
    """Raised when the first reconciliation could not parse a single document."""

    def __init__(self, file_name: str, search_locations: Sequence[str]) -> None:
        self.file_name = file_name
        self.search_locations = list(search_locations)
        listing = "\n".join(f"  {location}" for location in self.search_locations)
        super().__init__(f"No property files were loaded for propertyFileName={file_name} in:\n{listing}")
