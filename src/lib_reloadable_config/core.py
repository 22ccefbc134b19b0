"""Composition root for ``lib_reloadable_config``.

Purpose
-------
Provide the single entry point that wires locators, resolvers, settings and
the optional remote config server into a running :class:`ConfigProvider`.
Applications own the returned provider; there is no module-level singleton.

Contents
--------
* :func:`create_config_provider` – high-level factory.
* :func:`_config_server_uri` / :func:`_attach_config_server` – internal helpers
  for the remote-server bootstrap step.

System Role
-----------
This module connects adapters (package resources, filesystem, config server,
resolvers) with the application-layer provider while emitting structured
observability signals. It is the canonical location for adjusting locator
precedence or wiring new adapters. Registration order is precedence order:
package defaults, then the filesystem, then caller-supplied locators, then the
config server, each overriding the ones before it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

import httpx

from .adapters.config_server.client import ConfigServerClient
from .adapters.config_server.locator import ConfigServerResourceLocator
from .adapters.config_server.resolver import ConfigServerDecryptResolver
from .adapters.env.default import ProviderSettings, default_env_prefix, load_settings
from .adapters.locators.filesystem import FileSystemResourceLocator
from .adapters.locators.package import PackageResourceLocator
from .adapters.resolvers.default import DefaultPropertyResolver
from .application.ports import PropertyResolver, ResourceLocator
from .application.provider import ConfigProvider, ProviderState
from .domain.errors import (
    ConfigError,
    InitialLoadError,
    InvalidFormat,
    LocatorFailure,
    PropertyNotFound,
    ResolverFailure,
    ResourceNotFound,
)
from .observability import log_info

SERVICE_NAME_PROPERTY = "service.name"
SERVER_ENABLED_PROPERTY = "config.server.enabled"
SERVER_URI_PROPERTY = "config.server.uri"


def create_config_provider(
    settings: ProviderSettings | None = None,
    *,
    package: str | None = None,
    locators: Sequence[ResourceLocator] = (),
    resolvers: Sequence[PropertyResolver] = (),
    transport: httpx.BaseTransport | None = None,
) -> ConfigProvider:
    """Return a loaded provider wired from *settings*.

    Why
    ----
    Services want one call that produces a ready namespace with the usual
    precedence and secret handling, without knowing adapter classes.

    What
    ----
    Registers a :class:`PackageResourceLocator` (when *package* is given), a
    :class:`FileSystemResourceLocator` rooted at ``settings.config_path`` and
    any extra *locators*; resolvers start with
    :class:`DefaultPropertyResolver`. After the first load the remote config
    server is attached when ``config.server.enabled`` is not ``false`` and a
    server URI is known (settings first, then the ``config.server.uri``
    property); its locator and decrypt resolver are added and the namespace is
    reloaded.

    Parameters
    ----------
    settings:
        Bootstrap settings; defaults to :func:`load_settings` on ``os.environ``.
    package:
        Importable package shipping default documents under
        ``settings.config_path``.
    locators / resolvers:
        Extra collaborators registered after the built-in ones.
    transport:
        Optional ``httpx`` transport for the config-server client.

    Raises
    ------
    InitialLoadError
        When no document could be found in any location.
    PropertyNotFound
        When the config server is enabled but ``service.name`` is missing.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> root = Path(tmp.name)
    >>> _ = (root / "default").mkdir()
    >>> _ = (root / "default" / "application.yml").write_text("greeting: hi", encoding="utf-8")
    >>> settings = ProviderSettings(profiles=("default",), config_path=tmp.name, reload_interval=0)
    >>> provider = create_config_provider(settings)
    >>> provider.require("greeting").value
    'hi'
    >>> provider.stop_reloading()
    >>> tmp.cleanup()
    """

    settings = settings or load_settings()
    chain: list[ResourceLocator] = []
    if package is not None:
        chain.append(PackageResourceLocator(package, settings.config_path))
    chain.append(FileSystemResourceLocator(settings.config_path))
    chain.extend(locators)

    provider = ConfigProvider(
        settings.profiles,
        settings.file_name,
        locators=chain,
        resolvers=[DefaultPropertyResolver(), *resolvers],
        reload_interval=settings.reload_interval,
    )
    try:
        _attach_config_server(provider, settings, transport)
    except BaseException:
        provider.stop_reloading()
        raise
    return provider


def _config_server_uri(provider: ConfigProvider, settings: ProviderSettings) -> str | None:
    """Return the server URI when the remote server is enabled, else ``None``."""

    enabled = provider.property_by_name(SERVER_ENABLED_PROPERTY)
    if enabled is not None and not enabled.is_true():
        return None
    if settings.server_uri:
        return settings.server_uri
    configured = provider.property_by_name(SERVER_URI_PROPERTY)
    return configured.value if configured is not None and configured.value else None


def _attach_config_server(
    provider: ConfigProvider, settings: ProviderSettings, transport: httpx.BaseTransport | None
) -> None:
    uri = _config_server_uri(provider, settings)
    if uri is None:
        return
    service_name = provider.require(SERVICE_NAME_PROPERTY).value
    client = ConfigServerClient(
        uri,
        username=settings.server_username,
        password=settings.server_password,
        timeout=settings.server_timeout,
        transport=transport,
    )
    provider.add_locator(
        ConfigServerResourceLocator(
            client,
            service_name,
            document_name=settings.file_name,
            secrets_dir=Path(settings.config_path),
        )
    )
    provider.add_resolver(ConfigServerDecryptResolver(client))
    log_info("config_server_enabled", locator=uri, service=service_name)
    provider.reload()


__all__ = [
    "ConfigError",
    "ConfigProvider",
    "InitialLoadError",
    "InvalidFormat",
    "LocatorFailure",
    "PropertyNotFound",
    "ProviderSettings",
    "ProviderState",
    "ResolverFailure",
    "ResourceNotFound",
    "create_config_provider",
    "default_env_prefix",
    "load_settings",
]
