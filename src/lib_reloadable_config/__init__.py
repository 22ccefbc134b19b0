"""Public package surface for the reloadable configuration engine.

Exporting the provider, the facades and the composition root here lets both
``import lib_reloadable_config`` and ``python -m lib_reloadable_config`` flows
reach the same objects.
"""

from __future__ import annotations

from .application.provider import ConfigProvider, ProviderState
from .core import create_config_provider
from .adapters.env.default import ProviderSettings, default_env_prefix, load_settings
from .domain.changes import ChangeSet
from .domain.errors import (
    ConfigError,
    InitialLoadError,
    InvalidFormat,
    LocatorFailure,
    PropertyNotFound,
    ResolverFailure,
    ResourceNotFound,
)
from .domain.property import Property
from .domain.subscriptions import Subscription
from .observability import bind_trace_id, get_logger
from .properties import ConfigFile, ConfigProperty, ConfigPropertyGroup, ConfigPropertyList

__all__ = [
    "ChangeSet",
    "ConfigError",
    "ConfigFile",
    "ConfigProperty",
    "ConfigPropertyGroup",
    "ConfigPropertyList",
    "ConfigProvider",
    "InitialLoadError",
    "InvalidFormat",
    "LocatorFailure",
    "Property",
    "PropertyNotFound",
    "ProviderSettings",
    "ProviderState",
    "ResolverFailure",
    "ResourceNotFound",
    "Subscription",
    "bind_trace_id",
    "create_config_provider",
    "default_env_prefix",
    "get_logger",
    "load_settings",
]
