"""Environment variable adapter.

Purpose
-------
Translate process environment variables into the :class:`ProviderSettings`
used by the composition root: active profiles, the document location, the
reload cadence and the optional remote config server.

Key behaviours
--------------
* Enforces a configurable prefix (``default_env_prefix``) so only relevant keys
  are captured.
* Profiles are comma separated and always preceded by ``default``.
* Performs light type coercion for numeric settings; a value that does not
  parse raises :class:`ValueError` naming the offending variable.
* Emits structured logging via :mod:`lib_reloadable_config.observability`;
  the server password is never logged.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

from ...observability import log_debug

DEFAULT_PROFILE = "default"


def default_env_prefix(slug: str) -> str:
    """Return the canonical environment prefix for *slug*.

    Why
    ----
    Namespacing prevents unrelated environment variables from leaking into the
    provider settings.

    Examples
    --------
    >>> default_env_prefix('lib-reloadable-config')
    'LIB_RELOADABLE_CONFIG'
    """

    return slug.replace("-", "_").upper()


@dataclass(frozen=True)
class ProviderSettings:
    """Bootstrap settings for :func:`lib_reloadable_config.core.create_config_provider`."""

    profiles: tuple[str, ...] = (DEFAULT_PROFILE, "dev")
    config_path: str = "config"
    file_name: str = "application.yml"
    reload_interval: float = 60.0
    server_uri: str | None = None
    server_username: str | None = None
    server_password: str | None = field(default=None, repr=False)
    server_timeout: float = 5.0


def load_settings(
    environ: Mapping[str, str] | None = None,
    *,
    prefix: str = default_env_prefix("lib-reloadable-config"),
) -> ProviderSettings:
    """Return :class:`ProviderSettings` read from *environ* (``os.environ`` by default).

    Examples
    --------
    >>> env = {
    ...     'DEMO_PROFILE': 'qa, eu',
    ...     'DEMO_RELOAD_INTERVAL': '0',
    ... }
    >>> settings = load_settings(env, prefix='DEMO')
    >>> settings.profiles
    ('default', 'qa', 'eu')
    >>> settings.reload_interval
    0.0
    """

    source = os.environ if environ is None else environ
    prefix = f"{prefix}_" if prefix and not prefix.endswith("_") else prefix

    def read(key: str) -> str | None:
        value = source.get(prefix + key)
        if value is None or not value.strip():
            return None
        return value.strip()

    settings = ProviderSettings(
        profiles=parse_profiles(read("PROFILE") or "dev"),
        config_path=read("PATH") or "config",
        file_name=read("FILE") or "application.yml",
        reload_interval=_number(prefix + "RELOAD_INTERVAL", read("RELOAD_INTERVAL"), 60.0),
        server_uri=read("SERVER_URI"),
        server_username=read("SERVER_USERNAME"),
        server_password=read("SERVER_PASSWORD"),
        server_timeout=_number(prefix + "SERVER_TIMEOUT", read("SERVER_TIMEOUT"), 5.0),
    )
    log_debug(
        "settings_loaded",
        profiles=list(settings.profiles),
        path=settings.config_path,
        file=settings.file_name,
        reload_interval=settings.reload_interval,
        server=settings.server_uri,
    )
    return settings


def parse_profiles(raw: str) -> tuple[str, ...]:
    """Split a comma separated profile list and put ``default`` first.

    Examples
    --------
    >>> parse_profiles('dev')
    ('default', 'dev')
    >>> parse_profiles('default,prod,')
    ('default', 'prod')
    """

    names = [part.strip() for part in raw.split(",") if part.strip()]
    return (DEFAULT_PROFILE, *[name for name in names if name != DEFAULT_PROFILE])


def _number(variable: str, raw: str | None, default: float) -> float:
    if raw is None:
        return default
    value = _coerce(raw)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{variable} must be a number, got {raw!r}")
    if value < 0:
        raise ValueError(f"{variable} must not be negative, got {raw!r}")
    return float(value)


def _coerce(value: str) -> object:
    """Coerce textual environment values to Python primitives where possible.

    Examples
    --------
    >>> _coerce('true'), _coerce('10'), _coerce('3.5'), _coerce('hello')
    (True, 10, 3.5, 'hello')
    """

    lowered = value.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    if lowered in {"null", "none"}:
        return None
    try:
        if value.isdigit() or (value.startswith("-") and value[1:].isdigit()):
            return int(value)
        return float(value)
    except ValueError:
        return value
