"""Heuristic default resolver.

Performs no transformation; it only tells the provider which properties look
like secrets so their values stay out of logs and CLI output.
"""

from __future__ import annotations

from typing import Final

CIPHER_PREFIX: Final[str] = "{cipher}"
SENSITIVE_SUFFIXES: Final[tuple[str, ...]] = (".secret", ".password", ".key")


class DefaultPropertyResolver:
    """Identity resolver flagging secret-looking properties.

    Examples
    --------
    >>> resolver = DefaultPropertyResolver()
    >>> resolver.resolve("db.password", "hunter2")
    'hunter2'
    >>> resolver.is_sensitive("db.password", "hunter2")
    True
    >>> resolver.is_sensitive("db.url", "{cipher}AQB3")
    True
    >>> resolver.is_sensitive("db.url", "jdbc:h2:mem")
    False
    """

    def resolve(self, name: str, value: str) -> str:
        return value

    def is_sensitive(self, name: str, value: str) -> bool:
        return value.startswith(CIPHER_PREFIX) or name.endswith(SENSITIVE_SUFFIXES)

    def __repr__(self) -> str:
        return "DefaultPropertyResolver()"
