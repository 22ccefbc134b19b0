"""Remote-decryption property resolver."""

from __future__ import annotations

from ..resolvers.default import CIPHER_PREFIX
from .client import ConfigServerClient

SECRET_POSTFIX = ".secret"


class ConfigServerDecryptResolver:
    """Decrypt ``{cipher}`` values (and ``*.secret`` properties) via the config server.

    Non-sensitive values pass through untouched. A failed decrypt raises
    :class:`~lib_reloadable_config.domain.errors.ResolverFailure`; the provider
    then keeps the previous resolved value instead of exposing cipher text.
    """

    def __init__(self, client: ConfigServerClient) -> None:
        self.client = client

    def resolve(self, name: str, value: str) -> str:
        if not self.is_sensitive(name, value):
            return value
        return self.client.decrypt(name, value)

    def is_sensitive(self, name: str, value: str) -> bool:
        return name.endswith(SECRET_POSTFIX) or value.startswith(CIPHER_PREFIX)

    def __repr__(self) -> str:
        return f"ConfigServerDecryptResolver({self.client.uri!r})"
