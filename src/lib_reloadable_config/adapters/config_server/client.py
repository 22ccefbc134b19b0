"""HTTP client for a remote configuration server.

Purpose
-------
Wrap the two endpoints the engine needs from a Spring-Cloud-Config style
server: fetching the property sources of one service/profile and decrypting a
``{cipher}`` value. Every call carries basic auth and a per-call timeout so a
stuck server cannot block the reload loop indefinitely.

Contents
--------
* :class:`ConfigServerClient` – thin ``httpx.Client`` wrapper.

System Role
-----------
Shared by :class:`~.locator.ConfigServerResourceLocator` and
:class:`~.resolver.ConfigServerDecryptResolver`. Transport failures become
:class:`LocatorFailure` for fetches and :class:`ResolverFailure` for decrypts;
decrypt never hands back the still-encrypted value as if it were plaintext.
"""

from __future__ import annotations

from typing import Any, Mapping

import httpx

from ...domain.errors import LocatorFailure, ResolverFailure
from ...observability import log_debug, log_error
from ..resolvers.default import CIPHER_PREFIX

SOURCE_KEY = "propertySources"


class ConfigServerClient:
    """Blocking client for the config server's environment and decrypt endpoints.

    Parameters
    ----------
    uri:
        Server base URI (``https://config.example.com``).
    username / password:
        Basic-auth credentials; omitted when ``username`` is ``None``.
    timeout:
        Per-call timeout in seconds.
    transport:
        Optional ``httpx`` transport, used by tests to stub the server.
    """

    def __init__(
        self,
        uri: str,
        *,
        username: str | None = None,
        password: str | None = None,
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.uri = uri.rstrip("/")
        auth = httpx.BasicAuth(username, password or "") if username is not None else None
        self._client = httpx.Client(auth=auth, timeout=timeout, transport=transport)

    def fetch_properties(self, service: str, profile: str) -> dict[str, Any] | None:
        """Return the first property source of *service*/*profile*, or ``None``.

        Why
        ----
        The server answers with every property source that applies; the first
        one is the most specific and is what the service asked for.

        Raises
        ------
        LocatorFailure
            On transport errors or a payload that is not the expected JSON.
        """

        url = f"{self.uri}/{service}/{profile}"
        try:
            response = self._client.get(url)
        except httpx.HTTPError as exc:
            raise LocatorFailure(f"Unable to connect to config server at {url}: {exc}") from exc
        if response.status_code != 200:
            log_error("config_server_fetch_failed", path=url, status=response.status_code)
            return None
        try:
            payload = response.json()
        except ValueError as exc:
            raise LocatorFailure(f"Config server returned invalid JSON for {url}") from exc
        if isinstance(payload, Mapping) and payload.get(SOURCE_KEY) == []:
            log_debug("config_server_empty", path=url)
            return None
        source = _first_source(payload)
        if source is None:
            raise LocatorFailure(f"Config server response for {url} has no property source")
        log_debug("config_server_fetched", path=url, keys=len(source))
        return dict(source)

    def decrypt(self, name: str, value: str) -> str:
        """Decrypt *value* (with or without the ``{cipher}`` marker).

        Raises
        ------
        ResolverFailure
            When the server is unreachable or answers with a non-200 status.
        """

        cipher_text = value[len(CIPHER_PREFIX) :] if value.startswith(CIPHER_PREFIX) else value
        url = f"{self.uri}/decrypt"
        try:
            response = self._client.post(
                url,
                content=cipher_text.encode("utf-8"),
                headers={"Content-Type": "text/plain", "Accept": "*/*"},
            )
        except httpx.HTTPError as exc:
            raise ResolverFailure(name, f"unable to reach decrypt endpoint {url} ({type(exc).__name__})") from exc
        if response.status_code != 200:
            raise ResolverFailure(name, f"decrypt endpoint {url} answered httpStatusCode={response.status_code}")
        return response.text

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> ConfigServerClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _first_source(payload: object) -> Mapping[str, Any] | None:
    if not isinstance(payload, Mapping):
        return None
    sources = payload.get(SOURCE_KEY)
    if not isinstance(sources, list) or not sources:
        return None
    first = sources[0]
    if not isinstance(first, Mapping):
        return None
    source = first.get("source")
    return source if isinstance(source, Mapping) else None
