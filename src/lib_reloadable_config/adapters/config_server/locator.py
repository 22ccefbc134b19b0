"""Config-server resource locator.

Answers two kinds of logical paths:

* ``<profile>/<document_name>`` – the service's property source for that
  profile, fetched from the server and rendered as a YAML document;
* ``<profile>/<name>.secret`` – an encrypted file kept locally under
  ``secrets_dir``, decrypted through the server.

Every other resource is "not found" so the provider falls through to the
next locator.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import BinaryIO

import yaml

from ...domain.errors import LocatorFailure, ResolverFailure
from ...observability import log_debug
from ..locators.base import BaseResourceLocator
from .client import ConfigServerClient

SECRET_SUFFIX = ".secret"


class ConfigServerResourceLocator(BaseResourceLocator):
    """Serve one logical service's configuration from a :class:`ConfigServerClient`."""

    def __init__(
        self,
        client: ConfigServerClient,
        service_name: str,
        *,
        document_name: str = "application.yml",
        secrets_dir: str | Path | None = None,
    ) -> None:
        self.client = client
        self.service_name = service_name
        self.document_name = document_name
        self.secrets_dir = Path(secrets_dir) if secrets_dir is not None else None
        self.base_path = f"configserver://{service_name}/"

    def find(self, resource_path: str) -> BinaryIO | None:
        path = resource_path.lstrip("/")
        suffix = f"/{self.document_name}"
        if path.endswith(suffix) and len(path) > len(suffix):
            return self._properties_document(path[: -len(suffix)])
        if path.endswith(SECRET_SUFFIX):
            return self._decrypted_file(path)
        return None

    def _properties_document(self, profile: str) -> BinaryIO | None:
        source = self.client.fetch_properties(self.service_name, profile)
        if source is None:
            self._looked_up(f"{profile}/{self.document_name}", False)
            return None
        self._looked_up(f"{profile}/{self.document_name}", True)
        rendered = yaml.safe_dump(source, default_flow_style=False, sort_keys=False)
        return io.BytesIO(rendered.encode("utf-8"))

    def _decrypted_file(self, path: str) -> BinaryIO | None:
        if self.secrets_dir is None:
            return None
        candidate = self.secrets_dir / path
        if not candidate.is_file():
            self._looked_up(path, False)
            return None
        log_debug("secret_file_found", locator=self.base_path, path=path)
        encrypted = candidate.read_text(encoding="utf-8").strip()
        try:
            decrypted = self.client.decrypt(path, encrypted)
        except ResolverFailure as exc:
            raise LocatorFailure(f"Unable to decrypt secret file {path}: {exc.reason}") from exc
        return io.BytesIO(decrypted.encode("utf-8"))
