"""Key-value store backed resource locator.

Purpose
-------
Serve per-environment configuration documents from a key-value database. Each
``(environment, service)`` item holds a mapping which the locator renders as a
YAML document, so the provider parses it like any file.

Key behaviours
--------------
* Only ``<environment>/<document_name>`` paths are answered; every other
  resource is "not found".
* A missing item is created as an empty document ``{}`` so operators find a
  row to edit; the lookup itself still reports "not found".
* Store errors are logged and reported as "not found" so a flaky store never
  aborts a reconciliation cycle.
"""

from __future__ import annotations

import io
from typing import BinaryIO

import yaml

from ...application.ports import KeyValueStore
from ...observability import log_error, log_info
from .base import BaseResourceLocator


class KeyValueStoreResourceLocator(BaseResourceLocator):
    """Locate ``<environment>/<document_name>`` in a :class:`KeyValueStore`."""

    def __init__(self, store: KeyValueStore, service_name: str, document_name: str = "application.yml") -> None:
        if not service_name:
            raise ValueError("service_name cannot be empty")
        self.store = store
        self.service_name = service_name
        self.document_name = document_name
        self.base_path = f"kv://{service_name}/"

    def find(self, resource_path: str) -> BinaryIO | None:
        environment = self._environment_of(resource_path)
        if environment is None:
            return None
        try:
            document = self.store.get(environment, self.service_name)
        except Exception as exc:  # noqa: BLE001 - store client errors vary by backend
            log_error("kv_lookup_failed", locator=self.base_path, path=resource_path, error=str(exc))
            return None
        if document is None:
            self._create_empty(environment)
            self._looked_up(resource_path, False)
            return None
        self._looked_up(resource_path, True)
        rendered = yaml.safe_dump(dict(document), default_flow_style=False, sort_keys=False)
        return io.BytesIO(rendered.encode("utf-8"))

    def _environment_of(self, resource_path: str) -> str | None:
        suffix = f"/{self.document_name}"
        path = resource_path.lstrip("/")
        if not path.endswith(suffix):
            return None
        environment = path[: -len(suffix)]
        return environment or None

    def _create_empty(self, environment: str) -> None:
        log_info("kv_document_missing", locator=self.base_path, path=environment, service=self.service_name)
        try:
            self.store.put(environment, self.service_name, {})
        except Exception as exc:  # noqa: BLE001
            log_error("kv_create_failed", locator=self.base_path, path=environment, error=str(exc))
