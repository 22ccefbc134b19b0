"""Shared behaviour for resource locators.

Subclasses implement :meth:`BaseResourceLocator.find` and set ``base_path``;
the text and JSON conveniences are derived here so every variant decodes the
same way.
"""

from __future__ import annotations

import json
from typing import BinaryIO

from ...domain.errors import LocatorFailure
from ...observability import log_debug


class BaseResourceLocator:
    """Derive ``find_as_string`` / ``find_as_json`` from ``find``."""

    base_path: str = ""

    def find(self, resource_path: str) -> BinaryIO | None:  # pragma: no cover - abstract
        raise NotImplementedError

    def find_as_string(self, resource_path: str, encoding: str = "utf-8") -> str | None:
        """Return the resource decoded with *encoding*, or ``None`` when absent.

        Raises
        ------
        LocatorFailure
            When the bytes cannot be decoded with *encoding*.
        """

        stream = self.find(resource_path)
        if stream is None:
            return None
        with stream:
            payload = stream.read()
        try:
            return payload.decode(encoding)
        except UnicodeDecodeError as exc:
            raise LocatorFailure(f"Resource {self.base_path}{resource_path} is not valid {encoding}") from exc

    def find_as_json(self, resource_path: str) -> object | None:
        """Return the resource decoded as JSON, or ``None`` when absent."""

        text = self.find_as_string(resource_path)
        if text is None:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise LocatorFailure(f"Resource {self.base_path}{resource_path} is not valid JSON: {exc}") from exc

    def _looked_up(self, resource_path: str, found: bool) -> None:
        log_debug("resource_lookup", locator=self.base_path, path=resource_path, found=found)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.base_path!r})"
