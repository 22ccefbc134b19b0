"""Structured document parsers.

Purpose
-------
Convert located document bytes into Python mappings that the flattener
understands. Adapters are small wrappers around ``yaml.safe_load`` /
``json.loads`` / ``tomllib.loads`` so error handling and observability live in
one place.

Contents
--------
* :class:`BaseDocumentParser` – shared helpers for validating mapping outputs.
* :class:`YAMLDocumentParser` – the reference format.
* :class:`JSONDocumentParser` – JSON documents.
* :class:`TOMLDocumentParser` – TOML documents.
* :func:`parser_for` – choose a parser from a document's file name.

System Role
-----------
Invoked by the provider for every located ``<profile>/<file_name>`` document and
by the config-server locator when decoding remote payloads.
"""

from __future__ import annotations

import json
from pathlib import PurePosixPath
from typing import Mapping

try:  # Python >= 3.11
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    import tomli as tomllib  # type: ignore[no-redef]

import yaml

from ...domain.errors import InvalidFormat
from ...observability import log_debug, log_error


class BaseDocumentParser:
    """Common utilities shared by the structured document parsers."""

    format_name = "unknown"

    @staticmethod
    def _ensure_mapping(data: object, *, source: str) -> Mapping[str, object]:
        """Ensure *data* behaves like a mapping, otherwise raise ``InvalidFormat``.

        Examples
        --------
        >>> BaseDocumentParser._ensure_mapping({"key": 1}, source="demo")
        {'key': 1}
        >>> BaseDocumentParser._ensure_mapping(42, source="demo")
        Traceback (most recent call last):
        ...
        lib_reloadable_config.domain.errors.InvalidFormat: Document demo did not produce a mapping
        """

        if not isinstance(data, Mapping):
            raise InvalidFormat(f"Document {source} did not produce a mapping")
        return data

    def _invalid(self, source: str, exc: Exception) -> InvalidFormat:
        log_error("document_invalid", path=source, format=self.format_name, error=str(exc))
        return InvalidFormat(f"Invalid {self.format_name.upper()} in {source}: {exc}")

    def _parsed(self, data: object, source: str) -> Mapping[str, object]:
        result = self._ensure_mapping(data, source=source)
        log_debug("document_parsed", path=source, format=self.format_name, keys=len(result))
        return result


class YAMLDocumentParser(BaseDocumentParser):
    """Load YAML documents; an empty document yields an empty mapping.

    Examples
    --------
    >>> YAMLDocumentParser().parse(b"server:\\n  port: 8080\\n", source="demo")
    {'server': {'port': 8080}}
    >>> YAMLDocumentParser().parse(b"# only a comment\\n", source="demo")
    {}
    """

    format_name = "yaml"

    def parse(self, payload: bytes, *, source: str) -> Mapping[str, object]:
        try:
            data = yaml.safe_load(payload)
        except yaml.YAMLError as exc:
            raise self._invalid(source, exc) from exc
        return self._parsed({} if data is None else data, source)


class JSONDocumentParser(BaseDocumentParser):
    """Load JSON documents."""

    format_name = "json"

    def parse(self, payload: bytes, *, source: str) -> Mapping[str, object]:
        try:
            data = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise self._invalid(source, exc) from exc
        return self._parsed(data, source)


class TOMLDocumentParser(BaseDocumentParser):
    """Load TOML documents using the standard library parser."""

    format_name = "toml"

    def parse(self, payload: bytes, *, source: str) -> Mapping[str, object]:
        try:
            data = tomllib.loads(payload.decode("utf-8"))
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
            raise self._invalid(source, exc) from exc
        return self._parsed(data, source)


_PARSERS_BY_SUFFIX: dict[str, BaseDocumentParser] = {
    ".yaml": YAMLDocumentParser(),
    ".yml": YAMLDocumentParser(),
    ".json": JSONDocumentParser(),
    ".toml": TOMLDocumentParser(),
}


def parser_for(file_name: str) -> BaseDocumentParser:
    """Return the parser registered for *file_name*'s suffix, defaulting to YAML.

    Examples
    --------
    >>> type(parser_for("application.toml")).__name__
    'TOMLDocumentParser'
    >>> type(parser_for("application")).__name__
    'YAMLDocumentParser'
    """

    suffix = PurePosixPath(file_name).suffix.lower()
    return _PARSERS_BY_SUFFIX.get(suffix, _PARSERS_BY_SUFFIX[".yaml"])
