"""Package-bundled resource locator.

Purpose
-------
Read configuration shipped inside an importable Python package, the way a
service bundles its defaults next to its code. Uses :mod:`importlib.resources`
so zipped and installed distributions work the same as source checkouts.

System Role
-----------
Registered first by :func:`lib_reloadable_config.core.create_config_provider`
when a package is supplied, so filesystem and remote locators registered after
it take precedence.
"""

from __future__ import annotations

import io
from importlib import resources
from typing import BinaryIO

from .base import BaseResourceLocator


class PackageResourceLocator(BaseResourceLocator):
    """Find resources under ``<package>/<base_path>``.

    Parameters
    ----------
    package:
        Importable package name holding the resources (``"my_service"``).
    base_path:
        Sub-directory inside the package (``"config"``); empty for the root.
    """

    def __init__(self, package: str, base_path: str = "") -> None:
        self.package = package
        self.sub_path = base_path.strip("/")
        suffix = f"{self.sub_path}/" if self.sub_path else ""
        self.base_path = f"package://{package}/{suffix}"

    def find(self, resource_path: str) -> BinaryIO | None:
        try:
            root = resources.files(self.package)
        except ModuleNotFoundError:
            self._looked_up(resource_path, False)
            return None
        candidate = root
        for part in self._segments(resource_path):
            candidate = candidate.joinpath(part)
        if not candidate.is_file():
            self._looked_up(resource_path, False)
            return None
        self._looked_up(resource_path, True)
        return io.BytesIO(candidate.read_bytes())

    def _segments(self, resource_path: str) -> list[str]:
        joined = f"{self.sub_path}/{resource_path}" if self.sub_path else resource_path
        return [part for part in joined.split("/") if part]
