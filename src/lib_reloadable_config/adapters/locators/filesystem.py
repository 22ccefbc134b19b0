"""Filesystem resource locator.

Resolves logical paths (``default/application.yml``) under a configurable base
directory. A missing file is "not found"; permission problems and other I/O
errors surface as :class:`~lib_reloadable_config.domain.errors.LocatorFailure`.
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO

from ...domain.errors import LocatorFailure
from .base import BaseResourceLocator


class FileSystemResourceLocator(BaseResourceLocator):
    """Find resources below *base_dir* on the local filesystem.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> target = Path(tmp.name) / "default" / "application.yml"
    >>> target.parent.mkdir()
    >>> _ = target.write_text("a: 1", encoding="utf-8")
    >>> locator = FileSystemResourceLocator(tmp.name)
    >>> locator.find_as_string("default/application.yml")
    'a: 1'
    >>> locator.find("dev/application.yml") is None
    True
    >>> tmp.cleanup()
    """

    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir = Path(base_dir)
        self.base_path = f"file://{self.base_dir.as_posix()}/"

    def find(self, resource_path: str) -> BinaryIO | None:
        candidate = self.base_dir / resource_path.lstrip("/")
        if not candidate.is_file():
            self._looked_up(resource_path, False)
            return None
        try:
            stream = candidate.open("rb")
        except FileNotFoundError:
            self._looked_up(resource_path, False)
            return None
        except OSError as exc:
            raise LocatorFailure(f"Unable to open {candidate}: {exc}") from exc
        self._looked_up(resource_path, True)
        return stream
