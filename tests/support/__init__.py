"""Shared fixtures-as-functions for the test suite.

``ProfileSandbox`` lays out ``<root>/<profile>/<file>`` trees on disk so
filesystem-backed scenarios read like the deployments they mimic;
``ChangeRecorder`` captures the change sets a provider fans out.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from lib_reloadable_config.domain.changes import ChangeSet


@dataclass
class ProfileSandbox:
    root: Path
    file_name: str = "application.yml"

    def write(self, profile: str, body: str, *, name: str | None = None) -> Path:
        target = self.root / profile / (name or self.file_name)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(body, encoding="utf-8")
        return target

    def delete(self, profile: str, *, name: str | None = None) -> None:
        (self.root / profile / (name or self.file_name)).unlink()


def create_profile_sandbox(tmp_path: Path, file_name: str = "application.yml") -> ProfileSandbox:
    root = tmp_path / "config"
    root.mkdir()
    return ProfileSandbox(root=root, file_name=file_name)


@dataclass
class ChangeRecorder:
    calls: list[ChangeSet] = field(default_factory=list)

    def __call__(self, changes: ChangeSet) -> None:
        self.calls.append(changes)

    @property
    def last(self) -> ChangeSet:
        return self.calls[-1]
