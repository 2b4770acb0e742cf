"""Project root and the files fae owns inside it."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

MANIFEST_FILE = "fae.config.json"
LOCK_FILE = "fae.lock.json"


@dataclass(frozen=True)
class ProjectId:
    """Identifier of a project (its root path)."""

    root: Path

    @classmethod
    def from_path(cls, path: Path) -> "ProjectId":
        return cls(root=path.expanduser().resolve())

    def manifest_path(self) -> Path:
        return self.root / MANIFEST_FILE

    def lock_path(self) -> Path:
        return self.root / LOCK_FILE

    def resolve(self, relative: str) -> Path:
        return self.root / Path(relative)


__all__ = ["LOCK_FILE", "MANIFEST_FILE", "ProjectId"]
