"""First-run lock gating the automatic dependency sweep on ``start``."""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from fae.domain.errors import MalformedLockError
from fae.domain.project import ProjectId


class LockStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    PENDING_INSTALL = "pending_install"
    INSTALLED = "installed"


@dataclass(frozen=True)
class LockState:
    first_run: bool = True

    @property
    def status(self) -> LockStatus:
        return LockStatus.PENDING_INSTALL if self.first_run else LockStatus.INSTALLED

    def to_dict(self) -> dict[str, bool]:
        return {"firstRun": self.first_run}

    @classmethod
    def from_dict(cls, data: object, path: Path) -> "LockState":
        if not isinstance(data, dict):
            raise MalformedLockError(path, "top-level value must be an object")
        first_run = data.get("firstRun", True)
        if not isinstance(first_run, bool):
            raise MalformedLockError(path, "'firstRun' must be a boolean")
        return cls(first_run=first_run)


class ProjectLock:
    """Reads and persists the lock record of a single project."""

    def __init__(self, project_id: ProjectId) -> None:
        self._path = project_id.lock_path()

    @property
    def path(self) -> Path:
        return self._path

    def status(self) -> LockStatus:
        if not self._path.exists():
            return LockStatus.UNINITIALIZED
        return self.read().status

    def read(self) -> LockState:
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MalformedLockError(self._path, str(exc)) from exc
        return LockState.from_dict(data, self._path)

    def ensure(self) -> LockState:
        """Return the current state, materialising the default record if absent."""
        if not self._path.exists():
            state = LockState()
            self.write(state)
            return state
        return self.read()

    def mark_installed(self) -> LockState:
        state = LockState(first_run=False)
        self.write(state)
        return state

    def write(self, state: LockState) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self._path.name}.", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(json.dumps(state.to_dict(), indent=2) + "\n")
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


__all__ = ["LockState", "LockStatus", "ProjectLock"]
