from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
SANDBOX_HOME = ROOT / ".test_place" / "fae-home"
os.environ.setdefault("FAE_HOME", str(SANDBOX_HOME))
SANDBOX_HOME.mkdir(parents=True, exist_ok=True)
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from fae.app.dispatcher import DispatchResult, SpawnMode  # noqa: E402
from fae.settings import RuntimeSettings  # noqa: E402


@pytest.fixture()
def runtime_settings(tmp_path: Path) -> RuntimeSettings:
    home = tmp_path / "fae-home"
    log_dir = home / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return RuntimeSettings(home_dir=home, log_dir=log_dir, install_timeout=30.0, cli_version="0.1.0")


@pytest.fixture()
def write_manifest(tmp_path: Path):
    def _write(payload: Any, root: Path | None = None) -> Path:
        project_root = root or tmp_path / "proj"
        project_root.mkdir(parents=True, exist_ok=True)
        path = project_root / "fae.config.json"
        if isinstance(payload, str):
            path.write_text(payload, encoding="utf-8")
        else:
            path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        return project_root

    return _write


class RecordingDispatcher:
    """Dispatcher double that records commands instead of spawning them."""

    def __init__(self, exit_codes: dict[str, int] | None = None) -> None:
        self.exit_codes = dict(exit_codes or {})
        self.calls: list[tuple[Any, Any, float | None]] = []

    def spawn(self, command, mode, *, timeout: float | None = None):
        self.calls.append((command, mode, timeout))
        if mode is SpawnMode.DETACHED:
            return DispatchResult(mode=mode, pid=4242)
        exit_code = 0
        for needle, code in self.exit_codes.items():
            if needle in command.command_line:
                exit_code = code
        return DispatchResult(mode=mode, pid=4242, exit_code=exit_code, output=f"ran {command.command_line}")

    @property
    def command_lines(self) -> list[str]:
        return [command.command_line for command, _, _ in self.calls]


@pytest.fixture()
def recording_dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()
