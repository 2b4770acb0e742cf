"""Spawns composed commands."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from fae.app.composer import ResolvedCommand
from fae.domain.errors import SpawnFailureError


class SpawnMode(str, Enum):
    DETACHED = "detached"
    WAIT = "wait"
    CAPTURE = "capture"


@dataclass(frozen=True)
class DispatchResult:
    mode: SpawnMode
    pid: Optional[int] = None
    exit_code: Optional[int] = None
    output: str = ""
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        if self.mode is SpawnMode.DETACHED:
            return True
        return not self.timed_out and self.exit_code == 0


class ExecutionDispatcher:
    def __init__(self, cwd: Path) -> None:
        self._cwd = cwd

    def spawn(
        self,
        command: ResolvedCommand,
        mode: SpawnMode = SpawnMode.DETACHED,
        *,
        timeout: float | None = None,
    ) -> DispatchResult:
        argv = command.argv
        try:
            if mode is SpawnMode.CAPTURE:
                return self._capture(command.popen_args(), timeout)
            process = subprocess.Popen(command.popen_args(), cwd=self._cwd, **self._detach_options(mode))
        except OSError as exc:
            raise SpawnFailureError(argv, exc.strerror or str(exc)) from exc
        if mode is SpawnMode.DETACHED:
            return DispatchResult(mode=mode, pid=process.pid)
        exit_code = process.wait()
        return DispatchResult(mode=mode, pid=process.pid, exit_code=exit_code)

    def _capture(self, argv: list[str] | str, timeout: float | None) -> DispatchResult:
        try:
            result = subprocess.run(
                argv,
                cwd=self._cwd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                stdin=subprocess.DEVNULL,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as exc:
            output = exc.output or ""
            if isinstance(output, bytes):
                output = output.decode("utf-8", errors="replace")
            return DispatchResult(mode=SpawnMode.CAPTURE, output=output, timed_out=True)
        return DispatchResult(mode=SpawnMode.CAPTURE, exit_code=result.returncode, output=result.stdout or "")

    @staticmethod
    def _detach_options(mode: SpawnMode) -> dict[str, object]:
        if mode is not SpawnMode.DETACHED:
            return {}
        if os.name == "nt":
            return {"creationflags": getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", 0)}
        return {"start_new_session": True}


__all__ = ["DispatchResult", "ExecutionDispatcher", "SpawnMode"]
