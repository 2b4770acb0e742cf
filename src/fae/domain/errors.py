"""Error taxonomy for fae.

Every error is fatal for the current invocation. The CLI reports the message
and exits non-zero; the only retry path is the lock file staying in the
pending state after a failed dependency sweep.
"""

from __future__ import annotations

from pathlib import Path
from typing import Sequence


class FaeError(RuntimeError):
    """Base class for user-visible fae failures."""

    kind = "error"


class MissingManifestError(FaeError):
    kind = "missing_manifest"

    def __init__(self, path: Path) -> None:
        super().__init__(f"There exists no {path.name} file in {path.parent}.")
        self.path = path


class MalformedManifestError(FaeError):
    kind = "malformed_manifest"

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Could not read {path.name}. It may be malformed: {reason}")
        self.path = path
        self.reason = reason


class MissingRequiredFieldError(FaeError):
    kind = "missing_required_field"

    def __init__(self, field: str, hint: str | None = None) -> None:
        message = f"The '{field}' key must be explicitly set in the manifest."
        if hint:
            message = f"{message} {hint}"
        super().__init__(message)
        self.field = field


class UnsupportedLanguageError(FaeError):
    kind = "unsupported_language"

    def __init__(self, tag: str) -> None:
        super().__init__(f"{tag} is not supported.")
        self.tag = tag


class UnsupportedShellError(FaeError):
    kind = "unsupported_shell"

    def __init__(self, tag: str) -> None:
        super().__init__(f"{tag} is not a supported shell type!")
        self.tag = tag


class MalformedLockError(FaeError):
    kind = "malformed_lock"

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Could not read {path.name}. It may be malformed: {reason}")
        self.path = path
        self.reason = reason


class SpawnFailureError(FaeError):
    kind = "spawn_failure"

    def __init__(self, command: Sequence[str], reason: str) -> None:
        rendered = " ".join(command)
        super().__init__(f"Unable to spawn `{rendered}`: {reason}")
        self.command = list(command)
        self.reason = reason


class InvalidCommandError(FaeError):
    kind = "invalid_command"


class ConfigurationError(FaeError):
    kind = "configuration"

    def __init__(self, variable: str, reason: str) -> None:
        super().__init__(f"{variable} {reason}")
        self.variable = variable


class InstallFailedError(FaeError):
    kind = "install_failed"

    def __init__(
        self,
        package: str,
        command: str,
        *,
        exit_code: int | None = None,
        output: str = "",
        timed_out: bool = False,
    ) -> None:
        if timed_out:
            reason = "timed out"
        else:
            reason = f"exited with status {exit_code}"
        message = f"Installing {package} failed: `{command}` {reason}."
        tail = _tail(output)
        if tail:
            message = f"{message}\n{tail}"
        super().__init__(message)
        self.package = package
        self.command = command
        self.exit_code = exit_code
        self.output = output
        self.timed_out = timed_out


class UnknownScriptError(FaeError):
    kind = "unknown_script"

    def __init__(self, name: str, available: Sequence[str]) -> None:
        listing = ", ".join(available) if available else "none defined"
        super().__init__(f"Script '{name}' is not defined in the manifest (available: {listing}).")
        self.name = name


def _tail(output: str, lines: int = 20) -> str:
    stripped = output.strip()
    if not stripped:
        return ""
    return "\n".join(stripped.splitlines()[-lines:])


__all__ = [
    "ConfigurationError",
    "FaeError",
    "InstallFailedError",
    "InvalidCommandError",
    "MalformedLockError",
    "MalformedManifestError",
    "MissingManifestError",
    "MissingRequiredFieldError",
    "SpawnFailureError",
    "UnknownScriptError",
    "UnsupportedLanguageError",
    "UnsupportedShellError",
]
