"""Runtime settings for the fae CLI."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from fae import __version__
from fae.domain.errors import ConfigurationError

DEFAULT_INSTALL_TIMEOUT = 600.0
INSTALL_TIMEOUT_ENV = "FAE_INSTALL_TIMEOUT"


@dataclass(frozen=True)
class RuntimeSettings:
    home_dir: Path
    log_dir: Path
    # None defers to FAE_INSTALL_TIMEOUT, read when an install is planned.
    install_timeout: float | None = None
    cli_version: str = __version__

    @property
    def telemetry_file(self) -> Path:
        return self.log_dir / "telemetry.jsonl"

    def effective_install_timeout(self) -> float:
        if self.install_timeout is not None:
            return self.install_timeout
        return _install_timeout_from_env()


def _default_home_dir() -> Path:
    override = os.environ.get("FAE_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".fae"


def _install_timeout_from_env() -> float:
    raw = os.environ.get(INSTALL_TIMEOUT_ENV, "").strip()
    if not raw:
        return DEFAULT_INSTALL_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(INSTALL_TIMEOUT_ENV, f"must be a number of seconds, got {raw!r}") from None
    if value <= 0:
        raise ConfigurationError(INSTALL_TIMEOUT_ENV, f"must be positive, got {raw!r}")
    return value


def load_settings() -> RuntimeSettings:
    base = _default_home_dir()
    return RuntimeSettings(home_dir=base, log_dir=base / "logs")


SETTINGS = load_settings()
