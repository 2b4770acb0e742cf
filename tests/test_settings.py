from __future__ import annotations

from pathlib import Path

import pytest

from fae.domain.errors import ConfigurationError
from fae.settings import DEFAULT_INSTALL_TIMEOUT, RuntimeSettings, load_settings


def test_home_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FAE_HOME", str(tmp_path / "home"))
    monkeypatch.delenv("FAE_INSTALL_TIMEOUT", raising=False)
    settings = load_settings()
    assert settings.home_dir == tmp_path / "home"
    assert settings.telemetry_file == tmp_path / "home" / "logs" / "telemetry.jsonl"
    assert settings.effective_install_timeout() == DEFAULT_INSTALL_TIMEOUT


@pytest.mark.parametrize(("raw", "expected"), [("45", 45.0), (" 2.5 ", 2.5)])
def test_install_timeout(monkeypatch: pytest.MonkeyPatch, raw: str, expected: float) -> None:
    monkeypatch.setenv("FAE_INSTALL_TIMEOUT", raw)
    assert load_settings().effective_install_timeout() == expected


@pytest.mark.parametrize("raw", ["soon", "0", "-3"])
def test_install_timeout_rejects_invalid(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("FAE_INSTALL_TIMEOUT", raw)
    settings = load_settings()
    with pytest.raises(ConfigurationError) as exc:
        settings.effective_install_timeout()
    assert exc.value.variable == "FAE_INSTALL_TIMEOUT"
    assert exc.value.kind == "configuration"


def test_explicit_timeout_ignores_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FAE_INSTALL_TIMEOUT", "soon")
    settings = RuntimeSettings(home_dir=tmp_path, log_dir=tmp_path / "logs", install_timeout=12.0)
    assert settings.effective_install_timeout() == 12.0
