from __future__ import annotations

import json
from pathlib import Path

import pytest

from fae.app.run_service import RunService
from fae.cli import main as cli_main
from fae.domain.shells import ShellRegistry
from fae.settings import RuntimeSettings

MANIFEST = {
    "main": "main.py",
    "language": "python",
    "shell": "sh",
    "externalDependencies": {"requests": "@latest"},
    "installationCommandLatest": "pip install <pkg>",
    "installationCommandVersion": "pip install <pkg>==<version>",
    "scripts": {"check": "exit 7"},
}


@pytest.fixture()
def cli(runtime_settings: RuntimeSettings, recording_dispatcher, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(cli_main, "SETTINGS", runtime_settings, raising=False)
    monkeypatch.setattr(
        cli_main,
        "_build_service",
        lambda: RunService(
            runtime_settings,
            shells=ShellRegistry.default(platform="posix"),
            dispatcher_factory=lambda _project: recording_dispatcher,
        ),
    )
    return recording_dispatcher


def test_start_bootstraps_and_launches(cli, write_manifest, capsys: pytest.CaptureFixture[str]) -> None:
    root = write_manifest(MANIFEST)
    exit_code = cli_main.main(["-C", str(root), "start"])
    assert exit_code == 0
    out = capsys.readouterr().out
    assert "Installed requests (@latest)" in out
    assert "Started `python " in out
    assert "(pid 4242)" in out
    assert json.loads((root / "fae.lock.json").read_text(encoding="utf-8")) == {"firstRun": False}


def test_start_wait_propagates_status(cli, write_manifest) -> None:
    root = write_manifest(MANIFEST)
    (root / "fae.lock.json").write_text('{"firstRun": false}', encoding="utf-8")
    cli.exit_codes["main.py"] = 9
    assert cli_main.main(["--project-dir", str(root), "start", "--wait"]) == 9


def test_start_missing_main(cli, write_manifest, capsys: pytest.CaptureFixture[str]) -> None:
    root = write_manifest({"language": "py"})
    assert cli_main.main(["-C", str(root), "start"]) == 1
    err = capsys.readouterr().err
    assert "fae: error:" in err
    assert "'main'" in err


def test_missing_manifest(cli, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli_main.main(["-C", str(tmp_path), "install-deps"]) == 1
    assert "There exists no fae.config.json file" in capsys.readouterr().err


def test_install_round_trip(cli, write_manifest, capsys: pytest.CaptureFixture[str]) -> None:
    root = write_manifest(dict(MANIFEST, externalDependencies={}))
    assert cli_main.main(["-C", str(root), "install", "mypkg", "2.0.0"]) == 0
    manifest = json.loads((root / "fae.config.json").read_text(encoding="utf-8"))
    assert manifest["externalDependencies"] == {"mypkg": "2.0.0"}
    assert cli.command_lines == ["pip install mypkg==2.0.0"]
    assert "Installed mypkg (2.0.0)" in capsys.readouterr().out


def test_install_defaults_to_latest(cli, write_manifest) -> None:
    root = write_manifest(dict(MANIFEST, externalDependencies={}))
    assert cli_main.main(["-C", str(root), "install", "requests"]) == 0
    assert cli.command_lines == ["pip install requests"]


def test_install_requires_package(cli, write_manifest, capsys: pytest.CaptureFixture[str]) -> None:
    root = write_manifest(MANIFEST)
    assert cli_main.main(["-C", str(root), "install"]) == 1
    assert "A valid package was not provided." in capsys.readouterr().err


def test_install_deps(cli, write_manifest, capsys: pytest.CaptureFixture[str]) -> None:
    root = write_manifest(MANIFEST)
    assert cli_main.main(["-C", str(root), "install-deps"]) == 0
    assert "Installed requests (@latest)" in capsys.readouterr().out


def test_run_script_status(cli, write_manifest) -> None:
    root = write_manifest(MANIFEST)
    cli.exit_codes["exit 7"] = 7
    assert cli_main.main(["-C", str(root), "run", "check"]) == 7


@pytest.mark.parametrize(
    ("argv", "message"),
    [
        (["deploy"], "deploy is not a valid command!"),
        (["-C", "somewhere", "build"], "build is not a valid command!"),
        ([], "You have not provided a command to execute."),
    ],
)
def test_invalid_commands(cli, argv: list[str], message: str, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli_main.main(argv) == 1
    assert message in capsys.readouterr().err


def test_errors_are_recorded(cli, runtime_settings: RuntimeSettings, capsys: pytest.CaptureFixture[str]) -> None:
    cli_main.main(["deploy"])
    capsys.readouterr()
    assert cli_main.main(["telemetry", "report", "--json"]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["by_event"]["error"] == 1
    assert cli_main.main(["telemetry", "tail", "--limit", "1"]) == 0
    tail = json.loads(capsys.readouterr().out.strip())
    assert tail["payload"]["kind"] == "invalid_command"
    assert cli_main.main(["telemetry", "clear"]) == 0
    assert not runtime_settings.telemetry_file.exists()


def test_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        cli_main.main(["--version"])
    assert exc.value.code == 0
    assert "fae 0.1.0" in capsys.readouterr().out


def test_help_after_unknown_command_is_rejected(cli, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli_main.main(["deploy", "--help"]) == 1
    assert "deploy is not a valid command!" in capsys.readouterr().err


def test_help_after_known_command_reaches_argparse(cli, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        cli_main.main(["install", "--help"])
    assert exc.value.code == 0
    assert "Package name" in capsys.readouterr().out


def test_bad_install_timeout_is_reported(
    cli, write_manifest, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    settings = RuntimeSettings(home_dir=tmp_path / "home", log_dir=tmp_path / "home" / "logs")
    monkeypatch.setattr(cli_main, "SETTINGS", settings)
    monkeypatch.setattr(
        cli_main,
        "_build_service",
        lambda: RunService(
            settings,
            shells=ShellRegistry.default(platform="posix"),
            dispatcher_factory=lambda _project: cli,
        ),
    )
    monkeypatch.setenv("FAE_INSTALL_TIMEOUT", "ten")
    root = write_manifest(MANIFEST)
    assert cli_main.main(["-C", str(root), "install-deps"]) == 1
    assert "FAE_INSTALL_TIMEOUT must be a number of seconds" in capsys.readouterr().err
    assert cli.calls == []


def test_unwritable_telemetry_does_not_fail_commands(
    cli, write_manifest, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    settings = RuntimeSettings(home_dir=blocker, log_dir=blocker / "logs", install_timeout=30.0)
    monkeypatch.setattr(cli_main, "SETTINGS", settings)
    monkeypatch.setattr(
        cli_main,
        "_build_service",
        lambda: RunService(
            settings,
            shells=ShellRegistry.default(platform="posix"),
            dispatcher_factory=lambda _project: cli,
        ),
    )
    root = write_manifest(MANIFEST)
    (root / "fae.lock.json").write_text('{"firstRun": false}', encoding="utf-8")
    assert cli_main.main(["-C", str(root), "start"]) == 0
    assert "(pid 4242)" in capsys.readouterr().out
    assert len(cli.calls) == 1
    assert cli_main.main(["deploy"]) == 1
    assert "deploy is not a valid command!" in capsys.readouterr().err


def test_malformed_lock_is_reported(cli, write_manifest, capsys: pytest.CaptureFixture[str]) -> None:
    root = write_manifest(MANIFEST)
    (root / "fae.lock.json").write_text("nope", encoding="utf-8")
    assert cli_main.main(["-C", str(root), "start"]) == 1
    assert "fae.lock.json" in capsys.readouterr().err
    assert cli.calls == []
