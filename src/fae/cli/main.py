#!/usr/bin/env python3
"""Entry point for the fae CLI."""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from textwrap import dedent

from fae import __version__
from fae.app.installer import InstallReport
from fae.app.run_service import RunService
from fae.domain.errors import FaeError, InvalidCommandError
from fae.domain.manifest import LATEST
from fae.domain.project import LOCK_FILE, MANIFEST_FILE, ProjectId
from fae.settings import SETTINGS
from fae.utils.telemetry import clear as telemetry_clear
from fae.utils.telemetry import iter_events as telemetry_iter
from fae.utils.telemetry import record_structured_event
from fae.utils.telemetry import summarize as telemetry_summarize

COMMANDS = ("start", "install", "install-deps", "run", "telemetry")
_PASSTHROUGH_FLAGS = {"-h", "--help", "--version"}
_VALUE_OPTIONS = {"-C", "--project-dir"}


HELP_OVERVIEW = dedent(
    f"""
    Run a project from its {MANIFEST_FILE} manifest.

    Commands:
      - fae start                     - install dependencies on first run, then launch "main"
      - fae install <package> [ver]   - record a dependency and install it now
      - fae install-deps              - reinstall every dependency from the manifest
      - fae run <script> [args...]    - run a named entry from "scripts"

    The first-run state lives in {LOCK_FILE}; delete it to force a fresh install.
    """
)


def _project_id(args: argparse.Namespace) -> ProjectId:
    path_arg = getattr(args, "project_dir", None)
    if path_arg:
        return ProjectId.from_path(Path(path_arg))
    return ProjectId.from_path(Path(os.getcwd()))


def _build_service() -> RunService:
    return RunService(SETTINGS)


def _print_install_report(report: InstallReport | None) -> None:
    if report is None:
        return
    if not report.steps:
        print("No external dependencies to install.")
        return
    for step in report.steps:
        print(f"Installed {step.package} ({step.version})")


def _start_cmd(args: argparse.Namespace) -> int:
    service = _build_service()
    wait = True if args.wait else None
    result = service.start(_project_id(args), wait=wait)
    _print_install_report(result.bootstrap)
    if result.dispatch.exit_code is None:
        print(f"Started `{result.command.command_line}` (pid {result.dispatch.pid})")
    return result.exit_code


def _install_cmd(args: argparse.Namespace) -> int:
    if not args.package:
        raise InvalidCommandError("A valid package was not provided.")
    version = args.version or LATEST
    step = _build_service().install(_project_id(args), args.package, version)
    print(f"Installed {step.package} ({step.version})")
    return 0


def _install_deps_cmd(args: argparse.Namespace) -> int:
    report = _build_service().install_deps(_project_id(args))
    _print_install_report(report)
    return 0


def _run_cmd(args: argparse.Namespace) -> int:
    if not args.script:
        raise InvalidCommandError("A script name was not provided.")
    return _build_service().run_script(_project_id(args), args.script, list(args.extra or []))


def _telemetry_cmd(args: argparse.Namespace) -> int:
    action = args.telemetry_command
    if action == "report":
        summary = telemetry_summarize(telemetry_iter(SETTINGS))
        if args.json:
            print(json.dumps(summary, indent=2))
        else:
            print(f"Events: {summary['total']}")
            for name, count in sorted(summary["by_event"].items()):
                print(f"  - {name}: {count}")
        return 0
    if action == "clear":
        telemetry_clear(SETTINGS)
        print("Telemetry log cleared")
        return 0
    if args.limit <= 0:
        return 0
    events = list(telemetry_iter(SETTINGS))
    for event in events[-args.limit:]:
        print(json.dumps(event, ensure_ascii=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fae",
        description=HELP_OVERVIEW,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"fae {__version__}")
    parser.add_argument(
        "-C",
        "--project-dir",
        dest="project_dir",
        help="Project root containing the manifest (default: current directory)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    start_cmd = sub.add_parser("start", help="Install dependencies on first run, then launch the entry point")
    start_cmd.add_argument("--wait", action="store_true", help="Wait for the process and exit with its status")
    start_cmd.set_defaults(func=_start_cmd)

    install_cmd = sub.add_parser("install", help="Add a dependency to the manifest and install it")
    install_cmd.add_argument("package", nargs="?", help="Package name")
    install_cmd.add_argument("version", nargs="?", help=f"Version to pin (default: {LATEST})")
    install_cmd.set_defaults(func=_install_cmd)

    install_deps_cmd = sub.add_parser("install-deps", help="Reinstall every dependency declared in the manifest")
    install_deps_cmd.set_defaults(func=_install_deps_cmd)

    run_cmd = sub.add_parser("run", help="Run a named script from the manifest")
    run_cmd.add_argument("script", nargs="?", help="Script name")
    run_cmd.add_argument("extra", nargs=argparse.REMAINDER, help="Extra arguments appended to the script")
    run_cmd.set_defaults(func=_run_cmd)

    telemetry_cmd = sub.add_parser("telemetry", help="Inspect the local telemetry log")
    telemetry_sub = telemetry_cmd.add_subparsers(dest="telemetry_command", required=True)
    telemetry_report = telemetry_sub.add_parser("report", help="Print aggregated telemetry stats")
    telemetry_report.add_argument("--json", action="store_true", help="Emit JSON summary")
    telemetry_report.set_defaults(func=_telemetry_cmd)
    telemetry_clear_cmd = telemetry_sub.add_parser("clear", help="Remove telemetry log file")
    telemetry_clear_cmd.set_defaults(func=_telemetry_cmd)
    telemetry_tail = telemetry_sub.add_parser("tail", help="Print last N telemetry events")
    telemetry_tail.add_argument("--limit", type=int, default=20, help="Number of events (default: 20)")
    telemetry_tail.set_defaults(func=_telemetry_cmd)

    return parser


def _check_command(argv: list[str]) -> None:
    """Reject unknown or missing subcommands before argparse does."""

    tokens = iter(argv)
    for token in tokens:
        if token in _PASSTHROUGH_FLAGS:
            return
        if token in _VALUE_OPTIONS:
            next(tokens, None)
            continue
        if token.startswith("-"):
            continue
        if token not in COMMANDS:
            raise InvalidCommandError(f"{token} is not a valid command!")
        return
    raise InvalidCommandError("You have not provided a command to execute.")


def _report_failure(exc: FaeError, command: str | None) -> int:
    print(f"fae: error: {exc}", file=sys.stderr)
    record_structured_event(
        SETTINGS,
        "error",
        payload={"command": command or "", "kind": exc.kind, "message": str(exc)},
        level="error",
        status="fail",
    )
    return 1


def main(argv: list[str] | None = None) -> int:
    raw_args = list(sys.argv[1:] if argv is None else argv)
    try:
        _check_command(raw_args)
    except InvalidCommandError as exc:
        return _report_failure(exc, None)
    parser = build_parser()
    args = parser.parse_args(raw_args)
    try:
        return args.func(args)
    except FaeError as exc:
        return _report_failure(exc, args.command)


if __name__ == "__main__":
    sys.exit(main())
