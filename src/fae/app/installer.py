"""Dependency installation through the manifest's install command templates."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, List, Mapping, Optional, Tuple

from fae.app.composer import CommandComposer
from fae.app.dispatcher import ExecutionDispatcher, SpawnMode
from fae.domain.errors import InstallFailedError, MissingRequiredFieldError
from fae.domain.manifest import InstallTemplates
from fae.domain.shells import ShellSpec

PACKAGE_PLACEHOLDER = "<pkg>"
VERSION_PLACEHOLDER = "<version>"


def render_install_command(template: str, package: str, version: str) -> List[str]:
    """Substitute placeholders and split on whitespace.

    Packages or versions containing whitespace are not supported; they end up
    split across several words.
    """
    command = template.replace(PACKAGE_PLACEHOLDER, package).replace(VERSION_PLACEHOLDER, version)
    return command.split()


@dataclass(frozen=True)
class InstallStep:
    package: str
    version: str
    template_key: str
    words: Tuple[str, ...]
    exit_code: Optional[int] = None
    duration_ms: float = 0.0

    @property
    def command(self) -> str:
        return " ".join(self.words)


@dataclass
class InstallReport:
    steps: List[InstallStep] = field(default_factory=list)

    @property
    def packages(self) -> List[str]:
        return [step.package for step in self.steps]


StepObserver = Callable[[InstallStep], None]


class DependencyInstaller:
    """Runs one blocking install command per dependency, stopping at the first failure."""

    def __init__(
        self,
        composer: CommandComposer,
        dispatcher: ExecutionDispatcher,
        shell: ShellSpec,
        *,
        timeout: float | None = None,
        observer: StepObserver | None = None,
    ) -> None:
        self._composer = composer
        self._dispatcher = dispatcher
        self._shell = shell
        self._timeout = timeout
        self._observer = observer

    def plan(self, dependencies: Mapping[str, str], templates: InstallTemplates) -> List[InstallStep]:
        steps: List[InstallStep] = []
        for package, version in dependencies.items():
            key, template = templates.select(version)
            words = render_install_command(template, package, version)
            if not words:
                raise MissingRequiredFieldError(key, hint="It renders to an empty command.")
            steps.append(InstallStep(package=package, version=version, template_key=key, words=tuple(words)))
        return steps

    def install_all(self, dependencies: Mapping[str, str], templates: InstallTemplates) -> InstallReport:
        # Every template is checked before the first subprocess starts.
        planned = self.plan(dependencies, templates)
        report = InstallReport()
        for step in planned:
            report.steps.append(self._execute(step))
        return report

    def install_one(self, package: str, version: str, templates: InstallTemplates) -> InstallStep:
        (step,) = self.plan({package: version}, templates)
        return self._execute(step)

    def _execute(self, step: InstallStep) -> InstallStep:
        command = self._composer.compose_line(self._shell, step.words)
        started = time.monotonic()
        result = self._dispatcher.spawn(command, SpawnMode.CAPTURE, timeout=self._timeout)
        finished = InstallStep(
            package=step.package,
            version=step.version,
            template_key=step.template_key,
            words=step.words,
            exit_code=result.exit_code,
            duration_ms=(time.monotonic() - started) * 1000.0,
        )
        if self._observer is not None:
            self._observer(finished)
        if not result.ok:
            raise InstallFailedError(
                step.package,
                step.command,
                exit_code=result.exit_code,
                output=result.output,
                timed_out=result.timed_out,
            )
        return finished


__all__ = [
    "DependencyInstaller",
    "InstallReport",
    "InstallStep",
    "PACKAGE_PLACEHOLDER",
    "VERSION_PLACEHOLDER",
    "render_install_command",
]
