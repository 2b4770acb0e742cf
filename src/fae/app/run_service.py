"""Orchestration of the fae commands: start, install, install-deps and run."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence

from fae.app.composer import CommandComposer, ResolvedCommand
from fae.app.dispatcher import DispatchResult, ExecutionDispatcher, SpawnMode
from fae.app.installer import DependencyInstaller, InstallReport, InstallStep
from fae.domain.errors import UnknownScriptError
from fae.domain.languages import LanguageRegistry
from fae.domain.lock import LockStatus, ProjectLock
from fae.domain.manifest import LATEST, Manifest
from fae.domain.project import ProjectId
from fae.domain.shells import ShellRegistry, ShellSpec
from fae.settings import RuntimeSettings
from fae.utils.telemetry import record_event, record_structured_event

DispatcherFactory = Callable[[ProjectId], ExecutionDispatcher]


@dataclass(frozen=True)
class StartResult:
    command: ResolvedCommand
    dispatch: DispatchResult
    bootstrap: Optional[InstallReport] = None

    @property
    def exit_code(self) -> int:
        if self.dispatch.exit_code is None:
            return 0
        return self.dispatch.exit_code


def _default_dispatcher(project_id: ProjectId) -> ExecutionDispatcher:
    return ExecutionDispatcher(project_id.root)


class RunService:
    def __init__(
        self,
        settings: RuntimeSettings,
        *,
        languages: LanguageRegistry | None = None,
        shells: ShellRegistry | None = None,
        dispatcher_factory: DispatcherFactory = _default_dispatcher,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._settings = settings
        self._languages = languages or LanguageRegistry.default()
        self._shells = shells or ShellRegistry.default()
        self._dispatcher_factory = dispatcher_factory
        self._clock = clock

    def start(self, project_id: ProjectId, *, wait: bool | None = None) -> StartResult:
        manifest = Manifest.load(project_id)
        entry = manifest.require("main")
        interpreter = self._languages.resolve(manifest.require("language"))
        shell = self._shells.resolve(manifest.shell)

        bootstrap = self._bootstrap(project_id, manifest, shell)
        # Composed after the sweep so the output stamp is the launch time.
        command = self._composer(project_id).compose(interpreter, entry, shell, manifest.output_policy, manifest.args)

        if wait is None:
            wait = manifest.wait_for_exit
        mode = SpawnMode.WAIT if wait else SpawnMode.DETACHED
        dispatch = self._dispatcher_factory(project_id).spawn(command, mode)
        record_event(
            self._settings,
            "start",
            {
                "project": str(project_id.root),
                "language": interpreter.name,
                "shell": shell.name,
                "mode": mode.value,
                "exit_code": dispatch.exit_code,
            },
            component="dispatcher",
        )
        return StartResult(command=command, dispatch=dispatch, bootstrap=bootstrap)

    def install(self, project_id: ProjectId, package: str, version: str = LATEST) -> InstallStep:
        manifest = Manifest.load(project_id)
        shell = self._shells.resolve(manifest.shell)
        # Written before installing; a failing install leaves the entry in place.
        manifest.set_dependency(package, version)
        manifest.store()
        step = self._installer(project_id, manifest, shell).install_one(package, version, manifest.install_templates)
        record_event(
            self._settings,
            "install",
            {"project": str(project_id.root), "package": package, "version": version},
            status="ok",
            component="installer",
        )
        return step

    def install_deps(self, project_id: ProjectId) -> InstallReport:
        manifest = Manifest.load(project_id)
        shell = self._shells.resolve(manifest.shell)
        lock = ProjectLock(project_id)
        lock.ensure()
        return self._sweep(project_id, manifest, shell, lock)

    def run_script(self, project_id: ProjectId, name: str, extra_args: Sequence[str] = ()) -> int:
        manifest = Manifest.load(project_id)
        scripts = manifest.scripts
        if name not in scripts:
            raise UnknownScriptError(name, sorted(scripts))
        shell = self._shells.resolve(manifest.shell)
        words = [scripts[name], *(shell.quote(arg) for arg in extra_args)]
        command = self._composer(project_id).compose_line(shell, words)
        dispatch = self._dispatcher_factory(project_id).spawn(command, SpawnMode.WAIT)
        exit_code = dispatch.exit_code or 0
        record_event(
            self._settings,
            "run",
            {"project": str(project_id.root), "script": name, "exit_code": exit_code},
            component="dispatcher",
        )
        return exit_code

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _bootstrap(self, project_id: ProjectId, manifest: Manifest, shell: ShellSpec) -> Optional[InstallReport]:
        lock = ProjectLock(project_id)
        state = lock.ensure()
        if state.status is LockStatus.INSTALLED:
            return None
        return self._sweep(project_id, manifest, shell, lock)

    def _sweep(self, project_id: ProjectId, manifest: Manifest, shell: ShellSpec, lock: ProjectLock) -> InstallReport:
        dependencies = manifest.dependencies
        try:
            report = self._installer(project_id, manifest, shell).install_all(dependencies, manifest.install_templates)
        except Exception:
            record_structured_event(
                self._settings,
                "install.sweep",
                payload={"project": str(project_id.root), "dependencies": len(dependencies)},
                level="error",
                status="fail",
                component="installer",
            )
            raise
        lock.mark_installed()
        record_structured_event(
            self._settings,
            "install.sweep",
            payload={"project": str(project_id.root), "packages": report.packages},
            status="ok",
            component="installer",
        )
        return report

    def _installer(self, project_id: ProjectId, manifest: Manifest, shell: ShellSpec) -> DependencyInstaller:
        timeout = manifest.installation_timeout or self._settings.effective_install_timeout()

        def observe(step: InstallStep) -> None:
            record_structured_event(
                self._settings,
                "install.step",
                payload={"package": step.package, "version": step.version, "exit_code": step.exit_code},
                status="ok" if step.exit_code == 0 else "fail",
                component="installer",
                duration_ms=step.duration_ms,
            )

        return DependencyInstaller(
            self._composer(project_id),
            self._dispatcher_factory(project_id),
            shell,
            timeout=timeout,
            observer=observe,
        )

    def _composer(self, project_id: ProjectId) -> CommandComposer:
        return CommandComposer(project_id.root, clock=self._clock)


__all__ = ["RunService", "StartResult"]
