"""Application services composing, installing and dispatching project commands."""

from .composer import CommandComposer, ResolvedCommand
from .dispatcher import DispatchResult, ExecutionDispatcher, SpawnMode
from .installer import DependencyInstaller, InstallReport, InstallStep
from .run_service import RunService, StartResult

__all__ = [
    "CommandComposer",
    "DependencyInstaller",
    "DispatchResult",
    "ExecutionDispatcher",
    "InstallReport",
    "InstallStep",
    "ResolvedCommand",
    "RunService",
    "SpawnMode",
    "StartResult",
]
