"""Domain exports for manifests, registries and the first-run lock."""

from .errors import FaeError
from .languages import InterpreterTemplate, LanguageRegistry
from .lock import LockState, LockStatus, ProjectLock
from .manifest import LATEST, InstallTemplates, Manifest, OutputPolicy
from .project import LOCK_FILE, MANIFEST_FILE, ProjectId
from .shells import ShellKind, ShellRegistry, ShellSpec

__all__ = [
    "FaeError",
    "InstallTemplates",
    "InterpreterTemplate",
    "LATEST",
    "LOCK_FILE",
    "LanguageRegistry",
    "LockState",
    "LockStatus",
    "MANIFEST_FILE",
    "Manifest",
    "OutputPolicy",
    "ProjectId",
    "ProjectLock",
    "ShellKind",
    "ShellRegistry",
    "ShellSpec",
]
