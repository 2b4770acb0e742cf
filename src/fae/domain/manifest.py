"""Domain model for the project manifest (``fae.config.json``)."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Dict, Iterator, List, Optional, Tuple

from jsonschema import Draft202012Validator

from fae.domain.errors import MalformedManifestError, MissingManifestError, MissingRequiredFieldError
from fae.domain.project import ProjectId
from fae.resources import load_json_resource

LATEST = "@latest"
LATEST_TEMPLATE_KEY = "installationCommandLatest"
VERSION_TEMPLATE_KEY = "installationCommandVersion"

_SCHEMA_RESOURCE = "manifest.schema.json"


@lru_cache(maxsize=1)
def _validator() -> Draft202012Validator:
    return Draft202012Validator(load_json_resource(_SCHEMA_RESOURCE))


def iter_schema_errors(payload: Any) -> Iterator[Tuple[str, str]]:
    """Yield (path, message) pairs for schema issues in a manifest payload."""
    for error in _validator().iter_errors(payload):
        path = ".".join(str(item) for item in error.absolute_path)
        yield path, error.message


@dataclass(frozen=True)
class OutputPolicy:
    destination: str
    append: bool = False


@dataclass(frozen=True)
class InstallTemplates:
    latest: Optional[str] = None
    versioned: Optional[str] = None

    def select(self, version: str) -> Tuple[str, str]:
        """Return (manifest key, template) for a dependency version."""
        if version == LATEST:
            key, template = LATEST_TEMPLATE_KEY, self.latest
        else:
            key, template = VERSION_TEMPLATE_KEY, self.versioned
        if not template:
            raise MissingRequiredFieldError(key, hint=f"It is needed to install '{version}' dependencies.")
        return key, template


@dataclass
class Manifest:
    """Parsed manifest. ``raw`` keeps every key so rewrites preserve unknown ones."""

    project_id: ProjectId
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def main(self) -> Optional[str]:
        return self.raw.get("main")

    @property
    def language(self) -> Optional[str]:
        return self.raw.get("language")

    @property
    def shell(self) -> Optional[str]:
        return self.raw.get("shell")

    @property
    def args(self) -> List[str]:
        return list(self.raw.get("args", []))

    @property
    def scripts(self) -> Dict[str, str]:
        return dict(self.raw.get("scripts", {}))

    @property
    def wait_for_exit(self) -> bool:
        return bool(self.raw.get("waitForExit", False))

    @property
    def installation_timeout(self) -> Optional[float]:
        value = self.raw.get("installationTimeout")
        return float(value) if value is not None else None

    @property
    def output_policy(self) -> Optional[OutputPolicy]:
        destination = self.raw.get("sendOutputToFile")
        if not destination:
            return None
        return OutputPolicy(destination=destination, append=bool(self.raw.get("appendOutputForConsecutiveRuns", False)))

    @property
    def dependencies(self) -> Dict[str, str]:
        return dict(self.raw.get("externalDependencies", {}))

    @property
    def install_templates(self) -> InstallTemplates:
        return InstallTemplates(
            latest=self.raw.get(LATEST_TEMPLATE_KEY),
            versioned=self.raw.get(VERSION_TEMPLATE_KEY),
        )

    def require(self, key: str) -> Any:
        value = self.raw.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise MissingRequiredFieldError(key)
        return value

    def set_dependency(self, package: str, version: str) -> None:
        dependencies = dict(self.raw.get("externalDependencies", {}))
        dependencies[package] = version
        self.raw["externalDependencies"] = dependencies

    def store(self) -> None:
        path = self.project_id.manifest_path()
        path.write_text(json.dumps(self.raw, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")

    @classmethod
    def load(cls, project_id: ProjectId) -> "Manifest":
        path = project_id.manifest_path()
        if not path.exists() or path.is_dir():
            raise MissingManifestError(path)
        try:
            data = json.loads(path.read_text("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MalformedManifestError(path, str(exc)) from exc
        if not isinstance(data, dict):
            raise MalformedManifestError(path, "top-level value must be an object")
        errors = list(iter_schema_errors(data))
        if errors:
            location, message = errors[0]
            raise MalformedManifestError(path, f"{location or '<root>'}: {message}")
        return cls(project_id=project_id, raw=data)


__all__ = [
    "InstallTemplates",
    "LATEST",
    "LATEST_TEMPLATE_KEY",
    "Manifest",
    "OutputPolicy",
    "VERSION_TEMPLATE_KEY",
    "iter_schema_errors",
]
