"""Shell registry: maps a manifest shell tag to an executable and its calling convention."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from fae.domain.errors import UnsupportedShellError
from fae.resources import load_yaml_resource

SHELLS_RESOURCE = "shells.yaml"
DEFAULT_SHELL_TAG = "cmd"


class ShellKind(str, Enum):
    DEFAULT = "default"
    POSIX = "posix"
    POWERSHELL = "powershell"
    EXPLICIT = "explicit"


class Quoting(str, Enum):
    POSIX = "posix"
    CMD = "cmd"
    POWERSHELL = "powershell"


_POSIX_ESCAPED = ('\\', '"', '$', '`')
_POWERSHELL_ESCAPED = ('`', '"', '$')


def quote(value: str, style: Quoting) -> str:
    """Wrap ``value`` in double quotes using the escaping rules of ``style``."""

    if style is Quoting.POSIX:
        for char in _POSIX_ESCAPED:
            value = value.replace(char, "\\" + char)
    elif style is Quoting.POWERSHELL:
        for char in _POWERSHELL_ESCAPED:
            value = value.replace(char, "`" + char)
    else:
        # cmd has no escape inside quotes; a literal quote is doubled.
        value = value.replace('"', '""')
    return f'"{value}"'


@dataclass(frozen=True)
class ShellSpec:
    name: str
    kind: ShellKind
    executable: str
    prefix: Tuple[str, ...]
    quoting: Quoting

    def quote(self, value: str) -> str:
        return quote(value, self.quoting)

    def argv(self, command_line: str) -> List[str]:
        return [self.executable, *self.prefix, command_line]


def _is_explicit_executable(tag: str) -> bool:
    return "/" in tag or "\\" in tag


class ShellRegistry:
    def __init__(self, shells: Mapping[str, ShellSpec]) -> None:
        self._shells = {alias.strip().lower(): spec for alias, spec in shells.items()}

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], *, platform: str | None = None) -> "ShellRegistry":
        platform_key = "windows" if (platform or os.name) == "nt" else "posix"
        shells = payload.get("shells", {})
        if not isinstance(shells, dict):
            raise ValueError("Invalid shell table: shells is not a mapping")
        specs: Dict[str, ShellSpec] = {}
        for name, entry in shells.items():
            if not isinstance(entry, dict):
                raise ValueError(f"Shell {name} must be a mapping")
            variant = entry.get(platform_key)
            if not isinstance(variant, dict) or not isinstance(variant.get("executable"), str):
                raise ValueError(f"Shell {name} does not define an executable for {platform_key}")
            spec = ShellSpec(
                name=name,
                kind=ShellKind(entry.get("kind", ShellKind.POSIX.value)),
                executable=variant["executable"],
                prefix=tuple(str(arg) for arg in variant.get("prefix", [])),
                quoting=Quoting(variant.get("quoting", Quoting.POSIX.value)),
            )
            for alias in entry.get("aliases", [name]):
                specs[str(alias)] = spec
        return cls(specs)

    @classmethod
    def default(cls, *, platform: str | None = None) -> "ShellRegistry":
        return cls.from_payload(load_yaml_resource(SHELLS_RESOURCE), platform=platform)

    def resolve(self, tag: str | None) -> ShellSpec:
        if tag is None:
            tag = DEFAULT_SHELL_TAG
        key = tag.strip().lower()
        spec = self._shells.get(key)
        if spec is not None:
            return spec
        if _is_explicit_executable(tag.strip()):
            return ShellSpec(
                name=tag.strip(),
                kind=ShellKind.EXPLICIT,
                executable=tag.strip(),
                prefix=("-c",),
                quoting=Quoting.POSIX,
            )
        raise UnsupportedShellError(tag)

    def tags(self) -> Iterable[str]:
        return sorted(self._shells)


__all__ = [
    "DEFAULT_SHELL_TAG",
    "Quoting",
    "ShellKind",
    "ShellRegistry",
    "ShellSpec",
    "quote",
]
