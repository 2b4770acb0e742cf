"""Language registry: maps a manifest language tag to an interpreter invocation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from fae.domain.errors import UnsupportedLanguageError
from fae.resources import load_yaml_resource

LANGUAGES_RESOURCE = "languages.yaml"


@dataclass(frozen=True)
class InterpreterTemplate:
    """Interpreter executable plus the arguments that precede the entry file."""

    name: str
    executable: str
    arguments: Tuple[str, ...] = ()

    def render(self, entry: str) -> List[str]:
        return [self.executable, *self.arguments, entry]


def normalise_tag(tag: str) -> str:
    return tag.strip().lower()


class LanguageRegistry:
    def __init__(self, templates: Mapping[str, InterpreterTemplate]) -> None:
        self._templates = {normalise_tag(alias): template for alias, template in templates.items()}

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "LanguageRegistry":
        languages = payload.get("languages", {})
        if not isinstance(languages, dict):
            raise ValueError("Invalid language table: languages is not a mapping")
        templates: Dict[str, InterpreterTemplate] = {}
        for name, entry in languages.items():
            if not isinstance(entry, dict) or not isinstance(entry.get("executable"), str):
                raise ValueError(f"Language {name} must define an executable")
            arguments = entry.get("arguments", [])
            if not isinstance(arguments, list) or not all(isinstance(arg, str) for arg in arguments):
                raise ValueError(f"Language {name} arguments must be a list of strings")
            template = InterpreterTemplate(name=name, executable=entry["executable"], arguments=tuple(arguments))
            for alias in entry.get("aliases", [name]):
                templates[str(alias)] = template
        return cls(templates)

    @classmethod
    def default(cls) -> "LanguageRegistry":
        return cls.from_payload(load_yaml_resource(LANGUAGES_RESOURCE))

    def resolve(self, tag: str) -> InterpreterTemplate:
        template = self._templates.get(normalise_tag(tag))
        if template is None:
            raise UnsupportedLanguageError(tag)
        return template

    def tags(self) -> Iterable[str]:
        return sorted(self._templates)


__all__ = ["InterpreterTemplate", "LanguageRegistry", "normalise_tag"]
