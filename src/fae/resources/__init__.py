"""Packaged resources for fae."""

from __future__ import annotations

import json
from functools import lru_cache
from importlib import resources
from typing import Any, Dict

import yaml

__all__ = ["load_json_resource", "load_yaml_resource"]


@lru_cache(maxsize=None)
def load_yaml_resource(name: str) -> Dict[str, Any]:
    """Return a YAML document shipped with the package."""

    raw = (resources.files(__name__) / name).read_text("utf-8")
    payload = yaml.safe_load(raw) or {}
    if not isinstance(payload, dict):
        raise ValueError(f"Packaged resource {name} must contain a mapping")
    return payload


@lru_cache(maxsize=None)
def load_json_resource(name: str) -> Dict[str, Any]:
    resource = resources.files(__name__) / name
    with resource.open("r", encoding="utf-8") as handle:
        return json.load(handle)
