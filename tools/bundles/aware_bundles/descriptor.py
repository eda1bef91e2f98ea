"""Package descriptor loading (JSON, falling back to YAML)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import ValidationError

from .errors import ClassificationError
from .schemas import PackageDescriptor


def load_payload(path: Path) -> Dict[str, Any]:
    """Parse a JSON or YAML mapping from ``path``."""

    content = path.read_text(encoding="utf-8")
    try:
        data = json.loads(content)
    except json.JSONDecodeError:
        data = yaml.safe_load(content)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected object at root of {path}.")
    return data


def load_descriptor(path: Path) -> PackageDescriptor:
    """Read the package descriptor stored at ``path``.

    Any read, parse or validation failure is a build-time error and surfaces
    as :class:`ClassificationError`.
    """

    try:
        payload = load_payload(path)
        return PackageDescriptor.model_validate(payload)
    except (OSError, yaml.YAMLError, ValueError, ValidationError) as exc:
        raise ClassificationError(f"Invalid package descriptor at {path}: {exc}") from exc


__all__ = ["load_descriptor", "load_payload"]
