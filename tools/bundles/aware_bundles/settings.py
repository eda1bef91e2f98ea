"""File-based bundle settings."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from .builder import BundleConfig
from .descriptor import load_payload


class BundleSettings(BaseModel):
    """Settings document (JSON or YAML) mirroring :class:`BundleConfig`."""

    input_dir: Optional[str] = None
    output_dir: Optional[str] = None
    version: Optional[str] = None
    apps_name: Optional[str] = "apps"
    packages_name: str = "packages"
    framework_name: str = "framework"
    descriptor_name: str = "package.bundle"
    build_dev: bool = True
    build_min: bool = True
    base_url: str = Field(default="/", description="URL prefix for generated script tags.")

    model_config = ConfigDict(extra="forbid")

    def to_config(self, workspace: Path) -> BundleConfig:
        if not self.input_dir or not self.output_dir:
            raise ValueError("Bundle settings require both input_dir and output_dir.")
        return BundleConfig(
            input_dir=_resolve(self.input_dir, workspace),
            output_dir=_resolve(self.output_dir, workspace),
            version=self.version or None,
            apps_name=self.apps_name or None,
            packages_name=self.packages_name,
            framework_name=self.framework_name,
            descriptor_name=self.descriptor_name,
            build_dev=self.build_dev,
            build_min=self.build_min,
        )


def load_settings(path: Optional[Path]) -> BundleSettings:
    if path is None:
        return BundleSettings()
    try:
        payload = load_payload(path)
    except (OSError, yaml.YAMLError) as exc:
        raise ValueError(f"Unable to read bundle settings at {path}: {exc}") from exc
    return BundleSettings.model_validate(payload)


def _resolve(value: str, workspace: Path) -> Path:
    path = Path(value)
    if not path.is_absolute():
        path = workspace / path
    return path.resolve()


__all__ = ["BundleSettings", "load_settings"]
