"""Pydantic models describing package descriptors and the bundle manifest."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator, model_validator


class PackageModule(BaseModel):
    """One third-party module declared by a package descriptor."""

    require: str
    init: Optional[str] = Field(default=None, description="Optional module executed when the package loads.")

    model_config = ConfigDict(extra="forbid")


class PackageDescriptor(BaseModel):
    """Folder-level declaration of third-party modules and explicit entries."""

    version: Optional[str] = None
    modules: List[PackageModule] = Field(default_factory=list)
    app: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @field_validator("version", mode="before")
    @classmethod
    def _coerce_version(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("modules", mode="before")
    @classmethod
    def _coerce_modules(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [{"require": item} if isinstance(item, str) else item for item in value]
        return value

    @field_validator("app", mode="before")
    @classmethod
    def _coerce_app(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @property
    def module_names(self) -> List[str]:
        return [module.require for module in self.modules]

    @property
    def has_modules(self) -> bool:
        return bool(self.modules)

    @property
    def declares_entry(self) -> bool:
        return bool(self.app)


class PackCapability(BaseModel):
    version: Optional[str] = None
    has_modules: bool = Field(default=False, alias="modules")

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)


class CapabilityRecord(BaseModel):
    """What the build produced for one folder."""

    has_file_bundle: bool = Field(default=False, alias="files")
    is_application_entry: bool = Field(default=False, alias="isApp")
    pack: PackCapability = Field(default_factory=PackCapability)

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    def json_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def normalize_key(path: Optional[str]) -> str:
    """Return the manifest key for ``path``: lowercase, forward slashes, wrapped in separators."""

    if not path:
        return "/"
    parts = [part for part in path.replace("\\", "/").split("/") if part and part != "."]
    stack: List[str] = []
    for part in parts:
        if part == "..":
            if stack:
                stack.pop()
            continue
        stack.append(part.lower())
    if not stack:
        return "/"
    return "/" + "/".join(stack) + "/"


class BundleManifest(RootModel[Dict[str, CapabilityRecord]]):
    """Flat folder-key to capability-record index."""

    @model_validator(mode="before")
    @classmethod
    def _normalize_keys(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {normalize_key(str(key)): record for key, record in value.items()}
        return value

    def get(self, key: str) -> Optional[CapabilityRecord]:
        return self.root.get(key)

    def keys(self) -> List[str]:
        return sorted(self.root)

    def __contains__(self, key: object) -> bool:
        return key in self.root

    def __len__(self) -> int:
        return len(self.root)

    def json_dict(self) -> Dict[str, Any]:
        return {key: self.root[key].json_dict() for key in sorted(self.root)}


__all__ = [
    "BundleManifest",
    "CapabilityRecord",
    "PackCapability",
    "PackageDescriptor",
    "PackageModule",
    "normalize_key",
]
