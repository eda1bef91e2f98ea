"""Artifact naming shared by the build and the script reference resolver.

Both sides derive paths from :class:`BundleLayout`, so the backend writes
artifacts exactly where the generated script tags point.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

BUNDLE_BASENAME = "bundle"


class Variant(str, Enum):
    """Physical form of a bundle artifact."""

    UNOPTIMIZED = "unoptimized"
    MINIFIED = "minified"
    COMPRESSED = "compressed"

    @property
    def suffix(self) -> str:
        return _SUFFIXES[self]


_SUFFIXES = {
    Variant.UNOPTIMIZED: ".js",
    Variant.MINIFIED: ".min.js",
    Variant.COMPRESSED: ".min.js.gz",
}


def file_bundle_name(variant: Variant) -> str:
    return BUNDLE_BASENAME + variant.suffix


def package_bundle_name(version: Optional[str], variant: Variant) -> str:
    stem = f"{BUNDLE_BASENAME}-{version}" if version else BUNDLE_BASENAME
    return stem + variant.suffix


@dataclass(frozen=True, slots=True)
class BundleLayout:
    """Where application and package artifacts live below the output root."""

    version: Optional[str] = None
    apps_name: Optional[str] = "apps"
    packages_name: str = "packages"

    @property
    def apps_prefix(self) -> str:
        """Version segment, then name segment, each followed by a separator."""

        prefix = ""
        if self.version:
            prefix += f"{self.version}/"
        if self.apps_name:
            prefix += f"{self.apps_name}/"
        return prefix

    def file_bundle_path(self, key: str, variant: Variant) -> str:
        return self.apps_prefix + _folder(key) + file_bundle_name(variant)

    def package_bundle_path(self, key: str, version: Optional[str], variant: Variant) -> str:
        return f"{self.packages_name}/" + _folder(key) + package_bundle_name(version, variant)

    def file_bundle_target(self, output_dir: Path, key: str, variant: Variant) -> Path:
        return Path(output_dir).joinpath(*self.file_bundle_path(key, variant).split("/"))

    def package_bundle_target(self, output_dir: Path, key: str, version: Optional[str], variant: Variant) -> Path:
        return Path(output_dir).joinpath(*self.package_bundle_path(key, version, variant).split("/"))


def _folder(key: str) -> str:
    stripped = key.strip("/")
    return f"{stripped}/" if stripped else ""


__all__ = [
    "BUNDLE_BASENAME",
    "BundleLayout",
    "Variant",
    "file_bundle_name",
    "package_bundle_name",
]
