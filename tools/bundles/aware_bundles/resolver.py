"""Script reference resolution against a loaded manifest.

Resolution is a pure read of the manifest: the root pair comes first, the
framework pair second, then every folder from the shallowest ancestor of the
requested path down to the path itself. Folders without a record contribute
nothing, and a missing manifest resolves to an empty list.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Union

from .classifier import DEFAULT_FRAMEWORK_NAME
from .layout import BundleLayout, Variant
from .schemas import BundleManifest, CapabilityRecord, normalize_key

ROOT_KEY = "/"


def format_script_tag(src: str, attribute: Optional[str] = None) -> str:
    extra = f" {attribute}" if attribute else ""
    return f'<script src="{src}"{extra}></script>'


def _coerce_variant(variant: Union[Variant, str, None]) -> Variant:
    if variant is None:
        return Variant.UNOPTIMIZED
    if isinstance(variant, Variant):
        return variant
    try:
        return Variant(str(variant).lower())
    except ValueError:
        return Variant.UNOPTIMIZED


def _normalize_base_url(base_url: Optional[str]) -> str:
    if not base_url:
        return "/"
    return base_url if base_url.endswith("/") else base_url + "/"


def _parent_key(key: str) -> str:
    trimmed = key.rstrip("/")
    head = trimmed[: trimmed.rfind("/") + 1]
    return head or ROOT_KEY


@dataclass(frozen=True, slots=True)
class ScriptReferenceResolver:
    """Turns manifest records into ordered ``<script>`` references."""

    base_url: str = "/"
    version: Optional[str] = None
    apps_name: Optional[str] = "apps"
    packages_name: str = "packages"
    framework_name: str = DEFAULT_FRAMEWORK_NAME

    @property
    def layout(self) -> BundleLayout:
        return BundleLayout(version=self.version, apps_name=self.apps_name, packages_name=self.packages_name)

    @property
    def framework_key(self) -> str:
        return normalize_key(self.framework_name)

    def references(
        self,
        key: str,
        record: Optional[CapabilityRecord],
        variant: Variant = Variant.UNOPTIMIZED,
    ) -> List[str]:
        """Return the (package, file) sources of one folder, either possibly absent."""

        if record is None:
            return []
        base = _normalize_base_url(self.base_url)
        layout = self.layout
        sources: List[str] = []
        if record.pack.has_modules:
            sources.append(base + layout.package_bundle_path(key, record.pack.version, variant))
        if record.has_file_bundle:
            sources.append(base + layout.file_bundle_path(key, variant))
        return sources

    def resolve_sources(
        self,
        manifest: Optional[BundleManifest],
        path: Optional[str],
        variant: Union[Variant, str, None] = Variant.UNOPTIMIZED,
    ) -> List[str]:
        if manifest is None or len(manifest) == 0:
            return []
        selected = _coerce_variant(variant)
        framework_key = self.framework_key

        result = self.references(ROOT_KEY, manifest.get(ROOT_KEY), selected)
        result += self.references(framework_key, manifest.get(framework_key), selected)

        chain: List[str] = []
        current = normalize_key(path)
        while current != ROOT_KEY:
            if current != framework_key:
                chain = self.references(current, manifest.get(current), selected) + chain
            current = _parent_key(current)
        return result + chain

    def resolve(
        self,
        manifest: Optional[BundleManifest],
        path: Optional[str],
        variant: Union[Variant, str, None] = Variant.UNOPTIMIZED,
        attribute: Optional[str] = None,
    ) -> List[str]:
        """Return the script tags a page at ``path`` must load, in load order."""

        return [format_script_tag(src, attribute) for src in self.resolve_sources(manifest, path, variant)]

    def is_application_entry(self, manifest: Optional[BundleManifest], path: Optional[str]) -> bool:
        if manifest is None:
            return False
        record = manifest.get(normalize_key(path))
        return bool(record and record.is_application_entry)


__all__ = ["ROOT_KEY", "ScriptReferenceResolver", "format_script_tag"]
