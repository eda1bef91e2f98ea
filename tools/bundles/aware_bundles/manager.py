"""Serve-time facade over a persisted bundle manifest."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

from .classifier import DEFAULT_FRAMEWORK_NAME
from .errors import ManifestUnavailableError
from .layout import Variant
from .manifest import load_manifest, manifest_path
from .resolver import ScriptReferenceResolver
from .schemas import BundleManifest

logger = logging.getLogger(__name__)


class BundleManager:
    """Answers script-tag queries for bundles produced by a build.

    The manifest is read once at construction. A missing or corrupt manifest
    leaves the manager in degraded mode where every query resolves to nothing.
    """

    def __init__(
        self,
        root_bundle_path: Path | str,
        base_url: str = "/",
        version: Optional[str] = None,
        name: Optional[str] = "apps",
        packages_name: str = "packages",
        *,
        framework_name: str = DEFAULT_FRAMEWORK_NAME,
    ) -> None:
        self.root_bundle_path = Path(root_bundle_path)
        self.resolver = ScriptReferenceResolver(
            base_url=base_url,
            version=version or None,
            apps_name=name or None,
            packages_name=packages_name,
            framework_name=framework_name,
        )
        self.manifest = BundleManifest({})
        self._degraded = True
        self.reload()

    @property
    def degraded(self) -> bool:
        """True when the last load failed, not merely when the manifest is empty."""

        return self._degraded

    def reload(self) -> BundleManifest:
        """Re-read the manifest after a build; in-flight callers keep the old one."""

        path = manifest_path(self.root_bundle_path)
        try:
            manifest = load_manifest(path)
        except ManifestUnavailableError as exc:
            logger.warning("Serving without bundle manifest: %s", exc)
            self.manifest = BundleManifest({})
            self._degraded = True
        else:
            self.manifest = manifest
            self._degraded = False
        return self.manifest

    def create_script_tags(
        self,
        app_path: Optional[str],
        variant: Union[Variant, str, None] = Variant.UNOPTIMIZED,
        attribute: Optional[str] = None,
    ) -> List[str]:
        return self.resolver.resolve(self.manifest, app_path, variant, attribute)

    def is_app(self, app_path: Optional[str]) -> bool:
        return self.resolver.is_application_entry(self.manifest, app_path)


def create_manager(root_bundle_path: Path | str, **options: object) -> BundleManager:
    """Create a new :class:`BundleManager`."""

    return BundleManager(root_bundle_path, **options)  # type: ignore[arg-type]


__all__ = ["BundleManager", "create_manager"]
