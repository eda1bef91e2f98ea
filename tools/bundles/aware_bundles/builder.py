"""Build orchestration: classify the source tree, hand plans to a backend, persist the manifest."""

from __future__ import annotations

import gzip
import logging
import shutil
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from .classifier import ClassificationResult, FolderClassification, classify_tree, find_bundle_target
from .errors import ClassificationError
from .layout import BundleLayout, Variant
from .manifest import dump_manifest, manifest_path, update_manifest
from .schemas import BundleManifest
from .tree import SourceTree, scan_tree

logger = logging.getLogger(__name__)

FILES = "files"
PACKAGE = "package"


@dataclass(slots=True)
class BundleConfig:
    """Configuration describing one source tree and where its bundles go."""

    input_dir: Path
    output_dir: Path
    version: Optional[str] = None
    apps_name: Optional[str] = "apps"
    packages_name: str = "packages"
    framework_name: str = "framework"
    descriptor_name: str = "package.bundle"
    build_dev: bool = True
    build_min: bool = True

    @property
    def layout(self) -> BundleLayout:
        return BundleLayout(version=self.version, apps_name=self.apps_name, packages_name=self.packages_name)

    @property
    def manifest_path(self) -> Path:
        return manifest_path(self.output_dir)


@dataclass(slots=True)
class ArtifactRequest:
    """One physical artifact the backend must write at ``target``."""

    kind: str
    plan: FolderClassification
    target: Path
    minify: bool
    exposes: Dict[Path, str] = field(default_factory=dict)


class BundlingBackend(Protocol):
    def bundle(self, request: ArtifactRequest) -> None:
        ...


@dataclass(slots=True)
class BuildResult:
    manifest_path: Path
    manifest: BundleManifest
    classifications: List[FolderClassification]
    artifacts: List[Path] = field(default_factory=list)
    scope: str = "/"

    @property
    def keys(self) -> List[str]:
        return [item.key for item in self.classifications]


def compress_artifact(source: Path, target: Optional[Path] = None) -> Path:
    """Gzip ``source`` next to itself (``bundle.min.js`` -> ``bundle.min.js.gz``)."""

    destination = target or source.with_name(source.name + ".gz")
    with source.open("rb") as reader, gzip.open(destination, "wb") as writer:
        shutil.copyfileobj(reader, writer)
    return destination


class BundleBuilder:
    """Runs full and incremental classification passes for one source tree."""

    def __init__(self, config: BundleConfig, backend: Optional[BundlingBackend] = None) -> None:
        self.config = config
        self.backend = backend
        self._lock = threading.Lock()

    def scan(self) -> SourceTree:
        return scan_tree(self.config.input_dir, descriptor_name=self.config.descriptor_name)

    def build(self) -> BuildResult:
        """Classify every folder and replace the persisted manifest."""

        with self._lock:
            tree = self.scan()
            result = classify_tree(tree, framework_name=self.config.framework_name)
            artifacts = self._produce(result)
            manifest = result.manifest
            path = dump_manifest(manifest, self.config.manifest_path)
            logger.info("Wrote manifest with %d folders to %s", len(manifest), path)
            return BuildResult(
                manifest_path=path,
                manifest=manifest,
                classifications=result.classifications,
                artifacts=artifacts,
            )

    def update(self, changed_path: Path | str) -> BuildResult:
        """Reclassify the folder affected by ``changed_path`` and merge it into the manifest.

        Only keys at or below the reclassified folder change; keys that no
        longer produce artifacts are removed. A change inside the framework
        reclassifies everything, since every folder excludes framework code.
        """

        with self._lock:
            tree = self.scan()
            folder_id = self._nearest_folder(tree, Path(changed_path))
            framework_id = tree.child(0, self.config.framework_name)
            if framework_id is not None and tree.is_within(folder_id, framework_id):
                scope_id = 0
            else:
                scope_id = find_bundle_target(tree, folder_id, framework_name=self.config.framework_name)
            scope = tree.key(scope_id)
            logger.info("Change to %s rebuilds %s", changed_path, scope)

            result = classify_tree(tree, subtree=scope_id, framework_name=self.config.framework_name)
            artifacts = self._produce(result)
            manifest = update_manifest(
                self.config.manifest_path,
                {item.key: item.record for item in result.classifications},
                scope=scope,
            )
            return BuildResult(
                manifest_path=self.config.manifest_path,
                manifest=manifest,
                classifications=result.classifications,
                artifacts=artifacts,
                scope=scope,
            )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _nearest_folder(self, tree: SourceTree, changed_path: Path) -> int:
        input_dir = Path(self.config.input_dir).resolve()
        candidate = changed_path if changed_path.is_absolute() else input_dir / changed_path
        candidate = candidate.resolve()
        try:
            relative = candidate.relative_to(input_dir)
        except ValueError as exc:
            raise ClassificationError(f"{changed_path} is outside {input_dir}") from exc

        parts = list(relative.parts)
        if not candidate.is_dir() and parts:
            parts.pop()
        while True:
            node_id = tree.find(0, "/".join(parts))
            if node_id is not None:
                return node_id
            parts.pop()

    def _produce(self, result: ClassificationResult) -> List[Path]:
        if self.backend is None:
            return []
        artifacts: List[Path] = []
        for plan in result.classifications:
            if plan.has_file_bundle:
                artifacts.extend(self._produce_kind(FILES, plan))
            if plan.has_modules:
                artifacts.extend(self._produce_kind(PACKAGE, plan))
        return artifacts

    def _produce_kind(self, kind: str, plan: FolderClassification) -> List[Path]:
        layout = self.config.layout
        output_dir = Path(self.config.output_dir)

        def target(variant: Variant) -> Path:
            if kind == FILES:
                return layout.file_bundle_target(output_dir, plan.key, variant)
            return layout.package_bundle_target(output_dir, plan.key, plan.version, variant)

        exposes = self._exposes(plan) if kind == FILES and not plan.entries else {}
        written: List[Path] = []
        if self.config.build_dev:
            written.append(self._request(kind, plan, target(Variant.UNOPTIMIZED), False, exposes))
        if self.config.build_min:
            minified = self._request(kind, plan, target(Variant.MINIFIED), True, exposes)
            written.append(minified)
            written.append(compress_artifact(minified, target(Variant.COMPRESSED)))
        return written

    def _request(self, kind: str, plan: FolderClassification, target: Path, minify: bool, exposes: Dict[Path, str]) -> Path:
        target.parent.mkdir(parents=True, exist_ok=True)
        request = ArtifactRequest(kind=kind, plan=plan, target=target, minify=minify, exposes=exposes)
        self.backend.bundle(request)  # type: ignore[union-attr]
        logger.debug("Bundled %s artifact %s", kind, target)
        return target

    def _exposes(self, plan: FolderClassification) -> Dict[Path, str]:
        input_dir = Path(self.config.input_dir).resolve()
        exposes: Dict[Path, str] = {}
        for path in plan.files:
            try:
                exposes[path] = "/" + path.resolve().relative_to(input_dir).as_posix()
            except ValueError:
                exposes[path] = path.as_posix()
        return exposes


__all__ = [
    "ArtifactRequest",
    "BuildResult",
    "BundleBuilder",
    "BundleConfig",
    "BundlingBackend",
    "compress_artifact",
]
