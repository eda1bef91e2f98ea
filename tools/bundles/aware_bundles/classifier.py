"""Topology classification: which folders produce bundles and what each excludes.

Each folder is classified from its own files, its own package descriptor and
the framework subtree. Files and modules owned by a strict ancestor, or by the
framework subtree, are treated as already loaded and are excluded from the
folder's artifacts. Once a folder is an application entry, its descendants
fold into it and are never classified on their own.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Pattern

from .descriptor import load_descriptor
from .schemas import BundleManifest, CapabilityRecord, PackageDescriptor, PackageModule, PackCapability
from .tree import SourceTree

logger = logging.getLogger(__name__)

APP_FILE_PATTERN = re.compile(r"\.app\.js$", re.IGNORECASE)
DEFAULT_FRAMEWORK_NAME = "framework"


@dataclass(slots=True)
class FolderClassification:
    """Bundle plan for one folder, handed to the bundling backend."""

    key: str
    node_id: int
    folder: Path
    entries: List[Path] = field(default_factory=list)
    files: List[Path] = field(default_factory=list)
    excluded_files: List[Path] = field(default_factory=list)
    modules: List[PackageModule] = field(default_factory=list)
    excluded_modules: List[str] = field(default_factory=list)
    version: Optional[str] = None

    @property
    def is_application_entry(self) -> bool:
        return bool(self.entries)

    @property
    def has_file_bundle(self) -> bool:
        return bool(self.entries or self.files)

    @property
    def has_modules(self) -> bool:
        return bool(self.modules)

    @property
    def record(self) -> CapabilityRecord:
        return CapabilityRecord(
            has_file_bundle=self.has_file_bundle,
            is_application_entry=self.is_application_entry,
            pack=PackCapability(version=self.version, has_modules=self.has_modules),
        )


@dataclass(slots=True)
class ClassificationContext:
    """Per-pass caches, so ancestors are read once however many descendants they have."""

    tree: SourceTree
    root_id: int
    framework_id: Optional[int]
    app_pattern: Pattern[str] = APP_FILE_PATTERN
    descriptors: Dict[int, Optional[PackageDescriptor]] = field(default_factory=dict)
    app_folders: Dict[int, bool] = field(default_factory=dict)
    framework_files: Optional[List[Path]] = None

    @classmethod
    def create(
        cls,
        tree: SourceTree,
        root_id: Optional[int] = None,
        *,
        framework_name: str = DEFAULT_FRAMEWORK_NAME,
        app_pattern: Pattern[str] = APP_FILE_PATTERN,
    ) -> "ClassificationContext":
        root = 0 if root_id is None else root_id
        return cls(
            tree=tree,
            root_id=root,
            framework_id=tree.child(root, framework_name),
            app_pattern=app_pattern,
        )

    def descriptor(self, node_id: int) -> Optional[PackageDescriptor]:
        if node_id not in self.descriptors:
            node = self.tree.node(node_id)
            descriptor = None
            if node.descriptor:
                descriptor = load_descriptor(self.tree.fs_path(node_id) / node.descriptor)
            self.descriptors[node_id] = descriptor
        return self.descriptors[node_id]

    def app_files(self, node_id: int) -> List[Path]:
        folder = self.tree.fs_path(node_id)
        return [folder / name for name in self.tree.node(node_id).files if self.app_pattern.search(name)]

    def library_files(self, node_id: int) -> List[Path]:
        folder = self.tree.fs_path(node_id)
        return [folder / name for name in self.tree.node(node_id).files if not self.app_pattern.search(name)]

    def declared_entries(self, node_id: int) -> List[Path]:
        descriptor = self.descriptor(node_id)
        if descriptor is None:
            return []
        folder = self.tree.fs_path(node_id)
        return [Path(os.path.normpath(folder / entry)) for entry in descriptor.app]

    def is_app_folder(self, node_id: int) -> bool:
        if node_id not in self.app_folders:
            self.app_folders[node_id] = bool(self.app_files(node_id) or self.declared_entries(node_id))
        return self.app_folders[node_id]

    def in_framework(self, node_id: int) -> bool:
        return self.framework_id is not None and self.tree.is_within(node_id, self.framework_id)

    def subtree_files(self, node_id: int) -> tuple[List[Path], List[Path]]:
        """Return (app files, library files) of every folder in the subtree."""

        apps: List[Path] = []
        libs: List[Path] = []
        for descendant in self.tree.walk(node_id):
            apps.extend(self.app_files(descendant))
            libs.extend(self.library_files(descendant))
        return apps, libs

    def framework_all_files(self) -> List[Path]:
        if self.framework_files is None:
            if self.framework_id is None:
                self.framework_files = []
            else:
                apps, libs = self.subtree_files(self.framework_id)
                self.framework_files = apps + libs
        return self.framework_files

    def framework_modules(self) -> List[str]:
        if self.framework_id is None:
            return []
        descriptor = self.descriptor(self.framework_id)
        return descriptor.module_names if descriptor else []


def _merge_unique(*groups: List[Path]) -> List[Path]:
    seen = set()
    merged: List[Path] = []
    for group in groups:
        for item in group:
            if item not in seen:
                seen.add(item)
                merged.append(item)
    return merged


def classify_folder(context: ClassificationContext, node_id: int) -> Optional[FolderClassification]:
    """Classify one folder, or return ``None`` when it produces no artifact."""

    tree = context.tree
    is_framework = node_id == context.framework_id
    if context.in_framework(node_id) and not is_framework:
        return None

    ancestors = list(tree.ancestors(node_id, context.root_id))
    if any(context.is_app_folder(ancestor) for ancestor in ancestors):
        return None

    descriptor = context.descriptor(node_id)
    if is_framework:
        app_files, library_files = context.subtree_files(node_id)
    else:
        app_files = context.app_files(node_id)
        library_files = context.library_files(node_id)

    entries = _merge_unique(app_files, context.declared_entries(node_id))
    if entries and not is_framework:
        folded_apps, folded_libs = context.subtree_files(node_id)
        nested_apps = [path for path in folded_apps if path not in entries]
        library_files = _merge_unique(library_files, folded_libs, nested_apps)
    library_files = [path for path in library_files if path not in entries]

    excluded_files: List[Path] = []
    excluded_modules: List[str] = []
    for ancestor in reversed(ancestors):
        excluded_files.extend(context.library_files(ancestor) + context.app_files(ancestor))
        ancestor_descriptor = context.descriptor(ancestor)
        if ancestor_descriptor is not None:
            excluded_modules.extend(ancestor_descriptor.module_names)
    framework_folded = bool(entries) and context.framework_id is not None and tree.is_within(context.framework_id, node_id)
    if not is_framework and not framework_folded:
        excluded_files.extend(context.framework_all_files())
        excluded_modules.extend(context.framework_modules())

    classification = FolderClassification(
        key=tree.key(node_id, context.root_id),
        node_id=node_id,
        folder=tree.fs_path(node_id),
        entries=entries,
        files=library_files,
        excluded_files=_merge_unique(excluded_files),
        modules=list(descriptor.modules) if descriptor else [],
        excluded_modules=list(dict.fromkeys(excluded_modules)),
        version=descriptor.version if descriptor else None,
    )
    if not (classification.has_file_bundle or classification.has_modules):
        return None
    return classification


@dataclass(slots=True)
class ClassificationResult:
    classifications: List[FolderClassification] = field(default_factory=list)

    @property
    def manifest(self) -> BundleManifest:
        return BundleManifest({item.key: item.record for item in self.classifications})

    def keys(self) -> List[str]:
        return [item.key for item in self.classifications]


def classify_tree(
    tree: SourceTree,
    root_id: Optional[int] = None,
    *,
    subtree: Optional[int] = None,
    framework_name: str = DEFAULT_FRAMEWORK_NAME,
    app_pattern: Pattern[str] = APP_FILE_PATTERN,
) -> ClassificationResult:
    """Classify every folder of the tree (or of ``subtree`` only)."""

    context = ClassificationContext.create(
        tree,
        root_id,
        framework_name=framework_name,
        app_pattern=app_pattern,
    )
    start = context.root_id if subtree is None else subtree
    result = ClassificationResult()
    for node_id in context.tree.walk(start):
        classification = classify_folder(context, node_id)
        if classification is not None:
            result.classifications.append(classification)
    logger.info(
        "Classified %d bundle folders below %s",
        len(result.classifications),
        tree.key(start),
    )
    return result


def find_bundle_target(
    tree: SourceTree,
    folder_id: int,
    root_id: Optional[int] = None,
    *,
    framework_name: str = DEFAULT_FRAMEWORK_NAME,
    app_pattern: Pattern[str] = APP_FILE_PATTERN,
) -> int:
    """Return the folder whose artifacts must be rebuilt when ``folder_id`` changes.

    Anything under the framework maps to the framework folder; otherwise the
    outermost application-entry folder at or above ``folder_id`` (descendants
    of an application entry fold into it); otherwise the folder itself.
    """

    context = ClassificationContext.create(tree, root_id, framework_name=framework_name, app_pattern=app_pattern)
    if context.in_framework(folder_id):
        return context.framework_id  # type: ignore[return-value]
    target = folder_id
    for candidate in [folder_id, *tree.ancestors(folder_id, context.root_id)]:
        if context.is_app_folder(candidate):
            target = candidate
    return target


__all__ = [
    "APP_FILE_PATTERN",
    "ClassificationContext",
    "ClassificationResult",
    "DEFAULT_FRAMEWORK_NAME",
    "FolderClassification",
    "classify_folder",
    "classify_tree",
    "find_bundle_target",
]
