"""Layered bundle topology: folder classification, manifest and script references."""

__version__ = "0.1.0"

from .builder import ArtifactRequest, BuildResult, BundleBuilder, BundleConfig, BundlingBackend
from .classifier import FolderClassification, classify_tree, find_bundle_target
from .errors import BundleError, ClassificationError, ManifestUnavailableError
from .layout import BundleLayout, Variant
from .manager import BundleManager, create_manager
from .manifest import dump_manifest, load_manifest, read_manifest, update_manifest
from .resolver import ScriptReferenceResolver
from .schemas import BundleManifest, CapabilityRecord, PackageDescriptor, PackCapability, normalize_key
from .tree import SourceTree, scan_tree

__all__ = [
    "__version__",
    "ArtifactRequest",
    "BuildResult",
    "BundleBuilder",
    "BundleConfig",
    "BundlingBackend",
    "FolderClassification",
    "classify_tree",
    "find_bundle_target",
    "BundleError",
    "ClassificationError",
    "ManifestUnavailableError",
    "BundleLayout",
    "Variant",
    "BundleManager",
    "create_manager",
    "dump_manifest",
    "load_manifest",
    "read_manifest",
    "update_manifest",
    "ScriptReferenceResolver",
    "BundleManifest",
    "CapabilityRecord",
    "PackageDescriptor",
    "PackCapability",
    "normalize_key",
    "SourceTree",
    "scan_tree",
]
