"""Persisted manifest helpers."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Mapping, Optional

from pydantic import ValidationError

from .errors import ManifestUnavailableError
from .schemas import BundleManifest, CapabilityRecord, normalize_key

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "manifest.json"


def manifest_path(output_dir: Path | str) -> Path:
    return Path(output_dir) / MANIFEST_FILENAME


def load_manifest(path: Path) -> BundleManifest:
    """Load a manifest from JSON, raising when it is missing or malformed."""

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        return BundleManifest.model_validate(payload)
    except FileNotFoundError as exc:
        raise ManifestUnavailableError(f"Manifest not found: {path}") from exc
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as exc:
        raise ManifestUnavailableError(f"Invalid manifest at {path}: {exc}") from exc


def read_manifest(path: Path) -> BundleManifest:
    """Load a manifest for serving; missing or corrupt data yields an empty manifest."""

    try:
        return load_manifest(path)
    except ManifestUnavailableError as exc:
        logger.warning("Serving without bundle manifest: %s", exc)
        return BundleManifest({})


def dump_manifest(manifest: BundleManifest, path: Path) -> Path:
    """Write ``manifest`` to disk, replacing any previous file in one step."""

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_text(json.dumps(manifest.json_dict(), indent=2) + "\n", encoding="utf-8")
    tmp_path.replace(path)
    return path


def merge_manifest(
    manifest: BundleManifest,
    updates: Mapping[str, CapabilityRecord],
    *,
    scope: Optional[str] = None,
    removals: Iterable[str] = (),
) -> BundleManifest:
    """Return a new manifest with ``updates`` applied.

    When ``scope`` is given, existing keys at or below it that are not in
    ``updates`` are dropped: the scope was reclassified and they no longer
    produce artifacts. Keys outside the scope are carried over untouched.
    """

    payload = dict(manifest.root)
    if scope is not None:
        prefix = normalize_key(scope)
        for key in list(payload):
            if key.startswith(prefix) and key not in updates:
                del payload[key]
    for key in removals:
        payload.pop(normalize_key(key), None)
    for key, record in updates.items():
        payload[normalize_key(key)] = record
    return BundleManifest(payload)


def update_manifest(
    path: Path,
    updates: Mapping[str, CapabilityRecord],
    *,
    scope: Optional[str] = None,
    removals: Iterable[str] = (),
) -> BundleManifest:
    """Read-modify-write the persisted manifest.

    A missing manifest starts empty. A corrupt one raises
    :class:`ManifestUnavailableError` and is left on disk as it was.
    """

    if path.exists():
        existing = load_manifest(path)
    else:
        existing = BundleManifest({})
    merged = merge_manifest(existing, updates, scope=scope, removals=removals)
    dump_manifest(merged, path)
    logger.info("Updated %d manifest keys in %s", len(updates), path)
    return merged


__all__ = [
    "MANIFEST_FILENAME",
    "dump_manifest",
    "load_manifest",
    "manifest_path",
    "merge_manifest",
    "read_manifest",
    "update_manifest",
]
