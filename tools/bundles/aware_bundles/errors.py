"""Error types raised by the bundle topology tooling."""

from __future__ import annotations


class BundleError(RuntimeError):
    """Base class for bundle tooling failures."""


class ClassificationError(BundleError):
    """Raised when a build pass cannot read the source tree it classifies."""


class ManifestUnavailableError(BundleError):
    """Raised when the persisted manifest is missing or cannot be parsed."""


__all__ = ["BundleError", "ClassificationError", "ManifestUnavailableError"]
