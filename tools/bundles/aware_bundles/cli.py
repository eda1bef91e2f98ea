"""Command-line entry point for bundle classification and script tags."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Mapping, Optional, Sequence

from .builder import BuildResult, BundleBuilder, BundleConfig
from .errors import BundleError, ManifestUnavailableError
from .layout import Variant
from .manager import BundleManager
from .manifest import load_manifest, manifest_path
from .settings import BundleSettings, load_settings


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        if args.command == "build":
            return _handle_build(args)
        if args.command == "update":
            return _handle_update(args)
        if args.command == "tags":
            return _handle_tags(args)
        if args.command == "manifest":
            if args.manifest_command == "show":
                return _handle_manifest_show(args)
            parser.error("manifest command requires a subcommand")
    except (BundleError, ValueError) as exc:
        _print_json({"error": str(exc)})
        return 1

    parser.error(f"Unknown command '{args.command}'")
    return 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="aware-bundles", description="Layered bundle topology helpers.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Classify the source tree and rewrite the manifest.")
    _add_build_arguments(build)

    update = subparsers.add_parser("update", help="Reclassify the folder affected by one changed file.")
    _add_build_arguments(update)
    update.add_argument("--path", action="append", required=True, help="Changed file (repeatable).")

    tags = subparsers.add_parser("tags", help="Print the script tags for an application path.")
    _add_common_arguments(tags)
    tags.add_argument("--path", required=True, help="Application folder path, e.g. /chat/group/.")
    tags.add_argument("--variant", choices=[variant.value for variant in Variant], default=Variant.UNOPTIMIZED.value)
    tags.add_argument("--attribute", help="Extra attribute for every script tag, e.g. defer.")
    tags.add_argument("--base-url")

    manifest = subparsers.add_parser("manifest", help="Manifest utilities.")
    manifest_sub = manifest.add_subparsers(dest="manifest_command", required=True)
    manifest_show = manifest_sub.add_parser("show", help="Print the persisted manifest.")
    _add_common_arguments(manifest_show)

    return parser


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="JSON or YAML settings file.")
    parser.add_argument("--output-dir")
    parser.add_argument("--version")
    parser.add_argument("--apps-name")
    parser.add_argument("--packages-name")
    parser.add_argument("--workspace-root")


def _add_build_arguments(parser: argparse.ArgumentParser) -> None:
    _add_common_arguments(parser)
    parser.add_argument("--input-dir")
    parser.add_argument("--build-dev", action=argparse.BooleanOptionalAction, default=None)
    parser.add_argument("--build-min", action=argparse.BooleanOptionalAction, default=None)


def _handle_build(args: argparse.Namespace) -> int:
    config = _resolve_config(args)
    result = BundleBuilder(config).build()
    _print_json(_result_payload(result))
    return 0


def _handle_update(args: argparse.Namespace) -> int:
    config = _resolve_config(args)
    builder = BundleBuilder(config)
    workspace = _resolve_workspace(args.workspace_root)
    results = [builder.update(_resolve_path(value, workspace)) for value in args.path]
    _print_json(
        {
            "manifest_path": str(config.manifest_path),
            "updates": [_result_payload(result) for result in results],
        }
    )
    return 0


def _handle_tags(args: argparse.Namespace) -> int:
    settings = _resolve_settings(args)
    output_dir = _resolve_path(_require(settings.output_dir, "--output-dir"), _resolve_workspace(args.workspace_root))
    manager = BundleManager(
        output_dir,
        base_url=args.base_url or settings.base_url,
        version=settings.version,
        name=settings.apps_name,
        packages_name=settings.packages_name,
        framework_name=settings.framework_name,
    )
    _print_json(
        {
            "path": args.path,
            "variant": args.variant,
            "is_app": manager.is_app(args.path),
            "degraded": manager.degraded,
            "tags": manager.create_script_tags(args.path, args.variant, args.attribute),
        }
    )
    return 0


def _handle_manifest_show(args: argparse.Namespace) -> int:
    settings = _resolve_settings(args)
    workspace = _resolve_workspace(args.workspace_root)
    path = manifest_path(_resolve_path(_require(settings.output_dir, "--output-dir"), workspace))
    errors = []
    manifest = None
    try:
        manifest = load_manifest(path)
    except ManifestUnavailableError as exc:
        errors.append(str(exc))
    _print_json(
        {
            "manifest_path": str(path),
            "valid": manifest is not None,
            "errors": errors,
            "manifest": manifest.json_dict() if manifest is not None else {},
        }
    )
    return 0


def _resolve_settings(args: argparse.Namespace) -> BundleSettings:
    workspace = _resolve_workspace(args.workspace_root)
    config_path = _resolve_path(args.config, workspace) if args.config else None
    settings = load_settings(config_path)
    overrides = {
        "input_dir": _optional_path(getattr(args, "input_dir", None), workspace),
        "output_dir": _optional_path(args.output_dir, workspace),
        "version": args.version,
        "apps_name": args.apps_name,
        "packages_name": args.packages_name,
        "build_dev": getattr(args, "build_dev", None),
        "build_min": getattr(args, "build_min", None),
    }
    return settings.model_copy(update={key: value for key, value in overrides.items() if value is not None})


def _resolve_config(args: argparse.Namespace) -> BundleConfig:
    return _resolve_settings(args).to_config(_resolve_workspace(args.workspace_root))


def _result_payload(result: BuildResult) -> Mapping[str, object]:
    return {
        "manifest_path": str(result.manifest_path),
        "scope": result.scope,
        "folders": result.keys,
        "artifacts": [str(path) for path in result.artifacts],
        "manifest": result.manifest.json_dict(),
    }


def _require(value: Optional[str], flag: str) -> str:
    if not value:
        raise ValueError(f"{flag} is required (or set it in the settings file).")
    return value


def _resolve_workspace(value: Optional[str]) -> Path:
    return Path(value).resolve() if value else Path.cwd()


def _resolve_path(value: str, workspace: Path) -> Path:
    path = Path(value)
    if not path.is_absolute():
        path = workspace / path
    return path.resolve()


def _optional_path(value: Optional[str], workspace: Path) -> Optional[str]:
    if value is None:
        return None
    return str(_resolve_path(value, workspace))


def _print_json(payload: Mapping[str, object]) -> None:
    print(json.dumps(payload, indent=2, default=str))


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
