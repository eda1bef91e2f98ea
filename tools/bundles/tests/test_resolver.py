from __future__ import annotations

import pytest

from aware_bundles.layout import Variant
from aware_bundles.resolver import ScriptReferenceResolver, format_script_tag
from aware_bundles.schemas import BundleManifest


def _scenario_manifest() -> BundleManifest:
    return BundleManifest.model_validate(
        {
            "/": {"files": False, "pack": {}},
            "/framework/": {"files": True, "pack": {"version": "1.0.0", "modules": True}},
            "/chat/": {"files": True, "pack": {}},
            "/chat/group/": {"files": True, "isApp": True, "pack": {}},
        }
    )


def _resolver(**overrides) -> ScriptReferenceResolver:
    options = {"base_url": "/", "version": "1.0.1", "apps_name": "apps"}
    options.update(overrides)
    return ScriptReferenceResolver(**options)


def test_framework_package_then_layers_top_down() -> None:
    tags = _resolver().resolve(_scenario_manifest(), "/chat/group/", Variant.UNOPTIMIZED)

    assert tags == [
        '<script src="/packages/framework/bundle-1.0.0.js"></script>',
        '<script src="/1.0.1/apps/framework/bundle.js"></script>',
        '<script src="/1.0.1/apps/chat/bundle.js"></script>',
        '<script src="/1.0.1/apps/chat/group/bundle.js"></script>',
    ]


@pytest.mark.parametrize(
    ("variant", "suffix"),
    [(Variant.UNOPTIMIZED, ".js"), (Variant.MINIFIED, ".min.js"), (Variant.COMPRESSED, ".min.js.gz"), ("minified", ".min.js")],
)
def test_each_variant_emits_one_suffix(variant, suffix: str) -> None:
    sources = _resolver().resolve_sources(_scenario_manifest(), "/chat/group/", variant)

    assert sources[0] == f"/packages/framework/bundle-1.0.0{suffix}"
    assert sources[-1] == f"/1.0.1/apps/chat/group/bundle{suffix}"
    assert all(source.endswith(suffix) for source in sources)


def test_attribute_is_inserted_before_closing_tag() -> None:
    tags = _resolver().resolve(_scenario_manifest(), "/chat/group/", attribute="defer")

    assert tags[1] == '<script src="/1.0.1/apps/framework/bundle.js" defer></script>'


def test_root_pair_comes_before_framework_pair() -> None:
    manifest = BundleManifest.model_validate(
        {
            "/": {"files": True, "pack": {"modules": True}},
            "/framework/": {"files": True, "pack": {"modules": True}},
            "/chat/": {"files": True, "pack": {"version": "4.2.0", "modules": True}},
        }
    )

    sources = _resolver(version=None).resolve_sources(manifest, "chat")

    assert sources == [
        "/packages/bundle.js",
        "/apps/bundle.js",
        "/packages/framework/bundle.js",
        "/apps/framework/bundle.js",
        "/packages/chat/bundle-4.2.0.js",
        "/apps/chat/bundle.js",
    ]


def test_version_and_name_segments_are_optional() -> None:
    sources = _resolver(base_url="https://cdn.example.com/static", version=None, apps_name=None).resolve_sources(
        _scenario_manifest(), "/chat/"
    )

    assert sources == [
        "https://cdn.example.com/static/packages/framework/bundle-1.0.0.js",
        "https://cdn.example.com/static/framework/bundle.js",
        "https://cdn.example.com/static/chat/bundle.js",
    ]


def test_missing_levels_are_skipped() -> None:
    sources = _resolver().resolve_sources(_scenario_manifest(), "/CHAT/group/unknown/deeper")

    assert sources[-2:] == ["/1.0.1/apps/chat/bundle.js", "/1.0.1/apps/chat/group/bundle.js"]


def test_path_absent_everywhere_yields_empty_list() -> None:
    manifest = BundleManifest.model_validate({"/other/": {"files": True, "pack": {}}})

    assert _resolver().resolve(manifest, "/nowhere/at/all/") == []


def test_missing_manifest_yields_empty_list() -> None:
    resolver = _resolver()

    assert resolver.resolve(None, "/chat/group/") == []
    assert resolver.resolve(BundleManifest({}), "/chat/group/") == []
    assert resolver.is_application_entry(None, "/chat/group/") is False


def test_framework_is_referenced_once_for_framework_paths() -> None:
    sources = _resolver().resolve_sources(_scenario_manifest(), "/framework/widgets/")

    assert sources == ["/packages/framework/bundle-1.0.0.js", "/1.0.1/apps/framework/bundle.js"]


def test_is_application_entry_requires_exact_record() -> None:
    resolver = _resolver()
    manifest = _scenario_manifest()

    assert resolver.is_application_entry(manifest, "/chat/group/")
    assert resolver.is_application_entry(manifest, "Chat\\Group")
    assert not resolver.is_application_entry(manifest, "/chat/")
    assert not resolver.is_application_entry(manifest, "/chat/group/emoji/")
    assert not resolver.is_application_entry(manifest, "/")
    assert not resolver.is_application_entry(manifest, "/framework/")
    assert resolver.resolve(manifest, "/chat/") != []


def test_resolution_is_repeatable() -> None:
    resolver = _resolver()
    manifest = _scenario_manifest()

    first = resolver.resolve(manifest, "/chat/group/", Variant.COMPRESSED, "async")
    second = resolver.resolve(manifest, "/chat/group/", Variant.COMPRESSED, "async")

    assert first == second


def test_format_script_tag() -> None:
    assert format_script_tag("/a.js") == '<script src="/a.js"></script>'
    assert format_script_tag("/a.js", "defer") == '<script src="/a.js" defer></script>'
