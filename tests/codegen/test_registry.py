"""Tests for registry naming rules."""

from __future__ import annotations

from pathlib import Path

import pytest

from bundlegen.codegen import build_descriptor, camel_case, view_identifier, view_identifiers
from bundlegen.errors import CodegenError

STATIC = Path("/project/static")


def test_descriptor_maps_logical_names_to_bundle_relative_references() -> None:
    partials = STATIC / "templates" / "partials"
    descriptor = build_descriptor(
        [partials / "footer.hbs", partials / "nav" / "header.hbs", partials / "nav" / "notes.txt"],
        source_dir=partials,
        bundle_root=STATIC / "scripts",
        suffix=".hbs",
        target_path=STATIC / "scripts" / "partials.js",
    )

    assert descriptor.entries == {
        "footer": "../templates/partials/footer.hbs",
        "nav/header": "../templates/partials/nav/header.hbs",
    }
    assert all(not name.endswith(".hbs") for name in descriptor.entries)


def test_references_inside_the_bundle_root_start_with_dot_slash() -> None:
    views = STATIC / "scripts" / "views"
    descriptor = build_descriptor(
        [views / "home.es6"],
        source_dir=views,
        bundle_root=STATIC / "scripts",
        suffix=".es6",
        target_path=STATIC / "scripts" / "view-map.es6",
    )

    assert descriptor.entries == {"home": "./views/home.es6"}


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("home", "home"),
        ("3dView", "3DView"),
        ("nav/main-menu", "navMainMenu"),
        ("user_profile", "userProfile"),
        ("HTMLPreview", "htmlPreview"),
    ],
)
def test_camel_case(name: str, expected: str) -> None:
    assert camel_case(name) == expected


def test_view_identifier_is_always_a_valid_identifier() -> None:
    identifier = view_identifier("3dView")

    assert identifier == "_3DView"
    assert identifier.isidentifier()


def test_colliding_view_identifiers_fail() -> None:
    views = STATIC / "scripts" / "views"
    descriptor = build_descriptor(
        [views / "foo-bar.es6", views / "fooBar.es6"],
        source_dir=views,
        bundle_root=STATIC / "scripts",
        suffix=".es6",
        target_path=STATIC / "scripts" / "view-map.es6",
    )

    with pytest.raises(CodegenError, match="_fooBar"):
        view_identifiers(descriptor)
