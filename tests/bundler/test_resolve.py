"""Tests for dependency discovery and module resolution."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from bundlegen.bundler import ModuleResolver, find_dependencies
from bundlegen.errors import BundleError


def _touch(path: Path, text: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path.resolve()


def test_find_dependencies_is_ordered_and_distinct() -> None:
    code = (
        'var a = require("./a");\n'
        "var b = require('b');\n"
        'var again = require("./a");\n'
        'loader.require("./not-a-dependency");\n'
        "var dynamic = require(name);\n"
    )

    assert find_dependencies(code) == ["./a", "b"]


def test_find_dependencies_skips_comments_and_strings() -> None:
    code = (
        "// var legacy = require('./legacy-widget');\n"
        '/* require("./old-widget") */\n'
        "var hint = \"require('./quoted')\";\n"
        "var util = require(/* shared */ './util');\n"
    )

    assert find_dependencies(code) == ["./util"]


def test_relative_requests_try_extensions(tmp_path: Path) -> None:
    main = _touch(tmp_path / "scripts" / "main.es6")
    util = _touch(tmp_path / "scripts" / "util.es6")
    data = _touch(tmp_path / "scripts" / "data.json", "{}")
    resolver = ModuleResolver()

    assert resolver.resolve("./util", main) == util
    assert resolver.resolve("./util.es6", main) == util
    assert resolver.resolve("./data", main) == data


def test_directory_requests_use_index(tmp_path: Path) -> None:
    main = _touch(tmp_path / "scripts" / "main.es6")
    index = _touch(tmp_path / "scripts" / "widgets" / "index.js")

    assert ModuleResolver().resolve("./widgets", main) == index


def test_packages_resolve_through_node_modules(tmp_path: Path) -> None:
    main = _touch(tmp_path / "static" / "scripts" / "main.es6")
    package = tmp_path / "static" / "node_modules" / "lodash"
    _touch(package / "package.json", json.dumps({"main": "lib/lodash"}))
    entry = _touch(package / "lib" / "lodash.js")
    browser_package = tmp_path / "static" / "node_modules" / "jquery"
    _touch(browser_package / "package.json", json.dumps({"main": "server.js", "browser": "dist/jquery.js"}))
    browser_entry = _touch(browser_package / "dist" / "jquery.js")

    resolver = ModuleResolver()

    assert resolver.resolve("lodash", main) == entry
    assert resolver.resolve("jquery", main) == browser_entry


def test_extra_module_directories_are_searched_last(tmp_path: Path) -> None:
    main = _touch(tmp_path / "app" / "main.es6")
    shared = tmp_path / "shared_modules"
    target = _touch(shared / "handlebars" / "index.js")

    assert ModuleResolver(module_dirs=[shared]).resolve("handlebars", main) == target


def test_unresolvable_request_raises(tmp_path: Path) -> None:
    main = _touch(tmp_path / "main.es6")

    with pytest.raises(BundleError, match="Cannot find module './missing'"):
        ModuleResolver().resolve("./missing", main)


def test_invalid_package_manifest_raises(tmp_path: Path) -> None:
    main = _touch(tmp_path / "main.es6")
    _touch(tmp_path / "node_modules" / "broken" / "package.json", "{not json")

    with pytest.raises(BundleError, match="Invalid package manifest"):
        ModuleResolver().resolve("broken", main)
