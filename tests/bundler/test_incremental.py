"""End-to-end tests for the incremental script bundler."""

from __future__ import annotations

import asyncio
import json

import pytest

from bundlegen.bundler import IncrementalBundler
from bundlegen.changes import ChangeClassifier
from bundlegen.codegen import partial_registry, view_registry
from bundlegen.config import BuildConfig
from bundlegen.errors import BundleError
from bundlegen.lint import ScriptLinter
from bundlegen.models import ChangeKind, FileChangeEvent
from bundlegen.watcher import ChangeWatcher
from tests._fixtures.project_builder import FakeObserver, ProjectBuilder


def _bundler(config: BuildConfig, **kwargs) -> IncrementalBundler:
    paths = config.paths
    return IncrementalBundler(
        config,
        classifier=ChangeClassifier(paths.generated_files),
        generators=[partial_registry(config), view_registry(config)],
        linter=ScriptLinter(paths.scripts, exclude=paths.generated_files),
        **kwargs,
    )


def test_initial_build_generates_registries_and_bundle(project: ProjectBuilder) -> None:
    config = project.config()
    bundler = _bundler(config)

    result = asyncio.run(bundler.run_once())

    assert result.decision.initial is True
    assert result.output_path == project.static("dist/js/build.js")
    assert result.modules == 8
    assert len(result.rebuilt) == 8
    assert result.lint_issues == []
    assert config.paths.partials_file.exists()
    assert config.paths.view_map_file.exists()

    bundle = result.output_path.read_text(encoding="utf-8")
    assert bundle.rstrip().endswith("//# sourceMappingURL=build.js.map")
    assert 'Handlebars.compile("<header>{{title}}</header>\\n")' in bundle
    assert "function greet(views, partials) {" in bundle

    source_map = json.loads(project.static("dist/js/build.js.map").read_text(encoding="utf-8"))
    assert source_map["version"] == 3
    assert "main.es6" in source_map["sources"]
    assert len(source_map["mappings"].split(";")) == bundle.count("\n")


def test_only_changed_modules_are_rebuilt(project: ProjectBuilder) -> None:
    config = project.config()
    bundler = _bundler(config)
    util = project.static("scripts/util.es6")

    async def _scenario():
        await bundler.compile()
        util.write_text("export function greet() {\n\treturn 0;\n}\n", encoding="utf-8")
        return await bundler.compile([util])

    result = asyncio.run(_scenario())

    assert result is not None
    assert set(result.rebuilt) == {util, config.paths.partials_file, config.paths.view_map_file}
    assert result.modules == 8
    assert "return 0;" in result.output_path.read_text(encoding="utf-8")


def test_generated_outputs_do_not_retrigger_a_build(project: ProjectBuilder) -> None:
    config = project.config()
    bundler = _bundler(config)

    async def _scenario():
        await bundler.compile()
        before = bundler.output_path.stat().st_mtime_ns
        result = await bundler.compile(
            [
                FileChangeEvent(config.paths.partials_file, ChangeKind.MODIFIED),
                FileChangeEvent(config.paths.view_map_file, ChangeKind.MODIFIED),
            ]
        )
        return result, before, bundler.output_path.stat().st_mtime_ns

    result, before, after = asyncio.run(_scenario())

    assert result is None
    assert before == after


def test_stylesheet_change_does_not_bundle(project: ProjectBuilder) -> None:
    bundler = _bundler(project.config())

    assert asyncio.run(bundler.compile([project.static("styles/main.less")])) is None
    assert not bundler.output_path.exists()


def test_new_view_is_picked_up(project: ProjectBuilder) -> None:
    config = project.config()
    bundler = _bundler(config)
    about = project.static("scripts/views/about.es6")

    async def _scenario():
        await bundler.compile()
        project.write({"static/scripts/views/about.es6": "export default function about() {}\n"})
        return await bundler.compile([FileChangeEvent(about, ChangeKind.ADDED)])

    result = asyncio.run(_scenario())

    assert result is not None
    assert about in result.rebuilt
    assert result.modules == 9
    assert "_about" in config.paths.view_map_file.read_text(encoding="utf-8")
    assert "function about() {}" in result.output_path.read_text(encoding="utf-8")


def test_incremental_lint_only_checks_changed_scripts(project: ProjectBuilder) -> None:
    bundler = _bundler(project.config())
    util = project.static("scripts/util.es6")
    home = project.static("scripts/views/home.es6")

    async def _scenario():
        await bundler.compile()
        util.write_text("export function greet() {}\nvar broken = (1;\n", encoding="utf-8")
        home.write_text("export default function home() {}\nvar broken = (1;\n", encoding="utf-8")
        return await bundler.compile([util])

    result = asyncio.run(_scenario())

    assert result is not None
    assert result.lint_issues
    assert {issue.path for issue in result.lint_issues} == {util}


def test_production_build_minifies_and_skips_lint(project: ProjectBuilder) -> None:
    config = project.config("production")
    bundler = _bundler(config)

    result = asyncio.run(bundler.run_once())

    assert result.lint_issues == []
    assert result.modules == 8
    assert "function greet(views,partials){" in result.output_path.read_text(encoding="utf-8")


def test_commented_out_require_does_not_fail_the_build(project: ProjectBuilder) -> None:
    util = project.static("scripts/util.es6")
    util.write_text(
        "// var legacy = require('./legacy-widget');\n" + util.read_text(encoding="utf-8"),
        encoding="utf-8",
    )
    bundler = _bundler(project.config())

    result = asyncio.run(bundler.run_once())

    assert result.modules == 8
    assert "// var legacy = require('./legacy-widget');" in result.output_path.read_text(encoding="utf-8")


def test_unresolvable_import_fails_the_build(project: ProjectBuilder) -> None:
    project.write({"static/scripts/main.es6": 'import missing from "./missing";\nmissing();\n'})
    bundler = _bundler(project.config())

    with pytest.raises(BundleError, match="Cannot find module './missing'"):
        asyncio.run(bundler.run_once())


def test_tracks_cached_modules_and_script_suffixes(project: ProjectBuilder) -> None:
    bundler = _bundler(project.config())
    asyncio.run(bundler.run_once())

    assert bundler.tracks(project.static("node_modules/handlebars/index.js"))
    assert bundler.tracks(project.static("scripts/views/new.es6"))
    assert bundler.tracks(project.static("templates/partials/new.hbs"))
    assert not bundler.tracks(project.static("scripts/notes.txt"))


def test_watch_rebuilds_after_each_batch(project: ProjectBuilder) -> None:
    config = project.config()
    about = project.static("scripts/views/about.es6")
    created = []

    def _watcher_factory(roots, **kwargs):
        watcher = ChangeWatcher(roots, observer_factory=FakeObserver, **kwargs)
        project.write({"static/scripts/views/about.es6": "export default function about() {}\n"})
        watcher.push(FileChangeEvent(about, ChangeKind.ADDED))
        watcher.close()
        created.append(watcher)
        return watcher

    bundler = _bundler(config, watcher_factory=_watcher_factory)

    asyncio.run(bundler.watch())

    assert len(created) == 1
    assert created[0].roots == [config.paths.scripts, config.paths.partials]
    assert "_about" in config.paths.view_map_file.read_text(encoding="utf-8")
    assert "function about() {}" in bundler.output_path.read_text(encoding="utf-8")


def test_watch_survives_a_failing_build(project: ProjectBuilder) -> None:
    config = project.config()
    main = project.static("scripts/main.es6")

    def _watcher_factory(roots, **kwargs):
        watcher = ChangeWatcher(roots, observer_factory=FakeObserver, **kwargs)
        watcher.push(FileChangeEvent(main, ChangeKind.MODIFIED))
        watcher.close()
        return watcher

    project.write({"static/scripts/main.es6": 'import missing from "./missing";\n'})
    bundler = _bundler(config, watcher_factory=_watcher_factory)

    asyncio.run(bundler.watch())

    assert not bundler.output_path.exists()
