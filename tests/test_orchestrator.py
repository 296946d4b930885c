"""Tests for task wiring in the build orchestrator."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List

import pytest

from bundlegen.errors import TaskFailed
from bundlegen.models import ChangeKind, FileChangeEvent
from bundlegen.orchestrator import BuildOrchestrator
from bundlegen.watcher import ChangeWatcher
from tests._fixtures.project_builder import FakeObserver, FakeRunner, ProjectBuilder

EXPECTED_TASKS = {
    "write-partials",
    "write-views",
    "codegen",
    "scripts",
    "watch-scripts",
    "lint",
    "copy-fonts",
    "styles",
    "watch-styles",
    "watch-partials",
    "scripts-and-templates",
    "static",
    "build",
    "watch-static",
    "docs",
    "generate-favicon",
    "inject-favicon-markups",
    "check-for-favicon-update",
}


def test_registers_every_build_task(project: ProjectBuilder) -> None:
    orchestrator = BuildOrchestrator(project.config(), runner=FakeRunner())
    graph = orchestrator.graph

    assert set(graph.names()) == EXPECTED_TASKS
    assert graph.get("styles").prerequisites == ("copy-fonts",)
    assert graph.get("watch-styles").prerequisites == ("styles",)
    assert graph.get("scripts-and-templates").sequential is True
    assert graph.get("scripts-and-templates").prerequisites == ("write-partials", "scripts")
    assert set(graph.get("static").prerequisites) == {"styles", "scripts-and-templates"}
    assert set(graph.get("build").prerequisites) == {"static", "generate-favicon"}
    assert set(graph.get("watch-static").prerequisites) == {"watch-styles", "watch-partials", "watch-scripts"}
    described = {name: description for name, description, _ in orchestrator.describe_tasks()}
    assert all(described[name] for name in EXPECTED_TASKS)


def test_codegen_writes_both_registries(project: ProjectBuilder) -> None:
    config = project.config()

    asyncio.run(BuildOrchestrator(config, runner=FakeRunner()).run("codegen"))

    assert config.paths.partials_file.exists()
    assert config.paths.view_map_file.exists()


def test_static_compiles_styles_and_scripts(project: ProjectBuilder) -> None:
    config = project.config()
    runner = FakeRunner()

    asyncio.run(BuildOrchestrator(config, runner=runner).run("static"))

    assert len(runner.commands("lessc")) == 1
    assert project.static("dist/js/build.js").exists()


def test_build_fails_when_favicon_master_is_missing(project: ProjectBuilder) -> None:
    with pytest.raises(TaskFailed) as excinfo:
        asyncio.run(BuildOrchestrator(project.config(), runner=FakeRunner()).run("build"))

    assert excinfo.value.task == "generate-favicon"


def test_restyle_only_reacts_to_stylesheets(project: ProjectBuilder) -> None:
    runner = FakeRunner()
    orchestrator = BuildOrchestrator(project.config(), runner=runner)

    async def _scenario():
        script = await orchestrator.restyle([FileChangeEvent(project.static("scripts/util.es6"))])
        style = await orchestrator.restyle(
            [FileChangeEvent(project.static("styles/main.less"), ChangeKind.MODIFIED)]
        )
        return script, style

    script, style = asyncio.run(_scenario())

    assert script is False
    assert style is True
    assert len(runner.commands("lessc")) == 1


def test_watch_partials_regenerates_the_registry(project: ProjectBuilder) -> None:
    config = project.config()
    roots: List[List[Path]] = []
    added = project.static("templates/partials/sidebar.hbs")

    def _watcher_factory(paths, **kwargs):
        watcher = ChangeWatcher(paths, observer_factory=FakeObserver, **kwargs)
        roots.append(list(watcher.roots))
        project.write({"static/templates/partials/sidebar.hbs": "<aside></aside>\n"})
        watcher.push(FileChangeEvent(added, ChangeKind.ADDED))
        watcher.push(FileChangeEvent(project.static("templates/partials/notes.md")))
        watcher.close()
        return watcher

    orchestrator = BuildOrchestrator(config, runner=FakeRunner(), watcher_factory=_watcher_factory)

    asyncio.run(orchestrator.run("watch-partials"))

    assert roots == [[config.paths.partials]]
    assert '"sidebar": require("../templates/partials/sidebar.hbs")' in config.paths.partials_file.read_text(
        encoding="utf-8"
    )


def test_watch_styles_compiles_first_then_on_change(project: ProjectBuilder) -> None:
    config = project.config()
    runner = FakeRunner()

    def _watcher_factory(paths, **kwargs):
        watcher = ChangeWatcher(paths, observer_factory=FakeObserver, **kwargs)
        watcher.push(FileChangeEvent(project.static("styles/main.less")))
        watcher.close()
        return watcher

    orchestrator = BuildOrchestrator(config, runner=runner, watcher_factory=_watcher_factory)

    asyncio.run(orchestrator.run("watch-styles"))

    assert len(runner.commands("lessc")) == 2
