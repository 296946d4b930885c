"""Tests for favicon generation and markup injection."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import List

import pytest

from bundlegen.assets import FaviconGenerator, MarkupBlock
from bundlegen.errors import FaviconError
from tests._fixtures.project_builder import FakeRunner, ProjectBuilder

MARKUP = '<link rel="icon" href="/favicon-32x32.png">'


def _write_data(generator: FaviconGenerator, html: str = MARKUP) -> None:
    generator.directory.mkdir(parents=True, exist_ok=True)
    generator.data_file.write_text(
        json.dumps({"version": "0.16", "favicon": {"html_code": html}}), encoding="utf-8"
    )


def test_generate_writes_description_and_runs_cli(project: ProjectBuilder) -> None:
    project.write({"favicon-master.png": "png"})
    descriptions: List[dict] = []

    def _on_call(args: List[str]) -> None:
        descriptions.append(json.loads(Path(args[2]).read_text(encoding="utf-8")))
        Path(args[3]).write_text("{}", encoding="utf-8")

    runner = FakeRunner(on_call=_on_call)
    generator = FaviconGenerator(project.config(), runner=runner)

    data_file = asyncio.run(generator.generate())

    (call,) = runner.calls
    assert call[:2] == ["real-favicon", "generate"]
    assert call[3:] == [str(data_file), str(generator.directory)]
    assert data_file == project.static("dist/favicons/faviconData.json")
    assert not Path(call[2]).exists()
    description = descriptions[0]
    assert description["masterPicture"] == str(project.path().resolve() / "favicon-master.png")
    assert description["iconsPath"] == "/"
    assert description["design"]["androidChrome"]["manifest"]["name"] == "demo-app"
    assert description["settings"]["scalingAlgorithm"] == "Mitchell"


def test_generate_requires_master_picture(project: ProjectBuilder) -> None:
    runner = FakeRunner()

    with pytest.raises(FaviconError, match="master picture"):
        asyncio.run(FaviconGenerator(project.config(), runner=runner).generate())
    assert runner.calls == []


def test_check_for_update(project: ProjectBuilder) -> None:
    config = project.config()
    runner = FakeRunner()
    generator = FaviconGenerator(config, runner=runner)

    with pytest.raises(FaviconError, match="generate-favicon"):
        asyncio.run(generator.check_for_update())

    _write_data(generator)
    asyncio.run(generator.check_for_update())
    assert runner.calls == [
        ["real-favicon", "check-for-update", "--fail-on-update", str(generator.data_file)]
    ]

    outdated = FaviconGenerator(config, runner=FakeRunner(returncode=1, stderr="update available"))
    with pytest.raises(FaviconError, match="update available"):
        asyncio.run(outdated.check_for_update())


def test_inject_markups_is_idempotent(project: ProjectBuilder) -> None:
    generator = FaviconGenerator(project.config(), runner=FakeRunner())
    _write_data(generator)
    layout = project.static("templates/layout.hbs")

    first = asyncio.run(generator.inject_markups())
    second = asyncio.run(generator.inject_markups())

    text = layout.read_text(encoding="utf-8")
    assert first == [layout]
    assert second == []
    assert text.count(MARKUP) == 1
    assert text.index(MARKUP) < text.index("</head>")
    assert "<!-- bundlegen:begin:favicon -->" in text


def test_inject_markups_replaces_previous_block(project: ProjectBuilder) -> None:
    generator = FaviconGenerator(project.config(), runner=FakeRunner())
    _write_data(generator)
    asyncio.run(generator.inject_markups())
    _write_data(generator, '<link rel="icon" href="/v2.png">')

    asyncio.run(generator.inject_markups())

    text = project.static("templates/layout.hbs").read_text(encoding="utf-8")
    assert MARKUP not in text
    assert text.count('href="/v2.png"') == 1


def test_inject_markups_skips_documents_without_head(project: ProjectBuilder) -> None:
    project.write({"static/templates/partials/bare.hbs": "<div></div>\n"})
    generator = FaviconGenerator(project.config(), runner=FakeRunner())
    _write_data(generator)
    bare = project.static("templates/partials/bare.hbs")

    assert asyncio.run(generator.inject_markups([bare])) == []
    assert bare.read_text(encoding="utf-8") == "<div></div>\n"


def test_markup_block_wraps_body() -> None:
    block = MarkupBlock("favicon")

    assert block.apply("<html><head></head></html>", "x") == (
        "<html><head><!-- bundlegen:begin:favicon -->\nx\n<!-- bundlegen:end:favicon -->\n</head></html>"
    )
    assert block.apply("<p></p>", "x") is None
