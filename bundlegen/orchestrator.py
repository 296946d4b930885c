"""Wires the build collaborators into the named task graph."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from .assets import FaviconGenerator, FontCopier, StyleCompiler
from .bundler import BundleCache, IncrementalBundler
from .changes import ChangeClassifier, change_operation
from .codegen import RegistryGenerator, RegistryRenderer, partial_registry, view_registry
from .config import BuildConfig
from .docs import DocumentationVersionManager
from .lint import ScriptLinter
from .logging import get_logger
from .models import FileChangeEvent
from .process import CommandRunner, run_command
from .tasks import TaskGraph
from .watcher import ChangeWatcher, consume


class BuildOrchestrator:
    """Owns one instance of every build collaborator and the tasks that drive them."""

    def __init__(
        self,
        config: BuildConfig,
        *,
        runner: CommandRunner = run_command,
        renderer: RegistryRenderer | None = None,
        watcher_factory: Optional[Callable[..., ChangeWatcher]] = None,
    ) -> None:
        self.config = config
        self.logger = get_logger("orchestrator")
        paths = config.paths
        renderer = renderer or RegistryRenderer()
        self.partials = partial_registry(config, renderer)
        self.views = view_registry(config, renderer)
        self.classifier = ChangeClassifier(paths.generated_files)
        self.linter = ScriptLinter(paths.scripts, exclude=paths.generated_files)
        self._watcher_factory = watcher_factory or ChangeWatcher
        self.bundler = IncrementalBundler(
            config,
            classifier=self.classifier,
            generators=self.generators,
            linter=self.linter,
            cache=BundleCache(),
            runner=runner,
            watcher_factory=self._watcher_factory,
        )
        self.styles = StyleCompiler(config, runner=runner)
        self.fonts = FontCopier(config)
        self.favicon = FaviconGenerator(config, runner=runner)
        self.docs = DocumentationVersionManager(config, runner=runner)
        self.graph = self._build_graph()

    @property
    def generators(self) -> List[RegistryGenerator]:
        return [self.partials, self.views]

    async def run(self, *names: str) -> None:
        await self.graph.run(*names)

    def describe_tasks(self) -> List[Tuple[str, str, Sequence[str]]]:
        """Return ``(name, description, prerequisites)`` for every registered task."""
        return [
            (task.name, task.description, task.prerequisites)
            for task in (self.graph.get(name) for name in self.graph.names())
        ]

    def _build_graph(self) -> TaskGraph:
        graph = TaskGraph()
        graph.add("write-partials", action=self.partials.generate, description="Generate the partial registry")
        graph.add("write-views", action=self.views.generate, description="Generate the view map")
        graph.add("codegen", ["write-partials", "write-views"], description="Generate both registries")
        graph.add("scripts", action=self.bundler.run_once, description="Bundle application scripts")
        graph.add("watch-scripts", action=self.bundler.watch, description="Rebundle scripts on change")
        graph.add("lint", action=self.linter.lint, description="Syntax-check every script source")
        graph.add("copy-fonts", action=self.fonts.copy, description="Copy icon fonts into dist")
        graph.add("styles", ["copy-fonts"], self.styles.compile, description="Compile stylesheets")
        graph.add("watch-styles", ["styles"], self.watch_styles, description="Recompile styles on change")
        graph.add("watch-partials", action=self.watch_partials, description="Regenerate partials on change")
        graph.sequence(
            "scripts-and-templates",
            ["write-partials", "scripts"],
            description="Generate partials, then bundle scripts",
        )
        graph.add("static", ["styles", "scripts-and-templates"], description="Build styles and scripts")
        graph.add("build", ["static", "generate-favicon"], description="Full production build")
        graph.add(
            "watch-static",
            ["watch-styles", "watch-partials", "watch-scripts"],
            description="Watch styles, partials and scripts",
        )
        graph.add("docs", action=self.docs.build, description="Build versioned API documentation")
        graph.add("generate-favicon", action=self.favicon.generate, description="Generate favicon assets")
        graph.add(
            "inject-favicon-markups",
            action=self.favicon.inject_markups,
            description="Inject favicon markup into layout templates",
        )
        graph.add(
            "check-for-favicon-update",
            action=self.favicon.check_for_update,
            description="Fail when newer favicon assets are available",
        )
        graph.validate()
        return graph

    async def watch_styles(self) -> None:
        watcher = self._watcher_factory(
            [self.config.paths.styles],
            accept=lambda path: path.suffix == ".less",
            debounce=self.config.watch.debounce,
        )
        async with watcher:
            await consume(watcher, self.restyle, label="Style build")

    async def restyle(self, events: Sequence[FileChangeEvent]) -> bool:
        """Recompile styles when the change set requires it; returns whether it did."""
        decision = self.classifier.classify(event.path for event in events)
        if not decision.restyle:
            return False
        self.logger.info(
            "Recompiling styles due to the following:\n%s",
            self._describe(events, self.config.paths.styles),
        )
        await self.styles.compile()
        return True

    async def watch_partials(self) -> None:
        watcher = self._watcher_factory(
            [self.config.paths.partials],
            accept=lambda path: path.suffix == self.partials.suffix,
            debounce=self.config.watch.debounce,
        )
        async with watcher:
            await consume(watcher, self.rewrite_partials, label="Partial registry")

    async def rewrite_partials(self, events: Sequence[FileChangeEvent]) -> None:
        self.logger.info(
            "Rewriting partials due to the following:\n%s",
            self._describe(events, self.config.paths.partials),
        )
        await self.partials.generate()

    @staticmethod
    def _describe(events: Sequence[FileChangeEvent], base: Path) -> str:
        lines = []
        for event in events:
            try:
                shown = event.path.relative_to(base).as_posix()
            except ValueError:
                shown = str(event.path)
            lines.append(f"\t{change_operation(event.kind)} {shown}")
        return "\n".join(lines)


__all__ = ["BuildOrchestrator"]
