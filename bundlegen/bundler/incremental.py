"""Incremental script bundling with codegen and lint integration."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ..changes import ChangeClassifier
from ..codegen import RegistryGenerator
from ..config import BuildConfig
from ..errors import BundleError
from ..fileio import write_atomic
from ..lint import LintIssue, ScriptLinter
from ..logging import get_logger
from ..models import BuildDecision, FileChangeEvent
from ..process import CommandRunner, run_command
from ..watcher import ChangeWatcher, consume
from .cache import BundleCache
from .engine import BundleEngine, BundleOutput
from .resolve import DEFAULT_EXTENSIONS, ModuleResolver
from .transforms import Transform, default_transforms

_TRACKED_SUFFIXES = (*DEFAULT_EXTENSIONS, ".hbs")


@dataclass
class BundleResult:
    """Outcome of one compile cycle."""

    decision: BuildDecision
    output_path: Path
    modules: int
    rebuilt: List[Path]
    lint_issues: List[LintIssue]


class IncrementalBundler:
    """Bundles the application scripts, re-reading only what changed."""

    def __init__(
        self,
        config: BuildConfig,
        *,
        classifier: ChangeClassifier,
        generators: Sequence[RegistryGenerator],
        linter: Optional[ScriptLinter] = None,
        cache: Optional[BundleCache] = None,
        transforms: Optional[Sequence[Transform]] = None,
        runner: CommandRunner = run_command,
        watcher_factory: Optional[Callable[..., ChangeWatcher]] = None,
    ) -> None:
        self.config = config
        self.classifier = classifier
        self.generators = list(generators)
        self.linter = linter
        self.cache = cache or BundleCache()
        paths = config.paths
        if transforms is None:
            transforms = default_transforms(
                development=config.is_development,
                template_runtime=config.bundle.template_runtime,
                transpile_command=config.bundle.transpile_command,
                runner=runner,
            )
        self.engine = BundleEngine(
            transforms=transforms,
            resolver=ModuleResolver(module_dirs=[paths.node_modules]),
            cache=self.cache,
            source_root=paths.scripts,
        )
        self.output_path = paths.static_root / config.bundle.output
        self._watcher_factory = watcher_factory or ChangeWatcher
        self.logger = get_logger("bundler")

    @property
    def entries(self) -> List[Path]:
        root = self.config.paths.static_root
        return [root / self.config.bundle.entry, *(root / script for script in self.config.bundle.third_party)]

    async def compile(self, changed: Sequence[Path | FileChangeEvent] = ()) -> Optional[BundleResult]:
        """Run one cycle: classify, regenerate registries, bundle and lint."""
        events = [item for item in changed if isinstance(item, FileChangeEvent)]
        paths = [item.path if isinstance(item, FileChangeEvent) else Path(item) for item in changed]
        decision = self.classifier.classify(paths)
        if not decision.bundle:
            self.logger.debug("Ignoring change set with no script sources: %s", ", ".join(map(str, paths)))
            return None

        if decision.changed:
            description = (
                self.classifier.describe(events, relative_to=self.config.root)
                if events
                else "\n".join(f"\t{self._display(path)}" for path in decision.changed)
            )
            self.logger.info("Recompiling scripts due to the following:\n%s", description)

        if decision.regenerate:
            for generator in self.generators:
                await generator.generate()
            self.cache.invalidate(generator.target_path for generator in self.generators)
        self.cache.invalidate(decision.changed)

        if self.config.is_development and self.linter is not None:
            lint_paths = None if decision.initial else list(decision.lint_targets)
            output, issues = await asyncio.gather(self._bundle(), self._lint(lint_paths))
        else:
            output, issues = await self._bundle(), []

        self.logger.info(
            "Wrote %s (%d modules, %d rebuilt)",
            self._display(self.output_path),
            output.modules,
            len(output.rebuilt),
        )
        return BundleResult(
            decision=decision,
            output_path=self.output_path,
            modules=output.modules,
            rebuilt=output.rebuilt,
            lint_issues=issues,
        )

    async def run_once(self) -> BundleResult:
        """Bundle everything once; errors propagate to the caller."""
        result = await self.compile()
        if result is None:  # pragma: no cover - an initial build always bundles
            raise BundleError("Initial build produced no bundle")
        return result

    async def watch(self) -> None:
        """Bundle, then rebundle on every change to the module graph until cancelled."""
        await self._compile_safely([])
        watcher = self._watcher_factory(
            [self.config.paths.scripts, self.config.paths.partials],
            accept=self.tracks,
            debounce=self.config.watch.debounce,
        )
        async with watcher:
            await consume(watcher, self.compile, label="Script build")

    def tracks(self, path: Path) -> bool:
        """Whether a change to ``path`` should notify the bundler."""
        return path in self.cache or path.suffix in _TRACKED_SUFFIXES

    async def _compile_safely(self, changed: Sequence[Path | FileChangeEvent]) -> None:
        try:
            await self.compile(changed)
        except Exception:
            self.logger.exception("Script build failed; still watching for changes")

    async def _bundle(self) -> BundleOutput:
        output = await self.engine.build(self.entries, self.output_path.name)
        map_path = self.output_path.with_name(self.output_path.name + ".map")
        try:
            write_atomic(self.output_path, output.code)
            write_atomic(map_path, output.source_map)
        except OSError as exc:
            raise BundleError(f"Failed to write {self.output_path}: {exc}") from exc
        return output

    async def _lint(self, paths: Optional[List[Path]]) -> List[LintIssue]:
        if self.linter is None:
            return []
        if paths is not None and not paths:
            return []
        return await self.linter.lint(paths)

    def _display(self, path: Path) -> str:
        try:
            return path.relative_to(self.config.root).as_posix()
        except ValueError:
            return str(path)


__all__ = ["BundleResult", "IncrementalBundler"]
