"""Registry generators tying scan, render and write together."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Sequence

from ..config import BuildConfig
from ..errors import CodegenError
from ..fileio import write_atomic
from ..logging import get_logger
from ..models import GeneratedModuleDescriptor
from .registry import build_descriptor
from .render import RegistryRenderer
from .scanner import scan_sources

PARTIAL_SUFFIX = ".hbs"
VIEW_SUFFIX = ".es6"


class RegistryGenerator:
    """Regenerates one registry module wholesale from a directory scan."""

    def __init__(
        self,
        label: str,
        *,
        source_dir: Path,
        suffix: str,
        bundle_root: Path,
        target_path: Path,
        render: Callable[[GeneratedModuleDescriptor], str],
        scan: Callable[[Path, str], Sequence[Path]] = scan_sources,
        write: Callable[[Path, str], None] = write_atomic,
    ) -> None:
        self.label = label
        self.source_dir = source_dir
        self.suffix = suffix
        self.bundle_root = bundle_root
        self.target_path = target_path
        self._render = render
        self._scan = scan
        self._write = write
        self.logger = get_logger(f"codegen.{label}")

    def describe(self) -> GeneratedModuleDescriptor:
        paths = self._scan(self.source_dir, self.suffix)
        return build_descriptor(
            paths,
            source_dir=self.source_dir,
            bundle_root=self.bundle_root,
            suffix=self.suffix,
            target_path=self.target_path,
        )

    def render(self) -> str:
        return self._render(self.describe())

    async def generate(self) -> GeneratedModuleDescriptor:
        """Scan, render and atomically write the registry module."""
        descriptor = self.describe()
        text = self._render(descriptor)
        self.logger.info("Writing %s file (%d entries)", self.label, len(descriptor.entries))
        try:
            self._write(self.target_path, text)
        except OSError as exc:
            raise CodegenError(f"Failed to write {self.target_path}: {exc}") from exc
        return descriptor


def partial_registry(config: BuildConfig, renderer: RegistryRenderer | None = None) -> RegistryGenerator:
    renderer = renderer or RegistryRenderer()
    return RegistryGenerator(
        "partials",
        source_dir=config.paths.partials,
        suffix=PARTIAL_SUFFIX,
        bundle_root=config.paths.scripts,
        target_path=config.paths.partials_file,
        render=renderer.render_partials,
    )


def view_registry(config: BuildConfig, renderer: RegistryRenderer | None = None) -> RegistryGenerator:
    renderer = renderer or RegistryRenderer()
    return RegistryGenerator(
        "view map",
        source_dir=config.paths.views,
        suffix=VIEW_SUFFIX,
        bundle_root=config.paths.scripts,
        target_path=config.paths.view_map_file,
        render=renderer.render_views,
    )


__all__ = [
    "PARTIAL_SUFFIX",
    "RegistryGenerator",
    "VIEW_SUFFIX",
    "partial_registry",
    "view_registry",
]
