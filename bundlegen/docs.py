"""Versioned API documentation builds with a stable symlink alias directory."""

from __future__ import annotations

import json
import os
import shutil
from enum import Enum
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import List, Sequence

from .config import BuildConfig
from .errors import CommandError, DocumentationError
from .lint import SCRIPT_SUFFIXES
from .logging import get_logger
from .models import DocumentationVersion
from .process import CommandRunner, check_command, run_command


class DocState(str, Enum):
    """Progress of one documentation build."""

    PENDING = "pending"
    CLEANING = "cleaning"
    GENERATING = "generating"
    SYMLINKING = "symlinking"
    DONE = "done"
    FAILED = "failed"


class DocumentationVersionManager:
    """Runs Clean -> Generate -> Symlink; any failing step aborts the chain."""

    def __init__(
        self,
        config: BuildConfig,
        *,
        runner: CommandRunner = run_command,
    ) -> None:
        self.config = config
        self.version = DocumentationVersion(
            version_id=config.package.version,
            root_dir=config.docs.root,
            package_name=config.package.name,
        )
        self.state = DocState.PENDING
        self._runner = runner
        self.logger = get_logger("docs")

    async def build(self) -> List[Path]:
        """Rebuild the current version's docs and return the refreshed alias links."""
        steps = (
            (DocState.CLEANING, self.clean),
            (DocState.GENERATING, self.generate),
            (DocState.SYMLINKING, self.symlink),
        )
        links: List[Path] = []
        for state, step in steps:
            self.state = state
            try:
                result = await step()
            except Exception as exc:
                self.state = DocState.FAILED
                if isinstance(exc, DocumentationError):
                    raise
                raise DocumentationError(f"Documentation {state.value} failed: {exc}") from exc
            if state is DocState.SYMLINKING:
                links = result
        self.state = DocState.DONE
        return links

    async def clean(self) -> None:
        """Empty the version directory and drop every alias symlink in the root."""
        version_dir = self.version.directory
        version_dir.mkdir(parents=True, exist_ok=True)
        for entry in version_dir.iterdir():
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()

        for entry in self.version.root_dir.iterdir():
            # Only links are managed here; regular files belong to someone else.
            if entry.is_symlink():
                entry.unlink()
        self.logger.debug("Cleaned %s", version_dir)

    async def generate(self) -> None:
        """Run the documentation compiler with the version directory as destination."""
        doc_config = self._read_doc_config()
        options = doc_config.setdefault("opts", {})
        if not isinstance(options, dict):
            raise DocumentationError("`opts` in the documentation config must be an object")
        options["destination"] = str(self.version.directory)

        sources = self._sources()
        if not sources:
            raise DocumentationError(f"No script sources found under {self.config.paths.scripts}")

        with NamedTemporaryFile(
            "w", encoding="utf-8", suffix=".json", prefix="bundlegen-jsdoc-", delete=False
        ) as handle:
            json.dump(doc_config, handle, indent=2)
            config_path = Path(handle.name)
        try:
            args = [
                *self.config.docs.command,
                "-c",
                str(config_path),
                "-d",
                str(self.version.directory),
                *(str(source) for source in sources),
            ]
            await check_command(self._runner, args, cwd=self.config.root)
        except CommandError as exc:
            raise DocumentationError(f"Documentation compiler failed: {exc}") from exc
        finally:
            config_path.unlink(missing_ok=True)
        self.logger.info(
            "Generated documentation for %s %s", self.version.package_name, self.version.version_id
        )

    async def symlink(self) -> List[Path]:
        """Point one relative link in the root at each generated artifact."""
        root = self.version.root_dir
        version_dir = self.version.directory
        links: List[Path] = []
        for entry in sorted(version_dir.iterdir()):
            link = root / entry.name
            if link.is_symlink():
                try:
                    link.unlink()
                except FileNotFoundError:
                    pass
            target = os.path.relpath(entry, root)
            try:
                link.symlink_to(target, target_is_directory=entry.is_dir())
            except OSError as exc:
                raise DocumentationError(f"Failed to link {link} -> {target}: {exc}") from exc
            links.append(link)
        self.logger.info("Linked %d documentation artifact(s) into %s", len(links), root)
        return links

    def _read_doc_config(self) -> dict:
        path = self.config.docs.config_file
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise DocumentationError(f"Documentation config not found: {path}") from exc
        except json.JSONDecodeError as exc:
            raise DocumentationError(f"Invalid documentation config {path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise DocumentationError(f"Documentation config {path} must contain an object")
        return payload

    def _sources(self, suffixes: Sequence[str] = SCRIPT_SUFFIXES) -> List[Path]:
        scripts = self.config.paths.scripts
        return sorted(path for path in scripts.rglob("*") if path.is_file() and path.suffix in suffixes)


__all__ = ["DocState", "DocumentationVersionManager"]
