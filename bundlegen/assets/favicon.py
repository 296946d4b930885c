"""Favicon generation, update checks and markup injection."""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..config import BuildConfig
from ..errors import CommandError, FaviconError
from ..fileio import write_atomic
from ..logging import get_logger
from ..process import CommandRunner, check_command, run_command

FAVICON_DATA_FILENAME = "faviconData.json"
DESCRIPTION_FILENAME = "faviconDescription.json"


class MarkupBlock:
    """Maintains one managed block of markup delimited by comment markers."""

    BEGIN_FMT = "<!-- bundlegen:begin:{key} -->"
    END_FMT = "<!-- bundlegen:end:{key} -->"

    def __init__(self, key: str) -> None:
        self.begin = self.BEGIN_FMT.format(key=key)
        self.end = self.END_FMT.format(key=key)

    def wrap(self, body: str) -> str:
        return f"{self.begin}\n{body.strip()}\n{self.end}"

    def apply(self, document: str, body: str) -> Optional[str]:
        """Return ``document`` with the block replaced or inserted before ``</head>``.

        Returns None when the document has neither an existing block nor a
        closing head tag.
        """
        if self.begin in document and self.end in document:
            pre, rest = document.split(self.begin, 1)
            _, post = rest.split(self.end, 1)
            return f"{pre}{self.wrap(body)}{post}"
        index = document.lower().find("</head>")
        if index == -1:
            return None
        return f"{document[:index]}{self.wrap(body)}\n{document[index:]}"


class FaviconGenerator:
    """Drives the real-favicon CLI for the configured master picture."""

    def __init__(self, config: BuildConfig, *, runner: CommandRunner = run_command) -> None:
        self.config = config
        self.directory = config.paths.dist / "favicons"
        self.data_file = self.directory / FAVICON_DATA_FILENAME
        self._runner = runner
        self._markers = MarkupBlock("favicon")
        self.logger = get_logger("favicon")

    def description(self) -> Dict[str, Any]:
        favicon = self.config.favicon
        design = copy.deepcopy(dict(favicon.design))
        manifest = design.get("androidChrome", {}).get("manifest")
        if isinstance(manifest, dict):
            manifest.setdefault("name", self.config.package.name)
        return {
            "masterPicture": str(favicon.master_picture),
            "iconsPath": favicon.icons_path,
            "design": design,
            "settings": copy.deepcopy(dict(favicon.settings)),
        }

    async def generate(self) -> Path:
        """Render every icon plus the markup data file; returns the data file path."""
        if not self.config.favicon.master_picture.is_file():
            raise FaviconError(f"Favicon master picture not found: {self.config.favicon.master_picture}")
        self.directory.mkdir(parents=True, exist_ok=True)
        description_path = self.directory / DESCRIPTION_FILENAME
        write_atomic(description_path, json.dumps(self.description(), indent=2) + "\n")
        args = [
            *self.config.favicon.command,
            "generate",
            str(description_path),
            str(self.data_file),
            str(self.directory),
        ]
        try:
            await check_command(self._runner, args, cwd=self.config.root)
        except CommandError as exc:
            raise FaviconError(f"Favicon generation failed: {exc}") from exc
        finally:
            description_path.unlink(missing_ok=True)
        self.logger.info("Generated favicons in %s", self.directory)
        return self.data_file

    async def check_for_update(self) -> None:
        """Fail when the icon generator reports that the stored icons are outdated."""
        self._read_data()
        args = [*self.config.favicon.command, "check-for-update", "--fail-on-update", str(self.data_file)]
        try:
            await check_command(self._runner, args, cwd=self.config.root)
        except CommandError as exc:
            raise FaviconError(f"A favicon update is available or the check failed: {exc}") from exc
        self.logger.info("Favicons are up to date")

    async def inject_markups(self, paths: Optional[Sequence[Path]] = None) -> List[Path]:
        """Insert the stored favicon markup into each template; returns changed files."""
        markup = self.markup()
        targets = list(paths) if paths is not None else self._default_templates()
        changed: List[Path] = []
        for path in targets:
            try:
                document = path.read_text(encoding="utf-8")
            except OSError as exc:
                raise FaviconError(f"Cannot read template {path}: {exc}") from exc
            updated = self._markers.apply(document, markup)
            if updated is None:
                self.logger.warning("No </head> in %s; favicon markup not injected", path)
                continue
            if updated == document:
                continue
            try:
                write_atomic(path, updated)
            except OSError as exc:
                raise FaviconError(f"Cannot write template {path}: {exc}") from exc
            changed.append(path)
        self.logger.info("Injected favicon markup into %d template(s)", len(changed))
        return changed

    def markup(self) -> str:
        data = self._read_data()
        try:
            html = data["favicon"]["html_code"]
        except (KeyError, TypeError):
            raise FaviconError(f"{self.data_file} has no favicon.html_code entry") from None
        if not isinstance(html, str):
            raise FaviconError(f"{self.data_file} favicon.html_code must be a string")
        return html

    def _read_data(self) -> Dict[str, Any]:
        try:
            payload = json.loads(self.data_file.read_text(encoding="utf-8"))
        except FileNotFoundError:
            raise FaviconError(
                f"{self.data_file} not found; run the generate-favicon task first"
            ) from None
        except (OSError, json.JSONDecodeError) as exc:
            raise FaviconError(f"Cannot read {self.data_file}: {exc}") from exc
        if not isinstance(payload, dict):
            raise FaviconError(f"{self.data_file} must contain an object")
        return payload

    def _default_templates(self) -> Iterable[Path]:
        root = self.config.paths.static_root
        return [root / template for template in self.config.favicon.markup_templates]


__all__ = ["FAVICON_DATA_FILENAME", "FaviconGenerator", "MarkupBlock"]
