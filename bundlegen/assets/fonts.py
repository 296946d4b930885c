"""Copies icon fonts from their package into the dist tree."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import List

from ..config import BuildConfig
from ..logging import get_logger


class FontCopier:
    def __init__(self, config: BuildConfig) -> None:
        self.source = config.paths.static_root / config.styles.fonts_source
        self.destination = config.paths.dist / "fonts"
        self.logger = get_logger("fonts")

    async def copy(self) -> List[Path]:
        """Copy fonts whose destination is missing or older; return what was copied."""
        if not self.source.is_dir():
            self.logger.warning("Font source %s does not exist; nothing to copy", self.source)
            return []
        copied: List[Path] = []
        for path in sorted(self.source.rglob("*")):
            if not path.is_file():
                continue
            target = self.destination / path.relative_to(self.source)
            if target.exists() and target.stat().st_mtime >= path.stat().st_mtime:
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(path, target)
            copied.append(target)
        self.logger.debug("Copied %d font file(s) into %s", len(copied), self.destination)
        return copied


__all__ = ["FontCopier"]
