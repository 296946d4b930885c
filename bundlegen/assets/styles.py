"""Stylesheet compilation through the external less compiler."""

from __future__ import annotations

from pathlib import Path
from typing import List

from ..config import BuildConfig
from ..errors import CommandError, StyleError
from ..logging import get_logger
from ..process import CommandRunner, check_command, run_command


class StyleCompiler:
    """Compiles the main stylesheet into a single minified, prefixed build."""

    def __init__(self, config: BuildConfig, *, runner: CommandRunner = run_command) -> None:
        self.config = config
        self._runner = runner
        self.logger = get_logger("styles")

    @property
    def entry(self) -> Path:
        return self.config.paths.static_root / self.config.styles.entry

    @property
    def output(self) -> Path:
        return self.config.paths.static_root / self.config.styles.output

    def command(self) -> List[str]:
        styles = self.config.styles
        return [
            *styles.command,
            "--source-map-map-inline",
            "--clean-css=--advanced",
            f"--autoprefix={';'.join(styles.browsers)}",
            f'--modify-var=fa-font-path="{styles.font_path}"',
            str(self.entry),
            str(self.output),
        ]

    async def compile(self) -> Path:
        if not self.entry.is_file():
            raise StyleError(f"Stylesheet entry not found: {self.entry}")
        self.output.parent.mkdir(parents=True, exist_ok=True)
        try:
            await check_command(self._runner, self.command(), cwd=self.config.paths.static_root)
        except CommandError as exc:
            raise StyleError(f"LESS error:\n{exc.stderr.strip() or exc}") from exc
        self.logger.info("Compiled %s", self.output.relative_to(self.config.paths.static_root).as_posix())
        return self.output


__all__ = ["StyleCompiler"]
