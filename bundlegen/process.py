"""External command execution for build collaborators."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Optional, Sequence

from .errors import CommandError
from .logging import get_logger

logger = get_logger("process")


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of an external command."""

    args: Sequence[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""


CommandRunner = Callable[..., Awaitable[CommandResult]]


async def run_command(
    args: Sequence[str],
    *,
    cwd: Path,
    stdin: Optional[str] = None,
) -> CommandResult:
    """Run ``args`` without blocking the event loop and capture its output."""
    logger.debug("Running %s (cwd=%s)", " ".join(args), cwd)
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            cwd=str(cwd),
            stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        raise CommandError(list(args), 127, f"command not found: {args[0]}") from exc
    stdout, stderr = await process.communicate(stdin.encode("utf-8") if stdin is not None else None)
    return CommandResult(
        args=list(args),
        returncode=process.returncode if process.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )


async def check_command(
    runner: CommandRunner,
    args: Sequence[str],
    *,
    cwd: Path,
    stdin: Optional[str] = None,
) -> CommandResult:
    """Run a command through ``runner`` and raise CommandError on failure."""
    if stdin is None:
        result = await runner(list(args), cwd=cwd)
    else:
        result = await runner(list(args), cwd=cwd, stdin=stdin)
    if result.returncode != 0:
        raise CommandError(list(args), result.returncode, result.stderr)
    return result


__all__ = ["CommandResult", "CommandRunner", "check_command", "run_command"]
