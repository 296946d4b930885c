"""Exception hierarchy shared by bundlegen components."""

from __future__ import annotations


class BundlegenError(RuntimeError):
    """Base class for every error raised by bundlegen."""


class ConfigError(BundlegenError):
    """Raised when the build configuration cannot be loaded or is invalid."""


class CodegenError(BundlegenError):
    """Raised when a registry module cannot be scanned, rendered or written."""


class BundleError(BundlegenError):
    """Raised when a module cannot be read, transformed or resolved."""


class CommandError(BundlegenError):
    """Raised when an external tool exits with a non-zero status."""

    def __init__(self, args: list[str], returncode: int, stderr: str = "") -> None:
        self.command = list(args)
        self.returncode = returncode
        self.stderr = stderr
        detail = f": {stderr.strip()}" if stderr.strip() else ""
        super().__init__(f"`{' '.join(self.command)}` exited with status {returncode}{detail}")


class StyleError(BundlegenError):
    """Raised when the stylesheet compiler fails."""


class DocumentationError(BundlegenError):
    """Raised when a documentation build step fails."""


class FaviconError(BundlegenError):
    """Raised when favicon generation or markup injection fails."""


class TaskGraphError(BundlegenError):
    """Raised for malformed task graphs (unknown names, cycles)."""


class TaskFailed(BundlegenError):
    """Raised when a task action (or one of its prerequisites) fails."""

    def __init__(self, name: str, cause: BaseException) -> None:
        self.task = name
        self.cause = cause
        super().__init__(f"Task '{name}' failed: {cause}")


__all__ = [
    "BundleError",
    "BundlegenError",
    "CodegenError",
    "CommandError",
    "ConfigError",
    "DocumentationError",
    "FaviconError",
    "StyleError",
    "TaskFailed",
    "TaskGraphError",
]
