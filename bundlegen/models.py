"""Core data models shared across bundlegen components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Tuple


class ChangeKind(str, Enum):
    """Kind of filesystem change reported by a watcher."""

    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


@dataclass(frozen=True)
class FileChangeEvent:
    """A single detected change to a path on disk."""

    path: Path
    kind: ChangeKind = ChangeKind.MODIFIED


@dataclass(frozen=True)
class BuildDecision:
    """What a change set requires from the build pipeline."""

    regenerate: bool
    bundle: bool
    restyle: bool = False
    initial: bool = False
    changed: Tuple[Path, ...] = ()
    lint_targets: Tuple[Path, ...] = ()

    @property
    def skipped(self) -> bool:
        return not (self.regenerate or self.bundle or self.restyle)


@dataclass
class GeneratedModuleDescriptor:
    """A registry module: where it is written and what it maps."""

    target_path: Path
    entries: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class DocumentationVersion:
    """One versioned documentation tree below the alias directory."""

    version_id: str
    root_dir: Path
    package_name: str

    @property
    def directory(self) -> Path:
        return self.root_dir / self.package_name / self.version_id


__all__ = [
    "BuildDecision",
    "ChangeKind",
    "DocumentationVersion",
    "FileChangeEvent",
    "GeneratedModuleDescriptor",
]
