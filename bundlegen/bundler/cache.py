"""Per-module incremental state for the bundler."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional


@dataclass
class CachedModule:
    """Transformed output and resolved dependencies of one module."""

    path: Path
    source: str
    code: str
    dependencies: Dict[str, Path] = field(default_factory=dict)
    line_exact: bool = True


class BundleCache:
    """Holds transformed modules between bundles of one watch session.

    Entries are invalidated one path at a time; the cache is never cleared
    wholesale while the process lives.
    """

    def __init__(self) -> None:
        self._entries: Dict[Path, CachedModule] = {}

    def get(self, path: Path) -> Optional[CachedModule]:
        return self._entries.get(path)

    def store(self, module: CachedModule) -> None:
        self._entries[module.path] = module

    def invalidate(self, paths: Iterable[Path]) -> List[Path]:
        removed: List[Path] = []
        for path in paths:
            if self._entries.pop(Path(path), None) is not None:
                removed.append(Path(path))
        return removed

    def prune(self, keep: Iterable[Path]) -> List[Path]:
        keep_set = set(keep)
        removed = [path for path in self._entries if path not in keep_set]
        for path in removed:
            del self._entries[path]
        return removed

    def paths(self) -> List[Path]:
        return list(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["BundleCache", "CachedModule"]
