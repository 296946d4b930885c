"""Directory scanning for registry generation."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator, List

from ..errors import CodegenError


def scan_sources(directory: Path, suffix: str) -> List[Path]:
    """Return every file below ``directory`` ending in ``suffix``, in sorted walk order."""
    return [path for path in _iter_files(directory) if path.name.endswith(suffix)]


def _iter_files(root: Path) -> Iterator[Path]:
    if not root.is_dir():
        raise CodegenError(f"Source directory not found: {root}")

    def _raise(error: OSError) -> None:
        raise CodegenError(f"Failed to read {error.filename}: {error.strerror}") from error

    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        dirnames.sort()
        current_dir = Path(dirpath)
        for filename in sorted(filenames):
            yield current_dir / filename


__all__ = ["scan_sources"]
