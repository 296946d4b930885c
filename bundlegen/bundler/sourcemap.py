"""Version 3 source map construction."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional, Tuple

_BASE64 = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"


def vlq_encode(value: int) -> str:
    """Encode one signed integer as a base64 VLQ string."""
    vlq = ((-value) << 1) | 1 if value < 0 else value << 1
    encoded = []
    while True:
        digit = vlq & 0b11111
        vlq >>= 5
        if vlq:
            digit |= 0b100000
        encoded.append(_BASE64[digit])
        if not vlq:
            return "".join(encoded)


class SourceMapBuilder:
    """Accumulates a line-granular mapping from bundle lines to source lines."""

    def __init__(self, file: str, source_root: Optional[Path] = None) -> None:
        self.file = file
        self.source_root = source_root
        self._sources: List[str] = []
        self._contents: List[str] = []
        # One entry per generated line: (source index, source line) or None.
        self._lines: List[Optional[Tuple[int, int]]] = []

    def add_source(self, path: Path, content: str) -> int:
        self._sources.append(self._source_name(path))
        self._contents.append(content)
        return len(self._sources) - 1

    def add_line(self, source: Optional[int] = None, line: int = 0) -> None:
        self._lines.append(None if source is None else (source, line))

    def add_lines(self, count: int) -> None:
        self._lines.extend([None] * count)

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def mappings(self) -> str:
        encoded_lines: List[str] = []
        previous_source = 0
        previous_line = 0
        for entry in self._lines:
            if entry is None:
                encoded_lines.append("")
                continue
            source, line = entry
            segment = "".join(
                (
                    vlq_encode(0),
                    vlq_encode(source - previous_source),
                    vlq_encode(line - previous_line),
                    vlq_encode(0),
                )
            )
            previous_source, previous_line = source, line
            encoded_lines.append(segment)
        return ";".join(encoded_lines)

    def to_dict(self) -> Dict[str, object]:
        return {
            "version": 3,
            "file": self.file,
            "sources": list(self._sources),
            "sourcesContent": list(self._contents),
            "names": [],
            "mappings": self.mappings(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    def _source_name(self, path: Path) -> str:
        if self.source_root is not None:
            try:
                return path.relative_to(self.source_root).as_posix()
            except ValueError:
                pass
        return path.as_posix()


__all__ = ["SourceMapBuilder", "vlq_encode"]
