"""Filesystem helpers shared by writers of generated artifacts."""

from __future__ import annotations

import os
from pathlib import Path
from tempfile import NamedTemporaryFile


def write_atomic(target: Path, text: str) -> None:
    """Replace ``target`` with ``text`` so readers never observe a partial file.

    On failure the temporary file is removed, the previous ``target`` is left
    untouched and the ``OSError`` propagates.
    """
    target.parent.mkdir(parents=True, exist_ok=True)
    temp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=target.parent,
            prefix=f".{target.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            temp_path = Path(handle.name)
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        temp_path.replace(target)
    except OSError:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        raise


__all__ = ["write_atomic"]
