"""Tests for atomic file replacement."""

from __future__ import annotations

from pathlib import Path

import pytest

from bundlegen.fileio import write_atomic


def test_write_atomic_creates_parents_and_replaces(tmp_path: Path) -> None:
    target = tmp_path / "nested" / "out.js"

    write_atomic(target, "one\n")
    write_atomic(target, "two\n")

    assert target.read_text(encoding="utf-8") == "two\n"
    assert [path.name for path in target.parent.iterdir()] == ["out.js"]


def test_failed_write_keeps_previous_contents(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    target = tmp_path / "out.js"
    target.write_text("previous\n", encoding="utf-8")

    def _fail(fd: int) -> None:
        raise OSError("no space left on device")

    monkeypatch.setattr("bundlegen.fileio.os.fsync", _fail)

    with pytest.raises(OSError, match="no space"):
        write_atomic(target, "partial")

    assert target.read_text(encoding="utf-8") == "previous\n"
    assert [path.name for path in tmp_path.iterdir()] == ["out.js"]
