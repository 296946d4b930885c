"""Change classification for watch-triggered rebuilds."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Sequence

from .models import BuildDecision, ChangeKind, FileChangeEvent

_OPERATIONS = {
    ChangeKind.ADDED: "addition of",
    ChangeKind.REMOVED: "deletion of",
    ChangeKind.MODIFIED: "changes to",
}


def change_operation(kind: ChangeKind) -> str:
    """Return the verb phrase used when logging a change of ``kind``."""
    return _OPERATIONS[kind]


class ChangeClassifier:
    """Decides which build steps a change set requires.

    Paths in ``ignored_paths`` are the generated registry modules. A write
    to one of them must never count as a source change, otherwise every
    regeneration would schedule another one.
    """

    def __init__(
        self,
        ignored_paths: Iterable[Path],
        *,
        partial_suffix: str = ".hbs",
        style_suffixes: Sequence[str] = (".less",),
    ) -> None:
        self._ignored = {Path(path) for path in ignored_paths}
        self._partial_suffix = partial_suffix
        self._style_suffixes = tuple(style_suffixes)

    @property
    def ignored_paths(self) -> frozenset[Path]:
        return frozenset(self._ignored)

    def classify(self, paths: Iterable[Path]) -> BuildDecision:
        changed = _unique(Path(path) for path in paths)
        if not changed:
            return BuildDecision(regenerate=True, bundle=True, initial=True)

        accepted = [path for path in changed if path not in self._ignored]
        if not accepted:
            return BuildDecision(regenerate=False, bundle=False)

        styles = [path for path in accepted if self._is_style(path)]
        scripts = [path for path in accepted if not self._is_style(path)]
        lint_targets = [path for path in scripts if not path.name.endswith(self._partial_suffix)]
        return BuildDecision(
            regenerate=bool(scripts),
            bundle=bool(scripts),
            restyle=bool(styles),
            changed=tuple(accepted),
            lint_targets=tuple(lint_targets),
        )

    def describe(self, events: Sequence[FileChangeEvent], *, relative_to: Path | None = None) -> str:
        """Return a human readable summary of an accepted change set."""
        lines: List[str] = []
        for event in events:
            if event.path in self._ignored:
                continue
            lines.append(f"\t{change_operation(event.kind)} {_display(event.path, relative_to)}")
        return "\n".join(lines)

    def _is_style(self, path: Path) -> bool:
        return path.suffix in self._style_suffixes


def _unique(paths: Iterable[Path]) -> List[Path]:
    seen: set[Path] = set()
    ordered: List[Path] = []
    for path in paths:
        if path in seen:
            continue
        seen.add(path)
        ordered.append(path)
    return ordered


def _display(path: Path, relative_to: Path | None) -> str:
    if relative_to is None:
        return str(path)
    try:
        return path.relative_to(relative_to).as_posix()
    except ValueError:
        return str(path)


__all__ = ["ChangeClassifier", "change_operation"]
