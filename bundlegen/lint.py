"""Tree-sitter powered syntax lint for script sources."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from tree_sitter import Node, Parser

from .logging import get_logger
from .syntax import JAVASCRIPT

SCRIPT_SUFFIXES = (".js", ".es6")


@dataclass(frozen=True)
class LintIssue:
    """A syntax problem located in a source file."""

    path: Path
    line: int
    column: int
    message: str


class ScriptLinter:
    """Parses script files and reports syntax errors without failing the build."""

    def __init__(
        self,
        root: Path,
        *,
        suffixes: Sequence[str] = SCRIPT_SUFFIXES,
        exclude: Iterable[Path] = (),
    ) -> None:
        self.root = root
        self.suffixes = tuple(suffixes)
        self.exclude = {Path(path) for path in exclude}
        self._parser = Parser(JAVASCRIPT)
        self.logger = get_logger("lint")

    def lint_source(self, path: Path, source: str) -> List[LintIssue]:
        source_bytes = source.encode("utf-8")
        tree = self._parser.parse(source_bytes)
        if not tree.root_node.has_error:
            return []
        issues: List[LintIssue] = []
        self._collect(tree.root_node, path, issues)
        return issues

    async def lint(self, paths: Optional[Sequence[Path]] = None) -> List[LintIssue]:
        """Lint ``paths`` (every script under the root when None) and log a report."""
        targets = self._targets(paths)
        issues: List[LintIssue] = []
        for path in targets:
            try:
                source = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                self.logger.warning("Skipping lint of %s: %s", path, exc)
                continue
            issues.extend(self.lint_source(path, source))
            await asyncio.sleep(0)
        if issues:
            self.logger.warning("%s", self.report(issues))
        else:
            self.logger.debug("Lint passed for %d file(s)", len(targets))
        return issues

    def report(self, issues: Sequence[LintIssue]) -> str:
        grouped: Dict[Path, List[LintIssue]] = {}
        for issue in issues:
            grouped.setdefault(issue.path, []).append(issue)
        lines: List[str] = []
        for path, file_issues in grouped.items():
            lines.append(self._display(path))
            for issue in file_issues:
                lines.append(f"  line {issue.line}  col {issue.column}  {issue.message}")
            lines.append("")
        noun = "problem" if len(issues) == 1 else "problems"
        lines.append(f"✖ {len(issues)} {noun}")
        return "\n".join(lines)

    def _targets(self, paths: Optional[Sequence[Path]]) -> List[Path]:
        if paths is None:
            candidates: Iterable[Path] = sorted(self.root.rglob("*"))
        else:
            candidates = paths
        return [
            Path(path)
            for path in candidates
            if Path(path).suffix in self.suffixes and Path(path) not in self.exclude and Path(path).is_file()
        ]

    def _collect(self, node: Node, path: Path, issues: List[LintIssue]) -> None:
        if node.is_missing:
            issues.append(self._issue(node, path, f"Missing '{node.type}'"))
            return
        if node.type == "ERROR":
            snippet = (node.text or b"").decode("utf-8", errors="replace").strip().splitlines()
            token = snippet[0][:30] if snippet else ""
            issues.append(self._issue(node, path, f"Unexpected '{token}'"))
            return
        for child in node.children:
            if child.has_error or child.is_missing:
                self._collect(child, path, issues)

    @staticmethod
    def _issue(node: Node, path: Path, message: str) -> LintIssue:
        row, column = node.start_point
        return LintIssue(path=path, line=row + 1, column=column + 1, message=message)

    def _display(self, path: Path) -> str:
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return str(path)


__all__ = ["LintIssue", "SCRIPT_SUFFIXES", "ScriptLinter"]
