"""Dependency discovery and Node-style module resolution."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional, Sequence

from tree_sitter import Node

from ..errors import BundleError
from ..syntax import node_text, parse, string_value, walk

DEFAULT_EXTENSIONS = (".es6", ".js", ".json")


def find_dependencies(code: str) -> List[str]:
    """Return the distinct ``require()`` requests in ``code``, in order of appearance.

    Only calls of the bare ``require`` identifier with a single string literal
    argument count; comments, strings and member calls are not dependencies.
    """
    requests: List[str] = []
    for node in walk(parse(code).root_node):
        if node.type != "call_expression":
            continue
        request = _require_request(node)
        if request and request not in requests:
            requests.append(request)
    return requests


def _require_request(call: Node) -> Optional[str]:
    function = call.child_by_field_name("function")
    if function is None or function.type != "identifier" or node_text(function) != "require":
        return None
    arguments = call.child_by_field_name("arguments")
    if arguments is None:
        return None
    values = [child for child in arguments.named_children if child.type != "comment"]
    if len(values) != 1 or values[0].type != "string":
        return None
    return string_value(values[0])


class ModuleResolver:
    """Resolves require requests to files the way Node and browserify do."""

    def __init__(
        self,
        *,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        module_dirs: Sequence[Path] = (),
    ) -> None:
        self.extensions = tuple(extensions)
        self.module_dirs = tuple(module_dirs)

    def resolve(self, request: str, from_path: Path) -> Path:
        if request.startswith(("./", "../", "/")) or request in {".", ".."}:
            base = (from_path.parent / request).resolve()
            resolved = self._resolve_file(base) or self._resolve_directory(base)
        else:
            resolved = self._resolve_package(request, from_path)
        if resolved is None:
            raise BundleError(f"Cannot find module '{request}' from '{from_path}'")
        return resolved

    def _resolve_file(self, candidate: Path) -> Optional[Path]:
        if candidate.is_file():
            return candidate
        for extension in self.extensions:
            with_extension = candidate.with_name(candidate.name + extension)
            if with_extension.is_file():
                return with_extension
        return None

    def _resolve_directory(self, directory: Path) -> Optional[Path]:
        if not directory.is_dir():
            return None
        manifest = directory / "package.json"
        if manifest.is_file():
            entry = _package_entry(manifest)
            if entry:
                target = (directory / entry).resolve()
                resolved = self._resolve_file(target) or self._resolve_index(target)
                if resolved is not None:
                    return resolved
        return self._resolve_index(directory)

    def _resolve_index(self, directory: Path) -> Optional[Path]:
        if not directory.is_dir():
            return None
        return self._resolve_file(directory / "index")

    def _resolve_package(self, request: str, from_path: Path) -> Optional[Path]:
        for modules_dir in self._candidate_module_dirs(from_path):
            target = modules_dir / request
            resolved = self._resolve_file(target) or self._resolve_directory(target)
            if resolved is not None:
                return resolved
        return None

    def _candidate_module_dirs(self, from_path: Path) -> List[Path]:
        candidates: List[Path] = []
        for parent in from_path.parents:
            if parent.name == "node_modules":
                continue
            candidates.append(parent / "node_modules")
        candidates.extend(self.module_dirs)
        return candidates


def _package_entry(manifest: Path) -> Optional[str]:
    try:
        payload = json.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise BundleError(f"Invalid package manifest {manifest}: {exc}") from exc
    if not isinstance(payload, dict):
        return None
    for key in ("browser", "main"):
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
    return None


__all__ = ["DEFAULT_EXTENSIONS", "ModuleResolver", "find_dependencies"]
