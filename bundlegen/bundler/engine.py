"""Module graph traversal and bundle emission."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from ..errors import BundleError
from .cache import BundleCache, CachedModule
from .resolve import ModuleResolver, find_dependencies
from .sourcemap import SourceMapBuilder
from .transforms import Transform

_PRELUDE = """(function (modules, entries) {
\tvar cache = {};
\tfunction load(id) {
\t\tif (cache[id]) {
\t\t\treturn cache[id].exports;
\t\t}
\t\tvar definition = modules[id];
\t\tvar module = cache[id] = { exports: {} };
\t\tdefinition[0].call(module.exports, function (name) {
\t\t\tvar target = definition[1][name];
\t\t\tif (target === undefined) {
\t\t\t\tthrow new Error("Cannot find module '" + name + "'");
\t\t\t}
\t\t\treturn load(target);
\t\t}, module, module.exports);
\t\treturn module.exports;
\t}
\tfor (var i = 0; i < entries.length; i++) {
\t\tload(entries[i]);
\t}
})({"""


@dataclass
class BundleOutput:
    """A rendered bundle, its source map and rebuild statistics."""

    code: str
    source_map: str
    modules: int
    rebuilt: List[Path]


class BundleEngine:
    """Walks the dependency graph from the entries, reusing cached modules."""

    def __init__(
        self,
        *,
        transforms: Sequence[Transform],
        resolver: ModuleResolver,
        cache: BundleCache,
        source_root: Optional[Path] = None,
    ) -> None:
        self.transforms = list(transforms)
        self.resolver = resolver
        self.cache = cache
        self.source_root = source_root

    async def build(self, entries: Sequence[Path], output_name: str) -> BundleOutput:
        order: List[Path] = []
        rebuilt: List[Path] = []
        seen: set[Path] = set()
        pending: List[Path] = [Path(entry).resolve() for entry in reversed(entries)]

        # Depth-first from the entries so module ids are stable between builds.
        while pending:
            path = pending.pop()
            if path in seen:
                continue
            seen.add(path)
            module = self.cache.get(path)
            if module is None:
                module = await self._load(path)
                self.cache.store(module)
                rebuilt.append(path)
            order.append(path)
            pending.extend(reversed([dep for dep in module.dependencies.values() if dep not in seen]))

        self.cache.prune(order)
        code, source_map = self._render(order, [Path(entry).resolve() for entry in entries], output_name)
        return BundleOutput(code=code, source_map=source_map, modules=len(order), rebuilt=rebuilt)

    async def _load(self, path: Path) -> CachedModule:
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise BundleError(f"Cannot read module {path}: {exc}") from exc

        code = source
        line_exact = True
        for transform in self.transforms:
            if not transform.applies(path):
                continue
            result = await transform.apply(path, code)
            code = result.code
            line_exact = line_exact and result.line_exact

        dependencies: Dict[str, Path] = {}
        for request in find_dependencies(code):
            dependencies[request] = self.resolver.resolve(request, path)
        # Yield between modules so concurrent work (lint) interleaves.
        await asyncio.sleep(0)
        return CachedModule(
            path=path,
            source=source,
            code=code,
            dependencies=dependencies,
            line_exact=line_exact,
        )

    def _render(self, order: Sequence[Path], entries: Iterable[Path], output_name: str) -> tuple[str, str]:
        ids = {path: index for index, path in enumerate(order)}
        source_map = SourceMapBuilder(output_name, source_root=self.source_root)
        lines: List[str] = _PRELUDE.split("\n")
        source_map.add_lines(len(lines))

        for index, path in enumerate(order):
            module = self.cache.get(path)
            if module is None:  # pragma: no cover - populated by build()
                raise BundleError(f"Module {path} missing from cache")
            source_index = source_map.add_source(path, module.source)
            lines.append(f"{ids[path]}: [function (require, module, exports) {{")
            source_map.add_line()

            body = module.code.split("\n")
            if body and body[-1] == "":
                body.pop()
            source_lines = module.source.count("\n") + 1
            for line_number, text in enumerate(body):
                lines.append(text)
                if line_number == 0 or (module.line_exact and line_number < source_lines):
                    source_map.add_line(source_index, line_number if module.line_exact else 0)
                else:
                    source_map.add_line()

            dependency_ids = {request: ids[dep] for request, dep in module.dependencies.items()}
            separator = "," if index < len(order) - 1 else ""
            lines.append(f"}}, {json.dumps(dependency_ids, sort_keys=True)}]{separator}")
            source_map.add_line()

        entry_ids = [ids[entry] for entry in entries]
        lines.append(f"}}, {json.dumps(entry_ids)});")
        source_map.add_line()
        lines.append(f"//# sourceMappingURL={output_name}.map")
        source_map.add_line()
        return "\n".join(lines) + "\n", source_map.to_json()


__all__ = ["BundleEngine", "BundleOutput"]
