"""Source transforms applied to each module before bundling."""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import rjsmin
from tree_sitter import Node

from ..errors import BundleError, CommandError
from ..process import CommandRunner, check_command, run_command
from ..syntax import node_text, parse, string_value, walk


@dataclass
class TransformResult:
    """Code produced by a transform and whether source lines still line up."""

    code: str
    line_exact: bool = True


class Transform(ABC):
    """Contract for per-module source transforms."""

    name = "transform"

    @abstractmethod
    def applies(self, path: Path) -> bool:
        """Return True when this transform should run for ``path``."""

    @abstractmethod
    async def apply(self, path: Path, code: str) -> TransformResult:
        """Return the transformed code for ``path``."""


class PartialTemplateTransform(Transform):
    """Turns a template partial into a module exporting the compiled template."""

    name = "partials"

    def __init__(self, runtime: str = "handlebars", extensions: Sequence[str] = (".hbs",)) -> None:
        self.runtime = runtime
        self.extensions = tuple(extensions)

    def applies(self, path: Path) -> bool:
        return path.suffix in self.extensions

    async def apply(self, path: Path, code: str) -> TransformResult:
        template = json.dumps(code)
        if not self.runtime:
            return TransformResult(f"module.exports = {template};\n", line_exact=False)
        runtime = json.dumps(self.runtime)
        return TransformResult(
            f"var Handlebars = require({runtime});\n"
            f"module.exports = Handlebars.compile({template});\n",
            line_exact=False,
        )


class JsonTransform(Transform):
    """Exports parsed JSON documents as CommonJS modules."""

    name = "json"

    def applies(self, path: Path) -> bool:
        return path.suffix == ".json"

    async def apply(self, path: Path, code: str) -> TransformResult:
        try:
            json.loads(code)
        except json.JSONDecodeError as exc:
            raise BundleError(f"Invalid JSON in {path}: {exc}") from exc
        return TransformResult(f"module.exports = {code.strip()};\n", line_exact=False)


class DownLevelTransform(Transform):
    """Rewrites ES module syntax to CommonJS, optionally after an external transpiler.

    Rewrites keep the line count of every statement they replace so that
    source map lines stay aligned with the original file.
    """

    name = "down-level"

    def __init__(
        self,
        *,
        extensions: Sequence[str] = (".es6",),
        command: Sequence[str] = (),
        runner: CommandRunner = run_command,
    ) -> None:
        self.extensions = tuple(extensions)
        self.command = tuple(command)
        self._runner = runner

    def applies(self, path: Path) -> bool:
        return path.suffix in self.extensions

    async def apply(self, path: Path, code: str) -> TransformResult:
        line_exact = True
        if self.command:
            try:
                result = await check_command(
                    self._runner, [*self.command, "--filename", str(path)], cwd=path.parent, stdin=code
                )
            except CommandError as exc:
                raise BundleError(f"Transpiler failed for {path}: {exc}") from exc
            code = result.stdout
            line_exact = False
        return TransformResult(esm_to_commonjs(code, path), line_exact=line_exact)


class MinifyTransform(Transform):
    """Minifies every module; used outside development."""

    name = "minify"

    def applies(self, path: Path) -> bool:
        return True

    async def apply(self, path: Path, code: str) -> TransformResult:
        return TransformResult(rjsmin.jsmin(code), line_exact=False)


_MODULE_KEYWORD_RE = re.compile(r"\s*(?:import|export)\b")
_MODULE_CLAUSES = ("import_clause", "export_clause", "namespace_export", "string")

_ES_MODULE_MARKER = 'Object.defineProperty(exports, "__esModule", { value: true }); '


def esm_to_commonjs(code: str, path: Optional[Path] = None) -> str:
    """Rewrite top-level import/export statements to require()/exports assignments."""
    tree = parse(code)
    _reject_unsupported(tree.root_node, path)

    rewriter = _ModuleRewriter(code.encode("utf-8"))
    for node in tree.root_node.named_children:
        if node.type == "import_statement":
            rewriter.rewrite_import(node)
        elif node.type == "export_statement":
            rewriter.rewrite_export(node, path)

    if not rewriter.edits:
        return code
    code = rewriter.render()
    if not rewriter.exported:
        return code
    if rewriter.trailer:
        if not code.endswith("\n"):
            code += "\n"
        code += " ".join(rewriter.trailer) + "\n"
    return _ES_MODULE_MARKER + code


def _reject_unsupported(root: Node, path: Optional[Path]) -> None:
    # Errors inside an exported declaration's body are left to lint.
    if not root.has_error:
        return
    for node in walk(root):
        broken_keyword = node.type == "ERROR" and _MODULE_KEYWORD_RE.match(node_text(node))
        if broken_keyword or _broken_module_statement(node):
            raise BundleError(f"Unsupported module syntax at {_where(node, path)}")


def _broken_module_statement(node: Node) -> bool:
    if node.type not in ("import_statement", "export_statement"):
        return False
    for child in node.children:
        if child.type == "ERROR" or child.is_missing:
            return True
        if child.type in _MODULE_CLAUSES and child.has_error:
            return True
    return False


def _where(node: Node, path: Optional[Path]) -> str:
    line = node.start_point[0] + 1
    return f"{path}:{line}" if path else f"line {line}"


class _ModuleRewriter:
    """Collects byte-range edits; every replacement keeps the newlines it covers."""

    def __init__(self, source: bytes) -> None:
        self.source = source
        self.counter = 0
        self.exported = False
        self.trailer: List[str] = []
        self.edits: List[Tuple[int, int, str]] = []

    def render(self) -> str:
        output = self.source
        for start, end, replacement in sorted(self.edits, reverse=True):
            padding = "\n" * self.source.count(b"\n", start, end)
            output = output[:start] + (replacement + padding).encode("utf-8") + output[end:]
        return output.decode("utf-8")

    def _replace(self, start: int, end: int, replacement: str) -> None:
        self.edits.append((start, end, replacement))

    def _temp(self) -> str:
        name = f"_bundlegen_module{self.counter}"
        self.counter += 1
        return name

    def rewrite_import(self, node: Node) -> None:
        source = node.child_by_field_name("source")
        request = json.dumps(string_value(source)) if source is not None else '""'
        clause = _first_named(node, "import_clause")
        if clause is None:
            self._replace(node.start_byte, node.end_byte, f"require({request});")
            return

        default: Optional[str] = None
        namespace: Optional[str] = None
        named: List[Tuple[str, str]] = []
        for child in clause.named_children:
            if child.type == "identifier":
                default = node_text(child)
            elif child.type == "namespace_import":
                identifier = _first_named(child, "identifier")
                namespace = node_text(identifier) if identifier is not None else None
            elif child.type == "named_imports":
                for specifier in child.named_children:
                    if specifier.type != "import_specifier":
                        continue
                    name = specifier.child_by_field_name("name")
                    alias = specifier.child_by_field_name("alias")
                    named.append((_module_name(name), node_text(alias or name)))

        temp = self._temp()
        statements = [f"var {temp} = require({request});"]
        if namespace:
            statements.append(f"var {namespace} = {temp};")
        if default:
            statements.append(
                f'var {default} = {temp} && {temp}.__esModule ? {temp}["default"] : {temp};'
            )
        for imported, local in named:
            statements.append(f"var {local} = {temp}[{json.dumps(imported)}];")
        self._replace(node.start_byte, node.end_byte, " ".join(statements))

    def rewrite_export(self, node: Node, path: Optional[Path]) -> None:
        self.exported = True
        keyword = next(child for child in node.children if child.type == "export")
        is_default = any(child.type == "default" for child in node.children)
        declaration = node.child_by_field_name("declaration")
        value = node.child_by_field_name("value")
        source = node.child_by_field_name("source")

        if declaration is not None:
            self._replace(keyword.start_byte, declaration.start_byte, "")
            names = _declared_names(declaration)
            if is_default:
                names = names[:1]
                self.trailer.extend(f'exports["default"] = {name};' for name in names)
            else:
                self.trailer.extend(f"exports[{json.dumps(name)}] = {name};" for name in names)
            return
        if value is not None:
            self._replace(keyword.start_byte, value.start_byte, 'exports["default"] = ')
            return

        clause = _first_named(node, "export_clause")
        specifiers = _export_specifiers(clause) if clause is not None else []
        if source is None:
            if clause is None:
                raise BundleError(f"Unsupported module syntax at {_where(node, path)}")
            for local, exported in specifiers:
                self.trailer.append(f"exports[{json.dumps(exported)}] = {local};")
            self._replace(node.start_byte, node.end_byte, "")
            return

        temp = self._temp()
        statements = [f"var {temp} = require({json.dumps(string_value(source))});"]
        namespace = _first_named(node, "namespace_export")
        if clause is not None:
            for imported, exported in specifiers:
                statements.append(f"exports[{json.dumps(exported)}] = {temp}[{json.dumps(imported)}];")
        elif namespace is not None:
            name = namespace.named_children[-1]
            statements.append(f"exports[{json.dumps(_module_name(name))}] = {temp};")
        else:
            statements.append(
                f"Object.keys({temp}).forEach(function (key) {{ "
                f'if (key !== "default" && key !== "__esModule") {{ exports[key] = {temp}[key]; }} }});'
            )
        self._replace(node.start_byte, node.end_byte, " ".join(statements))


def _first_named(node: Node, node_type: str) -> Optional[Node]:
    return next((child for child in node.named_children if child.type == node_type), None)


def _module_name(node: Optional[Node]) -> str:
    if node is None:
        return ""
    return string_value(node) if node.type == "string" else node_text(node)


def _export_specifiers(clause: Node) -> List[Tuple[str, str]]:
    specifiers: List[Tuple[str, str]] = []
    for specifier in clause.named_children:
        if specifier.type != "export_specifier":
            continue
        name = specifier.child_by_field_name("name")
        alias = specifier.child_by_field_name("alias")
        specifiers.append((_module_name(name), _module_name(alias or name)))
    return specifiers


def _declared_names(declaration: Node) -> List[str]:
    if declaration.type in ("lexical_declaration", "variable_declaration"):
        names: List[str] = []
        for declarator in declaration.named_children:
            if declarator.type == "variable_declarator":
                names.extend(_bound_names(declarator.child_by_field_name("name")))
        return names
    name = declaration.child_by_field_name("name")
    return [node_text(name)] if name is not None else []


def _bound_names(pattern: Optional[Node]) -> List[str]:
    """Return the identifiers a binding pattern introduces, left to right."""
    if pattern is None:
        return []
    if pattern.type in ("identifier", "shorthand_property_identifier_pattern"):
        return [node_text(pattern)]
    if pattern.type == "pair_pattern":
        return _bound_names(pattern.child_by_field_name("value"))
    if pattern.type in ("assignment_pattern", "object_assignment_pattern"):
        return _bound_names(pattern.child_by_field_name("left"))
    names: List[str] = []
    for child in pattern.named_children:
        names.extend(_bound_names(child))
    return names


def default_transforms(
    *,
    development: bool,
    template_runtime: str = "handlebars",
    transpile_command: Sequence[str] = (),
    runner: CommandRunner = run_command,
) -> List[Transform]:
    """Return the transform chain used for application bundles."""
    transforms: List[Transform] = [
        PartialTemplateTransform(runtime=template_runtime),
        DownLevelTransform(command=transpile_command, runner=runner),
        JsonTransform(),
    ]
    if not development:
        transforms.append(MinifyTransform())
    return transforms


__all__ = [
    "DownLevelTransform",
    "JsonTransform",
    "MinifyTransform",
    "PartialTemplateTransform",
    "Transform",
    "TransformResult",
    "default_transforms",
    "esm_to_commonjs",
]
