"""Shared tree-sitter helpers for JavaScript sources."""

from __future__ import annotations

import codecs
from typing import Iterator, List

import tree_sitter_javascript
from tree_sitter import Language, Node, Parser, Tree

JAVASCRIPT = Language(tree_sitter_javascript.language())


def parse(code: str) -> Tree:
    return Parser(JAVASCRIPT).parse(code.encode("utf-8"))


def walk(node: Node) -> Iterator[Node]:
    """Yield ``node`` and every descendant in source order."""
    stack: List[Node] = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def node_text(node: Node) -> str:
    return (node.text or b"").decode("utf-8")


def string_value(node: Node) -> str:
    """Return the unquoted value of a ``string`` literal node."""
    parts: List[str] = []
    for child in node.named_children:
        if child.type == "string_fragment":
            parts.append(node_text(child))
        elif child.type == "escape_sequence":
            escape = node_text(child)
            try:
                parts.append(codecs.decode(escape, "unicode_escape"))
            except UnicodeDecodeError:
                # ES-only escapes such as \u{...} keep their literal character.
                parts.append(escape[1:])
    return "".join(parts)


__all__ = ["JAVASCRIPT", "node_text", "parse", "string_value", "walk"]
