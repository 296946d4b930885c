"""Pure registry construction: logical names, module references, identifiers."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Dict, Iterable

from ..errors import CodegenError
from ..models import GeneratedModuleDescriptor

_WORD_RE = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z]+|[0-9]+")


def logical_name(path: Path, source_dir: Path, suffix: str) -> str:
    """Path relative to ``source_dir`` with ``suffix`` stripped (``nav/header``)."""
    relative = Path(os.path.relpath(path, source_dir)).as_posix()
    if suffix and relative.endswith(suffix):
        relative = relative[: -len(suffix)]
    return relative


def module_reference(path: Path, bundle_root: Path) -> str:
    """Path relative to the bundle root, always starting with ``./`` or ``../``."""
    relative = Path(os.path.relpath(path, bundle_root)).as_posix()
    if not relative.startswith(("./", "../")):
        relative = f"./{relative}"
    return relative


def build_descriptor(
    paths: Iterable[Path],
    *,
    source_dir: Path,
    bundle_root: Path,
    suffix: str,
    target_path: Path,
) -> GeneratedModuleDescriptor:
    """Map each matching path to its logical name; later duplicates win."""
    entries: Dict[str, str] = {}
    for path in paths:
        if not path.name.endswith(suffix):
            continue
        entries[logical_name(path, source_dir, suffix)] = module_reference(path, bundle_root)
    return GeneratedModuleDescriptor(target_path=target_path, entries=entries)


def camel_case(name: str) -> str:
    words = _WORD_RE.findall(name)
    if not words:
        return ""
    head, tail = words[0].lower(), words[1:]
    return head + "".join(word[:1].upper() + word[1:].lower() for word in tail)


def view_identifier(name: str) -> str:
    # The underscore keeps names starting with a digit valid.
    return f"_{camel_case(name)}"


def view_identifiers(descriptor: GeneratedModuleDescriptor) -> Dict[str, str]:
    """Return ``logical name -> identifier``, failing on identifier collisions."""
    identifiers: Dict[str, str] = {}
    owners: Dict[str, str] = {}
    for name in descriptor.entries:
        identifier = view_identifier(name)
        previous = owners.get(identifier)
        if previous is not None and previous != name:
            raise CodegenError(
                f"Views '{previous}' and '{name}' both map to identifier '{identifier}'; rename one of them"
            )
        owners[identifier] = name
        identifiers[name] = identifier
    return identifiers


__all__ = [
    "build_descriptor",
    "camel_case",
    "logical_name",
    "module_reference",
    "view_identifier",
    "view_identifiers",
]
