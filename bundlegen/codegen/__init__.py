"""Code generation for the partial and view registries."""

from .generator import (
    PARTIAL_SUFFIX,
    VIEW_SUFFIX,
    RegistryGenerator,
    partial_registry,
    view_registry,
)
from .registry import build_descriptor, camel_case, view_identifier, view_identifiers
from .render import RegistryRenderer
from .scanner import scan_sources

__all__ = [
    "PARTIAL_SUFFIX",
    "VIEW_SUFFIX",
    "RegistryGenerator",
    "RegistryRenderer",
    "build_descriptor",
    "camel_case",
    "partial_registry",
    "scan_sources",
    "view_identifier",
    "view_identifiers",
    "view_registry",
]
