"""jinja2 rendering of generated registry modules."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List

from jinja2 import Environment, FileSystemLoader

from ..models import GeneratedModuleDescriptor
from .registry import view_identifiers

_TEMPLATES_DIR = Path(__file__).with_name("templates")


def _js_string(value: object) -> str:
    return json.dumps(str(value))


def create_environment(templates_dir: Path | None = None) -> Environment:
    directories = []
    if templates_dir:
        directories.append(str(templates_dir))
    directories.append(str(_TEMPLATES_DIR))
    env = Environment(
        loader=FileSystemLoader(directories),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["js_string"] = _js_string
    return env


class RegistryRenderer:
    """Renders descriptors into JavaScript source text."""

    def __init__(self, env: Environment | None = None) -> None:
        self._env = env or create_environment()

    def render_partials(self, descriptor: GeneratedModuleDescriptor) -> str:
        template = self._env.get_template("partials.js.j2")
        return template.render(entries=descriptor.entries)

    def render_views(self, descriptor: GeneratedModuleDescriptor) -> str:
        identifiers = view_identifiers(descriptor)
        views: List[Dict[str, str]] = [
            {"name": name, "reference": reference, "identifier": identifiers[name]}
            for name, reference in descriptor.entries.items()
        ]
        template = self._env.get_template("view-map.es6.j2")
        return template.render(views=views)


__all__ = ["RegistryRenderer", "create_environment"]
