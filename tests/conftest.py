from __future__ import annotations

import logging
from pathlib import Path

import pytest

from tests._fixtures.project_builder import ProjectBuilder


@pytest.fixture
def project_builder(tmp_path: Path) -> ProjectBuilder:
    """Provide a reusable project builder rooted at the pytest tmp_path."""
    return ProjectBuilder(tmp_path)


@pytest.fixture
def project(project_builder: ProjectBuilder) -> ProjectBuilder:
    """A project populated with a small but complete static tree."""
    return project_builder.write_defaults()


@pytest.fixture(autouse=True)
def _restore_bundlegen_logger():
    """CLI tests reconfigure the package logger; put it back afterwards."""
    logger = logging.getLogger("bundlegen")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
