"""Shared test fixtures for routesync.

Provides reusable fixtures for the sample manifests, isolated settings
environments, output state, and settings objects. These fixtures are
automatically discovered by pytest and available to all test modules.
"""

from __future__ import annotations

import json
import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest

from routesync.models import RouteDescriptor, Settings
from routesync.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"

FIXED_NOW = datetime(2024, 3, 5, 14, 7, 9)


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams and the
    test finishes, the cached references become stale. Resetting forces a
    fresh manager to be created on next use. The log handler installed by
    the CLI callback holds the same stale stream, so it is removed too.
    """
    yield
    reset_output()
    logger = logging.getLogger("routesync")
    for handler in list(logger.handlers):
        if getattr(handler, "_routesync", False):
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Manifest fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def routes_raw() -> list[dict[str, Any]]:
    """Raw Laravel-style route manifest."""
    with open(FIXTURES_DIR / "routes.json") as f:
        return json.load(f)


@pytest.fixture
def rules_raw() -> dict[str, Any]:
    """Raw rule manifest using the handlers/requests layout."""
    with open(FIXTURES_DIR / "rules.json") as f:
        return json.load(f)


@pytest.fixture
def routes(routes_raw: list[dict[str, Any]]) -> list[RouteDescriptor]:
    """Parsed route descriptors from the sample manifest."""
    from routesync.sources.routes import parse_route_manifest

    return parse_route_manifest(routes_raw)


@pytest.fixture
def settings() -> Settings:
    """Default settings."""
    return Settings()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test inside a throwaway project directory.

    Copies the sample manifests into tmp_path, points XDG_DATA_HOME at a
    subdirectory, clears ROUTESYNC_* and POSTMAN_API_KEY, and changes the
    working directory to tmp_path.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in [
        "ROUTESYNC_COLLECTION_ID",
        "ROUTESYNC_WORKSPACE_ID",
        "ROUTESYNC_BASE_URL",
        "ROUTESYNC_PREFIX",
        "ROUTESYNC_GROUP_BY",
        "POSTMAN_API_KEY",
    ]:
        monkeypatch.delenv(var, raising=False)

    shutil.copy(FIXTURES_DIR / "routes.json", tmp_path / "routes.json")
    shutil.copy(FIXTURES_DIR / "rules.json", tmp_path / "rules.json")
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet output manager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
