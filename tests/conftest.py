"""Shared pytest fixtures and test-run configuration."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest

GITHUB_CONTEXT_ENV_VARS = (
    "GITHUB_EVENT_NAME",
    "GITHUB_EVENT_PATH",
    "GITHUB_ACTOR",
    "GITHUB_REPOSITORY",
    "INPUT_TOKEN",
    "INPUT_CONFIG-FILE-PATH",
    "INPUT_MATCH-HIDDEN-FILES",
)


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add custom pytest options for integration test execution."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run tests marked as integration (live GitHub API).",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests unless explicitly enabled."""
    run_integration = config.getoption("--run-integration")
    env_enabled = os.getenv("RUN_INTEGRATION_TESTS") == "1"
    if run_integration or env_enabled:
        return

    skip_marker = pytest.mark.skip(
        reason=(
            "Integration tests are disabled by default. "
            "Use --run-integration or set RUN_INTEGRATION_TESTS=1."
        )
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_marker)


@pytest.fixture
def clean_actions_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove GitHub Actions variables leaking in from the host environment."""
    for name in GITHUB_CONTEXT_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[str], Path]:
    """Write YAML text to a temporary config file and return its path."""

    def _write(text: str) -> Path:
        path = tmp_path / "auto_assign.yml"
        path.write_text(text, encoding="utf-8")
        return path

    return _write
