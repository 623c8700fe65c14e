"""Tests for the CLI commands."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterator
from pathlib import Path

import httpx
import pytest
from auto_assign import cli
from typer.testing import CliRunner

runner = CliRunner()

CONFIG_TEXT = """
reviewers:
  - name: alice
  - name: core-team
    team: true
    paths: ["src/**"]
  - name: dotfiles
    paths: ["*"]
ignore:
  titles: ["WIP"]
"""

RUN_ARGS = [
    "run",
    "--token",
    "test-token",
    "--repo",
    "acme/rocket",
    "--pr",
    "42",
    "--actor",
    "octocat",
    "--event-name",
    "pull_request",
]


@pytest.fixture(autouse=True)
def restore_root_logging(clean_actions_env: None) -> Iterator[None]:
    """Undo the logging setup each CLI invocation performs."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def make_handler(
    *,
    state: str = "open",
    title: str = "Add checks",
    files: tuple[str, ...] = ("src/a.py",),
    requests: list[dict[str, object]] | None = None,
    files_status: int = 200,
) -> Callable[[httpx.Request], httpx.Response]:
    """Build a mock GitHub API handler for one pull request."""

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/repos/acme/rocket/pulls/42":
            return httpx.Response(
                status_code=200,
                json={
                    "number": 42,
                    "title": title,
                    "state": state,
                    "base": {"ref": "main"},
                    "head": {"ref": "topic"},
                },
            )
        if path == "/repos/acme/rocket/pulls/42/files":
            rows = [{"filename": name} for name in files]
            return httpx.Response(status_code=files_status, json=rows)
        if path == "/repos/acme/rocket/pulls/42/requested_reviewers":
            if requests is not None:
                requests.append(json.loads(request.content))
            return httpx.Response(status_code=201, json={})
        raise AssertionError(f"Unexpected endpoint {path}")

    return handler


def patch_client(
    monkeypatch: pytest.MonkeyPatch, handler: Callable[[httpx.Request], httpx.Response]
) -> None:
    monkeypatch.setattr(
        cli,
        "build_github_client",
        lambda token, timeout_seconds=20, trust_env=True: httpx.Client(
            base_url="https://api.github.com",
            transport=httpx.MockTransport(handler),
        ),
    )


@pytest.mark.unit
def test_run_requests_reviewers(
    monkeypatch: pytest.MonkeyPatch, write_config: Callable[[str], Path]
) -> None:
    requests: list[dict[str, object]] = []
    patch_client(monkeypatch, make_handler(requests=requests))
    config_path = write_config(CONFIG_TEXT)

    result = runner.invoke(cli.app, [*RUN_ARGS, "--config-file-path", str(config_path)])

    assert result.exit_code == 0, result.output
    assert "User reviewers: alice,dotfiles" in result.output
    assert "Team reviewers: core-team" in result.output
    assert "Requested reviewers on acme/rocket#42." in result.output
    assert requests == [{"reviewers": ["alice", "dotfiles"], "team_reviewers": ["core-team"]}]


@pytest.mark.unit
def test_run_reads_action_inputs_from_environment(
    monkeypatch: pytest.MonkeyPatch, write_config: Callable[[str], Path]
) -> None:
    requests: list[dict[str, object]] = []
    patch_client(monkeypatch, make_handler(files=(".env",), requests=requests))
    config_path = write_config("reviewers:\n  - name: dotfiles\n    paths: ['*']\n")

    result = runner.invoke(
        cli.app,
        RUN_ARGS,
        env={
            "INPUT_CONFIG-FILE-PATH": str(config_path),
            "INPUT_MATCH-HIDDEN-FILES": "true",
        },
    )

    assert result.exit_code == 0, result.output
    assert requests == [{"reviewers": ["dotfiles"], "team_reviewers": []}]


@pytest.mark.unit
def test_run_dry_run_does_not_request(
    monkeypatch: pytest.MonkeyPatch, write_config: Callable[[str], Path]
) -> None:
    requests: list[dict[str, object]] = []
    patch_client(monkeypatch, make_handler(requests=requests))
    config_path = write_config(CONFIG_TEXT)

    result = runner.invoke(
        cli.app, [*RUN_ARGS, "--config-file-path", str(config_path), "--dry-run"]
    )

    assert result.exit_code == 0, result.output
    assert "Dry run: reviewers not requested." in result.output
    assert requests == []


@pytest.mark.unit
def test_run_treats_closed_pull_request_as_success(
    monkeypatch: pytest.MonkeyPatch, write_config: Callable[[str], Path]
) -> None:
    patch_client(monkeypatch, make_handler(state="closed"))
    config_path = write_config(CONFIG_TEXT)

    result = runner.invoke(cli.app, [*RUN_ARGS, "--config-file-path", str(config_path)])

    assert result.exit_code == 0
    assert "This pull request is not open." in result.output


@pytest.mark.unit
def test_run_treats_ignored_title_as_success(
    monkeypatch: pytest.MonkeyPatch, write_config: Callable[[str], Path]
) -> None:
    patch_client(monkeypatch, make_handler(title="WIP: launch"))
    config_path = write_config(CONFIG_TEXT)

    result = runner.invoke(cli.app, [*RUN_ARGS, "--config-file-path", str(config_path)])

    assert result.exit_code == 0
    assert "Pull request matched an ignore rule." in result.output


@pytest.mark.unit
def test_run_fails_for_unsupported_event(write_config: Callable[[str], Path]) -> None:
    config_path = write_config(CONFIG_TEXT)
    args = [*RUN_ARGS[:-1], "push", "--config-file-path", str(config_path)]

    result = runner.invoke(cli.app, args)

    assert result.exit_code == 1
    assert "::error::This action only supports pull_request event" in result.output


@pytest.mark.unit
def test_run_fails_when_config_missing(tmp_path: Path) -> None:
    missing = tmp_path / "missing.yml"

    result = runner.invoke(cli.app, [*RUN_ARGS, "--config-file-path", str(missing)])

    assert result.exit_code == 1
    assert "::error::Config file not found" in result.output


@pytest.mark.unit
def test_run_fails_on_api_error(
    monkeypatch: pytest.MonkeyPatch, write_config: Callable[[str], Path]
) -> None:
    patch_client(monkeypatch, make_handler(files_status=500))
    config_path = write_config(CONFIG_TEXT)

    result = runner.invoke(cli.app, [*RUN_ARGS, "--config-file-path", str(config_path)])

    assert result.exit_code == 1
    assert "::error::GitHub API request failed with status 500" in result.output
    assert "endpoint=/repos/acme/rocket/pulls/42/files" in result.output


@pytest.mark.unit
def test_run_fails_on_non_json_response(
    monkeypatch: pytest.MonkeyPatch, write_config: Callable[[str], Path]
) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code=200, text="<html>maintenance</html>")

    patch_client(monkeypatch, handler)
    config_path = write_config(CONFIG_TEXT)

    result = runner.invoke(cli.app, [*RUN_ARGS, "--config-file-path", str(config_path)])

    assert result.exit_code == 1
    assert "::error::Expected JSON body in GitHub response" in result.output
    assert "endpoint=/repos/acme/rocket/pulls/42)" in result.output


@pytest.mark.unit
def test_run_passes_trust_env_to_client(
    monkeypatch: pytest.MonkeyPatch, write_config: Callable[[str], Path]
) -> None:
    captured: dict[str, object] = {}
    handler = make_handler()

    def fake_build(
        token: str, timeout_seconds: int = 20, *, trust_env: bool = True
    ) -> httpx.Client:
        captured["trust_env"] = trust_env
        return httpx.Client(
            base_url="https://api.github.com",
            transport=httpx.MockTransport(handler),
        )

    monkeypatch.setattr(cli, "build_github_client", fake_build)
    config_path = write_config(CONFIG_TEXT)

    result = runner.invoke(
        cli.app,
        [*RUN_ARGS, "--config-file-path", str(config_path), "--no-trust-env", "--dry-run"],
    )

    assert result.exit_code == 0, result.output
    assert captured == {"trust_env": False}


@pytest.mark.unit
def test_run_rejects_non_boolean_hidden_files_input(write_config: Callable[[str], Path]) -> None:
    config_path = write_config(CONFIG_TEXT)

    result = runner.invoke(
        cli.app,
        [*RUN_ARGS, "--config-file-path", str(config_path), "--match-hidden-files", "yes"],
    )

    assert result.exit_code == 1
    assert "::error::Input does not meet YAML 1.2" in result.output


@pytest.mark.unit
@pytest.mark.parametrize(
    ("value", "expected"),
    [("true", True), ("TRUE", True), ("False", False), ("", False)],
)
def test_parse_boolean_input(value: str, expected: bool) -> None:
    assert cli.parse_boolean_input(value, name="flag") is expected


@pytest.mark.unit
def test_check_config_reports_rule_counts(write_config: Callable[[str], Path]) -> None:
    config_path = write_config(CONFIG_TEXT)

    result = runner.invoke(cli.app, ["check-config", "--config-file-path", str(config_path)])

    assert result.exit_code == 0
    assert "2 user rule(s), 1 team rule(s)" in result.output


@pytest.mark.unit
def test_check_config_previews_assignment(write_config: Callable[[str], Path]) -> None:
    config_path = write_config(CONFIG_TEXT)

    result = runner.invoke(
        cli.app,
        [
            "check-config",
            "--config-file-path",
            str(config_path),
            "--file",
            "src/main.py",
            "--file",
            "README.md",
            "--actor",
            "alice",
        ],
    )

    assert result.exit_code == 0
    assert "User reviewers: dotfiles" in result.output
    assert "Team reviewers: core-team" in result.output


@pytest.mark.unit
def test_check_config_rejects_non_boolean_hidden_files_input(
    write_config: Callable[[str], Path],
) -> None:
    config_path = write_config(CONFIG_TEXT)

    result = runner.invoke(
        cli.app,
        ["check-config", "--config-file-path", str(config_path), "--match-hidden-files", "on"],
    )

    assert result.exit_code == 1
    assert "::error::Input does not meet YAML 1.2" in result.output


@pytest.mark.unit
def test_check_config_fails_for_invalid_file(write_config: Callable[[str], Path]) -> None:
    config_path = write_config("reviewers:\n  - name: alice\n    team: maybe\n")

    result = runner.invoke(cli.app, ["check-config", "--config-file-path", str(config_path)])

    assert result.exit_code == 1
    assert "::error::Invalid configuration" in result.output
