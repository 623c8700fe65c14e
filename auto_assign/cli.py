"""Typer CLI for the reviewer auto-assignment action."""

from __future__ import annotations

import logging
from typing import Annotated

import httpx
import typer

from auto_assign.config import DEFAULT_CONFIG_FILE_PATH, ConfigurationError, load_config
from auto_assign.event import ActionContextError, UnsupportedEventError, load_action_context
from auto_assign.github_client import (
    GitHubApiError,
    GitHubAuthError,
    GitHubInputError,
    build_github_client,
    get_github_token_with_source,
)
from auto_assign.rules import ReviewerAssignment, resolve_reviewers
from auto_assign.runner import run_assignment

app = typer.Typer(help="Assign pull request reviewers from path-based rules.")

TRUE_INPUT_VALUES = {"true", "True", "TRUE"}
FALSE_INPUT_VALUES = {"false", "False", "FALSE", ""}


class ActionInputError(ValueError):
    """Raised when an action input has an unsupported value."""


FATAL_ERRORS = (
    ActionInputError,
    ConfigurationError,
    UnsupportedEventError,
    ActionContextError,
    GitHubAuthError,
    GitHubInputError,
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        force=True,
    )


def parse_boolean_input(value: str, *, name: str) -> bool:
    """Parse an action input using the YAML 1.2 core boolean spellings."""
    stripped = value.strip()
    if stripped in TRUE_INPUT_VALUES:
        return True
    if stripped in FALSE_INPUT_VALUES:
        return False
    raise ActionInputError(
        f"Input does not meet YAML 1.2 \"Core Schema\" specification: {name}. "
        "Support boolean input list: `true | True | TRUE | false | False | FALSE`"
    )


def _fail(message: str) -> typer.Exit:
    """Report a failure the way GitHub Actions annotates errors."""
    typer.echo(f"::error::{message}")
    return typer.Exit(code=1)


def _echo_assignment(assignment: ReviewerAssignment) -> None:
    typer.echo(f"User reviewers: {','.join(assignment.sorted_users())}")
    typer.echo(f"Team reviewers: {','.join(assignment.sorted_teams())}")


@app.command("run")
def run_command(
    token: Annotated[
        str | None,
        typer.Option(envvar="INPUT_TOKEN", help="GitHub token used for API calls."),
    ] = None,
    config_file_path: Annotated[
        str,
        typer.Option(envvar="INPUT_CONFIG-FILE-PATH", help="Path to the reviewer YAML file."),
    ] = DEFAULT_CONFIG_FILE_PATH,
    match_hidden_files: Annotated[
        str,
        typer.Option(
            envvar="INPUT_MATCH-HIDDEN-FILES",
            help="Whether wildcards also match dot-prefixed paths (true|false).",
        ),
    ] = "false",
    repo: Annotated[
        str | None, typer.Option(help="Repository in owner/repo format. Defaults to Actions env.")
    ] = None,
    pr: Annotated[
        int | None, typer.Option(help="Pull request number. Defaults to the event payload.")
    ] = None,
    actor: Annotated[
        str | None, typer.Option(help="Pull request actor. Defaults to GITHUB_ACTOR.")
    ] = None,
    event_name: Annotated[
        str | None, typer.Option(help="Triggering event name. Defaults to GITHUB_EVENT_NAME.")
    ] = None,
    dry_run: Annotated[bool, typer.Option(help="Resolve reviewers without requesting them.")] = False,
    timeout_seconds: Annotated[int, typer.Option(help="GitHub API timeout in seconds.")] = 20,
    trust_env: Annotated[
        bool,
        typer.Option(
            "--trust-env/--no-trust-env",
            help="Use proxy and SSL settings from environment variables.",
        ),
    ] = True,
    verbose: Annotated[bool, typer.Option(help="Enable debug logging.")] = False,
) -> None:
    """Assign reviewers to the pull request that triggered this run."""
    _configure_logging(verbose)

    try:
        hidden = parse_boolean_input(match_hidden_files, name="match-hidden-files")
        context = load_action_context(
            event_name=event_name,
            actor=actor,
            repository=repo,
            pr_number=pr,
        )
        config = load_config(config_file_path)
        resolved_token, _source = get_github_token_with_source(token)
        with build_github_client(
            resolved_token, timeout_seconds=timeout_seconds, trust_env=trust_env
        ) as client:
            outcome = run_assignment(
                client=client,
                context=context,
                config=config,
                match_hidden_files=hidden,
                dry_run=dry_run,
            )
    except FATAL_ERRORS as error:
        raise _fail(str(error)) from error
    except GitHubApiError as error:
        raise _fail(f"{error} (status={error.status_code} endpoint={error.endpoint})") from error
    except httpx.HTTPError as error:
        raise _fail(f"GitHub request failed: network error ({error}).") from error
    except Exception as error:
        raise _fail(f"Unexpected error: {error}") from error

    if outcome.assignment is not None:
        _echo_assignment(outcome.assignment)
    typer.echo(outcome.message)


@app.command("check-config")
def check_config_command(
    config_file_path: Annotated[
        str,
        typer.Option(envvar="INPUT_CONFIG-FILE-PATH", help="Path to the reviewer YAML file."),
    ] = DEFAULT_CONFIG_FILE_PATH,
    file: Annotated[
        list[str] | None,
        typer.Option("--file", help="Changed path to preview assignment for. Repeatable."),
    ] = None,
    actor: Annotated[str, typer.Option(help="Author to exclude from the preview.")] = "",
    match_hidden_files: Annotated[
        str, typer.Option(help="Whether wildcards also match dot-prefixed paths (true|false).")
    ] = "false",
) -> None:
    """Validate a reviewer configuration and optionally preview an assignment."""
    try:
        hidden = parse_boolean_input(match_hidden_files, name="match-hidden-files")
        config = load_config(config_file_path)
    except (ActionInputError, ConfigurationError) as error:
        raise _fail(str(error)) from error

    teams = sum(1 for rule in config.reviewers if rule.team)
    typer.echo(
        f"Configuration {config_file_path} is valid: "
        f"{len(config.reviewers) - teams} user rule(s), {teams} team rule(s)."
    )

    if file:
        assignment = resolve_reviewers(
            config.reviewers,
            file,
            actor,
            match_hidden_files=hidden,
        )
        _echo_assignment(assignment)
