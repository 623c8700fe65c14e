"""GitHub Actions run context."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

SUPPORTED_EVENT_NAME = "pull_request"
GITHUB_EVENT_NAME_ENV_VAR = "GITHUB_EVENT_NAME"
GITHUB_EVENT_PATH_ENV_VAR = "GITHUB_EVENT_PATH"
GITHUB_ACTOR_ENV_VAR = "GITHUB_ACTOR"
GITHUB_REPOSITORY_ENV_VAR = "GITHUB_REPOSITORY"


class UnsupportedEventError(RuntimeError):
    """Raised when the triggering event is not a pull request event."""


class ActionContextError(ValueError):
    """Raised when the run context lacks a repository, PR number, or actor."""


@dataclass(frozen=True, slots=True)
class ActionContext:
    """Event metadata for one run, passed explicitly into the assignment flow."""

    event_name: str
    actor: str
    repository: str
    pr_number: int


def _pr_number_from_payload(payload: Mapping[str, Any]) -> int | None:
    """Read the issue/PR number the way the Actions toolkit resolves it."""
    for key in ("issue", "pull_request"):
        section = payload.get(key)
        if isinstance(section, dict) and isinstance(section.get("number"), int):
            return section["number"]
    number = payload.get("number")
    if isinstance(number, int) and not isinstance(number, bool):
        return number
    return None


def read_event_payload(event_path: Path | str) -> dict[str, Any]:
    """Load the webhook payload file written by the Actions runner."""
    path = Path(event_path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as error:
        raise ActionContextError(f"Cannot read event payload {path}: {error}") from error
    if not isinstance(payload, dict):
        raise ActionContextError(f"Expected a JSON object in event payload {path}.")
    return payload


def load_action_context(
    *,
    event_name: str | None = None,
    actor: str | None = None,
    repository: str | None = None,
    pr_number: int | None = None,
    environ: Mapping[str, str] | None = None,
) -> ActionContext:
    """Build the run context from explicit overrides and the Actions environment.

    The event name is checked first so non pull request runs fail with
    ``UnsupportedEventError`` before anything else is read.
    """
    env = os.environ if environ is None else environ

    resolved_event_name = event_name or env.get(GITHUB_EVENT_NAME_ENV_VAR, "")
    require_pull_request_event(resolved_event_name)

    resolved_actor = actor or env.get(GITHUB_ACTOR_ENV_VAR)
    resolved_repository = repository or env.get(GITHUB_REPOSITORY_ENV_VAR)

    resolved_pr_number = pr_number
    if resolved_pr_number is None:
        event_path = env.get(GITHUB_EVENT_PATH_ENV_VAR)
        if event_path:
            resolved_pr_number = _pr_number_from_payload(read_event_payload(event_path))

    if not resolved_actor:
        raise ActionContextError(f"Missing actor. Pass --actor or set {GITHUB_ACTOR_ENV_VAR}.")
    if not resolved_repository:
        raise ActionContextError(
            f"Missing repository. Pass --repo or set {GITHUB_REPOSITORY_ENV_VAR}."
        )
    if resolved_pr_number is None:
        raise ActionContextError(
            f"Missing pull request number. Pass --pr or set {GITHUB_EVENT_PATH_ENV_VAR}."
        )

    return ActionContext(
        event_name=resolved_event_name,
        actor=resolved_actor,
        repository=resolved_repository,
        pr_number=resolved_pr_number,
    )


def require_pull_request_event(event_name: str) -> None:
    """Fail unless the run was triggered by a pull request event."""
    if event_name != SUPPORTED_EVENT_NAME:
        raise UnsupportedEventError(
            f"This action only supports {SUPPORTED_EVENT_NAME} event, got '{event_name or 'unknown'}'."
        )
