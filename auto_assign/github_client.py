"""GitHub API wrapper and auth helpers."""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx
from dotenv import load_dotenv

GITHUB_API_BASE_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
PULL_REQUEST_FILES_PER_PAGE = 100


class GitHubAuthError(RuntimeError):
    """Raised when required GitHub authentication is missing."""


class GitHubInputError(ValueError):
    """Raised when repository or PR input values are invalid."""


class GitHubApiError(RuntimeError):
    """Raised when a GitHub API request fails."""

    def __init__(self, message: str, *, status_code: int, endpoint: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint


@dataclass(frozen=True, slots=True)
class PullRequestMeta:
    """Normalized PR metadata required by the assignment run."""

    number: int
    title: str
    state: str
    base_ref: str
    head_ref: str

    @property
    def is_open(self) -> bool:
        """Return whether the pull request is still open."""
        return self.state == "open"


def _ensure_mapping(value: object, *, context: str) -> dict[str, Any]:
    """Ensure a response fragment is a JSON object."""
    if not isinstance(value, dict):
        raise GitHubApiError(
            f"Expected JSON object for {context}.",
            status_code=500,
            endpoint=context,
        )
    return value


def _require_str(payload: dict[str, Any], *, key: str, endpoint: str) -> str:
    """Read a required string field from payload."""
    value = payload.get(key)
    if not isinstance(value, str):
        raise GitHubApiError(
            f"Expected string field '{key}' in GitHub response.",
            status_code=500,
            endpoint=endpoint,
        )
    return value


def _require_int(payload: dict[str, Any], *, key: str, endpoint: str) -> int:
    """Read a required integer field from payload."""
    value = payload.get(key)
    if not isinstance(value, int) or isinstance(value, bool):
        raise GitHubApiError(
            f"Expected integer field '{key}' in GitHub response.",
            status_code=500,
            endpoint=endpoint,
        )
    return value


def _require_object(payload: dict[str, Any], *, key: str, endpoint: str) -> dict[str, Any]:
    """Read a required object field from payload."""
    value = payload.get(key)
    if not isinstance(value, dict):
        raise GitHubApiError(
            f"Expected object field '{key}' in GitHub response.",
            status_code=500,
            endpoint=endpoint,
        )
    return value


def _error_detail(response: httpx.Response) -> str | None:
    """Extract GitHub's error message from a failed response, if any."""
    try:
        payload = response.json()
    except ValueError:
        return None
    if isinstance(payload, dict) and isinstance(payload.get("message"), str):
        return payload["message"]
    return None


def _raise_for_status(response: httpx.Response, endpoint: str) -> None:
    """Raise a typed error for a non-success GitHub API response."""
    if response.status_code < 400:
        return
    message = f"GitHub API request failed with status {response.status_code} for '{endpoint}'."
    detail = _error_detail(response)
    if detail:
        message = f"{message} {detail}"
    raise GitHubApiError(
        message,
        status_code=response.status_code,
        endpoint=endpoint,
    )


def _decode_json(response: httpx.Response, endpoint: str) -> object:
    """Decode a JSON body, treating malformed payloads as API errors."""
    try:
        return response.json()
    except ValueError as error:
        raise GitHubApiError(
            f"Expected JSON body in GitHub response for '{endpoint}'.",
            status_code=response.status_code,
            endpoint=endpoint,
        ) from error


def _request_json(client: httpx.Client, endpoint: str) -> dict[str, Any]:
    """Perform a JSON GET request against GitHub API."""
    response = client.get(endpoint, headers={"Accept": "application/vnd.github+json"})
    _raise_for_status(response, endpoint)
    return _ensure_mapping(_decode_json(response, endpoint), context=endpoint)


def _request_json_list(client: httpx.Client, endpoint: str) -> list[dict[str, Any]]:
    """Perform a JSON GET request that returns an array of objects."""
    response = client.get(endpoint, headers={"Accept": "application/vnd.github+json"})
    _raise_for_status(response, endpoint)
    payload = _decode_json(response, endpoint)
    if not isinstance(payload, list):
        raise GitHubApiError(
            "Expected JSON array in GitHub response.",
            status_code=500,
            endpoint=endpoint,
        )
    rows: list[dict[str, Any]] = []
    for item in payload:
        if not isinstance(item, dict):
            raise GitHubApiError(
                "Expected all array items to be JSON objects in GitHub response.",
                status_code=500,
                endpoint=endpoint,
            )
        rows.append(item)
    return rows


def fetch_pull_request_metadata(
    *,
    client: httpx.Client,
    repo_full_name: str,
    pr_number: int,
) -> PullRequestMeta:
    """Fetch pull request metadata from GitHub."""
    owner, repo = parse_repo_full_name(repo_full_name)
    normalized_pr_number = validate_pr_number(pr_number)
    endpoint = f"/repos/{owner}/{repo}/pulls/{normalized_pr_number}"

    payload = _request_json(client, endpoint)
    base_payload = _require_object(payload, key="base", endpoint=endpoint)
    head_payload = _require_object(payload, key="head", endpoint=endpoint)

    return PullRequestMeta(
        number=_require_int(payload, key="number", endpoint=endpoint),
        title=_require_str(payload, key="title", endpoint=endpoint),
        state=_require_str(payload, key="state", endpoint=endpoint),
        base_ref=_require_str(base_payload, key="ref", endpoint=endpoint),
        head_ref=_require_str(head_payload, key="ref", endpoint=endpoint),
    )


def fetch_changed_filenames(
    *,
    client: httpx.Client,
    repo_full_name: str,
    pr_number: int,
) -> tuple[str, ...]:
    """Fetch changed file paths for a pull request with pagination.

    Renamed files contribute both their new and previous path, so rules
    covering either location still match.
    """
    owner, repo = parse_repo_full_name(repo_full_name)
    normalized_pr_number = validate_pr_number(pr_number)
    base_endpoint = f"/repos/{owner}/{repo}/pulls/{normalized_pr_number}/files"
    per_page = PULL_REQUEST_FILES_PER_PAGE

    filenames: dict[str, None] = {}
    page = 1
    while True:
        endpoint = f"{base_endpoint}?per_page={per_page}&page={page}"
        rows = _request_json_list(client, endpoint)
        if not rows:
            break

        for row in rows:
            filenames[_require_str(row, key="filename", endpoint=endpoint)] = None
            previous_filename = row.get("previous_filename")
            if previous_filename is not None:
                if not isinstance(previous_filename, str):
                    raise GitHubApiError(
                        "Expected 'previous_filename' to be a string or null in GitHub response.",
                        status_code=500,
                        endpoint=endpoint,
                    )
                filenames[previous_filename] = None

        if len(rows) < per_page:
            break
        page += 1

    return tuple(filenames)


def request_reviewers(
    *,
    client: httpx.Client,
    repo_full_name: str,
    pr_number: int,
    users: Iterable[str],
    teams: Iterable[str],
) -> None:
    """Request user and team reviewers on a pull request."""
    owner, repo = parse_repo_full_name(repo_full_name)
    normalized_pr_number = validate_pr_number(pr_number)
    endpoint = f"/repos/{owner}/{repo}/pulls/{normalized_pr_number}/requested_reviewers"
    response = client.post(
        endpoint,
        json={"reviewers": list(users), "team_reviewers": list(teams)},
        headers={"Accept": "application/vnd.github+json"},
    )
    _raise_for_status(response, endpoint)


def parse_repo_full_name(repo_full_name: str) -> tuple[str, str]:
    """Parse and validate repository input in owner/repo format."""
    owner, separator, repo = repo_full_name.strip().partition("/")
    if not separator or not owner or not repo or "/" in repo:
        raise GitHubInputError(
            f"Invalid repo '{repo_full_name}'. Expected format is owner/repo."
        )
    return owner, repo


def validate_pr_number(pr_number: int) -> int:
    """Validate and normalize pull request number input."""
    if pr_number <= 0:
        raise GitHubInputError(f"Invalid PR number '{pr_number}'. Expected a positive integer.")
    return pr_number


def get_github_token_with_source(explicit_token: str | None = None) -> tuple[str, str]:
    """Return the token to use and where it came from.

    An explicit token (the action's ``token`` input) wins over the environment.
    """
    if explicit_token:
        return explicit_token, "token input"

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    github_token = os.getenv("GITHUB_TOKEN")
    if github_token:
        return github_token, "GITHUB_TOKEN"

    gh_token = os.getenv("GH_TOKEN")
    if gh_token:
        return gh_token, "GH_TOKEN"

    message = "Missing GitHub token. Pass the token input or set GITHUB_TOKEN (preferred) or GH_TOKEN."
    raise GitHubAuthError(message)


def build_github_client(
    token: str,
    timeout_seconds: int = 20,
    *,
    trust_env: bool = True,
) -> httpx.Client:
    """Build an authenticated GitHub HTTP client."""
    headers = {
        "Accept": "application/vnd.github+json",
        "Authorization": f"Bearer {token}",
        "X-GitHub-Api-Version": GITHUB_API_VERSION,
    }
    return httpx.Client(
        base_url=GITHUB_API_BASE_URL,
        headers=headers,
        timeout=timeout_seconds,
        trust_env=trust_env,
    )
