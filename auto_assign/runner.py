"""Assignment run orchestration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

import httpx

from auto_assign.config import AssignConfig
from auto_assign.event import ActionContext
from auto_assign.github_client import (
    fetch_changed_filenames,
    fetch_pull_request_metadata,
    request_reviewers,
)
from auto_assign.matcher import GlobMatcher
from auto_assign.rules import ReviewerAssignment, resolve_reviewers, should_proceed

logger = logging.getLogger(__name__)


class RunStatus(StrEnum):
    """How an assignment run finished."""

    ASSIGNED = "assigned"
    DRY_RUN = "dry_run"
    NO_REVIEWERS = "no_reviewers"
    SKIPPED_NOT_OPEN = "skipped_not_open"
    SKIPPED_IGNORED = "skipped_ignored"
    SKIPPED_NO_FILES = "skipped_no_files"


@dataclass(frozen=True, slots=True)
class RunOutcome:
    """Result of one run. Skips are successful outcomes, not errors."""

    status: RunStatus
    message: str
    assignment: ReviewerAssignment | None = None

    @property
    def skipped(self) -> bool:
        return self.status.startswith("skipped_")


def run_assignment(
    *,
    client: httpx.Client,
    context: ActionContext,
    config: AssignConfig,
    match_hidden_files: bool = False,
    dry_run: bool = False,
    matcher: GlobMatcher | None = None,
) -> RunOutcome:
    """Resolve and request reviewers for the pull request in ``context``.

    API calls run sequentially and the review request, the only write, is
    always the last step.
    """
    metadata = fetch_pull_request_metadata(
        client=client,
        repo_full_name=context.repository,
        pr_number=context.pr_number,
    )
    if not metadata.is_open:
        logger.info("This pull request is not open")
        return RunOutcome(RunStatus.SKIPPED_NOT_OPEN, "This pull request is not open.")

    if not should_proceed(config.ignore, context.actor, metadata.title):
        return RunOutcome(RunStatus.SKIPPED_IGNORED, "Pull request matched an ignore rule.")

    filenames = fetch_changed_filenames(
        client=client,
        repo_full_name=context.repository,
        pr_number=context.pr_number,
    )
    if not filenames:
        logger.info("No files changed")
        return RunOutcome(RunStatus.SKIPPED_NO_FILES, "No files changed.")
    logger.debug("Changed files: %s", ", ".join(filenames))

    assignment = resolve_reviewers(
        config.reviewers,
        filenames,
        context.actor,
        match_hidden_files=match_hidden_files,
        matcher=matcher,
    )
    logger.info("User reviewers: %s", ",".join(assignment.sorted_users()))
    logger.info("Team reviewers: %s", ",".join(assignment.sorted_teams()))

    if assignment.is_empty:
        return RunOutcome(
            RunStatus.NO_REVIEWERS,
            "No reviewers matched the changed files.",
            assignment,
        )

    if dry_run:
        return RunOutcome(RunStatus.DRY_RUN, "Dry run: reviewers not requested.", assignment)

    request_reviewers(
        client=client,
        repo_full_name=context.repository,
        pr_number=context.pr_number,
        users=assignment.sorted_users(),
        teams=assignment.sorted_teams(),
    )
    return RunOutcome(
        RunStatus.ASSIGNED,
        f"Requested reviewers on {context.repository}#{context.pr_number}.",
        assignment,
    )
