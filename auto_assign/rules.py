"""Ignore filtering and reviewer resolution."""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable
from dataclasses import dataclass

from auto_assign.config import IgnoreRule, ReviewerRule
from auto_assign.matcher import GlobMatcher, WcMatchGlobMatcher

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReviewerAssignment:
    """Users and teams to request as reviewers."""

    users: frozenset[str] = frozenset()
    teams: frozenset[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.users and not self.teams

    def sorted_users(self) -> list[str]:
        return sorted(self.users)

    def sorted_teams(self) -> list[str]:
        return sorted(self.teams)


def should_proceed(ignore: IgnoreRule | None, actor: str, title: str) -> bool:
    """Return False when the pull request matches an ignore rule."""
    if ignore is None:
        return True

    if ignore.authors and actor in ignore.authors:
        logger.info("Ignored author: %s", actor)
        return False

    for ignored_title in ignore.titles or ():
        if ignored_title in title:
            logger.info("Ignored title: %s", title)
            return False

    return True


def _pattern_matches_any(
    matcher: GlobMatcher,
    pattern: str,
    changed_files: Iterable[str],
    *,
    match_hidden_files: bool,
) -> bool:
    return any(
        matcher.matches(pattern, filename, match_hidden_files=match_hidden_files)
        for filename in changed_files
    )


def rule_matches(
    rule: ReviewerRule,
    changed_files: Collection[str],
    *,
    match_hidden_files: bool = False,
    matcher: GlobMatcher | None = None,
) -> bool:
    """Return whether ``rule`` applies to the changed files.

    Patterns are tried in order and evaluation stops at the first one that
    matches any file.
    """
    if rule.paths is None:
        return True
    glob_matcher = matcher or WcMatchGlobMatcher()
    for pattern in rule.paths:
        if _pattern_matches_any(
            glob_matcher,
            pattern,
            changed_files,
            match_hidden_files=match_hidden_files,
        ):
            logger.debug("Reviewer %s matched pattern %s", rule.name, pattern)
            return True
    return False


def resolve_reviewers(
    rules: Iterable[ReviewerRule],
    changed_files: Collection[str],
    actor: str,
    *,
    match_hidden_files: bool = False,
    matcher: GlobMatcher | None = None,
) -> ReviewerAssignment:
    """Compute the reviewers to request for a set of changed files.

    The pull request author is never assigned, even by an unconditional rule.
    """
    glob_matcher = matcher or WcMatchGlobMatcher()
    users: set[str] = set()
    teams: set[str] = set()

    for rule in rules:
        if rule.name == actor:
            logger.debug("Skipping reviewer %s: author of the pull request", rule.name)
            continue
        if rule_matches(
            rule,
            changed_files,
            match_hidden_files=match_hidden_files,
            matcher=glob_matcher,
        ):
            if rule.team:
                teams.add(rule.name)
            else:
                users.add(rule.name)

    return ReviewerAssignment(users=frozenset(users), teams=frozenset(teams))
