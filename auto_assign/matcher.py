"""Glob matching of changed file paths."""

from __future__ import annotations

from typing import Protocol

from wcmatch import glob

BASE_GLOB_FLAGS = glob.GLOBSTAR | glob.MATCHBASE | glob.BRACE | glob.EXTGLOB | glob.FORCEUNIX


class GlobMatcher(Protocol):
    """Protocol for engines that match one glob pattern against one path."""

    def matches(self, pattern: str, filename: str, *, match_hidden_files: bool) -> bool:
        """Return whether ``pattern`` matches the repository-relative ``filename``."""


class WcMatchGlobMatcher:
    """Shell-style globbing backed by ``wcmatch``.

    ``*`` and ``?`` stay within one path segment, ``**`` spans directories,
    and a pattern without a slash is matched against the base name. Without
    ``match_hidden_files`` wildcards never match a leading dot, so hidden
    files and directories only match when the pattern names them.
    """

    def matches(self, pattern: str, filename: str, *, match_hidden_files: bool) -> bool:
        """Return whether ``pattern`` matches ``filename``."""
        if not pattern.strip():
            return False
        flags = BASE_GLOB_FLAGS
        if match_hidden_files:
            flags |= glob.DOTGLOB
        return glob.globmatch(filename, pattern, flags=flags)
