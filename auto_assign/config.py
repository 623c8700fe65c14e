"""Reviewer configuration schema and YAML loading."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

DEFAULT_CONFIG_FILE_PATH = ".github/auto_assign.yml"


class ConfigurationError(ValueError):
    """Raised when the reviewer configuration is missing or invalid."""


class ReviewerRule(BaseModel):
    """One configured reviewer or team and the paths it owns.

    ``paths`` left out means the reviewer is always requested. An explicit
    empty list means the rule never matches.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(min_length=1)
    paths: tuple[str, ...] | None = None
    team: bool = False

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        """Reject names that are only whitespace."""
        if not value.strip():
            raise ValueError("name must not be blank")
        return value


class IgnoreRule(BaseModel):
    """Authors and title substrings that cause a pull request to be skipped."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    authors: frozenset[str] | None = None
    titles: tuple[str, ...] | None = None


class AssignConfig(BaseModel):
    """Root of the reviewer configuration file."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    reviewers: tuple[ReviewerRule, ...]
    ignore: IgnoreRule | None = None


def parse_config(text: str, *, source: str = "<string>") -> AssignConfig:
    """Parse YAML text into a validated configuration."""
    try:
        payload = yaml.safe_load(text)
    except yaml.YAMLError as error:
        raise ConfigurationError(f"Invalid YAML in {source}: {error}") from error

    if not isinstance(payload, dict):
        raise ConfigurationError(f"Expected a mapping at the top level of {source}.")

    try:
        return AssignConfig.model_validate(payload)
    except ValidationError as error:
        raise ConfigurationError(f"Invalid configuration in {source}: {error}") from error


def load_config(config_path: Path | str) -> AssignConfig:
    """Read and validate the configuration file at ``config_path``."""
    path = Path(config_path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as error:
        raise ConfigurationError(f"Config file not found: {path}") from error
    except OSError as error:
        raise ConfigurationError(f"Cannot read config file {path}: {error}") from error
    return parse_config(text, source=str(path))
