"""Pydantic configuration models for rulesync."""

import os
import re
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


def validate_cron(expr: str) -> str:
    """Validate cron expression format (5 fields)."""
    parts = expr.split()
    if len(parts) != 5:
        raise ValueError(f"Cron must have 5 fields, got {len(parts)}: {expr}")
    for i, part in enumerate(parts):
        if not re.match(r"^[\d\-,\*/]+$", part):
            raise ValueError(f"Invalid cron field {i}: {part}")
    return expr


def _expand_env(value: Optional[str]) -> Optional[str]:
    """Resolve a ``${VAR}`` placeholder to the environment value."""
    if value and value.startswith("${") and value.endswith("}"):
        return os.getenv(value[2:-1], "")
    return value


class GitHubConfig(BaseModel):
    """Rules repository on GitHub."""

    owner: str = "idominikosgr"
    repo: str = "VibeKit-VDK-AI-rules"
    branch: str = "main"
    token: Optional[str] = None
    api_url: str = "https://api.github.com"
    timeout: float = 30.0


class LayoutConfig(BaseModel):
    """Where rule documents live inside the repository."""

    root_marker: str = ".ai"
    container: str = "rules"
    extension: str = ".mdc"
    local_dir: Optional[Path] = None

    @field_validator("extension")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        if not v.startswith("."):
            raise ValueError(f"extension must start with '.', got {v}")
        return v

    @model_validator(mode="after")
    def expand_paths(self):
        if self.local_dir:
            self.local_dir = self.local_dir.expanduser()
        return self


class SyncConfig(BaseModel):
    """Sync run configuration."""

    concurrency: int = 5
    sync_type: str = "github"
    deadline_seconds: Optional[float] = None
    schedule: str = "0 */6 * * *"

    @field_validator("concurrency")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        if not 1 <= v <= 50:
            raise ValueError(f"concurrency must be 1-50, got {v}")
        return v

    @field_validator("deadline_seconds")
    @classmethod
    def validate_deadline(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError(f"deadline_seconds must be positive, got {v}")
        return v

    @field_validator("schedule")
    @classmethod
    def validate_schedule(cls, v: str) -> str:
        return validate_cron(v)


class PathsConfig(BaseModel):
    """File paths configuration."""

    rules_db: Path = Path("~/.rulesync/rules.db")
    log_file: Path = Path("~/.rulesync/rulesync.log")

    @model_validator(mode="after")
    def expand_paths(self):
        """Expand ~ in all paths."""
        self.rules_db = self.rules_db.expanduser()
        self.log_file = self.log_file.expanduser()
        return self


class RetryConfig(BaseModel):
    """Retry/backoff configuration."""

    max_attempts: int = 3
    min_wait: float = 2.0
    max_wait: float = 10.0


VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    file_level: str = "DEBUG"
    json_output: bool = Field(default=False, alias="json")

    model_config = {"populate_by_name": True}

    @field_validator("level", "file_level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {VALID_LOG_LEVELS}")
        return v_upper


class WebhookConfig(BaseModel):
    """GitHub push webhook configuration."""

    secret: Optional[str] = None
    branches: list[str] = Field(default_factory=lambda: ["main", "master"])


ENV_OVERRIDES = {
    "GITHUB_TOKEN": ("github", "token"),
    "GITHUB_REPO_OWNER": ("github", "owner"),
    "GITHUB_REPO_NAME": ("github", "repo"),
    "GITHUB_WEBHOOK_SECRET": ("webhook", "secret"),
}


class RulesyncConfig(BaseModel):
    """Main configuration model."""

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    webhook: WebhookConfig = Field(default_factory=WebhookConfig)

    @model_validator(mode="after")
    def expand_env_vars(self):
        """Expand ${VAR} patterns in secrets, then apply env overrides."""
        self.github.token = _expand_env(self.github.token)
        self.webhook.secret = _expand_env(self.webhook.secret)
        for env_var, (section, key) in ENV_OVERRIDES.items():
            value = os.getenv(env_var)
            if value:
                setattr(getattr(self, section), key, value)
        return self

    @classmethod
    def from_dict(cls, data: dict) -> "RulesyncConfig":
        """Create config from a YAML-loaded dict."""
        return cls.model_validate(data)

    def to_dict(self) -> dict:
        """Plain dict view, as consumed by the component factories."""
        return self.model_dump(mode="python", by_alias=True)
