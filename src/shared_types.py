"""Shared enums for rulesync."""

from enum import StrEnum


class SyncType(StrEnum):
    GITHUB = "github"
    CATEGORY = "category"
    LOCAL = "local"
    WEBHOOK = "webhook"
    SCHEDULED = "scheduled"


class SyncOutcome(StrEnum):
    ADDED = "added"
    UPDATED = "updated"
    ERROR = "error"
    SKIPPED = "skipped"
