"""Data models for rule documents and the reconciled rule store."""

from dataclasses import dataclass, field
from typing import Any, Optional

DEFAULT_VERSION = "1.0.0"
UNTITLED_RULE = "Untitled Rule"


@dataclass
class Compatibility:
    """Declared support across the four compatibility dimensions.

    An empty list means the rule places no constraint on that dimension.
    """

    ides: list[str] = field(default_factory=list)
    ai_assistants: list[str] = field(default_factory=list)
    frameworks: list[str] = field(default_factory=list)
    mcp_servers: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.ides or self.ai_assistants or self.frameworks or self.mcp_servers)

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "ides": list(self.ides),
            "ai_assistants": list(self.ai_assistants),
            "frameworks": list(self.frameworks),
            "mcp_servers": list(self.mcp_servers),
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Compatibility":
        data = data or {}
        return cls(
            ides=list(data.get("ides") or []),
            ai_assistants=list(data.get("ai_assistants") or []),
            frameworks=list(data.get("frameworks") or []),
            mcp_servers=list(data.get("mcp_servers") or []),
        )


@dataclass
class VersionConstraints:
    min_version: Optional[str] = None
    max_version: Optional[str] = None
    strict_version_check: bool = False


@dataclass
class ParsedDocument:
    """Normalized result of parsing one rule document."""

    title: str
    description: str
    version: str
    content: str
    path: str
    tags: list[str] = field(default_factory=list)
    globs: list[str] = field(default_factory=list)
    compatibility: Compatibility = field(default_factory=Compatibility)
    version_constraints: VersionConstraints = field(default_factory=VersionConstraints)
    examples: dict[str, Any] = field(default_factory=dict)
    always_apply: bool = False
    author: Optional[str] = None


@dataclass
class DocumentDescriptor:
    """One candidate document listed by a rule source."""

    path: str
    content_hash: Optional[str] = None


@dataclass
class Rule:
    id: str
    slug: str
    path: str
    title: str
    description: str
    content: str
    version: str
    category_id: str
    tags: Optional[list[str]] = None
    globs: Optional[list[str]] = None
    compatibility: Optional[Compatibility] = None
    examples: Optional[dict[str, Any]] = None
    always_apply: Optional[bool] = None
    last_updated: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class Category:
    id: str
    name: str
    slug: str
    description: str
    icon: Optional[str] = None
    order_index: Optional[int] = None
    parent_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class RuleVersion:
    rule_id: str
    version: str
    content: str
    changes: str
    id: Optional[int] = None
    created_at: Optional[str] = None


@dataclass
class SyncLog:
    sync_type: str
    added_count: int
    updated_count: int
    error_count: int
    errors: list[str]
    duration_ms: int
    id: Optional[int] = None
    created_at: Optional[str] = None
