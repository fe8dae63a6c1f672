"""Rule document parser: ``.mdc`` frontmatter + markdown body -> ParsedDocument.

Parsing never raises on malformed input. Every problem is reported as a
diagnostic string next to a best-effort result, so one bad document cannot
abort a sync batch.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Optional

import frontmatter
import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .adapters import apply_adapters, lookup, scalar_text
from .models import (
    DEFAULT_VERSION,
    UNTITLED_RULE,
    Compatibility,
    ParsedDocument,
    VersionConstraints,
)
from .paths import clean_path

logger = structlog.get_logger().bind(source="rule_parser")

FRONTMATTER_DELIMITER = "---"
_HEADING_RE = re.compile(r"^#[ \t]+(.+)$", re.MULTILINE)
_TRUTHY = {"true", "yes", "on", "1"}


# --- Validation schema ---


class CompatibilitySchema(BaseModel):
    model_config = ConfigDict(strict=True)

    ides: list[str] = Field(default_factory=list)
    ai_assistants: list[str] = Field(default_factory=list)
    frameworks: list[str] = Field(default_factory=list)
    mcp_servers: list[str] = Field(default_factory=list)


class VersionConstraintsSchema(BaseModel):
    model_config = ConfigDict(strict=True)

    min_version: Optional[str] = None
    max_version: Optional[str] = None
    strict_version_check: bool = False


class RuleDocumentSchema(BaseModel):
    """Shape a normalized rule document must have."""

    model_config = ConfigDict(strict=True)

    title: str
    description: str
    version: str
    content: str
    path: str
    author: Optional[str] = None
    tags: list[str]
    compatibility: CompatibilitySchema
    version_constraints: Optional[VersionConstraintsSchema] = None
    globs: Optional[list[str]] = None
    examples: Optional[dict[str, Any]] = None
    always_apply: Optional[bool] = None


@dataclass
class ValidationReport:
    valid: bool
    errors: list[dict[str, str]] = field(default_factory=list)


def validate_rule_document(data: dict) -> ValidationReport:
    """Check *data* against RuleDocumentSchema without raising.

    Errors carry the dotted field path and the validator message.
    """
    try:
        RuleDocumentSchema.model_validate(data)
    except ValidationError as e:
        return ValidationReport(
            valid=False,
            errors=[
                {"path": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
                for err in e.errors()
            ],
        )
    return ValidationReport(valid=True)


def document_to_dict(doc: ParsedDocument) -> dict:
    """Flatten a ParsedDocument into the dict shape RuleDocumentSchema checks."""
    return {
        "title": doc.title,
        "description": doc.description,
        "version": doc.version,
        "content": doc.content,
        "path": doc.path,
        "author": doc.author,
        "tags": doc.tags,
        "compatibility": doc.compatibility.to_dict(),
        "version_constraints": {
            "min_version": doc.version_constraints.min_version,
            "max_version": doc.version_constraints.max_version,
            "strict_version_check": doc.version_constraints.strict_version_check,
        },
        "globs": doc.globs,
        "examples": doc.examples,
        "always_apply": doc.always_apply,
    }


# --- Parsing ---


@dataclass
class ParseOptions:
    include_content: bool = True
    # Drop the first "# heading" from the body when it became the title
    normalize_headings: bool = True


def repair_frontmatter(text: str) -> str:
    """Add a missing opening ``---`` when the header has only its closing marker.

    Some documents start straight with ``key: value`` lines followed by ``---``.
    Without the opening marker the header would be swallowed into the body.
    """
    if text.startswith(FRONTMATTER_DELIMITER) or f"{FRONTMATTER_DELIMITER}\n" not in text:
        return text
    lines = text.split("\n")
    delimiter_index = next(
        (i for i, line in enumerate(lines) if line.strip() == FRONTMATTER_DELIMITER), -1
    )
    if delimiter_index > 0:
        return f"{FRONTMATTER_DELIMITER}\n{text}"
    return text


def split_frontmatter(text: str, diagnostics: list[str]) -> tuple[dict, str]:
    """Split *text* into (header, body). A broken header yields ({}, text)."""
    try:
        post = frontmatter.loads(text)
    except yaml.YAMLError as e:
        diagnostics.append(f"Invalid frontmatter YAML: {e}")
        return {}, text
    return dict(post.metadata), post.content


def extract_title(header: dict, body: str, normalize_headings: bool) -> tuple[Optional[str], str]:
    """Title from the header, else from the first top-level heading of *body*."""
    title = scalar_text(header.get("title"))
    if title:
        return title, body

    match = _HEADING_RE.search(body)
    if not match:
        return None, body

    if normalize_headings:
        body = _HEADING_RE.sub("", body, count=1).strip()
    return match.group(1).strip(), body


def json_safe(value: Any) -> Any:
    """Copy of a YAML value that json.dumps accepts; dates and other scalars become text."""
    if isinstance(value, dict):
        return {str(key): json_safe(item) for key, item in value.items()}
    if isinstance(value, list):
        return [json_safe(item) for item in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return scalar_text(value)


def _text_field(header: dict, name: str, keys: tuple[str, ...], default, diagnostics: list[str]):
    value = lookup(header, *keys)
    if value is None:
        return default
    text = scalar_text(value)
    if text is None:
        diagnostics.append(f"Field '{name}' must be text, got {type(value).__name__}")
        return default
    return text


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)


def _version_constraints(header: dict, diagnostics: list[str]) -> VersionConstraints:
    raw = lookup(header, "versionConstraints", "version_constraints", "version-constraints")
    if raw is None:
        return VersionConstraints()
    if not isinstance(raw, dict):
        diagnostics.append("Field 'versionConstraints' must be a mapping")
        return VersionConstraints()
    return VersionConstraints(
        min_version=scalar_text(lookup(raw, "minVersion", "min_version")),
        max_version=scalar_text(lookup(raw, "maxVersion", "max_version")),
        strict_version_check=_as_bool(lookup(raw, "strictVersionCheck", "strict_version_check")),
    )


def parse_rule_document(
    raw_text: str,
    source_path: str,
    options: Optional[ParseOptions] = None,
) -> tuple[ParsedDocument, list[str]]:
    """Parse one rule document.

    Args:
        raw_text: Full file text, frontmatter included.
        source_path: Repository path of the document.
        options: Parsing options.

    Returns:
        ``(document, diagnostics)``. Diagnostics are empty for a clean document.
    """
    options = options or ParseOptions()
    diagnostics: list[str] = []

    text = raw_text.replace("\r\n", "\n")
    repaired = repair_frontmatter(text)
    header, body = split_frontmatter(repaired, diagnostics)
    if repaired is not text and not header:
        # The synthesized marker did not produce a header; keep the text intact
        header, body = split_frontmatter(text, diagnostics)
    body = body.strip()

    title, body = extract_title(header, body, options.normalize_headings)
    fields = apply_adapters(header, diagnostics=diagnostics)

    examples = json_safe(header.get("examples"))
    if examples is None:
        examples = {}

    doc = ParsedDocument(
        title=title or UNTITLED_RULE,
        description=_text_field(header, "description", ("description",), "", diagnostics),
        version=_text_field(
            header,
            "version",
            ("version", "lastUpdated", "last_updated", "last-updated"),
            DEFAULT_VERSION,
            diagnostics,
        ),
        content=body if options.include_content else "",
        path=clean_path(source_path),
        tags=fields["tags"],
        globs=fields["globs"],
        compatibility=Compatibility(**fields["compatibility"]),
        version_constraints=_version_constraints(header, diagnostics),
        examples=examples,
        always_apply=_as_bool(lookup(header, "alwaysApply", "always_apply", "always-apply")),
        author=_text_field(header, "author", ("author",), None, diagnostics),
    )

    report = validate_rule_document(document_to_dict(doc))
    if not report.valid:
        diagnostics.extend(f"{err['path']}: {err['message']}" for err in report.errors)

    if diagnostics:
        logger.warning("rule_document_diagnostics", path=doc.path, diagnostics=diagnostics)

    return doc, diagnostics
