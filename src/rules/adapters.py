"""Legacy frontmatter field adapters.

Rule documents in the wild use several header shapes for the same data. Each
adapter folds one of them into the normalized ``fields`` dict built by the
parser. They run in ``LEGACY_ADAPTERS`` order, which matters: the structured
``compatibility`` block wins over ``platforms``, and both win over
``compatibleWith``.

``fields`` layout::

    {
        "tags": [...],
        "globs": [...],
        "compatibility": {"ides": [...], "ai_assistants": [...],
                          "frameworks": [...], "mcp_servers": [...]},
    }
"""

from datetime import date, datetime
from typing import Any, Callable, Optional

KNOWN_IDES = frozenset({"cursor", "vscode", "jetbrains", "zed"})
KNOWN_AI_ASSISTANTS = frozenset({"claude", "github-copilot", "openai-codex", "windsurf"})

COMPATIBLE_WITH_KEYS = ("compatibleWith", "compatible-with", "compatible_with")

# Structured block key -> normalized sub-field
_COMPATIBILITY_KEYS = {
    "ides": "ides",
    "aiAssistants": "ai_assistants",
    "ai_assistants": "ai_assistants",
    "ai-assistants": "ai_assistants",
    "frameworks": "frameworks",
    "mcpDatabases": "mcp_servers",
    "mcpServers": "mcp_servers",
    "mcp_servers": "mcp_servers",
    "mcp-servers": "mcp_servers",
}

Adapter = Callable[[dict, dict], None]


def lookup(header: dict, *keys: str) -> Any:
    """First non-None value among *keys* in *header*."""
    for key in keys:
        value = header.get(key)
        if value is not None:
            return value
    return None


def split_csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def as_list(value: Any) -> list:
    """List values pass through, scalars are wrapped, None becomes []."""
    if value is None:
        return []
    if isinstance(value, list):
        return list(value)
    return [value]


def list_or_csv(value: Any) -> list:
    """Accept a YAML list or a comma-separated string; anything else is dropped."""
    if isinstance(value, list):
        return list(value)
    if isinstance(value, str):
        return split_csv(value)
    return []


def scalar_text(value: Any) -> Optional[str]:
    """Render YAML scalars (str, numbers, dates) as text; None for anything else."""
    if value is None or isinstance(value, (list, dict)):
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def text_items(values: list, name: str, fields: dict) -> list[str]:
    """Scalar items as text. Nested lists or mappings are dropped and noted."""
    items = []
    for value in values:
        text = scalar_text(value)
        if text is not None:
            items.append(text)
        elif value is not None:
            fields.setdefault("dropped", []).append(
                f"Field '{name}' item must be text, got {type(value).__name__}"
            )
    return items


def unique(items: list) -> list:
    """Drop repeats, keep first-seen order. Tolerates unhashable items."""
    out: list = []
    for item in items:
        if item not in out:
            out.append(item)
    return out


def empty_compatibility() -> dict[str, list]:
    return {"ides": [], "ai_assistants": [], "frameworks": [], "mcp_servers": []}


def _compatible_with(header: dict) -> Optional[list]:
    value = lookup(header, *COMPATIBLE_WITH_KEYS)
    if value is None or value == "" or value == []:
        return None
    return as_list(value)


def adapt_tags(header: dict, fields: dict) -> None:
    """``tags`` (list or CSV) plus values of the legacy ``compatibleWith`` field."""
    tags = text_items(list_or_csv(header.get("tags")), "tags", fields)
    tags.extend(text_items(_compatible_with(header) or [], "compatibleWith", fields))
    fields["tags"] = unique(tags)


def adapt_globs(header: dict, fields: dict) -> None:
    fields["globs"] = text_items(list_or_csv(header.get("globs")), "globs", fields)


def adapt_compatibility_block(header: dict, fields: dict) -> None:
    """Structured ``compatibility`` mapping, camelCase or snake_case keys."""
    compat = fields.setdefault("compatibility", empty_compatibility())
    block = header.get("compatibility")
    if not isinstance(block, dict):
        return
    for key, value in block.items():
        target = _COMPATIBILITY_KEYS.get(key)
        if target and not compat[target]:
            compat[target] = text_items(list_or_csv(value), f"compatibility.{key}", fields)


def adapt_platforms(header: dict, fields: dict) -> None:
    """Split a legacy ``platforms`` list into IDEs and AI assistants.

    Only sub-fields still empty after the structured block are filled.
    """
    compat = fields.setdefault("compatibility", empty_compatibility())
    platforms = header.get("platforms")
    if not isinstance(platforms, list):
        return

    names = [p for p in platforms if isinstance(p, str)]
    ides = [p for p in names if p.lower() in KNOWN_IDES]
    assistants = [p for p in names if p.lower() in KNOWN_AI_ASSISTANTS]

    if not compat["ides"] and ides:
        compat["ides"] = ides
    if not compat["ai_assistants"] and assistants:
        compat["ai_assistants"] = assistants


def adapt_compatible_with_frameworks(header: dict, fields: dict) -> None:
    """Legacy ``compatibleWith`` doubles as the frameworks set when none is declared."""
    compat = fields.setdefault("compatibility", empty_compatibility())
    # Dropped items were already noted by adapt_tags
    frameworks = text_items(_compatible_with(header) or [], "compatibleWith", {})
    if frameworks and not compat["frameworks"]:
        compat["frameworks"] = frameworks


LEGACY_ADAPTERS: tuple[Adapter, ...] = (
    adapt_tags,
    adapt_globs,
    adapt_compatibility_block,
    adapt_platforms,
    adapt_compatible_with_frameworks,
)


def apply_adapters(
    header: dict,
    adapters: tuple[Adapter, ...] = LEGACY_ADAPTERS,
    diagnostics: Optional[list[str]] = None,
) -> dict:
    """Run *adapters* in order over *header* and return the normalized fields.

    Items an adapter had to drop are appended to *diagnostics* when given.
    """
    fields: dict = {"tags": [], "globs": [], "compatibility": empty_compatibility()}
    for adapter in adapters:
        adapter(header, fields)
    dropped = fields.pop("dropped", [])
    if diagnostics is not None:
        diagnostics.extend(dropped)
    return fields
