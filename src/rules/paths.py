"""Path helpers: rule ids, slugs, and category extraction from repository paths."""

import re
from pathlib import PurePosixPath
from typing import Optional

RULE_EXTENSIONS = (".mdc", ".md")
DEFAULT_ROOT_MARKER = ".ai"
DEFAULT_CONTAINER = "rules"
CORE_CATEGORY = "core"


def clean_path(path: str) -> str:
    """Strip a single leading slash from a repository path."""
    return path[1:] if path.startswith("/") else path


def rule_id_from_path(path: str) -> str:
    """Rule id is the file name without its rule extension."""
    name = PurePosixPath(path).name
    for ext in RULE_EXTENSIONS:
        if name.endswith(ext):
            return name[: -len(ext)]
    return name


def slugify_path(path: str) -> str:
    """Kebab-case slug from the file name of *path*."""
    slug = rule_id_from_path(path).lower()
    slug = re.sub(r"\s+", "-", slug)
    return re.sub(r"[^\w\-]+", "", slug)


def extract_category_slug(
    path: str,
    root_marker: str = DEFAULT_ROOT_MARKER,
    container: str = DEFAULT_CONTAINER,
) -> Optional[str]:
    """Category slug for a document path, or None when the layout is unrecognised.

    ``.ai/rules/languages/Python.mdc`` -> ``languages``
    ``.ai/rules/00-core-agent.mdc``    -> ``core``
    """
    parts = [p for p in clean_path(path).split("/") if p]
    try:
        marker_index = parts.index(root_marker)
    except ValueError:
        return None

    container_index = marker_index + 1
    if container_index >= len(parts) or parts[container_index] != container:
        return None

    remaining = parts[container_index + 1 :]
    if len(remaining) >= 2:
        return remaining[0].lower()
    if len(remaining) == 1:
        return CORE_CATEGORY
    return None


def category_prefix(
    slug: str,
    root_marker: str = DEFAULT_ROOT_MARKER,
    container: str = DEFAULT_CONTAINER,
) -> str:
    """Path prefix that scopes a listing to one category subtree."""
    return f"{root_marker}/{container}/{slug}/"


def title_case(slug: str) -> str:
    """``ai-assistants`` -> ``Ai Assistants``."""
    return " ".join(word[:1].upper() + word[1:] for word in slug.split("-"))
