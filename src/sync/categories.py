"""Category resolution: repository path -> category id, created on first use."""

from typing import Optional

import structlog

from rules.models import Category
from rules.paths import CORE_CATEGORY, title_case
from rules.storage import DuplicateKeyError, RuleStorage

from .errors import CategoryResolutionError

logger = structlog.get_logger().bind(source="category_resolver")

# New categories sort after the curated ones.
END_OF_LIST_ORDER = 99

DEFAULT_ICON = "folder"
CATEGORY_ICONS = {
    "core": "settings",
    "languages": "code",
    "assistants": "bot",
    "stacks": "layers",
    "tasks": "tasks",
    "technologies": "gear",
    "tools": "tool",
}


def default_icon(slug: str) -> str:
    return CATEGORY_ICONS.get(slug, DEFAULT_ICON)


def new_category(slug: str) -> Category:
    """Unsaved category with the defaults derived from *slug*."""
    name = title_case(slug)
    return Category(
        id="",
        name=name,
        slug=slug,
        description=f"Rules for {name}",
        icon=default_icon(slug),
        order_index=END_OF_LIST_ORDER,
        parent_id=None,
    )


class CategoryResolver:
    """Lookup-or-create for category slugs.

    Several sync workers may create the same new slug at once. No lock is
    taken: the loser of the insert race gets a DuplicateKeyError from the
    store and re-reads the winner's row.
    """

    def __init__(self, storage: RuleStorage):
        self.storage = storage

    def resolve(self, slug: Optional[str]) -> str:
        """Return the category id for *slug*, creating the category if needed.

        A missing slug resolves to ``core``.

        Raises:
            CategoryResolutionError: Insert conflicted but the winner is not readable.
        """
        slug = (slug or CORE_CATEGORY).lower()

        existing = self.storage.get_category_by_slug(slug)
        if existing:
            return existing.id

        try:
            category_id = self.storage.insert_category(new_category(slug))
        except DuplicateKeyError:
            winner = self.storage.get_category_by_slug(slug)
            if winner is None:
                raise CategoryResolutionError(f"Category '{slug}' conflicted but was not found")
            logger.debug("category_race_resolved", slug=slug, category_id=winner.id)
            return winner.id

        logger.info("category_created", slug=slug, category_id=category_id)
        return category_id
