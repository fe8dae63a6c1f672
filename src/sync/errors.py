"""Sync error taxonomy."""


class RuleSyncError(Exception):
    """Base class for sync failures."""


class SourceError(RuleSyncError):
    """The rule source could not list documents."""


class FetchError(RuleSyncError):
    """No content could be retrieved for a document."""


class CategoryResolutionError(RuleSyncError):
    """A category could neither be found nor created."""
