"""Rule documents: parsing, compatibility matching, and the rule store."""

from .compatibility import CompatibilityResult, Environment, check_compatibility
from .models import (
    Category,
    Compatibility,
    DocumentDescriptor,
    ParsedDocument,
    Rule,
    RuleVersion,
    SyncLog,
    VersionConstraints,
)
from .parser import ParseOptions, parse_rule_document, validate_rule_document
from .storage import DuplicateKeyError, RuleStorage, StorageError

__all__ = [
    "Category",
    "Compatibility",
    "CompatibilityResult",
    "DocumentDescriptor",
    "DuplicateKeyError",
    "Environment",
    "ParseOptions",
    "ParsedDocument",
    "Rule",
    "RuleStorage",
    "RuleVersion",
    "StorageError",
    "SyncLog",
    "VersionConstraints",
    "check_compatibility",
    "parse_rule_document",
    "validate_rule_document",
]
