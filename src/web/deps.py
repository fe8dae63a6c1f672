"""Dependency injection for FastAPI routes."""

from functools import lru_cache
from typing import Callable

import structlog

from cli.config import get_paths, load_config_model
from cli.config_models import RulesyncConfig
from rules.storage import RuleStorage
from sync import RuleSyncEngine, build_engine

logger = structlog.get_logger()


@lru_cache
def get_config() -> RulesyncConfig:
    """Load shared config from rulesync.yaml / ~/.rulesync/config.yaml."""
    return load_config_model()


@lru_cache
def get_storage() -> RuleStorage:
    """Shared rule store; the schema is initialized once per process."""
    paths = get_paths(get_config().to_dict())
    return RuleStorage(paths["rules_db"])


def get_engine_factory() -> Callable[..., RuleSyncEngine]:
    """Factory building a fresh engine per request; accepts SyncOptions overrides."""
    config = get_config().to_dict()
    storage = get_storage()

    def factory(**overrides) -> RuleSyncEngine:
        return build_engine(config, storage, **overrides)

    return factory
