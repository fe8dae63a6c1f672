"""Shared fixtures for web API tests."""

import pytest
from fakes import FakeRuleSource
from fastapi.testclient import TestClient

from cli.config_models import RulesyncConfig
from sync.engine import RuleSyncEngine, SyncOptions
from web.app import app
from web.deps import get_config, get_engine_factory, get_storage

WEBHOOK_SECRET = "test-webhook-secret"


@pytest.fixture
def web_config(monkeypatch):
    monkeypatch.delenv("GITHUB_WEBHOOK_SECRET", raising=False)
    return RulesyncConfig.from_dict({"webhook": {"secret": WEBHOOK_SECRET}})


@pytest.fixture
def web_source(sample_documents):
    return FakeRuleSource(sample_documents)


@pytest.fixture
def client(web_config, storage, web_source):
    """TestClient with config, store, and rule source swapped for test doubles."""

    def engine_factory(**overrides):
        return RuleSyncEngine(web_source, storage, SyncOptions(**overrides))

    app.dependency_overrides[get_config] = lambda: web_config
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_engine_factory] = lambda: engine_factory
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
