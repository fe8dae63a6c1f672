"""Shared test fixtures for rulesync."""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fakes import FakeRuleSource, make_rule_doc  # noqa: E402
from observability import metrics  # noqa: E402
from rules.storage import RuleStorage  # noqa: E402


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def storage(tmp_path):
    """Fresh rule store in a temp directory."""
    return RuleStorage(tmp_path / "rules.db")


@pytest.fixture
def sample_documents():
    """Three documents across two categories plus one file directly in the container."""
    return {
        ".ai/rules/languages/python.mdc": make_rule_doc(
            "Python Rules",
            description="Idiomatic Python",
            version="2.1.0",
            tags=["python", "style"],
        ),
        ".ai/rules/languages/typescript.mdc": make_rule_doc(
            "TypeScript Rules",
            description="Strict TypeScript",
            tags=["typescript"],
        ),
        ".ai/rules/tools/git.mdc": make_rule_doc("Git Workflow", description="Commit hygiene"),
        ".ai/rules/base.mdc": make_rule_doc("Base Rules", alwaysApply="true"),
    }


@pytest.fixture
def fake_source(sample_documents):
    return FakeRuleSource(sample_documents)
