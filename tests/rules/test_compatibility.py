"""Tests for compatibility matching."""

import pytest

from rules.compatibility import Environment, check_compatibility
from rules.models import Compatibility, Rule


@pytest.fixture
def compat():
    return Compatibility(
        ides=["cursor", "vscode"],
        ai_assistants=["claude"],
        frameworks=["react", "next"],
        mcp_servers=["github"],
    )


class TestCheckCompatibility:
    def test_matching_environment(self, compat):
        env = Environment(ide="cursor", ai_assistant="claude", frameworks=["next"])
        result = check_compatibility(compat, env)
        assert result.compatible
        assert result.reasons == []

    def test_ide_mismatch(self, compat):
        result = check_compatibility(compat, Environment(ide="zed"))
        assert not result.compatible
        assert result.reasons == ["Rule is not compatible with IDE: zed"]

    def test_every_dimension_reported(self, compat):
        env = Environment(
            ide="zed",
            ai_assistant="windsurf",
            frameworks=["vue", "svelte"],
            mcp_servers=["postgres"],
        )
        result = check_compatibility(compat, env)
        assert result.reasons == [
            "Rule is not compatible with IDE: zed",
            "Rule is not compatible with AI assistant: windsurf",
            "Rule is not compatible with frameworks: vue, svelte",
            "Rule is not compatible with MCP servers: postgres",
        ]

    def test_framework_overlap_is_enough(self, compat):
        result = check_compatibility(compat, Environment(frameworks=["vue", "react"]))
        assert result.compatible

    def test_empty_environment_always_compatible(self, compat):
        assert check_compatibility(compat, Environment()).compatible

    def test_unconstrained_rule(self):
        env = Environment(ide="zed", ai_assistant="x", frameworks=["y"], mcp_servers=["z"])
        assert check_compatibility(Compatibility(), env).compatible
        assert check_compatibility(None, env).compatible

    def test_rule_without_compatibility(self):
        rule = Rule(
            id="r",
            slug="r",
            path="p.mdc",
            title="T",
            description="",
            content="",
            version="1.0.0",
            category_id="c",
        )
        assert check_compatibility(rule, Environment(ide="cursor")).compatible

    def test_case_sensitive_ide(self, compat):
        assert not check_compatibility(compat, Environment(ide="Cursor")).compatible

    def test_unconstrained_ide_with_matching_framework(self):
        compat = Compatibility(frameworks=["react"])
        assert check_compatibility(compat, Environment(ide="vscode", frameworks=["react"])).compatible
        assert not check_compatibility(compat, Environment(frameworks=["vue"])).compatible
