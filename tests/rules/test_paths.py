"""Tests for path helpers."""

import pytest

from rules.paths import (
    category_prefix,
    clean_path,
    extract_category_slug,
    rule_id_from_path,
    slugify_path,
    title_case,
)


class TestExtractCategorySlug:
    @pytest.mark.parametrize(
        "path,expected",
        [
            (".ai/rules/languages/Python.mdc", "languages"),
            ("/.ai/rules/Tools/git.mdc", "tools"),
            (".ai/rules/stacks/web/react.mdc", "stacks"),
            (".ai/rules/00-core-agent.mdc", "core"),
            ("docs/.ai/rules/tasks/review.mdc", "tasks"),
            (".ai/other/languages/python.mdc", None),
            ("rules/languages/python.mdc", None),
            (".ai/rules", None),
            ("my.ai/rules/x/y.mdc", None),
        ],
    )
    def test_paths(self, path, expected):
        assert extract_category_slug(path) == expected

    def test_custom_layout(self):
        assert extract_category_slug("cfg/r/lang/a.mdc", root_marker="cfg", container="r") == "lang"


class TestPathHelpers:
    def test_clean_path(self):
        assert clean_path("/a/b.mdc") == "a/b.mdc"
        assert clean_path("a/b.mdc") == "a/b.mdc"

    def test_rule_id(self):
        assert rule_id_from_path(".ai/rules/languages/Python.mdc") == "Python"
        assert rule_id_from_path("notes/readme.md") == "readme"

    def test_slugify(self):
        assert slugify_path(".ai/rules/x/My Rule (v2).mdc") == "my-rule-v2"

    def test_category_prefix(self):
        assert category_prefix("languages") == ".ai/rules/languages/"

    def test_title_case(self):
        assert title_case("ai-assistants") == "Ai Assistants"
        assert title_case("core") == "Core"
