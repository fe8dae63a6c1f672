"""Tests for the SQLite rule store."""

import pytest

from rules.models import Category, Compatibility, Rule, RuleVersion, SyncLog
from rules.storage import DuplicateKeyError, StorageError


def _category(slug="languages"):
    return Category(id="", name=slug.title(), slug=slug, description=f"Rules for {slug}")


def _rule(category_id, rule_id="python", path=".ai/rules/languages/python.mdc", **kwargs):
    defaults = dict(
        id=rule_id,
        slug=rule_id,
        path=path,
        title="Python",
        description="desc",
        content="body",
        version="1.0.0",
        category_id=category_id,
    )
    defaults.update(kwargs)
    return Rule(**defaults)


@pytest.fixture
def category_id(storage):
    return storage.insert_category(_category())


class TestCategories:
    def test_insert_generates_id(self, storage):
        category_id = storage.insert_category(_category())
        assert category_id
        fetched = storage.get_category(category_id)
        assert fetched.slug == "languages"
        assert fetched.created_at

    def test_get_by_slug(self, storage, category_id):
        assert storage.get_category_by_slug("languages").id == category_id
        assert storage.get_category_by_slug("missing") is None

    def test_duplicate_slug(self, storage, category_id):
        with pytest.raises(DuplicateKeyError):
            storage.insert_category(_category())

    def test_list_and_count(self, storage):
        storage.insert_category(_category("tools"))
        storage.insert_category(_category("core"))
        assert storage.count_categories() == 2
        assert [c.slug for c in storage.list_categories()] == ["core", "tools"]


class TestRules:
    def test_insert_and_read_back(self, storage, category_id):
        rule = _rule(
            category_id,
            tags=["py"],
            globs=["**/*.py"],
            compatibility=Compatibility(ides=["cursor"]),
            examples={"good": "x"},
            always_apply=True,
        )
        assert storage.insert_rule(rule) == "python"

        fetched = storage.get_rule("python")
        assert fetched.tags == ["py"]
        assert fetched.globs == ["**/*.py"]
        assert fetched.compatibility.ides == ["cursor"]
        assert fetched.examples == {"good": "x"}
        assert fetched.always_apply is True
        assert fetched.created_at == fetched.updated_at

    def test_optional_fields_stay_none(self, storage, category_id):
        storage.insert_rule(_rule(category_id))
        fetched = storage.get_rule_by_path(".ai/rules/languages/python.mdc")
        assert fetched.tags is None
        assert fetched.compatibility is None
        assert fetched.always_apply is None

    def test_duplicate_path(self, storage, category_id):
        storage.insert_rule(_rule(category_id))
        with pytest.raises(DuplicateKeyError):
            storage.insert_rule(_rule(category_id, rule_id="other"))

    def test_duplicate_id(self, storage, category_id):
        storage.insert_rule(_rule(category_id))
        with pytest.raises(DuplicateKeyError):
            storage.insert_rule(_rule(category_id, path=".ai/rules/tools/python.mdc"))

    def test_unknown_category_rejected(self, storage):
        with pytest.raises(StorageError):
            storage.insert_rule(_rule("no-such-category"))

    def test_update_in_place(self, storage, category_id):
        storage.insert_rule(_rule(category_id))
        storage.update_rule("python", _rule(category_id, title="Python 3", version="2.0.0"))

        fetched = storage.get_rule("python")
        assert fetched.title == "Python 3"
        assert fetched.version == "2.0.0"
        assert storage.count_rules() == 1

    def test_update_missing(self, storage, category_id):
        with pytest.raises(StorageError):
            storage.update_rule("ghost", _rule(category_id))

    def test_list_by_category(self, storage, category_id):
        tools_id = storage.insert_category(_category("tools"))
        storage.insert_rule(_rule(category_id))
        storage.insert_rule(_rule(tools_id, rule_id="git", path=".ai/rules/tools/git.mdc"))

        assert [r.id for r in storage.list_rules()] == ["python", "git"]
        assert [r.id for r in storage.list_rules(category_id=tools_id)] == ["git"]
        assert len(storage.list_rules(limit=1)) == 1

    def test_list_rule_paths(self, storage, category_id):
        storage.insert_rule(_rule(category_id))
        assert storage.list_rule_paths() == {".ai/rules/languages/python.mdc": "python"}


class TestHistoryAndLogs:
    def test_rule_versions_append(self, storage, category_id):
        storage.insert_rule(_rule(category_id))
        storage.add_rule_version(RuleVersion("python", "1.0.0", "a", "Created"))
        storage.add_rule_version(RuleVersion("python", "1.1.0", "b", "Updated"))

        versions = storage.get_rule_versions("python")
        assert [v.version for v in versions] == ["1.0.0", "1.1.0"]
        assert versions[0].created_at

    def test_sync_logs_newest_first(self, storage):
        storage.add_sync_log(SyncLog("github", 1, 0, 0, [], 10))
        storage.add_sync_log(SyncLog("local", 0, 2, 1, ["x: boom"], 20))

        logs = storage.get_sync_logs()
        assert [log.sync_type for log in logs] == ["local", "github"]
        assert logs[0].errors == ["x: boom"]
        assert storage.get_last_sync_log().sync_type == "local"

    def test_no_sync_logs(self, storage):
        assert storage.get_sync_logs() == []
        assert storage.get_last_sync_log() is None
