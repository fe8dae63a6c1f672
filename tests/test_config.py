"""Tests for configuration loading."""

from pathlib import Path

import pytest

from cli.config import get_paths, load_config, load_config_model
from cli.config_models import RulesyncConfig, validate_cron


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ("GITHUB_TOKEN", "GITHUB_REPO_OWNER", "GITHUB_REPO_NAME", "GITHUB_WEBHOOK_SECRET"):
        monkeypatch.delenv(var, raising=False)


class TestDefaults:
    def test_defaults(self):
        config = RulesyncConfig()
        assert config.github.owner == "idominikosgr"
        assert config.github.repo == "VibeKit-VDK-AI-rules"
        assert config.github.branch == "main"
        assert config.layout.root_marker == ".ai"
        assert config.sync.concurrency == 5
        assert config.sync.schedule == "0 */6 * * *"
        assert config.webhook.branches == ["main", "master"]
        assert config.paths.rules_db == Path("~/.rulesync/rules.db").expanduser()

    def test_to_dict_uses_json_alias(self):
        assert RulesyncConfig().to_dict()["logging"]["json"] is False


class TestValidation:
    def test_concurrency_bounds(self):
        with pytest.raises(ValueError):
            RulesyncConfig.from_dict({"sync": {"concurrency": 0}})
        with pytest.raises(ValueError):
            RulesyncConfig.from_dict({"sync": {"concurrency": 51}})

    def test_bad_log_level(self):
        with pytest.raises(ValueError):
            RulesyncConfig.from_dict({"logging": {"level": "LOUD"}})

    def test_bad_extension(self):
        with pytest.raises(ValueError):
            RulesyncConfig.from_dict({"layout": {"extension": "mdc"}})

    def test_cron(self):
        assert validate_cron("*/15 1-5 * * 0,6") == "*/15 1-5 * * 0,6"
        with pytest.raises(ValueError):
            validate_cron("every day")


class TestEnvironment:
    def test_env_placeholder_expanded(self, monkeypatch):
        monkeypatch.setenv("MY_TOKEN", "abc")
        config = RulesyncConfig.from_dict({"github": {"token": "${MY_TOKEN}"}})
        assert config.github.token == "abc"

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", "from-env")
        monkeypatch.setenv("GITHUB_REPO_OWNER", "acme")
        monkeypatch.setenv("GITHUB_WEBHOOK_SECRET", "hook")
        config = RulesyncConfig.from_dict({"github": {"owner": "yaml-owner", "token": "yaml"}})
        assert config.github.token == "from-env"
        assert config.github.owner == "acme"
        assert config.webhook.secret == "hook"


class TestLoadConfig:
    def test_load_from_file(self, tmp_path):
        path = tmp_path / "rulesync.yaml"
        path.write_text(
            "github:\n  repo: my-rules\nsync:\n  concurrency: 8\n"
            f"paths:\n  rules_db: {tmp_path / 'r.db'}\n"
        )
        config = load_config(path)
        assert config["github"]["repo"] == "my-rules"
        assert config["sync"]["concurrency"] == 8
        assert get_paths(config)["rules_db"] == tmp_path / "r.db"

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "rulesync.yaml"
        path.write_text("github: [unclosed\n")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config_model(path)

    def test_validation_failure(self, tmp_path):
        path = tmp_path / "rulesync.yaml"
        path.write_text("sync:\n  concurrency: 500\n")
        with pytest.raises(ValueError, match="Config validation failed"):
            load_config_model(path)

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "rulesync.yaml"
        path.write_text("")
        assert load_config_model(path).sync.concurrency == 5
