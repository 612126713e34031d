"""Tests for config loading and validation."""

import pytest

from cli.config import find_config, load_config_model
from cli.config_models import ClientbookConfig


class TestDefaults:
    def test_defaults(self):
        config = ClientbookConfig()
        assert config.llm.provider == "auto"
        assert config.nudges.quota_percent == 20
        assert config.nudges.max_questions == 10
        assert config.limits.note_fallback_chars == 200
        assert "~" not in str(config.paths.db_path)

    def test_round_trip(self):
        config = ClientbookConfig.from_dict({"nudges": {"max_questions": 4}})
        assert ClientbookConfig.from_dict(config.to_dict()) == config


class TestValidation:
    @pytest.mark.parametrize(
        "data",
        [
            {"llm": {"provider": "llama"}},
            {"nudges": {"quota_percent": 0}},
            {"nudges": {"quota_percent": 101}},
            {"nudges": {"max_questions": -1}},
            {"logging": {"level": "LOUD"}},
        ],
    )
    def test_rejects(self, data):
        with pytest.raises(ValueError):
            ClientbookConfig.from_dict(data)

    def test_log_level_uppercased(self):
        assert ClientbookConfig.from_dict({"logging": {"level": "debug"}}).logging.level == "DEBUG"

    def test_env_var_api_key(self, monkeypatch):
        monkeypatch.setenv("CB_TEST_KEY", "sk-ant-secret")
        config = ClientbookConfig.from_dict({"llm": {"api_key": "${CB_TEST_KEY}"}})
        assert config.llm.api_key == "sk-ant-secret"


class TestLoading:
    def test_load_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("nudges:\n  max_questions: 6\npaths:\n  db_path: /tmp/cb-test.db\n")
        config = load_config_model(path)
        assert config.nudges.max_questions == 6
        assert str(config.paths.db_path) == "/tmp/cb-test.db"

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("nudges: [unclosed\n")
        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config_model(path)

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("nudges:\n  quota_percent: 0\n")
        with pytest.raises(ValueError, match="Config validation failed"):
            load_config_model(path)

    def test_find_config_in_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        (tmp_path / "config.yaml").write_text("{}\n")
        assert find_config() == tmp_path / "config.yaml"

    def test_find_config_none(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        assert find_config() is None
        assert load_config_model().nudges.max_questions == 10
