"""Config tests."""

import json

from markup_agent.config import Config, DEFAULT_CONFIG


class TestConfig:
    """Config 계층 로딩 테스트."""

    def test_defaults(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        config = Config()
        assert config.get("max_turns") == DEFAULT_CONFIG["max_turns"]
        assert config.get("tool_output_role") == "user"
        assert config.get("missing", "fallback") == "fallback"

    def test_project_file(self, monkeypatch, tmp_path):
        (tmp_path / ".markup_agent.json").write_text(json.dumps({"max_turns": 5}))
        monkeypatch.chdir(tmp_path)
        assert Config()["max_turns"] == 5

    def test_invalid_project_file_ignored(self, monkeypatch, tmp_path):
        (tmp_path / ".markup_agent.json").write_text("{not json")
        monkeypatch.chdir(tmp_path)
        assert Config()["max_turns"] == DEFAULT_CONFIG["max_turns"]

    def test_env_overrides_file(self, monkeypatch, tmp_path):
        (tmp_path / ".markup_agent.json").write_text(json.dumps({"max_turns": 5}))
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("MARKUP_AGENT_MAX_TURNS", "7")
        monkeypatch.setenv("MARKUP_AGENT_DEBUG", "true")
        monkeypatch.setenv("MARKUP_AGENT_TEMPERATURE", "0.2")
        monkeypatch.setenv("MARKUP_AGENT_PROVIDER", "mock")

        config = Config()
        assert config["max_turns"] == 7
        assert config["debug"] is True
        assert config["temperature"] == 0.2
        assert config["provider"] == "mock"

    def test_overrides_win(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("MARKUP_AGENT_MAX_TURNS", "7")
        config = Config({"max_turns": 2})
        assert config["max_turns"] == 2

        config.set("max_turns", 3)
        assert config.to_dict()["max_turns"] == 3
        assert "max_turns" in config
