"""Tests for configuration loading and secret checks."""

from __future__ import annotations

import pytest
import yaml

from newsdigest.config import (
    DEFAULTS,
    ConfigError,
    api_keys,
    load_config,
    missing_keys,
    resolve_env,
)


class TestLoadConfig:
    def test_missing_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv("GOOGLE_SEARCH_API_KEY", raising=False)
        config = load_config(str(tmp_path / "absent.yaml"))
        assert config["digest"]["topic_delay_seconds"] == DEFAULTS["digest"]["topic_delay_seconds"]
        assert config["search"]["date_restrict"] == "d1"
        assert config["search"]["num_results"] == 5
        assert config["search"]["api_key"] == ""

    def test_file_overrides_are_merged(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"digest": {"topic_delay_seconds": 0}, "llm": {"provider": "mock"}}))
        config = load_config(str(path))
        assert config["digest"]["topic_delay_seconds"] == 0
        # Sibling defaults survive the merge
        assert config["digest"]["interests_path"] == "config/interests.txt"
        assert config["llm"]["provider"] == "mock"
        assert config["llm"]["model"] == "gemini-2.0-flash"

    def test_env_vars_resolved(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GOOGLE_SEARCH_API_KEY", "from-env")
        monkeypatch.setenv("MY_CX", "cx-123")
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"search": {"engine_id": "${MY_CX}"}}))
        config = load_config(str(path))
        assert config["search"]["api_key"] == "from-env"
        assert config["search"]["engine_id"] == "cx-123"

    def test_empty_file_is_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(str(path))["server"]["port"] == 3000

    def test_non_mapping_raises(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_invalid_yaml_raises(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("digest: [unclosed\n")
        with pytest.raises(ConfigError):
            load_config(str(path))

    def test_defaults_not_mutated(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"search": {"num_results": 9}}))
        load_config(str(path))
        assert DEFAULTS["search"]["num_results"] == 5


class TestResolveEnv:
    def test_nested_values(self, monkeypatch):
        monkeypatch.setenv("X", "1")
        monkeypatch.delenv("UNSET_VAR", raising=False)
        assert resolve_env({"a": ["${X}", 2], "b": "pre-${UNSET_VAR}-post"}) == {
            "a": ["1", 2],
            "b": "pre--post",
        }


class TestKeys:
    def test_api_keys_stripped(self):
        config = {"search": {"api_key": " k ", "engine_id": "cx"}, "llm": {"api_key": "g"}}
        assert api_keys(config) == ("k", "cx", "g")

    def test_missing_keys_for_gemini(self):
        config = {"search": {"api_key": "k", "engine_id": ""}, "llm": {"provider": "gemini", "api_key": ""}}
        assert missing_keys(config) == ["search.engine_id", "llm.api_key"]

    @pytest.mark.parametrize("provider", ["mock", "local"])
    def test_llm_key_optional_for_keyless_providers(self, provider):
        config = {"search": {"api_key": "k", "engine_id": "cx"}, "llm": {"provider": provider}}
        assert missing_keys(config) == []
