from __future__ import annotations

import json
import os

from chat_relay.config import get_model, get_provider_config, reset_config_cache
from chat_relay.config.env import get_env_var_candidates, get_env_var_name, is_placeholder, resolve_env_key


def test_env_fields_are_picked_up(monkeypatch):
    monkeypatch.setenv("OLLAMA_ENDPOINT", " http://box:11434/api/chat ")
    monkeypatch.setenv("OLLAMA_MODEL", "qwen2.5")
    assert get_provider_config("ollama") == {"endpoint": "http://box:11434/api/chat", "model": "qwen2.5"}
    assert get_model("ollama") == "qwen2.5"


def test_json_config_file_then_env_then_overrides(monkeypatch, tmp_path):
    path = tmp_path / "relay.json"
    path.write_text(json.dumps({"openai": {"model": "file-model", "api_key": "sk-file"}}))
    monkeypatch.setenv("CHAT_RELAY_CONFIG_FILE", str(path))

    assert get_provider_config("openai") == {"model": "file-model", "api_key": "sk-file"}

    monkeypatch.setenv("OPENAI_MODEL", "env-model")
    assert get_provider_config("openai")["model"] == "env-model"

    merged = get_provider_config("openai", {"model": "explicit", "endpoint": None})
    assert merged == {"model": "explicit", "api_key": "sk-file"}


def test_yaml_config_file(monkeypatch, tmp_path):
    path = tmp_path / "relay.yaml"
    path.write_text("claude:\n  model: claude-x\nollama:\n  endpoint: http://h/api/chat\n")
    monkeypatch.setenv("CHAT_RELAY_CONFIG_FILE", str(path))
    assert get_provider_config("claude") == {"model": "claude-x"}
    assert get_provider_config("ollama") == {"endpoint": "http://h/api/chat"}


def test_dotenv_file_is_loaded_once(monkeypatch, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("# comment\nDEEPSEEK_MODEL='deepseek-coder'\n\nnot a pair\n")
    monkeypatch.setenv("DOTENV_FILE", str(env_file))
    monkeypatch.delenv("DEEPSEEK_MODEL", raising=False)
    reset_config_cache()
    try:
        assert get_provider_config("deepseek") == {"model": "deepseek-coder"}
    finally:
        os.environ.pop("DEEPSEEK_MODEL", None)


def test_placeholder_detection():
    assert is_placeholder("sk-CHANGEME")
    assert is_placeholder("test_key")
    assert is_placeholder(" example ")
    assert not is_placeholder("sk-live-abc")
    assert not is_placeholder(None)


def test_env_name_helpers(monkeypatch):
    assert get_env_var_name("Claude") == "ANTHROPIC_API_KEY"
    assert get_env_var_name("ollama") is None
    assert list(get_env_var_candidates("GEMINI_API_KEY")) == ["GEMINI_API_KEY", "GOOGLE_API_KEY"]

    monkeypatch.setenv("GOOGLE_API_KEY", "g")
    assert resolve_env_key("GEMINI_API_KEY") == ("g", "GOOGLE_API_KEY")
    monkeypatch.setenv("GEMINI_API_KEY", "placeholder")
    assert resolve_env_key("GEMINI_API_KEY") == ("g", "GOOGLE_API_KEY")
    assert resolve_env_key(None) == (None, None)
