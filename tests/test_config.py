"""
Tests for the config loader.
"""

import pytest

from genaichat import config as cfg_mod


@pytest.fixture(autouse=True)
def fresh_config():
    orig = cfg_mod._config
    cfg_mod._config = None
    yield
    cfg_mod._config = orig


def test_env_placeholders_resolved(tmp_path, monkeypatch):
    monkeypatch.setenv("TEST_GEMINI_KEY", "sekrit")
    path = tmp_path / "config.yaml"
    path.write_text("upstream:\n  api_key: ${TEST_GEMINI_KEY}\n")
    cfg = cfg_mod.load_config(path)
    assert cfg["upstream"]["api_key"] == "sekrit"


def test_env_default_used_when_unset(tmp_path, monkeypatch):
    monkeypatch.delenv("TEST_GENAI_MODEL", raising=False)
    path = tmp_path / "config.yaml"
    path.write_text("upstream:\n  model: ${TEST_GENAI_MODEL:-gemini-2.0-flash-001}\n")
    cfg = cfg_mod.load_config(path)
    assert cfg["upstream"]["model"] == "gemini-2.0-flash-001"


def test_missing_env_resolves_empty(tmp_path, monkeypatch):
    monkeypatch.delenv("TEST_NOT_SET", raising=False)
    path = tmp_path / "config.yaml"
    path.write_text("upstream:\n  api_key: ${TEST_NOT_SET}\n")
    assert cfg_mod.load_config(path)["upstream"]["api_key"] == ""


def test_defaults_fill_missing_sections(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("server:\n  port: 9999\n")
    cfg = cfg_mod.load_config(path)
    assert cfg["server"]["port"] == 9999
    assert cfg["server"]["host"] == "127.0.0.1"
    assert cfg["storage"]["key"] == "genai_chat_history_v1"
    assert cfg["gateway"]["system_messages"] == "drop"


def test_get_model_defaults():
    assert cfg_mod.get_model({"upstream": {"model": ""}}) == cfg_mod.DEFAULT_MODEL
    assert cfg_mod.get_model({"upstream": {"model": "gemini-pro"}}) == "gemini-pro"


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        cfg_mod.load_config(tmp_path / "nope.yaml")


def test_repo_config_loads():
    cfg = cfg_mod.load_config()
    assert cfg["gateway"]["route"] == "/api/genai"
    assert cfg["storage"]["backend"] in ("json", "sqlite", "memory")
