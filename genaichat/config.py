"""
Config loader for genaichat.
Reads config.yaml once at startup. All other modules import from here.
${ENV_VAR} and ${ENV_VAR:-default} placeholders are resolved against the
environment (and .env, via python-dotenv) at load time.
"""

import os
import re
import yaml
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

_CONFIG_PATH = Path(__file__).parent.parent / "config.yaml"

DEFAULT_MODEL = "gemini-2.0-flash-001"

_config: dict | None = None

_DEFAULTS: dict = {
    "server": {"host": "127.0.0.1", "port": 8888},
    "upstream": {"provider": "gemini", "api_key": "", "model": "", "timeout": 120},
    "gateway": {"route": "/api/genai", "system_messages": "drop"},
    "client": {
        "gateway_url": "http://127.0.0.1:8888/api/genai",
        "timeout": 120,
        "default_system_text": "You are chatting with an AI (GenAI).",
        "empty_reply_text": "(empty reply)",
        "error_prefix": "Error: ",
    },
    "storage": {
        "backend": "json",
        "path": "./data/chat_history.json",
        "key": "genai_chat_history_v1",
    },
    "logging": {"level": "INFO"},
    "wiretap": {"enabled": False, "path": "./data/wire.jsonl"},
}

_ENV_PATTERN = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def _resolve_env_vars(value: str) -> str:
    """Replace ${ENV_VAR} / ${ENV_VAR:-default} patterns with environment values."""
    def replacer(match):
        var_name, default = match.group(1), match.group(2)
        return os.environ.get(var_name) or (default or "")
    return _ENV_PATTERN.sub(replacer, value)


def _walk_and_resolve(obj):
    """Recursively resolve env vars in all string values."""
    if isinstance(obj, dict):
        return {k: _walk_and_resolve(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_walk_and_resolve(v) for v in obj]
    elif isinstance(obj, str):
        return _resolve_env_vars(obj)
    return obj


def _merge(base: dict, override: dict) -> dict:
    """Two-level merge: sections from override win key by key."""
    merged = {k: dict(v) if isinstance(v, dict) else v for k, v in base.items()}
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


def load_config(path: Path | None = None) -> dict:
    """Load and cache config from YAML file, layered over built-in defaults."""
    global _config
    if _config is not None and path is None:
        return _config

    config_path = path or _CONFIG_PATH
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    _config = _merge(_DEFAULTS, _walk_and_resolve(raw))
    return _config


def get_config() -> dict:
    """Return cached config, loading if necessary."""
    if _config is None:
        return load_config()
    return _config


def get_model(cfg: dict | None = None) -> str:
    """Upstream model id: config/env override, else the default Gemini model."""
    cfg = cfg or get_config()
    return cfg.get("upstream", {}).get("model") or DEFAULT_MODEL


def reset_config():
    """Drop the cached config so the next get_config() re-reads the file."""
    global _config
    _config = None
