"""Configuration loading: config.yaml merged over defaults, ${ENV_VAR} resolved."""

from __future__ import annotations

import copy
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"

DEFAULTS: Dict[str, Any] = {
    "digest": {
        "interests_path": "config/interests.txt",
        "topic_delay_seconds": 0.5,
        "refresh_interval_hours": 0,
        "refresh_on_startup": False,
    },
    "search": {
        "provider": "google",
        "url": "https://www.googleapis.com/customsearch/v1",
        "api_key": "${GOOGLE_SEARCH_API_KEY}",
        "engine_id": "${GOOGLE_SEARCH_CX}",
        "date_restrict": "d1",
        "num_results": 5,
        "languages": ["lang_fr", "lang_en"],
        "timeout_seconds": 15,
        "max_attempts": 1,
    },
    "llm": {
        "provider": "gemini",
        "model": "gemini-2.0-flash",
        "api_key": "${GEMINI_API_KEY}",
        "max_tokens": 1024,
        "temperature": 0.4,
        "local_url": "http://localhost:11434/v1",
        "local_model": "llama3.2",
    },
    "server": {
        "host": "0.0.0.0",
        "port": 3000,
    },
    "logging": {
        "level": "INFO",
    },
}

_ENV_PATTERN = re.compile(r"\$\{(\w+)\}")


class ConfigError(Exception):
    """Raised when the configuration file cannot be used."""


def resolve_env(value: Any) -> Any:
    """Replace ${NAME} with the environment value (empty when unset), recursively."""
    if isinstance(value, str):
        return _ENV_PATTERN.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: resolve_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [resolve_env(v) for v in value]
    return value


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, val in override.items():
        if isinstance(val, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], val)
        else:
            out[key] = val
    return out


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the YAML configuration and merge it over DEFAULTS.

    A missing file is not an error: the defaults (with secrets taken from the
    environment) are enough to run. A file that does not parse, or whose top
    level is not a mapping, raises ConfigError.
    """
    config_path = Path(path or DEFAULT_CONFIG_PATH)
    raw: Dict[str, Any] = {}
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot read config {config_path}: {e}") from e
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Config {config_path} must be a mapping, got {type(loaded).__name__}")
        raw = loaded
    else:
        logger.info("Config file %s not found, using defaults", config_path)

    return resolve_env(_merge(DEFAULTS, raw))


def api_keys(config: Dict[str, Any]) -> Tuple[str, str, str]:
    """Return (search_api_key, search_engine_id, llm_api_key) from a loaded config."""
    search = config.get("search", {})
    llm = config.get("llm", {})
    return (
        (search.get("api_key") or "").strip(),
        (search.get("engine_id") or "").strip(),
        (llm.get("api_key") or "").strip(),
    )


def missing_keys(config: Dict[str, Any]) -> List[str]:
    """Names of the secrets a generation pass needs but the config lacks."""
    search_key, engine_id, llm_key = api_keys(config)
    missing: List[str] = []
    if not search_key:
        missing.append("search.api_key")
    if not engine_id:
        missing.append("search.engine_id")
    provider = (config.get("llm", {}).get("provider") or "").lower()
    if provider not in ("mock", "local") and not llm_key:
        missing.append("llm.api_key")
    return missing
