"""YAML configuration loader with environment variable overrides.

# ─── CONFIGURATION HIERARCHY ──────────────────────────────────────────
#
# Configuration is loaded in layers (later layers override earlier):
#
#   1. config/config.yaml  — static tunables checked into the repo
#   2. .env file           — local developer overrides (not committed)
#   3. Environment vars    — set at deploy time
#
# ``load_config()`` reads the YAML file first, then deep-merges the
# env-derived values on top:
#   base      = {"chat": {"top_k": 8}}
#   overrides = {"chat": {"temperature": 0.2}}
#   result    = {"chat": {"top_k": 8, "temperature": 0.2}}
# ──────────────────────────────────────────────────────────────────────
"""

from pathlib import Path

import yaml

from repair_assistant.config.settings import Settings


def load_config(path: str = "config/config.yaml", settings: Settings | None = None) -> dict:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.
        settings: Settings to derive overrides from.  A fresh instance is
            read from the environment when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    settings = settings or Settings()
    env_overrides = {
        "app": {
            "host": settings.app_host,
            "port": settings.app_port,
            "env": settings.app_env,
        },
        "llm": {
            "available_providers": settings.get_available_llm_providers(),
        },
        "index": {
            "backend": settings.index_backend,
            "poll_interval_seconds": settings.index_poll_interval_seconds,
            "poll_timeout_seconds": settings.index_poll_timeout_seconds,
        },
        "storage": {
            "backend": settings.storage_backend,
            "manuals_bucket": settings.manuals_bucket,
            "assets_bucket": settings.assets_bucket,
        },
        "logging": {
            "level": settings.log_level,
        },
    }

    _deep_merge(yaml_config, env_overrides)
    return yaml_config


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
