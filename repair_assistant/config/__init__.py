"""Configuration module — exports Settings and load_config."""

from repair_assistant.config.loader import load_config
from repair_assistant.config.settings import Settings

__all__ = ["Settings", "load_config"]
