"""Configuration package."""

from config.settings import settings, Settings, AppEnvironment
from config.logging_config import setup_logging, get_logger

__all__ = ["settings", "Settings", "AppEnvironment", "setup_logging", "get_logger"]
