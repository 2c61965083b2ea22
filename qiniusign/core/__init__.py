"""Core module initialization."""

from .config_manager import ConfigManager, QiniuSignConfig
from .logging_config import setup_logging

__all__ = [
    "ConfigManager",
    "QiniuSignConfig",
    "setup_logging",
]
