"""
Core infrastructure for DocUploader: configuration and logging.
"""

from .config_manager import ConfigManager, UploaderConfig
from .logging_config import setup_logging

__all__ = ["ConfigManager", "UploaderConfig", "setup_logging"]
