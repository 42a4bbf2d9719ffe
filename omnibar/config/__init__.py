"""Configuration module for omnibar."""

from omnibar.config.loader import get_config_path, load_config, save_config
from omnibar.config.schema import Config

__all__ = ["Config", "get_config_path", "load_config", "save_config"]
