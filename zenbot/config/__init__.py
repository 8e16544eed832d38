"""Configuration module."""

from zenbot.config.schema import ChannelsConfig, Config, SlackConfig, ZenConfig
from zenbot.config.loader import (
    get_config_dir,
    get_config_path,
    load_config,
    save_config,
)

__all__ = [
    "Config",
    "ZenConfig",
    "SlackConfig",
    "ChannelsConfig",
    "get_config_dir",
    "get_config_path",
    "load_config",
    "save_config",
]
