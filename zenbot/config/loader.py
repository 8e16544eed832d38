"""Reading and writing zenbot's config.json."""

import json
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError
from loguru import logger

from zenbot.config.schema import Config

CONFIG_PATH_ENV = "ZENBOT_CONFIG"


def get_config_dir() -> Path:
    """Directory holding zenbot's state, ``~/.zenbot``."""
    return Path.home() / ".zenbot"


def get_config_path() -> Path:
    """Path of config.json. ``$ZENBOT_CONFIG`` takes precedence over the default location."""
    override = os.environ.get(CONFIG_PATH_ENV)
    if override:
        return Path(override).expanduser()
    return get_config_dir() / "config.json"


def read_config_file(path: Path) -> dict[str, Any]:
    """
    Read the raw settings stored in `path`.

    Raises:
        OSError: The file cannot be read.
        ValueError: The file is not JSON, or its top level is not an object.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data


def load_config(config_path: Optional[Path] = None, auto_create: bool = True) -> Config:
    """
    Build the Config from config.json, with ``ZENBOT_`` environment variables
    filling in whatever the file leaves out.

    A missing file yields the defaults and, with `auto_create`, is written
    out so the user has something to edit. An unreadable or invalid file
    is reported and the defaults are used instead.
    """
    path = config_path or get_config_path()

    if not path.exists():
        logger.info(f"No config file at {path}, using defaults")
        config = Config()
        if auto_create:
            save_config(config, path)
        return config

    try:
        config = Config(**read_config_file(path))
    except (OSError, ValueError, ValidationError) as e:
        logger.warning(f"Ignoring invalid config file {path}: {e}")
        return Config()

    logger.info(f"Loaded config from {path}")
    return config


def save_config(config: Config, config_path: Optional[Path] = None) -> Path:
    """Write `config` as indented JSON, creating parent directories. Returns the path written."""
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(config.model_dump_json(indent=2) + "\n", encoding="utf-8")
    logger.info(f"Saved config to {path}")
    return path
