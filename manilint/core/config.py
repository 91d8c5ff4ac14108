"""Centralized configuration loading for manilint.

Configuration is read from ``.manilint.json`` in the working directory, with
environment variable fallbacks and per-call defaults. Command-line flags
take precedence over both.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = ".manilint.json"
ENV_PREFIX = "MANILINT"


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """Load configuration from JSON file.

    Returns empty dict if file doesn't exist or is invalid.

    Args:
        config_path: Path to the JSON config file

    Returns:
        Configuration dictionary, or empty dict if file not found/invalid
    """
    path = Path(config_path)

    if not path.exists():
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, IOError) as e:
        logger.warning(f"Ignoring unreadable config {config_path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Ignoring config {config_path}: top level must be an object")
        return {}
    return data


def get_config_value(
    keys: List[str], default: Any = None, config: Optional[Dict[str, Any]] = None
) -> Any:
    """Get nested configuration value with fallback to environment variable.

    Keys like ["lint", "profile"] are looked up in the config file first,
    then in the environment as ``MANILINT_LINT_PROFILE``.

    Args:
        keys: List of keys to traverse
        default: Default value if key not found
        config: Optional config dict (uses load_config() if not provided)

    Returns:
        Configuration value, or default if not found
    """
    if config is None:
        config = load_config()

    value: Any = config
    for key in keys:
        if isinstance(value, dict):
            value = value.get(key)
            if value is None:
                break
        else:
            value = None
            break

    if value is not None:
        return value

    env_key = "_".join([ENV_PREFIX] + [k.upper() for k in keys])
    env_value = os.environ.get(env_key)
    if env_value is not None:
        return env_value

    return default


def get_config_list(
    keys: List[str], default: Optional[List[str]] = None, config: Optional[Dict[str, Any]] = None
) -> List[str]:
    """Like get_config_value, but comma-separated env values become lists."""
    value = get_config_value(keys, default=None, config=config)
    if value is None:
        return list(default or [])
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return list(value)
