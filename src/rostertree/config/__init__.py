"""
rostertree.config - Configuration loading and defaults
"""

from rostertree.config.defaults import DEFAULT_CONFIG
from rostertree.config.loader import (
    CONFIG_FILENAME,
    LOCAL_CONFIG_FILENAME,
    ConfigLoader,
    _try_parse_env_value,
    find_config_file,
    get_config,
    load_config,
    merge_configs,
)

__all__ = [
    "CONFIG_FILENAME",
    "LOCAL_CONFIG_FILENAME",
    "ConfigLoader",
    "DEFAULT_CONFIG",
    "find_config_file",
    "get_config",
    "load_config",
    "merge_configs",
    "_try_parse_env_value",
]
