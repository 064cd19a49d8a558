"""
rostertree.config.loader - Layered configuration

Values are resolved in this order, later layers winning:

1. DEFAULT_CONFIG
2. ``.rostertree.toml`` (explicit path, or found by walking up from cwd)
3. ``.rostertree.local.toml`` next to it (developer overrides, untracked)
4. ``ROSTERTREE_<SECTION>_<KEY>`` environment variables
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any, Mapping

import tomlkit

from rostertree.config.defaults import DEFAULT_CONFIG

CONFIG_FILENAME = ".rostertree.toml"
LOCAL_CONFIG_FILENAME = ".rostertree.local.toml"
ENV_PREFIX = "ROSTERTREE_"


class ConfigLoader:
    """Read access to a merged configuration dict with dotted keys.

    Example:
        >>> loader = ConfigLoader.from_dict({"tree": {"copy_suffix": " copy"}})
        >>> loader.get("tree.copy_suffix")
        ' copy'
    """

    def __init__(self, data: dict[str, Any], path: Path | None = None) -> None:
        self._data = data
        self.path = path

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ConfigLoader:
        return cls(copy.deepcopy(dict(data)))

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a dotted key such as ``"server.port"``."""
        current: Any = self._data
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current

    def section(self, name: str) -> dict[str, Any]:
        """Return a copy of one top-level table (empty if absent)."""
        value = self._data.get(name, {})
        return dict(value) if isinstance(value, dict) else {}

    def get_raw(self) -> dict[str, Any]:
        """Return a deep copy of the merged data."""
        return copy.deepcopy(self._data)


def merge_configs(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``.

    Nested tables merge key by key; any other value replaces the base value.
    """
    result = copy.deepcopy(dict(base))
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(result.get(key), dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _read_toml(path: Path) -> dict[str, Any]:
    document = tomlkit.parse(path.read_text(encoding="utf-8"))
    return document.unwrap()


def _try_parse_env_value(value: str) -> Any:
    """Interpret an environment variable string.

    JSON arrays and objects become lists and dicts, ``true``/``false``
    (any case) become booleans, integers become ints. Anything else,
    including malformed JSON, is returned unchanged.
    """
    stripped = value.strip()
    if stripped[:1] in ("[", "{"):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            return value
    lowered = stripped.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    try:
        return int(stripped)
    except ValueError:
        return value


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    """Collect ``ROSTERTREE_SECTION_KEY`` variables for known sections."""
    overrides: dict[str, Any] = {}
    for name, raw in environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        rest = name[len(ENV_PREFIX) :].lower()
        section, _, key = rest.partition("_")
        if section not in DEFAULT_CONFIG or not key:
            continue
        overrides.setdefault(section, {})[key] = _try_parse_env_value(raw)
    return overrides


def find_config_file(start: Path | None = None) -> Path | None:
    """Walk up from ``start`` (default cwd) looking for ``.rostertree.toml``."""
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_config(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ConfigLoader:
    """Load the layered configuration.

    Args:
        path: Explicit config file; when None the file is searched for.
        environ: Environment to read overrides from (default os.environ).

    Raises:
        FileNotFoundError: If an explicit path does not exist.
    """
    data = copy.deepcopy(DEFAULT_CONFIG)
    if path is None:
        path = find_config_file()
    elif not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    if path is not None:
        data = merge_configs(data, _read_toml(path))
        local = path.with_name(LOCAL_CONFIG_FILENAME)
        if local.is_file():
            data = merge_configs(data, _read_toml(local))

    data = merge_configs(data, _env_overrides(os.environ if environ is None else environ))
    return ConfigLoader(data, path)


def get_config(config_path: Path | None = None, start: Path | None = None) -> ConfigLoader:
    """Load configuration for a working directory.

    An explicit ``config_path`` wins; otherwise the file is searched for
    upward from ``start`` (default cwd).
    """
    if config_path is None:
        config_path = find_config_file(start)
    return load_config(config_path)


__all__ = [
    "CONFIG_FILENAME",
    "LOCAL_CONFIG_FILENAME",
    "ConfigLoader",
    "find_config_file",
    "get_config",
    "load_config",
    "merge_configs",
    "_try_parse_env_value",
]
