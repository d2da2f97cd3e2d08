from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

"""Config loader and validator.

Provides `load_config` which accepts either a path to a YAML file,
a dictionary or None and returns a normalized configuration dict
using DEFAULTS for missing values.
"""


DEFAULTS: dict[str, Any] = {
    "min_memory": 8192,
    "max_memory": 2**24,
    "grow_memory": True,
    "restore_on_reset": False,
    "trace": False,
}

_INT_KEYS = ("min_memory", "max_memory")
_BOOL_KEYS = ("grow_memory", "restore_on_reset", "trace")


class ConfigError(ValueError):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


def _convert_types(cfg: dict[str, Any]) -> None:
    """Normalize types for configuration values in-place.

    Raises ConfigError on conversion failure.
    """
    for key in _INT_KEYS:
        v = cfg.get(key)
        if v is None:
            cfg[key] = DEFAULTS[key]
            continue
        # int() would quietly turn 1.5 into 1 and True into 1
        if isinstance(v, (bool, float)):
            msg = f"{key} must be an integer, got {v!r}"
            raise ConfigError(msg)
        try:
            cfg[key] = int(v)
        except (TypeError, ValueError) as e:
            msg = f"Bad types in config: {e}"
            raise ConfigError(msg) from e

    # flags must be real booleans; "false" as a string is a typo, not False
    for key in _BOOL_KEYS:
        v = cfg.get(key)
        if v is None:
            cfg[key] = DEFAULTS[key]
        elif not isinstance(v, bool):
            msg = f"{key} must be boolean, got {v!r}"
            raise ConfigError(msg)


def _validate_cfg(cfg: dict[str, Any]) -> None:
    """Perform semantic validation on normalized config dict.

    Raises ConfigError on invalid values.
    """
    if cfg["min_memory"] < 0:
        msg = "min_memory must be non-negative"
        raise ConfigError(msg)

    if cfg["max_memory"] < 1:
        msg = "max_memory must be positive"
        raise ConfigError(msg)

    if cfg["min_memory"] > cfg["max_memory"]:
        msg = "min_memory must not exceed max_memory"
        raise ConfigError(msg)

    unknown = sorted(set(cfg) - set(DEFAULTS))
    if unknown:
        msg = f"Unknown config keys: {', '.join(unknown)}"
        raise ConfigError(msg)


def _read_yaml(path: str | Path) -> dict[str, Any]:
    """Read a YAML mapping from `path`; an empty file is an empty mapping."""
    p = Path(path)
    if not p.exists():
        msg = f"Config file not found: {path}"
        raise ConfigError(msg)
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        msg = f"Failed to load config file {path}: {e}"
        raise ConfigError(msg) from e
    if not isinstance(data, dict):
        msg = f"Config file {path} does not contain a mapping"
        raise ConfigError(msg)
    return data


def load_config(path_or_dict: str | Path | dict[str, Any] | None = None) -> dict[str, Any]:
    """Load and normalize configuration.

    None gives a copy of DEFAULTS; a dict or a YAML file path is overlaid
    on DEFAULTS. Returns a normalized dict or raises ConfigError.
    """
    cfg: dict[str, Any] = dict(DEFAULTS)
    if isinstance(path_or_dict, dict):
        cfg.update(path_or_dict)
    elif isinstance(path_or_dict, (str, Path)):
        cfg.update(_read_yaml(path_or_dict))
    elif path_or_dict is not None:
        msg = f"Unsupported config input: {type(path_or_dict).__name__}"
        raise ConfigError(msg)

    _convert_types(cfg)
    _validate_cfg(cfg)
    return cfg
