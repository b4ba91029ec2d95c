"""safe-output unified configuration.

Config files:
  - Global:  ~/.config/safe-output/config.json
  - Project: .safe-output.json (current directory)

Merge order: defaults → global → project → environment variables (highest priority).
"""

from __future__ import annotations

import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict

from .file_io import atomic_write

logger = logging.getLogger(__name__)

DEFAULT_MODE = 0o644
DEFAULT_CHUNK_SIZE = 64 * 1024


class Scope(str, Enum):
    GLOBAL = "global"
    PROJECT = "project"


def config_dir() -> Path:
    return Path.home() / ".config" / "safe-output"


def config_path(scope: Scope) -> Path:
    if scope is Scope.PROJECT:
        return Path.cwd() / ".safe-output.json"
    return config_dir() / "config.json"


def defaults() -> Dict[str, Any]:
    return {
        "mode": f"{DEFAULT_MODE:04o}",
        "debug": False,
        "log_file": str(config_dir() / "safe-output.log"),
        "chunk_size": DEFAULT_CHUNK_SIZE,
    }


# Mapping: config key → env var name
_ENV_OVERRIDES: list[tuple[str, str]] = [
    ("mode", "SAFE_OUTPUT_MODE"),
    ("debug", "SAFE_OUTPUT_DEBUG"),
    ("log_file", "SAFE_OUTPUT_LOG_FILE"),
    ("chunk_size", "SAFE_OUTPUT_CHUNK_SIZE"),
]

KEYS = tuple(key for key, _ in _ENV_OVERRIDES)


def parse_mode(value: str | int) -> int:
    """Parse a permission mode such as ``"644"``, ``"0644"`` or ``"0o644"``."""
    if isinstance(value, bool):
        raise ValueError(f"invalid mode {value!r}")
    if isinstance(value, int):
        mode = value
    else:
        text = str(value).strip().lower()
        if text.startswith("0o"):
            text = text[2:]
        try:
            mode = int(text, 8)
        except ValueError:
            raise ValueError(f"invalid mode {value!r}") from None
    if not 0 <= mode <= 0o7777:
        raise ValueError(f"mode {value!r} out of range")
    return mode


def parse_chunk_size(value: Any) -> int:
    """Parse a positive read size from a config value, env var or flag."""
    message = f"chunk_size must be a positive integer, not {value!r}"
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValueError(message)
    try:
        size = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValueError(message) from None
    if size <= 0:
        raise ValueError(message)
    return size


def _read_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    return json.loads(path.read_text(encoding="utf-8"))


def load_config() -> Dict[str, Any]:
    """Load merged config: defaults → global → project → env vars."""
    merged = defaults()
    merged.update(_read_json(config_path(Scope.GLOBAL)))
    merged.update(_read_json(config_path(Scope.PROJECT)))

    _apply_env_overrides(merged)

    return merged


def load_raw_config(scope: Scope) -> Dict[str, Any]:
    """Load config for a specific scope without merge/env overrides."""
    return _read_json(config_path(scope))


def _apply_env_overrides(merged: Dict[str, Any]) -> None:
    """Environment variables override all config sources."""
    for config_key, env_var in _ENV_OVERRIDES:
        val = os.environ.get(env_var)
        if not val:
            continue
        if config_key == "chunk_size":
            try:
                merged[config_key] = parse_chunk_size(val)
            except ValueError:
                logger.warning("Invalid %s value %r; ignoring", env_var, val)
        elif config_key == "debug":
            merged[config_key] = val.lower() == "true"
        else:
            merged[config_key] = val


def coerce_value(key: str, value: str) -> Any:
    """Validate a ``config set`` value and convert it to its stored form."""
    if key == "mode":
        return f"{parse_mode(value):04o}"
    if key == "debug":
        if value.lower() not in ("true", "false"):
            raise ValueError(f"debug must be true or false, not {value!r}")
        return value.lower() == "true"
    if key == "chunk_size":
        return parse_chunk_size(value)
    if key == "log_file":
        return value
    raise ValueError(f"unknown config key {key!r}")


def save_config(data: Dict[str, Any], scope: Scope) -> None:
    """Save config to the specified scope."""
    atomic_write(config_path(scope), (json.dumps(data, indent=2, ensure_ascii=False) + "\n").encode("utf-8"))
