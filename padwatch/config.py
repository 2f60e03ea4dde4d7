# padwatch/config.py
"""
Centralized configuration management.

Handles loading defaults, merging in settings from a TOML config file,
and validating the result. The config is loaded once at startup and
treated as read-only afterwards.
"""
from __future__ import annotations

import copy
import logging
import re
from pathlib import Path
from typing import Any, MutableMapping

import tomli

from padwatch.errors import ConfigError

log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.toml"

# This is the baseline configuration dictionary.
DEFAULT_CONFIG: dict[str, Any] = {
    "store": {
        "directory": ".padwatch_store",
    },
    "crawl": {
        "servers": [],
        "seeds": [],
        "interval": "5m",
        "timeout": 10.0,
        "user_agent": "padwatch/0.1 (+https://github.com/padwatch/padwatch)",
    },
    "notify": {
        # "matrix" posts to a room, "log" only writes the message to the log
        "backend": "matrix",
        "cool-down": "15m",
        "homeserver": None,
        "username": None,
        "password": None,
        "room": None,
        "device_name": "PadWatch Bot",
    },
}

_UNITS: dict[str, float] = {
    "nsec": 1e-9, "ns": 1e-9,
    "usec": 1e-6, "us": 1e-6,
    "msec": 1e-3, "ms": 1e-3,
    "seconds": 1, "second": 1, "secs": 1, "sec": 1, "s": 1,
    "minutes": 60, "minute": 60, "mins": 60, "min": 60, "m": 60,
    "hours": 3600, "hour": 3600, "hrs": 3600, "hr": 3600, "h": 3600,
    "days": 86400, "day": 86400, "d": 86400,
    "weeks": 604800, "week": 604800, "w": 604800,
    "months": 2_630_016, "month": 2_630_016, "M": 2_630_016,
    "years": 31_557_600, "year": 31_557_600, "y": 31_557_600,
}

_DURATION_PART = re.compile(r"\s*(\d+)\s*([A-Za-z]+)\s*")


def parse_duration(value: Any) -> float:
    """
    Convert a duration to seconds.

    Accepts plain numbers (already seconds) or human readable strings such
    as "90s", "15m", "1h 30m" or "2days".
    """
    if isinstance(value, bool):
        raise ConfigError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        if value < 0:
            raise ConfigError(f"Duration must not be negative: {value!r}")
        return float(value)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"Invalid duration: {value!r}")

    total = 0.0
    pos = 0
    text = value.strip()
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if not match:
            raise ConfigError(f"Invalid duration: {value!r}")
        amount, unit = match.groups()
        factor = _UNITS.get(unit) or _UNITS.get(unit.lower())
        if factor is None:
            raise ConfigError(f"Unknown duration unit {unit!r} in {value!r}")
        total += int(amount) * factor
        pos = match.end()
    return total


def _deep_merge_dict(
    base: MutableMapping[str, Any], overrides: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Recursively merge dicts."""
    for key, value in overrides.items():
        if isinstance(value, MutableMapping) and isinstance(
            base.get(key), MutableMapping
        ):
            base[key] = _deep_merge_dict(base[key], value)
        else:
            base[key] = value
    return base


def _require_str_list(section: dict[str, Any], key: str) -> list[str]:
    value = section.get(key)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"[crawl] {key} must be a list of strings")
    return value


def validate_config(config: dict[str, Any]) -> dict[str, Any]:
    """
    Check required keys and normalize values in place.

    - durations become float seconds under crawl.interval and notify.cool_down
    - servers becomes a set of hostnames
    - notify.homeserver defaults to the server part of the Matrix user id
    """
    crawl = config["crawl"]
    servers = _require_str_list(crawl, "servers")
    if not servers:
        raise ConfigError("[crawl] servers must name at least one pad server")
    crawl["servers"] = set(servers)
    crawl["seeds"] = _require_str_list(crawl, "seeds")
    crawl["interval"] = parse_duration(crawl.get("interval"))
    try:
        crawl["timeout"] = float(crawl.get("timeout"))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"[crawl] timeout must be a number: {e}") from e

    notify = config["notify"]
    cool_down = notify.pop("cool-down", None)
    if "cool_down" in notify:
        cool_down = notify["cool_down"]
    notify["cool_down"] = parse_duration(cool_down)

    backend = notify.get("backend")
    if backend not in ("matrix", "log"):
        raise ConfigError(f"[notify] backend must be 'matrix' or 'log', not {backend!r}")
    if backend == "matrix":
        for key in ("username", "password", "room"):
            if not notify.get(key):
                raise ConfigError(f"[notify] {key} is required for the matrix backend")
        username = notify["username"]
        if not username.startswith("@") or ":" not in username:
            raise ConfigError(f"[notify] username is not a Matrix user id: {username!r}")
        if not notify.get("homeserver"):
            notify["homeserver"] = "https://" + username.split(":", 1)[1]

    store = config["store"]
    if not isinstance(store.get("directory"), str) or not store["directory"]:
        raise ConfigError("[store] directory must be a non-empty string")

    return config


def load_config(path: Path | str | None = None) -> dict[str, Any]:
    """
    Loads configuration from defaults and merges settings from a TOML file.

    1. Starts with DEFAULT_CONFIG.
    2. Reads `path` (default: config.toml in the working directory).
    3. Merges the file over the defaults and validates the result.

    A missing or unparsable file is fatal: padwatch cannot run without
    knowing which servers to watch.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    config_path = Path(path) if path is not None else Path.cwd() / DEFAULT_CONFIG_PATH

    if not config_path.exists():
        raise ConfigError(f"No config file found at {config_path}")

    try:
        with config_path.open("rb") as f:
            toml_data = tomli.load(f)
    except (OSError, tomli.TOMLDecodeError) as e:
        raise ConfigError(f"Failed to load or parse {config_path}: {e}") from e

    log.info("Loading config from %s", config_path)
    config = _deep_merge_dict(config, toml_data)  # type: ignore
    return validate_config(config)
