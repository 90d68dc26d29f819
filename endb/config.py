"""
Load config from endb.yaml with optional env overrides.
Single source of truth for store name, file location, timeout and log level.
"""
from __future__ import annotations

import os
from pathlib import Path

import yaml

# Defaults if no YAML or env
_DEFAULTS = {
    "store": {
        "name": "endb",
        "data_dir": ".",
        "path": None,
        "memory": False,
        "timeout_ms": 5000,
        "file_must_exist": False,
    },
    "logging": {"level": "WARNING"},
}

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _config_yaml_path() -> Path:
    """ENDB_CONFIG if set, else endb.yaml in the working directory."""
    return Path(os.environ.get("ENDB_CONFIG", "endb.yaml"))


def _load_yaml() -> dict:
    config_path = _config_yaml_path()
    if not config_path.exists():
        return {}
    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    out = dict(base)
    for k, v in override.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _env_overrides() -> dict:
    overrides: dict = {}
    name = os.environ.get("ENDB_NAME")
    if name:
        overrides.setdefault("store", {})["name"] = name
    data_dir = os.environ.get("ENDB_DATA_DIR")
    if data_dir:
        overrides.setdefault("store", {})["data_dir"] = data_dir
    path = os.environ.get("ENDB_PATH")
    if path:
        overrides.setdefault("store", {})["path"] = path
    memory = os.environ.get("ENDB_MEMORY")
    if memory:
        overrides.setdefault("store", {})["memory"] = memory.strip().lower() in _TRUTHY
    timeout = os.environ.get("ENDB_TIMEOUT_MS")
    if timeout:
        overrides.setdefault("store", {})["timeout_ms"] = float(timeout)
    level = os.environ.get("ENDB_LOG_LEVEL")
    if level:
        overrides.setdefault("logging", {})["level"] = level
    return overrides


def get_config() -> dict:
    """Return merged config: defaults <- endb.yaml <- env."""
    merged = _deep_merge(_DEFAULTS, _load_yaml())
    merged = _deep_merge(merged, _env_overrides())
    return merged


# Convenience accessors
def store_name() -> str:
    return str(get_config()["store"]["name"])


def data_dir() -> str:
    return str(get_config()["store"]["data_dir"])


def timeout_ms() -> float:
    return float(get_config()["store"]["timeout_ms"])


def memory() -> bool:
    return bool(get_config()["store"]["memory"])


def log_level() -> str:
    return str(get_config()["logging"]["level"]).upper()
