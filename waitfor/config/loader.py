"""
wait-for Config - Loading and merging.

Priority (highest first):
1. Command-line values
2. Environment variables (WAITFOR_TIMEOUT, WAITFOR_EVERY, WAITFOR_VERBOSE)
3. YAML config file (keys: host, timeout, every, verbose)
4. Defaults

Hosts are additive: command-line hosts come first, then file hosts.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from loguru import logger
from pydantic import ValidationError

from waitfor.config.models import RunConfig
from waitfor.core.exceptions import ConfigurationError

DEFAULT_CONFIG_FILE = "targets.yaml"

ENV_MAPPINGS = {
    "WAITFOR_TIMEOUT": "timeout",
    "WAITFOR_EVERY": "every",
    "WAITFOR_VERBOSE": "verbose",
}

# File/env key -> RunConfig field
_FIELD_NAMES = {
    "host": "targets",
    "hosts": "targets",
    "timeout": "timeout",
    "every": "interval",
    "verbose": "verbose",
    "attempt_timeout": "attempt_timeout",
}


def read_config_file(path: str | Path, required: bool = False) -> dict[str, Any]:
    """
    Read a YAML config file.

    Args:
        path: File path.
        required: Raise if the file does not exist.

    Returns:
        Mapping of config keys (empty when the file is absent and optional).

    Raises:
        ConfigurationError: Missing required file, unreadable file or
            malformed YAML.
    """
    config_path = Path(path).expanduser()
    if not config_path.exists():
        if required:
            raise ConfigurationError(
                f"error reading config file: {config_path} does not exist",
                {"path": str(config_path)},
            )
        logger.debug(f"Config file {config_path} not found, skipping")
        return {}

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"error reading config file: {config_path}: {e}", {"path": str(config_path)}
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"error reading config file: {config_path}: {e.strerror or e}",
            {"path": str(config_path)},
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"error reading config file: {config_path}: expected a mapping at top level",
            {"path": str(config_path)},
        )

    logger.debug(f"Loaded config file {config_path} ({len(data)} keys)")
    return data


def _env_values() -> dict[str, Any]:
    values: dict[str, Any] = {}
    for env_var, key in ENV_MAPPINGS.items():
        value = os.environ.get(env_var)
        if value is None:
            continue
        if key == "verbose":
            values[key] = value.lower() in ("1", "true", "yes", "on")
        else:
            values[key] = value
    return values


def _normalize_hosts(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    raise ConfigurationError(f"invalid host list: {value!r}")


def load_config(
    path: str | Path | None = DEFAULT_CONFIG_FILE,
    *,
    hosts: list[str] | tuple[str, ...] | None = None,
    timeout: str | float | None = None,
    every: str | float | None = None,
    verbose: bool | None = None,
    required: bool = False,
) -> RunConfig:
    """
    Build a RunConfig from every configuration source.

    Args:
        path: YAML config file, None to skip file loading.
        hosts: Hosts given on the command line.
        timeout: Command-line timeout (None when not given).
        every: Command-line retry interval (None when not given).
        verbose: Command-line verbosity (None when not given).
        required: Fail when the config file is missing.

    Returns:
        Validated RunConfig.

    Raises:
        ConfigurationError: If any source holds an invalid value.
    """
    file_values = read_config_file(path, required=required) if path else {}

    merged: dict[str, Any] = {}
    for key, value in file_values.items():
        field = _FIELD_NAMES.get(str(key).lower())
        if field is None:
            logger.warning(f"Ignoring unknown config key: {key}")
            continue
        if field == "targets":
            merged.setdefault("targets", []).extend(_normalize_hosts(value))
        else:
            merged[field] = value

    for key, value in _env_values().items():
        merged[_FIELD_NAMES[key]] = value

    cli_values = {"timeout": timeout, "interval": every, "verbose": verbose}
    for field, value in cli_values.items():
        if value is not None:
            merged[field] = value

    merged["targets"] = list(hosts or []) + merged.get("targets", [])

    try:
        return RunConfig(**merged)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigurationError(f"invalid configuration: {problems}") from e
