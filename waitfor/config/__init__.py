"""
wait-for Config - Configuration management.
"""

from waitfor.config.loader import DEFAULT_CONFIG_FILE, load_config, read_config_file
from waitfor.config.models import (
    DEFAULT_ATTEMPT_TIMEOUT,
    DEFAULT_INTERVAL,
    DEFAULT_TIMEOUT,
    RunConfig,
    format_duration,
    parse_duration,
)

__all__ = [
    "DEFAULT_ATTEMPT_TIMEOUT",
    "DEFAULT_CONFIG_FILE",
    "DEFAULT_INTERVAL",
    "DEFAULT_TIMEOUT",
    "RunConfig",
    "format_duration",
    "load_config",
    "parse_duration",
    "read_config_file",
]
