"""
Logging configuration for wait-for.

Provides configurable logging with:
- Console verbosity levels
- Optional log file with rotation and retention
- Plain or JSON record format

Configuration comes from environment variables only: wait-for is a
short-lived pre-flight gate and keeps no state between runs.
"""
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, Dict, Optional


class LogLevel(str, Enum):
    """Log verbosity levels."""
    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @classmethod
    def from_string(cls, level: str) -> "LogLevel":
        """Parse log level from string (case-insensitive)."""
        level = level.upper()
        try:
            return cls(level)
        except ValueError:
            aliases = {
                "WARN": cls.WARNING,
                "ERR": cls.ERROR,
                "CRIT": cls.CRITICAL,
                "FATAL": cls.CRITICAL,
            }
            if level in aliases:
                return aliases[level]
            raise ValueError(f"Unknown log level: {level}") from None


@dataclass
class LogConfig:
    """
    Configuration for wait-for logging.

    Attributes:
        console_level: Log level for stderr output
        log_file: Optional path of a log file (no file sink when empty)
        file_level: Log level for the file sink
        rotation: Size or time before rotation (e.g., "10 MB", "1 day")
        retention: How long to keep rotated files (e.g., "1 week")
        json_logs: Use JSON format for file logs
        include_caller: Include caller info (module:function:line) in plain file logs
    """
    console_level: str = "WARNING"
    log_file: Optional[str] = None
    file_level: str = "DEBUG"
    rotation: str = "10 MB"
    retention: str = "1 week"
    json_logs: bool = False
    include_caller: bool = True

    _BOOL_FIELDS: ClassVar[frozenset] = frozenset({"json_logs", "include_caller"})

    def __post_init__(self):
        """Validate levels."""
        try:
            self.console_level = LogLevel.from_string(self.console_level).value
        except ValueError as e:
            raise ValueError(f"Invalid console_level: {e}") from e

        try:
            self.file_level = LogLevel.from_string(self.file_level).value
        except ValueError as e:
            raise ValueError(f"Invalid file_level: {e}") from e

        if self.log_file == "":
            self.log_file = None

    @property
    def log_path(self) -> Optional[Path]:
        """Full path of the log file, if any."""
        if not self.log_file:
            return None
        return Path(self.log_file).expanduser()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LogConfig":
        """Create from dictionary, ignoring unknown keys."""
        known_fields = {
            "console_level", "log_file", "file_level",
            "rotation", "retention", "json_logs", "include_caller",
        }
        filtered = {k: v for k, v in data.items() if k in known_fields}
        return cls(**filtered)


ENV_MAPPINGS = {
    "WAITFOR_LOG_LEVEL": "console_level",
    "WAITFOR_LOG_FILE": "log_file",
    "WAITFOR_LOG_FILE_LEVEL": "file_level",
    "WAITFOR_LOG_ROTATION": "rotation",
    "WAITFOR_LOG_RETENTION": "retention",
    "WAITFOR_LOG_JSON": "json_logs",
    "WAITFOR_LOG_CALLER": "include_caller",
}


def load_log_config() -> LogConfig:
    """
    Load logging configuration.

    Priority:
    1. Environment variables (WAITFOR_LOG_*)
    2. Defaults
    """
    config_data: Dict[str, Any] = {}

    for env_var, config_key in ENV_MAPPINGS.items():
        value = os.environ.get(env_var)
        if value is None:
            continue
        if config_key in LogConfig._BOOL_FIELDS:
            config_data[config_key] = value.lower() in ("1", "true", "yes", "on")
        else:
            config_data[config_key] = value

    return LogConfig.from_dict(config_data)


def get_log_config() -> LogConfig:
    """Get the current logging configuration (cached)."""
    global _cached_config
    if _cached_config is None:
        _cached_config = load_log_config()
    return _cached_config


def reset_log_config() -> None:
    """Reset the cached configuration."""
    global _cached_config
    _cached_config = None


# Cached config instance
_cached_config: Optional[LogConfig] = None
