"""
Centralized logging for wait-for.

Provides:
- Configurable console verbosity
- Optional rotated log file
- Sensitive data redaction (database passwords in target URLs)

Configuration is loaded from WAITFOR_LOG_* environment variables.
See log_config.py for details.
"""
import json
import os
import sys
from typing import Any, Optional

from loguru import logger

from waitfor.utils.security import redact_sensitive_info


def use_emoji_logs() -> bool:
    """
    Check if emoji prefixes should be used in log messages.

    Returns True unless WAITFOR_EMOJI_LOGS is set to "0", "false", "no" or "off".
    """
    value = os.environ.get("WAITFOR_EMOJI_LOGS", "1").lower()
    return value not in ("0", "false", "no", "off")


# Mapping of emoji prefixes to ASCII alternatives
_EMOJI_TO_ASCII = {
    "🔄": "[RETRY]",
    "⚠️": "[WARN]",
    "⏱️": "[TIMEOUT]",
    "🌐": "[CONNECT]",
    "✅": "[OK]",
    "❌": "[ERROR]",
    "🔒": "[CLOSE]",
    "🛑": "[STOP]",
    "🚀": "[START]",
}


def log_prefix(emoji: str) -> str:
    """
    Return the appropriate log prefix based on WAITFOR_EMOJI_LOGS.

    Args:
        emoji: The emoji to use when emoji logs are enabled.

    Returns:
        The emoji if enabled, otherwise its ASCII equivalent
        (or empty string if no mapping exists).
    """
    if use_emoji_logs():
        return emoji
    return _EMOJI_TO_ASCII.get(emoji, "")


def _get_log_config():
    """Get log configuration (lazy import to avoid circular deps)."""
    from waitfor.utils.log_config import get_log_config
    return get_log_config()


def setup_logger(
    verbose: bool = False,
    debug: bool = False,
    config: Optional[Any] = None,
) -> None:
    """
    Configure the logger for one run.

    Rules:
    1. CONSOLE: stderr at the configured level, DEBUG when `debug` is set.
       Verbose progress lines are not logs and go through ProgressReporter.
    2. FILE: only when a log file is configured, rotated and retained.

    Args:
        verbose: Lower the console level to INFO
        debug: Lower the console level to DEBUG
        config: Optional LogConfig override (for testing)
    """
    logger.remove()

    if config is None:
        config = _get_log_config()

    console_level = config.console_level
    if debug:
        console_level = "DEBUG"
    elif verbose and console_level not in ("TRACE", "DEBUG"):
        console_level = "INFO"

    logger.add(
        sys.stderr,
        format="<level>{level: <8}</level> | <level>{message}</level>",
        level=console_level,
        colorize=None,
    )

    log_path = config.log_path
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)

        def format_record(record):
            """Format file records as plain text or JSON."""
            if config.json_logs:
                entry = {
                    "timestamp": record["time"].isoformat(),
                    "level": record["level"].name,
                    "message": record["message"],
                    "module": record["name"],
                    "function": record["function"],
                    "line": record["line"],
                }
                record["extra"]["_json"] = json.dumps(entry)
                return "{extra[_json]}\n"
            if config.include_caller:
                return (
                    "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | "
                    "{name}:{function}:{line} - {message}\n"
                )
            return "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}\n"

        logger.add(
            log_path,
            rotation=config.rotation,
            retention=config.retention,
            level=config.file_level,
            format=format_record,
            enqueue=True,
        )

    def redaction_filter(record):
        """Redact credentials from every record."""
        try:
            record["message"] = redact_sensitive_info(record["message"])
        except Exception:
            record["message"] = "[REDACTED]"

    logger.configure(patcher=redaction_filter)
