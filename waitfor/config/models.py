"""
wait-for Config - Configuration models.

Pydantic models for type-safe run configuration.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_TIMEOUT = 10.0
DEFAULT_INTERVAL = 1.0
DEFAULT_ATTEMPT_TIMEOUT = 1.0

_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_NUMBER_RE = re.compile(r"^\d+(?:\.\d*)?$|^\.\d+$")


def parse_duration(value: str | float | int) -> float:
    """
    Parse a duration into seconds.

    Accepts plain numbers (seconds) and unit strings such as "500ms",
    "10s", "1m30s" or "1.5h".

    Raises:
        ValueError: If the value is not a valid duration.
    """
    if isinstance(value, bool):
        raise ValueError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)

    text = str(value).strip()
    if not text:
        raise ValueError("invalid duration: empty string")
    if _NUMBER_RE.match(text):
        return float(text)

    total = 0.0
    pos = 0
    for match in _DURATION_PART_RE.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNITS[match.group(2)]
        pos = match.end()
    if pos != len(text):
        raise ValueError(f"invalid duration: {value!r}")
    return total


def _trim(number: float, digits: int) -> str:
    return f"{number:.{digits}f}".rstrip("0").rstrip(".")


def format_duration(seconds: float) -> str:
    """Render seconds the way durations are written on the command line."""
    if seconds <= 0:
        return "0s"
    if seconds < 1e-6:
        return f"{round(seconds * 1e9)}ns"
    if seconds < 1e-3:
        return f"{_trim(seconds * 1e6, 3)}µs"
    if seconds < 1:
        return f"{_trim(seconds * 1e3, 3)}ms"
    if seconds < 60:
        return f"{_trim(seconds, 3)}s"

    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    text = f"{int(minutes)}m{_trim(secs, 3) or '0'}s"
    if hours:
        text = f"{int(hours)}h{text}"
    return text


class RunConfig(BaseModel):
    """Settings for one wait-for run."""

    model_config = ConfigDict(frozen=True)

    targets: list[str] = Field(
        default_factory=list, description="Raw target descriptors, e.g. tcp://db:5432"
    )
    timeout: float = Field(
        default=DEFAULT_TIMEOUT, gt=0, description="Deadline for the whole run in seconds"
    )
    interval: float = Field(
        default=DEFAULT_INTERVAL, gt=0, description="Seconds between attempts per target"
    )
    attempt_timeout: float = Field(
        default=DEFAULT_ATTEMPT_TIMEOUT, gt=0, description="Timeout of a single probe attempt"
    )
    verbose: bool = Field(default=False, description="Print every attempt")

    @field_validator("timeout", "interval", "attempt_timeout", mode="before")
    @classmethod
    def _parse_durations(cls, value: object) -> float:
        return parse_duration(value)  # type: ignore[arg-type]

    @field_validator("targets", mode="before")
    @classmethod
    def _split_targets(cls, value: object) -> object:
        if isinstance(value, str):
            return [value]
        return value

    def describe(self) -> str:
        """Human summary of the timing settings."""
        return (
            f"timeout: {format_duration(self.timeout)}, "
            f"attempting every {format_duration(self.interval)}"
        )
