"""
wait-for Core - Shared types and enums.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class Scheme(StrEnum):
    """Canonical probe schemes."""

    TCP = "tcp"
    UDP = "udp"
    HTTP = "http"
    HTTPS = "https"
    MYSQL = "mysql"
    POSTGRES = "postgres"

    @property
    def is_address(self) -> bool:
        """Address-style schemes take a bare host:port."""
        return self in (Scheme.TCP, Scheme.UDP)


class TargetState(StrEnum):
    """Per-target progress."""

    PENDING = "pending"
    UP = "up"
    FAILED = "failed"


class RetryState(StrEnum):
    """Retry loop states."""

    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    FATAL_FAILED = "fatal_failed"
    CANCELLED = "cancelled"


class CancelReason(StrEnum):
    """Why the run-scoped done signal fired."""

    DEADLINE = "deadline"
    INTERRUPTED = "interrupted"
    RELEASED = "released"  # run already decided, stragglers must stop


@dataclass
class TargetOutcome:
    """Result for one target."""

    target: str
    state: TargetState = TargetState.PENDING
    elapsed: float | None = None
    reason: str | None = None

    @property
    def is_up(self) -> bool:
        return self.state == TargetState.UP


@dataclass
class RunReport:
    """Result of a successful run."""

    outcomes: list[TargetOutcome] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        """True when every target came up."""
        return bool(self.outcomes) and all(o.is_up for o in self.outcomes)

    def get(self, target: str) -> TargetOutcome | None:
        """Get outcome by target display string."""
        for outcome in self.outcomes:
            if outcome.target == target:
                return outcome
        return None
