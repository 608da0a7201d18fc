"""
wait-for Core - Errors, shared types, cancellation and retry.
"""

from waitfor.core.cancellation import DoneSignal
from waitfor.core.exceptions import (
    CancelledByUserError,
    ConfigurationError,
    DeadlineExceededError,
    InvalidTargetError,
    ProbeError,
    RetryableError,
    TargetParseError,
    UnsupportedSchemeError,
    WaitForError,
)
from waitfor.core.resilience import Retry, RetryResult
from waitfor.core.types import (
    CancelReason,
    RetryState,
    RunReport,
    Scheme,
    TargetOutcome,
    TargetState,
)

__all__ = [
    "CancelReason",
    "CancelledByUserError",
    "ConfigurationError",
    "DeadlineExceededError",
    "DoneSignal",
    "InvalidTargetError",
    "ProbeError",
    "Retry",
    "RetryResult",
    "RetryState",
    "RetryableError",
    "RunReport",
    "Scheme",
    "TargetOutcome",
    "TargetParseError",
    "TargetState",
    "UnsupportedSchemeError",
    "WaitForError",
]
