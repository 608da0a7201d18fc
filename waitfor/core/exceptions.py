"""
Core Exceptions - Unified error hierarchy for wait-for.

Fatal errors (configuration, bootstrap) abort a run before any probing.
Retryable errors are absorbed by the retry loop. Deadline and interrupt
errors end a run cooperatively.
"""


class WaitForError(Exception):
    """Base exception for all wait-for errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(WaitForError):
    """Run configuration is unusable (no targets, bad file, bad duration)."""
    pass


class TargetParseError(ConfigurationError):
    """A raw target descriptor could not be parsed."""

    def __init__(self, raw: str, reason: str):
        super().__init__(
            f"failed to parse host {raw!r}: {reason}",
            {"raw": raw, "reason": reason}
        )
        self.raw = raw
        self.reason = reason


class UnsupportedSchemeError(TargetParseError):
    """No probe is registered for the target's scheme."""

    def __init__(self, raw: str, scheme: str, supported: list[str] | None = None):
        reason = f"no handler registered for scheme {scheme!r}"
        if supported:
            reason += f" (supported: {', '.join(supported)})"
        super().__init__(raw, reason)
        self.scheme = scheme
        self.details["scheme"] = scheme


# =============================================================================
# Bootstrap Errors
# =============================================================================

class InvalidTargetError(WaitForError):
    """Target shape is not valid for its probe."""

    def __init__(self, target: str, reason: str):
        super().__init__(
            f"failed to bootstrap configuration for host {target!r}: {reason}",
            {"target": target, "reason": reason}
        )
        self.target = target
        self.reason = reason


# =============================================================================
# Probe Errors
# =============================================================================

class RetryableError(WaitForError):
    """An attempt failed but may succeed if repeated."""
    pass


class ProbeError(RetryableError):
    """A single readiness check failed."""

    def __init__(self, target: str, reason: str):
        super().__init__(reason, {"target": target, "reason": reason})
        self.target = target
        self.reason = reason


# =============================================================================
# Run Termination Errors
# =============================================================================

class DeadlineExceededError(WaitForError):
    """The run deadline expired before the target(s) became ready."""

    def __init__(self, message: str, target: str | None = None):
        super().__init__(message, {"target": target} if target else None)
        self.target = target


class CancelledByUserError(WaitForError):
    """The run was interrupted by an external signal."""

    def __init__(self, target: str | None = None):
        super().__init__(
            "user requested early termination",
            {"target": target} if target else None
        )
        self.target = target
