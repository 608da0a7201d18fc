"""
wait-for Probes - Base protocol checker.

A probe is created per target, validated once with bootstrap(), then
pinged repeatedly until the target answers or the run ends.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from waitfor.config.models import DEFAULT_ATTEMPT_TIMEOUT, format_duration
from waitfor.core.exceptions import InvalidTargetError, ProbeError

if TYPE_CHECKING:
    from waitfor.core.types import Scheme
    from waitfor.targets import Target


def root_cause(exc: BaseException) -> BaseException:
    """Follow the cause chain down to the innermost error."""
    seen = {id(exc)}
    while True:
        inner = exc.__cause__ or exc.__context__
        if inner is None or id(inner) in seen:
            return exc
        exc = inner
        seen.add(id(exc))


def describe_error(exc: BaseException, timeout: float | None = None) -> str:
    """Short, human readable reason for a failed attempt."""
    if isinstance(exc, TimeoutError):
        if timeout is not None:
            return f"i/o timeout after {format_duration(timeout)}"
        return "i/o timeout"
    if isinstance(exc, OSError) and exc.strerror:
        return exc.strerror
    text = str(exc).strip()
    return text or type(exc).__name__


class Probe(ABC):
    """
    Base class for all protocol probes.

    Subclasses must implement:
        - bootstrap(): Validate the target and prepare reusable state
        - ping(): One readiness attempt, raising ProbeError when not ready

    close() releases anything bootstrap() acquired and is always awaited,
    whatever the outcome of the run.
    """

    name: str = "probe"

    def __init__(self, attempt_timeout: float = DEFAULT_ATTEMPT_TIMEOUT):
        self.attempt_timeout = attempt_timeout
        self.target: Target | None = None

    @abstractmethod
    def bootstrap(self, target: Target) -> None:
        """
        Validate the target for this protocol.

        Raises:
            InvalidTargetError: Target is not usable by this probe.
        """

    @abstractmethod
    async def ping(self) -> None:
        """
        One readiness attempt.

        Raises:
            ProbeError: Target is not ready yet (retryable).
        """

    async def close(self) -> None:
        """Release resources. Safe to call more than once."""
        return None

    def check_target(self, target: Target, *schemes: Scheme) -> None:
        """Reject targets of another scheme or without a host."""
        if target.scheme not in schemes:
            raise InvalidTargetError(
                target.display, f"invalid scheme for {self.name} probe: {target.scheme_name}"
            )
        if not target.host:
            raise InvalidTargetError(target.display, f"no host specified for {self.name} scheme")

    def bootstrapped_target(self) -> Target:
        """Return the bootstrapped target, or raise if bootstrap() never ran."""
        if self.target is None:
            raise RuntimeError(f"{self.name} probe not bootstrapped")
        return self.target

    def failure(self, reason: str | BaseException) -> ProbeError:
        """Build the retryable error for a failed attempt."""
        if isinstance(reason, BaseException):
            reason = describe_error(reason, self.attempt_timeout)
        display = self.target.display if self.target else "<not bootstrapped>"
        return ProbeError(display, reason)

    def __repr__(self) -> str:
        target = self.target.display if self.target else None
        return f"{type(self).__name__}(target={target!r}, attempt_timeout={self.attempt_timeout})"
