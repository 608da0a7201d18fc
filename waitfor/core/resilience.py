"""
wait-for Core - Resilience patterns.

Provides the fixed-interval retry loop every probing task runs.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable  # noqa: TC003
from dataclasses import dataclass

from loguru import logger

from waitfor.core.cancellation import DoneSignal  # noqa: TC001
from waitfor.core.exceptions import RetryableError
from waitfor.core.types import RetryState
from waitfor.utils.logger import log_prefix


@dataclass
class RetryResult:
    """Terminal state of one Retry.run() call."""

    state: RetryState
    attempts: int
    last_error: RetryableError | None = None
    elapsed: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.state == RetryState.SUCCEEDED


class Retry:
    """
    Retry an operation at a fixed interval until it succeeds, fails
    fatally, or the done signal fires.

    State machine:
    - ATTEMPTING → SUCCEEDED: the operation returned.
    - ATTEMPTING → ATTEMPTING: the operation raised a RetryableError,
      the interval sleep finished without the signal firing.
    - ATTEMPTING → CANCELLED: the signal fired before an attempt, during
      an attempt, or during the interval sleep.
    - ATTEMPTING → FATAL_FAILED: the operation raised anything else. The
      exception is re-raised unchanged.

    Example:
        >>> result = await Retry(interval=1.0, signal=done).run(probe.ping)
        >>> result.state
        <RetryState.SUCCEEDED: 'succeeded'>
    """

    def __init__(self, interval: float, signal: DoneSignal) -> None:
        """
        Initialize the retry loop.

        Args:
            interval: Seconds to wait between attempts.
            signal: Shared done signal, only read.
        """
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.interval = interval
        self.signal = signal
        self.state = RetryState.ATTEMPTING

    async def run(
        self,
        operation: Callable[[], Awaitable[None]],
        on_retry: Callable[[RetryableError, int], None] | None = None,
    ) -> RetryResult:
        """
        Drive the operation to a terminal state.

        Args:
            operation: Async callable performing one attempt.
            on_retry: Optional callback invoked with the error and the
                attempt number after each retryable failure.

        Returns:
            RetryResult in SUCCEEDED or CANCELLED state.

        Raises:
            Exception: Any non-retryable error from the operation.
        """
        start = time.monotonic()
        attempts = 0
        last_error: RetryableError | None = None
        name = getattr(operation, "__qualname__", repr(operation))

        while True:
            if self.signal.done:
                return self._finish(RetryState.CANCELLED, attempts, last_error, start)

            attempts += 1
            try:
                completed = await self.signal.race(operation())
            except RetryableError as e:
                last_error = e
                logger.debug(
                    f"{log_prefix('🔄')} Attempt {attempts} of {name} failed, "
                    f"retrying in {self.interval:.3g}s: {e}"
                )
                if on_retry is not None:
                    on_retry(e, attempts)
                if await self.signal.sleep(self.interval):
                    return self._finish(RetryState.CANCELLED, attempts, last_error, start)
                continue
            except Exception:
                self.state = RetryState.FATAL_FAILED
                logger.debug(f"{log_prefix('❌')} Attempt {attempts} of {name} failed fatally")
                raise

            if not completed:
                return self._finish(RetryState.CANCELLED, attempts, last_error, start)
            return self._finish(RetryState.SUCCEEDED, attempts, last_error, start)

    def _finish(
        self,
        state: RetryState,
        attempts: int,
        last_error: RetryableError | None,
        start: float,
    ) -> RetryResult:
        self.state = state
        return RetryResult(
            state=state,
            attempts=attempts,
            last_error=last_error,
            elapsed=time.monotonic() - start,
        )
