"""
wait-for Core - Run-scoped done signal.

One DoneSignal is shared read-only by every probing task of a run. It
fires once, when the deadline expires, when an interrupt arrives, or
when the run has been decided and leftover tasks must stop.
"""

from __future__ import annotations

import asyncio
import signal
from collections.abc import Awaitable
from typing import Any

from loguru import logger

from waitfor.core.types import CancelReason
from waitfor.utils.logger import log_prefix

INTERRUPT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class DoneSignal:
    """
    Cooperative cancellation token for one run.

    Tasks never get killed: they poll `done`, and race their sleeps and
    attempts against `wait()`.

    Example:
        >>> done = DoneSignal()
        >>> done.arm_deadline(10.0)
        >>> done.install_interrupt_handlers()
        >>> interrupted = await done.sleep(1.0)
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: CancelReason | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._handled_signals: list[int] = []
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def done(self) -> bool:
        """True once the signal has fired."""
        return self._event.is_set()

    @property
    def reason(self) -> CancelReason | None:
        """Reason of the first cancel() call, None while running."""
        return self._reason

    def cancel(self, reason: CancelReason) -> None:
        """Fire the signal. Only the first reason is kept."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        logger.debug(f"{log_prefix('🔒')} Done signal fired: {reason}")

    async def wait(self) -> CancelReason | None:
        """Block until the signal fires."""
        await self._event.wait()
        return self._reason

    async def sleep(self, seconds: float) -> bool:
        """
        Sleep, waking early if the signal fires.

        Returns:
            True if the signal fired before or during the sleep.
        """
        if self.done:
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except TimeoutError:
            return False
        return True

    async def race(self, awaitable: Awaitable[Any]) -> bool:
        """
        Run an awaitable until it finishes or the signal fires.

        Exceptions raised by the awaitable propagate unchanged.

        Returns:
            True if the awaitable completed, False if the signal won and
            the awaitable was cancelled.
        """
        task = asyncio.ensure_future(awaitable)
        if self.done:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            return False

        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task.done():
            task.result()
            return True

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        return False

    def arm_deadline(self, timeout: float) -> None:
        """Fire with DEADLINE after `timeout` seconds. Can be armed once."""
        if self._timer is not None:
            raise RuntimeError("deadline already armed")
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(timeout, self.cancel, CancelReason.DEADLINE)

    def install_interrupt_handlers(self) -> bool:
        """
        Fire with INTERRUPTED on SIGINT/SIGTERM where the platform allows.

        Returns:
            True if at least one handler was installed.
        """
        loop = asyncio.get_running_loop()
        for signum in INTERRUPT_SIGNALS:
            try:
                loop.add_signal_handler(signum, self.cancel, CancelReason.INTERRUPTED)
            except (NotImplementedError, RuntimeError, ValueError) as e:
                # Windows loops and non-main threads cannot install handlers
                logger.debug(f"Signal handler for {signum} not installed: {e}")
                continue
            self._handled_signals.append(signum)
        if self._handled_signals:
            self._loop = loop
        return bool(self._handled_signals)

    def close(self) -> None:
        """Disarm the deadline timer and restore signal handlers."""
        if self._timer is not None:
            self._timer.cancel()
        if self._loop is not None:
            for signum in self._handled_signals:
                self._loop.remove_signal_handler(signum)
        self._handled_signals.clear()
        self._loop = None
