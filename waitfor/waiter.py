"""
wait-for Waiter - Concurrent readiness orchestration.

One asyncio task per target runs a fixed-interval Retry of its probe.
Every task shares one DoneSignal, armed with the run deadline and with
SIGINT/SIGTERM where the platform allows. The run ends when every target
is up, when the first task fails, or when the signal fires.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable

from loguru import logger

from waitfor.config.models import RunConfig, format_duration
from waitfor.core.cancellation import DoneSignal
from waitfor.core.exceptions import CancelledByUserError, DeadlineExceededError, WaitForError
from waitfor.core.resilience import Retry
from waitfor.core.types import CancelReason, RunReport, TargetOutcome, TargetState
from waitfor.probes.base import Probe
from waitfor.probes.registry import ProbeRegistry, get_registry
from waitfor.targets import Target, parse_targets, stringify_targets
from waitfor.utils.display import ProgressReporter
from waitfor.utils.logger import log_prefix


def _consume_result(task: asyncio.Task) -> None:
    if not task.cancelled():
        task.exception()


class Waiter:
    """
    Wait until every configured target answers.

    Example:
        >>> waiter = Waiter(RunConfig(targets=["db:5432"], timeout=30))
        >>> await waiter.prepare()
        >>> report = await waiter.run()
    """

    def __init__(
        self,
        config: RunConfig,
        registry: ProbeRegistry | None = None,
        reporter: ProgressReporter | None = None,
        *,
        handle_signals: bool = True,
    ):
        """
        Initialize the waiter.

        Args:
            config: Run configuration.
            registry: Probe registry (default registry when omitted).
            reporter: Progress reporter (silent unless config.verbose).
            handle_signals: Install SIGINT/SIGTERM handlers during run().
        """
        self.config = config
        self.registry = registry or get_registry()
        self.reporter = reporter or ProgressReporter(verbose=config.verbose)
        self.handle_signals = handle_signals

        self.targets: list[Target] = []
        self.outcomes: list[TargetOutcome] = []
        self._probes: list[Probe] = []
        self._signal: DoneSignal | None = None
        self._stragglers: set[asyncio.Task] = set()
        self._cancel_requested = False
        self._prepared = False
        self._started = False

    # =========================================================================
    # Preparation
    # =========================================================================

    async def prepare(self) -> list[Target]:
        """
        Parse and bootstrap every target. No network I/O happens here.

        Raises:
            ConfigurationError: No targets, or a malformed target.
            InvalidTargetError: A target does not fit its probe.
        """
        if self._prepared:
            return self.targets

        targets = parse_targets(self.config.targets, self.registry)
        probes: list[Probe] = []
        try:
            for target in targets:
                probe = self.registry.create(
                    target.scheme_name, attempt_timeout=self.config.attempt_timeout
                )
                probes.append(probe)
                probe.bootstrap(target)
        except Exception:
            await self._close_probes(probes)
            raise

        self.targets = targets
        self._probes = probes
        self.outcomes = [TargetOutcome(target=t.display) for t in targets]
        self.reporter.padding = max(len(t.display) for t in targets)
        self._prepared = True
        logger.debug(f"Prepared {len(targets)} target(s): {stringify_targets(targets)}")
        return targets

    def banner(self) -> str:
        """Startup line listing targets and timing."""
        return f"Waiting for hosts: {stringify_targets(self.targets)} ({self.config.describe()})"

    # =========================================================================
    # Run
    # =========================================================================

    def cancel(self) -> None:
        """Interrupt the run as if SIGINT had been received."""
        self._cancel_requested = True
        if self._signal is not None:
            self._signal.cancel(CancelReason.INTERRUPTED)

    async def run(self) -> RunReport:
        """
        Probe every target until all are up.

        Returns:
            RunReport with one UP outcome per target.

        Raises:
            WaitForError: First task failure, deadline or interruption.
        """
        if self._started:
            raise RuntimeError("a Waiter can only run once")
        await self.prepare()
        self._started = True

        signal = DoneSignal()
        self._signal = signal
        if self._cancel_requested:
            signal.cancel(CancelReason.INTERRUPTED)
        signal.arm_deadline(self.config.timeout)
        if self.handle_signals:
            signal.install_interrupt_handlers()

        logger.info(
            f"{log_prefix('🚀')} Waiting for {len(self.targets)} target(s) "
            f"({self.config.describe()})"
        )

        start = time.monotonic()
        tasks = [
            asyncio.create_task(
                self._watch(index, signal, start), name=f"wait-for:{target.display}"
            )
            for index, target in enumerate(self.targets)
        ]
        sentinel = asyncio.create_task(signal.wait(), name="wait-for:done")
        pending = set(tasks)

        try:
            while pending:
                done, _ = await asyncio.wait(
                    pending | {sentinel}, return_when=asyncio.FIRST_COMPLETED
                )
                failure: BaseException | None = None
                for task in tasks:
                    if task in done:
                        pending.discard(task)
                        failure = failure or task.exception()

                if self._caused_by_signal(failure) or (sentinel in done and pending):
                    raise self._run_error(signal.reason)
                if failure is not None:
                    raise failure

            elapsed = time.monotonic() - start
            logger.info(f"{log_prefix('✅')} All hosts up after {format_duration(elapsed)}")
            return RunReport(outcomes=list(self.outcomes), elapsed=elapsed)
        finally:
            signal.cancel(CancelReason.RELEASED)
            sentinel.cancel()
            self._release(pending)
            signal.close()
            self._signal = None

    async def _watch(self, index: int, signal: DoneSignal, start: float) -> TargetOutcome:
        target = self.targets[index]
        probe = self._probes[index]
        outcome = self.outcomes[index]

        def on_retry(error: WaitForError, attempt: int) -> None:
            self.reporter.down(target.display, error)

        try:
            result = await Retry(self.config.interval, signal).run(probe.ping, on_retry=on_retry)
            if result.succeeded:
                outcome.state = TargetState.UP
                outcome.elapsed = time.monotonic() - start
                self.reporter.up(target.display, outcome.elapsed)
                return outcome
            if signal.reason == CancelReason.RELEASED:
                return outcome
            raise self._task_error(target, signal.reason)
        except Exception as e:
            outcome.state = TargetState.FAILED
            outcome.reason = str(e)
            logger.debug(f"{log_prefix('❌')} {target.display} failed: {e}")
            raise
        finally:
            await self._close_probes([probe])

    # =========================================================================
    # Helpers
    # =========================================================================

    def _task_error(self, target: Target, reason: CancelReason | None) -> WaitForError:
        if reason == CancelReason.INTERRUPTED:
            return CancelledByUserError(target.display)
        return DeadlineExceededError(
            f'timeout reached while waiting for "{target.display}"', target.display
        )

    def _run_error(self, reason: CancelReason | None) -> WaitForError:
        if reason == CancelReason.INTERRUPTED:
            logger.warning(f"{log_prefix('🛑')} Interrupted before all hosts were up")
            return CancelledByUserError()
        logger.warning(f"{log_prefix('⏱️')} Deadline of {format_duration(self.config.timeout)} reached")
        return DeadlineExceededError(
            f"{format_duration(self.config.timeout)} timeout reached before all hosts were up"
        )

    @staticmethod
    def _caused_by_signal(failure: BaseException | None) -> bool:
        return isinstance(failure, (DeadlineExceededError, CancelledByUserError))

    def _release(self, pending: set[asyncio.Task]) -> None:
        """Leave stragglers to stop on the released signal and close their probes."""
        for task in pending:
            self._stragglers.add(task)
            task.add_done_callback(self._stragglers.discard)
            task.add_done_callback(_consume_result)
        if pending:
            logger.debug(f"{len(pending)} task(s) still stopping after the run ended")

    @staticmethod
    async def _close_probes(probes: list[Probe]) -> None:
        for probe in probes:
            try:
                await probe.close()
            except Exception as e:
                logger.debug(f"{log_prefix('🔒')} Closing {probe!r} failed: {e}")


def wait_for_targets(
    config: RunConfig,
    registry: ProbeRegistry | None = None,
    reporter: ProgressReporter | None = None,
    on_start: Callable[[str], None] | None = None,
) -> RunReport:
    """
    Blocking entry point: prepare, announce and run one Waiter.

    Args:
        config: Run configuration.
        registry: Probe registry (default registry when omitted).
        reporter: Progress reporter.
        on_start: Called with the banner once every target is bootstrapped.

    Returns:
        RunReport of the successful run.

    Raises:
        WaitForError: Any configuration, bootstrap or run failure.
    """

    async def _main() -> RunReport:
        waiter = Waiter(config, registry=registry, reporter=reporter)
        await waiter.prepare()
        if on_start is not None:
            on_start(waiter.banner())
        return await waiter.run()

    return asyncio.run(_main())
