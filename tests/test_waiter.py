"""Tests for the Waiter orchestrator."""

from __future__ import annotations

import asyncio
import time
from io import StringIO
from typing import TYPE_CHECKING

import pytest
from rich.console import Console

from waitfor.config.models import RunConfig
from waitfor.core.exceptions import (
    CancelledByUserError,
    ConfigurationError,
    DeadlineExceededError,
    InvalidTargetError,
    ProbeError,
    UnsupportedSchemeError,
)
from waitfor.core.types import Scheme, TargetState
from waitfor.probes.base import Probe
from waitfor.probes.registry import ProbeRegistry
from waitfor.utils.display import ProgressReporter
from waitfor.waiter import Waiter, wait_for_targets

if TYPE_CHECKING:
    from conftest import LocalHTTPServer


class RecordingProbe(Probe):
    """Test probe counting bootstrap, ping and close calls."""

    instances: list[RecordingProbe] = []
    name = "tcp"

    def __init__(self, attempt_timeout: float = 1.0, fail: Exception | None = None):
        super().__init__(attempt_timeout)
        self.fail = fail
        self.pings = 0
        self.closed = False
        RecordingProbe.instances.append(self)

    def bootstrap(self, target) -> None:
        if target.host == "invalid":
            raise InvalidTargetError(target.display, "rejected")
        self.target = target

    async def ping(self) -> None:
        self.pings += 1
        if self.fail is not None:
            raise self.fail

    async def close(self) -> None:
        self.closed = True


class SlowCloseProbe(RecordingProbe):
    """Never ready; close() blocks until released."""

    def __init__(self, release: asyncio.Event, attempt_timeout: float = 1.0):
        super().__init__(attempt_timeout, fail=ProbeError("udp://b:2", "not yet"))
        self.release = release

    async def close(self) -> None:
        await self.release.wait()
        await super().close()


async def wait_until(predicate, timeout: float = 2.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        assert time.monotonic() < deadline, "condition not met in time"
        await asyncio.sleep(0.01)


@pytest.fixture
def recording_registry() -> ProbeRegistry:
    RecordingProbe.instances = []
    registry = ProbeRegistry()
    registry.register("tcp", RecordingProbe)
    return registry


def make_config(*targets: str, **kwargs) -> RunConfig:
    return RunConfig(targets=list(targets), **kwargs)


def make_reporter() -> tuple[ProgressReporter, StringIO]:
    buffer = StringIO()
    console = Console(file=buffer, width=200, highlight=False, color_system=None)
    return ProgressReporter(verbose=True, console=console), buffer


class TestPrepare:
    """Tests for Waiter.prepare()."""

    @pytest.mark.asyncio
    async def test_parses_and_bootstraps(self, recording_registry: ProbeRegistry) -> None:
        """Test every target gets its own bootstrapped probe."""
        waiter = Waiter(make_config("a:1", "tcp://bb:22"), registry=recording_registry)

        targets = await waiter.prepare()

        assert [t.display for t in targets] == ["tcp://a:1", "tcp://bb:22"]
        assert len(RecordingProbe.instances) == 2
        assert all(p.target is not None for p in RecordingProbe.instances)
        assert [o.state for o in waiter.outcomes] == [TargetState.PENDING, TargetState.PENDING]
        assert waiter.reporter.padding == len("tcp://bb:22")

    @pytest.mark.asyncio
    async def test_no_targets(self) -> None:
        """Test an empty target list fails."""
        with pytest.raises(ConfigurationError, match="no hosts specified"):
            await Waiter(make_config()).prepare()

    @pytest.mark.asyncio
    async def test_unsupported_scheme_does_no_io(self, recording_registry: ProbeRegistry) -> None:
        """Test a bad scheme aborts before any probe is created."""
        waiter = Waiter(make_config("a:1", "ftp://host:21"), registry=recording_registry)

        with pytest.raises(UnsupportedSchemeError):
            await waiter.run()

        assert RecordingProbe.instances == []

    @pytest.mark.asyncio
    async def test_bootstrap_failure_closes_prepared_probes(
        self, recording_registry: ProbeRegistry
    ) -> None:
        """Test probes bootstrapped before a failure are closed."""
        waiter = Waiter(make_config("a:1", "invalid:2"), registry=recording_registry)

        with pytest.raises(InvalidTargetError, match="rejected"):
            await waiter.prepare()

        assert all(p.closed for p in RecordingProbe.instances)
        assert all(p.pings == 0 for p in RecordingProbe.instances)

    @pytest.mark.asyncio
    async def test_banner(self, recording_registry: ProbeRegistry) -> None:
        """Test the startup banner lists targets and timing."""
        waiter = Waiter(
            make_config("a:1", "b:2", timeout="10s", interval="1s"), registry=recording_registry
        )
        await waiter.prepare()

        assert waiter.banner() == (
            'Waiting for hosts: "tcp://a:1", "tcp://b:2" (timeout: 10s, attempting every 1s)'
        )


class TestRun:
    """Tests for Waiter.run()."""

    @pytest.mark.asyncio
    async def test_reachable_listener(self, tcp_listener: int) -> None:
        """Test a listening TCP port is reported up."""
        reporter, buffer = make_reporter()
        waiter = Waiter(
            make_config(f"127.0.0.1:{tcp_listener}", timeout=5, verbose=True),
            reporter=reporter,
            handle_signals=False,
        )

        report = await waiter.run()

        assert report.ok
        assert 0 <= report.elapsed < 5
        outcome = report.outcomes[0]
        assert outcome.state == TargetState.UP
        assert outcome.elapsed is not None and outcome.elapsed < 5
        assert buffer.getvalue().startswith(f"> up:   tcp://127.0.0.1:{tcp_listener} (after ")

    @pytest.mark.asyncio
    async def test_deadline_without_listener(self, free_port: int) -> None:
        """Test an unreachable port fails at the deadline, not before."""
        waiter = Waiter(
            make_config(f"127.0.0.1:{free_port}", timeout=1, interval=0.1),
            handle_signals=False,
        )

        start = time.monotonic()
        with pytest.raises(DeadlineExceededError) as exc_info:
            await waiter.run()
        elapsed = time.monotonic() - start

        assert str(exc_info.value) == "1s timeout reached before all hosts were up"
        assert 0.95 <= elapsed <= 1.5
        assert waiter.outcomes[0].state != TargetState.UP

    @pytest.mark.asyncio
    async def test_http_404_retried_until_deadline(self, http_server: LocalHTTPServer) -> None:
        """Test a 404 is retryable and only the deadline ends the run."""
        http_server.status = 404
        reporter, buffer = make_reporter()
        waiter = Waiter(
            make_config(http_server.url, timeout=0.5, interval=0.1, verbose=True),
            reporter=reporter,
            handle_signals=False,
        )

        start = time.monotonic()
        with pytest.raises(DeadlineExceededError):
            await waiter.run()

        assert time.monotonic() - start >= 0.45
        assert http_server.hits >= 2
        assert "-- received non-2xx status code: 404 Not Found" in buffer.getvalue()

    @pytest.mark.asyncio
    async def test_bootstrap_failure_with_healthy_target(self, tcp_listener: int) -> None:
        """Test a bootstrap error fails immediately even with a healthy peer."""
        waiter = Waiter(
            make_config(f"127.0.0.1:{tcp_listener}", "postgres://db:5432", timeout=5),
            handle_signals=False,
        )

        start = time.monotonic()
        with pytest.raises(InvalidTargetError, match="no database name specified in the URL"):
            await waiter.run()
        assert time.monotonic() - start < 1

    @pytest.mark.asyncio
    async def test_first_fatal_failure_wins(self) -> None:
        """Test a fatal ping error ends the run right away and releases others."""
        slow = ProbeRegistry()
        RecordingProbe.instances = []
        slow.register("tcp", lambda **kwargs: RecordingProbe(fail=RuntimeError("boom"), **kwargs))
        slow.register(
            "udp",
            lambda **kwargs: RecordingProbe(fail=ProbeError("udp://b:2", "not yet"), **kwargs),
            scheme=Scheme.UDP,
        )

        waiter = Waiter(
            make_config("a:1", "udp://b:2", timeout=5, interval=0.05),
            registry=slow,
            handle_signals=False,
        )

        with pytest.raises(RuntimeError, match="boom"):
            await waiter.run()

        assert waiter.outcomes[0].state == TargetState.FAILED
        assert waiter.outcomes[0].reason == "boom"
        await wait_until(lambda: all(p.closed for p in RecordingProbe.instances))

    @pytest.mark.asyncio
    async def test_failure_does_not_wait_for_stragglers(self) -> None:
        """Test the first failure is raised while other probes are still closing."""
        release = asyncio.Event()
        registry = ProbeRegistry()
        RecordingProbe.instances = []
        registry.register("tcp", lambda **kwargs: RecordingProbe(fail=RuntimeError("boom"), **kwargs))
        registry.register(
            "udp", lambda **kwargs: SlowCloseProbe(release, **kwargs), scheme=Scheme.UDP
        )
        waiter = Waiter(
            make_config("a:1", "udp://b:2", timeout=5, interval=0.05),
            registry=registry,
            handle_signals=False,
        )

        start = time.monotonic()
        with pytest.raises(RuntimeError, match="boom"):
            await waiter.run()
        assert time.monotonic() - start < 1

        straggler = RecordingProbe.instances[1]
        assert not straggler.closed
        release.set()
        await wait_until(lambda: straggler.closed)

    @pytest.mark.asyncio
    async def test_unencodable_host_reaches_deadline(self) -> None:
        """Test a host the resolver cannot encode is retried until the deadline."""
        host = "a" * 64 + ".example"
        waiter = Waiter(
            make_config(f"tcp://{host}:80", timeout=0.5, interval=0.1),
            handle_signals=False,
        )

        with pytest.raises(DeadlineExceededError, match="timeout reached before all hosts were up"):
            await waiter.run()
        assert waiter.outcomes[0].state != TargetState.UP

    @pytest.mark.asyncio
    async def test_all_targets_up(self, recording_registry: ProbeRegistry) -> None:
        """Test success requires every target."""
        waiter = Waiter(
            make_config("a:1", "b:2", "c:3", timeout=5),
            registry=recording_registry,
            handle_signals=False,
        )

        report = await waiter.run()

        assert report.ok
        assert [o.state for o in report.outcomes] == [TargetState.UP] * 3
        assert report.get("tcp://b:2") is not None
        assert all(p.closed for p in RecordingProbe.instances)

    @pytest.mark.asyncio
    async def test_cancel_interrupts(self, free_port: int) -> None:
        """Test cancel() ends the run with CancelledByUserError."""
        waiter = Waiter(
            make_config(f"127.0.0.1:{free_port}", timeout=10, interval=0.1),
            handle_signals=False,
        )
        asyncio.get_running_loop().call_later(0.2, waiter.cancel)

        start = time.monotonic()
        with pytest.raises(CancelledByUserError, match="user requested early termination"):
            await waiter.run()
        assert time.monotonic() - start < 2

    @pytest.mark.asyncio
    async def test_runs_once(self, recording_registry: ProbeRegistry) -> None:
        """Test a waiter cannot be reused."""
        waiter = Waiter(make_config("a:1"), registry=recording_registry, handle_signals=False)
        await waiter.run()

        with pytest.raises(RuntimeError):
            await waiter.run()


def test_wait_for_targets_blocking(recording_registry: ProbeRegistry) -> None:
    """Test the blocking entry point announces and runs."""
    banners: list[str] = []

    report = wait_for_targets(
        make_config("a:1", timeout=5),
        registry=recording_registry,
        on_start=banners.append,
    )

    assert report.ok
    assert banners == ['Waiting for hosts: "tcp://a:1" (timeout: 5s, attempting every 1s)']
