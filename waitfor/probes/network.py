"""
wait-for Probes - TCP and UDP.
"""

from __future__ import annotations

import asyncio
import socket

from loguru import logger

from waitfor.config.models import DEFAULT_ATTEMPT_TIMEOUT
from waitfor.core.exceptions import InvalidTargetError
from waitfor.core.types import Scheme
from waitfor.probes.base import Probe, describe_error
from waitfor.targets import Target
from waitfor.utils.logger import log_prefix

# The IDNA codec rejects some hostnames the URL parser accepts
RESOLVE_ERRORS = (OSError, UnicodeError)


class _AddressProbe(Probe):
    """Shared bootstrap for host:port probes."""

    scheme: Scheme

    def __init__(
        self,
        attempt_timeout: float = DEFAULT_ATTEMPT_TIMEOUT,
        family: int = socket.AF_UNSPEC,
    ):
        super().__init__(attempt_timeout)
        self.family = family

    def bootstrap(self, target: Target) -> None:
        self.check_target(target, self.scheme)
        if target.port is None:
            raise InvalidTargetError(target.display, f"no port specified for {self.name} scheme")
        if target.path not in ("", "/") or target.query:
            raise InvalidTargetError(target.display, f"{self.name} targets take no path or query")
        if target.has_credentials:
            raise InvalidTargetError(target.display, f"{self.name} targets take no credentials")
        self.target = target

    @property
    def endpoint(self) -> str:
        return f"{self.name} {self.bootstrapped_target().address}"


class TCPProbe(_AddressProbe):
    """Ready once a TCP connection is accepted."""

    name = "tcp"
    scheme = Scheme.TCP

    async def ping(self) -> None:
        target = self.bootstrapped_target()
        try:
            _reader, writer = await asyncio.wait_for(
                asyncio.open_connection(target.host, target.port, family=self.family),
                timeout=self.attempt_timeout,
            )
        except RESOLVE_ERRORS as e:
            raise self.failure(f"dial {self.endpoint}: {describe_error(e, self.attempt_timeout)}") from e

        writer.close()
        try:
            await writer.wait_closed()
        except OSError as e:
            logger.debug(f"{log_prefix('🔒')} Closing {self.endpoint} failed: {e}")


class UDPProbe(_AddressProbe):
    """
    Ready once a zero-length datagram can be sent.

    UDP has no handshake: this only proves the address resolves and is
    routable. A closed port is usually reported by the peer's ICMP reply
    on a later send, if at all.
    """

    name = "udp"
    scheme = Scheme.UDP

    def _send_datagram(self) -> None:
        target = self.bootstrapped_target()
        addrinfo = socket.getaddrinfo(
            target.host, target.port, self.family, socket.SOCK_DGRAM
        )
        family, socktype, proto, _, sockaddr = addrinfo[0]
        with socket.socket(family, socktype, proto) as sock:
            sock.settimeout(self.attempt_timeout)
            sock.connect(sockaddr)
            sock.send(b"")

    async def ping(self) -> None:
        try:
            await asyncio.wait_for(
                asyncio.to_thread(self._send_datagram),
                timeout=self.attempt_timeout,
            )
        except RESOLVE_ERRORS as e:
            raise self.failure(f"dial {self.endpoint}: {describe_error(e, self.attempt_timeout)}") from e
