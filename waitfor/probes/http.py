"""
wait-for Probes - HTTP and HTTPS.

A target is ready once a GET on its URL answers with a 2xx status.
Redirects are followed; TLS certificates are always verified.
"""

from __future__ import annotations

import httpx

from waitfor.config.models import DEFAULT_ATTEMPT_TIMEOUT
from waitfor.core.exceptions import InvalidTargetError
from waitfor.core.types import Scheme
from waitfor.probes.base import Probe, describe_error, root_cause
from waitfor.targets import Target


class HTTPProbe(Probe):
    """GET the target URL and expect a 2xx response."""

    name = "http"
    scheme = Scheme.HTTP

    def __init__(
        self,
        attempt_timeout: float = DEFAULT_ATTEMPT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(attempt_timeout)
        self._client = client
        self._owns_client = client is None

    def bootstrap(self, target: Target) -> None:
        self.check_target(target, self.scheme)
        try:
            url = httpx.URL(target.url)
        except httpx.InvalidURL as e:
            raise InvalidTargetError(target.display, f"invalid URL: {e}") from e
        if not url.is_absolute_url or not url.host:
            raise InvalidTargetError(target.display, f"invalid URL: {target.url}")

        self.target = target
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.attempt_timeout,
                verify=True,
                follow_redirects=True,
            )

    async def ping(self) -> None:
        target = self.bootstrapped_target()
        if self._client is None:
            raise RuntimeError(f"{self.name} probe is closed")
        try:
            response = await self._client.get(target.url)
        except httpx.TimeoutException as e:
            raise self.failure(TimeoutError()) from e
        except httpx.HTTPError as e:
            raise self.failure(describe_error(root_cause(e))) from e

        if not response.is_success:
            raise self.failure(
                f"received non-2xx status code: {response.status_code} {response.reason_phrase}"
            )

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None


class HTTPSProbe(HTTPProbe):
    """HTTP probe over TLS."""

    name = "https"
    scheme = Scheme.HTTPS
