"""
wait-for Targets - Parsing raw target descriptors.

A descriptor is a URL-like string: "db:5432", "udp://dns:53",
"https://api.local/health" or "postgres://user:pw@db:5432/app".
Descriptors without a scheme are TCP targets.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import unquote, urlsplit

from waitfor.core.exceptions import ConfigurationError, TargetParseError, UnsupportedSchemeError
from waitfor.core.types import Scheme

if TYPE_CHECKING:
    from waitfor.probes.registry import ProbeRegistry

DEFAULT_SCHEME = "tcp"
SCHEME_SEPARATOR = "://"

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")


@dataclass(frozen=True)
class Target:
    """One endpoint to wait for. Immutable once parsed."""

    raw: str
    url: str
    scheme: Scheme
    scheme_name: str
    host: str
    port: int | None
    address: str
    username: str | None = None
    password: str | None = None
    path: str = ""
    query: str = ""

    def __str__(self) -> str:
        return self.url

    @property
    def display(self) -> str:
        """scheme://host[:port], without credentials, path or query."""
        return f"{self.scheme_name}{SCHEME_SEPARATOR}{self.address}"

    @property
    def has_credentials(self) -> bool:
        return self.username is not None or self.password is not None


def parse_target(raw: str, registry: ProbeRegistry | None = None) -> Target:
    """
    Parse a raw descriptor into a Target.

    Args:
        raw: Descriptor as given by the user.
        registry: Registry whose schemes are accepted (default registry
            when omitted).

    Returns:
        Parsed Target.

    Raises:
        TargetParseError: Malformed descriptor.
        UnsupportedSchemeError: Scheme has no registered probe.
    """
    if registry is None:
        from waitfor.probes.registry import get_registry
        registry = get_registry()

    if not raw or not raw.strip():
        raise TargetParseError(raw, "empty host")

    url = raw if SCHEME_SEPARATOR in raw else f"{DEFAULT_SCHEME}{SCHEME_SEPARATOR}{raw}"
    scheme_name, _, _remainder = url.partition(SCHEME_SEPARATOR)

    if not scheme_name:
        raise TargetParseError(raw, "missing scheme")
    if not _SCHEME_RE.match(scheme_name):
        raise TargetParseError(raw, f"invalid scheme {scheme_name!r}")

    scheme_key = scheme_name.lower()
    if not registry.has(scheme_key):
        raise UnsupportedSchemeError(raw, scheme_name, registry.names())
    scheme = registry.resolve(scheme_key)

    parts = urlsplit(url)
    try:
        host = parts.hostname
        port = parts.port
    except ValueError as e:
        raise TargetParseError(raw, f"invalid port: {e}") from e

    if not host:
        raise TargetParseError(raw, "no host specified")

    if scheme.is_address:
        if port is None:
            raise TargetParseError(
                raw,
                f'must be in the format "host:port" or "{scheme_key}://host:port"',
            )
        if port == 0:
            raise TargetParseError(raw, "port must be between 1 and 65535")

    address = parts.netloc.rpartition("@")[2]

    return Target(
        raw=raw,
        url=url,
        scheme=scheme,
        scheme_name=scheme_key,
        host=host,
        port=port,
        address=address,
        username=unquote(parts.username) if parts.username is not None else None,
        password=unquote(parts.password) if parts.password is not None else None,
        path=parts.path,
        query=parts.query,
    )


def parse_targets(raws: Iterable[str], registry: ProbeRegistry | None = None) -> list[Target]:
    """
    Parse every descriptor, failing on the first bad one.

    Raises:
        ConfigurationError: Empty list, or any parse error.
    """
    raws = list(raws)
    if not raws:
        raise ConfigurationError("no hosts specified")
    return [parse_target(raw, registry) for raw in raws]


def stringify_targets(targets: Iterable[Target]) -> str:
    """Render targets as a quoted, comma separated list."""
    return ", ".join(f'"{t.display}"' for t in targets)
