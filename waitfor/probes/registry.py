"""
Probe Registry - Scheme to probe factory mapping.

Adding a protocol only requires registering a factory; the parser and
the orchestrator look schemes up here.
"""

from __future__ import annotations

import socket
from dataclasses import dataclass
from functools import partial
from typing import Callable

from loguru import logger

from waitfor.core.exceptions import UnsupportedSchemeError
from waitfor.core.types import Scheme
from waitfor.probes.base import Probe

ProbeFactory = Callable[..., Probe]


@dataclass(frozen=True)
class _Entry:
    scheme: Scheme
    factory: ProbeFactory


class ProbeRegistry:
    """
    Registry for probe factories, keyed by lowercase scheme name.

    Usage:
        registry = ProbeRegistry()
        registry.register("tcp", TCPProbe)
        registry.register("tcp4", partial(TCPProbe, family=socket.AF_INET), scheme=Scheme.TCP)

        probe = registry.create("tcp", attempt_timeout=1.0)
    """

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}

    def register(
        self,
        name: str,
        factory: ProbeFactory,
        scheme: Scheme | str | None = None,
    ) -> None:
        """
        Register a probe factory.

        Args:
            name: Scheme name as written in target URLs.
            factory: Callable returning a fresh Probe; receives
                attempt_timeout as keyword argument.
            scheme: Canonical scheme (defaults to name).
        """
        key = name.lower()
        canonical = Scheme(scheme or key)
        if key in self._entries:
            logger.warning(f"Probe for scheme '{key}' already registered, overwriting")
        self._entries[key] = _Entry(canonical, factory)
        logger.debug(f"Registered probe: {key} -> {canonical}")

    def unregister(self, name: str) -> None:
        self._entries.pop(name.lower(), None)

    def has(self, name: str) -> bool:
        return name.lower() in self._entries

    def resolve(self, name: str) -> Scheme:
        """Canonical scheme for a registered name."""
        return self._get(name).scheme

    def create(self, name: str, **kwargs) -> Probe:
        """
        Build a new probe for a scheme.

        Raises:
            UnsupportedSchemeError: No factory registered for name.
        """
        return self._get(name).factory(**kwargs)

    def names(self) -> list[str]:
        return sorted(self._entries)

    def clear(self) -> None:
        """Remove every registration (useful for testing)."""
        self._entries.clear()

    def _get(self, name: str) -> _Entry:
        entry = self._entries.get(name.lower())
        if entry is None:
            raise UnsupportedSchemeError(f"{name}://", name, self.names())
        return entry

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __len__(self) -> int:
        return len(self._entries)


def register_builtin_probes(registry: ProbeRegistry) -> ProbeRegistry:
    """Register every probe shipped with wait-for."""
    from waitfor.probes.http import HTTPProbe, HTTPSProbe
    from waitfor.probes.network import TCPProbe, UDPProbe
    from waitfor.probes.sql import MySQLProbe, PostgresProbe

    registry.register("tcp", TCPProbe)
    registry.register("tcp4", partial(TCPProbe, family=socket.AF_INET), scheme=Scheme.TCP)
    registry.register("tcp6", partial(TCPProbe, family=socket.AF_INET6), scheme=Scheme.TCP)
    registry.register("udp", UDPProbe)
    registry.register("udp4", partial(UDPProbe, family=socket.AF_INET), scheme=Scheme.UDP)
    registry.register("udp6", partial(UDPProbe, family=socket.AF_INET6), scheme=Scheme.UDP)
    registry.register("http", HTTPProbe)
    registry.register("https", HTTPSProbe)
    registry.register("mysql", MySQLProbe)
    registry.register("postgres", PostgresProbe)
    registry.register("postgresql", PostgresProbe, scheme=Scheme.POSTGRES)
    return registry


_registry: ProbeRegistry | None = None


def get_registry() -> ProbeRegistry:
    """Get the process-wide registry, populated with the built-in probes."""
    global _registry
    if _registry is None:
        _registry = register_builtin_probes(ProbeRegistry())
    return _registry


def reset_registry() -> None:
    """Drop the process-wide registry (for testing)."""
    global _registry
    _registry = None
