"""
wait-for Probes - Protocol readiness checks.
"""

from waitfor.probes.base import Probe, describe_error, root_cause
from waitfor.probes.http import HTTPProbe, HTTPSProbe
from waitfor.probes.network import TCPProbe, UDPProbe
from waitfor.probes.registry import (
    ProbeRegistry,
    get_registry,
    register_builtin_probes,
    reset_registry,
)
from waitfor.probes.sql import MySQLProbe, PostgresProbe

__all__ = [
    "HTTPProbe",
    "HTTPSProbe",
    "MySQLProbe",
    "PostgresProbe",
    "Probe",
    "ProbeRegistry",
    "TCPProbe",
    "UDPProbe",
    "describe_error",
    "get_registry",
    "register_builtin_probes",
    "reset_registry",
    "root_cause",
]
