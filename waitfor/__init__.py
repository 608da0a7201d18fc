"""
wait-for - Wait until network services are ready.

Probes TCP, UDP, HTTP(S), MySQL and PostgreSQL endpoints concurrently
until all of them answer or a deadline expires.
"""

try:
    from importlib.metadata import PackageNotFoundError, version
    __version__ = version("wait-for")
except PackageNotFoundError:
    # Package not installed, fallback to pyproject.toml
    __version__ = "0.1.0"

__author__ = "wait-for Contributors"
