"""
Console output for wait-for.

Progress lines are plain text: markup and highlighting are disabled so
that target strings are printed verbatim.
"""
from typing import Optional

from loguru import logger
from rich.console import Console
from rich.theme import Theme

from waitfor.config.models import format_duration

waitfor_theme = Theme({
    "info": "dim cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
})

UP_PREFIX = "> up:  "
DOWN_PREFIX = "> down:"


def get_console(stderr: bool = False) -> Console:
    """Build a themed console for stdout or stderr."""
    return Console(theme=waitfor_theme, stderr=stderr, highlight=False, emoji=False, soft_wrap=True)


class ProgressReporter:
    """
    Prints per-target transitions while verbose output is requested.

    The padding width is computed once before probing starts and only
    read afterwards, so concurrent tasks can share one reporter.
    """

    def __init__(
        self,
        verbose: bool = False,
        padding: int = 0,
        console: Optional[Console] = None,
    ):
        self.verbose = verbose
        self.padding = padding
        self.console = console or get_console()

    def pad(self, text: str) -> str:
        """Left-justify text to the padding width."""
        return text.ljust(self.padding)

    def emit(self, line: str) -> None:
        """Print a raw line when verbose."""
        if self.verbose:
            self.console.print(line, markup=False, highlight=False, emoji=False)

    def up(self, target: str, elapsed: float) -> None:
        """Report a target that became ready."""
        logger.debug(f"{target} is up after {format_duration(elapsed)}")
        self.emit(f"{UP_PREFIX} {self.pad(target)} (after {format_duration(elapsed)})")

    def down(self, target: str, reason: object) -> None:
        """Report a failed attempt."""
        logger.debug(f"{target} is down: {reason}")
        self.emit(f"{DOWN_PREFIX} {self.pad(target)} -- {reason}")
