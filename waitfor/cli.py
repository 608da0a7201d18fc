"""
wait-for CLI - Command line entry point.

Exit codes: 0 when every host is up, 1 on any error, 130 when
interrupted.
"""
import sys

import click
from click.core import ParameterSource
from loguru import logger

from waitfor import __version__
from waitfor.config.loader import DEFAULT_CONFIG_FILE, load_config
from waitfor.config.models import DEFAULT_INTERVAL, DEFAULT_TIMEOUT, format_duration
from waitfor.core.exceptions import CancelledByUserError, WaitForError
from waitfor.utils.display import ProgressReporter, get_console
from waitfor.utils.logger import setup_logger

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130

HELP = """wait-for allows you to wait for a resource to respond to requests.

It does this by performing a connection to the specified host and port.
If there's no resource behind it and the connection cannot be
established, the request is retried until either the timeout is reached
or the resource becomes available.

Each protocol defines its own way of checking for the resource. A TCP
target is up once a connection is accepted, an HTTP target once it
answers with a 2xx status, and a MySQL or PostgreSQL target once the
server accepts a session.
"""

EXAMPLES = [
    ("-s localhost:80", "wait for a web server to accept connections"),
    ("-s mysql.example.local:3306", "wait for a MySQL database to accept connections"),
    ("-s udp://localhost:53", "wait for a DNS server to accept connections"),
    ("--host localhost:80 --host localhost:81", "wait for multiple resources to accept connections"),
    ("--host mysql://localhost:3306", "wait until a MySQL database responds to pings"),
    ("--host postgres://localhost:5432/app", "wait until a PostgreSQL database responds to queries"),
    ("--host http://localhost:8080", "wait until an HTTP server responds with a 2xx status code"),
    ("--host https://localhost:443", "wait until an HTTPS server responds with a 2xx status code and a valid certificate"),
    ("--config targets.yaml", "load hosts and settings from a YAML file"),
]


def format_examples(command: str, examples: list[tuple[str, str]]) -> str:
    """Render examples as aligned lines, protected from click rewrapping."""
    padding = max(len(example) for example, _ in examples)
    lines = [
        f"  {command} {example}{' ' * (padding - len(example) + 3)} {helper}"
        for example, helper in examples
    ]
    return "\b\nExamples:\n" + "\n".join(lines)


def _given(ctx: click.Context, name: str, value):
    """Value only if set explicitly, so env and config file can apply."""
    if ctx.get_parameter_source(name) in (ParameterSource.DEFAULT, None):
        return None
    return value


@click.command(
    name="wait-for",
    help=HELP,
    epilog=format_examples("wait-for", EXAMPLES),
    context_settings={"help_option_names": ["-h", "--help"], "max_content_width": 120},
)
@click.version_option(version=__version__, prog_name="wait-for")
@click.option(
    "--host", "-s", "hosts", multiple=True, metavar="HOST",
    help='Host to connect to, as "host:port" or with a protocol prefix (e.g. "udp://host:port"). Repeatable.',
)
@click.option(
    "--timeout", "-t", default=format_duration(DEFAULT_TIMEOUT), show_default=True,
    help="Maximum time to wait for the endpoints to respond before giving up.",
)
@click.option(
    "--every", "-e", default=format_duration(DEFAULT_INTERVAL), show_default=True,
    help="Time to wait between each request attempt against the host.",
)
@click.option("--verbose", "-v", is_flag=True, help="Print every attempt and its result.")
@click.option(
    "--config", "config_file", default=DEFAULT_CONFIG_FILE, show_default=True,
    help="Config file to load hosts and settings from.",
)
@click.option("--debug", is_flag=True, help="Enable debug logging on stderr.")
@click.pass_context
def cli(ctx, hosts, timeout, every, verbose, config_file, debug):
    setup_logger(debug=debug)

    out = get_console()
    err = get_console(stderr=True)

    try:
        from waitfor.waiter import wait_for_targets

        config = load_config(
            config_file,
            hosts=list(hosts),
            timeout=_given(ctx, "timeout", timeout),
            every=_given(ctx, "every", every),
            verbose=_given(ctx, "verbose", verbose),
            required=ctx.get_parameter_source("config_file") != ParameterSource.DEFAULT,
        )
        reporter = ProgressReporter(verbose=config.verbose, console=out)
        wait_for_targets(
            config,
            reporter=reporter,
            on_start=lambda banner: out.print(banner, markup=False),
        )
    except CancelledByUserError as e:
        err.print(f"Error: {e}", markup=False)
        sys.exit(EXIT_INTERRUPTED)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        err.print(f"Error: {CancelledByUserError()}", markup=False)
        sys.exit(EXIT_INTERRUPTED)
    except WaitForError as e:
        logger.debug(f"Run failed: {e!r}")
        err.print(f"Error: {e}", markup=False)
        sys.exit(EXIT_ERROR)

    out.print("All hosts are up and responding.", markup=False)


def main() -> None:
    """Main entry point for the wait-for CLI."""
    cli(prog_name="wait-for")


if __name__ == "__main__":
    main()
