"""Command line interface for wsgi-json-logs.

Commands:
    pretty    Render JSON record lines (as written by JSONFormatter) as
              colorized console summaries. Other lines pass through unchanged.

Example:
    gunicorn app:application | wsgi-json-logs pretty
    wsgi-json-logs pretty --no-color requests.log
"""

from __future__ import annotations

__all__ = ["cli"]

import json
import logging
import sys
from typing import TextIO

import click
from pydantic import ValidationError

from wsgi_json_logs import __version__
from wsgi_json_logs.constants import APP_NAME, RECORD_SEPARATOR
from wsgi_json_logs.formatters.pretty_formatter import PrettyFormatter
from wsgi_json_logs.models.record import TransactionRecord


class _EchoHandler(logging.Handler):
    """Writes each log line to click's stdout."""

    def emit(self, record: logging.LogRecord) -> None:
        click.echo(self.format(record))


def _echo_logger(level: int) -> logging.Logger:
    """Standalone logger (not registered globally) that echoes message text."""
    logger = logging.Logger(f"{APP_NAME}.cli", level)
    handler = _EchoHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger


@click.group(
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.pass_context
def cli(ctx: click.Context, version: bool) -> None:
    """wsgi-json-logs: one structured log record per request."""
    if version:
        click.echo(f"{APP_NAME} {__version__}")
        sys.exit(0)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command("pretty")
@click.argument("source", type=click.File("r"), default="-")
@click.option("--no-color", is_flag=True, help="Disable colorized summary lines")
@click.option("--summary-only", is_flag=True, help="Omit backtraces and env dumps")
def pretty(source: TextIO, no_color: bool, summary_only: bool) -> None:
    """Render JSON record lines from SOURCE (default: stdin)."""
    formatter = PrettyFormatter(color=not no_color)
    logger = _echo_logger(logging.INFO if summary_only else logging.DEBUG)
    invalid = 0

    for lineno, raw_line in enumerate(source, start=1):
        line = raw_line.rstrip("\n")
        text = line.lstrip(RECORD_SEPARATOR)
        if not text.startswith("{"):
            click.echo(line)
            continue

        try:
            record = TransactionRecord.model_validate(json.loads(text))
        except (json.JSONDecodeError, ValidationError) as e:
            if line.startswith(RECORD_SEPARATOR):
                invalid += 1
                click.echo(f"Line {lineno}: not a valid transaction record ({type(e).__name__})", err=True)
            else:
                click.echo(line)
            continue

        formatter(logger, record, {})

    if invalid:
        raise click.ClickException(f"{invalid} invalid record line(s)")


def main() -> None:
    """Console script entry point."""
    cli()
