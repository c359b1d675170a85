"""Main CLI command group for whisperlive-client."""

from __future__ import annotations

import click

import whisperlive_client
from whisperlive_client.logging import configure_logging


@click.group()
@click.version_option(version=whisperlive_client.__version__, prog_name="whisperlive")
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"]),
    default=None,
    help="Log format (default: WHISPERLIVE_LOG_FORMAT or console).",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default="WARNING",
    show_default=True,
    help="Log level.",
)
def cli(log_format: str | None, log_level: str) -> None:
    """whisperlive — Streaming transcription client for WhisperLive servers."""
    configure_logging(log_format=log_format, level=log_level)
