#!/usr/bin/env python3
"""
Ticker Room CLI

Operator command-line interface built with Click: inspect the mention ledger,
run the extractor on ad-hoc text, rank gainers and read the context logs.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.

Usage:
    python src/cli.py --help
    python src/cli.py ledger stats
    python src/cli.py ledger tickers --month --limit 20
    python src/cli.py context tail --channel-id 123 --minutes 120
"""

import logging
import sys

import click

# Local application imports
import constants as const
import util

# Import command groups
from cli.context import context
from cli.ledger import ledger


# Initialize logging for CLI application
util.setup_logger(name=None, level="INFO", console=True, log_file=const.CLI_LOG_FILE)
logger = logging.getLogger(__name__)


@click.group()
@click.option("--ledger-path", default=const.LEDGER_PATH, show_default=True, help="Mention ledger JSON file")
@click.option("--tickers-path", default=const.ALL_TICKERS_PATH, show_default=True, help="Reference ticker file")
@click.option("--log-dir", default=const.CONTEXT_LOG_DIR, show_default=True, help="Context log directory")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default="INFO",
    show_default=True,
    help="Console log level",
)
@click.pass_context
def cli(ctx, ledger_path, tickers_path, log_dir, log_level):
    """
    Ticker Room Command Line Interface

    Inspect the mention ledger and the chat-room context logs.
    """
    util.set_log_level(log_level)
    ctx.ensure_object(dict)
    ctx.obj["ledger_path"] = ledger_path
    ctx.obj["tickers_path"] = tickers_path
    ctx.obj["log_dir"] = log_dir
    logger.debug(f"CLI using ledger={ledger_path} tickers={tickers_path} logs={log_dir}")


# Register command groups
cli.add_command(ledger)
cli.add_command(context)


@cli.command()
def version():
    """Show version information"""
    click.echo(f"Ticker Room CLI v{const.VERSION}")


if __name__ == "__main__":
    try:
        cli()
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        click.secho(f"\n✗ Fatal error: {e}\n", fg="red", err=True)
        sys.exit(1)
