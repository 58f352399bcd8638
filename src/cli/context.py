"""
Context Log Commands

Read the per-day chat-room logs the question answering works from.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import asyncio
import logging

import click
from tabulate import tabulate

import constants as const
import util
from context_log import ContextLog, ContextLogRecord


logger = logging.getLogger(__name__)


def _rows(records: list[ContextLogRecord], width: int) -> list[list[str]]:
    rows = []
    for record in records:
        created = record.created
        when = util.local_format(created) if created else record.created_at
        content = record.content.replace("\n", " ")
        if width and len(content) > width:
            content = content[: width - 1] + "…"
        rows.append([when, record.author, content])
    return rows


def _echo_records(records: list[ContextLogRecord], width: int, empty_message: str) -> None:
    if not records:
        click.secho(empty_message, fg="yellow")
        return
    click.echo(tabulate(_rows(records, width), headers=["Time", "Author", "Content"], tablefmt="psql", stralign="left"))
    click.echo(f"{len(records)} message(s)")


@click.group()
def context():
    """Read chat-room context logs"""


@context.command("tail")
@click.option("--channel-id", default=const.CONTEXT_CHANNEL_ID, show_default=True, help="Chat room id")
@click.option("--minutes", type=int, default=60, show_default=True, help="Look back this many minutes")
@click.option("--max-lines", type=int, default=4000, show_default=True, help="Cap on returned messages")
@click.option("--width", type=int, default=80, show_default=True, help="Truncate content (0 = no limit)")
@click.pass_context
def tail(ctx, channel_id, minutes, max_lines, width):
    """Messages from the last N minutes"""
    if not channel_id:
        click.secho("✗ --channel-id is required (CONTEXT_CHANNEL_ID not set)", fg="red", err=True)
        ctx.exit(1)
    log = ContextLog(ctx.obj["log_dir"])
    records = asyncio.run(log.read_recent(channel_id, minutes=minutes, max_lines=max_lines))
    _echo_records(records, width, f"No messages in the last {minutes} minutes")


@context.command("day")
@click.option("--channel-id", default=const.CONTEXT_CHANNEL_ID, show_default=True, help="Chat room id")
@click.option("--day", help="YYYY-MM-DD (default: most recent of today/yesterday)")
@click.option("-n", "--count", type=int, default=const.CONTEXT_LAST_N, show_default=True, help="Last N messages")
@click.option("--width", type=int, default=80, show_default=True, help="Truncate content (0 = no limit)")
@click.pass_context
def day(ctx, channel_id, day, count, width):
    """Last N messages of one day's log"""
    if not channel_id:
        click.secho("✗ --channel-id is required (CONTEXT_CHANNEL_ID not set)", fg="red", err=True)
        ctx.exit(1)
    if day:
        try:
            util.parse_day(day)
        except ValueError:
            click.secho(f"✗ Invalid day '{day}', expected YYYY-MM-DD", fg="red", err=True)
            ctx.exit(1)
    log = ContextLog(ctx.obj["log_dir"])
    records = asyncio.run(log.read_last_n(channel_id, n=count, day=day))
    _echo_records(records, width, f"No messages logged for {day or 'today/yesterday'}")
