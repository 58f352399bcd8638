"""
Mention Ledger Commands

Read-only views of the mention ledger (counts, listings, checkpoints), the
gainers ranking, and an extractor probe for ad-hoc text.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import asyncio
import logging
from datetime import datetime

import click
from tabulate import tabulate

import util
from errors import SymbolUniverseError
from gainers import DEFAULT_METRIC, METRICS, GainersCalculator
from ledger_repository import JsonLedgerRepository
from mention import LedgerDocument
from mention_ledger import MentionLedger
from ticker_extractor import extract_tickers
from ticker_queries import TickerQueries
from ticker_stats import (
    TickerStats,
    aggregate_by_ticker,
    aggregate_user_tickers,
    first_mention_counts,
    month_to_date,
    ranked,
    tickers_first_by_user,
)
from ticker_universe import TickerUniverse


logger = logging.getLogger(__name__)


def _load(ctx) -> LedgerDocument:
    return JsonLedgerRepository(ctx.obj["ledger_path"]).load()


def _stats_rows(items: list[TickerStats]) -> list[list]:
    return [
        [s.symbol, s.count, s.first_user_name or "", util.short_date(s.first_ts), util.short_date(s.last_ts)]
        for s in items
    ]


STATS_HEADERS = ["Symbol", "Count", "First By", "First", "Last"]


def _echo_stats(items: list[TickerStats], empty_message: str) -> None:
    if not items:
        click.secho(empty_message, fg="yellow")
        return
    click.echo(tabulate(_stats_rows(items), headers=STATS_HEADERS, tablefmt="psql", stralign="left"))
    click.echo(f"{len(items)} unique, {sum(s.count for s in items)} mentions")


@click.group()
def ledger():
    """Inspect the mention ledger"""


@ledger.command("stats")
@click.option("--top", type=int, default=10, show_default=True, help="Number of first posters to show")
@click.pass_context
def stats(ctx, top):
    """Ledger summary and first-mention leaderboard"""
    try:
        document = _load(ctx)
        by_ticker = aggregate_by_ticker(document.entries)
        authors = {e.author.id for e in document.entries}

        click.echo()
        click.echo("=" * 60)
        click.secho("MENTION LEDGER", bold=True)
        click.echo("=" * 60)
        click.echo(f"File:            {ctx.obj['ledger_path']}")
        click.echo(f"Updated:         {document.updated or 'N/A'}")
        click.echo(f"Entries:         {len(document.entries)}")
        click.echo(f"Unique tickers:  {len(by_ticker)}")
        click.echo(f"Authors:         {len(authors)}")
        click.echo(f"Checkpoints:     {len(document.checkpoints)}")
        click.echo("=" * 60)

        posters = first_mention_counts(by_ticker)[:top]
        if posters:
            rows = [[p.name or "Unknown", p.user_id, p.count] for p in posters]
            click.echo(tabulate(rows, headers=["First Poster", "User ID", "Tickers"], tablefmt="psql", stralign="left"))
        click.echo()

    except Exception as e:
        logger.error(f"Error reading ledger: {e}", exc_info=True)
        click.secho(f"\n✗ Error reading ledger: {e}\n", fg="red", err=True)
        ctx.exit(1)


@ledger.command("tickers")
@click.option("--min-mentions", type=int, default=1, show_default=True, help="Hide tickers with fewer mentions")
@click.option("--limit", type=int, default=0, help="Number of tickers to display (0 = all)")
@click.option("--month", is_flag=True, help="Only mentions from the current month")
@click.pass_context
def list_tickers(ctx, min_mentions, limit, month):
    """List tickers by mention count"""
    document = _load(ctx)
    by_ticker = month_to_date(document.entries) if month else aggregate_by_ticker(document.entries)
    items = ranked(by_ticker, min_mentions)
    if limit:
        items = items[:limit]
    _echo_stats(items, "No tickers found in ledger")


@ledger.command("first")
@click.option("--user-id", required=True, help="Author id")
@click.pass_context
def first_by_user(ctx, user_id):
    """Tickers whose first mention belongs to a user"""
    document = _load(ctx)
    items = tickers_first_by_user(aggregate_by_ticker(document.entries), user_id)
    _echo_stats(items, f"No tickers first mentioned by {user_id}")


@ledger.command("user")
@click.option("--user-id", required=True, help="Author id")
@click.option("--from-date", type=click.DateTime(formats=["%Y-%m-%d"]), help="Only mentions on/after this day")
@click.pass_context
def user_tickers(ctx, user_id, from_date: datetime | None):
    """One user's tickers (first and last mention per ticker are theirs)"""
    document = _load(ctx)
    items = ranked(aggregate_user_tickers(document.entries, user_id, from_date))
    _echo_stats(items, f"No tickers found for {user_id}")


@ledger.command("gainers")
@click.option(
    "--metric",
    type=click.Choice(sorted(METRICS)),
    default=DEFAULT_METRIC,
    show_default=True,
    help="Anchor and price mode",
)
@click.option("--limit", type=int, default=10, show_default=True, help="Rows to display")
@click.option("--user-id", help="Only tickers this user mentioned first this month")
@click.pass_context
def gainers(ctx, metric, limit, user_id):
    """Rank this month's tickers by price change (uses market data)"""
    queries = TickerQueries(MentionLedger(JsonLedgerRepository(ctx.obj["ledger_path"])), GainersCalculator())

    async def run():
        items = await (queries.month_first_by_user(user_id) if user_id else queries.month_items())
        return await queries.rank(items, metric)

    try:
        results = asyncio.run(run())
    except Exception as e:
        logger.error(f"Error computing gainers: {e}", exc_info=True)
        click.secho(f"\n✗ Error computing gainers: {e}\n", fg="red", err=True)
        ctx.exit(1)

    if not results:
        click.secho("No gainers (no tickers this month or no market data)", fg="yellow")
        return

    rows = [
        [i, r.symbol, f"{r.pct:.1f}%", f"{r.basis:.2f}", f"{r.latest:.2f}", r.stats.first_user_name or ""]
        for i, r in enumerate(results[:limit], start=1)
    ]
    click.echo(tabulate(rows, headers=["#", "Symbol", "Change", "Basis", "Latest", "First By"], tablefmt="psql"))


@ledger.command("checkpoints")
@click.pass_context
def checkpoints(ctx):
    """Per-channel backfill checkpoints"""
    document = _load(ctx)
    if not document.checkpoints:
        click.secho("No checkpoints recorded", fg="yellow")
        return
    rows = [
        [channel_id, cp.last_processed_id, cp.last_processed_at]
        for channel_id, cp in sorted(document.checkpoints.items())
    ]
    click.echo(tabulate(rows, headers=["Channel", "Last Message", "Last At"], tablefmt="psql", stralign="left"))


@ledger.command("extract")
@click.argument("text")
@click.pass_context
def extract(ctx, text):
    """Run the ticker extractor on TEXT"""
    try:
        universe = TickerUniverse.get_instance(ctx.obj["tickers_path"])
    except SymbolUniverseError as e:
        click.secho(f"\n✗ {e}\n", fg="red", err=True)
        ctx.exit(1)

    tickers = sorted(extract_tickers(text, universe.symbols, universe.blacklist))
    if not tickers:
        click.secho("No tickers found", fg="yellow")
        return
    click.echo(", ".join(tickers))


@ledger.command("reload-tickers")
@click.pass_context
def reload_tickers(ctx):
    """Re-read the reference ticker file and report its size"""
    path = ctx.obj["tickers_path"]
    try:
        universe = TickerUniverse.get_instance(path).reload()
    except SymbolUniverseError as e:
        click.secho(f"\n✗ {e}\n", fg="red", err=True)
        ctx.exit(1)

    click.secho(f"✓ Reloaded {len(universe)} symbols from {path}", fg="green")
    click.echo(f"Blacklisted: {', '.join(sorted(universe.blacklist)) or 'none'}")
