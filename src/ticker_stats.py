"""
Ticker statistics

Read-side views over the mention ledger: per-ticker aggregates (count, first
and last mention), per-user views, the "who mentioned it first" leaderboard and
the month-to-date dashboard summary. Everything here is a pure function of a
list of MentionRecords.

First/last use strict comparisons, so on equal timestamps the record seen first
wins. Lists are ordered by mention count (desc) then symbol.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

import util
from mention import MentionRecord


@dataclass
class TickerStats:
    """Aggregate for one symbol"""
    symbol: str
    count: int = 0
    first_ts: datetime | None = None
    first_link: str = ""
    first_user_id: str = ""
    first_user_name: str = ""
    last_ts: datetime | None = None
    last_link: str = ""

    def add(self, entry: MentionRecord) -> None:
        self.count += 1
        ts = entry.created_at
        if ts is None:
            return
        if self.first_ts is None or ts < self.first_ts:
            self.first_ts = ts
            self.first_link = entry.link
            self.first_user_id = entry.author.id
            self.first_user_name = entry.author.display_name
        if self.last_ts is None or ts > self.last_ts:
            self.last_ts = ts
            self.last_link = entry.link


@dataclass
class FirstPoster:
    """A user and how many tickers they were first to mention"""
    user_id: str
    name: str
    count: int


@dataclass
class DashboardSummary:
    total_unique: int
    month_unique: int
    top_tickers: list[str] = field(default_factory=list)
    top_posters: list[str] = field(default_factory=list)
    month_items: list[TickerStats] = field(default_factory=list)
    posters: list[FirstPoster] = field(default_factory=list)


def aggregate_by_ticker(entries: Iterable[MentionRecord]) -> dict[str, TickerStats]:
    """Group mentions by symbol."""
    by_ticker: dict[str, TickerStats] = {}
    for entry in entries:
        symbol = entry.ticker.upper()
        if not symbol:
            continue
        stats = by_ticker.get(symbol)
        if stats is None:
            stats = by_ticker[symbol] = TickerStats(symbol=symbol)
        stats.add(entry)
    return by_ticker


def aggregate_user_tickers(
    entries: Iterable[MentionRecord],
    user_id: str,
    from_date: datetime | None = None,
) -> dict[str, TickerStats]:
    """
    One user's mentions grouped by symbol.

    Args:
        entries: Ledger entries
        user_id: Author id to keep
        from_date: Optional inclusive lower bound on mention time
    """
    cutoff = util.to_utc(from_date) if from_date else None

    def wanted(entry: MentionRecord) -> bool:
        if entry.author.id != str(user_id):
            return False
        if cutoff is None:
            return True
        ts = entry.created_at
        return ts is None or ts >= cutoff

    return aggregate_by_ticker(e for e in entries if wanted(e))


def ranked(by_ticker: dict[str, TickerStats], min_mentions: int = 1) -> list[TickerStats]:
    """Count desc, then symbol; optionally dropping rarely mentioned symbols."""
    items = [s for s in by_ticker.values() if s.count >= min_mentions]
    return sorted(items, key=lambda s: (-s.count, s.symbol))


def first_mention_counts(by_ticker: dict[str, TickerStats]) -> list[FirstPoster]:
    """
    Leaderboard of users by number of tickers they mentioned first.

    Sorted by count desc, then name.
    """
    posters: dict[str, FirstPoster] = {}
    for stats in by_ticker.values():
        if not stats.first_user_id:
            continue
        poster = posters.get(stats.first_user_id)
        if poster is None:
            poster = posters[stats.first_user_id] = FirstPoster(stats.first_user_id, stats.first_user_name, 0)
        poster.count += 1
        if not poster.name and stats.first_user_name:
            poster.name = stats.first_user_name
    return sorted(posters.values(), key=lambda p: (-p.count, p.name or "Unknown"))


def tickers_first_by_user(by_ticker: dict[str, TickerStats], user_id: str) -> list[TickerStats]:
    """Tickers whose very first mention belongs to user_id."""
    return ranked({k: v for k, v in by_ticker.items() if v.first_user_id == str(user_id)})


def month_to_date(entries: Iterable[MentionRecord], now: datetime | None = None) -> dict[str, TickerStats]:
    """Aggregate of mentions in the current UTC calendar month."""
    month_start = util.month_start_utc(now)

    def in_month(entry: MentionRecord) -> bool:
        ts = entry.created_at
        return ts is not None and ts.year == month_start.year and ts.month == month_start.month

    return aggregate_by_ticker(e for e in entries if in_month(e))


def total_mentions(items: Iterable[TickerStats]) -> int:
    return sum(s.count for s in items)


def dashboard_summary(entries: list[MentionRecord], now: datetime | None = None) -> DashboardSummary:
    """
    Month-to-date dashboard numbers (gainers are computed separately, they need market data).
    """
    all_unique = len({e.ticker.upper() for e in entries if e.ticker})
    month = month_to_date(entries, now)
    month_items = ranked(month)
    posters = first_mention_counts(month)
    return DashboardSummary(
        total_unique=all_unique,
        month_unique=len(month_items),
        top_tickers=[s.symbol for s in month_items[:10]],
        top_posters=[p.name or "Unknown" for p in posters[:3]],
        month_items=month_items,
        posters=posters,
    )
