"""
Ticker queries

Read-side entry points shared by the bot and the CLI: load a ledger snapshot,
aggregate it, and (for the month views) rank by price change.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import logging
from collections.abc import Callable
from datetime import datetime

import constants as const
import util
from gainers import GainerResult, GainersCalculator, metric_options
from mention import MentionRecord
from mention_ledger import MentionLedger
from ticker_stats import (
    DashboardSummary,
    TickerStats,
    aggregate_by_ticker,
    aggregate_user_tickers,
    dashboard_summary,
    month_to_date,
    ranked,
    tickers_first_by_user,
)


logger = logging.getLogger(__name__)


class TickerQueries:
    """
    Usage:
        queries = TickerQueries(ledger, GainersCalculator())
        items = await queries.my_tickers(user_id)
    """

    def __init__(
        self,
        ledger: MentionLedger,
        gainers: GainersCalculator | None = None,
        clock: Callable[[], datetime] = util.utc_now,
    ) -> None:
        self.ledger = ledger
        self.gainers = gainers or GainersCalculator(clock=clock)
        self.clock = clock

    async def entries(self) -> list[MentionRecord]:
        snapshot = await self.ledger.load_snapshot()
        return snapshot.entries

    async def my_tickers(self, user_id: str, from_date: datetime | None = None) -> list[TickerStats]:
        return ranked(aggregate_user_tickers(await self.entries(), user_id, from_date))

    async def all_tickers(self, min_mentions: int = 1) -> tuple[list[TickerStats], int]:
        """Ranked tickers plus the total number of ledger entries."""
        entries = await self.entries()
        return ranked(aggregate_by_ticker(entries), min_mentions), len(entries)

    async def first_by_user(self, user_id: str) -> list[TickerStats]:
        return tickers_first_by_user(aggregate_by_ticker(await self.entries()), user_id)

    async def month_items(self) -> list[TickerStats]:
        return ranked(month_to_date(await self.entries(), self.clock()))

    async def dashboard(self) -> tuple[DashboardSummary, list[str]]:
        """Month-to-date summary plus up to three top gainer symbols (month, open to close)."""
        summary = dashboard_summary(await self.entries(), self.clock())
        top_gainers: list[str] = []
        try:
            results = await self.gainers.compute_gainers(
                summary.month_items,
                limit_tickers=const.GAINERS_PREVIEW_LIMIT,
                concurrency=const.GAINERS_CONCURRENCY,
                anchor="month",
                mode="oc",
            )
            top_gainers = [r.symbol for r in results[:3]]
        except Exception as e:
            logger.warning(f"Dashboard gainers preview failed: {e}")
        return summary, top_gainers

    async def month_first_by_user(self, user_id: str) -> list[TickerStats]:
        """This month's tickers whose first mention this month belongs to user_id."""
        return [s for s in await self.month_items() if s.first_user_id == str(user_id)]

    async def rank(
        self,
        items: list[TickerStats],
        metric: str | None = None,
        limit_tickers: int = 300,
        concurrency: int = 4,
    ) -> list[GainerResult]:
        """
        Rank items by the dashboard metric's price change.

        Args:
            items: Ticker aggregates (typically month_items or a subset)
            metric: month_oc, month_cc, mention_oc or mention_cc
        """
        if not items:
            return []
        anchor, mode = metric_options(metric)
        return await self.gainers.compute_gainers(
            items, limit_tickers=limit_tickers, concurrency=concurrency, anchor=anchor, mode=mode
        )
