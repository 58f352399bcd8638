"""
Gainers ranking

Joins ticker aggregates with daily price series and ranks symbols by percent
change from a basis price to the latest price.

Anchors:
- month: basis is the first bar on/after the 1st of the current month
- mention: basis is the first bar on/after the day of the first mention

Modes:
- oc: basis prefers the open, latest prefers the live price
- cc: basis prefers the close, latest prefers the last close

A symbol whose price data is missing or unusable is dropped from the ranking;
the rest of the batch still ranks.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime

import pytz
from cachetools import TTLCache

import constants as const
import util
from errors import PriceDataError
from providers.market_data_factory import MarketDataFactory
from providers.market_data_provider import MarketDataProvider, PriceSeries, is_finite
from ticker_stats import TickerStats


logger = logging.getLogger(__name__)

ANCHORS = ("month", "mention")
MODES = ("oc", "cc")

# Dashboard metric -> (anchor, mode)
METRICS = {
    "month_oc": ("month", "oc"),
    "month_cc": ("month", "cc"),
    "mention_oc": ("mention", "oc"),
    "mention_cc": ("mention", "cc"),
}
METRIC_LABELS = {
    "month_oc": "Open→Close (Month)",
    "month_cc": "Close→Close (Month)",
    "mention_oc": "Open→Close (Since Mention)",
    "mention_cc": "Close→Close (Since Mention)",
}
DEFAULT_METRIC = "month_oc"


@dataclass
class GainerResult:
    stats: TickerStats
    basis: float
    latest: float
    pct: float

    @property
    def symbol(self) -> str:
        return self.stats.symbol


def metric_options(metric: str | None) -> tuple[str, str]:
    """(anchor, mode) for a dashboard metric; unknown metrics fall back to month_oc."""
    return METRICS.get(metric or DEFAULT_METRIC, METRICS[DEFAULT_METRIC])


def resolve_range(from_ts: datetime | None, now: datetime | None = None) -> str:
    """Smallest Yahoo period covering from_ts..now."""
    now = util.to_utc(now) if now else util.utc_now()
    start = util.to_utc(from_ts) if from_ts else now
    days = max(1, int((now - start).total_seconds() // 86400))
    if days <= 30:
        return "1mo"
    if days <= 62:
        return "3mo"
    if days <= 370:
        return "1y"
    return "5y"


def local_ymd(value: datetime, tz_name: str) -> str:
    return util.to_utc(value).astimezone(pytz.timezone(tz_name)).strftime("%Y-%m-%d")


def month_first_ymd(tz_name: str, now: datetime | None = None) -> str:
    now = util.to_utc(now) if now else util.utc_now()
    return now.astimezone(pytz.timezone(tz_name)).strftime("%Y-%m-01")


def pick_start_index(series: PriceSeries, anchor: str, mention_ts: datetime | None, now: datetime | None = None) -> int:
    """
    Index of the first bar whose exchange-local day is on/after the anchor day.

    Falls back to the first bar when every bar is earlier.
    """
    tz_name = series.tz or const.DEFAULT_EXCHANGE_TZ
    if anchor == "month" or mention_ts is None:
        target = month_first_ymd(tz_name, now)
    else:
        target = local_ymd(mention_ts, tz_name)

    for i, ts in enumerate(series.timestamps):
        if local_ymd(ts, tz_name) >= target:
            return i
    return 0


def _first_finite(values: list[float | None], start: int) -> float | None:
    for value in values[start:]:
        if is_finite(value):
            return value
    return None


def _prefer_positive(first: float | None, second: float | None) -> float | None:
    if is_finite(first) and first > 0:
        return first
    if is_finite(second) and second > 0:
        return second
    return None


def basis_and_latest(
    series: PriceSeries,
    mention_ts: datetime | None,
    anchor: str = "mention",
    mode: str = "oc",
    now: datetime | None = None,
) -> tuple[float, float]:
    """
    Basis and latest price for one symbol.

    Raises:
        PriceDataError: No usable start price or no usable latest price
    """
    if len(series) == 0:
        raise PriceDataError(f"{series.symbol}: empty price series")

    idx = pick_start_index(series, anchor, mention_ts, now)
    start_open = _first_finite(series.opens, idx)
    start_close = _first_finite(series.closes, idx)

    if mode == "cc":
        basis = _prefer_positive(start_close, start_open)
        latest = _prefer_positive(series.last_close, series.last_price)
    else:
        basis = _prefer_positive(start_open, start_close)
        latest = _prefer_positive(series.last_price, series.last_close)

    if basis is None:
        raise PriceDataError(f"{series.symbol}: bad start prices")
    if latest is None:
        raise PriceDataError(f"{series.symbol}: bad latest price")
    return basis, latest


def pct_change(basis: float, latest: float) -> float:
    return (latest - basis) / basis * 100


class GainersCalculator:
    """
    Ranks TickerStats by price change since their anchor.

    Price series are cached per (symbol, period) for PRICE_CACHE_TTL_SECONDS and
    fetched with bounded concurrency.
    """

    def __init__(
        self,
        provider: MarketDataProvider | None = None,
        ttl_seconds: int = const.PRICE_CACHE_TTL_SECONDS,
        cache_size: int = const.PRICE_CACHE_SIZE,
        clock: Callable[[], datetime] = util.utc_now,
    ) -> None:
        self.provider = provider
        self.cache: TTLCache = TTLCache(maxsize=cache_size, ttl=ttl_seconds)
        self.clock = clock

    def _fetch(self, symbol: str, period: str) -> PriceSeries:
        if self.provider is not None:
            return self.provider.get_price_series(symbol, period)
        return MarketDataFactory.get_price_series_with_fallback(symbol, period)

    async def get_series(self, symbol: str, period: str) -> PriceSeries:
        key = (symbol, period)
        series = self.cache.get(key)
        if series is None:
            series = await asyncio.to_thread(self._fetch, symbol, period)
            self.cache[key] = series
        return series

    async def gainer_for(self, stats: TickerStats, anchor: str = "month", mode: str = "oc") -> GainerResult:
        now = self.clock()
        from_ts = util.month_start_utc(now) if anchor == "month" else stats.first_ts
        series = await self.get_series(stats.symbol, resolve_range(from_ts, now))
        basis, latest = basis_and_latest(series, stats.first_ts, anchor, mode, now)
        return GainerResult(stats=stats, basis=basis, latest=latest, pct=pct_change(basis, latest))

    async def compute_gainers(
        self,
        items: Iterable[TickerStats],
        limit_tickers: int = 50,
        concurrency: int = const.GAINERS_CONCURRENCY,
        anchor: str = "month",
        mode: str = "oc",
    ) -> list[GainerResult]:
        """
        Rank the first limit_tickers items by percent change, best first.

        Symbols whose lookup fails are left out.
        """
        subset = list(items)[:limit_tickers]
        semaphore = asyncio.Semaphore(max(1, concurrency))

        async def worker(stats: TickerStats) -> GainerResult | None:
            async with semaphore:
                try:
                    return await self.gainer_for(stats, anchor, mode)
                except Exception as e:
                    logger.debug(f"Gainers: skipping {stats.symbol}: {e}")
                    return None

        results = await asyncio.gather(*(worker(stats) for stats in subset))
        ranked = sorted((r for r in results if r is not None), key=lambda r: r.pct, reverse=True)
        logger.info(f"Gainers ({anchor}/{mode}): ranked {len(ranked)}/{len(subset)} symbols")
        return ranked
