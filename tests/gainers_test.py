"""
Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

from datetime import datetime, timedelta, timezone

import pytest

from errors import PriceDataError
from gainers import (
    GainersCalculator,
    basis_and_latest,
    metric_options,
    pct_change,
    pick_start_index,
    resolve_range,
)
from providers.market_data_provider import PriceSeries
from test_data_factory import NOW, FakePriceProvider
from ticker_stats import TickerStats


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def sample_series(symbol="TSLA", scale=1.0):
    return PriceSeries(
        symbol=symbol,
        timestamps=[utc(2025, 8, 29, 13, 30), utc(2025, 9, 2, 13, 30), utc(2025, 9, 3, 13, 30), utc(2025, 9, 19, 13, 30)],
        opens=[10 * scale, 20 * scale, 21 * scale, 30 * scale],
        closes=[11 * scale, 22 * scale, 23 * scale, 33 * scale],
        last_price=35 * scale,
    )


class TestRanges:
    @pytest.mark.parametrize("days, expected", [(0, "1mo"), (10, "1mo"), (45, "3mo"), (200, "1y"), (400, "5y")])
    def test_resolve_range(self, days, expected):
        assert resolve_range(NOW - timedelta(days=days), NOW) == expected

    def test_resolve_range_without_start(self):
        assert resolve_range(None, NOW) == "1mo"

    def test_metric_options(self):
        assert metric_options("mention_cc") == ("mention", "cc")
        assert metric_options(None) == ("month", "oc")
        assert metric_options("bogus") == ("month", "oc")


class TestBasisAndLatest:
    def test_month_anchor_skips_previous_month(self):
        assert pick_start_index(sample_series(), "month", None, NOW) == 1

    def test_mention_anchor(self):
        assert pick_start_index(sample_series(), "mention", utc(2025, 9, 3, 10), NOW) == 2

    def test_anchor_after_all_bars_falls_back_to_first(self):
        assert pick_start_index(sample_series(), "mention", utc(2025, 9, 25), NOW) == 0

    def test_month_open_to_live(self):
        assert basis_and_latest(sample_series(), None, "month", "oc", NOW) == (20, 35)

    def test_month_close_to_close(self):
        assert basis_and_latest(sample_series(), None, "month", "cc", NOW) == (22, 33)

    def test_since_mention(self):
        assert basis_and_latest(sample_series(), utc(2025, 9, 3, 10), "mention", "oc", NOW) == (21, 35)

    def test_missing_open_uses_close(self):
        series = sample_series()
        series.opens[1] = None
        series.opens[2] = None
        series.opens[3] = None
        assert basis_and_latest(series, None, "month", "oc", NOW)[0] == 22

    def test_empty_series(self):
        with pytest.raises(PriceDataError):
            basis_and_latest(PriceSeries(symbol="XYZ"), None, "month", "oc", NOW)

    def test_no_start_prices(self):
        series = PriceSeries(symbol="XYZ", timestamps=[utc(2025, 9, 2, 13, 30)], opens=[None], closes=[None], last_price=5.0)
        with pytest.raises(PriceDataError):
            basis_and_latest(series, None, "month", "oc", NOW)

    def test_no_latest_price(self):
        series = PriceSeries(symbol="XYZ", timestamps=[utc(2025, 9, 2, 13, 30)], opens=[4.0], closes=[None])
        with pytest.raises(PriceDataError):
            basis_and_latest(series, None, "month", "oc", NOW)

    def test_pct_change(self):
        assert pct_change(20, 35) == pytest.approx(75.0)


class TestGainersCalculator:
    @pytest.mark.asyncio
    async def test_ranks_and_drops_failures(self):
        provider = FakePriceProvider({
            "TSLA": sample_series("TSLA"),
            "AAPL": PriceSeries(
                symbol="AAPL",
                timestamps=[utc(2025, 9, 2, 13, 30)],
                opens=[100.0],
                closes=[101.0],
                last_price=90.0,
            ),
            "NVDA": PriceSeries(
                symbol="NVDA",
                timestamps=[utc(2025, 9, 2, 13, 30)],
                opens=[10.0],
                closes=[10.0],
                last_price=11.0,
            ),
            "BAD": PriceSeries(symbol="BAD"),
        })
        calculator = GainersCalculator(provider=provider, clock=lambda: NOW)
        items = [TickerStats(symbol=s, count=1, first_ts=utc(2025, 9, 2, 14)) for s in ("TSLA", "AAPL", "NVDA", "BAD", "GONE")]

        results = await calculator.compute_gainers(items, limit_tickers=10)

        assert [r.symbol for r in results] == ["TSLA", "NVDA", "AAPL"]
        assert results[0].pct == pytest.approx(75.0)
        assert results[-1].pct == pytest.approx(-10.0)

    @pytest.mark.asyncio
    async def test_limit_tickers(self):
        provider = FakePriceProvider({"TSLA": sample_series("TSLA"), "AAPL": sample_series("AAPL", 2.0)})
        calculator = GainersCalculator(provider=provider, clock=lambda: NOW)
        items = [TickerStats(symbol="TSLA", count=2), TickerStats(symbol="AAPL", count=1)]

        results = await calculator.compute_gainers(items, limit_tickers=1)

        assert [r.symbol for r in results] == ["TSLA"]
        assert [c[0] for c in provider.calls] == ["TSLA"]

    @pytest.mark.asyncio
    async def test_series_cached(self):
        provider = FakePriceProvider({"TSLA": sample_series("TSLA")})
        calculator = GainersCalculator(provider=provider, clock=lambda: NOW)
        stats = TickerStats(symbol="TSLA", count=1)

        await calculator.gainer_for(stats, "month", "oc")
        result = await calculator.gainer_for(stats, "month", "cc")

        assert provider.calls == [("TSLA", "1mo")]
        assert (result.basis, result.latest) == (22, 33)
