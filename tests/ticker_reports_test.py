"""
Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

from datetime import datetime, timezone

from gainers import GainerResult
from ticker_reports import (
    all_footer,
    all_ticker_lines,
    dashboard_lines,
    footer,
    gainer_lines,
    hot_title,
    mine_title,
    my_ticker_lines,
    paginate_lines,
)
from ticker_stats import DashboardSummary, TickerStats


def stats(symbol="TSLA", count=3, name="alice"):
    return TickerStats(
        symbol=symbol,
        count=count,
        first_ts=datetime(2025, 9, 1, 10, tzinfo=timezone.utc),
        first_link="https://discord.com/channels/900/500/1",
        first_user_id="1001",
        first_user_name=name,
        last_ts=datetime(2025, 9, 18, 10, tzinfo=timezone.utc),
        last_link="https://discord.com/channels/900/500/9",
    )


class TestLines:
    def test_all_ticker_line(self):
        [line] = all_ticker_lines([stats()])
        assert line == (
            "• [`TSLA`](https://discord.com/channels/900/500/1) — **3** (alice) — "
            "[18/09/25](https://discord.com/channels/900/500/9)"
        )

    def test_missing_link_and_name(self):
        [line] = all_ticker_lines([TickerStats(symbol="F", count=1)])
        assert line == "• [`F`](#) — **1** — [](#)"

    def test_my_ticker_line(self):
        [line] = my_ticker_lines([stats()])
        assert line.endswith("— **3** (last: [18/09/25](https://discord.com/channels/900/500/9))")

    def test_gainer_lines(self):
        results = [GainerResult(stats(), 20.0, 35.0, 75.0), GainerResult(stats("AAPL", 1, ""), 100.0, 90.0, -10.0)]
        assert gainer_lines(results) == [
            "1. `TSLA`: **75.0%**, [alice](https://discord.com/channels/900/500/1)",
            "2. `AAPL`: **-10.0%**, [user](https://discord.com/channels/900/500/1)",
        ]

    def test_titles(self):
        assert hot_title(10) == "🔥 Hot 10"
        assert "2025-09-01" in mine_title("2025-09-01")
        assert mine_title() == "🎯 הטיקרים שלך"

    def test_footers(self):
        items = [stats(count=3), stats("AAPL", 2)]
        assert footer(items) == "2 ייחודיים, 5 אזכורים"
        assert all_footer(items, 7) == 'סה"כ 2 ייחודיים, 7 אזכורים'

    def test_dashboard_lines(self):
        summary = DashboardSummary(total_unique=12, month_unique=4, top_tickers=["TSLA", "AAPL"], top_posters=["bob"])
        assert dashboard_lines(summary, ["NVDA"]) == [
            "Total Tracked: **12** Tickers",
            "This month: **4** Tickers",
            "Top 10 Tickers: `TSLA`, `AAPL`",
            "Top 3 Posters: bob",
            "Top Gainers: `NVDA`",
        ]

    def test_dashboard_lines_without_gainers(self):
        assert len(dashboard_lines(DashboardSummary(total_unique=0, month_unique=0), [])) == 2


class TestPaginateLines:
    def test_pages_within_limit(self):
        lines = [f"line {i:03d} " + "x" * 30 for i in range(100)]
        pages = paginate_lines(lines, max_chars=400)

        assert len(pages) > 1
        assert all(len(p) <= 400 for p in pages)
        assert "\n".join(pages).splitlines() == lines

    def test_long_line_own_page(self):
        assert paginate_lines(["a", "b" * 50, "c"], max_chars=10) == ["a", "b" * 50, "c"]

    def test_empty(self):
        assert paginate_lines([]) == []
