"""
Ticker report formatting

Markdown lines and titles for the ticker listings posted in the bot room, plus
page splitting for Discord embeds and messages.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

from gainers import GainerResult
from ticker_stats import DashboardSummary, TickerStats, total_mentions
from util import short_date


MAX_EMBED_DESC = 3500
MAX_REPLY_CHARS = 1800

TITLE_ALL = "📊 טיקרים במעקב"
TITLE_MINE = "🎯 הטיקרים שלך"
TITLE_DASHBOARD = "📈 Tickers — Dashboard (MTD)"
TITLE_MONTH_ALL = "📋 All (this month)"
TITLE_MONTH_MINE = "🎯 Mine (first mentions this month)"
TITLE_MONTH_USER = "👤 User's first mentions (MTD)"

MSG_NO_TICKERS = "לא נמצאו טיקרים."
MSG_NO_MY_TICKERS = "לא נמצאו טיקרים שלך."
MSG_NO_MONTH_MINE = "אין טיקרים שהוזכרו ראשונים על ידך החודש."
MSG_NO_MONTH_USER = "אין טיקרים למשתמש זה החודש."
MSG_NO_USER_SELECTED = "לא נבחר משתמש."
MSG_GAINERS_FAILED = "לא הצלחתי לחשב תשואות כרגע."


def _link(url: str) -> str:
    return url or "#"


def hot_title(top_n: int) -> str:
    return f"🔥 Hot {top_n}"


def mine_title(from_date: str | None = None) -> str:
    return f"{TITLE_MINE} (מ־{from_date} ועד היום)" if from_date else TITLE_MINE


def first_by_user_title(username: str) -> str:
    return f"🥇 טיקרים ש־{username} הזכיר/ה ראשון/ה"


def no_first_by_user_message(username: str) -> str:
    return f"לא נמצאו טיקרים שבהם {username} היה/הייתה הראשון/ה."


def all_ticker_lines(items: list[TickerStats]) -> list[str]:
    """Ticker links to its first mention, date links to its last mention, first poster in parentheses."""
    lines = []
    for s in items:
        who = f" ({s.first_user_name})" if s.first_user_name else ""
        lines.append(
            f"• [`{s.symbol}`]({_link(s.first_link)}) — **{s.count}**{who} — "
            f"[{short_date(s.last_ts)}]({_link(s.last_link)})"
        )
    return lines


def my_ticker_lines(items: list[TickerStats]) -> list[str]:
    return [
        f"• [`{s.symbol}`]({_link(s.first_link)}) — **{s.count}** (last: [{short_date(s.last_ts)}]({_link(s.last_link)}))"
        for s in items
    ]


def first_by_user_lines(items: list[TickerStats]) -> list[str]:
    return [
        f"• [`{s.symbol}`]({_link(s.first_link)}) — **{s.count}** — [{short_date(s.last_ts)}]({_link(s.last_link)})"
        for s in items
    ]


def gainer_lines(results: list[GainerResult], default_name: str = "user") -> list[str]:
    return [
        f"{i}. `{r.symbol}`: **{r.pct:.1f}%**, [{r.stats.first_user_name or default_name}]({_link(r.stats.first_link)})"
        for i, r in enumerate(results, start=1)
    ]


def footer(items: list[TickerStats], total: int | None = None) -> str:
    """'N unique, M mentions' (M defaults to the sum over items)"""
    mentions = total if total is not None else total_mentions(items)
    return f"{len(items)} ייחודיים, {mentions} אזכורים"


def all_footer(items: list[TickerStats], total_entries: int) -> str:
    return f'סה"כ {len(items)} ייחודיים, {total_entries} אזכורים'


def dashboard_lines(summary: DashboardSummary, top_gainers: list[str]) -> list[str]:
    lines = [
        f"Total Tracked: **{summary.total_unique}** Tickers",
        f"This month: **{summary.month_unique}** Tickers",
    ]
    if summary.top_tickers:
        lines.append("Top 10 Tickers: " + ", ".join(f"`{s}`" for s in summary.top_tickers))
    if summary.top_posters:
        lines.append("Top 3 Posters: " + ", ".join(summary.top_posters))
    if top_gainers:
        lines.append("Top Gainers: " + ", ".join(f"`{s}`" for s in top_gainers))
    return lines


def paginate_lines(lines: list[str], max_chars: int = MAX_EMBED_DESC) -> list[str]:
    """
    Join lines into pages of at most max_chars (a single longer line gets its own page).
    """
    pages = []
    buf: list[str] = []
    size = 0
    for line in lines:
        add = len(line) + 1
        if buf and size + add > max_chars:
            pages.append("\n".join(buf))
            buf, size = [], 0
        buf.append(line)
        size += add
    if buf:
        pages.append("\n".join(buf))
    return pages
