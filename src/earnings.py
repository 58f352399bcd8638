"""
Earnings calendar

Today's earnings reports from Finnhub, optionally limited to S&P 500
constituents, grouped by session and formatted as Discord-sized messages.
"Today" is the local calendar day (const.LOCAL_TIMEZONE).

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import csv
import io
import json
import logging
import os
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

import requests

import constants as const
import util


logger = logging.getLogger(__name__)

SESSION_LABELS = {
    "bmo": "Before Market Open",
    "dmh": "During Market Hours",
    "amc": "After Market Close",
    "": "Unknown Time",
}
SESSION_ORDER = ["Before Market Open", "During Market Hours", "After Market Close", "Unknown Time"]
MAX_CHUNK_CHARS = 1900
SEPARATOR = "—————————————————————————"


def group_by_session(items: list[dict[str, Any]]) -> dict[str, list[str]]:
    """Symbols per session label, in SESSION_ORDER (unknown hour codes go last)."""
    groups: dict[str, list[str]] = {}
    for item in items:
        hour = (item.get("hour") or "").lower()
        label = SESSION_LABELS.get(hour, hour or "Unknown Time")
        symbol = item.get("symbol")
        if symbol:
            groups.setdefault(label, []).append(symbol)

    ordered = {label: groups[label] for label in SESSION_ORDER if label in groups}
    for label, symbols in groups.items():
        ordered.setdefault(label, symbols)
    return ordered


def format_earnings_chunks(groups: dict[str, list[str]], max_len: int = MAX_CHUNK_CHARS) -> list[str]:
    """Comma separated symbols under a bold header per session, split to max_len."""
    chunks = []
    for label, symbols in groups.items():
        if not symbols:
            continue
        chunk = f"{SEPARATOR}\n**{label}:**\n{SEPARATOR}\n"
        for symbol in symbols:
            part = f"{symbol}, "
            if len(chunk + part) > max_len:
                chunks.append(chunk.rstrip(", "))
                chunk = ""
            chunk += part
        chunks.append(chunk.rstrip(", "))
    return chunks


class EarningsCalendar:
    """Finnhub earnings calendar with a cached S&P 500 symbol list"""

    def __init__(
        self,
        token: str | None = const.FINNHUB_TOKEN,
        sp500_cache_path: str = const.SP500_CACHE_PATH,
        clock: Callable[[], datetime] = util.utc_now,
    ) -> None:
        self.token = token
        self.sp500_cache_path = sp500_cache_path
        self.clock = clock

    def _read_sp500_cache(self) -> tuple[datetime | None, list[str]]:
        try:
            with open(self.sp500_cache_path, encoding="utf-8") as f:
                data = json.load(f)
            return util.parse_iso(data.get("updated")), list(data.get("symbols") or [])
        except (OSError, ValueError, AttributeError):
            return None, []

    def load_sp500(self) -> list[str]:
        """S&P 500 symbols, refreshed from the constituents CSV every SP500_CACHE_DAYS."""
        updated, symbols = self._read_sp500_cache()
        if updated and symbols and self.clock() - updated < timedelta(days=const.SP500_CACHE_DAYS):
            return symbols

        try:
            response = requests.get(const.SP500_CSV_URL, timeout=10)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            if symbols:
                logger.warning(f"S&P 500 refresh failed, using stale list: {e}")
                return symbols
            raise

        rows = csv.reader(io.StringIO(response.text))
        next(rows, None)  # header
        symbols = [row[0].strip() for row in rows if row and row[0].strip()]

        os.makedirs(os.path.dirname(self.sp500_cache_path) or ".", exist_ok=True)
        with open(self.sp500_cache_path, "w", encoding="utf-8") as f:
            json.dump({"updated": util.to_iso(self.clock()), "symbols": symbols}, f, indent=2)
        logger.info(f"Refreshed S&P 500 list ({len(symbols)} symbols)")
        return symbols

    def fetch_calendar(self, day: str) -> list[dict[str, Any]]:
        """
        Finnhub earnings calendar for one day.

        Raises:
            Exception: If the request fails
        """
        if not self.token:
            raise ValueError("FINNHUB_TOKEN not configured")

        params = {"from": day, "to": day, "token": self.token}
        try:
            response = requests.get(const.FINNHUB_URL_EARNINGS, params=params, timeout=10)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.Timeout:
            logger.error("Finnhub API timeout for calendar/earnings")
            raise Exception("Finnhub API timeout")
        except requests.exceptions.HTTPError as e:
            if response.status_code == 429:
                logger.error("Finnhub API rate limit exceeded")
                raise Exception("Finnhub API rate limit exceeded")
            logger.error(f"Finnhub API HTTP error: {e}")
            raise Exception(f"Finnhub API error: {e}")

        if isinstance(data, dict):
            return list(data.get("earningsCalendar") or [])
        return list(data or [])

    def todays_earnings(self, scope: str = "all", limit: int = 0) -> list[dict[str, Any]]:
        """
        Today's earnings entries.

        Args:
            scope: "all" or "sp500"
            limit: Keep only the first N entries (0 = no limit)
        """
        today = util.local_day_string(self.clock())
        items = self.fetch_calendar(today)

        if scope == "sp500":
            sp500 = set(self.load_sp500())
            items = [item for item in items if item.get("symbol") in sp500]
        if limit:
            items = items[:limit]

        logger.info(f"Earnings for {today}: {len(items)} item(s) (scope={scope}, limit={limit})")
        return items
