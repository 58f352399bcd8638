"""
Test Data Factory

Builders and fakes for ledger, backfill and context-log tests: chat messages
with realistic snowflake ids, mention records, an in-memory channel history and
a publisher that records what it was asked to publish.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import sys
import os
from datetime import datetime, timezone

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from channel_source import ChatMessage
from errors import LedgerWriteError
from ledger_repository import JsonLedgerRepository
from mention import Author, LedgerDocument, MentionRecord
from providers.market_data_provider import MarketDataProvider, PriceSeries
from publisher import Publisher
from snowflake import snowflake_from_timestamp
import util


NOW = datetime(2025, 9, 20, 12, 0, tzinfo=timezone.utc)


def snowflake_at(when: datetime, seq: int = 0) -> str:
    """Snowflake id for an instant (seq fills the low bits)"""
    return str(int(snowflake_from_timestamp(when)) + seq)


def make_message(
    when: datetime,
    content: str,
    author_id: str = "1001",
    author_name: str = "alice",
    channel_id: str = "500",
    guild_id: str = "900",
    author_is_bot: bool = False,
    mentioned_user_ids=frozenset(),
    reply=None,
    seq: int = 0,
) -> ChatMessage:
    return ChatMessage(
        id=snowflake_at(when, seq),
        channel_id=channel_id,
        guild_id=guild_id,
        content=content,
        author_id=author_id,
        author_name=author_name,
        created_at=when,
        author_is_bot=author_is_bot,
        mentioned_user_ids=frozenset(mentioned_user_ids),
        reply=reply,
    )


def make_record(
    ticker: str,
    message_id: str,
    timestamp: datetime | str,
    author_id: str = "1001",
    author_name: str = "alice",
    channel_id: str = "500",
    guild_id: str = "900",
) -> MentionRecord:
    if isinstance(timestamp, datetime):
        timestamp = util.to_iso(timestamp)
    return MentionRecord(
        ticker=ticker,
        author=Author(id=author_id, display_name=author_name),
        message_id=message_id,
        channel_id=channel_id,
        guild_id=guild_id,
        link=f"https://discord.com/channels/{guild_id}/{channel_id}/{message_id}",
        timestamp=timestamp,
    )


class FakeChannelSource:
    """In-memory channel history with Discord's strict after/before paging"""

    def __init__(self, channel_id: str = "500", messages: list[ChatMessage] | None = None):
        self.channel_id = channel_id
        self.messages: list[ChatMessage] = list(messages or [])
        self.calls: list[dict] = []

    def add(self, *messages: ChatMessage) -> None:
        self.messages.extend(messages)

    async def fetch_page(self, limit: int, after: str | None = None, before: str | None = None) -> list[ChatMessage]:
        self.calls.append({"limit": limit, "after": after, "before": before})
        ordered = sorted(self.messages, key=lambda m: int(m.id))
        if after is not None:
            return [m for m in ordered if int(m.id) > int(after)][:limit]
        if before is not None:
            ordered = [m for m in ordered if int(m.id) < int(before)]
        return list(reversed(ordered))[:limit]


class FailingChannelSource(FakeChannelSource):
    """FakeChannelSource whose Nth fetch_page call raises"""

    def __init__(self, channel_id: str = "500", messages: list[ChatMessage] | None = None, fail_on_call: int = 2):
        super().__init__(channel_id, messages)
        self.fail_on_call = fail_on_call

    async def fetch_page(self, limit: int, after: str | None = None, before: str | None = None) -> list[ChatMessage]:
        if len(self.calls) + 1 == self.fail_on_call:
            self.calls.append({"limit": limit, "after": after, "before": before})
            raise ConnectionError("discord 503")
        return await super().fetch_page(limit, after=after, before=before)


class RecordingPublisher(Publisher):
    """Publisher that remembers every path it was handed"""

    def __init__(self):
        self.paths: list[str] = []

    async def commit_if_changed(self, path: str) -> bool:
        self.paths.append(path)
        return True


class FlakyRepository(JsonLedgerRepository):
    """JSON repository whose save fails while fail_when(document) is true"""

    def __init__(self, path: str, fail_when=None):
        super().__init__(path)
        self.fail_when = fail_when
        self.saves = 0

    def save(self, document: LedgerDocument) -> None:
        if self.fail_when is not None and self.fail_when(document):
            raise LedgerWriteError(f"simulated write failure for {self.path}")
        self.saves += 1
        super().save(document)


class FakePriceProvider(MarketDataProvider):
    """Serves fixed PriceSeries by symbol; unknown symbols raise"""

    def __init__(self, series_by_symbol: dict[str, PriceSeries]):
        self.series_by_symbol = series_by_symbol
        self.calls: list[tuple[str, str]] = []

    def get_price_series(self, ticker: str, period: str = "1mo", interval: str = "1d") -> PriceSeries:
        self.calls.append((ticker, period))
        series = self.series_by_symbol.get(ticker)
        if series is None:
            raise Exception(f"no data for {ticker}")
        return series
