"""
Live mention ingestion

Turns one chat message into MentionRecords, stores them, and advances the
channel checkpoint. Used directly for live messages in the graphs channel and by
the backfill driver (silent, no per-message publish, checkpoint advanced by the
driver itself).

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import logging

import util
from channel_source import ChatMessage
from checkpoint import CheckpointController
from mention import Author, MentionRecord
from mention_ledger import MentionLedger
from ticker_extractor import extract_tickers
from ticker_universe import TickerUniverse


logger = logging.getLogger(__name__)


class MentionIngestor:
    """Extractor + ledger + checkpoint wiring for a single message"""

    def __init__(
        self,
        ledger: MentionLedger,
        universe: TickerUniverse,
        checkpoints: CheckpointController | None = None,
    ) -> None:
        self.ledger = ledger
        self.universe = universe
        self.checkpoints = checkpoints or CheckpointController(ledger)

    def build_records(self, message: ChatMessage, tickers: list[str]) -> list[MentionRecord]:
        author = Author(id=message.author_id, display_name=message.author_name)
        timestamp = util.to_iso(message.created_at)
        content = message.content.strip()
        return [
            MentionRecord(
                ticker=ticker,
                author=author,
                message_id=message.id,
                channel_id=message.channel_id,
                guild_id=message.guild_id,
                link=message.url,
                timestamp=timestamp,
                content=content,
            )
            for ticker in tickers
        ]

    async def handle_message(
        self,
        message: ChatMessage,
        silent: bool = False,
        update_checkpoint: bool = True,
        commit_after_write: bool = True,
    ) -> list[str]:
        """
        Ingest one message.

        Args:
            message: Message to ingest
            silent: Do not echo "logged ticker" lines back to the channel
            update_checkpoint: Advance the channel checkpoint to this message
            commit_after_write: Publish the ledger when records were added

        Returns:
            Sorted list of symbols extracted from the message

        Raises:
            LedgerWriteError: If the ledger could not be saved
        """
        content = message.content.strip()
        tickers: list[str] = []

        if content:
            tickers = sorted(extract_tickers(content, self.universe.symbols, self.universe.blacklist))

        if tickers:
            records = self.build_records(message, tickers)
            added = await self.ledger.append(records, publish=commit_after_write)
            logger.debug(f"Message {message.id}: tickers={tickers} added={added}")

            if not silent and message.reply is not None:
                for ticker in tickers:
                    await message.reply(f"logged ticker: {ticker} from user: {message.author_name}")

        if update_checkpoint:
            await self.checkpoints.advance(message.channel_id, message.id, message.created_at)

        return tickers
