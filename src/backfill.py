"""
Backfill driver

Catch-up ingestion of a channel's history since its last checkpoint (or the
last N days when it has none). Messages are processed oldest first; the
checkpoint advances after every eligible message, and the ledger is published
once at the end, only if this run wrote anything.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import logging
from datetime import datetime

import constants as const
from channel_source import ChannelSource, ChatMessage, is_addressed_to_bot
from errors import LedgerWriteError
from mention_ingest import MentionIngestor
from snowflake import snowflake_gt, snowflake_int


logger = logging.getLogger(__name__)


def is_backfill_eligible(message: ChatMessage, bot_user_id: str | None) -> bool:
    """Skip bot authors and messages addressed to the assistant."""
    if message.author_is_bot:
        return False
    return not is_addressed_to_bot(message, bot_user_id)


async def run_backfill_once(
    source: ChannelSource,
    ingestor: MentionIngestor,
    lookback_days: int = const.BACKFILL_LOOKBACK_DAYS,
    bot_user_id: str | None = None,
    page_size: int = const.BACKFILL_PAGE_SIZE,
    now: datetime | None = None,
) -> int:
    """
    Backfill one channel.

    Args:
        source: Channel history to page through
        ingestor: Mention ingestor (owns the ledger and checkpoints)
        lookback_days: Window to scan when the channel has no checkpoint
        bot_user_id: The assistant's own user id (messages mentioning it are skipped)
        page_size: Messages per fetch
        now: Reference time for the lookback window

    Returns:
        Number of messages scanned (eligible or not)
    """
    ledger = ingestor.ledger
    channel_id = source.channel_id
    after_id = await ingestor.checkpoints.resolve_start_id(channel_id, lookback_days, now=now)
    writes_before = ledger.write_count

    scanned = 0
    failed = False
    while not failed:
        try:
            page = await source.fetch_page(limit=page_size, after=after_id)
        except Exception as e:
            # Whatever was written so far is still flushed and published below
            logger.error(f"Backfill of channel {channel_id} could not fetch messages after {after_id}: {e}", exc_info=True)
            break
        if not page:
            break

        page_start = after_id
        for message in sorted(page, key=lambda m: snowflake_int(m.id)):
            if is_backfill_eligible(message, bot_user_id):
                try:
                    await ingestor.handle_message(
                        message,
                        silent=True,
                        update_checkpoint=False,
                        commit_after_write=False,
                    )
                    await ingestor.checkpoints.advance(channel_id, message.id, message.created_at)
                except LedgerWriteError as e:
                    # Checkpoint stays before this message so the next run retries it
                    logger.error(f"Backfill of channel {channel_id} stopped at message {message.id}: {e}")
                    failed = True
                    break

            after_id = message.id
            scanned += 1

        if not failed and not snowflake_gt(after_id, page_start):
            logger.warning(f"Channel {channel_id} returned a page that does not advance past {page_start}, stopping")
            break
        if len(page) < page_size:
            break

    await ledger.flush()
    if ledger.write_count > writes_before:
        await ledger.publish()

    logger.info(f"Backfill complete for channel {channel_id}. Scanned {scanned} messages.")
    return scanned
