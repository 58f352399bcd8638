"""
Checkpoint / resume controller

Per-channel "last processed message" bookkeeping shared by live ingestion and
backfill. Advances are strictly forward by snowflake order; when a channel has
no checkpoint yet, a synthetic snowflake for `now - lookback_days` is used as the
starting cursor.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import logging
from datetime import datetime, timedelta

import util
from mention_ledger import MentionLedger
from snowflake import snowflake_from_timestamp


logger = logging.getLogger(__name__)


class CheckpointController:
    """Thin policy layer over MentionLedger checkpoints"""

    def __init__(self, ledger: MentionLedger) -> None:
        self.ledger = ledger

    async def advance(self, channel_id: str, message_id: str, timestamp: datetime | str) -> bool:
        """
        Record message_id as processed for channel_id.

        Out-of-order and duplicate ids are ignored.

        Returns:
            True if the checkpoint moved forward
        """
        moved = await self.ledger.advance_checkpoint(str(channel_id), str(message_id), timestamp)
        if not moved:
            logger.debug(f"Checkpoint for channel {channel_id} not advanced by {message_id}")
        return moved

    async def resolve_start_id(self, channel_id: str, lookback_days: int, now: datetime | None = None) -> str:
        """
        Cursor to resume from: fetches go strictly after this id.

        Args:
            channel_id: Channel to resume
            lookback_days: Window used when the channel has never been processed
            now: Reference time (defaults to current UTC time)

        Returns:
            The stored lastProcessedId, or a synthetic id for now - lookback_days
        """
        checkpoint = await self.ledger.get_checkpoint(str(channel_id))
        if checkpoint is not None:
            logger.info(f"Resuming channel {channel_id} after checkpoint {checkpoint.last_processed_id}")
            return checkpoint.last_processed_id

        cutoff = (now or util.utc_now()) - timedelta(days=lookback_days)
        start_id = snowflake_from_timestamp(cutoff)
        logger.info(f"No checkpoint for channel {channel_id}, starting {lookback_days}d back ({util.to_iso(cutoff)})")
        return start_id
