"""
Mention ledger store

Append-only store of MentionRecords plus per-channel checkpoints. All mutations
go through a LedgerWriteQueue so that exactly one load-mutate-save cycle runs at a
time inside this process. Reads (load_snapshot) go straight to the repository.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import asyncio
import logging
from collections.abc import Iterable
from datetime import datetime

import util
from ledger_repository import LedgerRepository
from mention import Checkpoint, LedgerDocument, MentionRecord
from publisher import NullPublisher, Publisher
from queues.ledger_write_queue import LedgerWriteQueue
from snowflake import snowflake_gt


logger = logging.getLogger(__name__)


class MentionLedger:
    """
    Serialized access to the ledger document.

    Usage:
        ledger = MentionLedger(JsonLedgerRepository(const.LEDGER_PATH), GitPublisher())
        added = await ledger.append(records, publish=True)
        await ledger.advance_checkpoint(channel_id, message_id, created_at)
    """

    def __init__(
        self,
        repository: LedgerRepository,
        publisher: Publisher | None = None,
        write_queue: LedgerWriteQueue | None = None,
    ) -> None:
        self.repository = repository
        self.publisher = publisher or NullPublisher()
        self.write_queue = write_queue or LedgerWriteQueue(name="ledger")
        self._write_count = 0

    @property
    def path(self) -> str:
        return self.repository.path

    @property
    def write_count(self) -> int:
        """Number of times the document has been persisted by this instance"""
        return self._write_count

    def _append_sync(self, entries: list[MentionRecord]) -> int:
        document = self.repository.load()
        have = document.keys()
        added = 0
        for entry in entries:
            if entry.key in have:
                continue
            document.entries.append(entry)
            have.add(entry.key)
            added += 1

        if added > 0:
            document.touch()
            self.repository.save(document)
            self._write_count += 1
        return added

    def _advance_sync(self, channel_id: str, message_id: str, timestamp: str) -> bool:
        document = self.repository.load()
        current = document.checkpoints.get(channel_id)
        if current is not None and not snowflake_gt(message_id, current.last_processed_id):
            return False

        document.checkpoints[channel_id] = Checkpoint(last_processed_id=message_id, last_processed_at=timestamp)
        document.touch()
        self.repository.save(document)
        self._write_count += 1
        return True

    async def append(self, entries: Iterable[MentionRecord], publish: bool = False) -> int:
        """
        Append records, skipping any (message_id, ticker) already stored.

        Args:
            entries: Records to add
            publish: Publish the ledger file when at least one record was added

        Returns:
            Number of records actually added. Zero means no write happened.

        Raises:
            LedgerWriteError: If saving the document failed
        """
        entries = list(entries)
        if not entries:
            return 0

        added = await self.write_queue.submit(self._append_sync, entries)
        if added:
            logger.info(f"Ledger: added {added}/{len(entries)} mention(s) -> {self.path}")
            if publish:
                await self.publish()
        else:
            logger.debug(f"Ledger: all {len(entries)} mention(s) already stored")
        return added

    async def advance_checkpoint(self, channel_id: str, message_id: str, timestamp: datetime | str) -> bool:
        """
        Move a channel's checkpoint forward.

        Returns:
            True if stored; False when message_id is not newer than the current checkpoint
        """
        if isinstance(timestamp, datetime):
            timestamp = util.to_iso(timestamp)
        return await self.write_queue.submit(self._advance_sync, str(channel_id), str(message_id), timestamp)

    async def load_snapshot(self) -> LedgerDocument:
        """Read-only copy of the current document"""
        return await asyncio.to_thread(self.repository.load)

    async def get_checkpoint(self, channel_id: str) -> Checkpoint | None:
        document = await self.load_snapshot()
        return document.checkpoints.get(str(channel_id))

    async def flush(self) -> None:
        """Wait for every queued write to complete."""
        await self.write_queue.flush()

    async def publish(self) -> bool:
        """Hand the ledger file to the publisher (no-op when nothing changed)."""
        return await self.publisher.commit_if_changed(self.path)

    def __repr__(self) -> str:
        return f"MentionLedger(repository={self.repository!r}, publisher={type(self.publisher).__name__})"
