"""
Context-window log

Per-channel, per-day JSONL log of chat messages, kept only so the question
answering path can pull recent conversation. Files are named
`{channel_id}_{YYYY-MM-DD}.jsonl` where the day is the message's local calendar
day (const.LOCAL_TIMEZONE).

Live appends do not dedupe (a repeated message is at worst a duplicate line);
the startup backfill dedupes against each day file by message id.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import asyncio
import json
import logging
import os
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any

import constants as const
import util
from channel_source import ChannelSource, ChatMessage
from publisher import NullPublisher, Publisher
from snowflake import snowflake_int


logger = logging.getLogger(__name__)

GIF_LINK_PREFIX = "https://tenor.com/"


@dataclass
class ContextLogRecord:
    """One logged chat message"""
    msg_link: str
    author: str
    content: str
    created_at: str
    ref_msg_link: str = ""
    attachments: list[dict[str, str]] = field(default_factory=list)

    @property
    def message_id(self) -> str:
        return self.msg_link.rstrip("/").rsplit("/", 1)[-1]

    @property
    def created(self) -> datetime | None:
        return util.parse_iso(self.created_at)

    def to_json(self) -> dict[str, Any]:
        return {
            "msgLink": self.msg_link,
            "refMsgLink": self.ref_msg_link,
            "author": self.author,
            "content": self.content,
            "createdAt": self.created_at,
            "attachments": self.attachments,
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "ContextLogRecord":
        return cls(
            msg_link=data.get("msgLink", ""),
            ref_msg_link=data.get("refMsgLink", "") or "",
            author=data.get("author") or const.ANONYMOUS_AUTHOR,
            content=data.get("content", "") or "",
            created_at=data.get("createdAt", ""),
            attachments=list(data.get("attachments") or []),
        )

    @classmethod
    def from_message(cls, message: ChatMessage) -> "ContextLogRecord":
        return cls(
            msg_link=message.url,
            ref_msg_link=message.reference_url or "",
            author=message.author_name or const.ANONYMOUS_AUTHOR,
            content=message.content or "",
            created_at=util.to_iso(message.created_at),
            attachments=[{"url": a.get("url", ""), "name": a.get("name", "")} for a in message.attachments],
        )


def should_log_message(content: str | None) -> bool:
    """Skip empty, emoji-only and bare GIF-link messages."""
    content = (content or "").strip()
    if not content:
        return False
    if not util.strip_emoji(content).strip():
        return False
    if content.startswith(GIF_LINK_PREFIX):
        return False
    return True


def _read_lines(path: str) -> list[str]:
    try:
        with open(path, encoding="utf-8") as f:
            return [line for line in f.read().splitlines() if line.strip()]
    except FileNotFoundError:
        return []
    except OSError as e:
        logger.warning(f"Could not read context log {path}: {e}")
        return []


def _parse_lines(lines: list[str], path: str) -> list[ContextLogRecord]:
    records = []
    malformed = 0
    for line in lines:
        try:
            records.append(ContextLogRecord.from_json(json.loads(line)))
        except (ValueError, TypeError, AttributeError):
            malformed += 1
    if malformed:
        logger.warning(f"{path}: skipped {malformed} malformed line(s)")
    return records


def _append_records(path: str, records: list[ContextLogRecord]) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        for record in records:
            f.write(json.dumps(record.to_json(), ensure_ascii=False) + "\n")


def _sort_key(record: ContextLogRecord) -> datetime:
    return record.created or datetime.min.replace(tzinfo=timezone.utc)


class ContextLog:
    """
    Day-file log for one or more channels.

    Usage:
        log = ContextLog(const.CONTEXT_LOG_DIR, create_publisher(const.CONTEXT_COMMIT_MESSAGE))
        await log.append(chat_message)
        records = await log.read_last_n(channel_id, 800, day="2025-09-01")
    """

    def __init__(
        self,
        log_dir: str = const.CONTEXT_LOG_DIR,
        publisher: Publisher | None = None,
        tz_name: str = const.LOCAL_TIMEZONE,
    ) -> None:
        self.log_dir = log_dir
        self.publisher = publisher or NullPublisher()
        self.tz_name = tz_name

    def day_string(self, when: datetime | None = None) -> str:
        return util.local_day_string(when, self.tz_name)

    def path_for_day(self, channel_id: str, day: str) -> str:
        return os.path.join(self.log_dir, f"{channel_id}_{day}.jsonl")

    def path_for(self, channel_id: str, when: datetime | None = None) -> str:
        return self.path_for_day(channel_id, self.day_string(when))

    async def append(self, message: ChatMessage) -> bool:
        """
        Append one live message to its day file and publish the file.

        Returns:
            False when the message is filtered out
        """
        if not should_log_message(message.content):
            return False

        record = ContextLogRecord.from_message(message)
        path = self.path_for(message.channel_id, message.created_at)
        await asyncio.to_thread(_append_records, path, [record])
        logger.debug(f"Context log: appended message {message.id} to {path}")
        await self.publisher.commit_if_changed(path)
        return True

    async def read_recent(
        self,
        channel_id: str,
        minutes: int = 60,
        max_lines: int = 4000,
        now: datetime | None = None,
    ) -> list[ContextLogRecord]:
        """
        Records from today's and yesterday's files created within the last `minutes`.

        Only the last max_lines lines of each file are considered; the result is
        sorted by creation time and capped at max_lines.
        """
        now = util.to_utc(now) if now else util.utc_now()
        cutoff = now - timedelta(minutes=minutes)
        paths = [self.path_for(channel_id, now), self.path_for(channel_id, now - timedelta(days=1))]

        items: list[ContextLogRecord] = []
        for path in paths:
            lines = await asyncio.to_thread(_read_lines, path)
            if not lines:
                continue
            for record in _parse_lines(lines[-max_lines:], path):
                created = record.created
                if created is not None and created >= cutoff:
                    items.append(record)

        items.sort(key=_sort_key)
        out = items[-max_lines:]
        logger.debug(f"Context log: {len(out)} record(s) in the last {minutes} min for channel {channel_id}")
        return out

    async def read_last_n(
        self,
        channel_id: str,
        n: int = 400,
        day: date | str | None = None,
        now: datetime | None = None,
    ) -> list[ContextLogRecord]:
        """
        Last n records of one day file, sorted by creation time.

        With day given, that day's file is read. Otherwise the more recently
        modified of today's and yesterday's files is used.
        """
        if day is not None:
            day_str = day if isinstance(day, str) else day.strftime("%Y-%m-%d")
            candidates = [self.path_for_day(channel_id, day_str)]
        else:
            now = util.to_utc(now) if now else util.utc_now()
            candidates = [self.path_for(channel_id, now), self.path_for(channel_id, now - timedelta(days=1))]

        existing = [p for p in candidates if os.path.isfile(p)]
        if not existing:
            logger.debug(f"Context log: no files for channel {channel_id} ({candidates})")
            return []

        chosen = max(existing, key=os.path.getmtime)
        lines = await asyncio.to_thread(_read_lines, chosen)
        records = _parse_lines(lines[-n:] if n > 0 else [], chosen)
        records.sort(key=_sort_key)
        logger.debug(f"Context log: read {len(records)} record(s) from {chosen}")
        return records

    def _existing_ids(self, path: str) -> set[str]:
        return {record.message_id for record in _parse_lines(_read_lines(path), path)}

    async def backfill_recent_days(
        self,
        source: ChannelSource,
        days: int = const.CONTEXT_BACKFILL_DAYS,
        page_size: int = const.BACKFILL_PAGE_SIZE,
        now: datetime | None = None,
    ) -> int:
        """
        Page backwards through the channel and fill in missing day-file records.

        Stops at the first message older than now - days. Bot messages and
        filtered content are skipped; messages already present in their day file
        are not written again. Each touched file is published once.

        Returns:
            Number of records written
        """
        now = util.to_utc(now) if now else util.utc_now()
        cutoff = now - timedelta(days=days)
        channel_id = source.channel_id

        # day -> (existing ids, new records)
        buckets: dict[str, tuple[set[str], list[ContextLogRecord]]] = {}

        before_id: str | None = None
        done = False
        while not done:
            page = await source.fetch_page(limit=page_size, before=before_id)
            if not page:
                break

            page = sorted(page, key=lambda m: snowflake_int(m.id), reverse=True)
            for message in page:
                if message.created_at < cutoff:
                    done = True
                    break
                if message.author_is_bot or not should_log_message(message.content):
                    continue

                day = self.day_string(message.created_at)
                if day not in buckets:
                    path = self.path_for_day(channel_id, day)
                    existing = await asyncio.to_thread(self._existing_ids, path)
                    buckets[day] = (existing, [])
                existing, records = buckets[day]
                if message.id in existing:
                    continue
                records.append(ContextLogRecord.from_message(message))
                existing.add(message.id)

            last_id = page[-1].id
            if last_id == before_id:
                break
            before_id = last_id

        total = 0
        for day, (_, records) in sorted(buckets.items()):
            if not records:
                continue
            records.sort(key=_sort_key)
            path = self.path_for_day(channel_id, day)
            await asyncio.to_thread(_append_records, path, records)
            await self.publisher.commit_if_changed(path)
            total += len(records)

        if total:
            logger.info(f"Backfilled {total} context message(s) for channel {channel_id} across {len(buckets)} day file(s)")
        else:
            logger.info(f"No new context messages to backfill for channel {channel_id}")
        return total
