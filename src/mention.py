"""
Mention ledger data model

MentionRecord, Checkpoint and the LedgerDocument aggregate root, plus the
JSON (de)serialisation used by the ledger file. Older ledger files are read
transparently:
- a bare JSON array of entries (no checkpoints)
- entries carrying ``user: {id, name}`` instead of ``author: {id, displayName}``

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

import util


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Author:
    """Message author; id is the identity key, display_name is for display only"""
    id: str
    display_name: str

    def to_json(self) -> dict[str, str]:
        return {"id": self.id, "displayName": self.display_name}


@dataclass(frozen=True)
class MentionRecord:
    """One ticker observed in one message"""
    ticker: str
    author: Author
    message_id: str
    channel_id: str
    guild_id: str | None
    link: str
    timestamp: str  # ISO-8601, UTC
    content: str = ""

    @property
    def key(self) -> tuple[str, str]:
        """Uniqueness key across the ledger"""
        return (self.message_id, self.ticker)

    @property
    def created_at(self):
        return util.parse_iso(self.timestamp)

    def to_json(self) -> dict[str, Any]:
        return {
            "ticker": self.ticker,
            "author": self.author.to_json(),
            "messageId": self.message_id,
            "channelId": self.channel_id,
            "guildId": self.guild_id,
            "link": self.link,
            "timestamp": self.timestamp,
            "content": self.content,
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "MentionRecord":
        """Build a record from a stored entry (new or legacy author shape)."""
        author_data = data.get("author") or data.get("user") or {}
        author = Author(
            id=str(author_data.get("id", "")),
            display_name=author_data.get("displayName") or author_data.get("name") or "",
        )
        guild_id = data.get("guildId")
        return cls(
            ticker=str(data["ticker"]).upper(),
            author=author,
            message_id=str(data["messageId"]),
            channel_id=str(data.get("channelId", "")),
            guild_id=str(guild_id) if guild_id is not None else None,
            link=data.get("link", ""),
            timestamp=data.get("timestamp", ""),
            content=data.get("content", ""),
        )


@dataclass(frozen=True)
class Checkpoint:
    """Last processed message of a channel"""
    last_processed_id: str
    last_processed_at: str

    def to_json(self) -> dict[str, str]:
        return {"lastProcessedId": self.last_processed_id, "lastProcessedAt": self.last_processed_at}

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "Checkpoint":
        return cls(
            last_processed_id=str(data.get("lastProcessedId", "")),
            last_processed_at=data.get("lastProcessedAt", ""),
        )


@dataclass
class LedgerDocument:
    """The whole ledger: entries plus per-channel checkpoints"""
    updated: str = field(default_factory=lambda: util.to_iso(util.utc_now()))
    entries: list[MentionRecord] = field(default_factory=list)
    checkpoints: dict[str, Checkpoint] = field(default_factory=dict)
    # Stored entries that could not be parsed; written back unchanged
    extra_entries: list[Any] = field(default_factory=list)

    def keys(self) -> set[tuple[str, str]]:
        keys = {entry.key for entry in self.entries}
        for raw in self.extra_entries:
            if isinstance(raw, dict) and raw.get("messageId") is not None and raw.get("ticker"):
                keys.add((str(raw["messageId"]), str(raw["ticker"]).upper()))
        return keys

    def touch(self) -> None:
        self.updated = util.to_iso(util.utc_now())

    def to_json(self) -> dict[str, Any]:
        return {
            "updated": self.updated,
            "entries": self.extra_entries + [entry.to_json() for entry in self.entries],
            "checkpoints": {channel_id: cp.to_json() for channel_id, cp in self.checkpoints.items()},
        }

    @classmethod
    def from_json(cls, data: Any) -> "LedgerDocument":
        """
        Parse a loaded ledger file.

        Accepts the current object shape and the legacy bare-array shape, which is
        upgraded in memory to an object with no checkpoints. Malformed entries are
        kept aside in extra_entries so a later save never drops them. Checkpoints
        without a numeric lastProcessedId are ignored.
        """
        if isinstance(data, list):
            raw_entries, raw_checkpoints, updated = data, {}, None
        elif isinstance(data, dict):
            raw_entries = data.get("entries") or []
            raw_checkpoints = data.get("checkpoints") or {}
            updated = data.get("updated")
        else:
            logger.warning(f"Unexpected ledger document type {type(data).__name__}, treating as empty")
            return cls()

        entries = []
        extra_entries = []
        for raw in raw_entries:
            try:
                entries.append(MentionRecord.from_json(raw))
            except (KeyError, TypeError, AttributeError):
                extra_entries.append(raw)
        if extra_entries:
            logger.warning(f"Kept {len(extra_entries)} malformed ledger entries as-is")

        checkpoints = {}
        for channel_id, cp in raw_checkpoints.items():
            if not isinstance(cp, dict):
                continue
            last_id = str(cp.get("lastProcessedId") or "").strip()
            if not last_id.isdigit():
                if last_id:
                    logger.warning(f"Ignoring checkpoint for channel {channel_id} with invalid id {last_id!r}")
                continue
            checkpoints[str(channel_id)] = Checkpoint.from_json(cp)

        document = cls(entries=entries, checkpoints=checkpoints, extra_entries=extra_entries)
        if updated:
            document.updated = updated
        return document
