"""
Chat platform adapter

ChatMessage is the small, platform-neutral view of a message that ingestion,
backfill and the context log work with. ChannelSource is the paginated history
fetch they need; DiscordChannelSource implements it on top of discord.py.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

import discord

import constants as const
import util


logger = logging.getLogger(__name__)


@dataclass
class ChatMessage:
    """Platform-neutral message"""
    id: str
    channel_id: str
    guild_id: str | None
    content: str
    author_id: str
    author_name: str
    created_at: datetime
    author_is_bot: bool = False
    url: str = ""
    mentioned_user_ids: frozenset[str] = frozenset()
    reference_id: str | None = None
    attachments: list[dict[str, str]] = field(default_factory=list)
    reply: Callable[[str], Awaitable[Any]] | None = None

    def __post_init__(self) -> None:
        self.created_at = util.to_utc(self.created_at)
        if not self.url:
            self.url = message_link(self.guild_id, self.channel_id, self.id)

    @property
    def reference_url(self) -> str | None:
        if not self.reference_id:
            return None
        return message_link(self.guild_id, self.channel_id, self.reference_id)

    @classmethod
    def from_discord_message(cls, message: discord.Message) -> "ChatMessage":
        """Build a ChatMessage from a discord.py Message."""
        guild_id = str(message.guild.id) if message.guild else None
        reference_id = None
        if message.reference and message.reference.message_id:
            reference_id = str(message.reference.message_id)

        return cls(
            id=str(message.id),
            channel_id=str(message.channel.id),
            guild_id=guild_id,
            content=message.content or "",
            author_id=str(message.author.id),
            author_name=display_name_for(message.author),
            created_at=message.created_at,
            author_is_bot=bool(message.author.bot),
            url=message.jump_url,
            mentioned_user_ids=frozenset(str(user.id) for user in message.mentions),
            reference_id=reference_id,
            attachments=[{"url": a.url, "name": a.filename} for a in message.attachments],
            reply=message.channel.send,
        )


def message_link(guild_id: str | None, channel_id: str, message_id: str) -> str:
    return const.DISCORD_MESSAGE_URL.format(guild_id=guild_id or "@me", channel_id=channel_id, message_id=message_id)


def display_name_for(author: Any) -> str:
    """Server nickname, then display name, then global name, then username."""
    for attr in ("nick", "display_name", "global_name", "name"):
        value = getattr(author, attr, None)
        if value:
            return str(value)
    return const.ANONYMOUS_AUTHOR


def is_addressed_to_bot(message: ChatMessage, bot_user_id: str | None) -> bool:
    """Commands aimed at the assistant (mention or name alias) are not market chatter."""
    if bot_user_id and str(bot_user_id) in message.mentioned_user_ids:
        return True
    content = message.content.lower()
    return any(alias in content for alias in const.BOT_NAME_ALIASES)


class ChannelSource(Protocol):
    """Paginated history of a single channel"""

    channel_id: str

    async def fetch_page(self, limit: int, after: str | None = None, before: str | None = None) -> list[ChatMessage]:
        """Up to limit messages with id strictly after `after` or strictly before `before`."""
        ...


class DiscordChannelSource:
    """ChannelSource backed by a discord.py text channel"""

    def __init__(self, channel: discord.abc.Messageable) -> None:
        self.channel = channel
        self.channel_id = str(channel.id)

    async def fetch_page(self, limit: int, after: str | None = None, before: str | None = None) -> list[ChatMessage]:
        kwargs: dict[str, Any] = {"limit": limit}
        if after:
            kwargs["after"] = discord.Object(id=int(after))
            kwargs["oldest_first"] = True
        if before:
            kwargs["before"] = discord.Object(id=int(before))
            kwargs["oldest_first"] = False

        messages = [ChatMessage.from_discord_message(m) async for m in self.channel.history(**kwargs)]
        logger.debug(f"Fetched {len(messages)} messages from channel {self.channel_id} (after={after}, before={before})")
        return messages

    def __repr__(self) -> str:
        return f"DiscordChannelSource(channel_id={self.channel_id})"
