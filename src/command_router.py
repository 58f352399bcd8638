"""
Bot-room command routing

Messages in the bot room that address the assistant are plain Hebrew phrases,
not slash commands. This module cleans the text (mentions and name aliases
removed, lower-cased) and maps it to a command. Anything unrecognised is a
free-text question for the chat assistant.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

import constants as const
import util


MENTION_MARKUP_RE = re.compile(r"<@[!&]?\d+>")
FROM_DATE_RE = re.compile(r"(\d{4}-\d{2}-\d{2})$")


class Command(Enum):
    MINE = "mine"
    ALL = "all"
    DASHBOARD = "dashboard"
    FIRST_BY_USER = "first_by_user"
    EARNINGS_SP500 = "earnings_sp500"
    EARNINGS_ALL = "earnings_all"
    QUESTION = "question"
    NONE = "none"


MINE_PHRASES = ("טיקרים שלי", "שלי")
ALL_PHRASES = ("כל הטיקרים", "כל טיקרים")
DASHBOARD_PHRASES = ("טיקרים",)
FIRST_BY_USER_PHRASES = ("טיקרים", "הטיקרים", "של")
EARNINGS_SP500_PHRASES = ("דיווחים 500",)
EARNINGS_ALL_PHRASES = ("דיווחים", "מדווחות")


@dataclass
class RoutedCommand:
    command: Command
    text: str = ""
    from_date: datetime | None = None


def clean_command_text(content: str | None) -> str:
    """Strip user/role mention markup and bot name aliases, collapse to lower case."""
    text = MENTION_MARKUP_RE.sub("", content or "").strip().lower()
    for alias in const.BOT_NAME_ALIASES:
        text = text.replace(alias, "")
    return text.strip()


def _split_from_date(text: str) -> tuple[str, datetime | None]:
    """'טיקרים שלי 2025-09-01' -> ('טיקרים שלי', 2025-09-01T00:00Z)"""
    match = FROM_DATE_RE.search(text)
    if not match:
        return text, None
    try:
        day = util.parse_day(match.group(1))
    except ValueError:
        return text, None
    from_date = util.to_utc(datetime(day.year, day.month, day.day))
    return text[: match.start()].strip(), from_date


def route_command(text: str, other_mentions: bool = False) -> RoutedCommand:
    """
    Map cleaned bot-room text to a command.

    Args:
        text: Output of clean_command_text
        other_mentions: The message mentions users other than the assistant
    """
    if not text:
        return RoutedCommand(Command.NONE)

    if not other_mentions:
        phrase, from_date = _split_from_date(text)
        if phrase in MINE_PHRASES:
            return RoutedCommand(Command.MINE, text, from_date)
        if text in ALL_PHRASES:
            return RoutedCommand(Command.ALL, text)
        if text in DASHBOARD_PHRASES:
            return RoutedCommand(Command.DASHBOARD, text)
    elif text in FIRST_BY_USER_PHRASES:
        return RoutedCommand(Command.FIRST_BY_USER, text)

    if text in EARNINGS_SP500_PHRASES:
        return RoutedCommand(Command.EARNINGS_SP500, text)
    if text in EARNINGS_ALL_PHRASES:
        return RoutedCommand(Command.EARNINGS_ALL, text)

    return RoutedCommand(Command.QUESTION, text)
