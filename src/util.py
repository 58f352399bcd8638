#!/usr/bin/env python3
"""
Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

# Standard library imports
import logging
import os
import re
from datetime import date, datetime, timezone
from logging.handlers import RotatingFileHandler

# Third-party imports
import pytz

# Local application imports
import constants as const


# Module-level logger
logger = logging.getLogger(__name__)

# Emoji ranges plus the joiners/variation selectors that glue sequences together
EMOJI_PATTERN = re.compile(
    "["
    "\U0001F600-\U0001F64F"  # emoticons
    "\U0001F300-\U0001F5FF"  # symbols & pictographs
    "\U0001F680-\U0001F6FF"  # transport & map symbols
    "\U0001F1E0-\U0001F1FF"  # flags (iOS)
    "\U0001F900-\U0001F9FF"  # supplemental symbols
    "\U0001FA70-\U0001FAFF"  # symbols & pictographs extended-A
    "\U00002600-\U000026FF"  # misc symbols
    "\U00002700-\U000027BF"  # dingbats
    "\U0001F3FB-\U0001F3FF"  # skin tone modifiers
    "\u200d\ufe0f\u20e3"  # ZWJ, variation selector, keycap
    "]+",
    flags=re.UNICODE
)

# Discord custom emoji markup, e.g. <:pepe:1234> or <a:dance:5678>
CUSTOM_EMOJI_PATTERN = re.compile(r"<a?:\w+:\d+>")


def setup_logger(name: str | None = None, level: str | None = None, console: bool = True, log_file: str | None = None) -> logging.Logger:
    """
    Setup a logger with file and optional console output.

    Args:
        name: Logger name (use __name__ from calling module). If None, configures root logger.
        level: Logging level (DEBUG, INFO, WARNING, ERROR). Defaults to INFO or env LOG_LEVEL.
        console: Whether to also log to console (default True for main apps)
        log_file: Custom log filename (defaults to const.LOG_FILE)

    Returns:
        logging.Logger: Configured logger instance

    Example:
        # For application entry point (bot.py, cli.py):
        util.setup_logger(name=None, level='INFO', console=True)
        logger = logging.getLogger(__name__)
    """
    # Determine log level from parameter, environment, or default to INFO
    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO").upper()

    numeric_level = getattr(logging, level, logging.INFO)

    logger = logging.getLogger(name) if name else logging.getLogger()

    # Avoid duplicate handlers if logger already configured
    if logger.handlers:
        return logger

    logger.setLevel(numeric_level)

    detailed_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_formatter = logging.Formatter(
        "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%H:%M:%S"
    )

    log_filename = log_file if log_file else const.LOG_FILE

    # File handler with rotation (don't delete on startup)
    file_handler = RotatingFileHandler(
        filename=log_filename,
        maxBytes=const.MAX_LOG_SIZE,
        backupCount=const.BACKUP_COUNT,
        encoding="utf-8"
    )
    file_handler.setFormatter(detailed_formatter)
    file_handler.setLevel(logging.DEBUG)  # Capture everything to file
    logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(console_formatter)
        console_handler.setLevel(numeric_level)
        logger.addHandler(console_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a module-specific logger. This is the standard way to get loggers in library modules.

    Args:
        name: Use __name__ from the calling module

    Returns:
        logging.Logger: Logger instance for the module
    """
    return logging.getLogger(name)


def set_log_level(level: str) -> None:
    """
    Dynamically change log level for all loggers.
    Useful for debugging without restart.

    Args:
        level: Log level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Update console handlers to new level (keep file at DEBUG)
    for handler in root_logger.handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
            handler.setLevel(numeric_level)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso(value: datetime) -> str:
    """ISO-8601 with millisecond precision and a trailing Z, matching stored ledger timestamps."""
    return to_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp (Z suffix allowed). Returns None when unparseable."""
    if not value:
        return None
    try:
        return to_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except (ValueError, TypeError):
        return None


def local_day_string(value: datetime | None = None, tz_name: str = const.LOCAL_TIMEZONE) -> str:
    """YYYY-MM-DD of the given instant in the local (chat room) time zone."""
    instant = to_utc(value) if value else utc_now()
    return instant.astimezone(pytz.timezone(tz_name)).strftime("%Y-%m-%d")


def local_format(value: datetime, tz_name: str = const.LOCAL_TIMEZONE, fmt: str = "%d/%m/%y %H:%M") -> str:
    return to_utc(value).astimezone(pytz.timezone(tz_name)).strftime(fmt)


def month_start_utc(any_day: datetime | None = None) -> datetime:
    """First instant of the UTC calendar month containing any_day."""
    day = to_utc(any_day) if any_day else utc_now()
    return day.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def short_date(value: datetime | str | None) -> str:
    """dd/mm/yy in UTC, as shown next to ticker listings."""
    if value is None:
        return ""
    if isinstance(value, str):
        parsed = parse_iso(value)
        if parsed is None:
            return ""
        value = parsed
    return to_utc(value).strftime("%d/%m/%y")


def parse_day(value: str) -> date:
    return datetime.strptime(value, "%Y-%m-%d").date()


def strip_emoji(text: str) -> str:
    """Remove unicode emoji and Discord custom emoji markup."""
    text = CUSTOM_EMOJI_PATTERN.sub("", text)
    return EMOJI_PATTERN.sub("", text)


def smart_split_message(text: str, max_length: int) -> list[str]:
    """
    Intelligently split text into chunks respecting markdown structure and readability.

    Priority order for split points:
    1. Section boundaries (--- or ## headers)
    2. Paragraph boundaries (\n\n)
    3. Line boundaries (\n)
    4. Word boundaries (space)
    5. Character limit (last resort)

    Args:
        text: Text to split
        max_length: Maximum length per chunk

    Returns:
        List of text chunks
    """
    if len(text) <= max_length:
        return [text]

    chunks = []
    remaining = text

    while remaining:
        if len(remaining) <= max_length:
            chunks.append(remaining)
            break

        chunk = remaining[:max_length]
        split_point = -1

        for separator in ["\n---\n", "\n## ", "\n### "]:
            idx = chunk.rfind(separator)
            if idx > max_length * 0.3:  # Don't split too early (at least 30% through)
                split_point = idx + len(separator)
                break

        if split_point == -1:
            idx = chunk.rfind("\n\n")
            if idx > max_length * 0.3:
                split_point = idx + 2

        if split_point == -1:
            idx = chunk.rfind("\n")
            if idx > max_length * 0.5:
                split_point = idx + 1

        if split_point == -1:
            idx = chunk.rfind(" ")
            if idx > max_length * 0.7:
                split_point = idx + 1

        # Last resort: split at max_length
        if split_point == -1:
            split_point = max_length

        chunks.append(remaining[:split_point])
        remaining = remaining[split_point:]

    return chunks
