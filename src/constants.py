#!/usr/bin/env python3
"""
Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import os
import pathlib
import re

from dotenv import load_dotenv


load_dotenv()

PROJECT_ROOT = pathlib.Path(__file__).parent.parent.absolute()


def parse_id_list(raw: str | None) -> list[str]:
    """Split a newline/space/comma separated id list from the environment."""
    if not raw:
        return []
    return [part.strip() for part in re.split(r"[\s,;]+", raw) if part.strip()]


def env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Data files
DATA_DIR = str(PROJECT_ROOT / "scanner")
LEDGER_PATH = os.getenv("LEDGER_PATH", str(PROJECT_ROOT / "scanner" / "db.json"))
ALL_TICKERS_PATH = os.getenv("ALL_TICKERS_PATH", str(PROJECT_ROOT / "scanner" / "all_tickers.txt"))
CONTEXT_LOG_DIR = os.getenv("CONTEXT_LOG_DIR", str(PROJECT_ROOT / "data" / "logs"))
SP500_CACHE_PATH = str(PROJECT_ROOT / "scanner" / "sp500.json")

# Logging
LOG_FILE = "bot.log"
CLI_LOG_FILE = "cmds.log"
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5

# App Version
VERSION = 0.3

# DISCORD
DISCORD_TOKEN = os.getenv("DISCORD_TOKEN")
DISCORD_MAX_CHAR_COUNT = 2000
DISCORD_EPOCH_MS = 1420070400000  # 2015-01-01T00:00:00Z
DISCORD_MESSAGE_URL = "https://discord.com/channels/{guild_id}/{channel_id}/{message_id}"
GUILD_ID = os.getenv("DISCORD_GUILD_ID", "")
BOT_CHANNEL_ID = os.getenv("BOT_CHANNEL_ID", "")
LOG_CHANNEL_ID = os.getenv("LOG_CHANNEL_ID", "")
GRAPHS_CHANNEL_ID = os.getenv("GRAPHS_CHANNEL_ID", "")
CHATROOM_IDS = parse_id_list(os.getenv("CHATROOM_IDS"))
SHUTDOWN_SECRET = os.getenv("SHUTDOWN_SECRET")
BOT_NAME_ALIASES = ["@superpony"]

# Mention ledger
BACKFILL_LOOKBACK_DAYS = 14
BACKFILL_PAGE_SIZE = 100
PUBLISH_ENABLED = env_flag("PUBLISH_ENABLED", default=False)
PUBLISH_COMMIT_MESSAGE = "chore(scanner): update db.json [skip ci]"
CONTEXT_COMMIT_MESSAGE = "chore(scanner): update channel log json [skip ci]"
GIT_USER_NAME = os.getenv("GIT_USER_NAME")
GIT_USER_EMAIL = os.getenv("GIT_USER_EMAIL")

# Ticker extraction
TICKER_BLACKLIST = os.getenv("TICKER_BLACKLIST")
DEFAULT_BLACKLIST = [
    "A", "I", "AM", "AN", "AS", "AT", "BE", "BY", "DO", "GO", "HE", "IF", "IN",
    "IS", "IT", "ME", "MY", "NO", "OF", "OK", "ON", "OR", "SO", "TO", "UP", "US",
    "WE", "ALL", "AND", "ARE", "ATH", "BIG", "BUY", "CAN", "CEO", "DD", "EOD",
    "EPS", "ETF", "FOR", "FOMO", "GDP", "HAS", "HOLD", "IPO", "IRS", "LOL",
    "NEW", "NOW", "ONE", "OUT", "PM", "AH", "PT", "RSI", "SEC", "SO", "THE",
    "USA", "USD", "YOLO", "YOU", "CPI", "FED", "AI", "EV", "IMO", "ATM", "OTM",
    "ITM", "DTE", "IV", "TA", "VWAP", "EMA", "SMA", "MACD",
]

# Context log / question answering
LOCAL_TIMEZONE = "Asia/Jerusalem"
CONTEXT_BACKFILL_DAYS = 10
CONTEXT_LAST_N = 800
CONTEXT_CHANNEL_ID = os.getenv("CONTEXT_CHANNEL_ID") or (CHATROOM_IDS[0] if CHATROOM_IDS else "")
ANONYMOUS_AUTHOR = "אנונימי"
QA_MODEL = os.getenv("QA_MODEL", "gemini/gemini-2.5-flash")
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
QA_MIN_DATE = "2025-08-01"
QA_CHUNK_CHARS = 4000
QA_TEMPERATURE = 0.2
QA_MAX_TOKENS = 1024

# Market data
GAINERS_CONCURRENCY = 3
GAINERS_PREVIEW_LIMIT = 25
PRICE_CACHE_TTL_SECONDS = 15 * 60
PRICE_CACHE_SIZE = 512
DEFAULT_EXCHANGE_TZ = "America/New_York"
MARKET_DATA_PROVIDER = os.getenv("MARKET_DATA_PROVIDER", "yfinance")

# FINNHUB
FINNHUB_TOKEN = os.getenv("FINNHUB_TOKEN")
FINNHUB_URL_EARNINGS = "https://finnhub.io/api/v1/calendar/earnings"
SP500_CSV_URL = "https://raw.githubusercontent.com/datasets/s-and-p-500-companies/master/data/constituents.csv"
SP500_CACHE_DAYS = 30
