"""
Ticker universe

Holds the set of valid ticker symbols (loaded from the reference file, one symbol
per line) and the blacklist of words that look like tickers but never count as
mentions (loaded from TICKER_BLACKLIST, falling back to const.DEFAULT_BLACKLIST).

A universe is immutable once loaded. get_instance() caches one universe per
reference file path for the life of the process; reload() builds a fresh one for
operator-triggered refreshes.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import logging
import os
import re

import constants as const
from errors import SymbolUniverseError
from ticker_extractor import normalize_symbol


logger = logging.getLogger(__name__)


def parse_blacklist(raw: str | None) -> frozenset[str]:
    """
    Parse a blacklist configuration value.

    Entries are separated by newlines, whitespace, commas or semicolons.
    An absent or blank value falls back to the built-in default list.
    """
    if raw is None or not raw.strip():
        raw = "\n".join(const.DEFAULT_BLACKLIST)
    return frozenset(
        normalize_symbol(part) for part in re.split(r"[\s,;]+", raw) if part.strip()
    )


def load_symbols(path: str) -> frozenset[str]:
    """
    Load the reference ticker file.

    Raises:
        SymbolUniverseError: If the file is missing or unreadable
    """
    if not os.path.isfile(path):
        raise SymbolUniverseError(f"Missing tickers file: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            lines = f.read().splitlines()
    except OSError as e:
        raise SymbolUniverseError(f"Unable to read tickers file {path}: {e}") from e
    return frozenset(normalize_symbol(line) for line in lines if line.strip())


class TickerUniverse:
    """
    Valid symbols plus blacklist, passed into the extractor at call time.

    Usage:
        universe = TickerUniverse.get_instance(const.ALL_TICKERS_PATH)
        tickers = extract_tickers(text, universe.symbols, universe.blacklist)
    """

    _instances: dict[str, "TickerUniverse"] = {}

    def __init__(self, path: str, symbols: frozenset[str], blacklist: frozenset[str], blacklist_raw: str | None = None):
        self.path = path
        self.symbols = symbols
        self.blacklist = blacklist
        self._blacklist_raw = blacklist_raw

    @classmethod
    def load(cls, path: str, blacklist_raw: str | None = None) -> "TickerUniverse":
        """Read the reference file and parse the blacklist into a new universe."""
        symbols = load_symbols(path)
        blacklist = parse_blacklist(blacklist_raw)
        logger.info(f"Loaded {len(symbols)} symbols from {path} ({len(blacklist)} blacklisted)")
        return cls(path, symbols, blacklist, blacklist_raw)

    @classmethod
    def get_instance(cls, path: str, blacklist_raw: str | None = None) -> "TickerUniverse":
        """
        Cached universe for a reference file path.

        A different path loads (and caches) a new universe; the same path reuses
        the one already in memory.
        """
        instance = cls._instances.get(path)
        if instance is None:
            raw = blacklist_raw if blacklist_raw is not None else const.TICKER_BLACKLIST
            instance = cls.load(path, raw)
            cls._instances[path] = instance
        return instance

    @classmethod
    def reset_instances(cls) -> None:
        """Drop cached universes (for testing)"""
        cls._instances.clear()

    def reload(self) -> "TickerUniverse":
        """Re-read the reference file and replace the cached universe for this path."""
        fresh = TickerUniverse.load(self.path, self._blacklist_raw)
        TickerUniverse._instances[self.path] = fresh
        logger.info(f"Reloaded ticker universe from {self.path}")
        return fresh

    def is_valid(self, symbol: str) -> bool:
        """Known symbol that is not blacklisted"""
        symbol = normalize_symbol(symbol)
        return symbol in self.symbols and symbol not in self.blacklist

    def __len__(self) -> int:
        return len(self.symbols)

    def __repr__(self) -> str:
        return f"TickerUniverse(path={self.path}, symbols={len(self.symbols)}, blacklist={len(self.blacklist)})"
