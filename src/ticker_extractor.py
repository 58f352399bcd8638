"""
Ticker extraction

Pulls ticker-like tokens out of free chat text and keeps the ones that are
known symbols and not blacklisted. Pure functions: the symbol set and blacklist
are supplied by the caller (see ticker_universe.TickerUniverse).

Recognised forms: TSLA, $TSLA, tsla, BRK.B, BRK-B (hyphen normalised to dot).

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import re
from collections.abc import Collection


# Standalone tokens only. Left boundary: start, whitespace, quote/bracket or any
# non-ASCII char (Hebrew glued to a ticker still separates it). Right boundary
# mirrors that plus trailing punctuation, but never '/', so "tradingview.com/..."
# and other URL fragments are not tickers.
TICKER_RE = re.compile(
    r"(?:^|[\s\"'`(\[{<]|[^\x00-\x7F])"
    r"\$?([A-Za-z]{1,5}(?:[.\-][A-Za-z]{1,2})?)"
    r"(?=$|[\s\"'`)\]}>.,:;!?]|[^\x00-\x7F])"
)

# ASCII-only boundaries, used only when the primary pattern accepts nothing
TICKER_RE_FALLBACK = re.compile(
    r"(?:^|[^A-Za-z0-9])"
    r"\$?([A-Za-z]{1,5}(?:[.\-][A-Za-z]{1,2})?)"
    r"(?=$|[^A-Za-z0-9/])"
)


def normalize_symbol(candidate: str) -> str:
    """Uppercase, trim, and map share-class hyphens to dots (BRK-B -> BRK.B)."""
    return candidate.strip().upper().replace("-", ".")


def _scan(pattern: re.Pattern, text: str, symbols: Collection[str], blacklist: Collection[str]) -> set[str]:
    found = set()
    for match in pattern.finditer(text):
        candidate = normalize_symbol(match.group(1))
        if candidate in symbols and candidate not in blacklist:
            found.add(candidate)
    return found


def extract_tickers(text: str | None, symbols: Collection[str], blacklist: Collection[str]) -> set[str]:
    """
    Extract known ticker symbols from text.

    Args:
        text: Raw message content (any language)
        symbols: Valid uppercase symbols
        blacklist: Symbols that must never be extracted (wins over symbols)

    Returns:
        Set of normalised symbols, one per distinct ticker mentioned
    """
    if not text:
        return set()

    found = _scan(TICKER_RE, text, symbols, blacklist)
    if not found:
        found = _scan(TICKER_RE_FALLBACK, text, symbols, blacklist)
    return found
