"""
Exception hierarchy

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""


class TickerBotError(Exception):
    """Base class for all bot errors"""


class SymbolUniverseError(TickerBotError):
    """Reference ticker file is missing or unreadable; ingestion cannot proceed"""


class LedgerWriteError(TickerBotError):
    """Persisting the mention ledger failed"""


class PriceDataError(TickerBotError):
    """Market data for a single symbol is missing or unusable"""


class PublishError(TickerBotError):
    """External publish (git snapshot) failed"""
