"""
Market Data Provider Abstract Base Class

Defines the interface for market data providers. The gainers ranking only needs
a daily price series per symbol; providers hide where it comes from so another
source can be swapped in when one is rate limited or down.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime

import constants as const


def is_finite(value: float | None) -> bool:
    """True for a real, finite number (None and NaN are not)"""
    return value is not None and math.isfinite(value)


@dataclass
class PriceSeries:
    """
    Daily bars for one symbol.

    timestamps are UTC datetimes; opens/closes line up with them and may contain
    None for missing bars. tz is the exchange time zone used to map bars to
    calendar days.
    """
    symbol: str
    timestamps: list[datetime] = field(default_factory=list)
    opens: list[float | None] = field(default_factory=list)
    closes: list[float | None] = field(default_factory=list)
    last_close: float | None = None
    last_price: float | None = None
    tz: str = const.DEFAULT_EXCHANGE_TZ

    def __post_init__(self) -> None:
        if self.last_close is None:
            self.last_close = next((c for c in reversed(self.closes) if is_finite(c)), None)
        if self.last_price is None:
            self.last_price = self.last_close

    def __len__(self) -> int:
        return len(self.timestamps)


class MarketDataProvider(ABC):
    """Abstract base class for market data providers."""

    @abstractmethod
    def get_price_series(self, ticker: str, period: str = "1mo", interval: str = "1d") -> PriceSeries:
        """
        Get a price series for a ticker.

        Args:
            ticker: Stock ticker symbol (e.g., 'AAPL', 'BRK.B')
            period: Time period ('1mo', '3mo', '1y', '5y')
            interval: Bar interval (default daily)

        Returns:
            PriceSeries (timestamps, opens, closes, last close, last traded price)

        Raises:
            Exception: If data retrieval fails
        """
