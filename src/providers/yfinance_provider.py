"""
YFinance Market Data Provider

Implementation of MarketDataProvider using the yfinance library.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import logging
from datetime import timezone

import pandas as pd
import yfinance as yf

import constants as const
from providers.market_data_provider import MarketDataProvider, PriceSeries


logger = logging.getLogger(__name__)


def _safe_float(value) -> float | None:
    """Convert to float, mapping NaN/None/garbage to None."""
    if value is None or pd.isna(value):
        return None
    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def yahoo_symbol(ticker: str) -> str:
    """Yahoo uses BRK-B where the ledger stores BRK.B"""
    return ticker.upper().replace(".", "-")


class YFinanceProvider(MarketDataProvider):
    """Market data provider using Yahoo Finance (yfinance library)."""

    def __init__(self):
        """Initialize YFinance provider."""
        logger.info("Initialized YFinance market data provider")

    def _last_traded_price(self, stock: yf.Ticker) -> float | None:
        try:
            return _safe_float(stock.fast_info.last_price)
        except Exception as e:
            logger.debug(f"fast_info unavailable for {stock.ticker}: {e}")
            return None

    def get_price_series(self, ticker: str, period: str = "1mo", interval: str = "1d") -> PriceSeries:
        """
        Get daily opens/closes from Yahoo Finance.

        Raises:
            Exception: If data retrieval fails or no bars are returned
        """
        symbol = yahoo_symbol(ticker)
        try:
            stock = yf.Ticker(symbol)
            df = stock.history(period=period, interval=interval)

            if df.empty:
                raise Exception(f"No historical data available for {ticker}")
            for col in ("Open", "Close"):
                if col not in df.columns:
                    raise Exception(f"Missing required column '{col}' in historical data")

            index = df.index
            tz = str(index.tz) if getattr(index, "tz", None) is not None else const.DEFAULT_EXCHANGE_TZ
            if getattr(index, "tz", None) is None:
                index = index.tz_localize(tz)
            timestamps = [ts.to_pydatetime().astimezone(timezone.utc) for ts in index]

            series = PriceSeries(
                symbol=ticker.upper(),
                timestamps=timestamps,
                opens=[_safe_float(v) for v in df["Open"].tolist()],
                closes=[_safe_float(v) for v in df["Close"].tolist()],
                last_price=self._last_traded_price(stock),
                tz=tz,
            )

            logger.debug(f"Retrieved {len(series)} bars for {ticker} (period={period}, interval={interval})")
            return series

        except Exception as e:
            logger.error(f"Error fetching price series for {ticker}: {e}", exc_info=True)
            raise Exception(f"Failed to retrieve price series for {ticker}: {e}")
