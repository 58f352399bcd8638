"""
Market Data Factory with Fallback Support

Provides centralized creation and management of market data providers with
automatic fallback when providers fail or hit rate limits.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import logging

import constants as const
from providers.market_data_provider import MarketDataProvider, PriceSeries
from providers.yfinance_provider import YFinanceProvider


logger = logging.getLogger(__name__)


class MarketDataFactory:
    """
    Factory for creating and managing market data providers with fallback support.

    Features:
    - Singleton pattern for provider instances
    - Automatic fallback to alternative providers on failure
    - Rate limit detection for logging

    Usage:
        provider = MarketDataFactory.get_provider()
        series = MarketDataFactory.get_price_series_with_fallback("AAPL", "1mo")
    """

    # Provider classes by name
    _registry: dict[str, type[MarketDataProvider]] = {
        "yfinance": YFinanceProvider,
    }

    # Singleton instances (one per provider type)
    _providers: dict[str, MarketDataProvider] = {}

    @classmethod
    def register(cls, name: str, provider_class: type[MarketDataProvider]) -> None:
        """Make an additional provider available by name."""
        cls._registry[name.lower()] = provider_class

    @classmethod
    def get_provider(cls, provider_name: str | None = None) -> MarketDataProvider:
        """
        Get a market data provider instance.

        Args:
            provider_name: Registered provider name. If None, uses const.MARKET_DATA_PROVIDER

        Returns:
            MarketDataProvider instance

        Raises:
            Exception: If provider cannot be created
        """
        provider_name = (provider_name or const.MARKET_DATA_PROVIDER or "yfinance").lower()

        # Return cached instance if available
        if provider_name in cls._providers:
            return cls._providers[provider_name]

        provider_class = cls._registry.get(provider_name)
        if provider_class is None:
            logger.warning(f"Unknown market data provider '{provider_name}', using yfinance")
            provider_name = "yfinance"
            provider_class = YFinanceProvider

        try:
            provider = provider_class()
            cls._providers[provider_name] = provider
            logger.info(f"Initialized {provider_name} market data provider")
            return provider

        except Exception as e:
            logger.error(f"Failed to create {provider_name} provider: {e}")
            raise

    @classmethod
    def get_fallback_providers(cls) -> list[MarketDataProvider]:
        """
        Get list of providers in priority order: configured default first, then the rest.
        """
        primary_name = (const.MARKET_DATA_PROVIDER or "yfinance").lower()
        provider_order = [primary_name] + [p for p in cls._registry if p != primary_name]

        providers = []
        for name in provider_order:
            try:
                provider = cls.get_provider(name)
                if provider not in providers:
                    providers.append(provider)
            except Exception as e:
                logger.warning(f"Could not initialize {name} provider: {e}")
                continue

        if not providers:
            raise Exception("No market data providers available")

        return providers

    @classmethod
    def _is_rate_limit_error(cls, error: Exception) -> bool:
        """Check if error is due to rate limiting."""
        error_str = str(error).lower()
        rate_limit_indicators = [
            "rate limit",
            "429",
            "too many requests",
            "quota exceeded",
            "limit exceeded",
            "throttle",
        ]
        return any(indicator in error_str for indicator in rate_limit_indicators)

    @classmethod
    def get_price_series_with_fallback(cls, ticker: str, period: str = "1mo", interval: str = "1d") -> PriceSeries:
        """
        Get a price series with automatic fallback on failure.

        Raises:
            Exception: If all providers fail
        """
        providers = cls.get_fallback_providers()
        last_error = None

        for provider in providers:
            provider_name = provider.__class__.__name__
            try:
                series = provider.get_price_series(ticker, period, interval)
                if len(series) > 0:
                    logger.debug(f"Got price series for {ticker} from {provider_name} ({len(series)} bars)")
                    return series
                logger.warning(f"{provider_name} returned empty series for {ticker}")
                continue

            except Exception as e:
                last_error = e
                if cls._is_rate_limit_error(e):
                    logger.warning(f"{provider_name} rate limited for {ticker}, trying fallback")
                else:
                    logger.warning(f"{provider_name} failed for {ticker}: {e}")
                continue

        # All providers failed
        raise Exception(f"All providers failed to get price series for {ticker}. Last error: {last_error}")

    @classmethod
    def reset(cls):
        """Reset factory state (mainly for testing)."""
        cls._providers.clear()
        logger.info("Market data factory reset")
