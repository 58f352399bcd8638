"""
Market data providers.

This package contains provider implementations for fetching daily price
series used by the gainers ranking.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""
