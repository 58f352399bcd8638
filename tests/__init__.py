"""
Test suite for the ticker room assistant

Unit tests for the mention ledger, backfill, aggregation, gainers, context log
and question answering. Tests mirror the modules in src/.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import sys
import os

# Add src directory to Python path so tests can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'src')))
