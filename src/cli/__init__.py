"""
CLI Module

Command-line interface for the ticker room assistant using Click.
Each command group is organized into its own module.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

from cli.context import context
from cli.ledger import ledger


__all__ = ["context", "ledger"]
