"""
Async processing queues.

This package contains the single-consumer queue that serialises writes
to the mention ledger.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""
