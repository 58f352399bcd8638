"""
Ledger Write Queue - single consumer for ledger read-modify-write cycles

Every mutation of the ledger file (append, checkpoint advance) is submitted here
and executed by one background worker, strictly in submission order. A caller
awaits the result of its own operation; a failed operation raises in that caller
only and the worker moves on to the next item.

Operations are plain synchronous callables (file I/O); the worker runs them in a
thread so the event loop keeps serving Discord while the ledger is rewritten.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any


logger = logging.getLogger(__name__)

_STOP = object()


class LedgerWriteQueue:
    """
    Serialises ledger operations through an asyncio.Queue with a single worker.

    Architecture:
    1. submit() enqueues (operation, args, future) and awaits the future
    2. The worker pulls one item at a time and runs it via asyncio.to_thread
    3. The result or exception is delivered to the submitting caller
    4. flush() waits until everything submitted so far has run
    """

    def __init__(self, name: str = "ledger") -> None:
        self.name = name
        self.queue: asyncio.Queue | None = None
        self.worker: asyncio.Task | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

        self.stats: dict[str, Any] = {
            "submitted": 0,
            "processed": 0,
            "failed": 0,
            "total_time": 0.0,
        }

    def _ensure_worker(self) -> None:
        """Start the worker on the running loop (again, if the loop changed)."""
        loop = asyncio.get_running_loop()
        if self._loop is not loop:
            self._loop = loop
            self.queue = asyncio.Queue()
            self.worker = None
        if self.worker is None or self.worker.done():
            self.worker = loop.create_task(self._worker())
            logger.debug(f"{self.name} write queue worker started")

    async def submit(self, operation: Callable[..., Any], *args: Any) -> Any:
        """
        Run operation(*args) after every previously submitted operation.

        Returns:
            The operation's return value

        Raises:
            Whatever the operation raised
        """
        self._ensure_worker()
        assert self.queue is not None
        future = asyncio.get_running_loop().create_future()
        self.queue.put_nowait((operation, args, future, time.time()))
        self.stats["submitted"] += 1
        return await future

    async def _worker(self) -> None:
        assert self.queue is not None
        queue = self.queue
        while True:
            item = await queue.get()
            try:
                if item is _STOP:
                    break

                operation, args, future, enqueued_at = item
                start_time = time.time()
                try:
                    result = await asyncio.to_thread(operation, *args)
                except Exception as e:
                    self.stats["failed"] += 1
                    logger.error(f"{self.name} write {getattr(operation, '__name__', operation)} failed: {e}", exc_info=True)
                    if not future.done():
                        future.set_exception(e)
                else:
                    self.stats["processed"] += 1
                    if not future.done():
                        future.set_result(result)
                finally:
                    elapsed = time.time() - start_time
                    self.stats["total_time"] += elapsed
                    logger.debug(
                        f"{self.name} write done in {elapsed:.3f}s "
                        f"(waited {start_time - enqueued_at:.3f}s in queue)"
                    )
            finally:
                queue.task_done()
        logger.debug(f"{self.name} write queue worker stopped")

    async def flush(self) -> None:
        """Wait until every operation submitted so far has completed."""
        if self.queue is None or self._loop is not asyncio.get_running_loop():
            return
        await self.queue.join()

    async def stop(self) -> None:
        """Drain the queue and stop the worker."""
        if self.worker is None or self.worker.done() or self.queue is None:
            return
        self.queue.put_nowait(_STOP)
        await self.worker
        self.worker = None

    def get_stats(self) -> dict[str, Any]:
        stats = self.stats.copy()
        stats["queue_depth"] = self.queue.qsize() if self.queue else 0
        return stats
