"""
Persist Worker - Ordered background writes of cart snapshots.

Each mutation enqueues the full serialized cart; a single task applies
the snapshots to the store one at a time, in the order they were queued.
A failed write is logged and dropped: the next mutation's snapshot is
the only re-sync.
"""

import asyncio
from typing import Optional

from gomarketplace.errors import ERROR_SESSION_NOT_STARTED, CartSessionError
from gomarketplace.logging import get_logger, sanitize_id_for_logging

from .storage import CartStore

logger = get_logger(__name__)


class CartPersistWorker:
    """Single consumer of a FIFO queue of (key, snapshot) writes."""

    def __init__(self, store: CartStore, name: str = "cart-persist"):
        self.store = store
        self.name = name
        self._queue: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None
        self.failed_writes = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the worker task on the running event loop."""
        if self.running:
            return
        self._queue = asyncio.Queue()
        self._task = asyncio.create_task(self._run(), name=self.name)

    def enqueue(self, key: str, value: str) -> None:
        """Queue a snapshot write; returns immediately."""
        if not self.running:
            raise CartSessionError(ERROR_SESSION_NOT_STARTED)
        self._queue.put_nowait((key, value))

    async def flush(self) -> None:
        """Wait until every queued snapshot has been attempted."""
        if self._queue is not None and self.running:
            await self._queue.join()

    async def close(self) -> None:
        """Flush pending writes, then stop the worker."""
        if self._task is None:
            return
        await self.flush()
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self) -> None:
        while True:
            key, value = await self._queue.get()
            try:
                await self.store.set(key, value)
                logger.debug(f"Persisted cart {sanitize_id_for_logging(key)} ({len(value)} bytes)")
            except Exception as e:
                self.failed_writes += 1
                logger.error(
                    f"Failed to persist cart {sanitize_id_for_logging(key)}: {e}",
                    exc_info=True,
                )
            finally:
                self._queue.task_done()
