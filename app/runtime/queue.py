from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JobMessage:
    job_id: str
    tenant_id: Optional[str] = None


JobHandler = Callable[[JobMessage], Awaitable[None]]


class InMemoryJobQueue:
    """
    In-process job queue with a single long-lived subscriber.
    Every published message is handed to the handler once; handler errors are
    logged and the drain loop keeps going.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[JobMessage] = asyncio.Queue()
        self._handler: Optional[JobHandler] = None
        self._task: Optional[asyncio.Task[None]] = None

    async def publish(self, message: JobMessage) -> None:
        logger.info("queue publish job=%s tenant=%s", message.job_id, message.tenant_id)
        await self._queue.put(message)

    def subscribe(self, handler: JobHandler) -> None:
        if self._handler is not None:
            raise RuntimeError("job queue already has a subscriber")
        self._handler = handler
        logger.info("queue subscriber registered")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def pending_count(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        if self._handler is None:
            raise RuntimeError("subscribe a handler before starting the queue")
        if self.running:
            return
        self._task = asyncio.create_task(self._drain(), name="job-queue-drain")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def join(self) -> None:
        """Wait until every published message has been handled."""
        await self._queue.join()

    async def _drain(self) -> None:
        assert self._handler is not None
        while True:
            message = await self._queue.get()
            try:
                await self._handler(message)
            except Exception:
                logger.exception("queued job %s failed", message.job_id)
            finally:
                self._queue.task_done()
