from __future__ import annotations

import asyncio
import logging
import threading

from modules.snapshot.adapters.rpc.dispatcher import notification

logger = logging.getLogger(__name__)


class NotificationBroker:
    """Fans JSON-RPC notifications out to connected SSE subscribers.

    `publish` is called from worker threads (tool handlers run in the
    threadpool), so messages are handed to each subscriber's event loop.
    """

    def __init__(self, max_queue_size: int = 100) -> None:
        self._max_queue_size = max_queue_size
        self._subscribers: list[tuple[asyncio.Queue, asyncio.AbstractEventLoop]] = []
        self._lock = threading.Lock()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue_size)
        with self._lock:
            self._subscribers.append((queue, asyncio.get_running_loop()))
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        with self._lock:
            self._subscribers = [entry for entry in self._subscribers if entry[0] is not queue]

    def publish(self, method: str, params: dict) -> None:
        message = notification(method, params)
        with self._lock:
            subscribers = list(self._subscribers)
        for queue, loop in subscribers:
            try:
                loop.call_soon_threadsafe(_offer, queue, message)
            except RuntimeError:
                # Loop already closed; the subscriber is gone.
                self.unsubscribe(queue)


def _offer(queue: asyncio.Queue, message: dict) -> None:
    if queue.full():
        # Slow consumer: drop the oldest pending message.
        queue.get_nowait()
        logger.warning("sse subscriber queue full, dropped oldest notification")
    queue.put_nowait(message)
