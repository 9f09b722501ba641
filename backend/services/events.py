import asyncio
import logging
import threading
from typing import Any, Dict, List, Tuple

from alerts import Alert

logger = logging.getLogger(__name__)


class AlarmBroadcaster:
    """
    Fans trigger events out to SSE subscribers.

    `publish` is called from the monitor thread; each subscriber queue
    belongs to an event loop, so events are handed over with
    `call_soon_threadsafe`.
    """

    def __init__(self, queue_size: int = 100):
        self._queue_size = queue_size
        self._subscribers: List[Tuple[asyncio.AbstractEventLoop, asyncio.Queue]] = []
        self._lock = threading.Lock()

    def subscribe(self) -> asyncio.Queue:
        """Must be called from inside a running event loop"""
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        with self._lock:
            self._subscribers.append((loop, queue))
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        with self._lock:
            self._subscribers = [(l, q) for l, q in self._subscribers if q is not queue]

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: Dict[str, Any]) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for loop, queue in subscribers:
            if loop.is_closed():
                self.unsubscribe(queue)
                continue
            loop.call_soon_threadsafe(self._offer, queue, event)

    def publish_trigger(self, alert: Alert) -> None:
        self.publish({"type": "alarm", "alert": alert.to_dict()})

    @staticmethod
    def _offer(queue: asyncio.Queue, event: Dict[str, Any]) -> None:
        try:
            queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("Alarm subscriber queue full, dropping event")
