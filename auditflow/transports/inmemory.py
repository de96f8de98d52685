"""In-memory transport for tests and single-process runs."""

from __future__ import annotations

import asyncio
from collections import defaultdict, deque
from typing import AsyncIterator, Deque, Dict, Optional, Tuple

from ..contracts import JobMessage
from .base import BaseTransport

RawMessage = Tuple[str, str]


class InMemoryTransport(BaseTransport[RawMessage]):
    """Simple in-process queue.

    Raw messages are ``(topic, json)`` pairs so a negative acknowledgement can
    put the delivery back on the queue it came from. Only the last
    ``ack_history`` acknowledged deliveries are kept; ``ack_count`` counts all.
    """

    def __init__(self, poll_interval: float = 0.1, ack_history: int = 100) -> None:
        self._queues: Dict[str, Deque[RawMessage]] = defaultdict(deque)
        self._lock = asyncio.Lock()
        self.poll_interval = poll_interval
        self.acked: Deque[RawMessage] = deque(maxlen=ack_history)
        self.ack_count = 0

    async def publish(self, topic: str, message: JobMessage) -> None:
        """Publish message to in-memory queue."""
        async with self._lock:
            self._queues[topic].append((topic, message.to_json()))

    def pending(self, topic: str) -> int:
        return len(self._queues[topic])

    async def subscribe(
        self, topic: str, lifespan: Optional[float] = None
    ) -> AsyncIterator[Tuple[RawMessage, JobMessage]]:
        """Subscribe to messages from topic.

        Args:
            topic: The topic to subscribe to
            lifespan: Maximum time in seconds to keep the subscription open.
                If None, runs indefinitely.
        """
        loop = asyncio.get_running_loop()
        start_time = loop.time()

        while True:
            if lifespan is not None and loop.time() - start_time >= lifespan:
                break

            raw_message = None
            async with self._lock:
                if self._queues[topic]:
                    raw_message = self._queues[topic].popleft()
            if raw_message is not None:
                yield raw_message, JobMessage.from_json(raw_message[1])
                continue

            await asyncio.sleep(self.poll_interval)

    async def ack(self, raw_message: RawMessage) -> None:
        self.acked.append(raw_message)
        self.ack_count += 1

    async def nack(self, raw_message: RawMessage, requeue: bool = True) -> None:
        """Return the delivery to the back of its queue when ``requeue`` is set."""
        if not requeue:
            return
        async with self._lock:
            self._queues[raw_message[0]].append(raw_message)
