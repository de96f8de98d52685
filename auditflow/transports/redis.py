"""Redis transport for cross-process job delivery."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Optional, Tuple

try:
    import redis.asyncio as redis
except ImportError:
    redis = None

from pydantic import ValidationError

from ..config import RedisConfig
from ..contracts import JobMessage
from .base import BaseTransport

logger = logging.getLogger(__name__)

QUEUE_PREFIX = "auditflow"

# (topic, serialized JobMessage)
RawMessage = Tuple[str, str]


class RedisTransport(BaseTransport[RawMessage]):
    """Job queue on Redis lists: LPUSH publishes, BRPOP hands each job to one worker."""

    def __init__(self, settings: Optional[RedisConfig] = None, poll_timeout: int = 1) -> None:
        if redis is None:
            raise ImportError("redis package is required for RedisTransport")
        self.settings = settings or RedisConfig()
        self.poll_timeout = poll_timeout
        self._client: Optional[Any] = None

    @property
    def host(self) -> str:
        return self.settings.host

    @property
    def port(self) -> int:
        return self.settings.port

    @staticmethod
    def queue_name(topic: str) -> str:
        return f"{QUEUE_PREFIX}:{topic}"

    async def connect(self) -> None:
        self._client = redis.Redis(**self.settings.model_dump(), decode_responses=True)
        await self._client.ping()
        logger.info(f"Connected to Redis at {self.settings.host}:{self.settings.port}")

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _connection(self) -> Any:
        if self._client is None:
            await self.connect()
        return self._client

    async def publish(self, topic: str, message: JobMessage) -> None:
        client = await self._connection()
        await client.lpush(self.queue_name(topic), message.to_json())

    async def subscribe(
        self, topic: str, lifespan: Optional[float] = None
    ) -> AsyncIterator[Tuple[RawMessage, JobMessage]]:
        """Pop job messages until ``lifespan`` seconds have passed.

        Entries that do not decode as a :class:`JobMessage` are logged and
        discarded so one bad producer cannot stall the queue.
        """
        client = await self._connection()
        queue = self.queue_name(topic)
        loop = asyncio.get_running_loop()
        deadline = None if lifespan is None else loop.time() + lifespan

        while deadline is None or loop.time() < deadline:
            popped = await client.brpop(queue, timeout=self.poll_timeout)
            if not popped:
                continue
            payload = popped[1]
            try:
                message = JobMessage.from_json(payload)
            except ValidationError as e:
                logger.error(f"Discarding malformed job message on {queue}: {e}")
                continue
            yield (topic, payload), message

    async def ack(self, raw_message: RawMessage) -> None:
        # BRPOP already removed the entry.
        return None

    async def nack(self, raw_message: RawMessage, requeue: bool = True) -> None:
        if not requeue:
            return
        topic, payload = raw_message
        client = await self._connection()
        await client.rpush(self.queue_name(topic), payload)


__all__ = ["RedisTransport"]
