"""Queue interface the dispatcher and worker share."""

from __future__ import annotations

import abc
from typing import AsyncIterator, Generic, Optional, Tuple, TypeVar

from ..contracts import JobMessage

RawMessageT = TypeVar("RawMessageT")


class BaseTransport(Generic[RawMessageT], metaclass=abc.ABCMeta):
    """Delivers :class:`JobMessage` envelopes between dispatchers and workers.

    ``RawMessageT`` is whatever handle the backend needs to settle a delivery
    later through :meth:`ack` or :meth:`nack`.
    """

    async def connect(self) -> None:
        return None

    async def disconnect(self) -> None:
        return None

    @abc.abstractmethod
    async def publish(self, topic: str, message: JobMessage) -> None:
        """Enqueue ``message`` on ``topic``."""
        raise NotImplementedError

    @abc.abstractmethod
    def subscribe(
        self, topic: str, lifespan: Optional[float] = None
    ) -> AsyncIterator[Tuple[RawMessageT, JobMessage]]:
        """Yield ``(raw delivery, job message)`` pairs from ``topic``.

        Stops once ``lifespan`` seconds have elapsed; ``None`` keeps the
        subscription open for the life of the process.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def ack(self, raw_message: RawMessageT) -> None:
        """Settle a delivery as processed."""
        raise NotImplementedError

    async def nack(self, raw_message: RawMessageT, requeue: bool = True) -> None:
        """Settle a delivery as not processed; backends without requeue just ack."""
        await self.ack(raw_message)
