"""Queue worker that feeds delivered jobs to the job processor."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, List, Optional

from .contracts import JobMessage
from .processor import JobOutcome, JobProcessor
from .transports import BaseTransport
from .utils.retry import schedule_retry

logger = logging.getLogger(__name__)


class JobWorker:
    """Pulls one job at a time and processes it with at-least-once semantics.

    A delivery whose processing raises is republished with its attempt
    counter raised, after an exponential backoff, until ``max_deliveries``
    is reached. The last failed delivery marks the job ``failed`` before the
    message is dropped, so no job is left ``processing``.
    """

    def __init__(
        self,
        transport: BaseTransport,
        processor: JobProcessor,
        topic: str = "automation-jobs",
        max_deliveries: int = 3,
        backoff: Callable[[int], Awaitable[None]] = schedule_retry,
    ) -> None:
        self._transport = transport
        self._processor = processor
        self.topic = topic
        self.max_deliveries = max_deliveries
        self._backoff = backoff
        self.outcomes: List[JobOutcome] = []
        self.dropped: List[JobMessage] = []

    async def handle(self, message: JobMessage) -> Optional[JobOutcome]:
        """Process a single delivery; returns ``None`` when it was retried or dropped."""
        try:
            outcome = await self._processor.process(message.job)
        except Exception as e:
            if message.attempt >= self.max_deliveries:
                logger.exception(
                    f"Dropping job_id={message.job_id} after {message.attempt} deliveries"
                )
                await self._processor.mark_failed(
                    message.job_id,
                    f"Gave up after {message.attempt} deliveries: {type(e).__name__}: {e}",
                )
                self.dropped.append(message)
                return None
            logger.warning(
                f"Delivery {message.attempt} of job_id={message.job_id} raised; scheduling retry",
                exc_info=True,
            )
            await self._backoff(message.attempt)
            await self._transport.publish(self.topic, message.bump_attempt())
            return None

        self.outcomes.append(outcome)
        return outcome

    async def start(self, lifespan: Optional[float] = None) -> None:
        """Consume deliveries from ``topic`` until ``lifespan`` elapses."""
        logger.info(f"Worker listening on topic {self.topic}")
        async for raw_message, message in self._transport.subscribe(
            self.topic, lifespan=lifespan
        ):
            logger.info(
                f"Received job_id={message.job_id} (delivery {message.attempt})"
            )
            await self.handle(message)
            await self._transport.ack(raw_message)
