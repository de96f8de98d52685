"""Job dispatcher: accepts intake requests and enqueues them for workers."""

from __future__ import annotations

import logging
from typing import Any, Dict, Union

from .contracts import AutomationJob, JobMessage, JobRequest
from .persistence import JobRepository
from .transports import BaseTransport

logger = logging.getLogger(__name__)


class JobDispatcher:
    """Service responsible for registering and publishing new jobs."""

    def __init__(
        self, transport: BaseTransport, repository: JobRepository, topic: str = "automation-jobs"
    ) -> None:
        self._transport = transport
        self._repository = repository
        self.topic = topic

    async def submit(self, request: Union[JobRequest, Dict[str, Any]]) -> str:
        """Create the queued job and publish it on ``topic``.

        Re-submitting an id that already exists does not reset the stored job,
        but the message is still published so a lost delivery can be replayed.

        Returns:
            The job identifier.
        """
        if not isinstance(request, JobRequest):
            request = JobRequest.model_validate(request)
        job = AutomationJob.from_request(request)

        created = await self._repository.create_job(job)
        if not created:
            logger.info(f"Job job_id={job.id} already registered; republishing")
            stored = await self._repository.get_job(job.id)
            if stored is not None:
                job = stored

        await self._transport.publish(self.topic, JobMessage(job=job))
        logger.info(f"Dispatched job_id={job.id} to topic {self.topic}")
        return job.id
