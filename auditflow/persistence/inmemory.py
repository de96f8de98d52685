"""In-memory implementation of the job repository."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from ..contracts import AutomationJob, JobStatus
from ..models import AutomationArtifact
from .repository import JobRepository

logger = logging.getLogger(__name__)


class InMemoryJobRepository(JobRepository):
    """Store job state in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts.
    """

    def __init__(self) -> None:
        self._jobs: Dict[str, AutomationJob] = {}
        self._artifacts: Dict[str, AutomationArtifact] = {}

    # ------------------------------------------------------------------
    async def create_job(self, job: AutomationJob) -> bool:
        if job.id in self._jobs:
            return False
        self._jobs[job.id] = job.model_copy(deep=True)
        return True

    async def get_job(self, job_id: str) -> Optional[AutomationJob]:
        job = self._jobs.get(job_id)
        return job.model_copy(deep=True) if job else None

    async def update_progress(
        self,
        job_id: str,
        progress: int,
        status: JobStatus,
        error_message: Optional[str] = None,
    ) -> bool:
        job = self._jobs.get(job_id)
        if not job:
            logger.warning(f"Progress update for unknown job_id={job_id}")
            return False
        if job.status.is_terminal:
            return False
        if (job.progress, job.status, job.error_message) == (progress, status, error_message):
            return False
        job.progress = progress
        job.status = status
        job.error_message = error_message
        job.updated_at = datetime.now(timezone.utc)
        return True

    async def save_artifact(self, job_id: str, artifact: AutomationArtifact) -> bool:
        job = self._jobs.get(job_id)
        if not job or job.status.is_terminal:
            return False
        self._artifacts[job_id] = artifact.model_copy(deep=True)
        job.workflow = artifact.workflow_json
        job.updated_at = datetime.now(timezone.utc)
        return True

    async def get_artifact(self, job_id: str) -> Optional[AutomationArtifact]:
        return self._artifacts.get(job_id)

    async def list_jobs(self, status: Optional[JobStatus] = None) -> list[AutomationJob]:
        return [
            job.model_copy(deep=True)
            for job in self._jobs.values()
            if status is None or job.status == status
        ]
