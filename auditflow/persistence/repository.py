"""Repository abstraction for job status and artifact persistence."""

from __future__ import annotations

from typing import Optional, Protocol

from ..contracts import AutomationJob, JobStatus
from ..models import AutomationArtifact


class JobRepository(Protocol):
    """Protocol for the job status/artifact sink.

    Writes against a job in a terminal state are ignored, and so are writes
    that would leave the stored job unchanged.
    """

    async def create_job(self, job: AutomationJob) -> bool:
        """Persist a new job; returns ``False`` when the id already exists."""

    async def get_job(self, job_id: str) -> Optional[AutomationJob]:
        """Retrieve a job by id."""

    async def update_progress(
        self,
        job_id: str,
        progress: int,
        status: JobStatus,
        error_message: Optional[str] = None,
    ) -> bool:
        """Record a progress checkpoint; returns whether anything was written."""

    async def save_artifact(self, job_id: str, artifact: AutomationArtifact) -> bool:
        """Upsert the final artifact for a job."""

    async def get_artifact(self, job_id: str) -> Optional[AutomationArtifact]:
        """Return the artifact stored for ``job_id``."""

    async def list_jobs(self, status: Optional[JobStatus] = None) -> list[AutomationJob]:
        """Return persisted jobs, optionally filtered by status."""
