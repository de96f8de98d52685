"""Job contracts exchanged between the intake layer, the queue and the worker."""

from __future__ import annotations

import enum
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, enum.Enum):
    queued = "queued"
    processing = "processing"
    completed = "completed"
    failed = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.completed, JobStatus.failed)


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )


class BusinessContext(_CamelModel):
    industry: Optional[str] = None
    department: Optional[str] = None
    volume: Optional[str] = None
    complexity: Optional[str] = None


class ProcessData(_CamelModel):
    """Business-process analysis captured upstream."""

    process_description: str = ""
    answers: Dict[str, Any] = Field(default_factory=dict)
    business_context: BusinessContext = Field(default_factory=BusinessContext)
    industry: Optional[str] = None
    expected_volume: Optional[str] = None

    @property
    def effective_industry(self) -> str:
        return self.business_context.industry or self.industry or ""

    @property
    def effective_volume(self) -> str:
        return self.business_context.volume or self.expected_volume or ""


class AutomationOpportunity(_CamelModel):
    """One step of the audited process that can be automated."""

    step_description: str = ""
    automation_solution: str = ""
    priority: Optional[str] = None

    def text(self) -> str:
        return f"{self.step_description} {self.automation_solution}".strip()


class JobRequest(_CamelModel):
    """Intake payload enqueued by the web layer."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    process_data: ProcessData = Field(default_factory=ProcessData)
    automation_opportunities: List[AutomationOpportunity] = Field(default_factory=list)
    automation_type: str = "n8n"
    preferences: Dict[str, Any] = Field(default_factory=dict)


class AutomationJob(JobRequest):
    """A unit of automation-generation work and its progress."""

    status: JobStatus = JobStatus.queued
    progress: int = Field(default=0, ge=0, le=100)
    workflow: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @classmethod
    def from_request(cls, request: JobRequest) -> "AutomationJob":
        return cls.model_validate(request.model_dump())

    def opportunity_texts(self) -> List[str]:
        return [op.text().lower() for op in self.automation_opportunities]


class JobMessage(BaseModel):
    """Envelope carried over the queue for one job delivery."""

    message_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    job: AutomationJob
    attempt: int = 1
    timestamp: datetime = Field(default_factory=_utcnow)

    @property
    def job_id(self) -> str:
        return self.job.id

    def to_json(self) -> str:
        """Serialize message to JSON."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, data: str) -> "JobMessage":
        """Deserialize message from JSON."""
        return cls.model_validate_json(data)

    def bump_attempt(self) -> "JobMessage":
        """Return a fresh delivery of the same job with the attempt counter raised."""
        logger.debug(f"Bumping delivery attempt for job_id={self.job_id} to {self.attempt + 1}")
        return JobMessage(job=self.job, attempt=self.attempt + 1)
