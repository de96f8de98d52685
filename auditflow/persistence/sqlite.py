"""SQLite implementation of the job repository."""

from __future__ import annotations

import asyncio
import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from ..contracts import AutomationJob, JobStatus
from ..models import AutomationArtifact
from .repository import JobRepository

_TERMINAL = (JobStatus.completed.value, JobStatus.failed.value)

_JOB_COLUMNS = (
    "id, request, status, progress, workflow, error_message, created_at, updated_at"
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


_SCHEMA = """
CREATE TABLE IF NOT EXISTS jobs (
    id TEXT PRIMARY KEY,
    request TEXT NOT NULL,
    status TEXT NOT NULL,
    progress INTEGER NOT NULL DEFAULT 0,
    workflow TEXT,
    error_message TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS artifacts (
    job_id TEXT PRIMARY KEY,
    artifact TEXT NOT NULL,
    saved_at TEXT NOT NULL
);
"""


class SQLiteJobRepository(JobRepository):
    """Job sink backed by a single SQLite file.

    The request payload is stored as JSON next to the mutable columns
    (status, progress, error, workflow). Statements run on a worker thread
    so the event loop never blocks on disk I/O.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        with self._conn:
            self._conn.executescript(_SCHEMA)

    def close(self) -> None:
        self._conn.close()

    def _execute(self, query: str, *params: Any) -> int:
        with self._conn:
            return self._conn.execute(query, params).rowcount

    def _fetchone(self, query: str, *params: Any) -> sqlite3.Row | None:
        return self._conn.execute(query, params).fetchone()

    def _fetchall(self, query: str, *params: Any) -> list[sqlite3.Row]:
        return self._conn.execute(query, params).fetchall()

    @staticmethod
    def _to_job(row: sqlite3.Row) -> AutomationJob:
        data = json.loads(row["request"])
        data.update(
            id=row["id"],
            status=row["status"],
            progress=row["progress"],
            workflow=json.loads(row["workflow"]) if row["workflow"] else None,
            error_message=row["error_message"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
        return AutomationJob.model_validate(data)

    async def create_job(self, job: AutomationJob) -> bool:
        request = job.model_dump(
            mode="json",
            include={"process_data", "automation_opportunities", "automation_type", "preferences"},
        )
        inserted = await asyncio.to_thread(
            self._execute,
            f"INSERT OR IGNORE INTO jobs ({_JOB_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            job.id,
            json.dumps(request),
            job.status.value,
            job.progress,
            json.dumps(job.workflow) if job.workflow is not None else None,
            job.error_message,
            job.created_at.isoformat(),
            job.updated_at.isoformat(),
        )
        return inserted > 0

    async def get_job(self, job_id: str) -> Optional[AutomationJob]:
        row = await asyncio.to_thread(
            self._fetchone, f"SELECT {_JOB_COLUMNS} FROM jobs WHERE id = ?", job_id
        )
        return self._to_job(row) if row else None

    async def update_progress(
        self,
        job_id: str,
        progress: int,
        status: JobStatus,
        error_message: Optional[str] = None,
    ) -> bool:
        status_value = JobStatus(status).value
        updated = await asyncio.to_thread(
            self._execute,
            """
            UPDATE jobs
            SET progress = ?, status = ?, error_message = ?, updated_at = ?
            WHERE id = ?
              AND status NOT IN (?, ?)
              AND NOT (progress = ? AND status = ? AND error_message IS ?)
            """,
            progress,
            status_value,
            error_message,
            _now(),
            job_id,
            *_TERMINAL,
            progress,
            status_value,
            error_message,
        )
        return updated > 0

    async def save_artifact(self, job_id: str, artifact: AutomationArtifact) -> bool:
        row = await asyncio.to_thread(
            self._fetchone, "SELECT status FROM jobs WHERE id = ?", job_id
        )
        if not row or row["status"] in _TERMINAL:
            return False
        await asyncio.to_thread(
            self._execute,
            """
            INSERT INTO artifacts (job_id, artifact, saved_at) VALUES (?, ?, ?)
            ON CONFLICT(job_id) DO UPDATE SET artifact = excluded.artifact, saved_at = excluded.saved_at
            """,
            job_id,
            artifact.model_dump_json(),
            _now(),
        )
        await asyncio.to_thread(
            self._execute,
            "UPDATE jobs SET workflow = ?, updated_at = ? WHERE id = ?",
            json.dumps(artifact.workflow_json),
            _now(),
            job_id,
        )
        return True

    async def get_artifact(self, job_id: str) -> Optional[AutomationArtifact]:
        row = await asyncio.to_thread(
            self._fetchone, "SELECT artifact FROM artifacts WHERE job_id = ?", job_id
        )
        return AutomationArtifact.model_validate_json(row["artifact"]) if row else None

    async def list_jobs(self, status: Optional[JobStatus] = None) -> list[AutomationJob]:
        if status is None:
            rows = await asyncio.to_thread(
                self._fetchall, f"SELECT {_JOB_COLUMNS} FROM jobs ORDER BY created_at"
            )
        else:
            rows = await asyncio.to_thread(
                self._fetchall,
                f"SELECT {_JOB_COLUMNS} FROM jobs WHERE status = ? ORDER BY created_at",
                JobStatus(status).value,
            )
        return [self._to_job(row) for row in rows]
