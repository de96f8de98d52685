"""Persistence layer for automation jobs and their artifacts."""

from __future__ import annotations

from typing import Optional

from ..config import AutomationConfig, load_config
from .inmemory import InMemoryJobRepository
from .repository import JobRepository
from .sqlite import SQLiteJobRepository

_repository_instance: JobRepository | None = None


def get_repository(
    database_url: Optional[str] = None, config: Optional[AutomationConfig] = None
) -> JobRepository:
    """Factory function to obtain a job repository.

    The backend is selected from ``database_url`` when given, otherwise from
    the loaded configuration (which already honours ``AUDITFLOW_DATABASE_URL``
    and ``DATABASE_URL``). Without a database an in-memory repository is
    returned and reused for the rest of the process.
    """

    global _repository_instance
    if _repository_instance is not None and database_url is None and config is None:
        return _repository_instance

    config = config or load_config()
    database_url = database_url or config.database_url

    if not database_url:
        _repository_instance = InMemoryJobRepository()
    elif database_url.startswith("sqlite://"):
        path = database_url.replace("sqlite://", "", 1)
        _repository_instance = SQLiteJobRepository(path)
    else:
        raise ValueError(f"Unsupported database backend: {database_url}")

    return _repository_instance


__all__ = [
    "InMemoryJobRepository",
    "JobRepository",
    "SQLiteJobRepository",
    "get_repository",
]
