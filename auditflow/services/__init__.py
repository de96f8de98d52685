"""External services used by the generators."""

from .workflow_builder import (
    BuildResult,
    WorkflowBuilderClient,
    WorkflowBuilderService,
    builder_session,
)

__all__ = [
    "BuildResult",
    "WorkflowBuilderClient",
    "WorkflowBuilderService",
    "builder_session",
]
