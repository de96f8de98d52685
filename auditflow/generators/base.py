"""Strategy interface and shared helpers for workflow generation."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Protocol

from pydantic import BaseModel

from ..contracts import AutomationJob
from ..models import ComplexityAssessment, GeneratedWorkflow, OrchestrationPlan
from ..registry import REGISTRY, NodeTypeRegistry
from ..validation import validate_workflow

logger = logging.getLogger(__name__)

X_ORIGIN = 250
X_STEP = 220
Y_ORIGIN = 300
Y_STEP = 160


class GenerationOutcome(BaseModel):
    """Tagged result of one strategy: a workflow or a failure reason."""

    strategy: str
    workflow: Optional[GeneratedWorkflow] = None
    reason: str = ""

    @property
    def ok(self) -> bool:
        return self.workflow is not None

    @classmethod
    def success(cls, strategy: str, workflow: GeneratedWorkflow) -> "GenerationOutcome":
        return cls(strategy=strategy, workflow=workflow)

    @classmethod
    def failure(cls, strategy: str, reason: str) -> "GenerationOutcome":
        return cls(strategy=strategy, reason=reason)


class GenerationStrategy(Protocol):
    name: str

    async def generate(
        self,
        plan: OrchestrationPlan,
        job: AutomationJob,
        assessment: ComplexityAssessment,
    ) -> GenerationOutcome:
        """Produce a workflow, reporting failures as an outcome rather than raising."""


def position(column: int, row: int = 0) -> List[int]:
    return [X_ORIGIN + X_STEP * column, Y_ORIGIN + Y_STEP * row]


def unique_name(name: str, taken: Iterable[str]) -> str:
    taken = set(taken)
    if name not in taken:
        return name
    i = 2
    while f"{name} {i}" in taken:
        i += 1
    return f"{name} {i}"


def finalize(
    strategy: str,
    workflow: GeneratedWorkflow,
    registry: NodeTypeRegistry = REGISTRY,
    enhancements: Optional[List[str]] = None,
) -> GenerationOutcome:
    """Validate ``workflow`` and stamp generation metadata into ``meta``."""

    result = validate_workflow(workflow, registry)
    workflow.meta.update(
        {
            "generationStrategy": strategy,
            "validation": {"valid": result.valid, "errors": list(result.errors)},
        }
    )
    if enhancements is not None:
        workflow.meta["enhancements"] = list(enhancements)
    if not result.valid:
        logger.warning(f"{strategy} produced an invalid workflow: {result.errors}")
        return GenerationOutcome.failure(
            strategy, f"workflow failed validation: {'; '.join(result.errors)}"
        )
    return GenerationOutcome.success(strategy, workflow)


__all__ = [
    "GenerationOutcome",
    "GenerationStrategy",
    "finalize",
    "position",
    "unique_name",
]
