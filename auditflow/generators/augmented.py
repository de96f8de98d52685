"""Generation delegated to the external workflow-building service."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ..contracts import AutomationJob
from ..errors import AutomationError, SchemaError
from ..models import ComplexityAssessment, GeneratedWorkflow, OrchestrationPlan
from ..registry import REGISTRY, NodeTypeRegistry
from ..services import WorkflowBuilderService, builder_session
from .base import GenerationOutcome, finalize
from .enhance import apply_enhancements

logger = logging.getLogger(__name__)


def build_requirements(
    plan: OrchestrationPlan, job: AutomationJob, assessment: ComplexityAssessment
) -> Dict[str, Any]:
    """Requirements document sent to the builder service."""

    return {
        "jobId": job.id,
        "name": plan.workflow_name,
        "description": plan.description,
        "plan": plan.to_wire(),
        "opportunities": [
            op.model_dump(by_alias=True, exclude_none=True) for op in job.automation_opportunities
        ],
        "businessContext": job.process_data.business_context.model_dump(
            by_alias=True, exclude_none=True
        ),
        "complexity": assessment.complexity,
        "platform": "n8n",
    }


class CapabilityAugmentedGenerator:
    """Drafts with the builder service, then enhances and re-validates locally and remotely."""

    name = "augmented"

    def __init__(
        self,
        service: Optional[WorkflowBuilderService] = None,
        registry: NodeTypeRegistry = REGISTRY,
        webhook_auth: bool = False,
    ) -> None:
        self.service = service
        self.registry = registry
        self.webhook_auth = webhook_auth

    async def generate(
        self,
        plan: OrchestrationPlan,
        job: AutomationJob,
        assessment: ComplexityAssessment,
    ) -> GenerationOutcome:
        if self.service is None:
            return GenerationOutcome.failure(self.name, "workflow builder service is not configured")

        requirements = build_requirements(plan, job, assessment)
        try:
            async with builder_session(self.service) as service:
                draft = await service.build_intelligent_workflow(requirements)
                if not draft.validation.valid:
                    raise SchemaError("Builder draft failed remote validation", draft.validation.errors)
                try:
                    workflow = GeneratedWorkflow.model_validate(draft.workflow)
                except ValidationError as e:
                    raise SchemaError(
                        "Builder draft does not match the workflow schema",
                        [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()],
                    ) from e

                applied = apply_enhancements(workflow, job.id, self.webhook_auth, self.registry)
                outcome = finalize(self.name, workflow, self.registry, applied)
                if not outcome.ok:
                    return outcome

                remote = await service.validate_workflow(workflow.to_wire())
                if not remote.valid:
                    return GenerationOutcome.failure(
                        self.name,
                        f"enhanced workflow failed remote validation: {'; '.join(remote.errors)}",
                    )
        except AutomationError as e:
            logger.warning(f"Workflow builder unavailable for job_id={job.id}: {e}")
            return GenerationOutcome.failure(self.name, str(e))

        logger.info(f"Workflow builder produced {len(workflow.nodes)} nodes for job_id={job.id}")
        return outcome


__all__ = ["CapabilityAugmentedGenerator", "build_requirements"]
