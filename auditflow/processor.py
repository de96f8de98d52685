"""Job processor: drives one automation job from intake to a persisted artifact."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel

from .complexity import ComplexityAssessor
from .config import AutomationConfig, load_config
from .constants import (
    PLATFORM,
    PROGRESS_COMPLETED,
    PROGRESS_GENERATED,
    PROGRESS_PLANNED,
    PROGRESS_STARTED,
)
from .context import ContextOptimizer, CostEstimate, estimate_cost
from .contracts import AutomationJob, JobStatus
from .errors import AutomationError, SchemaError
from .generators import WorkflowGenerator, default_strategies
from .knowledge import PatternAnalyzer, load_corpus
from .llm import CompletionProvider, CostMonitor, PydanticAICompletionProvider
from .models import AutomationArtifact, ComplexityAssessment, GeneratedWorkflow, WorkflowNode
from .persistence import JobRepository, get_repository
from .planning import OrchestrationPlanGenerator, PlanResult
from .registry import REGISTRY, NodeTypeRegistry
from .services import WorkflowBuilderClient
from .validation import validate_workflow

logger = logging.getLogger(__name__)

_PLACEHOLDER_PREFIX = "{{"


class JobOutcome(BaseModel):
    """Terminal result of :meth:`JobProcessor.process`."""

    job_id: str
    status: JobStatus
    progress: int
    artifact: Optional[AutomationArtifact] = None
    error_message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == JobStatus.completed


def _checklist_items(node: WorkflowNode, registry: NodeTypeRegistry) -> List[str]:
    node_name = node.name
    descriptor = registry.by_type(node.type)
    items: List[str] = []
    for kind in (node.credentials or {}):
        items.append(f"**{node_name}**: create `{kind}` credentials and select them on the node")
    if descriptor is None:
        return items
    if descriptor.key == "webhook":
        path = node.parameters.get("path", "")
        items.append(f"**{node_name}**: copy the production URL for path `{path}` into the calling system")
        if node.parameters.get("authentication") == "headerAuth":
            items.append(f"**{node_name}**: set the header token expected by the webhook")
    elif descriptor.key == "schedule":
        items.append(f"**{node_name}**: confirm the schedule interval matches the process cadence")
    elif descriptor.category == "ai":
        items.append(f"**{node_name}**: review the prompt and model choice before activating")
    elif descriptor.key == "http":
        url = node.parameters.get("url") or "the target URL"
        items.append(f"**{node_name}**: verify {url} and the authentication scheme")
    elif descriptor.key in ("if", "switch"):
        items.append(f"**{node_name}**: check the routing conditions against real sample data")
    return items


def _is_trigger(node: WorkflowNode, registry: NodeTypeRegistry) -> bool:
    descriptor = registry.by_type(node.type)
    return descriptor is not None and descriptor.is_trigger


def _placeholders(value: Any, found: List[str]) -> None:
    if isinstance(value, str):
        if value.startswith(_PLACEHOLDER_PREFIX) and value not in found:
            found.append(value)
    elif isinstance(value, dict):
        for item in value.values():
            _placeholders(item, found)
    elif isinstance(value, list):
        for item in value:
            _placeholders(item, found)


def render_instructions(
    workflow: GeneratedWorkflow, registry: NodeTypeRegistry = REGISTRY
) -> str:
    """Markdown import, configuration and testing guide for ``workflow``."""

    lines = [
        f"# {workflow.name}",
        "",
        workflow.description,
        "",
        "## Import",
        "",
        "1. Open your n8n instance and create a new workflow.",
        "2. Choose **Import from File** and select the downloaded JSON.",
        "3. Save the workflow; it is imported inactive.",
        "",
        "## Configuration checklist",
        "",
    ]
    checklist: List[str] = []
    for node in workflow.nodes:
        checklist.extend(_checklist_items(node, registry))
    lines.extend(f"- [ ] {item}" for item in checklist or ["No node-specific configuration required"])

    placeholders: List[str] = []
    _placeholders([node.to_wire() for node in workflow.nodes], placeholders)
    if placeholders:
        lines += ["", "Replace these placeholders before activating:", ""]
        lines.extend(f"- `{value}`" for value in placeholders)

    trigger = next((node for node in workflow.nodes if _is_trigger(node, registry)), None)
    lines += [
        "",
        "## Testing",
        "",
        f"1. Click **Execute Workflow** and fire the trigger{f' ({trigger.name})' if trigger else ''} with sample data.",
        "2. Inspect each node's output and confirm the data reaches the final step.",
        "3. Activate the workflow once a test execution succeeds.",
        "",
    ]
    return "\n".join(lines)


class JobProcessor:
    """Sequences plan synthesis, generation, validation and persistence for one job.

    Progress is written at fixed checkpoints. Pipeline failures
    (:class:`AutomationError`) mark the job ``failed`` and are returned as a
    failed outcome; anything else propagates so the queue can redeliver.
    Re-running a job that already reached a terminal state returns the stored
    outcome without side effects.
    """

    def __init__(
        self,
        repository: JobRepository,
        planner: OrchestrationPlanGenerator,
        generator: WorkflowGenerator,
        registry: NodeTypeRegistry = REGISTRY,
        assessor: Optional[ComplexityAssessor] = None,
        clock: Callable[[], float] = time.monotonic,
        optimizer: Optional[ContextOptimizer] = None,
    ) -> None:
        self.repository = repository
        self.planner = planner
        self.generator = generator
        self.registry = registry
        self.assessor = assessor or planner.assessor
        self.optimizer = optimizer or ContextOptimizer(self.assessor)
        self.clock = clock

    async def _stored_outcome(self, job: AutomationJob) -> JobOutcome:
        return JobOutcome(
            job_id=job.id,
            status=job.status,
            progress=job.progress,
            artifact=await self.repository.get_artifact(job.id),
            error_message=job.error_message,
        )

    def build_artifact(
        self,
        workflow: GeneratedWorkflow,
        plan_result: PlanResult,
        assessment: ComplexityAssessment,
        elapsed: float,
        estimate: Optional[CostEstimate] = None,
    ) -> AutomationArtifact:
        metadata: Dict[str, Any] = {
            "strategy": workflow.meta.get("generationStrategy"),
            "nodeCount": len(workflow.nodes),
            "generationTimeSeconds": round(elapsed, 3),
            "complexity": assessment.complexity,
            "complexityScore": assessment.score,
            "modelTier": assessment.recommended_tier,
            "promptTier": plan_result.prompt_tier,
            "enhancements": workflow.meta.get("enhancements", []),
            "attempts": workflow.meta.get("attempts", []),
            "plan": plan_result.plan.to_wire(),
        }
        if estimate is not None:
            metadata["estimatedCost"] = {
                "tier": estimate.tier,
                "inputTokens": estimate.estimated_input_tokens,
                "outputTokens": estimate.estimated_output_tokens,
                "usd": round(estimate.total_cost, 4),
            }
        return AutomationArtifact(
            name=workflow.name,
            description=workflow.description,
            platform=PLATFORM,
            workflow_json=workflow.to_wire(),
            instructions=render_instructions(workflow, self.registry),
            metadata=metadata,
        )

    async def process(self, job: AutomationJob) -> JobOutcome:
        stored = await self.repository.get_job(job.id)
        if stored is None:
            await self.repository.create_job(job)
        elif stored.status.is_terminal:
            logger.info(f"Job job_id={job.id} already {stored.status.value}; skipping")
            return await self._stored_outcome(stored)

        started = self.clock()
        # A redelivered job resumes without moving its progress backwards.
        progress = max(stored.progress, PROGRESS_STARTED) if stored else PROGRESS_STARTED
        await self.repository.update_progress(job.id, progress, JobStatus.processing)
        logger.info(f"Processing job_id={job.id}")

        try:
            if job.automation_type != PLATFORM:
                raise AutomationError(f"Unsupported automation type: {job.automation_type}")

            plan_result = await self.planner.generate(job)
            progress = PROGRESS_PLANNED
            await self.repository.update_progress(job.id, progress, JobStatus.processing)

            assessment = self.assessor.assess(job, plan_result.plan)
            workflow = await self.generator.generate(plan_result.plan, job, assessment)
            result = validate_workflow(workflow, self.registry)
            if not result.valid:
                raise SchemaError("Generated workflow failed validation", result.errors)
            progress = PROGRESS_GENERATED
            await self.repository.update_progress(job.id, progress, JobStatus.processing)

            estimate = estimate_cost(
                self.optimizer.optimize(job, plan_result.plan, assessment),
                assessment.recommended_tier,
            )
            artifact = self.build_artifact(
                workflow, plan_result, assessment, self.clock() - started, estimate
            )
            await self.repository.save_artifact(job.id, artifact)
        except AutomationError as e:
            logger.error(f"Job job_id={job.id} failed at {progress}%: {e}")
            await self.repository.update_progress(job.id, progress, JobStatus.failed, str(e))
            return JobOutcome(
                job_id=job.id, status=JobStatus.failed, progress=progress, error_message=str(e)
            )

        await self.repository.update_progress(job.id, PROGRESS_COMPLETED, JobStatus.completed)
        logger.info(
            f"Job job_id={job.id} completed with strategy "
            f"{artifact.metadata['strategy']} ({artifact.metadata['nodeCount']} nodes)"
        )
        return JobOutcome(
            job_id=job.id, status=JobStatus.completed, progress=PROGRESS_COMPLETED, artifact=artifact
        )

    async def mark_failed(self, job_id: str, error_message: str) -> Optional[JobOutcome]:
        """Fail a job that will not be delivered again, keeping its last checkpoint.

        Returns ``None`` when the job is unknown; a job that already reached a
        terminal state is left as it is.
        """
        stored = await self.repository.get_job(job_id)
        if stored is None:
            return None
        if stored.status.is_terminal:
            return await self._stored_outcome(stored)
        await self.repository.update_progress(
            job_id, stored.progress, JobStatus.failed, error_message
        )
        logger.error(f"Job job_id={job_id} failed at {stored.progress}%: {error_message}")
        return JobOutcome(
            job_id=job_id,
            status=JobStatus.failed,
            progress=stored.progress,
            error_message=error_message,
        )


def create_processor(
    config: Optional[AutomationConfig] = None,
    repository: Optional[JobRepository] = None,
    provider: Optional[CompletionProvider] = None,
    registry: NodeTypeRegistry = REGISTRY,
) -> JobProcessor:
    """Wire a :class:`JobProcessor` from configuration.

    The knowledge corpus is loaded once and shared by every component; the
    workflow builder strategy is only backed by a client when its url and
    token are configured.
    """

    config = config or load_config()
    repository = repository or get_repository(config=config)
    provider = provider or PydanticAICompletionProvider.from_config(
        config.llm, cost_monitor=CostMonitor()
    )
    assessor = ComplexityAssessor(registry)
    analyzer = PatternAnalyzer(load_corpus(), registry)
    optimizer = ContextOptimizer(assessor)
    strategies = default_strategies(
        provider,
        registry,
        service=WorkflowBuilderClient.from_config(config.workflow_builder),
        webhook_auth=config.webhook_auth_placeholder,
        optimizer=optimizer,
        analyzer=analyzer,
    )
    planner = OrchestrationPlanGenerator(provider, assessor=assessor, analyzer=analyzer, registry=registry)
    return JobProcessor(
        repository,
        planner,
        WorkflowGenerator(strategies, registry),
        registry,
        assessor=assessor,
        optimizer=optimizer,
    )


__all__ = ["JobOutcome", "JobProcessor", "create_processor", "render_instructions"]
