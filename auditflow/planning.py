"""Orchestration plan synthesis with a constrained-then-general prompt fallback."""

from __future__ import annotations

import logging
from typing import List, Literal, Optional, Tuple

from pydantic import BaseModel, ValidationError

from .complexity import ComplexityAssessor
from .constants import GENERAL_PLAN_BUDGET_FACTOR
from .contracts import AutomationJob
from .errors import AutomationError, PlanGenerationError, ProviderError, SchemaError
from .knowledge import DocumentRetriever, PatternAnalyzer, load_corpus, render_docs
from .llm.base import CompletionOptions, CompletionProvider
from .llm.parsing import parse_json_object
from .models import ComplexityAssessment, OrchestrationPlan
from .prompts import constrained_plan_prompt, general_plan_prompt
from .registry import REGISTRY, NodeTypeRegistry
from .validation import validate_plan

logger = logging.getLogger(__name__)

PromptTier = Literal["constrained", "general"]


class PlanResult(BaseModel):
    plan: OrchestrationPlan
    assessment: ComplexityAssessment
    prompt_tier: PromptTier
    rejected: List[str] = []


def parse_plan(text: str) -> OrchestrationPlan:
    """Decode and structurally validate a plan, raising ``SchemaError`` on failure."""

    data = parse_json_object(text)
    result = validate_plan(data)
    if not result.valid:
        raise SchemaError("Orchestration plan failed validation", result.errors)
    try:
        return OrchestrationPlan.model_validate(data)
    except ValidationError as e:
        raise SchemaError(
            "Orchestration plan failed validation",
            [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()],
        ) from e


class OrchestrationPlanGenerator:
    """Turns a job's process description and opportunities into a plan.

    The constrained prompt is tried first with the assessed output budget and
    accepted only if its plan passes :func:`validate_plan`. Otherwise the
    general prompt runs with a larger completion budget. There is no default
    plan: if both attempts fail a :class:`PlanGenerationError` is raised.
    """

    def __init__(
        self,
        provider: CompletionProvider,
        assessor: Optional[ComplexityAssessor] = None,
        analyzer: Optional[PatternAnalyzer] = None,
        registry: NodeTypeRegistry = REGISTRY,
        retriever: Optional[DocumentRetriever] = None,
    ) -> None:
        self.provider = provider
        self.registry = registry
        self.assessor = assessor or ComplexityAssessor(registry)
        self.analyzer = analyzer or PatternAnalyzer(load_corpus(), registry)
        self.retriever = retriever or DocumentRetriever.from_registry(registry)

    def knowledge_hints(self, job: AutomationJob) -> str:
        """Reference workflows and node capabilities relevant to the description."""

        description = job.process_data.process_description
        query = " ".join([description, *job.opportunity_texts()])
        lines: List[str] = []
        similar = self.analyzer.find_similar(query, limit=2)
        if similar:
            lines.append("## Similar proven workflows")
            for match in similar:
                entry = match.entry
                sequence = (
                    " -> ".join(entry.template.node_sequence()) if entry.template else "n/a"
                )
                lines.append(f"- {entry.name}: {entry.description} [{sequence}]")
        docs = self.retriever.relevant_docs(query, top_k=4, chars_per_doc=240)
        rendered = render_docs(docs)
        if rendered:
            lines.append(rendered)
        return "\n".join(lines)

    async def _attempt(
        self, prompt: str, options: CompletionOptions
    ) -> OrchestrationPlan:
        text = await self.provider.complete(prompt, options)
        return parse_plan(text)

    async def generate(self, job: AutomationJob) -> PlanResult:
        assessment = self.assessor.assess(job)
        budget = assessment.budget
        hints = self.knowledge_hints(job)
        rejected: List[Tuple[PromptTier, str]] = []

        constrained = CompletionOptions(
            tier=assessment.recommended_tier,
            role="orchestrator",
            max_tokens=budget.output_tokens,
        )
        try:
            plan = await self._attempt(
                constrained_plan_prompt(job, hints, budget.input_tokens), constrained
            )
            logger.info(f"Constrained plan accepted for job_id={job.id} ({len(plan.steps)} steps)")
            return PlanResult(plan=plan, assessment=assessment, prompt_tier="constrained")
        except (SchemaError, ProviderError) as e:
            logger.warning(f"Constrained plan rejected for job_id={job.id}: {e}")
            rejected.append(("constrained", str(e)))

        general = constrained.model_copy(
            update={"max_tokens": int(budget.output_tokens * GENERAL_PLAN_BUDGET_FACTOR)}
        )
        try:
            plan = await self._attempt(
                general_plan_prompt(job, hints, budget.input_tokens), general
            )
        except AutomationError as e:
            rejected.append(("general", str(e)))
            detail = "; ".join(f"{tier} prompt: {reason}" for tier, reason in rejected)
            logger.error(f"Plan generation failed for job_id={job.id}: {detail}")
            raise PlanGenerationError(f"Orchestration plan generation failed ({detail})") from e

        logger.info(f"General plan accepted for job_id={job.id} ({len(plan.steps)} steps)")
        return PlanResult(
            plan=plan,
            assessment=assessment,
            prompt_tier="general",
            rejected=[reason for _, reason in rejected],
        )


__all__ = ["OrchestrationPlanGenerator", "PlanResult", "parse_plan"]
