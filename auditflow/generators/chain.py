"""Ordered fallback over generation strategies."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

from ..context import ContextOptimizer
from ..contracts import AutomationJob
from ..errors import GenerationExhaustedError
from ..knowledge import PatternAnalyzer
from ..llm.base import CompletionProvider
from ..models import ComplexityAssessment, GeneratedWorkflow, OrchestrationPlan
from ..registry import REGISTRY, NodeTypeRegistry
from ..services import WorkflowBuilderService
from ..validation import validate_workflow
from .augmented import CapabilityAugmentedGenerator
from .base import GenerationOutcome, GenerationStrategy
from .direct import DirectLLMGenerator
from .template import TemplateGenerator

logger = logging.getLogger(__name__)


class WorkflowGenerator:
    """Tries each strategy in order and returns the first validated workflow.

    A strategy that raises is treated like one that reported a failure, so a
    broken strategy never prevents the next one from running.
    """

    def __init__(
        self, strategies: Sequence[GenerationStrategy], registry: NodeTypeRegistry = REGISTRY
    ) -> None:
        if not strategies:
            raise ValueError("At least one generation strategy is required")
        self.strategies = list(strategies)
        self.registry = registry

    async def _run(
        self,
        strategy: GenerationStrategy,
        plan: OrchestrationPlan,
        job: AutomationJob,
        assessment: ComplexityAssessment,
    ) -> GenerationOutcome:
        try:
            return await strategy.generate(plan, job, assessment)
        except Exception as e:
            logger.exception(f"Strategy {strategy.name} raised for job_id={job.id}")
            return GenerationOutcome.failure(strategy.name, f"{type(e).__name__}: {e}")

    async def generate(
        self,
        plan: OrchestrationPlan,
        job: AutomationJob,
        assessment: ComplexityAssessment,
    ) -> GeneratedWorkflow:
        attempts: List[Tuple[str, str]] = []
        for strategy in self.strategies:
            outcome = await self._run(strategy, plan, job, assessment)
            if outcome.ok:
                result = validate_workflow(outcome.workflow, self.registry)
                if result.valid:
                    outcome.workflow.meta["attempts"] = [
                        {"strategy": name, "reason": reason} for name, reason in attempts
                    ]
                    logger.info(f"Strategy {strategy.name} succeeded for job_id={job.id}")
                    return outcome.workflow
                outcome = GenerationOutcome.failure(
                    strategy.name, f"workflow failed validation: {'; '.join(result.errors)}"
                )
            logger.warning(
                f"Strategy {strategy.name} failed for job_id={job.id}: {outcome.reason}"
            )
            attempts.append((strategy.name, outcome.reason))
        raise GenerationExhaustedError(attempts)

    def strategy_names(self) -> List[str]:
        return [s.name for s in self.strategies]


def default_strategies(
    provider: CompletionProvider,
    registry: NodeTypeRegistry = REGISTRY,
    service: Optional[WorkflowBuilderService] = None,
    webhook_auth: bool = False,
    optimizer: Optional[ContextOptimizer] = None,
    analyzer: Optional[PatternAnalyzer] = None,
) -> List[GenerationStrategy]:
    """Template, then capability-augmented, then direct LLM generation."""

    return [
        TemplateGenerator(provider, registry, optimizer=optimizer, webhook_auth=webhook_auth),
        CapabilityAugmentedGenerator(service, registry, webhook_auth=webhook_auth),
        DirectLLMGenerator(
            provider, registry, analyzer=analyzer, optimizer=optimizer, webhook_auth=webhook_auth
        ),
    ]


__all__ = ["WorkflowGenerator", "default_strategies"]
