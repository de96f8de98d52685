"""Complexity scoring used to pick a model tier and token budget."""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Literal, Optional, Set, Tuple

from .contracts import AutomationJob
from .models import ComplexityAssessment, ComplexityClass, ModelTier, OrchestrationPlan, TokenBudget
from .registry import REGISTRY, NodeTypeRegistry

logger = logging.getLogger(__name__)

Role = Literal["orchestrator", "agent"]

COMPLEX_THRESHOLD = 4

BUDGETS: Dict[ComplexityClass, Dict[Role, TokenBudget]] = {
    "simple": {
        "orchestrator": TokenBudget(input_tokens=8000, output_tokens=3000),
        "agent": TokenBudget(input_tokens=6000, output_tokens=2000),
    },
    "complex": {
        "orchestrator": TokenBudget(input_tokens=15000, output_tokens=5000),
        "agent": TokenBudget(input_tokens=10000, output_tokens=3000),
    },
}

# (node count, characters per document) for documentation retrieval.
DOCUMENTATION_PARAMS: Dict[ComplexityClass, Tuple[int, int]] = {
    "simple": (4, 600),
    "complex": (8, 1200),
}

TIERS: Dict[ComplexityClass, ModelTier] = {"simple": "standard", "complex": "advanced"}

HIGH_COMPLIANCE_INDUSTRIES = ("finance", "insurance", "healthcare")
HIGH_VOLUME_MARKERS = ("100+", "200+", "high")
CONDITIONAL_STEP_TYPES = {"condition", "conditional", "switch", "if", "branch"}
PARALLEL_MARKERS = ("parallel", "simultaneous")
AI_OPPORTUNITY_MARKERS = ("ai_", "ai-", "intelligent")

_AI_WORD = re.compile(r"\bai\b")


def token_budget(complexity: ComplexityClass, role: Role = "orchestrator") -> TokenBudget:
    return BUDGETS.get(complexity, BUDGETS["simple"])[role]


def documentation_params(complexity: ComplexityClass) -> Tuple[int, int]:
    return DOCUMENTATION_PARAMS.get(complexity, DOCUMENTATION_PARAMS["simple"])


def mentions_ai(text: str) -> bool:
    """True when ``text`` contains AI, analysis or classification language."""

    text = text.lower()
    return bool(_AI_WORD.search(text)) or "analy" in text or "classif" in text


class ComplexityAssessor:
    """Scores a job (and optionally its plan) on weighted structural signals."""

    def __init__(self, registry: NodeTypeRegistry = REGISTRY) -> None:
        self.registry = registry

    def integrations(self, plan: Optional[OrchestrationPlan]) -> List[str]:
        """Declared integrations plus integration labels of the plan's steps."""

        if plan is None:
            return []
        seen: Set[str] = set()
        result: List[str] = []
        labels = list(plan.integrations)
        for step in plan.steps:
            descriptor = self.registry.resolve(step.type)
            if descriptor is not None and descriptor.integration:
                labels.append(descriptor.integration)
        for label in labels:
            key = label.lower()
            if key not in seen:
                seen.add(key)
                result.append(label)
        return result

    def _has_ai(self, job: AutomationJob, plan: Optional[OrchestrationPlan]) -> bool:
        if mentions_ai(job.process_data.process_description):
            return True
        for op in job.automation_opportunities:
            solution = op.automation_solution.lower()
            if any(marker in solution for marker in AI_OPPORTUNITY_MARKERS):
                return True
        if plan is not None:
            for step in plan.steps:
                descriptor = self.registry.resolve(step.type)
                if descriptor is not None and descriptor.category == "ai":
                    return True
        return False

    def _has_conditional(self, plan: Optional[OrchestrationPlan]) -> bool:
        if plan is None:
            return False
        for step in plan.steps:
            if step.type.lower() in CONDITIONAL_STEP_TYPES:
                return True
            descriptor = self.registry.resolve(step.type)
            if descriptor is not None and descriptor.key in ("if", "switch"):
                return True
        return False

    def assess(
        self,
        job: AutomationJob,
        plan: Optional[OrchestrationPlan] = None,
        role: Role = "orchestrator",
    ) -> ComplexityAssessment:
        """Score ``job``; ``plan`` may be omitted for a pre-plan assessment."""

        score = 0
        reasons: List[str] = []
        description = job.process_data.process_description.lower()

        step_count = len(plan.steps) if plan is not None else 0
        if step_count >= 5:
            score += 3
            reasons.append(f"High step count: {step_count} steps")
        elif step_count >= 3:
            score += 1
            reasons.append(f"Medium step count: {step_count} steps")

        integrations = self.integrations(plan)
        if len(integrations) >= 2:
            score += 2
            reasons.append(f"Multi-platform integration: {', '.join(integrations)}")

        if self._has_ai(job, plan):
            score += 2
            reasons.append("AI processing required")

        industry = job.process_data.effective_industry
        if any(name in industry.lower() for name in HIGH_COMPLIANCE_INDUSTRIES):
            score += 1
            reasons.append(f"High-compliance industry: {industry}")

        volume = job.process_data.effective_volume or (plan.volume_expected if plan else "") or ""
        if any(marker in volume.lower() for marker in HIGH_VOLUME_MARKERS):
            score += 1
            reasons.append(f"High volume requirements: {volume}")

        if self._has_conditional(plan):
            score += 1
            reasons.append("Conditional logic required")

        if len(integrations) > 2 or any(marker in description for marker in PARALLEL_MARKERS):
            score += 2
            reasons.append("Parallel processing required")

        complexity: ComplexityClass = "complex" if score >= COMPLEX_THRESHOLD else "simple"
        assessment = ComplexityAssessment(
            score=score,
            complexity=complexity,
            reasons=reasons,
            recommended_tier=TIERS[complexity],
            budget=token_budget(complexity, role),
        )
        logger.debug(
            f"Complexity for job_id={job.id}: score={score} class={complexity} "
            f"reasons={reasons}"
        )
        return assessment


__all__ = [
    "BUDGETS",
    "ComplexityAssessor",
    "documentation_params",
    "mentions_ai",
    "token_budget",
]
