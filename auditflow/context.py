"""Archetype detection and context scaling for generation prompts."""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from .complexity import ComplexityAssessor
from .contracts import AutomationJob, BusinessContext
from .models import ComplexityAssessment, ComplexityClass, ModelTier, OrchestrationPlan

logger = logging.getLogger(__name__)

MAX_CONTEXT_NODES = 10


class Archetype(BaseModel):
    """Base retrieval parameters for one kind of workflow."""

    model_config = ConfigDict(frozen=True)

    name: str
    focus_node_types: List[str]
    focus_areas: List[str]
    priority: str
    base_node_count: int
    base_chars_per_doc: int


ARCHETYPES: Dict[str, Archetype] = {
    a.name: a
    for a in [
        Archetype(
            name="email-automation",
            focus_node_types=["gmail-trigger", "gmail-send", "function", "openai", "switch", "merge"],
            focus_areas=["email handling", "AI responses", "conditional logic"],
            priority="email processing and AI integration",
            base_node_count=6,
            base_chars_per_doc=1000,
        ),
        Archetype(
            name="data-sync",
            focus_node_types=["google-sheets", "airtable", "webhook", "function", "merge", "set"],
            focus_areas=["data transformation", "parallel processing", "error handling"],
            priority="data reliability and sync accuracy",
            base_node_count=6,
            base_chars_per_doc=800,
        ),
        Archetype(
            name="ai-classification",
            focus_node_types=["openai", "function", "switch", "webhook", "http", "merge"],
            focus_areas=["AI processing", "conditional routing", "decision logic"],
            priority="intelligent decision making and routing",
            base_node_count=8,
            base_chars_per_doc=1200,
        ),
        Archetype(
            name="document-processing",
            focus_node_types=["http", "function", "openai", "google-sheets", "switch"],
            focus_areas=["file handling", "content extraction", "document analysis"],
            priority="document parsing and processing",
            base_node_count=6,
            base_chars_per_doc=900,
        ),
        Archetype(
            name="api-integration",
            focus_node_types=["webhook", "http", "function", "set", "switch", "merge"],
            focus_areas=["API authentication", "error handling", "data transformation"],
            priority="reliable API connectivity and error handling",
            base_node_count=5,
            base_chars_per_doc=700,
        ),
        Archetype(
            name="general-automation",
            focus_node_types=["webhook", "function", "http", "switch", "merge"],
            focus_areas=["workflow orchestration", "error handling", "general integration"],
            priority="flexible automation patterns",
            base_node_count=4,
            base_chars_per_doc=600,
        ),
    ]
}

# (node count factor, chars per doc factor)
SCALING: Dict[ComplexityClass, tuple] = {
    "simple": (1.0, 0.8),
    "complex": (1.5, 1.3),
}

# USD per million tokens (input, output).
TIER_RATES: Dict[ModelTier, tuple] = {
    "standard": (3.0, 15.0),
    "advanced": (15.0, 75.0),
}

_API_WORD = re.compile(r"\bapis?\b")


class OptimizedContext(BaseModel):
    workflow_type: str
    complexity: ComplexityClass
    focus_node_types: List[str]
    focus_areas: List[str]
    priority: str
    node_count: int
    chars_per_doc: int
    reasoning: str = ""


class CostEstimate(BaseModel):
    tier: ModelTier
    estimated_input_tokens: int
    estimated_output_tokens: int
    input_cost: float
    output_cost: float

    @property
    def total_cost(self) -> float:
        return self.input_cost + self.output_cost


def detect_workflow_type(
    job: AutomationJob, integrations: Optional[List[str]] = None
) -> str:
    """Classify ``job`` into one of the archetypes, checked in precedence order."""

    desc = job.process_data.process_description.lower()
    labels = {label.lower() for label in integrations or []}
    solutions = [op.automation_solution.lower() for op in job.automation_opportunities]
    op_texts = job.opportunity_texts()

    if "email" in desc or "gmail" in labels or any("email" in s for s in solutions):
        return "email-automation"
    if (
        any(word in desc for word in ("sync", "sheets", "airtable"))
        or labels & {"googlesheets", "airtable"}
    ):
        return "data-sync"
    if (
        any(word in desc for word in ("classif", "categoriz", "analysis"))
        or any("ai_" in s for s in solutions)
        or any("classif" in t for t in op_texts)
    ):
        return "ai-classification"
    if any(word in desc for word in ("document", "pdf", "file")):
        return "document-processing"
    if _API_WORD.search(desc) or "webhook" in desc or labels & {"http", "webhook"}:
        return "api-integration"
    return "general-automation"


def scale(archetype: Archetype, complexity: ComplexityClass) -> OptimizedContext:
    node_factor, chars_factor = SCALING.get(complexity, SCALING["simple"])
    return OptimizedContext(
        workflow_type=archetype.name,
        complexity=complexity,
        focus_node_types=list(archetype.focus_node_types),
        focus_areas=list(archetype.focus_areas),
        priority=archetype.priority,
        node_count=min(MAX_CONTEXT_NODES, round(archetype.base_node_count * node_factor)),
        chars_per_doc=round(archetype.base_chars_per_doc * chars_factor),
        reasoning=f"Detected {archetype.name} workflow ({complexity} complexity)",
    )


class ContextOptimizer:
    """Pick an archetype for a job and size documentation retrieval for it."""

    def __init__(self, assessor: Optional[ComplexityAssessor] = None) -> None:
        self.assessor = assessor or ComplexityAssessor()

    def optimize(
        self,
        job: AutomationJob,
        plan: Optional[OrchestrationPlan] = None,
        assessment: Optional[ComplexityAssessment] = None,
    ) -> OptimizedContext:
        assessment = assessment or self.assessor.assess(job, plan)
        integrations = self.assessor.integrations(plan)
        workflow_type = detect_workflow_type(job, integrations)
        context = scale(ARCHETYPES[workflow_type], assessment.complexity)
        logger.debug(f"Context for job_id={job.id}: {context.reasoning}")
        return context


def focus_section(context: OptimizedContext, business_context: Optional[BusinessContext] = None) -> str:
    """Prompt block describing what the generated workflow should focus on."""

    business_context = business_context or BusinessContext()
    return "\n".join(
        [
            "## Workflow focus",
            f"Primary focus: {context.priority}",
            f"Key areas: {', '.join(context.focus_areas)}",
            f"Target nodes: {', '.join(context.focus_node_types)}",
            f"Business context: {business_context.industry or 'General'} | "
            f"{business_context.department or 'Operations'}",
            f"Complexity: {context.complexity} workflow requiring {context.focus_areas[0]}",
        ]
    )


def estimate_cost(context: OptimizedContext, tier: ModelTier = "standard") -> CostEstimate:
    """Rough token and dollar estimate for one generation call."""

    input_rate, output_rate = TIER_RATES.get(tier, TIER_RATES["standard"])
    input_tokens = int(context.node_count * context.chars_per_doc * 0.25) + 2000
    output_tokens = 5000 if context.complexity == "complex" else 3000
    return CostEstimate(
        tier=tier,
        estimated_input_tokens=input_tokens,
        estimated_output_tokens=output_tokens,
        input_cost=input_tokens / 1_000_000 * input_rate,
        output_cost=output_tokens / 1_000_000 * output_rate,
    )


__all__ = [
    "ARCHETYPES",
    "Archetype",
    "ContextOptimizer",
    "CostEstimate",
    "OptimizedContext",
    "detect_workflow_type",
    "estimate_cost",
    "focus_section",
    "scale",
]
