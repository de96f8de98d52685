"""Tests for archetype detection and context scaling."""

import pytest

from auditflow.complexity import ComplexityAssessor
from auditflow.context import (
    ARCHETYPES,
    ContextOptimizer,
    detect_workflow_type,
    estimate_cost,
    focus_section,
    scale,
)
from auditflow.contracts import BusinessContext

from tests.fixtures.fakes import make_job, make_plan


@pytest.mark.parametrize(
    "description, solution, expected",
    [
        ("Answer customer emails", "", "email-automation"),
        ("Keep the sheets in sync", "", "data-sync"),
        ("Customer support ticket triage", "ai_classification", "ai-classification"),
        ("Process scanned contract documents", "", "document-processing"),
        ("Push records to the partner API", "", "api-integration"),
        ("Approve holiday requests", "", "general-automation"),
    ],
)
def test_detect_workflow_type(description, solution, expected) -> None:
    job = make_job(description=description, opportunities=[("Step", solution)])
    assert detect_workflow_type(job) == expected


def test_integrations_drive_detection() -> None:
    job = make_job(description="Record new signups", opportunities=[])
    assert detect_workflow_type(job, ["googleSheets"]) == "data-sync"
    assert detect_workflow_type(job, ["gmail"]) == "email-automation"
    assert detect_workflow_type(job, ["http"]) == "api-integration"


def test_scaling_by_complexity_is_capped() -> None:
    archetype = ARCHETYPES["ai-classification"]

    simple = scale(archetype, "simple")
    complex_ = scale(archetype, "complex")

    assert (simple.node_count, simple.chars_per_doc) == (8, 960)
    assert (complex_.node_count, complex_.chars_per_doc) == (10, 1560)
    assert complex_.focus_node_types == archetype.focus_node_types


def test_optimizer_uses_given_assessment() -> None:
    job = make_job()
    plan = make_plan()
    assessment = ComplexityAssessor().assess(job, plan)
    forced = assessment.model_copy(update={"complexity": "complex"})

    context = ContextOptimizer().optimize(job, plan, forced)

    assert context.workflow_type == "ai-classification"
    assert context.complexity == "complex"


def test_focus_section_and_cost() -> None:
    context = scale(ARCHETYPES["data-sync"], "simple")

    section = focus_section(context, BusinessContext(industry="Retail"))
    assert "Primary focus: data reliability and sync accuracy" in section
    assert "Retail | Operations" in section

    standard = estimate_cost(context, "standard")
    advanced = estimate_cost(context, "advanced")
    assert standard.estimated_output_tokens == 3000
    assert 0 < standard.total_cost < advanced.total_cost
