"""Prompt builders for plan synthesis and workflow generation."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Sequence, Tuple

from .contracts import AutomationJob
from .llm.base import estimate_tokens
from .models import OrchestrationPlan

CONSTRAINED_STEP_TYPES = ("http", "transform", "email", "ai", "condition")
CONSTRAINED_TRIGGER_TYPES = ("webhook", "schedule", "email", "form")

# (text, required) pairs; optional sections are dropped once the budget is hit.
Section = Tuple[str, bool]

PLAN_SCHEMA = """{
  "workflowName": string,
  "description": string,
  "triggers": [ { "type": string, "configuration": {} } ],
  "steps": [ { "id": string, "name": string, "type": string, "description": string,
               "inputs": [], "outputs": [], "configuration": {} } ],
  "connections": [ { "from": stepId, "to": stepId } ],
  "errorHandling": { "strategy": string, "notifications": [] },
  "integrations": [string]
}"""


def fit_sections(sections: Sequence[Section], max_tokens: int) -> str:
    """Join sections, skipping optional ones that would exceed ``max_tokens``."""

    kept: List[str] = []
    used = 0
    for text, required in sections:
        cost = estimate_tokens(text) + 1
        if required or used + cost <= max_tokens:
            kept.append(text)
            used += cost
    return "\n\n".join(kept)


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, default=str)


def job_context(job: AutomationJob) -> Dict[str, Any]:
    return {
        "processData": job.process_data.model_dump(by_alias=True, exclude_none=True),
        "automationOpportunities": [
            op.model_dump(by_alias=True, exclude_none=True) for op in job.automation_opportunities
        ],
    }


def constrained_plan_prompt(job: AutomationJob, hints: str, max_tokens: int) -> str:
    """Narrow prompt: fixed step and trigger vocabulary, one step per opportunity."""

    context = job_context(job)
    rules = "\n".join(
        [
            "You are an automation architect specializing in n8n. "
            "Output ONLY JSON following this schema:",
            PLAN_SCHEMA,
            "RULES:",
            f"- Use ONLY these step types: {' | '.join(CONSTRAINED_STEP_TYPES)}",
            f"- Use ONLY these trigger types: {' | '.join(CONSTRAINED_TRIGGER_TYPES)}",
            "- Create at least one step for every automation opportunity, in the order given",
            "- Minimal configuration per type:",
            '  - http: { "url": "{{API_URL}}", "method": "POST" }',
            '  - transform: { "pairs": [ { "name": "status", "value": "submitted" } ] }',
            '  - email: { "to": "{{recipient}}", "subject": "Subject", "text": "Body" }',
            '  - ai: { "task": "classify", "labels": [] }',
            '  - condition: { "field": "", "equals": "" }',
            '  - webhook trigger: { "path": "process-audit/ingest" }',
            "- Use placeholders such as {{API_TOKEN}} for secrets, never real values",
            "- Connect steps in order; every connection must use declared step ids",
        ]
    )
    sections: List[Section] = [
        (rules, True),
        ("CONTEXT:\nOpportunities: " + _dump(context["automationOpportunities"]), True),
        ("Process data: " + _dump(context["processData"]), False),
        (hints, False),
    ]
    return fit_sections([s for s in sections if s[0]], max_tokens)


def general_plan_prompt(job: AutomationJob, hints: str, max_tokens: int) -> str:
    """Open prompt asking for a complete plan from the full process analysis."""

    context = job_context(job)
    intro = "\n".join(
        [
            "You are an automation orchestration expert. Based on the business process "
            "analysis below, create a detailed automation plan that can be implemented in n8n.",
            "Cover: triggers, data collection steps, processing and transformation steps, "
            "integration points with external systems, error handling, and output or "
            "notification steps.",
            "Return only a JSON object with this structure:",
            PLAN_SCHEMA,
            "Every connection must reference declared step ids.",
        ]
    )
    sections: List[Section] = [
        (intro, True),
        ("Process analysis:\n" + _dump(context["processData"]), True),
        ("Automation opportunities:\n" + _dump(context["automationOpportunities"]), True),
        (hints, False),
    ]
    return fit_sections([s for s in sections if s[0]], max_tokens)


def template_fill_prompt(
    plan: OrchestrationPlan,
    archetype: str,
    slots: Sequence[Tuple[str, str, str]],
    focus: str,
    max_tokens: int,
) -> str:
    """Ask only for per-slot names and parameters of a fixed skeleton.

    ``slots`` holds ``(slot id, node type, role description)`` triples.
    """

    slot_lines = "\n".join(f'- "{slot}": {node_type} ({role})' for slot, node_type, role in slots)
    instructions = "\n".join(
        [
            f"You are configuring a fixed {archetype} n8n workflow skeleton. "
            "Do not add or remove nodes and do not describe connections.",
            "Slots:",
            slot_lines,
            "Return only JSON of the form:",
            '{ "name": string, "description": string, '
            '"nodes": { "<slot>": { "name": string, "parameters": {} } } }',
            "Use placeholders such as {{API_URL}} or {{RECIPIENT_EMAIL}} for anything "
            "environment specific.",
        ]
    )
    sections: List[Section] = [
        (instructions, True),
        ("Orchestration plan:\n" + _dump(plan.to_wire()), True),
        (focus, False),
    ]
    return fit_sections([s for s in sections if s[0]], max_tokens)


def direct_workflow_prompt(
    plan: OrchestrationPlan,
    advice: str,
    focus: str,
    docs: str,
    max_tokens: int,
) -> str:
    """Full-graph prompt used by the last-resort generator."""

    instructions = "\n".join(
        [
            "You are an expert n8n workflow architect. Convert the orchestration plan below "
            "into a complete, importable n8n workflow.",
            "Return only a JSON object:",
            '{ "name": string, "description": string, "nodes": [ { "id": string, "name": string, '
            '"type": "n8n-nodes-base.<node>", "typeVersion": number, "position": [x, y], '
            '"parameters": {} } ], "connections": { "<node name>": { "main": '
            '[[ { "node": "<node name>", "type": "main", "index": 0 } ]] } } }',
            "Rules:",
            "- Node names must be unique and connections must use node names",
            "- HTTP request nodes must retry on failure",
            "- Use placeholders for credentials and secrets",
        ]
    )
    sections: List[Section] = [
        (instructions, True),
        ("Orchestration plan:\n" + _dump(plan.to_wire()), True),
        (focus, False),
        (advice, False),
        (docs, False),
    ]
    return fit_sections([s for s in sections if s[0]], max_tokens)
