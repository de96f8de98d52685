"""Scripted collaborators shared by unit and integration tests."""

from __future__ import annotations

import json
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple, Union

from auditflow.contracts import AutomationJob, AutomationOpportunity, BusinessContext, ProcessData
from auditflow.errors import ProviderError
from auditflow.llm.base import CompletionOptions
from auditflow.models import GeneratedWorkflow, OrchestrationPlan, ValidationResult
from auditflow.registry import REGISTRY
from auditflow.services import BuildResult

Reply = Union[str, BaseException, Callable[[str, CompletionOptions], str]]

# Phrases that identify which prompt builder produced a prompt.
PROMPT_KINDS = {
    "constrained": "automation architect specializing in n8n",
    "general": "automation orchestration expert",
    "template": "workflow skeleton",
    "direct": "expert n8n workflow architect",
}


def prompt_kind(prompt: str) -> str:
    for kind, marker in PROMPT_KINDS.items():
        if marker in prompt:
            return kind
    return "unknown"


class ScriptedProvider:
    """Completion provider answering from per-prompt-kind queues.

    Each reply is a string, an exception to raise, or a callable producing the
    text. Running out of replies for a kind raises :class:`ProviderError`.
    """

    def __init__(self, **replies: List[Reply]) -> None:
        self._replies: Dict[str, Deque[Reply]] = {k: deque(v) for k, v in replies.items()}
        self.calls: List[Tuple[str, str, CompletionOptions]] = []

    def kinds(self) -> List[str]:
        return [kind for kind, _, _ in self.calls]

    async def complete(self, prompt: str, options: CompletionOptions) -> str:
        kind = prompt_kind(prompt)
        self.calls.append((kind, prompt, options))
        queue = self._replies.get(kind)
        if not queue:
            raise ProviderError(f"no scripted reply for {kind} prompt", provider="scripted")
        reply = queue.popleft()
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            return reply(prompt, options)
        return reply


class FakeBuilderService:
    """In-process stand-in for the workflow-building service."""

    def __init__(
        self,
        workflow: Optional[Dict[str, Any]] = None,
        draft_validation: Optional[ValidationResult] = None,
        remote_validation: Optional[ValidationResult] = None,
        fail_on_connect: Optional[BaseException] = None,
    ) -> None:
        self.workflow = workflow
        self.draft_validation = draft_validation or ValidationResult(valid=True)
        self.remote_validation = remote_validation or ValidationResult(valid=True)
        self.fail_on_connect = fail_on_connect
        self.events: List[str] = []
        self.requirements: List[Dict[str, Any]] = []

    async def connect(self) -> None:
        self.events.append("connect")
        if self.fail_on_connect is not None:
            raise self.fail_on_connect

    async def build_intelligent_workflow(self, requirements: Dict[str, Any]) -> BuildResult:
        self.events.append("build")
        self.requirements.append(requirements)
        return BuildResult(workflow=self.workflow or {}, validation=self.draft_validation)

    async def validate_workflow(self, workflow: Dict[str, Any]) -> ValidationResult:
        self.events.append("validate")
        return self.remote_validation

    async def disconnect(self) -> None:
        self.events.append("disconnect")


def make_job(
    description: str = "Customer support ticket triage",
    opportunities: Optional[List[Tuple[str, str]]] = None,
    job_id: str = "job-1",
    industry: Optional[str] = None,
    volume: Optional[str] = None,
) -> AutomationJob:
    if opportunities is None:
        opportunities = [("AI-classify and route tickets", "ai_classification")]
    return AutomationJob(
        id=job_id,
        process_data=ProcessData(
            process_description=description,
            business_context=BusinessContext(industry=industry, volume=volume),
        ),
        automation_opportunities=[
            AutomationOpportunity(step_description=step, automation_solution=solution)
            for step, solution in opportunities
        ],
    )


def plan_dict(
    steps: Optional[List[Tuple[str, str]]] = None,
    trigger: str = "webhook",
    name: str = "Ticket Triage",
    description: str = "Classify incoming tickets and route them to the right team",
    integrations: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """Plan payload with linear connections over ``(id, type)`` steps."""

    if steps is None:
        steps = [("normalize", "transform"), ("classify", "ai"), ("notify", "email")]
    data: Dict[str, Any] = {
        "workflowName": name,
        "description": description,
        "triggers": [{"type": trigger, "configuration": {}}],
        "steps": [
            {"id": sid, "name": sid.replace("_", " ").title(), "type": stype, "description": ""}
            for sid, stype in steps
        ],
        "connections": [{"from": a, "to": b} for (a, _), (b, _) in zip(steps, steps[1:])],
        "errorHandling": {"strategy": "retry-backoff", "notifications": []},
    }
    if integrations is not None:
        data["integrations"] = integrations
    return data


def make_plan(**kwargs: Any) -> OrchestrationPlan:
    return OrchestrationPlan.model_validate(plan_dict(**kwargs))


def plan_json(**kwargs: Any) -> str:
    return json.dumps(plan_dict(**kwargs))


def fill_json(name: str = "Ticket Triage", nodes: Optional[Dict[str, Any]] = None) -> str:
    return json.dumps(
        {"name": name, "description": "Generated from template", "nodes": nodes or {}}
    )


def sample_workflow(name: str = "Ticket Triage") -> GeneratedWorkflow:
    """Webhook -> HTTP request -> email workflow built from the default registry."""

    workflow = GeneratedWorkflow(
        name=name,
        description="Forward tickets to the helpdesk",
        nodes=[
            REGISTRY.build_node("webhook", "Receive Ticket", [250, 300]),
            REGISTRY.build_node("http", "Create Ticket", [470, 300]),
            REGISTRY.build_node("email-send", "Notify Owner", [690, 300]),
        ],
    )
    workflow.connect("Receive Ticket", "Create Ticket")
    workflow.connect("Create Ticket", "Notify Owner")
    return workflow
