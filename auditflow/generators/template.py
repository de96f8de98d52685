"""Template-driven generation: fixed skeletons, LLM-filled parameters."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..complexity import token_budget
from ..context import ContextOptimizer, focus_section
from ..contracts import AutomationJob
from ..errors import AutomationError, SchemaError
from ..llm.base import CompletionOptions, CompletionProvider
from ..llm.parsing import parse_json_object
from ..models import ComplexityAssessment, GeneratedWorkflow, OrchestrationPlan
from ..prompts import template_fill_prompt
from ..registry import REGISTRY, NodeTypeRegistry
from .base import GenerationOutcome, finalize, position, unique_name
from .enhance import apply_enhancements

logger = logging.getLogger(__name__)


class Slot(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    key: str
    role: str
    column: int
    row: int = 0
    # Trigger slots may be swapped for the plan's own trigger kind.
    follows_plan_trigger: bool = False


class Edge(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str
    target: str
    output: int = 0
    input: int = 0


class WorkflowTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    archetype: str
    title: str
    slots: List[Slot]
    edges: List[Edge] = Field(default_factory=list)


def _linear(archetype: str, title: str, slots: List[Tuple[str, str, str]]) -> WorkflowTemplate:
    built = [
        Slot(id=slot_id, key=key, role=role, column=i, follows_plan_trigger=(i == 0 and key == "webhook"))
        for i, (slot_id, key, role) in enumerate(slots)
    ]
    edges = [Edge(source=a.id, target=b.id) for a, b in zip(built, built[1:])]
    return WorkflowTemplate(archetype=archetype, title=title, slots=built, edges=edges)


TEMPLATES: Dict[str, WorkflowTemplate] = {
    "email-automation": _linear(
        "email-automation",
        "Email Processing",
        [
            ("trigger", "gmail-trigger", "watch the inbox for new messages"),
            ("parse", "function", "extract sender, subject and body"),
            ("analyze", "openai", "classify the email and draft a reply"),
            ("reply", "gmail-send", "send the reply or forward to the owner"),
        ],
    ),
    "data-sync": WorkflowTemplate(
        archetype="data-sync",
        title="Data Sync",
        slots=[
            Slot(id="trigger", key="webhook", role="receive changed records", column=0, follows_plan_trigger=True),
            Slot(id="normalize", key="set", role="map fields to the shared schema", column=1),
            Slot(id="sheet", key="google-sheets", role="append or update the spreadsheet row", column=2, row=-1),
            Slot(id="base", key="airtable", role="create or update the Airtable record", column=2, row=1),
            Slot(id="combine", key="merge", role="combine both write results", column=3),
        ],
        edges=[
            Edge(source="trigger", target="normalize"),
            Edge(source="normalize", target="sheet"),
            Edge(source="normalize", target="base"),
            Edge(source="sheet", target="combine", input=0),
            Edge(source="base", target="combine", input=1),
        ],
    ),
    "ai-classification": WorkflowTemplate(
        archetype="ai-classification",
        title="AI Classification and Routing",
        slots=[
            Slot(id="trigger", key="webhook", role="receive the item to classify", column=0, follows_plan_trigger=True),
            Slot(id="prepare", key="set", role="select the text fields to classify", column=1),
            Slot(id="classify", key="openai", role="classify the item and return a category", column=2),
            Slot(id="route", key="switch", role="route by category", column=3),
            Slot(id="escalate", key="http", role="create a ticket or call the team system", column=4, row=-1),
            Slot(id="notify", key="email-send", role="notify the owner of routine items", column=4, row=1),
        ],
        edges=[
            Edge(source="trigger", target="prepare"),
            Edge(source="prepare", target="classify"),
            Edge(source="classify", target="route"),
            Edge(source="route", target="escalate", output=0),
            Edge(source="route", target="notify", output=1),
        ],
    ),
    "document-processing": _linear(
        "document-processing",
        "Document Processing",
        [
            ("trigger", "webhook", "receive the document reference"),
            ("fetch", "http", "download the document"),
            ("extract", "openai", "extract the key fields from the document"),
            ("store", "google-sheets", "record the extracted fields"),
        ],
    ),
    "api-integration": _linear(
        "api-integration",
        "API Integration",
        [
            ("trigger", "webhook", "receive the request"),
            ("prepare", "set", "build the outgoing payload"),
            ("call", "http", "call the external API"),
            ("respond", "respond-to-webhook", "return the API result to the caller"),
        ],
    ),
    "general-automation": _linear(
        "general-automation",
        "Process Automation",
        [
            ("trigger", "webhook", "receive the process event"),
            ("prepare", "set", "record the fields the process needs"),
            ("notify", "email-send", "notify the responsible person"),
        ],
    ),
}


class SlotFill(BaseModel):
    name: Optional[str] = None
    parameters: Dict[str, Any] = Field(default_factory=dict)


class TemplateFill(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    nodes: Dict[str, SlotFill] = Field(default_factory=dict)


def parse_fill(text: str) -> TemplateFill:
    data = parse_json_object(text)
    nodes = data.get("nodes", {})
    if not isinstance(nodes, dict):
        raise SchemaError("Template fill must map slot ids to node settings")
    errors: List[str] = []
    for slot, fill in nodes.items():
        if not isinstance(fill, dict):
            errors.append(f"slot '{slot}' must be an object")
        elif "parameters" in fill and not isinstance(fill["parameters"], dict):
            errors.append(f"slot '{slot}' parameters must be an object")
        elif "name" in fill and fill["name"] is not None and not isinstance(fill["name"], str):
            errors.append(f"slot '{slot}' name must be a string")
    if errors:
        raise SchemaError("Template fill is malformed", errors)
    return TemplateFill.model_validate(
        {
            "name": data.get("name") if isinstance(data.get("name"), str) else None,
            "description": data.get("description") if isinstance(data.get("description"), str) else None,
            "nodes": nodes,
        }
    )


class TemplateGenerator:
    """Fills a registry-built archetype skeleton with LLM-chosen parameters."""

    name = "template"

    def __init__(
        self,
        provider: CompletionProvider,
        registry: NodeTypeRegistry = REGISTRY,
        optimizer: Optional[ContextOptimizer] = None,
        templates: Optional[Dict[str, WorkflowTemplate]] = None,
        webhook_auth: bool = False,
    ) -> None:
        self.provider = provider
        self.registry = registry
        self.optimizer = optimizer or ContextOptimizer()
        self.templates = templates or TEMPLATES
        self.webhook_auth = webhook_auth

    def select(self, workflow_type: str) -> WorkflowTemplate:
        return self.templates.get(workflow_type) or self.templates["general-automation"]

    def _slot_key(self, slot: Slot, plan: OrchestrationPlan) -> str:
        if slot.follows_plan_trigger and plan.triggers:
            return self.registry.resolve_trigger(plan.triggers[0].type).key
        return slot.key

    def assemble(
        self,
        template: WorkflowTemplate,
        plan: OrchestrationPlan,
        fill: TemplateFill,
    ) -> GeneratedWorkflow:
        """Build nodes and connections deterministically from ``template``."""

        names: Dict[str, str] = {}
        nodes = []
        for slot in template.slots:
            key = self._slot_key(slot, plan)
            slot_fill = fill.nodes.get(slot.id, SlotFill())
            default_name = slot.role[:1].upper() + slot.role[1:]
            name = unique_name((slot_fill.name or "").strip() or default_name, names.values())
            names[slot.id] = name
            nodes.append(
                self.registry.build_node(
                    key, name, position(slot.column, slot.row), slot_fill.parameters
                )
            )

        workflow = GeneratedWorkflow(
            name=(fill.name or "").strip() or plan.workflow_name or template.title,
            description=(fill.description or "").strip() or plan.description,
            nodes=nodes,
            tags=[template.archetype],
        )
        for edge in template.edges:
            workflow.connect(
                names[edge.source], names[edge.target], output_index=edge.output, input_index=edge.input
            )
        workflow.meta["template"] = template.archetype
        return workflow

    async def generate(
        self,
        plan: OrchestrationPlan,
        job: AutomationJob,
        assessment: ComplexityAssessment,
    ) -> GenerationOutcome:
        context = self.optimizer.optimize(job, plan, assessment)
        budget = token_budget(assessment.complexity, "agent")
        template = self.select(context.workflow_type)
        slots = [
            (slot.id, self.registry[self._slot_key(slot, plan)].type, slot.role)
            for slot in template.slots
        ]
        prompt = template_fill_prompt(
            plan,
            template.archetype,
            slots,
            focus_section(context, job.process_data.business_context),
            budget.input_tokens,
        )
        options = CompletionOptions(
            tier=assessment.recommended_tier,
            role="agent",
            max_tokens=budget.output_tokens,
        )
        try:
            fill = parse_fill(await self.provider.complete(prompt, options))
        except AutomationError as e:
            return GenerationOutcome.failure(self.name, str(e))

        workflow = self.assemble(template, plan, fill)
        applied = apply_enhancements(workflow, job.id, self.webhook_auth, self.registry)
        logger.info(
            f"Template '{template.archetype}' assembled for job_id={job.id} "
            f"({len(workflow.nodes)} nodes)"
        )
        return finalize(self.name, workflow, self.registry, applied)


__all__ = ["TEMPLATES", "TemplateGenerator", "WorkflowTemplate", "parse_fill"]
