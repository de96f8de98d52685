"""Last-resort generator: the LLM emits the whole graph in one pass."""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..context import ContextOptimizer, focus_section
from ..contracts import AutomationJob
from ..errors import AutomationError, SchemaError
from ..knowledge import DocumentRetriever, PatternAnalyzer, load_corpus, render_advice, render_docs
from ..llm.base import CompletionOptions, CompletionProvider
from ..llm.parsing import parse_json_object
from ..models import ComplexityAssessment, GeneratedWorkflow, OrchestrationPlan, WorkflowNode
from ..prompts import direct_workflow_prompt
from ..registry import REGISTRY, NodeTypeRegistry
from .base import GenerationOutcome, finalize, position, unique_name
from .enhance import apply_http_retry, apply_webhook_defaults

logger = logging.getLogger(__name__)


def skeleton_nodes(plan: OrchestrationPlan, registry: NodeTypeRegistry = REGISTRY) -> List[WorkflowNode]:
    """One node for the first trigger and one per step, laid out left to right."""

    nodes: List[WorkflowNode] = []
    taken: List[str] = []
    column = 0
    if plan.triggers:
        trigger = plan.triggers[0]
        descriptor = registry.resolve_trigger(trigger.type)
        name = trigger.name or "Trigger"
        nodes.append(
            registry.build_node(descriptor.key, name, position(column), trigger.configuration)
        )
        taken.append(name)
        column += 1
    for i, step in enumerate(plan.steps):
        descriptor = registry.resolve_step(step.type)
        name = unique_name(step.name or f"Step {i + 1}", taken)
        nodes.append(registry.build_node(descriptor.key, name, position(column), step.configuration))
        taken.append(name)
        column += 1
    return nodes


def linear_connections(names: List[str]) -> Dict[str, Any]:
    return {
        a: {"main": [[{"node": b, "type": "main", "index": 0}]]} for a, b in zip(names, names[1:])
    }


def remap_connections(connections: Dict[str, Any], id_to_name: Dict[str, str]) -> Dict[str, Any]:
    """Rewrite connection sources and targets keyed by node id to node names."""

    remapped: Dict[str, Any] = {}
    for source, outputs in connections.items():
        name = id_to_name.get(source, source)
        if not isinstance(outputs, dict):
            remapped[name] = outputs
            continue
        new_outputs: Dict[str, Any] = {}
        for port, branches in outputs.items():
            if not isinstance(branches, list):
                new_outputs[port] = branches
                continue
            new_outputs[port] = [
                [
                    {**target, "node": id_to_name.get(target.get("node"), target.get("node"))}
                    if isinstance(target, dict)
                    else target
                    for target in branch
                ]
                if isinstance(branch, list)
                else branch
                for branch in branches
            ]
        remapped[name] = new_outputs
    return remapped


def _is_position(value: Any) -> bool:
    return (
        isinstance(value, list)
        and len(value) == 2
        and all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in value)
    )


class DirectLLMGenerator:
    """Asks for a complete node/connection graph and back-fills what is missing."""

    name = "direct"

    def __init__(
        self,
        provider: CompletionProvider,
        registry: NodeTypeRegistry = REGISTRY,
        analyzer: Optional[PatternAnalyzer] = None,
        optimizer: Optional[ContextOptimizer] = None,
        retriever: Optional[DocumentRetriever] = None,
        webhook_auth: bool = False,
    ) -> None:
        self.provider = provider
        self.registry = registry
        self.analyzer = analyzer or PatternAnalyzer(load_corpus(), registry)
        self.optimizer = optimizer or ContextOptimizer()
        self.retriever = retriever or DocumentRetriever.from_registry(registry)
        self.webhook_auth = webhook_auth

    def build_prompt(
        self, plan: OrchestrationPlan, job: AutomationJob, assessment: ComplexityAssessment
    ) -> str:
        context = self.optimizer.optimize(job, plan, assessment)
        docs = self.retriever.relevant_docs(
            plan.description,
            node_types=context.focus_node_types,
            top_k=context.node_count,
            chars_per_doc=context.chars_per_doc,
        )
        return direct_workflow_prompt(
            plan,
            render_advice(self.analyzer.advise(plan)),
            focus_section(context, job.process_data.business_context),
            render_docs(docs),
            assessment.budget.input_tokens,
        )

    def backfill(self, data: Dict[str, Any], plan: OrchestrationPlan) -> GeneratedWorkflow:
        """Complete an under-specified graph into a :class:`GeneratedWorkflow`."""

        if not isinstance(data.get("name"), str) or not data["name"].strip():
            data["name"] = plan.workflow_name or "Generated Automation Workflow"
        if not isinstance(data.get("description"), str) or not data["description"].strip():
            data["description"] = plan.description

        raw_nodes = data.get("nodes")
        if not isinstance(raw_nodes, list) or not raw_nodes:
            nodes = [n.to_wire() for n in skeleton_nodes(plan, self.registry)]
            data["connections"] = {}
        else:
            nodes = []
            taken: List[str] = []
            for i, raw in enumerate(raw_nodes):
                if not isinstance(raw, dict):
                    raise SchemaError("Workflow node is not an object", [f"node {i}"])
                node = dict(raw)
                name = node.get("name") if isinstance(node.get("name"), str) and node["name"] else None
                node["name"] = unique_name(name or f"Node {i + 1}", taken)
                taken.append(node["name"])
                node_type = node.get("type") if isinstance(node.get("type"), str) else ""
                descriptor = self.registry.resolve(node_type) if node_type else self.registry.resolve_step(None)
                if descriptor is not None:
                    node["type"] = descriptor.type
                node["id"] = str(node["id"]) if node.get("id") else str(uuid.uuid4())
                if "typeVersion" not in node:
                    node["typeVersion"] = descriptor.type_version if descriptor else 1
                if not _is_position(node.get("position")):
                    node["position"] = position(i)
                if not isinstance(node.get("parameters"), dict):
                    node["parameters"] = {}
                nodes.append(node)
        data["nodes"] = nodes

        id_to_name = {str(n["id"]): n["name"] for n in nodes}
        connections = data.get("connections")
        if not isinstance(connections, dict) or not connections:
            connections = linear_connections([n["name"] for n in nodes])
        data["connections"] = remap_connections(connections, id_to_name)

        try:
            return GeneratedWorkflow.model_validate(data)
        except ValidationError as e:
            raise SchemaError(
                "Generated workflow does not match the workflow schema",
                [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()],
            ) from e

    async def generate(
        self,
        plan: OrchestrationPlan,
        job: AutomationJob,
        assessment: ComplexityAssessment,
    ) -> GenerationOutcome:
        options = CompletionOptions(
            tier=assessment.recommended_tier,
            role="orchestrator",
            max_tokens=assessment.budget.output_tokens,
        )
        try:
            text = await self.provider.complete(self.build_prompt(plan, job, assessment), options)
            workflow = self.backfill(parse_json_object(text), plan)
        except AutomationError as e:
            return GenerationOutcome.failure(self.name, str(e))

        applied: List[str] = []
        if apply_webhook_defaults(workflow, job.id, self.webhook_auth):
            applied.append("webhook-defaults")
        if apply_http_retry(workflow):
            applied.append("http-retry")
        logger.info(f"Direct generation for job_id={job.id} produced {len(workflow.nodes)} nodes")
        return finalize(self.name, workflow, self.registry, applied)


__all__ = ["DirectLLMGenerator", "linear_connections", "remap_connections", "skeleton_nodes"]
