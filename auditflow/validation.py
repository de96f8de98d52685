"""Structural checks for orchestration plans and generated workflows.

Both validators are pure: they accept either the pydantic model or the raw
mapping decoded from model output, never raise, and report every problem
they find in a :class:`ValidationResult`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel

from .models import GeneratedWorkflow, OrchestrationPlan, ValidationResult

if TYPE_CHECKING:  # pragma: no cover
    from .registry import NodeTypeRegistry


def _as_mapping(value: Any) -> Optional[Mapping[str, Any]]:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    if isinstance(value, Mapping):
        return value
    return None


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def validate_plan(plan: Union[OrchestrationPlan, Mapping[str, Any], Any]) -> ValidationResult:
    """Check that a plan has a name, description, triggers and steps and that
    every connection references a declared step id."""

    data = _as_mapping(plan)
    if data is None:
        return ValidationResult.from_errors(["Plan must be an object"])

    errors: List[str] = []
    if _is_blank(_first(data, "workflowName", "workflow_name", "name")):
        errors.append("Plan is missing a workflow name")
    if _is_blank(data.get("description")):
        errors.append("Plan is missing a description")

    triggers = data.get("triggers")
    if not isinstance(triggers, list) or not triggers:
        errors.append("Plan must declare at least one trigger")
    else:
        for i, trigger in enumerate(triggers):
            if not isinstance(trigger, Mapping) or _is_blank(trigger.get("type")):
                errors.append(f"Trigger {i} is missing a type")

    steps = data.get("steps")
    step_ids: set = set()
    if not isinstance(steps, list) or not steps:
        errors.append("Plan must declare at least one step")
    else:
        for i, step in enumerate(steps):
            if not isinstance(step, Mapping):
                errors.append(f"Step {i} must be an object")
                continue
            step_id = step.get("id")
            if _is_blank(step_id):
                errors.append(f"Step {i} is missing an id")
            elif step_id in step_ids:
                errors.append(f"Duplicate step id: {step_id}")
            else:
                step_ids.add(step_id)
            if _is_blank(step.get("type")):
                errors.append(f"Step {step_id or i} is missing a type")

    connections = data.get("connections") or []
    if not isinstance(connections, list):
        errors.append("Plan connections must be a list")
        connections = []
    for i, connection in enumerate(connections):
        if not isinstance(connection, Mapping):
            errors.append(f"Connection {i} must be an object")
            continue
        for end in ("from", "to"):
            ref = connection.get(end)
            if _is_blank(ref):
                errors.append(f"Connection {i} is missing '{end}'")
            elif ref not in step_ids:
                errors.append(f"Connection {i} references unknown step '{ref}' in '{end}'")

    return ValidationResult.from_errors(errors)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _connection_targets(branches: Any, source: str, errors: List[str]) -> List[str]:
    targets: List[str] = []
    if not isinstance(branches, list):
        errors.append(f"Connections from '{source}' must be a list of branches")
        return targets
    for branch in branches:
        if branch is None:
            continue
        if not isinstance(branch, list):
            errors.append(f"Connection branch from '{source}' must be a list")
            continue
        for target in branch:
            target_data = _as_mapping(target)
            node = target_data.get("node") if target_data is not None else None
            if _is_blank(node):
                errors.append(f"Connection from '{source}' has a target without a node name")
            else:
                targets.append(node)
    return targets


def validate_workflow(
    workflow: Union[GeneratedWorkflow, Mapping[str, Any], Any],
    registry: Optional["NodeTypeRegistry"] = None,
) -> ValidationResult:
    """Check node fields and that every connection endpoint names a node.

    When ``registry`` is given every node type must also be a known kind.
    """

    data = _as_mapping(workflow)
    if data is None:
        return ValidationResult.from_errors(["Workflow must be an object"])

    errors: List[str] = []
    if _is_blank(data.get("name")):
        errors.append("Workflow is missing a name")

    nodes = data.get("nodes")
    names: List[str] = []
    if not isinstance(nodes, list) or not nodes:
        errors.append("Workflow must contain at least one node")
        nodes = []
    for i, node in enumerate(nodes):
        node = _as_mapping(node)
        if node is None:
            errors.append(f"Node {i} must be an object")
            continue
        label = node.get("name") if not _is_blank(node.get("name")) else f"#{i}"
        if _is_blank(node.get("id")):
            errors.append(f"Node {label} is missing an id")
        if _is_blank(node.get("name")):
            errors.append(f"Node {i} is missing a name")
        elif node["name"] in names:
            errors.append(f"Duplicate node name: {node['name']}")
        else:
            names.append(node["name"])
        node_type = node.get("type")
        if _is_blank(node_type):
            errors.append(f"Node {label} is missing a type")
        elif registry is not None and not registry.is_known_type(node_type):
            errors.append(f"Node {label} has unknown type '{node_type}'")
        if not _is_number(_first(node, "typeVersion", "type_version")):
            errors.append(f"Node {label} is missing a typeVersion")
        position = node.get("position")
        if (
            not isinstance(position, (list, tuple))
            or len(position) != 2
            or not all(_is_number(p) for p in position)
        ):
            errors.append(f"Node {label} must have a 2-element numeric position")

    known = set(names)
    connections = data.get("connections") or {}
    if not isinstance(connections, Mapping):
        errors.append("Workflow connections must be an object")
        connections = {}
    for source, outputs in connections.items():
        if source not in known:
            errors.append(f"Connection source '{source}' is not a node")
        if not isinstance(outputs, Mapping):
            errors.append(f"Connections from '{source}' must be an object")
            continue
        for branches in outputs.values():
            for target in _connection_targets(branches, source, errors):
                if target not in known:
                    errors.append(f"Connection target '{target}' from '{source}' is not a node")

    return ValidationResult.from_errors(errors)


def summarize(result: ValidationResult) -> Dict[str, Any]:
    return {"valid": result.valid, "errors": list(result.errors)}


__all__ = ["validate_plan", "validate_workflow", "summarize"]
