"""Pydantic models for orchestration plans, generated workflows and artifacts."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ComplexityClass = Literal["simple", "complex"]
ModelTier = Literal["standard", "advanced"]


class _WireModel(BaseModel):
    """Base for models exchanged as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Orchestration plan


class PlanTrigger(_WireModel):
    """Event that starts the automation (webhook, schedule, email, form...)."""

    type: str
    name: Optional[str] = None
    configuration: Dict[str, Any] = Field(default_factory=dict)


class PlanStep(_WireModel):
    id: str
    name: str = ""
    type: str
    description: str = ""
    inputs: List[Any] = Field(default_factory=list)
    outputs: List[Any] = Field(default_factory=list)
    configuration: Dict[str, Any] = Field(default_factory=dict)


class PlanConnection(_WireModel):
    source: str = Field(alias="from")
    target: str = Field(alias="to")


class ErrorHandlingPolicy(_WireModel):
    strategy: str = "retry-backoff"
    notifications: List[Any] = Field(default_factory=list)


class OrchestrationPlan(_WireModel):
    """Platform-neutral plan of triggers, steps and connections."""

    workflow_name: str = ""
    description: str = ""
    triggers: List[PlanTrigger] = Field(default_factory=list)
    steps: List[PlanStep] = Field(default_factory=list)
    connections: List[PlanConnection] = Field(default_factory=list)
    error_handling: ErrorHandlingPolicy = Field(default_factory=ErrorHandlingPolicy)
    integrations: List[str] = Field(default_factory=list)
    volume_expected: Optional[str] = None

    def step_ids(self) -> List[str]:
        return [step.id for step in self.steps]


# ---------------------------------------------------------------------------
# Generated workflow


class ConnectionTarget(BaseModel):
    """One edge endpoint inside a connection branch."""

    node: str
    type: str = "main"
    index: int = 0


class WorkflowNode(_WireModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="allow"
    )

    id: str
    name: str
    type: str
    type_version: Union[int, float] = 1
    position: List[Union[int, float]] = Field(default_factory=lambda: [250, 300])
    parameters: Dict[str, Any] = Field(default_factory=dict)
    credentials: Optional[Dict[str, Dict[str, Any]]] = None


ConnectionMap = Dict[str, Dict[str, List[List[ConnectionTarget]]]]


class GeneratedWorkflow(_WireModel):
    """Importable workflow graph for the automation platform."""

    name: str
    description: str = ""
    nodes: List[WorkflowNode] = Field(default_factory=list)
    connections: ConnectionMap = Field(default_factory=dict)
    active: bool = False
    settings: Dict[str, Any] = Field(
        default_factory=lambda: {"executionOrder": "v1"}
    )
    tags: List[str] = Field(default_factory=list)
    meta: Dict[str, Any] = Field(default_factory=dict)

    def node_names(self) -> List[str]:
        return [node.name for node in self.nodes]

    def get_node(self, name: str) -> Optional[WorkflowNode]:
        return next((node for node in self.nodes if node.name == name), None)

    def has_outgoing(self, name: str) -> bool:
        branches = self.connections.get(name, {}).get("main", [])
        return any(branch for branch in branches)

    def connect(
        self, source: str, target: str, output_index: int = 0, input_index: int = 0
    ) -> None:
        """Add an edge from ``source`` output ``output_index`` to ``target`` input ``input_index``."""
        branches = self.connections.setdefault(source, {}).setdefault("main", [])
        while len(branches) <= output_index:
            branches.append([])
        branches[output_index].append(ConnectionTarget(node=target, index=input_index))


# ---------------------------------------------------------------------------
# Results


class ValidationResult(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: List[str]) -> "ValidationResult":
        return cls(valid=not errors, errors=errors)


class TokenBudget(BaseModel):
    input_tokens: int
    output_tokens: int


class ComplexityAssessment(BaseModel):
    """Scored classification used to budget LLM calls."""

    score: int
    complexity: ComplexityClass
    reasons: List[str] = Field(default_factory=list)
    recommended_tier: ModelTier
    budget: TokenBudget

    @property
    def is_complex(self) -> bool:
        return self.complexity == "complex"


class AutomationArtifact(BaseModel):
    """Final artifact handed to the persistence sink."""

    name: str
    description: str = ""
    platform: str = "n8n"
    workflow_json: Dict[str, Any]
    instructions: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)
