"""Pydantic models describing node types known to the generator."""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import NODE_PREFIX

NodeCategory = Literal["trigger", "action", "ai", "logic", "transform", "integration"]


class NodeTypeDescriptor(BaseModel):
    """Static description of one node kind.

    ``key`` is the abstract kind used by templates and prompts, ``type`` the
    canonical platform identifier written into generated workflows.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    type: str
    type_version: int | float = 1
    category: NodeCategory
    default_parameters: Dict[str, Any] = Field(default_factory=dict)
    required_credentials: List[str] = Field(default_factory=list)
    integration: Optional[str] = None
    notification: bool = False
    aliases: List[str] = Field(default_factory=list)
    docs: str = ""

    @field_validator("type")
    @classmethod
    def _ensure_prefixed(cls, v: str) -> str:
        if not v.startswith(NODE_PREFIX):
            raise ValueError(f"node type must start with {NODE_PREFIX!r}")
        return v

    @property
    def is_trigger(self) -> bool:
        return self.category == "trigger"

    @property
    def short_type(self) -> str:
        return self.type[len(NODE_PREFIX):]
