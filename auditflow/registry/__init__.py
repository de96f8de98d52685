"""Node type registry: the static catalog of node kinds generators may emit."""

from __future__ import annotations

import copy
import re
import uuid
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..models import WorkflowNode
from .catalog import DEFAULT_NODE_TYPES
from .models import NodeCategory, NodeTypeDescriptor

DEFAULT_STEP_KEY = "set"
DEFAULT_TRIGGER_KEY = "webhook"


def _norm(value: str) -> str:
    return re.sub(r"[^a-z0-9]", "", value.lower())


def merge_parameters(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Deep-merge ``overrides`` into a copy of ``defaults``."""

    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_parameters(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def credential_placeholder(kind: str) -> Dict[str, str]:
    """Placeholder credential reference filled in by the user after import."""

    return {"id": f"{{{{{kind.upper()}_CREDENTIALS}}}}", "name": kind}


class NodeTypeRegistry:
    """Read-only lookup over :class:`NodeTypeDescriptor` entries.

    Lookups accept the abstract key, any alias, or the canonical platform
    type. Trigger and step aliases are kept apart so that ``"email"`` means
    the IMAP trigger in a trigger position and the SMTP sender in a step
    position.
    """

    def __init__(self, descriptors: Iterable[NodeTypeDescriptor]) -> None:
        self._by_key: Dict[str, NodeTypeDescriptor] = {}
        self._by_type: Dict[str, NodeTypeDescriptor] = {}
        self._trigger_aliases: Dict[str, NodeTypeDescriptor] = {}
        self._step_aliases: Dict[str, NodeTypeDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.key in self._by_key:
                raise ValueError(f"Duplicate node key: {descriptor.key}")
            self._by_key[descriptor.key] = descriptor
            self._by_type.setdefault(descriptor.type, descriptor)
            table = self._trigger_aliases if descriptor.is_trigger else self._step_aliases
            for alias in [descriptor.key, descriptor.short_type, *descriptor.aliases]:
                table.setdefault(_norm(alias), descriptor)

    def __contains__(self, key: str) -> bool:
        return key in self._by_key

    def __getitem__(self, key: str) -> NodeTypeDescriptor:
        return self._by_key[key]

    def __len__(self) -> int:
        return len(self._by_key)

    def keys(self) -> List[str]:
        return list(self._by_key)

    def descriptors(self, category: Optional[NodeCategory] = None) -> List[NodeTypeDescriptor]:
        return [d for d in self._by_key.values() if category is None or d.category == category]

    def get(self, key: str) -> Optional[NodeTypeDescriptor]:
        return self._by_key.get(key)

    def by_type(self, node_type: str) -> Optional[NodeTypeDescriptor]:
        return self._by_type.get(node_type)

    def is_known_type(self, node_type: str) -> bool:
        return node_type in self._by_type

    def resolve(self, value: Optional[str]) -> Optional[NodeTypeDescriptor]:
        """Resolve a key, canonical type, step alias or trigger alias."""

        if not value:
            return None
        if value in self._by_key:
            return self._by_key[value]
        if value in self._by_type:
            return self._by_type[value]
        norm = _norm(value)
        return self._step_aliases.get(norm) or self._trigger_aliases.get(norm)

    def resolve_step(self, step_type: Optional[str]) -> NodeTypeDescriptor:
        """Descriptor for a plan step type, falling back to a Set node."""

        if step_type:
            direct = self._by_type.get(step_type)
            if direct is not None and not direct.is_trigger:
                return direct
            found = self._step_aliases.get(_norm(step_type))
            if found is not None:
                return found
        return self._by_key[DEFAULT_STEP_KEY]

    def resolve_trigger(self, trigger_type: Optional[str]) -> NodeTypeDescriptor:
        """Descriptor for a plan trigger type, falling back to a webhook."""

        if trigger_type:
            direct = self._by_type.get(trigger_type)
            if direct is not None and direct.is_trigger:
                return direct
            found = self._trigger_aliases.get(_norm(trigger_type))
            if found is not None:
                return found
        return self._by_key[DEFAULT_TRIGGER_KEY]

    def step_vocabulary(self) -> List[str]:
        """Aliases accepted as plan step types, for prompts."""

        return sorted({alias for d in self.descriptors() if not d.is_trigger for alias in d.aliases})

    def build_node(
        self,
        key: str,
        name: str,
        position: Sequence[float],
        parameters: Optional[Dict[str, Any]] = None,
        node_id: Optional[str] = None,
    ) -> WorkflowNode:
        """Create a node of kind ``key`` with defaults merged under ``parameters``."""

        descriptor = self._by_key.get(key) or self.resolve(key)
        if descriptor is None:
            raise KeyError(f"Unknown node kind: {key}")
        credentials = {
            kind: credential_placeholder(kind) for kind in descriptor.required_credentials
        } or None
        return WorkflowNode(
            id=node_id or str(uuid.uuid4()),
            name=name,
            type=descriptor.type,
            type_version=descriptor.type_version,
            position=[position[0], position[1]],
            parameters=merge_parameters(descriptor.default_parameters, parameters or {}),
            credentials=credentials,
        )


# Process-wide catalog. It is never mutated after import.
REGISTRY = NodeTypeRegistry(DEFAULT_NODE_TYPES)


__all__ = [
    "NodeCategory",
    "NodeTypeDescriptor",
    "NodeTypeRegistry",
    "DEFAULT_NODE_TYPES",
    "REGISTRY",
    "credential_placeholder",
    "merge_parameters",
]
