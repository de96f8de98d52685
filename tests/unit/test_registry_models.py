"""Tests for the node type registry."""

import pytest
from pydantic import ValidationError

from auditflow.registry import REGISTRY, NodeTypeDescriptor, NodeTypeRegistry, merge_parameters


def test_descriptor_requires_platform_prefix() -> None:
    with pytest.raises(ValidationError):
        NodeTypeDescriptor(key="bad", type="custom.node", category="action")


def test_descriptor_short_type_and_trigger_flag() -> None:
    webhook = REGISTRY["webhook"]
    assert webhook.short_type == "webhook"
    assert webhook.is_trigger
    assert not REGISTRY["http"].is_trigger


def test_email_alias_depends_on_position() -> None:
    assert REGISTRY.resolve_step("email").key == "email-send"
    assert REGISTRY.resolve_trigger("email").key == "email-trigger"


def test_resolve_accepts_keys_aliases_and_canonical_types() -> None:
    assert REGISTRY.resolve("openai").key == "openai"
    assert REGISTRY.resolve("Classification").key == "openai"
    assert REGISTRY.resolve("n8n-nodes-base.httpRequest").key == "http"
    assert REGISTRY.resolve("condition").key == "if"
    assert REGISTRY.resolve("no such thing") is None
    assert REGISTRY.resolve(None) is None


def test_unknown_kinds_fall_back_to_defaults() -> None:
    assert REGISTRY.resolve_step("teleport").key == "set"
    assert REGISTRY.resolve_step(None).key == "set"
    assert REGISTRY.resolve_trigger("carrier-pigeon").key == "webhook"
    # A trigger type in a step position is not accepted as a step.
    assert REGISTRY.resolve_step("n8n-nodes-base.webhook").key == "set"


def test_build_node_merges_defaults_and_adds_credential_placeholders() -> None:
    node = REGISTRY.build_node("openai", "Classify", [250, 300], {"options": {"temperature": 0}})

    assert node.type == "n8n-nodes-base.openAi"
    assert node.parameters["options"] == {"temperature": 0, "maxTokens": 1000}
    assert node.parameters["resource"] == "chat"
    assert node.credentials == {
        "openAiApi": {"id": "{{OPENAIAPI_CREDENTIALS}}", "name": "openAiApi"}
    }
    assert node.id


def test_build_node_without_credentials_and_with_fixed_id() -> None:
    node = REGISTRY.build_node("set", "Prepare", [0, 0], node_id="n1")
    assert node.id == "n1"
    assert node.credentials is None


def test_build_node_rejects_unknown_kind() -> None:
    with pytest.raises(KeyError):
        REGISTRY.build_node("teleport", "X", [0, 0])


def test_merge_parameters_does_not_mutate_defaults() -> None:
    defaults = {"options": {"a": 1}}
    merged = merge_parameters(defaults, {"options": {"b": 2}})
    assert merged == {"options": {"a": 1, "b": 2}}
    assert defaults == {"options": {"a": 1}}


def test_duplicate_keys_are_rejected() -> None:
    descriptor = REGISTRY["set"]
    with pytest.raises(ValueError):
        NodeTypeRegistry([descriptor, descriptor])


def test_step_vocabulary_excludes_trigger_aliases() -> None:
    vocabulary = REGISTRY.step_vocabulary()
    for step_type in ("http", "transform", "email", "ai", "condition"):
        assert step_type in vocabulary
    assert "cron" not in vocabulary


def test_every_catalog_type_is_known() -> None:
    for descriptor in REGISTRY.descriptors():
        assert REGISTRY.is_known_type(descriptor.type)
    assert len(REGISTRY.descriptors("trigger")) >= 4
