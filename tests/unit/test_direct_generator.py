"""Tests for the last-resort direct LLM generator."""

import json

import pytest

from auditflow.complexity import ComplexityAssessor
from auditflow.errors import SchemaError
from auditflow.generators import DirectLLMGenerator
from auditflow.generators.direct import remap_connections, skeleton_nodes

from tests.fixtures.fakes import ScriptedProvider, make_job, make_plan

assessor = ComplexityAssessor()


def _generator(*replies) -> DirectLLMGenerator:
    return DirectLLMGenerator(ScriptedProvider(direct=list(replies)))


def test_skeleton_has_trigger_then_steps() -> None:
    nodes = skeleton_nodes(make_plan())

    assert [n.name for n in nodes] == ["Trigger", "Normalize", "Classify", "Notify"]
    assert [n.type for n in nodes] == [
        "n8n-nodes-base.webhook",
        "n8n-nodes-base.set",
        "n8n-nodes-base.openAi",
        "n8n-nodes-base.emailSend",
    ]
    assert nodes[1].position[0] > nodes[0].position[0]


def test_remap_connections_rewrites_ids() -> None:
    connections = {"n1": {"main": [[{"node": "n2", "type": "main", "index": 0}]]}}
    assert remap_connections(connections, {"n1": "Start", "n2": "End"}) == {
        "Start": {"main": [[{"node": "End", "type": "main", "index": 0}]]}
    }


def test_backfill_completes_sparse_nodes() -> None:
    data = {
        "nodes": [
            {"id": "a", "name": "Hook", "type": "webhook"},
            {"id": "b", "type": "httpRequest", "parameters": {"url": "{{API_URL}}"}},
            {"id": "c", "name": "Hook", "type": "n8n-nodes-base.set"},
        ],
        "connections": {"a": {"main": [[{"node": "b", "type": "main", "index": 0}]]}},
    }

    workflow = _generator().backfill(data, make_plan())

    assert workflow.name == "Ticket Triage"
    assert workflow.description.startswith("Classify incoming tickets")
    assert workflow.node_names() == ["Hook", "Node 2", "Hook 2"]
    http = workflow.get_node("Node 2")
    assert http.type == "n8n-nodes-base.httpRequest"
    assert http.type_version == 4
    assert len(http.position) == 2
    assert workflow.connections["Hook"]["main"][0][0].node == "Node 2"


def test_backfill_links_nodes_when_connections_are_missing() -> None:
    data = {
        "name": "Flow",
        "nodes": [
            {"name": "Start", "type": "n8n-nodes-base.manualTrigger"},
            {"name": "Finish", "type": "n8n-nodes-base.noOp"},
        ],
    }
    workflow = _generator().backfill(data, make_plan())

    assert workflow.connections["Start"]["main"][0][0].node == "Finish"
    assert all(node.id for node in workflow.nodes)


def test_backfill_rejects_non_object_nodes() -> None:
    with pytest.raises(SchemaError):
        _generator().backfill({"nodes": ["webhook"]}, make_plan())


@pytest.mark.asyncio
async def test_empty_graph_falls_back_to_plan_skeleton() -> None:
    job = make_job()
    plan = make_plan()
    generator = _generator(json.dumps({"name": "Triage"}))

    outcome = await generator.generate(plan, job, assessor.assess(job, plan))

    assert outcome.ok, outcome.reason
    workflow = outcome.workflow
    assert workflow.node_names() == ["Trigger", "Normalize", "Classify", "Notify"]
    assert workflow.connections["Classify"]["main"][0][0].node == "Notify"
    assert workflow.get_node("Trigger").parameters["path"] == "process-audit/job-1"
    assert workflow.meta["generationStrategy"] == "direct"
    assert workflow.meta["enhancements"] == ["webhook-defaults"]


@pytest.mark.asyncio
async def test_http_nodes_get_retry() -> None:
    job = make_job()
    plan = make_plan()
    reply = json.dumps(
        {
            "name": "Call API",
            "nodes": [
                {"name": "Hook", "type": "n8n-nodes-base.webhook"},
                {"name": "Call", "type": "n8n-nodes-base.httpRequest"},
            ],
        }
    )
    outcome = await _generator(reply).generate(plan, job, assessor.assess(job, plan))

    assert outcome.ok, outcome.reason
    assert outcome.workflow.get_node("Call").to_wire()["retryOnFail"] is True
    assert outcome.workflow.meta["enhancements"] == ["webhook-defaults", "http-retry"]


@pytest.mark.asyncio
async def test_unknown_node_type_fails_validation() -> None:
    job = make_job()
    plan = make_plan()
    reply = json.dumps(
        {"name": "Odd", "nodes": [{"name": "Mystery", "type": "n8n-nodes-base.teleport"}]}
    )
    outcome = await _generator(reply).generate(plan, job, assessor.assess(job, plan))

    assert not outcome.ok
    assert "teleport" in outcome.reason


@pytest.mark.asyncio
async def test_provider_error_is_a_failure() -> None:
    job = make_job()
    plan = make_plan()
    outcome = await _generator().generate(plan, job, assessor.assess(job, plan))

    assert not outcome.ok
    assert "no scripted reply" in outcome.reason
