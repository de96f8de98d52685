"""Tests for the deterministic workflow enhancements."""

from auditflow.generators.enhance import (
    apply_credential_placeholders,
    apply_enhancements,
    apply_http_retry,
    apply_webhook_defaults,
    mark_terminal_notifications,
)
from auditflow.models import GeneratedWorkflow
from auditflow.registry import REGISTRY

from tests.fixtures.fakes import sample_workflow


def test_http_nodes_get_retry_policy() -> None:
    workflow = sample_workflow()
    assert apply_http_retry(workflow)

    wire = workflow.get_node("Create Ticket").to_wire()
    assert wire["retryOnFail"] is True
    assert wire["maxTries"] == 3
    assert wire["waitBetweenTries"] == 1000
    assert "retryOnFail" not in workflow.get_node("Notify Owner").to_wire()


def test_credentials_are_only_added_where_missing() -> None:
    workflow = sample_workflow()
    email = workflow.get_node("Notify Owner")
    registry_credentials = dict(email.credentials)

    assert apply_credential_placeholders(workflow)

    http = workflow.get_node("Create Ticket")
    assert http.credentials == {
        "httpHeaderAuth": {"id": "{{HTTP_CREDENTIALS}}", "name": "HTTP header auth"}
    }
    assert http.parameters["genericAuthType"] == "httpHeaderAuth"
    assert email.credentials == registry_credentials


def test_bare_email_node_gets_smtp_placeholder() -> None:
    node = REGISTRY.build_node("email-send", "Mail", [0, 0])
    node.credentials = None
    workflow = GeneratedWorkflow(name="Mail", nodes=[node])

    apply_credential_placeholders(workflow)

    assert node.credentials["smtp"]["id"] == "{{EMAIL_CREDENTIALS}}"


def test_webhook_paths_are_job_specific() -> None:
    workflow = sample_workflow()
    workflow.nodes.append(REGISTRY.build_node("webhook", "Second Hook", [250, 500]))

    apply_webhook_defaults(workflow, "job-42")

    first = workflow.get_node("Receive Ticket").parameters
    assert first["path"] == "process-audit/job-42"
    assert first["httpMethod"] == "POST"
    assert first["responseCode"] == 200
    assert first["authentication"] == "none"
    assert workflow.get_node("Second Hook").parameters["path"] == "process-audit/job-42-2"


def test_webhook_header_auth_placeholder() -> None:
    workflow = sample_workflow()
    apply_webhook_defaults(workflow, "job-42", header_auth=True)

    hook = workflow.get_node("Receive Ticket")
    assert hook.parameters["authentication"] == "headerAuth"
    assert hook.credentials["httpHeaderAuth"]["id"] == "{{N8N_WEBHOOK_TOKEN}}"


def test_only_leaf_notifications_are_terminal() -> None:
    workflow = sample_workflow()
    assert mark_terminal_notifications(workflow)
    assert workflow.get_node("Notify Owner").parameters["terminal"] is True

    workflow.nodes.append(REGISTRY.build_node("no-op", "Done", [910, 300]))
    workflow.connect("Notify Owner", "Done")
    workflow.get_node("Notify Owner").parameters.pop("terminal")
    assert not mark_terminal_notifications(workflow)


def test_apply_enhancements_reports_what_changed() -> None:
    workflow = sample_workflow()
    applied = apply_enhancements(workflow, "job-1")

    assert applied == [
        "http-retry",
        "credential-placeholders",
        "webhook-defaults",
        "terminal-notifications",
    ]
    assert workflow.meta["enhancements"] == applied


def test_apply_enhancements_on_plain_workflow() -> None:
    workflow = GeneratedWorkflow(
        name="Plain", nodes=[REGISTRY.build_node("set", "Prepare", [250, 300])]
    )
    assert apply_enhancements(workflow, "job-1") == []
