"""Deterministic business-logic enhancements applied to generated workflows."""

from __future__ import annotations

from typing import List

from ..constants import (
    HTTP_MAX_RETRIES,
    HTTP_RETRY_INTERVAL_MS,
    NODE_PREFIX,
    WEBHOOK_PATH_PREFIX,
)
from ..models import GeneratedWorkflow
from ..registry import REGISTRY, NodeTypeRegistry

HTTP_TYPE = f"{NODE_PREFIX}httpRequest"
WEBHOOK_TYPE = f"{NODE_PREFIX}webhook"
EMAIL_SEND_TYPE = f"{NODE_PREFIX}emailSend"

EMAIL_CREDENTIALS = {"smtp": {"id": "{{EMAIL_CREDENTIALS}}", "name": "SMTP account"}}
HTTP_CREDENTIALS = {"httpHeaderAuth": {"id": "{{HTTP_CREDENTIALS}}", "name": "HTTP header auth"}}
WEBHOOK_CREDENTIALS = {"httpHeaderAuth": {"id": "{{N8N_WEBHOOK_TOKEN}}", "name": "X-PAI-Token"}}


def apply_http_retry(workflow: GeneratedWorkflow) -> bool:
    """Give every HTTP request node the standard retry policy."""

    changed = False
    for node in workflow.nodes:
        if node.type != HTTP_TYPE:
            continue
        setattr(node, "retryOnFail", True)
        setattr(node, "maxTries", HTTP_MAX_RETRIES)
        setattr(node, "waitBetweenTries", HTTP_RETRY_INTERVAL_MS)
        changed = True
    return changed


def apply_credential_placeholders(workflow: GeneratedWorkflow) -> bool:
    """Attach placeholder credentials to email and HTTP nodes lacking any."""

    changed = False
    for node in workflow.nodes:
        if node.credentials:
            continue
        if node.type == EMAIL_SEND_TYPE:
            node.credentials = {k: dict(v) for k, v in EMAIL_CREDENTIALS.items()}
            changed = True
        elif node.type == HTTP_TYPE:
            node.parameters.setdefault("authentication", "genericCredentialType")
            node.parameters.setdefault("genericAuthType", "httpHeaderAuth")
            node.credentials = {k: dict(v) for k, v in HTTP_CREDENTIALS.items()}
            changed = True
    return changed


def apply_webhook_defaults(
    workflow: GeneratedWorkflow, job_id: str, header_auth: bool = False
) -> bool:
    """Give webhook triggers a job-specific path and a fixed response contract."""

    changed = False
    count = 0
    for node in workflow.nodes:
        if node.type != WEBHOOK_TYPE:
            continue
        count += 1
        suffix = "" if count == 1 else f"-{count}"
        node.parameters.update(
            {
                "path": f"{WEBHOOK_PATH_PREFIX}/{job_id}{suffix}",
                "httpMethod": "POST",
                "responseMode": "onReceived",
                "responseCode": 200,
                "authentication": "headerAuth" if header_auth else "none",
            }
        )
        if header_auth:
            node.credentials = {k: dict(v) for k, v in WEBHOOK_CREDENTIALS.items()}
        changed = True
    return changed


def mark_terminal_notifications(
    workflow: GeneratedWorkflow, registry: NodeTypeRegistry = REGISTRY
) -> bool:
    """Flag notification nodes without outgoing edges as terminal."""

    changed = False
    for node in workflow.nodes:
        descriptor = registry.by_type(node.type)
        if descriptor is None or not descriptor.notification:
            continue
        if not workflow.has_outgoing(node.name):
            node.parameters["terminal"] = True
            changed = True
    return changed


def apply_enhancements(
    workflow: GeneratedWorkflow,
    job_id: str,
    header_auth: bool = False,
    registry: NodeTypeRegistry = REGISTRY,
) -> List[str]:
    """Apply every enhancement in place and return the names of those that changed something."""

    applied: List[str] = []
    if apply_http_retry(workflow):
        applied.append("http-retry")
    if apply_credential_placeholders(workflow):
        applied.append("credential-placeholders")
    if apply_webhook_defaults(workflow, job_id, header_auth):
        applied.append("webhook-defaults")
    if mark_terminal_notifications(workflow, registry):
        applied.append("terminal-notifications")
    workflow.meta["enhancements"] = applied
    return applied


__all__ = [
    "apply_credential_placeholders",
    "apply_enhancements",
    "apply_http_retry",
    "apply_webhook_defaults",
    "mark_terminal_notifications",
]
