"""Built-in node catalog for the n8n target platform."""

from __future__ import annotations

from typing import List

from ..constants import NODE_PREFIX
from .models import NodeTypeDescriptor


def _t(short: str) -> str:
    return f"{NODE_PREFIX}{short}"


DEFAULT_NODE_TYPES: List[NodeTypeDescriptor] = [
    # Triggers
    NodeTypeDescriptor(
        key="webhook",
        type=_t("webhook"),
        type_version=1,
        category="trigger",
        default_parameters={
            "httpMethod": "POST",
            "path": "webhook",
            "responseMode": "onReceived",
        },
        aliases=["webhook", "http-trigger", "api-trigger"],
        docs="Webhook trigger: starts the workflow when an HTTP request hits its path. "
        "Supports POST and GET methods, response modes and header authentication.",
    ),
    NodeTypeDescriptor(
        key="schedule",
        type=_t("scheduleTrigger"),
        type_version=1,
        category="trigger",
        default_parameters={"rule": {"interval": [{"field": "hours", "hoursInterval": 1}]}},
        aliases=["schedule", "cron", "timer", "interval"],
        docs="Schedule trigger: runs the workflow on a cron expression or fixed interval.",
    ),
    NodeTypeDescriptor(
        key="email-trigger",
        type=_t("emailReadImap"),
        type_version=2,
        category="trigger",
        default_parameters={"mailbox": "INBOX", "postProcessAction": "read"},
        required_credentials=["imap"],
        integration="email",
        aliases=["email", "imap", "email-trigger", "inbox"],
        docs="Email trigger (IMAP): polls a mailbox and emits each new email with subject, "
        "sender, body text and attachments.",
    ),
    NodeTypeDescriptor(
        key="form-trigger",
        type=_t("formTrigger"),
        type_version=2,
        category="trigger",
        default_parameters={"formTitle": "Submission", "formFields": {"values": []}},
        aliases=["form", "form-trigger", "survey"],
        docs="Form trigger: hosts a web form and starts the workflow on each submission.",
    ),
    NodeTypeDescriptor(
        key="gmail-trigger",
        type=_t("gmailTrigger"),
        type_version=1,
        category="trigger",
        default_parameters={"pollTimes": {"item": [{"mode": "everyMinute"}]}, "filters": {}},
        required_credentials=["gmailOAuth2"],
        integration="gmail",
        aliases=["gmail-trigger", "gmailTrigger"],
        docs="Gmail trigger: polls a Gmail inbox for new messages matching label or search filters.",
    ),
    NodeTypeDescriptor(
        key="manual-trigger",
        type=_t("manualTrigger"),
        type_version=1,
        category="trigger",
        aliases=["manual", "manual-trigger"],
        docs="Manual trigger: starts the workflow from the editor for testing.",
    ),
    NodeTypeDescriptor(
        key="error-trigger",
        type=_t("errorTrigger"),
        type_version=1,
        category="trigger",
        aliases=["error", "error-trigger"],
        docs="Error trigger: starts an error workflow when another workflow execution fails.",
    ),
    # Integrations and actions
    NodeTypeDescriptor(
        key="gmail-send",
        type=_t("gmail"),
        type_version=2,
        category="integration",
        default_parameters={"resource": "message", "operation": "send"},
        required_credentials=["gmailOAuth2"],
        integration="gmail",
        notification=True,
        aliases=["gmail", "gmail-send"],
        docs="Gmail: send, reply to, label and read Gmail messages. Use operation send with "
        "sendTo, subject and message.",
    ),
    NodeTypeDescriptor(
        key="email-send",
        type=_t("emailSend"),
        type_version=2,
        category="action",
        default_parameters={
            "fromEmail": "{{FROM_EMAIL}}",
            "toEmail": "{{RECIPIENT_EMAIL}}",
            "subject": "Notification",
            "text": "",
        },
        required_credentials=["smtp"],
        integration="email",
        notification=True,
        aliases=["email", "email-send", "send-email", "notify", "notification", "mail"],
        docs="Send Email (SMTP): sends an email with subject, text or HTML body and attachments.",
    ),
    NodeTypeDescriptor(
        key="google-sheets",
        type=_t("googleSheets"),
        type_version=4,
        category="integration",
        default_parameters={"operation": "append", "options": {}},
        required_credentials=["googleSheetsOAuth2Api"],
        integration="googleSheets",
        aliases=["sheets", "google-sheets", "googleSheets", "spreadsheet"],
        docs="Google Sheets: append, update, lookup and read rows in a spreadsheet. "
        "Append is idempotent when a key column is used with update.",
    ),
    NodeTypeDescriptor(
        key="airtable",
        type=_t("airtable"),
        type_version=2,
        category="integration",
        default_parameters={"operation": "create", "options": {"typecast": True}},
        required_credentials=["airtableTokenApi"],
        integration="airtable",
        aliases=["airtable", "base"],
        docs="Airtable: create, update, search and delete records in an Airtable base table.",
    ),
    NodeTypeDescriptor(
        key="openai",
        type=_t("openAi"),
        type_version=1,
        category="ai",
        default_parameters={
            "resource": "chat",
            "model": "gpt-4o-mini",
            "options": {"temperature": 0.2, "maxTokens": 1000},
        },
        required_credentials=["openAiApi"],
        integration="openai",
        aliases=[
            "ai",
            "openai",
            "openAi",
            "llm",
            "classification",
            "classify",
            "ai-classification",
            "analysis",
            "summarize",
        ],
        docs="OpenAI: chat completion for classification, summarisation, extraction and "
        "sentiment analysis. Prompt with a system message and return structured JSON.",
    ),
    NodeTypeDescriptor(
        key="function",
        type=_t("function"),
        type_version=1,
        category="transform",
        default_parameters={"functionCode": "return items;"},
        aliases=["function", "code", "script", "javascript"],
        docs="Function: runs custom JavaScript over all items for parsing and reshaping data.",
    ),
    NodeTypeDescriptor(
        key="set",
        type=_t("set"),
        type_version=1,
        category="transform",
        default_parameters={"keepOnlySet": False, "values": {"string": []}},
        aliases=["set", "transform", "map", "format", "mapping", "normalize"],
        docs="Set: adds, renames or removes fields on each item to normalise data.",
    ),
    NodeTypeDescriptor(
        key="if",
        type=_t("if"),
        type_version=1,
        category="logic",
        default_parameters={"conditions": {}},
        aliases=["if", "condition", "conditional", "branch", "decision"],
        docs="IF: routes items to the true or false output based on conditions.",
    ),
    NodeTypeDescriptor(
        key="switch",
        type=_t("switch"),
        type_version=1,
        category="logic",
        default_parameters={"mode": "rules", "rules": {"rules": []}},
        aliases=["switch", "route", "router", "routing"],
        docs="Switch: routes items to one of several outputs by matching rules, "
        "for example by category or priority.",
    ),
    NodeTypeDescriptor(
        key="merge",
        type=_t("merge"),
        type_version=2,
        category="logic",
        default_parameters={"mode": "append"},
        aliases=["merge", "join", "combine"],
        docs="Merge: combines items from two inputs by appending or matching fields.",
    ),
    NodeTypeDescriptor(
        key="http",
        type=_t("httpRequest"),
        type_version=4,
        category="integration",
        default_parameters={"method": "GET", "url": "{{API_URL}}", "options": {}},
        integration="http",
        aliases=["http", "api", "httpRequest", "http-request", "request", "rest"],
        docs="HTTP Request: calls any REST API with authentication, pagination, "
        "retry on fail and batching options.",
    ),
    NodeTypeDescriptor(
        key="split-in-batches",
        type=_t("splitInBatches"),
        type_version=3,
        category="logic",
        default_parameters={"batchSize": 100, "options": {}},
        aliases=["split", "batch", "batches", "splitInBatches", "split-in-batches", "loop"],
        docs="Split In Batches: loops over items in fixed-size batches for bulk processing.",
    ),
    NodeTypeDescriptor(
        key="postgres",
        type=_t("postgres"),
        type_version=2,
        category="integration",
        default_parameters={"operation": "insert", "schema": "public"},
        required_credentials=["postgres"],
        integration="postgres",
        aliases=["postgres", "database", "db", "sql", "postgresql"],
        docs="Postgres: insert, update, upsert and query rows in a PostgreSQL database.",
    ),
    NodeTypeDescriptor(
        key="slack",
        type=_t("slack"),
        type_version=2,
        category="integration",
        default_parameters={
            "resource": "message",
            "operation": "post",
            "channel": "{{SLACK_CHANNEL}}",
            "text": "",
        },
        required_credentials=["slackApi"],
        integration="slack",
        notification=True,
        aliases=["slack", "chat", "message"],
        docs="Slack: post messages to channels or users and manage channels.",
    ),
    NodeTypeDescriptor(
        key="respond-to-webhook",
        type=_t("respondToWebhook"),
        type_version=1,
        category="action",
        default_parameters={"respondWith": "json", "responseBody": "={{ $json }}"},
        aliases=["respond", "response", "respondToWebhook", "respond-to-webhook", "reply"],
        docs="Respond to Webhook: returns a custom response to the caller of a webhook trigger.",
    ),
    NodeTypeDescriptor(
        key="no-op",
        type=_t("noOp"),
        type_version=1,
        category="logic",
        aliases=["noop", "no-op", "end", "done"],
        docs="No Operation: passes items through unchanged; useful as a branch terminator.",
    ),
    NodeTypeDescriptor(
        key="stop-and-error",
        type=_t("stopAndError"),
        type_version=1,
        category="logic",
        default_parameters={"errorMessage": "Workflow stopped"},
        aliases=["stop", "fail", "stop-and-error"],
        docs="Stop and Error: fails the execution with a custom message.",
    ),
]
