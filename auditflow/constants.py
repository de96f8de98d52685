"""Shared constants for the automation pipeline."""

PROGRESS_STARTED = 10
PROGRESS_PLANNED = 30
PROGRESS_GENERATED = 70
PROGRESS_COMPLETED = 100

PLATFORM = "n8n"
NODE_PREFIX = "n8n-nodes-base."

# Factor applied to the orchestrator output budget for the general plan prompt.
GENERAL_PLAN_BUDGET_FACTOR = 1.5

HTTP_MAX_RETRIES = 3
HTTP_RETRY_INTERVAL_MS = 1000

WEBHOOK_PATH_PREFIX = "process-audit"
