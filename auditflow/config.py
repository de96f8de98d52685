"""YAML-backed settings for auditflow."""

from __future__ import annotations

import os
from typing import Literal, Optional

import yaml
from pydantic import BaseModel


class RedisConfig(BaseModel):
    """Connection settings for the Redis job queue."""

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None


class TransportConfig(BaseModel):
    """Queue backend that carries job messages."""

    backend: Literal["inmemory", "redis"] = "inmemory"
    topic: str = "automation-jobs"
    redis: RedisConfig = RedisConfig()


class ModelTiers(BaseModel):
    """pydantic-ai model identifiers per tier."""

    standard: str = "anthropic:claude-3-5-sonnet-latest"
    advanced: str = "anthropic:claude-3-7-sonnet-latest"


class FallbackModels(BaseModel):
    """Optional second model per tier, tried when the first one errors."""

    standard: Optional[str] = None
    advanced: Optional[str] = None


class LLMConfig(BaseModel):
    models: ModelTiers = ModelTiers()
    fallbacks: FallbackModels = FallbackModels()
    timeout_seconds: float = 90.0
    temperature: float = 0.2


class WorkflowBuilderConfig(BaseModel):
    """Optional capability-augmented workflow-building service."""

    url: Optional[str] = None
    auth_token: Optional[str] = None
    timeout_seconds: float = 30.0

    @property
    def enabled(self) -> bool:
        return bool(self.url and self.auth_token)


class WorkerConfig(BaseModel):
    max_deliveries: int = 3
    backoff_base: float = 1.5


class AutomationConfig(BaseModel):
    """Settings shared by the CLI, dispatcher and worker."""

    transport: TransportConfig = TransportConfig()
    database_url: Optional[str] = None
    llm: LLMConfig = LLMConfig()
    workflow_builder: WorkflowBuilderConfig = WorkflowBuilderConfig()
    worker: WorkerConfig = WorkerConfig()
    webhook_auth_placeholder: bool = False


def load_config(path: Optional[str] = None) -> AutomationConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to AUDITFLOW_CONFIG env
            variable or 'auditflow.yaml' in the current directory.
    """

    config_path = path or os.getenv("AUDITFLOW_CONFIG", "auditflow.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = AutomationConfig(**data)
    else:
        config = AutomationConfig()

    env_db_url = os.getenv("AUDITFLOW_DATABASE_URL") or os.getenv("DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    builder_url = os.getenv("AUDITFLOW_BUILDER_URL")
    if builder_url:
        config.workflow_builder.url = builder_url
    builder_token = os.getenv("AUDITFLOW_BUILDER_TOKEN")
    if builder_token:
        config.workflow_builder.auth_token = builder_token
    return config
