"""Tests for configuration loading."""

import pytest

from auditflow.config import load_config
from auditflow.transports import InMemoryTransport, get_transport


def test_load_config_from_env(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
transport:
  backend: redis
  topic: audits
  redis:
    host: testhost
    port: 1234
llm:
  timeout_seconds: 12
  models:
    standard: test
worker:
  max_deliveries: 5
webhook_auth_placeholder: true
"""
    )
    monkeypatch.setenv("AUDITFLOW_CONFIG", str(config_path))

    config = load_config()
    assert config.transport.backend == "redis"
    assert config.transport.topic == "audits"
    assert config.transport.redis.host == "testhost"
    assert config.transport.redis.port == 1234
    assert config.llm.timeout_seconds == 12
    assert config.llm.models.standard == "test"
    assert config.llm.models.advanced.startswith("anthropic:")
    assert config.worker.max_deliveries == 5
    assert config.webhook_auth_placeholder is True


def test_defaults_without_file(tmp_path, monkeypatch):
    monkeypatch.delenv("AUDITFLOW_DATABASE_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("AUDITFLOW_BUILDER_URL", raising=False)
    monkeypatch.delenv("AUDITFLOW_BUILDER_TOKEN", raising=False)

    config = load_config(str(tmp_path / "missing.yaml"))

    assert config.transport.backend == "inmemory"
    assert config.database_url is None
    assert not config.workflow_builder.enabled


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("AUDITFLOW_DATABASE_URL", "sqlite:///tmp/jobs.db")
    monkeypatch.setenv("AUDITFLOW_BUILDER_URL", "http://builder.test")
    monkeypatch.setenv("AUDITFLOW_BUILDER_TOKEN", "token")

    config = load_config(str(tmp_path / "missing.yaml"))

    assert config.database_url == "sqlite:///tmp/jobs.db"
    assert config.workflow_builder.enabled


def test_get_transport_defaults_to_inmemory(tmp_path, monkeypatch):
    monkeypatch.delenv("AUDITFLOW_TRANSPORT", raising=False)
    monkeypatch.setenv("AUDITFLOW_CONFIG", str(tmp_path / "missing.yaml"))

    assert isinstance(get_transport(), InMemoryTransport)
    with pytest.raises(ValueError):
        get_transport("carrier-pigeon")


def test_get_transport_uses_config(tmp_path, monkeypatch):
    pytest.importorskip("redis")
    from auditflow.transports.redis import RedisTransport

    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
transport:
  backend: redis
  redis:
    host: confighost
    port: 6380
"""
    )
    monkeypatch.delenv("AUDITFLOW_TRANSPORT", raising=False)
    monkeypatch.setenv("AUDITFLOW_CONFIG", str(config_path))

    transport = get_transport()
    assert isinstance(transport, RedisTransport)
    assert transport.host == "confighost"
    assert transport.port == 6380
