"""Tests for output parsing, cost tracking and the pydantic-ai provider."""

import asyncio

import pytest
from pydantic_ai.exceptions import ModelHTTPError
from pydantic_ai.messages import ModelResponse, TextPart
from pydantic_ai.models.function import AgentInfo, FunctionModel
from pydantic_ai.usage import RequestUsage

from auditflow.config import FallbackModels, LLMConfig
from auditflow.errors import ParseError, ProviderError, SchemaError
from auditflow.llm import (
    CompletionOptions,
    CostMonitor,
    PydanticAICompletionProvider,
    estimate_tokens,
    parse_json_object,
)
from auditflow.llm.parsing import strip_fence


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_parse_plain_and_fenced_objects() -> None:
    assert parse_json_object('{"a": 1}') == {"a": 1}
    assert parse_json_object('```json\n{"a": 1}\n```') == {"a": 1}
    assert strip_fence("  plain  ") == "plain"


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   ",
        "Here is the plan: {\"a\": 1}",
        '{"a": 1} trailing words',
        "[1, 2, 3]",
        '```json\n{"a": 1}\n```\nand another ```{"b": 2}```',
    ],
)
def test_parse_rejects_anything_but_one_object(text) -> None:
    with pytest.raises(ParseError):
        parse_json_object(text)


def test_parse_error_is_a_schema_error() -> None:
    with pytest.raises(SchemaError) as exc:
        parse_json_object("{not json")
    assert exc.value.errors


def test_estimate_tokens() -> None:
    assert estimate_tokens("") == 0
    assert estimate_tokens("abcd") == 1
    assert estimate_tokens("abcde") == 2


def test_cost_monitor_records_and_summarises() -> None:
    clock = FakeClock()
    monitor = CostMonitor(clock=clock, limit=2)

    started = monitor.now()
    clock.now += 1.5
    first = monitor.record("standard", "orchestrator", 1_000_000, 0, started_at=started)
    monitor.record("advanced", "agent", 1000, 1000, success=False)
    monitor.record("advanced", "orchestrator", 0, 1_000_000)

    assert first.duration == pytest.approx(1.5)
    assert first.cost == pytest.approx(3.0)
    summary = monitor.summary()
    assert summary.calls == 2
    assert summary.failures == 1
    assert summary.total_cost == pytest.approx(75.0)
    assert summary.by_tier == {"advanced": 2}


def _provider(function, **kwargs) -> PydanticAICompletionProvider:
    model = FunctionModel(function)
    return PydanticAICompletionProvider({"standard": model, "advanced": model}, **kwargs)


@pytest.mark.asyncio
async def test_provider_returns_text_and_passes_settings() -> None:
    seen = {}

    def reply(messages, info: AgentInfo) -> ModelResponse:
        seen["settings"] = info.model_settings
        return ModelResponse(parts=[TextPart('{"ok": true}')])

    monitor = CostMonitor()
    provider = _provider(reply, cost_monitor=monitor, temperature=0.1)

    text = await provider.complete("plan this", CompletionOptions(tier="advanced", max_tokens=1234))

    assert text == '{"ok": true}'
    assert seen["settings"]["max_tokens"] == 1234
    assert seen["settings"]["temperature"] == 0.1
    assert monitor.history[0].tier == "advanced"
    assert monitor.history[0].success


@pytest.mark.asyncio
async def test_provider_wraps_http_errors() -> None:
    def reply(messages, info: AgentInfo) -> ModelResponse:
        raise ModelHTTPError(status_code=429, model_name="test", body="quota exceeded")

    monitor = CostMonitor()
    provider = _provider(reply, cost_monitor=monitor)

    with pytest.raises(ProviderError) as exc:
        await provider.complete("plan this", CompletionOptions())

    assert exc.value.provider == "standard"
    assert not monitor.history[0].success


@pytest.mark.asyncio
async def test_provider_times_out() -> None:
    async def slow(messages, info: AgentInfo) -> ModelResponse:
        await asyncio.sleep(1)
        return ModelResponse(parts=[TextPart("{}")])

    provider = _provider(slow)

    with pytest.raises(ProviderError, match="timed out"):
        await provider.complete("plan this", CompletionOptions(timeout=0.01))


@pytest.mark.asyncio
async def test_provider_without_models_raises_provider_error() -> None:
    provider = PydanticAICompletionProvider({})
    with pytest.raises(ProviderError):
        await provider.complete("plan this", CompletionOptions())


def test_provider_from_config() -> None:
    provider = PydanticAICompletionProvider.from_config(LLMConfig(timeout_seconds=5, temperature=0.5))
    assert provider.timeout == 5
    assert provider.temperature == 0.5


def test_provider_from_config_passes_fallbacks() -> None:
    config = LLMConfig(fallbacks=FallbackModels(standard="openai:gpt-4o"))
    provider = PydanticAICompletionProvider.from_config(config)
    assert provider.fallbacks == {"standard": "openai:gpt-4o"}


@pytest.mark.asyncio
async def test_provider_records_reported_usage() -> None:
    def reply(messages, info: AgentInfo) -> ModelResponse:
        return ModelResponse(
            parts=[TextPart('{"ok": true}')],
            usage=RequestUsage(input_tokens=120, output_tokens=30),
        )

    monitor = CostMonitor()
    provider = _provider(reply, cost_monitor=monitor)

    await provider.complete("plan this", CompletionOptions())

    record = monitor.history[0]
    assert (record.input_tokens, record.output_tokens) == (120, 30)


@pytest.mark.asyncio
async def test_provider_wraps_unexpected_sdk_errors() -> None:
    def reply(messages, info: AgentInfo) -> ModelResponse:
        raise RuntimeError("connection reset by peer")

    monitor = CostMonitor()
    provider = _provider(reply, cost_monitor=monitor)

    with pytest.raises(ProviderError, match="RuntimeError: connection reset by peer") as exc:
        await provider.complete("plan this", CompletionOptions(tier="advanced"))

    assert exc.value.provider == "advanced"
    assert isinstance(exc.value.__cause__, RuntimeError)
    assert monitor.history[0].output_tokens == 0
    assert not monitor.history[0].success


@pytest.mark.asyncio
async def test_provider_falls_back_when_primary_model_errors() -> None:
    def primary(messages, info: AgentInfo) -> ModelResponse:
        raise ModelHTTPError(status_code=503, model_name="primary", body="overloaded")

    def secondary(messages, info: AgentInfo) -> ModelResponse:
        return ModelResponse(parts=[TextPart('{"from": "fallback"}')])

    provider = PydanticAICompletionProvider(
        {"standard": FunctionModel(primary)},
        fallbacks={"standard": FunctionModel(secondary)},
    )

    text = await provider.complete("plan this", CompletionOptions())

    assert text == '{"from": "fallback"}'


@pytest.mark.asyncio
async def test_provider_raises_when_primary_and_fallback_fail() -> None:
    def down(messages, info: AgentInfo) -> ModelResponse:
        raise ModelHTTPError(status_code=503, model_name="down", body="overloaded")

    provider = PydanticAICompletionProvider(
        {"standard": FunctionModel(down)},
        fallbacks={"standard": FunctionModel(down)},
    )

    with pytest.raises(ProviderError):
        await provider.complete("plan this", CompletionOptions())
