"""pydantic-ai backed completion provider."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Mapping, Optional, Union

from pydantic_ai import Agent
from pydantic_ai.exceptions import UserError
from pydantic_ai.models import Model
from pydantic_ai.models.fallback import FallbackModel

from ..config import LLMConfig
from ..errors import ProviderError
from ..models import ModelTier
from .base import CompletionOptions, estimate_tokens
from .cost import CostMonitor

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You design workflow automations for the n8n platform. "
    "Answer with a single JSON object and nothing else."
)


class PydanticAICompletionProvider:
    """Completion provider with one lazily created ``Agent`` per model tier.

    Args:
        models: Mapping of tier to a pydantic-ai model identifier such as
            ``"anthropic:claude-3-5-sonnet-latest"`` or a ``Model`` instance.
        fallbacks: Optional mapping of tier to a second model that takes over
            when the first one fails, via pydantic-ai's ``FallbackModel``.
        timeout: Default per-call timeout in seconds.
        temperature: Default sampling temperature.
        cost_monitor: Optional monitor receiving one record per call.
    """

    def __init__(
        self,
        models: Mapping[str, Union[str, Model]],
        fallbacks: Optional[Mapping[str, Union[str, Model]]] = None,
        timeout: float = 90.0,
        temperature: float = 0.2,
        cost_monitor: Optional[CostMonitor] = None,
    ) -> None:
        self._models = dict(models)
        self.fallbacks = dict(fallbacks or {})
        self._agents: Dict[str, Agent] = {}
        self.timeout = timeout
        self.temperature = temperature
        self.cost_monitor = cost_monitor

    @classmethod
    def from_config(
        cls, config: LLMConfig, cost_monitor: Optional[CostMonitor] = None
    ) -> "PydanticAICompletionProvider":
        return cls(
            models={"standard": config.models.standard, "advanced": config.models.advanced},
            fallbacks={
                tier: model
                for tier, model in config.fallbacks.model_dump().items()
                if model
            },
            timeout=config.timeout_seconds,
            temperature=config.temperature,
            cost_monitor=cost_monitor,
        )

    def _agent(self, tier: ModelTier) -> Agent:
        if tier not in self._agents:
            model = self._models.get(tier) or self._models.get("standard")
            if model is None:
                raise ProviderError(f"No model configured for tier '{tier}'", provider="pydantic-ai")
            fallback = self.fallbacks.get(tier)
            try:
                if fallback is not None:
                    model = FallbackModel(model, fallback)
                self._agents[tier] = Agent(model, output_type=str, system_prompt=SYSTEM_PROMPT)
            except UserError as e:
                raise ProviderError(str(e), provider="pydantic-ai") from e
        return self._agents[tier]

    async def complete(self, prompt: str, options: CompletionOptions) -> str:
        agent = self._agent(options.tier)
        timeout = options.timeout or self.timeout
        settings = {
            "max_tokens": options.max_tokens,
            "temperature": (
                options.temperature if options.temperature is not None else self.temperature
            ),
        }
        started = self.cost_monitor.now() if self.cost_monitor else None
        logger.debug(
            f"Requesting completion tier={options.tier} role={options.role} "
            f"max_tokens={options.max_tokens}"
        )
        try:
            result = await asyncio.wait_for(
                agent.run(prompt, model_settings=settings), timeout=timeout
            )
        except asyncio.TimeoutError as e:
            self._record(options, estimate_tokens(prompt), 0, started, success=False)
            raise ProviderError(
                f"Completion timed out after {timeout}s", provider=str(options.tier)
            ) from e
        except Exception as e:
            # Vendor SDK errors (connection resets, auth) are not all pydantic-ai
            # exceptions; every one of them is a provider failure here.
            self._record(options, estimate_tokens(prompt), 0, started, success=False)
            raise ProviderError(
                f"{type(e).__name__}: {e}", provider=str(options.tier)
            ) from e

        usage = result.usage()
        self._record(
            options,
            usage.input_tokens or 0,
            usage.output_tokens or 0,
            started,
            success=True,
        )
        return result.output

    def _record(
        self,
        options: CompletionOptions,
        input_tokens: int,
        output_tokens: int,
        started: Optional[float],
        success: bool,
    ) -> None:
        if self.cost_monitor is None:
            return
        self.cost_monitor.record(
            tier=options.tier,
            role=options.role,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            started_at=started,
            success=success,
        )
