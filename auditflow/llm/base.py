"""Completion provider interface used by the planner and generators."""

from __future__ import annotations

from typing import Literal, Optional, Protocol

from pydantic import BaseModel

from ..models import ModelTier

Role = Literal["orchestrator", "agent"]


class CompletionOptions(BaseModel):
    tier: ModelTier = "standard"
    role: Role = "orchestrator"
    max_tokens: int = 3000
    temperature: Optional[float] = None
    timeout: Optional[float] = None


class CompletionProvider(Protocol):
    """Anything that turns a prompt into completion text.

    Implementations raise :class:`~auditflow.errors.ProviderError` when the
    model cannot be reached; malformed output is the caller's concern.
    """

    async def complete(self, prompt: str, options: CompletionOptions) -> str:
        """Return the completion text for ``prompt``."""


def estimate_tokens(text: str) -> int:
    """Approximate token count (four characters per token)."""

    return (len(text) + 3) // 4
