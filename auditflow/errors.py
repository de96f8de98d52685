"""Exception taxonomy for the automation-generation pipeline."""

from __future__ import annotations

from typing import List, Optional, Sequence


class AutomationError(Exception):
    """Base class for errors that end a pipeline stage."""


class SchemaError(AutomationError):
    """A plan or workflow failed structural checks."""

    def __init__(self, message: str, errors: Optional[Sequence[str]] = None) -> None:
        self.errors: List[str] = list(errors or [])
        if self.errors:
            message = f"{message}: {'; '.join(self.errors)}"
        super().__init__(message)


class ParseError(SchemaError):
    """Model output was not well-formed structured data."""


class ProviderError(AutomationError):
    """An LLM provider or external service was unreachable or refused the call."""

    def __init__(self, message: str, provider: Optional[str] = None) -> None:
        self.provider = provider
        super().__init__(f"{provider}: {message}" if provider else message)


class PlanGenerationError(AutomationError):
    """Both orchestration prompt tiers failed to produce a conformant plan."""


class GenerationExhaustedError(AutomationError):
    """Every workflow generation strategy failed.

    ``attempts`` keeps ``(strategy, reason)`` pairs in the order they were
    tried; the message carries the last concrete error.
    """

    def __init__(self, attempts: Sequence[tuple[str, str]]) -> None:
        self.attempts = list(attempts)
        last = self.attempts[-1] if self.attempts else ("none", "no strategies configured")
        tried = ", ".join(name for name, _ in self.attempts) or "none"
        super().__init__(
            f"Workflow generation failed after trying [{tried}]; "
            f"last error from {last[0]}: {last[1]}"
        )

    @property
    def last_error(self) -> str:
        return self.attempts[-1][1] if self.attempts else ""


__all__ = [
    "AutomationError",
    "SchemaError",
    "ParseError",
    "ProviderError",
    "PlanGenerationError",
    "GenerationExhaustedError",
]
