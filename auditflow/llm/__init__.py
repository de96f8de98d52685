"""LLM access: provider interface, pydantic-ai adapter, cost tracking, parsing."""

from .base import CompletionOptions, CompletionProvider, estimate_tokens
from .cost import CostMonitor
from .parsing import parse_json_object
from .provider import PydanticAICompletionProvider

__all__ = [
    "CompletionOptions",
    "CompletionProvider",
    "CostMonitor",
    "PydanticAICompletionProvider",
    "estimate_tokens",
    "parse_json_object",
]
