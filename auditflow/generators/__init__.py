"""Workflow generation strategies and the ordered fallback chain."""

from .augmented import CapabilityAugmentedGenerator
from .base import GenerationOutcome, GenerationStrategy, finalize
from .chain import WorkflowGenerator, default_strategies
from .direct import DirectLLMGenerator
from .enhance import apply_enhancements
from .template import TEMPLATES, TemplateGenerator

__all__ = [
    "CapabilityAugmentedGenerator",
    "DirectLLMGenerator",
    "GenerationOutcome",
    "GenerationStrategy",
    "TEMPLATES",
    "TemplateGenerator",
    "WorkflowGenerator",
    "apply_enhancements",
    "default_strategies",
    "finalize",
]
