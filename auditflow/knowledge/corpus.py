"""Curated reference workflows, best practices and anti-patterns."""

from __future__ import annotations

import functools
import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DEFAULT_CORPUS_PATH = Path(__file__).parent / "data" / "corpus.yaml"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class SuccessMetrics(_Frozen):
    success_rate: float
    avg_execution_seconds: float = 0.0
    error_rate: float = 0.0


class TemplateNode(_Frozen):
    name: str
    type: str
    purpose: str = ""


class ReferenceTemplate(_Frozen):
    trigger: str
    nodes: List[TemplateNode] = Field(default_factory=list)

    def node_sequence(self) -> List[str]:
        return [self.trigger, *(node.type for node in self.nodes)]


class ErrorHandlingPattern(_Frozen):
    strategy: str
    implementation: str = ""


class KnownFailure(_Frozen):
    issue: str
    cause: str = ""
    prevention: str = ""


class KnowledgeEntry(_Frozen):
    """A reference workflow with its historical success metrics."""

    key: str
    category: str
    name: str
    description: str
    tags: List[str] = Field(default_factory=list)
    industries: List[str] = Field(default_factory=list)
    complexity: str = "medium"
    metrics: SuccessMetrics
    template: Optional[ReferenceTemplate] = None
    error_handling: Optional[ErrorHandlingPattern] = None
    common_failures: List[KnownFailure] = Field(default_factory=list)


class BestPractice(_Frozen):
    group: str
    category: str
    practice: str
    implementation: str = ""
    description: str = ""
    success_rate: Optional[float] = None
    source: str = "library"


class AntiPattern(_Frozen):
    name: str
    description: str
    failure_rate: float
    prevention: str = ""
    example: str = ""


class KnowledgeCorpus(_Frozen):
    """Versioned, read-only knowledge corpus."""

    version: str
    entries: List[KnowledgeEntry] = Field(default_factory=list)
    best_practices: List[BestPractice] = Field(default_factory=list)
    anti_patterns: List[AntiPattern] = Field(default_factory=list)

    def practices_for(self, category: str) -> List[BestPractice]:
        return [p for p in self.best_practices if p.category == category]

    def get(self, key: str) -> Optional[KnowledgeEntry]:
        return next((entry for entry in self.entries if entry.key == key), None)


def _read(path: Path) -> KnowledgeCorpus:
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    corpus = KnowledgeCorpus.model_validate(data)
    logger.info(
        f"Loaded knowledge corpus v{corpus.version} from {path} "
        f"({len(corpus.entries)} entries)"
    )
    return corpus


@functools.lru_cache(maxsize=1)
def _default_corpus() -> KnowledgeCorpus:
    return _read(DEFAULT_CORPUS_PATH)


def load_corpus(path: Optional[str] = None) -> KnowledgeCorpus:
    """Load a corpus from ``path`` or return the cached bundled corpus."""

    if path is None:
        return _default_corpus()
    return _read(Path(path))


__all__ = [
    "AntiPattern",
    "BestPractice",
    "ErrorHandlingPattern",
    "KnowledgeCorpus",
    "KnowledgeEntry",
    "KnownFailure",
    "ReferenceTemplate",
    "SuccessMetrics",
    "TemplateNode",
    "load_corpus",
]
