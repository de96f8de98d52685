"""Curated knowledge: reference workflows, pattern analysis and node docs."""

from .analyzer import Advice, PatternAnalyzer, extract_keywords, render_advice
from .corpus import (
    AntiPattern,
    BestPractice,
    KnowledgeCorpus,
    KnowledgeEntry,
    load_corpus,
)
from .retriever import DocumentRetriever, NodeDoc, render_docs

__all__ = [
    "Advice",
    "AntiPattern",
    "BestPractice",
    "DocumentRetriever",
    "KnowledgeCorpus",
    "KnowledgeEntry",
    "NodeDoc",
    "PatternAnalyzer",
    "extract_keywords",
    "load_corpus",
    "render_advice",
    "render_docs",
]
