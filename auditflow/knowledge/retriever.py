"""Token-overlap retrieval over node documentation."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence

from pydantic import BaseModel

from ..registry import REGISTRY, NodeTypeRegistry

DEFAULT_TOP_K = 6


class NodeDoc(BaseModel):
    key: str
    title: str
    content: str


def _score(text: str, query: str) -> int:
    text = text.lower()
    return sum(
        len(re.findall(re.escape(token), text)) for token in query.lower().split() if token
    )


class DocumentRetriever:
    """Ranks node documentation against a task description and node kinds."""

    def __init__(self, docs: Iterable[NodeDoc]) -> None:
        self.docs = list(docs)

    @classmethod
    def from_registry(cls, registry: NodeTypeRegistry = REGISTRY) -> "DocumentRetriever":
        return cls(
            NodeDoc(key=d.key, title=f"{d.key} ({d.type})", content=d.docs)
            for d in registry.descriptors()
            if d.docs
        )

    def relevant_docs(
        self,
        task: str,
        node_types: Optional[Sequence[str]] = None,
        top_k: int = DEFAULT_TOP_K,
        chars_per_doc: Optional[int] = None,
    ) -> List[NodeDoc]:
        """Return up to ``top_k`` docs, each truncated to ``chars_per_doc``.

        A doc's score is its best score over the task query and one query per
        requested node kind.
        """

        queries = [task or "workflow"] + [f"{nt} {nt.replace('-', ' ')}" for nt in node_types or []]
        ranked = []
        for doc in self.docs:
            haystack = f"{doc.key} {doc.title} {doc.content}"
            score = max(_score(haystack, q) for q in queries)
            if score > 0:
                ranked.append((score, doc))
        ranked.sort(key=lambda pair: pair[0], reverse=True)

        results: List[NodeDoc] = []
        for _, doc in ranked[:top_k]:
            if chars_per_doc is not None and len(doc.content) > chars_per_doc:
                doc = doc.model_copy(update={"content": doc.content[:chars_per_doc]})
            results.append(doc)
        return results


def render_docs(docs: Sequence[NodeDoc]) -> str:
    if not docs:
        return ""
    return "\n".join(["## Node reference"] + [f"- {doc.title}: {doc.content}" for doc in docs])


__all__ = ["DocumentRetriever", "NodeDoc", "render_docs"]
