"""Tests for the knowledge corpus, pattern analyzer and document retriever."""

import pytest
from pydantic import ValidationError

from auditflow.knowledge import (
    DocumentRetriever,
    NodeDoc,
    PatternAnalyzer,
    extract_keywords,
    load_corpus,
    render_advice,
    render_docs,
)

from tests.fixtures.fakes import make_plan


@pytest.fixture
def analyzer() -> PatternAnalyzer:
    return PatternAnalyzer(load_corpus())


def test_bundled_corpus_is_loaded_once() -> None:
    corpus = load_corpus()
    assert corpus is load_corpus()
    assert corpus.version == "2024.1"
    assert corpus.get("ticket-triage").metrics.success_rate == pytest.approx(0.93)
    assert corpus.practices_for("HTTP Requests")


def test_corpus_entries_are_immutable() -> None:
    entry = load_corpus().get("crm-sync")
    with pytest.raises(ValidationError):
        entry.name = "changed"


def test_load_corpus_from_path(tmp_path) -> None:
    path = tmp_path / "corpus.yaml"
    path.write_text(
        """
version: test
entries:
  - key: one
    category: general
    name: One
    description: A single entry
    metrics: {success_rate: 0.5}
"""
    )
    corpus = load_corpus(str(path))
    assert corpus.version == "test"
    assert [e.key for e in corpus.entries] == ["one"]
    assert corpus.best_practices == []


def test_extract_keywords_drops_short_and_stop_words() -> None:
    assert extract_keywords("Route the AI tickets, and notify!") == ["route", "tickets", "notify"]


def test_find_similar_matches_tags(analyzer) -> None:
    matches = analyzer.find_similar("Triage each ticket")
    assert [m.entry.key for m in matches] == ["ticket-triage"]
    assert matches[0].matched_tags == ["ticket"]
    assert matches[0].score == pytest.approx(0.4)


def test_find_similar_ignores_unrelated_text(analyzer) -> None:
    assert analyzer.find_similar("zzz qqq") == []


def test_find_similar_is_capped_and_limited(analyzer) -> None:
    matches = analyzer.find_similar(
        "support ticket classification routing email data sheets", limit=2
    )
    assert len(matches) == 2
    assert all(m.score <= 1.0 for m in matches)


def test_risks_for_plan_without_error_handling(analyzer) -> None:
    steps = [(f"s{i}", "transform") for i in range(11)]
    risks = {r.risk: r for r in analyzer.identify_risks(make_plan(steps=steps))}

    assert risks["No Error Handling"].severity == "high"
    assert risks["No Input Validation"].severity == "medium"
    assert "High Complexity" in risks
    assert "Hardcoded Values" not in risks


def test_practices_follow_plan_features(analyzer) -> None:
    plan = make_plan(steps=[("call", "http"), ("mail", "email")])
    categories = [p.category for p in analyzer.applicable_best_practices(plan)]

    assert "HTTP Requests" in categories
    assert "Email Operations" in categories
    assert "Webhook Authentication" in categories
    assert len(categories) == len(set(categories))


def test_similar_high_success_workflows_contribute_practices(analyzer) -> None:
    plan = make_plan()
    similar = analyzer.find_similar("Triage each ticket")
    practices = analyzer.applicable_best_practices(plan, similar)
    assert any(p.source == "similar_workflow" for p in practices)


def test_optimizations(analyzer) -> None:
    plan = make_plan(
        steps=[("a", "http"), ("b", "http")],
        description="Bulk import thousands of data rows from two APIs",
    )
    features = analyzer.features(plan)
    assert features.has_multiple_api_calls
    assert features.estimated_data_volume == 5000

    kinds = {(o.type, o.suggestion) for o in analyzer.generate_optimizations(plan)}
    assert ("performance", "Use batch processing for large datasets") in kinds
    assert ("security", "Add webhook authentication") in kinds


def test_common_sequences_need_two_members(analyzer) -> None:
    sequences = analyzer.common_sequences()
    assert len(sequences) == 1
    assert sequences[0].sequence == ["webhook", "set", "googleSheets"]
    assert sequences[0].frequency == 2
    assert sorted(sequences[0].use_cases) == [
        "Order Export to Spreadsheet",
        "Web Lead Capture to Spreadsheet",
    ]


def test_advice_rendering(analyzer) -> None:
    plan = make_plan(description="Send a weekly email digest")
    advice = analyzer.advise(plan)

    assert advice.workflow_type == "emailAutomation"
    text = render_advice(advice)
    assert "## Best practices" in text
    assert "## Risks to avoid" in text


def test_retriever_ranks_by_overlap_and_truncates() -> None:
    retriever = DocumentRetriever.from_registry()

    docs = retriever.relevant_docs("classification with openai", top_k=2, chars_per_doc=40)

    assert docs[0].key == "openai"
    assert len(docs) <= 2
    assert all(len(doc.content) <= 40 for doc in docs)


def test_retriever_uses_node_kinds() -> None:
    retriever = DocumentRetriever(
        [
            NodeDoc(key="webhook", title="webhook", content="receives requests"),
            NodeDoc(key="merge", title="merge", content="combines branches"),
        ]
    )
    docs = retriever.relevant_docs("nothing relevant", node_types=["merge"])
    assert [d.key for d in docs] == ["merge"]


def test_render_docs() -> None:
    assert render_docs([]) == ""
    rendered = render_docs([NodeDoc(key="set", title="set", content="sets fields")])
    assert rendered.startswith("## Node reference")
