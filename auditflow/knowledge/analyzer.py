"""Similarity search, risk detection and optimisation advice over the corpus."""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field

from ..models import OrchestrationPlan
from ..registry import REGISTRY, NodeTypeRegistry
from .corpus import BestPractice, KnowledgeCorpus, KnowledgeEntry

logger = logging.getLogger(__name__)

STOP_WORDS = frozenset(
    ["the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by"]
)
SIMILARITY_THRESHOLD = 0.3
HIGH_SUCCESS_RATE = 0.9
HIGH_VOLUME_RECORDS = 1000
MAX_STEPS_BEFORE_WARNING = 10

_NON_WORD = re.compile(r"[^\w\s]")


class SimilarWorkflow(BaseModel):
    entry: KnowledgeEntry
    score: float
    matched_tags: List[str] = Field(default_factory=list)
    reason: str = ""


class Risk(BaseModel):
    risk: str
    description: str
    failure_rate: float
    prevention: str
    severity: str


class Optimization(BaseModel):
    type: str
    suggestion: str
    implementation: str
    expected_improvement: str
    priority: str


class CommonSequence(BaseModel):
    sequence: List[str]
    frequency: int
    avg_success_rate: float
    avg_execution_seconds: float
    use_cases: List[str]


class PlanFeatures(BaseModel):
    has_http_requests: bool = False
    has_email_operations: bool = False
    has_data_processing: bool = False
    has_webhooks: bool = False
    has_authentication: bool = False
    has_multiple_api_calls: bool = False
    estimated_data_volume: int = 10


class Advice(BaseModel):
    """Advisory bundle rendered into generation prompts."""

    workflow_type: str
    similar: List[SimilarWorkflow] = Field(default_factory=list)
    practices: List[BestPractice] = Field(default_factory=list)
    risks: List[Risk] = Field(default_factory=list)
    optimizations: List[Optimization] = Field(default_factory=list)
    sequences: List[CommonSequence] = Field(default_factory=list)


def extract_keywords(text: str) -> List[str]:
    """Lower-cased words longer than two characters, stop words removed."""

    words = _NON_WORD.sub(" ", text.lower()).split()
    return [w for w in words if len(w) > 2 and w not in STOP_WORDS]


def estimate_data_volume(text: str) -> int:
    text = text.lower()
    if "thousands" in text or "bulk" in text:
        return 5000
    if "hundreds" in text:
        return 500
    if "many" in text or "multiple" in text:
        return 100
    return 10


def _plan_text(plan: OrchestrationPlan) -> str:
    parts = [plan.description, *(step.description for step in plan.steps)]
    return " ".join(p for p in parts if p).lower()


class PatternAnalyzer:
    """Advisory analysis of a plan against a :class:`KnowledgeCorpus`."""

    def __init__(self, corpus: KnowledgeCorpus, registry: NodeTypeRegistry = REGISTRY) -> None:
        self.corpus = corpus
        self.registry = registry

    # ------------------------------------------------------------------
    # classification and features

    def classify_workflow_type(self, plan: OrchestrationPlan) -> str:
        description = plan.description.lower()
        step_keys = self._step_keys(plan)
        if "email" in description or step_keys & {"email-send", "gmail-send"}:
            return "emailAutomation"
        if any(word in description for word in ("data", "csv", "database")):
            return "dataProcessing"
        if any(word in description for word in ("crm", "sync", "integration")):
            return "integrationWorkflows"
        return "general"

    def _step_keys(self, plan: OrchestrationPlan) -> set:
        return {self.registry.resolve_step(step.type).key for step in plan.steps}

    def features(self, plan: OrchestrationPlan) -> PlanFeatures:
        text = _plan_text(plan)
        step_keys = [self.registry.resolve_step(step.type).key for step in plan.steps]
        trigger_keys = [self.registry.resolve_trigger(t.type).key for t in plan.triggers]
        transform_keys = {
            d.key for d in self.registry.descriptors() if d.category == "transform"
        } | {"split-in-batches", "postgres", "google-sheets", "airtable"}
        return PlanFeatures(
            has_http_requests="http" in step_keys or bool(re.search(r"\bapis?\b", text)),
            has_email_operations=bool({"email-send", "gmail-send"} & set(step_keys))
            or "email" in text,
            has_data_processing=bool(transform_keys & set(step_keys)) or "data" in text,
            has_webhooks="webhook" in trigger_keys or "webhook" in text,
            has_authentication="auth" in text or "token" in text,
            has_multiple_api_calls=step_keys.count("http") > 1,
            estimated_data_volume=estimate_data_volume(text),
        )

    # ------------------------------------------------------------------
    # similarity

    def _similarity(self, keywords: List[str], entry: KnowledgeEntry) -> SimilarWorkflow:
        score = 0.0
        reasons: List[str] = []
        matched_tags = [tag for tag in entry.tags if tag in keywords]
        if matched_tags:
            score += 0.3 * len(matched_tags)
            reasons.append(f"Matched tags: {', '.join(matched_tags)}")
        entry_keywords = set(extract_keywords(entry.description))
        matched_keywords = [kw for kw in keywords if kw in entry_keywords]
        if matched_keywords:
            score += 0.2 * len(matched_keywords)
            reasons.append(f"Matched keywords: {', '.join(matched_keywords)}")
        if entry.metrics.success_rate > HIGH_SUCCESS_RATE:
            score += 0.1
            reasons.append(f"High success rate ({entry.metrics.success_rate * 100:.1f}%)")
        return SimilarWorkflow(
            entry=entry,
            score=min(score, 1.0),
            matched_tags=matched_tags,
            reason="; ".join(reasons),
        )

    def find_similar(
        self, plan: Union[OrchestrationPlan, str], limit: int = 3
    ) -> List[SimilarWorkflow]:
        """Corpus entries scoring above the relevance threshold, best first.

        ``plan`` may be a plan or raw description text, so the planner can
        look up references before a plan exists.
        """

        text = plan if isinstance(plan, str) else plan.description
        keywords = extract_keywords(text)
        scored = [self._similarity(keywords, entry) for entry in self.corpus.entries]
        relevant = [s for s in scored if s.score > SIMILARITY_THRESHOLD]
        relevant.sort(key=lambda s: s.score, reverse=True)
        return relevant[:limit]

    # ------------------------------------------------------------------
    # practices, risks and optimisations

    def applicable_best_practices(
        self, plan: OrchestrationPlan, similar: Optional[List[SimilarWorkflow]] = None
    ) -> List[BestPractice]:
        features = self.features(plan)
        practices: List[BestPractice] = []
        if features.has_http_requests:
            practices.extend(self.corpus.practices_for("HTTP Requests"))
        if features.has_email_operations:
            practices.extend(self.corpus.practices_for("Email Operations"))
        if features.has_data_processing:
            practices.extend(self.corpus.practices_for("Large Dataset Processing"))
        if features.has_webhooks:
            practices.extend(self.corpus.practices_for("Webhook Authentication"))

        for match in similar or []:
            entry = match.entry
            if entry.metrics.success_rate > HIGH_SUCCESS_RATE and entry.error_handling:
                practices.append(
                    BestPractice(
                        group="errorHandling",
                        category="Error Handling",
                        practice=entry.error_handling.strategy,
                        implementation=entry.error_handling.implementation,
                        success_rate=entry.metrics.success_rate,
                        description=f"Proven pattern from {entry.name}",
                        source="similar_workflow",
                    )
                )

        seen = set()
        unique: List[BestPractice] = []
        for practice in practices:
            key = (practice.category, practice.practice)
            if key not in seen:
                seen.add(key)
                unique.append(practice)
        return unique

    def _matches_anti_pattern(self, text: str, name: str) -> bool:
        if name == "No Error Handling":
            return not any(word in text for word in ("error", "retry", "handle"))
        if name == "Hardcoded Values":
            return "hardcode" in text or "fixed" in text
        if name == "No Input Validation":
            return not any(word in text for word in ("validat", "check", "verify"))
        return False

    def identify_risks(self, plan: OrchestrationPlan) -> List[Risk]:
        text = _plan_text(plan)
        risks = [
            Risk(
                risk=anti.name,
                description=anti.description,
                failure_rate=anti.failure_rate,
                prevention=anti.prevention,
                severity="high" if anti.failure_rate > 0.3 else "medium",
            )
            for anti in self.corpus.anti_patterns
            if self._matches_anti_pattern(text, anti.name)
        ]
        if len(plan.steps) > MAX_STEPS_BEFORE_WARNING:
            risks.append(
                Risk(
                    risk="High Complexity",
                    description="Workflows with many steps are harder to debug and maintain",
                    failure_rate=0.2,
                    prevention="Consider breaking into smaller, focused workflows",
                    severity="medium",
                )
            )
        return risks

    def generate_optimizations(self, plan: OrchestrationPlan) -> List[Optimization]:
        features = self.features(plan)
        optimizations: List[Optimization] = []
        if features.has_data_processing and features.estimated_data_volume > HIGH_VOLUME_RECORDS:
            optimizations.append(
                Optimization(
                    type="performance",
                    suggestion="Use batch processing for large datasets",
                    implementation="Add SplitInBatches node with batch size 100-500",
                    expected_improvement="60% faster execution",
                    priority="high",
                )
            )
        if features.has_multiple_api_calls:
            optimizations.append(
                Optimization(
                    type="performance",
                    suggestion="Implement parallel processing for independent API calls",
                    implementation="Use parallel execution paths and a Merge node",
                    expected_improvement="40% faster execution",
                    priority="medium",
                )
            )
        if features.has_email_operations:
            optimizations.append(
                Optimization(
                    type="reliability",
                    suggestion="Add email delivery confirmation",
                    implementation="Use email delivery status webhooks or read receipts",
                    expected_improvement="95% delivery confirmation",
                    priority="medium",
                )
            )
        if features.has_webhooks and not features.has_authentication:
            optimizations.append(
                Optimization(
                    type="security",
                    suggestion="Add webhook authentication",
                    implementation="Use headerAuth or HMAC signature validation",
                    expected_improvement="Prevents unauthorized access",
                    priority="high",
                )
            )
        return optimizations

    def common_sequences(self, entries: Optional[List[KnowledgeEntry]] = None) -> List[CommonSequence]:
        """Node sequences shared by at least two high-success reference workflows."""

        groups: Dict[tuple, List[KnowledgeEntry]] = {}
        for entry in entries if entries is not None else self.corpus.entries:
            if entry.template is None or entry.metrics.success_rate <= HIGH_SUCCESS_RATE:
                continue
            groups.setdefault(tuple(entry.template.node_sequence()), []).append(entry)

        sequences = [
            CommonSequence(
                sequence=list(sequence),
                frequency=len(members),
                avg_success_rate=sum(m.metrics.success_rate for m in members) / len(members),
                avg_execution_seconds=sum(m.metrics.avg_execution_seconds for m in members)
                / len(members),
                use_cases=[m.name for m in members],
            )
            for sequence, members in groups.items()
            if len(members) >= 2
        ]
        sequences.sort(key=lambda s: s.avg_success_rate, reverse=True)
        return sequences

    def advise(self, plan: OrchestrationPlan, limit: int = 3) -> Advice:
        similar = self.find_similar(plan, limit=limit)
        advice = Advice(
            workflow_type=self.classify_workflow_type(plan),
            similar=similar,
            practices=self.applicable_best_practices(plan, similar),
            risks=self.identify_risks(plan),
            optimizations=self.generate_optimizations(plan),
            sequences=self.common_sequences(),
        )
        logger.debug(
            f"Advice for plan '{plan.workflow_name}': {len(similar)} similar, "
            f"{len(advice.risks)} risks, {len(advice.optimizations)} optimizations"
        )
        return advice


def render_advice(advice: Advice) -> str:
    """Render an :class:`Advice` bundle as a prompt section."""

    lines: List[str] = ["## Proven reference workflows"]
    if advice.similar:
        for match in advice.similar:
            entry = match.entry
            lines.append(
                f"- {entry.name} (similarity {match.score:.2f}, success "
                f"{entry.metrics.success_rate * 100:.0f}%): {entry.description}"
            )
            if entry.template is not None:
                lines.append(f"  sequence: {' -> '.join(entry.template.node_sequence())}")
            for failure in entry.common_failures:
                lines.append(f"  known failure: {failure.issue} ({failure.prevention})")
    else:
        lines.append("- none found; follow the best practices below")

    lines.append("## Best practices")
    for practice in advice.practices:
        lines.append(f"- [{practice.category}] {practice.practice}: {practice.implementation}")
    if not advice.practices:
        lines.append("- include retry logic on external calls")

    lines.append("## Risks to avoid")
    for risk in advice.risks:
        lines.append(f"- {risk.risk} ({risk.severity}): {risk.prevention}")
    if not advice.risks:
        lines.append("- none detected")

    if advice.optimizations:
        lines.append("## Optimizations")
        for opt in advice.optimizations:
            lines.append(f"- {opt.suggestion} ({opt.priority}): {opt.implementation}")

    if advice.sequences:
        lines.append("## Proven node sequences")
        for seq in advice.sequences:
            lines.append(
                f"- {' -> '.join(seq.sequence)} (used by {seq.frequency} workflows, "
                f"{seq.avg_success_rate * 100:.0f}% success)"
            )
    return "\n".join(lines)


__all__ = [
    "Advice",
    "CommonSequence",
    "Optimization",
    "PatternAnalyzer",
    "PlanFeatures",
    "Risk",
    "SimilarWorkflow",
    "estimate_data_volume",
    "extract_keywords",
    "render_advice",
]
