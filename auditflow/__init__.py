"""auditflow: turn audited business processes into importable n8n workflows."""

from .complexity import ComplexityAssessor
from .config import AutomationConfig, load_config
from .context import ContextOptimizer
from .contracts import (
    AutomationJob,
    AutomationOpportunity,
    JobMessage,
    JobRequest,
    JobStatus,
    ProcessData,
)
from .dispatch import JobDispatcher
from .errors import (
    AutomationError,
    GenerationExhaustedError,
    ParseError,
    PlanGenerationError,
    ProviderError,
    SchemaError,
)
from .generators import WorkflowGenerator, default_strategies
from .knowledge import PatternAnalyzer, load_corpus, render_advice
from .models import (
    AutomationArtifact,
    ComplexityAssessment,
    GeneratedWorkflow,
    OrchestrationPlan,
    ValidationResult,
)
from .persistence import get_repository
from .planning import OrchestrationPlanGenerator
from .processor import JobOutcome, JobProcessor, create_processor
from .registry import REGISTRY
from .transports import get_transport
from .validation import summarize, validate_plan, validate_workflow
from .worker import JobWorker

__version__ = "0.1.0"
__all__ = [
    "AutomationArtifact",
    "AutomationConfig",
    "AutomationError",
    "AutomationJob",
    "AutomationOpportunity",
    "ComplexityAssessment",
    "ComplexityAssessor",
    "ContextOptimizer",
    "GeneratedWorkflow",
    "GenerationExhaustedError",
    "JobDispatcher",
    "JobMessage",
    "JobOutcome",
    "JobProcessor",
    "JobRequest",
    "JobStatus",
    "JobWorker",
    "OrchestrationPlan",
    "OrchestrationPlanGenerator",
    "ParseError",
    "PatternAnalyzer",
    "PlanGenerationError",
    "ProcessData",
    "ProviderError",
    "REGISTRY",
    "SchemaError",
    "ValidationResult",
    "WorkflowGenerator",
    "create_processor",
    "default_strategies",
    "get_repository",
    "get_transport",
    "load_config",
    "load_corpus",
    "render_advice",
    "summarize",
    "validate_plan",
    "validate_workflow",
]
