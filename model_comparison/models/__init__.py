"""Domain models for model-comparison-service.

Models:
- prompt: Prompt value object
- model_id: ModelIdentifier value object
- outcomes: SuccessOutcome / ErrorOutcome / TimeoutOutcome
- comparison: ComparisonAggregate
"""

from model_comparison.models.comparison import ComparisonAggregate
from model_comparison.models.model_id import ModelIdentifier
from model_comparison.models.outcomes import (
    ErrorOutcome,
    ExecutionOutcome,
    OutcomeStatus,
    SuccessOutcome,
    TimeoutOutcome,
)
from model_comparison.models.prompt import Prompt


__all__: list[str] = [
    "ComparisonAggregate",
    "ErrorOutcome",
    "ExecutionOutcome",
    "ModelIdentifier",
    "OutcomeStatus",
    "Prompt",
    "SuccessOutcome",
    "TimeoutOutcome",
]
