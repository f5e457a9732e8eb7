"""Comparison orchestration for model-comparison-service.

Modules:
- orchestrator: ComparisonOrchestrator (public entry point)
- concurrency: ConcurrencyController, ConcurrencyLimiter, ExecutionMode
- executor: SingleCallExecutor (one call, one outcome)
- policy: ExecutionPolicy (timeout tiers, retry plan)
- aggregator: ComparisonAggregator
- cancellation: CancellationToken
"""

from model_comparison.orchestration.aggregator import ComparisonAggregator
from model_comparison.orchestration.cancellation import CancellationToken
from model_comparison.orchestration.concurrency import (
    CallSpec,
    ConcurrencyController,
    ConcurrencyLimiter,
    ExecutionMode,
)
from model_comparison.orchestration.executor import SingleCallExecutor
from model_comparison.orchestration.orchestrator import (
    ComparisonOrchestrator,
    OrchestratorState,
)
from model_comparison.orchestration.policy import ExecutionPolicy, RetryPlan, TimeoutTier


__all__: list[str] = [
    "CallSpec",
    "CancellationToken",
    "ComparisonAggregator",
    "ComparisonOrchestrator",
    "ConcurrencyController",
    "ConcurrencyLimiter",
    "ExecutionMode",
    "ExecutionPolicy",
    "OrchestratorState",
    "RetryPlan",
    "SingleCallExecutor",
    "TimeoutTier",
]
