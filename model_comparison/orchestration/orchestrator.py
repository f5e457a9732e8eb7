"""Orchestrator - public entry point for model comparisons.

execute_comparison() moves each request through a fixed set of states:

    VALIDATING -> RESOLVING -> EXECUTING -> AGGREGATING -> DONE
         |             |            |
         v             v            v
       FAILED        FAILED     CANCELLED

Validation collects every problem before failing. Resolution fails the
whole request before any call is dispatched. Per-model failures never
fail the request; they are recorded as outcomes. The sealed aggregate is
handed to the repository exactly once.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Sequence
from enum import Enum
from typing import ClassVar

from model_comparison.core.config import Settings
from model_comparison.core.exceptions import (
    ComparisonCancelledError,
    ModelNotFoundError,
    ValidationError,
)
from model_comparison.core.logging import comparison_context, get_logger
from model_comparison.models.comparison import ComparisonAggregate
from model_comparison.models.model_id import ModelIdentifier
from model_comparison.models.outcomes import ExecutionOutcome
from model_comparison.models.prompt import Prompt
from model_comparison.orchestration.aggregator import ComparisonAggregator
from model_comparison.orchestration.cancellation import CancellationToken
from model_comparison.orchestration.concurrency import (
    CallSpec,
    ConcurrencyController,
    ExecutionMode,
)
from model_comparison.services.provider_registry import ProviderRegistry
from model_comparison.services.repository import ComparisonRepository, ComparisonStatistics


logger = get_logger(__name__)


class OrchestratorState(str, Enum):
    """Lifecycle states of one comparison request."""

    VALIDATING = "validating"
    RESOLVING = "resolving"
    EXECUTING = "executing"
    AGGREGATING = "aggregating"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"


StateListener = Callable[[OrchestratorState], None]


class _RequestState:
    """State machine for a single request."""

    _TRANSITIONS: ClassVar[dict[OrchestratorState, frozenset[OrchestratorState]]] = {
        OrchestratorState.VALIDATING: frozenset(
            {OrchestratorState.RESOLVING, OrchestratorState.FAILED}
        ),
        OrchestratorState.RESOLVING: frozenset(
            {OrchestratorState.EXECUTING, OrchestratorState.FAILED}
        ),
        OrchestratorState.EXECUTING: frozenset(
            {OrchestratorState.AGGREGATING, OrchestratorState.CANCELLED}
        ),
        OrchestratorState.AGGREGATING: frozenset({OrchestratorState.DONE}),
        OrchestratorState.DONE: frozenset(),
        OrchestratorState.FAILED: frozenset(),
        OrchestratorState.CANCELLED: frozenset(),
    }

    def __init__(self, listener: StateListener | None = None) -> None:
        self._listener = listener
        self.current = OrchestratorState.VALIDATING
        self._notify()

    def advance(self, target: OrchestratorState) -> None:
        """Move to target.

        Raises:
            RuntimeError: If the transition is not allowed.
        """
        if target not in self._TRANSITIONS[self.current]:
            raise RuntimeError(
                f"Illegal state transition {self.current.value} -> {target.value}"
            )
        self.current = target
        self._notify()

    def _notify(self) -> None:
        if self._listener is not None:
            self._listener(self.current)


class ComparisonOrchestrator:
    """Runs comparisons end to end.

    Attributes:
        registry: Resolves model ids to providers.
        controller: Schedules the calls.
        repository: Receives the sealed aggregate.
        aggregator: Builds aggregates from outcomes.
        max_models_per_comparison: Upper bound on models per request.
        max_concurrency: In-flight cap for parallel mode.
        default_mode: Mode used when the caller does not pick one.

    Example:
        orchestrator = create_orchestrator()
        aggregate = await orchestrator.execute_comparison(
            "Explain recursion", ["openai/gpt-4o-mini", "x-ai/grok-3:free"]
        )
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        controller: ConcurrencyController,
        repository: ComparisonRepository,
        aggregator: ComparisonAggregator | None = None,
        *,
        max_models_per_comparison: int = 3,
        max_concurrency: int = 3,
        default_mode: ExecutionMode = ExecutionMode.PARALLEL,
    ) -> None:
        """Initialize ComparisonOrchestrator.

        Raises:
            ValueError: If a limit is lower than 1.
        """
        if max_models_per_comparison < 1:
            raise ValueError("max_models_per_comparison must be at least 1")
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.registry = registry
        self.controller = controller
        self.repository = repository
        self.aggregator = aggregator or ComparisonAggregator()
        self.max_models_per_comparison = max_models_per_comparison
        self.max_concurrency = max_concurrency
        self.default_mode = default_mode

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        registry: ProviderRegistry,
        controller: ConcurrencyController,
        repository: ComparisonRepository,
    ) -> ComparisonOrchestrator:
        return cls(
            registry=registry,
            controller=controller,
            repository=repository,
            max_models_per_comparison=settings.max_models_per_comparison,
            max_concurrency=settings.max_concurrency,
            default_mode=ExecutionMode(settings.default_execution_mode),
        )

    # =========================================================================
    # Comparison
    # =========================================================================

    async def execute_comparison(
        self,
        prompt: str,
        model_ids: Sequence[str],
        mode: ExecutionMode | str | None = None,
        cancellation: CancellationToken | None = None,
        *,
        include_partial: bool = False,
        on_state_change: StateListener | None = None,
    ) -> ComparisonAggregate:
        """Send the prompt to every model and return the saved aggregate.

        Args:
            prompt: Prompt text.
            model_ids: Models to compare (1 to max_models_per_comparison).
            mode: SEQUENTIAL or PARALLEL; defaults to default_mode.
            cancellation: Optional cancellation signal.
            include_partial: Attach the sealed partial aggregate to
                ComparisonCancelledError.
            on_state_change: Called with every state the request enters.

        Returns:
            The aggregate returned by the repository.

        Raises:
            ValidationError: If the request is invalid or a model cannot be
                resolved. errors lists every problem found.
            ComparisonCancelledError: If cancellation was signalled.
        """
        state = _RequestState(on_state_change)

        # VALIDATING
        try:
            prompt_value, identifiers, selected_mode = self._validate_request(
                prompt, model_ids, mode
            )
        except ValidationError:
            state.advance(OrchestratorState.FAILED)
            raise

        # RESOLVING
        state.advance(OrchestratorState.RESOLVING)
        try:
            call_specs = self._resolve(identifiers)
        except ValidationError:
            state.advance(OrchestratorState.FAILED)
            raise

        # EXECUTING
        state.advance(OrchestratorState.EXECUTING)
        aggregate_id = str(uuid.uuid4())
        with comparison_context(aggregate_id):
            logger.info(
                "Comparison started",
                models=[str(spec.model_id) for spec in call_specs],
                mode=selected_mode.value,
                prompt_length=prompt_value.length,
            )
            outcomes = await self.controller.run(
                prompt_value,
                call_specs,
                selected_mode,
                self.max_concurrency,
                cancellation,
            )

            if cancellation is not None and cancellation.is_cancelled:
                state.advance(OrchestratorState.CANCELLED)
                logger.info("Comparison cancelled", completed=len(outcomes))
                partial = None
                if include_partial:
                    partial = self.aggregator.aggregate(prompt_value, outcomes, aggregate_id)
                    partial.seal()
                raise ComparisonCancelledError(comparison_id=aggregate_id, partial=partial)

            # AGGREGATING
            state.advance(OrchestratorState.AGGREGATING)
            aggregate = self.aggregator.aggregate(prompt_value, outcomes, aggregate_id)
            aggregate.seal()
            saved = await self.repository.save(aggregate)

            state.advance(OrchestratorState.DONE)
            logger.info(
                "Comparison completed",
                total_models=saved.total_models,
                successful_models=saved.successful_models,
                failed_models=saved.failed_models,
                average_response_time_ms=round(saved.average_response_time, 2),
            )
            return saved

    async def execute_single_model(
        self,
        prompt: str,
        model_id: str,
        cancellation: CancellationToken | None = None,
    ) -> ExecutionOutcome:
        """Run one model under the retry plan without building an aggregate.

        Raises:
            ValidationError: If the prompt or model id is invalid.
            ModelNotFoundError: If no provider serves the model.
            ComparisonCancelledError: If cancellation was signalled first.
        """
        prompt_value = Prompt.create(prompt)
        identifier = ModelIdentifier.create(model_id)
        provider = self.registry.resolve(identifier)
        bound_s = self.controller.policy.timeout_for(prompt_value.length)
        return await self.controller.execute_with_retry(
            prompt_value,
            CallSpec(model_id=identifier, provider=provider),
            bound_s,
            cancellation,
        )

    # =========================================================================
    # Model Queries
    # =========================================================================

    def validate_models(self, model_ids: Sequence[str]) -> list[str]:
        """Return one message per model that is malformed or not available."""
        errors: list[str] = []
        for raw in model_ids:
            try:
                identifier = ModelIdentifier.create(raw)
            except ValidationError as e:
                errors.append(e.message)
                continue
            if not self.registry.is_available(identifier):
                errors.append(f"Model {identifier} is not available")
        return errors

    def is_model_available(self, model_id: str) -> bool:
        return self.registry.is_available(model_id)

    def available_models(self) -> dict[str, list[str]]:
        return self.registry.available_models()

    def models_for_provider(self, provider_name: str) -> list[str]:
        return self.registry.models_for_provider(provider_name)

    async def statistics(self) -> ComparisonStatistics:
        return await self.repository.statistics()

    # =========================================================================
    # Helpers
    # =========================================================================

    def _select_mode(self, mode: ExecutionMode | str | None) -> ExecutionMode | None:
        """Map the requested mode to an ExecutionMode; None if unknown."""
        if mode is None:
            return self.default_mode
        if isinstance(mode, ExecutionMode):
            return mode
        try:
            return ExecutionMode(mode.lower())
        except ValueError:
            return None

    def _validate_request(
        self,
        prompt: str,
        model_ids: Sequence[str],
        mode: ExecutionMode | str | None = None,
    ) -> tuple[Prompt, list[ModelIdentifier], ExecutionMode]:
        errors: list[str] = []

        selected_mode = self._select_mode(mode)
        if selected_mode is None:
            errors.append(f"Unknown execution mode '{mode}'")

        prompt_value: Prompt | None = None
        try:
            prompt_value = Prompt.create(prompt)
        except ValidationError as e:
            errors.append(e.message)

        raw_ids = list(model_ids or [])
        if not raw_ids:
            errors.append("At least one model must be selected")
        elif len(raw_ids) > self.max_models_per_comparison:
            errors.append(
                f"Maximum of {self.max_models_per_comparison} models can be selected"
            )

        identifiers: list[ModelIdentifier] = []
        for raw in raw_ids:
            try:
                identifier = ModelIdentifier.create(raw)
            except ValidationError as e:
                errors.append(e.message)
                continue
            if identifier in identifiers:
                errors.append(f"Model {identifier} is selected more than once")
                continue
            identifiers.append(identifier)

        if errors or prompt_value is None or selected_mode is None:
            logger.warning("Comparison request rejected", errors=errors)
            raise ValidationError(
                "; ".join(errors),
                field="request",
                errors=errors,
            )
        return prompt_value, identifiers, selected_mode

    def _resolve(self, identifiers: list[ModelIdentifier]) -> list[CallSpec]:
        specs: list[CallSpec] = []
        errors: list[str] = []
        missing: list[str] = []
        for identifier in identifiers:
            try:
                provider = self.registry.resolve(identifier)
            except ModelNotFoundError:
                errors.append(f"Model {identifier} is not available")
                missing.append(str(identifier))
                continue
            specs.append(CallSpec(model_id=identifier, provider=provider))

        if errors:
            logger.warning("Comparison request has unknown models", models=missing)
            raise ValidationError(
                "; ".join(errors),
                field="model_ids",
                value=missing,
                errors=errors,
            )
        return specs
