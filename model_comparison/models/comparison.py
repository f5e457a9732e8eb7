"""Comparison aggregate.

A ComparisonAggregate bundles the prompt and every outcome of one
comparison. Statistics are derived on read from the outcome list, so
there is no second set of counters to keep in sync.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from model_comparison.core.exceptions import AggregateSealedError
from model_comparison.models.outcomes import ExecutionOutcome, OutcomeStatus, SuccessOutcome


def _new_comparison_id() -> str:
    return str(uuid.uuid4())


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ComparisonAggregate:
    """Result of one comparison: the prompt plus one outcome per model.

    Created once per orchestrated request, populated while outcomes arrive,
    then sealed before it is handed to persistence. A sealed aggregate
    rejects further changes.

    Attributes:
        prompt: The prompt text sent to every model.
        id: Generated unique identifier (uuid4).
        created_at: Creation timestamp (UTC).
    """

    prompt: str
    id: str = field(default_factory=_new_comparison_id)
    created_at: datetime = field(default_factory=_utc_now)
    _outcomes: list[ExecutionOutcome] = field(default_factory=list, init=False, repr=False)
    _sealed: bool = field(default=False, init=False, repr=False)

    # -------------------------------------------------------------------------
    # Population
    # -------------------------------------------------------------------------

    def add_outcome(self, outcome: ExecutionOutcome) -> None:
        """Append an outcome.

        Raises:
            AggregateSealedError: If the aggregate was already sealed.
        """
        if self._sealed:
            raise AggregateSealedError(
                f"Comparison {self.id} is sealed and cannot be modified",
                comparison_id=self.id,
            )
        self._outcomes.append(outcome)

    def seal(self) -> None:
        """Freeze the aggregate. Idempotent."""
        self._sealed = True

    @property
    def is_sealed(self) -> bool:
        return self._sealed

    @property
    def outcomes(self) -> tuple[ExecutionOutcome, ...]:
        """Outcomes in the order they were added."""
        return tuple(self._outcomes)

    # -------------------------------------------------------------------------
    # Derived statistics
    # -------------------------------------------------------------------------

    @property
    def total_models(self) -> int:
        return len(self._outcomes)

    @property
    def successful_models(self) -> int:
        return len(self._successes())

    @property
    def failed_models(self) -> int:
        """Outcomes that did not succeed (errors and timeouts)."""
        return self.total_models - self.successful_models

    @property
    def timed_out_models(self) -> int:
        return sum(1 for o in self._outcomes if o.status is OutcomeStatus.TIMEOUT)

    @property
    def average_response_time(self) -> float:
        """Mean latency in ms over successful outcomes; 0.0 when there are none."""
        successes = self._successes()
        if not successes:
            return 0.0
        return sum(o.latency_ms for o in successes) / len(successes)

    @property
    def total_tokens(self) -> int:
        """Sum of reported token counts, missing counts treated as zero."""
        return sum(o.token_count or 0 for o in self._outcomes)

    def fastest_success(self) -> SuccessOutcome | None:
        """Successful outcome with the lowest latency, if any."""
        successes = self._successes()
        return min(successes, key=lambda o: o.latency_ms) if successes else None

    def slowest_success(self) -> SuccessOutcome | None:
        """Successful outcome with the highest latency, if any."""
        successes = self._successes()
        return max(successes, key=lambda o: o.latency_ms) if successes else None

    def outcomes_for_provider(self, provider: str) -> list[ExecutionOutcome]:
        """Outcomes served by the named provider (case-insensitive)."""
        wanted = provider.lower()
        return [o for o in self._outcomes if o.provider.lower() == wanted]

    def _successes(self) -> list[SuccessOutcome]:
        return [o for o in self._outcomes if isinstance(o, SuccessOutcome)]
