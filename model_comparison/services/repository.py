"""Persistence collaborator for comparison aggregates.

ComparisonRepository is the seam the orchestrator hands sealed aggregates
to. InMemoryComparisonRepository is the bundled implementation; durable
storage plugs in behind the same ABC.

Follows: asyncio.Lock for concurrent access (as in ModelManager)
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass

from model_comparison.core.logging import get_logger
from model_comparison.models.comparison import ComparisonAggregate


logger = get_logger(__name__)


@dataclass(frozen=True)
class ComparisonStatistics:
    """Totals across stored comparisons.

    A comparison counts as successful when at least one model succeeded.

    Attributes:
        total_comparisons: Number of stored comparisons.
        successful_comparisons: Comparisons with at least one success.
        failed_comparisons: Comparisons where no model succeeded.
        average_response_time_ms: Mean of the per-comparison average
            response times, over comparisons with at least one success.
        total_tokens_used: Sum of reported tokens.
        most_used_model: Model that appears in the most outcomes.
        most_used_provider: Provider that served the most outcomes.
    """

    total_comparisons: int = 0
    successful_comparisons: int = 0
    failed_comparisons: int = 0
    average_response_time_ms: float = 0.0
    total_tokens_used: int = 0
    most_used_model: str | None = None
    most_used_provider: str | None = None

    @property
    def success_rate(self) -> float:
        """Fraction of successful comparisons (0.0 to 1.0)."""
        if self.total_comparisons == 0:
            return 0.0
        return self.successful_comparisons / self.total_comparisons


class ComparisonRepository(ABC):
    """Storage for sealed comparison aggregates."""

    @abstractmethod
    async def save(self, aggregate: ComparisonAggregate) -> ComparisonAggregate:
        """Persist a sealed aggregate and return the stored instance."""
        ...

    @abstractmethod
    async def get(self, comparison_id: str) -> ComparisonAggregate | None:
        """Return the stored aggregate with the given id, if any."""
        ...

    @abstractmethod
    async def list_recent(self, skip: int = 0, take: int = 50) -> list[ComparisonAggregate]:
        """Return stored aggregates, newest first."""
        ...

    @abstractmethod
    async def delete(self, comparison_id: str) -> bool:
        """Delete an aggregate. Returns True if something was removed."""
        ...

    @abstractmethod
    async def statistics(self) -> ComparisonStatistics:
        """Compute totals over all stored aggregates."""
        ...


class InMemoryComparisonRepository(ComparisonRepository):
    """Dictionary-backed repository guarded by an asyncio.Lock."""

    def __init__(self) -> None:
        self._items: dict[str, ComparisonAggregate] = {}
        self._lock = asyncio.Lock()

    async def save(self, aggregate: ComparisonAggregate) -> ComparisonAggregate:
        """Store the aggregate.

        Raises:
            ValueError: If the aggregate has not been sealed.
        """
        if not aggregate.is_sealed:
            raise ValueError(f"Comparison {aggregate.id} must be sealed before saving")
        async with self._lock:
            self._items[aggregate.id] = aggregate
        logger.info(
            "Comparison saved",
            total_models=aggregate.total_models,
            successful_models=aggregate.successful_models,
        )
        return aggregate

    async def get(self, comparison_id: str) -> ComparisonAggregate | None:
        async with self._lock:
            return self._items.get(comparison_id)

    async def list_recent(self, skip: int = 0, take: int = 50) -> list[ComparisonAggregate]:
        """Return up to take aggregates after skipping skip, newest first.

        Raises:
            ValueError: If skip or take is negative.
        """
        if skip < 0 or take < 0:
            raise ValueError("skip and take must be non-negative")
        async with self._lock:
            ordered = sorted(self._items.values(), key=lambda a: a.created_at, reverse=True)
        return ordered[skip : skip + take]

    async def delete(self, comparison_id: str) -> bool:
        async with self._lock:
            return self._items.pop(comparison_id, None) is not None

    async def statistics(self) -> ComparisonStatistics:
        async with self._lock:
            aggregates = list(self._items.values())

        if not aggregates:
            return ComparisonStatistics()

        successful = [a for a in aggregates if a.successful_models > 0]
        model_counts: Counter[str] = Counter()
        provider_counts: Counter[str] = Counter()
        for aggregate in aggregates:
            for outcome in aggregate.outcomes:
                model_counts[outcome.model_id] += 1
                provider_counts[outcome.provider] += 1

        return ComparisonStatistics(
            total_comparisons=len(aggregates),
            successful_comparisons=len(successful),
            failed_comparisons=len(aggregates) - len(successful),
            average_response_time_ms=(
                sum(a.average_response_time for a in successful) / len(successful)
                if successful
                else 0.0
            ),
            total_tokens_used=sum(a.total_tokens for a in aggregates),
            most_used_model=model_counts.most_common(1)[0][0] if model_counts else None,
            most_used_provider=(
                provider_counts.most_common(1)[0][0] if provider_counts else None
            ),
        )

    def __len__(self) -> int:
        return len(self._items)
