"""Comparison Aggregator: folds outcomes into a ComparisonAggregate."""

from __future__ import annotations

from collections.abc import Iterable

from model_comparison.models.comparison import ComparisonAggregate
from model_comparison.models.outcomes import ExecutionOutcome
from model_comparison.models.prompt import Prompt


class ComparisonAggregator:
    """Builds aggregates from outcome lists. Pure; never calls outward."""

    def aggregate(
        self,
        prompt: Prompt,
        outcomes: Iterable[ExecutionOutcome],
        comparison_id: str | None = None,
    ) -> ComparisonAggregate:
        """Create an unsealed aggregate holding every outcome, in order.

        Args:
            prompt: Prompt the outcomes answer.
            outcomes: Outcomes to include.
            comparison_id: Id to give the aggregate; generated when omitted.

        Returns:
            New ComparisonAggregate.
        """
        if comparison_id is None:
            aggregate = ComparisonAggregate(prompt=prompt.content)
        else:
            aggregate = ComparisonAggregate(prompt=prompt.content, id=comparison_id)
        for outcome in outcomes:
            aggregate.add_outcome(outcome)
        return aggregate
