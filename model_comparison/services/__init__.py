"""Services for model-comparison-service.

Services:
- provider_registry: ProviderRegistry (model id -> provider handle)
- repository: ComparisonRepository ABC, InMemoryComparisonRepository
"""

from model_comparison.services.provider_registry import ProviderRegistry
from model_comparison.services.repository import (
    ComparisonRepository,
    ComparisonStatistics,
    InMemoryComparisonRepository,
)


__all__: list[str] = [
    "ComparisonRepository",
    "ComparisonStatistics",
    "InMemoryComparisonRepository",
    "ProviderRegistry",
]
