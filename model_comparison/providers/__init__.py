"""Provider access for model-comparison-service.

Providers:
- base: ProviderHandle, ProviderTransport ABC, TransportResponse
- http_transport: HttpTransport (OpenAI-compatible /chat/completions over httpx)
"""

from model_comparison.providers.base import (
    ProviderHandle,
    ProviderTransport,
    TransportResponse,
)
from model_comparison.providers.http_transport import HttpTransport


__all__: list[str] = [
    "HttpTransport",
    "ProviderHandle",
    "ProviderTransport",
    "TransportResponse",
]
