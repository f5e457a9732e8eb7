"""Base classes for provider access.

Defines the ProviderHandle value (a configured backend) and the
ProviderTransport ABC that performs the actual outbound call.

Patterns applied:
- ABC with @abstractmethod decorator
- Frozen dataclasses for values shared across concurrent calls
- Dataclass with field(default_factory=...) for mutable defaults
- PEP 604 union syntax (X | None)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from model_comparison.core.constants import MIME_APPLICATION_JSON
from model_comparison.models.model_id import ModelIdentifier
from model_comparison.models.prompt import Prompt


def _empty_headers() -> Mapping[str, str]:
    return MappingProxyType({})


@dataclass(frozen=True)
class ProviderHandle:
    """A configured backend and the models it serves.

    Handles are immutable, so one instance can be shared by every
    concurrent call that resolves to it.

    Attributes:
        name: Provider name (e.g., "OpenRouter").
        base_url: Base endpoint; "/chat/completions" is appended per call.
        models: Model identifiers served by this provider, in config order.
        api_key: Credential for the provider. Read-only; never logged.
        accept: Accept header value sent with each call.
        extra_headers: Additional headers sent with each call.
        strip_model_suffix: Send only the part before the first ":" as the
            model name (some providers reject suffixes such as ":free").

    Note:
        api_key is excluded from repr so handles can be logged safely.
    """

    name: str
    base_url: str
    models: tuple[str, ...] = ()
    api_key: str = field(default="", repr=False)
    accept: str = MIME_APPLICATION_JSON
    extra_headers: Mapping[str, str] = field(default_factory=_empty_headers, hash=False)
    strip_model_suffix: bool = False

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Provider name cannot be empty")
        if not self.base_url or not self.base_url.strip():
            raise ValueError(f"Provider {self.name} needs a base URL")
        # Normalize caller-supplied lists/dicts into immutable containers
        object.__setattr__(self, "models", tuple(self.models))
        object.__setattr__(self, "extra_headers", MappingProxyType(dict(self.extra_headers)))

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key.strip())

    def serves(self, model_id: str | ModelIdentifier) -> bool:
        """Check case-insensitively whether this provider lists the model."""
        wanted = str(model_id).strip().lower()
        return bool(wanted) and any(model.lower() == wanted for model in self.models)

    def api_model_name(self, model_id: str | ModelIdentifier) -> str:
        """Model name to put in the request payload for this provider."""
        text = str(model_id)
        if self.strip_model_suffix:
            return text.split(":", 1)[0]
        return text


@dataclass(frozen=True)
class TransportResponse:
    """Raw result of one successful provider call.

    Attributes:
        text: Response text of the first choice.
        total_tokens: Token usage reported by the provider, if any.
        raw: Decoded response body.
    """

    text: str
    total_tokens: int | None = None
    raw: Mapping[str, Any] = field(default_factory=dict, repr=False, hash=False, compare=False)


class ProviderTransport(ABC):
    """Abstract transport that sends one prompt to one model.

    Implementations return a TransportResponse or raise:
    - ProviderTimeoutError when their own timeout fires
    - ProviderTransportError on connection/protocol failures
    - ProviderResponseError when the provider answered with an error or an
      unusable body

    Example:
        class MyTransport(ProviderTransport):
            async def complete(self, provider, model_id, prompt, timeout_s):
                ...
                return TransportResponse(text="Pong", total_tokens=3)
    """

    @abstractmethod
    async def complete(
        self,
        provider: ProviderHandle,
        model_id: ModelIdentifier,
        prompt: Prompt,
        timeout_s: float,
    ) -> TransportResponse:
        """Send the prompt to the model and return its answer.

        Args:
            provider: Resolved provider handle.
            model_id: Model to call.
            prompt: Prompt to send.
            timeout_s: Upper bound for the whole request.

        Returns:
            TransportResponse with the response text and token usage.
        """
        ...

    async def aclose(self) -> None:  # noqa: B027
        """Release transport resources.

        Override in subclass if the transport owns connections.
        Default implementation does nothing.
        """
