"""HTTP transport for OpenAI-compatible chat completion endpoints.

HttpTransport posts one prompt to {base_url}/chat/completions with httpx
and maps every failure onto the provider error taxonomy:

    httpx.TimeoutException      -> ProviderTimeoutError   (retriable)
    other httpx.TransportError  -> ProviderTransportError (retriable)
    non-2xx status              -> ProviderResponseError  (not retriable)
    malformed / empty body      -> ProviderResponseError  (not retriable)
    missing credential          -> ProviderResponseError  (not retriable)

Patterns applied:
- Shared httpx.AsyncClient, closed via aclose()
- Structured logging without credentials (only key lengths)
"""

from __future__ import annotations

from typing import Any

import httpx

from model_comparison.core.constants import (
    CHAT_COMPLETIONS_PATH,
    DEFAULT_TEMPERATURE,
    LARGE_PROMPT_CHARS,
    MAX_COMPLETION_TOKENS,
    MIN_COMPLETION_TOKENS,
)
from model_comparison.core.exceptions import (
    ProviderResponseError,
    ProviderTimeoutError,
    ProviderTransportError,
)
from model_comparison.core.logging import get_logger
from model_comparison.models.model_id import ModelIdentifier
from model_comparison.models.prompt import Prompt
from model_comparison.providers.base import (
    ProviderHandle,
    ProviderTransport,
    TransportResponse,
)


logger = get_logger(__name__)

# Maximum characters of an error body kept on ProviderResponseError
_MAX_ERROR_BODY_CHARS = 500


def completion_token_budget(prompt_length: int) -> int:
    """Compute max_tokens for a prompt of the given length.

    Long prompts always get the full budget; shorter ones get half their
    length, clamped to [1000, 4000].

    Args:
        prompt_length: Prompt length in characters.

    Returns:
        Value for the max_tokens field of the request payload.
    """
    if prompt_length > LARGE_PROMPT_CHARS:
        return MAX_COMPLETION_TOKENS
    return min(MAX_COMPLETION_TOKENS, max(MIN_COMPLETION_TOKENS, prompt_length // 2))


class HttpTransport(ProviderTransport):
    """ProviderTransport backed by httpx.AsyncClient.

    Attributes:
        temperature: Sampling temperature sent with every request.

    Example:
        transport = HttpTransport()
        try:
            response = await transport.complete(handle, model_id, prompt, 60.0)
        finally:
            await transport.aclose()
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> None:
        """Initialize HttpTransport.

        Args:
            client: Client to use. When omitted, the transport creates one
                and closes it in aclose(); a caller-supplied client is left
                open.
            temperature: Sampling temperature.
        """
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient()
        self.temperature = temperature

    # =========================================================================
    # Request Building
    # =========================================================================

    def build_headers(self, provider: ProviderHandle) -> dict[str, str]:
        """Build request headers for a provider."""
        headers = {
            "Authorization": f"Bearer {provider.api_key}",
            "Content-Type": "application/json",
            "Accept": provider.accept,
        }
        headers.update(provider.extra_headers)
        return headers

    def build_payload(
        self,
        provider: ProviderHandle,
        model_id: ModelIdentifier,
        prompt: Prompt,
    ) -> dict[str, Any]:
        """Build the chat completion request body."""
        return {
            "model": provider.api_model_name(model_id),
            "messages": [{"role": "user", "content": prompt.content}],
            "stream": False,
            "temperature": self.temperature,
            "max_tokens": completion_token_budget(prompt.length),
        }

    # =========================================================================
    # ProviderTransport
    # =========================================================================

    async def complete(
        self,
        provider: ProviderHandle,
        model_id: ModelIdentifier,
        prompt: Prompt,
        timeout_s: float,
    ) -> TransportResponse:
        """Send the prompt and return the first choice's text.

        Raises:
            ProviderTimeoutError: httpx gave up waiting.
            ProviderTransportError: Connection or protocol failure.
            ProviderResponseError: Missing credential, error status or
                unusable body.
        """
        if not provider.has_credentials:
            raise ProviderResponseError(
                f"{provider.name} API key is not configured",
                provider=provider.name,
            )

        url = provider.base_url.rstrip("/") + CHAT_COMPLETIONS_PATH
        logger.debug(
            "Sending chat completion",
            provider=provider.name,
            model=str(model_id),
            url=url,
            prompt_length=prompt.length,
            api_key_length=len(provider.api_key),
        )

        try:
            response = await self._client.post(
                url,
                json=self.build_payload(provider, model_id, prompt),
                headers=self.build_headers(provider),
                timeout=timeout_s,
            )
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(
                f"{provider.name} request timed out: {e}",
                provider=provider.name,
                timeout_s=timeout_s,
            ) from e
        except httpx.TransportError as e:
            raise ProviderTransportError(
                f"{provider.name} request failed: {e}",
                provider=provider.name,
            ) from e

        return self._parse_response(provider, response)

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    # =========================================================================
    # Response Parsing
    # =========================================================================

    def _parse_response(
        self, provider: ProviderHandle, response: httpx.Response
    ) -> TransportResponse:
        body_text = response.text
        if not response.is_success:
            logger.warning(
                "Provider returned error status",
                provider=provider.name,
                status_code=response.status_code,
            )
            raise ProviderResponseError(
                f"{provider.name} API error {response.status_code}: "
                f"{body_text[:_MAX_ERROR_BODY_CHARS]}",
                provider=provider.name,
                status_code=response.status_code,
                body=body_text[:_MAX_ERROR_BODY_CHARS],
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderResponseError(
                f"{provider.name} returned a body that is not JSON",
                provider=provider.name,
                status_code=response.status_code,
                body=body_text[:_MAX_ERROR_BODY_CHARS],
            ) from e

        if not isinstance(data, dict):
            raise ProviderResponseError(
                f"{provider.name} returned an unexpected body",
                provider=provider.name,
                status_code=response.status_code,
            )

        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            raise ProviderResponseError(
                f"No response choices returned from {provider.name} API",
                provider=provider.name,
                status_code=response.status_code,
            )

        first = choices[0] if isinstance(choices[0], dict) else {}
        message = first.get("message") if isinstance(first.get("message"), dict) else {}
        content = message.get("content")
        if not isinstance(content, str) or not content.strip():
            raise ProviderResponseError(
                f"Empty response content from {provider.name} API",
                provider=provider.name,
                status_code=response.status_code,
            )

        usage = data.get("usage") if isinstance(data.get("usage"), dict) else {}
        total_tokens = usage.get("total_tokens")
        return TransportResponse(
            text=content,
            total_tokens=total_tokens if isinstance(total_tokens, int) else None,
            raw=data,
        )
