"""Single-Call Executor: one prompt, one model, one outcome.

The executor performs exactly one attempt and classifies its result:

    response text            -> SuccessOutcome
    bound exceeded           -> TimeoutOutcome
    ProviderTimeoutError     -> TimeoutOutcome
    ProviderTransportError   -> ErrorOutcome (transient)
    ProviderResponseError    -> ErrorOutcome
    anything else            -> ErrorOutcome (logged with traceback)

Retries are the Concurrency Controller's job.
"""

from __future__ import annotations

import asyncio
import time

from model_comparison.core.exceptions import (
    ComparisonCancelledError,
    ProviderResponseError,
    ProviderTimeoutError,
    ProviderTransportError,
)
from model_comparison.core.logging import get_logger
from model_comparison.models.model_id import ModelIdentifier
from model_comparison.models.outcomes import (
    ErrorOutcome,
    ExecutionOutcome,
    SuccessOutcome,
    TimeoutOutcome,
)
from model_comparison.models.prompt import Prompt
from model_comparison.orchestration.cancellation import CancellationToken
from model_comparison.providers.base import ProviderHandle, ProviderTransport


logger = get_logger(__name__)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class SingleCallExecutor:
    """Runs one provider call under a time bound.

    Attributes:
        transport: Transport used for the outbound call.
    """

    def __init__(self, transport: ProviderTransport) -> None:
        self.transport = transport

    async def execute(
        self,
        prompt: Prompt,
        model_id: ModelIdentifier,
        provider: ProviderHandle,
        bound_s: float,
        cancellation: CancellationToken | None = None,
    ) -> ExecutionOutcome:
        """Send the prompt to one model and classify the result.

        Args:
            prompt: Prompt to send.
            model_id: Model to call.
            provider: Provider that serves the model.
            bound_s: Upper bound for the call in seconds.
            cancellation: Optional cancellation signal.

        Returns:
            Exactly one of SuccessOutcome, ErrorOutcome or TimeoutOutcome.

        Raises:
            ComparisonCancelledError: If cancellation was signalled before
                the call was dispatched.
        """
        if cancellation is not None and cancellation.is_cancelled:
            raise ComparisonCancelledError(f"Call to {model_id} cancelled before dispatch")

        model = str(model_id)
        log = logger.bind(model=model, provider=provider.name)
        log.debug("Dispatching call", bound_s=bound_s, prompt_length=prompt.length)

        start = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                self.transport.complete(provider, model_id, prompt, bound_s),
                timeout=bound_s,
            )
        except (asyncio.TimeoutError, ProviderTimeoutError):
            log.warning("Call timed out", bound_s=bound_s, latency_ms=_elapsed_ms(start))
            return TimeoutOutcome(model_id=model, provider=provider.name, bound_ms=bound_s * 1000)
        except ProviderTransportError as e:
            log.warning("Transport failure", error=e.message)
            return ErrorOutcome(
                model_id=model,
                provider=provider.name,
                message=e.message or type(e).__name__,
                latency_ms=_elapsed_ms(start),
                transient=True,
            )
        except ProviderResponseError as e:
            log.warning("Provider error", error=e.message, status_code=e.status_code)
            return ErrorOutcome(
                model_id=model,
                provider=provider.name,
                message=e.message or type(e).__name__,
                latency_ms=_elapsed_ms(start),
            )
        except Exception as e:
            log.error("Unexpected failure during call", error=str(e), exc_info=True)
            return ErrorOutcome(
                model_id=model,
                provider=provider.name,
                message=str(e) or type(e).__name__,
                latency_ms=_elapsed_ms(start),
            )

        latency_ms = _elapsed_ms(start)
        if not response.text or not response.text.strip():
            log.warning("Empty response text")
            return ErrorOutcome(
                model_id=model,
                provider=provider.name,
                message=f"Empty response content from {provider.name} API",
                latency_ms=latency_ms,
            )

        log.info("Call succeeded", latency_ms=round(latency_ms, 2), tokens=response.total_tokens)
        return SuccessOutcome(
            model_id=model,
            provider=provider.name,
            response=response.text,
            latency_ms=latency_ms,
            token_count=response.total_tokens if (response.total_tokens or 0) >= 0 else None,
        )
