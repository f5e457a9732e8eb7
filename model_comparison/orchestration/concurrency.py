"""Concurrency Controller: runs the calls of one comparison.

Two modes:
- SEQUENTIAL: calls run one after another, in input order.
- PARALLEL: every call becomes a task; a ConcurrencyLimiter caps the number
  in flight and outcomes are collected in completion order.

Each call is wrapped in the policy's bounded retry plan (tenacity).
Per-model failures come back as ErrorOutcome values; cancellation stops
dispatching and leaves abandoned calls out of the result.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_result,
    stop_after_attempt,
    stop_any,
    wait_fixed,
)

from model_comparison.core.exceptions import ComparisonCancelledError
from model_comparison.core.logging import get_logger
from model_comparison.models.model_id import ModelIdentifier
from model_comparison.models.outcomes import ErrorOutcome, ExecutionOutcome
from model_comparison.models.prompt import Prompt
from model_comparison.orchestration.cancellation import CancellationToken
from model_comparison.orchestration.executor import SingleCallExecutor
from model_comparison.orchestration.policy import ExecutionPolicy
from model_comparison.providers.base import ProviderHandle


logger = get_logger(__name__)


class ExecutionMode(str, Enum):
    """How the calls of one comparison are scheduled."""

    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"


@dataclass(frozen=True)
class CallSpec:
    """One model to call and the provider that serves it."""

    model_id: ModelIdentifier
    provider: ProviderHandle


# =============================================================================
# Concurrency Limiter
# =============================================================================


class ConcurrencyLimiter:
    """Caps in-flight calls and records the highest level reached.

    Attributes:
        max_concurrency: Maximum simultaneous holders of a slot.
    """

    def __init__(self, max_concurrency: int) -> None:
        """Initialize ConcurrencyLimiter.

        Raises:
            ValueError: If max_concurrency is lower than 1.
        """
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")
        self._max_concurrency = max_concurrency
        self._semaphore = asyncio.Semaphore(max_concurrency)

        # Track in-flight calls
        self._in_flight = 0
        self._peak_in_flight = 0
        self._lock = asyncio.Lock()

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    @property
    def in_flight(self) -> int:
        """Current number of held slots."""
        return self._in_flight

    @property
    def peak_in_flight(self) -> int:
        """Highest number of slots held at the same time."""
        return self._peak_in_flight

    async def acquire(self) -> None:
        """Wait for a free slot."""
        await self._semaphore.acquire()
        async with self._lock:
            self._in_flight += 1
            self._peak_in_flight = max(self._peak_in_flight, self._in_flight)

    async def release(self) -> None:
        """Return a slot."""
        async with self._lock:
            self._in_flight -= 1
        self._semaphore.release()

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """Hold a slot for the duration of the block."""
        await self.acquire()
        try:
            yield
        finally:
            await self.release()


# =============================================================================
# Concurrency Controller
# =============================================================================


class ConcurrencyController:
    """Schedules the calls of one comparison.

    Attributes:
        executor: Executor performing single attempts.
        policy: Source of the timeout bound and retry plan.
    """

    def __init__(self, executor: SingleCallExecutor, policy: ExecutionPolicy) -> None:
        self.executor = executor
        self.policy = policy

    async def run(
        self,
        prompt: Prompt,
        call_specs: Sequence[CallSpec],
        mode: ExecutionMode,
        max_concurrency: int,
        cancellation: CancellationToken | None = None,
    ) -> list[ExecutionOutcome]:
        """Execute every call and return the collected outcomes.

        Args:
            prompt: Prompt sent to every model.
            call_specs: Models to call with their providers.
            mode: SEQUENTIAL (input order) or PARALLEL (completion order).
            max_concurrency: In-flight cap for parallel mode.
            cancellation: Optional cancellation signal.

        Returns:
            One outcome per call that ran. Calls abandoned because of
            cancellation have no outcome.

        Raises:
            ValueError: If max_concurrency is lower than 1.
        """
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")

        token = cancellation or CancellationToken()
        bound_s = self.policy.timeout_for(prompt.length)
        logger.info(
            "Running calls",
            mode=mode.value,
            calls=len(call_specs),
            max_concurrency=max_concurrency,
            bound_s=bound_s,
        )

        if mode is ExecutionMode.SEQUENTIAL:
            return await self._run_sequential(prompt, call_specs, bound_s, token)
        return await self._run_parallel(prompt, call_specs, bound_s, max_concurrency, token)

    async def execute_with_retry(
        self,
        prompt: Prompt,
        spec: CallSpec,
        bound_s: float,
        cancellation: CancellationToken | None = None,
    ) -> ExecutionOutcome:
        """Run one call under the retry plan.

        Transient outcomes are retried with a fixed delay until the plan's
        attempts are used up or cancellation is signalled; the last outcome
        is returned. Cancellation cuts a retry wait short and keeps the
        outcome of the attempt that already ran.

        Raises:
            ComparisonCancelledError: If cancellation was signalled before
                an attempt was dispatched.
        """
        plan = self.policy.retry_plan()
        token = cancellation or CancellationToken()
        last_outcome: ExecutionOutcome | None = None

        async def _attempt() -> ExecutionOutcome:
            nonlocal last_outcome
            # A dispatched call keeps its outcome when cancelled between attempts
            if last_outcome is not None and token.is_cancelled:
                return last_outcome
            last_outcome = await self.executor.execute(
                prompt, spec.model_id, spec.provider, bound_s, token
            )
            return last_outcome

        async def _wait(seconds: float) -> None:
            try:
                await asyncio.wait_for(token.wait(), timeout=seconds)
            except asyncio.TimeoutError:
                return
            logger.info(
                "Cancelled during retry wait",
                model=str(spec.model_id),
                provider=spec.provider.name,
            )

        def _cancelled(_state: RetryCallState) -> bool:
            return token.is_cancelled

        def _log_retry(state: RetryCallState) -> None:
            outcome = state.outcome.result() if state.outcome else None
            logger.warning(
                "Retrying call",
                model=str(spec.model_id),
                provider=spec.provider.name,
                attempt=state.attempt_number,
                status=outcome.status.value if outcome else None,
            )

        retrying = AsyncRetrying(
            stop=stop_any(stop_after_attempt(plan.attempts), _cancelled),
            wait=wait_fixed(plan.delay_s),
            retry=retry_if_result(self.policy.should_retry),
            before_sleep=_log_retry,
            sleep=_wait,
            retry_error_callback=lambda state: state.outcome.result(),
        )
        return await retrying(_attempt)

    # =========================================================================
    # Modes
    # =========================================================================

    async def _run_sequential(
        self,
        prompt: Prompt,
        call_specs: Sequence[CallSpec],
        bound_s: float,
        token: CancellationToken,
    ) -> list[ExecutionOutcome]:
        outcomes: list[ExecutionOutcome] = []
        for spec in call_specs:
            if token.is_cancelled:
                logger.info("Cancelled, skipping remaining calls", completed=len(outcomes))
                break
            try:
                outcome = await self.execute_with_retry(prompt, spec, bound_s, token)
            except ComparisonCancelledError:
                break
            except Exception as e:
                outcome = self._unexpected_failure(spec, e)
            outcomes.append(outcome)
        return outcomes

    async def _run_parallel(
        self,
        prompt: Prompt,
        call_specs: Sequence[CallSpec],
        bound_s: float,
        max_concurrency: int,
        token: CancellationToken,
    ) -> list[ExecutionOutcome]:
        limiter = ConcurrencyLimiter(max_concurrency)
        pending: set[asyncio.Task[ExecutionOutcome | None]] = {
            asyncio.create_task(self._guarded_call(prompt, spec, bound_s, limiter, token))
            for spec in call_specs
        }
        cancel_waiter = asyncio.create_task(token.wait())
        outcomes: list[ExecutionOutcome] = []

        try:
            while pending and not token.is_cancelled:
                done, _ = await asyncio.wait(
                    pending | {cancel_waiter}, return_when=asyncio.FIRST_COMPLETED
                )
                for task in done:
                    if task is cancel_waiter:
                        continue
                    pending.discard(task)
                    outcome = task.result()
                    if outcome is not None:
                        outcomes.append(outcome)
        finally:
            if pending:
                logger.info("Cancelling in-flight calls", abandoned=len(pending))
            for task in pending:
                task.cancel()
            cancel_waiter.cancel()
            await asyncio.gather(*pending, cancel_waiter, return_exceptions=True)

        logger.debug("Parallel run finished", peak_in_flight=limiter.peak_in_flight)
        return outcomes

    async def _guarded_call(
        self,
        prompt: Prompt,
        spec: CallSpec,
        bound_s: float,
        limiter: ConcurrencyLimiter,
        token: CancellationToken,
    ) -> ExecutionOutcome | None:
        async with limiter.slot():
            if token.is_cancelled:
                return None
            try:
                return await self.execute_with_retry(prompt, spec, bound_s, token)
            except ComparisonCancelledError:
                return None
            except Exception as e:
                return self._unexpected_failure(spec, e)

    def _unexpected_failure(self, spec: CallSpec, error: Exception) -> ErrorOutcome:
        logger.error(
            "Call failed outside the executor",
            model=str(spec.model_id),
            provider=spec.provider.name,
            error=str(error),
            exc_info=True,
        )
        return ErrorOutcome(
            model_id=str(spec.model_id),
            provider=spec.provider.name,
            message=str(error) or type(error).__name__,
            latency_ms=0.0,
        )
