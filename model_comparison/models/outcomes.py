"""Execution outcome variants.

Every provider call ends in exactly one of three outcomes:

- SuccessOutcome: the model answered with non-empty text.
- ErrorOutcome: the call failed (transport failure or provider error).
- TimeoutOutcome: the call exceeded its bound.

Outcomes are plain values. Per-model failures are expressed with them
instead of exceptions, so nothing thrown crosses the concurrency layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union


class OutcomeStatus(str, Enum):
    """Terminal classification of one model call."""

    SUCCESS = "success"
    ERROR = "error"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class _OutcomeBase:
    """Fields shared by every outcome.

    Attributes:
        model_id: Identifier of the model that was called.
        provider: Name of the provider that served the call.
    """

    model_id: str
    provider: str

    status: ClassVar[OutcomeStatus]

    def __post_init__(self) -> None:
        if not self.model_id or not self.model_id.strip():
            raise ValueError("Outcome model_id cannot be empty")

    @property
    def is_success(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS


@dataclass(frozen=True)
class SuccessOutcome(_OutcomeBase):
    """The model returned a usable response.

    Attributes:
        response: Response text (never empty).
        latency_ms: Wall-clock time of the attempt that succeeded.
        token_count: Total tokens reported by the provider, if any.
    """

    response: str
    latency_ms: float
    token_count: int | None = None

    status: ClassVar[OutcomeStatus] = OutcomeStatus.SUCCESS

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.response or not self.response.strip():
            raise ValueError("SuccessOutcome requires non-empty response text")
        if self.latency_ms < 0:
            raise ValueError(f"latency_ms must be non-negative, got {self.latency_ms}")
        if self.token_count is not None and self.token_count < 0:
            raise ValueError(f"token_count must be non-negative, got {self.token_count}")

    @property
    def is_transient(self) -> bool:
        return False


@dataclass(frozen=True)
class ErrorOutcome(_OutcomeBase):
    """The call failed.

    Attributes:
        message: Human-readable cause, taken from the raw failure.
        latency_ms: Time elapsed before the failure.
        transient: True for connection/protocol failures that a retry may
            fix, False for errors the provider reported itself.
    """

    message: str
    latency_ms: float
    transient: bool = False

    status: ClassVar[OutcomeStatus] = OutcomeStatus.ERROR

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.message or not self.message.strip():
            raise ValueError("ErrorOutcome requires a message")
        if self.latency_ms < 0:
            raise ValueError(f"latency_ms must be non-negative, got {self.latency_ms}")

    @property
    def is_transient(self) -> bool:
        return self.transient

    @property
    def token_count(self) -> int | None:
        return None


@dataclass(frozen=True)
class TimeoutOutcome(_OutcomeBase):
    """The call exceeded its bound.

    Attributes:
        bound_ms: The bound that was exceeded. Also reported as latency_ms.
    """

    bound_ms: float

    status: ClassVar[OutcomeStatus] = OutcomeStatus.TIMEOUT

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.bound_ms < 0:
            raise ValueError(f"bound_ms must be non-negative, got {self.bound_ms}")

    @property
    def latency_ms(self) -> float:
        return self.bound_ms

    @property
    def message(self) -> str:
        return f"Request timeout after {self.bound_ms:.0f}ms"

    @property
    def is_transient(self) -> bool:
        return True

    @property
    def token_count(self) -> int | None:
        return None


ExecutionOutcome = Union[SuccessOutcome, ErrorOutcome, TimeoutOutcome]
