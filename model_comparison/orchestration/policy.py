"""Execution Policy: timeout tiers and retry plan.

Prompt length selects a timeout tier:

    length <  quick_threshold_chars     -> QUICK     (60 s)
    length <  extended_threshold_chars  -> STANDARD  (180 s)
    otherwise                           -> EXTENDED  (300 s)
    unknown length                      -> DEFAULT   (120 s)

Retries are bounded: a fixed number of attempts with a fixed delay, and
only transient outcomes (timeouts, transport failures) are retried.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from model_comparison.core.config import Settings
from model_comparison.models.outcomes import ExecutionOutcome


class TimeoutTier(str, Enum):
    """Timeout tier selected from the prompt length."""

    QUICK = "quick"
    STANDARD = "standard"
    EXTENDED = "extended"
    DEFAULT = "default"


@dataclass(frozen=True)
class RetryPlan:
    """Bounded retry plan.

    Attributes:
        attempts: Total attempts per call, including the first (>= 1).
        delay_s: Fixed delay between attempts.
    """

    attempts: int = 1
    delay_s: float = 0.0

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError(f"attempts must be at least 1, got {self.attempts}")
        if self.delay_s < 0:
            raise ValueError(f"delay_s must be non-negative, got {self.delay_s}")


@dataclass(frozen=True)
class ExecutionPolicy:
    """Timeout tiers and retry plan for provider calls.

    Defaults match the Settings defaults; use from_settings() in wiring code.
    """

    quick_timeout_s: float = 60.0
    standard_timeout_s: float = 180.0
    extended_timeout_s: float = 300.0
    default_timeout_s: float = 120.0
    quick_threshold_chars: int = 2000
    extended_threshold_chars: int = 10000
    retry_attempts: int = 2
    retry_delay_s: float = 1.0

    def __post_init__(self) -> None:
        for name in ("quick_timeout_s", "standard_timeout_s", "extended_timeout_s", "default_timeout_s"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.quick_threshold_chars >= self.extended_threshold_chars:
            raise ValueError("quick_threshold_chars must be lower than extended_threshold_chars")

    @classmethod
    def from_settings(cls, settings: Settings) -> ExecutionPolicy:
        return cls(
            quick_timeout_s=settings.quick_timeout_s,
            standard_timeout_s=settings.standard_timeout_s,
            extended_timeout_s=settings.extended_timeout_s,
            default_timeout_s=settings.default_timeout_s,
            quick_threshold_chars=settings.quick_threshold_chars,
            extended_threshold_chars=settings.extended_threshold_chars,
            retry_attempts=settings.retry_attempts,
            retry_delay_s=settings.retry_delay_s,
        )

    # =========================================================================
    # Timeouts
    # =========================================================================

    def tier_for(self, prompt_length: int | None) -> TimeoutTier:
        """Pick the timeout tier for a prompt length. Pure."""
        if prompt_length is None or prompt_length < 0:
            return TimeoutTier.DEFAULT
        if prompt_length < self.quick_threshold_chars:
            return TimeoutTier.QUICK
        if prompt_length < self.extended_threshold_chars:
            return TimeoutTier.STANDARD
        return TimeoutTier.EXTENDED

    def timeout_for(self, prompt_length: int | None) -> float:
        """Per-attempt bound in seconds for a prompt length."""
        tier = self.tier_for(prompt_length)
        return {
            TimeoutTier.QUICK: self.quick_timeout_s,
            TimeoutTier.STANDARD: self.standard_timeout_s,
            TimeoutTier.EXTENDED: self.extended_timeout_s,
            TimeoutTier.DEFAULT: self.default_timeout_s,
        }[tier]

    # =========================================================================
    # Retries
    # =========================================================================

    def retry_plan(self) -> RetryPlan:
        return RetryPlan(attempts=self.retry_attempts, delay_s=self.retry_delay_s)

    def should_retry(self, outcome: ExecutionOutcome) -> bool:
        """Retry only transient outcomes, never provider-reported errors."""
        return outcome.is_transient
