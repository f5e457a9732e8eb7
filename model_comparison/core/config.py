"""Core configuration module for model-comparison-service.

Loads settings from COMPARISON_* prefixed environment variables using Pydantic Settings.

Patterns applied:
- pydantic-settings BaseSettings (Pydantic v2 split)
- env_prefix = "COMPARISON_" for namespace isolation
- @field_validator / @model_validator (Pydantic v2 pattern)
- @lru_cache for singleton pattern
- PEP 604 union syntax (X | None)

Settings are read once at startup and treated as immutable for the
lifetime of a request.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

from model_comparison.core.constants import (
    DEFAULT_APP_TITLE,
    DEFAULT_ENVIRONMENT,
    DEFAULT_EXECUTION_MODE,
    DEFAULT_HTTP_REFERER,
    DEFAULT_LOG_LEVEL,
    DEFAULT_SERVICE_NAME,
    DEFAULT_TEMPERATURE,
    MAX_MODELS_PER_COMPARISON,
    NANOGPT_BASE_URL,
    OPENROUTER_BASE_URL,
)


class Settings(BaseSettings):
    """Application settings loaded from COMPARISON_* environment variables.

    All environment variables must be prefixed with COMPARISON_.
    List values are given as JSON, e.g.
    COMPARISON_OPENROUTER_MODELS='["openai/gpt-4o-mini", "x-ai/grok-3:free"]'

    Attributes:
        service_name: Service identifier for logging.
        environment: Deployment environment. Default: development.
        log_level: Logging verbosity. Default: INFO.
        max_models_per_comparison: Upper bound on models per request. Default: 3.
        max_concurrency: In-flight call limit for parallel mode. Default: 3.
        default_execution_mode: Mode used when a caller does not pick one.
        quick_timeout_s / standard_timeout_s / extended_timeout_s / default_timeout_s:
            Per-attempt bounds for each timeout tier.
        quick_threshold_chars / extended_threshold_chars: Tier boundaries.
        retry_attempts: Total attempts per call, including the first one.
        retry_delay_s: Fixed delay between attempts.
        providers_file: Optional YAML file that replaces the built-in providers.
    """

    # =========================================================================
    # Core Settings
    # =========================================================================
    service_name: str = Field(
        default=DEFAULT_SERVICE_NAME,
        description="Service name for identification",
    )
    environment: Literal["development", "staging", "production"] = Field(
        default=DEFAULT_ENVIRONMENT,
        description="Deployment environment",
    )
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # =========================================================================
    # Comparison Limits
    # =========================================================================
    max_models_per_comparison: int = Field(
        default=MAX_MODELS_PER_COMPARISON,
        ge=1,
        description="Maximum number of models in one comparison",
    )
    max_concurrency: int = Field(
        default=3,
        ge=1,
        description="Maximum simultaneous provider calls in parallel mode",
    )
    default_execution_mode: Literal["parallel", "sequential"] = Field(
        default=DEFAULT_EXECUTION_MODE,
        description="Execution mode used when the caller does not select one",
    )

    # =========================================================================
    # Execution Policy
    # =========================================================================
    quick_timeout_s: float = Field(default=60.0, gt=0, description="Bound for short prompts")
    standard_timeout_s: float = Field(default=180.0, gt=0, description="Bound for medium prompts")
    extended_timeout_s: float = Field(default=300.0, gt=0, description="Bound for long prompts")
    default_timeout_s: float = Field(
        default=120.0, gt=0, description="Bound when prompt size is unclassifiable"
    )
    quick_threshold_chars: int = Field(
        default=2000, ge=1, description="Prompts shorter than this use the quick tier"
    )
    extended_threshold_chars: int = Field(
        default=10000, ge=1, description="Prompts at least this long use the extended tier"
    )
    retry_attempts: int = Field(
        default=2, ge=1, description="Attempts per call, including the first"
    )
    retry_delay_s: float = Field(default=1.0, ge=0, description="Fixed delay between attempts")

    # =========================================================================
    # Providers
    # =========================================================================
    nanogpt_api_key: str = Field(default="", description="NanoGPT API key")
    nanogpt_base_url: str = Field(default=NANOGPT_BASE_URL, description="NanoGPT endpoint")
    nanogpt_models: list[str] = Field(default_factory=list, description="Models served by NanoGPT")
    openrouter_api_key: str = Field(default="", description="OpenRouter API key")
    openrouter_base_url: str = Field(
        default=OPENROUTER_BASE_URL, description="OpenRouter endpoint"
    )
    openrouter_models: list[str] = Field(
        default_factory=list, description="Models served by OpenRouter"
    )
    providers_file: str | None = Field(
        default=None,
        description="YAML file with a 'providers' list; replaces the built-in providers",
    )

    # =========================================================================
    # Request Payload
    # =========================================================================
    request_temperature: float = Field(
        default=DEFAULT_TEMPERATURE, ge=0.0, le=2.0, description="Sampling temperature"
    )
    http_referer: str = Field(
        default=DEFAULT_HTTP_REFERER, description="HTTP-Referer header sent to OpenRouter"
    )
    app_title: str = Field(default=DEFAULT_APP_TITLE, description="X-Title header sent to OpenRouter")

    # =========================================================================
    # Pydantic v2 Model Configuration
    # =========================================================================
    model_config = {
        "env_prefix": "COMPARISON_",
        "case_sensitive": False,
        "extra": "ignore",
    }

    # =========================================================================
    # Validators
    # =========================================================================
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level to uppercase.

        Args:
            v: Input log level string.

        Returns:
            Normalized uppercase log level.

        Raises:
            ValueError: If log level is not valid.
        """
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        normalized = v.upper()
        if normalized not in valid_levels:
            msg = f"log_level must be one of {valid_levels}, got '{v}'"
            raise ValueError(msg)
        return normalized

    @model_validator(mode="after")
    def validate_thresholds(self) -> "Settings":
        """Ensure the quick tier ends before the extended tier begins."""
        if self.quick_threshold_chars >= self.extended_threshold_chars:
            msg = (
                "quick_threshold_chars must be lower than extended_threshold_chars, "
                f"got {self.quick_threshold_chars} >= {self.extended_threshold_chars}"
            )
            raise ValueError(msg)
        return self


@lru_cache
def get_settings() -> Settings:
    """Get singleton Settings instance.

    Returns:
        Cached Settings instance.
    """
    return Settings()
