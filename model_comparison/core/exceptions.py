"""Custom exceptions for model-comparison-service.

All custom exceptions end in "Error" and carry a machine-readable error
code alongside the human-readable message.

Exception Hierarchy:
    ComparisonServiceError (base)
    ├── RetriableError (transient errors)
    │   ├── ProviderTransportError
    │   └── ProviderTimeoutError
    └── NonRetriableError (permanent errors)
        ├── ProviderResponseError
        ├── ModelNotFoundError
        ├── ValidationError
        ├── ComparisonCancelledError
        ├── AggregateSealedError
        └── ConfigurationError

Per-model failures never escape the concurrency layer as exceptions: the
executor turns transport exceptions into outcome values. Only whole-request
failures (validation, cancellation) propagate to the caller.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from model_comparison.models.comparison import ComparisonAggregate


# =============================================================================
# Error Codes Enum
# =============================================================================


class ErrorCode(str, Enum):
    """Error codes for model-comparison-service exceptions.

    These codes provide a consistent way to identify error types
    across callers and in logging.
    """

    # Base error
    COMPARISON_ERROR = "COMPARISON_ERROR"

    # Retriable errors
    PROVIDER_TRANSPORT = "PROVIDER_TRANSPORT"
    PROVIDER_TIMEOUT = "PROVIDER_TIMEOUT"

    # Non-retriable errors
    PROVIDER_RESPONSE = "PROVIDER_RESPONSE"
    MODEL_NOT_FOUND = "MODEL_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    COMPARISON_CANCELLED = "COMPARISON_CANCELLED"
    AGGREGATE_SEALED = "AGGREGATE_SEALED"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


# =============================================================================
# Base Exception
# =============================================================================


class ComparisonServiceError(Exception):
    """Base exception for all model-comparison-service errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code from ErrorCode enum.
    """

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.COMPARISON_ERROR,
        **kwargs: Any,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message.
            error_code: Machine-readable error code.
            **kwargs: Additional attributes to set on the exception.
        """
        super().__init__(message)
        self.message = message
        self.error_code = (
            error_code.value if isinstance(error_code, ErrorCode) else error_code
        )

        for key, value in kwargs.items():
            setattr(self, key, value)


# =============================================================================
# Retriable Error Base
# =============================================================================


class RetriableError(ComparisonServiceError):
    """Base class for transient errors that may succeed on retry.

    The delay between attempts comes from ExecutionPolicy, not the error.
    """

    pass


# =============================================================================
# Non-Retriable Error Base
# =============================================================================


class NonRetriableError(ComparisonServiceError):
    """Base class for permanent errors that should not be retried.

    Non-retriable errors indicate conditions that will not change
    regardless of retry attempts.
    """

    pass


# =============================================================================
# Retriable Exceptions
# =============================================================================


class ProviderTransportError(RetriableError):
    """Connection or protocol failure talking to a provider.

    Attributes:
        provider: Name of the provider that could not be reached.
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize ProviderTransportError.

        Args:
            message: Raw failure message from the transport.
            provider: Provider name.
            **kwargs: Additional attributes.
        """
        super().__init__(
            message,
            error_code=ErrorCode.PROVIDER_TRANSPORT,
            **kwargs,
        )
        self.provider = provider


class ProviderTimeoutError(RetriableError):
    """The transport gave up waiting for the provider.

    Attributes:
        provider: Name of the provider that timed out.
        timeout_s: Timeout that was exceeded, if known.
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        timeout_s: float | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize ProviderTimeoutError.

        Args:
            message: Error message.
            provider: Provider name.
            timeout_s: Timeout in seconds.
            **kwargs: Additional attributes.
        """
        super().__init__(
            message,
            error_code=ErrorCode.PROVIDER_TIMEOUT,
            **kwargs,
        )
        self.provider = provider
        self.timeout_s = timeout_s


# =============================================================================
# Non-Retriable Exceptions
# =============================================================================


class ProviderResponseError(NonRetriableError):
    """Provider answered, but with an error or an unusable body.

    Retrying would not change the outcome (invalid request, missing
    credential, empty choices).

    Attributes:
        provider: Provider name.
        status_code: HTTP status code, if the provider returned one.
        body: Raw response body, if any.
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        status_code: int | None = None,
        body: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize ProviderResponseError.

        Args:
            message: Error message.
            provider: Provider name.
            status_code: HTTP status code.
            body: Raw response body.
            **kwargs: Additional attributes.
        """
        super().__init__(
            message,
            error_code=ErrorCode.PROVIDER_RESPONSE,
            **kwargs,
        )
        self.provider = provider
        self.status_code = status_code
        self.body = body


class ModelNotFoundError(NonRetriableError):
    """No configured provider serves the requested model.

    Attributes:
        model_id: ID of the requested model.
        available_models: List of available model IDs.
    """

    def __init__(
        self,
        message: str,
        model_id: str | None = None,
        available_models: list[str] | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize ModelNotFoundError.

        Args:
            message: Error message.
            model_id: ID of the missing model.
            available_models: List of available models.
            **kwargs: Additional attributes.
        """
        super().__init__(
            message,
            error_code=ErrorCode.MODEL_NOT_FOUND,
            **kwargs,
        )
        self.model_id = model_id
        self.available_models = available_models


class ValidationError(NonRetriableError):
    """Request validation failed.

    Carries every problem found, not only the first one.

    Attributes:
        field: Name of the invalid field, when a single field is at fault.
        value: The invalid value.
        errors: All validation messages collected for the request.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        errors: list[str] | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize ValidationError.

        Args:
            message: Error message.
            field: Name of the invalid field.
            value: The invalid value.
            errors: Every validation message (defaults to [message]).
            **kwargs: Additional attributes.
        """
        super().__init__(
            message,
            error_code=ErrorCode.VALIDATION_ERROR,
            **kwargs,
        )
        self.field = field
        self.value = value
        self.errors = list(errors) if errors else [message]


class ComparisonCancelledError(NonRetriableError):
    """The caller cancelled the comparison.

    Attributes:
        comparison_id: ID of the cancelled comparison, if one was created.
        partial: Sealed aggregate of outcomes collected before cancellation.
            Only populated when the caller asked for partial results.
    """

    def __init__(
        self,
        message: str = "Comparison was cancelled",
        comparison_id: str | None = None,
        partial: ComparisonAggregate | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize ComparisonCancelledError.

        Args:
            message: Error message.
            comparison_id: ID of the cancelled comparison.
            partial: Partial aggregate, if requested.
            **kwargs: Additional attributes.
        """
        super().__init__(
            message,
            error_code=ErrorCode.COMPARISON_CANCELLED,
            **kwargs,
        )
        self.comparison_id = comparison_id
        self.partial = partial


class AggregateSealedError(NonRetriableError):
    """A sealed comparison aggregate was modified.

    Attributes:
        comparison_id: ID of the sealed aggregate.
    """

    def __init__(
        self,
        message: str,
        comparison_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize AggregateSealedError.

        Args:
            message: Error message.
            comparison_id: ID of the sealed aggregate.
            **kwargs: Additional attributes.
        """
        super().__init__(
            message,
            error_code=ErrorCode.AGGREGATE_SEALED,
            **kwargs,
        )
        self.comparison_id = comparison_id


class ConfigurationError(NonRetriableError):
    """Service configuration is invalid.

    Attributes:
        setting: Name of the problematic setting.
    """

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize ConfigurationError.

        Args:
            message: Error message.
            setting: Name of the problematic setting.
            **kwargs: Additional attributes.
        """
        super().__init__(
            message,
            error_code=ErrorCode.CONFIGURATION_ERROR,
            **kwargs,
        )
        self.setting = setting
