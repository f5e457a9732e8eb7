"""Structured logging for model-comparison-service.

Every comparison fans out into several concurrent provider calls, so log
lines from different models interleave. Each line therefore carries the
id of the comparison it belongs to: the orchestrator opens
comparison_context() for the run, and tasks spawned inside it inherit
the id through contextvars.

Provider credentials must never reach the output. redact_credentials
replaces any credential-like field with its length before rendering.

Patterns applied:
- Singleton _configured flag prevents reconfiguration
- configure_logging() called ONCE at startup
- Underscore-prefix for unused structlog params
- JSON output via JSONRenderer
"""

import contextvars
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, TextIO

import structlog
from structlog.types import EventDict


# =============================================================================
# Singleton Configuration State
# =============================================================================
_configured: bool = False

_CREDENTIAL_KEYS = frozenset({"api_key", "authorization", "token", "secret"})


# =============================================================================
# Comparison ID Context
# =============================================================================
_comparison_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "comparison_id", default=None
)


def set_comparison_id(comparison_id: str | None) -> contextvars.Token[str | None]:
    """Set the comparison id for the current async context.

    Tasks created afterwards inherit the value.

    Returns:
        Token that can be passed to reset_comparison_id().
    """
    return _comparison_id_var.set(comparison_id)


def reset_comparison_id(token: contextvars.Token[str | None]) -> None:
    """Restore the comparison id that was active before set_comparison_id()."""
    _comparison_id_var.reset(token)


def get_comparison_id() -> str | None:
    return _comparison_id_var.get()


@contextmanager
def comparison_context(comparison_id: str) -> Iterator[str]:
    """Tag every log line inside the block with comparison_id.

    Example:
        with comparison_context(aggregate_id):
            outcomes = await controller.run(...)
    """
    token = set_comparison_id(comparison_id)
    try:
        yield comparison_id
    finally:
        reset_comparison_id(token)


# =============================================================================
# Custom Processors
# =============================================================================
def add_comparison_id(
    _logger: object, _method_name: str, event_dict: EventDict
) -> EventDict:
    """Add the active comparison id to the event, if any."""
    comparison_id = get_comparison_id()
    if comparison_id is not None:
        event_dict["comparison_id"] = comparison_id
    return event_dict


def redact_credentials(
    _logger: object, _method_name: str, event_dict: EventDict
) -> EventDict:
    """Replace credential-like fields with their length.

    A field is credential-like when its lowercased name is one of
    api_key, authorization, token or secret, or ends in "_api_key".

    Args:
        _logger: Logger instance (unused - required by structlog interface).
        _method_name: Method name (unused).
        event_dict: Event dictionary to process.

    Returns:
        Event dictionary with credentials masked as "<redacted:N chars>".
    """
    for key in list(event_dict):
        lowered = key.lower()
        if lowered in _CREDENTIAL_KEYS or lowered.endswith("_api_key"):
            value = event_dict[key]
            length = len(value) if isinstance(value, str) else 0
            event_dict[key] = f"<redacted:{length} chars>"
    return event_dict


def _level_to_int(level: str) -> int:
    """Map a level name to its numeric value; unknown names fall back to INFO."""
    levels = {
        "DEBUG": 10,
        "INFO": 20,
        "WARNING": 30,
        "ERROR": 40,
        "CRITICAL": 50,
    }
    return levels.get(level.upper(), 20)


# =============================================================================
# Singleton Configuration
# =============================================================================
def configure_logging(
    level: str = "INFO",
    stream: TextIO | None = None,
    force: bool = False,
) -> None:
    """Configure structlog ONCE at service startup.

    Subsequent calls are no-ops unless force=True (for testing).

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        stream: Output stream. Defaults to sys.stdout.
        force: Force reconfiguration (for testing only).
    """
    global _configured

    if _configured and not force:
        return

    processors: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
        add_comparison_id,
        redact_credentials,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_level_to_int(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stdout),
        cache_logger_on_first_use=False,
    )

    _configured = True


def reset_logging() -> None:
    """Allow the next configure_logging() call to take effect. Tests only."""
    global _configured
    _configured = False


def get_logger(name: str) -> Any:
    """Get a logger bound to name, configuring defaults on first use.

    Args:
        name: Logger name (typically __name__ of the module).

    Returns:
        structlog BoundLogger with a "logger" field.
    """
    configure_logging()  # No-op if already configured
    return structlog.get_logger().bind(logger=name)
