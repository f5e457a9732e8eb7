"""Service wiring for model-comparison-service.

Builds a ComparisonOrchestrator from Settings and manages the lifetime of
the HTTP transport.

Patterns applied:
- asynccontextmanager lifespan for startup/shutdown
- configure_logging() called ONCE at startup

Example:
    async with comparison_service() as orchestrator:
        aggregate = await orchestrator.execute_comparison(
            "Explain recursion", ["openai/gpt-4o-mini"]
        )
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from model_comparison import __version__
from model_comparison.core.config import Settings, get_settings
from model_comparison.core.logging import configure_logging, get_logger
from model_comparison.orchestration.concurrency import ConcurrencyController
from model_comparison.orchestration.executor import SingleCallExecutor
from model_comparison.orchestration.orchestrator import ComparisonOrchestrator
from model_comparison.orchestration.policy import ExecutionPolicy
from model_comparison.providers.base import ProviderTransport
from model_comparison.providers.http_transport import HttpTransport
from model_comparison.services.provider_registry import ProviderRegistry
from model_comparison.services.repository import (
    ComparisonRepository,
    InMemoryComparisonRepository,
)


def create_orchestrator(
    settings: Settings | None = None,
    transport: ProviderTransport | None = None,
    repository: ComparisonRepository | None = None,
) -> ComparisonOrchestrator:
    """Assemble an orchestrator from settings.

    Args:
        settings: Settings to use. Defaults to get_settings().
        transport: Transport for provider calls. Defaults to HttpTransport.
        repository: Persistence collaborator. Defaults to in-memory storage.

    Returns:
        Ready-to-use ComparisonOrchestrator.
    """
    settings = settings or get_settings()
    transport = transport or HttpTransport(temperature=settings.request_temperature)

    policy = ExecutionPolicy.from_settings(settings)
    controller = ConcurrencyController(SingleCallExecutor(transport), policy)
    return ComparisonOrchestrator.from_settings(
        settings,
        registry=ProviderRegistry.from_settings(settings),
        controller=controller,
        repository=repository or InMemoryComparisonRepository(),
    )


@asynccontextmanager
async def comparison_service(
    settings: Settings | None = None,
    transport: ProviderTransport | None = None,
) -> AsyncGenerator[ComparisonOrchestrator, None]:
    """Service lifespan - startup and shutdown.

    Args:
        settings: Settings to use. Defaults to get_settings().
        transport: Transport for provider calls. Defaults to HttpTransport.

    Yields:
        ComparisonOrchestrator; the transport is closed on exit.
    """
    # =========================================================================
    # STARTUP
    # =========================================================================
    settings = settings or get_settings()
    configure_logging(level=settings.log_level)
    logger = get_logger(__name__)

    transport = transport or HttpTransport(temperature=settings.request_temperature)
    try:
        orchestrator = create_orchestrator(settings, transport)
        logger.info(
            "Service starting",
            service=settings.service_name,
            version=__version__,
            environment=settings.environment,
            providers=[p.name for p in orchestrator.registry.list_all()],
        )
        yield orchestrator
    finally:
        # =====================================================================
        # SHUTDOWN
        # =====================================================================
        await transport.aclose()
        logger.info("Service shutting down", service=settings.service_name)
