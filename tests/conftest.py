"""pytest configuration and fixtures for model-comparison-service tests.

This module provides shared fixtures for unit tests.
Fixtures are minimal and focused: a scripted transport instead of real
network calls, and a small two-provider registry.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest

from model_comparison.core.logging import reset_logging
from model_comparison.orchestration.concurrency import ConcurrencyController
from model_comparison.orchestration.executor import SingleCallExecutor
from model_comparison.orchestration.orchestrator import ComparisonOrchestrator
from model_comparison.orchestration.policy import ExecutionPolicy
from model_comparison.providers.base import ProviderHandle
from model_comparison.services.provider_registry import ProviderRegistry
from model_comparison.services.repository import InMemoryComparisonRepository
from tests.unit.providers.fake_transport import ScriptedTransport


# =============================================================================
# Constants (S1192: Avoid duplicated string literals)
# =============================================================================

MODEL_A = "openai/gpt-4o-mini"
MODEL_B = "anthropic/claude-3-haiku"
MODEL_C = "deepseek:chat"
MODEL_FREE = "x-ai/grok-3:free"
TEST_PROMPT = "Ping"


# =============================================================================
# Markers
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, no external dependencies)")
    config.addinivalue_line("markers", "slow: Tests that sleep on purpose")


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def test_env_vars() -> dict[str, str]:
    """Provide test environment variables.

    Returns:
        Dictionary of environment variables for testing.
    """
    return {
        "COMPARISON_LOG_LEVEL": "DEBUG",
        "COMPARISON_MAX_CONCURRENCY": "2",
        "COMPARISON_NANOGPT_API_KEY": "test-nanogpt-key",
        "COMPARISON_NANOGPT_MODELS": f'["{MODEL_C}"]',
        "COMPARISON_OPENROUTER_API_KEY": "test-openrouter-key",
        "COMPARISON_OPENROUTER_MODELS": f'["{MODEL_A}", "{MODEL_B}", "{MODEL_FREE}"]',
    }


@pytest.fixture
def mock_env(test_env_vars: dict[str, str], monkeypatch: pytest.MonkeyPatch) -> None:
    """Set test environment variables.

    Args:
        test_env_vars: Test environment variables.
        monkeypatch: pytest monkeypatch fixture.
    """
    for key, value in test_env_vars.items():
        monkeypatch.setenv(key, value)


@pytest.fixture(autouse=True)
def clean_logging() -> Generator[None, None, None]:
    """Let each test configure logging from scratch."""
    reset_logging()
    yield
    reset_logging()


# =============================================================================
# Provider Fixtures
# =============================================================================


@pytest.fixture
def nanogpt_handle() -> ProviderHandle:
    """NanoGPT-style handle serving MODEL_C."""
    return ProviderHandle(
        name="NanoGPT",
        base_url="https://nano-gpt.test/api/v1",
        models=(MODEL_C,),
        api_key="nano-key",
        accept="text/event-stream",
        strip_model_suffix=True,
    )


@pytest.fixture
def openrouter_handle() -> ProviderHandle:
    """OpenRouter-style handle serving MODEL_A, MODEL_B and MODEL_FREE."""
    return ProviderHandle(
        name="OpenRouter",
        base_url="https://openrouter.test/api/v1",
        models=(MODEL_A, MODEL_B, MODEL_FREE),
        api_key="router-key",
        extra_headers={"HTTP-Referer": "https://example.test", "X-Title": "Tests"},
    )


@pytest.fixture
def registry(
    nanogpt_handle: ProviderHandle, openrouter_handle: ProviderHandle
) -> ProviderRegistry:
    """Registry with NanoGPT first, OpenRouter second."""
    return ProviderRegistry([nanogpt_handle, openrouter_handle])


@pytest.fixture
def transport() -> ScriptedTransport:
    """Transport that answers "Pong" for every model."""
    return ScriptedTransport()


# =============================================================================
# Orchestration Fixtures
# =============================================================================


@pytest.fixture
def fast_policy() -> ExecutionPolicy:
    """Policy with short bounds and no retry delay."""
    return ExecutionPolicy(
        quick_timeout_s=1.0,
        standard_timeout_s=2.0,
        extended_timeout_s=3.0,
        default_timeout_s=1.5,
        retry_attempts=2,
        retry_delay_s=0.0,
    )


@pytest.fixture
def repository() -> InMemoryComparisonRepository:
    """Empty in-memory repository."""
    return InMemoryComparisonRepository()


def build_orchestrator(
    registry: ProviderRegistry,
    transport: ScriptedTransport,
    policy: ExecutionPolicy,
    repository: InMemoryComparisonRepository | None = None,
    **kwargs: object,
) -> ComparisonOrchestrator:
    """Helper to assemble an orchestrator around a scripted transport."""
    controller = ConcurrencyController(SingleCallExecutor(transport), policy)
    return ComparisonOrchestrator(
        registry=registry,
        controller=controller,
        repository=repository or InMemoryComparisonRepository(),
        **kwargs,  # type: ignore[arg-type]
    )
