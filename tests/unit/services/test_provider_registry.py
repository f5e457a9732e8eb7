"""Tests for ProviderRegistry.

Tests verify:
- First provider listing a model wins, case-insensitively
- resolve() raises ModelNotFoundError with the available models
- Listing helpers
- Construction from Settings and from a providers YAML file
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from model_comparison.core.exceptions import ConfigurationError, ModelNotFoundError
from model_comparison.providers.base import ProviderHandle
from model_comparison.services.provider_registry import ProviderRegistry
from tests.conftest import MODEL_A, MODEL_B, MODEL_C, MODEL_FREE


pytestmark = pytest.mark.unit


# =============================================================================
# Resolution
# =============================================================================


class TestResolve:
    """Test resolve() and find()."""

    def test_resolves_to_serving_provider(self, registry: ProviderRegistry) -> None:
        """Each model resolves to the provider that lists it."""
        assert registry.resolve(MODEL_C).name == "NanoGPT"
        assert registry.resolve(MODEL_A).name == "OpenRouter"

    def test_resolution_is_case_insensitive(self, registry: ProviderRegistry) -> None:
        """Case does not matter."""
        assert registry.resolve(MODEL_A.upper()).name == "OpenRouter"

    def test_resolution_is_idempotent(self, registry: ProviderRegistry) -> None:
        """Resolving twice yields the same handle object."""
        assert registry.resolve(MODEL_B) is registry.resolve(MODEL_B)

    def test_first_provider_wins(self) -> None:
        """A model listed twice resolves to the first provider."""
        first = ProviderHandle(name="First", base_url="https://1.test", models=("shared/model",))
        second = ProviderHandle(name="Second", base_url="https://2.test", models=("shared/model",))
        assert ProviderRegistry([first, second]).resolve("shared/model") is first

    def test_unknown_model_raises(self, registry: ProviderRegistry) -> None:
        """Unknown models raise ModelNotFoundError listing what is available."""
        with pytest.raises(ModelNotFoundError) as exc_info:
            registry.resolve("unknown/model")
        assert exc_info.value.model_id == "unknown/model"
        assert MODEL_A in exc_info.value.available_models  # type: ignore[operator]

    def test_find_returns_none(self, registry: ProviderRegistry) -> None:
        """find() does not raise."""
        assert registry.find("unknown/model") is None
        assert not registry.is_available("unknown/model")
        assert registry.is_available(MODEL_FREE)


# =============================================================================
# Listing
# =============================================================================


class TestListing:
    """Test listing helpers."""

    def test_list_all_in_order(self, registry: ProviderRegistry) -> None:
        """Providers are listed in resolution order."""
        assert [p.name for p in registry.list_all()] == ["NanoGPT", "OpenRouter"]
        assert len(registry) == 2

    def test_get_by_name(self, registry: ProviderRegistry) -> None:
        """Provider lookup by name ignores case."""
        assert registry.get_by_name("openrouter").name == "OpenRouter"  # type: ignore[union-attr]
        assert registry.get_by_name("missing") is None
        assert registry.get_by_name("") is None

    def test_all_models_deduplicated(self) -> None:
        """all_models keeps config order and drops duplicates."""
        first = ProviderHandle(name="First", base_url="https://1.test", models=("a/one", "b/two"))
        second = ProviderHandle(name="Second", base_url="https://2.test", models=("B/TWO", "c/three"))
        assert ProviderRegistry([first, second]).all_models() == ["a/one", "b/two", "c/three"]

    def test_models_for_provider(self, registry: ProviderRegistry) -> None:
        """Unknown and blank names give empty lists."""
        assert registry.models_for_provider("NanoGPT") == [MODEL_C]
        assert registry.models_for_provider("nobody") == []
        assert registry.models_for_provider("  ") == []

    def test_available_models(self, registry: ProviderRegistry) -> None:
        """Map of provider name to models."""
        assert registry.available_models() == {
            "NanoGPT": [MODEL_C],
            "OpenRouter": [MODEL_A, MODEL_B, MODEL_FREE],
        }

    def test_duplicate_provider_names_rejected(self) -> None:
        """Provider names must be unique."""
        a = ProviderHandle(name="Same", base_url="https://1.test")
        b = ProviderHandle(name="same", base_url="https://2.test")
        with pytest.raises(ConfigurationError):
            ProviderRegistry([a, b])


# =============================================================================
# Construction
# =============================================================================


class TestFromSettings:
    """Test ProviderRegistry.from_settings()."""

    def test_builds_nanogpt_and_openrouter(self, mock_env: None) -> None:
        """Settings produce NanoGPT then OpenRouter with their headers."""
        from model_comparison.core.config import Settings

        registry = ProviderRegistry.from_settings(Settings())

        nanogpt, openrouter = registry.list_all()
        assert nanogpt.name == "NanoGPT"
        assert nanogpt.accept == "text/event-stream"
        assert nanogpt.strip_model_suffix
        assert nanogpt.api_key == "test-nanogpt-key"
        assert openrouter.name == "OpenRouter"
        assert openrouter.extra_headers["X-Title"] == "Model Comparison Studio"
        assert "HTTP-Referer" in openrouter.extra_headers
        assert registry.resolve(MODEL_B) is openrouter

    def test_uses_providers_file(self, tmp_path: Path) -> None:
        """providers_file replaces the built-in providers."""
        from model_comparison.core.config import Settings

        path = tmp_path / "providers.yaml"
        path.write_text(
            "providers:\n"
            "  - name: Local\n"
            "    base_url: http://localhost:8085/v1\n"
            "    api_key: local-key\n"
            "    models: [phi-4, qwen2.5-7b]\n"
            "    extra_headers: {X-Client: tests}\n"
        )
        with patch.dict(os.environ, {"COMPARISON_PROVIDERS_FILE": str(path)}, clear=True):
            registry = ProviderRegistry.from_settings(Settings())

        (local,) = registry.list_all()
        assert local.name == "Local"
        assert local.models == ("phi-4", "qwen2.5-7b")
        assert local.extra_headers == {"X-Client": "tests"}
        assert local.accept == "application/json"
        assert not local.strip_model_suffix


class TestFromYaml:
    """Test providers file errors."""

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file is a configuration error."""
        with pytest.raises(ConfigurationError, match="not found"):
            ProviderRegistry.from_yaml(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Unparseable YAML is a configuration error."""
        path = tmp_path / "providers.yaml"
        path.write_text("providers: [unclosed\n")
        with pytest.raises(ConfigurationError):
            ProviderRegistry.from_yaml(path)

    def test_missing_providers_list(self, tmp_path: Path) -> None:
        """The file must contain a providers list."""
        path = tmp_path / "providers.yaml"
        path.write_text("models: []\n")
        with pytest.raises(ConfigurationError, match="'providers' list"):
            ProviderRegistry.from_yaml(path)

    def test_entry_missing_base_url(self, tmp_path: Path) -> None:
        """Entries need a base_url."""
        path = tmp_path / "providers.yaml"
        path.write_text("providers:\n  - name: Broken\n")
        with pytest.raises(ConfigurationError, match="base_url"):
            ProviderRegistry.from_yaml(path)
