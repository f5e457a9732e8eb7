"""Provider Registry: maps model identifiers to provider handles.

The registry is built once from Settings (or a providers YAML file) and
is read-only afterwards. Resolution picks the first configured provider
whose model list contains the identifier, compared case-insensitively.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml

from model_comparison.core.config import Settings
from model_comparison.core.constants import (
    MIME_APPLICATION_JSON,
    MIME_TEXT_EVENT_STREAM,
    PROVIDER_NANOGPT,
    PROVIDER_OPENROUTER,
)
from model_comparison.core.exceptions import ConfigurationError, ModelNotFoundError
from model_comparison.core.logging import get_logger
from model_comparison.models.model_id import ModelIdentifier
from model_comparison.providers.base import ProviderHandle


logger = get_logger(__name__)


class ProviderRegistry:
    """Read-only lookup from model identifier to ProviderHandle.

    Example:
        registry = ProviderRegistry.from_settings(get_settings())
        handle = registry.resolve("openai/gpt-4o-mini")
    """

    def __init__(self, providers: Iterable[ProviderHandle]) -> None:
        """Initialize the registry.

        Args:
            providers: Handles in resolution order.

        Raises:
            ConfigurationError: If two providers share a name.
        """
        self._providers: tuple[ProviderHandle, ...] = tuple(providers)

        names = [p.name.lower() for p in self._providers]
        if len(names) != len(set(names)):
            raise ConfigurationError(
                "Provider names must be unique", setting="providers"
            )

    # =========================================================================
    # Factories
    # =========================================================================

    @classmethod
    def from_settings(cls, settings: Settings) -> ProviderRegistry:
        """Build the registry from settings.

        Uses providers_file when set; otherwise builds the NanoGPT and
        OpenRouter handles from their *_api_key / *_base_url / *_models
        settings, in that order.

        Raises:
            ConfigurationError: If providers_file cannot be loaded.
        """
        if settings.providers_file:
            return cls.from_yaml(Path(settings.providers_file))

        nanogpt = ProviderHandle(
            name=PROVIDER_NANOGPT,
            base_url=settings.nanogpt_base_url,
            models=tuple(settings.nanogpt_models),
            api_key=settings.nanogpt_api_key,
            accept=MIME_TEXT_EVENT_STREAM,
            strip_model_suffix=True,
        )
        openrouter = ProviderHandle(
            name=PROVIDER_OPENROUTER,
            base_url=settings.openrouter_base_url,
            models=tuple(settings.openrouter_models),
            api_key=settings.openrouter_api_key,
            extra_headers={
                "HTTP-Referer": settings.http_referer,
                "X-Title": settings.app_title,
            },
        )
        registry = cls([nanogpt, openrouter])
        logger.info(
            "Provider registry built from settings",
            providers=[p.name for p in registry.list_all()],
            model_count=len(registry.all_models()),
        )
        return registry

    @classmethod
    def from_yaml(cls, path: Path) -> ProviderRegistry:
        """Build the registry from a YAML file.

        Expected layout:

            providers:
              - name: OpenRouter
                base_url: https://openrouter.ai/api/v1
                api_key: sk-...
                models: [openai/gpt-4o-mini]
                accept: application/json          # optional
                extra_headers: {X-Title: Studio}  # optional
                strip_model_suffix: false         # optional

        Raises:
            ConfigurationError: If the file is missing, unreadable or
                malformed.
        """
        if not path.exists():
            raise ConfigurationError(
                f"Providers file not found: {path}", setting="providers_file"
            )

        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Cannot read providers file {path}: {e}", setting="providers_file"
            ) from e

        entries = data.get("providers") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise ConfigurationError(
                f"Providers file {path} must contain a 'providers' list",
                setting="providers_file",
            )

        handles = [_handle_from_entry(entry, path) for entry in entries]
        registry = cls(handles)
        logger.info(
            "Provider registry loaded from file",
            path=str(path),
            providers=[p.name for p in handles],
        )
        return registry

    # =========================================================================
    # Resolution
    # =========================================================================

    def find(self, model_id: str | ModelIdentifier) -> ProviderHandle | None:
        """Return the first provider that serves the model, or None."""
        for provider in self._providers:
            if provider.serves(model_id):
                return provider
        return None

    def resolve(self, model_id: str | ModelIdentifier) -> ProviderHandle:
        """Return the provider that serves the model.

        Raises:
            ModelNotFoundError: If no configured provider lists the model.
        """
        provider = self.find(model_id)
        if provider is None:
            available = self.all_models()
            raise ModelNotFoundError(
                f"Model '{model_id}' is not available from any configured provider. "
                f"Available models: {', '.join(available) if available else 'none'}",
                model_id=str(model_id),
                available_models=available,
            )
        return provider

    def is_available(self, model_id: str | ModelIdentifier) -> bool:
        return self.find(model_id) is not None

    # =========================================================================
    # Listing
    # =========================================================================

    def list_all(self) -> list[ProviderHandle]:
        """All providers in resolution order."""
        return list(self._providers)

    def get_by_name(self, name: str) -> ProviderHandle | None:
        """Provider with the given name (case-insensitive), if configured."""
        wanted = name.strip().lower() if name else ""
        for provider in self._providers:
            if provider.name.lower() == wanted:
                return provider
        return None

    def all_models(self) -> list[str]:
        """Every configured model, deduplicated case-insensitively, config order."""
        seen: set[str] = set()
        models: list[str] = []
        for provider in self._providers:
            for model in provider.models:
                if model.lower() not in seen:
                    seen.add(model.lower())
                    models.append(model)
        return models

    def models_for_provider(self, name: str) -> list[str]:
        """Models of the named provider; empty for unknown or blank names."""
        provider = self.get_by_name(name)
        return list(provider.models) if provider else []

    def available_models(self) -> dict[str, list[str]]:
        """Map of provider name to its model list."""
        return {p.name: list(p.models) for p in self._providers}

    def __len__(self) -> int:
        return len(self._providers)


def _handle_from_entry(entry: Any, path: Path) -> ProviderHandle:
    if not isinstance(entry, dict):
        raise ConfigurationError(
            f"Provider entries in {path} must be mappings", setting="providers_file"
        )
    try:
        return ProviderHandle(
            name=str(entry["name"]),
            base_url=str(entry["base_url"]),
            models=tuple(str(m) for m in entry.get("models") or []),
            api_key=str(entry.get("api_key") or ""),
            accept=str(entry.get("accept") or MIME_APPLICATION_JSON),
            extra_headers={
                str(k): str(v) for k, v in (entry.get("extra_headers") or {}).items()
            },
            strip_model_suffix=bool(entry.get("strip_model_suffix", False)),
        )
    except KeyError as e:
        raise ConfigurationError(
            f"Provider entry in {path} is missing {e}", setting="providers_file"
        ) from e
    except (AttributeError, ValueError) as e:
        raise ConfigurationError(str(e), setting="providers_file") from e
