# src/llm/client_factory.py — v1
"""Factory: instantiate an LLM client from a provider name."""

from __future__ import annotations

import importlib
import logging

from sitegen.config.settings import Settings
from sitegen.llm.base_client import BaseLLMClient

logger = logging.getLogger(__name__)

# Registry of provider name -> adapter class path (lazy import).
_PROVIDER_REGISTRY: dict[str, str] = {
    "google": "sitegen.llm.adapters.google_adapter.GoogleAdapter",
    "anthropic": "sitegen.llm.adapters.anthropic_adapter.AnthropicAdapter",
    "openai": "sitegen.llm.adapters.openai_adapter.OpenAIAdapter",
}


class UnsupportedProviderError(ValueError):
    """Raised when a provider is not registered."""


def create_llm_client(
    provider: str | None = None,
    model: str | None = None,
    settings: Settings | None = None,
    **kwargs: object,
) -> BaseLLMClient:
    """Instantiate the adapter for ``provider``.

    Provider and model default to the settings' defaults. The API key is
    taken from settings unless passed explicitly.

    Raises:
        UnsupportedProviderError: If provider is not registered.
    """
    provider = provider or (settings.llm_default_provider if settings else "google")
    if provider not in _PROVIDER_REGISTRY:
        raise UnsupportedProviderError(
            f"Unsupported LLM provider: {provider!r}. "
            f"Available: {', '.join(sorted(_PROVIDER_REGISTRY))}"
        )

    adapter_cls = _import_class(_PROVIDER_REGISTRY[provider])

    init_kwargs = dict(kwargs)
    if model:
        init_kwargs["model"] = model
    elif settings is not None:
        init_kwargs["model"] = settings.llm_default_model
    if settings is not None:
        init_kwargs.setdefault("api_key", settings.api_key_for(provider))

    logger.debug("Creating LLM client: provider=%s, model=%s", provider, init_kwargs.get("model"))
    return adapter_cls(**init_kwargs)


def register_provider(name: str, class_path: str) -> None:
    """Register a custom provider adapter by fully qualified class path."""
    _PROVIDER_REGISTRY[name] = class_path
    logger.info("Registered LLM provider: %s -> %s", name, class_path)


def _import_class(class_path: str) -> type:
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)
