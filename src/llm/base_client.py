# src/llm/base_client.py — v1
"""Abstract LLM client interface used by the site generator."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pydantic import BaseModel

from sitegen.config.settings import ConfigurationError
from sitegen.llm.models import LLMResponse, Message


class BaseLLMClient(ABC):
    """Unified interface for all LLM providers."""

    @abstractmethod
    async def complete(
        self,
        messages: list[Message],
        system: str | None = None,
        max_tokens: int = 8192,
        temperature: float = 0.7,
        response_format: type[BaseModel] | None = None,
    ) -> LLMResponse:
        """Text completion, optionally constrained to a JSON schema."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (google, anthropic, openai)."""

    @staticmethod
    def require_api_key(provider: str, api_key: str | None) -> str:
        """Return a stripped API key or fail before any request is sent.

        Raises:
            ConfigurationError: If the key is empty.
        """
        key = (api_key or "").strip()
        if not key:
            raise ConfigurationError(
                f"API key for provider {provider!r} is not set "
                f"(set {provider.upper()}_API_KEY)"
            )
        return key
