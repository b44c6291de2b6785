# Copyright (c) Meta Platforms, Inc. and affiliates.
# Modifications copyright (c) 2025 Logan Martel.
# Adapted from https://github.com/meta-pytorch/KernelAgent (Apache-2.0).

"""LLM provider registry."""

from __future__ import annotations

import logging

from typing import Any, Dict, Optional, Protocol, Type

from promptbind.llm.providers.anthropic_provider import AnthropicProvider
from promptbind.llm.providers.base import BaseProvider, LLMResponse
from promptbind.llm.providers.openai_provider import OpenAIProvider


class LLMProvider(Protocol):
    def generate(self, prompt: str, **kwargs: Any) -> str: ...


class EchoProvider:
    """Deterministic provider for testing: returns the prompt unchanged."""

    def generate(self, prompt: str, **kwargs: Any) -> str:
        return prompt


PROVIDER_ALIASES: Dict[str, Type[BaseProvider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
}

_GENERATION_KEYS = ("temperature", "max_tokens", "json_mode")

_LOGGER = logging.getLogger(__name__)


class ProviderAdapter(LLMProvider):
    """Expose a ``BaseProvider`` through the single-prompt interface."""

    def __init__(
        self,
        provider: BaseProvider,
        model_name: str,
        *,
        system_prompt: Optional[str] = None,
        default_kwargs: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._provider = provider
        self._model_name = model_name
        self._system_prompt = system_prompt
        self._default_kwargs = default_kwargs or {}

    @property
    def model_name(self) -> str:
        return self._model_name

    def generate(self, prompt: str, **kwargs: Any) -> str:
        merged_kwargs = {**self._default_kwargs, **kwargs}
        response = self._provider.complete(
            self._model_name,
            prompt,
            system_prompt=self._system_prompt,
            **merged_kwargs,
        )
        return response.content or ""


def load_provider(config: Dict[str, Any]) -> LLMProvider:
    """Load a provider from an ``llm`` config mapping.

    Expected keys:
      - provider: "echo" (default when nothing is set), "openai", "anthropic"
      - model: model name passed to the provider
      - base_url / api_key_env: client options
      - system_prompt, temperature, max_tokens, json_mode: request options
    """

    provider_name: Optional[str] = config.get("provider")
    model_name: Optional[str] = config.get("model")

    if provider_name == "echo" or (
        provider_name is None and model_name is None
    ):
        _LOGGER.warning(
            "LLM provider is set to 'echo'; responses will mirror the "
            "rendered prompts. Set `llm.provider` and `llm.model` to use a "
            "real LLM."
        )
        return EchoProvider()

    if provider_name is None:
        raise ValueError("llm config must specify 'provider'")
    provider_cls = PROVIDER_ALIASES.get(provider_name)
    if provider_cls is None:
        raise ValueError(
            f"Unknown provider '{provider_name}'. "
            f"Available: {sorted(PROVIDER_ALIASES) + ['echo']}"
        )
    if not model_name:
        raise ValueError(
            f"llm config for provider '{provider_name}' must specify 'model'"
        )

    provider_kwargs: Dict[str, Any] = {}
    if config.get("base_url"):
        provider_kwargs["base_url"] = config["base_url"]
    if config.get("api_key_env"):
        provider_kwargs["api_key_env"] = config["api_key_env"]
    provider = provider_cls(**provider_kwargs)
    if not provider.is_available():
        raise ValueError(
            f"Provider '{provider_name}' is not available (is the SDK "
            "installed and the API key set?)"
        )

    default_kwargs = {
        key: config[key] for key in _GENERATION_KEYS if key in config
    }
    _LOGGER.info(
        "Using LLM provider '%s' with model '%s'", provider_name, model_name
    )
    return ProviderAdapter(
        provider,
        model_name,
        system_prompt=config.get("system_prompt"),
        default_kwargs=default_kwargs,
    )


__all__ = [
    "BaseProvider",
    "EchoProvider",
    "LLMProvider",
    "LLMResponse",
    "PROVIDER_ALIASES",
    "ProviderAdapter",
    "load_provider",
]
