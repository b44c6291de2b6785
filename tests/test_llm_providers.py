from __future__ import annotations

from typing import Any, Dict, List

import pytest

from promptbind.llm.providers import (
    PROVIDER_ALIASES,
    BaseProvider,
    EchoProvider,
    LLMResponse,
    load_provider,
)


def test_load_provider_echo_by_default():
    provider = load_provider({})
    assert isinstance(provider, EchoProvider)
    assert provider.generate("hello") == "hello"


def test_load_provider_echo_explicit():
    provider = load_provider({"provider": "echo", "model": "anything"})
    assert provider.generate("foo") == "foo"


class _StubProvider(BaseProvider):
    def __init__(self, **kwargs: Any) -> None:
        self.init_kwargs = kwargs
        self.requests: List[Dict[str, Any]] = []
        super().__init__()

    def _initialize_client(self) -> None:
        self.client = object()

    def get_response(
        self, model_name: str, messages: List[Dict[str, str]], **kwargs: Any
    ) -> LLMResponse:
        self.requests.append(
            {"model": model_name, "messages": messages, "kwargs": kwargs}
        )
        return LLMResponse(
            content="stubbed", model=model_name, provider="stub"
        )

    def is_available(self) -> bool:
        return True

    @property
    def name(self) -> str:
        return "stub"


def test_load_provider_passes_options(monkeypatch):
    monkeypatch.setitem(PROVIDER_ALIASES, "stub", _StubProvider)
    provider = load_provider(
        {
            "provider": "stub",
            "model": "stub-model",
            "base_url": "http://example.com",
            "api_key_env": "CUSTOM_KEY",
            "temperature": 0.3,
            "system_prompt": "Be brief.",
        }
    )

    assert provider.generate("prompt", max_tokens=10) == "stubbed"
    stub = provider._provider  # type: ignore[attr-defined]
    assert stub.init_kwargs == {
        "base_url": "http://example.com",
        "api_key_env": "CUSTOM_KEY",
    }
    request = stub.requests[0]
    assert request["model"] == "stub-model"
    assert request["messages"] == [
        {"role": "system", "content": "Be brief."},
        {"role": "user", "content": "prompt"},
    ]
    assert request["kwargs"] == {"temperature": 0.3, "max_tokens": 10}


def test_load_provider_requires_model(monkeypatch):
    monkeypatch.setitem(PROVIDER_ALIASES, "stub", _StubProvider)
    with pytest.raises(ValueError, match="model"):
        load_provider({"provider": "stub"})


def test_load_provider_rejects_unknown_names():
    with pytest.raises(ValueError, match="Unknown provider"):
        load_provider({"provider": "carrier-pigeon", "model": "x"})
    with pytest.raises(ValueError, match="provider"):
        load_provider({"model": "gpt-4o"})


def test_unavailable_provider_is_reported(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with pytest.raises(ValueError, match="not available"):
        load_provider({"provider": "openai", "model": "gpt-4o"})
