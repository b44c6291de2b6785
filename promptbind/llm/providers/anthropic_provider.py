# Copyright (c) Meta Platforms, Inc. and affiliates.
# Modifications copyright (c) 2025 Logan Martel.
# Adapted from https://github.com/meta-pytorch/KernelAgent (Apache-2.0).
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Anthropic provider implementation."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from promptbind.llm.providers.base import BaseProvider, LLMResponse

try:  # pragma: no cover - optional dependency
    import anthropic  # type: ignore

    ANTHROPIC_AVAILABLE = True
except ImportError:  # pragma: no cover
    ANTHROPIC_AVAILABLE = False
    anthropic = None  # type: ignore


class AnthropicProvider(BaseProvider):
    def __init__(
        self,
        *,
        api_key_env: str = "ANTHROPIC_API_KEY",
        base_url: Optional[str] = None,
    ) -> None:
        self.api_key_env = api_key_env
        self.base_url = base_url
        super().__init__()

    @property
    def name(self) -> str:
        return "anthropic"

    def _initialize_client(self) -> None:
        if not ANTHROPIC_AVAILABLE or anthropic is None:
            return
        api_key = self._get_api_key(self.api_key_env)
        if not api_key:
            return
        if self.base_url:
            self.client = anthropic.Anthropic(
                api_key=api_key, base_url=self.base_url
            )
        else:
            self.client = anthropic.Anthropic(api_key=api_key)

    def is_available(self) -> bool:
        return ANTHROPIC_AVAILABLE and self.client is not None

    def get_response(
        self,
        model_name: str,
        messages: List[Dict[str, str]],
        **kwargs: Any,
    ) -> LLMResponse:
        client = self.client
        if not self.is_available() or client is None:
            raise RuntimeError("Anthropic client not available")

        # The Messages API takes the system prompt separately.
        system_prompt = ""
        conversation = []
        for message in messages:
            if message.get("role") == "system":
                system_prompt = message.get("content", "")
                continue
            conversation.append(
                {
                    "role": message.get("role", "user"),
                    "content": message.get("content", ""),
                }
            )

        params: Dict[str, Any] = {
            "model": model_name,
            "messages": conversation,
            "temperature": kwargs.get("temperature", 0.7),
            "max_tokens": min(
                kwargs.get("max_tokens", 4096),
                self.get_max_tokens_limit(model_name),
            ),
        }
        if system_prompt:
            params["system"] = system_prompt
        response: Any = client.messages.create(**params)  # type: ignore[attr-defined]
        text = "".join(
            block.text
            for block in getattr(response, "content", None) or []
            if isinstance(getattr(block, "text", None), str)
        )
        usage = getattr(response, "usage", None)
        return LLMResponse(
            content=text,
            model=model_name,
            provider=self.name,
            usage=usage.model_dump() if usage is not None else None,
        )
