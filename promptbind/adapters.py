"""Response adapters turning rendered prompts into results via an LLM."""

from __future__ import annotations

import dataclasses
import json
import re

from typing import Any, Callable, Optional, Type, TypeVar

from promptbind.exceptions import ResponseParseError
from promptbind.llm.providers import LLMProvider

T = TypeVar("T")

_FENCED_JSON = re.compile(r"```(?:json)?\s*\n(.*?)\n\s*```", re.DOTALL)


def text_adapter(
    provider: LLMProvider, **generate_kwargs: Any
) -> Callable[[str], str]:
    """Return an adapter that answers with the model's raw text."""

    def adapter(text: str) -> str:
        return provider.generate(text, **generate_kwargs)

    return adapter


def json_adapter(
    provider: LLMProvider,
    result_type: Optional[Type[T]] = None,
    **generate_kwargs: Any,
) -> Callable[[str], Any]:
    """Return an adapter that decodes the model's answer as JSON.

    With a dataclass ``result_type`` the decoded object is used as keyword
    arguments for it; unknown keys are ignored.
    """

    def adapter(text: str) -> Any:
        return parse_json_response(
            provider.generate(text, **generate_kwargs), result_type
        )

    return adapter


def parse_json_response(
    output: str, result_type: Optional[Type[T]] = None
) -> Any:
    """Decode ``output`` (optionally fenced in a code block) as JSON."""

    match = _FENCED_JSON.search(output)
    payload = match.group(1) if match else output.strip()
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ResponseParseError(
            f"Model output is not valid JSON: {exc}", text=output
        ) from exc
    if result_type is None:
        return data
    if not dataclasses.is_dataclass(result_type):
        raise TypeError(
            f"result_type must be a dataclass, got {result_type!r}"
        )
    if not isinstance(data, dict):
        raise ResponseParseError(
            f"Expected a JSON object for {result_type.__name__}, got "
            f"{type(data).__name__}",
            text=output,
        )
    names = {field.name for field in dataclasses.fields(result_type)}
    try:
        return result_type(
            **{key: value for key, value in data.items() if key in names}
        )
    except TypeError as exc:
        raise ResponseParseError(
            f"Cannot build {result_type.__name__} from model output: {exc}",
            text=output,
        ) from exc


__all__ = ["json_adapter", "parse_json_response", "text_adapter"]
