from __future__ import annotations

from dataclasses import dataclass

import pytest

from promptbind.adapters import json_adapter, parse_json_response, text_adapter
from promptbind.exceptions import ResponseParseError
from promptbind.llm.providers import EchoProvider


@dataclass
class Verdict:
    label: str
    score: float = 0.0


class _CannedProvider:
    def __init__(self, output: str) -> None:
        self.output = output
        self.calls: list[tuple[str, dict]] = []

    def generate(self, prompt: str, **kwargs) -> str:
        self.calls.append((prompt, kwargs))
        return self.output


def test_text_adapter_forwards_prompt_and_options() -> None:
    provider = _CannedProvider("done")
    adapter = text_adapter(provider, temperature=0.1)

    assert adapter("rendered prompt") == "done"
    assert provider.calls == [("rendered prompt", {"temperature": 0.1})]


def test_text_adapter_with_echo_provider_mirrors_prompt() -> None:
    assert text_adapter(EchoProvider())("same text") == "same text"


def test_json_adapter_builds_dataclasses_from_fenced_output() -> None:
    provider = _CannedProvider(
        'Sure!\n```json\n{"label": "spam", "score": 0.9, "extra": 1}\n```'
    )

    verdict = json_adapter(provider, Verdict)("classify this")

    assert verdict == Verdict(label="spam", score=0.9)


def test_json_adapter_without_type_returns_plain_data() -> None:
    adapter = json_adapter(_CannedProvider('[1, 2, 3]'))

    assert adapter("list please") == [1, 2, 3]


def test_invalid_json_raises_parse_error() -> None:
    with pytest.raises(ResponseParseError) as excinfo:
        parse_json_response("not json at all")

    assert excinfo.value.text == "not json at all"


def test_json_shape_must_fit_result_type() -> None:
    with pytest.raises(ResponseParseError, match="Expected a JSON object"):
        parse_json_response("[1]", Verdict)
    with pytest.raises(ResponseParseError, match="Cannot build Verdict"):
        parse_json_response('{"score": 1}', Verdict)
    with pytest.raises(TypeError):
        parse_json_response("{}", dict)
