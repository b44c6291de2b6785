from __future__ import annotations

import inspect

from typing import Annotated, Optional

import pytest

from examples.poem_service import Poem, PoemInstructions, TemplatedPoemService
from promptbind.contracts import (
    ArgumentSlot,
    ContractDescriptor,
    OperationSpec,
    PromptParam,
    default_namespace,
    describe_contract,
    prompt_template,
)
from promptbind.exceptions import InvalidContract


class ReviewService:
    @prompt_template("summarize.j2")
    def summarize(
        self,
        text: Annotated[str, PromptParam("document")],
        limit: Annotated[int, PromptParam("max_words")] = 50,
    ) -> str:
        """Summarize a document."""
        ...

    def untemplated(self, topic: Annotated[str, PromptParam("topic")]) -> str:
        ...

    @staticmethod
    @prompt_template("static.j2")
    def shout(word: Annotated[str, PromptParam("word")]) -> str:
        ...

    def _helper(self) -> None:
        ...

    tone = "neutral"


class ExtendedReviewService(ReviewService):
    @prompt_template("keywords.j2")
    def keywords(
        self, text: Annotated[str, PromptParam("document")], *, count: int
    ) -> list:
        ...


def test_describe_contract_collects_public_operations() -> None:
    descriptor = describe_contract(ReviewService, namespace="prompts")

    assert descriptor.name == "ReviewService"
    assert descriptor.namespace == "prompts"
    assert [op.name for op in descriptor] == [
        "summarize",
        "untemplated",
        "shout",
    ]


def test_describe_contract_reads_templates_and_tags() -> None:
    descriptor = describe_contract(ReviewService, namespace="prompts")
    summarize = descriptor.operation("summarize")

    assert summarize.template == "summarize.j2"
    assert summarize.result_type is str
    assert summarize.doc == "Summarize a document."
    assert [(s.name, s.variable) for s in summarize.arguments] == [
        ("text", "document"),
        ("limit", "max_words"),
    ]
    assert summarize.arguments[1].default == 50
    assert descriptor.operation("untemplated").template is None


def test_static_operations_have_no_self_slot() -> None:
    shout = describe_contract(ReviewService).operation("shout")

    assert [slot.name for slot in shout.arguments] == ["word"]


def test_inherited_operations_and_keyword_only_arguments() -> None:
    descriptor = describe_contract(ExtendedReviewService)
    keywords = descriptor.operation("keywords")

    assert [op.name for op in descriptor][-1] == "keywords"
    count = keywords.arguments[1]
    assert count.variable is None
    assert count.kind is inspect.Parameter.KEYWORD_ONLY
    assert "count" in str(keywords.signature())


def test_default_namespace_uses_package_path() -> None:
    assert default_namespace(TemplatedPoemService) == "examples/poem_service"

    class Detached:
        pass

    Detached.__module__ = "acme.prompts.services"
    assert default_namespace(Detached) == "acme/prompts"


def test_example_contract_resolves_annotations() -> None:
    descriptor = describe_contract(TemplatedPoemService)
    operation = descriptor.operation("compose_poem")

    assert operation.result_type is Poem
    assert operation.arguments == (
        ArgumentSlot(name="instructions", position=0, variable="instructions"),
    )
    assert descriptor.template_path(operation) == (
        "examples/poem_service/compose_poem_prompt.j2"
    )
    hints = operation.signature().parameters
    assert list(hints) == ["instructions"]
    assert operation.signature().return_annotation is Poem
    assert PoemInstructions.__module__ == "examples.poem_service"


def test_optional_annotated_argument_keeps_its_tag() -> None:
    class Optionals:
        @prompt_template("opt.j2")
        def ask(
            self, note: Annotated[Optional[str], PromptParam("note")] = None
        ) -> str:
            ...

    operation = describe_contract(Optionals).operation("ask")
    assert operation.arguments[0].variable == "note"


def test_describe_contract_rejects_non_classes() -> None:
    with pytest.raises(InvalidContract):
        describe_contract(lambda: None)  # type: ignore[arg-type]


def test_describe_contract_rejects_empty_contracts() -> None:
    class Empty:
        pass

    with pytest.raises(InvalidContract, match="declares no operations"):
        describe_contract(Empty)


def test_describe_contract_rejects_variadic_arguments() -> None:
    class Variadic:
        @prompt_template("v.j2")
        def run(self, *items: str) -> str:
            ...

    with pytest.raises(InvalidContract, match=r"\*items"):
        describe_contract(Variadic)


def test_describe_contract_rejects_double_tags() -> None:
    class DoubleTagged:
        @prompt_template("d.j2")
        def run(
            self, item: Annotated[str, PromptParam("a"), PromptParam("b")]
        ) -> str:
            ...

    with pytest.raises(InvalidContract, match="more than one PromptParam"):
        describe_contract(DoubleTagged)


def test_template_path_joins_namespace() -> None:
    operation = OperationSpec(name="run", template="run.j2")

    nested = ContractDescriptor("Svc", "a/b/", (operation,))
    flat = ContractDescriptor("Svc", "", (operation,))

    assert nested.template_path(operation) == "a/b/run.j2"
    assert flat.template_path(operation) == "run.j2"
    with pytest.raises(KeyError):
        flat.operation("missing")


def test_prompt_markers_reject_empty_names() -> None:
    with pytest.raises(ValueError):
        PromptParam("")
    with pytest.raises(ValueError):
        prompt_template("")


@pytest.mark.parametrize("wrapper", [classmethod, property])
def test_describe_contract_rejects_unsupported_members(wrapper) -> None:
    def run(owner) -> str:
        ...

    Mixed = type(
        "Mixed",
        (),
        {
            "other": prompt_template("other.j2")(lambda self: ""),
            "run": wrapper(prompt_template("run.j2")(run)),
        },
    )

    with pytest.raises(InvalidContract, match="run is a"):
        describe_contract(Mixed)


def test_class_attributes_shadow_inherited_operations() -> None:
    class Shadowed(ReviewService):
        untemplated = None

    names = [op.name for op in describe_contract(Shadowed)]
    assert names == ["summarize", "shout"]
