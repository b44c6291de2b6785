"""Poem-writing contract used as the end-to-end example."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated, List, Protocol

from promptbind import PromptParam, prompt_template


@dataclass(frozen=True)
class StanzaInstructions:
    stanza_idea: str
    ok_to_deviate: bool = False


@dataclass(frozen=True)
class PoemInstructions:
    theme: str
    style: str
    rhyme_scheme: str
    stanza_instructions: List[StanzaInstructions] = field(
        default_factory=list
    )


@dataclass(frozen=True)
class Poem:
    title: str
    content: str

    def __str__(self) -> str:
        return f"=== {self.title} ===\n\n{self.content}\n"


class TemplatedPoemService(Protocol):
    """Templates live next to this module, under examples/poem_service/."""

    @prompt_template("compose_poem_prompt.j2")
    def compose_poem(
        self,
        instructions: Annotated[PoemInstructions, PromptParam("instructions")],
    ) -> Poem:
        """Write a poem following ``instructions``."""
        ...


__all__ = [
    "Poem",
    "PoemInstructions",
    "StanzaInstructions",
    "TemplatedPoemService",
]
