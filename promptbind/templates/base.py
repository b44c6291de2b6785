"""Protocols for the collaborators a bound service depends on."""

from __future__ import annotations

from typing import AbstractSet, Any, Callable, Mapping, Protocol, TypeVar

ResponseT = TypeVar("ResponseT")

# Turns rendered prompt text into a result, typically through an LLM.
ResponseAdapter = Callable[[str], ResponseT]


class ParameterOracle(Protocol):
    """Report the variable names a template expects."""

    def declared_parameters(self, template_path: str) -> AbstractSet[str]:
        """Return the parameter names declared by ``template_path``."""
        ...


class TemplateRenderer(Protocol):
    """Render a template with a mapping of named parameters."""

    def render(
        self, template_path: str, parameters: Mapping[str, Any]
    ) -> str:
        """Render ``template_path`` with ``parameters``."""
        ...


class TemplateEngine(ParameterOracle, TemplateRenderer, Protocol):
    """Renderer that can also answer parameter queries."""
