"""LLM access used by the bundled response adapters."""

from promptbind.llm.providers import LLMProvider, load_provider

__all__ = ["LLMProvider", "load_provider"]
