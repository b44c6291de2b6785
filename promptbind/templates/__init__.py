"""Template collaborators: protocols and the Jinja2 engine."""

from promptbind.templates.base import (
    ParameterOracle,
    ResponseAdapter,
    TemplateEngine,
    TemplateRenderer,
)
from promptbind.templates.jinja_engine import JinjaTemplateEngine

__all__ = [
    "JinjaTemplateEngine",
    "ParameterOracle",
    "ResponseAdapter",
    "TemplateEngine",
    "TemplateRenderer",
]
