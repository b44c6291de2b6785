# Copyright (c) Meta Platforms, Inc. and affiliates.
# Modifications copyright (c) 2025 Logan Martel.
# Adapted from https://github.com/meta-pytorch/KernelAgent (Apache-2.0).

"""Template engine backed by Jinja2 templates."""

from __future__ import annotations

import logging

from pathlib import Path
from typing import (
    AbstractSet,
    Any,
    Iterator,
    Mapping,
    Optional,
    Sequence,
    Union,
)

from jinja2 import (
    BaseLoader,
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    PackageLoader,
    PrefixLoader,
    StrictUndefined,
    TemplateNotFound,
    TemplatesNotFound,
    Undefined,
    meta,
    nodes,
)

from promptbind.templates.base import TemplateEngine

_LOGGER = logging.getLogger(__name__)


class JinjaTemplateEngine(TemplateEngine):
    """Loads, inspects and renders plain-text Jinja templates.

    Templates are addressed by slash-separated paths such as
    ``examples/poem_service/compose_poem_prompt.j2``. They are looked up in
    ``search_paths`` first (first match wins) and then inside importable
    ``packages``, where the first path segment names the top-level package.
    """

    def __init__(
        self,
        search_paths: Optional[Sequence[Path | str]] = None,
        *,
        packages: Optional[Sequence[str]] = None,
        strict_undefined: bool = True,
    ) -> None:
        paths = [Path(path) for path in search_paths or ()]
        for path in paths:
            if not path.is_dir():
                raise FileNotFoundError(
                    f"Templates directory not found: {path}"
                )
        loaders: list[BaseLoader] = [
            FileSystemLoader(str(path)) for path in paths
        ]
        if packages:
            loaders.append(
                PrefixLoader(
                    {name: PackageLoader(name, ".") for name in packages}
                )
            )
        if not loaders:
            raise ValueError(
                "JinjaTemplateEngine needs at least one search path or "
                "package"
            )

        self._search_paths = tuple(paths)
        self._packages = tuple(packages or ())
        self._declared: dict[str, frozenset[str]] = {}
        self._loader = ChoiceLoader(loaders)
        self._env = Environment(
            loader=self._loader,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined if strict_undefined else Undefined,
        )

    @property
    def search_paths(self) -> tuple[Path, ...]:
        return self._search_paths

    @property
    def packages(self) -> tuple[str, ...]:
        return self._packages

    @property
    def environment(self) -> Environment:
        return self._env

    def list_templates(self) -> list[str]:
        """Return the list of known template paths."""
        return sorted(set(self._env.list_templates()))

    def declared_parameters(self, template_path: str) -> AbstractSet[str]:
        """Return the variables ``template_path`` reads from its context.

        Includes and parent templates with static names are followed.
        Names the including template binds at the point of an include
        (loop targets, ``set`` targets, macro arguments) are not required
        from the caller, and parent blocks overridden by a child are
        skipped. Imports are followed only ``with context``. Names provided
        by the environment globals (``range``, ``dict``, ...) are ignored.
        """

        cached = self._declared.get(template_path)
        if cached is not None:
            return cached
        names = self._collect_undeclared(template_path, frozenset(), ())
        declared = frozenset(names - set(self._env.globals))
        _LOGGER.debug(
            "Template %s declares parameters %s",
            template_path,
            sorted(declared),
        )
        self._declared[template_path] = declared
        return declared

    def render(
        self, template_path: str, parameters: Mapping[str, Any]
    ) -> str:
        template = self._env.get_template(template_path)
        return template.render(dict(parameters))

    def _collect_undeclared(
        self,
        template_path: str,
        overridden: frozenset[str],
        stack: tuple[str, ...],
    ) -> set[str]:
        if template_path in stack:
            return set()
        stack = stack + (template_path,)
        source, _, _ = self._loader.get_source(self._env, template_path)
        ast = self._env.parse(source, name=template_path)

        for block in list(ast.find_all(nodes.Block)):
            if block.name in overridden:
                block.body = []
        names = set(meta.find_undeclared_variables(ast))

        for node, bound in _scoped_references(ast.body, frozenset()):
            if not node.with_context:
                continue
            ignore_missing = getattr(node, "ignore_missing", False)
            reference = self._select_template(node.template, ignore_missing)
            if reference is not None:
                names |= (
                    self._collect_undeclared(reference, frozenset(), stack)
                    - bound
                )

        for extends in ast.find_all(nodes.Extends):
            parent = self._select_template(extends.template, False)
            if parent is None:
                continue
            replaced = {
                block.name
                for block in ast.find_all(nodes.Block)
                if not _calls_super(block)
            }
            names |= self._collect_undeclared(
                parent, overridden | replaced, stack
            )
        return names

    def _select_template(
        self, expression: nodes.Expr, ignore_missing: bool
    ) -> Optional[str]:
        """Resolve a static reference the way ``select_template`` does.

        Returns ``None`` for computed names and for missing templates
        referenced with ``ignore missing``.
        """

        candidates = _static_names(expression)
        if candidates is None:
            return None
        for candidate in candidates:
            if self._exists(candidate):
                return candidate
        if ignore_missing:
            return None
        if len(candidates) == 1:
            raise TemplateNotFound(candidates[0])
        raise TemplatesNotFound(candidates)

    def _exists(self, template_path: str) -> bool:
        try:
            self._loader.get_source(self._env, template_path)
        except TemplateNotFound:
            return False
        return True


_ScopedReference = Union[nodes.Include, nodes.Import, nodes.FromImport]


def _scoped_references(
    body: list[nodes.Node], bound: frozenset[str]
) -> Iterator[tuple[_ScopedReference, frozenset[str]]]:
    """Yield includes and imports with the local names visible to them."""

    for node in body:
        yield from _scoped_node_references(node, bound)
        bound = bound | _names_bound_by(node)


def _scoped_node_references(
    node: nodes.Node, bound: frozenset[str]
) -> Iterator[tuple[_ScopedReference, frozenset[str]]]:
    if isinstance(node, (nodes.Include, nodes.Import, nodes.FromImport)):
        yield node, bound
        return
    if isinstance(node, nodes.For):
        inner = bound | _stored_names(node.target) | {"loop"}
        yield from _scoped_references(node.body, inner)
        yield from _scoped_references(node.else_, bound)
        return
    if isinstance(node, (nodes.Macro, nodes.CallBlock)):
        inner = bound | {arg.name for arg in node.args}
        inner |= {"caller", "varargs", "kwargs"}
        yield from _scoped_references(node.body, inner)
        return
    if isinstance(node, nodes.With):
        inner = bound.union(*(_stored_names(t) for t in node.targets))
        yield from _scoped_references(node.body, inner)
        return
    for _, value in node.iter_fields():
        if isinstance(value, list):
            children = [
                item for item in value if isinstance(item, nodes.Node)
            ]
            yield from _scoped_references(children, bound)
        elif isinstance(value, nodes.Node):
            yield from _scoped_node_references(value, bound)


def _names_bound_by(node: nodes.Node) -> frozenset[str]:
    if isinstance(node, (nodes.Assign, nodes.AssignBlock)):
        return _stored_names(node.target)
    if isinstance(node, nodes.Import):
        return frozenset({node.target})
    if isinstance(node, nodes.FromImport):
        return frozenset(
            item[1] if isinstance(item, tuple) else item
            for item in node.names
        )
    if isinstance(node, nodes.Macro):
        return frozenset({node.name})
    return frozenset()


def _stored_names(target: nodes.Node) -> frozenset[str]:
    if isinstance(target, nodes.Name):
        return frozenset({target.name})
    return frozenset(
        name.name
        for name in target.find_all(nodes.Name)
        if name.ctx == "store"
    )


def _static_names(expression: nodes.Expr) -> Optional[list[str]]:
    if isinstance(expression, nodes.Const):
        if isinstance(expression.value, str):
            return [expression.value]
        if isinstance(expression.value, (list, tuple)) and all(
            isinstance(item, str) for item in expression.value
        ):
            return list(expression.value)
        return None
    if isinstance(expression, (nodes.List, nodes.Tuple)):
        names = []
        for item in expression.items:
            if not (
                isinstance(item, nodes.Const) and isinstance(item.value, str)
            ):
                return None
            names.append(item.value)
        return names
    return None


def _calls_super(block: nodes.Block) -> bool:
    return any(
        isinstance(call.node, nodes.Name) and call.node.name == "super"
        for call in block.find_all(nodes.Call)
    )


__all__ = ["JinjaTemplateEngine"]
