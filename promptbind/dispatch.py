"""Runtime objects that implement bound contracts."""

from __future__ import annotations

import inspect
import logging

from types import MappingProxyType
from typing import Any, Generic, Mapping

from promptbind.contracts import ContractDescriptor, OperationSpec
from promptbind.exceptions import InvalidContract, RenderingFailed
from promptbind.logging import redact
from promptbind.templates.base import (
    ResponseAdapter,
    ResponseT,
    TemplateRenderer,
)

_LOGGER = logging.getLogger(__name__)
_PREVIEW_CHARS = 200


class BoundOperation(Generic[ResponseT]):
    """Callable implementing one operation of a bound contract."""

    def __init__(
        self,
        contract_name: str,
        spec: OperationSpec,
        template_path: str,
        renderer: TemplateRenderer,
        response_adapter: ResponseAdapter[ResponseT],
    ) -> None:
        self.spec = spec
        self.template_path = template_path
        self._renderer = renderer
        self._response_adapter = response_adapter
        self.__name__ = spec.name
        self.__qualname__ = f"{contract_name}.{spec.name}"
        self.__doc__ = spec.doc
        self.__signature__ = spec.signature()

    def parameters(self, *args: Any, **kwargs: Any) -> dict[str, Any]:
        """Map call arguments onto template variable names."""

        bound = self.__signature__.bind(*args, **kwargs)
        bound.apply_defaults()
        return {
            slot.variable: bound.arguments[slot.name]
            for slot in self.spec.tagged_arguments()
        }

    def render(self, *args: Any, **kwargs: Any) -> str:
        """Render the prompt for a call without invoking the adapter."""

        parameters = self.parameters(*args, **kwargs)
        try:
            text = self._renderer.render(self.template_path, parameters)
        except Exception as exc:
            raise RenderingFailed(
                self.__qualname__, self.template_path, exc
            ) from exc
        if _LOGGER.isEnabledFor(logging.DEBUG):
            _LOGGER.debug(
                "Rendered %s() from %s (%d chars): %s",
                self.__qualname__,
                self.template_path,
                len(text),
                redact(text[:_PREVIEW_CHARS]),
            )
        return text

    def __call__(self, *args: Any, **kwargs: Any) -> ResponseT:
        return self._response_adapter(self.render(*args, **kwargs))

    def __repr__(self) -> str:
        return f"<BoundOperation {self.__qualname__} -> {self.template_path}>"


class OperationDispatcher(Generic[ResponseT]):
    """Implementation of a contract produced by ``bind``.

    Every contract operation is reachable as an attribute. The dispatcher
    holds no mutable state, so it may be shared between threads as long as
    the renderer and response adapter can be. Equality, hashing and string
    conversion are plain object behaviour and never render anything.
    """

    def __init__(
        self,
        contract: ContractDescriptor,
        template_paths: Mapping[str, str],
        renderer: TemplateRenderer,
        response_adapter: ResponseAdapter[ResponseT],
    ) -> None:
        reserved = _reserved_names()
        operations: dict[str, BoundOperation[ResponseT]] = {}
        for spec in contract.operations:
            if spec.name in reserved:
                raise InvalidContract(
                    contract.name,
                    f"operation name '{spec.name}' is reserved",
                )
            operations[spec.name] = BoundOperation(
                contract.name,
                spec,
                template_paths[spec.name],
                renderer,
                response_adapter,
            )
        object.__setattr__(self, "_contract", contract)
        object.__setattr__(self, "_operations", MappingProxyType(operations))

    @property
    def contract(self) -> ContractDescriptor:
        return self._contract

    @property
    def operations(self) -> tuple[str, ...]:
        return tuple(self._operations)

    def template_path(self, operation: str) -> str:
        return self._lookup(operation).template_path

    def render_prompt(self, operation: str, *args: Any, **kwargs: Any) -> str:
        """Render ``operation``'s prompt for the given arguments."""
        return self._lookup(operation).render(*args, **kwargs)

    def _lookup(self, operation: str) -> BoundOperation[ResponseT]:
        try:
            return self._operations[operation]
        except KeyError:
            raise KeyError(
                f"{self._contract.name} has no operation '{operation}'"
            ) from None

    def __getattr__(self, name: str) -> BoundOperation[ResponseT]:
        operations = self.__dict__.get("_operations")
        if operations is not None and name in operations:
            return operations[name]
        raise AttributeError(
            f"{type(self).__name__} has no attribute '{name}'"
        )

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __dir__(self) -> list[str]:
        return sorted(set(super().__dir__()) | set(self._operations))

    def __repr__(self) -> str:
        names = ", ".join(self._operations)
        return f"<{type(self).__name__} {self._contract.name} [{names}]>"


def _reserved_names() -> frozenset[str]:
    return frozenset(
        name
        for name, _ in inspect.getmembers(OperationDispatcher)
        if not name.startswith("_")
    )


__all__ = ["BoundOperation", "OperationDispatcher"]
