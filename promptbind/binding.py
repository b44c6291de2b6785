"""Entry points that validate contracts and produce dispatchers."""

from __future__ import annotations

import logging

from typing import Generic, Optional, Union

from promptbind.contracts import ContractDescriptor, describe_contract
from promptbind.dispatch import OperationDispatcher
from promptbind.templates.base import (
    ParameterOracle,
    ResponseAdapter,
    ResponseT,
    TemplateEngine,
    TemplateRenderer,
)
from promptbind.validation import validate_contract

_LOGGER = logging.getLogger(__name__)

Contract = Union[type, ContractDescriptor]


def bind(
    contract: Contract,
    renderer: TemplateRenderer,
    response_adapter: ResponseAdapter[ResponseT],
    *,
    oracle: Optional[ParameterOracle] = None,
    namespace: Optional[str] = None,
) -> OperationDispatcher[ResponseT]:
    """Validate ``contract`` and return a dispatcher implementing it.

    ``contract`` is either a decorated class or a ``ContractDescriptor``.
    When ``oracle`` is omitted, ``renderer`` must also implement
    ``declared_parameters`` (``JinjaTemplateEngine`` does). Any problem is
    raised as a ``BindError`` before a dispatcher exists.
    """

    descriptor = _as_descriptor(contract, namespace)
    if oracle is None:
        if not hasattr(renderer, "declared_parameters"):
            raise TypeError(
                f"{type(renderer).__name__} cannot report template "
                "parameters; pass an explicit oracle"
            )
        oracle = renderer  # type: ignore[assignment]

    template_paths = validate_contract(descriptor, oracle)
    dispatcher: OperationDispatcher[ResponseT] = OperationDispatcher(
        descriptor, template_paths, renderer, response_adapter
    )
    _LOGGER.info(
        "Bound contract %s with %d operation(s)",
        descriptor.name,
        len(descriptor.operations),
    )
    return dispatcher


class TemplatedServiceFactory(Generic[ResponseT]):
    """Binds any number of contracts to one engine and response adapter."""

    def __init__(
        self,
        response_adapter: ResponseAdapter[ResponseT],
        engine: TemplateEngine,
    ) -> None:
        self._response_adapter = response_adapter
        self._engine = engine

    @property
    def engine(self) -> TemplateEngine:
        return self._engine

    def create(
        self, contract: Contract, *, namespace: Optional[str] = None
    ) -> OperationDispatcher[ResponseT]:
        return bind(
            contract,
            self._engine,
            self._response_adapter,
            namespace=namespace,
        )


def _as_descriptor(
    contract: Contract, namespace: Optional[str]
) -> ContractDescriptor:
    if isinstance(contract, ContractDescriptor):
        if namespace is None:
            return contract
        return ContractDescriptor(
            name=contract.name,
            namespace=namespace,
            operations=contract.operations,
        )
    return describe_contract(contract, namespace=namespace)


__all__ = ["Contract", "TemplatedServiceFactory", "bind"]
