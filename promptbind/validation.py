"""Bind-time validation of contracts against their templates."""

from __future__ import annotations

import logging

from types import MappingProxyType
from typing import Mapping

from promptbind.contracts import ContractDescriptor, OperationSpec
from promptbind.exceptions import (
    DuplicateTemplateVariable,
    InvalidContract,
    MissingTemplateReference,
    ParameterMismatch,
    TemplateLookupFailed,
    UntaggedArgument,
)
from promptbind.templates.base import ParameterOracle

_LOGGER = logging.getLogger(__name__)


def validate_contract(
    contract: ContractDescriptor, oracle: ParameterOracle
) -> Mapping[str, str]:
    """Check every operation of ``contract`` and resolve its template.

    All operations are checked eagerly, including ones that may never be
    called. Returns a read-only mapping of operation name to template path,
    or raises a ``BindError`` describing the first offending operation.
    """

    paths: dict[str, str] = {}
    for operation in contract.operations:
        if operation.name in paths:
            raise InvalidContract(
                contract.name,
                f"operation '{operation.name}' is declared more than once",
            )
        paths[operation.name] = _validate_operation(
            contract, operation, oracle
        )
    return MappingProxyType(paths)


def _validate_operation(
    contract: ContractDescriptor,
    operation: OperationSpec,
    oracle: ParameterOracle,
) -> str:
    if operation.template is None:
        raise MissingTemplateReference(contract.name, operation.name)

    try:
        operation.signature()
    except ValueError as exc:
        raise InvalidContract(
            contract.name, f"{operation.name}(): {exc}"
        ) from exc

    declared: set[str] = set()
    for slot in operation.arguments:
        if slot.variable is None:
            raise UntaggedArgument(contract.name, operation.name, slot.name)
        if slot.variable in declared:
            raise DuplicateTemplateVariable(
                contract.name, operation.name, slot.variable
            )
        declared.add(slot.variable)

    template_path = contract.template_path(operation)
    try:
        template_params = set(oracle.declared_parameters(template_path))
    except Exception as exc:
        raise TemplateLookupFailed(
            contract.name, operation.name, template_path, exc
        ) from exc

    missing = template_params - declared
    extra = declared - template_params
    if missing or extra:
        raise ParameterMismatch(
            contract.name, operation.name, template_path, missing, extra
        )

    _LOGGER.debug(
        "Validated %s.%s() against %s",
        contract.name,
        operation.name,
        template_path,
    )
    return template_path


__all__ = ["validate_contract"]
