"""Contract declarations and the descriptors extracted from them.

A contract is a plain class whose public methods each name a prompt template
and tag their arguments with template variable names::

    class PoemService(Protocol):
        @prompt_template("compose_poem_prompt.j2")
        def compose_poem(
            self,
            instructions: Annotated[PoemInstructions, PromptParam("instructions")],
        ) -> Poem: ...

``describe_contract`` turns such a class into an immutable
``ContractDescriptor``. Descriptors can also be written out by hand when no
class exists, which keeps the operation/template mapping inspectable.
"""

from __future__ import annotations

import inspect
import sys
import typing

from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional, TypeVar

from promptbind.exceptions import InvalidContract

_TEMPLATE_ATTR = "__prompt_template__"

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True, slots=True)
class PromptParam:
    """Template variable tag, used as ``Annotated[T, PromptParam("name")]``."""

    name: str

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("PromptParam name must be a non-empty string")


def prompt_template(file_name: str) -> Callable[[F], F]:
    """Mark a contract method with the template file that renders it."""

    if not file_name:
        raise ValueError("prompt_template requires a file name")

    def decorator(func: F) -> F:
        setattr(func, _TEMPLATE_ATTR, file_name)
        return func

    return decorator


@dataclass(frozen=True, slots=True)
class ArgumentSlot:
    """One parameter of an operation, optionally tagged with a variable."""

    name: str
    position: int
    variable: Optional[str] = None
    default: Any = inspect.Parameter.empty
    kind: Any = inspect.Parameter.POSITIONAL_OR_KEYWORD

    @property
    def tagged(self) -> bool:
        return self.variable is not None

    def as_parameter(self) -> inspect.Parameter:
        return inspect.Parameter(self.name, self.kind, default=self.default)


@dataclass(frozen=True, slots=True)
class OperationSpec:
    """Static metadata for one contract operation."""

    name: str
    template: Optional[str]
    arguments: tuple[ArgumentSlot, ...] = ()
    result_type: Any = None
    doc: Optional[str] = None

    def signature(self) -> inspect.Signature:
        """Return the call signature (without ``self``) of the operation."""

        ordered = sorted(self.arguments, key=lambda slot: slot.position)
        return inspect.Signature(
            [slot.as_parameter() for slot in ordered],
            return_annotation=(
                self.result_type
                if self.result_type is not None
                else inspect.Signature.empty
            ),
        )

    def tagged_arguments(self) -> tuple[ArgumentSlot, ...]:
        return tuple(slot for slot in self.arguments if slot.tagged)


@dataclass(frozen=True, slots=True)
class ContractDescriptor:
    """Immutable description of a contract: namespace plus operations."""

    name: str
    namespace: str
    operations: tuple[OperationSpec, ...]

    def __iter__(self) -> Iterator[OperationSpec]:
        return iter(self.operations)

    def operation(self, name: str) -> OperationSpec:
        for operation in self.operations:
            if operation.name == name:
                return operation
        raise KeyError(f"{self.name} has no operation '{name}'")

    def template_path(self, operation: OperationSpec) -> str:
        """Join the contract namespace and the operation's template file."""

        if operation.template is None:
            raise ValueError(
                f"{self.name}.{operation.name} has no template reference"
            )
        namespace = self.namespace.strip("/")
        if not namespace:
            return operation.template
        return f"{namespace}/{operation.template}"


def default_namespace(contract: type) -> str:
    """Return the package path of ``contract`` with dots turned to slashes."""

    module_name = contract.__module__
    module = sys.modules.get(module_name)
    package = getattr(module, "__package__", None)
    if package is None:
        package = module_name.rpartition(".")[0]
    return package.replace(".", "/")


def describe_contract(
    contract: type, *, namespace: Optional[str] = None
) -> ContractDescriptor:
    """Build a ``ContractDescriptor`` from a decorated contract class.

    Every public function defined on the class (or its bases, excluding
    ``object``) is an operation. Missing template references are kept as
    ``None`` so the validator can report them.
    """

    if not inspect.isclass(contract):
        raise InvalidContract(repr(contract), "expected a class")
    name = contract.__qualname__
    operations = tuple(
        _describe_operation(name, attr_name, func, bound)
        for attr_name, func, bound in _iter_operation_functions(contract)
    )
    if not operations:
        raise InvalidContract(name, "declares no operations")
    return ContractDescriptor(
        name=name,
        namespace=(
            default_namespace(contract) if namespace is None else namespace
        ),
        operations=operations,
    )


def _iter_operation_functions(
    contract: type,
) -> Iterator[tuple[str, Callable[..., Any], bool]]:
    seen: dict[str, tuple[Callable[..., Any], bool]] = {}
    for klass in reversed(contract.__mro__):
        if klass is object:
            continue
        for attr_name, member in vars(klass).items():
            if attr_name.startswith("_"):
                continue
            if isinstance(member, staticmethod):
                seen[attr_name] = (member.__func__, False)
            elif inspect.isfunction(member):
                seen[attr_name] = (member, True)
            elif isinstance(member, (classmethod, property)) or (
                callable(member) and not inspect.isclass(member)
            ):
                raise InvalidContract(
                    contract.__qualname__,
                    f"{attr_name} is a {type(member).__name__}; operations "
                    "must be plain methods or staticmethods",
                )
            else:
                seen.pop(attr_name, None)
    for attr_name, (func, bound) in seen.items():
        yield attr_name, func, bound


def _describe_operation(
    contract_name: str,
    attr_name: str,
    func: Callable[..., Any],
    bound: bool,
) -> OperationSpec:
    try:
        hints = typing.get_type_hints(func, include_extras=True)
    except (NameError, TypeError) as exc:
        raise InvalidContract(
            contract_name,
            f"cannot resolve annotations of {attr_name}(): {exc}",
        ) from exc

    parameters = list(inspect.signature(func).parameters.values())
    if bound:
        parameters = parameters[1:]

    slots = []
    for position, parameter in enumerate(parameters):
        if parameter.kind in (
            inspect.Parameter.VAR_POSITIONAL,
            inspect.Parameter.VAR_KEYWORD,
        ):
            raise InvalidContract(
                contract_name,
                f"{attr_name}() uses *{parameter.name}; operations need "
                "explicit arguments",
            )
        slots.append(
            ArgumentSlot(
                name=parameter.name,
                position=position,
                variable=_prompt_param_name(
                    contract_name, attr_name, hints.get(parameter.name)
                ),
                default=parameter.default,
                kind=parameter.kind,
            )
        )

    return OperationSpec(
        name=attr_name,
        template=getattr(func, _TEMPLATE_ATTR, None),
        arguments=tuple(slots),
        result_type=hints.get("return"),
        doc=inspect.getdoc(func),
    )


def _prompt_param_name(
    contract_name: str, attr_name: str, hint: Any
) -> Optional[str]:
    if typing.get_origin(hint) is typing.Union:
        # Python 3.10 wraps Annotated defaults of None in Optional[...]
        for arg in typing.get_args(hint):
            if typing.get_origin(arg) is typing.Annotated:
                hint = arg
                break
    if hint is None or typing.get_origin(hint) is not typing.Annotated:
        return None
    tags = [
        item for item in hint.__metadata__ if isinstance(item, PromptParam)
    ]
    if len(tags) > 1:
        raise InvalidContract(
            contract_name,
            f"an argument of {attr_name}() carries more than one PromptParam",
        )
    return tags[0].name if tags else None


__all__ = [
    "ArgumentSlot",
    "ContractDescriptor",
    "OperationSpec",
    "PromptParam",
    "default_namespace",
    "describe_contract",
    "prompt_template",
]
