"""Custom exceptions for contract binding and dispatch."""

from __future__ import annotations

from typing import AbstractSet, Optional


class PromptbindError(RuntimeError):
    """Base exception for promptbind failures."""


class BindError(PromptbindError, ValueError):
    """Raised when a contract cannot be bound; no service is produced."""

    def __init__(
        self,
        message: str,
        *,
        contract: str,
        operation: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.contract = contract
        self.operation = operation


class InvalidContract(BindError):
    """Raised when a contract declaration cannot be described at all."""

    def __init__(self, contract: str, reason: str) -> None:
        super().__init__(
            f"Contract {contract} is invalid: {reason}", contract=contract
        )
        self.reason = reason


class MissingTemplateReference(BindError):
    """Raised when an operation lacks a template designator."""

    def __init__(self, contract: str, operation: str) -> None:
        super().__init__(
            f"Operation {operation} in {contract} must declare a prompt "
            "template (use @prompt_template(...))",
            contract=contract,
            operation=operation,
        )


class UntaggedArgument(BindError):
    """Raised when an argument is not mapped to any template variable."""

    def __init__(self, contract: str, operation: str, argument: str) -> None:
        super().__init__(
            f"Argument '{argument}' of {contract}.{operation}() is not "
            "tagged with a template variable "
            "(use Annotated[..., PromptParam(...)])",
            contract=contract,
            operation=operation,
        )
        self.argument = argument


class DuplicateTemplateVariable(BindError):
    """Raised when two arguments map to the same template variable."""

    def __init__(self, contract: str, operation: str, variable: str) -> None:
        super().__init__(
            f"Template variable '{variable}' is bound more than once in "
            f"{contract}.{operation}()",
            contract=contract,
            operation=operation,
        )
        self.variable = variable


class TemplateLookupFailed(BindError):
    """Raised when the declared parameters of a template cannot be read."""

    def __init__(
        self,
        contract: str,
        operation: str,
        template: str,
        cause: BaseException,
    ) -> None:
        super().__init__(
            f"Could not inspect template {template} for "
            f"{contract}.{operation}(): {cause}",
            contract=contract,
            operation=operation,
        )
        self.template = template
        self.cause = cause


class ParameterMismatch(BindError):
    """Raised when template variables and tagged arguments disagree."""

    def __init__(
        self,
        contract: str,
        operation: str,
        template: str,
        missing: AbstractSet[str],
        extra: AbstractSet[str],
    ) -> None:
        self.template = template
        self.missing = frozenset(missing)
        self.extra = frozenset(extra)
        lines = [
            f"Template parameter mismatch for {contract}.{operation}() "
            f"with template {template}:"
        ]
        if self.missing:
            lines.append(
                "  Missing required parameters: "
                + ", ".join(sorted(self.missing))
            )
        if self.extra:
            lines.append(
                "  Extra parameters provided: "
                + ", ".join(sorted(self.extra))
            )
        super().__init__(
            "\n".join(lines), contract=contract, operation=operation
        )


class RenderingFailed(PromptbindError):
    """Raised when a template cannot be rendered for an operation call."""

    def __init__(
        self, operation: str, template: str, cause: BaseException
    ) -> None:
        super().__init__(
            f"Rendering {template} for {operation}() failed: {cause}"
        )
        self.operation = operation
        self.template = template
        self.cause = cause


class ResponseParseError(PromptbindError):
    """Raised by response adapters when model output cannot be decoded."""

    def __init__(self, message: str, *, text: str) -> None:
        super().__init__(message)
        self.text = text
