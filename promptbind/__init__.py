"""promptbind package entry point."""

from .adapters import json_adapter, text_adapter
from .binding import TemplatedServiceFactory, bind
from .contracts import (
    ArgumentSlot,
    ContractDescriptor,
    OperationSpec,
    PromptParam,
    describe_contract,
    prompt_template,
)
from .dispatch import BoundOperation, OperationDispatcher
from .exceptions import (
    BindError,
    DuplicateTemplateVariable,
    InvalidContract,
    MissingTemplateReference,
    ParameterMismatch,
    PromptbindError,
    RenderingFailed,
    ResponseParseError,
    TemplateLookupFailed,
    UntaggedArgument,
)
from .templates import JinjaTemplateEngine
from .validation import validate_contract

__all__ = [
    "ArgumentSlot",
    "BindError",
    "BoundOperation",
    "ContractDescriptor",
    "DuplicateTemplateVariable",
    "InvalidContract",
    "JinjaTemplateEngine",
    "MissingTemplateReference",
    "OperationDispatcher",
    "OperationSpec",
    "ParameterMismatch",
    "PromptParam",
    "PromptbindError",
    "RenderingFailed",
    "ResponseParseError",
    "TemplateLookupFailed",
    "TemplatedServiceFactory",
    "UntaggedArgument",
    "bind",
    "describe_contract",
    "json_adapter",
    "prompt_template",
    "text_adapter",
    "validate_contract",
]
