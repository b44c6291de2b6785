"""CLI entrypoints for checking and previewing templated contracts."""

from __future__ import annotations

import argparse
import json
import sys

from importlib import import_module
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from promptbind.adapters import text_adapter
from promptbind.binding import bind
from promptbind.configuration import (
    PromptbindSettings,
    TemplateSettings,
    build_engine,
    build_provider,
    build_settings,
    load_config,
)
from promptbind.exceptions import BindError, RenderingFailed
from promptbind.logging import configure_logging

DEFAULT_CONFIG_PATH = Path("promptbind.yaml")


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=str,
        help=(
            "Path to a YAML config. If omitted, uses ./promptbind.yaml when "
            "it exists."
        ),
    )
    parser.add_argument(
        "--templates",
        action="append",
        dest="template_dirs",
        help="Template search directory (repeatable, searched in order).",
    )
    parser.add_argument(
        "--package",
        action="append",
        dest="template_packages",
        help="Resolve templates inside this importable package (repeatable).",
    )
    parser.add_argument(
        "--namespace",
        type=str,
        help="Override the template namespace of the contract(s).",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        help="Override the log level (DEBUG, INFO, WARNING, ...).",
    )


def _add_call_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("contract", help="Contract as module:ClassName.")
    parser.add_argument("operation", help="Operation (method) name.")
    parser.add_argument(
        "--args",
        type=str,
        default="{}",
        help="JSON object of keyword arguments for the operation.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="promptbind",
        description="Bind prompt-template contracts and preview prompts.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser(
        "check", help="Validate contracts against their templates."
    )
    check.add_argument(
        "contracts", nargs="+", help="Contracts as module:ClassName."
    )
    _add_common_arguments(check)

    render = subparsers.add_parser(
        "render", help="Print the prompt an operation call would send."
    )
    _add_call_arguments(render)
    _add_common_arguments(render)

    ask = subparsers.add_parser(
        "ask", help="Render an operation call and send it to the LLM."
    )
    _add_call_arguments(ask)
    _add_common_arguments(ask)
    ask.add_argument(
        "--llm-provider",
        type=str,
        help="Override the LLM provider (openai, anthropic, echo).",
    )
    ask.add_argument("--model", type=str, help="Override the model name.")
    return parser


def _load_settings(args: argparse.Namespace) -> PromptbindSettings:
    if args.config:
        config_path = Path(args.config)
        config = load_config(config_path)
    elif DEFAULT_CONFIG_PATH.exists():
        config_path = DEFAULT_CONFIG_PATH
        config = load_config(config_path)
    else:
        config_path = DEFAULT_CONFIG_PATH
        config = {}
    config = _apply_cli_overrides(args, config)
    settings = build_settings(
        config, config_root=config_path.resolve().parent
    )
    # --templates paths are relative to the working directory.
    if args.template_dirs:
        settings = PromptbindSettings(
            templates=TemplateSettings(
                search_paths=tuple(
                    Path(item).resolve() for item in args.template_dirs
                ),
                packages=settings.templates.packages,
                strict_undefined=settings.templates.strict_undefined,
            ),
            llm=settings.llm,
            logging=settings.logging,
        )
    return settings


def _apply_cli_overrides(
    args: argparse.Namespace, config: Dict[str, Any]
) -> Dict[str, Any]:
    section = config.setdefault("promptbind", {})
    templates_cfg = section.setdefault("templates", {})
    if args.template_packages:
        templates_cfg["packages"] = list(args.template_packages)
    if args.log_level:
        section.setdefault("logging", {})["level"] = args.log_level
    llm_cfg = section.setdefault("llm", {})
    if getattr(args, "llm_provider", None):
        llm_cfg["provider"] = args.llm_provider
    if getattr(args, "model", None):
        llm_cfg["model"] = args.model
    return config


def _import_contract(reference: str) -> type:
    module_name, _, attr = reference.partition(":")
    if not module_name or not attr:
        raise ValueError(
            f"Contract '{reference}' must look like package.module:ClassName"
        )
    if str(Path.cwd()) not in sys.path:
        sys.path.insert(0, str(Path.cwd()))
    target: Any = import_module(module_name)
    for part in attr.split("."):
        target = getattr(target, part)
    return target


def _parse_call_args(raw: str) -> Dict[str, Any]:
    kwargs = json.loads(raw)
    if not isinstance(kwargs, dict):
        raise ValueError("--args must be a JSON object")
    return kwargs


_REFERENCE_ERRORS = (ImportError, AttributeError, ValueError)


def _identity(text: str) -> str:
    return text


def _check(args: argparse.Namespace, settings: PromptbindSettings) -> int:
    engine = build_engine(settings.templates)
    failures = 0
    for reference in args.contracts:
        try:
            contract = _import_contract(reference)
        except _REFERENCE_ERRORS as exc:
            failures += 1
            print(f"FAIL {reference}: {exc}", file=sys.stderr)
            continue
        try:
            service = bind(
                contract, engine, _identity, namespace=args.namespace
            )
        except BindError as exc:
            failures += 1
            print(f"FAIL {reference}: {exc}", file=sys.stderr)
            continue
        print(f"OK   {reference} ({len(service.operations)} operation(s))")
    return 1 if failures else 0


def _call(args: argparse.Namespace, settings: PromptbindSettings) -> int:
    engine = build_engine(settings.templates)
    try:
        contract = _import_contract(args.contract)
        kwargs = _parse_call_args(args.args)
    except _REFERENCE_ERRORS as exc:
        print(f"FAIL {args.contract}: {exc}", file=sys.stderr)
        return 1
    if args.command == "ask":
        adapter = text_adapter(build_provider(settings.llm))
    else:
        adapter = _identity
    try:
        service = bind(contract, engine, adapter, namespace=args.namespace)
    except BindError as exc:
        print(f"FAIL {args.contract}: {exc}", file=sys.stderr)
        return 1
    if args.operation not in service.operations:
        print(
            f"{args.contract} has no operation '{args.operation}'; "
            f"available: {', '.join(service.operations)}",
            file=sys.stderr,
        )
        return 2
    try:
        result = getattr(service, args.operation)(**kwargs)
    except RenderingFailed as exc:
        print(str(exc), file=sys.stderr)
        return 3
    print(result)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    load_dotenv()
    settings = _load_settings(args)
    configure_logging(settings.logging.level, settings.logging.log_file)

    if args.command == "check":
        return _check(args, settings)
    return _call(args, settings)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
