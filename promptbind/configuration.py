"""Typed helpers for parsing promptbind configuration dictionaries."""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple

import yaml

from promptbind.llm.providers import LLMProvider, load_provider
from promptbind.templates.jinja_engine import JinjaTemplateEngine

CONFIG_SECTION = "promptbind"


def _ensure_path(value: str | Path, *, config_root: Path) -> Path:
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = (config_root / path).resolve()
    return path


def _as_tuple(value: Optional[str | Iterable[str]]) -> Tuple[str, ...]:
    if not value:
        return tuple()
    if isinstance(value, (str, Path)):
        return (str(value),)
    return tuple(str(item) for item in value)


@dataclass(frozen=True)
class TemplateSettings:
    search_paths: Tuple[Path, ...] = field(default_factory=tuple)
    packages: Tuple[str, ...] = field(default_factory=tuple)
    strict_undefined: bool = True


@dataclass(frozen=True)
class LLMSettings:
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def provider(self) -> Optional[str]:
        return self.raw.get("provider")

    @property
    def model(self) -> Optional[str]:
        return self.raw.get("model")


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"
    log_file: Optional[Path] = None


@dataclass(frozen=True)
class PromptbindSettings:
    templates: TemplateSettings = field(default_factory=TemplateSettings)
    llm: LLMSettings = field(default_factory=LLMSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


def build_settings(
    config: Dict[str, Any], *, config_root: Path
) -> PromptbindSettings:
    """Parse the ``promptbind`` section of ``config``.

    Relative paths are resolved against ``config_root`` (normally the
    directory holding the config file).
    """

    section = config.get(CONFIG_SECTION) or {}

    templates_cfg = section.get("templates") or {}
    templates = TemplateSettings(
        search_paths=tuple(
            _ensure_path(item, config_root=config_root)
            for item in _as_tuple(templates_cfg.get("search_paths"))
        ),
        packages=_as_tuple(templates_cfg.get("packages")),
        strict_undefined=bool(templates_cfg.get("strict_undefined", True)),
    )

    logging_cfg = section.get("logging") or {}
    log_file_value = logging_cfg.get("log_file")
    logging_settings = LoggingSettings(
        level=str(logging_cfg.get("level", "INFO")).upper(),
        log_file=(
            _ensure_path(log_file_value, config_root=config_root)
            if log_file_value
            else None
        ),
    )

    return PromptbindSettings(
        templates=templates,
        llm=LLMSettings(raw=deepcopy(dict(section.get("llm") or {}))),
        logging=logging_settings,
    )


def load_config(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        raise FileNotFoundError(f"Config file '{config_path}' not found.")
    return yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}


def load_settings(config_path: Path) -> PromptbindSettings:
    """Read a YAML config file and parse it into settings."""

    return build_settings(
        load_config(config_path),
        config_root=config_path.resolve().parent,
    )


def build_engine(settings: TemplateSettings) -> JinjaTemplateEngine:
    """Create the Jinja engine described by ``settings``."""

    search_paths = settings.search_paths
    if not search_paths and not settings.packages:
        search_paths = (Path.cwd(),)
    return JinjaTemplateEngine(
        search_paths,
        packages=settings.packages,
        strict_undefined=settings.strict_undefined,
    )


def build_provider(settings: LLMSettings) -> LLMProvider:
    return load_provider(settings.raw)


__all__ = [
    "CONFIG_SECTION",
    "LLMSettings",
    "LoggingSettings",
    "PromptbindSettings",
    "TemplateSettings",
    "build_engine",
    "build_provider",
    "build_settings",
    "load_config",
    "load_settings",
]
