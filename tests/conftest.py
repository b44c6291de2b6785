"""Expose the project root on sys.path for pytest runs."""

from __future__ import annotations

import sys

from pathlib import Path
from typing import Callable

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture()
def template_root(tmp_path: Path) -> Path:
    root = tmp_path / "templates"
    root.mkdir()
    return root


@pytest.fixture()
def write_template(template_root: Path) -> Callable[[str, str], Path]:
    """Write ``source`` to ``template_root/<name>`` and return the path."""

    def _write(name: str, source: str) -> Path:
        path = template_root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source, encoding="utf-8")
        return path

    return _write
