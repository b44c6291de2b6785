from __future__ import annotations

import json

from pathlib import Path

from promptbind.cli import main

ROOT = Path(__file__).resolve().parents[1]
POEM_CONTRACT = "examples.poem_service:TemplatedPoemService"

POEM_ARGS = {
    "instructions": {
        "theme": "Autumn rain",
        "style": "Haiku-like",
        "rhyme_scheme": "AABB",
        "stanza_instructions": [
            {"stanza_idea": "Falling leaves", "ok_to_deviate": True},
        ],
    }
}


def test_cli_check_reports_bound_contracts(capsys) -> None:
    exit_code = main(["check", POEM_CONTRACT, "--templates", str(ROOT)])

    assert exit_code == 0
    assert f"OK   {POEM_CONTRACT} (1 operation(s))" in capsys.readouterr().out


def test_cli_check_reports_mismatches(tmp_path: Path, monkeypatch, capsys):
    (tmp_path / "bad.j2").write_text("{{ expected }}", encoding="utf-8")
    (tmp_path / "cli_bad_contracts.py").write_text(
        "from typing import Annotated\n"
        "from promptbind import PromptParam, prompt_template\n\n\n"
        "class BadService:\n"
        "    @prompt_template('bad.j2')\n"
        "    def run(self, value: Annotated[str, PromptParam('given')]):\n"
        "        ...\n",
        encoding="utf-8",
    )
    monkeypatch.syspath_prepend(str(tmp_path))

    exit_code = main(
        ["check", "cli_bad_contracts:BadService", "--templates", str(tmp_path)]
    )

    assert exit_code == 1
    err = capsys.readouterr().err
    assert "FAIL cli_bad_contracts:BadService" in err
    assert "Missing required parameters: expected" in err
    assert "Extra parameters provided: given" in err


def test_cli_render_prints_prompt(capsys) -> None:
    exit_code = main(
        [
            "render",
            POEM_CONTRACT,
            "compose_poem",
            "--args",
            json.dumps(POEM_ARGS),
            "--templates",
            str(ROOT),
        ]
    )

    assert exit_code == 0
    out = capsys.readouterr().out
    assert 'theme "Autumn rain"' in out
    assert "Rhyme scheme: AABB" in out
    assert "1. Falling leaves (you may deviate from this idea)" in out


def test_cli_ask_uses_configured_provider(capsys) -> None:
    exit_code = main(
        [
            "ask",
            POEM_CONTRACT,
            "compose_poem",
            "--args",
            json.dumps(POEM_ARGS),
            "--templates",
            str(ROOT),
            "--llm-provider",
            "echo",
        ]
    )

    assert exit_code == 0
    assert "Autumn rain" in capsys.readouterr().out


def test_cli_render_unknown_operation(capsys) -> None:
    exit_code = main(
        ["render", POEM_CONTRACT, "write_sonnet", "--templates", str(ROOT)]
    )

    assert exit_code == 2
    assert "compose_poem" in capsys.readouterr().err


def test_cli_render_reports_rendering_failures(capsys) -> None:
    exit_code = main(
        [
            "render",
            POEM_CONTRACT,
            "compose_poem",
            "--args",
            json.dumps({"instructions": {"theme": "only a theme"}}),
            "--templates",
            str(ROOT),
        ]
    )

    assert exit_code == 3
    assert "compose_poem_prompt.j2" in capsys.readouterr().err


def test_cli_check_reports_unimportable_contracts(capsys) -> None:
    exit_code = main(
        [
            "check",
            "promptbind_missing_module:Service",
            "examples.poem_service:NoSuchService",
            "examples.poem_service",
            POEM_CONTRACT,
            "--templates",
            str(ROOT),
        ]
    )

    assert exit_code == 1
    captured = capsys.readouterr()
    assert "FAIL promptbind_missing_module:Service" in captured.err
    assert "FAIL examples.poem_service:NoSuchService" in captured.err
    assert "FAIL examples.poem_service: Contract" in captured.err
    assert f"OK   {POEM_CONTRACT}" in captured.out


def test_cli_render_reports_bad_arguments(capsys) -> None:
    exit_code = main(
        [
            "render",
            POEM_CONTRACT,
            "compose_poem",
            "--args",
            "{not json",
            "--templates",
            str(ROOT),
        ]
    )

    assert exit_code == 1
    assert f"FAIL {POEM_CONTRACT}" in capsys.readouterr().err
