"""Compose a poem through a templated contract bound to an LLM."""

from __future__ import annotations

import argparse
import logging

from pathlib import Path

from dotenv import load_dotenv

from examples.poem_service import (
    Poem,
    PoemInstructions,
    StanzaInstructions,
    TemplatedPoemService,
)
from promptbind import TemplatedServiceFactory, json_adapter
from promptbind.configuration import (
    build_engine,
    build_provider,
    load_settings,
)

DEFAULT_CONFIG = Path("configs/poem_service.yaml")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Compose a poem via a prompt-template contract"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help="Configuration file to use",
    )
    args = parser.parse_args()

    load_dotenv()
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=logging.INFO, format="%(levelname)s %(name)s: %(message)s"
        )

    settings = load_settings(args.config)
    factory = TemplatedServiceFactory(
        json_adapter(build_provider(settings.llm), Poem),
        build_engine(settings.templates),
    )
    service = factory.create(TemplatedPoemService)

    poem = service.compose_poem(
        PoemInstructions(
            theme="Templates keep prompts honest",
            style="Simple, contemporary language.",
            rhyme_scheme="ABAB",
            stanza_instructions=[
                StanzaInstructions("Prompts living in versioned files", True),
                StanzaInstructions("Mismatches caught before launch"),
            ],
        )
    )
    print(poem)


if __name__ == "__main__":
    main()
