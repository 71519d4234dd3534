# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/ayush_terminology

import sys
from pathlib import Path
from typing import Annotated, List, Optional

import typer
from loguru import logger

from ayush_terminology import __version__
from ayush_terminology.build import CorpusBuilder
from ayush_terminology.pipeline import initialize, terminology_map, terminology_search

app = typer.Typer(
    name="ayush-terminology",
    help="CLI for ayush-terminology: NAMASTE and ICD-11 search and concept mapping.",
    add_completion=False,
)


@app.command()
def build(
    source: Annotated[
        Path, typer.Option("--source", "-s", help="Directory with concepts.json and mappings.json", exists=True)
    ],
    output: Annotated[Path, typer.Option("--output", "-o", help="Path to output pack directory")],
    pack_version: Annotated[str, typer.Option("--version", "-v", help="Version recorded in the manifest")] = "v1.0",
) -> None:
    """
    Build a corpus pack from a JSON terminology source.
    """
    logger.info(f"Starting corpus build from {source} to {output}")

    try:
        builder = CorpusBuilder(source, output)
        builder.build_corpus()
        builder.generate_manifest(version=pack_version)
        logger.info("Corpus Build Completed Successfully.")

    except Exception:
        logger.exception("Corpus Build Failed")
        sys.exit(1)


@app.command()
def search(
    text: Annotated[str, typer.Argument(help="Free text to search for")],
    pack: Annotated[Path, typer.Option("--pack", "-p", help="Path to corpus pack directory", exists=True)],
    system: Annotated[
        Optional[List[str]], typer.Option("--system", "-y", help="System filter (namaste, icd11, icd11-mms, icd11-tm2)")
    ] = None,
) -> None:
    """
    Search concepts across coding systems.
    """
    try:
        initialize(str(pack))
        results = terminology_search(text, systems=system)
        for result in results:
            typer.echo(result.model_dump_json(indent=2))
    except Exception:
        logger.exception("Search Failed")
        sys.exit(1)


@app.command(name="map")
def map_code(
    code: Annotated[str, typer.Argument(help="Source concept code, e.g. NAM-0001")],
    pack: Annotated[Path, typer.Option("--pack", "-p", help="Path to corpus pack directory", exists=True)],
    system: Annotated[str, typer.Option("--system", "-y", help="Source concept system URI")],
    lexical: Annotated[bool, typer.Option("--lexical", help="Add lexical candidates when nothing is curated")] = False,
    seed: Annotated[int, typer.Option("--seed", help="Seed for generated suggestions")] = 0,
) -> None:
    """
    Propose mappings for a source concept.
    """
    try:
        initialize(str(pack), seed=seed, lexical_fallback=lexical)
        candidates = terminology_map(code, system)
        if not candidates:
            typer.echo(f"No mapping available for {code}")
        for candidate in candidates:
            typer.echo(candidate.model_dump_json(indent=2))
    except Exception:
        logger.exception("Mapping Failed")
        sys.exit(1)


@app.command()
def version() -> None:
    """Print the version of ayush-terminology."""
    typer.echo(f"ayush-terminology v{__version__}")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()  # pragma: no cover
