# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/ayush_terminology

import json
from pathlib import Path
from unittest.mock import patch

from typer.testing import CliRunner

from ayush_terminology import __version__
from ayush_terminology.build import CORPUS_DB, MANIFEST
from ayush_terminology.corpus import NAMASTE_SYSTEM
from ayush_terminology.main import app, main

runner = CliRunner()


def test_main_build_success(source_dir: Path, tmp_path: Path) -> None:
    output = tmp_path / "output"

    result = runner.invoke(
        app, ["build", "--source", str(source_dir), "--output", str(output), "--version", "v2025.1"]
    )

    assert result.exit_code == 0
    assert (output / CORPUS_DB).exists()
    with open(output / MANIFEST) as f:
        assert json.load(f)["version"] == "v2025.1"


def test_main_build_calls_builder(tmp_path: Path) -> None:
    source = tmp_path / "source"
    output = tmp_path / "output"
    source.mkdir()

    with patch("ayush_terminology.main.CorpusBuilder") as MockBuilder:
        mock_builder_instance = MockBuilder.return_value

        result = runner.invoke(app, ["build", "--source", str(source), "--output", str(output)])

        assert result.exit_code == 0
        MockBuilder.assert_called_once_with(source, output)
        mock_builder_instance.build_corpus.assert_called_once()
        mock_builder_instance.generate_manifest.assert_called_once_with(version="v1.0")


def test_main_build_failure(tmp_path: Path) -> None:
    source = tmp_path / "source"
    output = tmp_path / "output"
    source.mkdir()

    # concepts.json and mappings.json are missing
    result = runner.invoke(app, ["build", "--source", str(source), "--output", str(output)])

    assert result.exit_code == 1
    assert not (output / CORPUS_DB).exists()


def test_main_search(synthetic_pack: Path) -> None:
    result = runner.invoke(app, ["search", "jwara", "--pack", str(synthetic_pack)])

    assert result.exit_code == 0
    assert '"code": "NAM-0001"' in result.stdout
    assert '"match_type": "exact"' in result.stdout


def test_main_search_with_system_filter(synthetic_pack: Path) -> None:
    result = runner.invoke(app, ["search", "fever", "--pack", str(synthetic_pack), "--system", "icd11-mms"])

    assert result.exit_code == 0
    assert '"system_tag": "icd11-mms"' in result.stdout
    assert '"system_tag": "namaste"' not in result.stdout


def test_main_search_failure(synthetic_pack: Path) -> None:
    with patch("ayush_terminology.main.terminology_search", side_effect=RuntimeError("boom")):
        result = runner.invoke(app, ["search", "fever", "--pack", str(synthetic_pack)])

    assert result.exit_code == 1


def test_main_map(synthetic_pack: Path) -> None:
    result = runner.invoke(app, ["map", "NAM-0001", "--pack", str(synthetic_pack), "--system", NAMASTE_SYSTEM])

    assert result.exit_code == 0
    assert result.stdout.index('"MG22"') < result.stdout.index('"TM2:A01.1"')
    assert result.stdout.count('"ai-semantic"') == 2


def test_main_map_no_mapping(synthetic_pack: Path) -> None:
    result = runner.invoke(app, ["map", "NOPE", "--pack", str(synthetic_pack), "--system", NAMASTE_SYSTEM])

    assert result.exit_code == 0
    assert "No mapping available for NOPE" in result.stdout


def test_main_map_passes_options(synthetic_pack: Path) -> None:
    with patch("ayush_terminology.main.initialize") as mock_init:
        with patch("ayush_terminology.main.terminology_map", return_value=[]):
            result = runner.invoke(
                app,
                ["map", "NAM-0001", "--pack", str(synthetic_pack), "--system", NAMASTE_SYSTEM]
                + ["--lexical", "--seed", "7"],
            )

    assert result.exit_code == 0
    mock_init.assert_called_once_with(str(synthetic_pack), seed=7, lexical_fallback=True)


def test_main_map_failure(tmp_path: Path) -> None:
    # Pack directory exists but holds no manifest
    result = runner.invoke(app, ["map", "NAM-0001", "--pack", str(tmp_path), "--system", NAMASTE_SYSTEM])

    assert result.exit_code == 1


def test_main_version() -> None:
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert f"ayush-terminology v{__version__}" in result.stdout


def test_main_entry_point() -> None:
    with patch("ayush_terminology.main.app") as mock_app:
        main()
        mock_app.assert_called_once()
