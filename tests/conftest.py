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
import shutil
from pathlib import Path
from typing import Any, Callable, Dict, Generator, List

import pytest
from pydantic import TypeAdapter

from ayush_terminology.build import CorpusBuilder
from ayush_terminology.corpus import ICD11_MMS_SYSTEM, TerminologyCorpus
from ayush_terminology.pipeline import TerminologyContext
from ayush_terminology.schemas import Concept, MappingCandidate

SAMPLE_DIR = Path(__file__).resolve().parent.parent / "data" / "sample"


# --- Fixtures ---


@pytest.fixture
def make_concept() -> Callable[..., Concept]:
    def _make(code: str, display: str, system: str = ICD11_MMS_SYSTEM, **extra: Any) -> Concept:
        return Concept(code=code, system=system, display=display, **extra)

    return _make


@pytest.fixture(autouse=True)
def reset_context() -> Generator[None, None, None]:
    yield
    TerminologyContext._instance = None


@pytest.fixture
def sample_concepts() -> List[Concept]:
    with open(SAMPLE_DIR / "concepts.json", encoding="utf-8") as f:
        return TypeAdapter(List[Concept]).validate_python(json.load(f))


@pytest.fixture
def sample_mappings() -> Dict[str, List[MappingCandidate]]:
    with open(SAMPLE_DIR / "mappings.json", encoding="utf-8") as f:
        return TypeAdapter(Dict[str, List[MappingCandidate]]).validate_python(json.load(f))


@pytest.fixture
def sample_corpus(
    sample_concepts: List[Concept], sample_mappings: Dict[str, List[MappingCandidate]]
) -> TerminologyCorpus:
    return TerminologyCorpus(sample_concepts, sample_mappings)


@pytest.fixture
def fever_corpus(sample_concepts: List[Concept]) -> TerminologyCorpus:
    """The two fever concepts: NAM-0001 (Jwara) and MG22."""
    return TerminologyCorpus([c for c in sample_concepts if c.code in ("NAM-0001", "MG22")])


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """A copy of the sample terminology source (concepts.json, mappings.json)."""
    src = tmp_path / "terminology_src"
    src.mkdir()
    shutil.copy(SAMPLE_DIR / "concepts.json", src / "concepts.json")
    shutil.copy(SAMPLE_DIR / "mappings.json", src / "mappings.json")
    return src


@pytest.fixture
def synthetic_pack(source_dir: Path, tmp_path: Path) -> Path:
    """
    Builds a corpus pack from the sample source:
    - terminology.duckdb
    - manifest.json
    """
    pack_dir = tmp_path / "pack_vtest"
    builder = CorpusBuilder(source_dir, pack_dir)
    builder.build_corpus()
    builder.generate_manifest(version="vTest_Q1")
    return pack_dir
