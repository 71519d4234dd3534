# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/ayush_terminology

import hashlib
import json
from pathlib import Path
from typing import Any, Dict, List, Set, Tuple, Union

import duckdb
from loguru import logger
from pydantic import TypeAdapter, ValidationError

from ayush_terminology.schemas import Concept, MappingCandidate

CORPUS_DB = "terminology.duckdb"
MANIFEST = "manifest.json"

_CONCEPTS = TypeAdapter(List[Concept])
_MAPPINGS = TypeAdapter(Dict[str, List[MappingCandidate]])


class CorpusBuilder:
    """
    Offline Builder utility to compile a JSON terminology source into a DuckDB corpus pack.
    """

    REQUIRED_FILES = ["concepts.json", "mappings.json"]

    def __init__(self, source_dir: Union[str, Path], output_dir: Union[str, Path]):
        """
        Initialize the CorpusBuilder.

        Args:
            source_dir: Directory containing concepts.json and mappings.json.
            output_dir: Directory where the pack artifacts will be saved.
        """
        self.source_dir = Path(source_dir)
        self.output_dir = Path(output_dir)

    def _verify_source_files(self) -> None:
        """Verify that all required JSON files exist in the source directory."""
        if not self.source_dir.exists():
            raise FileNotFoundError(f"Source directory not found: {self.source_dir}")

        for filename in self.REQUIRED_FILES:
            if not (self.source_dir / filename).exists():
                raise FileNotFoundError(f"Required file not found: {filename}")

    def _read_json(self, filename: str) -> Any:
        try:
            with open(self.source_dir / filename, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {filename}: {e}") from e

    def read_source(self) -> Tuple[List[Concept], Dict[str, List[MappingCandidate]]]:
        """
        Reads and validates the source corpus. Any malformed record fails the whole read.
        """
        self._verify_source_files()

        try:
            concepts = _CONCEPTS.validate_python(self._read_json("concepts.json"))
            mappings = _MAPPINGS.validate_python(self._read_json("mappings.json"))
        except ValidationError as e:
            raise ValueError(f"Invalid terminology source: {e}") from e

        seen: Set[Tuple[str, str]] = set()
        for concept in concepts:
            if concept.key in seen:
                raise ValueError(f"Duplicate concept {concept.code} in system {concept.system}")
            seen.add(concept.key)

        logger.info(f"Read {len(concepts)} concepts and {len(mappings)} curated mapping groups")
        return concepts, mappings

    def build_corpus(self) -> Path:
        """
        Builds the terminology.duckdb artifact from the source JSON.

        Returns:
            The path to the generated terminology.duckdb file.
        """
        concepts, mappings = self.read_source()

        if not self.output_dir.exists():
            self.output_dir.mkdir(parents=True, exist_ok=True)

        db_path = self.output_dir / CORPUS_DB

        # Remove existing file if it exists to ensure a clean build
        db_path.unlink(missing_ok=True)

        logger.info(f"Building corpus artifact at {db_path}")

        con = None
        try:
            con = duckdb.connect(str(db_path))
            self._create_tables(con)
            self._load_concepts(con, concepts)
            self._load_mappings(con, mappings)
            self._create_indexes(con)

            con.close()
            con = None
            logger.info("Corpus build complete.")
            return db_path

        except Exception as e:
            logger.error(f"Failed to build corpus artifact: {e}")
            if con:
                con.close()
            db_path.unlink(missing_ok=True)  # Cleanup partial build
            raise RuntimeError(f"Build failed: {e}") from e

    def _create_tables(self, con: duckdb.DuckDBPyConnection) -> None:
        con.execute("""
            CREATE TABLE concept (
                ordinal INTEGER,
                system VARCHAR,
                code VARCHAR,
                display VARCHAR,
                definition VARCHAR,
                category VARCHAR
            )
        """)
        con.execute("""
            CREATE TABLE concept_synonym (
                system VARCHAR,
                code VARCHAR,
                ordinal INTEGER,
                synonym VARCHAR
            )
        """)
        con.execute("""
            CREATE TABLE concept_property (
                system VARCHAR,
                code VARCHAR,
                ordinal INTEGER,
                property_code VARCHAR,
                value_string VARCHAR,
                value_code VARCHAR,
                value_boolean BOOLEAN
            )
        """)
        con.execute("""
            CREATE TABLE concept_map (
                source_code VARCHAR,
                ordinal INTEGER,
                target_code VARCHAR,
                target_system VARCHAR,
                target_display VARCHAR,
                confidence DOUBLE,
                equivalence VARCHAR,
                method VARCHAR
            )
        """)

    def _load_concepts(self, con: duckdb.DuckDBPyConnection, concepts: List[Concept]) -> None:
        logger.info(f"Loading {len(concepts)} concepts")
        rows = [(i, c.system, c.code, c.display, c.definition, c.category) for i, c in enumerate(concepts)]
        synonyms = [(c.system, c.code, i, s) for c in concepts for i, s in enumerate(c.synonyms)]
        properties = [
            (c.system, c.code, i, p.code, p.value_string, p.value_code, p.value_boolean)
            for c in concepts
            for i, p in enumerate(c.properties)
        ]
        if rows:
            con.executemany("INSERT INTO concept VALUES (?, ?, ?, ?, ?, ?)", rows)
        if synonyms:
            con.executemany("INSERT INTO concept_synonym VALUES (?, ?, ?, ?)", synonyms)
        if properties:
            con.executemany("INSERT INTO concept_property VALUES (?, ?, ?, ?, ?, ?, ?)", properties)

    def _load_mappings(self, con: duckdb.DuckDBPyConnection, mappings: Dict[str, List[MappingCandidate]]) -> None:
        rows = [
            (source, i, m.target_code, m.target_system, m.target_display, m.confidence, m.equivalence.value, m.method)
            for source, entries in mappings.items()
            for i, m in enumerate(entries)
        ]
        logger.info(f"Loading {len(rows)} curated mappings")
        if rows:
            con.executemany("INSERT INTO concept_map VALUES (?, ?, ?, ?, ?, ?, ?, ?)", rows)

    def _create_indexes(self, con: duckdb.DuckDBPyConnection) -> None:
        """Creates indexes for performance optimization."""
        logger.info("Creating indexes...")
        con.execute("CREATE INDEX idx_concept_key ON concept(system, code)")
        con.execute("CREATE INDEX idx_synonym_key ON concept_synonym(system, code)")
        con.execute("CREATE INDEX idx_property_key ON concept_property(system, code)")
        con.execute("CREATE INDEX idx_map_source ON concept_map(source_code)")
        logger.info("Indexes created.")

    def generate_manifest(self, version: str = "v1.0", source_date: str = "2025-01-01") -> Path:
        """
        Generates the manifest.json file by computing checksums.
        """
        manifest_path = self.output_dir / MANIFEST

        checksums: Dict[str, str] = {}
        db_path = self.output_dir / CORPUS_DB
        if db_path.exists():
            checksums[CORPUS_DB] = self._compute_file_hash(db_path)

        manifest_data = {"version": version, "source_date": source_date, "checksums": checksums}

        with open(manifest_path, "w") as f:
            json.dump(manifest_data, f, indent=2)

        return manifest_path

    def _compute_file_hash(self, p: Path) -> str:
        sha256 = hashlib.sha256()
        with open(p, "rb") as f:
            for b in iter(lambda: f.read(4096), b""):
                sha256.update(b)
        return sha256.hexdigest()
