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
from collections import defaultdict
from pathlib import Path
from typing import Dict, List, Tuple, Union

import duckdb
from loguru import logger

from ayush_terminology.build import CORPUS_DB, MANIFEST
from ayush_terminology.corpus import TerminologyCorpus
from ayush_terminology.schemas import Concept, ConceptProperty, Manifest, MappingCandidate


class CorpusLoader:
    """
    Responsible for loading and verifying a terminology corpus pack.
    """

    def __init__(self, pack_path: Union[str, Path]):
        self.pack_path = Path(pack_path)
        if not self.pack_path.exists():
            raise FileNotFoundError(f"Corpus pack not found at: {self.pack_path}")

        self.manifest_path = self.pack_path / MANIFEST
        self.manifest: Manifest | None = None

    def load_manifest(self) -> Manifest:
        """Loads and parses the manifest.json."""
        if not self.manifest_path.exists():
            raise FileNotFoundError(f"Manifest not found at: {self.manifest_path}")

        try:
            with open(self.manifest_path, "r") as f:
                data = json.load(f)
            self.manifest = Manifest(**data)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in manifest: {e}") from e
        except Exception as e:
            raise ValueError(f"Failed to parse manifest: {e}") from e

        return self.manifest

    def _compute_sha256(self, file_path: Path) -> str:
        sha256_hash = hashlib.sha256()
        with open(file_path, "rb") as f:
            for byte_block in iter(lambda: f.read(4096), b""):
                sha256_hash.update(byte_block)
        return sha256_hash.hexdigest()

    def verify_integrity(self) -> bool:
        """
        Verifies the checksums of all artifacts listed in the manifest.
        Raises ValueError if integrity check fails.
        """
        if not self.manifest:
            self.load_manifest()

        if not self.manifest:
            raise RuntimeError("Failed to load manifest")

        logger.info(f"Verifying integrity for corpus pack: {self.manifest.version}")

        pack_root = self.pack_path.resolve()
        for filename, expected_hash in self.manifest.checksums.items():
            file_path = self.pack_path / filename

            if not file_path.resolve().is_relative_to(pack_root):
                raise ValueError(f"Security Violation: Path traversal detected in {filename}")

            if not file_path.exists():
                raise FileNotFoundError(f"Artifact not found: {filename}")

            if file_path.is_symlink():
                raise ValueError(f"Security Violation: Symlinks not allowed for artifact {filename}")

            calculated_hash = self._compute_sha256(file_path)
            if calculated_hash != expected_hash:
                logger.error(f"Checksum mismatch for {filename}. Expected {expected_hash}, got {calculated_hash}")
                raise ValueError(f"Integrity check failed for {filename}")

        logger.info("Integrity check passed.")
        return True

    def load_corpus(self) -> TerminologyCorpus:
        """
        Verifies integrity and hydrates the corpus into memory.

        The DuckDB connection is closed before returning; the corpus does not
        touch the pack again.
        """
        self.verify_integrity()

        db_path = self.pack_path / CORPUS_DB
        if not db_path.exists():
            raise FileNotFoundError(f"Artifact not found: {CORPUS_DB}")

        logger.info(f"Connecting to DuckDB at {db_path}")
        try:
            con = duckdb.connect(str(db_path), read_only=True)
        except Exception as e:
            logger.error(f"Failed to connect to DuckDB: {e}")
            raise ValueError(f"Failed to initialize DuckDB connection: {e}") from e

        try:
            concepts = self._read_concepts(con)
            mappings = self._read_mappings(con)
        except duckdb.Error as e:
            logger.error(f"Failed to read corpus tables: {e}")
            raise ValueError(f"Corpus pack is missing or has invalid tables: {e}") from e
        finally:
            con.close()

        corpus = TerminologyCorpus(concepts, mappings)
        logger.info(f"Loaded {len(corpus)} concepts and {len(mappings)} curated mapping groups")
        return corpus

    def _read_concepts(self, con: duckdb.DuckDBPyConnection) -> List[Concept]:
        synonyms: Dict[Tuple[str, str], List[str]] = defaultdict(list)
        for system, code, synonym in con.execute(
            "SELECT system, code, synonym FROM concept_synonym ORDER BY system, code, ordinal"
        ).fetchall():
            synonyms[(system, code)].append(synonym)

        properties: Dict[Tuple[str, str], List[ConceptProperty]] = defaultdict(list)
        for row in con.execute(
            """
            SELECT system, code, property_code, value_string, value_code, value_boolean
            FROM concept_property
            ORDER BY system, code, ordinal
            """
        ).fetchall():
            properties[(row[0], row[1])].append(
                ConceptProperty(code=row[2], value_string=row[3], value_code=row[4], value_boolean=row[5])
            )

        rows = con.execute(
            "SELECT system, code, display, definition, category FROM concept ORDER BY ordinal"
        ).fetchall()

        return [
            Concept(
                system=row[0],
                code=row[1],
                display=row[2],
                definition=row[3],
                category=row[4],
                synonyms=tuple(synonyms.get((row[0], row[1]), ())),
                properties=tuple(properties.get((row[0], row[1]), ())),
            )
            for row in rows
        ]

    def _read_mappings(self, con: duckdb.DuckDBPyConnection) -> Dict[str, List[MappingCandidate]]:
        table: Dict[str, List[MappingCandidate]] = {}
        for row in con.execute(
            """
            SELECT source_code, target_code, target_system, target_display, confidence, equivalence, method
            FROM concept_map
            ORDER BY source_code, ordinal
            """
        ).fetchall():
            table.setdefault(row[0], []).append(
                MappingCandidate(
                    target_code=row[1],
                    target_system=row[2],
                    target_display=row[3],
                    confidence=row[4],
                    equivalence=row[5],
                    method=row[6],
                )
            )
        return table
