# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/ayush_terminology

from typing import Iterable, List, Optional

from ayush_terminology.corpus import TerminologyCorpus
from ayush_terminology.loader import CorpusLoader
from ayush_terminology.mapper import MappingEngine
from ayush_terminology.matcher import TerminologyMatcher
from ayush_terminology.schemas import Concept, MappingCandidate, ScoredResult
from ayush_terminology.utils.logger import logger


class TerminologyContext:
    """
    Global context/singleton for accessing the terminology services.

    The corpus is loaded once here; the matcher and the mapping engine only
    ever read it.
    """

    _instance: Optional["TerminologyContext"] = None

    def __init__(self, pack_path: str, seed: int = 0, lexical_fallback: bool = False):
        logger.info(f"Initializing Terminology Context with pack: {pack_path}")
        self.loader = CorpusLoader(pack_path)
        self.corpus: TerminologyCorpus = self.loader.load_corpus()

        self.matcher = TerminologyMatcher(self.corpus)
        self.mapper = MappingEngine(
            self.corpus, seed=seed, lexical_fallback=lexical_fallback, matcher=self.matcher
        )

    @classmethod
    def initialize(cls, pack_path: str, seed: int = 0, lexical_fallback: bool = False) -> None:
        cls._instance = cls(pack_path, seed=seed, lexical_fallback=lexical_fallback)

    @classmethod
    def get_instance(cls) -> "TerminologyContext":
        if cls._instance is None:
            raise RuntimeError("TerminologyContext not initialized. Call initialize() first.")
        return cls._instance


# --- Public API Functions ---


def initialize(pack_path: str, seed: int = 0, lexical_fallback: bool = False) -> None:
    """Loads the corpus pack and wires the matcher and mapping engine."""
    TerminologyContext.initialize(pack_path, seed=seed, lexical_fallback=lexical_fallback)


def terminology_search(query: str, systems: Optional[Iterable[str]] = None) -> List[ScoredResult]:
    """
    Ranks concepts against free text, optionally restricted to some systems.
    """
    ctx = TerminologyContext.get_instance()
    return ctx.matcher.search(query, systems)


def terminology_map(code: str, system: str) -> List[MappingCandidate]:
    """
    Proposes mappings for the concept identified by `(system, code)`.
    """
    ctx = TerminologyContext.get_instance()
    return ctx.mapper.map_code(code, system)


def terminology_lookup(code: str, system: Optional[str] = None) -> Optional[Concept]:
    """
    Returns the concept for `code`, within `system` when given.
    """
    ctx = TerminologyContext.get_instance()
    return ctx.corpus.lookup(code, system)
