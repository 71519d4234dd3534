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
import re
from enum import Enum
from typing import List, Optional, Set

from loguru import logger
from pydantic import BaseModel, ConfigDict

from ayush_terminology.corpus import ICD11_MMS_SYSTEM, TerminologyCorpus, classify_system
from ayush_terminology.matcher import TerminologyMatcher
from ayush_terminology.schemas import Concept, Equivalence, MappingCandidate, SystemTag

GENERATED_METHOD = "ai-semantic"
GENERATED_CODE_PREFIX = "AI-GEN-"
GENERATED_MIN_CONFIDENCE = 0.65
GENERATED_CONFIDENCE_RANGE = 0.2
LEXICAL_METHOD = "lexical"
LEXICAL_WEIGHT = 0.8

_GLOSS = re.compile(r"\(([^)]+)\)")


class MethodFamily(str, Enum):
    LEXICAL = "lexical"
    SYNONYM = "synonym"
    FUZZY = "fuzzy"
    SEMANTIC = "semantic"
    OTHER = "other"


_FAMILY_TOKENS = {
    "lexical": MethodFamily.LEXICAL,
    "synonym": MethodFamily.SYNONYM,
    "fuzzy": MethodFamily.FUZZY,
    "semantic": MethodFamily.SEMANTIC,
    "ai": MethodFamily.SEMANTIC,
}


def method_family(method: str) -> MethodFamily:
    """
    Classifies an open method tag by its first recognized '-' separated token.
    "lexical-semantic" -> LEXICAL, "ai-semantic" -> SEMANTIC, "pattern-matching" -> OTHER.
    """
    for token in method.lower().split("-"):
        family = _FAMILY_TOKENS.get(token)
        if family is not None:
            return family
    return MethodFamily.OTHER


def confidence_level(confidence: float) -> str:
    if confidence >= 0.9:
        return "Very High"
    if confidence >= 0.8:
        return "High"
    if confidence >= 0.7:
        return "Medium"
    if confidence >= 0.6:
        return "Low"
    return "Very Low"


class ReviewStatus(str, Enum):
    PROPOSED = "proposed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class MappingReview(BaseModel):
    """
    Review state of one proposed mapping: proposed -> accepted | rejected.

    Both outcomes are terminal. Persisting reviews is up to the caller.
    """

    model_config = ConfigDict(frozen=True)

    source_code: str
    source_system: str
    candidate: MappingCandidate
    status: ReviewStatus = ReviewStatus.PROPOSED

    def accept(self) -> "MappingReview":
        return self._transition(ReviewStatus.ACCEPTED)

    def reject(self) -> "MappingReview":
        return self._transition(ReviewStatus.REJECTED)

    def _transition(self, status: ReviewStatus) -> "MappingReview":
        if self.status is not ReviewStatus.PROPOSED:
            raise ValueError(
                f"Mapping {self.source_code} -> {self.candidate.target_code} is already {self.status.value}"
            )
        return self.model_copy(update={"status": status})


class MappingEngine:
    """
    Proposes cross-system mappings for a source concept.

    Curated table entries come first and are never re-ranked. Synonym-driven
    suggestions follow, scored from a SHA-256 digest so the same source and
    seed always yield the same candidates.
    """

    def __init__(
        self,
        corpus: TerminologyCorpus,
        seed: int = 0,
        max_generated: int = 2,
        lexical_fallback: bool = False,
        matcher: Optional[TerminologyMatcher] = None,
    ):
        self.corpus = corpus
        self.seed = seed
        self.max_generated = max_generated
        self.lexical_fallback = lexical_fallback
        self.matcher = matcher or TerminologyMatcher(corpus)

    def map_concept(self, source: Concept) -> List[MappingCandidate]:
        """
        Returns curated candidates, then lexical fallback hits (if enabled and
        nothing is curated), then generated suggestions.
        """
        curated = list(self.corpus.curated_mappings(source.code))

        lexical: List[MappingCandidate] = []
        if self.lexical_fallback and not curated:
            lexical = self._lexical_candidates(source)

        generated = self._generated_candidates(source)

        logger.debug(
            f"Mapped {source.code}: {len(curated)} curated, {len(lexical)} lexical, {len(generated)} generated"
        )
        return curated + lexical + generated

    def map_code(self, code: str, system: str) -> List[MappingCandidate]:
        """Resolves `(system, code)` in the corpus and maps it. Unknown codes yield []."""
        source = self.corpus.get(code, system)
        if source is None:
            logger.debug(f"No concept {code} in system {system}; nothing to map")
            return []
        return self.map_concept(source)

    def _generated_candidates(self, source: Concept) -> List[MappingCandidate]:
        candidates: List[MappingCandidate] = []
        used: Set[str] = set()
        for index, synonym in enumerate(source.synonyms[: self.max_generated]):
            digest = hashlib.sha256(
                f"{self.seed}:{source.system}:{source.code}:{index}:{synonym}".encode("utf-8")
            ).hexdigest()

            fraction = int(digest[:8], 16) / 2**32
            confidence = GENERATED_MIN_CONFIDENCE + fraction * GENERATED_CONFIDENCE_RANGE

            width = 6
            code = GENERATED_CODE_PREFIX + digest[8 : 8 + width].upper()
            while code in used:
                width += 2
                code = GENERATED_CODE_PREFIX + digest[8 : 8 + width].upper()
            used.add(code)

            candidates.append(
                MappingCandidate(
                    target_code=code,
                    target_system=ICD11_MMS_SYSTEM,
                    target_display=f"{synonym} (suggested)",
                    confidence=confidence,
                    equivalence=Equivalence.RELATED,
                    method=GENERATED_METHOD,
                    curated=False,
                )
            )
        return candidates

    def _lexical_candidates(self, source: Concept) -> List[MappingCandidate]:
        gloss = _GLOSS.search(source.display)
        query = gloss.group(1) if gloss else source.display

        source_tag = classify_system(source.system)
        targets = [tag.value for tag in SystemTag if tag is not source_tag]

        candidates = []
        for hit in self.matcher.search(query, targets):
            candidates.append(
                MappingCandidate(
                    target_code=hit.concept.code,
                    target_system=hit.concept.system,
                    target_display=hit.concept.display,
                    confidence=hit.confidence * LEXICAL_WEIGHT,
                    equivalence=Equivalence.INEXACT,
                    method=LEXICAL_METHOD,
                    curated=False,
                )
            )
        return candidates
