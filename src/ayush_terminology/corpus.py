# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/ayush_terminology

from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ayush_terminology.schemas import Concept, MappingCandidate, SystemTag

NAMASTE_SYSTEM = "https://terminology.ayush.gov.in/namaste"
ICD11_MMS_SYSTEM = "http://id.who.int/icd/release/11/2022-02/mms"
ICD11_TM2_SYSTEM = "http://id.who.int/icd/release/11/2022-02/tm2"


def classify_system(system: str) -> SystemTag:
    """
    Classifies a coding-system URI into exactly one SystemTag by substring.
    "namaste" is checked first, then "tm2", then "mms".
    """
    uri = system.lower()
    if "namaste" in uri:
        return SystemTag.NAMASTE
    if "tm2" in uri:
        return SystemTag.ICD11_TM2
    if "mms" in uri:
        return SystemTag.ICD11_MMS
    return SystemTag.UNKNOWN


class TerminologyCorpus:
    """
    Read-only handle over the loaded concepts and the curated mapping table.

    Built once by the loader and shared by the matcher and the mapping engine.
    Nothing on this object is mutated after construction.
    """

    def __init__(
        self,
        concepts: Iterable[Concept],
        mappings: Optional[Mapping[str, Sequence[MappingCandidate]]] = None,
    ):
        self._concepts: Tuple[Concept, ...] = tuple(concepts)
        self._tags: Tuple[SystemTag, ...] = tuple(classify_system(c.system) for c in self._concepts)

        index: Dict[Tuple[str, str], Concept] = {}
        for concept in self._concepts:
            if concept.key in index:
                raise ValueError(f"Duplicate concept {concept.code} in system {concept.system}")
            index[concept.key] = concept
        self._index = MappingProxyType(index)

        table = {code: tuple(entries) for code, entries in (mappings or {}).items()}
        self._mappings: Mapping[str, Tuple[MappingCandidate, ...]] = MappingProxyType(table)

    @property
    def concepts(self) -> Tuple[Concept, ...]:
        return self._concepts

    @property
    def mappings(self) -> Mapping[str, Tuple[MappingCandidate, ...]]:
        return self._mappings

    def __len__(self) -> int:
        return len(self._concepts)

    def tagged(self) -> Iterable[Tuple[Concept, SystemTag]]:
        """Yields each concept with its system tag, in corpus order."""
        return zip(self._concepts, self._tags)

    def get(self, code: str, system: str) -> Optional[Concept]:
        return self._index.get((system, code))

    def find_by_code(self, code: str) -> List[Concept]:
        """Returns every concept carrying `code`, whatever its system."""
        return [c for c in self._concepts if c.code == code]

    def curated_mappings(self, source_code: str) -> Tuple[MappingCandidate, ...]:
        return self._mappings.get(source_code, ())

    def lookup(self, code: str, system: Optional[str] = None) -> Optional[Concept]:
        """Returns the concept for `code`, within `system` when given, else the first in corpus order."""
        if system:
            return self.get(code, system)
        matches = self.find_by_code(code)
        return matches[0] if matches else None
