# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/ayush_terminology

from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class SystemTag(str, Enum):
    NAMASTE = "namaste"
    ICD11_MMS = "icd11-mms"
    ICD11_TM2 = "icd11-tm2"
    UNKNOWN = "unknown"


class MatchType(str, Enum):
    EXACT = "exact"
    SYNONYM = "synonym"
    FUZZY = "fuzzy"
    SEMANTIC = "semantic"


class Equivalence(str, Enum):
    EQUIVALENT = "equivalent"
    BROADER = "broader"
    NARROWER = "narrower"
    RELATED = "related"
    WIDER = "wider"
    INEXACT = "inexact"


class ConceptProperty(BaseModel):
    """
    Key/value annotation on a concept (e.g. dosha involvement, severity).
    """

    model_config = ConfigDict(frozen=True)

    code: str
    value_string: Optional[str] = Field(default=None, validation_alias=AliasChoices("value_string", "valueString"))
    value_code: Optional[str] = Field(default=None, validation_alias=AliasChoices("value_code", "valueCode"))
    value_boolean: Optional[bool] = Field(default=None, validation_alias=AliasChoices("value_boolean", "valueBoolean"))


class Concept(BaseModel):
    """
    A single coded term within a terminology system.

    `(system, code)` identifies a concept within a corpus.
    """

    model_config = ConfigDict(frozen=True)

    code: str = Field(min_length=1)
    system: str = Field(min_length=1)
    display: str
    definition: Optional[str] = None
    synonyms: Tuple[str, ...] = ()
    category: Optional[str] = None
    properties: Tuple[ConceptProperty, ...] = ()

    @property
    def key(self) -> Tuple[str, str]:
        return (self.system, self.code)


class ScoredResult(BaseModel):
    """
    A concept matched by a search, with its score and the best reason it matched.
    """

    model_config = ConfigDict(frozen=True)

    concept: Concept
    confidence: float = Field(ge=0.0, le=1.0)
    match_type: MatchType
    system_tag: SystemTag
    match_span: Optional[Tuple[int, int]] = None
    highlighted_display: str


class MappingCandidate(BaseModel):
    """
    A proposed link from a source concept to a concept in another system.

    `method` is an open provenance tag; see `mapper.method_family` for the
    recognized values.
    """

    model_config = ConfigDict(frozen=True)

    target_code: str = Field(validation_alias=AliasChoices("target_code", "targetCode"))
    target_system: str = Field(validation_alias=AliasChoices("target_system", "targetSystem"))
    target_display: str = Field(validation_alias=AliasChoices("target_display", "targetDisplay"))
    confidence: float = Field(ge=0.0, le=1.0)
    equivalence: Equivalence
    method: str
    curated: bool = True


class Manifest(BaseModel):
    version: str
    source_date: str
    checksums: Dict[str, str]
