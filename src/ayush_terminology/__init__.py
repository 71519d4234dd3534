# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/ayush_terminology

"""
ayush-terminology
"""

__version__ = "0.1.0"
__author__ = "Gowtham A Rao"
__email__ = "gowtham.rao@coreason.ai"

from .build import CorpusBuilder
from .corpus import TerminologyCorpus, classify_system
from .loader import CorpusLoader
from .mapper import MappingEngine, MappingReview, ReviewStatus, confidence_level, method_family
from .matcher import TerminologyMatcher, fuzzy_similarity, levenshtein_distance
from .pipeline import (
    initialize,
    terminology_lookup,
    terminology_map,
    terminology_search,
)

__all__ = [
    "CorpusBuilder",
    "CorpusLoader",
    "TerminologyCorpus",
    "TerminologyMatcher",
    "MappingEngine",
    "MappingReview",
    "ReviewStatus",
    "classify_system",
    "confidence_level",
    "method_family",
    "fuzzy_similarity",
    "levenshtein_distance",
    "initialize",
    "terminology_search",
    "terminology_map",
    "terminology_lookup",
]
