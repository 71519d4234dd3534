# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/ayush_terminology

import re
from functools import cmp_to_key
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple, Union

from loguru import logger

from ayush_terminology.corpus import TerminologyCorpus
from ayush_terminology.schemas import Concept, MatchType, ScoredResult, SystemTag

MAX_RESULTS = 8
SCORE_THRESHOLD = 0.5
TIE_WINDOW = 0.05

EXACT_SCORE = 1.0
SYNONYM_SCORE = 0.9
DEFINITION_SCORE = 0.85
PROPERTY_SCORE = 0.7
FUZZY_THRESHOLD = 0.6
FUZZY_WEIGHT = 0.8
MIN_TERM_LENGTH = 2

ALL_SYSTEMS = "all"
ICD11_ALIAS = "icd11"

_PRIORITY = {
    MatchType.SEMANTIC: 0,
    MatchType.FUZZY: 1,
    MatchType.SYNONYM: 2,
    MatchType.EXACT: 3,
}

SystemFilter = Optional[Union[str, Iterable[object]]]


def levenshtein_distance(a: str, b: str) -> int:
    """Unit-cost edit distance (insert, delete, substitute)."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                current.append(previous[j - 1])
            else:
                current.append(min(previous[j - 1], previous[j], current[j - 1]) + 1)
        previous = current
    return previous[-1]


def fuzzy_similarity(a: str, b: str) -> float:
    """
    Similarity of `a` against `b` in [0, 1].

    Asymmetric: containment is only checked as `a in b`. Otherwise the
    normalized Levenshtein similarity over the raw strings is returned, so
    callers must lowercase both sides themselves.
    """
    if a == b:
        return 1.0
    if a in b:
        return 0.9
    longest = max(len(a), len(b))
    return (longest - levenshtein_distance(a, b)) / longest


def highlight(display: str, query: str) -> str:
    """Wraps every case-insensitive occurrence of `query` in `<mark>` tags."""
    if not query:
        return display
    return re.sub(f"({re.escape(query)})", r"<mark>\1</mark>", display, flags=re.IGNORECASE)


def summarize_systems(results: Iterable[ScoredResult]) -> Dict[SystemTag, int]:
    """Counts results per system tag."""
    counts: Dict[SystemTag, int] = {}
    for result in results:
        counts[result.system_tag] = counts.get(result.system_tag, 0) + 1
    return counts


def _upgrade(current: MatchType, candidate: MatchType) -> MatchType:
    return candidate if _PRIORITY[candidate] > _PRIORITY[current] else current


def _resolve_filter(system_filter: SystemFilter) -> Optional[FrozenSet[SystemTag]]:
    """
    Turns the caller's filter into a set of tags, or None for "no filtering".
    """
    if not system_filter:
        return None
    if isinstance(system_filter, str):
        system_filter = [system_filter]
    elif not isinstance(system_filter, Iterable):
        logger.debug(f"Ignoring malformed system filter {system_filter!r}")
        return None

    values = [v.strip().lower() for v in system_filter if isinstance(v, str)]
    if not values or ALL_SYSTEMS in values:
        return None

    tags = set()
    for value in values:
        if value == ICD11_ALIAS:
            tags.update((SystemTag.ICD11_MMS, SystemTag.ICD11_TM2))
            continue
        try:
            tags.add(SystemTag(value))
        except ValueError:
            logger.debug(f"Ignoring unrecognized system filter '{value}'")
    return frozenset(tags)


def _compare(a: Tuple[int, ScoredResult], b: Tuple[int, ScoredResult]) -> int:
    # Exact first, then confidence outside the tie window, then NAMASTE, then corpus order.
    pos_a, res_a = a
    pos_b, res_b = b

    exact_a = res_a.match_type is MatchType.EXACT
    exact_b = res_b.match_type is MatchType.EXACT
    if exact_a != exact_b:
        return -1 if exact_a else 1

    if round(abs(res_a.confidence - res_b.confidence), 9) > TIE_WINDOW:
        return -1 if res_a.confidence > res_b.confidence else 1

    namaste_a = res_a.system_tag is SystemTag.NAMASTE
    namaste_b = res_b.system_tag is SystemTag.NAMASTE
    if namaste_a != namaste_b:
        return -1 if namaste_a else 1

    return pos_a - pos_b


class TerminologyMatcher:
    """
    Multi-strategy lexical search over a TerminologyCorpus.

    Mechanism:
    1. Normalizes the query (trim, lowercase) and splits it into terms.
    2. Scores every concept allowed by the system filter with exact, definition,
       synonym, per-term fuzzy and per-term property checks.
    3. Keeps concepts scoring above the threshold, orders them and caps the list.
    """

    def __init__(self, corpus: TerminologyCorpus, max_results: int = MAX_RESULTS):
        self.corpus = corpus
        self.max_results = max_results

    def search(self, query: object, system_filter: SystemFilter = None) -> List[ScoredResult]:
        """
        Ranks concepts against a free-text query.

        Args:
            query: The search text (e.g. "jwara"). Blank or non-string yields [].
            system_filter: System tags to keep ("namaste", "icd11-mms", "icd11-tm2",
                "unknown", the "icd11" alias or "all"). Empty means no filtering.
        """
        if not isinstance(query, str) or not query.strip():
            return []
        if len(self.corpus) == 0:
            return []

        normalized = query.strip().lower()
        terms = [t for t in normalized.split() if len(t) >= MIN_TERM_LENGTH]
        allowed = _resolve_filter(system_filter)

        scored: List[Tuple[int, ScoredResult]] = []
        for position, (concept, tag) in enumerate(self.corpus.tagged()):
            if allowed is not None and tag not in allowed:
                continue
            result = self._score(concept, tag, normalized, terms)
            if result is not None:
                scored.append((position, result))

        scored.sort(key=cmp_to_key(_compare))
        results = [r for _, r in scored[: self.max_results]]
        logger.debug(f"Search '{normalized}' matched {len(scored)} concepts, returning {len(results)}")
        return results

    def _score(self, concept: Concept, tag: SystemTag, normalized: str, terms: List[str]) -> Optional[ScoredResult]:
        max_score = 0.0
        match_type = MatchType.SEMANTIC
        display = concept.display.lower()

        span: Optional[Tuple[int, int]] = None
        if normalized in display:
            max_score = max(max_score, EXACT_SCORE)
            match_type = _upgrade(match_type, MatchType.EXACT)
            # Measured on the original display; lower() can change its length.
            found = re.search(re.escape(normalized), concept.display, re.IGNORECASE)
            if found:
                span = found.span()

        if concept.definition and normalized in concept.definition.lower():
            max_score = max(max_score, DEFINITION_SCORE)
            match_type = _upgrade(match_type, MatchType.FUZZY)

        if any(normalized in synonym.lower() for synonym in concept.synonyms):
            max_score = max(max_score, SYNONYM_SCORE)
            match_type = _upgrade(match_type, MatchType.SYNONYM)

        for term in terms:
            similarity = fuzzy_similarity(term, display)
            if similarity > FUZZY_THRESHOLD:
                max_score = max(max_score, similarity * FUZZY_WEIGHT)
                match_type = _upgrade(match_type, MatchType.FUZZY)

            for prop in concept.properties:
                if prop.value_string and term in prop.value_string.lower():
                    max_score = max(max_score, PROPERTY_SCORE)
                    break

        if max_score <= SCORE_THRESHOLD:
            return None

        return ScoredResult(
            concept=concept,
            confidence=min(max_score, 1.0),
            match_type=match_type,
            system_tag=tag,
            match_span=span,
            highlighted_display=highlight(concept.display, normalized) if span else concept.display,
        )
