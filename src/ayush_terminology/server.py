# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/ayush_terminology

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, List, Optional, cast

from fastapi import FastAPI, HTTPException
from loguru import logger
from pydantic import BaseModel

from ayush_terminology.corpus import TerminologyCorpus
from ayush_terminology.mapper import MappingEngine, MethodFamily, confidence_level, method_family
from ayush_terminology.matcher import TerminologyMatcher, summarize_systems
from ayush_terminology.pipeline import TerminologyContext
from ayush_terminology.schemas import Concept, MappingCandidate, ScoredResult


# Pydantic Models for Requests
class SearchRequest(BaseModel):
    query: str
    systems: List[str] = []
    sequence: Optional[int] = None


class MapRequest(BaseModel):
    code: str
    system: str


# Response Models
class SearchResponse(BaseModel):
    sequence: Optional[int] = None
    total: int
    systems: Dict[str, int]
    results: List[ScoredResult]


class MappingView(MappingCandidate):
    confidence_level: str
    method_family: MethodFamily


class MapResponse(BaseModel):
    source_code: str
    source_system: str
    mappings: List[MappingView]


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")


# Lifespan Management
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager to load the terminology corpus on startup.
    """
    pack_path = os.getenv("AYUSH_PACK_PATH", "./data/terminology_pack")
    logger.info(f"Initializing Terminology Server with pack: {pack_path}")

    try:
        TerminologyContext.initialize(pack_path, lexical_fallback=_env_flag("AYUSH_LEXICAL_FALLBACK"))
        ctx = TerminologyContext.get_instance()
        app.state.corpus = ctx.corpus
        app.state.matcher = ctx.matcher
        app.state.mapper = ctx.mapper
        logger.info("Terminology corpus loaded successfully.")
    except Exception as e:
        logger.exception("Failed to initialize terminology corpus.")
        # We raise to ensure the server doesn't start in a broken state
        raise RuntimeError(f"Server initialization failed: {e}") from e

    yield

    logger.info("Shutting down Terminology Server.")


app = FastAPI(title="AYUSH Terminology API", lifespan=lifespan)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """
    Health check endpoint. Returns status ready if the corpus is loaded.
    """
    return {"status": "ready"}


@app.post("/search", response_model=SearchResponse)
async def search(request: SearchRequest) -> SearchResponse:
    """
    Rank concepts against a free-text query.

    `sequence` is echoed back so interactive clients can drop stale replies.
    """
    matcher = cast(TerminologyMatcher, app.state.matcher)
    results = matcher.search(request.query, request.systems)
    counts = {tag.value: n for tag, n in summarize_systems(results).items()}
    return SearchResponse(sequence=request.sequence, total=len(results), systems=counts, results=results)


@app.post("/map", response_model=MapResponse)
async def map_concept(request: MapRequest) -> MapResponse:
    """
    Propose mappings for a source concept. Unknown concepts map to an empty list.
    """
    mapper = cast(MappingEngine, app.state.mapper)
    mappings = [
        MappingView(
            **candidate.model_dump(),
            confidence_level=confidence_level(candidate.confidence),
            method_family=method_family(candidate.method),
        )
        for candidate in mapper.map_code(request.code, request.system)
    ]
    return MapResponse(source_code=request.code, source_system=request.system, mappings=mappings)


@app.get("/concepts/{code}", response_model=Concept)
async def lookup(code: str, system: Optional[str] = None) -> Concept:
    """
    Fetch one concept by code, within `system` when given.
    """
    corpus = cast(TerminologyCorpus, app.state.corpus)
    concept = corpus.lookup(code, system)

    if concept is None:
        raise HTTPException(status_code=404, detail=f"Concept {code} not found")
    return concept
