# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/ayush_terminology

from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from ayush_terminology.corpus import NAMASTE_SYSTEM
from ayush_terminology.server import app


@pytest.fixture
def client(synthetic_pack: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[TestClient, None, None]:
    monkeypatch.setenv("AYUSH_PACK_PATH", str(synthetic_pack))
    with TestClient(app) as test_client:
        yield test_client


def test_health_check(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ready"}


def test_search_endpoint(client: TestClient) -> None:
    response = client.post("/search", json={"query": "jwara", "sequence": 7})

    assert response.status_code == 200
    data = response.json()
    assert data["sequence"] == 7
    assert data["total"] == len(data["results"])
    assert data["systems"]["namaste"] >= 1

    top = data["results"][0]
    assert top["concept"]["code"] == "NAM-0001"
    assert top["match_type"] == "exact"
    assert top["confidence"] == 1.0
    assert top["match_span"] == [0, 5]
    assert top["highlighted_display"] == "<mark>Jwara</mark> (Fever)"


def test_search_endpoint_with_filter(client: TestClient) -> None:
    response = client.post("/search", json={"query": "fever", "systems": ["namaste"]})

    assert response.status_code == 200
    data = response.json()
    assert data["sequence"] is None
    assert set(data["systems"]) == {"namaste"}
    assert all("namaste" in r["concept"]["system"] for r in data["results"])


def test_search_endpoint_blank_query(client: TestClient) -> None:
    response = client.post("/search", json={"query": "   "})

    assert response.status_code == 200
    assert response.json() == {"sequence": None, "total": 0, "systems": {}, "results": []}


def test_map_endpoint(client: TestClient) -> None:
    response = client.post("/map", json={"code": "NAM-0001", "system": NAMASTE_SYSTEM})

    assert response.status_code == 200
    data = response.json()
    assert data["source_code"] == "NAM-0001"

    mappings = data["mappings"]
    assert len(mappings) == 4
    assert mappings[0]["target_code"] == "MG22"
    assert mappings[0]["confidence_level"] == "Very High"
    assert mappings[0]["method_family"] == "lexical"
    assert mappings[1]["target_code"] == "TM2:A01.1"
    assert mappings[1]["confidence_level"] == "High"
    assert mappings[1]["method_family"] == "semantic"
    assert [m["curated"] for m in mappings] == [True, True, False, False]


def test_map_endpoint_unknown_code(client: TestClient) -> None:
    response = client.post("/map", json={"code": "NOPE", "system": NAMASTE_SYSTEM})

    assert response.status_code == 200
    assert response.json()["mappings"] == []


def test_concept_lookup(client: TestClient) -> None:
    response = client.get("/concepts/MG22")
    assert response.status_code == 200
    assert response.json()["display"] == "Fever, unspecified"

    response = client.get("/concepts/TM2:A01.1")
    assert response.status_code == 200
    assert response.json()["display"] == "Heat pattern fever"


def test_concept_lookup_not_found(client: TestClient) -> None:
    assert client.get("/concepts/NOPE").status_code == 404
    assert client.get("/concepts/MG22", params={"system": NAMASTE_SYSTEM}).status_code == 404


def test_startup_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AYUSH_PACK_PATH", str(tmp_path / "missing"))

    with pytest.raises(RuntimeError, match="Server initialization failed"):
        with TestClient(app):
            pass
