"""Tests for the FastAPI service mode."""

from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from tests._fixtures.fake_repo import REPO_URL, FakeClock, FakeRepositoryClient, token_file
from tokenfinder.events import Emitter
from tokenfinder.service import create_app
from tokenfinder.session import Session
from tokenfinder.stores import MemoryStore


@pytest.fixture
def repo() -> FakeRepositoryClient:
    spacing = {"spacing": {f"s{index}": f"{index}px" for index in range(120)}}
    return FakeRepositoryClient({"tokens/space.json": token_file(spacing)})


@pytest.fixture
def client(repo: FakeRepositoryClient) -> TestClient:
    store = MemoryStore()

    def factory(emit: Emitter) -> Session:
        return Session(repo, store=store, emit=emit, clock=FakeClock())

    return TestClient(create_app(factory))


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_connection_endpoint(client: TestClient) -> None:
    response = client.post("/connection", json={"repo_url": REPO_URL})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["branches"] == ["main", "develop"]
    assert data["fileCount"] == 1


def test_connection_endpoint_reports_invalid_url(client: TestClient) -> None:
    response = client.post("/connection", json={"repo_url": "not a url"})

    assert response.status_code == 200
    assert response.json()["success"] is False


def test_token_files_endpoint(client: TestClient) -> None:
    response = client.post("/token-files", json={"repo_url": REPO_URL, "branch": "main"})

    assert response.json() == {
        "type": "token-files-result",
        "success": True,
        "files": ["tokens/space.json"],
    }


def test_tokens_endpoint_streams_ndjson(client: TestClient, repo: FakeRepositoryClient) -> None:
    response = client.post("/tokens", json={"repo_url": REPO_URL, "branch": "main"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/x-ndjson")
    events = [json.loads(line) for line in response.text.splitlines() if line]
    chunks = [event for event in events if event["type"] == "tokens-chunk"]
    assert [len(chunk["tokens"]) for chunk in chunks] == [100, 20]
    assert [chunk["isLast"] for chunk in chunks] == [False, True]
    assert events[-1]["type"] == "tokens-result"
    assert events[-1]["metadata"]["totalTokens"] == 120
    assert events[-1]["metadata"]["fromCache"] is False

    cached = client.post("/tokens", json={"repo_url": REPO_URL, "branch": "main"})
    final = [json.loads(line) for line in cached.text.splitlines() if line][-1]
    assert final["metadata"]["fromCache"] is True
    assert repo.fetch_calls == ["tokens/space.json"]


def test_dedup_endpoint(client: TestClient) -> None:
    payload = {
        "matching_components": [
            {
                "component": {"id": "card1", "name": "Card"},
                "matches": [
                    {
                        "property": "Count=1 → Avatar → fill color",
                        "nestedMainComponentId": "avatar1",
                    }
                ],
            },
            {
                "component": {"id": "avatar1", "name": "Avatar"},
                "matches": [{"property": "fill color"}],
            },
        ]
    }

    response = client.post("/matches/dedup", json=payload)

    assert response.status_code == 200
    data = response.json()
    assert data["total_matches"] == 1
    assert data["removed"] == 1
    assert data["matching_components"][0]["component"]["name"] == "Avatar"
