# tests/integration/test_api_layout.py
import math

from fastapi.testclient import TestClient

from network_api.domain.layout.params import NETWORK


def test_network_layout_returns_settled_positions(client: TestClient) -> None:
    response = client.get("/api/network/layout", params={"min_strength": 0.6})
    assert response.status_code == 200
    data = response.json()

    assert (data["width"], data["height"]) == (800.0, 600.0)
    assert {n["id"] for n in data["nodes"]} == {"A", "B", "C"}
    assert all(math.isfinite(n["x"]) and math.isfinite(n["y"]) for n in data["nodes"])
    assert data["ticks"] == NETWORK.max_ticks
    assert data["stop_reason"] == "settled"


def test_network_layout_is_stable_across_requests(client: TestClient) -> None:
    first = client.get("/api/network/layout").json()
    second = client.get("/api/network/layout").json()
    assert first["nodes"] == second["nodes"]


def test_ego_layout(client: TestClient) -> None:
    data = client.get("/api/entities/D/neighbors/layout").json()

    assert (data["width"], data["height"]) == (320.0, 240.0)
    assert {n["id"] for n in data["nodes"]} == {"D", "A", "E"}


def test_ego_layout_of_unknown_entity_is_empty(client: TestClient) -> None:
    response = client.get("/api/entities/NOPE/neighbors/layout")
    assert response.status_code == 200
    assert response.json()["nodes"] == []


def test_ego_layout_limit_is_capped_at_preview_size(client: TestClient) -> None:
    assert client.get("/api/entities/A/neighbors/layout", params={"limit": 9}).status_code == 422
