"""
Tests for the planning HTTP API.
"""

import pytest
from fastapi.testclient import TestClient

from space_planning_ai.config.config_loader import DEFAULT_PLANNING_PARAMETERS
from space_planning_ai.web.backend.main import app
from space_planning_ai.web.backend.routes import planning_routes

BEDROOM = {
    "name": "Resident Bedroom",
    "area_target": 30,
    "area_min": 24,
    "area_max": 36,
    "width_range": [3, 7],
    "depth_range": [3, 7],
    "requires_daylight": True,
    "category": "client",
    "quantity": 40,
}
HALL = {
    "name": "Assembly Hall",
    "area_target": 100,
    "width_range": [2, 3],
    "depth_range": [2, 3],
}
CLOSET = {
    "name": "Cleaning Storage",
    "area_target": 2,
    "width_range": [1, 2],
    "depth_range": [1, 2],
    "category": "supporting",
}


@pytest.fixture
def client():
    return TestClient(app)


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "Space Planning AI API is running"}


def test_parameters(client):
    data = client.get("/api/parameters").json()
    assert data["success"]
    assert data["parameters"] == DEFAULT_PLANNING_PARAMETERS


def test_validate_rooms(client):
    response = client.post("/api/rooms/validate", json={"rooms": [BEDROOM, HALL]})
    data = response.json()

    assert response.status_code == 200
    assert not data["valid"]
    assert [r["room_id"] for r in data["rooms"]] == ["room-1", "room-2"]
    assert data["rooms"][0]["valid"]
    assert not data["rooms"][1]["valid"]


def test_validate_uses_configured_minimums(client, monkeypatch):
    strict = {**DEFAULT_PLANNING_PARAMETERS, "min_room_width": 3.5, "min_room_depth": 3.5}
    monkeypatch.setattr(planning_routes, "get_planning_parameters", lambda: dict(strict))

    data = client.post("/api/rooms/validate", json={"rooms": [BEDROOM]}).json()
    assert data["rooms"][0]["warnings"] == [
        "Minimum width 3.0m is below recommended 3.5m",
        "Minimum depth 3.0m is below recommended 3.5m",
    ]


def test_validate_honours_request_parameters(client):
    response = client.post(
        "/api/rooms/validate",
        json={"rooms": [BEDROOM], "parameters": {"min_room_width": 3.5}},
    )
    assert response.json()["rooms"][0]["warnings"] == [
        "Minimum width 3.0m is below recommended 3.5m"
    ]


def test_generate_variants(client):
    response = client.post("/api/rooms/variants", json={"rooms": [BEDROOM, CLOSET, HALL]})
    data = response.json()

    assert response.status_code == 200
    assert [v["id"] for v in data["rooms"][0]["variants"]] == [
        "room-1-var-fallback-1",
        "room-1-var-fallback-2",
    ]
    assert data["repaired_rooms"] == ["room-2"]
    assert data["rooms_without_variants"] == ["room-3"]
    assert data["statistics"]["rooms_with_variants"] == 2


def test_generate_zones(client):
    response = client.post("/api/zones", json={"rooms": [BEDROOM, CLOSET]})
    data = response.json()

    assert response.status_code == 200
    assert [z["name"] for z in data["zones"]] == ["Residential Core", "Support Services"]
    assert data["zones"][0]["can_stack"]
    assert data["overall_strategy"] is None
    assert data["totals"]["total_net_area"] == 1202.0


def test_plan(client):
    response = client.post(
        "/api/plan", json={"rooms": [BEDROOM, HALL], "parameters": {"max_variants": 1}}
    )
    data = response.json()

    assert response.status_code == 200
    result = data["result"]
    assert len(result["rooms"][0]["variants"]) == 1
    assert result["feasibility_issues"][0]["room_id"] == "room-2"
    assert result["rooms_without_variants"] == ["room-2"]
    assert data["totals"]["zones"]


def test_openai_without_key_is_rejected(client, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    response = client.post("/api/plan", json={"rooms": [BEDROOM], "advisor": "openai"})
    assert response.status_code == 400
    assert "Advisor unavailable" in response.json()["detail"]


def test_duplicate_ids_are_rejected(client):
    rooms = [{**BEDROOM, "id": "a"}, {**HALL, "id": "a"}]
    response = client.post("/api/rooms/validate", json={"rooms": rooms})
    assert response.status_code == 400


def test_request_validation(client):
    response = client.post("/api/plan", json={"rooms": [{**BEDROOM, "area_target": 0}]})
    assert response.status_code == 422

    response = client.post("/api/plan", json={"rooms": [BEDROOM], "advisor": "oracle"})
    assert response.status_code == 422
