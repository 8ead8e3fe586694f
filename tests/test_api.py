import pytest
from fastapi.testclient import TestClient

from allstar_sim import api


@pytest.fixture
def client(tmp_path, monkeypatch) -> TestClient:
    monkeypatch.setattr(api, "service", api.ContestService(data_root=tmp_path, seed=21))
    return TestClient(api.app)


def test_health(client: TestClient) -> None:
    assert client.get("/api/health").json() == {"status": "ok"}


def test_create_and_step_contest(client: TestClient) -> None:
    created = client.post("/api/contests", json={"contest_id": "three-1"})
    assert created.status_code == 200
    body = created.json()
    assert len(body["participants"]) == 8
    assert body["complete"] is False

    step = client.post("/api/contests/three-1/advance")
    assert step.status_code == 200
    assert step.json()["event"] == "event"

    rack = client.post("/api/contests/three-1/advance-until", json={"stop_at": "rack"})
    assert rack.json()["event"] == "rack"


def test_run_contest_to_completion(client: TestClient) -> None:
    client.post("/api/contests", json={"contest_id": "three-1"})
    done = client.post("/api/contests/three-1/advance-until", json={"stop_at": "all"})
    assert done.status_code == 200
    body = done.json()
    assert body["event"] == "all"
    assert body["contest"]["complete"] is True
    assert body["contest"]["winner_name"]

    awards = client.get("/api/awards").json()
    assert len(awards) == 1
    assert awards[0]["contest_id"] == "three-1"

    results = client.get("/api/contests/three-1/results").json()
    assert len(results) >= 2
    assert all(len(r["results"]) == len(set(row["index"] for row in r["results"])) for r in results)

    again = client.post("/api/contests/three-1/advance")
    assert again.json()["event"] == "all"
    assert len(client.get("/api/awards").json()) == 1


def test_create_with_chosen_players(client: TestClient) -> None:
    pool = client.get("/api/players").json()
    ids = [row["player_id"] for row in pool if not row["injured"]][:5]
    created = client.post("/api/contests", json={"contest_id": "small", "player_ids": ids})
    assert created.status_code == 200
    assert [p["player_id"] for p in created.json()["participants"]] == ids


def test_errors_map_to_status_codes(client: TestClient) -> None:
    assert client.get("/api/contests/missing").status_code == 404
    assert client.post("/api/contests/missing/advance").status_code == 404

    client.post("/api/contests", json={"contest_id": "three-1"})
    assert client.post("/api/contests", json={"contest_id": "three-1"}).status_code == 409
    bad = client.post("/api/contests/three-1/advance-until", json={"stop_at": "quarter"})
    assert bad.status_code == 400
    unknown = client.post("/api/contests", json={"contest_id": "x", "player_ids": ["ghost"] * 5})
    assert unknown.status_code == 404
    one_id = client.get("/api/players").json()[0]["player_id"]
    too_few = client.post("/api/contests", json={"contest_id": "y", "player_ids": [one_id]})
    assert too_few.status_code == 400
