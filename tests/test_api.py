import json

import pytest
from fastapi.testclient import TestClient

from conftest import league_data
from hoops_sim import api


@pytest.fixture
def league_file(tmp_path):
    path = tmp_path / "league.json"
    path.write_text(json.dumps(league_data()), encoding="utf-8")
    return path


@pytest.fixture
def client(monkeypatch, league_file) -> TestClient:
    monkeypatch.setattr(api, "service", api.SimService(seed=5, league_file=str(league_file)))
    return TestClient(api.app)


def test_health(client: TestClient) -> None:
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_standings(client: TestClient) -> None:
    both = client.get("/api/standings").json()
    assert set(both["standings"]) == {"EAST", "WEST"}

    west = client.get("/api/standings", params={"conference": "west"})
    assert west.status_code == 200
    assert [row["rank"] for row in west.json()["standings"]] == [1, 2, 3, 4]

    assert client.get("/api/standings", params={"conference": "north"}).status_code == 404


def test_advance_and_advance_day(client: TestClient) -> None:
    first = client.post("/api/advance").json()
    assert first["advanced"] is True
    assert first["game"]["phase"] == "regular_season"
    assert first["meta"]["fixtures_played"] == 1

    day = client.post("/api/advance-day").json()
    assert day["advanced"] is True
    assert len(day["games"]) == 1
    assert day["meta"]["fixtures_played"] == 2
    assert len(client.get("/api/games/recent").json()) == 2


def test_team_and_cap(client: TestClient) -> None:
    team = client.get("/api/teams/east1")
    assert team.status_code == 200
    assert len(team.json()["roster"]) == 12

    cap = client.get("/api/teams/east1/cap").json()
    assert cap["payroll"] == 72_000_000
    assert cap["over_cap"] is False

    assert client.get("/api/teams/nowhere").status_code == 404
    assert client.get("/api/teams/nowhere/cap").status_code == 404


def test_sign_and_release(client: TestClient) -> None:
    agents = client.get("/api/free-agents").json()
    assert agents
    player_id = agents[0]["player_id"]

    signed = client.post("/api/free-agents/sign", json={"team_id": "east2", "player_id": player_id, "salary": 2_000_000})
    assert signed.status_code == 200
    assert signed.json()["success"] is True

    again = client.post("/api/free-agents/sign", json={"team_id": "east2", "player_id": player_id})
    assert again.status_code == 404
    assert again.json()["detail"]["reason"] == "player_not_found"

    released = client.post("/api/release", json={"team_id": "east2", "player_id": player_id})
    assert released.status_code == 200
    assert released.json()["dead_cap"] == 1_000_000

    kinds = [tx["kind"] for tx in client.get("/api/transactions").json()]
    assert kinds == ["sign", "release"]


def test_trade_errors_map_to_status_codes(client: TestClient) -> None:
    mismatch = client.post(
        "/api/trade",
        json={"from_team_id": "east1", "to_team_id": "west1", "from_player_ids": ["east1-p0", "east1-p1"], "to_player_ids": ["west1-p0"]},
    )
    assert mismatch.status_code == 400
    assert mismatch.json()["detail"]["reason"] == "salary_mismatch"

    missing = client.post("/api/trade", json={"from_team_id": "east1", "to_team_id": "nowhere", "from_player_ids": ["east1-p0"]})
    assert missing.status_code == 404

    ok = client.post(
        "/api/trade",
        json={"from_team_id": "east1", "to_team_id": "west1", "from_player_ids": ["east1-p0"], "to_player_ids": ["west1-p0"]},
    )
    assert ok.status_code == 200


def test_rotation(client: TestClient) -> None:
    ok = client.post("/api/teams/rotation", json={"team_id": "west2", "player_ids": ["west2-p3", "west2-p4"]})
    assert ok.status_code == 200
    assert client.get("/api/teams/west2").json()["rotation"] == ["west2-p3", "west2-p4"]

    bad = client.post("/api/teams/rotation", json={"team_id": "west2", "player_ids": ["west2-p3", "west2-p3"]})
    assert bad.status_code == 400


def test_leaders_and_playoffs(client: TestClient) -> None:
    for _ in range(4):
        client.post("/api/advance")
    leaders = client.get("/api/leaders", params={"stat": "rebounds", "limit": 3})
    assert leaders.status_code == 200
    assert len(leaders.json()) == 3
    assert client.get("/api/leaders", params={"stat": "dunks"}).status_code == 400

    playoffs = client.get("/api/playoffs").json()
    assert playoffs["stage"] == "not_started"
    assert playoffs["champion_id"] is None


def test_reset_and_next_season(client: TestClient) -> None:
    early = client.post("/api/next-season")
    assert early.status_code == 400
    assert early.json()["detail"]["reason"] == "season_not_finished"

    client.post("/api/advance")
    reset = client.post("/api/reset", json={"seed": 3, "schedule_mode": "calendar"})
    assert reset.status_code == 200
    assert client.get("/api/meta").json()["fixtures_played"] == 0

    assert client.post("/api/reset", json={"schedule_mode": "weekly"}).status_code == 400


def test_state_file_persists_between_services(tmp_path, league_file) -> None:
    state_path = tmp_path / "state" / "season.json"
    first = api.SimService(seed=5, league_file=str(league_file), state_path=str(state_path))
    first.advance()
    first.advance()
    assert state_path.exists()

    second = api.SimService(seed=5, league_file=str(league_file), state_path=str(state_path))
    assert second.meta()["fixtures_played"] == 2
