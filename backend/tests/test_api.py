"""Tests for the HTTP API with an in-memory fixture source."""

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

import api.main as api_main
from league.sources import ListFixtureSource

from helpers import fx, result


@pytest.fixture
def client():
    source = ListFixtureSource([
        result("a1", "uni", "ali", 2, 0, round_number=1),
        fx("a2", "cri", "mel", round_number=1, locked=True),
        fx("a3", "uni", "cri", round_number=2),
        fx("a4", "ali", "mel", round_number=2),
    ])
    api_main.app.dependency_overrides[api_main.get_source] = lambda: source
    yield TestClient(api_main.app)
    api_main.app.dependency_overrides.clear()


def test_teams_lists_registry(client):
    teams = client.get("/api/v1/teams").json()["teams"]

    assert len(teams) == 18
    assert {"id", "name", "badge", "api_team_id"} <= set(teams[0])


def test_standings_are_ranked(client):
    data = client.get("/api/v1/standings", params={"view": "actual", "phase": "A"}).json()

    assert data["phase"] == "A"
    assert data["teams"][0]["team_id"] == "uni"
    assert [t["position"] for t in data["teams"]] == list(range(1, 19))
    assert data["summary"]["matches_played"] == 1


def test_invalid_phase_returns_error_body(client):
    data = client.get("/api/v1/standings", params={"phase": "Z"}).json()

    assert data["teams"] == []
    assert "Z" in data["error"]


def test_round_listing(client):
    data = client.get("/api/v1/rounds/A/2").json()

    assert data["total_rounds"] == 2
    assert [m["id"] for m in data["matches"]] == ["a3", "a4"]
    assert all(m["can_predict"] for m in data["matches"])


def test_selection_reports_current_round(client):
    data = client.get("/api/v1/selection").json()

    assert data["active_phase"] == "A"
    assert data["rounds"]["A"]["current"] == 1


def test_simulation_applies_predictions_and_reports_rejections(client):
    body = {
        "phase": "A",
        "view": "predicted",
        "predictions": [
            {"fixture_id": "a3", "home": 0, "away": 3},
            {"fixture_id": "a2", "home": 5, "away": 0},
        ],
        "fair_play": {"cri": 1},
    }

    data = client.post("/api/v1/standings/simulate", json=body).json()

    assert data["rejected"] == ["a2"]
    cri = next(t for t in data["teams"] if t["team_id"] == "cri")
    assert cri["fair_play"] == 1
    assert cri["predicted"]["points"] == 3


def test_simulation_rejects_negative_goals(client):
    body = {"predictions": [{"fixture_id": "a3", "home": -1, "away": 0}]}

    assert client.post("/api/v1/standings/simulate", json=body).status_code == 422


def test_simulation_unknown_team_returns_error(client):
    data = client.post("/api/v1/standings/simulate", json={"fair_play": {"zzz": 1}}).json()

    assert "zzz" in data["error"]


def test_livescore_trigger_requires_secret(client, monkeypatch):
    monkeypatch.setattr(api_main, "get_config", lambda: SimpleNamespace(cron_secret="s3cret"))

    response = client.post("/api/v1/livescore/sync", headers={"X-Cron-Secret": "wrong"})

    assert response.status_code == 401


def test_livescore_trigger_without_config(client, monkeypatch):
    monkeypatch.setattr(api_main, "get_config", lambda: None)

    assert client.post("/api/v1/livescore/sync").status_code == 500


def test_missing_configuration_is_only_loaded_once(monkeypatch):
    attempts = []

    def failing_config():
        attempts.append(1)
        raise ValueError("SUPABASE_URL is required")

    monkeypatch.setattr(api_main, "Config", failing_config)
    monkeypatch.setattr(api_main, "_config", None)
    monkeypatch.setattr(api_main, "_config_error", None)

    assert api_main.get_config() is None
    assert api_main.get_config() is None
    assert api_main._tournaments() == ("A", "C")
    assert len(attempts) == 1
