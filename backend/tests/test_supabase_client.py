"""Tests for the fixtures table adapter against a recording query builder."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

import database.supabase_client as supabase_client
from database.supabase_client import FIXTURES_TABLE, SupabaseClient

NOW = datetime(2026, 3, 14, 20, 0, tzinfo=timezone.utc)


class FakeQuery:
    """Chainable stand-in for a postgrest builder; records every call."""

    def __init__(self, table, responder):
        self.table = table
        self.calls = []
        self._responder = responder

    def __getattr__(self, name):
        def _call(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self
        return _call

    @property
    def not_(self):
        self.calls.append(("not_", (), {}))
        return self

    def execute(self):
        return SimpleNamespace(data=self._responder(self))


class FakeSupabase:
    def __init__(self, responder=lambda query: []):
        self.responder = responder
        self.queries = []

    def table(self, name):
        query = FakeQuery(name, self.responder)
        self.queries.append(query)
        return query


@pytest.fixture
def fake(monkeypatch):
    store = FakeSupabase()
    monkeypatch.setattr(supabase_client, "create_client", lambda url, key: store)
    return store


@pytest.fixture
def db(fake):
    config = SimpleNamespace(
        supabase_url="https://example.supabase.co",
        supabase_key="anon",
        supabase_service_key=None,
    )
    return SupabaseClient(config)


def _row(fixture_id, api_id, status):
    return {"id": fixture_id, "api_fixture_id": api_id, "status": status,
            "home_score": None, "away_score": None}


def _is_live_sweep(query):
    return ("eq", ("status", "LIVE"), {}) in query.calls


def test_candidates_merge_window_and_live_sweep_by_id(db, fake):
    window = [_row("a", 1, "NS"), _row("b", 2, "LIVE")]
    live = [_row("b", 2, "LIVE"), _row("c", 3, "LIVE")]
    fake.responder = lambda query: live if _is_live_sweep(query) else window

    candidates = db.get_livescore_candidates(now=NOW, before=timedelta(hours=2),
                                             after=timedelta(hours=6))

    assert sorted(c["id"] for c in candidates) == ["a", "b", "c"]
    assert len(fake.queries) == 2
    assert all(q.table == FIXTURES_TABLE for q in fake.queries)


def test_candidate_window_bounds_follow_now(db, fake):
    db.get_livescore_candidates(now=NOW, before=timedelta(hours=2), after=timedelta(hours=6))

    window = next(q for q in fake.queries if not _is_live_sweep(q))
    assert ("gte", ("kick_off", (NOW - timedelta(hours=2)).isoformat()), {}) in window.calls
    assert ("lte", ("kick_off", (NOW + timedelta(hours=6)).isoformat()), {}) in window.calls
    assert ("neq", ("status", "FT"), {}) in window.calls


@pytest.mark.parametrize("status,locked", [("LIVE", True), ("FT", True), ("NS", False)])
def test_status_write_sets_lock_flag(db, fake, status, locked):
    db.update_fixture_status("r1-1", status, 1, 0)

    query = fake.queries[-1]
    (name, args, _), = [c for c in query.calls if c[0] == "update"]
    payload = args[0]
    assert payload["status"] == status
    assert payload["is_locked"] is locked
    assert (payload["home_score"], payload["away_score"]) == (1, 0)
    assert ("eq", ("id", "r1-1"), {}) in query.calls


def test_empty_upsert_does_not_touch_store(db, fake):
    assert db.upsert_fixtures([]) == []
    assert fake.queries == []


def test_upsert_conflicts_on_id(db, fake):
    fake.responder = lambda query: [{"id": "r1-1"}]

    written = db.upsert_fixtures([{"id": "r1-1", "round": 1}])

    assert written == [{"id": "r1-1"}]
    assert ("upsert", ([{"id": "r1-1", "round": 1}],), {"on_conflict": "id"}) in fake.queries[0].calls


def test_missing_credentials_raise():
    config = SimpleNamespace(supabase_url="", supabase_key="", supabase_service_key=None)

    with pytest.raises(ValueError):
        SupabaseClient(config)
