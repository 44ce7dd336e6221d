"""
Backend API: league standings, rounds and prediction simulation over the live fixture snapshot.
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

# Load .env and ensure backend/src is on path
backend_dir = Path(__file__).resolve().parent.parent.parent
load_dotenv(backend_dir / ".env")
sys.path.insert(0, str(backend_dir / "src"))

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from config import Config
from database.fixture_feed import FixtureFeed
from league.engine import LeagueEngine
from league.models import View
from league.ranking import positions
from league.schedule import load_baseline
from league.sources import FixtureSource, LiveFixtureSource, StaticScheduleSource
from league.teams import TEAMS, status_badge

logger = logging.getLogger(__name__)

# Lazy init so the core and its tests never require Supabase
_config: Optional[Config] = None
_config_error: Optional[str] = None
_feed: Optional[FixtureFeed] = None
_source: Optional[FixtureSource] = None


def get_config() -> Optional[Config]:
    """Load configuration once; a failed load is remembered and not retried."""
    global _config, _config_error
    if _config is None and _config_error is None:
        try:
            _config = Config()
        except ValueError as e:
            _config_error = str(e)
            logger.warning("Running without store configuration", extra={"error": _config_error})
    return _config


def _tournaments() -> tuple:
    config = get_config()
    if config is None:
        return "A", "C"
    return config.baseline_tournament, config.second_tournament


def get_source() -> FixtureSource:
    global _source
    if _source is None:
        baseline = load_baseline(tournament=_tournaments()[0])
        _source = LiveFixtureSource(_feed, baseline) if _feed is not None else StaticScheduleSource(baseline)
    return _source


def _feed_error() -> Optional[str]:
    if _feed is None or _feed.connected:
        return None
    return _feed.error


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _feed, _source
    config = get_config()
    if config is not None:
        from database.supabase_client import SupabaseClient
        _feed = FixtureFeed.from_config(config, SupabaseClient(config))
        _source = None
        await _feed.start()
    try:
        yield
    finally:
        if _feed is not None:
            await _feed.stop()


app = FastAPI(title="Liga API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _engine(source: FixtureSource) -> LeagueEngine:
    first, second = _tournaments()
    return LeagueEngine(source, baseline_tournament=first, second_tournament=second)


def _table(engine: LeagueEngine, view: View, phase: Optional[str]) -> List[Dict]:
    rows = []
    for position, stats in positions(engine.standings(phase), view):
        row = stats.to_dict()
        row["position"] = position
        rows.append(row)
    return rows


@app.get("/api/v1/teams")
def get_teams():
    """Team registry."""
    return {
        "teams": [
            {
                "id": t.id,
                "name": t.name,
                "abbreviation": t.abbreviation,
                "city": t.city,
                "stadium": t.stadium,
                "primary_color": t.primary_color,
                "altitude": t.altitude,
                "status": t.status,
                "badge": status_badge(t.status),
                "api_team_id": t.api_team_id,
            }
            for t in TEAMS
        ]
    }


@app.get("/api/v1/standings")
def get_standings(
    view: str = Query("actual", description="actual | predicted"),
    phase: Optional[str] = Query(None, description="A | C | cumulative (default: active)"),
    source: FixtureSource = Depends(get_source),
):
    """Ranked table from official results (predicted view has no predictions server-side)."""
    engine = _engine(source)
    try:
        view_value = View(view)
        phase_value = engine.selection.normalize_phase(phase)
    except ValueError as e:
        return {"teams": [], "error": str(e)}
    response = {
        "phase": phase_value,
        "view": view_value.value,
        "teams": _table(engine, view_value, phase_value),
        "summary": engine.summary(phase_value).to_dict(),
    }
    error = _feed_error()
    if error:
        response["error"] = error
    return response


@app.get("/api/v1/rounds/{phase}/{round_number}")
def get_round(phase: str, round_number: int, source: FixtureSource = Depends(get_source)):
    """Fixtures of one round."""
    engine = _engine(source)
    try:
        matches = engine.get_matches_for_round(phase, round_number)
        phase_value = engine.selection.normalize_phase(phase)
    except ValueError as e:
        return {"matches": [], "error": str(e)}
    return {
        "phase": phase_value,
        "round": round_number,
        "total_rounds": engine.total_rounds(phase_value),
        "matches": [m.to_dict() for m in matches],
    }


@app.get("/api/v1/selection")
def get_selection(source: FixtureSource = Depends(get_source)):
    """Auto-detected active tournament and current round per tournament."""
    engine = _engine(source)
    return engine.selection.to_dict()


class PredictionIn(BaseModel):
    fixture_id: str
    home: Optional[int] = Field(None, ge=0)
    away: Optional[int] = Field(None, ge=0)


class SimulationIn(BaseModel):
    phase: Optional[str] = None
    view: View = View.PREDICTED
    predictions: List[PredictionIn] = Field(default_factory=list)
    fair_play: Dict[str, int] = Field(default_factory=dict)


@app.post("/api/v1/standings/simulate")
def simulate_standings(body: SimulationIn, source: FixtureSource = Depends(get_source)):
    """
    Table with the caller's predictions and fair-play counters applied.

    Predictions belong to the client; they are applied to a throw-away
    engine and never stored.
    """
    engine = _engine(source)
    try:
        phase = engine.selection.normalize_phase(body.phase)
        for team_id, value in body.fair_play.items():
            engine.set_fair_play(team_id, value)
    except ValueError as e:
        return {"teams": [], "error": str(e)}

    rejected = [
        p.fixture_id for p in body.predictions
        if not engine.set_prediction(p.fixture_id, p.home, p.away)
    ]
    return {
        "phase": phase,
        "view": body.view.value,
        "teams": _table(engine, body.view, phase),
        "summary": engine.summary(phase).to_dict(),
        "rejected": rejected,
    }


@app.post("/api/v1/livescore/sync")
async def trigger_livescore_sync(x_cron_secret: Optional[str] = Header(None)):
    """Run one livescore sync pass (cron trigger)."""
    config = get_config()
    if config is None:
        raise HTTPException(status_code=500, detail="Server misconfigured")
    if config.cron_secret and x_cron_secret != config.cron_secret:
        raise HTTPException(status_code=401, detail="Unauthorized")

    from api_football.client import APIFootballClient
    from database.supabase_client import SupabaseClient
    from refresh.livescore import LivescoreSync

    try:
        api_client = APIFootballClient(config)
    except ValueError as e:
        return {"success": False, "error": str(e)}
    sync = LivescoreSync(config, SupabaseClient(config), api_client)
    try:
        result = await sync.sync_once()
    except Exception as e:
        logger.error("Livescore sync failed", extra={"error": str(e)}, exc_info=True)
        return {"success": False, "error": str(e)}
    finally:
        await api_client.close()
    return result.to_dict()
