"""
Livescore sync - writes live status and goals from API-Football to the store.

Only fixtures near kickoff (or stuck LIVE) are checked, so quiet days cost
no API calls.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from config import Config

logger = logging.getLogger(__name__)

# API-Football short status codes
LIVE_STATUSES = {"1H", "HT", "2H", "ET", "BT", "P", "SUSP", "INT", "LIVE"}
FINISHED_STATUSES = {"FT", "AET", "PEN", "AWD", "WO"}


def map_api_status(short: Optional[str]) -> str:
    """Map an API-Football short status to NS / LIVE / FT."""
    code = (short or "").upper()
    if code in FINISHED_STATUSES:
        return "FT"
    if code in LIVE_STATUSES:
        return "LIVE"
    # TBD, NS, PST, CANC, ABD and anything new
    return "NS"


@dataclass
class FixtureUpdate:
    fixture_id: str
    api_fixture_id: int
    status: str
    home_score: Optional[int]
    away_score: Optional[int]

    @property
    def is_locked(self) -> bool:
        return self.status in ("LIVE", "FT")


@dataclass
class SyncResult:
    """Outcome of one sync pass."""
    candidates_checked: int = 0
    api_called: bool = False
    api_fixtures_returned: int = 0
    updates: int = 0
    live_fixtures: int = 0
    results: List[Dict[str, Any]] = field(default_factory=list)
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "message": self.message,
            "candidates_checked": self.candidates_checked,
            "api_called": self.api_called,
            "api_fixtures_returned": self.api_fixtures_returned,
            "updates": self.updates,
            "live_fixtures": self.live_fixtures,
            "results": self.results,
        }


def plan_updates(
    candidates: List[Dict[str, Any]],
    api_fixtures: List[Dict[str, Any]],
) -> List[FixtureUpdate]:
    """
    Compare API fixtures with store candidates.

    Returns:
        One update per candidate whose status or score changed
    """
    by_api_id = {c["api_fixture_id"]: c for c in candidates if c.get("api_fixture_id") is not None}
    updates: List[FixtureUpdate] = []

    for item in api_fixtures:
        fixture = item.get("fixture") or {}
        goals = item.get("goals") or {}
        api_id = fixture.get("id")
        candidate = by_api_id.get(api_id)
        if candidate is None:
            logger.warning("API returned fixture not in candidates", extra={"api_fixture_id": api_id})
            continue

        status = map_api_status((fixture.get("status") or {}).get("short"))
        home_score = goals.get("home")
        away_score = goals.get("away")

        if (
            candidate.get("status") == status
            and candidate.get("home_score") == home_score
            and candidate.get("away_score") == away_score
        ):
            continue

        updates.append(FixtureUpdate(
            fixture_id=candidate["id"],
            api_fixture_id=api_id,
            status=status,
            home_score=home_score,
            away_score=away_score,
        ))

    return updates


class LivescoreSync:
    """Polls API-Football for fixtures around kickoff and writes changes."""

    def __init__(self, config: Config, db_client, api_client):
        self.config = config
        self.db_client = db_client
        self.api_client = api_client
        self.running = False
        self.last_result: Optional[SyncResult] = None

    async def sync_once(self, now: Optional[datetime] = None) -> SyncResult:
        """Run a single sync pass."""
        result = SyncResult()
        candidates = self.db_client.get_livescore_candidates(
            now=now or datetime.now(timezone.utc),
            before=timedelta(hours=self.config.livescore_window_before_hours),
            after=timedelta(hours=self.config.livescore_window_after_hours),
        )
        result.candidates_checked = len(candidates)
        result.live_fixtures = len([c for c in candidates if c.get("status") == "LIVE"])

        api_ids = [c["api_fixture_id"] for c in candidates if c.get("api_fixture_id") is not None]
        if not api_ids:
            result.message = "No candidate fixtures to check"
            self.last_result = result
            return result

        api_fixtures = await self.api_client.get_fixtures_by_ids(api_ids)
        result.api_called = True
        result.api_fixtures_returned = len(api_fixtures)

        for update in plan_updates(candidates, api_fixtures):
            entry = {"id": update.fixture_id, "api_id": update.api_fixture_id, "status": update.status}
            try:
                self.db_client.update_fixture_status(
                    update.fixture_id,
                    update.status,
                    update.home_score,
                    update.away_score,
                )
                result.updates += 1
                entry["updated"] = True
                logger.info("Fixture status updated", extra={
                    "fixture_id": update.fixture_id,
                    "status": update.status,
                    "score": f"{update.home_score}-{update.away_score}",
                    "locked": update.is_locked,
                })
            except Exception as e:
                entry["updated"] = False
                entry["error"] = str(e)
                logger.warning("Fixture status update failed", extra={
                    "fixture_id": update.fixture_id,
                    "error": str(e),
                })
            result.results.append(entry)

        result.message = f"Synced {len(api_fixtures)} fixtures, {result.updates} updated"
        self.last_result = result
        return result

    def _next_interval(self, result: Optional[SyncResult]) -> int:
        if result is not None and (result.live_fixtures or result.candidates_checked):
            return self.config.livescore_interval_live
        return self.config.livescore_interval_idle

    async def run(self):
        """Poll until stopped."""
        logger.info("Livescore sync loop started")
        self.running = True
        while self.running:
            try:
                result = await self.sync_once()
                logger.info("Livescore sync complete", extra={
                    "candidates": result.candidates_checked,
                    "updates": result.updates,
                    "api_called": result.api_called,
                })
                await asyncio.sleep(self._next_interval(result))
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Livescore sync error", extra={"error": str(e)}, exc_info=True)
                await asyncio.sleep(30)
        logger.info("Livescore sync loop stopped")

    async def shutdown(self):
        self.running = False
        if self.api_client:
            await self.api_client.close()
