"""
Supabase client for the fixtures table.

Provides column-selective queries for the sync job and a realtime
subscription for the fixture feed.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from supabase import Client, create_client

from config import Config

logger = logging.getLogger(__name__)

FIXTURES_TABLE = "fixtures"
FIXTURES_CHANNEL = "fixtures-changes"

CANDIDATE_COLUMNS = ["id", "api_fixture_id", "status", "home_score", "away_score"]


class FixtureSubscription:
    """Handle for a realtime channel; unsubscribe() releases it."""

    def __init__(self, async_client, channel):
        self._client = async_client
        self._channel = channel
        self.active = True

    async def unsubscribe(self):
        if not self.active:
            return
        self.active = False
        await self._client.remove_channel(self._channel)
        logger.info("Fixture channel released", extra={"channel": FIXTURES_CHANNEL})


class SupabaseClient:
    """Client for interacting with the Supabase fixtures table."""

    def __init__(self, config: Config):
        self.config = config
        self.client: Optional[Client] = None
        self._async_client = None
        self._initialize_client()

    @property
    def _key(self) -> str:
        # Service key if available for writes, otherwise the anon key
        return self.config.supabase_service_key or self.config.supabase_key

    def _initialize_client(self):
        """Initialize Supabase client."""
        if not self.config.supabase_url or not self.config.supabase_key:
            raise ValueError("Supabase URL and key are required")

        self.client = create_client(self.config.supabase_url, self._key)

        logger.info("Initialized Supabase client", extra={
            "url": self.config.supabase_url,
            "using_service_key": bool(self.config.supabase_service_key)
        })

    def _select_columns(self, columns: List[str]) -> str:
        """Format column list for SELECT statement."""
        return ", ".join(columns)

    # Fixture reads

    def get_fixtures(
        self,
        tournament: Optional[str] = None,
        round_number: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Get fixtures ordered by round, with optional filtering.

        Args:
            tournament: Filter by tournament tag
            round_number: Filter by round

        Returns:
            List of fixture rows
        """
        query = self.client.table(FIXTURES_TABLE).select("*")

        if tournament is not None:
            query = query.eq("tournament", tournament)
        if round_number is not None:
            query = query.eq("round", round_number)

        result = query.order("round").order("id").execute()
        return result.data or []

    def get_livescore_candidates(
        self,
        now: Optional[datetime] = None,
        before: timedelta = timedelta(hours=2),
        after: timedelta = timedelta(hours=6),
    ) -> List[Dict[str, Any]]:
        """
        Fixtures the livescore sync should check.

        Two queries merged by id: not-finished fixtures with an API id whose
        kickoff is within [now - before, now + after], and a rescue sweep of
        every LIVE fixture regardless of kickoff (a match stuck live past
        the window still gets its final score).
        """
        now = now or datetime.now(timezone.utc)
        columns = self._select_columns(CANDIDATE_COLUMNS)

        window = (
            self.client.table(FIXTURES_TABLE)
            .select(columns)
            .neq("status", "FT")
            .not_.is_("api_fixture_id", "null")
            .not_.is_("kick_off", "null")
            .gte("kick_off", (now - before).isoformat())
            .lte("kick_off", (now + after).isoformat())
            .execute()
        ).data or []

        rescue = (
            self.client.table(FIXTURES_TABLE)
            .select(columns)
            .eq("status", "LIVE")
            .not_.is_("api_fixture_id", "null")
            .execute()
        ).data or []

        candidates: Dict[str, Dict[str, Any]] = {}
        for row in window + rescue:
            candidates[row["id"]] = row

        window_ids = {row["id"] for row in window}
        logger.debug("Livescore candidates loaded", extra={
            "candidates": len(candidates),
            "rescued": len([r for r in rescue if r["id"] not in window_ids]),
        })
        return list(candidates.values())

    # Fixture writes

    def update_fixture_status(
        self,
        fixture_id: str,
        status: str,
        home_score: Optional[int],
        away_score: Optional[int],
    ):
        """Write a status transition; live and finished fixtures are locked."""
        result = self.client.table(FIXTURES_TABLE).update({
            "status": status,
            "home_score": home_score,
            "away_score": away_score,
            "is_locked": status in ("LIVE", "FT"),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }).eq("id", fixture_id).execute()

        return result.data

    def upsert_fixtures(self, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Upsert fixture rows on id."""
        if not records:
            return []
        result = self.client.table(FIXTURES_TABLE).upsert(
            records,
            on_conflict="id"
        ).execute()
        return result.data or []

    # Realtime

    async def _get_async_client(self):
        if self._async_client is None:
            from supabase import acreate_client
            self._async_client = await acreate_client(self.config.supabase_url, self._key)
        return self._async_client

    async def fetch_fixtures(self) -> List[Dict[str, Any]]:
        """Async read of every fixture, for the feed's initial load."""
        client = await self._get_async_client()
        result = await client.table(FIXTURES_TABLE).select("*").order("round").order("id").execute()
        return result.data or []

    async def subscribe_fixture_changes(
        self,
        on_change: Callable[[Dict[str, Any]], None],
        on_status: Optional[Callable[[str, Optional[Exception]], None]] = None,
    ) -> FixtureSubscription:
        """
        Subscribe to INSERT/UPDATE/DELETE events on the fixtures table.

        Args:
            on_change: Called with the raw realtime payload
            on_status: Called with the channel status name and any error

        Returns:
            FixtureSubscription
        """
        client = await self._get_async_client()
        channel = client.channel(FIXTURES_CHANNEL)
        channel.on_postgres_changes(
            "*",
            schema="public",
            table=FIXTURES_TABLE,
            callback=on_change,
        )

        def _status_callback(status, err=None):
            name = getattr(status, "value", status)
            if on_status is not None:
                on_status(str(name), err)

        await channel.subscribe(_status_callback)
        logger.info("Subscribed to fixture changes", extra={"channel": FIXTURES_CHANNEL})
        return FixtureSubscription(client, channel)
