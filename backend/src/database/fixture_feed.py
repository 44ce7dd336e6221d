"""
Fixture feed: keeps an in-memory snapshot of the fixtures table in sync.

Initial load with retry, then a realtime subscription. Each change event
replaces a whole record and swaps in a new snapshot, so readers never see
a partially applied update. Channel errors trigger a resubscribe followed
by a full reload to pick up anything missed while disconnected.
"""

import asyncio
import logging
import random
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple

from league.models import Fixture, MalformedFixtureError, fixture_from_record

logger = logging.getLogger(__name__)

INSERT = "INSERT"
UPDATE = "UPDATE"
DELETE = "DELETE"

SUBSCRIBED = "SUBSCRIBED"
DISCONNECTED_STATES = ("CHANNEL_ERROR", "TIMED_OUT", "CLOSED")

Listener = Callable[[List[Fixture]], None]


class FixtureFeedError(Exception):
    """Raised when the feed could not produce an initial snapshot."""
    pass


def normalize_change(payload: Mapping[str, Any]) -> Tuple[Optional[str], Optional[Dict[str, Any]]]:
    """
    Extract (event type, new record) from a realtime payload.

    Accepts the Python realtime shape {"data": {"type", "record"}} and the
    JS shape {"eventType", "new"}.
    """
    data = payload.get("data")
    if isinstance(data, Mapping):
        event_type = data.get("type") or data.get("eventType")
        record = data.get("record") or data.get("new")
    else:
        event_type = payload.get("eventType") or payload.get("type")
        record = payload.get("new") or payload.get("record")
    event_type = str(event_type).upper() if event_type else None
    return event_type, dict(record) if record else None


class FixtureFeed:
    """Live snapshot of store fixtures keyed by id."""

    def __init__(
        self,
        store,
        default_tournament: Optional[str] = None,
        max_retries: int = 3,
        retry_backoff_base: float = 1.0,
        max_retry_delay: float = 60.0,
        reconnect_delay: float = 5.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            store: Object with async fetch_fixtures() and
                subscribe_fixture_changes(on_change, on_status)
            default_tournament: Tag for rows stored without a tournament
            sleep: Injected for tests
        """
        self.store = store
        self.default_tournament = default_tournament
        self.max_retries = max_retries
        self.retry_backoff_base = retry_backoff_base
        self.max_retry_delay = max_retry_delay
        self.reconnect_delay = reconnect_delay
        self._sleep = sleep

        self._fixtures: Mapping[str, Fixture] = MappingProxyType({})
        self.version = 0
        self.ready = False
        self.connected = False
        self.failed = False
        self.error: Optional[str] = None

        self._listeners: List[Listener] = []
        self._subscription = None
        self._reconnect_task: Optional[asyncio.Task] = None
        self._stopping = False

    @classmethod
    def from_config(cls, config, store) -> "FixtureFeed":
        return cls(
            store,
            default_tournament=config.baseline_tournament,
            max_retries=config.max_retries,
            retry_backoff_base=config.retry_backoff_base,
            max_retry_delay=config.max_retry_delay,
            reconnect_delay=config.feed_reconnect_delay,
        )

    # Snapshot

    def list_fixtures(self) -> List[Fixture]:
        return list(self._fixtures.values())

    def get(self, fixture_id: str) -> Optional[Fixture]:
        return self._fixtures.get(fixture_id)

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Register a callback for snapshot changes; returns a remover."""
        self._listeners.append(listener)

        def _remove():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return _remove

    def _publish(self, fixtures: Dict[str, Fixture]):
        self._fixtures = MappingProxyType(fixtures)
        self.version += 1
        snapshot = self.list_fixtures()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error("Fixture listener failed", extra={"error": str(e)}, exc_info=True)

    def _parse(self, record: Mapping[str, Any]) -> Optional[Fixture]:
        try:
            return fixture_from_record(record, default_tournament=self.default_tournament)
        except MalformedFixtureError as e:
            logger.warning("Skipping malformed fixture", extra={
                "fixture_id": record.get("id"),
                "error": str(e),
            })
            return None

    def replace_all(self, records: List[Mapping[str, Any]]) -> int:
        """
        Swap in a full snapshot from store rows.

        Returns:
            Number of fixtures kept (malformed rows are skipped)
        """
        fixtures: Dict[str, Fixture] = {}
        for record in records:
            fixture = self._parse(record)
            if fixture is None:
                continue
            if fixture.id in fixtures:
                logger.warning("Duplicate fixture id from store", extra={"fixture_id": fixture.id})
                continue
            fixtures[fixture.id] = fixture
        self._publish(fixtures)
        return len(fixtures)

    def apply_change(self, event_type: Optional[str], record: Optional[Mapping[str, Any]]) -> bool:
        """
        Apply one change event.

        INSERT adds (or replaces) a record; UPDATE replaces a known record
        and ignores unknown ids; DELETE is ignored since fixtures are never
        removed from the league.

        Returns:
            True if the snapshot changed
        """
        if event_type not in (INSERT, UPDATE) or not record:
            return False
        fixture = self._parse(record)
        if fixture is None:
            return False
        if event_type == UPDATE and fixture.id not in self._fixtures:
            logger.debug("Ignoring update for unknown fixture", extra={"fixture_id": fixture.id})
            return False
        if self._fixtures.get(fixture.id) == fixture:
            return False
        updated = dict(self._fixtures)
        updated[fixture.id] = fixture
        self._publish(updated)
        logger.debug("Fixture change applied", extra={
            "fixture_id": fixture.id,
            "event": event_type,
            "status": fixture.status.value,
        })
        return True

    def handle_change(self, payload: Mapping[str, Any]):
        """Realtime callback."""
        event_type, record = normalize_change(payload)
        self.apply_change(event_type, record)

    # Lifecycle

    def _backoff(self, attempt: int) -> float:
        backoff = min(self.retry_backoff_base * (2 ** attempt), self.max_retry_delay)
        # Add jitter (±25%)
        return backoff + backoff * 0.25 * (random.random() * 2 - 1)

    async def reload(self) -> int:
        records = await self.store.fetch_fixtures()
        count = self.replace_all(records)
        self.ready = True
        self.failed = False
        self.error = None
        return count

    async def _load_with_retry(self) -> bool:
        for attempt in range(self.max_retries + 1):
            try:
                count = await self.reload()
                logger.info("Fixture snapshot loaded", extra={"fixtures_count": count})
                return True
            except Exception as e:
                self.error = str(e)
                if attempt < self.max_retries:
                    wait_time = self._backoff(attempt)
                    logger.warning("Fixture load failed, retrying", extra={
                        "attempt": attempt + 1,
                        "wait_time": wait_time,
                        "error": str(e),
                    })
                    await self._sleep(wait_time)
        self.failed = True
        logger.error("Fixture load failed after retries", extra={
            "max_retries": self.max_retries,
            "error": self.error,
        })
        return False

    async def _subscribe(self):
        self._subscription = await self.store.subscribe_fixture_changes(
            self.handle_change, self._on_status
        )

    def _on_status(self, status: str, err: Optional[Exception] = None):
        if status == SUBSCRIBED:
            self.connected = True
            if self.ready:
                self.error = None
            return
        if status in DISCONNECTED_STATES:
            self.connected = False
            if self._stopping:
                return
            self.error = str(err) if err else f"Fixture channel {status.lower()}"
            logger.warning("Fixture channel disconnected", extra={"status": status, "error": self.error})
            self._schedule_reconnect()

    def _schedule_reconnect(self):
        if self._reconnect_task is not None and not self._reconnect_task.done():
            return
        self._reconnect_task = asyncio.get_running_loop().create_task(self._reconnect())

    async def _reconnect(self):
        delay = self.reconnect_delay
        while not self._stopping:
            await self._sleep(delay)
            if self._stopping:
                return
            try:
                await self._release_subscription()
                await self._subscribe()
                # Events published while disconnected are gone; reload closes the gap
                await self.reload()
                logger.info("Fixture feed reconnected", extra={"fixtures_count": len(self._fixtures)})
                return
            except Exception as e:
                self.error = str(e)
                logger.warning("Fixture feed reconnect failed", extra={"error": str(e), "wait_time": delay})
                delay = min(delay * 2, self.max_retry_delay)

    async def _release_subscription(self):
        subscription, self._subscription = self._subscription, None
        if subscription is None:
            return
        try:
            await subscription.unsubscribe()
        except Exception as e:
            logger.warning("Fixture channel release failed", extra={"error": str(e)})

    async def start(self) -> bool:
        """
        Load the snapshot and subscribe to changes.

        Returns:
            False when the initial load failed; the feed then stays empty with
            `failed` set and `error` describing the last failure
        """
        self._stopping = False
        if not await self._load_with_retry():
            return False
        try:
            await self._subscribe()
        except Exception as e:
            self.error = str(e)
            logger.warning("Fixture subscription failed", extra={"error": str(e)})
            self._schedule_reconnect()
        return True

    async def stop(self):
        """Release the subscription and cancel any pending reconnect."""
        self._stopping = True
        task, self._reconnect_task = self._reconnect_task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self._release_subscription()
        self.connected = False

    def raise_if_failed(self):
        """Raise FixtureFeedError when no snapshot could be loaded."""
        if self.failed and not self.ready:
            raise FixtureFeedError(self.error or "Fixture feed unavailable")
