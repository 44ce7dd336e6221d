"""
Fixture sources consumed by the league engine.

The local-only engine and the live engine differ only in where fixtures
come from, so both are sources behind one interface.
"""

from typing import List, Optional, Protocol, Sequence

from league.merge import merge_fixtures
from league.models import Fixture
from league.schedule import BaselineSchedule, load_baseline


class FixtureSource(Protocol):
    def list_fixtures(self) -> List[Fixture]:
        ...


class StaticScheduleSource:
    """Fixtures from the bundled schedule alone (nothing synced)."""

    def __init__(self, baseline: Optional[BaselineSchedule] = None):
        self.baseline = baseline or load_baseline()
        self._fixtures = merge_fixtures(self.baseline, [], self.baseline.tournament)

    def list_fixtures(self) -> List[Fixture]:
        return list(self._fixtures)


class ListFixtureSource:
    """Fixed in-memory fixture list; used by one-off computations and tests."""

    def __init__(self, fixtures: Sequence[Fixture]):
        self._fixtures = list(fixtures)

    def list_fixtures(self) -> List[Fixture]:
        return list(self._fixtures)


class LiveFixtureSource:
    """
    Bundled schedule merged with a live store feed.

    The feed must provide list_fixtures(); when it also exposes a `version`
    counter the merge is redone only after the feed changed.
    """

    def __init__(self, feed, baseline: Optional[BaselineSchedule] = None):
        self.feed = feed
        self.baseline = baseline or load_baseline()
        self._merged: List[Fixture] = []
        self._merged_version: Optional[int] = None

    def list_fixtures(self) -> List[Fixture]:
        version = getattr(self.feed, "version", None)
        if version is None or version != self._merged_version:
            self._merged = merge_fixtures(
                self.baseline, self.feed.list_fixtures(), self.baseline.tournament
            )
            self._merged_version = version
        return list(self._merged)
