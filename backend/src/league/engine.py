"""
League engine: standings, round navigation and predictions for one session.

The engine reads fixtures from an injected FixtureSource and recomputes
standings from the full snapshot on every read; callers that want
memoisation can cache on (fixtures, predictions.version, view).
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from league.models import CUMULATIVE, Fixture, Prediction, TeamStats, View, fixture_to_record
from league.predictions import PredictionStore, accepts_prediction
from league.ranking import rank_teams
from league.selector import SelectionState
from league.sources import FixtureSource
from league.standings import LeagueSummary, compute_standings, summarize
from league.teams import TEAMS, Team

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoundMatch:
    """A fixture as shown in a round listing, with the session's prediction."""
    fixture: Fixture
    prediction: Optional[Prediction] = None

    @property
    def can_predict(self) -> bool:
        return accepts_prediction(self.fixture)

    def to_dict(self) -> Dict[str, Any]:
        data = fixture_to_record(self.fixture)
        data["home_prediction"] = self.prediction.home if self.prediction else None
        data["away_prediction"] = self.prediction.away if self.prediction else None
        data["can_predict"] = self.can_predict
        return data


class LeagueEngine:
    """Session-scoped view over a fixture source."""

    def __init__(
        self,
        source: FixtureSource,
        teams: Optional[Sequence[Team]] = None,
        baseline_tournament: str = "A",
        second_tournament: str = "C",
    ):
        self.source = source
        self.teams: List[Team] = list(teams if teams is not None else TEAMS)
        self._team_ids = {t.id for t in self.teams}
        self.selection = SelectionState(baseline_tournament, second_tournament)
        self.predictions = PredictionStore()
        self._fair_play: Dict[str, int] = {t.id: 0 for t in self.teams}
        self._fixtures: List[Fixture] = []
        self._loaded = False
        self.refresh()

    # Snapshot handling

    def refresh(self) -> List[Fixture]:
        """Re-read the source and react to any change."""
        fixtures = self.source.list_fixtures()
        if not self._loaded or fixtures != self._fixtures:
            self._on_fixtures_changed(fixtures)
        return self._fixtures

    def _on_fixtures_changed(self, fixtures: List[Fixture]):
        self._fixtures = fixtures
        self._loaded = True
        self.predictions.prune(fixtures)
        self.selection.on_fixtures_changed(self._group_by_phase(fixtures))
        logger.debug("Fixture snapshot updated", extra={"fixtures_count": len(fixtures)})

    def _group_by_phase(self, fixtures: Sequence[Fixture]) -> Dict[str, List[Fixture]]:
        grouped: Dict[str, List[Fixture]] = {
            self.selection.first: [],
            self.selection.second: [],
        }
        for fixture in fixtures:
            grouped.setdefault(fixture.tournament, []).append(fixture)
        return grouped

    def fixtures(self, phase: Optional[str] = None) -> List[Fixture]:
        """Current fixtures of a tournament (or all of them for the cumulative view)."""
        snapshot = self.refresh()
        phase = self.selection.normalize_phase(phase)
        if phase == CUMULATIVE:
            return list(snapshot)
        return [f for f in snapshot if f.tournament == phase]

    def find_fixture(self, fixture_id: str) -> Optional[Fixture]:
        for fixture in self.refresh():
            if fixture.id == fixture_id:
                return fixture
        return None

    # Standings

    def standings(self, phase: Optional[str] = None) -> List[TeamStats]:
        """Unranked records for a tournament."""
        return compute_standings(
            self.teams,
            self.fixtures(phase),
            self.predictions.snapshot(),
            self._fair_play,
        )

    def list_teams(self, view: View = View.PREDICTED, phase: Optional[str] = None) -> List[TeamStats]:
        """Ranked table for a tournament under the actual or predicted view."""
        return rank_teams(self.standings(phase), View(view))

    def get_team_stats(self, team_id: str, phase: Optional[str] = None) -> Optional[TeamStats]:
        team_id = team_id.lower()
        for stats in self.standings(phase):
            if stats.team_id == team_id:
                return stats
        return None

    def summary(self, phase: Optional[str] = None) -> LeagueSummary:
        return summarize(self.fixtures(phase), self.predictions.snapshot())

    # Rounds

    def get_matches_for_round(self, phase: Optional[str], round_number: int) -> List[RoundMatch]:
        predictions = self.predictions.snapshot()
        matches = []
        for fixture in self.fixtures(phase):
            if fixture.round != round_number:
                continue
            prediction = predictions.get(fixture.id) if accepts_prediction(fixture) else None
            matches.append(RoundMatch(fixture=fixture, prediction=prediction))
        return matches

    def current_round(self, phase: Optional[str] = None) -> int:
        self.refresh()
        return self.selection.current_round(phase)

    def total_rounds(self, phase: Optional[str] = None) -> int:
        self.refresh()
        return self.selection.total_rounds(phase)

    def set_current_round(self, phase: Optional[str], round_number: int) -> int:
        self.refresh()
        return self.selection.set_current_round(phase, round_number)

    def next_round(self, phase: Optional[str] = None) -> int:
        self.refresh()
        return self.selection.step_round(phase, 1)

    def previous_round(self, phase: Optional[str] = None) -> int:
        self.refresh()
        return self.selection.step_round(phase, -1)

    def clear_round_override(self, phase: Optional[str] = None) -> int:
        """Return a tournament to auto-detected round selection."""
        self.selection.clear_round_override(phase)
        self.selection.on_fixtures_changed(self._group_by_phase(self.refresh()))
        return self.selection.current_round(phase)

    def set_active_phase(self, phase: str):
        self.selection.set_active_phase(phase)

    @property
    def active_phase(self) -> str:
        self.refresh()
        return self.selection.active_phase

    # Predictions

    def set_prediction(self, fixture_id: str, home_goals: Optional[int], away_goals: Optional[int]) -> bool:
        """Store a prediction; a no-op returning False for locked or unknown fixtures."""
        return self.predictions.set(self.find_fixture(fixture_id), home_goals, away_goals)

    def clear_prediction(self, fixture_id: str) -> bool:
        return self.predictions.clear(fixture_id)

    def reset_predictions(self):
        self.predictions.reset()

    # Fair play

    def set_fair_play(self, team_id: str, value: int) -> int:
        """Set a team's discipline counter, clamped to >= 0."""
        team_id = team_id.lower()
        if team_id not in self._team_ids:
            raise ValueError(f"Unknown team: {team_id!r}")
        self._fair_play[team_id] = max(0, int(value))
        return self._fair_play[team_id]

    def fair_play(self) -> Mapping[str, int]:
        return dict(self._fair_play)

    def reset_fair_play(self):
        self._fair_play = {t.id: 0 for t in self.teams}
