"""
Standings aggregation: fold fixtures and predictions into per-team records.

Pure functions over a complete snapshot; nothing is cached here.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from league.models import Fixture, FixtureStatus, Prediction, TeamStats
from league.teams import Team

logger = logging.getLogger(__name__)


def _predicted_score(
    fixture: Fixture,
    predictions: Mapping[str, Prediction],
) -> Optional[Tuple[int, int]]:
    # Locked fixtures stop consulting predictions even if they were never cleared
    if fixture.status != FixtureStatus.NOT_STARTED or fixture.is_locked:
        return None
    prediction = predictions.get(fixture.id)
    if prediction is None or not prediction.is_complete:
        return None
    return prediction.home, prediction.away


def compute_standings(
    teams: Sequence[Team],
    fixtures: Iterable[Fixture],
    predictions: Optional[Mapping[str, Prediction]] = None,
    fair_play: Optional[Mapping[str, int]] = None,
) -> List[TeamStats]:
    """
    Build actual and predicted records for every team.

    A live or finished fixture with both scores counts in both views. A
    not-started fixture with a complete prediction counts in the predicted
    view only. Anything else contributes nothing.

    Args:
        teams: Registry teams, in the order the result should keep
        fixtures: Fixtures of one tournament or several
        predictions: Predictions keyed by fixture id
        fair_play: Discipline counters keyed by team id (missing = 0)

    Returns:
        One TeamStats per team, unranked
    """
    predictions = predictions or {}
    fair_play = fair_play or {}

    stats: Dict[str, TeamStats] = {
        t.id: TeamStats(team=t, fair_play=int(fair_play.get(t.id, 0) or 0))
        for t in teams
    }

    for fixture in fixtures:
        home = stats.get(fixture.home_id)
        away = stats.get(fixture.away_id)
        if home is None and away is None:
            continue

        if fixture.is_result:
            home_goals, away_goals = fixture.home_score, fixture.away_score
            blocks = ("actual", "predicted")
        else:
            predicted = _predicted_score(fixture, predictions)
            if predicted is None:
                continue
            home_goals, away_goals = predicted
            blocks = ("predicted",)

        for name in blocks:
            if home is not None:
                getattr(home, name).record(home_goals, away_goals)
            if away is not None:
                getattr(away, name).record(away_goals, home_goals)

    return list(stats.values())


@dataclass(frozen=True)
class LeagueSummary:
    """Headline numbers shown above the table."""
    matches_played: int
    rounds_played: int
    total_goals: int
    average_goals: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "matches_played": self.matches_played,
            "rounds_played": self.rounds_played,
            "total_goals": self.total_goals,
            "average_goals": self.average_goals,
        }


def summarize(
    fixtures: Iterable[Fixture],
    predictions: Optional[Mapping[str, Prediction]] = None,
) -> LeagueSummary:
    """
    Goals and activity across results and complete predictions.

    average_goals is goals per round with any activity, 0.0 when none.
    """
    predictions = predictions or {}
    matches = 0
    goals = 0
    active_rounds = set()

    for fixture in fixtures:
        if fixture.is_result:
            score = (fixture.home_score, fixture.away_score)
        else:
            score = _predicted_score(fixture, predictions)
            if score is None:
                continue
        matches += 1
        goals += score[0] + score[1]
        active_rounds.add((fixture.tournament, fixture.round))

    rounds_played = len(active_rounds)
    average = round(goals / rounds_played, 2) if rounds_played else 0.0
    return LeagueSummary(
        matches_played=matches,
        rounds_played=rounds_played,
        total_goals=goals,
        average_goals=average,
    )
