"""
Core league data types: fixtures, predictions and derived team statistics.

Fixture rows arrive from the store as plain dicts (snake_case columns);
fixture_from_record() is the single place they are validated and turned
into immutable Fixture objects.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from league.teams import Team


CUMULATIVE = "cumulative"


class MalformedFixtureError(ValueError):
    """Raised when a store record cannot be turned into a Fixture."""
    pass


class FixtureStatus(str, Enum):
    """Match lifecycle status, using the store's codes."""
    NOT_STARTED = "NS"
    LIVE = "LIVE"
    FINISHED = "FT"


class View(str, Enum):
    """Which statistic block drives a table."""
    ACTUAL = "actual"
    PREDICTED = "predicted"


@dataclass(frozen=True)
class Fixture:
    """One scheduled or played match."""
    id: str
    round: int
    tournament: str
    home_id: str
    away_id: str
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    status: FixtureStatus = FixtureStatus.NOT_STARTED
    is_locked: bool = False
    kick_off: Optional[str] = None
    api_fixture_id: Optional[int] = None

    @property
    def has_score(self) -> bool:
        return self.home_score is not None and self.away_score is not None

    @property
    def is_result(self) -> bool:
        """Official result: live or finished with both scores present."""
        return self.status in (FixtureStatus.LIVE, FixtureStatus.FINISHED) and self.has_score

    @property
    def is_finished(self) -> bool:
        return self.status == FixtureStatus.FINISHED


@dataclass(frozen=True)
class Prediction:
    """A user's guessed scoreline for a not-started fixture."""
    home: Optional[int]
    away: Optional[int]

    @property
    def is_complete(self) -> bool:
        return self.home is not None and self.away is not None


@dataclass
class StatBlock:
    """Cumulative record for one team in one view."""
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0

    @property
    def points(self) -> int:
        return self.won * 3 + self.drawn

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    def record(self, scored: int, conceded: int):
        """Add one match to the block."""
        self.played += 1
        self.goals_for += scored
        self.goals_against += conceded
        if scored > conceded:
            self.won += 1
        elif scored < conceded:
            self.lost += 1
        else:
            self.drawn += 1

    def to_dict(self) -> Dict[str, int]:
        return {
            "played": self.played,
            "won": self.won,
            "drawn": self.drawn,
            "lost": self.lost,
            "goals_for": self.goals_for,
            "goals_against": self.goals_against,
            "points": self.points,
            "goal_difference": self.goal_difference,
        }


@dataclass
class TeamStats:
    """A team joined with its actual and predicted records."""
    team: Team
    actual: StatBlock = field(default_factory=StatBlock)
    predicted: StatBlock = field(default_factory=StatBlock)
    fair_play: int = 0

    @property
    def team_id(self) -> str:
        return self.team.id

    @property
    def name(self) -> str:
        return self.team.name

    def block(self, view: View) -> StatBlock:
        return self.predicted if View(view) == View.PREDICTED else self.actual

    def to_dict(self) -> Dict[str, Any]:
        return {
            "team_id": self.team.id,
            "name": self.team.name,
            "abbreviation": self.team.abbreviation,
            "primary_color": self.team.primary_color,
            "api_team_id": self.team.api_team_id,
            "fair_play": self.fair_play,
            "actual": self.actual.to_dict(),
            "predicted": self.predicted.to_dict(),
        }


_REQUIRED_FIELDS = ("id", "round", "home_id", "away_id", "status")


def _parse_int(value: Any, field_name: str, record_id: Any) -> Optional[int]:
    if value is None:
        return None
    # bool is an int subclass; a True score is a producer bug, not 1 goal
    if isinstance(value, bool):
        raise MalformedFixtureError(f"Fixture {record_id}: {field_name} is not an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise MalformedFixtureError(f"Fixture {record_id}: {field_name} is not an integer ({value!r})")


def fixture_from_record(
    record: Mapping[str, Any],
    default_tournament: Optional[str] = None,
) -> Fixture:
    """
    Build a Fixture from a store row.

    Args:
        record: Row with id, round, home_id, away_id, home_score, away_score,
            status, is_locked, kick_off, tournament (api_fixture_id optional)
        default_tournament: Tournament tag for legacy rows without one

    Returns:
        Fixture

    Raises:
        MalformedFixtureError: missing field, unknown code, or unparseable number
    """
    record_id = record.get("id")
    missing = [f for f in _REQUIRED_FIELDS if record.get(f) in (None, "")]
    if missing:
        raise MalformedFixtureError(f"Fixture {record_id}: missing {', '.join(missing)}")

    try:
        status = FixtureStatus(str(record["status"]).upper())
    except ValueError:
        raise MalformedFixtureError(f"Fixture {record_id}: unknown status {record['status']!r}") from None

    tournament = record.get("tournament") or default_tournament
    if not tournament:
        raise MalformedFixtureError(f"Fixture {record_id}: missing tournament")

    round_number = _parse_int(record["round"], "round", record_id)
    if round_number is None or round_number < 1:
        raise MalformedFixtureError(f"Fixture {record_id}: round must be a positive integer")

    is_locked = record.get("is_locked")
    if is_locked is None:
        is_locked = status != FixtureStatus.NOT_STARTED

    return Fixture(
        id=str(record_id),
        round=round_number,
        tournament=str(tournament).upper(),
        home_id=str(record["home_id"]).lower(),
        away_id=str(record["away_id"]).lower(),
        home_score=_parse_int(record.get("home_score"), "home_score", record_id),
        away_score=_parse_int(record.get("away_score"), "away_score", record_id),
        status=status,
        is_locked=bool(is_locked),
        kick_off=record.get("kick_off"),
        api_fixture_id=_parse_int(record.get("api_fixture_id"), "api_fixture_id", record_id),
    )


def fixture_to_record(fixture: Fixture) -> Dict[str, Any]:
    """Inverse of fixture_from_record, in store column names."""
    return {
        "id": fixture.id,
        "round": fixture.round,
        "tournament": fixture.tournament,
        "home_id": fixture.home_id,
        "away_id": fixture.away_id,
        "home_score": fixture.home_score,
        "away_score": fixture.away_score,
        "status": fixture.status.value,
        "is_locked": fixture.is_locked,
        "kick_off": fixture.kick_off,
        "api_fixture_id": fixture.api_fixture_id,
    }
