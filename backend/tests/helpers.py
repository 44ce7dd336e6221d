"""Builders shared by the test modules."""

from league.models import Fixture, FixtureStatus

NS = FixtureStatus.NOT_STARTED
LIVE = FixtureStatus.LIVE
FT = FixtureStatus.FINISHED


def fx(fixture_id, home, away, round_number=1, home_score=None, away_score=None,
       status=NS, tournament="A", locked=None):
    """Fixture with the lock flag derived from status unless given."""
    if locked is None:
        locked = status != NS
    return Fixture(
        id=fixture_id,
        round=round_number,
        tournament=tournament,
        home_id=home,
        away_id=away,
        home_score=home_score,
        away_score=away_score,
        status=status,
        is_locked=locked,
    )


def result(fixture_id, home, away, home_score, away_score, round_number=1, tournament="A"):
    return fx(fixture_id, home, away, round_number, home_score, away_score, FT, tournament)


def record(fixture_id, home, away, round_number=1, home_score=None, away_score=None,
           status="NS", tournament="A", is_locked=None):
    """Store row as it comes from the fixtures table."""
    if is_locked is None:
        is_locked = status != "NS"
    return {
        "id": fixture_id,
        "round": round_number,
        "home_id": home,
        "away_id": away,
        "home_score": home_score,
        "away_score": away_score,
        "status": status,
        "is_locked": is_locked,
        "kick_off": None,
        "tournament": tournament,
    }
