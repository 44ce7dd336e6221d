"""
Bundled baseline schedule for the first tournament.

The schedule ships with the package (league/data/schedule.json) and is
treated as build-time configuration: it lists every round and pairing,
with an initial played/pending status, but may be stale compared with the
store.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

DEFAULT_SCHEDULE_PATH = Path(__file__).resolve().parent / "data" / "schedule.json"


@dataclass(frozen=True)
class BaselineMatch:
    """One pairing from the bundled schedule."""
    id: str
    round: int
    home_id: str
    away_id: str
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    played: bool = False


@dataclass(frozen=True)
class BaselineRound:
    round: int
    matches: List[BaselineMatch]


@dataclass(frozen=True)
class BaselineSchedule:
    tournament: str
    rounds: List[BaselineRound]

    def all_matches(self) -> List[BaselineMatch]:
        return [m for r in self.rounds for m in r.matches]


def parse_baseline(document: Dict[str, Any], tournament: Optional[str] = None) -> BaselineSchedule:
    """
    Parse a schedule document.

    Args:
        document: {"tournament": "A", "matches": [{"round": n, "matches": [...]}]}
        tournament: Overrides the document's tournament tag

    Returns:
        BaselineSchedule with rounds sorted ascending
    """
    tag = (tournament or document.get("tournament") or "A").upper()
    rounds: List[BaselineRound] = []
    for round_doc in document.get("matches", []):
        round_number = int(round_doc["round"])
        matches = [
            BaselineMatch(
                id=str(m["id"]),
                round=round_number,
                home_id=str(m["homeId"]).lower(),
                away_id=str(m["awayId"]).lower(),
                home_score=m.get("homeScore"),
                away_score=m.get("awayScore"),
                played=m.get("status") == "played",
            )
            for m in round_doc.get("matches", [])
        ]
        rounds.append(BaselineRound(round=round_number, matches=matches))
    rounds.sort(key=lambda r: r.round)
    return BaselineSchedule(tournament=tag, rounds=rounds)


def load_baseline(
    path: Optional[Union[str, Path]] = None,
    tournament: Optional[str] = None,
) -> BaselineSchedule:
    """Load the bundled schedule (or another file with the same shape)."""
    schedule_path = Path(path) if path else DEFAULT_SCHEDULE_PATH
    with schedule_path.open(encoding="utf-8") as f:
        return parse_baseline(json.load(f), tournament=tournament)


def seed_records(schedule: BaselineSchedule) -> List[Dict[str, Any]]:
    """
    Store rows for every baseline match.

    Played matches with both scores become finished and locked; everything
    else is stored not started.
    """
    records = []
    for match in schedule.all_matches():
        played = match.played and match.home_score is not None and match.away_score is not None
        records.append({
            "id": match.id,
            "round": match.round,
            "tournament": schedule.tournament,
            "home_id": match.home_id,
            "away_id": match.away_id,
            "home_score": match.home_score if played else None,
            "away_score": match.away_score if played else None,
            "status": "FT" if played else "NS",
            "is_locked": played,
        })
    return records
