"""
Fixture merge: reconcile the bundled baseline schedule with store records.

Store records are authoritative. A baseline slot is matched to a store
record by (home, away, round), case-insensitive, falling back to the
record id; the store record then replaces the slot whole. Unmatched slots
become not-started, unlocked fixtures. Store records of the baseline
tournament that matched no slot are appended, and every other tournament
passes through unchanged.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from league.models import Fixture, FixtureStatus
from league.schedule import BaselineMatch, BaselineSchedule

logger = logging.getLogger(__name__)

# A merged fixture list can be fed back in as the baseline (merge is idempotent)
BaselineEntry = Union[BaselineMatch, Fixture]

SlotKey = Tuple[str, str, int]


def slot_key(home_id: str, away_id: str, round_number: int) -> SlotKey:
    return (home_id.strip().lower(), away_id.strip().lower(), int(round_number))


def _synthesize(entry: BaselineEntry, tournament: str) -> Fixture:
    return Fixture(
        id=entry.id,
        round=entry.round,
        tournament=tournament,
        home_id=entry.home_id.lower(),
        away_id=entry.away_id.lower(),
        status=FixtureStatus.NOT_STARTED,
        is_locked=False,
    )


def _baseline_entries(
    baseline: Union[BaselineSchedule, Sequence[BaselineEntry], None],
    tournament: str,
) -> List[BaselineEntry]:
    if baseline is None:
        return []
    if isinstance(baseline, BaselineSchedule):
        return baseline.all_matches()
    # Fixtures from another tournament are pass-through records, not baseline slots
    return [
        e for e in baseline
        if not isinstance(e, Fixture) or e.tournament == tournament
    ]


def merge_fixtures(
    baseline: Union[BaselineSchedule, Sequence[BaselineEntry], None],
    authoritative: Iterable[Fixture],
    baseline_tournament: str = "A",
) -> List[Fixture]:
    """
    Produce one de-duplicated fixture list covering every tournament.

    Args:
        baseline: Bundled schedule, or a previously merged list of fixtures
        authoritative: Store records, each tagged with its tournament
        baseline_tournament: Tournament the baseline describes

    Returns:
        Baseline tournament fixtures in baseline order followed by any extra
        store records of that tournament, then the other tournaments' records
        in store order
    """
    baseline_tournament = baseline_tournament.upper()
    records = list(authoritative)

    in_baseline_phase = [f for f in records if f.tournament == baseline_tournament]
    other_phases = [f for f in records if f.tournament != baseline_tournament]

    by_key: Dict[SlotKey, Fixture] = {}
    by_id: Dict[str, Fixture] = {}
    for record in in_baseline_phase:
        key = slot_key(record.home_id, record.away_id, record.round)
        by_key.setdefault(key, record)
        if record.id in by_id:
            logger.warning("Duplicate fixture id in store records", extra={
                "fixture_id": record.id,
                "tournament": baseline_tournament,
            })
            continue
        by_id[record.id] = record

    consumed: Set[int] = set()
    merged: List[Fixture] = []

    def _take(candidate: Optional[Fixture]) -> Optional[Fixture]:
        if candidate is None or id(candidate) in consumed:
            return None
        consumed.add(id(candidate))
        return candidate

    for entry in _baseline_entries(baseline, baseline_tournament):
        match = _take(by_key.get(slot_key(entry.home_id, entry.away_id, entry.round)))
        if match is None:
            match = _take(by_id.get(entry.id))
        merged.append(match if match is not None else _synthesize(entry, baseline_tournament))

    extras = [f for f in in_baseline_phase if id(f) not in consumed]
    if extras:
        logger.debug("Store fixtures outside the baseline schedule", extra={
            "count": len(extras),
            "tournament": baseline_tournament,
        })

    return merged + extras + other_phases
