"""
Round and tournament selection.

Each tournament keeps its own round pointer, auto-detected from fixture
completion until the user navigates; a manual choice then sticks for the
rest of the session. The cumulative view has no pointer of its own and
follows whichever tournament is in play.
"""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from league.models import CUMULATIVE, Fixture, FixtureStatus

logger = logging.getLogger(__name__)

DEFAULT_TOTAL_ROUNDS = 17


def rounds_of(fixtures: Iterable[Fixture]) -> List[int]:
    return sorted({f.round for f in fixtures})


def total_rounds(fixtures: Iterable[Fixture], default: int = DEFAULT_TOTAL_ROUNDS) -> int:
    rounds = rounds_of(fixtures)
    return rounds[-1] if rounds else default


def detect_current_round(fixtures: Sequence[Fixture]) -> int:
    """
    First round holding a fixture that is not finished; the last round
    when every round is finished; 1 when there are no fixtures.
    """
    rounds = rounds_of(fixtures)
    if not rounds:
        return 1
    unfinished = {f.round for f in fixtures if f.status != FixtureStatus.FINISHED}
    for round_number in rounds:
        if round_number in unfinished:
            return round_number
    return rounds[-1]


def is_tournament_finished(fixtures: Sequence[Fixture]) -> bool:
    """Every fixture finished. An empty tournament has not finished."""
    return bool(fixtures) and all(f.status == FixtureStatus.FINISHED for f in fixtures)


def has_started(fixtures: Iterable[Fixture]) -> bool:
    return any(f.status in (FixtureStatus.LIVE, FixtureStatus.FINISHED) for f in fixtures)


def should_switch_to_second(first: Sequence[Fixture], second: Sequence[Fixture]) -> bool:
    """
    Whether the active tournament should move from the first to the second.

    Eligible once the first is over or the second is under way, but only
    switches when the first is over and the second is still being played.
    """
    first_done = is_tournament_finished(first)
    eligible = first_done or has_started(second)
    return eligible and first_done and not is_tournament_finished(second)


class SelectionState:
    """Active tournament plus one round pointer per tournament."""

    def __init__(self, first: str = "A", second: str = "C"):
        self.first = first.upper()
        self.second = second.upper()
        self.active_phase: str = self.first
        self._rounds: Dict[str, int] = {self.first: 1, self.second: 1}
        self._totals: Dict[str, int] = {
            self.first: DEFAULT_TOTAL_ROUNDS,
            self.second: DEFAULT_TOTAL_ROUNDS,
        }
        self._manual_round: Dict[str, bool] = {self.first: False, self.second: False}
        self._phase_chosen = False
        self._second_in_play = False

    @property
    def phases(self) -> List[str]:
        return [self.first, self.second, CUMULATIVE]

    def normalize_phase(self, phase: Optional[str]) -> str:
        if phase is None:
            return self.active_phase
        value = phase.strip()
        if value.lower() == CUMULATIVE:
            return CUMULATIVE
        value = value.upper()
        if value not in (self.first, self.second):
            raise ValueError(f"Unknown tournament phase: {phase!r}")
        return value

    def phase_in_play(self) -> str:
        """Tournament the cumulative view follows for its round pointer."""
        return self.second if self._second_in_play else self.first

    def _pointer_phase(self, phase: Optional[str]) -> str:
        phase = self.normalize_phase(phase)
        return self.phase_in_play() if phase == CUMULATIVE else phase

    def on_fixtures_changed(self, fixtures_by_phase: Mapping[str, Sequence[Fixture]]):
        """Re-run auto-detection after the fixture list changed."""
        first = list(fixtures_by_phase.get(self.first, []))
        second = list(fixtures_by_phase.get(self.second, []))

        for phase, fixtures in ((self.first, first), (self.second, second)):
            self._totals[phase] = total_rounds(fixtures)
            if not self._manual_round[phase]:
                self._rounds[phase] = detect_current_round(fixtures)

        self._second_in_play = is_tournament_finished(first) or has_started(second)

        if (
            not self._phase_chosen
            and self.active_phase == self.first
            and should_switch_to_second(first, second)
        ):
            logger.info("First tournament finished, switching to second", extra={
                "from_phase": self.first,
                "to_phase": self.second,
            })
            self.active_phase = self.second

    def set_active_phase(self, phase: str):
        self.active_phase = self.normalize_phase(phase)
        self._phase_chosen = True

    def current_round(self, phase: Optional[str] = None) -> int:
        return self._rounds[self._pointer_phase(phase)]

    def total_rounds(self, phase: Optional[str] = None) -> int:
        phase = self.normalize_phase(phase)
        if phase == CUMULATIVE:
            return max(self._totals.values())
        return self._totals[phase]

    def set_current_round(self, phase: Optional[str], round_number: int) -> int:
        """
        Manually select a round; clamped to 1..total rounds.

        Returns:
            The round actually selected
        """
        target = self._pointer_phase(phase)
        clamped = max(1, min(int(round_number), self._totals[target]))
        self._rounds[target] = clamped
        self._manual_round[target] = True
        return clamped

    def step_round(self, phase: Optional[str], delta: int) -> int:
        return self.set_current_round(phase, self.current_round(phase) + delta)

    def clear_round_override(self, phase: Optional[str] = None):
        """Hand a tournament's round pointer back to auto-detection (applies on next change)."""
        self._manual_round[self._pointer_phase(phase)] = False

    def is_manual(self, phase: Optional[str] = None) -> bool:
        return self._manual_round[self._pointer_phase(phase)]

    def to_dict(self) -> Dict[str, object]:
        return {
            "active_phase": self.active_phase,
            "phase_in_play": self.phase_in_play(),
            "rounds": {
                phase: {
                    "current": self._rounds[phase],
                    "total": self._totals[phase],
                    "manual": self._manual_round[phase],
                }
                for phase in (self.first, self.second)
            },
        }
