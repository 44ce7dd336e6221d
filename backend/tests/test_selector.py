"""Tests for round auto-detection and tournament switching."""

import pytest

from league.models import CUMULATIVE
from league.selector import (
    SelectionState,
    detect_current_round,
    is_tournament_finished,
    should_switch_to_second,
)

from helpers import LIVE, fx, result


def _finished_rounds(rounds, tournament="A"):
    return [
        result(f"{tournament}{r}-{i}", "uni", "ali", 1, 0, round_number=r, tournament=tournament)
        for r in rounds for i in range(2)
    ]


def test_first_round_with_pending_fixture_is_current():
    fixtures = _finished_rounds([1, 2]) + [fx("r3-1", "uni", "cri", round_number=3)]

    assert detect_current_round(fixtures) == 3


def test_live_fixture_keeps_its_round_current():
    fixtures = _finished_rounds([1]) + [fx("r2-1", "uni", "cri", round_number=2, status=LIVE)]

    assert detect_current_round(fixtures) == 2


def test_no_fixtures_means_round_one():
    assert detect_current_round([]) == 1


def test_all_finished_selects_last_round():
    assert detect_current_round(_finished_rounds([1, 2, 3])) == 3


def test_empty_tournament_is_not_finished():
    assert not is_tournament_finished([])
    assert is_tournament_finished(_finished_rounds([1]))


def test_switch_needs_first_finished_and_second_unfinished():
    first_done = _finished_rounds([1])
    second_pending = [fx("c1", "uni", "ali", tournament="C")]

    assert should_switch_to_second(first_done, second_pending)
    assert not should_switch_to_second(first_done, _finished_rounds([1], "C"))
    assert not should_switch_to_second(
        [fx("a1", "uni", "ali")],
        [fx("c1", "uni", "ali", tournament="C", status=LIVE)],
    )


def _changed(state, first, second=()):
    state.on_fixtures_changed({"A": list(first), "C": list(second)})


def test_state_switches_to_second_when_first_finishes():
    state = SelectionState("A", "C")
    _changed(state, _finished_rounds([1, 2]), [fx("c1", "uni", "ali", tournament="C")])

    assert state.active_phase == "C"


def test_user_choice_suppresses_auto_switch():
    state = SelectionState("A", "C")
    state.set_active_phase("a")
    _changed(state, _finished_rounds([1, 2]), [fx("c1", "uni", "ali", tournament="C")])

    assert state.active_phase == "A"


def test_manual_round_survives_fixture_changes():
    state = SelectionState()
    pending = _finished_rounds([1]) + [fx("r2", "uni", "cri", round_number=2),
                                       fx("r3", "uni", "mel", round_number=3)]
    _changed(state, pending)
    assert state.current_round("A") == 2

    assert state.set_current_round("A", 3) == 3
    _changed(state, _finished_rounds([1, 2]) + [fx("r3", "uni", "mel", round_number=3)])

    assert state.current_round("A") == 3
    assert state.is_manual("A")


def test_clearing_override_returns_to_detection():
    state = SelectionState()
    fixtures = _finished_rounds([1]) + [fx("r2", "uni", "cri", round_number=2),
                                        fx("r3", "uni", "mel", round_number=3)]
    _changed(state, fixtures)
    state.set_current_round("A", 3)

    state.clear_round_override("A")
    _changed(state, fixtures)

    assert state.current_round("A") == 2
    assert not state.is_manual("A")


def test_manual_round_is_clamped_to_schedule():
    state = SelectionState()
    _changed(state, _finished_rounds([1, 2, 3]))

    assert state.set_current_round("A", 99) == 3
    assert state.set_current_round("A", 0) == 1
    assert state.step_round("A", -1) == 1


def test_cumulative_follows_phase_in_play():
    state = SelectionState()
    first = _finished_rounds([1, 2])
    second = _finished_rounds([1], "C") + [fx("c2", "uni", "cri", round_number=2, tournament="C")]
    _changed(state, first, second)

    assert state.phase_in_play() == "C"
    assert state.current_round(CUMULATIVE) == state.current_round("C") == 2


def test_phase_names_are_normalised():
    state = SelectionState()

    assert state.normalize_phase(None) == "A"
    assert state.normalize_phase("c") == "C"
    assert state.normalize_phase(" Cumulative ") == CUMULATIVE
    with pytest.raises(ValueError):
        state.normalize_phase("B")
