"""Tests for folding fixtures and predictions into team records."""

import random

import pytest

from league.models import Prediction
from league.standings import compute_standings, summarize
from league.teams import TEAMS, get_team

from helpers import LIVE, NS, fx, result

UNI = get_team("uni")
ALI = get_team("ali")
CRI = get_team("cri")


def _by_id(stats):
    return {s.team_id: s for s in stats}


def test_win_and_draw_accumulate_actual_record():
    fixtures = [
        result("f1", "uni", "ali", 2, 0),
        result("f2", "cri", "uni", 1, 1, round_number=2),
    ]

    uni = _by_id(compute_standings(TEAMS, fixtures))["uni"].actual

    assert (uni.played, uni.won, uni.drawn, uni.lost) == (2, 1, 1, 0)
    assert (uni.goals_for, uni.goals_against) == (3, 1)
    assert uni.points == 4
    assert uni.goal_difference == 2


def test_away_side_sees_mirrored_score():
    stats = _by_id(compute_standings(TEAMS, [result("f1", "uni", "ali", 2, 0)]))

    ali = stats["ali"].actual
    assert (ali.played, ali.lost, ali.goals_for, ali.goals_against) == (1, 1, 0, 2)
    assert ali.points == 0


def test_live_fixture_with_score_counts_in_both_views():
    live = fx("f1", "uni", "ali", home_score=1, away_score=0, status=LIVE)

    uni = _by_id(compute_standings(TEAMS, [live]))["uni"]

    assert uni.actual.won == 1
    assert uni.predicted.won == 1


def test_live_fixture_without_score_contributes_nothing():
    live = fx("f1", "uni", "ali", status=LIVE)

    uni = _by_id(compute_standings(TEAMS, [live]))["uni"]

    assert uni.actual.played == 0
    assert uni.predicted.played == 0


def test_prediction_counts_in_predicted_view_only():
    fixtures = [fx("f1", "uni", "ali")]
    predictions = {"f1": Prediction(home=0, away=3)}

    stats = _by_id(compute_standings(TEAMS, fixtures, predictions))

    assert stats["uni"].actual.played == 0
    assert stats["uni"].predicted.lost == 1
    assert stats["ali"].predicted.won == 1
    assert stats["ali"].predicted.points == 3
    assert stats["ali"].predicted.goal_difference == 3


def test_incomplete_prediction_is_ignored():
    fixtures = [fx("f1", "uni", "ali")]
    predictions = {"f1": Prediction(home=2, away=None)}

    uni = _by_id(compute_standings(TEAMS, fixtures, predictions))["uni"]

    assert uni.predicted.played == 0


def test_prediction_on_locked_fixture_is_not_consulted():
    # Locked but still NS (kickoff reached before the first live update)
    fixtures = [fx("f1", "uni", "ali", status=NS, locked=True)]
    predictions = {"f1": Prediction(home=5, away=0)}

    uni = _by_id(compute_standings(TEAMS, fixtures, predictions))["uni"]

    assert uni.predicted.played == 0


def test_prediction_ignored_once_result_exists():
    fixtures = [result("f1", "uni", "ali", 0, 1)]
    predictions = {"f1": Prediction(home=3, away=0)}

    uni = _by_id(compute_standings(TEAMS, fixtures, predictions))["uni"]

    assert uni.predicted.lost == 1
    assert uni.predicted.won == 0


def test_fair_play_defaults_to_zero_and_is_carried():
    stats = _by_id(compute_standings(TEAMS, [], fair_play={"uni": 4}))

    assert stats["uni"].fair_play == 4
    assert stats["ali"].fair_play == 0


def test_fixtures_with_unknown_teams_only_credit_known_side():
    stats = _by_id(compute_standings([UNI, ALI], [result("f1", "uni", "zzz", 1, 0)]))

    assert stats["uni"].actual.won == 1
    assert set(stats) == {"uni", "ali"}


def _random_fixtures(rng, count):
    team_ids = [t.id for t in TEAMS]
    fixtures = []
    for i in range(count):
        home, away = rng.sample(team_ids, 2)
        kind = rng.choice(["ft", "live", "live_no_score", "ns"])
        if kind == "ft":
            fixtures.append(result(f"f{i}", home, away, rng.randint(0, 4), rng.randint(0, 4)))
        elif kind == "live":
            fixtures.append(fx(f"f{i}", home, away, home_score=rng.randint(0, 3),
                               away_score=rng.randint(0, 3), status=LIVE))
        elif kind == "live_no_score":
            fixtures.append(fx(f"f{i}", home, away, status=LIVE))
        else:
            fixtures.append(fx(f"f{i}", home, away))
    return fixtures


@pytest.mark.parametrize("seed", [1, 7, 42])
def test_played_total_is_twice_the_counted_results(seed):
    fixtures = _random_fixtures(random.Random(seed), 60)
    counted = len([f for f in fixtures if f.is_result])

    stats = compute_standings(TEAMS, fixtures)

    assert sum(s.actual.played for s in stats) == 2 * counted
    for s in stats:
        assert s.actual.played == s.actual.won + s.actual.drawn + s.actual.lost


@pytest.mark.parametrize("seed", [3, 11])
def test_points_formula_holds_in_both_views(seed):
    rng = random.Random(seed)
    fixtures = _random_fixtures(rng, 50)
    predictions = {
        f.id: Prediction(rng.randint(0, 3), rng.randint(0, 3))
        for f in fixtures if not f.is_locked
    }

    for s in compute_standings(TEAMS, fixtures, predictions):
        for block in (s.actual, s.predicted):
            assert block.points == block.won * 3 + block.drawn
            assert block.goal_difference == block.goals_for - block.goals_against


def test_fixture_order_does_not_change_totals():
    rng = random.Random(5)
    fixtures = _random_fixtures(rng, 40)
    shuffled = list(fixtures)
    rng.shuffle(shuffled)

    first = {s.team_id: s.actual.to_dict() for s in compute_standings(TEAMS, fixtures)}
    second = {s.team_id: s.actual.to_dict() for s in compute_standings(TEAMS, shuffled)}

    assert first == second


def test_summary_counts_results_and_predictions():
    fixtures = [
        result("f1", "uni", "ali", 2, 1, round_number=1),
        result("f2", "cri", "mel", 0, 0, round_number=1),
        fx("f3", "uni", "cri", round_number=2),
        fx("f4", "ali", "mel", round_number=3),
    ]
    predictions = {"f3": Prediction(1, 1), "f4": Prediction(None, 2)}

    summary = summarize(fixtures, predictions)

    assert summary.matches_played == 3
    assert summary.rounds_played == 2
    assert summary.total_goals == 5
    assert summary.average_goals == 2.5


def test_summary_of_nothing():
    summary = summarize([])

    assert summary.rounds_played == 0
    assert summary.average_goals == 0.0
