"""
Ranking: total order of team records for one view.

Order: points, goal difference, goals scored (all descending), fair-play
counter (ascending, fewer sanctions first), then team name.
"""

import unicodedata
from typing import Iterable, List, Tuple

from league.models import TeamStats, View


def name_collation_key(name: str) -> Tuple[str, str, str]:
    """
    Locale-aware sort key for a team name.

    Accents and case are ignored first ("Héroes" sorts with "Heroes"),
    then used to break remaining ties so the order stays total.
    """
    decomposed = unicodedata.normalize("NFKD", name)
    base = "".join(c for c in decomposed if not unicodedata.combining(c))
    return (base.casefold(), name.casefold(), name)


def ranking_key(stats: TeamStats, view: View = View.PREDICTED):
    block = stats.block(view)
    return (
        -block.points,
        -block.goal_difference,
        -block.goals_for,
        stats.fair_play,
        name_collation_key(stats.name),
        # Final tiebreak for duplicate names
        stats.team_id,
    )


def rank_teams(stats: Iterable[TeamStats], view: View = View.PREDICTED) -> List[TeamStats]:
    """Sort team records; input order never affects the result."""
    view = View(view)
    return sorted(stats, key=lambda s: ranking_key(s, view))


def positions(stats: Iterable[TeamStats], view: View = View.PREDICTED) -> List[Tuple[int, TeamStats]]:
    """Ranked records with their 1-based table position."""
    return list(enumerate(rank_teams(stats, view), start=1))
