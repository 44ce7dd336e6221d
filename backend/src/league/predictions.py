"""
Client-side score predictions, keyed by fixture id.

Predictions are never persisted server-side. The mapping is replaced
whole on every change so readers holding the previous snapshot never see
a half-applied edit.
"""

import logging
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional

from league.models import Fixture, FixtureStatus, Prediction

logger = logging.getLogger(__name__)


def _check_goals(value: Optional[int], side: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{side} goals must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"{side} goals cannot be negative")
    return value


def accepts_prediction(fixture: Optional[Fixture]) -> bool:
    """A fixture takes predictions only while it is not started and unlocked."""
    return (
        fixture is not None
        and not fixture.is_locked
        and fixture.status == FixtureStatus.NOT_STARTED
    )


class PredictionStore:
    """Holds one session's predictions."""

    def __init__(self):
        self._predictions: Mapping[str, Prediction] = MappingProxyType({})
        self.version = 0

    def _replace(self, predictions: Dict[str, Prediction]):
        self._predictions = MappingProxyType(predictions)
        self.version += 1

    def set(self, fixture: Optional[Fixture], home: Optional[int], away: Optional[int]) -> bool:
        """
        Store a prediction for a fixture.

        Locked, started or unknown fixtures are a silent no-op: stale UI
        state routinely submits them. Goals are only validated for fixtures
        that accept predictions.

        Returns:
            True if the prediction was stored

        Raises:
            ValueError: negative or non-integer goals on an open fixture
        """
        if not accepts_prediction(fixture):
            logger.debug("Prediction ignored for locked or unknown fixture", extra={
                "fixture_id": fixture.id if fixture else None,
            })
            return False
        home = _check_goals(home, "home")
        away = _check_goals(away, "away")
        updated = dict(self._predictions)
        if home is None and away is None:
            updated.pop(fixture.id, None)
        else:
            updated[fixture.id] = Prediction(home=home, away=away)
        self._replace(updated)
        return True

    def clear(self, fixture_id: str) -> bool:
        if fixture_id not in self._predictions:
            return False
        updated = dict(self._predictions)
        del updated[fixture_id]
        self._replace(updated)
        return True

    def reset(self):
        """Discard every prediction."""
        if self._predictions:
            self._replace({})

    def get(self, fixture_id: str) -> Optional[Prediction]:
        return self._predictions.get(fixture_id)

    def snapshot(self) -> Mapping[str, Prediction]:
        return self._predictions

    def __len__(self) -> int:
        return len(self._predictions)

    def prune(self, fixtures: Iterable[Fixture]) -> int:
        """
        Drop predictions whose fixture no longer accepts them (went live or locked).

        Returns:
            Number of predictions dropped
        """
        by_id = {f.id: f for f in fixtures}
        stale = [
            fid for fid in self._predictions
            if fid in by_id and not accepts_prediction(by_id[fid])
        ]
        if stale:
            self._replace({k: v for k, v in self._predictions.items() if k not in stale})
            logger.info("Dropped predictions for locked fixtures", extra={"count": len(stale)})
        return len(stale)
