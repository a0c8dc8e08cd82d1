"""Runtime-adjustable classification thresholds and the scoring entry point."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import replace
from typing import Protocol

from ..domain.listings import Listing
from ..domain.preferences import EffectivePreferences
from ..domain.scoring import (
    DEFAULT_MAX_REASONS,
    DEFAULT_THRESHOLDS,
    ClassificationThresholds,
    ScoreBreakdown,
    Signals,
    ThresholdTriple,
    score_listing,
    validate_threshold_order,
)
from ..observability.logging import get_logger

logger = get_logger("buyer_radar.scoring")


class ThresholdProvider(Protocol):
    """Anything that can report the thresholds in force right now."""

    def current(self) -> ClassificationThresholds: ...


class ThresholdSettings(ThresholdProvider):
    """Process-wide thresholds that operators may change without a restart."""

    def __init__(self, thresholds: ClassificationThresholds = DEFAULT_THRESHOLDS) -> None:
        self._thresholds = validate_threshold_order(thresholds)
        self._lock = threading.Lock()

    def current(self) -> ClassificationThresholds:
        return self._thresholds

    def update(
        self,
        *,
        hot: Mapping[str, float] | ThresholdTriple | None = None,
        warm: Mapping[str, float] | ThresholdTriple | None = None,
    ) -> ClassificationThresholds:
        """Apply partial changes to either triple.

        Mappings may name any of ``min_total``, ``min_intent`` and
        ``max_recent_days``; unnamed fields keep their current value.

        Raises:
            ThresholdOrderError: The result would make hot looser than warm. The
                current thresholds are left unchanged.
        """
        with self._lock:
            current = self._thresholds
            updated = validate_threshold_order(
                ClassificationThresholds(
                    hot=_apply(current.hot, hot),
                    warm=_apply(current.warm, warm),
                )
            )
            self._thresholds = updated
        logger.info("Classification thresholds updated: %s", updated)
        return updated


def _apply(
    triple: ThresholdTriple, change: Mapping[str, float] | ThresholdTriple | None
) -> ThresholdTriple:
    if change is None:
        return triple
    if isinstance(change, ThresholdTriple):
        return change
    known = {
        name: float(value)
        for name, value in change.items()
        if name in {"min_total", "min_intent", "max_recent_days"}
    }
    return replace(triple, **known)


class ScoringService:
    """Scores listings using whatever thresholds are in force at call time."""

    def __init__(
        self,
        thresholds: ThresholdProvider | None = None,
        *,
        max_reasons: int = DEFAULT_MAX_REASONS,
    ) -> None:
        self._thresholds = thresholds or ThresholdSettings()
        self._max_reasons = max_reasons

    def score(
        self,
        listing: Listing,
        prefs: EffectivePreferences,
        signals: Signals | Mapping[str, object] | None = None,
    ) -> ScoreBreakdown:
        return score_listing(
            listing,
            prefs,
            signals,
            thresholds=self._thresholds.current(),
            max_reasons=self._max_reasons,
        )
