"""Domain modules for the radar: pure rules, no clocks or shared state."""

from .listings import Listing
from .preferences import EffectivePreferences, resolve_preferences
from .scoring import ScoreBreakdown, Signals, score_listing

__all__ = [
    "EffectivePreferences",
    "Listing",
    "ScoreBreakdown",
    "Signals",
    "resolve_preferences",
    "score_listing",
]
