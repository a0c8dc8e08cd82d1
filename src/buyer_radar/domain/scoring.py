"""Domain scoring rules: fit, intent, recency and hot/warm/cold classification.

Usage example:
    from buyer_radar.domain.listings import Listing
    from buyer_radar.domain.preferences import resolve_preferences
    from buyer_radar.domain.scoring import Signals, score_listing

    listing = Listing(host="x.com", name="X", tiers=("A",), tags=("ecommerce",))
    prefs = resolve_preferences("buyer1", {"categories_allow": ["ecommerce"]})
    breakdown = score_listing(listing, prefs, Signals(ads_active=True, days_since_launch=3))
    assert breakdown.classification in {"hot", "warm", "cold"}
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal

from ..exceptions import ThresholdOrderError
from ..io_validation import (
    IncomingDataError,
    SignalsInput,
    as_bool,
    as_int,
    validate_as,
)
from .listings import Listing
from .normalisation import city_slug
from .preferences import EffectivePreferences

Classification = Literal["hot", "warm", "cold"]

FIT_WEIGHT = 0.60
INTENT_WEIGHT = 0.35
RECENCY_WEIGHT = 0.05

# Fit contributions
TAG_MATCH_BASE = 20
TAG_MATCH_PER_HIT = 8
TAG_MATCH_CAP = 45
SIZE_POINTS_PER_WEIGHT = 12
SIZE_POINTS_MIN = -12
SIZE_POINTS_MAX = 18
LOCAL_CITY_BONUS = 15
BLOCKED_CATEGORY_PENALTY = 30

# Intent contributions: channel tag -> bonus when the preference weight exceeds the floor
CHANNEL_BONUSES = {
    "ecommerce": 10,
    "retail": 8,
    "wholesale": 8,
}
CHANNEL_WEIGHT_FLOOR = 0.2
ADS_ACTIVE_BONUS = 20
MANY_CREATIVES_THRESHOLD = 4
MANY_CREATIVES_BONUS = 6
HIRING_BONUS = 10
STORE_GROWTH_BONUS = 6
MENTIONS_BONUS = 5

# Recency curve
UNKNOWN_DAYS = 9999
FRESH_DAYS = 7
STALE_DAYS = 180

DEFAULT_MAX_REASONS = 12


@dataclass(frozen=True)
class ThresholdTriple:
    """Minimum total and intent plus maximum days since the last relevant event."""

    min_total: float
    min_intent: float
    max_recent_days: float


@dataclass(frozen=True)
class ClassificationThresholds:
    """Hot and warm threshold triples, evaluated strictest first."""

    hot: ThresholdTriple
    warm: ThresholdTriple


DEFAULT_THRESHOLDS = ClassificationThresholds(
    hot=ThresholdTriple(min_total=72, min_intent=60, max_recent_days=21),
    warm=ThresholdTriple(min_total=55, min_intent=40, max_recent_days=90),
)


def validate_threshold_order(thresholds: ClassificationThresholds) -> ClassificationThresholds:
    """Require the hot triple to be at least as strict as the warm triple.

    Raises:
        ThresholdOrderError: Naming the first field that is looser for hot.
    """
    hot, warm = thresholds.hot, thresholds.warm
    if hot.min_total < warm.min_total:
        raise ThresholdOrderError("min_total")
    if hot.min_intent < warm.min_intent:
        raise ThresholdOrderError("min_intent")
    if hot.max_recent_days > warm.max_recent_days:
        raise ThresholdOrderError("max_recent_days")
    return thresholds


@dataclass(frozen=True)
class Signals:
    """Optional external intent indicators. Absent values are neutral."""

    ads_active: bool = False
    ads_creatives_30d: int = 0
    hiring_relevant: bool = False
    days_since_launch: int | None = None
    days_since_site_update: int | None = None
    store_count_delta_90d: int = 0
    inbound_mentions_30d: int = 0


NO_SIGNALS = Signals()


@dataclass(frozen=True)
class ScoreBreakdown:
    """Per-listing scoring result."""

    fit: int
    intent: int
    recency: int
    total: int
    recent_days: int
    classification: Classification
    reasons: tuple[str, ...]


def parse_signals(payload: object) -> Signals:
    """Read a sparse camelCase signals payload; unreadable fields are neutral."""
    if isinstance(payload, Signals):
        return payload
    try:
        data = validate_as(SignalsInput, payload if payload is not None else {})
    except IncomingDataError:
        return NO_SIGNALS
    return Signals(
        ads_active=as_bool(data.get("adsActive")) or False,
        ads_creatives_30d=as_int(data.get("adsCreatives30d")) or 0,
        hiring_relevant=as_bool(data.get("hiringRelevant")) or False,
        days_since_launch=as_int(data.get("daysSinceLaunch")),
        days_since_site_update=as_int(data.get("daysSinceSiteUpdate")),
        store_count_delta_90d=as_int(data.get("storeCountDelta90d")) or 0,
        inbound_mentions_30d=as_int(data.get("inboundMentions30d")) or 0,
    )


def merge_signals(base: Signals, patch: Mapping[str, object]) -> Signals:
    """Overlay the readable fields of a camelCase patch onto ``base``."""
    incoming = parse_signals(patch)
    overrides = {
        "adsActive": ("ads_active", incoming.ads_active),
        "adsCreatives30d": ("ads_creatives_30d", incoming.ads_creatives_30d),
        "hiringRelevant": ("hiring_relevant", incoming.hiring_relevant),
        "daysSinceLaunch": ("days_since_launch", incoming.days_since_launch),
        "daysSinceSiteUpdate": ("days_since_site_update", incoming.days_since_site_update),
        "storeCountDelta90d": ("store_count_delta_90d", incoming.store_count_delta_90d),
        "inboundMentions30d": ("inbound_mentions_30d", incoming.inbound_mentions_30d),
    }
    values = {attr: getattr(base, attr) for attr, _ in overrides.values()}
    for wire_name, (attr, value) in overrides.items():
        if wire_name in patch:
            values[attr] = value
    return Signals(**values)


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _meets(triple: ThresholdTriple, total: float, intent: float, recent_days: float) -> bool:
    return (
        total >= triple.min_total
        and intent >= triple.min_intent
        and recent_days <= triple.max_recent_days
    )


def _normalise_days(value: int | None) -> int:
    if value is None:
        return UNKNOWN_DAYS
    return max(0, value)


def days_to_recency(days: int) -> int:
    """Map days since an event to 0–100: ≤7 days → 100, ≥180 days → 0, linear between."""
    if days <= FRESH_DAYS:
        return 100
    if days >= STALE_DAYS:
        return 0
    span = STALE_DAYS - FRESH_DAYS
    return int(_clamp(_round_half_up(100 - ((days - FRESH_DAYS) / span) * 100), 0, 100))


def classify(
    total: float,
    intent: float,
    recent_days: float,
    thresholds: ClassificationThresholds = DEFAULT_THRESHOLDS,
) -> Classification:
    """Classify against the hot triple, then the warm triple, else cold."""
    if _meets(thresholds.hot, total, intent, recent_days):
        return "hot"
    if _meets(thresholds.warm, total, intent, recent_days):
        return "warm"
    return "cold"


def _score_fit(listing: Listing, prefs: EffectivePreferences, reasons: list[str]) -> int:
    fit = 0.0
    terms = frozenset(listing.affinity_terms)

    hits = sum(1 for want in prefs.categories_allow if want in terms)
    if hits:
        tag_points = int(_clamp(TAG_MATCH_BASE + hits * TAG_MATCH_PER_HIT, 0, TAG_MATCH_CAP))
        fit += tag_points
        plural = "es" if hits > 1 else ""
        reasons.append(f"fit: {hits} tag match{plural} (+{tag_points})")

    blocked = [term for term in prefs.categories_block if term in terms]
    if blocked:
        fit -= BLOCKED_CATEGORY_PENALTY
        reasons.append(f"fit: blocked category {blocked[0]} (-{BLOCKED_CATEGORY_PENALTY})")

    size_key = listing.size_key
    size_value = prefs.size_weight.for_bucket(size_key)
    if size_value != 0:
        raw_points = _round_half_up(size_value * SIZE_POINTS_PER_WEIGHT)
        size_points = int(_clamp(raw_points, SIZE_POINTS_MIN, SIZE_POINTS_MAX))
        fit += size_points
        sign = "+" if size_points >= 0 else ""
        reasons.append(f"fit: size({size_key}) {sign}{size_points}")

    city = city_slug(prefs.city or "")
    if city and city in listing.city_tags:
        fit += LOCAL_CITY_BONUS
        reasons.append(f"fit: local city match (+{LOCAL_CITY_BONUS})")

    return int(_clamp(fit, 0, 100))


def _score_intent(
    listing: Listing, prefs: EffectivePreferences, signals: Signals, reasons: list[str]
) -> int:
    intent = 0
    weights = prefs.signal_weight
    channel_weights = {
        "ecommerce": weights.ecommerce,
        "retail": weights.retail,
        "wholesale": weights.wholesale,
    }
    for channel, bonus in CHANNEL_BONUSES.items():
        if channel in listing.tags and channel_weights[channel] > CHANNEL_WEIGHT_FLOOR:
            intent += bonus
            reasons.append(f"intent: {channel} (+{bonus})")

    if signals.ads_active:
        intent += ADS_ACTIVE_BONUS
        reasons.append(f"intent: ads running (+{ADS_ACTIVE_BONUS})")
    if signals.ads_creatives_30d > MANY_CREATIVES_THRESHOLD:
        intent += MANY_CREATIVES_BONUS
        reasons.append(f"intent: many creatives (+{MANY_CREATIVES_BONUS})")
    if signals.hiring_relevant:
        intent += HIRING_BONUS
        reasons.append(f"intent: hiring in a relevant function (+{HIRING_BONUS})")
    if signals.store_count_delta_90d > 0:
        intent += STORE_GROWTH_BONUS
        reasons.append(f"intent: location growth (+{STORE_GROWTH_BONUS})")
    if signals.inbound_mentions_30d > 0:
        intent += MENTIONS_BONUS
        reasons.append(f"intent: recent mentions (+{MENTIONS_BONUS})")

    return int(_clamp(intent, 0, 100))


def score_listing(
    listing: Listing,
    prefs: EffectivePreferences,
    signals: Signals | Mapping[str, object] | None = None,
    *,
    thresholds: ClassificationThresholds = DEFAULT_THRESHOLDS,
    max_reasons: int = DEFAULT_MAX_REASONS,
) -> ScoreBreakdown:
    """Score one listing against resolved preferences and optional signals.

    Pure and deterministic: the result depends only on the arguments.
    """
    sig = parse_signals(signals)
    reasons: list[str] = []

    fit = _score_fit(listing, prefs, reasons)
    intent = _score_intent(listing, prefs, sig, reasons)

    recent_days = min(
        _normalise_days(sig.days_since_launch),
        _normalise_days(sig.days_since_site_update),
        UNKNOWN_DAYS,
    )
    recency = days_to_recency(recent_days)

    weighted = FIT_WEIGHT * fit + INTENT_WEIGHT * intent + RECENCY_WEIGHT * recency
    total = int(_clamp(_round_half_up(weighted), 0, 100))
    classification = classify(total, intent, recent_days, thresholds)
    if classification == "hot":
        reasons.append("label: HOT (fit+intent+fresh)")
    elif classification == "warm":
        reasons.append("label: warm (fit+intent)")

    return ScoreBreakdown(
        fit=fit,
        intent=intent,
        recency=recency,
        total=total,
        recent_days=recent_days,
        classification=classification,
        reasons=tuple(reasons[: max(0, max_reasons)]),
    )
