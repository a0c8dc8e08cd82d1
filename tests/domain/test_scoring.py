"""Tests for domain scoring logic."""

import pytest

from buyer_radar.domain.listings import Listing
from buyer_radar.domain.preferences import (
    EffectivePreferences,
    merge_raw_preferences,
    resolve_preferences,
)
from buyer_radar.domain.scoring import (
    DEFAULT_THRESHOLDS,
    NO_SIGNALS,
    ClassificationThresholds,
    Signals,
    ThresholdTriple,
    classify,
    days_to_recency,
    merge_signals,
    parse_signals,
    score_listing,
    validate_threshold_order,
)
from buyer_radar.exceptions import ThresholdOrderError


def _prefs(**patch: object) -> EffectivePreferences:
    return resolve_preferences("buyer1", merge_raw_preferences({}, patch))


def _hot_listing() -> Listing:
    return Listing(
        host="hot.com",
        name="Hot",
        tags=("ecommerce", "retail", "pouch"),
        segments=("coffee", "labels"),
        city_tags=("austin",),
        size="micro",
    )


def _hot_signals() -> Signals:
    return Signals(
        ads_active=True,
        ads_creatives_30d=5,
        hiring_relevant=True,
        days_since_launch=3,
        store_count_delta_90d=2,
        inbound_mentions_30d=1,
    )


def test_tag_match_and_tier_size_contribute_to_fit() -> None:
    listing = Listing(host="x.com", name="X", tiers=("A",), tags=("ecommerce",))
    prefs = _prefs(categoriesAllow=["ecommerce"], city="austin")

    breakdown = score_listing(listing, prefs)

    assert breakdown.fit == 16
    assert breakdown.intent == 10
    assert breakdown.recency == 0
    assert breakdown.recent_days == 9999
    assert breakdown.total == 13
    assert breakdown.classification == "cold"
    assert breakdown.reasons == (
        "fit: 1 tag match (+28)",
        "fit: size(large) -12",
        "intent: ecommerce (+10)",
    )


def test_city_match_adds_locality_bonus() -> None:
    listing = Listing(host="y.com", name="Y", tiers=("C",), city_tags=("austin",))
    prefs = _prefs(categoriesAllow=["ecommerce"], city="Austin")

    breakdown = score_listing(listing, prefs)

    assert breakdown.fit == 27
    assert "fit: local city match (+15)" in breakdown.reasons


def test_unknown_size_contributes_nothing() -> None:
    listing = Listing(host="z.com", name="Z")

    breakdown = score_listing(listing, _prefs())

    assert breakdown.fit == 0
    assert breakdown.reasons == ()


def test_blocked_category_penalises_fit() -> None:
    listing = Listing(host="b.com", name="B", tags=("pouch", "vape"), size="small")
    prefs = _prefs(categoriesAllow=["pouch"], categoriesBlock=["vape"])

    breakdown = score_listing(listing, prefs)

    # 28 tag points + 12 size points - 30 block penalty
    assert breakdown.fit == 10
    assert "fit: blocked category vape (-30)" in breakdown.reasons


def test_fit_never_goes_negative() -> None:
    listing = Listing(host="b.com", name="B", tags=("vape",), size="large")

    breakdown = score_listing(listing, _prefs(categoriesBlock=["vape"]))

    assert breakdown.fit == 0


def test_full_signal_stack_classifies_hot() -> None:
    prefs = _prefs(
        categoriesAllow=["ecommerce", "retail", "pouch", "coffee", "labels"],
        city="austin",
        signalWeight={"retail": 0.5},
    )

    breakdown = score_listing(_hot_listing(), prefs, _hot_signals())

    assert breakdown.fit == 74
    assert breakdown.intent == 65
    assert breakdown.recency == 100
    assert breakdown.total == 72
    assert breakdown.classification == "hot"
    assert breakdown.reasons[-1] == "label: HOT (fit+intent+fresh)"


def test_channel_hint_requires_weight_above_floor() -> None:
    listing = Listing(host="r.com", name="R", tags=("retail", "wholesale"))

    assert score_listing(listing, _prefs()).intent == 0
    boosted = _prefs(signalWeight={"retail": 0.3, "wholesale": 0.9})
    assert score_listing(listing, boosted).intent == 16


def test_scoring_is_deterministic() -> None:
    prefs = _prefs(categoriesAllow=["pouch"], city="austin")
    signals = {"adsActive": True, "daysSinceSiteUpdate": 30}

    first = score_listing(_hot_listing(), prefs, signals)
    second = score_listing(_hot_listing(), prefs, signals)

    assert first == second


def test_reasons_are_capped() -> None:
    prefs = _prefs(categoriesAllow=["pouch"], city="austin")

    breakdown = score_listing(_hot_listing(), prefs, _hot_signals(), max_reasons=2)

    assert len(breakdown.reasons) == 2


def test_thresholds_are_read_from_the_argument() -> None:
    lenient = ClassificationThresholds(
        hot=ThresholdTriple(min_total=0, min_intent=0, max_recent_days=10_000),
        warm=ThresholdTriple(min_total=0, min_intent=0, max_recent_days=10_000),
    )

    breakdown = score_listing(Listing(host="z.com", name="Z"), _prefs(), thresholds=lenient)

    assert breakdown.classification == "hot"


@pytest.mark.parametrize(
    ("total", "intent", "days", "expected"),
    [
        (72, 60, 21, "hot"),
        (71, 60, 21, "warm"),
        (72, 59, 21, "warm"),
        (72, 60, 22, "warm"),
        (55, 40, 90, "warm"),
        (54, 40, 90, "cold"),
        (90, 90, 91, "cold"),
    ],
)
def test_classification_boundaries(total: int, intent: int, days: int, expected: str) -> None:
    assert classify(total, intent, days, DEFAULT_THRESHOLDS) == expected


@pytest.mark.parametrize(
    ("days", "expected"),
    [(0, 100), (7, 100), (8, 99), (93, 50), (179, 1), (180, 0), (9999, 0)],
)
def test_days_to_recency_curve(days: int, expected: int) -> None:
    assert days_to_recency(days) == expected


def test_parse_signals_tolerates_loose_payloads() -> None:
    parsed = parse_signals(
        {
            "adsActive": "yes",
            "adsCreatives30d": "7.9",
            "hiringRelevant": [1],
            "daysSinceLaunch": -3,
            "unknown": 1,
        }
    )

    assert parsed.ads_active is True
    assert parsed.ads_creatives_30d == 7
    assert parsed.hiring_relevant is False
    assert parsed.days_since_launch == -3
    assert parse_signals("garbage") == NO_SIGNALS
    assert parse_signals(None) == NO_SIGNALS


def test_negative_days_count_as_fresh() -> None:
    breakdown = score_listing(Listing(host="z.com", name="Z"), _prefs(), {"daysSinceLaunch": -3})

    assert breakdown.recent_days == 0
    assert breakdown.recency == 100


def test_merge_signals_overrides_only_present_keys() -> None:
    base = Signals(ads_active=True, inbound_mentions_30d=4)

    merged = merge_signals(base, {"hiringRelevant": True, "daysSinceLaunch": 10})

    assert merged == Signals(
        ads_active=True,
        hiring_relevant=True,
        days_since_launch=10,
        inbound_mentions_30d=4,
    )


def test_validate_threshold_order() -> None:
    assert validate_threshold_order(DEFAULT_THRESHOLDS) is DEFAULT_THRESHOLDS
    loose_hot = ClassificationThresholds(
        hot=ThresholdTriple(min_total=72, min_intent=30, max_recent_days=21),
        warm=DEFAULT_THRESHOLDS.warm,
    )

    with pytest.raises(ThresholdOrderError) as exc_info:
        validate_threshold_order(loose_hot)
    assert exc_info.value.field_name == "min_intent"
