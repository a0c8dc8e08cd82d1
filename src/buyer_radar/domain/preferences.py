"""Preference resolution: sparse stored overrides to complete, bounded values.

Stored preference state is a plain JSON-like mapping of overrides. It is only
ever turned into ``EffectivePreferences`` by ``resolve_preferences``, which
clamps every number and decodes legacy prefixed tags on each call, so corrupt
stored state heals on the next read.

Usage example:
    from buyer_radar.domain.preferences import merge_raw_preferences, resolve_preferences

    raw = merge_raw_preferences({}, {"categoriesAllow": ["Pouch", "mat:Kraft"]})
    prefs = resolve_preferences("acme.com", raw)
    assert prefs.categories_allow == ("pouch", "mat:kraft")
    assert prefs.materials_allow == ("kraft",)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from ..io_validation import as_bool, as_float, as_mapping, as_str, as_str_list
from .listings import SIZE_BUCKETS, Tier
from .normalisation import normalise_host, normalise_term, normalise_terms, normalise_tiers

SignalChannel = Literal["local", "ecommerce", "retail", "wholesale"]
SIGNAL_CHANNELS: tuple[SignalChannel, ...] = ("local", "ecommerce", "retail", "wholesale")

SIZE_WEIGHT_BOUNDS = (-3.0, 3.0)
SIGNAL_WEIGHT_BOUNDS: dict[SignalChannel, tuple[float, float]] = {
    "local": (-3.0, 3.0),
    "ecommerce": (-1.0, 1.0),
    "retail": (-1.0, 1.0),
    "wholesale": (-1.0, 1.0),
}
RADIUS_KM_BOUNDS = (1.0, 500.0)
MAX_WARM_BOUNDS = (0, 50)
MAX_HOT_BOUNDS = (0, 5)

DEFAULT_RADIUS_KM = 50.0
DEFAULT_MAX_WARM = 5
DEFAULT_MAX_HOT = 1

# List-valued fields and their caps
LIST_FIELD_CAPS: dict[str, int] = {
    "tier_focus": 200,
    "categories_allow": 400,
    "categories_block": 400,
    "prefer_titles": 200,
    "materials_allow": 200,
    "materials_block": 200,
    "certs_required": 200,
    "exclude_hosts": 200,
    "keywords_add": 200,
    "keywords_avoid": 200,
}
WEIGHT_FIELDS = ("size_weight", "signal_weight")
SCALAR_FIELDS = ("city", "radius_km", "prefer_small_organizations", "max_warm", "max_hot")

# (tag list, prefix) -> structured field the prefixed value folds into
LEGACY_TAG_FIELDS: dict[tuple[str, str], str] = {
    ("categories_allow", "title"): "prefer_titles",
    ("categories_allow", "mat"): "materials_allow",
    ("categories_allow", "cert"): "certs_required",
    ("categories_allow", "kw"): "keywords_add",
    ("categories_block", "mat"): "materials_block",
    ("categories_block", "kw"): "keywords_avoid",
    ("categories_block", "host"): "exclude_hosts",
}

# Wire names accepted in a patch, mapped to stored field names
PATCH_ALIASES: dict[str, str] = {
    "radius": "radius_km",
    "radiusKm": "radius_km",
    "preferSmallOrganizations": "prefer_small_organizations",
    "preferSmallMid": "prefer_small_organizations",
    "sizeWeight": "size_weight",
    "tierFocus": "tier_focus",
    "categoriesAllow": "categories_allow",
    "categoriesBlock": "categories_block",
    "signalWeight": "signal_weight",
    "preferTitles": "prefer_titles",
    "materialsAllow": "materials_allow",
    "materialsBlock": "materials_block",
    "certsRequired": "certs_required",
    "excludeHosts": "exclude_hosts",
    "keywordsAdd": "keywords_add",
    "keywordsAvoid": "keywords_avoid",
    "maxWarm": "max_warm",
    "maxHot": "max_hot",
}


@dataclass(frozen=True)
class SizeWeights:
    """Signed weight per size bucket, each within ``SIZE_WEIGHT_BOUNDS``."""

    micro: float
    small: float
    mid: float
    large: float

    def for_bucket(self, bucket: str) -> float:
        """Weight for a size key; ``unknown`` (or anything else) weighs 0."""
        match bucket:
            case "micro":
                return self.micro
            case "small":
                return self.small
            case "mid":
                return self.mid
            case "large":
                return self.large
            case _:
                return 0.0


@dataclass(frozen=True)
class SignalWeights:
    """Channel weights; locality is wider-ranged than the commerce channels."""

    local: float
    ecommerce: float
    retail: float
    wholesale: float


DEFAULT_SIZE_WEIGHTS = SizeWeights(micro=1.2, small=1.0, mid=0.6, large=-1.2)
DEFAULT_SIGNAL_WEIGHTS = SignalWeights(local=1.6, ecommerce=0.25, retail=0.2, wholesale=0.1)


@dataclass(frozen=True)
class EffectivePreferences:
    """The fully resolved configuration for one caller."""

    key: str
    city: str | None
    radius_km: float
    prefer_small_organizations: bool
    size_weight: SizeWeights
    tier_focus: tuple[Tier, ...]
    categories_allow: tuple[str, ...]
    categories_block: tuple[str, ...]
    signal_weight: SignalWeights
    prefer_titles: tuple[str, ...]
    materials_allow: tuple[str, ...]
    materials_block: tuple[str, ...]
    certs_required: tuple[str, ...]
    exclude_hosts: tuple[str, ...]
    keywords_add: tuple[str, ...]
    keywords_avoid: tuple[str, ...]
    max_warm: int
    max_hot: int
    updated_at: datetime | None = None


def clamp_number(value: object, lo: float, hi: float, fallback: float) -> float:
    """Clamp a numeric value into ``[lo, hi]``; non-numbers yield ``fallback``."""
    number = as_float(value)
    if number is None:
        return fallback
    return max(lo, min(hi, number))


def canonical_patch_key(name: str) -> str | None:
    """Map a wire or stored field name to its stored name (None if unknown)."""
    canonical = PATCH_ALIASES.get(name, name)
    if canonical in LIST_FIELD_CAPS or canonical in WEIGHT_FIELDS or canonical in SCALAR_FIELDS:
        return canonical
    return None


def _normalise_list_field(field_name: str, values: Iterable[str]) -> tuple[str, ...]:
    if field_name == "tier_focus":
        return normalise_tiers(values)
    if field_name == "exclude_hosts":
        return tuple(dict.fromkeys(h for h in (normalise_host(v) for v in values) if h))
    return normalise_terms(values)


def _union_capped(field_name: str, *groups: Iterable[str]) -> list[str]:
    merged: list[str] = []
    for group in groups:
        merged.extend(group)
    return list(_normalise_list_field(field_name, merged)[: LIST_FIELD_CAPS[field_name]])


def _weight_names(field_name: str) -> tuple[str, ...]:
    return SIZE_BUCKETS if field_name == "size_weight" else SIGNAL_CHANNELS


def merge_raw_preferences(
    existing: Mapping[str, object], patch: Mapping[str, object]
) -> dict[str, object]:
    """Merge a partial patch into stored raw overrides.

    Rules:
    - list fields: union of existing and incoming, normalised, de-duplicated in
      first-seen order and capped
    - weight tables: shallow merge, each named numeric sub-field overrides
    - scalars: replaced when the incoming value is readable; an empty ``city``
      clears it
    - unrecognised keys are ignored

    Returns:
        A new mapping; ``existing`` is not modified.
    """
    merged: dict[str, object] = dict(existing)
    for name, value in patch.items():
        field_name = canonical_patch_key(name)
        if field_name is None:
            continue

        if field_name in LIST_FIELD_CAPS:
            merged[field_name] = _union_capped(
                field_name, as_str_list(merged.get(field_name)), as_str_list(value)
            )
        elif field_name in WEIGHT_FIELDS:
            table = as_mapping(merged.get(field_name))
            incoming = as_mapping(value)
            for weight_name in _weight_names(field_name):
                number = as_float(incoming.get(weight_name))
                if number is not None:
                    table[weight_name] = number
            merged[field_name] = table
        elif field_name == "city":
            city = as_str(value)
            if city:
                merged["city"] = city
            else:
                merged.pop("city", None)
        elif field_name == "prefer_small_organizations":
            flag = as_bool(value)
            if flag is not None:
                merged[field_name] = flag
        else:
            number = as_float(value)
            if number is not None:
                merged[field_name] = number
    return merged


def _decode_legacy_tags(raw_lists: dict[str, list[str]]) -> dict[str, list[str]]:
    """Fold ``prefix:value`` tags into their structured fields.

    The prefixed tags stay in their tag list; decoded values are appended after
    the structured field's own values.
    """
    decoded: dict[str, list[str]] = {name: list(values) for name, values in raw_lists.items()}
    for source_field in ("categories_allow", "categories_block"):
        for tag in raw_lists.get(source_field, []):
            prefix, sep, value = tag.partition(":")
            if not sep:
                continue
            target = LEGACY_TAG_FIELDS.get((source_field, normalise_term(prefix)))
            if target is not None and value.strip():
                decoded.setdefault(target, []).append(value)
    return decoded


def resolve_preferences(
    key: str,
    raw: Mapping[str, object],
    *,
    updated_at: datetime | None = None,
) -> EffectivePreferences:
    """Resolve stored overrides into a complete ``EffectivePreferences``.

    Defaults fill every absent field, every number is clamped, and legacy
    prefixed tags are decoded. Never raises on malformed stored data.
    """
    raw_lists = {name: as_str_list(raw.get(name)) for name in LIST_FIELD_CAPS}
    lists = {
        name: tuple(_union_capped(name, values))
        for name, values in _decode_legacy_tags(raw_lists).items()
    }

    size_raw = as_mapping(raw.get("size_weight"))
    lo, hi = SIZE_WEIGHT_BOUNDS
    size_weight = SizeWeights(
        micro=clamp_number(size_raw.get("micro"), lo, hi, DEFAULT_SIZE_WEIGHTS.micro),
        small=clamp_number(size_raw.get("small"), lo, hi, DEFAULT_SIZE_WEIGHTS.small),
        mid=clamp_number(size_raw.get("mid"), lo, hi, DEFAULT_SIZE_WEIGHTS.mid),
        large=clamp_number(size_raw.get("large"), lo, hi, DEFAULT_SIZE_WEIGHTS.large),
    )

    signal_raw = as_mapping(raw.get("signal_weight"))
    signal_weight = SignalWeights(
        **{
            channel: clamp_number(
                signal_raw.get(channel),
                *SIGNAL_WEIGHT_BOUNDS[channel],
                getattr(DEFAULT_SIGNAL_WEIGHTS, channel),
            )
            for channel in SIGNAL_CHANNELS
        }
    )

    prefer_small = as_bool(raw.get("prefer_small_organizations"))

    return EffectivePreferences(
        key=key,
        city=as_str(raw.get("city")) or None,
        radius_km=clamp_number(raw.get("radius_km"), *RADIUS_KM_BOUNDS, DEFAULT_RADIUS_KM),
        prefer_small_organizations=True if prefer_small is None else prefer_small,
        size_weight=size_weight,
        tier_focus=normalise_tiers(lists["tier_focus"]),
        categories_allow=lists["categories_allow"],
        categories_block=lists["categories_block"],
        signal_weight=signal_weight,
        prefer_titles=lists["prefer_titles"],
        materials_allow=lists["materials_allow"],
        materials_block=lists["materials_block"],
        certs_required=lists["certs_required"],
        exclude_hosts=lists["exclude_hosts"],
        keywords_add=lists["keywords_add"],
        keywords_avoid=lists["keywords_avoid"],
        max_warm=int(clamp_number(raw.get("max_warm"), *MAX_WARM_BOUNDS, DEFAULT_MAX_WARM)),
        max_hot=int(clamp_number(raw.get("max_hot"), *MAX_HOT_BOUNDS, DEFAULT_MAX_HOT)),
        updated_at=updated_at,
    )


def _preview(values: tuple[str, ...], limit: int = 5) -> str:
    shown = ",".join(values[:limit])
    return f"{shown}..." if len(values) > limit else shown


def preferences_summary(prefs: EffectivePreferences) -> str:
    """One-line human summary for logs and operator output."""
    parts: list[str] = []
    if prefs.city:
        parts.append(f"city={prefs.city}")
    if prefs.tier_focus:
        parts.append(f"tier=[{','.join(prefs.tier_focus)}]")
    sw = prefs.size_weight
    parts.append(f"sizeW(m:{sw.micro:g}, s:{sw.small:g}, mid:{sw.mid:g}, L:{sw.large:g})")
    if prefs.categories_allow:
        parts.append(f"allow:{_preview(prefs.categories_allow)}")
    if prefs.categories_block:
        parts.append(f"block:{_preview(prefs.categories_block)}")
    if prefs.exclude_hosts:
        parts.append(f"exclude:{_preview(prefs.exclude_hosts)}")
    return " | ".join(parts)
