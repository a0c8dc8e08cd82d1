"""Canonicalisation of raw ingestion records into listings.

Pure functions only. A raw record of any shape either becomes a ``Listing`` or
a ``RejectedRecord`` describing why it was dropped; listing normalisation never
raises. ``normalise_key`` is the one strict helper, for caller-supplied keys.

Usage example:
    from buyer_radar.domain.normalisation import normalise_listing

    outcome = normalise_listing({"host": "https://www.Acme.com/shop", "tiers": ["c"]})
    assert outcome.host == "acme.com"
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from ..exceptions import InvalidKeyError
from ..io_validation import (
    IncomingDataError,
    RawListingInput,
    as_str,
    as_str_list,
    validate_as,
)
from .listings import SIZE_BUCKETS, TIERS, Listing, SizeBucket, Tier

# Identity fields in the order they are consulted
HOST_FIELDS = ("host", "domain", "website", "url")

SIZE_ALIASES: dict[str, SizeBucket] = {
    "medium": "mid",
    "med": "mid",
    "tiny": "micro",
    "enterprise": "large",
}

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.\-]*://")
_USERINFO_RE = re.compile(r"^[^@/]*@")
_PORT_RE = re.compile(r":\d*$")
_HOST_RE = re.compile(
    r"^(?=.{1,253}$)(?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+(?:[a-z]{2,63}|xn--[a-z0-9-]{1,59})$"
)
_WHITESPACE_RE = re.compile(r"\s+")
_CITY_SEPARATOR_RE = re.compile(r"[\s_]+")


@dataclass(frozen=True)
class RejectedRecord:
    """A raw record that could not become a listing."""

    reason: str
    raw: object


def normalise_host(value: object) -> str:
    """Reduce a URL or host-ish string to a bare lowercase host.

    Transformations:
    1. Lowercase and trim
    2. Strip scheme and user info
    3. Drop path, query and fragment
    4. Drop port and trailing dot
    5. Strip a leading ``www.``

    Args:
        value: Raw host, domain or URL (non-strings yield ``""``).

    Returns:
        The canonical host, or ``""`` when nothing usable remains.
    """
    text = as_str(value).lower()
    if not text:
        return ""
    text = _SCHEME_RE.sub("", text)
    text = text.lstrip("/")
    text = _USERINFO_RE.sub("", text)
    text = re.split(r"[/?#]", text, maxsplit=1)[0]
    text = _PORT_RE.sub("", text).rstrip(".").strip()
    if text.startswith("www."):
        text = text[4:]
    return text


def normalise_key(value: object) -> str:
    """Normalise a caller identity (host or opaque id) for keyed stores.

    Keys go through the same host canonicalisation as listings but need not be
    valid domains, so ids such as ``buyer1`` are accepted.

    Raises:
        InvalidKeyError: Nothing usable remains after normalisation.
    """
    key = normalise_host(value)
    if not key:
        raise InvalidKeyError(value)
    return key


def is_valid_host(host: str) -> bool:
    """Return True when ``host`` is syntactically a domain name."""
    return bool(_HOST_RE.match(host))


def display_name_from_host(host: str) -> str:
    """Derive a title-cased label from the first host label.

    Examples:
        "acme-foods.co.uk" → "Acme Foods"
        "bobsbakery.com" → "Bobsbakery"
    """
    label = host.split(".", 1)[0]
    words = [w for w in re.split(r"[-_]+", label) if w]
    return " ".join(w[:1].upper() + w[1:] for w in words) or host


def normalise_term(value: str) -> str:
    """Lowercase and collapse internal whitespace."""
    return _WHITESPACE_RE.sub(" ", value.lower()).strip()


def normalise_terms(values: Iterable[str]) -> tuple[str, ...]:
    """Normalise terms and de-duplicate while preserving first-seen order."""
    seen: dict[str, None] = {}
    for value in values:
        term = normalise_term(value)
        if term:
            seen.setdefault(term, None)
    return tuple(seen)


def city_slug(value: str) -> str:
    """Slug a city name: ``"San  Antonio."`` → ``"san-antonio"``."""
    text = normalise_term(value).rstrip(".,")
    return _CITY_SEPARATOR_RE.sub("-", text).strip("-")


def normalise_city_tags(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(slug for slug in (city_slug(v) for v in values) if slug))


def normalise_tiers(values: Iterable[str]) -> tuple[Tier, ...]:
    """Keep recognised tier bands (A/B/C), uppercased, first-seen order."""
    found: dict[Tier, None] = {}
    for value in values:
        text = value.strip().upper()
        if text.startswith("TIER"):
            text = text[4:].strip(" -_")
        for tier in TIERS:
            if text == tier:
                found.setdefault(tier, None)
    return tuple(found)


def normalise_size(value: object) -> SizeBucket | None:
    text = as_str(value).lower()
    if not text:
        return None
    for bucket in SIZE_BUCKETS:
        if text == bucket:
            return bucket
    return SIZE_ALIASES.get(text)


def extract_host(record: RawListingInput) -> str:
    for field_name in HOST_FIELDS:
        host = normalise_host(record.get(field_name))
        if host:
            return host
    return ""


def normalise_listing(raw: object) -> Listing | RejectedRecord:
    """Canonicalise one raw record.

    Args:
        raw: Any JSON-like value; only mappings can produce a listing.

    Returns:
        A ``Listing`` on success, otherwise a ``RejectedRecord``.
    """
    try:
        record = validate_as(RawListingInput, raw)
    except IncomingDataError:
        return RejectedRecord(reason="not_an_object", raw=raw)

    host = extract_host(record)
    if not host:
        return RejectedRecord(reason="missing_host", raw=raw)
    if not is_valid_host(host):
        return RejectedRecord(reason="invalid_host", raw=raw)

    tier_values = [*as_str_list(record.get("tiers")), *as_str_list(record.get("tier"))]
    city_values = [
        *as_str_list(record.get("cityTags")),
        *as_str_list(record.get("city_tags")),
        *as_str_list(record.get("city")),
    ]

    return Listing(
        host=host,
        name=as_str(record.get("name")) or display_name_from_host(host),
        tiers=normalise_tiers(tier_values),
        tags=normalise_terms(as_str_list(record.get("tags"))),
        segments=normalise_terms(as_str_list(record.get("segments"))),
        city_tags=normalise_city_tags(city_values),
        size=normalise_size(record.get("size")),
        platform=as_str(record.get("platform")).lower() or None,
        created=as_str(record.get("created")) or None,
    )
