"""Deterministic merge of listings from ordered ingestion sources.

Sources are passed in priority order. The first source that mentions a host
wins; later duplicates are skipped, never merged field by field.

Usage example:
    from buyer_radar.domain.catalog import merge_listings

    result = merge_listings([
        {"buyers": [{"host": "x.com", "tiers": ["A"]}]},
        [{"host": "x.com", "tiers": ["C"]}, {"host": "y.com"}],
    ])
    assert [listing.host for listing in result.listings] == ["x.com", "y.com"]
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from ..exceptions import SourceUnavailableError
from ..io_validation import IncomingDataError, as_mapping, validate_json_as
from ..observability.logging import get_logger
from .listings import Listing
from .normalisation import RejectedRecord, normalise_listing

ENVELOPE_KEYS = ("buyers", "rows", "items")

logger = get_logger("buyer_radar.catalog")


@dataclass(frozen=True)
class MergeReport:
    """Diagnostic counters for one merge."""

    sources: int = 0
    unavailable_sources: int = 0
    candidates: int = 0
    rejected: int = 0
    duplicates: int = 0
    listings: int = 0
    rejected_reasons: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class MergeResult:
    """Merged listings (first-seen order) plus the report that produced them."""

    listings: tuple[Listing, ...]
    report: MergeReport


def extract_source_records(payload: object, *, source_index: int = 0) -> list[object]:
    """Return the raw records carried by one source payload.

    Accepted shapes: a bare array, an object exposing an array under one of
    ``buyers``/``rows``/``items``, or JSON text encoding either. ``None`` is an
    absent source and yields no records.

    Raises:
        SourceUnavailableError: The payload cannot be read as any accepted shape.
    """
    if payload is None:
        return []
    if isinstance(payload, str | bytes | bytearray):
        if not payload.strip():
            return []
        try:
            payload = validate_json_as(object, payload)
        except IncomingDataError as exc:
            raise SourceUnavailableError(source_index, "payload is not valid JSON") from exc
    if isinstance(payload, list | tuple):
        return list(payload)
    if not isinstance(payload, Mapping):
        raise SourceUnavailableError(source_index, "payload is neither an array nor an object")
    envelope = as_mapping(payload)
    for key in ENVELOPE_KEYS:
        records = envelope.get(key)
        if isinstance(records, list | tuple):
            return list(records)
    raise SourceUnavailableError(
        source_index, f"object exposes none of {', '.join(ENVELOPE_KEYS)} as an array"
    )


def merge_listings(sources: Sequence[object]) -> MergeResult:
    """Flatten, normalise and de-duplicate listings by host.

    Never raises: an unreadable source contributes zero records and malformed
    records are counted and skipped.
    """
    by_host: dict[str, Listing] = {}
    unavailable = 0
    candidates = 0
    rejected = 0
    duplicates = 0
    reasons: dict[str, int] = {}

    for index, source in enumerate(sources):
        try:
            records = extract_source_records(source, source_index=index)
        except SourceUnavailableError as exc:
            unavailable += 1
            logger.warning("%s; continuing with remaining sources", exc)
            continue

        for raw in records:
            candidates += 1
            outcome = normalise_listing(raw)
            if isinstance(outcome, RejectedRecord):
                rejected += 1
                reasons[outcome.reason] = reasons.get(outcome.reason, 0) + 1
                logger.debug("Dropped record from source #%s: %s", index, outcome.reason)
                continue
            if outcome.host in by_host:
                duplicates += 1
                continue
            by_host[outcome.host] = outcome

    report = MergeReport(
        sources=len(sources),
        unavailable_sources=unavailable,
        candidates=candidates,
        rejected=rejected,
        duplicates=duplicates,
        listings=len(by_host),
        rejected_reasons=reasons,
    )
    return MergeResult(listings=tuple(by_host.values()), report=report)
