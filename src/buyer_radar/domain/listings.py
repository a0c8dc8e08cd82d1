"""Listing model shared by the catalog, scoring and shortlist layers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Tier = Literal["A", "B", "C"]
SizeBucket = Literal["micro", "small", "mid", "large"]
SizeKey = Literal["micro", "small", "mid", "large", "unknown"]

TIERS: tuple[Tier, ...] = ("A", "B", "C")
SIZE_BUCKETS: tuple[SizeBucket, ...] = ("micro", "small", "mid", "large")

# Tier bands stand in for organisation size when no explicit size is declared.
TIER_SIZE_BUCKETS: dict[str, SizeBucket] = {
    "A": "large",
    "B": "mid",
    "C": "small",
}


@dataclass(frozen=True)
class Listing:
    """A normalised business-entity record.

    Instances are immutable once published in a catalog snapshot; a reload
    replaces them wholesale.
    """

    host: str
    name: str
    tiers: tuple[Tier, ...] = ()
    tags: tuple[str, ...] = ()
    segments: tuple[str, ...] = ()
    city_tags: tuple[str, ...] = ()
    size: SizeBucket | None = None
    platform: str | None = None
    created: str | None = None

    @property
    def affinity_terms(self) -> tuple[str, ...]:
        """Tags and segments combined, first-seen order, no duplicates."""
        return tuple(dict.fromkeys((*self.tags, *self.segments)))

    @property
    def size_key(self) -> SizeKey:
        return size_key_for(self.size, self.tiers)


def size_key_for(size: str | None, tiers: tuple[str, ...]) -> SizeKey:
    """Return the declared size bucket, else the bucket implied by the first tier."""
    for bucket in SIZE_BUCKETS:
        if size == bucket:
            return bucket
    if not tiers:
        return "unknown"
    return TIER_SIZE_BUCKETS.get(tiers[0].upper(), "unknown")
