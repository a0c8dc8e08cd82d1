"""Shortlist: rank the catalog for one caller and export it.

Usage example:
    >>> from buyer_radar.application.shortlist import build_shortlist, write_shortlist_csv
    >>> rows = build_shortlist(catalog.listings(), prefs, scorer, signals=signals_store.get)
    >>> write_shortlist_csv(rows, Path("data/out/shortlist.csv"), fs=fs)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from ..domain.listings import Listing
from ..domain.preferences import EffectivePreferences
from ..domain.scoring import ScoreBreakdown, Signals
from ..observability.logging import get_logger
from ..protocols import FileSystem
from .scoring import ScoringService

SHORTLIST_COLUMNS = (
    "host",
    "name",
    "classification",
    "total",
    "fit",
    "intent",
    "recency",
    "recent_days",
    "tiers",
    "size",
    "platform",
    "reasons",
)

logger = get_logger("buyer_radar.shortlist")


@dataclass(frozen=True)
class ShortlistRow:
    """One scored listing."""

    listing: Listing
    score: ScoreBreakdown


def _in_tier_focus(listing: Listing, prefs: EffectivePreferences) -> bool:
    if not prefs.tier_focus:
        return True
    return any(tier in prefs.tier_focus for tier in listing.tiers)


def build_shortlist(
    listings: Iterable[Listing],
    prefs: EffectivePreferences,
    scorer: ScoringService,
    *,
    signals: Callable[[str], Signals] | None = None,
    include_cold: bool = False,
) -> list[ShortlistRow]:
    """Score and rank listings for ``prefs``.

    Listings in ``exclude_hosts`` or outside a non-empty ``tier_focus`` are
    skipped. Rows are ordered by total (descending) then host, and capped at
    ``max_hot`` hot and ``max_warm`` warm rows. Cold rows are appended only when
    ``include_cold`` is set.
    """
    excluded = frozenset(prefs.exclude_hosts)
    scored: list[ShortlistRow] = []
    for listing in listings:
        if listing.host in excluded or not _in_tier_focus(listing, prefs):
            continue
        listing_signals = signals(listing.host) if signals is not None else None
        score = scorer.score(listing, prefs, listing_signals)
        scored.append(ShortlistRow(listing=listing, score=score))
    scored.sort(key=lambda row: (-row.score.total, row.listing.host))

    hot = [row for row in scored if row.score.classification == "hot"][: prefs.max_hot]
    warm = [row for row in scored if row.score.classification == "warm"][: prefs.max_warm]
    rows = hot + warm
    if include_cold:
        rows += [row for row in scored if row.score.classification == "cold"]

    logger.info(
        "Shortlist for %s: %s scored, %s hot, %s warm, %s rows",
        prefs.key or "<anonymous>",
        len(scored),
        len(hot),
        len(warm),
        len(rows),
    )
    return rows


def shortlist_frame(rows: Iterable[ShortlistRow]) -> pd.DataFrame:
    records = [
        {
            "host": row.listing.host,
            "name": row.listing.name,
            "classification": row.score.classification,
            "total": row.score.total,
            "fit": row.score.fit,
            "intent": row.score.intent,
            "recency": row.score.recency,
            "recent_days": row.score.recent_days,
            "tiers": ",".join(row.listing.tiers),
            "size": row.listing.size_key,
            "platform": row.listing.platform or "",
            "reasons": "; ".join(row.score.reasons),
        }
        for row in rows
    ]
    return pd.DataFrame(records, columns=list(SHORTLIST_COLUMNS))


def write_shortlist_csv(rows: Iterable[ShortlistRow], path: Path, *, fs: FileSystem) -> Path:
    """Write the shortlist to ``path`` as CSV and return the path."""
    frame = shortlist_frame(rows)
    fs.write_csv(frame, path)
    logger.info("Shortlist written: %s (%s rows)", path, len(frame))
    return path
