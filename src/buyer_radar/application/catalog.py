"""In-memory listing catalog with a TTL cache and atomic reload.

Readers always receive one complete ``CatalogSnapshot``. A rebuild prepares a
new snapshot off to the side and then swaps a single reference, so nobody
observes a half-built catalog.

Usage example:
    from pathlib import Path

    from buyer_radar.application.catalog import Catalog, file_sources
    from buyer_radar.infrastructure import LocalFileSystem

    catalog = Catalog(file_sources([Path("data/buyers_ab.json")], LocalFileSystem()))
    listing = catalog.find("acme.com")
"""

from __future__ import annotations

import os
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

from ..domain.catalog import MergeReport, merge_listings
from ..domain.listings import Listing
from ..domain.normalisation import normalise_host
from ..observability.logging import get_logger
from ..protocols import Clock, FileSystem, SourceLoader

DEFAULT_TTL_SECONDS = 300.0

logger = get_logger("buyer_radar.catalog")


@dataclass(frozen=True)
class CatalogSnapshot:
    """One immutable load of the catalog."""

    listings: tuple[Listing, ...]
    report: MergeReport
    loaded_at: datetime
    by_host: dict[str, Listing] = field(default_factory=dict, repr=False, compare=False)


def file_sources(paths: Sequence[Path], fs: FileSystem) -> SourceLoader:
    """Read each path as one source; missing or unreadable files are empty sources."""

    def load() -> list[object]:
        payloads: list[object] = []
        for path in paths:
            if not fs.exists(path):
                logger.warning("Catalog file %s not found; treating as an empty source", path)
                payloads.append(None)
                continue
            try:
                payloads.append(fs.read_text(path))
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Catalog file %s unreadable (%s); treating as empty", path, exc)
                payloads.append(None)
        return payloads

    return load


def env_sources(
    keys: Sequence[str], getenv: Callable[[str], str | None] = os.getenv
) -> SourceLoader:
    """Read JSON payloads from environment variables, one source per key."""

    def load() -> list[object]:
        return [getenv(key) for key in keys]

    return load


def chain_sources(*loaders: SourceLoader) -> SourceLoader:
    """Concatenate loaders, keeping their order as merge priority."""

    def load() -> list[object]:
        payloads: list[object] = []
        for loader in loaders:
            payloads.extend(loader())
        return payloads

    return load


class Catalog:
    """Read-mostly listing catalog.

    ``snapshot()`` rebuilds only when the cached snapshot is older than the TTL;
    ``reload()`` always rebuilds. Rebuilds are serialised so concurrent
    expiries trigger a single load.
    """

    def __init__(
        self,
        source_loader: SourceLoader,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        now_fn: Clock | None = None,
    ) -> None:
        self._source_loader = source_loader
        self._ttl = timedelta(seconds=max(0.0, ttl_seconds))
        self._now_fn: Clock = now_fn or (lambda: datetime.now(UTC))
        self._snapshot: CatalogSnapshot | None = None
        self._build_lock = threading.Lock()

    def snapshot(self) -> CatalogSnapshot:
        current = self._snapshot
        if current is not None and self._is_fresh(current):
            return current
        with self._build_lock:
            current = self._snapshot
            if current is not None and self._is_fresh(current):
                return current
            return self._rebuild()

    def listings(self) -> tuple[Listing, ...]:
        return self.snapshot().listings

    def reload(self) -> CatalogSnapshot:
        """Rebuild now, ignoring the TTL, and publish the new snapshot."""
        with self._build_lock:
            snapshot = self._rebuild()
        logger.info("Catalog reloaded: %s listings", len(snapshot.listings))
        return snapshot

    def find(self, host: str) -> Listing | None:
        return self.snapshot().by_host.get(normalise_host(host))

    def clear(self) -> None:
        """Drop the cached snapshot; the next read rebuilds."""
        with self._build_lock:
            self._snapshot = None

    def _is_fresh(self, snapshot: CatalogSnapshot) -> bool:
        return self._now_fn() - snapshot.loaded_at < self._ttl

    def _rebuild(self) -> CatalogSnapshot:
        result = merge_listings(self._source_loader())
        report = result.report
        logger.info(
            "Catalog merge: %s sources (%s unavailable), %s candidates, "
            "%s rejected, %s duplicates, %s listings",
            report.sources,
            report.unavailable_sources,
            report.candidates,
            report.rejected,
            report.duplicates,
            report.listings,
        )
        snapshot = CatalogSnapshot(
            listings=result.listings,
            report=report,
            loaded_at=self._now_fn(),
            by_host={listing.host: listing for listing in result.listings},
        )
        self._snapshot = snapshot
        return snapshot
