"""The radar's stateful components bundled for one process.

Nothing here is a module-level singleton: whoever owns the process lifecycle
builds a ``RadarServices`` and passes it along.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from ..config import RadarConfig
from ..domain.scoring import ScoreBreakdown
from ..protocols import Clock, FileSystem
from .catalog import Catalog, chain_sources, env_sources, file_sources
from .lifecycle import LifecycleStore, LifecycleSweeper
from .preferences import PreferenceStore
from .scoring import ScoringService, ThresholdSettings
from .shortlist import ShortlistRow, build_shortlist
from .signals import SignalsStore


@dataclass(frozen=True)
class RadarServices:
    catalog: Catalog
    preferences: PreferenceStore
    signals: SignalsStore
    leads: LifecycleStore
    sweeper: LifecycleSweeper
    thresholds: ThresholdSettings
    scorer: ScoringService

    def score(self, key: str, host: str) -> ScoreBreakdown | None:
        """Score one catalog listing for a caller; None when the host is unknown."""
        listing = self.catalog.find(host)
        if listing is None:
            return None
        return self.scorer.score(listing, self.preferences.get(key), self.signals.get(listing.host))

    def shortlist(self, key: str, *, include_cold: bool = False) -> list[ShortlistRow]:
        return build_shortlist(
            self.catalog.listings(),
            self.preferences.get(key),
            self.scorer,
            signals=self.signals.get,
            include_cold=include_cold,
        )


def build_services(
    config: RadarConfig,
    *,
    fs: FileSystem,
    getenv: Callable[[str], str | None] = os.getenv,
    now_fn: Clock | None = None,
) -> RadarServices:
    """Wire every component from configuration.

    Catalog sources are the configured files followed by the configured
    environment keys, in that priority order.
    """
    source_loader = chain_sources(
        file_sources([Path(p) for p in config.catalog_paths], fs),
        env_sources(config.catalog_env_keys, getenv),
    )
    thresholds = ThresholdSettings(config.thresholds())
    leads = LifecycleStore(policy=config.decay_policy(), now_fn=now_fn)
    return RadarServices(
        catalog=Catalog(source_loader, ttl_seconds=config.catalog_ttl_seconds, now_fn=now_fn),
        preferences=PreferenceStore(now_fn=now_fn),
        signals=SignalsStore(),
        leads=leads,
        sweeper=LifecycleSweeper(leads, interval_seconds=config.lead_sweep_interval_seconds),
        thresholds=thresholds,
        scorer=ScoringService(thresholds, max_reasons=config.score_max_reasons),
    )
