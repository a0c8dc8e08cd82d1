"""Per-host external intent signals, merged from sparse patches."""

from __future__ import annotations

import threading
from collections.abc import Mapping

from ..domain.normalisation import normalise_host, normalise_key
from ..domain.scoring import NO_SIGNALS, Signals, merge_signals


class SignalsStore:
    """Holds the latest known signals for each host.

    Feature extractors push partial camelCase payloads; fields present in a
    patch override earlier values and everything else is kept.
    """

    def __init__(self) -> None:
        self._signals: dict[str, Signals] = {}
        self._lock = threading.Lock()

    def upsert(self, host: str, patch: Mapping[str, object]) -> Signals:
        key = normalise_key(host)
        with self._lock:
            merged = merge_signals(self._signals.get(key, NO_SIGNALS), patch)
            self._signals[key] = merged
        return merged

    def get(self, host: str) -> Signals:
        with self._lock:
            return self._signals.get(normalise_host(host), NO_SIGNALS)

    def discard(self, host: str) -> None:
        with self._lock:
            self._signals.pop(normalise_host(host), None)

    def hosts(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._signals)
