"""Keyed in-memory preference store.

Stores only the sparse raw overrides per key and resolves them on every read,
so clamping and legacy tag decoding always reflect the current rules.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime

from ..domain.normalisation import normalise_host, normalise_key
from ..domain.preferences import (
    EffectivePreferences,
    merge_raw_preferences,
    preferences_summary,
    resolve_preferences,
)
from ..io_validation import as_mapping
from ..observability.logging import get_logger
from ..protocols import Clock

logger = get_logger("buyer_radar.preferences")


@dataclass(frozen=True)
class _StoredPreferences:
    raw: Mapping[str, object]
    updated_at: datetime | None


_EMPTY = _StoredPreferences(raw={}, updated_at=None)


class PreferenceStore:
    """Per-key preference overrides.

    Reads never fail: an unknown key resolves to defaults and is registered as
    seen, stamped with the time it was first read. Writes require a usable key
    and raise ``InvalidKeyError`` otherwise.
    """

    def __init__(self, *, now_fn: Clock | None = None) -> None:
        self._now_fn: Clock = now_fn or (lambda: datetime.now(UTC))
        self._entries: dict[str, _StoredPreferences] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> EffectivePreferences:
        normalised = normalise_host(key)
        now = self._now_fn()
        if not normalised:
            return resolve_preferences("", {}, updated_at=now)
        with self._lock:
            entry = self._entries.get(normalised)
            if entry is None:
                entry = _StoredPreferences(raw={}, updated_at=now)
                self._entries[normalised] = entry
        return resolve_preferences(normalised, entry.raw, updated_at=entry.updated_at)

    def set(self, key: str, patch: Mapping[str, object]) -> EffectivePreferences:
        """Merge a partial patch into the stored overrides and return the result."""
        normalised = normalise_key(key)
        with self._lock:
            existing = self._entries.get(normalised, _EMPTY)
            entry = _StoredPreferences(
                raw=merge_raw_preferences(existing.raw, as_mapping(patch)),
                updated_at=self._now_fn(),
            )
            self._entries[normalised] = entry
        logger.debug("Preferences updated for %s (%s fields)", normalised, len(patch))
        return resolve_preferences(normalised, entry.raw, updated_at=entry.updated_at)

    def reset(self, key: str) -> EffectivePreferences:
        """Administrative reset: drop every override for ``key``."""
        normalised = normalise_key(key)
        now = self._now_fn()
        with self._lock:
            self._entries[normalised] = _StoredPreferences(raw={}, updated_at=now)
        logger.info("Preferences reset for %s", normalised)
        return resolve_preferences(normalised, {}, updated_at=now)

    def restore(self, key: str, raw: Mapping[str, object]) -> EffectivePreferences:
        """Replace the stored overrides verbatim, e.g. from an operator export.

        Values are not validated here; they are clamped on every resolve.
        """
        normalised = normalise_key(key)
        entry = _StoredPreferences(raw=dict(raw), updated_at=self._now_fn())
        with self._lock:
            self._entries[normalised] = entry
        return resolve_preferences(normalised, entry.raw, updated_at=entry.updated_at)

    def export_raw(self, key: str) -> dict[str, object] | None:
        normalised = normalise_host(key)
        with self._lock:
            entry = self._entries.get(normalised)
        return None if entry is None else dict(entry.raw)

    def summary(self, key: str) -> str:
        return preferences_summary(self.get(key))

    def keys(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._entries)

    @staticmethod
    def defaults(key: str = "") -> EffectivePreferences:
        return resolve_preferences(normalise_host(key), {})
