"""Lead lifecycle store with lazy ageing and a background sweep.

Every read path and the sweep apply ``age_if_needed`` before exposing a
record, so observers never see a temperature that should already have decayed.
The store lock is held per record, never across a whole sweep.

Usage example:
    from buyer_radar.application.lifecycle import LifecycleStore, LifecycleSweeper

    store = LifecycleStore()
    store.promote("acme.com", "hot")
    sweeper = LifecycleSweeper(store, interval_seconds=90)
    sweeper.start()
    ...
    sweeper.stop()
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import UTC, datetime

from ..domain.lifecycle import (
    DEFAULT_DECAY_POLICY,
    DecayPolicy,
    LeadRecord,
    Temperature,
    age_if_needed,
    as_temperature,
    is_warmer,
)
from ..domain.normalisation import normalise_host, normalise_key
from ..exceptions import InvalidTemperatureError, PromotionRequiredError
from ..io_validation import as_bool, as_str
from ..observability.logging import get_logger
from ..protocols import Clock

DEFAULT_SWEEP_INTERVAL_SECONDS = 90.0

logger = get_logger("buyer_radar.lifecycle")


@dataclass(frozen=True)
class SweepReport:
    """Outcome of one full ageing pass."""

    examined: int
    decayed: int
    purged: int


@dataclass(frozen=True)
class LeadSummary:
    """Counts per temperature plus saved records."""

    total: int
    hot: int
    warm: int
    cold: int
    saved: int


def _require_temperature(value: object) -> Temperature:
    temperature = as_temperature(value)
    if temperature is None:
        raise InvalidTemperatureError(value)
    return temperature


class LifecycleStore:
    """Keyed lead records with time-driven decay and purge.

    All mutations bump ``touched_at``. ``promote`` is the only way to raise a
    temperature and also marks the record saved.
    """

    def __init__(
        self,
        *,
        policy: DecayPolicy = DEFAULT_DECAY_POLICY,
        now_fn: Clock | None = None,
    ) -> None:
        self._policy = policy
        self._now_fn: Clock = now_fn or (lambda: datetime.now(UTC))
        self._records: dict[str, LeadRecord] = {}
        self._lock = threading.Lock()

    @property
    def policy(self) -> DecayPolicy:
        return self._policy

    def get(self, host: str) -> LeadRecord | None:
        key = normalise_key(host)
        with self._lock:
            return self._age_locked(key, self._now_fn())

    def upsert(self, host: str, patch: Mapping[str, object] | None = None) -> LeadRecord:
        """Create or update a record.

        Recognised patch fields: ``temperature``, ``saved``, ``title`` and
        ``platform``. Unknown fields are ignored. A temperature may only stay or
        cool here; raising it requires ``promote``.

        Raises:
            InvalidTemperatureError: The temperature is not cold, warm or hot.
            PromotionRequiredError: The temperature is warmer than the current one.
        """
        key = normalise_key(host)
        patch = patch or {}
        changes: dict[str, object] = {}
        requested: Temperature | None = None
        if "temperature" in patch:
            requested = _require_temperature(patch["temperature"])
            changes["temperature"] = requested
        if "saved" in patch:
            saved = as_bool(patch["saved"])
            if saved is not None:
                changes["saved"] = saved
        for name in ("title", "platform"):
            if name in patch:
                changes[name] = as_str(patch[name]) or None

        with self._lock:
            now = self._now_fn()
            record = self._age_locked(key, now) or self._new_record(key, now)
            if requested is not None and is_warmer(requested, record.temperature):
                raise PromotionRequiredError(key, record.temperature, requested)
            updated = replace(record, touched_at=now, **changes)
            self._records[key] = updated
        return updated

    def promote(self, host: str, temperature: str = "hot") -> LeadRecord:
        """Set an explicit temperature, lock the record and reset its idle clock."""
        target = _require_temperature(temperature)
        key = normalise_key(host)
        with self._lock:
            now = self._now_fn()
            record = self._age_locked(key, now) or self._new_record(key, now)
            updated = replace(record, temperature=target, saved=True, touched_at=now)
            self._records[key] = updated
        logger.debug("Lead %s promoted to %s", key, target)
        return updated

    def reset(self, host: str) -> LeadRecord:
        """Force cold and reset the idle clock; ``saved`` is unchanged."""
        key = normalise_key(host)
        with self._lock:
            now = self._now_fn()
            record = self._age_locked(key, now) or self._new_record(key, now)
            updated = replace(record, temperature="cold", touched_at=now)
            self._records[key] = updated
        return updated

    def touch(self, host: str) -> LeadRecord:
        """Re-affirm interest without changing temperature."""
        return self.upsert(host)

    def list_by_temperature(self, temperature: str) -> list[LeadRecord]:
        """Records at ``temperature`` after ageing, most recently touched first."""
        target = _require_temperature(temperature)
        self.sweep()
        with self._lock:
            matches = [r for r in self._records.values() if r.temperature == target]
        return sorted(matches, key=lambda r: (-r.touched_at.timestamp(), r.host))

    def summary(self) -> LeadSummary:
        """Counts after a full sweep, so purged records are never included."""
        self.sweep()
        with self._lock:
            records = list(self._records.values())
        return LeadSummary(
            total=len(records),
            hot=sum(1 for r in records if r.temperature == "hot"),
            warm=sum(1 for r in records if r.temperature == "warm"),
            cold=sum(1 for r in records if r.temperature == "cold"),
            saved=sum(1 for r in records if r.saved),
        )

    def sweep(self) -> SweepReport:
        """Age every record, taking the lock once per record."""
        with self._lock:
            keys = list(self._records)
        decayed = 0
        purged = 0
        for key in keys:
            with self._lock:
                before = self._records.get(key)
                if before is None:
                    continue
                after = self._age_locked(key, self._now_fn())
            if after is None:
                purged += 1
            elif after is not before:
                decayed += 1
        report = SweepReport(examined=len(keys), decayed=decayed, purged=purged)
        if decayed or purged:
            logger.info(
                "Lead sweep: %s examined, %s decayed, %s purged",
                report.examined,
                report.decayed,
                report.purged,
            )
        return report

    def hosts(self) -> tuple[str, ...]:
        self.sweep()
        with self._lock:
            return tuple(self._records)

    def __contains__(self, host: object) -> bool:
        key = normalise_host(host)
        with self._lock:
            return self._age_locked(key, self._now_fn()) is not None

    def __len__(self) -> int:
        self.sweep()
        with self._lock:
            return len(self._records)

    def _age_locked(self, key: str, now: datetime) -> LeadRecord | None:
        record = self._records.get(key)
        if record is None:
            return None
        aged = age_if_needed(record, now, self._policy)
        if aged is None:
            del self._records[key]
            logger.debug("Lead %s purged after idle cold TTL", key)
        elif aged is not record:
            self._records[key] = aged
        return aged

    @staticmethod
    def _new_record(key: str, now: datetime) -> LeadRecord:
        return LeadRecord(
            host=key, temperature="cold", saved=False, touched_at=now, created_at=now
        )


class LifecycleSweeper:
    """Runs ``LifecycleStore.sweep`` on a fixed interval in a daemon thread."""

    def __init__(
        self,
        store: LifecycleStore,
        *,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ) -> None:
        self._store = store
        self._interval_seconds = interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            logger.warning("Lifecycle sweeper already running")
            return

        def sweep_loop() -> None:
            while not self._stop_event.is_set():
                try:
                    self._store.sweep()
                except Exception:
                    logger.exception("Lifecycle sweep failed")
                # Wait for the interval or a stop signal
                self._stop_event.wait(timeout=self._interval_seconds)

        self._stop_event.clear()
        self._thread = threading.Thread(target=sweep_loop, daemon=True, name="lead-sweeper")
        self._thread.start()
        logger.info("Lifecycle sweeper started (interval: %ss)", self._interval_seconds)

    def stop(self, timeout: float = 5.0) -> None:
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread.join(timeout=timeout)
        self._thread = None
        logger.info("Lifecycle sweeper stopped")
