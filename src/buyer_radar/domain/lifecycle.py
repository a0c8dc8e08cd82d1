"""Lead temperature lifecycle: records, decay windows and the ageing rule.

``age_if_needed`` is the only place decay and purge rules live. Both the read
paths and the background sweep call it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Literal

Temperature = Literal["cold", "warm", "hot"]
TEMPERATURES: tuple[Temperature, ...] = ("cold", "warm", "hot")

# Ordered by heat
HEAT: dict[Temperature, int] = {"cold": 0, "warm": 1, "hot": 2}


@dataclass(frozen=True)
class DecayPolicy:
    """Idle windows that drive passive decay and purge."""

    hot_to_warm: timedelta = timedelta(days=7)
    warm_to_cold: timedelta = timedelta(hours=24)
    cold_ttl: timedelta = timedelta(hours=2)


DEFAULT_DECAY_POLICY = DecayPolicy()


@dataclass(frozen=True)
class LeadRecord:
    """A tracked entity. The host is its identity."""

    host: str
    temperature: Temperature
    saved: bool
    touched_at: datetime
    created_at: datetime
    title: str | None = None
    platform: str | None = None

    @property
    def id(self) -> str:
        return self.host


def is_warmer(target: Temperature, current: Temperature) -> bool:
    return HEAT[target] > HEAT[current]


def as_temperature(value: object) -> Temperature | None:
    """Return a recognised temperature (case-insensitive) or None."""
    if not isinstance(value, str):
        return None
    text = value.strip().lower()
    for temperature in TEMPERATURES:
        if text == temperature:
            return temperature
    return None


def age_if_needed(
    record: LeadRecord,
    now: datetime,
    policy: DecayPolicy = DEFAULT_DECAY_POLICY,
) -> LeadRecord | None:
    """Apply at most one passive decay step, or purge.

    Rules, by current temperature:
    - hot idle beyond ``hot_to_warm`` becomes warm
    - warm idle beyond ``warm_to_cold`` becomes cold
    - cold, unsaved and idle beyond ``cold_ttl`` is purged (returns None)

    A decay step stamps ``touched_at`` with ``now`` so the next window is
    measured from entry into the new temperature. Saved records decay but are
    never purged.

    Returns:
        The same object when nothing changes, a new record after decay, or
        None when the record should be removed.
    """
    idle = now - record.touched_at
    match record.temperature:
        case "hot" if idle > policy.hot_to_warm:
            return replace(record, temperature="warm", touched_at=now)
        case "warm" if idle > policy.warm_to_cold:
            return replace(record, temperature="cold", touched_at=now)
        case "cold" if not record.saved and idle > policy.cold_ttl:
            return None
        case _:
            return record
