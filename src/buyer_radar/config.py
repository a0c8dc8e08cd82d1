"""Centralised, injectable configuration for Buyer Radar."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, fields, replace
from datetime import timedelta
from typing import Self

from dotenv import load_dotenv

from .config_file import RadarConfigFile
from .domain.lifecycle import DecayPolicy
from .domain.scoring import ClassificationThresholds, ThresholdTriple, validate_threshold_order

DEFAULT_CATALOG_ENV_KEYS = ("BUYERS_CATALOG_TIER_C_JSON", "BUYERS_CATALOG_TIER_AB_JSON")


class NumberEnvVarError(ValueError):
    """Raised when an environment variable must be a non-negative number."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a non-negative number.")


class PositiveIntegerEnvVarError(ValueError):
    """Raised when an environment variable must be a positive integer."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a positive integer.")


@dataclass(frozen=True)
class RadarConfig:
    """Immutable configuration for the catalog, scoring and lifecycle components.

    Load from environment with `RadarConfig.from_env()` or construct directly for testing.
    Threshold ordering is checked on construction.
    """

    # Classification thresholds
    hot_min_total: float = 72
    hot_min_intent: float = 60
    hot_max_recent_days: float = 21
    warm_min_total: float = 55
    warm_min_intent: float = 40
    warm_max_recent_days: float = 90
    score_max_reasons: int = 12

    # Lead lifecycle
    lead_hot_decay_hours: float = 168
    lead_warm_decay_hours: float = 24
    lead_cold_ttl_minutes: float = 120
    lead_sweep_interval_seconds: float = 90

    # Catalog sources, in merge priority order
    catalog_ttl_seconds: float = 300
    catalog_paths: tuple[str, ...] = ()
    catalog_env_keys: tuple[str, ...] = DEFAULT_CATALOG_ENV_KEYS

    def __post_init__(self) -> None:
        self.thresholds()

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> Self:
        """Load configuration from environment variables.

        Args:
            dotenv_path: Optional path to .env file. If None, uses default .env discovery.

        Returns:
            RadarConfig instance populated from environment.
        """
        load_dotenv(dotenv_path)

        env_keys = _parse_list(os.getenv("BUYERS_CATALOG_ENV_KEYS", ""))
        return cls(
            hot_min_total=_parse_number(
                os.getenv("HOT_MIN_TOTAL", "72"), env_name="HOT_MIN_TOTAL"
            ),
            hot_min_intent=_parse_number(
                os.getenv("HOT_MIN_INTENT", "60"), env_name="HOT_MIN_INTENT"
            ),
            hot_max_recent_days=_parse_number(
                os.getenv("HOT_MAX_RECENT_DAYS", "21"), env_name="HOT_MAX_RECENT_DAYS"
            ),
            warm_min_total=_parse_number(
                os.getenv("WARM_MIN_TOTAL", "55"), env_name="WARM_MIN_TOTAL"
            ),
            warm_min_intent=_parse_number(
                os.getenv("WARM_MIN_INTENT", "40"), env_name="WARM_MIN_INTENT"
            ),
            warm_max_recent_days=_parse_number(
                os.getenv("WARM_MAX_RECENT_DAYS", "90"), env_name="WARM_MAX_RECENT_DAYS"
            ),
            score_max_reasons=_parse_positive_int(
                os.getenv("SCORE_MAX_REASONS", "12"), env_name="SCORE_MAX_REASONS"
            ),
            lead_hot_decay_hours=_parse_number(
                os.getenv("LEAD_HOT_DECAY_HOURS", "168"), env_name="LEAD_HOT_DECAY_HOURS"
            ),
            lead_warm_decay_hours=_parse_number(
                os.getenv("LEAD_WARM_DECAY_HOURS", "24"), env_name="LEAD_WARM_DECAY_HOURS"
            ),
            lead_cold_ttl_minutes=_parse_number(
                os.getenv("LEAD_COLD_TTL_MINUTES", "120"), env_name="LEAD_COLD_TTL_MINUTES"
            ),
            lead_sweep_interval_seconds=_parse_number(
                os.getenv("LEAD_SWEEP_INTERVAL_SECONDS", "90"),
                env_name="LEAD_SWEEP_INTERVAL_SECONDS",
            ),
            catalog_ttl_seconds=_parse_number(
                os.getenv("CATALOG_TTL_SECONDS", "300"), env_name="CATALOG_TTL_SECONDS"
            ),
            catalog_paths=_parse_list(os.getenv("BUYERS_CATALOG_PATHS", "")),
            catalog_env_keys=env_keys or DEFAULT_CATALOG_ENV_KEYS,
        )

    def with_overrides(
        self,
        *,
        catalog_paths: tuple[str, ...] | None = None,
        catalog_env_keys: tuple[str, ...] | None = None,
        score_max_reasons: int | None = None,
    ) -> Self:
        """Return a new config with specified overrides (for CLI options)."""
        return replace(
            self,
            catalog_paths=self.catalog_paths if catalog_paths is None else catalog_paths,
            catalog_env_keys=self.catalog_env_keys
            if catalog_env_keys is None
            else catalog_env_keys,
            score_max_reasons=self.score_max_reasons
            if score_max_reasons is None
            else score_max_reasons,
        )

    def with_file_overrides(self, file_config: RadarConfigFile) -> Self:
        """Return a new config with config-file values overriding env/default values."""
        overrides = {
            item.name: getattr(file_config, item.name)
            for item in fields(file_config)
            if getattr(file_config, item.name) is not None
        }
        return replace(self, **overrides)

    def thresholds(self) -> ClassificationThresholds:
        """Build classification thresholds, enforcing hot-stricter-than-warm."""
        return validate_threshold_order(
            ClassificationThresholds(
                hot=ThresholdTriple(
                    min_total=self.hot_min_total,
                    min_intent=self.hot_min_intent,
                    max_recent_days=self.hot_max_recent_days,
                ),
                warm=ThresholdTriple(
                    min_total=self.warm_min_total,
                    min_intent=self.warm_min_intent,
                    max_recent_days=self.warm_max_recent_days,
                ),
            )
        )

    def decay_policy(self) -> DecayPolicy:
        return DecayPolicy(
            hot_to_warm=timedelta(hours=self.lead_hot_decay_hours),
            warm_to_cold=timedelta(hours=self.lead_warm_decay_hours),
            cold_ttl=timedelta(minutes=self.lead_cold_ttl_minutes),
        )


def _parse_list(s: str) -> tuple[str, ...]:
    """Parse comma-separated string into tuple of stripped values."""
    items = [item.strip() for item in s.split(",") if item.strip()]
    return tuple(items)


def _parse_number(value: str, *, env_name: str) -> float:
    """Parse a non-negative finite number from an environment variable."""
    try:
        parsed = float(value.strip())
    except ValueError as exc:
        raise NumberEnvVarError(env_name) from exc
    if not math.isfinite(parsed) or parsed < 0:
        raise NumberEnvVarError(env_name)
    return parsed


def _parse_positive_int(value: str, *, env_name: str) -> int:
    """Parse a positive integer from an environment variable."""
    try:
        parsed = int(value.strip())
    except ValueError as exc:
        raise PositiveIntegerEnvVarError(env_name) from exc
    if parsed < 1:
        raise PositiveIntegerEnvVarError(env_name)
    return parsed
