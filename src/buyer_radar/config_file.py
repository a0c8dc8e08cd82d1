"""Typed parsing and validation for radar config files.

Example file:
    schema_version = 1

    [radar]
    hot_min_total = 75
    catalog_paths = ["data/buyers_ab.json", "data/buyers_c.json"]
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Self

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from .exceptions import ConfigFileNotFoundError, ConfigFileParseError, ConfigFileValidationError
from .protocols import FileSystem

_SCHEMA_VERSION = 1


@dataclass(frozen=True)
class RadarConfigFile:
    """Validated radar config values loaded from a TOML file."""

    hot_min_total: float | None = None
    hot_min_intent: float | None = None
    hot_max_recent_days: float | None = None
    warm_min_total: float | None = None
    warm_min_intent: float | None = None
    warm_max_recent_days: float | None = None
    score_max_reasons: int | None = None
    lead_hot_decay_hours: float | None = None
    lead_warm_decay_hours: float | None = None
    lead_cold_ttl_minutes: float | None = None
    lead_sweep_interval_seconds: float | None = None
    catalog_ttl_seconds: float | None = None
    catalog_paths: tuple[str, ...] | None = None
    catalog_env_keys: tuple[str, ...] | None = None


class _RadarSectionModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    hot_min_total: float | None = None
    hot_min_intent: float | None = None
    hot_max_recent_days: float | None = None
    warm_min_total: float | None = None
    warm_min_intent: float | None = None
    warm_max_recent_days: float | None = None
    score_max_reasons: int | None = None
    lead_hot_decay_hours: float | None = None
    lead_warm_decay_hours: float | None = None
    lead_cold_ttl_minutes: float | None = None
    lead_sweep_interval_seconds: float | None = None
    catalog_ttl_seconds: float | None = None
    catalog_paths: tuple[str, ...] | None = None
    catalog_env_keys: tuple[str, ...] | None = None

    @field_validator(
        "hot_min_total",
        "hot_min_intent",
        "warm_min_total",
        "warm_min_intent",
    )
    @classmethod
    def _validate_score_range(cls, value: float | None) -> float | None:
        if value is None:
            return None
        if value < 0.0 or value > 100.0:
            raise ValueError
        return value

    @field_validator(
        "hot_max_recent_days",
        "warm_max_recent_days",
        "lead_hot_decay_hours",
        "lead_warm_decay_hours",
        "lead_cold_ttl_minutes",
        "catalog_ttl_seconds",
    )
    @classmethod
    def _validate_non_negative(cls, value: float | None) -> float | None:
        if value is None:
            return None
        if value < 0.0:
            raise ValueError
        return value

    @field_validator("lead_sweep_interval_seconds")
    @classmethod
    def _validate_positive_interval(cls, value: float | None) -> float | None:
        if value is None:
            return None
        if value <= 0.0:
            raise ValueError
        return value

    @field_validator("score_max_reasons")
    @classmethod
    def _validate_positive_int(cls, value: int | None) -> int | None:
        if value is None:
            return None
        if value < 1:
            raise ValueError
        return value

    @field_validator("catalog_paths", "catalog_env_keys")
    @classmethod
    def _validate_text_list(cls, value: tuple[str, ...] | None) -> tuple[str, ...] | None:
        if value is None:
            return None
        cleaned = tuple(item.strip() for item in value if item.strip())
        if not cleaned:
            raise ValueError
        return cleaned

    @model_validator(mode="after")
    def _validate_threshold_order(self) -> Self:
        pairs = (
            (self.hot_min_total, self.warm_min_total, "min_total"),
            (self.hot_min_intent, self.warm_min_intent, "min_intent"),
        )
        for hot, warm, name in pairs:
            if hot is not None and warm is not None and hot < warm:
                raise ValueError(f"hot {name} must not be below warm {name}")
        hot_days, warm_days = self.hot_max_recent_days, self.warm_max_recent_days
        if hot_days is not None and warm_days is not None and hot_days > warm_days:
            raise ValueError("hot max_recent_days must not exceed warm max_recent_days")
        return self


class _ConfigFileModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: int
    radar: _RadarSectionModel

    @field_validator("schema_version")
    @classmethod
    def _validate_schema_version(cls, value: int) -> int:
        if value != _SCHEMA_VERSION:
            raise ValueError
        return value


def _format_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ("<root>",))) or "<root>"
    message = str(first.get("msg", "invalid value"))
    return f"{location}: {message}"


def load_radar_config_file(*, path: Path, fs: FileSystem) -> RadarConfigFile:
    """Load and validate a radar TOML config file."""
    if not fs.exists(path):
        raise ConfigFileNotFoundError(str(path))

    raw_payload = fs.read_text(path)
    try:
        payload: object = tomllib.loads(raw_payload)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigFileParseError(str(path), str(exc)) from exc

    try:
        model = _ConfigFileModel.model_validate(payload)
    except ValidationError as exc:
        raise ConfigFileValidationError(str(path), _format_validation_error(exc)) from exc

    section = model.radar
    return RadarConfigFile(**section.model_dump())
