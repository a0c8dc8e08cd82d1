"""Tests for config-file schema parsing and fail-fast validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from buyer_radar.config_file import load_radar_config_file
from buyer_radar.exceptions import (
    ConfigFileNotFoundError,
    ConfigFileParseError,
    ConfigFileValidationError,
)
from tests.fakes import InMemoryFileSystem


def _write(fs: InMemoryFileSystem, path: Path, content: str) -> None:
    fs.write_text(content, path)


def test_load_radar_config_file_parses_valid_toml() -> None:
    fs = InMemoryFileSystem()
    path = Path("config/radar.toml")
    _write(
        fs,
        path,
        """
schema_version = 1

[radar]
hot_min_total = 80
warm_min_total = 60
score_max_reasons = 6
lead_cold_ttl_minutes = 45
catalog_ttl_seconds = 120
catalog_paths = ["data/buyers_ab.json", " ", " data/buyers_c.json "]
catalog_env_keys = ["BUYERS_CATALOG_TIER_AB_JSON"]
""".strip(),
    )

    parsed = load_radar_config_file(path=path, fs=fs)

    assert parsed.hot_min_total == 80
    assert parsed.warm_min_total == 60
    assert parsed.score_max_reasons == 6
    assert parsed.lead_cold_ttl_minutes == 45
    assert parsed.catalog_ttl_seconds == 120
    assert parsed.catalog_paths == ("data/buyers_ab.json", "data/buyers_c.json")
    assert parsed.catalog_env_keys == ("BUYERS_CATALOG_TIER_AB_JSON",)
    assert parsed.hot_min_intent is None


def test_load_radar_config_file_fails_when_file_missing() -> None:
    fs = InMemoryFileSystem()

    with pytest.raises(ConfigFileNotFoundError):
        load_radar_config_file(path=Path("missing.toml"), fs=fs)


def test_load_radar_config_file_fails_on_invalid_toml() -> None:
    fs = InMemoryFileSystem()
    path = Path("broken.toml")
    _write(fs, path, "schema_version = \n[radar")

    with pytest.raises(ConfigFileParseError):
        load_radar_config_file(path=path, fs=fs)


@pytest.mark.parametrize(
    ("body", "location"),
    [
        ("schema_version = 2\n[radar]\n", "schema_version"),
        ("schema_version = 1\n[radar]\nunknown_key = 1\n", "radar.unknown_key"),
        ("schema_version = 1\n[radar]\nhot_min_total = 120\n", "radar.hot_min_total"),
        (
            "schema_version = 1\n[radar]\nlead_sweep_interval_seconds = 0\n",
            "radar.lead_sweep_interval_seconds",
        ),
        ("schema_version = 1\n[radar]\nscore_max_reasons = 0\n", "radar.score_max_reasons"),
        ("schema_version = 1\n[radar]\ncatalog_paths = [\" \"]\n", "radar.catalog_paths"),
    ],
)
def test_load_radar_config_file_rejects_invalid_values(body: str, location: str) -> None:
    fs = InMemoryFileSystem()
    path = Path("radar.toml")
    _write(fs, path, body)

    with pytest.raises(ConfigFileValidationError, match=location):
        load_radar_config_file(path=path, fs=fs)


def test_load_radar_config_file_rejects_inverted_thresholds() -> None:
    fs = InMemoryFileSystem()
    path = Path("radar.toml")
    _write(
        fs,
        path,
        "schema_version = 1\n[radar]\nhot_max_recent_days = 100\nwarm_max_recent_days = 90\n",
    )

    with pytest.raises(ConfigFileValidationError, match="max_recent_days"):
        load_radar_config_file(path=path, fs=fs)
