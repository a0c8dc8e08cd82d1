"""Tests for CLI wiring and overrides."""

import json
import re
from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

from buyer_radar import cli
from buyer_radar.application.services import build_services
from buyer_radar.cli import CliDependencies
from buyer_radar.config import RadarConfig
from buyer_radar.exceptions import ConfigFileNotFoundError, ThresholdOrderError
from tests.fakes import InMemoryFileSystem

runner = CliRunner()
_ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*m")

CATALOG_ENV = {
    "BUYERS_CATALOG_TIER_C_JSON": json.dumps(
        [
            {
                "host": "https://www.x.com",
                "name": "X Coffee",
                "tags": ["ecommerce"],
                "tiers": ["C"],
            },
            {"host": "y.com", "tiers": ["C"]},
            {"host": "not a host"},
        ]
    ),
}


def _strip_ansi(text: str) -> str:
    return _ANSI_ESCAPE_RE.sub("", text)


@pytest.fixture(autouse=True)
def fake_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    def from_env(cls: type[RadarConfig], dotenv_path: str | None = None) -> RadarConfig:
        _ = (cls, dotenv_path)
        return RadarConfig()

    monkeypatch.setattr(cli.RadarConfig, "from_env", classmethod(from_env))


def _build_app(fs: InMemoryFileSystem, captured: list[RadarConfig] | None = None) -> typer.Typer:
    def build_cli_dependencies(*, config: RadarConfig) -> CliDependencies:
        if captured is not None:
            captured.append(config)
        return CliDependencies(
            fs=fs, services=build_services(config, fs=fs, getenv=CATALOG_ENV.get)
        )

    return cli.create_app(build_cli_dependencies)


def test_catalog_prints_merge_report(in_memory_fs: InMemoryFileSystem) -> None:
    result = runner.invoke(_build_app(in_memory_fs), ["catalog"])

    assert result.exit_code == 0
    output = _strip_ansi(result.output)
    assert "Catalog loaded: 2 listings" in output
    assert "rejected invalid_host: 1" in output
    assert "x.com" in output


def test_catalog_sources_override_config(in_memory_fs: InMemoryFileSystem) -> None:
    captured: list[RadarConfig] = []
    in_memory_fs.write_text('{"buyers": [{"host": "z.com"}]}', Path("data/ab.json"))

    result = runner.invoke(
        _build_app(in_memory_fs, captured), ["catalog", "--source", "data/ab.json"]
    )

    assert result.exit_code == 0
    assert captured[-1].catalog_paths == ("data/ab.json",)
    assert "Catalog loaded: 3 listings" in _strip_ansi(result.output)


def test_catalog_unknown_host_exits_non_zero(in_memory_fs: InMemoryFileSystem) -> None:
    result = runner.invoke(_build_app(in_memory_fs), ["catalog", "--host", "nobody.com"])

    assert result.exit_code == 1
    assert "No listing for nobody.com" in _strip_ansi(result.output)


def test_prefs_applies_patch_file(in_memory_fs: InMemoryFileSystem) -> None:
    in_memory_fs.write_text('{"city": "Austin", "maxHot": 99}', Path("prefs.json"))

    result = runner.invoke(_build_app(in_memory_fs), ["prefs", "buyer1", "--prefs", "prefs.json"])

    assert result.exit_code == 0
    output = _strip_ansi(result.output)
    assert "Preferences for buyer1" in output
    assert "city=Austin" in output


def test_prefs_rejects_missing_and_non_object_files(in_memory_fs: InMemoryFileSystem) -> None:
    in_memory_fs.write_text("[1, 2]", Path("list.json"))
    app = _build_app(in_memory_fs)

    missing = runner.invoke(app, ["prefs", "buyer1", "--prefs", "missing.json"])
    not_object = runner.invoke(app, ["prefs", "buyer1", "--prefs", "list.json"])

    assert missing.exit_code == 2
    assert not_object.exit_code == 2


def test_score_uses_signals_file(in_memory_fs: InMemoryFileSystem) -> None:
    in_memory_fs.write_text('{"x.com": {"daysSinceLaunch": 3}}', Path("signals.json"))

    result = runner.invoke(
        _build_app(in_memory_fs), ["score", "buyer1", "x.com", "--signals", "signals.json"]
    )

    assert result.exit_code == 0
    output = _strip_ansi(result.output)
    assert "x.com: cold" in output
    assert "recency=100" in output


def test_score_unknown_host_exits_non_zero(in_memory_fs: InMemoryFileSystem) -> None:
    result = runner.invoke(_build_app(in_memory_fs), ["score", "buyer1", "nobody.com"])

    assert result.exit_code == 1


def test_shortlist_writes_csv(in_memory_fs: InMemoryFileSystem) -> None:
    result = runner.invoke(
        _build_app(in_memory_fs),
        ["shortlist", "buyer1", "--include-cold", "--output", "out/shortlist.csv"],
    )

    assert result.exit_code == 0
    frame = in_memory_fs.read_csv(Path("out/shortlist.csv"))
    assert sorted(frame["host"].tolist()) == ["x.com", "y.com"]
    assert set(frame["classification"]) == {"cold"}
    assert "Shortlist: 2 listings" in _strip_ansi(result.output)


def test_global_config_file_overrides_env(in_memory_fs: InMemoryFileSystem) -> None:
    in_memory_fs.write_text(
        "schema_version = 1\n[radar]\nhot_min_total = 80\nwarm_max_recent_days = 120\n",
        Path("radar.toml"),
    )

    result = runner.invoke(_build_app(in_memory_fs), ["--config", "radar.toml", "thresholds"])

    assert result.exit_code == 0
    output = _strip_ansi(result.output)
    assert "hot: total>=80 intent>=60 days<=21" in output
    assert "warm: total>=55 intent>=40 days<=120" in output


def test_config_file_with_inverted_thresholds_is_a_usage_error(
    in_memory_fs: InMemoryFileSystem,
) -> None:
    in_memory_fs.write_text("schema_version = 1\n[radar]\nhot_min_total = 50\n", Path("radar.toml"))

    result = runner.invoke(_build_app(in_memory_fs), ["--config", "radar.toml", "thresholds"])

    assert result.exit_code == 2
    assert not isinstance(result.exception, ThresholdOrderError)


def test_missing_config_file_is_a_usage_error(in_memory_fs: InMemoryFileSystem) -> None:
    result = runner.invoke(_build_app(in_memory_fs), ["--config", "missing.toml", "thresholds"])

    assert result.exit_code == 2
    assert not isinstance(result.exception, ConfigFileNotFoundError)


def test_unknown_log_level_is_rejected(in_memory_fs: InMemoryFileSystem) -> None:
    result = runner.invoke(_build_app(in_memory_fs), ["--log-level", "chatty", "thresholds"])

    assert result.exit_code == 2

