"""Tests for shared observability logging."""

import logging
import time

import pytest

from buyer_radar.observability.logging import (
    UnknownLogLevelError,
    get_logger,
    set_package_log_level,
)


def test_get_logger_formats_utc_timestamps(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    fixed = time.struct_time((2020, 1, 2, 3, 4, 5, 3, 2, 0))

    def fake_gmtime(_: float | None = None) -> time.struct_time:
        return fixed

    monkeypatch.setattr(time, "gmtime", fake_gmtime)

    name = "buyer_radar.test.logging"
    logger = get_logger(name)
    logger.info("Hello")

    captured = capsys.readouterr()
    assert "2020-01-02T03:04:05+0000 INFO buyer_radar.test.logging: Hello" in captured.err


def test_get_logger_is_singleton_per_name() -> None:
    name = "buyer_radar.test.logging.singleton"
    logger = get_logger(name)
    logger_again = get_logger(name)

    assert logger is logger_again
    assert len(logger.handlers) == 1
    assert logger.level == logging.INFO


def test_set_package_log_level_only_touches_package_loggers() -> None:
    ours = get_logger("buyer_radar.test.logging.level")
    other = get_logger("someone_else.test.logging")

    try:
        assert set_package_log_level(" DEBUG ") == logging.DEBUG
        assert ours.level == logging.DEBUG
        assert other.level == logging.INFO
    finally:
        set_package_log_level("info")


def test_set_package_log_level_rejects_unknown_names() -> None:
    with pytest.raises(UnknownLogLevelError, match="verbose"):
        set_package_log_level("verbose")
