"""Observability helpers."""

from .logging import get_logger, set_package_log_level

__all__ = ["get_logger", "set_package_log_level"]
