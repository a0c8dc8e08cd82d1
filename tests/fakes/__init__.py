"""Exports for test fakes."""

from .clock import ManualClock
from .filesystem import InMemoryFileSystem

__all__ = ["InMemoryFileSystem", "ManualClock"]
