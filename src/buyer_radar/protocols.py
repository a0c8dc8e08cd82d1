"""Protocol definitions for dependency injection.

These protocols describe the seams the radar components depend on, so tests
can swap in in-memory filesystems and manual clocks.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import pandas as pd


@runtime_checkable
class FileSystem(Protocol):
    """Abstract filesystem for catalog inputs and operator exports."""

    def read_text(self, path: Path) -> str:
        """Read text file."""
        ...

    def write_text(self, content: str, path: Path) -> None:
        """Write text file."""
        ...

    def write_csv(self, df: pd.DataFrame, path: Path) -> None:
        """Write DataFrame to CSV file."""
        ...

    def exists(self, path: Path) -> bool:
        """Check if path exists."""
        ...


class Clock(Protocol):
    """Source of the current time (timezone-aware)."""

    def __call__(self) -> datetime: ...


class SourceLoader(Protocol):
    """Produces raw catalog source payloads in priority order."""

    def __call__(self) -> Sequence[object]: ...
