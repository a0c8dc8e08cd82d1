"""Composition root for wiring CLI dependencies."""

from __future__ import annotations

from .application.services import build_services
from .cli import CliDependencies, create_app
from .config import RadarConfig
from .infrastructure import LocalFileSystem


def build_cli_dependencies(*, config: RadarConfig) -> CliDependencies:
    """Build concrete dependencies for CLI commands.

    Args:
        config: Radar configuration (catalog sources, thresholds, lifecycle windows).
    """
    fs = LocalFileSystem()
    return CliDependencies(fs=fs, services=build_services(config, fs=fs))


app = create_app(build_cli_dependencies)
