"""Operator CLI for Buyer Radar.

Commands:
- catalog: Load and merge catalog sources, print the merge report
- prefs: Resolve preferences for a caller, optionally applying a JSON patch
- score: Score one catalog listing for a caller
- shortlist: Rank the catalog for a caller and optionally export CSV
- thresholds: Show the classification thresholds in force
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Protocol

import typer
from rich import print as rprint

from .application.services import RadarServices
from .application.shortlist import write_shortlist_csv
from .config import RadarConfig
from .config_file import load_radar_config_file
from .domain.preferences import EffectivePreferences
from .exceptions import (
    ConfigFileNotFoundError,
    ConfigFileParseError,
    ConfigFileValidationError,
    ThresholdOrderError,
)
from .io_validation import IncomingDataError, as_mapping, validate_json_as
from .observability.logging import UnknownLogLevelError, set_package_log_level
from .protocols import FileSystem


class DependenciesBuilder(Protocol):
    """Protocol for constructing CLI dependencies."""

    def __call__(self, *, config: RadarConfig) -> CliDependencies:
        """Build dependencies for CLI commands."""
        ...


@dataclass(frozen=True)
class CliDependencies:
    """Concrete dependencies required by the CLI."""

    fs: FileSystem
    services: RadarServices


@dataclass(frozen=True)
class CliContext:
    """Runtime CLI context for a single command invocation."""

    config: RadarConfig
    deps_builder: DependenciesBuilder

    def build_dependencies(self, *, config: RadarConfig | None = None) -> CliDependencies:
        """Return dependencies using the configured builder."""
        return self.deps_builder(config=config or self.config)


class CliContextNotInitialisedError(typer.BadParameter):
    """Raised when CLI context is missing."""

    def __init__(self) -> None:
        super().__init__("CLI context is not initialised. Use the buyer-radar entry point.")


class JsonFileError(typer.BadParameter):
    """Raised when a JSON option file is missing or not a JSON object."""

    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(f"{path}: {detail}")


def _get_context(ctx: typer.Context) -> CliContext:
    if not isinstance(ctx.obj, CliContext):
        raise CliContextNotInitialisedError()
    return ctx.obj


def _read_json_object(path: Path, fs: FileSystem) -> dict[str, object]:
    if not fs.exists(path):
        raise JsonFileError(path, "file not found")
    try:
        return validate_json_as(dict[str, object], fs.read_text(path))
    except IncomingDataError as exc:
        raise JsonFileError(path, "expected a JSON object") from exc


def _with_sources(config: RadarConfig, sources: list[Path] | None) -> RadarConfig:
    if not sources:
        return config
    return config.with_overrides(catalog_paths=tuple(str(path) for path in sources))


def _load_inputs(
    deps: CliDependencies,
    *,
    key: str,
    prefs_path: Path | None,
    signals_path: Path | None,
) -> EffectivePreferences:
    services = deps.services
    if signals_path is not None:
        for host, patch in _read_json_object(signals_path, deps.fs).items():
            services.signals.upsert(host, as_mapping(patch))
    if prefs_path is not None:
        return services.preferences.set(key, _read_json_object(prefs_path, deps.fs))
    return services.preferences.get(key)


SourcesOption = Annotated[
    list[Path] | None,
    typer.Option(
        "--source",
        "-s",
        help="Catalog JSON file (repeatable, highest priority first; overrides config)",
    ),
]
PrefsOption = Annotated[
    Path | None,
    typer.Option("--prefs", "-p", help="JSON preference patch applied for the caller"),
]
SignalsOption = Annotated[
    Path | None,
    typer.Option("--signals", help="JSON object mapping host to a signals payload"),
]


def create_app(deps_builder: DependenciesBuilder) -> typer.Typer:
    """Create a Typer app wired with the provided dependencies builder."""
    app = typer.Typer(
        add_completion=False,
        help="Buyer radar: merge buyer catalogs, resolve preferences, score and shortlist",
    )

    @app.callback()
    def main(
        ctx: typer.Context,
        config_path: Annotated[
            Path | None,
            typer.Option("--config", "-c", help="TOML config file overriding environment"),
        ] = None,
        log_level: Annotated[
            str | None,
            typer.Option("--log-level", help="debug, info, warning or error"),
        ] = None,
    ) -> None:
        """Initialise CLI context."""
        config = RadarConfig.from_env()
        if config_path is not None:
            fs = deps_builder(config=config).fs
            try:
                file_config = load_radar_config_file(path=config_path, fs=fs)
                config = config.with_file_overrides(file_config)
            except (
                ConfigFileNotFoundError,
                ConfigFileParseError,
                ConfigFileValidationError,
                ThresholdOrderError,
            ) as exc:
                raise typer.BadParameter(str(exc), param_hint="--config") from exc
        if log_level is not None:
            try:
                set_package_log_level(log_level)
            except UnknownLogLevelError as exc:
                raise typer.BadParameter(str(exc), param_hint="--log-level") from exc
        ctx.obj = CliContext(config=config, deps_builder=deps_builder)

    @app.command()
    def catalog(
        ctx: typer.Context,
        sources: SourcesOption = None,
        host: Annotated[
            str | None, typer.Option("--host", help="Show a single listing by host")
        ] = None,
        limit: Annotated[int, typer.Option("--limit", "-n", help="Listings to print")] = 20,
    ) -> None:
        """Load and merge catalog sources, then print the merge report."""
        state = _get_context(ctx)
        deps = state.build_dependencies(config=_with_sources(state.config, sources))
        snapshot = deps.services.catalog.reload()
        report = snapshot.report
        rprint(f"[green]✓ Catalog loaded:[/green] {report.listings:,} listings")
        rprint(
            f"  {report.sources} sources ({report.unavailable_sources} unavailable), "
            f"{report.candidates:,} candidates, {report.rejected:,} rejected, "
            f"{report.duplicates:,} duplicates"
        )
        for reason, count in sorted(report.rejected_reasons.items()):
            rprint(f"  rejected {reason}: {count:,}")

        if host is not None:
            listing = deps.services.catalog.find(host)
            if listing is None:
                rprint(f"[yellow]No listing for {host}[/yellow]")
                raise typer.Exit(code=1)
            rprint(listing)
            return
        for listing in snapshot.listings[: max(0, limit)]:
            tiers = ",".join(listing.tiers) or "-"
            rprint(f"  {listing.host}  {listing.name}  tiers={tiers}  size={listing.size_key}")

    @app.command()
    def prefs(
        ctx: typer.Context,
        key: Annotated[str, typer.Argument(help="Caller key (host or id)")],
        patch_path: PrefsOption = None,
    ) -> None:
        """Resolve preferences for a caller, optionally applying a JSON patch first."""
        state = _get_context(ctx)
        deps = state.build_dependencies()
        resolved = _load_inputs(deps, key=key, prefs_path=patch_path, signals_path=None)
        rprint(f"[green]✓ Preferences for {resolved.key or '<anonymous>'}:[/green]")
        rprint(f"  {deps.services.preferences.summary(key)}")
        rprint(resolved)

    @app.command()
    def score(
        ctx: typer.Context,
        key: Annotated[str, typer.Argument(help="Caller key (host or id)")],
        host: Annotated[str, typer.Argument(help="Listing host to score")],
        sources: SourcesOption = None,
        prefs_path: PrefsOption = None,
        signals_path: SignalsOption = None,
    ) -> None:
        """Score one catalog listing for a caller."""
        state = _get_context(ctx)
        deps = state.build_dependencies(config=_with_sources(state.config, sources))
        _load_inputs(deps, key=key, prefs_path=prefs_path, signals_path=signals_path)
        breakdown = deps.services.score(key, host)
        if breakdown is None:
            rprint(f"[yellow]No listing for {host}[/yellow]")
            raise typer.Exit(code=1)
        rprint(
            f"[green]✓ {host}: {breakdown.classification}[/green] total={breakdown.total} "
            f"fit={breakdown.fit} intent={breakdown.intent} recency={breakdown.recency}"
        )
        for reason in breakdown.reasons:
            rprint(f"  - {reason}")

    @app.command()
    def shortlist(
        ctx: typer.Context,
        key: Annotated[str, typer.Argument(help="Caller key (host or id)")],
        sources: SourcesOption = None,
        prefs_path: PrefsOption = None,
        signals_path: SignalsOption = None,
        output: Annotated[
            Path | None, typer.Option("--output", "-o", help="Write the shortlist as CSV")
        ] = None,
        include_cold: Annotated[
            bool, typer.Option("--include-cold", help="Append cold listings after hot and warm")
        ] = False,
    ) -> None:
        """Rank the catalog for a caller (hot first, capped by preferences)."""
        state = _get_context(ctx)
        deps = state.build_dependencies(config=_with_sources(state.config, sources))
        _load_inputs(deps, key=key, prefs_path=prefs_path, signals_path=signals_path)
        rows = deps.services.shortlist(key, include_cold=include_cold)
        rprint(f"[green]✓ Shortlist:[/green] {len(rows)} listings")
        for row in rows:
            rprint(f"  {row.score.classification:<4} {row.listing.host}  total={row.score.total}")
        if output is not None:
            written = write_shortlist_csv(rows, output, fs=deps.fs)
            rprint(f"  csv: {written}")

    @app.command()
    def thresholds(ctx: typer.Context) -> None:
        """Show the classification thresholds in force."""
        state = _get_context(ctx)
        current = state.build_dependencies().services.thresholds.current()
        for label, triple in (("hot", current.hot), ("warm", current.warm)):
            rprint(
                f"{label}: total>={triple.min_total:g} intent>={triple.min_intent:g} "
                f"days<={triple.max_recent_days:g}"
            )

    _ = (main, catalog, prefs, score, shortlist, thresholds)

    return app
