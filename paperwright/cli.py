"""
paperwright command-line interface

Builds rendered papers and slide decks from the Markdown sources in a directory.

Commands:
    build  - Build stale targets (the default when no command is given)
    list   - Show targets and whether they are up to date
    clean  - Remove generated outputs and cached resources
    update - Re-fetch the citation database and annex-f snapshot

Examples:\n

    paperwright                                 # Build everything that is stale

    paperwright build P1234R0.html -j 4         # Build one target

    paperwright --srcdir papers build --force   # Rebuild all targets in papers/

    paperwright update                          # Refresh cached resources
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import typer
from typing_extensions import Annotated

from paperwright.config import BuildSettings, load_settings
from paperwright.contexts.building import BuildDriver, BuildReport, TargetOutcome
from paperwright.contexts.building.logger import setup_building_logger
from paperwright.contexts.caching import ResourceFetchError
from paperwright.contexts.resolving import UnknownTargetError, select_targets, unmatched_documents
from paperwright.utils.timestamp import format_mtime, now

app = typer.Typer(
    help="Incrementally build HTML papers and PDF slide decks from Markdown sources",
    add_completion=False,
    invoke_without_command=True,
)

OUTCOME_STYLES = {
    TargetOutcome.BUILT: ("✓", typer.colors.GREEN),
    TargetOutcome.UP_TO_DATE: ("=", None),
    TargetOutcome.FAILED: ("✗", typer.colors.RED),
    TargetOutcome.SKIPPED: ("-", typer.colors.YELLOW),
}


@dataclass
class CliState:
    settings: BuildSettings
    verbose: bool


def _driver(ctx: typer.Context) -> BuildDriver:
    state: CliState = ctx.obj
    return BuildDriver(state.settings, verbose=state.verbose)


def _fail(message: str) -> None:
    typer.secho(f"Error: {message}\n", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _print_report(report: BuildReport) -> None:
    for result in report.results:
        symbol, color = OUTCOME_STYLES[result.outcome]
        typer.secho(f"  {symbol} {result.target.name} ({result.outcome.value})", fg=color)
        if result.outcome is TargetOutcome.FAILED and result.error:
            for line in result.error.splitlines():
                typer.secho(f"      {line}", fg=typer.colors.RED)

    typer.echo("")
    summary = (
        f"{len(report.built)} built, {len(report.up_to_date)} up to date, "
        f"{len(report.failed)} failed, {len(report.skipped)} skipped"
    )
    if report.success:
        typer.secho(f"✓ {summary}", fg=typer.colors.GREEN, bold=True)
    else:
        typer.secho(f"✗ {summary}", fg=typer.colors.RED, bold=True)


def _run_build(
    ctx: typer.Context,
    requested: List[str],
    jobs: Optional[int],
    fail_fast: bool,
    force: bool,
) -> None:
    driver = _driver(ctx)

    try:
        targets = driver.resolve()
        if requested:
            targets = select_targets(targets, requested)
        report = driver.build(
            targets=targets if requested else None,
            jobs=jobs,
            fail_fast=fail_fast,
            force=force,
        )
    except (UnknownTargetError, FileNotFoundError) as e:
        _fail(str(e))

    if not report.results:
        typer.secho(f"No targets found in {driver.settings.src_dir}", fg=typer.colors.YELLOW)
        raise typer.Exit(code=0)

    typer.echo("")
    _print_report(report)
    raise typer.Exit(code=report.exit_code)


@app.callback()
def main(
    ctx: typer.Context,
    srcdir: Annotated[
        Optional[Path],
        typer.Option("--srcdir", "-C", help="Source directory (env: PAPERWRIGHT_SRCDIR, default: .)"),
    ] = None,
    outdir: Annotated[
        Optional[Path],
        typer.Option(
            "--outdir", "-o", help="Output directory (env: PAPERWRIGHT_OUTDIR, default: generated)"
        ),
    ] = None,
    defaults: Annotated[
        Optional[Path],
        typer.Option("--defaults", help="Repo-wide rendering defaults (env: PAPERWRIGHT_DEFAULTS)"),
    ] = None,
    metadata: Annotated[
        Optional[Path],
        typer.Option("--metadata", help="Repo-wide metadata (env: PAPERWRIGHT_METADATA)"),
    ] = None,
    cache_dir: Annotated[
        Optional[Path],
        typer.Option("--cache-dir", help="Resource cache directory (env: PAPERWRIGHT_CACHEDIR)"),
    ] = None,
    log_dir: Annotated[
        Optional[Path],
        typer.Option(
            "--log-dir", help="Write a DEBUG log under this directory (env: PAPERWRIGHT_LOG_DIR)"
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug messages and renderer output"),
    ] = False,
):
    """Build all stale targets when no command is provided."""
    try:
        settings = load_settings(
            src_dir=srcdir,
            out_dir=outdir,
            repo_defaults=defaults,
            repo_metadata=metadata,
            cache_dir=cache_dir,
        )
    except ValueError as e:
        _fail(str(e))

    session_log_dir = log_dir or settings.log_dir
    if session_log_dir is not None:
        session_log_dir = session_log_dir / f"build_{now()}"
    setup_building_logger(session_log_dir, renderer=settings.pandoc_bin, verbose=verbose)

    ctx.obj = CliState(settings=settings, verbose=verbose)

    if ctx.invoked_subcommand is None:
        _run_build(ctx, requested=[], jobs=None, fail_fast=False, force=False)


@app.command("build")
def build_command(
    ctx: typer.Context,
    targets: Annotated[
        Optional[List[str]],
        typer.Argument(
            help="Targets to build, as source (P1234.md), output (generated/P1234.html) or output name",
        ),
    ] = None,
    jobs: Annotated[
        Optional[int],
        typer.Option(
            "--jobs", "-j", help="Targets built concurrently (env: PAPERWRIGHT_JOBS)", min=1
        ),
    ] = None,
    fail_fast: Annotated[
        bool,
        typer.Option("--fail-fast", help="Stop starting new targets after the first failure"),
    ] = False,
    force: Annotated[
        bool,
        typer.Option("--force", "-B", help="Rebuild targets even when up to date"),
    ] = False,
):
    """
    Build stale targets.

    Examples:\n

        $ paperwright build                      # All stale targets

        $ paperwright build P1234R0.md -B        # Force one target

        $ paperwright build -j 8 --fail-fast     # Parallel, stop on first failure
    """
    _run_build(ctx, requested=targets or [], jobs=jobs, fail_fast=fail_fast, force=force)


@app.command("list")
def list_command(ctx: typer.Context):
    """
    List targets with their kind and staleness.

    Markdown files that are not targets are listed separately.
    """
    driver = _driver(ctx)

    try:
        reports = driver.status()
    except FileNotFoundError as e:
        _fail(str(e))

    if not reports:
        typer.secho(f"No targets found in {driver.settings.src_dir}", fg=typer.colors.YELLOW)

    for report in reports:
        output = report.target.output_path
        mtime = output.stat().st_mtime if output.exists() else None
        state = "stale" if report.stale else "fresh"
        color = typer.colors.YELLOW if report.stale else typer.colors.GREEN
        typer.secho(
            f"  {report.target.name:<32} {report.target.kind.value:<7} {state:<6} "
            f"{format_mtime(mtime, relative=True):<10} {report.reason}",
            fg=color,
        )

    skipped = unmatched_documents(driver.settings.src_dir)
    if skipped:
        typer.echo("\nNot targets:")
        for document in skipped:
            typer.echo(f"  {document.name}")


@app.command("clean")
def clean_command(ctx: typer.Context):
    """Remove all generated outputs and cached resources."""
    try:
        removed = _driver(ctx).clean()
    except ValueError as e:
        _fail(str(e))

    if not removed:
        typer.echo("Nothing to clean.")
    for path in removed:
        typer.echo(f"  removed {path}")


@app.command("update")
def update_command(ctx: typer.Context):
    """Re-fetch the citation database and the annex-f snapshot."""
    try:
        paths = _driver(ctx).update()
    except ResourceFetchError as e:
        _fail(str(e))

    typer.secho("✓ Resources updated", fg=typer.colors.GREEN, bold=True)
    for resource_id, path in paths.items():
        typer.echo(f"  {resource_id}: {path}")


if __name__ == "__main__":
    app()
