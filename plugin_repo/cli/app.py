"""Typer-based CLI for the plugin release synchronizer."""

import logging

import httpx
import orjson
import requests
import typer
from rich.logging import RichHandler

from plugin_repo.config import Settings
from plugin_repo.domain.services import StatisticsService
from plugin_repo.operations.github import ReleaseNotFoundError
from plugin_repo.orchestrators import PluginSync
from plugin_repo.ui import Reporter
from plugin_repo.ui.tables import create_asset_table, create_statistics_table

app = typer.Typer(help="Plugin bundle release synchronizer")

# Errors that make a run impossible rather than degrading a single package
SETUP_ERRORS = (ReleaseNotFoundError, httpx.HTTPError, requests.RequestException, ValueError)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Show help when no subcommand is provided."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command()
def sync():
    """Bundle stale packages, upload them, prune old versions and update statistics."""
    reporter = Reporter()
    config = Settings()
    orchestrator = PluginSync(config)

    try:
        context = orchestrator.sync_plugins(reporter=reporter)
    except SETUP_ERRORS as e:
        reporter.report_error(str(e))
        raise typer.Exit(1) from e

    if context.halted:
        reporter.console.print("[dim]Run halted early, it will resume on the next invocation[/dim]")


@app.command()
def stats(
    package: str = typer.Option(None, "--package", "-p", help="Filter by package name"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show the published download statistics."""
    config = Settings()
    reporter = Reporter()

    try:
        snapshot = PluginSync(config).read_statistics()
    except SETUP_ERRORS as e:
        reporter.report_error(str(e))
        raise typer.Exit(1) from e

    package_stats = StatisticsService.get_package_statistics(snapshot, package=package)

    if not package_stats:
        if json_output:
            typer.echo(orjson.dumps([]).decode())
        else:
            reporter.console.print("[dim]No matching packages found[/dim]")
        return

    if json_output:
        typer.echo(orjson.dumps(package_stats, option=orjson.OPT_INDENT_2).decode())
    else:
        reporter.console.print(create_statistics_table(package_stats))


@app.command()
def prune(
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Show what would be pruned without deleting"
    ),
):
    """Delete assets beyond the retention window of each package."""
    config = Settings()
    reporter = Reporter()

    try:
        pruned = PluginSync(config).prune(reporter=reporter, dry_run=dry_run)
    except SETUP_ERRORS as e:
        reporter.report_error(str(e))
        raise typer.Exit(1) from e

    if not pruned:
        reporter.console.print("[dim]No assets to prune[/dim]")
        return

    title = "Would prune" if dry_run else "Pruned"
    reporter.console.print(create_asset_table(pruned, title=title))

    if dry_run:
        reporter.console.print("\n[yellow]Run without --dry-run to actually prune[/yellow]")


if __name__ == "__main__":
    app()
