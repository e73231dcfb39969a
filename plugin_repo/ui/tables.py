"""Table rendering utilities for CLI output."""

from rich.table import Table

from plugin_repo.domain.models import RemoteAsset


def create_statistics_table(package_stats: list[dict]) -> Table:
    """Create a table for displaying download statistics.

    Args:
        package_stats: List of dictionaries with package, versions,
            latest_version, total_downloads

    Returns:
        Rich Table object ready for display
    """
    table = Table(title=f"Download Statistics ({len(package_stats)} packages)")
    table.add_column("Package", style="cyan")
    table.add_column("Latest", style="white")
    table.add_column("Versions", justify="right", style="dim")
    table.add_column("Downloads", justify="right", style="green")

    total_downloads = 0
    for stats in package_stats:
        table.add_row(
            stats["package"],
            stats["latest_version"] or "-",
            str(stats["versions"]),
            f"{stats['total_downloads']:,}",
        )
        total_downloads += stats["total_downloads"]

    # Add totals row if multiple packages
    if len(package_stats) > 1:
        table.add_section()
        table.add_row("[bold]TOTAL[/bold]", "", "", f"[bold]{total_downloads:,}[/bold]")

    return table


def create_asset_table(assets: list[RemoteAsset], title: str = "Assets") -> Table:
    """Create a table listing release assets."""
    table = Table(title=f"{title} ({len(assets)} total)")
    table.add_column("Name", style="white")
    table.add_column("Created", style="dim")
    table.add_column("Downloads", justify="right", style="green")
    table.add_column("Size", justify="right", style="dim")

    for asset in assets:
        table.add_row(
            asset.name,
            asset.created_at.strftime("%Y-%m-%d %H:%M"),
            str(asset.download_count),
            f"{asset.size_bytes / 1024 / 1024:.1f} MB",
        )

    return table
