"""Reporter for pipeline output and progress tracking."""

from rich.console import Console
from rich.progress import BarColumn, Progress, TextColumn, TimeElapsedColumn

from plugin_repo.domain.types import BundleProgressHook


class Reporter:
    """Pipeline reporter with rich progress bars and formatted output."""

    def __init__(self, silent: bool = False) -> None:
        """Initialize reporter.

        Args:
            silent: If True, suppress all output (for testing/automation).
        """
        self.silent = silent
        self.console = Console(quiet=silent)
        self._bundle_progress: Progress | None = None
        self._bundle_task_id: int | None = None

    def report_catalog(self, count: int) -> None:
        """Report how many packages are tracked."""
        if not self.silent:
            self.console.print(f"Processing {count} packages...")

    def report_up_to_date(self, package: str, version: str) -> None:
        if not self.silent:
            self.console.print(f"[dim]{package} v{version} is up to date[/dim]")

    def report_packages_to_bundle(self, count: int, total: int) -> None:
        """Report how many packages need a new bundle."""
        if not self.silent:
            self.console.print(f"Generating update bundles for {count} of {total} packages...")

    def bundle_context(self):
        """Context manager for bundle progress display."""
        if self.silent:

            class NoOpContext:
                def __enter__(self):
                    return self

                def __exit__(self, *args):
                    pass

            return NoOpContext()

        class BundleContext:
            def __init__(ctx_self, reporter):
                ctx_self.reporter = reporter

            def __enter__(ctx_self):
                progress = Progress(
                    TextColumn("{task.description}"),
                    BarColumn(),
                    TextColumn("{task.completed}/{task.total} packages"),
                    TimeElapsedColumn(),
                    console=ctx_self.reporter.console,
                )
                ctx_self.reporter._bundle_progress = progress
                progress.__enter__()
                return progress

            def __exit__(ctx_self, *args):
                if ctx_self.reporter._bundle_progress:
                    ctx_self.reporter._bundle_progress.__exit__(*args)
                    ctx_self.reporter._bundle_progress = None
                    ctx_self.reporter._bundle_task_id = None

        return BundleContext(self)

    def create_bundle_progress_hook(self) -> BundleProgressHook:
        """Create a progress hook for bundle construction."""
        if self.silent:

            def hook(package: str, current: int, total: int) -> None:
                pass

            return hook

        if self._bundle_progress is None:
            raise RuntimeError("Must be called within bundle_context")

        def hook(package: str, current: int, total: int) -> None:
            progress = self._bundle_progress
            if progress is None:
                return

            if self._bundle_task_id is None:
                self._bundle_task_id = progress.add_task("Bundling", total=total)
            progress.update(
                self._bundle_task_id, completed=current, description=f"Bundling {package}"
            )

        return hook

    def report_uploaded(self, asset_name: str) -> None:
        if not self.silent:
            self.console.print(f"[green]✓[/green] Uploaded {asset_name}")

    def report_purged(self, asset_name: str) -> None:
        if not self.silent:
            self.console.print(f"[red]✗[/red] Purged {asset_name}")

    def report_quota_exhausted(self) -> None:
        """Report the cooperative halt on API quota exhaustion."""
        if not self.silent:
            self.console.print(
                "\n[yellow]GitHub API rate limit exhausted.[/yellow] "
                "Remaining packages will be processed next run."
            )

    def report_statistics_updated(self, asset_name: str, packages: int) -> None:
        if not self.silent:
            self.console.print(f"Updated {asset_name} ({packages} packages)")

    def report_warning(self, message: str) -> None:
        """Report a warning message."""
        if not self.silent:
            self.console.print(f"\n[yellow]Warning:[/yellow] {message}")

    def report_error(self, message: str) -> None:
        """Report an error message."""
        if not self.silent:
            self.console.print(f"\n[red]Error:[/red] {message}")
