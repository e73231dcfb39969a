"""Plugin release synchronization orchestrator.

Coordinates the complete end-to-end release synchronization workflow.
"""

from collections.abc import Callable
from contextlib import nullcontext
from datetime import datetime, timezone
from functools import partial
from logging import getLogger

import httpx
import orjson
import requests
from pydantic import ValidationError

from plugin_repo.config import Settings
from plugin_repo.domain.models import AssetKind, RemoteAsset, RunContext, StatisticsSnapshot
from plugin_repo.domain.naming import asset_label, asset_name
from plugin_repo.domain.services import RetentionService, StalenessService, StatisticsService
from plugin_repo.domain.types import VersionResolver
from plugin_repo.operations.github import GitHubReleaseClient
from plugin_repo.operations.registry import fetch_catalog, fetch_latest_version
from plugin_repo.operations.toolchain import NpmToolchain
from plugin_repo.orchestrators.bundling import BundleCache
from plugin_repo.state.manager import SnapshotManager
from plugin_repo.ui import Reporter

logger = getLogger(__name__)


class PluginSync:
    """Orchestrates the complete release synchronization workflow.

    This orchestrator coordinates the entire pipeline:
    1. Fetch the release, its asset inventory and the package catalog
    2. Resolve latest versions and determine which packages are stale
    3. Build bundles for stale packages
    4. Upload bundles, halting cooperatively when the API quota runs out
    5. Delete assets outside the retention window
    6. Stamp the release title with the current date
    7. Merge download counters into the statistics snapshot

    Each stage takes a :class:`RunContext` and returns an updated one.
    Retention works from the inventory fetched in step 1 together with the
    assets uploaded in step 4; the inventory is never re-fetched mid-run.
    """

    def __init__(
        self,
        config: Settings | None = None,
        client: GitHubReleaseClient | None = None,
        toolchain: NpmToolchain | None = None,
        resolver: VersionResolver | None = None,
        catalog_loader: Callable[[], list[str]] | None = None,
    ):
        """Initialize the plugin sync orchestrator.

        Args:
            config: Pipeline configuration. If None, creates new Settings() from environment.
            client: Release asset store. If None, a GitHub client is opened per run.
            toolchain: Installer and packer passed to the bundle cache.
            resolver: Latest-version lookup. Defaults to the npm registry.
            catalog_loader: Catalog source. Defaults to the configured catalog URL.
        """
        self.config = config if config is not None else Settings()
        self.client = client
        self.bundle_cache = BundleCache(self.config, toolchain)
        self.snapshot_manager = SnapshotManager(
            self.config.work_dir / self.config.statistics_asset_name
        )
        self.resolver = resolver or partial(
            fetch_latest_version,
            registry_url=self.config.registry_url,
            timeout=self.config.api_timeout,
        )
        self.catalog_loader = catalog_loader or partial(
            fetch_catalog,
            self.config.catalog_url,
            bootstrap_package=self.config.bootstrap_package,
            excluded=self.config.excluded_packages,
            timeout=self.config.api_timeout,
        )

    def _open_client(self):
        if self.client is not None:
            return nullcontext(self.client)
        return GitHubReleaseClient.from_settings(self.config)

    def sync_plugins(self, reporter: Reporter | None = None) -> RunContext:
        """Run the complete synchronization workflow.

        Args:
            reporter: Optional reporter for progress. Defaults to Reporter().

        Returns:
            Final run context; ``halted`` is set when the API quota ran out

        Raises:
            ReleaseNotFoundError: If the target release does not exist
        """
        if reporter is None:
            reporter = Reporter()

        with self._open_client() as client:
            context = self.open_run(client, reporter)
            context = self.resolve_packages(context, reporter)
            context = self.bundle_cache.ensure_bundles(context, reporter)
            context = self.upload_bundles(context, client, reporter)
            if context.halted:
                return context

            context = self.enforce_retention(context, client, reporter)
            self.update_release_title(context, client, reporter)
            return self.aggregate_statistics(context, client, reporter)

    def open_run(self, client: GitHubReleaseClient, reporter: Reporter) -> RunContext:
        """Fetch the release, its inventory and the catalog. Failures here are fatal."""
        release = client.get_release(self.config.release_tag)
        inventory = client.list_assets(release)
        catalog = self.catalog_loader()
        reporter.report_catalog(len(catalog))
        return RunContext(release=release, inventory=inventory, catalog=catalog)

    def resolve_packages(self, context: RunContext, reporter: Reporter) -> RunContext:
        """Resolve latest versions and flag packages whose bundle is missing.

        A package whose version cannot be resolved is skipped for this run.
        """
        latest_versions: dict[str, str] = {}
        for package in context.catalog:
            try:
                latest_versions[package] = self.resolver(package)
            except (requests.RequestException, ValueError) as e:
                logger.warning(f"Could not resolve {package}: {e}")
                reporter.report_warning(f"Could not resolve {package}: {e}")

        records = StalenessService.classify(latest_versions, context.inventory)
        for record in records:
            if not record.needs_bundle:
                reporter.report_up_to_date(record.name, record.latest_version)

        return context.model_copy(update={"packages": records})

    def upload_bundles(
        self, context: RunContext, client: GitHubReleaseClient, reporter: Reporter
    ) -> RunContext:
        """Publish every built bundle, replacing same-named assets first.

        Stops after the upload that leaves the API quota at zero and returns a
        context with ``halted`` set.
        """
        uploaded = list(context.uploaded)
        deleted_ids = set(context.deleted_ids)
        existing_by_name = {asset.name: asset for asset in context.inventory}

        def updated(halted: bool = False) -> RunContext:
            return context.model_copy(
                update={
                    "uploaded": uploaded,
                    "deleted_ids": frozenset(deleted_ids),
                    "halted": halted,
                }
            )

        for record in context.packaged_packages:
            artifact = self.bundle_cache.artifact_for(record)

            for kind in AssetKind:
                name = asset_name(record.name, record.latest_version, kind)

                existing = existing_by_name.get(name)
                if existing is not None and existing.id not in deleted_ids:
                    if not self._delete_asset(client, existing, reporter):
                        continue
                    deleted_ids.add(existing.id)

                try:
                    content = artifact.path_for(kind).read_bytes()
                    asset = client.upload_asset(
                        context.release,
                        name=name,
                        label=asset_label(record.name, record.latest_version, kind),
                        content=content,
                    )
                except (httpx.HTTPError, OSError) as e:
                    logger.error(f"Failed to upload asset {name}: {e}")
                    reporter.report_error(f"Failed to upload asset {name}: {e}")
                    continue

                uploaded.append(asset)
                logger.info(f"Uploaded {name}")
                reporter.report_uploaded(name)

                if client.rate_limit_exhausted:
                    logger.info("API rate limit exhausted, halting run")
                    reporter.report_quota_exhausted()
                    return updated(halted=True)

        return updated()

    def enforce_retention(
        self, context: RunContext, client: GitHubReleaseClient, reporter: Reporter
    ) -> RunContext:
        """Delete assets outside the retention window of each package and kind."""
        inventory = [a for a in context.inventory if a.id not in context.deleted_ids]
        to_delete = RetentionService.plan_deletions(
            inventory, context.uploaded, self.config.retained_versions
        )

        deleted_ids = set(context.deleted_ids)
        for asset in to_delete:
            if self._delete_asset(client, asset, reporter):
                deleted_ids.add(asset.id)

        return context.model_copy(update={"deleted_ids": frozenset(deleted_ids)})

    def update_release_title(
        self, context: RunContext, client: GitHubReleaseClient, reporter: Reporter
    ) -> None:
        """Set the release title to today's date."""
        title = datetime.now(timezone.utc).date().isoformat()
        try:
            client.update_release_title(context.release, title)
        except httpx.HTTPError as e:
            logger.warning(f"Could not update release title: {e}")
            reporter.report_warning(f"Could not update release title: {e}")

    def aggregate_statistics(
        self, context: RunContext, client: GitHubReleaseClient, reporter: Reporter
    ) -> RunContext:
        """Merge live download counters into the published statistics snapshot."""
        name = self.config.statistics_asset_name
        survivors = context.surviving_assets
        previous_asset = next((a for a in survivors if a.name == name), None)

        try:
            snapshot = self._load_snapshot(client, previous_asset)
        except (httpx.HTTPError, orjson.JSONDecodeError, ValidationError) as e:
            logger.error(f"Could not read {name}, statistics left untouched: {e}")
            reporter.report_error(f"Could not read {name}, statistics left untouched: {e}")
            return context

        merged = StatisticsService.merge(snapshot, survivors)
        payload = self.snapshot_manager.save(merged)

        deleted_ids = set(context.deleted_ids)
        if previous_asset is not None:
            if not self._delete_asset(client, previous_asset, reporter):
                return context
            deleted_ids.add(previous_asset.id)

        uploaded = list(context.uploaded)
        try:
            uploaded.append(
                client.upload_asset(
                    context.release,
                    name=name,
                    label=name,
                    content=payload,
                    content_type="application/json",
                )
            )
            reporter.report_statistics_updated(name, len(merged))
        except httpx.HTTPError as e:
            logger.error(f"Failed to upload {name}: {e}")
            reporter.report_error(f"Failed to upload {name}: {e}")

        return context.model_copy(
            update={"uploaded": uploaded, "deleted_ids": frozenset(deleted_ids)}
        )

    def prune(self, reporter: Reporter | None = None, dry_run: bool = False) -> list[RemoteAsset]:
        """Enforce retention on the current inventory without uploading anything.

        Args:
            reporter: Optional reporter for progress
            dry_run: If True, only return what would be deleted

        Returns:
            Assets deleted, or that would be deleted in a dry run
        """
        reporter = reporter or Reporter()
        with self._open_client() as client:
            release = client.get_release(self.config.release_tag)
            inventory = client.list_assets(release)
            to_delete = RetentionService.plan_deletions(
                inventory, retained_versions=self.config.retained_versions
            )
            if dry_run:
                return to_delete
            return [asset for asset in to_delete if self._delete_asset(client, asset, reporter)]

    def read_statistics(self) -> StatisticsSnapshot:
        """Return the published statistics snapshot."""
        with self._open_client() as client:
            release = client.get_release(self.config.release_tag)
            previous_asset = next(
                (
                    a
                    for a in client.list_assets(release)
                    if a.name == self.config.statistics_asset_name
                ),
                None,
            )
            return self._load_snapshot(client, previous_asset)

    def _load_snapshot(
        self, client: GitHubReleaseClient, asset: RemoteAsset | None
    ) -> StatisticsSnapshot:
        if asset is None:
            return self.snapshot_manager.load_local()
        return self.snapshot_manager.load(client.download_asset(asset))

    def _delete_asset(
        self, client: GitHubReleaseClient, asset: RemoteAsset, reporter: Reporter
    ) -> bool:
        """Delete one asset, reporting rather than raising on failure."""
        try:
            client.delete_asset(asset)
        except httpx.HTTPError as e:
            logger.error(f"Failed to delete asset {asset.name}: {e}")
            reporter.report_error(f"Failed to delete asset {asset.name}: {e}")
            return False
        logger.info(f"Purged {asset.name}")
        reporter.report_purged(asset.name)
        return True
