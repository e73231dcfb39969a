"""Business logic services for the pipeline."""

from collections.abc import Iterable

from plugin_repo.domain.models import (
    AssetKind,
    PackageRecord,
    PackageStatistics,
    RemoteAsset,
    StatisticsSnapshot,
    VersionStatistics,
)
from plugin_repo.domain.naming import asset_kind, asset_name, parse_label


class StalenessService:
    """Service for determining which packages need a new bundle."""

    @staticmethod
    def needs_bundle(package: str, version: str, inventory_names: set[str]) -> bool:
        """Return True unless both the archive and checksum for the version exist.

        A lone archive (or a lone checksum) left by an interrupted run counts
        as stale so the pair is rebuilt and re-uploaded together.
        """
        return not (
            asset_name(package, version, AssetKind.ARCHIVE) in inventory_names
            and asset_name(package, version, AssetKind.CHECKSUM) in inventory_names
        )

    @classmethod
    def classify(
        cls,
        latest_versions: dict[str, str],
        inventory: Iterable[RemoteAsset],
    ) -> list[PackageRecord]:
        """Build package records, preserving the order of ``latest_versions``.

        Args:
            latest_versions: Package name to latest version, in catalog order
            inventory: Assets currently attached to the release

        Returns:
            One record per package with ``needs_bundle`` set
        """
        names = {asset.name for asset in inventory}
        return [
            PackageRecord(
                name=package,
                latest_version=version,
                needs_bundle=cls.needs_bundle(package, version, names),
            )
            for package, version in latest_versions.items()
        ]


class RetentionService:
    """Service for computing which release assets fall outside the retention window."""

    @staticmethod
    def group_assets(
        assets: Iterable[RemoteAsset],
    ) -> dict[tuple[str, AssetKind], list[RemoteAsset]]:
        """Group assets by package (decoded from the label) and file kind.

        Assets whose label or name does not follow the bundle naming scheme,
        such as the statistics document, are left out.
        """
        groups: dict[tuple[str, AssetKind], list[RemoteAsset]] = {}
        for asset in assets:
            identity = parse_label(asset.label)
            kind = asset_kind(asset.name)
            if identity is None or kind is None:
                continue
            groups.setdefault((identity.package, kind), []).append(asset)
        return groups

    @classmethod
    def plan_deletions(
        cls,
        inventory: Iterable[RemoteAsset],
        uploaded: Iterable[RemoteAsset] = (),
        retained_versions: int = 2,
    ) -> list[RemoteAsset]:
        """Return the assets to delete so each group keeps ``retained_versions``.

        ``inventory`` must be the snapshot taken before this run uploaded
        anything. Every asset uploaded into a group takes one retention slot,
        and pre-existing assets it replaced by name are not candidates because
        the upload already deleted them.

        Args:
            inventory: Pre-upload asset snapshot
            uploaded: Assets created during this run
            retained_versions: Number of versions to keep per group

        Returns:
            Assets to delete, oldest first within each group
        """
        uploaded = list(uploaded)
        uploaded_names = {asset.name for asset in uploaded}
        uploaded_slots: dict[tuple[str, AssetKind], int] = {
            key: len(members) for key, members in cls.group_assets(uploaded).items()
        }

        candidates = [asset for asset in inventory if asset.name not in uploaded_names]
        to_delete: list[RemoteAsset] = []

        for key, members in cls.group_assets(candidates).items():
            keep = max(retained_versions - uploaded_slots.get(key, 0), 0)
            members.sort(key=lambda a: (a.created_at, a.id))
            to_delete.extend(members[: len(members) - keep] if keep else members)

        return to_delete


class StatisticsService:
    """Service for merging live download counters into the durable snapshot."""

    @staticmethod
    def merge(snapshot: StatisticsSnapshot, assets: Iterable[RemoteAsset]) -> StatisticsSnapshot:
        """Fold archive download counters into a copy of ``snapshot``.

        Live versions are upserted; versions whose assets were purged keep
        their last recorded counters. A counter never goes backwards, which
        only matters when an asset was re-created under the same name.

        Args:
            snapshot: Previously published statistics
            assets: Assets that survive this run

        Returns:
            New snapshot with totals recomputed over every remembered version
        """
        merged = snapshot.model_copy(deep=True)

        for asset in assets:
            if asset_kind(asset.name) is not AssetKind.ARCHIVE:
                continue
            identity = parse_label(asset.label)
            if identity is None:
                continue

            package_stats = merged.root.setdefault(identity.package, PackageStatistics())
            previous = package_stats.versions.get(identity.version)
            downloads = asset.download_count
            if previous is not None:
                downloads = max(downloads, previous.downloads)

            package_stats.versions[identity.version] = VersionStatistics(
                downloads=downloads,
                size_bytes=asset.size_bytes,
                created_at=asset.created_at,
            )

        for package_stats in merged.root.values():
            package_stats.total_downloads = sum(v.downloads for v in package_stats.versions.values())

        return merged

    @staticmethod
    def get_package_statistics(
        snapshot: StatisticsSnapshot, package: str | None = None
    ) -> list[dict]:
        """Summarize the snapshot per package.

        Args:
            snapshot: Statistics to summarize
            package: Filter by package name (partial match)

        Returns:
            List of dictionaries with package, versions, latest_version,
            total_downloads, sorted by package name
        """
        results = []
        for name, package_stats in sorted(snapshot.root.items()):
            if package and package not in name:
                continue

            latest = max(
                package_stats.versions.items(),
                key=lambda item: item[1].created_at,
                default=(None, None),
            )[0]
            results.append(
                {
                    "package": name,
                    "versions": len(package_stats.versions),
                    "latest_version": latest,
                    "total_downloads": package_stats.total_downloads,
                }
            )
        return results
