"""Domain models and business logic."""

from plugin_repo.domain.models import (
    AssetKind,
    BundleArtifact,
    PackageRecord,
    PackageStatistics,
    Release,
    RemoteAsset,
    RunContext,
    StatisticsSnapshot,
    VersionStatistics,
)
from plugin_repo.domain.naming import AssetIdentity, asset_kind, asset_label, asset_name, parse_label
from plugin_repo.domain.types import BundleProgressHook, VersionResolver

__all__ = [
    "AssetKind",
    "AssetIdentity",
    "BundleArtifact",
    "PackageRecord",
    "PackageStatistics",
    "Release",
    "RemoteAsset",
    "RunContext",
    "StatisticsSnapshot",
    "VersionStatistics",
    "asset_kind",
    "asset_label",
    "asset_name",
    "parse_label",
    "BundleProgressHook",
    "VersionResolver",
]
