"""Domain models for the pipeline."""

from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, RootModel, field_validator


class AssetKind(str, Enum):
    """Kind of bundle asset, valued by its file extension."""

    ARCHIVE = "tar.gz"
    CHECKSUM = "sha256"

    @property
    def suffix(self) -> str:
        return f".{self.value}"


class PackageRecord(BaseModel):
    """A tracked package resolved for one run."""

    name: str
    latest_version: str
    needs_bundle: bool = True
    packaged: bool = False  # Set once a bundle pair exists in the work area


class RemoteAsset(BaseModel):
    """A binary asset attached to the release."""

    id: int
    name: str
    label: str = ""
    created_at: datetime
    download_count: int = 0
    size_bytes: int = Field(default=0, validation_alias=AliasChoices("size_bytes", "size"))
    download_url: str | None = Field(
        default=None, validation_alias=AliasChoices("download_url", "browser_download_url")
    )

    @field_validator("label", mode="before")
    @classmethod
    def empty_label(cls, v: str | None) -> str:
        """GitHub reports unlabelled assets with a null label."""
        return v or ""


class Release(BaseModel):
    """The release whose asset set is kept in sync."""

    id: int
    tag_name: str
    name: str | None = None
    upload_url: str


class BundleArtifact(BaseModel):
    """Archive and checksum pair for one package version in the work area."""

    package: str
    version: str
    archive_path: Path
    checksum_path: Path

    @property
    def exists(self) -> bool:
        """Return True if both files are already on disk."""
        return self.archive_path.exists() and self.checksum_path.exists()

    def path_for(self, kind: AssetKind) -> Path:
        return self.archive_path if kind is AssetKind.ARCHIVE else self.checksum_path


class VersionStatistics(BaseModel):
    """Download counters remembered for a single published version."""

    model_config = ConfigDict(populate_by_name=True)

    downloads: int = Field(
        default=0, alias="downloads", validation_alias=AliasChoices("downloads", "downloadCount")
    )
    size_bytes: int = Field(
        default=0, alias="sizeBytes", validation_alias=AliasChoices("sizeBytes", "size")
    )
    created_at: datetime = Field(
        alias="createdAt", validation_alias=AliasChoices("createdAt", "created")
    )


class PackageStatistics(BaseModel):
    """Cumulative counters for one package, including purged versions."""

    model_config = ConfigDict(populate_by_name=True)

    total_downloads: int = Field(
        default=0,
        alias="totalDownloads",
        validation_alias=AliasChoices("totalDownloads", "downloadCount"),
    )
    versions: dict[str, VersionStatistics] = Field(default_factory=dict)


class StatisticsSnapshot(RootModel[dict[str, PackageStatistics]]):
    """Durable download statistics document, keyed by package name."""

    root: dict[str, PackageStatistics] = Field(default_factory=dict)

    def __getitem__(self, package: str) -> PackageStatistics:
        return self.root[package]

    def __contains__(self, package: str) -> bool:
        return package in self.root

    def __len__(self) -> int:
        return len(self.root)


class RunContext(BaseModel):
    """State threaded through the pipeline stages of a single run.

    Stages never mutate a context; each returns an updated copy. ``inventory``
    is the asset list fetched once before any upload and is never refreshed
    during the run.
    """

    model_config = ConfigDict(frozen=True)

    release: Release
    inventory: list[RemoteAsset] = Field(default_factory=list)
    catalog: list[str] = Field(default_factory=list)
    packages: list[PackageRecord] = Field(default_factory=list)
    uploaded: list[RemoteAsset] = Field(default_factory=list)
    deleted_ids: frozenset[int] = frozenset()
    halted: bool = False

    @property
    def stale_packages(self) -> list[PackageRecord]:
        return [p for p in self.packages if p.needs_bundle]

    @property
    def packaged_packages(self) -> list[PackageRecord]:
        return [p for p in self.packages if p.needs_bundle and p.packaged]

    @property
    def surviving_assets(self) -> list[RemoteAsset]:
        """Inventory after this run's deletions plus the assets it uploaded."""
        survivors = [a for a in self.inventory if a.id not in self.deleted_ids]
        return survivors + [a for a in self.uploaded if a.id not in self.deleted_ids]
