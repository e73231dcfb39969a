"""Configure tests."""

import subprocess
from datetime import datetime, timedelta, timezone
from pathlib import Path

import httpx
import pytest
import requests

from plugin_repo.config import Settings
from plugin_repo.domain.models import AssetKind, Release, RemoteAsset
from plugin_repo.domain.naming import asset_label, asset_name
from plugin_repo.operations.github import ReleaseNotFoundError
from plugin_repo.operations.toolchain import NpmToolchain
from plugin_repo.orchestrators import PluginSync
from plugin_repo.ui import Reporter

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_asset(
    asset_id: int,
    package: str,
    version: str,
    kind: AssetKind = AssetKind.ARCHIVE,
    created_at: datetime | None = None,
    download_count: int = 0,
    size: int = 1024,
) -> RemoteAsset:
    """Create a bundle asset following the naming scheme."""
    return RemoteAsset(
        id=asset_id,
        name=asset_name(package, version, kind),
        label=asset_label(package, version, kind),
        created_at=created_at or BASE_TIME + timedelta(days=asset_id),
        download_count=download_count,
        size=size,
    )


def make_bundle_pair(
    first_id: int, package: str, version: str, created_at: datetime, downloads: int = 0
) -> list[RemoteAsset]:
    """Create the archive and checksum assets of one package version."""
    return [
        make_asset(first_id, package, version, AssetKind.ARCHIVE, created_at, downloads),
        make_asset(first_id + 1, package, version, AssetKind.CHECKSUM, created_at),
    ]


class FakeReleaseStore:
    """In-memory stand-in for the GitHub release client.

    ``quota`` is the number of uploads allowed before the reported remaining
    call budget reaches zero.
    """

    def __init__(
        self,
        release: Release,
        assets: list[RemoteAsset] | None = None,
        quota: int | None = None,
    ):
        self.release = release
        self.assets: dict[int, RemoteAsset] = {a.id: a for a in assets or []}
        self.contents: dict[int, bytes] = {}
        self.quota = quota
        self.rate_limit_remaining: int | None = None
        self.clock = BASE_TIME + timedelta(days=365)
        self.next_id = 10_000
        self.title: str | None = None
        self.fail_uploads: set[str] = set()
        self.fail_deletes: set[str] = set()
        self.uploaded_names: list[str] = []
        self.deleted_names: list[str] = []

    @property
    def rate_limit_exhausted(self) -> bool:
        return self.rate_limit_remaining == 0

    def get_release(self, tag: str) -> Release:
        if tag != self.release.tag_name:
            raise ReleaseNotFoundError(f'Release with tag "{tag}" does not exist')
        return self.release

    def list_assets(self, release: Release) -> list[RemoteAsset]:
        return sorted(self.assets.values(), key=lambda a: a.id)

    def names(self) -> set[str]:
        return {a.name for a in self.assets.values()}

    def by_name(self, name: str) -> RemoteAsset:
        return next(a for a in self.assets.values() if a.name == name)

    def set_downloads(self, name: str, count: int) -> None:
        asset = self.by_name(name)
        self.assets[asset.id] = asset.model_copy(update={"download_count": count})

    def upload_asset(
        self,
        release: Release,
        name: str,
        label: str,
        content: bytes,
        content_type: str = "application/octet-stream",
    ) -> RemoteAsset:
        if name in self.fail_uploads:
            raise httpx.ConnectError(f"upload of {name} failed")
        assert name not in self.names(), f"{name} already exists"

        self.next_id += 1
        self.clock += timedelta(minutes=1)
        asset = RemoteAsset(
            id=self.next_id,
            name=name,
            label=label,
            created_at=self.clock,
            size=len(content),
        )
        self.assets[asset.id] = asset
        self.contents[asset.id] = content
        self.uploaded_names.append(name)

        if self.quota is not None:
            self.quota -= 1
            self.rate_limit_remaining = max(self.quota, 0)
        return asset

    def delete_asset(self, asset: RemoteAsset) -> None:
        if asset.name in self.fail_deletes or asset.id not in self.assets:
            request = httpx.Request("DELETE", f"https://api.github.com/assets/{asset.id}")
            raise httpx.HTTPStatusError(
                "Not Found", request=request, response=httpx.Response(404, request=request)
            )
        del self.assets[asset.id]
        self.contents.pop(asset.id, None)
        self.deleted_names.append(asset.name)

    def download_asset(self, asset: RemoteAsset) -> bytes:
        return self.contents[asset.id]

    def update_release_title(self, release: Release, title: str) -> None:
        self.title = title


class FakeToolchain(NpmToolchain):
    """Toolchain that fakes npm but archives and checksums for real."""

    def __init__(self, failing: set[str] | None = None):
        super().__init__()
        self.failing = failing or set()
        self.installed: list[str] = []

    def install(self, package: str, version: str, target_dir: Path) -> Path:
        self.installed.append(f"{package}@{version}")
        if package in self.failing:
            raise subprocess.CalledProcessError(1, ["npm", "install"], stderr="E404")

        package_dir = target_dir / "node_modules" / package
        package_dir.mkdir(parents=True)
        (package_dir / "package.json").write_text(f'{{"name": "{package}", "version": "{version}"}}')
        (target_dir / "node_modules" / ".package-lock.json").write_text("{}")
        return target_dir / "node_modules"


def make_resolver(versions: dict[str, str]):
    """Create a version resolver backed by a dictionary."""

    def resolve(package: str) -> str:
        if package not in versions:
            raise requests.HTTPError(f"404 Not Found: {package}")
        return versions[package]

    return resolve


@pytest.fixture
def settings(tmp_path):
    """Create settings with an isolated work directory."""
    return Settings(work_dir=tmp_path / "work", github_token=None)


@pytest.fixture
def release():
    """Create the target release."""
    return Release(
        id=1,
        tag_name="v1",
        name="2024-01-01",
        upload_url="https://uploads.github.com/repos/homebridge/plugin-repo/releases/1/assets{?name,label}",
    )


@pytest.fixture
def silent_reporter():
    return Reporter(silent=True)


@pytest.fixture
def make_sync(settings):
    """Build a PluginSync wired to fakes."""

    def _make_sync(
        store: FakeReleaseStore,
        versions: dict[str, str],
        toolchain: NpmToolchain | None = None,
        catalog: list[str] | None = None,
    ) -> PluginSync:
        return PluginSync(
            settings,
            client=store,
            toolchain=toolchain or FakeToolchain(),
            resolver=make_resolver(versions),
            catalog_loader=lambda: list(catalog if catalog is not None else versions),
        )

    return _make_sync
