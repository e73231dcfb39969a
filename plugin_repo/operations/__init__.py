"""Collaborator operations.

Public API:
    Catalog and registry:
        - fetch_catalog: Ordered package list to track
        - fetch_latest_version: Latest published version of a package

    Release asset store:
        - GitHubReleaseClient: List, upload and delete release assets
        - ReleaseNotFoundError: Target release tag is missing

    Toolchain:
        - NpmToolchain: Install, archive and checksum a package
        - compute_sha256: File hashing
"""

from plugin_repo.operations.github import GitHubReleaseClient, ReleaseNotFoundError
from plugin_repo.operations.registry import fetch_catalog, fetch_latest_version
from plugin_repo.operations.toolchain import NpmToolchain, compute_sha256

__all__ = [
    # Catalog and registry
    "fetch_catalog",
    "fetch_latest_version",
    # Release asset store
    "GitHubReleaseClient",
    "ReleaseNotFoundError",
    # Toolchain
    "NpmToolchain",
    "compute_sha256",
]
