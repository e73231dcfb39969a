"""Plugin Repo SDK.

Keeps a GitHub release stocked with ready-to-install bundles of the latest
published versions of a curated list of npm packages.

Quick Start (High-Level API):
    >>> from plugin_repo import sync_plugins
    >>> sync_plugins()  # Bundles, uploads, prunes and updates statistics

Quick Start (SDK API):
    >>> from plugin_repo import PluginSync, Settings
    >>> config = Settings(release_tag="v1")
    >>> orchestrator = PluginSync(config)
    >>> context = orchestrator.sync_plugins()
    >>> context.halted  # True when the API quota ran out mid-run

Configuration:
    >>> from plugin_repo import Settings
    >>> import os
    >>> os.environ["PLUGIN_REPO_API_TIMEOUT"] = "60"
    >>> config = Settings()  # Loads from environment

Public API:
    High-level functions:
        - sync_plugins: Run one complete synchronization

    Orchestrators:
        - PluginSync: Full pipeline orchestration
        - BundleCache: Idempotent bundle construction

    Configuration:
        - Settings: Configuration model

    Domain Models:
        - PackageRecord: Package resolved for one run
        - RemoteAsset: Release asset
        - RunContext: State threaded through the pipeline stages
        - StatisticsSnapshot: Durable download statistics

    State Management:
        - SnapshotManager: Statistics snapshot persistence

    Reporters (for custom UIs):
        - Reporter: Progress reporter (use silent=True for headless mode)
"""

# Configuration
from plugin_repo.config import Settings

# Domain models
from plugin_repo.domain import (
    AssetKind,
    PackageRecord,
    RemoteAsset,
    RunContext,
    StatisticsSnapshot,
)

# Orchestrators
from plugin_repo.orchestrators import BundleCache, PluginSync

# State management
from plugin_repo.state.manager import SnapshotManager

# UI Reporters
from plugin_repo.ui import Reporter

__all__ = [
    # High-level functions
    "sync_plugins",
    # Orchestrators
    "PluginSync",
    "BundleCache",
    # Configuration
    "Settings",
    # Domain models
    "AssetKind",
    "PackageRecord",
    "RemoteAsset",
    "RunContext",
    "StatisticsSnapshot",
    # State management
    "SnapshotManager",
    # Reporters
    "Reporter",
]

# Version
__version__ = "0.1.0"


def sync_plugins(
    config: Settings | None = None,
    reporter: Reporter | None = None,
) -> RunContext:
    """Run one complete synchronization (high-level convenience function).

    Args:
        config: Pipeline configuration. If None, loads Settings() from environment.
        reporter: Progress reporter. If None, uses Reporter().

    Returns:
        Final run context
    """
    orchestrator = PluginSync(config)
    return orchestrator.sync_plugins(reporter=reporter)
