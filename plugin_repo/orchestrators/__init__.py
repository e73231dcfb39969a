"""Orchestration layer.

This module contains high-level workflow orchestrators that coordinate
the execution of the release synchronization pipeline.
"""

from plugin_repo.orchestrators.bundling import BundleCache
from plugin_repo.orchestrators.plugin_sync import PluginSync

__all__ = [
    "BundleCache",
    "PluginSync",
]
