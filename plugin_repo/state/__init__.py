"""State persistence."""

from plugin_repo.state.manager import SnapshotManager

__all__ = ["SnapshotManager"]
