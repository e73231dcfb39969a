"""Persistence for the download statistics snapshot."""

from logging import getLogger
from pathlib import Path
from typing import Any

import orjson
from atomicwrites import atomic_write

from plugin_repo.domain.models import StatisticsSnapshot

logger = getLogger(__name__)

# Version entries without a creation time cannot be validated
CREATED_KEYS = ("createdAt", "created", "created_at")


class SnapshotManager:
    """Encode, decode and locally persist the statistics snapshot.

    The published release asset is the source of truth. A copy of every
    snapshot about to be published is written atomically to the work area, so
    the exact bytes uploaded are always available on disk.

    Example:
        manager = SnapshotManager(work_dir / "download-statistics.json")
        snapshot = manager.load(previous_bytes)
        payload = manager.save(StatisticsService.merge(snapshot, assets))
    """

    def __init__(self, path: str | Path):
        """Initialize the snapshot manager.

        Args:
            path: Local path of the snapshot copy
        """
        self.path = Path(path)

    def load(self, payload: bytes | None) -> StatisticsSnapshot:
        """Decode a published snapshot, or start empty when there is none.

        Raises:
            orjson.JSONDecodeError: If the payload is not valid JSON. An
                unreadable snapshot must never be replaced by a fresh one.
        """
        if payload is None:
            logger.debug("No published statistics snapshot, starting fresh")
            return StatisticsSnapshot()

        try:
            json_data = orjson.loads(payload)
        except orjson.JSONDecodeError as e:
            logger.error(f"Failed to parse statistics snapshot: {e}")
            raise

        return StatisticsSnapshot.model_validate(self._sanitize_raw_snapshot(json_data))

    def load_local(self) -> StatisticsSnapshot:
        """Decode the local copy of the last snapshot prepared for publishing.

        Used when the release carries no published snapshot, for example after
        a run whose re-publish failed between delete and upload.
        """
        if not self.path.exists():
            return self.load(None)

        logger.info(f"No published statistics snapshot, resuming from {self.path}")
        return self.load(self.path.read_bytes())

    def save(self, snapshot: StatisticsSnapshot) -> bytes:
        """Write the snapshot atomically and return the encoded bytes."""
        payload = self.dumps(snapshot)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with atomic_write(self.path, mode="wb", overwrite=True) as f:
                f.write(payload)
        except OSError as e:
            logger.error(f"Failed to write statistics snapshot {self.path}: {e}")
            raise
        return payload

    @staticmethod
    def dumps(snapshot: StatisticsSnapshot) -> bytes:
        return (
            orjson.dumps(
                snapshot.model_dump(mode="json", by_alias=True),
                option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS,
            )
            + b"\n"
        )

    @classmethod
    def _sanitize_raw_snapshot(cls, payload: Any) -> dict[str, Any]:
        """Drop entries that cannot be part of a snapshot."""
        if not isinstance(payload, dict):
            logger.warning("Statistics snapshot is not a mapping, ignoring its content")
            return {}

        sanitized: dict[str, Any] = {}
        for package, entry in payload.items():
            if not isinstance(entry, dict):
                logger.warning(f"Dropping malformed statistics entry for {package}")
                continue
            versions = entry.get("versions")
            sanitized[package] = {
                **entry,
                "versions": {
                    version: stats
                    for version, stats in (versions.items() if isinstance(versions, dict) else [])
                    if isinstance(stats, dict) and any(key in stats for key in CREATED_KEYS)
                },
            }
        return sanitized
