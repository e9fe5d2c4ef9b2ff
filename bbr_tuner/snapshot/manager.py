"""
Backup manager - snapshots the managed file before every overwrite.

Snapshots live next to the configuration file as
``<name>.bak_YYYY-MM-DD_HH-MM-SS``. The timestamp sorts lexicographically,
so the newest snapshot is simply the last name in sorted order.
"""

import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from .models import (
    Snapshot,
    PruneResult,
    SNAPSHOT_MARKER,
    TIMESTAMP_FORMAT,
    snapshot_pattern,
)
from ..protocol.errors import SnapshotError

logger = logging.getLogger(__name__)


DEFAULT_RETAIN = 1
MAX_SAME_SECOND = 99  # two-digit suffix keeps names in creation order


class BackupManager:
    """Creates, lists and prunes snapshots of one configuration file."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize backup manager.

        Args:
            clock: Returns the current time; injectable for tests
        """
        self._clock = clock or datetime.now

    # =========================================================================
    # Core Operations
    # =========================================================================

    def snapshot(self, conf_path: Path) -> Optional[Snapshot]:
        """
        Copy the live configuration file to a new timestamped snapshot.

        Returns:
            The created Snapshot, or None when there is no file to protect

        Raises:
            SnapshotError: If the copy fails. Nothing destructive may happen
                after this, so callers abort the run.
        """
        conf_path = Path(conf_path)
        if not conf_path.exists():
            logger.info("No existing %s, nothing to back up", conf_path)
            return None

        created_at = self._clock().replace(microsecond=0)
        target = self._next_snapshot_path(conf_path, created_at)

        try:
            shutil.copy2(conf_path, target)
        except OSError as e:
            raise SnapshotError(f"Failed to back up {conf_path} to {target}: {e}") from e

        logger.info("Backed up %s to %s", conf_path, target)
        return Snapshot(path=target, source=conf_path, created_at=created_at)

    def list_snapshots(self, conf_path: Path) -> List[Path]:
        """Snapshots of conf_path, oldest first (sorted by name only)."""
        conf_path = Path(conf_path)
        directory = conf_path.parent
        if not directory.is_dir():
            return []

        pattern = snapshot_pattern(conf_path)
        return sorted(
            (p for p in directory.iterdir() if pattern.match(p.name)),
            key=lambda p: p.name,
        )

    def latest(self, conf_path: Path) -> Optional[Path]:
        """Newest snapshot of conf_path, or None."""
        snapshots = self.list_snapshots(conf_path)
        return snapshots[-1] if snapshots else None

    def prune(self, conf_path: Path, retain: int = DEFAULT_RETAIN) -> PruneResult:
        """
        Keep the newest `retain` snapshots and delete the rest.

        Removal failures are logged and recorded but never raised: the
        configuration write is already protected by the snapshot taken
        before it.
        """
        if retain < 1:
            raise ValueError(f"retain must be >= 1, got {retain}")

        snapshots = self.list_snapshots(conf_path)
        result = PruneResult(retain=retain, kept=snapshots[-retain:])

        for stale in snapshots[:-retain]:
            try:
                stale.unlink()
                result.removed.append(stale)
            except FileNotFoundError:
                # Removed concurrently; the policy is satisfied either way
                logger.info("Snapshot %s already gone", stale)
                result.removed.append(stale)
            except OSError as e:
                logger.warning("Could not remove old snapshot %s: %s", stale, e)
                result.failed[stale] = str(e)

        if result.removed:
            logger.info("Pruned %d old snapshot(s), keeping %d", len(result.removed), len(result.kept))
        return result

    # =========================================================================
    # Naming
    # =========================================================================

    def _next_snapshot_path(self, conf_path: Path, created_at: datetime) -> Path:
        """
        Snapshot path for created_at that sorts after every existing snapshot
        with the same timestamp.
        """
        stamp = created_at.strftime(TIMESTAMP_FORMAT)
        base = f"{conf_path.name}{SNAPSHOT_MARKER}{stamp}"
        pattern = snapshot_pattern(conf_path)

        highest = -1
        for existing in self.list_snapshots(conf_path):
            match = pattern.match(existing.name)
            if match.group(1) != stamp:
                continue
            highest = max(highest, int(match.group(2) or 0))

        if highest < 0:
            return conf_path.with_name(base)
        if highest >= MAX_SAME_SECOND:
            raise SnapshotError(
                f"More than {MAX_SAME_SECOND + 1} snapshots of {conf_path} within {stamp}"
            )
        return conf_path.with_name(f"{base}_{highest + 1:02d}")
