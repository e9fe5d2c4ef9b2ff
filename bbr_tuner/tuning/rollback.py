"""
RollbackController - Restores the previous configuration.

HAS_SNAPSHOT -> promote the newest snapshot over the live file -> reload
NO_SNAPSHOT  -> delete the managed file if present -> reload
             -> nothing on disk: no-op

Rollback never snapshots the state it discards. Promoting a snapshot
consumes it, so a second rollback in a row falls into the delete branch.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from ..protocol.errors import Phase, TunerError
from ..protocol.result import RollbackState, RollbackAction, RollbackResult
from ..snapshot.manager import BackupManager
from .service import SysctlService

logger = logging.getLogger(__name__)


class RollbackController:
    """Undo the last generated configuration."""

    def __init__(
        self,
        backups: Optional[BackupManager] = None,
        service: Optional[SysctlService] = None,
    ):
        self.backups = backups or BackupManager()
        self.service = service or SysctlService()

    def state(self, conf_path: Path) -> RollbackState:
        if self.backups.latest(conf_path) is not None:
            return RollbackState.HAS_SNAPSHOT
        return RollbackState.NO_SNAPSHOT

    def rollback(self, conf_path: Path) -> RollbackResult:
        """
        Roll back conf_path.

        Raises:
            ReloadError: If the kernel reload after restoring fails
            TunerError: If the snapshot cannot be promoted or the file removed
        """
        conf_path = Path(conf_path)
        latest = self.backups.latest(conf_path)

        if latest is not None:
            try:
                os.replace(latest, conf_path)
            except OSError as e:
                raise TunerError(f"Cannot restore {latest} to {conf_path}: {e}", Phase.ROLLBACK) from e
            logger.info("Restored %s from %s", conf_path, latest)
            self.service.reload()
            return RollbackResult(
                state=RollbackState.HAS_SNAPSHOT,
                action=RollbackAction.RESTORED,
                conf_path=conf_path,
                snapshot=latest,
                reloaded=True,
            )

        if conf_path.exists():
            try:
                conf_path.unlink()
            except OSError as e:
                raise TunerError(f"Cannot remove {conf_path}: {e}", Phase.ROLLBACK) from e
            logger.info("No snapshot found, removed %s", conf_path)
            self.service.reload()
            return RollbackResult(
                state=RollbackState.NO_SNAPSHOT,
                action=RollbackAction.DELETED,
                conf_path=conf_path,
                reloaded=True,
            )

        logger.info("Nothing to roll back for %s", conf_path)
        return RollbackResult(
            state=RollbackState.NO_SNAPSHOT,
            action=RollbackAction.NOOP,
            conf_path=conf_path,
        )
