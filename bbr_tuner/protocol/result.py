"""
Run results - What an apply or rollback invocation produced.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from .context import HardwareProfile
from .tuning import Tier, ConfigDocument, ApplyResult
from ..snapshot.models import Snapshot, PruneResult


class RollbackState(str, Enum):
    """What the rollback controller found on disk."""
    HAS_SNAPSHOT = "HAS_SNAPSHOT"
    NO_SNAPSHOT = "NO_SNAPSHOT"


class RollbackAction(str, Enum):
    """What the rollback controller did about it."""
    RESTORED = "RESTORED"  # newest snapshot promoted over the live file
    DELETED = "DELETED"    # no snapshot, managed file removed
    NOOP = "NOOP"          # nothing to roll back


@dataclass
class RollbackResult:
    """Outcome of a rollback."""
    state: RollbackState
    action: RollbackAction
    conf_path: Path
    snapshot: Optional[Path] = None
    reloaded: bool = False

    @property
    def changed(self) -> bool:
        return self.action != RollbackAction.NOOP


@dataclass
class RunSummary:
    """Everything a single generate-apply run produced."""
    profile: HardwareProfile
    tier: Tier
    conf_path: Path
    document: ConfigDocument
    conntrack_available: bool
    snapshot: Optional[Snapshot] = None
    prune: Optional[PruneResult] = None
    apply: Optional[ApplyResult] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def verified(self) -> bool:
        return self.apply is not None and self.apply.success
