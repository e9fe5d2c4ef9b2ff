"""
TuningExecutor - Runs the generate-apply cycle.

Phases:
1. PROFILE - Read hardware, select tier and parameters
2. RENDER - Build the document in memory
3. SNAPSHOT - Back up the existing file, then prune old backups
4. WRITE - Replace the managed file
5. RELOAD/VERIFY - Load it into the kernel and check BBR + fq are live

A snapshot failure aborts before anything is overwritten. A reload
failure is fatal. Prune failures and verification mismatches are warnings.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

from ..protocol.context import HardwareProfile
from ..protocol.tuning import Tier, ConfigDocument
from ..protocol.result import RunSummary, RollbackResult
from ..discovery.system import SystemScanner
from ..snapshot.manager import BackupManager, DEFAULT_RETAIN
from .tiers import CONNTRACK_KEY, select_tier, parameters_for
from .renderer import ConfigRenderer
from .service import SysctlService
from .verifier import TuningVerifier
from .rollback import RollbackController

logger = logging.getLogger(__name__)


DEFAULT_CONF_FILE = Path("/etc/sysctl.d/99-bbr.conf")


@dataclass
class ExecutorConfig:
    """Configuration for the tuning executor."""
    conf_path: Path = DEFAULT_CONF_FILE
    retain: int = DEFAULT_RETAIN


class TuningExecutor:
    """
    Wires profiler, parameter table, renderer, backups and verifier together.

    Every collaborator can be injected; defaults talk to the real host.
    """

    def __init__(
        self,
        config: Optional[ExecutorConfig] = None,
        scanner: Optional[SystemScanner] = None,
        renderer: Optional[ConfigRenderer] = None,
        backups: Optional[BackupManager] = None,
        service: Optional[SysctlService] = None,
        verifier: Optional[TuningVerifier] = None,
    ):
        self.config = config or ExecutorConfig()
        self.scanner = scanner or SystemScanner()
        self.renderer = renderer or ConfigRenderer()
        self.backups = backups or BackupManager()
        self.service = service or SysctlService()
        self.verifier = verifier or TuningVerifier(service=self.service)
        self.rollback_controller = RollbackController(backups=self.backups, service=self.service)

        self._current_phase = "INIT"

    @property
    def conf_path(self) -> Path:
        return Path(self.config.conf_path)

    @property
    def current_phase(self) -> str:
        return self._current_phase

    def plan(self, now: Optional[datetime] = None) -> Tuple[HardwareProfile, Tier, ConfigDocument]:
        """
        Profile the host and render the document without touching disk.

        Raises:
            ProfileError: If total memory cannot be determined
        """
        self._current_phase = "PROFILE"
        profile = self.scanner.profile()
        tier = select_tier(profile.total_memory_mb)
        logger.info("Selected tier %s for %d MB", tier.label, profile.total_memory_mb)

        self._current_phase = "RENDER"
        document = self.renderer.render(profile, tier, parameters_for(tier), now=now)
        return profile, tier, document

    def run(self, now: Optional[datetime] = None) -> RunSummary:
        """
        Full generate-apply cycle.

        Raises:
            ProfileError, SnapshotError, ConfigWriteError, ReloadError
        """
        profile, tier, document = self.plan(now=now)
        summary = RunSummary(
            profile=profile,
            tier=tier,
            conf_path=self.conf_path,
            document=document,
            conntrack_available=document.get(CONNTRACK_KEY) is not None,
        )
        if not summary.conntrack_available:
            summary.warnings.append("Connection tracking not present; conntrack limit skipped")

        # Phase 3: SNAPSHOT
        self._current_phase = "SNAPSHOT"
        summary.snapshot = self.backups.snapshot(self.conf_path)
        summary.prune = self.backups.prune(self.conf_path, retain=self.config.retain)
        for path, error in summary.prune.failed.items():
            summary.warnings.append(f"Could not remove old backup {path}: {error}")

        # Phase 4: WRITE
        self._current_phase = "WRITE"
        self.renderer.write(document, self.conf_path)

        # Phase 5: RELOAD/VERIFY
        self._current_phase = "VERIFY"
        summary.apply = self.verifier.apply()
        for key, (expected, actual) in summary.apply.mismatches.items():
            summary.warnings.append(f"{key} is {actual!r}, expected {expected!r}")

        self._current_phase = "COMPLETE"
        return summary

    def rollback(self) -> RollbackResult:
        """Restore the newest snapshot, or remove the managed file."""
        self._current_phase = "ROLLBACK"
        result = self.rollback_controller.rollback(self.conf_path)
        self._current_phase = "COMPLETE"
        return result
