"""
SystemScanner - Reads the hardware facts that drive tier selection.

Uses /proc and standard OS tools only.
"""

import logging
import os
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..protocol.context import HardwareProfile, VIRT_UNKNOWN
from ..protocol.errors import ProfileError

logger = logging.getLogger(__name__)


@dataclass
class SystemScannerConfig:
    """Configuration for system scanning."""
    meminfo_path: str = "/proc/meminfo"
    virt_command: str = "systemd-detect-virt"


class SystemScanner:
    """
    Hardware profiler for the local host.
    """

    def __init__(self, config: Optional[SystemScannerConfig] = None):
        self.config = config or SystemScannerConfig()

    def profile(self) -> HardwareProfile:
        """
        Read memory, cores and virtualization type.

        Raises:
            ProfileError: If total memory cannot be determined
        """
        profile = HardwareProfile(
            total_memory_mb=self._get_total_memory_mb(),
            cpu_cores=self._get_cpu_cores(),
            virtualization=self._get_virtualization(),
        )
        logger.info("Detected %s", profile.summary())
        return profile

    def _get_total_memory_mb(self) -> int:
        """MemTotal in MB (same figure `free -m` reports)."""
        try:
            meminfo = Path(self.config.meminfo_path).read_text()
        except OSError as e:
            raise ProfileError(f"Cannot read {self.config.meminfo_path}: {e}") from e

        match = re.search(r'^MemTotal:\s*(\d+)\s*kB', meminfo, re.MULTILINE)
        if not match:
            raise ProfileError(f"No MemTotal entry in {self.config.meminfo_path}")

        return int(match.group(1)) // 1024

    def _get_cpu_cores(self) -> int:
        """Logical cores available to this process (what `nproc` prints)."""
        try:
            cores = len(os.sched_getaffinity(0))
        except (AttributeError, OSError):
            cores = os.cpu_count() or 1
        return max(cores, 1)

    def _get_virtualization(self) -> str:
        """Virtualization type from systemd-detect-virt, or 'unknown'."""
        try:
            result = subprocess.run(
                [self.config.virt_command],
                capture_output=True, text=True, timeout=10,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug("Virtualization detection unavailable: %s", e)
            return VIRT_UNKNOWN

        label = result.stdout.strip()
        if result.returncode != 0 or not label:
            logger.debug("%s exited with %d", self.config.virt_command, result.returncode)
            return VIRT_UNKNOWN
        return label
