"""
SysctlService - Talks to the kernel parameter space through sysctl(8).

Provides:
- Reload of every configuration-directory file (sysctl --system)
- Live value reads (sysctl -n)
- Kernel module loading (modprobe)
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import List, Optional

from ..protocol.errors import ReloadError

logger = logging.getLogger(__name__)


@dataclass
class SysctlConfig:
    """Configuration for the sysctl service."""
    sysctl_binary: str = "sysctl"
    modprobe_binary: str = "modprobe"
    read_timeout: int = 10  # seconds


class SysctlService:
    """
    Reload mechanism and live-value reader for kernel parameters.
    """

    def __init__(self, config: Optional[SysctlConfig] = None):
        self.config = config or SysctlConfig()

    def _run_command(self, args: List[str], timeout: Optional[int] = None) -> subprocess.CompletedProcess:
        """Run a command without a shell."""
        logger.debug("Running: %s", " ".join(args))
        return subprocess.run(args, capture_output=True, text=True, timeout=timeout)

    def reload(self) -> None:
        """
        Load all sysctl configuration files into the running kernel.

        No timeout: a hung reload hangs the run.

        Raises:
            ReloadError: If sysctl is missing or exits non-zero
        """
        try:
            result = self._run_command([self.config.sysctl_binary, "--system"])
        except OSError as e:
            raise ReloadError(f"Cannot run {self.config.sysctl_binary}: {e}") from e

        if result.returncode != 0:
            detail = (result.stderr or result.stdout or "").strip().splitlines()
            raise ReloadError(
                f"sysctl --system exited with {result.returncode}"
                + (f": {detail[-1]}" if detail else "")
            )
        logger.info("Reloaded sysctl configuration")

    def read_value(self, key: str) -> Optional[str]:
        """
        Current live value of a kernel parameter.

        Returns:
            The value with whitespace collapsed, or None if it cannot be read
        """
        try:
            result = self._run_command(
                [self.config.sysctl_binary, "-n", key],
                timeout=self.config.read_timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("Cannot read %s: %s", key, e)
            return None

        if result.returncode != 0:
            logger.warning("Cannot read %s: %s", key, result.stderr.strip())
            return None
        return " ".join(result.stdout.split())

    def load_module(self, module: str) -> bool:
        """Load a kernel module. Returns True on success."""
        try:
            result = self._run_command([self.config.modprobe_binary, module])
        except OSError as e:
            logger.warning("Cannot run %s: %s", self.config.modprobe_binary, e)
            return False
        if result.returncode != 0:
            logger.warning("modprobe %s failed: %s", module, result.stderr.strip())
            return False
        return True
