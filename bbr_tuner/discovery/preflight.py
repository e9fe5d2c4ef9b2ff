"""
PreflightChecker - Confirms the host can take the configuration at all.

Checks run before anything is written:
1. PRIVILEGE - must run as root
2. KERNEL - BBR needs Linux 4.9 or newer
3. MODULE - bbr must be an available congestion control (modprobe if not)
"""

import logging
import os
import platform
import re
from typing import Callable, Optional, Tuple

from ..protocol.errors import PreflightError
from ..tuning.service import SysctlService

logger = logging.getLogger(__name__)


MIN_KERNEL = (4, 9)
AVAILABLE_CC_KEY = "net.ipv4.tcp_available_congestion_control"
BBR_MODULE = "tcp_bbr"


def parse_kernel_version(release: str) -> Optional[Tuple[int, int]]:
    """'5.15.0-91-generic' -> (5, 15); None if unparseable."""
    match = re.match(r'^(\d+)\.(\d+)', release.strip())
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


class PreflightChecker:
    """Privilege, kernel version and BBR availability checks."""

    def __init__(
        self,
        service: Optional[SysctlService] = None,
        min_kernel: Tuple[int, int] = MIN_KERNEL,
        release: Optional[Callable[[], str]] = None,
        euid: Optional[Callable[[], int]] = None,
    ):
        self.service = service or SysctlService()
        self.min_kernel = tuple(min_kernel)
        self._release = release or platform.release
        self._euid = euid or os.geteuid

    def check_privilege(self) -> None:
        if self._euid() != 0:
            raise PreflightError("This tool must be run as root")

    def check_kernel(self) -> str:
        """Returns the kernel release string on success."""
        release = self._release()
        version = parse_kernel_version(release)
        if version is None:
            raise PreflightError(f"Cannot parse kernel version {release!r}")
        if version < self.min_kernel:
            wanted = ".".join(str(v) for v in self.min_kernel)
            raise PreflightError(f"Kernel {release} does not support BBR (needs {wanted}+)")
        logger.info("Kernel %s supports BBR", release)
        return release

    def ensure_bbr(self) -> None:
        """Make sure bbr is an available congestion control, loading tcp_bbr if needed."""
        if self._bbr_available():
            return

        logger.warning("BBR module not loaded, trying modprobe %s", BBR_MODULE)
        if not self.service.load_module(BBR_MODULE) or not self._bbr_available():
            raise PreflightError(f"Cannot load {BBR_MODULE}; check the kernel build")

    def _bbr_available(self) -> bool:
        available = self.service.read_value(AVAILABLE_CC_KEY) or ""
        return "bbr" in available.split()

    def run(self) -> str:
        """
        Run every check.

        Returns:
            Kernel release string

        Raises:
            PreflightError: On the first failing check
        """
        self.check_privilege()
        release = self.check_kernel()
        self.ensure_bbr()
        return release
