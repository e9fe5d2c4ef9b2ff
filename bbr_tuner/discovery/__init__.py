"""
Discovery module - Gathers facts about the local host.

Components:
- SystemScanner: Reads memory, cores and virtualization type
- PreflightChecker: Privilege, kernel version and BBR availability
"""

from .system import SystemScanner, SystemScannerConfig
from .preflight import PreflightChecker, parse_kernel_version

__all__ = ["SystemScanner", "SystemScannerConfig", "PreflightChecker", "parse_kernel_version"]
