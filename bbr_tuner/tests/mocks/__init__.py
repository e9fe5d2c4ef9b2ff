"""
Mock components for testing bbr_tuner.

These mocks stand in for /proc and sysctl(8) so the tuning cycle can run
against a temporary directory instead of a real kernel.
"""

from .golden_data import (
    MEMINFO_2GB,
    MEMINFO_NO_TOTAL,
    STANDARD_VALUES,
    ENTRY_VALUES,
    ALWAYS_ON_VALUES,
    KERNEL_DEFAULTS,
)
from .mock_system import MockSystemScanner, MockSysctlService

__all__ = [
    # Host mocks
    'MockSystemScanner',
    'MockSysctlService',
    # Golden data
    'MEMINFO_2GB',
    'MEMINFO_NO_TOTAL',
    'STANDARD_VALUES',
    'ENTRY_VALUES',
    'ALWAYS_ON_VALUES',
    'KERNEL_DEFAULTS',
]
