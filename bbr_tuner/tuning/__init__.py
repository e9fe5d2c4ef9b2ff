"""
Tuning module - Generates, applies and rolls back the sysctl configuration.

Components:
- tiers: Tier thresholds and scaled parameter table
- ConfigRenderer: Renders and writes the managed file
- SysctlService: Reload mechanism and live-value reader
- TuningVerifier: Applies and verifies BBR + fq
- RollbackController: Restores the previous configuration
- TuningExecutor: Runs the whole cycle
"""

from .tiers import select_tier, parameters_for, validate_table, TIER_TABLE
from .renderer import ConfigRenderer, parse_config, parse_value
from .service import SysctlService, SysctlConfig
from .verifier import TuningVerifier
from .rollback import RollbackController
from .executor import TuningExecutor, ExecutorConfig, DEFAULT_CONF_FILE

__all__ = [
    "select_tier",
    "parameters_for",
    "validate_table",
    "TIER_TABLE",
    "ConfigRenderer",
    "parse_config",
    "parse_value",
    "SysctlService",
    "SysctlConfig",
    "TuningVerifier",
    "RollbackController",
    "TuningExecutor",
    "ExecutorConfig",
    "DEFAULT_CONF_FILE",
]
