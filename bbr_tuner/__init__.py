"""
bbr_tuner - Hardware-tiered TCP/IP & BBR tuning for Linux hosts

Inspects memory and CPU, selects a tier of kernel network parameters,
writes them to a managed sysctl file (backing up the previous one), loads
them and verifies BBR + fq are live. Supports rollback.

Usage:
    # As a module
    python -m bbr_tuner            # apply
    python -m bbr_tuner revert

    # Programmatically
    from bbr_tuner import TuningExecutor, ExecutorConfig

    executor = TuningExecutor(ExecutorConfig(conf_path=Path("/etc/sysctl.d/99-bbr.conf")))
    summary = executor.run()
"""

__version__ = "1.3.0"

# Main exports
from .tuning.executor import TuningExecutor, ExecutorConfig
from .tuning.tiers import select_tier, parameters_for

# Protocol exports
from .protocol.context import HardwareProfile
from .protocol.tuning import Tier, ParameterSet, ConfigDocument, ApplyResult
from .protocol.result import RunSummary, RollbackResult
from .protocol.errors import TunerError

# Snapshot exports
from .snapshot.manager import BackupManager

__all__ = [
    # Version
    "__version__",
    # Executor
    "TuningExecutor",
    "ExecutorConfig",
    "select_tier",
    "parameters_for",
    # Protocol
    "HardwareProfile",
    "Tier",
    "ParameterSet",
    "ConfigDocument",
    "ApplyResult",
    "RunSummary",
    "RollbackResult",
    "TunerError",
    # Snapshot
    "BackupManager",
]
