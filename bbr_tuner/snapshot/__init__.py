"""
Snapshot/backup system for bbr_tuner.

Every overwrite of the managed sysctl file is preceded by a timestamped
copy next to it. A bounded number of copies is retained, and rollback
promotes the newest one back over the live file.
"""

from .models import Snapshot, PruneResult, SNAPSHOT_MARKER, TIMESTAMP_FORMAT
from .manager import BackupManager, DEFAULT_RETAIN

__all__ = [
    'Snapshot',
    'PruneResult',
    'SNAPSHOT_MARKER',
    'TIMESTAMP_FORMAT',
    'BackupManager',
    'DEFAULT_RETAIN',
]
