"""
Data models for the backup/rollback system.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional


SNAPSHOT_MARKER = ".bak_"
TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

# <name>.bak_YYYY-MM-DD_HH-MM-SS with an optional _NN collision suffix
_SUFFIX_PATTERN = r"\.bak_(\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2})(?:_(\d{2}))?$"


def snapshot_pattern(conf_path: Path) -> "re.Pattern":
    """Regex matching snapshot file names that belong to conf_path."""
    return re.compile(re.escape(Path(conf_path).name) + _SUFFIX_PATTERN)


@dataclass(frozen=True)
class Snapshot:
    """A timestamped copy of the managed configuration file."""
    path: Path
    source: Path
    created_at: datetime

    @property
    def name(self) -> str:
        return self.path.name

    @classmethod
    def from_path(cls, path: Path, source: Path) -> Optional["Snapshot"]:
        """Rebuild a Snapshot from its file name; None if the name does not match."""
        match = snapshot_pattern(source).match(path.name)
        if not match:
            return None
        return cls(
            path=path,
            source=source,
            created_at=datetime.strptime(match.group(1), TIMESTAMP_FORMAT),
        )


@dataclass
class PruneResult:
    """Outcome of applying the retention policy."""
    retain: int
    kept: List[Path] = field(default_factory=list)
    removed: List[Path] = field(default_factory=list)
    failed: Dict[Path, str] = field(default_factory=dict)

    @property
    def clean(self) -> bool:
        return not self.failed
