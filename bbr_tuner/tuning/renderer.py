"""
ConfigRenderer - Turns a parameter set into the managed sysctl file.

Rendering happens entirely in memory. Writing goes through a temporary
file in the destination directory that is moved over the destination, so a
reader always sees either the previous complete file or the new one.
"""

import logging
import os
import re
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from ..protocol.context import HardwareProfile
from ..protocol.tuning import (
    Tier,
    ParameterSet,
    ConfigDocument,
    Value,
    GENERATED_PREFIX,
)
from ..protocol.errors import ConfigWriteError
from .tiers import ALWAYS_ON, SCALED_PARAMETERS, tier_range

logger = logging.getLogger(__name__)


DEFAULT_CONNTRACK_PROBE = Path("/proc/sys/net/netfilter/nf_conntrack_max")
HEADER_RULE = "# " + "=" * 66
FILE_MODE = 0o644

_CONDITIONAL_KEYS = {param.key for param in SCALED_PARAMETERS if param.conditional}


class ConfigRenderer:
    """Renders and writes the managed configuration document."""

    def __init__(self, conntrack_probe: Optional[Path] = None):
        """
        Initialize renderer.

        Args:
            conntrack_probe: Control path whose presence means the host has
                a connection-tracking subsystem
        """
        self.conntrack_probe = Path(conntrack_probe or DEFAULT_CONNTRACK_PROBE)

    def conntrack_available(self) -> bool:
        return self.conntrack_probe.exists()

    def render(
        self,
        profile: HardwareProfile,
        tier: Tier,
        parameters: ParameterSet,
        now: Optional[datetime] = None,
    ) -> ConfigDocument:
        """
        Build the full document: header, always-on directives and the
        tier's scaled directives, grouped.
        """
        now = now or datetime.now()
        include_conntrack = self.conntrack_available()
        if not include_conntrack:
            logger.info(
                "Connection tracking not present (%s missing), skipping conntrack limit",
                self.conntrack_probe,
            )

        directives = [
            d for d in parameters
            if include_conntrack or d.key not in _CONDITIONAL_KEYS
        ]
        directives.extend(ALWAYS_ON)
        # Stable sort keeps table order inside each group
        directives.sort(key=lambda d: d.group)

        header = [
            HEADER_RULE,
            "# Kernel network tuning managed by bbr-tuner",
            "# Manual edits are overwritten on the next run.",
            f"{GENERATED_PREFIX}{now.strftime('%Y-%m-%d %H:%M:%S')}",
            f"# Hardware: {profile.summary()}",
            f"# Tier: {tier.label} ({tier_range(tier)})",
            HEADER_RULE,
        ]
        return ConfigDocument(header=header, directives=directives)

    def write(self, document: ConfigDocument, path: Path) -> None:
        """
        Replace path with the document.

        Raises:
            ConfigWriteError: If the file could not be written. The previous
                file is left untouched in that case.
        """
        path = Path(path)
        content = document.to_text()

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
            )
        except OSError as e:
            raise ConfigWriteError(f"Cannot write {path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, FILE_MODE)
            os.replace(tmp_name, path)
        except OSError as e:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise ConfigWriteError(f"Cannot write {path}: {e}") from e

        logger.info("Wrote %d directives to %s", len(document.directives), path)


# =============================================================================
# Parsing (sysctl.conf grammar)
# =============================================================================

_WHITESPACE = re.compile(r"\s+")


def parse_config(text: str) -> Dict[str, str]:
    """
    Parse sysctl.conf content into key -> value.

    Follows the grammar sysctl itself uses: '#' and ';' start comment lines,
    blank lines are skipped, 'key = value' with surrounding whitespace
    ignored. A leading '-' on the key (ignore-failure marker) is dropped.
    Later assignments win.
    """
    values = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line[0] in "#;":
            continue
        if "=" not in line:
            continue
        key, _, value = line.partition("=")
        key = key.strip().lstrip("-").strip()
        values[key] = _WHITESPACE.sub(" ", value.strip())
    return values


def parse_value(text: str) -> Value:
    """Convert a rendered value back to int, integer triple, or str."""
    parts = text.split()
    if parts and all(re.fullmatch(r"-?\d+", p) for p in parts):
        numbers = tuple(int(p) for p in parts)
        if len(numbers) == 1:
            return numbers[0]
        if len(numbers) == 3:
            return numbers
    return text
