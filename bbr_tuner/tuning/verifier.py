"""
TuningVerifier - Applies the configuration and confirms it took effect.

Only the congestion-control and queueing-discipline keys are checked after
a reload: they are the two whose failure (usually a missing kernel module)
is silent and externally observable.
"""

import logging
from typing import Dict, Optional, Tuple

from ..protocol.tuning import ApplyResult, normalize_value
from .service import SysctlService
from .tiers import CONGESTION_KEY, QDISC_KEY

logger = logging.getLogger(__name__)


DEFAULT_EXPECTED = {
    CONGESTION_KEY: "bbr",
    QDISC_KEY: "fq",
}


class TuningVerifier:
    """
    Apply/verify controller.

    Reload failures are fatal (ReloadError propagates). Value mismatches
    are reported in the ApplyResult and logged, not raised.
    """

    def __init__(
        self,
        service: Optional[SysctlService] = None,
        expected: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize verifier.

        Args:
            service: Reloader and live-value reader
            expected: key -> intended live value
        """
        self.service = service or SysctlService()
        self.expected = dict(expected or DEFAULT_EXPECTED)

    def apply(self) -> ApplyResult:
        """Reload all sysctl files, then verify the watched keys."""
        self.service.reload()
        return self.verify()

    def verify(self) -> ApplyResult:
        """Read the watched keys and compare them with their intended values."""
        effective = {key: self.service.read_value(key) for key in self.expected}
        success = all(
            self.matches(effective[key], expected)
            for key, expected in self.expected.items()
        )
        result = ApplyResult(
            effective_values=effective,
            expected_values=dict(self.expected),
            success=success,
        )

        for key, (expected, actual) in result.mismatches.items():
            logger.warning("%s is %r, expected %r", key, actual, expected)
        return result

    def diff_live(self, values: Dict[str, str]) -> Dict[str, Tuple[str, Optional[str]]]:
        """
        Compare arbitrary intended values against the live kernel.

        Returns:
            key -> (intended, live) for every key that differs
        """
        differences = {}
        for key, intended in values.items():
            live = self.service.read_value(key)
            if not self.matches(live, intended):
                differences[key] = (intended, live)
        return differences

    @staticmethod
    def matches(actual: Optional[str], expected: str) -> bool:
        """Compare a live value with an intended one, ignoring whitespace runs and case."""
        if actual is None:
            return False
        return normalize_value(actual) == normalize_value(expected)
