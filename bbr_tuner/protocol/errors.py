"""
Error taxonomy for bbr_tuner.

Fatal errors derive from TunerError and propagate to the CLI, which exits
non-zero. Recoverable conditions are logged and reported in result objects
instead of being raised.
"""

from enum import Enum


class Phase(str, Enum):
    """Phases where an apply run can fail."""
    PREFLIGHT = "PREFLIGHT"
    PROFILE = "PROFILE"
    SNAPSHOT = "SNAPSHOT"
    WRITE = "WRITE"
    RELOAD = "RELOAD"
    ROLLBACK = "ROLLBACK"


class TunerError(Exception):
    """Base class for fatal bbr_tuner errors."""

    phase: Phase = None

    def __init__(self, message: str, phase: Phase = None):
        super().__init__(message)
        if phase is not None:
            self.phase = phase


class ProfileError(TunerError):
    """Total memory could not be determined; there is no safe default tier."""
    phase = Phase.PROFILE


class PreflightError(TunerError):
    """Missing privilege, unsupported kernel, or BBR unavailable."""
    phase = Phase.PREFLIGHT


class SnapshotError(TunerError):
    """The existing configuration could not be backed up."""
    phase = Phase.SNAPSHOT


class ConfigWriteError(TunerError):
    """The configuration file could not be written."""
    phase = Phase.WRITE


class ReloadError(TunerError):
    """The OS reload mechanism reported failure."""
    phase = Phase.RELOAD


class ConfigError(TunerError):
    """Invalid tool configuration (TOML file, environment, or arguments)."""


class LockError(TunerError):
    """Another invocation holds the single-instance lock."""
