"""
Protocol definitions for bbr_tuner.

Dataclasses passed between components:
- HardwareProfile: profiler -> parameter table / renderer
- Tier, Directive, ParameterSet: parameter table -> renderer
- ConfigDocument: renderer -> disk
- ApplyResult: apply/verify controller -> CLI
- RollbackResult, RunSummary: controllers -> CLI
- TunerError hierarchy: fatal failures
"""

from .context import HardwareProfile, VIRT_UNKNOWN
from .tuning import (
    Tier,
    Directive,
    DirectiveGroup,
    ParameterSet,
    ConfigDocument,
    ApplyResult,
    format_value,
    normalize_value,
)
from .errors import (
    Phase,
    TunerError,
    ProfileError,
    PreflightError,
    SnapshotError,
    ConfigWriteError,
    ReloadError,
    ConfigError,
    LockError,
)
from .result import RollbackState, RollbackAction, RollbackResult, RunSummary

__all__ = [
    # Context
    "HardwareProfile",
    "VIRT_UNKNOWN",
    # Tuning
    "Tier",
    "Directive",
    "DirectiveGroup",
    "ParameterSet",
    "ConfigDocument",
    "ApplyResult",
    "format_value",
    "normalize_value",
    # Errors
    "Phase",
    "TunerError",
    "ProfileError",
    "PreflightError",
    "SnapshotError",
    "ConfigWriteError",
    "ReloadError",
    "ConfigError",
    "LockError",
    # Results
    "RollbackState",
    "RollbackAction",
    "RollbackResult",
    "RunSummary",
]
