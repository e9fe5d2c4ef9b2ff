"""
UI module - Rich console interface for bbr_tuner.

Provides:
- Hardware profile and tier display
- Directive tables and dry-run file preview
- Verification, rollback and backup listings
"""

from .console import ConsoleUI

__all__ = [
    "ConsoleUI",
]
