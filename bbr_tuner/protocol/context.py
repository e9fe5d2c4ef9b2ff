"""
Host Context - What the profiler learned about the machine.

HardwareProfile is read once per run and passed by value to every
component that needs it.
"""

from dataclasses import dataclass


VIRT_UNKNOWN = "unknown"


@dataclass(frozen=True)
class HardwareProfile:
    """Hardware facts that drive tier selection."""
    total_memory_mb: int
    cpu_cores: int
    virtualization: str = VIRT_UNKNOWN

    def __post_init__(self):
        if self.total_memory_mb < 0:
            raise ValueError(f"total_memory_mb must be >= 0, got {self.total_memory_mb}")
        if self.cpu_cores < 1:
            raise ValueError(f"cpu_cores must be >= 1, got {self.cpu_cores}")

    def summary(self) -> str:
        """One-line description for headers and logs."""
        return (
            f"{self.total_memory_mb} MB RAM, {self.cpu_cores} CPU cores, "
            f"virtualization: {self.virtualization}"
        )
