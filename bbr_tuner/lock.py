"""
Single instance lock.

Two invocations racing on snapshot -> write could back up a half-written
file. An exclusive, non-blocking flock serializes apply and revert.
"""

import fcntl
import logging
import os
from pathlib import Path
from typing import Optional

from .protocol.errors import LockError

logger = logging.getLogger(__name__)


DEFAULT_LOCK_FILE = Path("/run/bbr-tuner.lock")


class InstanceLock:
    """Exclusive advisory lock held for the duration of a run."""

    def __init__(self, lock_file: Optional[Path] = None):
        self.lock_file = Path(lock_file or DEFAULT_LOCK_FILE)
        self._fd = None

    @property
    def locked(self) -> bool:
        return self._fd is not None

    def acquire(self) -> None:
        """
        Take the lock without waiting.

        Raises:
            LockError: If another process holds it or the file cannot be opened
        """
        if self.locked:
            return

        try:
            self.lock_file.parent.mkdir(parents=True, exist_ok=True)
            fd = open(self.lock_file, "a+")
        except OSError as e:
            raise LockError(f"Cannot open lock file {self.lock_file}: {e}") from e

        try:
            fcntl.flock(fd.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            fd.seek(0)
            holder = fd.read().strip() or "unknown"
            fd.close()
            raise LockError(f"Another bbr-tuner run holds {self.lock_file} (pid {holder})")

        fd.seek(0)
        fd.truncate()
        fd.write(f"{os.getpid()}\n")
        fd.flush()
        self._fd = fd
        logger.debug("Acquired %s", self.lock_file)

    def release(self) -> None:
        if not self.locked:
            return
        try:
            fcntl.flock(self._fd.fileno(), fcntl.LOCK_UN)
        finally:
            self._fd.close()
            self._fd = None
        logger.debug("Released %s", self.lock_file)

    def __enter__(self) -> "InstanceLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
