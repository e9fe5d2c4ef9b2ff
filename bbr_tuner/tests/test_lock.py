import os

import pytest

from bbr_tuner.lock import InstanceLock
from bbr_tuner.protocol.errors import LockError


@pytest.fixture
def lock_file(tmp_path):
    return tmp_path / "run" / "bbr-tuner.lock"


def test_lock_records_pid(lock_file):
    with InstanceLock(lock_file) as lock:
        assert lock.locked
        assert lock_file.read_text().strip() == str(os.getpid())
    assert not lock.locked


def test_second_holder_is_refused(lock_file):
    first = InstanceLock(lock_file)
    first.acquire()
    try:
        with pytest.raises(LockError, match=str(os.getpid())):
            InstanceLock(lock_file).acquire()
    finally:
        first.release()


def test_lock_can_be_retaken_after_release(lock_file):
    with InstanceLock(lock_file):
        pass
    with InstanceLock(lock_file) as lock:
        assert lock.locked


def test_acquire_is_reentrant_for_same_instance(lock_file):
    lock = InstanceLock(lock_file)
    lock.acquire()
    lock.acquire()
    lock.release()
    lock.release()
    assert not lock.locked


def test_released_on_exception(lock_file):
    with pytest.raises(RuntimeError):
        with InstanceLock(lock_file):
            raise RuntimeError("boom")

    with InstanceLock(lock_file) as lock:
        assert lock.locked


def test_unopenable_lock_file(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("")
    with pytest.raises(LockError, match="Cannot open"):
        InstanceLock(blocker / "bbr-tuner.lock").acquire()
