from datetime import datetime, timedelta

import pytest

from bbr_tuner.snapshot import BackupManager
from bbr_tuner.tuning import ConfigRenderer, TuningExecutor, ExecutorConfig, TuningVerifier
from bbr_tuner.tests.mocks import MockSystemScanner, MockSysctlService


class StepClock:
    """Deterministic clock that advances one second per call."""

    def __init__(self, start=datetime(2026, 10, 18, 12, 0, 0), step=timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self):
        current = self.now
        self.now = self.now + self.step
        return current


@pytest.fixture
def conf_path(tmp_path):
    directory = tmp_path / "sysctl.d"
    directory.mkdir()
    return directory / "99-bbr.conf"


@pytest.fixture
def conntrack_probe(tmp_path):
    probe = tmp_path / "nf_conntrack_max"
    probe.write_text("262144\n")
    return probe


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def backups(clock):
    return BackupManager(clock=clock)


@pytest.fixture
def service(conf_path):
    return MockSysctlService(conf_path=conf_path)


@pytest.fixture
def make_executor(conf_path, conntrack_probe, backups, service):
    def _make(memory_mb=2048, cores=2, retain=1, scanner=None, conntrack=True, svc=None):
        svc = svc or service
        probe = conntrack_probe if conntrack else conntrack_probe.parent / "missing"
        return TuningExecutor(
            config=ExecutorConfig(conf_path=conf_path, retain=retain),
            scanner=scanner or MockSystemScanner(memory_mb=memory_mb, cores=cores),
            renderer=ConfigRenderer(conntrack_probe=probe),
            backups=backups,
            service=svc,
            verifier=TuningVerifier(service=svc),
        )
    return _make
