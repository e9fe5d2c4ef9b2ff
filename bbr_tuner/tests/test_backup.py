from datetime import datetime
from pathlib import Path

import pytest

from bbr_tuner.protocol.errors import SnapshotError
from bbr_tuner.snapshot import BackupManager, Snapshot


def test_snapshot_without_existing_file_is_none(backups, conf_path):
    assert backups.snapshot(conf_path) is None
    assert backups.list_snapshots(conf_path) == []


def test_snapshot_copies_file_with_sortable_name(backups, conf_path):
    conf_path.write_text("net.core.somaxconn = 1024\n")

    snapshot = backups.snapshot(conf_path)

    assert snapshot.path.name == "99-bbr.conf.bak_2026-10-18_12-00-00"
    assert snapshot.path.read_text() == "net.core.somaxconn = 1024\n"
    assert snapshot.created_at == datetime(2026, 10, 18, 12, 0, 0)
    assert conf_path.exists()


def test_snapshot_names_sort_in_creation_order(backups, conf_path):
    conf_path.write_text("v1\n")
    created = []
    for i in range(12):
        conf_path.write_text(f"v{i}\n")
        created.append(backups.snapshot(conf_path).path)

    assert backups.list_snapshots(conf_path) == created
    assert backups.latest(conf_path) == created[-1]


def test_same_second_snapshots_keep_order(conf_path):
    frozen = datetime(2026, 10, 18, 12, 0, 0)
    backups = BackupManager(clock=lambda: frozen)
    conf_path.write_text("x\n")

    paths = [backups.snapshot(conf_path).path for _ in range(3)]

    assert [p.name for p in paths] == [
        "99-bbr.conf.bak_2026-10-18_12-00-00",
        "99-bbr.conf.bak_2026-10-18_12-00-00_01",
        "99-bbr.conf.bak_2026-10-18_12-00-00_02",
    ]
    assert backups.list_snapshots(conf_path) == paths


def test_same_second_snapshot_after_prune_is_still_newest(conf_path):
    frozen = datetime(2026, 10, 18, 12, 0, 0)
    backups = BackupManager(clock=lambda: frozen)
    conf_path.write_text("x\n")

    for _ in range(3):
        newest = backups.snapshot(conf_path).path
        backups.prune(conf_path, retain=1)
        assert backups.latest(conf_path) == newest


def test_same_second_suffix_is_bounded(conf_path):
    frozen = datetime(2026, 10, 18, 12, 0, 0)
    backups = BackupManager(clock=lambda: frozen)
    conf_path.write_text("x\n")
    base = "99-bbr.conf.bak_2026-10-18_12-00-00"
    (conf_path.parent / base).write_text("")
    (conf_path.parent / f"{base}_98").write_text("")

    assert backups.snapshot(conf_path).path.name == f"{base}_99"
    with pytest.raises(SnapshotError):
        backups.snapshot(conf_path)

    assert backups.latest(conf_path).name == f"{base}_99"


def test_three_digit_suffix_is_not_a_snapshot(backups, conf_path):
    (conf_path.parent / "99-bbr.conf.bak_2026-10-18_12-00-00_100").write_text("")
    assert backups.list_snapshots(conf_path) == []


@pytest.mark.parametrize("retain, extra", [(1, 0), (1, 4), (3, 0), (3, 5)])
def test_retention_keeps_newest(backups, conf_path, retain, extra):
    conf_path.write_text("x\n")
    created = []
    for _ in range(retain + extra):
        created.append(backups.snapshot(conf_path).path)
        backups.prune(conf_path, retain=retain)

    remaining = backups.list_snapshots(conf_path)
    assert remaining == created[-retain:]


def test_prune_within_policy_is_noop(backups, conf_path):
    conf_path.write_text("x\n")
    backups.snapshot(conf_path)

    result = backups.prune(conf_path, retain=3)

    assert result.removed == []
    assert result.clean
    assert len(result.kept) == 1


def test_prune_with_no_snapshots(backups, conf_path):
    result = backups.prune(conf_path, retain=1)
    assert result.kept == [] and result.removed == []


def test_prune_rejects_zero_retention(backups, conf_path):
    with pytest.raises(ValueError):
        backups.prune(conf_path, retain=0)


def test_prune_failure_is_recorded_not_raised(backups, conf_path, monkeypatch):
    conf_path.write_text("x\n")
    oldest = backups.snapshot(conf_path).path
    backups.snapshot(conf_path)

    original_unlink = Path.unlink

    def guarded_unlink(self, *args, **kwargs):
        if self == oldest:
            raise PermissionError("read-only")
        return original_unlink(self, *args, **kwargs)

    monkeypatch.setattr(Path, "unlink", guarded_unlink)
    result = backups.prune(conf_path, retain=1)

    assert not result.clean
    assert oldest in result.failed
    assert oldest.exists()


def test_prune_tolerates_concurrent_deletion(backups, conf_path, monkeypatch):
    conf_path.write_text("x\n")
    oldest = backups.snapshot(conf_path).path
    backups.snapshot(conf_path)

    original_list = backups.list_snapshots

    def list_then_vanish(path):
        snapshots = original_list(path)
        oldest.unlink(missing_ok=True)
        return snapshots

    monkeypatch.setattr(backups, "list_snapshots", list_then_vanish)
    result = backups.prune(conf_path, retain=1)

    assert result.clean
    assert result.removed == [oldest]


def test_snapshot_failure_raises(backups, conf_path, monkeypatch):
    conf_path.write_text("x\n")

    def broken_copy(src, dst):
        raise OSError("no space left on device")

    monkeypatch.setattr("bbr_tuner.snapshot.manager.shutil.copy2", broken_copy)
    with pytest.raises(SnapshotError):
        backups.snapshot(conf_path)


def test_unrelated_files_are_ignored(backups, conf_path):
    conf_path.write_text("x\n")
    (conf_path.parent / "10-other.conf.bak_2026-10-18_12-00-00").write_text("")
    (conf_path.parent / "99-bbr.conf.bak_garbage").write_text("")
    (conf_path.parent / "99-bbr.conf.orig").write_text("")

    backups.snapshot(conf_path)

    assert [p.name for p in backups.list_snapshots(conf_path)] == [
        "99-bbr.conf.bak_2026-10-18_12-00-00",
    ]


def test_snapshot_from_path_parses_timestamp(conf_path):
    path = conf_path.with_name("99-bbr.conf.bak_2026-01-02_03-04-05_01")
    snapshot = Snapshot.from_path(path, conf_path)

    assert snapshot.created_at == datetime(2026, 1, 2, 3, 4, 5)
    assert Snapshot.from_path(conf_path.with_name("other"), conf_path) is None
