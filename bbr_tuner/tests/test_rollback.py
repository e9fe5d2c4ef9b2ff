import pytest

from bbr_tuner.protocol.errors import ReloadError
from bbr_tuner.protocol.result import RollbackAction, RollbackState
from bbr_tuner.tuning import RollbackController


@pytest.fixture
def controller(backups, service):
    return RollbackController(backups=backups, service=service)


def test_restores_newest_snapshot_by_rename(controller, backups, service, conf_path):
    conf_path.write_text("generation = 1\n")
    backups.snapshot(conf_path)
    conf_path.write_text("generation = 2\n")
    newest = backups.snapshot(conf_path).path
    conf_path.write_text("generation = 3\n")

    assert controller.state(conf_path) == RollbackState.HAS_SNAPSHOT
    result = controller.rollback(conf_path)

    assert result.state == RollbackState.HAS_SNAPSHOT
    assert result.action == RollbackAction.RESTORED
    assert result.snapshot == newest
    assert conf_path.read_text() == "generation = 2\n"
    assert not newest.exists()
    assert service.reload_count == 1


def test_rollback_creates_no_new_snapshot(controller, backups, conf_path):
    conf_path.write_text("old\n")
    backups.snapshot(conf_path)
    conf_path.write_text("new\n")

    controller.rollback(conf_path)

    assert backups.list_snapshots(conf_path) == []


def test_without_snapshot_deletes_live_file(controller, service, conf_path):
    conf_path.write_text("generated\n")

    result = controller.rollback(conf_path)

    assert result.state == RollbackState.NO_SNAPSHOT
    assert result.action == RollbackAction.DELETED
    assert not conf_path.exists()
    assert service.reload_count == 1


def test_nothing_to_roll_back_is_noop(controller, service, conf_path):
    result = controller.rollback(conf_path)

    assert result.action == RollbackAction.NOOP
    assert not result.changed
    assert not result.reloaded
    assert service.reload_count == 0


def test_second_rollback_falls_into_delete_branch(controller, backups, conf_path):
    conf_path.write_text("original\n")
    backups.snapshot(conf_path)
    conf_path.write_text("generated\n")

    first = controller.rollback(conf_path)
    second = controller.rollback(conf_path)
    third = controller.rollback(conf_path)

    assert first.action == RollbackAction.RESTORED
    assert second.action == RollbackAction.DELETED
    assert third.action == RollbackAction.NOOP
    assert not conf_path.exists()


def test_reload_failure_after_restore_raises(controller, backups, service, conf_path):
    conf_path.write_text("original\n")
    backups.snapshot(conf_path)
    service.force_reload_failure()

    with pytest.raises(ReloadError):
        controller.rollback(conf_path)

    assert conf_path.read_text() == "original\n"
