#!/usr/bin/env python3
"""
Tests for configuration backups.
"""

import json

import pytest

from syncai.core.backup import BackupManager, META_FILE
from syncai.core.errors import ErrorCode

from . import DEMO_TOOL


@pytest.fixture
def backups(app, demo_tool):
    return BackupManager(app)


class TestCreate:
    """Snapshot creation."""

    def test_create_copies_directory(self, backups, local_dir):
        (local_dir / "settings.json").write_text('{"a": 1}')
        (local_dir / "rules").mkdir()
        (local_dir / "rules" / "style.md").write_text("# style")

        outcome = backups.create(DEMO_TOOL, "manual")

        assert outcome.success is True
        record = outcome.record
        assert record.tool == DEMO_TOOL
        assert record.reason == "manual"
        assert record.backup_id == record.path.name
        assert (record.path / "settings.json").read_text() == '{"a": 1}'
        assert (record.path / "rules" / "style.md").exists()

        meta = json.loads((record.path / META_FILE).read_text())
        assert meta["tool"] == DEMO_TOOL
        assert meta["backup_id"] == record.backup_id

    def test_reason_is_sanitized(self, backups):
        outcome = backups.create(DEMO_TOOL, "before big/change")
        assert outcome.record.reason == "before-big-change"
        assert "/" not in outcome.record.backup_id

    def test_missing_config_dir(self, app, backups, tmp_path):
        app.config.update_mapping(DEMO_TOOL, config_directory=str(tmp_path / "missing"))
        outcome = backups.create(DEMO_TOOL)
        assert outcome.success is False
        assert outcome.error == ErrorCode.CONFIG_DIR_NOT_FOUND

    def test_unknown_tool(self, backups):
        assert backups.create("nothing").error == ErrorCode.CONFIG_DIR_NOT_FOUND

    def test_copy_failure(self, backups, local_dir, monkeypatch):
        """A partially copied backup is removed and never listed."""
        (local_dir / "settings.json").write_text("{}")

        def fail(source, target):
            (target / "settings.json").write_text("{}")
            raise OSError("disk full")

        monkeypatch.setattr("syncai.core.backup.copy_tree", fail)
        outcome = backups.create(DEMO_TOOL)
        assert outcome.success is False
        assert outcome.error == ErrorCode.BACKUP_FAILED
        assert backups.list(DEMO_TOOL) == []

    def test_failed_backup_does_not_displace_good_ones(self, app, backups, monkeypatch):
        app.config.set_value("backup.max_backups", 1)
        good = backups.create(DEMO_TOOL, "good").record

        def fail(source, target):
            raise OSError("disk full")

        monkeypatch.setattr("syncai.core.backup.copy_tree", fail)
        assert backups.create(DEMO_TOOL, "broken").success is False

        assert [r.backup_id for r in backups.list(DEMO_TOOL)] == [good.backup_id]


class TestListAndPrune:
    """Listing order and retention."""

    def test_list_newest_first(self, backups):
        ids = [backups.create(DEMO_TOOL, f"r{i}").record.backup_id for i in range(3)]

        listed = [r.backup_id for r in backups.list(DEMO_TOOL)]

        assert listed == list(reversed(ids))

    def test_list_all_tools(self, app, backups, tmp_path):
        other_dir = tmp_path / "other"
        other_dir.mkdir()
        app.config.update_mapping("other", installed=True, config_directory=str(other_dir))

        backups.create(DEMO_TOOL)
        backups.create("other")

        assert {r.tool for r in backups.list()} == {DEMO_TOOL, "other"}

    def test_list_without_backups(self, backups):
        assert backups.list(DEMO_TOOL) == []

    def test_retention_limit(self, app, backups):
        app.config.set_value("backup.max_backups", 2)
        for i in range(4):
            backups.create(DEMO_TOOL, f"r{i}")

        remaining = backups.list(DEMO_TOOL)
        assert [r.reason for r in remaining] == ["r3", "r2"]

    def test_prune_explicit_keep(self, backups):
        for i in range(3):
            backups.create(DEMO_TOOL, f"r{i}")

        assert backups.prune(DEMO_TOOL, keep=1) == 2
        assert len(backups.list(DEMO_TOOL)) == 1

    def test_get_and_delete(self, backups):
        record = backups.create(DEMO_TOOL).record

        assert backups.get(DEMO_TOOL, record.backup_id).timestamp_id == record.timestamp_id
        assert backups.delete(DEMO_TOOL, record.backup_id).success is True
        assert backups.get(DEMO_TOOL, record.backup_id) is None
        assert backups.delete(DEMO_TOOL, record.backup_id).error == ErrorCode.BACKUP_NOT_FOUND

    @pytest.mark.parametrize("backup_id", ["", "..", "../demo", "a/b", "a\\b"])
    def test_path_like_ids_rejected(self, backups, backup_id):
        assert backups.get(DEMO_TOOL, backup_id) is None
        assert backups.restore(DEMO_TOOL, backup_id).error == ErrorCode.BACKUP_NOT_FOUND


class TestRestore:
    """Restoring a snapshot."""

    def test_restore_replaces_directory(self, backups, local_dir):
        (local_dir / "settings.json").write_text("original")
        record = backups.create(DEMO_TOOL).record

        (local_dir / "settings.json").write_text("changed")
        (local_dir / "new.txt").write_text("added later")

        outcome = backups.restore(DEMO_TOOL, record.backup_id)

        assert outcome.success is True
        assert (local_dir / "settings.json").read_text() == "original"
        assert not (local_dir / "new.txt").exists()
        assert not (local_dir / META_FILE).exists()

    def test_restore_takes_pre_restore_backup(self, backups, local_dir):
        (local_dir / "settings.json").write_text("original")
        record = backups.create(DEMO_TOOL).record
        (local_dir / "settings.json").write_text("changed")

        outcome = backups.restore(DEMO_TOOL, record.backup_id)

        assert outcome.record.reason == "pre-restore"
        assert (outcome.record.path / "settings.json").read_text() == "changed"

    def test_restore_into_missing_directory(self, app, backups, local_dir, tmp_path):
        (local_dir / "settings.json").write_text("original")
        record = backups.create(DEMO_TOOL).record
        moved = tmp_path / "moved"
        app.config.update_mapping(DEMO_TOOL, config_directory=str(moved))

        outcome = backups.restore(DEMO_TOOL, record.backup_id)

        assert outcome.success is True
        assert outcome.record is None
        assert (moved / "settings.json").read_text() == "original"

    def test_restore_unknown_backup(self, backups):
        assert backups.restore(DEMO_TOOL, "20200101T000000-000000_manual").error == ErrorCode.BACKUP_NOT_FOUND

    def test_restore_unconfigured_tool(self, app, backups):
        record = backups.create(DEMO_TOOL).record
        app.config.update_mapping(DEMO_TOOL, config_directory=None)
        assert backups.restore(DEMO_TOOL, record.backup_id).error == ErrorCode.TOOL_NOT_CONFIGURED
