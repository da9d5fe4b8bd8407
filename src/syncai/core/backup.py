#!/usr/bin/env python3
"""
Backup manager for SyncAI.

Snapshots of a tool's configuration directory are taken before destructive
operations (pull, restore, rollback) and on request. Each snapshot lives in
``<home>/backups/<tool>/<timestamp_id>_<reason>/`` next to a
``.backup-meta.json`` file describing it.
"""

import json
import re
from dataclasses import dataclass, field, asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .context import AppContext
from .errors import ErrorCode
from ..utils.fs import copy_tree, remove_path, collapse_home
from ..utils.hashing import generate_timestamp_id
from ..utils.logger import get_logger

META_FILE = '.backup-meta.json'
DEFAULT_MAX_BACKUPS = 10
_REASON_RE = re.compile(r'[^A-Za-z0-9-]+')


@dataclass
class BackupRecord:
    """A snapshot of one tool's configuration directory."""

    tool: str
    reason: str
    timestamp_id: str
    source_directory: Optional[str] = None
    path: Optional[Path] = None
    created_at: Optional[str] = None

    @property
    def backup_id(self) -> str:
        return f"{self.timestamp_id}_{self.reason}"

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['path'] = str(self.path) if self.path else None
        data['backup_id'] = self.backup_id
        return data


@dataclass
class BackupOutcome:
    """Result of a backup operation."""

    success: bool
    error: Optional[ErrorCode] = None
    record: Optional[BackupRecord] = None
    warnings: List[str] = field(default_factory=list)


class BackupManager:
    """Creates, lists, restores and prunes configuration snapshots."""

    def __init__(self, context: AppContext):
        self.logger = get_logger(f"{__name__}.BackupManager")
        self.context = context
        self.backups_dir = context.config.backups_dir

    @property
    def max_backups(self) -> int:
        value = self.context.config.get_value('backup.max_backups', DEFAULT_MAX_BACKUPS)
        try:
            return max(1, int(value))
        except (TypeError, ValueError):
            return DEFAULT_MAX_BACKUPS

    def _tool_dir(self, tool: str) -> Path:
        return self.backups_dir / tool

    def _backup_dir(self, tool: str, backup_id: str) -> Optional[Path]:
        """Directory of a backup, or None if the id is not a plain directory name."""
        if not backup_id or backup_id in ('.', '..') or '/' in backup_id or '\\' in backup_id:
            return None
        return self._tool_dir(tool) / backup_id

    def create(self, tool: str, reason: str = 'manual', prune: bool = True) -> BackupOutcome:
        """
        Snapshot the effective config directory of ``tool``.

        Args:
            tool: Tool name
            reason: Short label stored in the backup name (e.g. ``pre-pull``)
            prune: Drop the oldest backups beyond ``backup.max_backups`` afterwards

        Returns:
            BackupOutcome with the new record on success
        """
        config_dir = self.context.config.effective_config_dir(tool)
        if config_dir is None or not config_dir.is_dir():
            return BackupOutcome(False, error=ErrorCode.CONFIG_DIR_NOT_FOUND)

        reason = _REASON_RE.sub('-', reason).strip('-') or 'manual'

        backup_dir = None
        try:
            tool_dir = self._tool_dir(tool)
            timestamp_id = generate_timestamp_id()
            # Timestamp ids order the backups, so they must be unique per tool
            while tool_dir.is_dir() and any(tool_dir.glob(f"{timestamp_id}_*")):
                timestamp_id = generate_timestamp_id()
            backup_dir = tool_dir / f"{timestamp_id}_{reason}"

            backup_dir.mkdir(parents=True)
            copy_tree(config_dir, backup_dir)

            record = BackupRecord(
                tool=tool,
                reason=reason,
                timestamp_id=timestamp_id,
                source_directory=collapse_home(config_dir),
                path=backup_dir,
                created_at=datetime.now().isoformat(),
            )
            meta = record.to_dict()
            del meta['path']
            with open(backup_dir / META_FILE, 'w', encoding='utf-8') as f:
                json.dump(meta, f, indent=2, ensure_ascii=False)

        except Exception as e:
            self.logger.error(f"Failed to back up {tool}: {e}")
            if backup_dir is not None and backup_dir.exists():
                try:
                    remove_path(backup_dir)
                except OSError as cleanup_error:
                    self.logger.warning(f"Failed to remove incomplete backup {backup_dir}: {cleanup_error}")
            return BackupOutcome(False, error=ErrorCode.BACKUP_FAILED)

        self.logger.info(f"Created backup {record.backup_id} for {tool}")

        if prune:
            self.prune(tool)

        return BackupOutcome(True, record=record)

    def _read_record(self, tool: str, backup_dir: Path) -> Optional[BackupRecord]:
        timestamp_id, _, reason = backup_dir.name.partition('_')
        if not timestamp_id:
            return None

        record = BackupRecord(tool=tool, reason=reason, timestamp_id=timestamp_id, path=backup_dir)
        meta_path = backup_dir / META_FILE
        if meta_path.is_file():
            try:
                with open(meta_path, 'r', encoding='utf-8') as f:
                    meta = json.load(f)
                record.source_directory = meta.get('source_directory')
                record.created_at = meta.get('created_at')
            except (OSError, ValueError, AttributeError) as e:
                self.logger.warning(f"Unreadable backup metadata in {backup_dir}: {e}")
        return record

    def list(self, tool: Optional[str] = None) -> List[BackupRecord]:
        """Backups of ``tool`` (or of every tool), newest first."""
        if not self.backups_dir.is_dir():
            return []

        if tool:
            tool_dirs = [self._tool_dir(tool)]
        else:
            tool_dirs = sorted(p for p in self.backups_dir.iterdir() if p.is_dir())

        records = []
        for tool_dir in tool_dirs:
            if not tool_dir.is_dir():
                continue
            for backup_dir in tool_dir.iterdir():
                if not backup_dir.is_dir():
                    continue
                record = self._read_record(tool_dir.name, backup_dir)
                if record:
                    records.append(record)

        return sorted(records, key=lambda r: r.timestamp_id, reverse=True)

    def get(self, tool: str, backup_id: str) -> Optional[BackupRecord]:
        backup_dir = self._backup_dir(tool, backup_id)
        if backup_dir is None or not backup_dir.is_dir():
            return None
        return self._read_record(tool, backup_dir)

    def restore(self, tool: str, backup_id: str) -> BackupOutcome:
        """
        Replace the tool's config directory with a backup.

        A ``pre-restore`` snapshot of the current directory is taken first;
        if that fails the restore still happens and a warning is returned.
        """
        backup_dir = self._backup_dir(tool, backup_id)
        if backup_dir is None or not backup_dir.is_dir():
            return BackupOutcome(False, error=ErrorCode.BACKUP_NOT_FOUND)

        config_dir = self.context.config.effective_config_dir(tool)
        if config_dir is None:
            return BackupOutcome(False, error=ErrorCode.TOOL_NOT_CONFIGURED)

        warnings = []
        pre_restore = None
        if config_dir.exists():
            outcome = self.create(tool, 'pre-restore', prune=False)
            if outcome.success:
                pre_restore = outcome.record
            else:
                message = f"Could not back up {tool} before restoring: {outcome.error.value}"
                self.logger.warning(message)
                warnings.append(message)

        try:
            remove_path(config_dir)
            config_dir.mkdir(parents=True, exist_ok=True)
            copy_tree(backup_dir, config_dir)
            meta_path = config_dir / META_FILE
            if meta_path.exists():
                meta_path.unlink()
        except Exception as e:
            self.logger.error(f"Failed to restore {tool} from {backup_id}: {e}")
            return BackupOutcome(False, error=ErrorCode.UNEXPECTED_ERROR, record=pre_restore, warnings=warnings)

        self.logger.info(f"Restored {tool} from backup {backup_id}")
        self.prune(tool)
        return BackupOutcome(True, record=pre_restore, warnings=warnings)

    def prune(self, tool: str, keep: Optional[int] = None) -> int:
        """Delete the oldest backups of ``tool`` beyond ``keep``. Returns how many were removed."""
        keep = self.max_backups if keep is None else max(0, keep)
        removed = 0
        for record in self.list(tool)[keep:]:
            try:
                remove_path(record.path)
                removed += 1
            except OSError as e:
                self.logger.warning(f"Failed to remove old backup {record.path}: {e}")

        if removed:
            self.logger.debug(f"Pruned {removed} old backup(s) of {tool}")
        return removed

    def delete(self, tool: str, backup_id: str) -> BackupOutcome:
        backup_dir = self._backup_dir(tool, backup_id)
        if backup_dir is None or not backup_dir.is_dir():
            return BackupOutcome(False, error=ErrorCode.BACKUP_NOT_FOUND)

        try:
            remove_path(backup_dir)
        except OSError as e:
            self.logger.error(f"Failed to delete backup {backup_id}: {e}")
            return BackupOutcome(False, error=ErrorCode.UNEXPECTED_ERROR)

        self.logger.info(f"Deleted backup {backup_id} of {tool}")
        return BackupOutcome(True)
