#!/usr/bin/env python3
"""
Synchronization engine for SyncAI.

This module copies the sync-relevant files of an AI tool's configuration
directory between the local machine and the tool's mirror directory in the
sync repository. Files are compared by content fingerprint, filtered by
ignore rules and scanned for secrets before they are copied.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, Iterator, List, Optional, Tuple

from .backup import BackupManager, BackupRecord
from .context import AppContext
from .errors import ErrorCode
from .ignore import IgnoreMatcher
from .security import SecretScanner, SecretMatch
from .tools import ToolDefinition, is_safe_sync_path
from ..utils.fs import copy_file, expand_home, list_files, read_text_or_empty, to_posix
from ..utils.hashing import fingerprint
from ..utils.logger import get_logger

WHOLE_DIRECTORY = '.'

logger = get_logger(__name__)


class SyncDirection(Enum):
    """Direction of a sync run."""
    TO_REMOTE = "to_remote"
    FROM_REMOTE = "from_remote"


class SkipReason(Enum):
    """Why a file was left out of a sync run."""
    IGNORED = "ignored"
    NOT_FOUND = "not_found"
    UNREADABLE = "unreadable"
    KEPT_LOCAL = "kept_local"


class SyncState(Enum):
    """Overall state of a tool in the status report."""
    SYNCED = "synced"
    OUT_OF_SYNC = "out_of_sync"
    NO_LOCAL = "no_local"
    NO_REMOTE = "no_remote"


class DifferenceKind(Enum):
    """Per-file difference in the status report."""
    LOCAL_ONLY = "local_only"
    REMOTE_ONLY = "remote_only"
    MODIFIED = "modified"


class ConflictResolution(Enum):
    """Strategies offered when a pull would overwrite local changes."""
    USE_REMOTE = "use_remote"
    KEEP_LOCAL = "keep_local"
    PER_FILE = "per_file"
    ABORT = "abort"


class FileChoice(Enum):
    """Per-file decision for the PER_FILE strategy."""
    REMOTE = "remote"
    LOCAL = "local"


@dataclass(frozen=True)
class SkippedFile:
    path: str
    reason: SkipReason


@dataclass(frozen=True)
class SensitiveFile:
    path: str
    matches: Tuple[SecretMatch, ...]


@dataclass
class ComparisonResult:
    """Classification of every in-scope file of one sync run."""

    added: List[str] = field(default_factory=list)
    modified: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    skipped: List[SkippedFile] = field(default_factory=list)
    sensitive: List[SensitiveFile] = field(default_factory=list)

    @property
    def changed(self) -> List[str]:
        return self.added + self.modified

    def skipped_paths(self, reason: Optional[SkipReason] = None) -> List[str]:
        return [s.path for s in self.skipped if reason is None or s.reason == reason]

    def sensitive_paths(self) -> List[str]:
        return [s.path for s in self.sensitive]

    def to_dict(self) -> Dict[str, list]:
        return {
            'added': list(self.added),
            'modified': list(self.modified),
            'unchanged': list(self.unchanged),
            'skipped': [{'path': s.path, 'reason': s.reason.value} for s in self.skipped],
            'sensitive': [
                {'path': s.path, 'matches': [m.to_dict() for m in s.matches]}
                for s in self.sensitive
            ],
        }


@dataclass(frozen=True)
class SyncOptions:
    """Flags for a sync run."""
    dry_run: bool = False
    force: bool = False
    backup_before_pull: bool = True
    exclude_paths: FrozenSet[str] = frozenset()


@dataclass
class SyncOutcome:
    """Result of a sync run: a comparison on success, an error code otherwise."""

    success: bool
    tool: str
    direction: SyncDirection
    dry_run: bool = False
    comparison: Optional[ComparisonResult] = None
    error: Optional[ErrorCode] = None
    warnings: List[str] = field(default_factory=list)
    backup: Optional[BackupRecord] = None

    @classmethod
    def failure(cls, tool: str, direction: SyncDirection, error: ErrorCode,
                dry_run: bool = False) -> 'SyncOutcome':
        return cls(success=False, tool=tool, direction=direction, dry_run=dry_run, error=error)


@dataclass
class ConflictRecord:
    """A file present on both sides with different content."""

    path: str
    local_fingerprint: Optional[str]
    remote_fingerprint: Optional[str]
    local_content: str = ""
    remote_content: str = ""


@dataclass(frozen=True)
class FileDifference:
    path: str
    kind: DifferenceKind


@dataclass
class StatusReport:
    tool: str
    state: SyncState
    differences: List[FileDifference] = field(default_factory=list)

    def paths(self, kind: DifferenceKind) -> List[str]:
        return [d.path for d in self.differences if d.kind == kind]


def resolve_conflicts(
    conflicts: List[ConflictRecord],
    strategy: ConflictResolution,
    choices: Optional[Dict[str, FileChoice]] = None,
) -> Optional[FrozenSet[str]]:
    """
    Turn a conflict strategy into the paths a pull must leave alone.

    Returns None when the pull should be aborted. With PER_FILE, conflicts
    without an explicit choice keep the local copy.
    """
    if strategy == ConflictResolution.ABORT:
        return None
    if strategy == ConflictResolution.USE_REMOTE:
        return frozenset()
    if strategy == ConflictResolution.KEEP_LOCAL:
        return frozenset(c.path for c in conflicts)

    choices = choices or {}
    return frozenset(
        c.path for c in conflicts
        if choices.get(c.path, FileChoice.LOCAL) == FileChoice.LOCAL
    )


class SyncEngine:
    """Compares and copies tool configuration between local and mirror directories."""

    def __init__(self, context: AppContext, scanner: Optional[SecretScanner] = None):
        """
        Initialize sync engine.

        Args:
            context: Application context (configuration store and tool registry)
            scanner: Secret scanner, defaults to the built-in patterns
        """
        self.logger = get_logger(f"{__name__}.SyncEngine")
        self.context = context
        self.config = context.config
        self.registry = context.registry
        self.scanner = scanner or SecretScanner()
        self.backups = BackupManager(context)

    # --- resolution helpers ---

    def local_dir(self, tool: str) -> Optional[Path]:
        """Effective local config directory, falling back to the definition's default."""
        local = self.config.effective_config_dir(tool)
        if local is None:
            definition = self.registry.get(tool)
            if definition is not None:
                local = expand_home(definition.config_directory)
        return local

    def mirror_dir(self, tool: str) -> Path:
        return self.config.mirror_dir(tool)

    def sync_paths(self, tool: str) -> List[str]:
        """Mapping sync paths override the definition's; empty means the whole directory."""
        mapping = self.config.get_mapping(tool)
        if mapping is not None and mapping.sync_paths:
            paths = list(mapping.sync_paths)
        else:
            definition = self.registry.get(tool)
            paths = list(definition.sync_paths) if definition else []
        return paths or [WHOLE_DIRECTORY]

    def ignore_matcher(self, tool: str) -> IgnoreMatcher:
        patterns = self.config.ignore_patterns_for(tool)
        definition: Optional[ToolDefinition] = self.registry.get(tool)
        if definition is not None:
            patterns.extend(definition.ignore_patterns)
        return IgnoreMatcher(patterns)

    @staticmethod
    def _iter_scope(root: Path, sync_paths: List[str]) -> Iterator[str]:
        """
        Relative paths in scope under ``root``, each yielded once.

        Directory sync paths expand to the files below them; any other sync
        path is yielded as-is even when it does not exist.
        """
        seen = set()
        for sync_path in sync_paths:
            if not is_safe_sync_path(sync_path):
                logger.warning(f"Skipping sync path outside the tool directory: {sync_path}")
                continue
            normalized = to_posix(sync_path.strip().rstrip('/\\') or WHOLE_DIRECTORY)
            target = root if normalized == WHOLE_DIRECTORY else root / normalized

            if target.is_dir():
                prefix = '' if normalized == WHOLE_DIRECTORY else f"{normalized}/"
                candidates = [f"{prefix}{entry.relative_path}" for entry in list_files(target)]
            else:
                candidates = [normalized]

            for rel_path in candidates:
                if rel_path not in seen:
                    seen.add(rel_path)
                    yield rel_path

    def _scope_files(self, root: Path, sync_paths: List[str], matcher: IgnoreMatcher) -> List[str]:
        """Existing, non-ignored files in scope under ``root``."""
        return [
            rel_path for rel_path in self._iter_scope(root, sync_paths)
            if not matcher.matches(rel_path) and (root / rel_path).is_file()
        ]

    # --- sync ---

    def sync(self, tool: str, direction: SyncDirection,
             options: Optional[SyncOptions] = None) -> SyncOutcome:
        """
        Synchronize one tool in one direction.

        Never raises: precondition failures and unexpected errors are
        reported through ``SyncOutcome.error``.
        """
        options = options or SyncOptions()
        try:
            return self._sync(tool, direction, options)
        except Exception as e:
            self.logger.exception(f"Unexpected error while syncing {tool}: {e}")
            return SyncOutcome.failure(tool, direction, ErrorCode.UNEXPECTED_ERROR, options.dry_run)

    def sync_to_remote(self, tool: str, options: Optional[SyncOptions] = None) -> SyncOutcome:
        return self.sync(tool, SyncDirection.TO_REMOTE, options)

    def sync_from_remote(self, tool: str, options: Optional[SyncOptions] = None) -> SyncOutcome:
        return self.sync(tool, SyncDirection.FROM_REMOTE, options)

    def _sync(self, tool: str, direction: SyncDirection, options: SyncOptions) -> SyncOutcome:
        mapping = self.config.get_mapping(tool)
        if mapping is None or not mapping.installed:
            return SyncOutcome.failure(tool, direction, ErrorCode.TOOL_NOT_INSTALLED, options.dry_run)

        local_root = self.local_dir(tool)
        mirror_root = self.mirror_dir(tool)

        if direction == SyncDirection.TO_REMOTE:
            if local_root is None or not local_root.is_dir():
                return SyncOutcome.failure(tool, direction, ErrorCode.CONFIG_DIR_NOT_FOUND, options.dry_run)
            source_root, dest_root = local_root, mirror_root
        else:
            if not mirror_root.is_dir():
                return SyncOutcome.failure(tool, direction, ErrorCode.REPO_NOT_FOUND, options.dry_run)
            if local_root is None:
                return SyncOutcome.failure(tool, direction, ErrorCode.TOOL_NOT_CONFIGURED, options.dry_run)
            source_root, dest_root = mirror_root, local_root

        outcome = SyncOutcome(success=True, tool=tool, direction=direction, dry_run=options.dry_run)

        if (direction == SyncDirection.FROM_REMOTE and options.backup_before_pull
                and not options.dry_run and local_root.is_dir()):
            backup = self.backups.create(tool, 'pre-pull')
            if backup.success:
                outcome.backup = backup.record
            else:
                message = f"Backup before pull failed for {tool}: {backup.error.value}"
                self.logger.warning(message)
                outcome.warnings.append(message)

        if options.force:
            self.logger.warning(f"Secret scan disabled for {tool} (--force)")

        outcome.comparison = self._compare_and_copy(
            source_root,
            dest_root,
            self.sync_paths(tool),
            self.ignore_matcher(tool),
            options,
        )

        comparison = outcome.comparison
        self.logger.debug(
            f"{tool} {direction.value}: {len(comparison.added)} added, "
            f"{len(comparison.modified)} modified, {len(comparison.unchanged)} unchanged, "
            f"{len(comparison.skipped)} skipped, {len(comparison.sensitive)} sensitive"
        )
        return outcome

    def _compare_and_copy(self, source_root: Path, dest_root: Path, sync_paths: List[str],
                          matcher: IgnoreMatcher, options: SyncOptions) -> ComparisonResult:
        result = ComparisonResult()

        for rel_path in self._iter_scope(source_root, sync_paths):
            if matcher.matches(rel_path):
                result.skipped.append(SkippedFile(rel_path, SkipReason.IGNORED))
                continue

            source = source_root / rel_path
            if not source.is_file():
                result.skipped.append(SkippedFile(rel_path, SkipReason.NOT_FOUND))
                continue

            if rel_path in options.exclude_paths:
                result.skipped.append(SkippedFile(rel_path, SkipReason.KEPT_LOCAL))
                continue

            if not options.force:
                scan = self.scanner.scan_file(source)
                if scan.has_sensitive:
                    result.sensitive.append(SensitiveFile(rel_path, tuple(scan.matches)))
                    continue

            source_fingerprint = fingerprint(source)
            if source_fingerprint is None:
                result.skipped.append(SkippedFile(rel_path, SkipReason.UNREADABLE))
                continue

            destination = dest_root / rel_path
            if destination.exists():
                if fingerprint(destination) == source_fingerprint:
                    result.unchanged.append(rel_path)
                    continue
                bucket = result.modified
            else:
                bucket = result.added

            if not options.dry_run:
                try:
                    copy_file(source, destination)
                except OSError as e:
                    self.logger.warning(f"Failed to copy {rel_path}: {e}")
                    result.skipped.append(SkippedFile(rel_path, SkipReason.UNREADABLE))
                    continue

            bucket.append(rel_path)

        return result

    # --- conflicts ---

    def detect_conflicts(self, tool: str) -> List[ConflictRecord]:
        """
        Files that a pull would overwrite with different content.

        Advisory only: returns an empty list when the tool is unknown or
        either side is missing, and never raises.
        """
        try:
            if tool not in self.registry and self.config.get_mapping(tool) is None:
                return []

            local_root = self.local_dir(tool)
            mirror_root = self.mirror_dir(tool)
            if local_root is None or not local_root.is_dir() or not mirror_root.is_dir():
                return []

            conflicts = []
            matcher = self.ignore_matcher(tool)
            for rel_path in self._scope_files(mirror_root, self.sync_paths(tool), matcher):
                local_file = local_root / rel_path
                if not local_file.is_file():
                    continue

                local_fp = fingerprint(local_file)
                remote_fp = fingerprint(mirror_root / rel_path)
                if local_fp == remote_fp:
                    continue

                conflicts.append(ConflictRecord(
                    path=rel_path,
                    local_fingerprint=local_fp,
                    remote_fingerprint=remote_fp,
                    local_content=read_text_or_empty(local_file),
                    remote_content=read_text_or_empty(mirror_root / rel_path),
                ))
            return conflicts

        except Exception as e:
            self.logger.warning(f"Conflict detection failed for {tool}: {e}")
            return []

    # --- status ---

    def get_status(self, tool: str) -> StatusReport:
        """Compare the in-scope files of both sides without touching them."""
        local_root = self.local_dir(tool)
        mirror_root = self.mirror_dir(tool)

        if local_root is None or not local_root.is_dir():
            return StatusReport(tool, SyncState.NO_LOCAL)
        if not mirror_root.is_dir():
            return StatusReport(tool, SyncState.NO_REMOTE)

        sync_paths = self.sync_paths(tool)
        matcher = self.ignore_matcher(tool)
        local_files = set(self._scope_files(local_root, sync_paths, matcher))
        remote_files = set(self._scope_files(mirror_root, sync_paths, matcher))

        differences = []
        for rel_path in sorted(local_files | remote_files):
            if rel_path not in remote_files:
                differences.append(FileDifference(rel_path, DifferenceKind.LOCAL_ONLY))
            elif rel_path not in local_files:
                differences.append(FileDifference(rel_path, DifferenceKind.REMOTE_ONLY))
            elif fingerprint(local_root / rel_path) != fingerprint(mirror_root / rel_path):
                differences.append(FileDifference(rel_path, DifferenceKind.MODIFIED))

        state = SyncState.OUT_OF_SYNC if differences else SyncState.SYNCED
        return StatusReport(tool, state, differences)
