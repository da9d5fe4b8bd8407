"""
Core modules for SyncAI.

This package contains the tool registry, the configuration store, the sync
engine with its conflict detector and status reporter, backups, and the Git
and GitHub integrations.
"""

from .config import ConfigManager, ToolMapping
from .context import AppContext
from .errors import ErrorCode
from .tools import ToolDefinition, ToolRegistry, ToolDefinitionError, BUILTIN_TOOLS
from .ignore import IgnoreMatcher, should_ignore
from .security import SecretScanner, SecretMatch, ScanResult, sensitive_warning
from .backup import BackupManager, BackupRecord, BackupOutcome
from .sync import (
    SyncEngine,
    SyncDirection,
    SyncOptions,
    SyncOutcome,
    SyncState,
    ComparisonResult,
    ConflictRecord,
    ConflictResolution,
    FileChoice,
    SkipReason,
    StatusReport,
    resolve_conflicts,
)
from .scanner import ToolScanner, detect_current_tool
from .git_handler import GitHandler, GitError

__all__ = [
    'ConfigManager',
    'ToolMapping',
    'AppContext',
    'ErrorCode',
    'ToolDefinition',
    'ToolRegistry',
    'ToolDefinitionError',
    'BUILTIN_TOOLS',
    'IgnoreMatcher',
    'should_ignore',
    'SecretScanner',
    'SecretMatch',
    'ScanResult',
    'sensitive_warning',
    'BackupManager',
    'BackupRecord',
    'BackupOutcome',
    'SyncEngine',
    'SyncDirection',
    'SyncOptions',
    'SyncOutcome',
    'SyncState',
    'ComparisonResult',
    'ConflictRecord',
    'ConflictResolution',
    'FileChoice',
    'SkipReason',
    'StatusReport',
    'resolve_conflicts',
    'ToolScanner',
    'detect_current_tool',
    'GitHandler',
    'GitError',
]
