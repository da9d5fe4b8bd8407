#!/usr/bin/env python3
"""
Error codes returned by SyncAI operations.

Public operations of the sync engine, the backup manager and friends report
failures as one of these codes instead of raising.
"""

from enum import Enum


class ErrorCode(Enum):
    """Stable failure kinds."""
    TOOL_NOT_INSTALLED = "tool_not_installed"
    TOOL_NOT_CONFIGURED = "tool_not_configured"
    CONFIG_DIR_NOT_FOUND = "config_dir_not_found"
    REPO_NOT_FOUND = "repo_not_found"
    BACKUP_NOT_FOUND = "backup_not_found"
    BACKUP_FAILED = "backup_failed"
    UNEXPECTED_ERROR = "unexpected_error"

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_MESSAGES = {
    ErrorCode.TOOL_NOT_INSTALLED: "Tool is not installed (run 'syncai scan' first)",
    ErrorCode.TOOL_NOT_CONFIGURED: "Tool has no configuration directory mapping",
    ErrorCode.CONFIG_DIR_NOT_FOUND: "Configuration directory not found",
    ErrorCode.REPO_NOT_FOUND: "Tool not found in the sync repository (push it first or run 'syncai init')",
    ErrorCode.BACKUP_NOT_FOUND: "Backup not found",
    ErrorCode.BACKUP_FAILED: "Backup failed",
    ErrorCode.UNEXPECTED_ERROR: "Unexpected error",
}
