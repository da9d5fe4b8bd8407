"""
SyncAI - Sync AI coding tool configurations across machines

This package keeps the configuration directories of AI coding assistants
(Claude Code, Cursor, Gemini CLI, Kiro and others) in sync through a private
Git repository.
"""

__version__ = "1.0.0"
__author__ = "SyncAI Team"
__description__ = "Sync AI coding tool configurations across machines"

from .core.context import AppContext
from .core.sync import SyncEngine, SyncDirection, SyncOptions
from .core.tools import ToolDefinition, ToolRegistry
from .utils.logger import get_logger

# Version info
VERSION = __version__
VERSION_INFO = tuple(map(int, __version__.split('.')))

__all__ = [
    'AppContext',
    'SyncEngine',
    'SyncDirection',
    'SyncOptions',
    'ToolDefinition',
    'ToolRegistry',
    'get_logger',
    'VERSION',
    'VERSION_INFO',
]
