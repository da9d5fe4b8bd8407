"""
Utility modules for SyncAI.

This package contains logging, platform detection, filesystem, hashing and
subprocess helpers shared by the core modules.
"""

from .logger import get_logger, setup_logging
from .platform import platform_detector, get_os_type, default_home
from .hashing import fingerprint, hash_string, generate_timestamp_id
from .fs import FileEntry, list_files, expand_home, collapse_home

__all__ = [
    'get_logger',
    'setup_logging',
    'platform_detector',
    'get_os_type',
    'default_home',
    'fingerprint',
    'hash_string',
    'generate_timestamp_id',
    'FileEntry',
    'list_files',
    'expand_home',
    'collapse_home',
]
