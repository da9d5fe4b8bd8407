"""
Test package for SyncAI.

This package contains unit tests and integration tests for the tool registry,
ignore rules, secret scanning, the sync engine, backups, Git operations and
the command-line interface.
"""

import sys
from pathlib import Path

# Add src directory to path so tests can import syncai modules
test_dir = Path(__file__).parent
src_dir = test_dir.parent / 'src'
if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))

# Test constants
DEMO_TOOL = 'demo'

__all__ = [
    'DEMO_TOOL',
]
