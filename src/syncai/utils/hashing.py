"""
Content fingerprints and identifiers.

Fingerprints are MD5 digests over raw file bytes. They are only used to tell
whether two copies of a user's own configuration file are identical, so a
128-bit non-adversarial digest is enough.
"""

import hashlib
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

CHUNK_SIZE = 4096


def fingerprint(file_path: Union[str, Path]) -> Optional[str]:
    """
    Calculate the MD5 fingerprint of a file.

    Returns None when the file does not exist or cannot be read. For readable
    files the result depends only on the byte content.
    """
    hash_md5 = hashlib.md5()
    try:
        with open(file_path, 'rb') as f:
            for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                hash_md5.update(chunk)
    except OSError:
        return None
    return hash_md5.hexdigest()


def hash_string(content: str) -> str:
    """MD5 of a UTF-8 string."""
    return hashlib.md5(content.encode('utf-8')).hexdigest()


def generate_timestamp_id(now: Optional[datetime] = None) -> str:
    """Sortable identifier for backups, e.g. ``20250101T093000-000123``."""
    now = now or datetime.now()
    return now.strftime('%Y%m%dT%H%M%S-%f')
