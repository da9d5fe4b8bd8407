#!/usr/bin/env python3
"""
Secret scanning for SyncAI.

Files about to be synchronized are scanned for strings that look like
credentials. Matching files are excluded from the sync unless forced.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Pattern, Tuple, Union

from ..utils.logger import get_logger

logger = get_logger(__name__)

SENSITIVE_PATTERNS: List[Tuple[str, Pattern]] = [
    ('api_key', re.compile(r'api[_-]?key\s*[=:]\s*["\']?[a-zA-Z0-9_-]{20,}', re.IGNORECASE)),
    ('secret_key', re.compile(r'secret[_-]?key\s*[=:]\s*["\']?[a-zA-Z0-9_-]{20,}', re.IGNORECASE)),
    ('password', re.compile(r'password\s*[=:]\s*["\']?[^\s"\']{8,}', re.IGNORECASE)),
    ('token', re.compile(r'token\s*[=:]\s*["\']?[a-zA-Z0-9_-]{20,}', re.IGNORECASE)),
    ('bearer_token', re.compile(r'bearer\s+[a-zA-Z0-9_-]{20,}', re.IGNORECASE)),
    ('private_key', re.compile(r'-----BEGIN\s+(?:RSA\s+)?PRIVATE\s+KEY-----')),
    ('certificate', re.compile(r'-----BEGIN\s+CERTIFICATE-----')),
    ('openai_key', re.compile(r'sk-[a-zA-Z0-9]{48}')),
    ('github_token', re.compile(r'ghp_[a-zA-Z0-9]{36}')),
    ('github_oauth', re.compile(r'gho_[a-zA-Z0-9]{36}')),
    ('slack_token', re.compile(r'xox[baprs]-[a-zA-Z0-9-]{10,}')),
]

# Applied to the matched text
SAFE_KEY_PATTERNS = [
    re.compile(r'"description"\s*:'),
    re.compile(r'"name"\s*:'),
    re.compile(r'"version"\s*:'),
]

# Applied to the line containing the match
COMMENT_LINE = re.compile(r'^\s*(#|//)')

MASK_PLACEHOLDER = '***'


def mask(value: str) -> str:
    """Hide most of a secret: ``ghp_a...xyz``."""
    if len(value) <= 10:
        return MASK_PLACEHOLDER
    return f"{value[:5]}...{value[-3:]}"


@dataclass(frozen=True)
class SecretMatch:
    """A masked match of one sensitive pattern."""
    type: str
    preview: str

    def to_dict(self) -> Dict[str, str]:
        return {'type': self.type, 'preview': self.preview}


@dataclass
class ScanResult:
    """Result of scanning one piece of content."""
    has_sensitive: bool = False
    matches: List[SecretMatch] = field(default_factory=list)

    def types(self) -> List[str]:
        """Distinct match types in first-seen order."""
        return list(dict.fromkeys(m.type for m in self.matches))


class SecretScanner:
    """Regex-based credential detector."""

    def __init__(self, patterns: Optional[List[Tuple[str, Pattern]]] = None):
        self.patterns = list(SENSITIVE_PATTERNS if patterns is None else patterns)

    def scan(self, content: str) -> ScanResult:
        """Scan text. Overlapping matches from different patterns are all reported."""
        matches: List[SecretMatch] = []
        if not content:
            return ScanResult()

        for match_type, pattern in self.patterns:
            for m in pattern.finditer(content):
                if self._is_safe(content, m):
                    continue
                matches.append(SecretMatch(match_type, mask(m.group(0))))

        return ScanResult(has_sensitive=bool(matches), matches=matches)

    def scan_file(self, file_path: Union[str, Path]) -> ScanResult:
        """Scan a file. Unreadable files are reported as clean."""
        try:
            with open(file_path, 'r', encoding='utf-8', errors='replace') as f:
                content = f.read()
        except OSError as e:
            logger.debug(f"Cannot scan {file_path}: {e}")
            return ScanResult()
        return self.scan(content)

    @staticmethod
    def _is_safe(content: str, match: 're.Match') -> bool:
        text = match.group(0)
        if any(safe.search(text) for safe in SAFE_KEY_PATTERNS):
            return True

        line_start = content.rfind('\n', 0, match.start()) + 1
        line_end = content.find('\n', match.start())
        line = content[line_start:] if line_end == -1 else content[line_start:line_end]
        return bool(COMMENT_LINE.match(line))


_default_scanner = SecretScanner()


def scan_content(content: str) -> ScanResult:
    return _default_scanner.scan(content)


def scan_file(file_path: Union[str, Path]) -> ScanResult:
    return _default_scanner.scan_file(file_path)


def sensitive_warning(matches: List[SecretMatch]) -> Optional[str]:
    """One-line summary of the distinct match types, or None when there are none."""
    if not matches:
        return None
    types = list(dict.fromkeys(m.type for m in matches))
    return f"Possible sensitive data detected: {', '.join(types)}"
