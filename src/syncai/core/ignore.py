#!/usr/bin/env python3
"""
Ignore rules for SyncAI.

Paths are matched with gitignore-style wildmatch semantics (via pathspec):
``**`` matches any number of directories, ``dir/`` matches everything under
``dir`` and a pattern without a slash matches at any depth. Negated patterns
are not supported and are dropped.
"""

from typing import Iterable, List

import pathspec

from ..utils.fs import to_posix
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_GLOBAL_IGNORE = [
    '**/*.token',
    '**/*secret*',
    '**/*credential*',
    '**/oauth_creds.json',
    '**/.env',
    '**/*.key',
    '**/*.pem',
]

DEFAULT_TOOL_IGNORE = {
    'kiro': ['kiro-auth-token.json'],
    'gemini': ['oauth_creds.json'],
}


def default_ignore_config() -> dict:
    """Ignore configuration written when none exists yet."""
    config = {'global': list(DEFAULT_GLOBAL_IGNORE)}
    for tool, patterns in DEFAULT_TOOL_IGNORE.items():
        config[tool] = list(patterns)
    return config


class IgnoreMatcher:
    """Compiled set of ignore patterns."""

    def __init__(self, patterns: Iterable[str] = ()):
        self.patterns: List[str] = []

        for raw in patterns:
            if not isinstance(raw, str):
                continue
            pattern = raw.strip()
            if not pattern or pattern.startswith('!'):
                if pattern:
                    logger.debug(f"Dropping unsupported negated ignore pattern: {pattern}")
                continue
            try:
                compiled = pathspec.GitIgnoreSpec.from_lines([pattern])
            except (ValueError, TypeError) as e:
                logger.debug(f"Dropping invalid ignore pattern '{pattern}': {e}")
                continue
            if all(p.include is None for p in compiled.patterns):
                # Comment or blank
                continue
            self.patterns.append(pattern)

        self._spec = pathspec.GitIgnoreSpec.from_lines(self.patterns)

    def matches(self, relative_path: str) -> bool:
        """True if ``relative_path`` matches any active pattern."""
        if not self.patterns or not relative_path:
            return False
        path = to_posix(relative_path)
        try:
            return self._spec.match_file(path)
        except (ValueError, TypeError) as e:
            logger.debug(f"Ignore match failed for {path}: {e}")
            return False

    __call__ = matches

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def __len__(self) -> int:
        return len(self.patterns)


def should_ignore(relative_path: str, patterns: Iterable[str]) -> bool:
    """Check a single path against a list of glob patterns."""
    return IgnoreMatcher(patterns).matches(relative_path)
