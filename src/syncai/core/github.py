#!/usr/bin/env python3
"""
GitHub CLI wrapper for SyncAI.

Repository creation and authentication checks are delegated to the ``gh``
command line tool.
"""

from typing import Optional

from ..utils.exec import CommandResult, DEFAULT_TIMEOUT, command_exists, run_command
from ..utils.logger import get_logger

DEFAULT_REPO_NAME = 'syai'
REPO_DESCRIPTION = 'SyncAI configuration sync repository'


class GitHubCLI:
    """Thin wrapper over ``gh`` subcommands."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, executable: str = 'gh'):
        self.logger = get_logger(f"{__name__}.GitHubCLI")
        self.timeout = timeout
        self.executable = executable
        self._username: Optional[str] = None

    def _run(self, *args: str) -> CommandResult:
        result = run_command([self.executable, *args], timeout=self.timeout)
        if not result.success:
            self.logger.debug(f"gh {' '.join(args)} failed: {result.stderr}")
        return result

    def is_installed(self) -> bool:
        return command_exists(self.executable)

    def is_authenticated(self) -> bool:
        return self._run('auth', 'status').success

    def username(self) -> Optional[str]:
        """Login of the authenticated user, cached after the first lookup."""
        if self._username is None:
            result = self._run('api', 'user', '--jq', '.login')
            if result.success and result.stdout:
                self._username = result.stdout.strip()
        return self._username

    def repo_exists(self, repo_name: str = DEFAULT_REPO_NAME) -> bool:
        username = self.username()
        if not username:
            return False
        return self._run('repo', 'view', f"{username}/{repo_name}", '--json', 'name').success

    def create_private_repo(self, repo_name: str = DEFAULT_REPO_NAME) -> bool:
        result = self._run('repo', 'create', repo_name, '--private', '--description', REPO_DESCRIPTION)
        if result.success:
            self.logger.info(f"Created private repository {repo_name}")
        else:
            self.logger.error(f"Failed to create repository {repo_name}: {result.stderr}")
        return result.success

    def repo_url(self, repo_name: str = DEFAULT_REPO_NAME) -> Optional[str]:
        """HTTPS clone URL of the user's repository, or None when not logged in."""
        username = self.username()
        if not username:
            return None
        return f"https://github.com/{username}/{repo_name}.git"
