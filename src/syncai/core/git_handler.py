#!/usr/bin/env python3
"""
Git repository handler for SyncAI.

The sync repository holds one mirror directory per tool. This module wraps
the GitPython operations SyncAI needs on it: initialization, commits,
push/pull against the remote, history and rollback.
"""

import shutil
from pathlib import Path
from typing import Dict, List, Optional, Union

from git import Repo, InvalidGitRepositoryError, NoSuchPathError, GitCommandError
from git.exc import BadName

from ..utils.logger import get_logger

README_CONTENT = """# SyncAI configurations

This repository is managed by SyncAI. Each directory holds the synchronized
configuration of one AI coding tool.

Use `syncai pull --all` on another machine to apply these configurations.
"""

GITIGNORE_CONTENT = """# SyncAI gitignore
*.log
.DS_Store
Thumbs.db
node_modules/
**/*.token
**/.env
**/*.key
**/*.pem
"""


class GitError(Exception):
    """Custom exception for Git-related errors."""
    pass


class GitHandler:
    """Handles Git operations on the SyncAI sync repository."""

    def __init__(self, repo_path: Union[str, Path], branch: str = 'main'):
        """
        Initialize Git handler.

        Args:
            repo_path: Path to the sync repository
            branch: Branch used for push and pull
        """
        self.logger = get_logger(f"{__name__}.GitHandler")
        self.repo_path = Path(repo_path)
        self.branch = branch
        self.repo: Optional[Repo] = None

        try:
            self.repo = Repo(self.repo_path)
        except (InvalidGitRepositoryError, NoSuchPathError):
            self.repo = None

    def _require_repo(self) -> Repo:
        if self.repo is None:
            raise GitError(f"Not a git repository: {self.repo_path}")
        return self.repo

    def ensure_initialized(self, remote_url: Optional[str] = None) -> bool:
        """
        Make sure the repository exists, creating it with an initial commit.

        Args:
            remote_url: URL set as ``origin`` when given

        Returns:
            True if the repository is usable
        """
        try:
            if self.repo is None:
                self.repo_path.mkdir(parents=True, exist_ok=True)
                self.repo = Repo.init(self.repo_path)
                self.repo.git.symbolic_ref('HEAD', f'refs/heads/{self.branch}')
                self.logger.info(f"Initialized new Git repository at {self.repo_path}")
                self._create_initial_structure()

            if remote_url and remote_url not in self._remote_urls('origin'):
                self.add_remote('origin', remote_url)
            return True

        except (GitCommandError, OSError, GitError) as e:
            self.logger.error(f"Failed to initialize repository: {e}")
            return False

    def _create_initial_structure(self):
        readme_path = self.repo_path / 'README.md'
        if not readme_path.exists():
            readme_path.write_text(README_CONTENT, encoding='utf-8')

        gitignore_path = self.repo_path / '.gitignore'
        if not gitignore_path.exists():
            gitignore_path.write_text(GITIGNORE_CONTENT, encoding='utf-8')

        self._commit("Initial SyncAI repository")

    def _remote_urls(self, name: str) -> List[str]:
        repo = self._require_repo()
        for remote in repo.remotes:
            if remote.name == name:
                return list(remote.urls)
        return []

    @property
    def is_valid_repo(self) -> bool:
        """Check if the repository is valid."""
        return self.repo is not None and not self.repo.bare

    @property
    def is_dirty(self) -> bool:
        """Check if the repository has uncommitted changes, including untracked files."""
        if self.repo is None:
            return False
        try:
            return self.repo.is_dirty(untracked_files=True)
        except GitCommandError:
            return False

    @property
    def current_branch(self) -> str:
        """Get the current branch name."""
        try:
            return self._require_repo().active_branch.name
        except (GitError, TypeError):
            # Detached HEAD
            return self.branch

    @property
    def remotes(self) -> List[str]:
        """Get list of remote names."""
        if self.repo is None:
            return []
        return [remote.name for remote in self.repo.remotes]

    def add_remote(self, name: str, url: str) -> bool:
        """Add a remote repository, replacing one with the same name."""
        try:
            repo = self._require_repo()
            if name in self.remotes:
                repo.delete_remote(name)
            repo.create_remote(name, url)
            self.logger.info(f"Added remote '{name}': {url}")
            return True
        except (GitCommandError, GitError) as e:
            self.logger.error(f"Failed to add remote '{name}': {e}")
            return False

    def _has_staged_changes(self) -> bool:
        repo = self._require_repo()
        if not repo.head.is_valid():
            return len(repo.index.entries) > 0
        return len(repo.index.diff('HEAD')) > 0

    def _commit(self, message: str) -> Optional[str]:
        """Stage everything and commit. Returns the new commit hash, or None if nothing changed."""
        repo = self._require_repo()
        try:
            repo.git.add(A=True)
            if not self._has_staged_changes():
                return None
            commit = repo.index.commit(message)
        except GitCommandError as e:
            raise GitError(f"Commit failed: {e}") from e
        return commit.hexsha

    def commit_all(self, message: str) -> Optional[bool]:
        """
        Stage and commit all changes.

        Returns:
            True on commit, None when there was nothing to commit, False on failure
        """
        try:
            sha = self._commit(message)
        except GitError as e:
            self.logger.error(f"Failed to create commit: {e}")
            return False

        if sha is None:
            self.logger.debug("Nothing to commit")
            return None
        self.logger.info(f"Created commit {sha[:8]}: {message}")
        return True

    def push(self, remote: str = 'origin', branch: Optional[str] = None, force: bool = False) -> bool:
        """Push changes to remote repository."""
        branch = branch or self.current_branch
        try:
            args = ['--set-upstream', remote, branch]
            if force:
                args.insert(0, '--force')
            self._require_repo().git.push(*args)
            self.logger.info(f"Pushed to {remote}/{branch}")
            return True
        except (GitCommandError, GitError) as e:
            self.logger.error(f"Failed to push to {remote}: {e}")
            return False

    def pull(self, remote: str = 'origin', branch: Optional[str] = None) -> bool:
        """Pull changes from remote repository."""
        branch = branch or self.current_branch
        try:
            self._require_repo().git.pull('--no-rebase', remote, branch)
            self.logger.info(f"Pulled from {remote}/{branch}")
            return True
        except (GitCommandError, GitError) as e:
            self.logger.error(f"Failed to pull from {remote}: {e}")
            return False

    @classmethod
    def clone(cls, url: str, target_path: Union[str, Path], branch: str = 'main') -> 'GitHandler':
        """Clone ``url`` into ``target_path``, replacing whatever is there."""
        target_path = Path(target_path)
        if target_path.exists():
            shutil.rmtree(target_path)
        try:
            Repo.clone_from(url, target_path)
        except GitCommandError as e:
            raise GitError(f"Failed to clone {url}: {e}") from e
        return cls(target_path, branch=branch)

    def get_commits(self, max_count: int = 10, path: Optional[str] = None) -> List[Dict[str, str]]:
        """Get recent commits, optionally only those touching ``path``."""
        commits = []
        if self.repo is None or not self.repo.head.is_valid():
            return commits

        try:
            kwargs = {'max_count': max_count}
            if path:
                kwargs['paths'] = path
            for commit in self.repo.iter_commits(**kwargs):
                commits.append({
                    'hash': commit.hexsha[:8],
                    'full_hash': commit.hexsha,
                    'message': commit.message.strip().splitlines()[0] if commit.message.strip() else '',
                    'author': str(commit.author),
                    'date': commit.committed_datetime.isoformat(),
                })
        except (GitCommandError, ValueError) as e:
            self.logger.error(f"Failed to get commits: {e}")

        return commits

    def find_commit(self, prefix: str) -> Optional[str]:
        """Resolve an abbreviated hash to the full commit hash."""
        if self.repo is None or not prefix:
            return None
        try:
            return self.repo.commit(prefix).hexsha
        except (BadName, ValueError, GitCommandError):
            return None

    def checkout_path(self, commit: str, path: str = '.') -> bool:
        """
        Restore ``path`` to its content at ``commit`` on the current branch.

        Files added under ``path`` after that commit are removed, so the tree
        matches the commit exactly. The change is left uncommitted.
        """
        try:
            repo = self._require_repo()
            added = repo.git.diff('--name-only', '--diff-filter=A', commit, 'HEAD', '--', path)
            repo.git.checkout(commit, '--', path)
            for rel_path in filter(None, added.splitlines()):
                repo.git.rm('-q', '--cached', '--ignore-unmatch', '--', rel_path)
                (self.repo_path / rel_path).unlink(missing_ok=True)

            self.logger.warning(f"Restored '{path}' to {commit[:8]}")
            return True
        except (GitCommandError, GitError, OSError) as e:
            self.logger.error(f"Failed to restore '{path}' to {commit}: {e}")
            return False
