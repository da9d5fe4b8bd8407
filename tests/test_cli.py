#!/usr/bin/env python3
"""
Tests for the command-line interface.
"""

import json
import shutil

import pytest
from click.testing import CliRunner
from unittest.mock import patch

from syncai.cli import cli
from syncai.core.context import AppContext
from syncai.core.git_handler import GitHandler

from . import DEMO_TOOL

requires_git = pytest.mark.skipif(shutil.which('git') is None, reason="git is not installed")


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, home):
    """Run the CLI against the temporary home directory."""
    def _invoke(*args, **kwargs):
        return runner.invoke(cli, ['--home', str(home), *args], catch_exceptions=False, **kwargs)
    return _invoke


@pytest.fixture
def plugin_file(tmp_path, local_dir):
    """Definition of a custom tool detected by its config directory."""
    path = tmp_path / "demo.json"
    path.write_text(json.dumps({
        "name": DEMO_TOOL,
        "displayName": "Demo Tool",
        "configDirectory": str(local_dir),
        "detectMethods": ["config-exists"],
    }))
    return path


@pytest.fixture
def initialized(invoke, plugin_file):
    """Home with the demo plugin installed and a local-only sync repository."""
    assert invoke('plugin', 'add', str(plugin_file)).exit_code == 0
    with patch('syncai.core.scanner.command_path', return_value=None):
        result = invoke('init', '--local')
    assert result.exit_code == 0, result.output
    return result


class TestBasics:
    """Commands that need no repository."""

    def test_version(self, runner):
        result = runner.invoke(cli, ['--version'])
        assert result.exit_code == 0
        assert 'syncai' in result.output

    def test_help_lists_commands(self, runner):
        result = runner.invoke(cli, ['--help'])
        assert result.exit_code == 0
        for command in ('init', 'push', 'pull', 'status', 'backup', 'plugin', 'ignore', 'watch'):
            assert command in result.output

    def test_push_requires_init(self, invoke):
        result = invoke('push', '--only', DEMO_TOOL)
        assert result.exit_code == 1
        assert 'not initialized' in result.output

    def test_detect(self, invoke, monkeypatch):
        monkeypatch.setenv('CLAUDECODE', '1')
        result = invoke('detect')
        assert result.exit_code == 0
        assert 'claude' in result.output


class TestPluginCommands:
    """Custom tool management."""

    def test_add_show_remove(self, invoke, home, plugin_file):
        result = invoke('plugin', 'add', str(plugin_file))
        assert result.exit_code == 0
        assert (home / 'plugins' / f'{DEMO_TOOL}.json').exists()

        result = invoke('plugin', 'show', DEMO_TOOL)
        assert result.exit_code == 0
        assert '"display_name": "Demo Tool"' in result.output

        assert invoke('plugin', 'remove', DEMO_TOOL).exit_code == 0
        assert invoke('plugin', 'show', DEMO_TOOL).exit_code == 1

    def test_add_invalid(self, invoke, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"name": "Bad Name"}))
        result = invoke('plugin', 'add', str(bad))
        assert result.exit_code == 1

    def test_remove_builtin(self, invoke):
        assert invoke('plugin', 'remove', 'claude').exit_code == 1

    def test_list(self, invoke):
        result = invoke('plugin', 'list')
        assert result.exit_code == 0
        assert 'claude' in result.output


class TestConfigCommands:
    """Settings access."""

    def test_get_default(self, invoke):
        result = invoke('config', 'get', 'github.repo')
        assert result.exit_code == 0
        assert result.output.strip() == 'syai'

    def test_set_parses_json(self, invoke, home):
        assert invoke('config', 'set', 'backup.max_backups', '3').exit_code == 0
        assert AppContext.create(home).config.get_value('backup.max_backups') == 3

    def test_set_string(self, invoke, home):
        assert invoke('config', 'set', 'github.username', 'octocat').exit_code == 0
        assert AppContext.create(home).config.get_value('github.username') == 'octocat'

    def test_get_unknown(self, invoke):
        assert invoke('config', 'get', 'no.such.key').exit_code == 1

    def test_set_invalid_key(self, invoke):
        assert invoke('config', 'set', 'a..b', '1').exit_code == 1


class TestIgnoreCommands:
    """Ignore pattern management."""

    def test_add_list_remove(self, invoke, home):
        assert invoke('ignore', 'add', '*.bak', '--tool', DEMO_TOOL).exit_code == 0
        assert '*.bak' in AppContext.create(home).config.ignore_patterns_for(DEMO_TOOL)

        result = invoke('ignore', 'list', '--tool', DEMO_TOOL)
        assert '*.bak' in result.output

        assert invoke('ignore', 'remove', '*.bak', '--tool', DEMO_TOOL).exit_code == 0
        assert invoke('ignore', 'remove', '*.bak', '--tool', DEMO_TOOL).exit_code == 1

    def test_negated_pattern_rejected(self, invoke):
        assert invoke('ignore', 'add', '!keep.json').exit_code == 1


@requires_git
class TestSyncCommands:
    """End-to-end flows on a local-only sync repository."""

    def test_init(self, initialized, home):
        assert 'Initialization Complete' in initialized.output
        context = AppContext.create(home)
        assert context.config.get_value('initialized') is True
        assert DEMO_TOOL in context.config.installed_tools()
        assert (home / 'repo' / '.git').is_dir()

    def test_push_commits(self, initialized, invoke, home, local_dir):
        (local_dir / "settings.json").write_text('{"theme": "dark"}')

        result = invoke('push', '--only', DEMO_TOOL)

        assert result.exit_code == 0, result.output
        assert (home / 'repo' / DEMO_TOOL / 'settings.json').exists()
        assert 'Committed' in result.output

        history = invoke('history')
        assert history.exit_code == 0
        assert 'Update' in history.output

    def test_push_dry_run(self, initialized, invoke, home, local_dir):
        (local_dir / "settings.json").write_text('{}')

        result = invoke('push', '--only', DEMO_TOOL, '--dry-run')

        assert result.exit_code == 0
        assert 'Dry Run' in result.output
        assert not (home / 'repo' / DEMO_TOOL / 'settings.json').exists()

    def test_push_skips_secrets(self, initialized, invoke, home, local_dir):
        (local_dir / "env.conf").write_text("password=supersecret1\n")

        result = invoke('push', '--only', DEMO_TOOL)

        assert result.exit_code == 0
        assert 'env.conf' in result.output
        assert not (home / 'repo' / DEMO_TOOL / 'env.conf').exists()

    def test_push_unknown_tool_fails(self, initialized, invoke):
        assert invoke('push', '--only', 'nonexistent-tool').exit_code == 1

    def test_status(self, initialized, invoke, local_dir):
        (local_dir / "settings.json").write_text('{}')
        invoke('push', '--only', DEMO_TOOL)

        assert 'In sync' in invoke('status', '--only', DEMO_TOOL).output

        (local_dir / "settings.json").write_text('{"changed": true}')
        result = invoke('status', '--only', DEMO_TOOL)
        assert 'Modified' in result.output
        assert 'settings.json' in result.output

    def test_pull_overwrites_and_backs_up(self, initialized, invoke, home, local_dir):
        (local_dir / "settings.json").write_text('{"v": 1}')
        invoke('push', '--only', DEMO_TOOL)
        (local_dir / "settings.json").write_text('{"v": 2}')

        result = invoke('pull', '--only', DEMO_TOOL, '--no-interactive')

        assert result.exit_code == 0, result.output
        assert (local_dir / "settings.json").read_text() == '{"v": 1}'
        assert 'Backup' in result.output
        assert (home / 'backups' / DEMO_TOOL).is_dir()

    def test_pull_keep_local_prompt(self, initialized, invoke, local_dir):
        (local_dir / "settings.json").write_text('{"v": 1}')
        invoke('push', '--only', DEMO_TOOL)
        (local_dir / "settings.json").write_text('{"v": 2}')

        result = invoke('pull', '--only', DEMO_TOOL, input='keep_local\n')

        assert result.exit_code == 0, result.output
        assert (local_dir / "settings.json").read_text() == '{"v": 2}'

    def test_rollback(self, initialized, invoke, home, local_dir):
        mirror_file = home / 'repo' / DEMO_TOOL / 'settings.json'
        (local_dir / "settings.json").write_text('v1')
        invoke('push', '--only', DEMO_TOOL, '-m', 'first')
        (local_dir / "settings.json").write_text('v2')
        invoke('push', '--only', DEMO_TOOL, '-m', 'second')
        assert mirror_file.read_text() == 'v2'

        context = AppContext.create(home)
        first = GitHandler(context.config.repo_dir).get_commits()[1]['hash']

        result = invoke('rollback', first, '--yes')

        assert result.exit_code == 0, result.output
        assert mirror_file.read_text() == 'v1'

    def test_rollback_unknown_commit(self, initialized, invoke):
        assert invoke('rollback', 'deadbeef', '--yes').exit_code == 1

    def test_backup_commands(self, initialized, invoke, home, local_dir):
        (local_dir / "settings.json").write_text('original')

        result = invoke('backup', 'create', DEMO_TOOL)
        assert result.exit_code == 0
        backup_id = result.output.split()[-1]

        assert backup_id in invoke('backup', 'list', DEMO_TOOL).output

        (local_dir / "settings.json").write_text('changed')
        result = invoke('backup', 'restore', DEMO_TOOL, backup_id, '--yes')
        assert result.exit_code == 0, result.output
        assert (local_dir / "settings.json").read_text() == 'original'

        assert invoke('backup', 'delete', DEMO_TOOL, backup_id).exit_code == 0
        assert invoke('backup', 'restore', DEMO_TOOL, backup_id, '--yes').exit_code == 1

    def test_diff(self, initialized, invoke, local_dir):
        (local_dir / "settings.json").write_text('line one\n')
        invoke('push', '--only', DEMO_TOOL)
        (local_dir / "settings.json").write_text('line two\n')

        result = invoke('diff', DEMO_TOOL)
        assert result.exit_code == 0
        assert 'line two' in result.output
