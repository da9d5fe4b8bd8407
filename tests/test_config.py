#!/usr/bin/env python3
"""
Tests for configuration manager functionality.
"""

import json
import pytest
from pathlib import Path

from syncai.core.config import ConfigManager, ToolMapping, DEFAULT_CONFIG
from syncai.core.context import AppContext
from syncai.core.ignore import DEFAULT_GLOBAL_IGNORE


@pytest.fixture
def config_manager(home):
    """Create a ConfigManager instance for testing."""
    return ConfigManager(home)


class TestConfigFile:
    """Global settings in config.json."""

    def test_defaults_on_first_load(self, config_manager):
        """First load returns defaults with a device id without touching the disk."""
        config = config_manager.load_config()

        assert not config_manager.config_file.exists()
        assert config['initialized'] is False
        assert config['github']['repo'] == DEFAULT_CONFIG['github']['repo']
        assert config['device']['id']
        assert config['backup']['max_backups'] == 10

    def test_device_id_is_stable(self, home):
        manager = ConfigManager(home)
        first = manager.load_config()['device']['id']
        assert manager.load_config()['device']['id'] == first
        manager.save_config()

        second = ConfigManager(home).load_config()['device']['id']
        assert first == second

    def test_partial_file_is_merged_with_defaults(self, config_manager):
        config_manager.home.mkdir(parents=True)
        config_manager.config_file.write_text(json.dumps({'github': {'username': 'octo'}}))

        config = config_manager.load_config()

        assert config['github']['username'] == 'octo'
        assert config['github']['branch'] == 'main'

    def test_invalid_file_falls_back_to_defaults(self, config_manager):
        config_manager.home.mkdir(parents=True)
        config_manager.config_file.write_text("[1, 2, 3]")

        assert config_manager.load_config()['initialized'] is False

    def test_get_and_set_value(self, home, config_manager):
        assert config_manager.set_value('github.username', 'octo') is True
        assert config_manager.get_value('github.username') == 'octo'
        assert config_manager.get_value('missing.key', 'fallback') == 'fallback'

        reloaded = ConfigManager(home)
        assert reloaded.get_value('github.username') == 'octo'

    def test_set_value_creates_sections(self, config_manager):
        config_manager.set_value('custom.nested.flag', True)
        assert config_manager.get_value('custom.nested.flag') is True

    def test_set_value_rejects_empty_parts(self, config_manager):
        with pytest.raises(ValueError):
            config_manager.set_value('github..repo', 'x')

    def test_update_config(self, config_manager):
        config = config_manager.update_config({'backup': {'max_backups': 3}, 'initialized': True})
        assert config['backup']['max_backups'] == 3
        assert config['initialized'] is True
        assert config['github']['repo'] == 'syai'

    def test_invalidate(self, config_manager):
        config_manager.load_config()
        config_manager.save_config()
        data = json.loads(config_manager.config_file.read_text())
        data['initialized'] = True
        config_manager.config_file.write_text(json.dumps(data))

        assert config_manager.get_value('initialized') is False
        config_manager.invalidate()
        assert config_manager.get_value('initialized') is True


class TestMappings:
    """Per-machine tool mappings."""

    def test_update_mapping_persists(self, home, config_manager):
        config_manager.update_mapping('claude', installed=True, config_directory='~/.claude')

        reloaded = ConfigManager(home)
        mapping = reloaded.get_mapping('claude')
        assert mapping.installed is True
        assert mapping.config_directory == '~/.claude'
        assert reloaded.installed_tools() == ['claude']

    def test_update_mapping_unknown_field(self, config_manager):
        with pytest.raises(AttributeError):
            config_manager.update_mapping('claude', color='blue')

    def test_custom_directory_wins(self, config_manager, tmp_path):
        config_manager.update_mapping(
            'claude',
            config_directory='~/.claude',
            custom_config_directory=str(tmp_path / 'custom'),
        )
        assert config_manager.effective_config_dir('claude') == tmp_path / 'custom'

    def test_effective_config_dir_expands_home(self, config_manager):
        config_manager.update_mapping('claude', config_directory='~/.claude')
        assert config_manager.effective_config_dir('claude') == Path.home() / '.claude'

    def test_effective_config_dir_unknown(self, config_manager):
        assert config_manager.effective_config_dir('nothing') is None

    def test_mapping_from_dict_ignores_unknown_keys(self):
        mapping = ToolMapping.from_dict({'installed': True, 'sync_paths': None, 'legacy': 1})
        assert mapping.installed is True
        assert mapping.sync_paths == []

    def test_mirror_dir(self, config_manager):
        assert config_manager.mirror_dir('claude') == config_manager.repo_dir / 'claude'


class TestIgnoreConfig:
    """Ignore rules in ignore.json."""

    def test_defaults_written_on_save(self, home, config_manager):
        ignore = config_manager.load_ignore()
        assert ignore['global'] == DEFAULT_GLOBAL_IGNORE
        assert not config_manager.ignore_file.exists()

        assert config_manager.save_ignore() is True
        assert ConfigManager(home).load_ignore() == ignore

    def test_patterns_for_tool(self, config_manager):
        patterns = config_manager.ignore_patterns_for('kiro')
        assert patterns[:len(DEFAULT_GLOBAL_IGNORE)] == DEFAULT_GLOBAL_IGNORE
        assert 'kiro-auth-token.json' in patterns

    def test_add_and_remove_pattern(self, home, config_manager):
        assert config_manager.add_ignore_pattern('*.bak', 'claude') is True
        assert config_manager.add_ignore_pattern('*.bak', 'claude') is False
        assert '*.bak' in ConfigManager(home).ignore_patterns_for('claude')

        assert config_manager.remove_ignore_pattern('*.bak', 'claude') is True
        assert config_manager.remove_ignore_pattern('*.bak', 'claude') is False
        assert 'claude' not in config_manager.load_ignore()

    def test_global_pattern(self, config_manager):
        config_manager.add_ignore_pattern('*.swp')
        assert '*.swp' in config_manager.ignore_patterns_for('cursor')


class TestAppContext:
    """Application context wiring."""

    def test_create_loads_plugins(self, home):
        plugins_dir = home / 'plugins'
        plugins_dir.mkdir(parents=True)
        (plugins_dir / 'aider.json').write_text(json.dumps({'name': 'aider', 'config_directory': '~/.aider'}))

        context = AppContext.create(home)

        assert context.home == home
        assert context.tool('aider').config_directory == '~/.aider'

    def test_create_without_plugins(self, home):
        plugins_dir = home / 'plugins'
        plugins_dir.mkdir(parents=True)
        (plugins_dir / 'aider.json').write_text(json.dumps({'name': 'aider', 'config_directory': '~/.aider'}))

        assert AppContext.create(home, load_plugins=False).tool('aider') is None

    def test_setup_directories(self, app):
        app.config.setup_directories()
        for directory in (app.config.backups_dir, app.config.plugins_dir, app.config.repo_dir):
            assert directory.is_dir()
