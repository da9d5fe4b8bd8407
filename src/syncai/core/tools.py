#!/usr/bin/env python3
"""
Tool registry for SyncAI.

This module defines the supported AI coding tools, their configuration
directories and sync rules, and a registry that accepts validated custom tool
definitions loaded from the plugins directory.
"""

import json
import re
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import toml
import yaml

from ..utils.logger import get_logger

logger = get_logger(__name__)

PLUGIN_SUFFIXES = ('.json', '.yaml', '.yml', '.toml')
TOOL_NAME_RE = re.compile(r'^[a-z0-9][a-z0-9_-]*$')

# Keys accepted in plugin files besides the snake_case field names
_FIELD_ALIASES = {
    'displayName': 'display_name',
    'defaultConfigDir': 'config_directory',
    'defaultConfigDirectory': 'config_directory',
    'configDirectory': 'config_directory',
    'config_dir': 'config_directory',
    'syncPaths': 'sync_paths',
    'ignore': 'ignore_patterns',
    'ignorePatterns': 'ignore_patterns',
    'binNames': 'binary_names',
    'binaryNames': 'binary_names',
    'envVars': 'env_vars',
    'detectMethods': 'detect_methods',
}

_LIST_FIELDS = ('sync_paths', 'ignore_patterns', 'binary_names', 'env_vars', 'detect_methods')


class ToolDefinitionError(ValueError):
    """Raised when a tool definition is malformed or not allowed."""
    pass


def is_safe_sync_path(sync_path: str) -> bool:
    """True if ``sync_path`` stays inside the directory it is relative to."""
    path = sync_path.strip().replace('\\', '/')
    if path.startswith('/') or re.match(r"^[A-Za-z]:", path):
        return False
    return '..' not in path.split('/')


@dataclass(frozen=True)
class ToolDefinition:
    """Static description of an AI tool and what to sync from it."""

    name: str
    display_name: str
    config_directory: str
    sync_paths: Tuple[str, ...] = ()
    ignore_patterns: Tuple[str, ...] = ()
    binary_names: Tuple[str, ...] = ()
    env_vars: Tuple[str, ...] = ()
    detect_methods: Tuple[str, ...] = field(default=('which',))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data = asdict(self)
        for key in _LIST_FIELDS:
            data[key] = list(data[key])
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ToolDefinition':
        """Create a validated definition from a plugin dictionary."""
        if not isinstance(data, dict):
            raise ToolDefinitionError("Tool definition must be a mapping")

        normalized: Dict[str, Any] = {}
        for key, value in data.items():
            normalized[_FIELD_ALIASES.get(key, key)] = value

        name = normalized.get('name')
        if not isinstance(name, str) or not name.strip():
            raise ToolDefinitionError("Tool definition must have a non-empty 'name'")
        name = name.strip()
        if not TOOL_NAME_RE.match(name):
            raise ToolDefinitionError(
                f"Invalid tool name '{name}': use lowercase letters, digits, '-' or '_'"
            )

        config_directory = normalized.get('config_directory')
        if not isinstance(config_directory, str) or not config_directory.strip():
            raise ToolDefinitionError(f"Tool '{name}' must define a config directory")

        display_name = normalized.get('display_name') or name
        if not isinstance(display_name, str):
            raise ToolDefinitionError(f"Tool '{name}': display name must be a string")

        lists: Dict[str, Tuple[str, ...]] = {}
        for key in _LIST_FIELDS:
            value = normalized.get(key)
            if value is None:
                continue
            if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
                raise ToolDefinitionError(f"Tool '{name}': '{key}' must be a list of strings")
            lists[key] = tuple(value)

        unsafe = [p for p in lists.get('sync_paths', ()) if not is_safe_sync_path(p)]
        if unsafe:
            raise ToolDefinitionError(
                f"Tool '{name}': sync paths must be relative and stay inside the config directory: "
                f"{', '.join(unsafe)}"
            )

        unknown = set(normalized) - {'name', 'display_name', 'config_directory', *_LIST_FIELDS}
        if unknown:
            logger.debug(f"Ignoring unknown fields in tool '{name}': {', '.join(sorted(unknown))}")

        return cls(
            name=name,
            display_name=display_name,
            config_directory=config_directory.strip(),
            **lists
        )


COMMON_IGNORE = ('*.log', '.git/', '**/.git/**')

BUILTIN_TOOLS: Dict[str, ToolDefinition] = {
    tool.name: tool for tool in (
        ToolDefinition(
            name='opencode',
            display_name='OpenCode',
            config_directory='~/.config/opencode',
            sync_paths=('skills/', 'config.json', 'settings.json'),
            ignore_patterns=('cache/', 'logs/') + COMMON_IGNORE,
            binary_names=('opencode', 'oc'),
            env_vars=('OPENCODE_HOME', 'OPENCODE_SESSION'),
        ),
        ToolDefinition(
            name='kiro',
            display_name='Kiro CLI',
            config_directory='~/.kiro',
            sync_paths=('settings/', 'steering/', 'agents/', 'powers/installed/', 'powers/registry.json'),
            ignore_patterns=('kiro-auth-token.json', 'cache/', 'logs/') + COMMON_IGNORE + (
                '**/repos/**', '**/native-binary/**', '**/*.node', '**/node_modules/**'),
            binary_names=('kiro', 'kiro-cli'),
            env_vars=('KIRO_HOME', 'KIRO_SESSION'),
        ),
        ToolDefinition(
            name='gemini',
            display_name='Gemini CLI',
            config_directory='~/.gemini',
            sync_paths=('GEMINI.md', 'settings.json'),
            ignore_patterns=('oauth_creds.json', 'cache/') + COMMON_IGNORE + (
                'antigravity/', 'update_available.txt'),
            binary_names=('gemini', 'gemini-cli'),
            env_vars=('GEMINI_HOME',),
        ),
        ToolDefinition(
            name='claude',
            display_name='Claude Code',
            config_directory='~/.claude',
            sync_paths=('CLAUDE.md', 'settings.json'),
            ignore_patterns=('projects/', 'cache/', 'credentials.json') + COMMON_IGNORE + (
                'commands/', 'todos/', 'debug/', 'statsig/', 'telemetry/'),
            binary_names=('claude',),
            env_vars=('CLAUDE_HOME', 'CLAUDECODE'),
        ),
        ToolDefinition(
            name='cursor',
            display_name='Cursor',
            config_directory='~/.cursor',
            sync_paths=('settings.json', 'keybindings.json', 'rules/', 'mcp.json'),
            ignore_patterns=('cache/', 'logs/') + COMMON_IGNORE + (
                'CachedData/', 'CachedExtensions/', 'CachedExtensionVSIXs/', 'Code Cache/',
                'GPUCache/', 'User/workspaceStorage/', 'User/globalStorage/', 'User/History/',
                'blob_storage/', 'databases/', 'Session Storage/', 'Local Storage/'),
            binary_names=('cursor',),
            env_vars=('CURSOR_HOME',),
            detect_methods=('which', 'app-bundle'),
        ),
        ToolDefinition(
            name='windsurf',
            display_name='Windsurf',
            config_directory='~/.windsurf',
            sync_paths=('settings.json', 'keybindings.json', 'rules/', 'cascade.json'),
            ignore_patterns=('cache/', 'logs/') + COMMON_IGNORE + (
                'CachedData/', 'CachedExtensions/', 'Code Cache/', 'GPUCache/',
                'User/workspaceStorage/', 'User/globalStorage/', 'User/History/',
                'Session Storage/', 'Local Storage/'),
            binary_names=('windsurf',),
            env_vars=('WINDSURF_HOME',),
            detect_methods=('which', 'app-bundle'),
        ),
        ToolDefinition(
            name='continue',
            display_name='Continue',
            config_directory='~/.continue',
            sync_paths=('config.json', 'config.yaml', 'prompts/', '.continuerules'),
            ignore_patterns=('cache/', 'logs/') + COMMON_IGNORE + (
                'sessions/', 'index/', 'dev_data/', 'types/'),
            binary_names=('continue',),
            env_vars=('CONTINUE_HOME',),
            detect_methods=('config-exists',),
        ),
        ToolDefinition(
            name='cody',
            display_name='Sourcegraph Cody',
            config_directory='~/.sourcegraph',
            sync_paths=('settings.json', 'cody.json'),
            ignore_patterns=('cache/', 'logs/') + COMMON_IGNORE + (
                'embeddings/', 'tokens.json', 'auth.json'),
            binary_names=('cody',),
            env_vars=('SRC_ENDPOINT',),
            detect_methods=('config-exists', 'vscode-extension'),
        ),
    )
}


def load_definition_file(file_path: Union[str, Path]) -> ToolDefinition:
    """Parse a JSON, YAML or TOML tool definition file."""
    file_path = Path(file_path)
    suffix = file_path.suffix.lower()
    if suffix not in PLUGIN_SUFFIXES:
        raise ToolDefinitionError(
            f"Unsupported plugin file type '{suffix}' (expected {', '.join(PLUGIN_SUFFIXES)})"
        )

    try:
        text = file_path.read_text(encoding='utf-8')
        if suffix == '.json':
            data = json.loads(text)
        elif suffix == '.toml':
            data = toml.loads(text)
        else:
            data = yaml.safe_load(text)
    except OSError as e:
        raise ToolDefinitionError(f"Cannot read {file_path}: {e}") from e
    except (ValueError, yaml.YAMLError, toml.TomlDecodeError) as e:
        raise ToolDefinitionError(f"Cannot parse {file_path}: {e}") from e

    return ToolDefinition.from_dict(data)


class ToolRegistry:
    """Catalog of built-in and custom tool definitions for one process."""

    def __init__(self, builtins: Optional[Dict[str, ToolDefinition]] = None):
        self._builtins: Dict[str, ToolDefinition] = dict(BUILTIN_TOOLS if builtins is None else builtins)
        self._custom: Dict[str, ToolDefinition] = {}

    def all(self) -> Dict[str, ToolDefinition]:
        """All definitions, built-ins first."""
        return {**self._builtins, **self._custom}

    def names(self) -> List[str]:
        return list(self.all())

    def get(self, name: str) -> Optional[ToolDefinition]:
        return self._custom.get(name) or self._builtins.get(name)

    def is_builtin(self, name: str) -> bool:
        return name in self._builtins

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def register(self, definition: ToolDefinition) -> None:
        """Register a custom definition, replacing a previous custom one of the same name."""
        if not definition.name:
            raise ToolDefinitionError("Tool definition must have a name")
        if self.is_builtin(definition.name):
            raise ToolDefinitionError(f"Cannot override built-in tool: {definition.name}")
        self._custom[definition.name] = definition
        logger.debug(f"Registered tool '{definition.name}'")

    def unregister(self, name: str) -> bool:
        """Remove a custom definition. Returns False if it was not registered."""
        if self.is_builtin(name):
            raise ToolDefinitionError(f"Cannot remove built-in tool: {name}")
        return self._custom.pop(name, None) is not None

    def load_plugins(self, plugins_dir: Path) -> List[str]:
        """
        Register every valid definition found directly inside ``plugins_dir``.

        Files resolving outside the directory (e.g. through symlinks) and
        invalid definitions are skipped with a warning.
        """
        plugins_dir = Path(plugins_dir)
        if not plugins_dir.is_dir():
            return []

        root = plugins_dir.resolve()
        loaded = []
        for file_path in sorted(plugins_dir.iterdir()):
            if file_path.suffix.lower() not in PLUGIN_SUFFIXES or not file_path.is_file():
                continue
            if file_path.resolve().parent != root:
                logger.warning(f"Skipping plugin outside plugins directory: {file_path}")
                continue
            try:
                definition = load_definition_file(file_path)
                self.register(definition)
                loaded.append(definition.name)
            except ToolDefinitionError as e:
                logger.warning(f"Skipping plugin {file_path.name}: {e}")

        if loaded:
            logger.debug(f"Loaded {len(loaded)} plugin(s): {', '.join(loaded)}")
        return loaded

    def install_plugin(self, source_file: Union[str, Path], plugins_dir: Path) -> ToolDefinition:
        """Validate a definition file, persist it as JSON in ``plugins_dir`` and register it."""
        definition = load_definition_file(source_file)
        if self.is_builtin(definition.name):
            raise ToolDefinitionError(f"Cannot override built-in tool: {definition.name}")

        plugins_dir = Path(plugins_dir)
        plugins_dir.mkdir(parents=True, exist_ok=True)
        for stale in self._plugin_files(definition.name, plugins_dir):
            stale.unlink()

        target = plugins_dir / f"{definition.name}.json"
        with open(target, 'w', encoding='utf-8') as f:
            json.dump(definition.to_dict(), f, indent=2, ensure_ascii=False)

        self.register(definition)
        logger.info(f"Added tool '{definition.name}' from {source_file}")
        return definition

    def remove_plugin(self, name: str, plugins_dir: Path) -> bool:
        """Delete a custom tool's plugin file(s) and unregister it."""
        if self.is_builtin(name):
            raise ToolDefinitionError(f"Cannot remove built-in tool: {name}")

        removed = False
        for file_path in self._plugin_files(name, Path(plugins_dir)):
            file_path.unlink()
            removed = True

        if self.unregister(name):
            removed = True
        if removed:
            logger.info(f"Removed tool '{name}'")
        return removed

    @staticmethod
    def _plugin_files(name: str, plugins_dir: Path) -> List[Path]:
        return [plugins_dir / f"{name}{suffix}" for suffix in PLUGIN_SUFFIXES
                if (plugins_dir / f"{name}{suffix}").is_file()]
