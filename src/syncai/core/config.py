#!/usr/bin/env python3
"""
Configuration manager for SyncAI.

This module owns the files kept in the SyncAI home directory: the global
settings (``config.json``), the per-machine tool scan results
(``mappings.json``) and the ignore rules (``ignore.json``). Each file is loaded
once and cached on the manager.
"""

import copy
import json
import uuid
from dataclasses import dataclass, field, asdict, fields
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .ignore import default_ignore_config
from ..utils.fs import expand_home
from ..utils.logger import get_logger
from ..utils.platform import default_home, platform_detector

DEFAULT_CONFIG: Dict[str, Any] = {
    'github': {
        'username': None,
        'repo': 'syai',
        'branch': 'main',
    },
    'device': {
        'id': None,
        'name': None,
    },
    'backup': {
        'max_backups': 10,
    },
    'sync': {
        'backup_before_pull': True,
    },
    'watch': {
        'interval': 5,
    },
    'exec': {
        'timeout': 30,
    },
    'initialized': False,
}

GLOBAL_IGNORE_KEY = 'global'


@dataclass
class ToolMapping:
    """Per-machine scan result for one tool."""

    installed: bool = False
    config_directory: Optional[str] = None
    custom_config_directory: Optional[str] = None
    sync_paths: List[str] = field(default_factory=list)
    last_scanned: Optional[str] = None
    install_method: Optional[str] = None
    binary_path: Optional[str] = None
    config_dir_exists: bool = False

    @property
    def effective_config_directory(self) -> Optional[str]:
        return self.custom_config_directory or self.config_directory

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ToolMapping':
        """Create instance from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        if values.get('sync_paths') is None:
            values['sync_paths'] = []
        return cls(**values)


def _deep_merge(base: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class ConfigManager:
    """Loads, caches and saves the SyncAI home directory state."""

    def __init__(self, home: Optional[Union[str, Path]] = None):
        """
        Initialize configuration manager.

        Args:
            home: SyncAI home directory, defaults to $SYNCAI_HOME or the
                platform config directory
        """
        self.logger = get_logger(f"{__name__}.ConfigManager")
        self.home = Path(home).expanduser() if home else default_home()

        self.config_file = self.home / 'config.json'
        self.mappings_file = self.home / 'mappings.json'
        self.ignore_file = self.home / 'ignore.json'
        self.backups_dir = self.home / 'backups'
        self.plugins_dir = self.home / 'plugins'
        self.repo_dir = self.home / 'repo'
        self.logs_dir = self.home / 'logs'

        self._config: Optional[Dict[str, Any]] = None
        self._mappings: Optional[Dict[str, ToolMapping]] = None
        self._ignore: Optional[Dict[str, List[str]]] = None

    def setup_directories(self):
        """Create the home directory layout."""
        for directory in (self.home, self.backups_dir, self.plugins_dir, self.repo_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def invalidate(self):
        """Drop cached files so the next access re-reads them from disk."""
        self._config = None
        self._mappings = None
        self._ignore = None

    def mirror_dir(self, tool: str) -> Path:
        """Local mirror directory of a tool inside the sync repository."""
        return self.repo_dir / tool

    # --- JSON helpers ---

    def _read_json(self, path: Path) -> Optional[Any]:
        if not path.exists():
            return None
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            self.logger.error(f"Failed to load {path.name}: {e}")
            return None

    def _write_json(self, path: Path, data: Any) -> bool:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            self.logger.debug(f"Saved {path.name}")
            return True
        except OSError as e:
            self.logger.error(f"Failed to save {path.name}: {e}")
            return False

    # --- config.json ---

    def _default_config(self) -> Dict[str, Any]:
        config = copy.deepcopy(DEFAULT_CONFIG)
        config['device']['id'] = uuid.uuid4().hex
        config['device']['name'] = platform_detector.hostname
        return config

    def load_config(self) -> Dict[str, Any]:
        """Return the global configuration. Defaults stay in memory until the first save."""
        if self._config is not None:
            return self._config

        data = self._read_json(self.config_file)
        if data is None:
            self._config = self._default_config()
        elif not isinstance(data, dict):
            self.logger.error(f"Invalid {self.config_file.name}, using defaults")
            self._config = self._default_config()
        else:
            self._config = _deep_merge(self._default_config(), data)

        return self._config

    def save_config(self, config: Optional[Dict[str, Any]] = None) -> bool:
        if config is not None:
            self._config = config
        return self._write_json(self.config_file, self.load_config())

    def update_config(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Deep-merge ``updates`` into the configuration and save it."""
        self._config = _deep_merge(self.load_config(), updates)
        self.save_config()
        return self._config

    def get_value(self, key: str, default: Any = None) -> Any:
        """Read a dotted key such as ``github.repo``."""
        value: Any = self.load_config()
        for part in key.split('.'):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value

    def set_value(self, key: str, value: Any) -> bool:
        """Write a dotted key, creating intermediate sections."""
        parts = key.split('.')
        if not all(parts):
            raise ValueError(f"Invalid configuration key: {key}")

        config = self.load_config()
        section = config
        for part in parts[:-1]:
            child = section.get(part)
            if not isinstance(child, dict):
                child = {}
                section[part] = child
            section = child
        section[parts[-1]] = value
        return self.save_config()

    # --- mappings.json ---

    def load_mappings(self) -> Dict[str, ToolMapping]:
        if self._mappings is not None:
            return self._mappings

        self._mappings = {}
        data = self._read_json(self.mappings_file)
        if isinstance(data, dict):
            for name, mapping_data in data.items():
                try:
                    self._mappings[name] = ToolMapping.from_dict(mapping_data)
                except (TypeError, AttributeError) as e:
                    self.logger.warning(f"Failed to load mapping for '{name}': {e}")
        return self._mappings

    def save_mappings(self, mappings: Optional[Dict[str, ToolMapping]] = None) -> bool:
        if mappings is not None:
            self._mappings = mappings
        data = {name: m.to_dict() for name, m in self.load_mappings().items()}
        return self._write_json(self.mappings_file, data)

    def get_mapping(self, tool: str) -> Optional[ToolMapping]:
        return self.load_mappings().get(tool)

    def update_mapping(self, tool: str, **changes) -> ToolMapping:
        """Update (or create) a tool's mapping and save all mappings."""
        mappings = self.load_mappings()
        mapping = mappings.get(tool) or ToolMapping()
        for key, value in changes.items():
            if not hasattr(mapping, key):
                raise AttributeError(f"Unknown mapping field: {key}")
            setattr(mapping, key, value)
        mappings[tool] = mapping
        self.save_mappings()
        return mapping

    def installed_tools(self) -> List[str]:
        return [name for name, m in self.load_mappings().items() if m.installed]

    def effective_config_dir(self, tool: str) -> Optional[Path]:
        """Expanded local config directory of a tool, or None if unknown."""
        mapping = self.get_mapping(tool)
        if mapping is None or not mapping.effective_config_directory:
            return None
        return expand_home(mapping.effective_config_directory)

    # --- ignore.json ---

    def load_ignore(self) -> Dict[str, List[str]]:
        """Ignore patterns by tool. Defaults stay in memory until the first save."""
        if self._ignore is not None:
            return self._ignore

        data = self._read_json(self.ignore_file)
        if data is None:
            data = default_ignore_config()
        elif not isinstance(data, dict):
            self.logger.error(f"Invalid {self.ignore_file.name}, using defaults")
            data = default_ignore_config()

        self._ignore = {
            key: [p for p in value if isinstance(p, str)]
            for key, value in data.items() if isinstance(value, list)
        }
        return self._ignore

    def save_ignore(self) -> bool:
        return self._write_json(self.ignore_file, self.load_ignore())

    def ignore_patterns_for(self, tool: str) -> List[str]:
        """Global patterns followed by the tool's own configured patterns."""
        ignore = self.load_ignore()
        return list(ignore.get(GLOBAL_IGNORE_KEY, [])) + list(ignore.get(tool, []))

    def add_ignore_pattern(self, pattern: str, tool: Optional[str] = None) -> bool:
        """Add a pattern to a tool's list (or the global list). False if already present."""
        key = tool or GLOBAL_IGNORE_KEY
        ignore = self.load_ignore()
        patterns = ignore.setdefault(key, [])
        if pattern in patterns:
            return False
        patterns.append(pattern)
        return self.save_ignore()

    def remove_ignore_pattern(self, pattern: str, tool: Optional[str] = None) -> bool:
        key = tool or GLOBAL_IGNORE_KEY
        ignore = self.load_ignore()
        patterns = ignore.get(key, [])
        if pattern not in patterns:
            return False
        patterns.remove(pattern)
        if not patterns and key != GLOBAL_IGNORE_KEY:
            del ignore[key]
        return self.save_ignore()

    @staticmethod
    def now() -> str:
        return datetime.now().isoformat(timespec='seconds')
