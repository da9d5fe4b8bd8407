#!/usr/bin/env python3
"""
Tool scanner for SyncAI.

Detects which AI tools are installed on this machine and records the results
in the tool mappings, and identifies the tool SyncAI is currently running
inside from its environment variables.
"""

import os
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from .config import ToolMapping
from .context import AppContext
from .tools import ToolDefinition, ToolRegistry
from ..utils.exec import command_path
from ..utils.fs import expand_home
from ..utils.logger import get_logger

CONFIG_EXISTS_METHOD = 'config-exists'

# Substrings of a binary path and the install method they indicate
INSTALL_METHOD_HINTS = [
    (('node_modules', 'npm', '.npm'), 'npm'),
    (('go/bin', 'gopath'), 'go'),
    (('homebrew', 'Cellar', 'linuxbrew'), 'brew'),
    (('.cargo',), 'cargo'),
    (('pip', 'python', 'pipx'), 'pip'),
]


def detect_install_method(binary_path: Optional[str]) -> str:
    if not binary_path:
        return 'unknown'
    normalized = binary_path.replace('\\', '/')
    for hints, method in INSTALL_METHOD_HINTS:
        if any(hint in normalized for hint in hints):
            return method
    return 'binary'


@dataclass(frozen=True)
class Detection:
    """The tool hosting the current process and the variable that revealed it."""
    tool: str
    env_var: str


def detect_current_tool(registry: ToolRegistry,
                        environ: Optional[Mapping[str, str]] = None) -> Optional[Detection]:
    """Return the first tool whose environment variables are set, or None."""
    environ = os.environ if environ is None else environ
    for definition in registry.all().values():
        for env_var in definition.env_vars:
            if environ.get(env_var):
                return Detection(definition.name, env_var)
    return None


class ToolScanner:
    """Scans the machine for the registered tools."""

    def __init__(self, context: AppContext):
        self.logger = get_logger(f"{__name__}.ToolScanner")
        self.context = context

    def scan_tool(self, definition: ToolDefinition) -> ToolMapping:
        """Probe one tool without touching the saved mappings."""
        mapping = ToolMapping(config_directory=definition.config_directory)

        for binary in definition.binary_names:
            path = command_path(binary)
            if path:
                mapping.installed = True
                mapping.binary_path = path
                mapping.install_method = detect_install_method(path)
                break

        config_dir = expand_home(definition.config_directory)
        mapping.config_dir_exists = config_dir.is_dir()

        if not mapping.installed and CONFIG_EXISTS_METHOD in definition.detect_methods \
                and mapping.config_dir_exists:
            mapping.installed = True
            mapping.install_method = 'config'

        self.logger.debug(
            f"Scanned {definition.name}: installed={mapping.installed}, "
            f"config_dir_exists={mapping.config_dir_exists}"
        )
        return mapping

    def scan_all(self) -> Dict[str, ToolMapping]:
        return {name: self.scan_tool(d) for name, d in self.context.registry.all().items()}

    def scan_and_save(self) -> Dict[str, ToolMapping]:
        """
        Scan every registered tool and merge the results into the saved mappings.

        User-set custom config directories and sync paths are preserved.
        """
        config = self.context.config
        mappings = config.load_mappings()
        scanned_at = config.now()

        for name, result in self.scan_all().items():
            previous = mappings.get(name)
            if previous is not None:
                result.custom_config_directory = previous.custom_config_directory
                result.sync_paths = list(previous.sync_paths)
                if previous.custom_config_directory:
                    result.config_dir_exists = expand_home(previous.custom_config_directory).is_dir()
            result.last_scanned = scanned_at
            mappings[name] = result

        config.save_mappings(mappings)
        self.logger.info(f"Scanned {len(mappings)} tools, {len(self.installed_tools())} installed")
        return mappings

    def installed_tools(self) -> List[str]:
        return self.context.config.installed_tools()
