#!/usr/bin/env python3
"""
Process-wide application context.

The context bundles the configuration store and the tool registry so they are
created once at startup and handed explicitly to the sync engine, the backup
manager, the scanner and the CLI commands.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .config import ConfigManager
from .tools import ToolRegistry, ToolDefinition
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class AppContext:
    """Configuration store plus tool registry for one process."""

    config: ConfigManager
    registry: ToolRegistry

    @classmethod
    def create(cls, home: Optional[Union[str, Path]] = None, load_plugins: bool = True) -> 'AppContext':
        """Build the context for ``home`` and register custom tools from its plugins directory."""
        config = ConfigManager(home)
        registry = ToolRegistry()
        if load_plugins:
            registry.load_plugins(config.plugins_dir)
        logger.debug(f"Using SyncAI home: {config.home}")
        return cls(config=config, registry=registry)

    @property
    def home(self) -> Path:
        return self.config.home

    def tool(self, name: str) -> Optional[ToolDefinition]:
        return self.registry.get(name)
