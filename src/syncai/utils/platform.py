#!/usr/bin/env python3
"""
Platform detection and OS-specific utilities for SyncAI.

This module detects the operating system and resolves the OS-specific
location of the SyncAI home directory.
"""

import os
import socket
import platform
from pathlib import Path
from typing import Dict
from enum import Enum


class OSType(Enum):
    """Supported operating system types."""
    LINUX = "linux"
    MACOS = "darwin"
    WINDOWS = "windows"
    UNKNOWN = "unknown"


class PlatformDetector:
    """Handles platform detection and OS-specific locations."""

    def __init__(self):
        self._os_type = self._detect_os()
        self._home_dir = Path.home()

    @staticmethod
    def _detect_os() -> OSType:
        """Detect the current operating system."""
        system = platform.system().lower()

        if system == "linux":
            return OSType.LINUX
        elif system == "darwin":
            return OSType.MACOS
        elif system == "windows":
            return OSType.WINDOWS
        else:
            return OSType.UNKNOWN

    @property
    def os_type(self) -> OSType:
        """Get the detected OS type."""
        return self._os_type

    @property
    def is_linux(self) -> bool:
        return self._os_type == OSType.LINUX

    @property
    def is_macos(self) -> bool:
        return self._os_type == OSType.MACOS

    @property
    def is_windows(self) -> bool:
        return self._os_type == OSType.WINDOWS

    @property
    def home_dir(self) -> Path:
        """Get the user's home directory."""
        return self._home_dir

    @property
    def hostname(self) -> str:
        return socket.gethostname()

    def get_app_config_dir(self, app: str = 'syncai') -> Path:
        """
        Get the per-user configuration directory for an application.

        Windows uses %APPDATA%; every other platform uses ~/.config so the
        layout matches what the AI tools themselves do on macOS.
        """
        if self.is_windows:
            appdata = os.environ.get('APPDATA', str(self.home_dir / 'AppData' / 'Roaming'))
            return Path(appdata) / app
        return self.home_dir / '.config' / app

    def get_system_info(self) -> Dict[str, str]:
        """Get basic system information."""
        return {
            'os_type': self.os_type.value,
            'platform': platform.platform(),
            'machine': platform.machine(),
            'python_version': platform.python_version(),
            'hostname': self.hostname,
            'home_directory': str(self.home_dir),
        }


# Global instance for convenience
platform_detector = PlatformDetector()


def get_os_type() -> OSType:
    """Get the current OS type."""
    return platform_detector.os_type


def is_windows() -> bool:
    return platform_detector.is_windows


def default_home() -> Path:
    """SyncAI home directory, honoring the SYNCAI_HOME override."""
    override = os.environ.get('SYNCAI_HOME')
    if override:
        return Path(override).expanduser()
    return platform_detector.get_app_config_dir('syncai')
