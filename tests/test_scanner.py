#!/usr/bin/env python3
"""
Tests for tool scanning and current-tool detection.
"""

import pytest
from unittest.mock import patch

from syncai.core.scanner import (
    ToolScanner,
    Detection,
    detect_current_tool,
    detect_install_method,
)
from syncai.core.tools import ToolDefinition, ToolRegistry


@pytest.fixture
def scanner(app):
    return ToolScanner(app)


class TestDetectInstallMethod:
    """Install method heuristics."""

    @pytest.mark.parametrize("path,method", [
        ("/usr/local/lib/node_modules/.bin/claude", "npm"),
        ("/home/u/go/bin/tool", "go"),
        ("/opt/homebrew/bin/gemini", "brew"),
        ("/home/u/.cargo/bin/tool", "cargo"),
        ("/home/u/.local/pipx/venvs/aider/bin/aider", "pip"),
        ("/usr/bin/cursor", "binary"),
        ("C:\\Users\\u\\AppData\\Roaming\\npm\\claude.cmd", "npm"),
        (None, "unknown"),
    ])
    def test_methods(self, path, method):
        assert detect_install_method(path) == method


class TestDetectCurrentTool:
    """Environment-based detection."""

    def test_no_variables(self):
        assert detect_current_tool(ToolRegistry(), environ={}) is None

    def test_claude(self):
        detection = detect_current_tool(ToolRegistry(), environ={"CLAUDECODE": "1"})
        assert detection == Detection("claude", "CLAUDECODE")

    def test_empty_value_is_ignored(self):
        assert detect_current_tool(ToolRegistry(), environ={"CLAUDECODE": ""}) is None

    def test_custom_tool(self):
        registry = ToolRegistry()
        registry.register(ToolDefinition("aider", "Aider", "~/.aider", env_vars=("AIDER_SESSION",)))
        assert detect_current_tool(registry, environ={"AIDER_SESSION": "x"}).tool == "aider"


class TestToolScanner:
    """Installation probing."""

    @patch('syncai.core.scanner.command_path')
    def test_binary_on_path(self, mock_path, scanner, tmp_path):
        mock_path.side_effect = lambda name: "/usr/local/lib/node_modules/.bin/aider" if name == "aider" else None
        definition = ToolDefinition("aider", "Aider", str(tmp_path / "missing"), binary_names=("aider",))

        mapping = scanner.scan_tool(definition)

        assert mapping.installed is True
        assert mapping.install_method == "npm"
        assert mapping.binary_path.endswith("aider")
        assert mapping.config_dir_exists is False

    @patch('syncai.core.scanner.command_path', return_value=None)
    def test_config_exists_method(self, mock_path, scanner, tmp_path):
        definition = ToolDefinition(
            "ext", "Extension", str(tmp_path),
            binary_names=("ext",), detect_methods=("config-exists",),
        )
        mapping = scanner.scan_tool(definition)
        assert mapping.installed is True
        assert mapping.install_method == "config"

    @patch('syncai.core.scanner.command_path', return_value=None)
    def test_config_dir_alone_is_not_enough(self, mock_path, scanner, tmp_path):
        definition = ToolDefinition("cli", "CLI", str(tmp_path), binary_names=("cli",))
        mapping = scanner.scan_tool(definition)
        assert mapping.installed is False
        assert mapping.config_dir_exists is True

    @patch('syncai.core.scanner.command_path', return_value=None)
    def test_scan_and_save_preserves_user_settings(self, mock_path, app, scanner, tmp_path):
        custom = tmp_path / "custom-claude"
        custom.mkdir()
        app.config.update_mapping('claude', custom_config_directory=str(custom), sync_paths=["CLAUDE.md"])

        mappings = scanner.scan_and_save()

        claude = mappings['claude']
        assert claude.custom_config_directory == str(custom)
        assert claude.sync_paths == ["CLAUDE.md"]
        assert claude.config_dir_exists is True
        assert claude.last_scanned
        assert set(mappings) >= set(app.registry.names())

    @patch('syncai.core.scanner.command_path')
    def test_installed_tools(self, mock_path, app, scanner):
        mock_path.side_effect = lambda name: "/usr/bin/claude" if name == "claude" else None
        scanner.scan_and_save()
        assert "claude" in scanner.installed_tools()
        assert "gemini" not in scanner.installed_tools()
