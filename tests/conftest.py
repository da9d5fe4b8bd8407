"""
Shared fixtures for SyncAI tests.
"""

import pytest

from syncai.core.context import AppContext
from syncai.core.tools import ToolDefinition

from . import DEMO_TOOL


@pytest.fixture
def home(tmp_path):
    """SyncAI home directory for one test."""
    return tmp_path / "syncai-home"


@pytest.fixture
def app(home):
    """Application context rooted in the temporary home."""
    return AppContext.create(home)


@pytest.fixture
def local_dir(tmp_path):
    """Local configuration directory of the demo tool."""
    path = tmp_path / "local"
    path.mkdir()
    return path


@pytest.fixture
def demo_tool(app, local_dir):
    """A registered, installed custom tool whose config lives in ``local_dir``."""
    definition = ToolDefinition(
        name=DEMO_TOOL,
        display_name="Demo Tool",
        config_directory=str(local_dir),
    )
    app.registry.register(definition)
    app.config.update_mapping(DEMO_TOOL, installed=True, config_directory=str(local_dir))
    return definition


@pytest.fixture
def mirror_dir(app):
    """Mirror directory of the demo tool inside the sync repository."""
    path = app.config.mirror_dir(DEMO_TOOL)
    path.mkdir(parents=True)
    return path
