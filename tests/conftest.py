"""Shared fixtures for the astedit test-suite.

Every test runs against a private user configuration directory so that the
packaged defaults are used and nothing is written to the real home directory.
"""

import logging
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from astedit.config import ConfigManager
from astedit.core.codec import parse_document

# Configure test logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point user configuration at a temp dir and drop the cached ConfigManager."""
    config_dir = tmp_path / "astedit-config"
    monkeypatch.setenv("ASTEDIT_CONFIG_DIR", str(config_dir))
    ConfigManager._instance = None
    yield config_dir
    ConfigManager._instance = None


@pytest.fixture
def sample_tree():
    """Program holding ``{"a": [1, 2], "b": {"c": true}}``."""
    return parse_document({"a": [1, 2], "b": {"c": True}})
