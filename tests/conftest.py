"""
Pytest configuration and shared fixtures.
"""
import os
import sys
from pathlib import Path

import pytest

# Add project root to path for imports
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)
tests_root = os.path.dirname(os.path.abspath(__file__))
if tests_root not in sys.path:
    sys.path.insert(0, tests_root)

from templatemerge.assets import AssetSource, OutputSink
from templatemerge.config import reset_settings


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point the default asset/output directories at tmp_path for every test."""
    monkeypatch.setenv("TEMPLATE_DIR", str(tmp_path / "assets"))
    monkeypatch.setenv("OUTPUT_DIR", str(tmp_path / "out"))
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def assets_dir(tmp_path) -> Path:
    path = tmp_path / "assets"
    path.mkdir(exist_ok=True)
    return path


@pytest.fixture
def out_dir(tmp_path) -> Path:
    return tmp_path / "out"


@pytest.fixture
def assets(assets_dir) -> AssetSource:
    return AssetSource(assets_dir)


@pytest.fixture
def output(out_dir) -> OutputSink:
    return OutputSink(out_dir)


@pytest.fixture
def write_csv(assets_dir):
    """Write CSV text into the asset directory and return its file name."""
    def _write(text: str, name: str = "Data.csv") -> str:
        (assets_dir / name).write_text(text, encoding="utf-8")
        return name
    return _write
