"""
Shared test fixtures for the hexdeck test suite.

Provides a fresh registry, a selection, and temporary settings and config
files that use real file I/O (no mocking of the filesystem).
"""

import json

import pytest
import toml

from hexdeck.grid.models import Cell, CellType, Cube, ShortcutInfo
from hexdeck.grid.registry import GridRegistry
from hexdeck.grid.selection import Selection


def make_cell(cell_id, cube, title=None, cell_type=CellType.SHORTCUT, **kwargs):
    """Build a cell from an (x, y, z) tuple."""
    return Cell(id=cell_id, type=cell_type, cube=Cube(*cube), title=title or cell_id, **kwargs)


@pytest.fixture
def registry():
    """Registry with only the root system cells."""
    return GridRegistry()


@pytest.fixture
def selection():
    return Selection()


@pytest.fixture
def persisted():
    """List that collects every settings snapshot handed to persist."""
    return []


@pytest.fixture
def tracked_registry(persisted):
    return GridRegistry(persist=persisted.append)


@pytest.fixture
def app_cells():
    """Cells used by the search tests."""
    return [
        make_cell("1", (1, -1, 0), "Firefox", target=r"C:\Program Files\Mozilla Firefox\firefox.exe"),
        make_cell("2", (1, 0, -1), "Chrome", target=r"C:\Program Files\Google\Chrome\Application\chrome.exe"),
        make_cell(
            "3", (0, 1, -1), "Visual Studio Code",
            shortcut=ShortcutInfo(kind="lnk", target_path=r"C:\Users\me\AppData\Local\Programs\Microsoft VS Code\Code.exe"),
        ),
        make_cell("4", (-1, 1, 0), "Notepad", target=r"C:\Windows\System32\notepad.exe"),
        make_cell("5", (2, -2, 0), "Notes", target=r"C:\Users\me\Documents\Notes.txt"),
    ]


@pytest.fixture
def tmp_settings(tmp_path):
    """Create a real settings JSON file with one group and two shortcuts."""
    settings_path = tmp_path / "settings.json"
    data = {
        "schemaVersion": 1,
        "cells": [
            {"id": "fx", "type": "shortcut", "cube": {"x": 1, "y": -1, "z": 0}, "title": "Firefox",
             "shortcut": {"kind": "file", "targetPath": "/usr/bin/firefox"}},
            {"id": "folder", "type": "group", "cube": {"x": 1, "y": 0, "z": -1}, "title": "Tools",
             "groupId": "g1"},
            {"id": "g1-back", "type": "group_back", "cube": {"x": -1, "y": 1, "z": 0}, "title": "Back"},
            {"id": "term", "type": "app", "cube": {"x": 2, "y": -2, "z": 0}, "title": "Terminal",
             "target": "/usr/bin/foot"},
        ],
        "groups": [
            {"id": "g1", "title": "Tools", "cells": ["g1-back", "term"]},
        ],
        "activeGroupId": None,
        "appearance": {"searchMode": "partial"},
        "searchHistory": ["fire"],
    }
    settings_path.write_text(json.dumps(data, indent=2))
    return settings_path


@pytest.fixture
def tmp_config(tmp_path):
    """Create a real config TOML file with all sections."""
    config_path = tmp_path / "config.toml"
    data = {
        "grid": {"hex_size": 40, "drag_threshold": 8},
        "search": {"mode": "regex", "scope": "current", "fuzzy_threshold": 0.3, "history_size": 3},
        "persistence": {"settings_path": str(tmp_path / "settings.json"), "save_delay_ms": 0},
        "logging": {"level": "DEBUG"},
    }
    config_path.write_text(toml.dumps(data))
    return config_path
