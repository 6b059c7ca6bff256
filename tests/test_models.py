"""
Tests for the grid data model: cube validation, wire format, patches.
"""

import pytest

from hexdeck.grid.models import (
    Cell,
    CellPatch,
    CellType,
    Cube,
    Group,
    GroupPatch,
    InvalidPatchError,
    ShortcutInfo,
)


class TestCube:
    def test_rejects_non_zero_sum(self):
        with pytest.raises(ValueError):
            Cube(1, 1, 0)

    def test_arithmetic(self):
        assert Cube(1, -1, 0) + Cube(0, 1, -1) == Cube(1, 0, -1)
        assert Cube(1, 0, -1) - Cube(1, -1, 0) == Cube(0, 1, -1)

    def test_key_roundtrip(self):
        assert Cube(3, -5, 2).key == "3,-5,2"
        assert Cube.from_key("3,-5,2") == Cube(3, -5, 2)

    def test_hashable(self):
        assert len({Cube(0, 0, 0), Cube(0, 0, 0)}) == 1


class TestCellType:
    def test_legacy_app_is_shortcut(self):
        assert CellType.parse("app") is CellType.SHORTCUT

    def test_unknown_type_raises(self):
        with pytest.raises(ValueError):
            CellType.parse("nonsense")

    def test_system_types(self):
        assert Cell("a", CellType.GROUP_BACK, Cube(0, 0, 0), "Back").is_system
        assert not Cell("b", CellType.GROUP, Cube(0, 0, 0), "Folder").is_system


class TestCellWireFormat:
    """camelCase on disk, snake_case in memory."""

    def test_to_dict_uses_camel_case_and_drops_none(self):
        cell = Cell(
            id="c1",
            type=CellType.SHORTCUT,
            cube=Cube(1, -1, 0),
            title="Editor",
            theme_color="#ff0000",
            working_dir="/tmp",
        )
        data = cell.to_dict()
        assert data["themeColor"] == "#ff0000"
        assert data["workingDir"] == "/tmp"
        assert data["cube"] == {"x": 1, "y": -1, "z": 0}
        assert "icon" not in data
        assert "groupId" not in data

    def test_from_dict_reads_shortcut(self):
        cell = Cell.from_dict({
            "id": "c2",
            "type": "shortcut",
            "cube": {"x": 0, "y": 1, "z": -1},
            "title": "Code",
            "shortcut": {"kind": "lnk", "targetPath": "/opt/code", "runAsAdmin": True, "extra": 1},
        })
        assert cell.shortcut == ShortcutInfo(kind="lnk", target_path="/opt/code", run_as_admin=True)
        assert cell.launch_target == "/opt/code"

    def test_from_dict_legacy_app(self):
        cell = Cell.from_dict({"id": "c3", "type": "app", "cube": {"x": 0, "y": 0, "z": 0}, "target": "/bin/sh"})
        assert cell.type is CellType.SHORTCUT
        assert cell.title == ""
        assert cell.launch_target == "/bin/sh"

    def test_launch_target_prefers_shortcut_then_uri(self):
        cell = Cell("c", CellType.SHORTCUT, Cube(0, 0, 0), "Mail", shortcut=ShortcutInfo(kind="uri", uri="mailto:"))
        assert cell.launch_target == "mailto:"

    def test_group_roundtrip(self):
        group = Group(id="g", title="Games", cells=["a", "b"], parent_id="p")
        assert group.to_dict() == {"id": "g", "title": "Games", "cells": ["a", "b"], "parentId": "p"}
        assert Group.from_dict(group.to_dict()) == group


class TestPatches:
    """CellPatch / GroupPatch validation and application."""

    def test_unknown_field_rejected(self):
        with pytest.raises(InvalidPatchError):
            CellPatch.from_dict({"color": "red"})

    def test_id_cannot_change(self):
        with pytest.raises(InvalidPatchError):
            CellPatch.from_dict({"id": "other"})

    def test_camel_case_keys_accepted(self):
        patch = CellPatch.from_dict({"themeColor": "blue", "workingDir": "/srv"})
        assert patch.changes() == {"theme_color": "blue", "working_dir": "/srv"}

    def test_cube_coerced_from_mapping(self):
        patch = CellPatch.from_dict({"cube": {"x": 2, "y": -1, "z": -1}})
        assert patch.cube == Cube(2, -1, -1)

    def test_apply_returns_new_cell(self):
        cell = Cell("c", CellType.SHORTCUT, Cube(0, 0, 0), "Old", icon="x.png")
        updated = CellPatch(title="New", icon=None).apply(cell)
        assert updated.title == "New"
        assert updated.icon is None
        assert cell.title == "Old"

    def test_empty_patch_is_falsy(self):
        assert not CellPatch()
        assert CellPatch(title="x")

    def test_group_patch_rejects_cells(self):
        with pytest.raises(InvalidPatchError):
            GroupPatch.from_dict({"cells": []})

    def test_group_patch_parent(self):
        patch = GroupPatch.from_dict({"parentId": "root"})
        assert patch.changes() == {"parent_id": "root"}
