"""
Grid Registry - Authoritative in-memory store of cells, groups, and planes.

The registry is an explicit state container: construct one and hand it to
whatever needs it. It owns:
  - cells: every placed cell, keyed by id
  - groups: every group, keyed by id
  - root_cell_ids: membership of the root plane
  - active_group_id: which plane is in view (None = root)
  - the non-grid settings sections carried along in the persisted shape

Every mutation ends with _notify(), which calls registered listeners and
then hands the full settings dict to the `persist` callable. A failing
persist is logged and ignored: memory is the source of truth.

Unknown ids make any operation a no-op with a falsy return value.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Optional, Union

from loguru import logger

from ..utils.helpers import DEFAULT_PREFERENCES, PREFERENCE_SECTIONS, _deep_merge
from .geometry import find_empty_adjacent_cube, find_nearest_empty_cube
from .groups import (
    CONVERTED_PAYLOAD_CUBE,
    ROOT_SYSTEM_CELLS,
    ROOT_SYSTEM_IDS,
    collect_group_subtree,
    create_default_group_cells,
    descendant_group_ids,
    new_id,
)
from .models import ORIGIN, Cell, CellPatch, CellType, Cube, Group, GroupPatch

SCHEMA_VERSION = 1

SEARCH_SCOPE_CURRENT = "current"
SEARCH_SCOPE_GLOBAL = "global"

Listener = Callable[["GridRegistry"], None]


@dataclass
class GroupNode:
    """One entry of the group hierarchy, as shown by the tree dialog."""
    group: Group
    children: list[GroupNode] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.group.id


class GridRegistry:
    """
    Owner of the cell and group maps.

    Args:
        persist: Called with the full settings dict after each mutation
            (normally SaveQueue.submit). Optional.
        preferences: Overrides merged over DEFAULT_PREFERENCES.
    """

    def __init__(
        self,
        persist: Optional[Callable[[dict], None]] = None,
        preferences: Optional[Mapping[str, Any]] = None,
    ):
        self.cells: dict[str, Cell] = {cell.id: replace(cell) for cell in ROOT_SYSTEM_CELLS}
        self.groups: dict[str, Group] = {}
        self.root_cell_ids: list[str] = list(ROOT_SYSTEM_IDS)
        self.active_group_id: Optional[str] = None

        self.preferences: dict[str, Any] = _deep_merge(DEFAULT_PREFERENCES, dict(preferences or {}))
        self.hotkeys: dict[str, str] = {}
        self.icon_cache_index: dict[str, str] = {}
        self.search_history: list[str] = []

        self._persist = persist
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # Listeners and persistence

    def connect(self, callback: Listener) -> None:
        """Call `callback(registry)` after every mutation or navigation."""
        self._listeners.append(callback)

    def disconnect(self, callback: Listener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _notify(self, persist: bool = True) -> None:
        for callback in list(self._listeners):
            try:
                callback(self)
            except Exception:
                logger.exception(f"Registry listener {callback!r} failed")

        if not persist or self._persist is None:
            return

        try:
            self._persist(self.to_settings())
        except Exception:
            # Optimistic persistence: keep the in-memory state
            logger.exception("Failed to persist grid settings")

    # ------------------------------------------------------------------
    # Queries

    def get_cell(self, cell_id: str) -> Optional[Cell]:
        return self.cells.get(cell_id)

    def get_group(self, group_id: str) -> Optional[Group]:
        return self.groups.get(group_id)

    def _plane_ids(self, group_id: Optional[str]) -> Optional[list[str]]:
        """Membership list of a plane (root when group_id is None)."""
        if group_id is None:
            return self.root_cell_ids
        group = self.groups.get(group_id)
        return group.cells if group else None

    def _membership(self, cell_id: str) -> Optional[list[str]]:
        """The membership list that currently holds `cell_id`."""
        if cell_id in self.root_cell_ids:
            return self.root_cell_ids
        for group in self.groups.values():
            if cell_id in group.cells:
                return group.cells
        return None

    def plane_of(self, cell_id: str) -> Optional[str]:
        """
        Group id of the plane holding a cell.

        Returns:
            The group id, or None when the cell is on the root plane or is
            not placed on any plane
        """
        for group in self.groups.values():
            if cell_id in group.cells:
                return group.id
        return None

    def cells_in_plane(self, group_id: Optional[str]) -> list[Cell]:
        ids = self._plane_ids(group_id) or []
        return [self.cells[cid] for cid in ids if cid in self.cells]

    def cells_in_active_plane(self) -> list[Cell]:
        return self.cells_in_plane(self.active_group_id)

    def occupied_keys(self, group_id: Optional[str]) -> set[str]:
        """Cube keys taken on a plane."""
        return {cell.cube.key for cell in self.cells_in_plane(group_id)}

    def cell_at(self, cube: Cube, group_id: Optional[str] = None) -> Optional[Cell]:
        for cell in self.cells_in_plane(group_id):
            if cell.cube == cube:
                return cell
        return None

    def folder_cell_for(self, group_id: str) -> Optional[Cell]:
        """The GROUP cell that opens `group_id`."""
        for cell in self.cells.values():
            if cell.type is CellType.GROUP and cell.group_id == group_id:
                return cell
        return None

    def descendant_group_ids(self, group_id: str) -> set[str]:
        return descendant_group_ids(group_id, self.groups, self.cells)

    def subtree_cell_ids(self, group_id: str) -> list[str]:
        cell_ids, _ = collect_group_subtree(group_id, self.groups, self.cells)
        return cell_ids

    def group_tree(self) -> list[GroupNode]:
        """Group hierarchy as nested nodes; groups without a known parent are roots."""
        nodes = {gid: GroupNode(group) for gid, group in self.groups.items()}
        roots = []
        for gid, node in nodes.items():
            parent = nodes.get(node.group.parent_id) if node.group.parent_id else None
            if parent is not None and parent is not node:
                parent.children.append(node)
            else:
                roots.append(node)
        return roots

    def flatten(self, scope: str = SEARCH_SCOPE_GLOBAL) -> list[Cell]:
        """
        Non-system cells to feed the search engine.

        Args:
            scope: "current" for the active plane only, "global" for every plane
        """
        if scope == SEARCH_SCOPE_CURRENT:
            source = self.cells_in_active_plane()
        else:
            source = list(self.cells.values())
        return [cell for cell in source if not cell.is_system]

    # ------------------------------------------------------------------
    # Cell CRUD

    def add_cell(self, cell: Cell) -> bool:
        """
        Place a cell on the active plane.

        Returns:
            False if the id exists or the cube is already taken on the plane
        """
        if cell.id in self.cells:
            logger.warning(f"Cell id {cell.id} already exists")
            return False

        plane = self._plane_ids(self.active_group_id)
        if plane is None:
            logger.warning(f"Active group {self.active_group_id} no longer exists")
            return False

        if cell.cube.key in self.occupied_keys(self.active_group_id):
            logger.info(f"Cannot add {cell.id}: {cell.cube.key} is occupied")
            return False

        self.cells[cell.id] = cell
        plane.append(cell.id)
        logger.debug(f"Added cell {cell.id} at {cell.cube.key}")
        self._notify()
        return True

    def _drop_group_subtree(self, group_id: str) -> list[str]:
        """Delete a group and everything under it. Returns removed cell ids."""
        cell_ids, group_ids = collect_group_subtree(group_id, self.groups, self.cells)
        for cid in cell_ids:
            self.cells.pop(cid, None)
        for gid in group_ids:
            self.groups.pop(gid, None)
        if self.active_group_id in group_ids:
            self.active_group_id = None
        return cell_ids

    def remove_cell(self, cell_id: str) -> list[str]:
        """
        Delete a cell; a GROUP cell takes its whole subtree with it.

        System cells are refused: they only disappear with their group.

        Returns:
            Every removed cell id, the cell itself last. Empty on no-op.
        """
        cell = self.cells.get(cell_id)
        if cell is None:
            return []
        if cell.is_system:
            logger.debug(f"Refusing to remove system cell {cell_id}")
            return []

        removed = []
        if cell.type is CellType.GROUP and cell.group_id:
            removed.extend(self._drop_group_subtree(cell.group_id))

        membership = self._membership(cell_id)
        if membership is not None:
            membership.remove(cell_id)
        del self.cells[cell_id]
        removed.append(cell_id)

        logger.debug(f"Removed {len(removed)} cell(s) starting from {cell_id}")
        self._notify()
        return removed

    def update_cell(self, cell_id: str, patch: Union[CellPatch, Mapping[str, Any]]) -> bool:
        """
        Apply a partial update to a cell.

        Args:
            cell_id: Cell to edit
            patch: CellPatch, or a mapping validated through CellPatch.from_dict

        Raises:
            InvalidPatchError: mapping names a field Cell does not have
        """
        if not isinstance(patch, CellPatch):
            patch = CellPatch.from_dict(patch)

        cell = self.cells.get(cell_id)
        if cell is None or not patch:
            return False

        updated = patch.apply(cell)
        if not self._folder_link_allowed(cell, updated):
            return False
        self.cells[cell_id] = updated

        if updated.type is CellType.GROUP and updated.group_id != _linked_group(cell):
            group = self.groups[updated.group_id]
            self.groups[group.id] = replace(group, parent_id=self.plane_of(cell_id))

        # Folder title mirrors its group's title
        if updated.type is CellType.GROUP and updated.group_id in self.groups and updated.title != cell.title:
            group = self.groups[updated.group_id]
            self.groups[group.id] = replace(group, title=updated.title)

        self._notify()
        return True

    def _folder_link_allowed(self, before: Cell, after: Cell) -> bool:
        """
        Check a cell edit against the group hierarchy.

        A folder cell stays bound to its group while the group exists. A
        cell may only become the folder of a known group that has no folder
        yet and is not the plane holding the cell or one of its ancestors.
        """
        old_group = _linked_group(before)
        new_group = _linked_group(after)
        if old_group == new_group:
            return True
        if old_group in self.groups:
            logger.info(f"Refusing to unlink folder cell {before.id} from group {old_group}")
            return False
        if new_group is None:
            return True
        if new_group not in self.groups or self.folder_cell_for(new_group) is not None:
            logger.info(f"Refusing to link cell {before.id} to group {new_group}")
            return False
        plane = self.plane_of(before.id)
        if plane is not None and plane in self.descendant_group_ids(new_group):
            logger.info(f"Refusing to link cell {before.id} to enclosing group {new_group}")
            return False
        return True

    def move_cell(self, cell_id: str, cube: Cube) -> bool:
        """Rewrite a cell's cube. No collision check."""
        cell = self.cells.get(cell_id)
        if cell is None:
            return False
        self.cells[cell_id] = replace(cell, cube=cube)
        self._notify()
        return True

    def move_cells(self, cell_ids: list[str], delta: Cube) -> list[str]:
        """
        Translate several cells by the same vector.

        Returns:
            Ids that were actually moved (unknown ids are skipped)
        """
        moved = []
        for cid in cell_ids:
            cell = self.cells.get(cid)
            if cell is None:
                continue
            self.cells[cid] = replace(cell, cube=cell.cube + delta)
            moved.append(cid)

        if moved:
            self._notify()
        return moved

    def swap_cells(self, first_id: str, second_id: str) -> bool:
        first = self.cells.get(first_id)
        second = self.cells.get(second_id)
        if first is None or second is None or first_id == second_id:
            return False

        self.cells[first_id] = replace(first, cube=second.cube)
        self.cells[second_id] = replace(second, cube=first.cube)
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Groups

    def add_group(self, group: Group) -> bool:
        """Register a bare group record."""
        if group.id in self.groups:
            return False
        self.groups[group.id] = group
        self._notify()
        return True

    def create_group_folder(self, name: str, location_cell_id: Optional[str] = None) -> Optional[str]:
        """
        Create a group together with the GROUP cell that opens it.

        If `location_cell_id` names a regular (non-system, non-group) cell,
        that cell becomes the folder in place and a copy of it is placed
        inside the new group. Otherwise a new folder cell is put on the
        first free cube next to the location cell (or the origin).

        Returns:
            The new group id, or None if no free cube could be found
        """
        location = self.cells.get(location_cell_id) if location_cell_id else None
        group_id = new_id()
        system_cells = create_default_group_cells()

        if location is not None and not location.is_system and location.type is not CellType.GROUP:
            payload = replace(location, id=new_id(), cube=CONVERTED_PAYLOAD_CUBE)
            folder = replace(
                location,
                type=CellType.GROUP,
                title=name,
                group_id=group_id,
                shortcut=None,
                target=None,
                args=None,
                working_dir=None,
            )
            group = Group(
                id=group_id,
                title=name,
                cells=[cell.id for cell in system_cells] + [payload.id],
                parent_id=self.plane_of(location.id),
            )
            self.cells[folder.id] = folder
            self.cells[payload.id] = payload
        else:
            plane = self._plane_ids(self.active_group_id)
            if plane is None:
                return None

            anchor = location.cube if location is not None else ORIGIN
            occupied = self.occupied_keys(self.active_group_id)
            cube = find_empty_adjacent_cube(anchor, occupied)
            if cube is None:
                logger.info(f"All neighbors of {anchor.key} are taken, searching further out")
                cube = find_nearest_empty_cube(anchor, occupied)
            if cube is None:
                logger.warning(f"No free cube near {anchor.key}, group '{name}' not created")
                return None

            folder = Cell(id=new_id(), type=CellType.GROUP, cube=cube, title=name, group_id=group_id)
            group = Group(
                id=group_id,
                title=name,
                cells=[cell.id for cell in system_cells],
                parent_id=self.active_group_id,
            )
            self.cells[folder.id] = folder
            plane.append(folder.id)

        for cell in system_cells:
            self.cells[cell.id] = cell
        self.groups[group_id] = group

        logger.debug(f"Created group '{name}' ({group_id})")
        self._notify()
        return group_id

    def rename_group(self, group_id: str, title: str) -> bool:
        """Rename a group and its folder cell together."""
        group = self.groups.get(group_id)
        if group is None:
            return False

        self.groups[group_id] = replace(group, title=title)
        folder = self.folder_cell_for(group_id)
        if folder is not None:
            self.cells[folder.id] = replace(folder, title=title)

        self._notify()
        return True

    def update_group(self, group_id: str, patch: Union[GroupPatch, Mapping[str, Any]]) -> bool:
        """
        Apply a partial update to a group.

        A title change goes through rename_group. A parent change that would
        put the group under itself or one of its descendants is refused.
        """
        if not isinstance(patch, GroupPatch):
            patch = GroupPatch.from_dict(patch)

        group = self.groups.get(group_id)
        if group is None or not patch:
            return False

        changes = patch.changes()
        parent_id = changes.get("parent_id", group.parent_id)
        if parent_id is not None and (
            parent_id not in self.groups or parent_id in self.descendant_group_ids(group_id)
        ):
            logger.info(f"Refusing to re-parent group {group_id} under {parent_id}")
            return False

        if "title" in changes and changes["title"] != group.title:
            folder = self.folder_cell_for(group_id)
            if folder is not None:
                self.cells[folder.id] = replace(folder, title=changes["title"])

        self.groups[group_id] = patch.apply(group)
        self._notify()
        return True

    def delete_group(self, group_id: str) -> list[str]:
        """
        Delete a group, everything it contains, and its folder cell.

        Returns:
            All removed cell ids (folder cell last)
        """
        if group_id not in self.groups:
            return []

        folder = self.folder_cell_for(group_id)
        removed = self._drop_group_subtree(group_id)

        if folder is not None:
            membership = self._membership(folder.id)
            if membership is not None:
                membership.remove(folder.id)
            self.cells.pop(folder.id, None)
            removed.append(folder.id)

        logger.debug(f"Deleted group {group_id} ({len(removed)} cells)")
        self._notify()
        return removed

    def move_group(self, group_id: str, delta: Cube) -> bool:
        """Translate the folder cell of a group within its plane."""
        folder = self.folder_cell_for(group_id)
        if folder is None:
            return False
        return self.move_cell(folder.id, folder.cube + delta)

    def move_cell_to_group(self, cell_id: str, target_group_id: str) -> bool:
        """
        Move a cell into another group's plane.

        The cell keeps its cube when that cube is free in the target plane;
        otherwise it lands on the nearest free cube around it. The move is
        refused when no free cube is found.

        Refused for system cells, for a cell already in the target, and for
        a GROUP cell whose group is the target or one of its ancestors
        (that would make the hierarchy cyclic).
        """
        cell = self.cells.get(cell_id)
        target = self.groups.get(target_group_id)
        if cell is None or target is None or cell.is_system:
            return False

        source = self._membership(cell_id)
        if source is target.cells:
            return False

        if cell.type is CellType.GROUP and cell.group_id:
            if target_group_id in self.descendant_group_ids(cell.group_id):
                logger.info(f"Refusing to move group cell {cell_id} into its own subtree")
                return False

        occupied = self.occupied_keys(target_group_id)
        cube = cell.cube
        if cube.key in occupied:
            cube = find_nearest_empty_cube(cube, occupied)
            if cube is None:
                logger.warning(f"No free cube in group {target_group_id} for cell {cell_id}")
                return False

        if cell.type is CellType.GROUP and cell.group_id:
            moved_group = self.groups.get(cell.group_id)
            if moved_group is not None:
                self.groups[moved_group.id] = replace(moved_group, parent_id=target_group_id)

        if source is not None:
            source.remove(cell_id)
        target.cells.append(cell_id)
        if cube != cell.cube:
            self.cells[cell_id] = replace(cell, cube=cube)

        logger.debug(f"Moved cell {cell_id} into group {target_group_id}")
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Navigation

    def set_active_group(self, group_id: Optional[str]) -> bool:
        """Switch the active plane and persist the choice."""
        return self._navigate(group_id, persist=True)

    def navigate_to_group(self, group_id: Optional[str]) -> bool:
        """Switch the active plane for viewing only (not persisted)."""
        return self._navigate(group_id, persist=False)

    def _navigate(self, group_id: Optional[str], persist: bool) -> bool:
        if group_id is not None and group_id not in self.groups:
            return False
        self.active_group_id = group_id
        self._notify(persist=persist)
        return True

    def enter_group(self, group_id: str) -> bool:
        return self.set_active_group(group_id)

    def exit_group(self) -> bool:
        """Go up to the active group's parent. No-op on the root plane."""
        if self.active_group_id is None:
            return False
        group = self.groups.get(self.active_group_id)
        parent_id = group.parent_id if group else None
        if parent_id not in self.groups:
            parent_id = None
        return self.set_active_group(parent_id)

    # ------------------------------------------------------------------
    # Preferences

    def update_preferences(self, section: str, updates: Mapping[str, Any]) -> bool:
        """Merge updates into one preference section (appearance, grid, ...)."""
        if section not in self.preferences:
            return False
        self.preferences[section] = _deep_merge(self.preferences[section], dict(updates))
        self._notify()
        return True

    def set_search_history(self, history: list[str]) -> None:
        self.search_history = list(history)
        self._notify()

    # ------------------------------------------------------------------
    # Persistence shape

    def to_settings(self) -> dict[str, Any]:
        """Flatten the registry into the persisted settings layout."""
        settings: dict[str, Any] = {
            "schemaVersion": SCHEMA_VERSION,
            "cells": [cell.to_dict() for cell in self.cells.values()],
            "groups": [group.to_dict() for group in self.groups.values()],
            "activeGroupId": self.active_group_id,
        }
        for section in PREFERENCE_SECTIONS:
            settings[section] = copy.deepcopy(self.preferences.get(section, {}))
        settings["hotkeys"] = dict(self.hotkeys)
        settings["iconCacheIndex"] = dict(self.icon_cache_index)
        settings["searchHistory"] = list(self.search_history)
        return settings

    def load_from_settings(self, settings: Mapping[str, Any]) -> None:
        """
        Replace the registry contents with a previously saved settings dict.

        Root membership is recomputed as every cell not listed by any group,
        with the root system cells first. Malformed entries are skipped.
        Listeners are notified; nothing is persisted.
        """
        cells = {cell.id: replace(cell) for cell in ROOT_SYSTEM_CELLS}
        loaded_ids = []
        for data in settings.get("cells") or []:
            try:
                cell = Cell.from_dict(data)
            except (KeyError, TypeError, ValueError):
                logger.warning(f"Skipping malformed cell entry: {data!r}")
                continue
            cells[cell.id] = cell
            loaded_ids.append(cell.id)

        groups = {}
        for data in settings.get("groups") or []:
            try:
                group = Group.from_dict(data)
            except (KeyError, TypeError, ValueError):
                logger.warning(f"Skipping malformed group entry: {data!r}")
                continue
            group.cells = [cid for cid in group.cells if cid in cells]
            groups[group.id] = group

        in_groups = {cid for group in groups.values() for cid in group.cells}
        root_ids = [cid for cid in ROOT_SYSTEM_IDS if cid not in in_groups]
        root_ids += [
            cid for cid in dict.fromkeys(loaded_ids)
            if cid not in in_groups and cid not in ROOT_SYSTEM_IDS
        ]

        active = settings.get("activeGroupId")
        if active not in groups:
            active = None

        self.cells = cells
        self.groups = groups
        self.root_cell_ids = root_ids
        self.active_group_id = active

        self.preferences = _deep_merge(DEFAULT_PREFERENCES, {
            section: settings[section]
            for section in PREFERENCE_SECTIONS
            if isinstance(settings.get(section), Mapping)
        })
        self.hotkeys = dict(settings.get("hotkeys") or {})
        self.icon_cache_index = dict(settings.get("iconCacheIndex") or {})
        self.search_history = list(settings.get("searchHistory") or [])

        logger.debug(f"Loaded {len(cells)} cells and {len(groups)} groups from settings")
        self._notify(persist=False)


def _linked_group(cell: Cell) -> Optional[str]:
    """Group a folder cell opens, None for every other cell."""
    return cell.group_id if cell.type is CellType.GROUP else None
