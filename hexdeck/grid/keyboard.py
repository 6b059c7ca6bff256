"""
Keyboard controller - Grid shortcuts and hex navigation.

Bindings (defaults):
  - Delete:        delete selected cells (groups recursively)
  - Ctrl+G:        turn the first selected cell into a group
  - F2:            rename the selected cell
  - Ctrl+F:        open search
  - Ctrl+N:        pick a file and place a shortcut to it
  - Ctrl+Shift+N:  pick a folder and place a shortcut to it
  - Q/W/A/S/Z/X:   move the selection to the neighbor in that direction
  - Shift + nav:   create a new cell in that direction

Shortcut strings look like "Ctrl+Shift+N"; the last part is the key.
"""

import os
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from loguru import logger

from ..services.platform import FilePicker, IconProvider
from .geometry import cube_neighbor, find_empty_adjacent_cube, find_nearest_empty_cube
from .groups import new_id
from .models import ORIGIN, Cell, CellType, ShortcutInfo
from .registry import GridRegistry
from .selection import Selection

DEFAULT_GROUP_NAME = "New Group"

# hexNav binding name -> CUBE_DIRECTIONS index
NAV_DIRECTIONS = {
    "east": 0,
    "northEast": 1,
    "northWest": 2,
    "west": 3,
    "southWest": 4,
    "southEast": 5,
}


def _default_hex_nav() -> dict[str, str]:
    return {
        "northEast": "W",
        "east": "S",
        "southEast": "X",
        "southWest": "Z",
        "west": "A",
        "northWest": "Q",
    }


def _default_actions() -> dict[str, str]:
    return {
        "createShortcutFile": "Ctrl+N",
        "createShortcutFolder": "Ctrl+Shift+N",
        "createGroup": "Ctrl+G",
        "renameCell": "F2",
        "deleteCell": "Delete",
    }


@dataclass
class KeyBindings:
    global_toggle: str = "Alt+Space"
    hex_nav: dict[str, str] = field(default_factory=_default_hex_nav)
    actions: dict[str, str] = field(default_factory=_default_actions)
    directional_create_modifier: str = "Shift"
    search: str = "Ctrl+F"

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "KeyBindings":
        """Build bindings from the persisted keyBindings section, keeping defaults for gaps."""
        bindings = cls()
        if not data:
            return bindings
        bindings.global_toggle = data.get("globalToggle", bindings.global_toggle)
        bindings.hex_nav.update(data.get("hexNav") or {})
        bindings.actions.update(data.get("actions") or {})
        bindings.directional_create_modifier = data.get(
            "directionalCreateModifier", bindings.directional_create_modifier
        )
        bindings.search = data.get("search", bindings.search)
        return bindings

    def to_dict(self) -> dict[str, Any]:
        return {
            "globalToggle": self.global_toggle,
            "hexNav": dict(self.hex_nav),
            "actions": dict(self.actions),
            "directionalCreateModifier": self.directional_create_modifier,
            "search": self.search,
        }


@dataclass(frozen=True)
class Shortcut:
    key: str
    ctrl: bool = False
    shift: bool = False
    alt: bool = False


def parse_shortcut(shortcut: str) -> Shortcut:
    parts = [p.strip().lower() for p in shortcut.split("+")]
    return Shortcut(
        key=parts[-1],
        ctrl="ctrl" in parts[:-1],
        shift="shift" in parts[:-1],
        alt="alt" in parts[:-1],
    )


def matches_shortcut(shortcut: str, key: str, ctrl: bool = False, shift: bool = False, alt: bool = False) -> bool:
    """True if the pressed key and modifiers are exactly `shortcut`."""
    parsed = parse_shortcut(shortcut)
    return (
        key.lower() == parsed.key
        and ctrl == parsed.ctrl
        and shift == parsed.shift
        and alt == parsed.alt
    )


class KeyboardController:
    """
    Applies grid key bindings to the registry and selection.

    Args:
        registry: Grid to act on
        selection: Current selection
        bindings: Key bindings (defaults when None)
        prompt: Asks the user for text, `prompt(message, default) -> str | None`
        on_search: Called when the search shortcut fires
        picker: File dialog for the create-shortcut bindings
        icons: Icon lookup for newly created shortcuts
    """

    def __init__(
        self,
        registry: GridRegistry,
        selection: Selection,
        bindings: Optional[KeyBindings] = None,
        prompt: Optional[Callable[[str, str], Optional[str]]] = None,
        on_search: Optional[Callable[[], None]] = None,
        picker: Optional[FilePicker] = None,
        icons: Optional[IconProvider] = None,
    ):
        self.registry = registry
        self.selection = selection
        self.bindings = bindings or KeyBindings()
        self.prompt = prompt
        self.on_search = on_search
        self.picker = picker
        self.icons = icons

    def handle_key(self, key: str, ctrl: bool = False, shift: bool = False, alt: bool = False) -> bool:
        """
        Dispatch one key press.

        Returns:
            True if a binding matched and was handled
        """
        actions = self.bindings.actions

        if matches_shortcut(actions["deleteCell"], key, ctrl, shift, alt):
            return self._delete_selected()
        if matches_shortcut(actions["createGroup"], key, ctrl, shift, alt):
            return self._create_group()
        if matches_shortcut(actions["renameCell"], key, ctrl, shift, alt):
            return self._rename_selected()
        if matches_shortcut(actions["createShortcutFile"], key, ctrl, shift, alt):
            return self._create_shortcut(directory=False)
        if matches_shortcut(actions["createShortcutFolder"], key, ctrl, shift, alt):
            return self._create_shortcut(directory=True)
        if matches_shortcut(self.bindings.search, key, ctrl, shift, alt):
            if self.on_search:
                self.on_search()
            return True

        modifier = parse_shortcut(self.bindings.directional_create_modifier + "+x")
        for name, nav_key in self.bindings.hex_nav.items():
            direction = NAV_DIRECTIONS.get(name)
            if direction is None or key.lower() != nav_key.lower():
                continue
            if (ctrl, shift, alt) == (modifier.ctrl, modifier.shift, modifier.alt):
                return self._create_in_direction(direction)
            if not (ctrl or shift or alt):
                return self._navigate(direction)
        return False

    def _single_selected(self) -> Optional[Cell]:
        if len(self.selection) != 1:
            return None
        return self.registry.get_cell(self.selection.ids[0])

    def _delete_selected(self) -> bool:
        if not len(self.selection):
            return False
        for cell_id in self.selection.ids:
            cell = self.registry.get_cell(cell_id)
            if cell is None:
                continue
            if cell.type is CellType.GROUP and cell.group_id:
                self.registry.delete_group(cell.group_id)
            else:
                self.registry.remove_cell(cell_id)
        self.selection.clear()
        return True

    def _ask(self, message: str, default: str) -> Optional[str]:
        if self.prompt is None:
            return default
        answer = self.prompt(message, default)
        if answer is None or not answer.strip():
            return None
        return answer.strip()

    def _create_group(self) -> bool:
        if not len(self.selection):
            return False
        name = self._ask("Enter group name:", DEFAULT_GROUP_NAME)
        if name is None:
            return True
        self.registry.create_group_folder(name, self.selection.ids[0])
        return True

    def _rename_selected(self) -> bool:
        cell = self._single_selected()
        if cell is None or cell.type is CellType.LAUNCHER_SETTING:
            return False
        title = self._ask("Enter new name:", cell.title)
        if title is None:
            return True
        if cell.type is CellType.GROUP and cell.group_id:
            self.registry.rename_group(cell.group_id, title)
        else:
            self.registry.update_cell(cell.id, {"title": title})
        return True

    def _navigate(self, direction: int) -> bool:
        cell = self._single_selected()
        if cell is None:
            return False
        neighbor = self.registry.cell_at(cube_neighbor(cell.cube, direction), self.registry.active_group_id)
        if neighbor is None:
            return False
        self.selection.select(neighbor.id)
        return True

    def _create_in_direction(self, direction: int) -> bool:
        cell = self._single_selected()
        if cell is None:
            return False
        cube = cube_neighbor(cell.cube, direction)
        new_cell = Cell(id=new_id(), type=CellType.SHORTCUT, cube=cube, title="New Shortcut")
        if not self.registry.add_cell(new_cell):
            logger.debug(f"Cannot create cell at occupied {cube.key}")
            return False
        self.selection.select(new_cell.id)
        return True

    def _create_shortcut(self, directory: bool) -> bool:
        """Ask for a file or folder and place a shortcut next to the selection."""
        if self.picker is None:
            return False

        path = self.picker.pick_file({"directory": directory})
        if not path:
            return True

        anchor = self._single_selected()
        origin = anchor.cube if anchor is not None else ORIGIN
        occupied = self.registry.occupied_keys(self.registry.active_group_id)
        cube = find_empty_adjacent_cube(origin, occupied) or find_nearest_empty_cube(origin, occupied)
        if cube is None:
            logger.warning(f"No free cube near {origin.key} for {path}")
            return False

        icon = None
        if self.icons is not None:
            try:
                icon = self.icons.get_file_icon(path)
            except Exception:
                logger.exception(f"Failed to load icon for {path}")

        cell = Cell(
            id=new_id(),
            type=CellType.SHORTCUT,
            cube=cube,
            title=_title_from_path(path),
            icon=icon,
            shortcut=ShortcutInfo(kind="folder" if directory else "file", target_path=path),
        )
        if self.registry.add_cell(cell):
            self.selection.select(cell.id)
        return True


def _title_from_path(path: str) -> str:
    """Last path component without its extension; handles / and \\ separators."""
    name = re.split(r"[\\/]", path.rstrip("\\/"))[-1]
    stem, _ext = os.path.splitext(name)
    return stem or name or path
