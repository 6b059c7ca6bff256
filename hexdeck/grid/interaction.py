"""
Pointer interaction - Turn raw pointer events into drags and clicks.

A gesture starts on pointer-down over a cell (primary button only). It
becomes a drag once the pointer travels more than DRAG_THRESHOLD pixels;
releasing a drag runs the PlacementResolver. Releasing without that much
movement is a click, handled by CellClickHandler:

  - Ctrl/Shift click toggles the cell in the selection
  - a click near an edge creates a new cell in that direction
  - a click near the center activates the cell according to its type

All points are in grid pixel space (origin at the root cell's center).
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from loguru import logger

from ..services.platform import LauncherActions, ProcessLauncher
from .geometry import HEX_SIZE, cube_neighbor, cube_to_pixel, detect_edge_index
from .groups import new_id
from .models import Cell, CellType, Point
from .placement import PlacementResolver, PlacementResult
from .registry import GridRegistry
from .selection import Selection

DRAG_THRESHOLD = 5  # pixels
PRIMARY_BUTTON = 0

NEW_CELL_TITLE = "New Shortcut"


class ClickOutcome(str, Enum):
    CREATED = "created"      # new cell placed next to the clicked one
    REJECTED = "rejected"    # edge click onto an occupied cube
    ACTIVATED = "activated"  # cell action ran
    SELECTED = "selected"    # modifier click only changed the selection
    IGNORED = "ignored"      # unknown cell or nothing to do


@dataclass
class ClickResult:
    outcome: ClickOutcome
    cell_id: Optional[str] = None
    edge: Optional[int] = None


class CellClickHandler:
    """Handles non-drag clicks on cells."""

    def __init__(
        self,
        registry: GridRegistry,
        selection: Selection,
        actions: Optional[LauncherActions] = None,
        launcher: Optional[ProcessLauncher] = None,
        hex_size: float = HEX_SIZE,
    ):
        self.registry = registry
        self.selection = selection
        self.actions = actions
        self.launcher = launcher
        self.hex_size = hex_size

    def handle_click(self, cell_id: str, point: Point, ctrl: bool = False, shift: bool = False) -> ClickResult:
        """
        Route a click on a cell.

        Args:
            cell_id: Clicked cell
            point: Click position in grid pixel space
            ctrl: Ctrl held
            shift: Shift held

        Returns:
            ClickResult; `cell_id` is the created cell for CREATED, else the
            clicked one
        """
        cell = self.registry.get_cell(cell_id)
        if cell is None:
            return ClickResult(ClickOutcome.IGNORED)

        if ctrl or shift:
            self.selection.select(cell_id, multi=True)
            return ClickResult(ClickOutcome.SELECTED, cell_id)

        self.selection.select(cell_id)

        center = cube_to_pixel(cell.cube, self.hex_size)
        edge = detect_edge_index(center, point, self.hex_size)
        if edge is not None:
            return self._create_neighbor(cell, edge)

        return self.activate(cell)

    def _create_neighbor(self, cell: Cell, edge: int) -> ClickResult:
        cube = cube_neighbor(cell.cube, edge)
        if cube.key in self.registry.occupied_keys(self.registry.active_group_id):
            logger.debug(f"Edge {edge} of {cell.id} leads to occupied {cube.key}")
            return ClickResult(ClickOutcome.REJECTED, cell.id, edge)

        new_cell = Cell(id=new_id(), type=CellType.SHORTCUT, cube=cube, title=NEW_CELL_TITLE)
        if not self.registry.add_cell(new_cell):
            return ClickResult(ClickOutcome.REJECTED, cell.id, edge)
        return ClickResult(ClickOutcome.CREATED, new_cell.id, edge)

    def activate(self, cell: Cell) -> ClickResult:
        """Run the action bound to a cell's type."""
        if cell.type is CellType.SHORTCUT:
            self._launch(cell)
        elif cell.type is CellType.GROUP and cell.group_id:
            self.registry.enter_group(cell.group_id)
        elif cell.type is CellType.GROUP_BACK:
            self.registry.exit_group()
        elif cell.type is CellType.LAUNCHER_SETTING and self.actions:
            self.actions.open_settings()
        elif cell.type is CellType.GROUP_CLOSE and self.actions:
            self.actions.hide_window()
        elif cell.type is CellType.GROUP_TREE and self.actions:
            self.actions.open_tree()
        else:
            return ClickResult(ClickOutcome.IGNORED, cell.id)
        return ClickResult(ClickOutcome.ACTIVATED, cell.id)

    def _launch(self, cell: Cell) -> None:
        target = cell.launch_target
        if not target or self.launcher is None:
            logger.debug(f"Shortcut {cell.id} has nothing to launch")
            return

        shortcut = cell.shortcut
        args = shortcut.arguments if shortcut and shortcut.arguments is not None else cell.args
        cwd = shortcut.working_directory if shortcut and shortcut.working_directory else cell.working_dir

        try:
            self.launcher.launch_process(target, args, cwd)
            logger.debug(f"Launched {target}")
        except Exception:
            logger.exception(f"Failed to launch {target}")

    def handle_background_click(self) -> None:
        """Click on empty space: drop the selection and hide the launcher."""
        self.selection.clear()
        if self.actions:
            self.actions.hide_window()


class GestureTracker:
    """
    Tracks one pointer gesture from press to release.

    Usage:
        tracker.pointer_down(cell.id, point)
        tracker.pointer_move(point)   # any number of times
        result = tracker.pointer_up(point)
    """

    def __init__(
        self,
        registry: GridRegistry,
        selection: Selection,
        resolver: PlacementResolver,
        click_handler: CellClickHandler,
        threshold: float = DRAG_THRESHOLD,
    ):
        self.registry = registry
        self.selection = selection
        self.resolver = resolver
        self.click_handler = click_handler
        self.threshold = threshold
        self._reset()

    def _reset(self) -> None:
        self.cell_id: Optional[str] = None
        self.start: Optional[Point] = None
        self.is_dragging = False
        self.drag_position: Optional[Point] = None
        self.hovered_cube = None
        self.hovered_group_cell_id: Optional[str] = None
        self._ctrl = False
        self._shift = False

    @property
    def active(self) -> bool:
        return self.cell_id is not None

    def pointer_down(
        self,
        cell_id: str,
        point: Point,
        button: int = PRIMARY_BUTTON,
        ctrl: bool = False,
        shift: bool = False,
    ) -> bool:
        """
        Start a gesture on a cell.

        Returns:
            True if a gesture started (primary button on a known cell)
        """
        if button != PRIMARY_BUTTON or cell_id not in self.registry.cells:
            return False

        self._reset()
        self.cell_id = cell_id
        self.start = point
        self._ctrl = ctrl
        self._shift = shift

        if cell_id not in self.selection and not ctrl and not shift:
            self.selection.select(cell_id)
        return True

    def pointer_move(self, point: Point) -> None:
        if not self.active:
            return

        if not self.is_dragging:
            moved = math.hypot(point.x - self.start.x, point.y - self.start.y)
            if moved <= self.threshold:
                return
            self.is_dragging = True

        self.drag_position = point
        preview = self.resolver.preview(self.cell_id, point)
        if preview is not None:
            self.hovered_cube = preview.hovered_cube
            self.hovered_group_cell_id = preview.group_cell_id

    def pointer_up(self, point: Point) -> Optional[Union[PlacementResult, ClickResult]]:
        """
        Finish the gesture.

        Returns:
            PlacementResult for a drag, ClickResult for a click, None when
            no gesture was active
        """
        if not self.active:
            return None

        cell_id, ctrl, shift = self.cell_id, self._ctrl, self._shift
        # A release past the threshold counts even without intermediate moves
        dragging = self.is_dragging or math.hypot(point.x - self.start.x, point.y - self.start.y) > self.threshold
        self._reset()

        if dragging:
            return self.resolver.resolve(cell_id, point)
        return self.click_handler.handle_click(cell_id, point, ctrl=ctrl, shift=shift)

    def cancel(self) -> None:
        self._reset()
