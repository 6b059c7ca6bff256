"""
Placement Resolver - Decide what a drag-and-drop release does.

On pointer-up the resolver picks exactly one outcome:
  - MERGED:   released on a group cell, movers go into that group
  - MOVED:    free, connected target, all movers translated together
  - SWAPPED:  single mover landed on an occupied cube next to the cluster
  - REJECTED: anything else (overlap with several movers, or disconnected)

Decision table for the positional case:

  overlap | connected | movers | outcome
  --------+-----------+--------+---------
  no      | yes       | any    | MOVED
  yes     | yes       | 1      | SWAPPED
  *       | no        | any    | REJECTED
  yes     | yes       | 2+     | REJECTED

An empty plane (no non-moving cells) always counts as connected.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from loguru import logger

from .geometry import HEX_SIZE, cube_distance, cube_to_pixel, pixel_to_cube
from .models import ORIGIN, Cell, CellType, Cube, Point
from .registry import GridRegistry
from .selection import Selection

# Release within this fraction of hex_size from a group cell's center drops into it
GROUP_DROP_RATIO = 0.8


class PlacementOutcome(str, Enum):
    MOVED = "moved"
    SWAPPED = "swapped"
    MERGED = "merged"
    REJECTED = "rejected"


@dataclass
class PlacementResult:
    """What a drag release did."""
    outcome: PlacementOutcome
    moved_ids: list[str] = field(default_factory=list)
    delta: Cube = ORIGIN
    target_id: Optional[str] = None  # swap partner or group cell merged into

    @property
    def accepted(self) -> bool:
        return self.outcome is not PlacementOutcome.REJECTED


@dataclass
class DragPreview:
    """Hover feedback while a drag is in progress."""
    hovered_cube: Cube
    group_cell_id: Optional[str] = None


class PlacementResolver:
    """Interprets drag releases against the active plane."""

    def __init__(self, registry: GridRegistry, selection: Selection, hex_size: float = HEX_SIZE):
        self.registry = registry
        self.selection = selection
        self.hex_size = hex_size

    def _moving_ids(self, start_cell_id: str) -> list[str]:
        on_plane = {cell.id for cell in self.registry.cells_in_active_plane()}
        ids = [cid for cid in self.selection.ids if cid in on_plane]
        return ids or [start_cell_id]

    def _group_cell_under(self, point: Point, non_moving: list[Cell]) -> Optional[Cell]:
        limit = self.hex_size * GROUP_DROP_RATIO
        for cell in non_moving:
            if cell.type is not CellType.GROUP or not cell.group_id:
                continue
            center = cube_to_pixel(cell.cube, self.hex_size)
            if math.hypot(center.x - point.x, center.y - point.y) < limit:
                return cell
        return None

    def _split(self, moving_ids: list[str]) -> list[Cell]:
        moving = set(moving_ids)
        return [c for c in self.registry.cells_in_active_plane() if c.id not in moving]

    def preview(self, start_cell_id: str, point: Point) -> Optional[DragPreview]:
        """Hovered cube and group drop target for the current pointer position."""
        if start_cell_id not in self.registry.cells:
            return None
        non_moving = self._split(self._moving_ids(start_cell_id))
        group_cell = self._group_cell_under(point, non_moving)
        return DragPreview(
            hovered_cube=pixel_to_cube(point, self.hex_size),
            group_cell_id=group_cell.id if group_cell else None,
        )

    def resolve(self, start_cell_id: str, release_point: Point) -> PlacementResult:
        """
        Apply the outcome of releasing a drag that started on `start_cell_id`.

        Args:
            start_cell_id: Cell the pointer went down on
            release_point: Pointer-up position in grid pixel space

        Returns:
            PlacementResult describing the mutation (or rejection)
        """
        start = self.registry.get_cell(start_cell_id)
        if start is None:
            return PlacementResult(PlacementOutcome.REJECTED)

        delta = pixel_to_cube(release_point, self.hex_size) - start.cube
        moving_ids = self._moving_ids(start_cell_id)
        non_moving = self._split(moving_ids)

        group_cell = self._group_cell_under(release_point, non_moving)
        if group_cell is not None:
            merged = [
                cid for cid in moving_ids
                if self.registry.move_cell_to_group(cid, group_cell.group_id)
            ]
            self.selection.clear()
            logger.debug(f"Merged {len(merged)} cell(s) into group {group_cell.group_id}")
            return PlacementResult(PlacementOutcome.MERGED, merged, delta, group_cell.id)

        occupied = {cell.cube: cell for cell in non_moving}
        targets = {cid: self.registry.cells[cid].cube + delta for cid in moving_ids}

        overlap = any(cube in occupied for cube in targets.values())
        connected = not non_moving or any(
            cube_distance(cube, other.cube) <= 1
            for cube in targets.values()
            for other in non_moving
        )

        if connected and not overlap:
            moved = self.registry.move_cells(moving_ids, delta)
            return PlacementResult(PlacementOutcome.MOVED, moved, delta)

        if connected and overlap and len(moving_ids) == 1:
            mover = moving_ids[0]
            partner = occupied[targets[mover]]
            self.registry.swap_cells(mover, partner.id)
            return PlacementResult(PlacementOutcome.SWAPPED, [mover], delta, partner.id)

        reason = "disconnected" if not connected else "overlap with multiple movers"
        logger.info(f"Rejected drop of {len(moving_ids)} cell(s) by {delta.key}: {reason}")
        return PlacementResult(PlacementOutcome.REJECTED, [], delta)
