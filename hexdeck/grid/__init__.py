"""
Grid package - Hexagonal planes of launcher cells.

  - models:      Cube, Cell, Group and their patches
  - geometry:    cube/pixel math and neighbor lookup
  - registry:    the in-memory store of cells and groups
  - placement:   drag-and-drop outcome rules
  - interaction: pointer gestures and cell clicks
  - keyboard:    key bindings
"""

from .models import Cell, CellPatch, CellType, Cube, Group, GroupPatch, InvalidPatchError, Point, ShortcutInfo
from .registry import GridRegistry
from .selection import Selection

__all__ = [
    "Cell",
    "CellPatch",
    "CellType",
    "Cube",
    "Group",
    "GroupPatch",
    "GridRegistry",
    "InvalidPatchError",
    "Point",
    "Selection",
    "ShortcutInfo",
]
