"""
Group helpers - System cell seeding and subtree walks.

These functions never mutate the maps they are given; the registry decides
what to do with the ids they return.
"""

import uuid
from collections.abc import Mapping

from .models import Cell, CellType, Cube, Group

# Layout of the system cells seeded into every new group plane
GROUP_SYSTEM_LAYOUT = (
    (CellType.LAUNCHER_SETTING, Cube(0, 0, 0), "Settings"),
    (CellType.GROUP_BACK, Cube(-1, 1, 0), "Back"),
    (CellType.GROUP_CLOSE, Cube(1, -1, 0), "Close"),
    (CellType.GROUP_TREE, Cube(0, -1, 1), "Tree"),
)

# Where a converted cell's original payload lands inside its new group
CONVERTED_PAYLOAD_CUBE = Cube(1, 0, -1)

# Root plane has no Back cell: the root cannot be exited
ROOT_SYSTEM_CELLS = (
    Cell(id="root-center", type=CellType.LAUNCHER_SETTING, cube=Cube(0, 0, 0), title="Settings"),
    Cell(id="root-close", type=CellType.GROUP_CLOSE, cube=Cube(0, -1, 1), title="Close"),
    Cell(id="root-tree", type=CellType.GROUP_TREE, cube=Cube(-1, 0, 1), title="Tree"),
)

ROOT_SYSTEM_IDS = tuple(cell.id for cell in ROOT_SYSTEM_CELLS)


def new_id() -> str:
    return str(uuid.uuid4())


def create_default_group_cells() -> list[Cell]:
    """Fresh system cells (settings, back, close, tree) for a new group plane."""
    return [
        Cell(id=new_id(), type=cell_type, cube=cube, title=title)
        for cell_type, cube, title in GROUP_SYSTEM_LAYOUT
    ]


def collect_group_subtree(
    group_id: str,
    groups: Mapping[str, Group],
    cells: Mapping[str, Cell],
) -> tuple[list[str], list[str]]:
    """
    Collect every cell and group inside a group, depth-first.

    Nested groups are visited before the folder cell that points at them,
    so the returned cell ids are in safe deletion order.

    Args:
        group_id: Root of the subtree (the group itself, not its folder cell)
        groups: Group map to read
        cells: Cell map to read

    Returns:
        (cell_ids, group_ids); group_ids ends with group_id. Both are empty
        when group_id is unknown.
    """
    cell_ids: list[str] = []
    group_ids: list[str] = []
    visiting: set[str] = set()

    def walk(gid: str) -> None:
        group = groups.get(gid)
        # Guard against corrupt data containing a cycle
        if group is None or gid in visiting:
            return
        visiting.add(gid)
        for child_id in group.cells:
            child = cells.get(child_id)
            if child is None:
                continue
            if child.type is CellType.GROUP and child.group_id:
                walk(child.group_id)
            cell_ids.append(child_id)
        group_ids.append(gid)

    walk(group_id)
    return cell_ids, group_ids


def descendant_group_ids(
    group_id: str,
    groups: Mapping[str, Group],
    cells: Mapping[str, Cell],
) -> set[str]:
    """Ids of `group_id` and every group nested inside it."""
    _, group_ids = collect_group_subtree(group_id, groups, cells)
    return set(group_ids)
