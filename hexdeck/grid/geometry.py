"""
Hex Geometry - Cube-coordinate math for a pointy-top hexagon grid.

All functions are pure and stateless:
  - cube_to_pixel / pixel_to_cube: grid <-> screen projection
  - cube_round: snap fractional cubes back onto the grid
  - cube_distance: hex steps between two cells
  - detect_edge_index: map a click near a cell's edge to a neighbor direction
  - find_empty_adjacent_cube / find_nearest_empty_cube: free-slot lookup

Pixel space has its origin at the root cell's center with y pointing down,
so direction 1 (NE) sits at 300 degrees and direction 5 (SE) at 60 degrees.
"""

import math
from collections.abc import Collection, Iterator

from .models import Cube, Point

HEX_SIZE = 60  # Default hex radius in pixels

# Fixed neighbor order: E, NE, NW, W, SW, SE
CUBE_DIRECTIONS: tuple[Cube, ...] = (
    Cube(1, -1, 0),
    Cube(1, 0, -1),
    Cube(0, 1, -1),
    Cube(-1, 1, 0),
    Cube(-1, 0, 1),
    Cube(0, -1, 1),
)

DIRECTION_NAMES = ("east", "north_east", "north_west", "west", "south_west", "south_east")

# Click must land in [INNER, OUTER) * size from the center to count as an edge click
EDGE_INNER_RATIO = 0.5
EDGE_OUTER_RATIO = 1.1

_SQRT3 = math.sqrt(3)


def cube_to_pixel(cube: Cube, size: float = HEX_SIZE) -> Point:
    """
    Project a cube coordinate to the pixel center of its hexagon.

    Args:
        cube: Grid position
        size: Hex radius in pixels

    Returns:
        Point with x = size*sqrt(3)*(x + z/2), y = size*1.5*z
    """
    px = size * _SQRT3 * (cube.x + cube.z / 2)
    py = size * 1.5 * cube.z
    return Point(px, py)


def pixel_to_cube(point: Point, size: float = HEX_SIZE) -> Cube:
    """
    Find the hexagon containing a pixel position.

    Args:
        point: Pixel position relative to the grid origin
        size: Hex radius in pixels

    Returns:
        The nearest integer cube
    """
    q = (_SQRT3 / 3 * point.x - point.y / 3) / size
    r = (2 / 3 * point.y) / size
    return cube_round(q, -q - r, r)


def cube_round(x: float, y: float, z: float) -> Cube:
    """
    Round a fractional cube to the nearest valid cube.

    Each axis is rounded on its own, then the axis with the largest rounding
    error is recomputed from the other two so that x + y + z stays 0.
    """
    # Halves round up, not to even
    rx, ry, rz = math.floor(x + 0.5), math.floor(y + 0.5), math.floor(z + 0.5)

    dx = abs(rx - x)
    dy = abs(ry - y)
    dz = abs(rz - z)

    if dx > dy and dx > dz:
        rx = -ry - rz
    elif dz > dy:
        rz = -rx - ry
    else:
        ry = -rx - rz

    return Cube(int(rx), int(ry), int(rz))


def cube_distance(a: Cube, b: Cube) -> int:
    """Number of hex steps between two cubes."""
    return (abs(a.x - b.x) + abs(a.y - b.y) + abs(a.z - b.z)) // 2


def cube_neighbor(cube: Cube, direction: int) -> Cube:
    """Neighbor of `cube` in direction 0..5 (see CUBE_DIRECTIONS)."""
    return cube + CUBE_DIRECTIONS[direction % 6]


def cube_neighbors(cube: Cube) -> list[Cube]:
    """All six neighbors in direction order."""
    return [cube + d for d in CUBE_DIRECTIONS]


def cube_ring(center: Cube, radius: int) -> Iterator[Cube]:
    """
    Walk the ring of cells exactly `radius` steps from `center`.

    Radius 1 yields the six neighbors in direction order; larger rings start
    at the east corner and continue in the same rotational sense.
    """
    if radius <= 0:
        yield center
        return
    if radius == 1:
        yield from cube_neighbors(center)
        return

    east = CUBE_DIRECTIONS[0]
    cube = center + Cube(east.x * radius, east.y * radius, east.z * radius)
    # From the east corner, walking NW then W, ... visits the ring counter-clockwise on screen
    for side in range(6):
        step = CUBE_DIRECTIONS[(side + 2) % 6]
        for _ in range(radius):
            yield cube
            cube = cube + step


def detect_edge_index(center: Point, click: Point, size: float = HEX_SIZE) -> int | None:
    """
    Map a click inside a hexagon to the neighbor direction of the nearest edge.

    Args:
        center: Pixel center of the clicked cell
        click: Pixel position of the click
        size: Hex radius in pixels

    Returns:
        Direction index 0..5, or None when the click is near the center
        (activate the cell) or outside the edge tolerance
    """
    dx = click.x - center.x
    dy = click.y - center.y
    dist = math.hypot(dx, dy)

    if dist < size * EDGE_INNER_RATIO:
        return None
    if dist > size * EDGE_OUTER_RATIO:
        return None

    angle = math.degrees(math.atan2(dy, dx))
    if angle < 0:
        angle += 360

    if angle >= 330 or angle < 30:
        return 0  # E
    if angle >= 270:
        return 1  # NE
    if angle >= 210:
        return 2  # NW
    if angle >= 150:
        return 3  # W
    if angle >= 90:
        return 4  # SW
    return 5  # SE


def find_empty_adjacent_cube(origin: Cube, occupied: Collection[str]) -> Cube | None:
    """
    First neighbor of `origin` whose key is not in `occupied`.

    Args:
        origin: Cell to search around
        occupied: Set of Cube.key strings already taken in the plane

    Returns:
        The free neighbor, or None when all six are occupied
    """
    for cube in cube_neighbors(origin):
        if cube.key not in occupied:
            return cube
    return None


def find_nearest_empty_cube(
    origin: Cube,
    occupied: Collection[str],
    max_radius: int = 16,
) -> Cube | None:
    """
    Search outward ring by ring for a free cube.

    Ring 1 is scanned in the same order as find_empty_adjacent_cube, so the
    two agree whenever a direct neighbor is free.
    """
    for radius in range(1, max_radius + 1):
        for cube in cube_ring(origin, radius):
            if cube.key not in occupied:
                return cube
    return None
