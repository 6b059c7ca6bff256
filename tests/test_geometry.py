"""
Tests for cube-coordinate math: projection, rounding, distance, edges, free slots.

Pure functions, no fixtures needed.
"""

import math

import pytest

from hexdeck.grid.geometry import (
    CUBE_DIRECTIONS,
    cube_distance,
    cube_neighbor,
    cube_neighbors,
    cube_ring,
    cube_round,
    cube_to_pixel,
    detect_edge_index,
    find_empty_adjacent_cube,
    find_nearest_empty_cube,
    pixel_to_cube,
)
from hexdeck.grid.models import ORIGIN, Cube, Point


SAMPLE_CUBES = [
    Cube(0, 0, 0),
    Cube(1, -1, 0),
    Cube(-3, 1, 2),
    Cube(5, -7, 2),
    Cube(-4, 8, -4),
]


class TestProjection:
    """cube_to_pixel / pixel_to_cube."""

    def test_origin_at_zero(self):
        assert cube_to_pixel(ORIGIN, 60) == Point(0, 0)

    def test_east_neighbor_is_to_the_right(self):
        p = cube_to_pixel(Cube(1, -1, 0), 60)
        assert p.x == pytest.approx(60 * math.sqrt(3))
        assert p.y == pytest.approx(0)

    def test_z_moves_down(self):
        p = cube_to_pixel(Cube(0, -1, 1), 60)
        assert p.x == pytest.approx(30 * math.sqrt(3))
        assert p.y == pytest.approx(90)

    @pytest.mark.parametrize("cube", SAMPLE_CUBES)
    @pytest.mark.parametrize("size", [20, 60, 97.5])
    def test_center_maps_back_to_cube(self, cube, size):
        assert pixel_to_cube(cube_to_pixel(cube, size), size) == cube

    def test_point_slightly_off_center_stays_in_cell(self):
        center = cube_to_pixel(Cube(2, -1, -1), 60)
        assert pixel_to_cube(Point(center.x + 10, center.y - 12), 60) == Cube(2, -1, -1)


class TestRound:
    def test_result_sums_to_zero(self):
        c = cube_round(0.4, -0.9, 0.5)
        assert c.x + c.y + c.z == 0

    def test_integer_input_unchanged(self):
        assert cube_round(2.0, -1.0, -1.0) == Cube(2, -1, -1)

    def test_halves_round_up(self):
        assert cube_round(0.5, -0.5, 0.0) == Cube(1, -1, 0)
        assert cube_round(2.5, -2.5, 0.0) == Cube(3, -3, 0)


class TestDistance:
    @pytest.mark.parametrize("a", SAMPLE_CUBES)
    def test_zero_to_self(self, a):
        assert cube_distance(a, a) == 0

    @pytest.mark.parametrize("a", SAMPLE_CUBES)
    @pytest.mark.parametrize("b", SAMPLE_CUBES)
    def test_symmetric(self, a, b):
        assert cube_distance(a, b) == cube_distance(b, a)

    def test_neighbors_are_one_step(self):
        for n in cube_neighbors(Cube(3, -2, -1)):
            assert cube_distance(n, Cube(3, -2, -1)) == 1

    def test_known_distance(self):
        assert cube_distance(ORIGIN, Cube(3, -1, -2)) == 3


class TestNeighbors:
    def test_direction_order(self):
        assert CUBE_DIRECTIONS == (
            Cube(1, -1, 0),
            Cube(1, 0, -1),
            Cube(0, 1, -1),
            Cube(-1, 1, 0),
            Cube(-1, 0, 1),
            Cube(0, -1, 1),
        )

    def test_neighbor_wraps_direction(self):
        assert cube_neighbor(ORIGIN, 6) == cube_neighbor(ORIGIN, 0)

    @pytest.mark.parametrize("radius", [1, 2, 3, 5])
    def test_ring_size_and_distance(self, radius):
        ring = list(cube_ring(Cube(1, 1, -2), radius))
        assert len(ring) == 6 * radius
        assert len(set(ring)) == 6 * radius
        assert all(cube_distance(c, Cube(1, 1, -2)) == radius for c in ring)

    def test_ring_zero_is_center(self):
        assert list(cube_ring(ORIGIN, 0)) == [ORIGIN]


class TestEdgeDetection:
    """detect_edge_index sectors and dead zones."""

    def test_center_click_returns_none(self):
        assert detect_edge_index(Point(0, 0), Point(5, 5), 60) is None

    def test_inside_inner_radius_returns_none(self):
        assert detect_edge_index(Point(0, 0), Point(29, 0), 60) is None

    def test_outside_outer_radius_returns_none(self):
        assert detect_edge_index(Point(0, 0), Point(67, 0), 60) is None

    @pytest.mark.parametrize("angle, expected", [
        (0, 0),
        (20, 0),
        (60, 5),
        (120, 4),
        (180, 3),
        (240, 2),
        (300, 1),
        (345, 0),
    ])
    def test_sector_mapping(self, angle, expected):
        r = 45
        click = Point(r * math.cos(math.radians(angle)), r * math.sin(math.radians(angle)))
        assert detect_edge_index(Point(0, 0), click, 60) == expected

    def test_edge_direction_points_at_neighbor(self):
        # Clicking toward a neighbor's center picks that neighbor's direction
        for direction, offset in enumerate(CUBE_DIRECTIONS):
            target = cube_to_pixel(offset, 60)
            length = math.hypot(target.x, target.y)
            click = Point(target.x / length * 45, target.y / length * 45)
            assert detect_edge_index(Point(0, 0), click, 60) == direction

    def test_offset_center(self):
        center = Point(100, 100)
        assert detect_edge_index(center, Point(145, 100), 60) == 0


class TestFreeSlots:
    def test_empty_plane_gives_east(self):
        assert find_empty_adjacent_cube(ORIGIN, set()) == Cube(1, -1, 0)

    def test_skips_occupied(self):
        occupied = {Cube(1, -1, 0).key, Cube(1, 0, -1).key}
        assert find_empty_adjacent_cube(ORIGIN, occupied) == Cube(0, 1, -1)

    def test_all_neighbors_taken_returns_none(self):
        occupied = {c.key for c in cube_neighbors(ORIGIN)}
        assert find_empty_adjacent_cube(ORIGIN, occupied) is None

    def test_ring_search_goes_further_out(self):
        occupied = {c.key for c in cube_neighbors(ORIGIN)}
        found = find_nearest_empty_cube(ORIGIN, occupied)
        assert found is not None
        assert cube_distance(ORIGIN, found) == 2

    def test_ring_search_agrees_with_adjacent(self):
        occupied = {Cube(1, -1, 0).key}
        assert find_nearest_empty_cube(ORIGIN, occupied) == find_empty_adjacent_cube(ORIGIN, occupied)

    def test_ring_search_gives_up(self):
        occupied = {c.key for r in (1, 2) for c in cube_ring(ORIGIN, r)}
        assert find_nearest_empty_cube(ORIGIN, occupied, max_radius=2) is None
