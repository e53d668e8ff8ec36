"""Tests for the hex grid."""

import math

import numpy as np
import pytest

from py_hexworld.core.hexgrid import (
    ADJACENT_DIRECTIONS,
    DIRECTION_BEARINGS,
    DIRECTION_ORDER,
    OPPOSITE_DIRECTIONS,
    Direction,
    HexGrid,
)


class TestDirections:
    """Test the direction tables."""

    def test_opposites(self):
        assert OPPOSITE_DIRECTIONS[Direction.SE] == Direction.NW
        assert OPPOSITE_DIRECTIONS[Direction.N] == Direction.S
        assert OPPOSITE_DIRECTIONS[Direction.SW] == Direction.NE
        for direction in DIRECTION_ORDER:
            assert OPPOSITE_DIRECTIONS[OPPOSITE_DIRECTIONS[direction]] == direction

    def test_adjacent_directions_wrap(self):
        assert ADJACENT_DIRECTIONS[Direction.SE] == (Direction.S, Direction.NE)
        assert ADJACENT_DIRECTIONS[Direction.S] == (Direction.SW, Direction.SE)

    def test_bearings(self):
        assert DIRECTION_BEARINGS[Direction.N] == 0
        assert DIRECTION_BEARINGS[Direction.NE] == 60
        assert DIRECTION_BEARINGS[Direction.SE] == 120
        assert DIRECTION_BEARINGS[Direction.S] == 180
        assert DIRECTION_BEARINGS[Direction.SW] == 240
        assert DIRECTION_BEARINGS[Direction.NW] == 300


class TestHexGrid:
    """Test grid construction and lookups."""

    @pytest.fixture
    def grid(self):
        return HexGrid.from_size(10)

    def test_size(self, grid):
        """A size N grid is 2N by N."""
        assert grid.width == 20
        assert grid.height == 10
        assert len(grid) == 200
        assert [h.index for h in grid] == list(range(200))

    def test_index_layout(self, grid):
        hex_ = grid.at(3, 4)
        assert hex_.index == 4 * 20 + 3
        assert grid.index_of(3, 4) == hex_.index

    def test_invalid_dimensions(self):
        with pytest.raises(ValueError):
            HexGrid(0, 5)
        with pytest.raises(ValueError):
            HexGrid(5, 5)

    def test_outside_lookups_return_none(self, grid):
        assert grid.at(-1, 0) is None
        assert grid.at(0, 10) is None
        assert grid.index_of(20, 0) == -1

    def test_neighbor_symmetry(self, grid):
        """Stepping back the opposite way returns to the start hex."""
        for hex_ in grid:
            for direction in DIRECTION_ORDER:
                neighbor = grid.neighbor(hex_.x, hex_.y, direction)
                if neighbor is None:
                    continue
                back = grid.neighbor(neighbor.x, neighbor.y, OPPOSITE_DIRECTIONS[direction])
                assert back == hex_

    def test_parity_offsets(self, grid):
        # even column: NE goes up a row
        assert grid.neighbor(2, 4, Direction.NE) == grid.at(3, 3)
        # odd column: NE stays on the row
        assert grid.neighbor(3, 4, Direction.NE) == grid.at(4, 4)
        assert grid.neighbor(3, 4, Direction.SE) == grid.at(4, 5)

    def test_longitude_wraps(self, grid):
        assert grid.neighbor(0, 5, Direction.SW) == grid.at(19, 5)
        assert grid.neighbor(19, 5, Direction.NE) == grid.at(0, 5)
        assert grid.resolve_coord(-1, 5) == (19, 5)
        assert grid.resolve_coord(20, 5) == (0, 5)

    def test_pole_reflection(self, grid):
        """One row past a pole lands on the same pole row at the mirrored longitude."""
        assert grid.resolve_coord(3, -1) == (16, 0)
        assert grid.resolve_coord(3, 10) == (16, 9)
        assert grid.resolve_coord(0, -1) == (19, 0)
        assert grid.resolve_coord(19, -1) == (0, 0)
        assert grid.resolve_coord(3, -2) is None

    def test_neighbor_across_poles(self, grid):
        assert grid.neighbor(3, 0, Direction.N) is None
        assert grid.neighbor(3, 0, Direction.N, across_poles=True) == grid.at(16, 0)
        assert grid.neighbor(4, 9, Direction.S, across_poles=True) == grid.at(15, 9)

    def test_neighbors_map(self, grid):
        neighbors = grid.neighbors(grid.at(4, 0))
        assert neighbors[Direction.N] is None
        assert neighbors[Direction.NE] is None
        assert neighbors[Direction.S] == grid.at(4, 1)
        assert len(list(grid.iter_neighbors(grid.at(4, 0).index))) == 3
        assert len(list(grid.iter_neighbors(grid.at(4, 4).index))) == 6

    def test_coordinates(self, grid):
        top_left = grid.coordinate(grid.at(0, 0))
        assert top_left.lat == 90
        assert top_left.long == -180
        centre = grid.coordinate(grid.at(10, 5))
        assert centre.lat == 0
        assert centre.long == 0
        assert np.isclose(grid.latitudes[grid.at(10, 5).index], 0)

    def test_sphere_points_on_unit_sphere(self, grid):
        points = grid.sphere_points()
        assert points.shape == (200, 3)
        assert np.allclose(np.linalg.norm(points, axis=1), 1.0)

    def test_sphere_points_seam(self, grid):
        """Both sides of the date line sit next to each other on the sphere."""
        points = grid.sphere_points()
        first = points[grid.index_of(0, 5)]
        last = points[grid.index_of(19, 5)]
        step = points[grid.index_of(1, 5)]
        assert math.isclose(
            np.linalg.norm(first - last), np.linalg.norm(first - step), rel_tol=1e-9
        )

    def test_pixel_roundtrip(self, grid):
        for x, y in [(0, 0), (1, 0), (5, 3), (8, 9), (19, 7)]:
            px, py = grid.hex_position(x, y)
            assert grid.hex_from_point(px, py) == grid.at(x, y)

    def test_hex_position_outside(self, grid):
        assert grid.hex_position(-1, 0) is None

    def test_map_edge(self, grid):
        assert grid.is_map_edge(grid.at(0, 4))
        assert grid.is_map_edge(grid.at(19, 4))
        assert grid.is_map_edge(grid.at(5, 0))
        assert grid.is_map_edge(grid.at(5, 9))
        assert not grid.is_map_edge(grid.at(5, 4))
