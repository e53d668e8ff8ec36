"""Tests for flood fills, regions and distance to coast."""

import numpy as np
import pytest

from py_hexworld.core.features import (
    UNREACHED,
    compute_distance_to_coast,
    find_ecoregions,
    find_landmasses,
    flood_fill,
)
from py_hexworld.core.hexgrid import HexGrid
from py_hexworld.core.terrain import TerrainType


def column_mask(grid, columns):
    xs = np.arange(grid.n_hexes) % grid.width
    return np.isin(xs, list(columns))


class TestFloodFill:
    """Test the generic flood fill."""

    @pytest.fixture
    def grid(self):
        return HexGrid(12, 6)

    def test_fill_everything(self, grid):
        region = flood_fill(grid, 0, lambda a, b: True)
        assert sorted(region) == list(range(grid.n_hexes))
        assert region[0] == 0

    def test_fill_respects_predicate(self, grid):
        land = column_mask(grid, {2, 3})
        start = grid.index_of(2, 0)
        region = flood_fill(grid, start, lambda a, b: bool(land[b]))
        assert sorted(region) == sorted(np.flatnonzero(land).tolist())

    def test_shared_visited_set(self, grid):
        visited = set()
        first = flood_fill(grid, 0, lambda a, b: True, visited)
        second = flood_fill(grid, 5, lambda a, b: True, visited)
        assert len(first) == grid.n_hexes
        assert second == [5]


class TestRegions:
    """Test landmass and ecoregion detection."""

    @pytest.fixture
    def grid(self):
        return HexGrid(12, 6)

    def test_two_landmasses(self, grid):
        land = column_mask(grid, {2, 3, 7, 8})
        landmasses = find_landmasses(grid, land)
        assert len(landmasses) == 2
        assert [lm.size for lm in landmasses] == [12, 12]
        assert [lm.id for lm in landmasses] == [0, 1]
        assert {h.x for h in landmasses[0].hexes} == {2, 3}

    def test_landmass_across_date_line(self, grid):
        land = column_mask(grid, {0, 11})
        landmasses = find_landmasses(grid, land)
        assert len(landmasses) == 1
        assert landmasses[0].size == 12

    def test_no_land(self, grid):
        assert find_landmasses(grid, np.zeros(grid.n_hexes, dtype=bool)) == []

    def test_ecoregions_cover_grid(self, grid):
        terrain = np.full(grid.n_hexes, TerrainType.OCEAN, dtype=np.uint32)
        terrain[column_mask(grid, {2, 3})] = TerrainType.FOREST
        terrain[column_mask(grid, {7})] = TerrainType.DESERT

        ecoregions = find_ecoregions(grid, terrain)

        assert sum(er.size for er in ecoregions) == grid.n_hexes
        # the forest and desert strips split the ocean in two
        assert len(ecoregions) == 4
        types = sorted(er.terrain_type for er in ecoregions)
        assert types == sorted(
            [TerrainType.OCEAN, TerrainType.OCEAN, TerrainType.FOREST, TerrainType.DESERT]
        )
        for er in ecoregions:
            assert all(terrain[h.index] == er.terrain_type for h in er.hexes)


class TestDistanceToCoast:
    """Test the multi-source distance search."""

    @pytest.fixture
    def grid(self):
        return HexGrid(12, 6)

    def test_layers(self, grid):
        sea = column_mask(grid, {0, 1})
        distance = compute_distance_to_coast(grid, sea)

        assert distance.dtype == np.int32
        assert (distance[sea] == 0).all()
        for y in range(grid.height):
            assert distance[grid.index_of(2, y)] == 0
            assert distance[grid.index_of(3, y)] == 1
            assert distance[grid.index_of(11, y)] == 0
            assert distance[grid.index_of(10, y)] == 1

    def test_monotonic(self, grid):
        sea = column_mask(grid, {0, 1})
        sea[grid.index_of(6, 3)] = True
        distance = compute_distance_to_coast(grid, sea)

        for index in np.flatnonzero(~sea):
            neighbors = list(grid.iter_neighbors(index))
            if any(sea[n] for n in neighbors):
                assert distance[index] == 0
                continue
            land_neighbors = [distance[n] for n in neighbors if not sea[n]]
            assert distance[index] - 1 in land_neighbors
            assert min(land_neighbors) >= distance[index] - 1

    def test_no_sea(self, grid):
        distance = compute_distance_to_coast(grid, np.zeros(grid.n_hexes, dtype=bool))
        assert (distance == UNREACHED).all()
