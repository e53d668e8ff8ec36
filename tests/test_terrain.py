"""Tests for heightmap generation and terrain classification."""

import numpy as np
import pytest

from py_hexworld.core.hexgrid import HexGrid
from py_hexworld.core.terrain import (
    TerrainClassifier,
    TerrainType,
    generate_heightmap,
    is_land_terrain,
    land_mask,
    quantize_heights,
)


class TestTerrainTypes:
    """Test terrain category helpers."""

    def test_land_classes(self):
        assert is_land_terrain(TerrainType.GRASSLAND)
        assert is_land_terrain(TerrainType.GLACIAL)
        assert not is_land_terrain(TerrainType.LAKE)
        assert not is_land_terrain(TerrainType.COAST)
        assert not is_land_terrain(TerrainType.OCEAN)

    def test_land_mask(self):
        terrain = np.array(
            [TerrainType.OCEAN, TerrainType.DESERT, TerrainType.LAKE, TerrainType.TUNDRA],
            dtype=np.uint32,
        )
        assert list(land_mask(terrain)) == [False, True, False, True]

    def test_quantize(self):
        heights = quantize_heights(np.array([-3.0, 0.4, 127.6, 300.0]))
        assert heights.dtype == np.uint8
        assert list(heights) == [0, 0, 128, 255]


class TestHeightmap:
    """Test noise heightmap sampling."""

    @pytest.fixture
    def grid(self):
        return HexGrid.from_size(8)

    def test_deterministic(self, grid):
        a = generate_heightmap(grid, 42)
        b = generate_heightmap(grid, 42)
        assert a.dtype == np.uint8
        assert np.array_equal(a, b)

    def test_integral_float_seed(self, grid):
        assert np.array_equal(generate_heightmap(grid, 42), generate_heightmap(grid, 42.0))

    def test_seed_changes_heights(self, grid):
        assert not np.array_equal(generate_heightmap(grid, 1), generate_heightmap(grid, 2))


class TestTerrainClassifier:
    """Test terrain classification rules."""

    @pytest.fixture
    def grid(self):
        return HexGrid.from_size(10)

    def test_low_world_is_ocean(self, grid):
        heights = np.zeros(grid.n_hexes, dtype=np.uint8)
        terrain = TerrainClassifier(grid, 100, seed=1).classify_hexes(heights)
        for index in range(grid.n_hexes):
            if abs(grid.latitudes[index]) <= 75:
                assert terrain[index] == TerrainType.OCEAN
            else:
                assert terrain[index] in (TerrainType.OCEAN, TerrainType.GLACIAL)

    def test_shallow_water_is_coast(self, grid):
        heights = np.full(grid.n_hexes, 90, dtype=np.uint8)
        terrain = TerrainClassifier(grid, 100, seed=1).classify_hexes(heights)
        equator = grid.index_of(4, 5)
        assert terrain[equator] == TerrainType.COAST

    def test_high_equator_is_desert(self, grid):
        heights = np.full(grid.n_hexes, 255, dtype=np.uint8)
        terrain = TerrainClassifier(grid, 0, seed=1).classify_hexes(heights)
        row = [terrain[grid.index_of(x, 5)] for x in range(grid.width)]
        assert all(t == TerrainType.DESERT for t in row)
        assert land_mask(terrain).all()

    def test_promote_coast(self, grid):
        terrain = np.full(grid.n_hexes, TerrainType.OCEAN, dtype=np.uint32)
        island = grid.index_of(6, 4)
        terrain[island] = TerrainType.FOREST

        promoted = TerrainClassifier(grid, 100, seed=1).promote_coast(terrain)

        assert promoted == 6
        for neighbor in grid.iter_neighbors(island):
            assert terrain[neighbor] == TerrainType.COAST
        assert terrain[grid.index_of(10, 4)] == TerrainType.OCEAN

    def test_promote_coast_ignores_lakes(self, grid):
        terrain = np.full(grid.n_hexes, TerrainType.OCEAN, dtype=np.uint32)
        terrain[grid.index_of(6, 4)] = TerrainType.LAKE
        assert TerrainClassifier(grid, 100, seed=1).promote_coast(terrain) == 0

    def test_mark_lakes(self, grid):
        terrain = np.full(grid.n_hexes, TerrainType.GRASSLAND, dtype=np.uint32)
        terrain[grid.index_of(2, 2)] = TerrainType.GLACIAL
        terrain[grid.index_of(3, 3)] = TerrainType.COAST

        marked = TerrainClassifier(grid, 100, seed=1).mark_lakes(
            terrain, [[(2, 2), (1, 1)], [(3, 3)]]
        )

        assert marked == 1
        assert terrain[grid.index_of(1, 1)] == TerrainType.LAKE
        assert terrain[grid.index_of(2, 2)] == TerrainType.GLACIAL
        assert terrain[grid.index_of(3, 3)] == TerrainType.COAST

    def test_classify_coastal_consistency(self, grid):
        """No ocean hex touches land after classification."""
        heights = generate_heightmap(grid, 7)
        result = TerrainClassifier(grid, 128, seed=7).classify(heights)
        land = land_mask(result.terrain)
        for index in np.flatnonzero(result.terrain == TerrainType.OCEAN):
            assert not any(land[n] for n in grid.iter_neighbors(index))

    def test_classify_outputs(self, grid):
        heights = generate_heightmap(grid, 7)
        result = TerrainClassifier(grid, 128, seed=7).classify(heights)
        assert result.terrain.dtype == np.uint32
        assert result.heightmap.dtype == np.uint8
        assert result.distance_to_coast.dtype == np.int32
        assert result.terrain.shape == (grid.n_hexes,)
        for group in result.depressions:
            for x, y in group:
                assert result.terrain[grid.index_of(x, y)] in (
                    TerrainType.LAKE,
                    TerrainType.GLACIAL,
                    TerrainType.COAST,
                    TerrainType.OCEAN,
                )

    def test_classify_deterministic(self, grid):
        heights = generate_heightmap(grid, 3)
        a = TerrainClassifier(grid, 128, seed=3).classify(heights)
        b = TerrainClassifier(grid, 128, seed=3).classify(heights)
        assert np.array_equal(a.terrain, b.terrain)
        assert np.array_equal(a.heightmap, b.heightmap)
