"""Tests for depression detection and correction."""

import numpy as np
import pytest

from py_hexworld.core.depressions import DepressionOptions, DepressionRemover
from py_hexworld.core.hexgrid import HexGrid


class TestDepressionRemover:
    """Test the priority-flood depression pass."""

    @pytest.fixture
    def grid(self):
        return HexGrid(12, 8)

    @pytest.fixture
    def plateau(self, grid):
        """Flat heightmap at 150."""
        return np.full(grid.n_hexes, 150, dtype=np.uint8)

    def test_flat_map_has_no_depressions(self, grid, plateau):
        remover = DepressionRemover(grid, sealevel=50)
        assert remover.remove_depressions(plateau) == []
        assert np.array_equal(remover.water_level, plateau)

    def test_single_pit(self, grid, plateau):
        heights = plateau.copy()
        pit = grid.index_of(5, 4)
        heights[pit] = 100

        remover = DepressionRemover(grid, sealevel=50)
        groups = remover.remove_depressions(heights)

        assert groups == [[(5, 4)]]
        assert remover.water_level[pit] == 150

    def test_pit_below_sealevel_is_ignored(self, grid, plateau):
        heights = plateau.copy()
        heights[grid.index_of(5, 4)] = 100

        remover = DepressionRemover(grid, sealevel=200)
        assert remover.remove_depressions(heights) == []

    def test_flat_water_spreads_before_climbing(self, grid, plateau):
        """A low rim hex floods to the spill level along with the pit."""
        heights = plateau.copy()
        heights[grid.index_of(5, 4)] = 100
        heights[grid.index_of(5, 3)] = 140

        remover = DepressionRemover(grid, sealevel=50)
        groups = remover.remove_depressions(heights)

        assert len(groups) == 1
        assert sorted(groups[0]) == [(5, 3), (5, 4)]
        assert remover.water_level[grid.index_of(5, 3)] == 150

    def test_single_pit_filled_flat(self, grid, plateau):
        heights = plateau.copy()
        heights[grid.index_of(5, 4)] = 100

        corrected, remaining = DepressionRemover(grid, sealevel=50).correct(heights)

        assert corrected[grid.index_of(5, 4)] == 150
        assert remaining == []
        assert corrected.dtype == np.uint8

    def test_basin_mirrored_upward(self, grid, plateau):
        heights = plateau.copy()
        heights[grid.index_of(5, 4)] = 100
        heights[grid.index_of(5, 5)] = 90

        corrected, remaining = DepressionRemover(grid, sealevel=50).correct(heights)

        assert corrected[grid.index_of(5, 4)] == 200
        assert corrected[grid.index_of(5, 5)] == 210
        assert remaining == []

    def test_mirroring_clamped(self, grid):
        heights = np.full(grid.n_hexes, 250, dtype=np.uint8)
        heights[grid.index_of(5, 4)] = 100
        heights[grid.index_of(5, 5)] = 120

        corrected, _ = DepressionRemover(grid, sealevel=50).correct(heights)

        assert corrected[grid.index_of(5, 4)] == 255
        assert corrected[grid.index_of(5, 5)] == 255

    def test_single_pass_keeps_groups(self, grid, plateau):
        heights = plateau.copy()
        heights[grid.index_of(5, 4)] = 100

        remover = DepressionRemover(grid, 50, DepressionOptions(passes=1))
        corrected, groups = remover.correct(heights)

        assert groups == [[(5, 4)]]
        assert np.array_equal(corrected, heights)

    def test_water_level_properties(self, grid):
        """Grouped hexes sit under water above sealevel; all others drain."""
        heights = ((np.arange(grid.n_hexes) * 37) % 256).astype(np.uint8)
        sealevel = 60

        remover = DepressionRemover(grid, sealevel)
        groups = remover.remove_depressions(heights)
        level = remover.water_level
        raw = heights.astype(np.int32)

        grouped = {grid.index_of(x, y) for group in groups for x, y in group}
        for index in range(grid.n_hexes):
            if index in grouped:
                assert level[index] > raw[index]
                assert level[index] > sealevel
            else:
                assert level[index] == raw[index] or level[index] <= sealevel

    def test_map_edge_never_in_depression(self, grid):
        heights = ((np.arange(grid.n_hexes) * 53) % 256).astype(np.uint8)
        groups = DepressionRemover(grid, 0).remove_depressions(heights)
        for group in groups:
            for x, y in group:
                assert not grid.map_edge[grid.index_of(x, y)]
