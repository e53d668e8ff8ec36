"""
Depression detection and correction with a priority-flood.

Water is poured in from the map edge. Cells are visited lowest first; a cell
at or below the current water level is flooded to that level and handled
before anything else in the open queue, so a flat lake surface spreads out
completely before the flood climbs any higher. Cells whose final water level
ends up above both their own height and the sealevel sit in closed basins.
"""

import heapq
from collections import deque
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
import structlog

from .hexgrid import Coord, HexGrid

logger = structlog.get_logger()


@dataclass
class DepressionOptions:
    """Depression correction options."""

    max_height: int = 255  # Ceiling for raised basin floors
    passes: int = 2  # Detection runs; corrections are applied between them


class DepressionRemover:
    """Finds closed basins in a heightmap and reshapes them."""

    def __init__(
        self, grid: HexGrid, sealevel: int, options: Optional[DepressionOptions] = None
    ):
        """
        Initialize the remover.

        Args:
            grid: Hex grid the heightmap is laid out on
            sealevel: Height below which a cell is under water
            options: Correction options
        """
        self.grid = grid
        self.sealevel = sealevel
        self.options = options or DepressionOptions()

        self.water_level = None  # Water level from the latest detection run

    def compute_water_level(self, heights: np.ndarray) -> np.ndarray:
        """
        Pour water in from the map edge and return the level at every hex.

        Args:
            heights: Raw height per hex

        Returns:
            Water level per hex; equal to the raw height wherever water drains
        """
        n_hexes = self.grid.n_hexes
        level = heights.astype(np.int32).copy()
        visited = np.zeros(n_hexes, dtype=bool)

        open_queue: List[Tuple[int, int]] = []
        pit_queue = deque()

        for index in np.flatnonzero(self.grid.map_edge):
            heapq.heappush(open_queue, (int(level[index]), int(index)))
            visited[index] = True

        while open_queue or pit_queue:
            if pit_queue:
                cell = pit_queue.popleft()
            else:
                _, cell = heapq.heappop(open_queue)

            cell_level = level[cell]
            for neighbor in self.grid.iter_neighbors(cell):
                if visited[neighbor]:
                    continue
                visited[neighbor] = True
                if heights[neighbor] <= cell_level:
                    level[neighbor] = cell_level
                    pit_queue.append(neighbor)
                else:
                    heapq.heappush(open_queue, (int(heights[neighbor]), neighbor))

        return level

    def depression_mask(self, heights: np.ndarray, water_level: np.ndarray) -> np.ndarray:
        """Hexes whose water level is above both their height and the sealevel."""
        return (water_level > heights) & (water_level > self.sealevel)

    def group_depressions(self, mask: np.ndarray) -> List[List[Coord]]:
        """Flood-fill connected depression hexes into coordinate groups."""
        groups: List[List[Coord]] = []
        visited = np.zeros(self.grid.n_hexes, dtype=bool)

        for start in np.flatnonzero(mask):
            if visited[start]:
                continue
            visited[start] = True
            queue = deque([int(start)])
            group = []
            while queue:
                index = queue.popleft()
                hex_ = self.grid.hexes[index]
                group.append((hex_.x, hex_.y))
                for neighbor in self.grid.iter_neighbors(index):
                    if mask[neighbor] and not visited[neighbor]:
                        visited[neighbor] = True
                        queue.append(neighbor)
            groups.append(group)

        return groups

    def remove_depressions(self, heights: np.ndarray) -> List[List[Coord]]:
        """
        Detect the depressions in a heightmap.

        The water level of the run is kept on ``self.water_level``.

        Args:
            heights: Height per hex

        Returns:
            Depression groups as lists of (x, y) coordinates
        """
        self.water_level = self.compute_water_level(heights)
        mask = self.depression_mask(heights.astype(np.int32), self.water_level)
        groups = self.group_depressions(mask)
        logger.info(
            "Depressions found",
            groups=len(groups),
            cells=int(mask.sum()),
        )
        return groups

    def apply_corrections(
        self, heights: np.ndarray, water_level: np.ndarray, groups: List[List[Coord]]
    ) -> np.ndarray:
        """
        Reshape detected depressions.

        Multi-hex basins are mirrored upward about their water level, so the
        deepest point becomes the highest. Single-hex pits are filled flat to
        the level.
        """
        corrected = heights.astype(np.int32).copy()
        for group in groups:
            indices = [self.grid.index_of(x, y) for x, y in group]
            if len(indices) > 1:
                for index in indices:
                    depth = water_level[index] - corrected[index]
                    corrected[index] = min(
                        water_level[index] + depth, self.options.max_height
                    )
            else:
                corrected[indices[0]] = water_level[indices[0]]
        return corrected.astype(heights.dtype)

    def correct(self, heights: np.ndarray) -> Tuple[np.ndarray, List[List[Coord]]]:
        """
        Run detection, correct, and detect again.

        Args:
            heights: Raw height per hex

        Returns:
            (corrected heights, depression groups remaining after correction)
        """
        logger.info("Correcting depressions", sealevel=self.sealevel)

        corrected = heights
        groups: List[List[Coord]] = []
        for run in range(self.options.passes):
            groups = self.remove_depressions(corrected)
            if run < self.options.passes - 1:
                corrected = self.apply_corrections(corrected, self.water_level, groups)

        return corrected, groups
