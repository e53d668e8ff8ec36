"""
Connected-region features of a classified world.

This module handles:
- Flood fill under a caller-supplied connectivity predicate
- Landmass detection (connected land)
- Ecoregion detection (connected hexes of one terrain type)
- Distance-to-coast by multi-source breadth-first search

Functions take boolean masks or terrain arrays rather than a world object so
they can run during generation, before the world is assembled.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Set

import numpy as np
import structlog

from .hexgrid import Hex, HexGrid

logger = structlog.get_logger()

UNREACHED = -1


@dataclass
class Landmass:
    """A connected component of land hexes."""

    id: int
    size: int
    hexes: List[Hex] = field(default_factory=list)


@dataclass
class Ecoregion:
    """A connected component of hexes sharing one terrain type."""

    id: int
    size: int
    terrain_type: int
    hexes: List[Hex] = field(default_factory=list)


def flood_fill(
    grid: HexGrid,
    start: int,
    is_connected: Callable[[int, int], bool],
    visited: Optional[Set[int]] = None,
) -> List[int]:
    """
    Collect every hex reachable from ``start`` under ``is_connected``.

    Args:
        grid: Hex grid
        start: Index of the first hex
        is_connected: Predicate ``(from_index, to_index) -> bool``
        visited: Set shared between fills; hexes already in it are skipped

    Returns:
        Hex indices of the region in breadth-first order
    """
    if visited is None:
        visited = set()

    queue = deque([start])
    visited.add(start)
    region = []
    while queue:
        index = queue.popleft()
        region.append(index)
        for neighbor in grid.iter_neighbors(index):
            if neighbor not in visited and is_connected(index, neighbor):
                queue.append(neighbor)
                visited.add(neighbor)
    return region


def find_landmasses(grid: HexGrid, land: np.ndarray) -> List[Landmass]:
    """
    Identify connected land regions.

    Args:
        grid: Hex grid
        land: Boolean land mask per hex

    Returns:
        Landmasses in order of their first hex index
    """
    landmasses: List[Landmass] = []
    visited: Set[int] = set()
    for index in range(grid.n_hexes):
        if land[index] and index not in visited:
            region = flood_fill(grid, index, lambda a, b: bool(land[b]), visited)
            landmasses.append(
                Landmass(
                    id=len(landmasses),
                    size=len(region),
                    hexes=[grid.hexes[i] for i in region],
                )
            )

    logger.info(
        "Landmasses identified",
        count=len(landmasses),
        largest=sorted((lm.size for lm in landmasses), reverse=True)[:5],
    )
    return landmasses


def find_ecoregions(grid: HexGrid, terrain: np.ndarray) -> List[Ecoregion]:
    """
    Identify connected regions of identical terrain.

    Every hex belongs to exactly one ecoregion.
    """
    ecoregions: List[Ecoregion] = []
    visited: Set[int] = set()
    for index in range(grid.n_hexes):
        if index in visited:
            continue
        region = flood_fill(
            grid, index, lambda a, b: terrain[a] == terrain[b], visited
        )
        ecoregions.append(
            Ecoregion(
                id=len(ecoregions),
                size=len(region),
                terrain_type=int(terrain[region[0]]),
                hexes=[grid.hexes[i] for i in region],
            )
        )

    logger.info(
        "Ecoregions identified",
        count=len(ecoregions),
        largest=sorted((er.size for er in ecoregions), reverse=True)[:5],
    )
    return ecoregions


def compute_distance_to_coast(grid: HexGrid, sea: np.ndarray) -> np.ndarray:
    """
    Breadth-first distance from the sea for every inland hex.

    Inland hexes touching the sea are at distance 0 and each further ring is
    one more. Sea hexes hold 0; inland hexes the search never reaches hold -1.

    Args:
        grid: Hex grid
        sea: Boolean mask of ocean and coast hexes

    Returns:
        int32 distance per hex
    """
    distance = np.full(grid.n_hexes, UNREACHED, dtype=np.int32)
    distance[sea] = 0

    queue = deque()
    for index in np.flatnonzero(~sea):
        if any(sea[n] for n in grid.iter_neighbors(index)):
            distance[index] = 0
            queue.append(int(index))

    while queue:
        index = queue.popleft()
        count = distance[index]
        for neighbor in grid.iter_neighbors(index):
            if not sea[neighbor] and distance[neighbor] == UNREACHED:
                distance[neighbor] = count + 1
                queue.append(neighbor)

    logger.info(
        "Distance to coast calculated",
        max_distance=int(distance.max()) if grid.n_hexes else 0,
        unreached=int((distance == UNREACHED).sum()),
    )
    return distance
