"""A* road finding over the hex grid."""

import heapq
from typing import Dict, List, Set, Tuple

from .hexgrid import Hex, HexGrid


def _cube(x: int, y: int) -> Tuple[int, int, int]:
    q = x
    r = y - (x - (x & 1)) // 2
    return q, r, -q - r


def hex_distance(grid: HexGrid, a: Hex, b: Hex) -> int:
    """Steps between two hexes, taking the shorter way around in longitude."""
    aq, ar, as_ = _cube(a.x, a.y)
    best = None
    for bx in (b.x - grid.width, b.x, b.x + grid.width):
        bq, br, bs = _cube(bx, b.y)
        steps = max(abs(aq - bq), abs(ar - br), abs(as_ - bs))
        if best is None or steps < best:
            best = steps
    return best


def reconstruct(came_from: Dict[int, int], current: int) -> List[int]:
    path = [current]
    while current in came_from:
        current = came_from[current]
        path.append(current)
    path.reverse()
    return path


def find_path(world, start: Hex, end: Hex) -> List[Hex]:
    """
    Shortest road between two hexes.

    Every step costs 1. A step between land and water is impassable, so roads
    stay on one side of the coastline.

    Returns:
        Hexes from ``start`` to ``end`` inclusive, or an empty list when no
        route exists
    """
    grid = world.grid
    if start.index == end.index:
        return [start]

    open_heap: List[Tuple[int, int]] = []
    heapq.heappush(open_heap, (0, start.index))
    came_from: Dict[int, int] = {}
    g_score: Dict[int, int] = {start.index: 0}
    closed: Set[int] = set()

    while open_heap:
        _, current = heapq.heappop(open_heap)
        if current == end.index:
            return [grid.hexes[i] for i in reconstruct(came_from, current)]
        if current in closed:
            continue
        closed.add(current)

        current_land = world.is_land(grid.hexes[current])
        for neighbor in grid.iter_neighbors(current):
            if world.is_land(grid.hexes[neighbor]) != current_land:
                continue
            tentative = g_score[current] + 1
            if tentative < g_score.get(neighbor, float("inf")):
                came_from[neighbor] = current
                g_score[neighbor] = tentative
                f = tentative + hex_distance(grid, grid.hexes[neighbor], end)
                heapq.heappush(open_heap, (f, neighbor))
    return []

