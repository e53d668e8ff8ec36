"""
Edge graph derived from hex adjacency.

Every pair of adjacent hexes shares exactly one edge. Edges live in an arena:
integer ids index flat numpy arrays, and edges refer to hexes and to other
edges by index, never by object reference.

For an edge between ``h1`` and ``h2`` (``h2`` lies in ``direction`` from
``h1``):

- ``o1`` / ``o2`` are the two hexes touching the edge's endpoints, i.e. the
  neighbors of ``h1`` in the directions adjacent to ``direction``.
- ``p1_edges`` are the two other edges meeting at the ``o1`` endpoint and
  ``p2_edges`` the two meeting at the ``o2`` endpoint. River tracing walks
  from edge to edge through these.

Missing hexes or edges (past the poles) are stored as -1.
"""

from typing import Dict, List, NamedTuple, Optional, Tuple

import numpy as np
import structlog

from .hexgrid import (
    ADJACENT_DIRECTIONS,
    DIRECTION_ORDER,
    OPPOSITE_DIRECTIONS,
    Direction,
    HexGrid,
)

logger = structlog.get_logger()


class Edge(NamedTuple):
    """Read-only view of one arena entry."""

    id: int
    direction: Direction
    h1: int
    h2: int
    o1: int
    o2: int
    p1_edges: Tuple[int, int]
    p2_edges: Tuple[int, int]


class EdgeGraph:
    """Arena of hex edges with their endpoint adjacency."""

    def __init__(self, grid: HexGrid):
        self.grid = grid
        self.n_edges = 0

        # hex_edges[i, d] is the edge of hex i in direction d, or -1
        self.hex_edges = np.full((grid.n_hexes, 6), -1, dtype=np.int32)

        self.direction = np.zeros(0, dtype=np.int8)
        self.h1 = np.zeros(0, dtype=np.int32)
        self.h2 = np.zeros(0, dtype=np.int32)
        self.o1 = np.zeros(0, dtype=np.int32)
        self.o2 = np.zeros(0, dtype=np.int32)
        self.p1_edges = np.zeros((0, 2), dtype=np.int32)
        self.p2_edges = np.zeros((0, 2), dtype=np.int32)

    def __len__(self) -> int:
        return self.n_edges

    def build(self) -> None:
        """
        Create one edge per adjacent hex pair, then link edges at endpoints.

        Edge ids increase in hex-index then direction order. An edge created
        from ``h1`` is written into ``h2``'s opposite slot at once, which is
        how the reverse visit finds the slot filled and skips it.
        """
        logger.info("Building edge graph", hexes=self.grid.n_hexes)

        neighbors = self.grid.neighbor_indices
        directions: List[int] = []
        h1s: List[int] = []
        h2s: List[int] = []
        o1s: List[int] = []
        o2s: List[int] = []

        edge_id = 0
        for index in range(self.grid.n_hexes):
            for direction in DIRECTION_ORDER:
                neighbor = neighbors[index, direction]
                if neighbor < 0 or self.hex_edges[index, direction] >= 0:
                    continue
                adj1, adj2 = ADJACENT_DIRECTIONS[direction]
                directions.append(direction)
                h1s.append(index)
                h2s.append(int(neighbor))
                o1s.append(int(neighbors[index, adj1]))
                o2s.append(int(neighbors[index, adj2]))
                self.hex_edges[index, direction] = edge_id
                self.hex_edges[neighbor, OPPOSITE_DIRECTIONS[direction]] = edge_id
                edge_id += 1

        self.n_edges = edge_id
        self.direction = np.array(directions, dtype=np.int8)
        self.h1 = np.array(h1s, dtype=np.int32)
        self.h2 = np.array(h2s, dtype=np.int32)
        self.o1 = np.array(o1s, dtype=np.int32)
        self.o2 = np.array(o2s, dtype=np.int32)

        self._link_adjacent_edges()

        logger.info("Edge graph built", edges=self.n_edges)

    def _link_adjacent_edges(self) -> None:
        """Find the two edges meeting each endpoint of every edge."""
        self.p1_edges = np.full((self.n_edges, 2), -1, dtype=np.int32)
        self.p2_edges = np.full((self.n_edges, 2), -1, dtype=np.int32)

        for edge_id in range(self.n_edges):
            direction = Direction(int(self.direction[edge_id]))
            h1 = self.h1[edge_id]
            h2 = self.h2[edge_id]
            adj1, adj2 = ADJACENT_DIRECTIONS[direction]
            back_adj1, back_adj2 = ADJACENT_DIRECTIONS[OPPOSITE_DIRECTIONS[direction]]
            # Seen from h2 the perimeter runs the other way, so o1 lies in
            # back_adj2 and o2 in back_adj1
            self.p1_edges[edge_id] = (
                self.hex_edges[h1, adj1],
                self.hex_edges[h2, back_adj2],
            )
            self.p2_edges[edge_id] = (
                self.hex_edges[h1, adj2],
                self.hex_edges[h2, back_adj1],
            )

    def edge(self, edge_id: int) -> Edge:
        """Arena entry for an edge id."""
        if not 0 <= edge_id < self.n_edges:
            raise ValueError(f"Edge id {edge_id} is not in the edge graph")
        return Edge(
            id=edge_id,
            direction=Direction(int(self.direction[edge_id])),
            h1=int(self.h1[edge_id]),
            h2=int(self.h2[edge_id]),
            o1=int(self.o1[edge_id]),
            o2=int(self.o2[edge_id]),
            p1_edges=(int(self.p1_edges[edge_id, 0]), int(self.p1_edges[edge_id, 1])),
            p2_edges=(int(self.p2_edges[edge_id, 0]), int(self.p2_edges[edge_id, 1])),
        )

    def edges_for_hex(self, index: int) -> Dict[Direction, Optional[int]]:
        """Edge ids around a hex keyed by direction (None past a pole)."""
        row = self.hex_edges[index]
        return {
            direction: (int(row[direction]) if row[direction] >= 0 else None)
            for direction in DIRECTION_ORDER
        }

    def edge_between(self, h1: int, h2: int) -> Optional[int]:
        """Id of the edge shared by two hexes, or None if not adjacent."""
        for direction in DIRECTION_ORDER:
            if self.grid.neighbor_indices[h1, direction] == h2:
                return int(self.hex_edges[h1, direction])
        return None

    def neighbor_edges(self, edge_id: int) -> List[int]:
        """The up to four edges touching either endpoint of an edge."""
        candidates = list(self.p1_edges[edge_id]) + list(self.p2_edges[edge_id])
        return [int(e) for e in candidates if e >= 0]
