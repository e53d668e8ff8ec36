"""
River generation along the hex edge graph.

Rivers run along hex edges, not through hexes. Each river starts at a river
mouth on the coastline and climbs inland by always stepping to the highest
edge touching the current one, stopping when nothing higher remains, when it
meets an existing river, or when it reaches water again.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Set

import numpy as np
import structlog

from ..utils.random import phase_prng
from .edge_graph import EdgeGraph
from .terrain import TerrainType, land_mask

logger = structlog.get_logger()


@dataclass
class RiverOptions:
    """River generation options."""

    river_chance: float = 0.33  # Probability that a river mouth gets a river


class RiverBuilder:
    """Traces rivers inland from coastline edges."""

    def __init__(self, edge_graph: EdgeGraph, options: Optional[RiverOptions] = None):
        """
        Initialize the river builder.

        Args:
            edge_graph: Built edge graph of the world grid
            options: River generation options
        """
        self.edge_graph = edge_graph
        self.options = options or RiverOptions()

        self.edge_heights = None  # Mean height of each edge's two hexes (nan if unset)
        self.has_river = None  # Edge already carries a river
        self.land = None

    def calculate_edge_heights(self, heightmap: np.ndarray) -> np.ndarray:
        """
        Height of every edge that has both endpoint hexes.

        Edges along the poles have no height and are never climbed onto.
        """
        graph = self.edge_graph
        heights = np.full(graph.n_edges, np.nan, dtype=np.float64)
        complete = (graph.o1 >= 0) & (graph.o2 >= 0)
        h1 = heightmap[graph.h1[complete]].astype(np.float64)
        h2 = heightmap[graph.h2[complete]].astype(np.float64)
        heights[complete] = (h1 + h2) / 2
        return heights

    def find_coastline_edges(self, terrain: np.ndarray) -> List[int]:
        """
        Edges where a river can reach the sea.

        Both hexes of the edge are non-glacial land and exactly one of the two
        endpoint hexes is water.
        """
        graph = self.edge_graph
        land = land_mask(terrain)
        complete = (graph.o1 >= 0) & (graph.o2 >= 0)
        o1_land = np.where(complete, land[np.maximum(graph.o1, 0)], False)
        o2_land = np.where(complete, land[np.maximum(graph.o2, 0)], False)
        mask = (
            complete
            & land[graph.h1]
            & land[graph.h2]
            & (terrain[graph.h1] != TerrainType.GLACIAL)
            & (terrain[graph.h2] != TerrainType.GLACIAL)
            & (o1_land != o2_land)
        )
        return [int(e) for e in np.flatnonzero(mask)]

    def _is_land(self, index: int) -> bool:
        return index >= 0 and bool(self.land[index])

    def build_river(self, start: int) -> List[int]:
        """
        Walk uphill from one coastline edge.

        Every edge the walk marks is appended to the river, and marked edges
        are never entered again, so rivers are disjoint and the walk always
        ends.

        Args:
            start: Coastline edge id

        Returns:
            Edge ids from the mouth inland (empty if nothing is uphill)
        """
        graph = self.edge_graph
        trail: List[int] = []
        current = start
        while True:
            if self.has_river[current]:
                break
            # past the mouth the river must stay between land hexes
            if trail and not (
                self._is_land(graph.o1[current]) and self._is_land(graph.o2[current])
            ):
                break

            highest = -1
            highest_height = -np.inf
            for edge_id in graph.neighbor_edges(current):
                height = self.edge_heights[edge_id]
                if not np.isnan(height) and height > highest_height:
                    highest = edge_id
                    highest_height = height

            if highest < 0 or not highest_height > self.edge_heights[current]:
                break

            self.has_river[current] = True
            trail.append(current)
            if self.has_river[highest]:
                break
            current = highest

        return trail

    def build_rivers(self, heightmap: np.ndarray, terrain: np.ndarray, seed) -> List[List[int]]:
        """
        Generate all rivers.

        Each coastline edge gets a river with probability ``river_chance``,
        drawn in edge-id order from a fresh PRNG for the seed.

        Args:
            heightmap: Corrected height per hex
            terrain: Terrain type per hex
            seed: World seed

        Returns:
            Rivers as lists of edge ids
        """
        logger.info("Building rivers")

        self.edge_heights = self.calculate_edge_heights(heightmap)
        self.has_river = np.zeros(self.edge_graph.n_edges, dtype=bool)
        self.land = land_mask(terrain)

        coastline = self.find_coastline_edges(terrain)
        prng = phase_prng(seed)
        mouths = [edge_id for edge_id in coastline if prng.random() < self.options.river_chance]

        rivers = []
        for edge_id in mouths:
            river = self.build_river(edge_id)
            if river:
                rivers.append(river)

        logger.info(
            "Rivers built",
            coastline_edges=len(coastline),
            mouths=len(mouths),
            rivers=len(rivers),
            river_edges=sum(len(r) for r in rivers),
        )
        return rivers


def build_river_hex_pairs(edge_graph: EdgeGraph, rivers: List[List[int]]) -> Dict[int, Set[int]]:
    """
    Undirected hex adjacency of river edges.

    Returns:
        Map from hex index to the indices of neighbors it shares a river edge with
    """
    pairs: Dict[int, Set[int]] = {}
    for river in rivers:
        for edge_id in river:
            if not 0 <= edge_id < edge_graph.n_edges:
                raise ValueError(f"River edge {edge_id} is not in the edge graph")
            h1 = int(edge_graph.h1[edge_id])
            h2 = int(edge_graph.h2[edge_id])
            pairs.setdefault(h1, set()).add(h2)
            pairs.setdefault(h2, set()).add(h1)
    return pairs
