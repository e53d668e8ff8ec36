"""
World facade over the generated grids.

This module implements:
- WorldData, the flat typed-array snapshot of a generated world
- World, which owns the grid, the edge graph and every per-hex array and
  answers the queries made by renderers and simulations
- Derived biological formulas (solar flux, temperature, NPP, hunter carrying
  capacity)

All per-hex arrays are indexed by ``Hex.index``. Queries that step off the
grid return None (or ``TerrainType.NONE`` for terrain lookups) instead of
raising.
"""

import math
from collections import deque
from dataclasses import dataclass, field, fields
from typing import Callable, Dict, Iterator, List, Optional, Set, Tuple

import numpy as np
import structlog

from ..utils.random import get_prng
from .alea_prng import AleaPRNG
from .climate import ClimateResult, Season
from .edge_graph import Edge, EdgeGraph
from .features import Ecoregion, Landmass, find_ecoregions, find_landmasses, flood_fill
from .hexgrid import (
    DIRECTION_ORDER,
    Coord,
    Direction,
    Hex,
    HexGrid,
    LatLong,
)
from .hydrology import build_river_hex_pairs
from .pathfinding import find_path
from .terrain import TerrainType, is_land_terrain, land_mask

logger = structlog.get_logger()

# Earth's average NPP, used to normalise carrying capacity
EARTH_NPP = 2700.0

# Array fields of WorldData and their storage types
WORLD_ARRAY_DTYPES = {
    "terrain": np.uint32,
    "heightmap": np.uint8,
    "rainfall": np.int32,
    "distance_to_coast": np.int32,
    "pressure_january": np.float32,
    "pressure_july": np.float32,
    "wind_january_direction": np.int16,
    "wind_january_speed": np.float32,
    "wind_july_direction": np.int16,
    "wind_july_speed": np.float32,
    "ocean_current_january_direction": np.int16,
    "ocean_current_january_speed": np.float32,
    "ocean_current_july_direction": np.int16,
    "ocean_current_july_speed": np.float32,
}


@dataclass
class WorldData:
    """Snapshot of a generated world as flat typed arrays."""

    size: int
    sealevel: int
    seed: object
    axial_tilt: float
    terrain: np.ndarray
    heightmap: np.ndarray
    rainfall: np.ndarray
    distance_to_coast: np.ndarray
    pressure_january: np.ndarray
    pressure_july: np.ndarray
    wind_january_direction: np.ndarray
    wind_january_speed: np.ndarray
    wind_july_direction: np.ndarray
    wind_july_speed: np.ndarray
    ocean_current_january_direction: np.ndarray
    ocean_current_january_speed: np.ndarray
    ocean_current_july_direction: np.ndarray
    ocean_current_july_speed: np.ndarray
    rivers: List[List[int]] = field(default_factory=list)

    def __post_init__(self):
        if self.size <= 0:
            raise ValueError(f"World size must be positive, got {self.size}")
        n_hexes = 2 * self.size * self.size
        for name, dtype in WORLD_ARRAY_DTYPES.items():
            values = np.asarray(getattr(self, name), dtype=dtype)
            if values.shape != (n_hexes,):
                raise ValueError(
                    f"{name} has shape {values.shape}, expected ({n_hexes},) for size {self.size}"
                )
            setattr(self, name, values)
        self.rivers = [[int(edge_id) for edge_id in river] for river in self.rivers]

    @property
    def width(self) -> int:
        return self.size * 2

    @property
    def height(self) -> int:
        return self.size

    @property
    def climate(self) -> ClimateResult:
        return ClimateResult(**{name: getattr(self, name) for name in ClimateResult._fields})

    def arrays_equal(self, other: "WorldData") -> bool:
        """True when every grid and river list matches ``other`` exactly."""
        for f in fields(self):
            mine, theirs = getattr(self, f.name), getattr(other, f.name)
            if isinstance(mine, np.ndarray):
                if mine.dtype != theirs.dtype or not np.array_equal(mine, theirs):
                    return False
            elif mine != theirs:
                return False
        return True


class World:
    """Owns all world grids and answers per-hex queries."""

    def __init__(self):
        self.size = 0
        self.axial_tilt = 0.0
        self.grid: Optional[HexGrid] = None
        self.edge_graph: Optional[EdgeGraph] = None
        self.world_data: Optional[WorldData] = None

        self.terrain = None
        self.heightmap = None
        self.rainfall = None
        self.distance_to_coast = None
        self.pressure: Dict[Season, np.ndarray] = {}
        self.wind_direction: Dict[Season, np.ndarray] = {}
        self.wind_speed: Dict[Season, np.ndarray] = {}
        self.ocean_current_direction: Dict[Season, np.ndarray] = {}
        self.ocean_current_speed: Dict[Season, np.ndarray] = {}

        self.rivers: List[List[Edge]] = []
        self.river_hex_pairs: Dict[int, Set[int]] = {}
        self.hex_roads: Dict[int, Dict[Direction, int]] = {}
        self.landmasses: List[Landmass] = []
        self.ecoregions: List[Ecoregion] = []

    @classmethod
    def from_data(cls, world_data: WorldData) -> "World":
        """Rebuild a working world from a snapshot."""
        world = cls()
        world.world_data = world_data
        world.set_world_size(world_data.size)
        world.set_world_axial_tilt(world_data.axial_tilt)
        world.set_world_terrain(
            world_data.terrain, world_data.heightmap, world_data.distance_to_coast
        )
        world.set_world_climate(world_data.climate)
        world.set_world_rainfall(world_data.rainfall)
        world.set_world_rivers(world_data.rivers)
        return world

    def to_data(self, sealevel: int, seed) -> WorldData:
        """Copy the current grids into a snapshot."""
        return WorldData(
            size=self.size,
            sealevel=sealevel,
            seed=seed,
            axial_tilt=self.axial_tilt,
            terrain=self.terrain.copy(),
            heightmap=self.heightmap.copy(),
            rainfall=self.rainfall.copy(),
            distance_to_coast=self.distance_to_coast.copy(),
            pressure_january=self.pressure[Season.JANUARY].copy(),
            pressure_july=self.pressure[Season.JULY].copy(),
            wind_january_direction=self.wind_direction[Season.JANUARY].copy(),
            wind_january_speed=self.wind_speed[Season.JANUARY].copy(),
            wind_july_direction=self.wind_direction[Season.JULY].copy(),
            wind_july_speed=self.wind_speed[Season.JULY].copy(),
            ocean_current_january_direction=self.ocean_current_direction[Season.JANUARY].copy(),
            ocean_current_january_speed=self.ocean_current_speed[Season.JANUARY].copy(),
            ocean_current_july_direction=self.ocean_current_direction[Season.JULY].copy(),
            ocean_current_july_speed=self.ocean_current_speed[Season.JULY].copy(),
            rivers=[[edge.id for edge in river] for river in self.rivers],
        )

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def set_world_size(self, size: int) -> None:
        """Build the grid and edge graph and allocate zeroed arrays."""
        self.size = size
        self.grid = HexGrid.from_size(size)
        n_hexes = self.grid.n_hexes

        self.terrain = np.zeros(n_hexes, dtype=np.uint32)
        self.heightmap = np.zeros(n_hexes, dtype=np.uint8)
        self.rainfall = np.zeros(n_hexes, dtype=np.int32)
        self.distance_to_coast = np.zeros(n_hexes, dtype=np.int32)
        for season in Season:
            self.pressure[season] = np.zeros(n_hexes, dtype=np.float32)
            self.wind_direction[season] = np.zeros(n_hexes, dtype=np.int16)
            self.wind_speed[season] = np.zeros(n_hexes, dtype=np.float32)
            self.ocean_current_direction[season] = np.zeros(n_hexes, dtype=np.int16)
            self.ocean_current_speed[season] = np.zeros(n_hexes, dtype=np.float32)

        self.rivers = []
        self.river_hex_pairs = {}
        self.hex_roads = {}
        self.landmasses = []
        self.ecoregions = []

        self.edge_graph = EdgeGraph(self.grid)
        self.edge_graph.build()

    def set_world_axial_tilt(self, axial_tilt: float) -> None:
        self.axial_tilt = axial_tilt

    def _fill(self, target: np.ndarray, values: np.ndarray, name: str) -> None:
        values = np.asarray(values)
        if values.shape != target.shape:
            raise ValueError(f"{name} has shape {values.shape}, expected {target.shape}")
        target[:] = values

    def set_world_terrain(
        self, terrain: np.ndarray, heightmap: np.ndarray, distance_to_coast: np.ndarray
    ) -> None:
        """Store terrain grids and recompute landmasses and ecoregions."""
        self._fill(self.terrain, terrain, "terrain")
        self._fill(self.heightmap, heightmap, "heightmap")
        self._fill(self.distance_to_coast, distance_to_coast, "distance_to_coast")

        self.landmasses = find_landmasses(self.grid, land_mask(self.terrain))
        self.ecoregions = find_ecoregions(self.grid, self.terrain)

    def set_world_rainfall(self, rainfall: np.ndarray) -> None:
        self._fill(self.rainfall, rainfall, "rainfall")

    def set_world_climate(self, climate: ClimateResult) -> None:
        """Store the seasonal pressure, wind and ocean current grids."""
        for season, suffix in ((Season.JANUARY, "january"), (Season.JULY, "july")):
            self._fill(self.pressure[season], getattr(climate, f"pressure_{suffix}"), f"pressure_{suffix}")
            self._fill(
                self.wind_direction[season],
                getattr(climate, f"wind_{suffix}_direction"),
                f"wind_{suffix}_direction",
            )
            self._fill(
                self.wind_speed[season],
                getattr(climate, f"wind_{suffix}_speed"),
                f"wind_{suffix}_speed",
            )
            self._fill(
                self.ocean_current_direction[season],
                getattr(climate, f"ocean_current_{suffix}_direction"),
                f"ocean_current_{suffix}_direction",
            )
            self._fill(
                self.ocean_current_speed[season],
                getattr(climate, f"ocean_current_{suffix}_speed"),
                f"ocean_current_{suffix}_speed",
            )

    def set_world_rivers(self, river_data: List[List[int]]) -> None:
        """
        Resolve river edge ids and index which hex pairs carry a river.

        Raises:
            ValueError: If an edge id is not in the edge graph
        """
        self.river_hex_pairs = build_river_hex_pairs(self.edge_graph, river_data)
        self.rivers = [
            [self.edge_graph.edge(edge_id) for edge_id in river] for river in river_data
        ]
        logger.info(
            "Rivers set",
            rivers=len(self.rivers),
            river_hexes=len(self.river_hex_pairs),
        )

    # ------------------------------------------------------------------
    # Hex lookup and geometry
    # ------------------------------------------------------------------

    def get_hex(self, x: int, y: int) -> Optional[Hex]:
        return self.grid.at(x, y)

    def get_hex_position(self, x: int, y: int) -> Optional[Tuple[float, float]]:
        return self.grid.hex_position(x, y)

    def get_hex_from_point(self, px: float, py: float) -> Optional[Hex]:
        return self.grid.hex_from_point(px, py)

    def get_hex_coordinate(self, hex_: Hex) -> LatLong:
        return self.grid.coordinate(hex_)

    def get_hex_neighbor(self, x: int, y: int, direction: Direction) -> Optional[Hex]:
        return self.grid.neighbor(x, y, direction)

    def get_hex_neighbors(self, hex_: Hex) -> Dict[Direction, Optional[Hex]]:
        return self.grid.neighbors(hex_)

    def hex_neighbors(self, hex_: Hex) -> Iterator[Hex]:
        """Existing neighbors of a hex in direction order."""
        for index in self.grid.iter_neighbors(hex_.index):
            yield self.grid.hexes[index]

    def get_neighbor_direction(self, hex1: Hex, hex2: Hex) -> Optional[Direction]:
        """Direction from ``hex1`` to ``hex2``, or None if they are not adjacent."""
        row = self.grid.neighbor_indices[hex1.index]
        for direction in DIRECTION_ORDER:
            if row[direction] == hex2.index:
                return direction
        return None

    def are_hexes_neighbors(self, hex1: Hex, hex2: Hex) -> bool:
        return self.get_neighbor_direction(hex1, hex2) is not None

    def is_map_edge(self, hex_: Hex) -> bool:
        return self.grid.is_map_edge(hex_)

    # ------------------------------------------------------------------
    # Terrain queries
    # ------------------------------------------------------------------

    def get_terrain(self, hex_: Hex) -> TerrainType:
        return TerrainType(int(self.terrain[hex_.index]))

    def get_terrain_for_coord(self, x: int, y: int) -> TerrainType:
        """
        Terrain at a coordinate, following longitude and pole wrapping.

        Any x wraps around in longitude. One row past a pole reflects over
        it. Rows further past a pole are ``TerrainType.NONE``.
        """
        coord = self.grid.resolve_coord(x, y)
        if coord is None:
            return TerrainType.NONE
        index = self.grid.index_of(*coord)
        if index < 0:
            return TerrainType.NONE
        return TerrainType(int(self.terrain[index]))

    def get_hex_neighbor_terrain(self, x: int, y: int) -> Dict[Direction, TerrainType]:
        """Terrain in every direction around (x, y), following pole and longitude wrapping."""
        return {
            direction: self.get_terrain_for_coord(*self.grid.neighbor_coord(x, y, direction))
            for direction in DIRECTION_ORDER
        }

    def is_land(self, hex_: Hex) -> bool:
        return is_land_terrain(int(self.terrain[hex_.index]))

    def get_hex_height(self, hex_: Hex) -> int:
        return int(self.heightmap[hex_.index])

    def get_distance_to_coast(self, hex_: Hex) -> int:
        return int(self.distance_to_coast[hex_.index])

    def get_rainfall(self, hex_: Hex) -> int:
        return int(self.rainfall[hex_.index])

    # ------------------------------------------------------------------
    # Climate queries
    # ------------------------------------------------------------------

    def get_pressure(self, hex_: Hex, season: Season) -> float:
        return float(self.pressure[season][hex_.index])

    def get_wind(self, hex_: Hex, season: Season) -> Tuple[int, float]:
        """(direction in degrees, speed) of the wind at a hex."""
        return (
            int(self.wind_direction[season][hex_.index]),
            float(self.wind_speed[season][hex_.index]),
        )

    def get_ocean_current(self, hex_: Hex, season: Season) -> Tuple[int, float]:
        """(direction in degrees, speed) of the ocean current at a hex."""
        return (
            int(self.ocean_current_direction[season][hex_.index]),
            float(self.ocean_current_speed[season][hex_.index]),
        )

    def get_solar_flux_january(self, hex_: Hex) -> float:
        lat = self.get_hex_coordinate(hex_).lat
        effective_lat = abs(lat + self.axial_tilt)
        return max((90 - effective_lat) / 90, 0.0)

    def get_solar_flux_july(self, hex_: Hex) -> float:
        lat = self.get_hex_coordinate(hex_).lat
        effective_lat = abs(lat - self.axial_tilt)
        return max((90 - effective_lat) / 90, 0.0)

    def get_temperature_january(self, hex_: Hex) -> float:
        return self.get_solar_flux_january(hex_) * 51 - 11

    def get_temperature_july(self, hex_: Hex) -> float:
        return self.get_solar_flux_july(hex_) * 51 - 11

    def get_hex_npp(self, hex_: Hex) -> float:
        """
        Net primary production of a hex.

        The lesser of a temperature-limited and a rainfall-limited logistic
        estimate, using the mean of the January and July temperatures.
        """
        temp = (self.get_temperature_january(hex_) + self.get_temperature_july(hex_)) / 2
        precipitation = self.get_rainfall(hex_)
        return min(
            3000 / (1 + math.exp(1.315 - 0.119 * temp)),
            3000 * (1 - math.exp(-0.000664 * precipitation)),
        )

    def get_hex_hunter_carry_capacity(self, hex_: Hex, prng: Optional[AleaPRNG] = None) -> float:
        """
        Hunter-gatherer carrying capacity of a hex.

        Biodiversity and pathogen load each take a random draw, so repeated
        calls differ. Draws come from ``prng`` or the process-wide PRNG.
        """
        prng = prng or get_prng()
        norm_npp = self.get_hex_npp(hex_) / EARTH_NPP
        biodiversity = norm_npp * 0.523 + prng.random() * 0.477
        pathogens = norm_npp * 0.685 + prng.random() * 1.295 - 0.98
        carry_capacity = (
            norm_npp * 0.002
            + biodiversity * 6.31
            + pathogens * -0.876
            + norm_npp * biodiversity * -0.003
            + norm_npp * pathogens * -0.002
            + 2.245
        )
        return max(0.0, math.exp(carry_capacity))

    # ------------------------------------------------------------------
    # Rivers and roads
    # ------------------------------------------------------------------

    def has_river(self, hex1: Hex, hex2: Hex) -> bool:
        """True when the edge between two hexes carries a river."""
        return hex2.index in self.river_hex_pairs.get(hex1.index, ())

    def get_river_neighbors(self, hex_: Hex) -> List[Hex]:
        """Neighbors a hex shares a river edge with."""
        return [self.grid.hexes[i] for i in sorted(self.river_hex_pairs.get(hex_.index, ()))]

    def set_hex_road(self, node: Hex, other_node: Hex, direction: Direction) -> None:
        self.hex_roads.setdefault(node.index, {})[direction] = other_node.index

    def set_road_path(self, path: List[Hex]) -> None:
        """
        Lay a road along consecutive hexes.

        Raises:
            ValueError: If two consecutive hexes are not neighbors
        """
        for node, next_node in zip(path, path[1:]):
            forward = self.get_neighbor_direction(node, next_node)
            backward = self.get_neighbor_direction(next_node, node)
            if forward is None or backward is None:
                raise ValueError(f"Road hexes {node} and {next_node} are not neighbors")
            self.set_hex_road(node, next_node, forward)
            self.set_hex_road(next_node, node, backward)

    def build_road(self, start: Hex, end: Hex) -> List[Hex]:
        """
        Find the shortest road from ``start`` to ``end`` and lay it.

        Returns:
            The road's hexes, or an empty list when no route exists
        """
        path = find_path(self, start, end)
        self.set_road_path(path)
        return path

    def has_road(self, hex_: Hex, direction: Optional[Direction] = None) -> bool:
        roads = self.hex_roads.get(hex_.index)
        if roads is None:
            return False
        if direction is None:
            return True
        return direction in roads

    # ------------------------------------------------------------------
    # Region search
    # ------------------------------------------------------------------

    def flood_fill(
        self,
        first_hex: Hex,
        is_connected: Callable[[Hex, Hex], bool],
        visited: Optional[Set[int]] = None,
    ) -> List[Hex]:
        """Hexes reachable from ``first_hex`` through connected neighbor pairs."""
        hexes = self.grid.hexes
        region = flood_fill(
            self.grid,
            first_hex.index,
            lambda a, b: is_connected(hexes[a], hexes[b]),
            visited,
        )
        return [hexes[i] for i in region]

    def bfs(self, search_func: Callable[[Hex], bool], init_hex: Hex) -> List[Coord]:
        """
        Coordinates reachable from ``init_hex`` through hexes matching ``search_func``.

        The start hex is always included; other hexes are in the order they
        were discovered.
        """
        visited = {init_hex.index}
        output = [(init_hex.x, init_hex.y)]
        queue = deque([init_hex])
        while queue:
            current = queue.popleft()
            for neighbor in self.hex_neighbors(current):
                if neighbor.index in visited:
                    continue
                visited.add(neighbor.index)
                if search_func(neighbor):
                    queue.append(neighbor)
                    output.append((neighbor.x, neighbor.y))
        return output


def calculate_centroid_for_hexes(world: World, hexes: List[Hex]) -> Optional[Tuple[float, float]]:
    """Mean pixel centre of a collection of hexes, or None if it is empty."""
    if not hexes:
        return None
    x = 0.0
    y = 0.0
    for hex_ in hexes:
        px, py = world.get_hex_position(hex_.x, hex_.y)
        x += px
        y += py
    return x / len(hexes), y / len(hexes)
