"""
Hex lattice with odd-q offset coordinates for a toroidal-longitude world.

The grid is ``2 * size`` columns wide and ``size`` rows tall. Columns wrap
around in longitude; rows stop at the poles. All per-hex state lives in flat
arrays indexed by ``Hex.index`` (``y * width + x``), never on hex objects.
"""

import math
from enum import IntEnum
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple

import numpy as np
import structlog

logger = structlog.get_logger()

# Pixel radii of a flat-top hex
HEX_RADIUS_X = 32.663
HEX_RADIUS_Y = 34.641
HEX_WIDTH = HEX_RADIUS_X * 2
HEX_HEIGHT = HEX_RADIUS_Y * math.sqrt(3)


class Direction(IntEnum):
    """Hex edge directions, counterclockwise starting at the lower right."""

    SE = 0
    NE = 1
    N = 2
    NW = 3
    SW = 4
    S = 5


DIRECTION_ORDER = [
    Direction.SE,
    Direction.NE,
    Direction.N,
    Direction.NW,
    Direction.SW,
    Direction.S,
]

DIRECTION_TITLES = {
    Direction.SE: "South East",
    Direction.NE: "North East",
    Direction.N: "North",
    Direction.NW: "North West",
    Direction.SW: "South West",
    Direction.S: "South",
}

OPPOSITE_DIRECTIONS = {d: Direction((d + 3) % 6) for d in DIRECTION_ORDER}

# (previous, next) around the perimeter; the edge in direction d shares one
# endpoint with each of them
ADJACENT_DIRECTIONS = {
    d: (Direction((d - 1) % 6), Direction((d + 1) % 6)) for d in DIRECTION_ORDER
}

# Compass bearing (degrees clockwise from north) of the neighbor in each direction
DIRECTION_BEARINGS = {d: float((120 - 60 * d) % 360) for d in DIRECTION_ORDER}

# Neighbor offsets selected by column parity (x & 1); odd columns sit half a
# hex lower than even ones
ODDQ_DIRECTIONS = (
    {
        Direction.SE: (1, 0),
        Direction.NE: (1, -1),
        Direction.N: (0, -1),
        Direction.NW: (-1, -1),
        Direction.SW: (-1, 0),
        Direction.S: (0, 1),
    },
    {
        Direction.SE: (1, 1),
        Direction.NE: (1, 0),
        Direction.N: (0, -1),
        Direction.NW: (-1, 0),
        Direction.SW: (-1, 1),
        Direction.S: (0, 1),
    },
)

Coord = Tuple[int, int]


class Hex(NamedTuple):
    """A grid cell. Identity only; state is kept in the world arrays."""

    x: int
    y: int
    index: int


class LatLong(NamedTuple):
    """Latitude in [-90, 90] and longitude in [-180, 180)."""

    lat: float
    long: float


class HexGrid:
    """
    Addressable hex lattice.

    Lookups outside the grid return ``None``; callers treat that as a normal
    boundary condition.
    """

    def __init__(self, width: int, height: int):
        """
        Build the lattice and its lookup tables.

        Args:
            width: Number of columns (must be even so wrapping keeps parity)
            height: Number of rows
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {width}x{height}")
        if width % 2:
            raise ValueError(f"Grid width must be even to wrap longitude, got {width}")

        self.width = width
        self.height = height
        self.n_hexes = width * height

        self.hexes: List[Hex] = [
            Hex(index % width, index // width, index) for index in range(self.n_hexes)
        ]

        xs = np.arange(self.n_hexes) % width
        ys = np.arange(self.n_hexes) // width

        self.longitudes = (xs / width) * 360.0 - 180.0
        self.latitudes = (-ys / height) * 180.0 + 90.0

        self.positions = np.zeros((self.n_hexes, 2), dtype=np.float64)
        self.positions[:, 0] = xs * HEX_WIDTH * 0.75
        self.positions[:, 1] = HEX_HEIGHT * (ys + 0.5 * (xs & 1))

        self.map_edge = (xs == 0) | (xs == width - 1) | (ys == 0) | (ys == height - 1)

        # neighbor_indices[i, d] is the neighbor of hex i in direction d or -1
        self.neighbor_indices = np.full((self.n_hexes, 6), -1, dtype=np.int32)
        for hex_ in self.hexes:
            for direction in DIRECTION_ORDER:
                neighbor = self.neighbor(hex_.x, hex_.y, direction)
                if neighbor is not None:
                    self.neighbor_indices[hex_.index, direction] = neighbor.index

        logger.debug("Hex grid built", width=width, height=height, hexes=self.n_hexes)

    @classmethod
    def from_size(cls, size: int) -> "HexGrid":
        """Build the ``2 * size`` by ``size`` world grid."""
        return cls(size * 2, size)

    def __len__(self) -> int:
        return self.n_hexes

    def __iter__(self) -> Iterator[Hex]:
        return iter(self.hexes)

    def contains(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def index_of(self, x: int, y: int) -> int:
        """Flat index of (x, y), or -1 outside the grid."""
        if not self.contains(x, y):
            return -1
        return y * self.width + x

    def at(self, x: int, y: int) -> Optional[Hex]:
        """Return the hex at (x, y), or None outside the grid."""
        if not self.contains(x, y):
            return None
        return self.hexes[y * self.width + x]

    def neighbor_coord(self, x: int, y: int, direction: Direction) -> Coord:
        """Raw offset-coordinate neighbor, without any wrapping."""
        dx, dy = ODDQ_DIRECTIONS[x & 1][direction]
        return x + dx, y + dy

    def resolve_coord(self, x: int, y: int) -> Optional[Coord]:
        """
        Map a coordinate outside the grid back onto it.

        Any longitude wraps. One row past a pole reflects to the same pole row at
        the mirrored longitude, i.e. over the pole and down the other side.
        Rows further past a pole give None.
        """
        if y == -1 or y == self.height:
            half = round(self.width / 2)
            nx = min(max(half + (half - x) - 1, 0), self.width - 1)
            ny = 0 if y == -1 else self.height - 1
            return nx, ny
        if y < -1 or y > self.height:
            return None
        return x % self.width, y

    def neighbor(
        self, x: int, y: int, direction: Direction, across_poles: bool = False
    ) -> Optional[Hex]:
        """
        Neighbor of (x, y) in ``direction``.

        Longitude always wraps. Past a pole the result is None unless
        ``across_poles`` is set, in which case the pole reflection applies.
        """
        nx, ny = self.neighbor_coord(x, y, direction)
        if 0 <= ny < self.height:
            return self.hexes[ny * self.width + nx % self.width]
        if not across_poles:
            return None
        coord = self.resolve_coord(nx, ny)
        if coord is None:
            return None
        return self.at(*coord)

    def neighbors(self, hex_: Hex) -> Dict[Direction, Optional[Hex]]:
        """All six neighbors of a hex keyed by direction."""
        row = self.neighbor_indices[hex_.index]
        return {
            direction: (self.hexes[row[direction]] if row[direction] >= 0 else None)
            for direction in DIRECTION_ORDER
        }

    def iter_neighbors(self, index: int) -> Iterator[int]:
        """Indices of the existing neighbors of a hex, in direction order."""
        for neighbor in self.neighbor_indices[index]:
            if neighbor >= 0:
                yield int(neighbor)

    def coordinate(self, hex_: Hex) -> LatLong:
        """
        Latitude and longitude of a hex.

        ``long = (x / width) * 360 - 180`` and ``lat = (-y / height) * 180 + 90``.
        """
        long = (hex_.x / self.width) * 360 - 180
        lat = (-hex_.y / self.height) * 180 + 90
        return LatLong(lat, long)

    def sphere_points(self) -> np.ndarray:
        """
        Unit-sphere position of every hex, shape (n_hexes, 3).

        Noise is sampled here rather than on (x, y) so fields are continuous
        across the date line and undistorted near the poles.
        """
        inclination = ((self.latitudes + 90) / 180) * math.pi
        azimuth = ((self.longitudes + 180) / 360) * (2 * math.pi)
        points = np.empty((self.n_hexes, 3), dtype=np.float64)
        points[:, 0] = np.sin(inclination) * np.cos(azimuth)
        points[:, 1] = np.sin(inclination) * np.sin(azimuth)
        points[:, 2] = np.cos(inclination)
        return points

    def hex_position(self, x: int, y: int) -> Optional[Tuple[float, float]]:
        """Pixel centre of a hex, or None outside the grid."""
        index = self.index_of(x, y)
        if index < 0:
            return None
        px, py = self.positions[index]
        return float(px), float(py)

    def hex_from_point(self, px: float, py: float) -> Optional[Hex]:
        """Hex containing a pixel point, or None when it falls off the grid."""
        q = px / (HEX_WIDTH * 0.75)
        r = py / HEX_HEIGHT - q / 2

        # cube rounding
        cx, cz = q, r
        cy = -cx - cz
        rx, ry, rz = round(cx), round(cy), round(cz)
        dx, dy, dz = abs(rx - cx), abs(ry - cy), abs(rz - cz)
        if dx > dy and dx > dz:
            rx = -ry - rz
        elif dy > dz:
            ry = -rx - rz
        else:
            rz = -rx - ry

        col = int(rx)
        row = int(rz + (col - (col & 1)) // 2)
        return self.at(col, row)

    def is_map_edge(self, hex_: Hex) -> bool:
        return bool(self.map_edge[hex_.index])
