"""
Terrain classification.

This module implements:
- Noise heightmap generation on the unit sphere
- Per-hex terrain rules from height, latitude and noise
- Lake marking from the depression pass
- Coast promotion for ocean next to land
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, NamedTuple, Optional

import numpy as np
import structlog

from .depressions import DepressionOptions, DepressionRemover
from .features import compute_distance_to_coast
from .hexgrid import Coord, HexGrid
from .noise import NoiseChannel, SphereNoise

logger = structlog.get_logger()


class TerrainType(IntEnum):
    """Terrain categories stored in the terrain grid."""

    NONE = 0
    OCEAN = 1
    COAST = 2
    GRASSLAND = 3
    FOREST = 4
    DESERT = 5
    TAIGA = 6
    TUNDRA = 7
    GLACIAL = 8
    LAKE = 9
    RIVER = 10  # overlay marker
    RIVER_MOUTH = 11  # overlay marker
    RIVER_SOURCE = 12  # overlay marker


TERRAIN_TITLES = {
    TerrainType.NONE: "MAP EDGE",
    TerrainType.OCEAN: "Ocean",
    TerrainType.COAST: "Coast",
    TerrainType.GRASSLAND: "Grassland",
    TerrainType.FOREST: "Forest",
    TerrainType.DESERT: "Desert",
    TerrainType.TAIGA: "Taiga",
    TerrainType.TUNDRA: "Tundra",
    TerrainType.GLACIAL: "Glacial",
    TerrainType.LAKE: "Lake",
    TerrainType.RIVER: "River",
    TerrainType.RIVER_MOUTH: "River Mouth",
    TerrainType.RIVER_SOURCE: "River Source",
}

TERRAIN_COLORS = {
    TerrainType.NONE: 0x000000,
    TerrainType.OCEAN: 0x3261A6,
    TerrainType.COAST: 0x3F78CB,
    TerrainType.GRASSLAND: 0x81B446,
    TerrainType.FOREST: 0x236E29,
    TerrainType.DESERT: 0xD9BF8C,
    TerrainType.TAIGA: 0x006259,
    TerrainType.TUNDRA: 0x96D1C3,
    TerrainType.GLACIAL: 0xFAFAFA,
    TerrainType.LAKE: 0x4A8CD9,
    TerrainType.RIVER: 0x3F78CB,
    TerrainType.RIVER_MOUTH: 0x3F78CB,
    TerrainType.RIVER_SOURCE: 0x3F78CB,
}

# Terrain types drawn blending into each key type at tile borders
TERRAIN_TRANSITIONS = {
    TerrainType.COAST: [
        TerrainType.DESERT,
        TerrainType.GRASSLAND,
        TerrainType.FOREST,
        TerrainType.TAIGA,
        TerrainType.TUNDRA,
        TerrainType.GLACIAL,
    ],
    TerrainType.FOREST: [TerrainType.TAIGA, TerrainType.GRASSLAND],
    TerrainType.DESERT: [TerrainType.GRASSLAND, TerrainType.FOREST],
    TerrainType.TUNDRA: [TerrainType.GLACIAL, TerrainType.TAIGA],
    TerrainType.TAIGA: [TerrainType.GRASSLAND, TerrainType.GLACIAL],
    TerrainType.OCEAN: [TerrainType.COAST],
    TerrainType.LAKE: [TerrainType.GRASSLAND, TerrainType.FOREST, TerrainType.TAIGA],
}

WATER_TYPES = (TerrainType.NONE, TerrainType.OCEAN, TerrainType.COAST, TerrainType.LAKE)
SEA_TYPES = (TerrainType.OCEAN, TerrainType.COAST)


def is_land_terrain(terrain_type: int) -> bool:
    return terrain_type not in WATER_TYPES


def land_mask(terrain: np.ndarray) -> np.ndarray:
    """Boolean mask of land hexes (glacial counts as land, lakes do not)."""
    return ~np.isin(terrain, WATER_TYPES)


def sea_mask(terrain: np.ndarray) -> np.ndarray:
    """Boolean mask of ocean and coast hexes."""
    return np.isin(terrain, SEA_TYPES)


@dataclass
class TerrainOptions:
    """Terrain classification options."""

    # Noise channels
    height_noise: NoiseChannel = field(default_factory=lambda: NoiseChannel(7, 0.5, 1.0))
    glacial_noise: NoiseChannel = field(default_factory=lambda: NoiseChannel(7, 2.0, 1.0))
    band_noise: NoiseChannel = field(default_factory=lambda: NoiseChannel(7, 2.0, 1.5))
    split_noise: NoiseChannel = field(default_factory=lambda: NoiseChannel(7, 0.5, 3.0))

    # Glaciation
    glacial_latitude: float = 75.0  # Poleward of this, ice may appear at any height

    # Water depth
    ocean_depth: int = 20  # Below sealevel - ocean_depth is open ocean

    # Latitude bands (each widened by band noise * band_noise_width)
    tundra_latitude: float = 50.0
    taiga_latitude: float = 40.0
    forest_latitude: float = 30.0
    band_noise_width: float = 20.0

    # Height bands above sealevel
    taiga_max_height: int = 25  # Below this the tundra band may hold taiga
    forest_max_height: int = 10  # Below this the warm band may hold forest
    grassland_max_height: int = 35  # Above this the warm band is desert

    # Coin-flip thresholds for split bands
    tundra_split: float = 0.55
    grassland_split: float = 0.5


class TerrainResult(NamedTuple):
    """Output of terrain classification."""

    terrain: np.ndarray  # uint32 terrain type per hex
    heightmap: np.ndarray  # uint8 corrected heights
    depressions: List[List[Coord]]  # depressions left after correction
    distance_to_coast: np.ndarray  # int32


def quantize_heights(heights: np.ndarray) -> np.ndarray:
    """Round and clamp float heights into uint8."""
    return np.clip(np.rint(heights), 0, 255).astype(np.uint8)


def generate_heightmap(
    grid: HexGrid, seed, options: Optional[TerrainOptions] = None
) -> np.ndarray:
    """
    Sample the raw heightmap.

    Args:
        grid: Hex grid
        seed: World seed
        options: Terrain options (height noise channel)

    Returns:
        uint8 height per hex in 0-255
    """
    options = options or TerrainOptions()
    logger.info("Generating heightmap", hexes=grid.n_hexes)

    noise = SphereNoise(seed)
    raw = noise.field(grid.sphere_points(), options.height_noise)
    heights = quantize_heights(((raw + 1) / 2) * 255)

    logger.info(
        "Heightmap generated",
        min_height=int(heights.min()),
        max_height=int(heights.max()),
        mean_height=round(float(heights.mean()), 2),
    )
    return heights


class TerrainClassifier:
    """Assigns a terrain type to every hex."""

    def __init__(
        self,
        grid: HexGrid,
        sealevel: int,
        seed,
        options: Optional[TerrainOptions] = None,
        depression_options: Optional[DepressionOptions] = None,
    ):
        """
        Initialize terrain classifier.

        Args:
            grid: Hex grid
            sealevel: Height separating water from land
            seed: World seed; classification noise reseeds from it
            options: Terrain options
            depression_options: Options for the depression pass
        """
        self.grid = grid
        self.sealevel = sealevel
        self.seed = seed
        self.options = options or TerrainOptions()
        self.depression_remover = DepressionRemover(grid, sealevel, depression_options)

    def classify(self, heightmap: np.ndarray) -> TerrainResult:
        """
        Classify a raw heightmap.

        Depressions are corrected first; every later rule reads the corrected
        heights.

        Args:
            heightmap: Raw uint8 height per hex

        Returns:
            TerrainResult with terrain, corrected heights, remaining
            depressions and distance to coast
        """
        logger.info("Classifying terrain", sealevel=self.sealevel)

        heights, depressions = self.depression_remover.correct(heightmap)
        terrain = self.classify_hexes(heights)
        self.mark_lakes(terrain, depressions)
        self.promote_coast(terrain)
        distance_to_coast = compute_distance_to_coast(self.grid, sea_mask(terrain))

        counts = np.bincount(terrain, minlength=len(TerrainType))
        logger.info(
            "Terrain classified",
            **{
                TERRAIN_TITLES[t].lower().replace(" ", "_"): int(counts[t])
                for t in TerrainType
                if counts[t]
            },
        )
        return TerrainResult(terrain, heights, depressions, distance_to_coast)

    def classify_hexes(self, heights: np.ndarray) -> np.ndarray:
        """Apply the per-hex rule table."""
        opts = self.options
        sealevel = self.sealevel
        noise = SphereNoise(self.seed)
        points = self.grid.sphere_points()
        terrain = np.zeros(self.grid.n_hexes, dtype=np.uint32)

        for index in range(self.grid.n_hexes):
            x, y, z = points[index]
            abs_lat = abs(self.grid.latitudes[index])
            height = int(heights[index])

            if abs_lat > opts.glacial_latitude:
                is_glacial = noise.sample_unit(x, y, z, opts.glacial_noise)
                chance = (abs_lat - opts.glacial_latitude) / (90 - opts.glacial_latitude)
                if is_glacial < chance:
                    terrain[index] = TerrainType.GLACIAL
                    continue

            if height < sealevel - opts.ocean_depth:
                terrain[index] = TerrainType.OCEAN
                continue
            if height < sealevel:
                terrain[index] = TerrainType.COAST
                continue

            deg = noise.sample_unit(x, y, z, opts.band_noise) * opts.band_noise_width
            if abs_lat > opts.tundra_latitude + deg:
                if height < sealevel + opts.taiga_max_height:
                    split = noise.sample_unit(x, y, z, opts.split_noise)
                    terrain[index] = (
                        TerrainType.TUNDRA if split < opts.tundra_split else TerrainType.TAIGA
                    )
                else:
                    terrain[index] = TerrainType.TUNDRA
            elif abs_lat > opts.taiga_latitude + deg:
                terrain[index] = TerrainType.TAIGA
            elif abs_lat > opts.forest_latitude + deg:
                terrain[index] = TerrainType.FOREST
            elif height < sealevel + opts.forest_max_height:
                split = noise.sample_unit(x, y, z, opts.split_noise)
                terrain[index] = (
                    TerrainType.GRASSLAND if split < opts.grassland_split else TerrainType.FOREST
                )
            elif height < sealevel + opts.grassland_max_height:
                terrain[index] = TerrainType.GRASSLAND
            else:
                terrain[index] = TerrainType.DESERT

        return terrain

    def mark_lakes(self, terrain: np.ndarray, depressions: List[List[Coord]]) -> int:
        """Turn non-glacial land inside depressions into lakes."""
        marked = 0
        for group in depressions:
            for x, y in group:
                index = self.grid.index_of(x, y)
                if is_land_terrain(terrain[index]) and terrain[index] != TerrainType.GLACIAL:
                    terrain[index] = TerrainType.LAKE
                    marked += 1
        logger.info("Lakes marked", hexes=marked)
        return marked

    def promote_coast(self, terrain: np.ndarray) -> int:
        """Turn every ocean hex that touches land into coast."""
        land = land_mask(terrain)
        promoted = 0
        for index in np.flatnonzero(terrain == TerrainType.OCEAN):
            if any(land[n] for n in self.grid.iter_neighbors(index)):
                terrain[index] = TerrainType.COAST
                promoted += 1
        return promoted
