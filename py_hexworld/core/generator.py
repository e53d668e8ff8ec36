"""
World generation pipeline.

Phases run strictly in order, each consuming the finished output of the
previous ones:

1. Build the grid and edge graph
2. Sample the heightmap
3. Correct depressions and classify terrain
4. Trace rivers
5. Generate rainfall
6. Simulate climate

Every phase that draws random numbers reseeds its own PRNG from the world
seed, so the output is a pure function of (size, sealevel, seed, axial_tilt).
"""

from dataclasses import dataclass, field
from typing import Optional, Union

import structlog
from pydantic import BaseModel, Field, field_validator

from ..config import settings
from ..utils.timing import run_phase
from .alea_prng import normalize_seed
from .climate import ClimateOptions, ClimateSimulator, RainfallGenerator, RainfallOptions
from .depressions import DepressionOptions
from .hydrology import RiverBuilder, RiverOptions
from .terrain import TerrainClassifier, TerrainOptions, generate_heightmap
from .world import World

logger = structlog.get_logger()


class WorldGeneratorOptions(BaseModel):
    """Inputs that fully determine a generated world."""

    size: int = Field(description="World size; the grid is 2*size by size hexes")
    sealevel: int = Field(default=140, ge=0, le=255, description="Height separating water from land")
    seed: Union[int, float] = Field(description="World seed")
    axial_tilt: float = Field(
        default=23.0, ge=-90, le=90, allow_inf_nan=False, description="Axial tilt in degrees"
    )

    @field_validator("size")
    @classmethod
    def check_size(cls, value: int) -> int:
        if value <= 0:
            raise ValueError(f"size must be positive, got {value}")
        if value > settings.max_world_size:
            raise ValueError(f"size must be at most {settings.max_world_size}, got {value}")
        return value

    @field_validator("seed")
    @classmethod
    def check_seed(cls, value):
        return normalize_seed(value)


@dataclass
class GenerationSettings:
    """Tunables for every phase."""

    terrain: TerrainOptions = field(default_factory=TerrainOptions)
    depressions: DepressionOptions = field(default_factory=DepressionOptions)
    rivers: RiverOptions = field(default_factory=RiverOptions)
    rainfall: RainfallOptions = field(default_factory=RainfallOptions)
    climate: ClimateOptions = field(default_factory=ClimateOptions)


class WorldGenerator:
    """Runs the generation phases and assembles a World."""

    def __init__(self, options: WorldGeneratorOptions, phase_settings: Optional[GenerationSettings] = None):
        """
        Initialize the generator.

        Args:
            options: Validated generation options
            phase_settings: Per-phase tunables
        """
        self.options = options
        self.settings = phase_settings or GenerationSettings()

    def generate(self) -> World:
        """
        Generate a world.

        Returns:
            World populated with terrain, rivers, rainfall and climate; its
            ``world_data`` holds the matching snapshot
        """
        opts = self.options
        logger.info(
            "Generating world",
            size=opts.size,
            sealevel=opts.sealevel,
            seed=opts.seed,
            axial_tilt=opts.axial_tilt,
        )

        world = World()
        run_phase("world_size", world.set_world_size, opts.size)
        world.set_world_axial_tilt(opts.axial_tilt)
        grid = world.grid

        heightmap = run_phase(
            "heightmap", generate_heightmap, grid, opts.seed, self.settings.terrain
        )

        classifier = TerrainClassifier(
            grid,
            opts.sealevel,
            opts.seed,
            self.settings.terrain,
            self.settings.depressions,
        )
        terrain_result = run_phase("terrain", classifier.classify, heightmap)
        run_phase(
            "regions",
            world.set_world_terrain,
            terrain_result.terrain,
            terrain_result.heightmap,
            terrain_result.distance_to_coast,
        )

        river_builder = RiverBuilder(world.edge_graph, self.settings.rivers)
        rivers = run_phase(
            "rivers",
            river_builder.build_rivers,
            terrain_result.heightmap,
            terrain_result.terrain,
            opts.seed,
        )
        world.set_world_rivers(rivers)

        rainfall_generator = RainfallGenerator(grid, self.settings.rainfall)
        rainfall = run_phase("rainfall", rainfall_generator.generate, terrain_result.terrain, opts.seed)
        world.set_world_rainfall(rainfall)

        simulator = ClimateSimulator(grid, self.settings.climate)
        climate = run_phase(
            "climate",
            simulator.simulate,
            terrain_result.terrain,
            terrain_result.distance_to_coast,
            opts.axial_tilt,
            opts.seed,
        )
        world.set_world_climate(climate)

        world.world_data = world.to_data(opts.sealevel, opts.seed)
        logger.info(
            "World generated",
            hexes=grid.n_hexes,
            edges=world.edge_graph.n_edges,
            landmasses=len(world.landmasses),
            ecoregions=len(world.ecoregions),
            rivers=len(world.rivers),
        )
        return world


def generate(
    size: int,
    sealevel: int = 140,
    seed: Union[int, float] = 0,
    axial_tilt: float = 23.0,
    phase_settings: Optional[GenerationSettings] = None,
) -> World:
    """
    Validate options and generate a world.

    Raises:
        pydantic.ValidationError: If any option is out of range (a ValueError)
    """
    options = WorldGeneratorOptions(size=size, sealevel=sealevel, seed=seed, axial_tilt=axial_tilt)
    return WorldGenerator(options, phase_settings).generate()
