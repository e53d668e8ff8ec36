"""
Climate simulation for pressure, wind, ocean currents and rainfall.

This module implements:
- Latitude pressure belts (ITCZ, subtropical high, polar front, polar high)
  shifted seasonally toward the hemisphere with more land
- Continental pressure contrast between summer and winter
- Diffusion smoothing of the pressure field
- Wind from pressure gradients with Coriolis deflection, blended with the
  prevailing wind of each latitude band
- Ocean currents seeded from the wind
- Noise-based rainfall over land

Angles are compass bearings in degrees (0 = north, clockwise) giving the
direction the air or water moves toward.
"""

import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import structlog
from scipy import sparse

from .hexgrid import DIRECTION_BEARINGS, DIRECTION_ORDER, HexGrid
from .noise import NoiseChannel, SphereNoise
from .terrain import land_mask

logger = structlog.get_logger()


class Season(IntEnum):
    """Seasons the climate is simulated for."""

    JANUARY = 0
    JULY = 1


def circular_mean(angles: Sequence[float], weights: Optional[Sequence[float]] = None) -> float:
    """
    Weighted mean of compass angles in degrees.

    Averages unit vectors, so 350 and 10 give 0 rather than 180.

    Returns:
        Mean angle in [0, 360)
    """
    radians = np.radians(np.asarray(angles, dtype=np.float64))
    if weights is None:
        weights = np.ones(len(radians))
    weights = np.asarray(weights, dtype=np.float64)
    x = float(np.sum(weights * np.sin(radians)))
    y = float(np.sum(weights * np.cos(radians)))
    return math.degrees(math.atan2(x, y)) % 360


def triangular_falloff(distance: np.ndarray, half_width: float) -> np.ndarray:
    """1 at the centre of a belt, falling linearly to 0 at ``half_width``."""
    return np.maximum(0.0, 1.0 - np.abs(distance) / half_width)


@dataclass
class ClimateOptions:
    """Climate simulation options."""

    # Pressure (hPa)
    average_pressure: float = 1004.0
    belt_half_width: float = 15.0  # Degrees of latitude
    itcz_pressure: float = -8.0
    subtropical_high_pressure: float = 12.0
    polar_front_pressure: float = -12.0
    polar_high_pressure: float = 4.0
    continental_pressure: float = 8.0  # Winter gain / summer loss deep inland
    continental_distance: int = 10  # Hexes from the coast for the full effect
    pressure_noise_amplitude: float = 2.0
    pressure_noise: NoiseChannel = field(default_factory=lambda: NoiseChannel(4, 0.5, 3.0))
    blur_passes: int = 40

    # Wind
    wind_speed_factor: float = 3.0  # Speed per hPa of neighbor pressure spread
    wind_speed_reference: float = 6.0  # Speed at which the gradient fully decides direction
    max_coriolis_deflection: float = 45.0  # Degrees

    # Prevailing winds by band (direction moved toward)
    trade_winds_north: float = 225.0
    trade_winds_south: float = 315.0
    westerlies_north: float = 45.0
    westerlies_south: float = 135.0
    polar_easterlies_north: float = 225.0
    polar_easterlies_south: float = 315.0

    # Ocean currents
    current_speed: float = 0.5
    current_ticks: int = 10


@dataclass
class RainfallOptions:
    """Rainfall generation options."""

    noise: NoiseChannel = field(default_factory=lambda: NoiseChannel(6, 0.5, 2.0))
    exponent: float = 3.0  # Skews toward dry with occasional wet peaks
    max_rainfall: float = 9000.0


class PressureBelts(NamedTuple):
    """Centre latitudes of the pressure belts for one column and season."""

    itcz: float
    subtropical_north: float
    polar_front_north: float
    subtropical_south: float
    polar_front_south: float


class ClimateResult(NamedTuple):
    """Seasonal climate grids, flat per hex."""

    pressure_january: np.ndarray  # float32
    pressure_july: np.ndarray
    wind_january_direction: np.ndarray  # int16 degrees
    wind_january_speed: np.ndarray  # float32
    wind_july_direction: np.ndarray
    wind_july_speed: np.ndarray
    ocean_current_january_direction: np.ndarray  # int16 degrees
    ocean_current_january_speed: np.ndarray  # float32
    ocean_current_july_direction: np.ndarray
    ocean_current_july_speed: np.ndarray


def belt_latitudes(itcz: np.ndarray) -> PressureBelts:
    """
    Belt centres relative to the ITCZ.

    The subtropical high sits a third of the way from the ITCZ to the pole
    and the polar front halfway between the subtropical high and the pole.
    """
    subtropical_north = itcz + (90 - itcz) / 3
    subtropical_south = itcz - (itcz + 90) / 3
    return PressureBelts(
        itcz=itcz,
        subtropical_north=subtropical_north,
        polar_front_north=(subtropical_north + 90) / 2,
        subtropical_south=subtropical_south,
        polar_front_south=(subtropical_south - 90) / 2,
    )


class ClimateSimulator:
    """Seasonal pressure, wind and ocean current model."""

    def __init__(self, grid: HexGrid, options: Optional[ClimateOptions] = None):
        """
        Initialize the simulator.

        Args:
            grid: Hex grid
            options: Climate options
        """
        self.grid = grid
        self.options = options or ClimateOptions()
        self._xs = np.arange(grid.n_hexes) % grid.width
        self._ys = np.arange(grid.n_hexes) // grid.width
        self._blur_matrix = self._build_blur_matrix()

    def _build_blur_matrix(self) -> sparse.csr_matrix:
        """
        Symmetric diffusion kernel ``I + (A - D) / 7``.

        Each neighbor contributes a seventh of its value, and a hex keeps
        whatever share its missing neighbors leave behind. Rows and columns
        both sum to 1, so the global mean is conserved even along the poles.
        """
        n = self.grid.n_hexes
        rows = []
        cols = []
        for index in range(n):
            for neighbor in self.grid.iter_neighbors(index):
                rows.append(index)
                cols.append(neighbor)
        data = np.ones(len(rows), dtype=np.float64)
        adjacency = sparse.csr_matrix((data, (rows, cols)), shape=(n, n))
        degree = np.asarray(adjacency.sum(axis=1)).ravel()
        share = 1.0 / (len(DIRECTION_ORDER) + 1)
        kernel = sparse.identity(n, format="csr") + (adjacency - sparse.diags(degree)) * share
        return kernel.tocsr()

    def land_fractions(self, land: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Fraction of land north and south of the equator row in every column.

        Returns:
            (north fraction, south fraction), each of length ``width``
        """
        width, height = self.grid.width, self.grid.height
        columns = land.reshape(height, width)
        equator_row = height // 2
        north_rows = equator_row
        south_rows = height - equator_row - 1
        north = columns[:equator_row].sum(axis=0) / max(north_rows, 1)
        south = columns[equator_row + 1:].sum(axis=0) / max(south_rows, 1)
        return north.astype(np.float64), south.astype(np.float64)

    def itcz_latitudes(self, land: np.ndarray, axial_tilt: float, season: Season) -> np.ndarray:
        """
        ITCZ latitude per column.

        The ITCZ follows the sun into the summer hemisphere: a third of the
        axial tilt over open ocean, the full tilt over solid land.
        """
        north, south = self.land_fractions(land)
        if season == Season.JULY:
            return axial_tilt * (1 + 2 * north) / 3
        return -axial_tilt * (1 + 2 * south) / 3

    def pressure_field(
        self,
        season: Season,
        itcz: np.ndarray,
        land: np.ndarray,
        distance_to_coast: np.ndarray,
        noise: np.ndarray,
    ) -> np.ndarray:
        """
        Unsmoothed pressure for one season.

        Args:
            season: Season to compute
            itcz: ITCZ latitude per column
            land: Boolean land mask
            distance_to_coast: Distance-to-coast grid
            noise: Local variation per hex (already scaled)

        Returns:
            float64 pressure per hex in hPa
        """
        opts = self.options
        lat = self.grid.latitudes
        belts = belt_latitudes(itcz[self._xs])
        hw = opts.belt_half_width

        pressure = np.full(self.grid.n_hexes, opts.average_pressure, dtype=np.float64)
        pressure += opts.itcz_pressure * triangular_falloff(lat - belts.itcz, hw)
        pressure += opts.subtropical_high_pressure * triangular_falloff(lat - belts.subtropical_north, hw)
        pressure += opts.subtropical_high_pressure * triangular_falloff(lat - belts.subtropical_south, hw)
        pressure += opts.polar_front_pressure * triangular_falloff(lat - belts.polar_front_north, hw)
        pressure += opts.polar_front_pressure * triangular_falloff(lat - belts.polar_front_south, hw)
        pressure += opts.polar_high_pressure * triangular_falloff(lat - 90, hw)
        pressure += opts.polar_high_pressure * triangular_falloff(lat + 90, hw)

        # Continental interiors: high pressure in winter, low in summer
        inland = np.where(distance_to_coast < 0, opts.continental_distance, distance_to_coast)
        weight = np.clip(inland, 0, opts.continental_distance) / max(opts.continental_distance, 1)
        northern = lat >= 0
        winter = northern if season == Season.JANUARY else ~northern
        sign = np.where(winter, 1.0, -1.0)
        pressure += np.where(land, sign * weight * opts.continental_pressure, 0.0)

        pressure += noise
        return pressure

    def blur(self, values: np.ndarray, passes: Optional[int] = None) -> np.ndarray:
        """
        Diffuse a field by repeated neighbor averaging.

        Every pass reads only the previous pass's values.
        """
        passes = self.options.blur_passes if passes is None else passes
        result = values.astype(np.float64)
        for _ in range(passes):
            result = self._blur_matrix @ result
        return result

    def prevailing_wind(self, lat: float, belts: PressureBelts) -> float:
        """Direction of the band wind at a latitude."""
        opts = self.options
        if lat >= belts.itcz:
            if lat < belts.subtropical_north:
                return opts.trade_winds_north
            if lat < belts.polar_front_north:
                return opts.westerlies_north
            return opts.polar_easterlies_north
        if lat > belts.subtropical_south:
            return opts.trade_winds_south
        if lat > belts.polar_front_south:
            return opts.westerlies_south
        return opts.polar_easterlies_south

    def calculate_wind(self, pressure: np.ndarray, itcz: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Wind direction and speed from a pressure field.

        Air moves toward lower neighbors, weighted by how much lower they are.
        Speed scales with the pressure spread around the hex. Coriolis turns
        the flow right in the north and left in the south, more so for faster
        wind; the result is blended with the band's prevailing wind, trusting
        the gradient more the stronger it is.

        Returns:
            (int16 direction in degrees, float32 speed)
        """
        opts = self.options
        n_hexes = self.grid.n_hexes
        direction = np.zeros(n_hexes, dtype=np.int16)
        speed = np.zeros(n_hexes, dtype=np.float32)
        bearings = np.array([DIRECTION_BEARINGS[d] for d in DIRECTION_ORDER])

        for index in range(n_hexes):
            row = self.grid.neighbor_indices[index]
            valid = row >= 0
            if not valid.any():
                continue
            neighbor_pressure = pressure[row[valid]]
            drops = pressure[index] - neighbor_pressure
            hex_speed = float(neighbor_pressure.max() - neighbor_pressure.min()) * opts.wind_speed_factor

            lat = float(self.grid.latitudes[index])
            belts = belt_latitudes(float(itcz[self._xs[index]]))
            prevailing = self.prevailing_wind(lat, belts)

            lower = drops > 0
            if lower.any():
                base = circular_mean(bearings[valid][lower], drops[lower])
                strength = min(hex_speed / opts.wind_speed_reference, 1.0) if opts.wind_speed_reference > 0 else 1.0
                deflected = base + np.sign(lat) * strength * opts.max_coriolis_deflection
                angle = circular_mean([deflected, prevailing], [strength, 1.0 - strength])
            else:
                angle = prevailing

            direction[index] = int(round(angle)) % 360
            speed[index] = hex_speed

        return direction, speed

    def calculate_ocean_currents(
        self, wind_direction: np.ndarray, water: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Ocean currents seeded from the overlying wind.

        Water hexes take the wind direction at a fixed low speed; land holds
        zero. The relaxation ticks keep that state, since no exchange between
        hexes is modelled.
        """
        direction = np.where(water, wind_direction, 0).astype(np.int16)
        speed = np.where(water, self.options.current_speed, 0.0).astype(np.float32)
        for _ in range(self.options.current_ticks):
            direction, speed = self._step_currents(direction, speed)
        return direction, speed

    def _step_currents(
        self, direction: np.ndarray, speed: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray]:
        return direction.copy(), speed.copy()

    def simulate(
        self,
        terrain: np.ndarray,
        distance_to_coast: np.ndarray,
        axial_tilt: float,
        seed,
    ) -> ClimateResult:
        """
        Run the full seasonal climate model.

        Args:
            terrain: Terrain type per hex
            distance_to_coast: Distance-to-coast grid
            axial_tilt: Planet axial tilt in degrees
            seed: World seed; pressure noise reseeds from it

        Returns:
            ClimateResult with pressure, wind and current grids
        """
        logger.info("Simulating climate", axial_tilt=axial_tilt)

        land = land_mask(terrain)
        noise = SphereNoise(seed).field(self.grid.sphere_points(), self.options.pressure_noise)
        noise *= self.options.pressure_noise_amplitude

        seasonal: Dict[Season, tuple] = {}
        for season in (Season.JANUARY, Season.JULY):
            itcz = self.itcz_latitudes(land, axial_tilt, season)
            raw = self.pressure_field(season, itcz, land, distance_to_coast, noise)
            pressure = self.blur(raw)
            wind_direction, wind_speed = self.calculate_wind(pressure, itcz)
            current_direction, current_speed = self.calculate_ocean_currents(wind_direction, ~land)
            seasonal[season] = (
                pressure.astype(np.float32),
                wind_direction,
                wind_speed,
                current_direction,
                current_speed,
            )
            logger.info(
                "Season simulated",
                season=season.name.lower(),
                pressure_min=round(float(pressure.min()), 2),
                pressure_max=round(float(pressure.max()), 2),
                variance_before_blur=round(float(raw.var()), 3),
                variance_after_blur=round(float(pressure.var()), 3),
                mean_wind_speed=round(float(wind_speed.mean()), 3),
            )

        january = seasonal[Season.JANUARY]
        july = seasonal[Season.JULY]
        return ClimateResult(
            pressure_january=january[0],
            pressure_july=july[0],
            wind_january_direction=january[1],
            wind_january_speed=january[2],
            wind_july_direction=july[1],
            wind_july_speed=july[2],
            ocean_current_january_direction=january[3],
            ocean_current_january_speed=january[4],
            ocean_current_july_direction=july[3],
            ocean_current_july_speed=july[4],
        )


class RainfallGenerator:
    """Noise-based precipitation over land."""

    def __init__(self, grid: HexGrid, options: Optional[RainfallOptions] = None):
        self.grid = grid
        self.options = options or RainfallOptions()

    def generate(self, terrain: np.ndarray, seed) -> np.ndarray:
        """
        Rainfall per hex.

        Land gets unit noise raised to ``exponent`` and scaled to
        ``max_rainfall``; water gets 0.

        Returns:
            int32 rainfall per hex
        """
        logger.info("Generating rainfall")

        land = land_mask(terrain)
        noise = SphereNoise(seed)
        points = self.grid.sphere_points()
        rainfall = np.zeros(self.grid.n_hexes, dtype=np.int32)
        for index in np.flatnonzero(land):
            x, y, z = points[index]
            value = noise.sample_unit(x, y, z, self.options.noise)
            value = min(max(value, 0.0), 1.0)
            rainfall[index] = int(value ** self.options.exponent * self.options.max_rainfall)

        logger.info(
            "Rainfall generated",
            land_hexes=int(land.sum()),
            mean_land_rainfall=round(float(rainfall[land].mean()), 2) if land.any() else 0.0,
        )
        return rainfall
