"""
Example generating a world and plotting its terrain and climate.
"""

import numpy as np
import matplotlib.pyplot as plt

from py_hexworld.config import configure_logging
from py_hexworld.core import Season, TerrainType, generate
from py_hexworld.core.terrain import TERRAIN_COLORS, TERRAIN_TITLES


def main():
    configure_logging()

    world = generate(size=40, sealevel=140, seed=42, axial_tilt=23)
    grid = world.grid
    points = grid.positions

    print(f"Grid: {grid.width} x {grid.height} hexes, {world.edge_graph.n_edges} edges")
    print(f"Landmasses: {len(world.landmasses)}, ecoregions: {len(world.ecoregions)}")
    print(f"Rivers: {len(world.rivers)}")

    fig, axes = plt.subplots(2, 2, figsize=(14, 8))

    # Terrain
    ax = axes[0, 0]
    colors = [f"#{TERRAIN_COLORS[t]:06x}" for t in TerrainType]
    cmap = plt.matplotlib.colors.ListedColormap(colors)
    ax.scatter(points[:, 0], points[:, 1], c=world.terrain, cmap=cmap,
               vmin=0, vmax=len(TerrainType) - 1, s=12, marker='h')
    for river in world.rivers:
        xs = [(points[e.h1, 0] + points[e.h2, 0]) / 2 for e in river]
        ys = [(points[e.h1, 1] + points[e.h2, 1]) / 2 for e in river]
        ax.plot(xs, ys, color='#3F78CB', linewidth=1)
    ax.set_title('Terrain')
    ax.invert_yaxis()
    ax.set_aspect('equal')

    # Rainfall
    ax = axes[0, 1]
    scatter = ax.scatter(points[:, 0], points[:, 1], c=world.rainfall, cmap='YlGnBu', s=12, marker='h')
    ax.set_title('Rainfall')
    ax.invert_yaxis()
    ax.set_aspect('equal')
    plt.colorbar(scatter, ax=ax)

    # Pressure and wind per season
    for ax, season in zip(axes[1], (Season.JANUARY, Season.JULY)):
        pressure = world.pressure[season]
        scatter = ax.scatter(points[:, 0], points[:, 1], c=pressure, cmap='RdBu_r', s=12, marker='h')
        angles = np.radians(world.wind_direction[season].astype(np.float64))
        step = slice(None, None, 7)
        ax.quiver(points[step, 0], points[step, 1],
                  np.sin(angles[step]), -np.cos(angles[step]), scale=60, width=0.002)
        ax.set_title(f'Pressure and wind ({season.name.title()})')
        ax.invert_yaxis()
        ax.set_aspect('equal')
        plt.colorbar(scatter, ax=ax, label='hPa')

    plt.tight_layout()
    plt.savefig('world_demo.png', dpi=150)
    print("\nWorld visualization saved to world_demo.png")

    print("\nTerrain distribution:")
    counts = np.bincount(world.terrain, minlength=len(TerrainType))
    for terrain_type in TerrainType:
        if counts[terrain_type]:
            pct = counts[terrain_type] / grid.n_hexes * 100
            print(f"  {TERRAIN_TITLES[terrain_type]}: {counts[terrain_type]} ({pct:.1f}%)")


if __name__ == "__main__":
    main()
