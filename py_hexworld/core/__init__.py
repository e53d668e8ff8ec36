"""
Core world generation functionality.
"""

from .hexgrid import Direction, Hex, HexGrid, LatLong
from .edge_graph import Edge, EdgeGraph
from .terrain import TerrainClassifier, TerrainOptions, TerrainType
from .climate import ClimateOptions, ClimateSimulator, RainfallGenerator, Season
from .world import World, WorldData, calculate_centroid_for_hexes
from .generator import WorldGenerator, WorldGeneratorOptions, generate
from .pathfinding import find_path, hex_distance

__all__ = ['Direction', 'Hex', 'HexGrid', 'LatLong', 'Edge', 'EdgeGraph',
           'TerrainClassifier', 'TerrainOptions', 'TerrainType',
           'ClimateOptions', 'ClimateSimulator', 'RainfallGenerator', 'Season',
           'World', 'WorldData', 'calculate_centroid_for_hexes',
           'WorldGenerator', 'WorldGeneratorOptions', 'generate',
           'find_path', 'hex_distance']
