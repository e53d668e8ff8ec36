"""
Procedural hex world generation.

Terrain, rivers, rainfall and seasonal climate on a longitude-wrapping hex
grid, deterministic for a given (size, sealevel, seed, axial_tilt).
"""

from .core import World, WorldData, WorldGeneratorOptions, generate

__version__ = "0.1.0"

__all__ = ['World', 'WorldData', 'WorldGeneratorOptions', 'generate']
