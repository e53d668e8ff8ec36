"""
Shared utilities for world generation.
"""
