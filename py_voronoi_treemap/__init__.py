"""Weighted Voronoi diagrams and Voronoi treemaps."""

__version__ = "0.1.0"
