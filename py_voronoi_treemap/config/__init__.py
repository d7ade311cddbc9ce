"""
Configuration modules for Voronoi layouts.
"""

from .config import Settings, settings
from .options import OverweightStrategy, SimulationOptions, TreemapOptions

__all__ = ['Settings', 'settings', 'OverweightStrategy', 'SimulationOptions', 'TreemapOptions']
