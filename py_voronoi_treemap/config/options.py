"""
Option models for the Voronoi map simulation and treemap builder.

These models define defaults and validation bounds for every knob the engine
exposes.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class OverweightStrategy(str, Enum):
    """How a pair of sites whose lighter cell would vanish gets corrected."""

    RAISE_LIGHTEST = "raise_lightest"
    RESCALE_HEAVIEST = "rescale_heaviest"


class SimulationOptions(BaseModel):
    """Settings for one Voronoi map simulation."""

    convergence_ratio: float = Field(
        default=0.01, gt=0, le=1,
        description="Simulation converges once area error < ratio * total area")
    max_iteration_count: int = Field(
        default=50, ge=0, description="Simulation stops after this many ticks")
    min_weight_ratio: float = Field(
        default=0.01, ge=0, le=1,
        description="Data weights are floored at ratio * max weight")
    overweight_strategy: OverweightStrategy = Field(
        default=OverweightStrategy.RAISE_LIGHTEST,
        description="Correction applied to overweighted site pairs")
    overweight_max_iterations: int = Field(
        default=1000, gt=0, description="Bound on overweight fixes per correction")
    flickering_length: int = Field(
        default=10, gt=0, description="Sliding window length of flicker detection")


class TreemapOptions(SimulationOptions):
    """Settings for a recursive Voronoi treemap build."""

    max_depth: Optional[int] = Field(
        default=None, ge=0, description="Deepest hierarchy level allowed, None for no bound")
