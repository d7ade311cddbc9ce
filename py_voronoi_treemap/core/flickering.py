"""
Flickering mitigation for the Voronoi map simulation.

When the total area error keeps switching between growing and shrinking from
one iteration to the next, the layout visibly flickers. This module keeps a
sliding window of those switches and turns it into a damping ratio.
"""

import math
from typing import List

DEFAULT_LENGTH = 10

INITIAL_WEIGHT = 3
WEIGHT_DECREMENT = 1
MIN_WEIGHT = 1


def _direction(h0: float, h1: float) -> int:
    return 1 if h0 >= h1 else -1


def growth_change_weights(length: int) -> List[int]:
    """Recency weights: 3, 2, then 1 for every older slot."""
    weights = []
    weighted_count = INITIAL_WEIGHT
    for _ in range(length):
        weights.append(weighted_count)
        weighted_count = max(weighted_count - WEIGHT_DECREMENT, MIN_WEIGHT)
    return weights


class FlickeringMitigation:
    """Tracks direction flips of the area error over the last ``length`` ticks."""

    def __init__(self, length: int = DEFAULT_LENGTH):
        self._length = length
        self._weights = growth_change_weights(length)
        self._weights_sum = sum(self._weights)
        self.total_available_area = math.nan
        self.clear()

    @property
    def length(self) -> int:
        return self._length

    @length.setter
    def length(self, value: int) -> None:
        value = int(value)
        if value > 0:
            self._length = value
            self._weights = growth_change_weights(value)
            self._weights_sum = sum(self._weights)

    @property
    def total_area(self) -> float:
        return self.total_available_area

    @total_area.setter
    def total_area(self, value: float) -> None:
        if value > 0:
            self.total_available_area = float(value)

    def clear(self) -> "FlickeringMitigation":
        """Forget the error history but keep the configuration."""
        self.last_area_error = math.nan
        self.last_growth = math.nan
        self.growth_changes: List[bool] = []
        return self

    def reset(self) -> "FlickeringMitigation":
        """Forget everything, configuration included."""
        self.clear()
        self.length = DEFAULT_LENGTH
        self.total_available_area = math.nan
        return self

    def add(self, area_error: float) -> "FlickeringMitigation":
        second_to_last_area_error = self.last_area_error
        second_to_last_growth = math.nan
        self.last_area_error = area_error

        if not math.isnan(second_to_last_area_error):
            second_to_last_growth = self.last_growth
            self.last_growth = _direction(self.last_area_error, second_to_last_area_error)

        if not math.isnan(second_to_last_growth):
            self.growth_changes.insert(0, self.last_growth != second_to_last_growth)

        if len(self.growth_changes) > self._length:
            self.growth_changes.pop()
        return self

    def ratio(self) -> float:
        """Weighted share of flips in the window, in [0, 1].

        Zero until the window is full, and zero while the error is still above
        a tenth of the total area.
        """
        if len(self.growth_changes) < self._length:
            return 0.0
        if self.last_area_error > self.total_available_area / 10:
            return 0.0

        weighted_change_count = sum(
            weight for changed, weight in zip(self.growth_changes, self._weights) if changed
        )
        return weighted_change_count / self._weights_sum
