"""
Overweight correction for power diagram sites.

Two sites i and j with ``|p_i - p_j|^2 < w_heavy - w_light`` leave the lighter
site without a cell. Both strategies repeatedly fix the first such pair found
until none is left.
"""

from typing import Callable, Dict, Optional, Sequence, Tuple

from ..config.options import OverweightStrategy
from .errors import OverweightCorrectionError
from .geometry import EPSILON

MAX_FIX_COUNT = 1000


def squared_distance(s0, s1) -> float:
    return (s1.x - s0.x) ** 2 + (s1.y - s0.y) ** 2


def _first_overweighted_pair(map_points: Sequence) -> Optional[Tuple[object, object, float]]:
    for i, tpi in enumerate(map_points):
        for tpj in map_points[i + 1:]:
            if tpi.weight > tpj.weight:
                heaviest, lightest = tpi, tpj
            else:
                heaviest, lightest = tpj, tpi
            sqr_d = squared_distance(tpi, tpj)
            if sqr_d < heaviest.weight - lightest.weight:
                return heaviest, lightest, sqr_d
    return None


def _correct(map_points: Sequence, fix: Callable, max_fix_count: int, name: str) -> int:
    fix_count = 0
    while True:
        if fix_count > max_fix_count:
            raise OverweightCorrectionError(
                f"{name} did not settle after {max_fix_count} fixes on {len(map_points)} sites")
        pair = _first_overweighted_pair(map_points)
        if pair is None:
            return fix_count
        fix(*pair)
        fix_count += 1


def raise_lightest(map_points: Sequence, max_fix_count: int = MAX_FIX_COUNT) -> int:
    """Raise the lighter weight just past the overweight. Returns the fix count."""
    def fix(heaviest, lightest, sqr_d):
        overweight = heaviest.weight - lightest.weight - sqr_d
        lightest.weight += overweight + EPSILON

    return _correct(map_points, fix, max_fix_count, "raise_lightest")


def rescale_heaviest(map_points: Sequence, max_fix_count: int = MAX_FIX_COUNT) -> int:
    """Shrink the heavier weight to the squared distance plus half the lighter one."""
    def fix(heaviest, lightest, sqr_d):
        heaviest.weight = max(sqr_d + lightest.weight / 2, EPSILON)

    return _correct(map_points, fix, max_fix_count, "rescale_heaviest")


OVERWEIGHT_HANDLERS: Dict[OverweightStrategy, Callable[..., int]] = {
    OverweightStrategy.RAISE_LIGHTEST: raise_lightest,
    OverweightStrategy.RESCALE_HEAVIEST: rescale_heaviest,
}
