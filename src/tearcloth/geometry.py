# geometry.py
from collections.abc import Iterable

from numba import njit  # type: ignore
import numpy as np


@njit(cache=True)  # type: ignore
def segment_distance(
    px: float, py: float, ax: float, ay: float, bx: float, by: float
) -> float:
    """Distance from (px, py) to the segment a-b.

    The projection parameter is clamped to [0, 1], so points beyond either
    end measure to the nearer endpoint. A zero-length segment is a point.
    """
    abx = bx - ax
    aby = by - ay
    apx = px - ax
    apy = py - ay
    len_sq = abx * abx + aby * aby

    if len_sq == 0.0:
        return np.sqrt(apx * apx + apy * apy)

    t = (apx * abx + apy * aby) / len_sq
    t = min(1.0, max(0.0, t))

    dx = px - (ax + t * abx)
    dy = py - (ay + t * aby)
    return np.sqrt(dx * dx + dy * dy)


def distance_point_to_segment(
    p: Iterable[float], a: Iterable[float], b: Iterable[float]
) -> float:
    px, py = p
    ax, ay = a
    bx, by = b
    return float(segment_distance(float(px), float(py), float(ax), float(ay), float(bx), float(by)))
