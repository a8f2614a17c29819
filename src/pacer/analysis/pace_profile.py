"""
Point-by-point pace profile for the pace chart.

Every elevation point gets the windowed grade and its adjustment factor; the
factors are normalized over the whole course (trapezoidal integration) so
the profile averages to the target pace, then optionally smoothed with a
boxcar average over a distance window. The smoothing is display-only and
does not feed the time engine.
"""
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from pacer.analysis.elevation_profile import ElevationPoint
from pacer.analysis.grade import GradeWindow, grade_at_distance
from pacer.analysis.pace import pace_adjustment


@dataclass
class PaceSample:
    distance: float        # meters
    actual_pace: float     # same unit as the target pace
    grade: float           # percent


def boxcar_smooth(distances: np.ndarray, values: np.ndarray, half_window: float) -> np.ndarray:
    """
    Mean of ``values`` whose distance lies within ±half_window of each point.

    ``distances`` must be ascending. Prefix sums plus binary search replace
    the pairwise scan, so the cost is O(N log N) instead of O(N²).
    """
    if half_window <= 0 or len(values) == 0:
        return values.astype(float)

    prefix = np.concatenate(([0.0], np.cumsum(values, dtype=float)))
    lo = np.searchsorted(distances, distances - half_window, side="left")
    hi = np.searchsorted(distances, distances + half_window, side="right")
    counts = hi - lo
    return (prefix[hi] - prefix[lo]) / counts


def actual_paces_for_target(
    series: Sequence[ElevationPoint],
    target_average_pace: float,
    grade_window: GradeWindow = GradeWindow(100.0),
    pace_smoothing: GradeWindow = GradeWindow(200.0),
) -> List[PaceSample]:
    """
    Pace needed at each point to average ``target_average_pace`` overall.

    Args:
        series: Elevation series ascending by distance.
        target_average_pace: Seconds per km or mile (unit is passed through).
        grade_window: Window for the per-point grade.
        pace_smoothing: Boxcar window for the output pace; raw disables it.

    Returns:
        One PaceSample per point; empty for fewer than two points.
    """
    if len(series) < 2:
        return []

    point_distances = [p.distance for p in series]
    distances = np.asarray(point_distances, dtype=float)
    grades = np.array([
        grade_at_distance(series, d, grade_window, point_distances) for d in point_distances
    ])
    factors = np.array([pace_adjustment(g) for g in grades])

    d_l = np.diff(distances)
    positive = d_l > 0
    total_distance = float(d_l[positive].sum())
    equivalent = float((0.5 * (factors[:-1] + factors[1:]) * d_l)[positive].sum())
    scale = total_distance / equivalent if equivalent > 0 else 1.0

    raw = target_average_pace * factors * scale
    half = 0.0 if pace_smoothing.is_raw else pace_smoothing.meters / 2
    smoothed = boxcar_smooth(distances, raw, half)

    return [
        PaceSample(distance=float(d), actual_pace=float(p), grade=float(g))
        for d, p, g in zip(distances, smoothed, grades)
    ]
