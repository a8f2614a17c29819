"""
Grade estimation along an elevation series.

Grades are percentages (rise / run * 100, positive = uphill), clamped to
±100 %. A GradeWindow selects between the raw slope of the segment that
contains the target distance and a slope measured across a centred
distance window, which trades locality for robustness to single-sample
GPS noise.
"""
import bisect
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from pacer.analysis.elevation_profile import ElevationPoint

MAX_GRADE_PCT = 100.0


@dataclass(frozen=True)
class GradeWindow:
    """
    Distance window for grade smoothing.

    ``GradeWindow.raw()`` disables smoothing; ``GradeWindow.of(100)`` uses a
    100 m window centred on the target distance. Stored settings use 0 for
    "raw"; from_setting() is the single place that interprets it.
    """
    meters: Optional[float] = None

    @classmethod
    def raw(cls) -> "GradeWindow":
        return cls(None)

    @classmethod
    def of(cls, meters: float) -> "GradeWindow":
        if meters <= 0:
            raise ValueError("window must be positive; use GradeWindow.raw() for no smoothing")
        return cls(float(meters))

    @classmethod
    def from_setting(cls, meters: float) -> "GradeWindow":
        return cls.raw() if meters <= 0 else cls.of(meters)

    @property
    def is_raw(self) -> bool:
        return self.meters is None


def _clamp_grade(grade: float) -> float:
    return max(-MAX_GRADE_PCT, min(MAX_GRADE_PCT, grade))


def _slope_pct(a: ElevationPoint, b: ElevationPoint) -> Optional[float]:
    run = b.distance - a.distance
    if run <= 0:
        return None
    return _clamp_grade((b.elevation - a.elevation) / run * 100.0)


def _raw_grade(series: Sequence[ElevationPoint], distances: List[float], target: float) -> float:
    n = len(series)
    j = bisect.bisect_left(distances, target)
    if j == 0:
        pair = (series[0], series[1])
    elif j >= n:
        pair = (series[n - 2], series[n - 1])
    else:
        pair = (series[j - 1], series[j])

    grade = _slope_pct(*pair)
    return grade if grade is not None else 0.0


def _resolve_point(
    series: Sequence[ElevationPoint],
    distances: List[float],
    target: float,
) -> Tuple[float, float]:
    """(distance, elevation) at ``target``, clamped to the series ends."""
    first, last = series[0], series[-1]
    if target < first.distance:
        return first.distance, first.elevation
    if target > last.distance:
        return last.distance, last.elevation

    j = bisect.bisect_left(distances, target)
    if j == 0:
        return first.distance, first.elevation
    prev, nxt = series[j - 1], series[j]
    run = nxt.distance - prev.distance
    ratio = (target - prev.distance) / run if run > 0 else 0.0
    return target, prev.elevation + ratio * (nxt.elevation - prev.elevation)


def grade_at_distance(
    series: Sequence[ElevationPoint],
    target_distance: float,
    window: GradeWindow = GradeWindow(50.0),
    distances: Optional[List[float]] = None,
) -> float:
    """
    Estimate the grade (%) at ``target_distance``.

    Args:
        series: Elevation series ascending by distance.
        target_distance: Meters along the series.
        window: Raw slope or centred smoothing window.
        distances: Pre-extracted ``[p.distance for p in series]``; callers
                   sampling the same series many times pass it to avoid
                   rebuilding the list on every call.

    Returns:
        Grade in percent, clamped to ±100. 0.0 when fewer than two points
        exist or the measured run is zero.
    """
    if len(series) < 2:
        return 0.0
    if distances is None:
        distances = [p.distance for p in series]

    if window.is_raw:
        return _raw_grade(series, distances, target_distance)

    half = window.meters / 2
    start_d, start_e = _resolve_point(series, distances, target_distance - half)
    end_d, end_e = _resolve_point(series, distances, target_distance + half)

    run = end_d - start_d
    if run <= 0:
        return 0.0
    return _clamp_grade((end_e - start_e) / run * 100.0)


def average_grade_between(
    series: Sequence[ElevationPoint],
    from_distance: float,
    to_distance: float,
) -> float:
    """
    Distance-weighted mean of the raw point-to-point grade in a range.

    Falls back to the net slope between interpolated endpoints when fewer
    than two profile points lie inside the range. Returns 0.0 for an empty
    series or an empty/inverted range.
    """
    if len(series) < 2 or from_distance >= to_distance:
        return 0.0

    inside = [p for p in series if from_distance <= p.distance <= to_distance]
    if len(inside) < 2:
        distances = [p.distance for p in series]
        _, start_e = _resolve_point(series, distances, from_distance)
        _, end_e = _resolve_point(series, distances, to_distance)
        return (end_e - start_e) / (to_distance - from_distance) * 100.0

    weighted = 0.0
    total = 0.0
    for a, b in zip(inside, inside[1:]):
        run = b.distance - a.distance
        if run <= 0:
            continue
        weighted += (b.elevation - a.elevation) / run * 100.0 * run
        total += run

    return weighted / total if total > 0 else 0.0
