"""
Terrain pace-adjustment model and pace unit helpers.

The adjustment curve maps a grade in percent to a dimensionless multiplier
on flat pace (1.0 = unchanged, > 1.0 slower, < 1.0 faster). Between -32.25 %
and +32.1 % it is a constrained 4th-degree polynomial with a fixed intercept
of 1.0; outside that range it continues along the polynomial's tangent
lines, so the composite curve is continuous with a continuous first
derivative.
"""
from typing import Sequence, Union

from pacer.models.enums import PaceUnit

METERS_PER_KM = 1000.0
METERS_PER_MILE = 1609.344

# Polynomial coefficients (a0 is fixed at 1.0)
_A4 = -4.3144778100289634e-7
_A3 = -2.930257313334705e-6
_A2 = 0.0018738529522439088
_A1 = 0.03076354335605815

# Breakpoints (percent grade) and the tangent lines beyond them
LEFT_BREAKPOINT = -32.25
RIGHT_BREAKPOINT = 32.1
_SLOPE_LEFT = -0.041356411457441594
_INTERCEPT_LEFT = 0.25463237016735074
_SLOPE_RIGHT = 0.08492425850523927
_INTERCEPT_RIGHT = 0.6372687773774661

# Bounds applied by the time engine
ENGINE_GRADE_LIMIT_PCT = 50.0
MIN_FACTOR = 0.5
MAX_FACTOR = 3.0


def pace_adjustment(grade_pct: float) -> float:
    """
    Pace multiplier for running at ``grade_pct`` percent grade.

    Args:
        grade_pct: slope in percent (10.0 = 10 % uphill, -5.0 = 5 % downhill).

    Returns:
        Multiplier relative to flat pace. Exactly 1.0 at 0 %.
    """
    g = grade_pct
    if g < LEFT_BREAKPOINT:
        return _SLOPE_LEFT * g + _INTERCEPT_LEFT
    if g > RIGHT_BREAKPOINT:
        return _SLOPE_RIGHT * g + _INTERCEPT_RIGHT
    return _A4 * g**4 + _A3 * g**3 + _A2 * g**2 + _A1 * g + 1.0


def grade_adjustment_factor(grade_pct: float) -> float:
    """
    Bounded multiplier used by the time engine.

    The grade is clamped to ±ENGINE_GRADE_LIMIT_PCT before evaluation and
    the result to [MIN_FACTOR, MAX_FACTOR].
    """
    g = max(-ENGINE_GRADE_LIMIT_PCT, min(ENGINE_GRADE_LIMIT_PCT, grade_pct))
    return max(MIN_FACTOR, min(MAX_FACTOR, pace_adjustment(g)))


def adjust_pace_for_grade(base_pace: float, grade_pct: float) -> float:
    """Base pace (any unit) slowed or sped up for the given grade."""
    return base_pace * pace_adjustment(grade_pct)


def unit_meters(pace_unit: Union[PaceUnit, str]) -> float:
    """Length in meters of the distance unit a pace is expressed per."""
    if pace_unit == PaceUnit.MIN_PER_MI:
        return METERS_PER_MILE
    return METERS_PER_KM


def pace_per_meter(pace: float, pace_unit: Union[PaceUnit, str]) -> float:
    """Convert seconds per km (or mile) to seconds per meter."""
    return pace / unit_meters(pace_unit)


def target_average_pace_to_flat_pace(
    target_average_pace: float,
    points: Sequence,
) -> float:
    """
    Flat pace that would produce a similar total time on a course.

    Multiplies the target by the distance-weighted mean of the raw
    point-to-point adjustment factor. ``points`` need ``distance`` and
    ``elevation`` attributes. Returns the target unchanged for fewer than
    two points.
    """
    if len(points) < 2:
        return target_average_pace

    total_distance = 0.0
    weighted = 0.0
    for prev, cur in zip(points, points[1:]):
        run = cur.distance - prev.distance
        grade = (cur.elevation - prev.elevation) / run * 100.0 if run > 0 else 0.0
        weighted += pace_adjustment(grade) * run
        total_distance += run

    mean_factor = weighted / total_distance if total_distance > 0 else 1.0
    return target_average_pace * mean_factor


def format_pace(pace_seconds: float, pace_unit: Union[PaceUnit, str] = PaceUnit.MIN_PER_KM) -> str:
    """
    Format a pace (seconds per unit) as a human-readable string.

    Returns:
        Formatted string like "8:30/mi" or "5:17/km"
    """
    unit_label = "mi" if pace_unit == PaceUnit.MIN_PER_MI else "km"
    total = int(round(pace_seconds))
    minutes = total // 60
    seconds = total % 60
    return f"{minutes}:{seconds:02d}/{unit_label}"
