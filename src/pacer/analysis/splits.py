"""
Fixed-size unit splits (every km or mile) along a paced course.

Split boundaries do not line up with waypoints, so travel time is
integrated again over each split with the same sampling as the time
engine and the engine's course-wide normalization scale. Sampling and
floating-point drift are then removed by back-scaling: every travel-only
cumulative value is multiplied by

    extra_scale = desired_final_travel / raw_final_travel

where the desired final travel is the target finish time minus all
stoppage in time mode, and the rounded raw total otherwise. Stoppage is
re-added afterwards, unscaled, so the last split lands exactly on the
target.
"""
from dataclasses import dataclass
from typing import List

from pacer.analysis.pace import pace_per_meter, unit_meters
from pacer.analysis.strategy import get_pacing_strategy
from pacer.analysis.time_engine import (
    PacingContext,
    compute_pacing,
    default_stoppage,
    grade_adjustment_active,
    integrate_factor,
    order_bounds,
    ordered_waypoints,
    resolve_base_pace,
    round_seconds,
    stoppage_for_waypoint,
    stoppage_overrides,
)
from pacer.models.enums import PaceMode

# Tolerance when deciding whether a waypoint lies on or before a boundary.
_BOUNDARY_EPSILON_M = 1e-6


@dataclass
class UnitSplit:
    index: int                 # 1-based
    start_distance: float      # meters
    end_distance: float        # meters
    travel_time: float         # cumulative travel seconds at end_distance
    elapsed_time: float        # cumulative travel + stoppage at end_distance
    split_time: float          # elapsed seconds spent inside this split
    pace: float                # travel seconds per plan unit inside this split


def split_boundaries(start: float, end: float, unit: float) -> List[float]:
    """Every ``unit`` meters after ``start``, plus ``end`` itself."""
    boundaries: List[float] = []
    k = 1
    while start + k * unit < end - _BOUNDARY_EPSILON_M:
        boundaries.append(start + k * unit)
        k += 1
    boundaries.append(end)
    return boundaries


def calculate_unit_splits(ctx: PacingContext) -> List[UnitSplit]:
    """
    Cumulative times at every whole distance unit of the course.

    The unit follows ``plan.pace_unit``. Returns an empty list when the
    plan has no pace or the course has no length.
    """
    base_pace = resolve_base_pace(ctx)
    if base_pace is None:
        return []

    ordered = ordered_waypoints(ctx.waypoints)
    if len(ordered) >= 2:
        start, end = ordered[0].distance, ordered[-1].distance
    elif ctx.elevation_profile:
        start, end = ctx.elevation_profile[0].distance, ctx.elevation_profile[-1].distance
    else:
        return []
    if end <= start:
        return []

    plan = ctx.plan
    unit = unit_meters(plan.pace_unit)
    base_per_meter = pace_per_meter(base_pace, plan.pace_unit)
    boundaries = split_boundaries(start, end, unit)

    active = grade_adjustment_active(ctx)
    scale = compute_pacing(ctx).normalization_scale if active else 1.0
    series = ctx.elevation_profile
    distances = [p.distance for p in series]
    strategy = get_pacing_strategy(plan)

    raw_travel: List[float] = []
    travel = 0.0
    prev = start
    for boundary in boundaries:
        if active:
            weighted = integrate_factor(
                series, prev, boundary,
                ctx.smoothing.grade_window,
                ctx.smoothing.sample_step_m,
                strategy, end, distances,
            )
        else:
            weighted = boundary - prev
        travel += base_per_meter * weighted * scale
        raw_travel.append(travel)
        prev = boundary

    overrides = stoppage_overrides(ctx.stoppage_times)
    default = default_stoppage(plan)
    bounds = order_bounds(ordered)
    stops = [(w.distance, stoppage_for_waypoint(w, overrides, default, bounds)) for w in ordered]
    total_stop = sum(s for _, s in stops)

    raw_final = raw_travel[-1]
    target = getattr(plan, "target_time_seconds", None)
    time_mode = getattr(plan, "pace_mode", PaceMode.PACE) == PaceMode.TIME and target is not None
    if time_mode:
        desired = max(0.0, float(target) - total_stop)
    else:
        desired = float(round_seconds(raw_final))
    extra_scale = desired / raw_final if raw_final > 0 else 1.0

    splits: List[UnitSplit] = []
    prev_distance = start
    prev_travel = 0.0
    prev_elapsed = 0.0
    last = len(boundaries) - 1
    for i, boundary in enumerate(boundaries):
        scaled = desired if i == last else raw_travel[i] * extra_scale
        stop_so_far = sum(s for d, s in stops if d <= boundary + _BOUNDARY_EPSILON_M)
        elapsed = scaled + stop_so_far
        if i == last and time_mode and float(target) >= total_stop:
            elapsed = float(target)

        length = boundary - prev_distance
        splits.append(UnitSplit(
            index=i + 1,
            start_distance=prev_distance,
            end_distance=boundary,
            travel_time=scaled,
            elapsed_time=elapsed,
            split_time=elapsed - prev_elapsed,
            pace=(scaled - prev_travel) / length * unit if length > 0 else 0.0,
        ))
        prev_distance, prev_travel, prev_elapsed = boundary, scaled, elapsed

    return splits
