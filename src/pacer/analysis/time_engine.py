"""
Grade-adjusted time engine.

Given ordered waypoints, the segments between them, an elevation series and
a plan, compute per-segment paces and cumulative arrival times at every
waypoint.

For each segment the terrain factor is integrated rather than evaluated at
the average grade: the adjustment curve is nonlinear, so the mean of grades
is not a valid proxy for the mean of factors. Samples are taken at the
midpoints of sample-step sized sub-intervals and weighted by their length:

    F_i = Σ factor(grade(mid)) · ΔL / L_i

A single course-wide scale then redistributes time between segments
without changing the total:

    D = Σ L_i        E = Σ L_i · F_i        S = D / E
    pace_i = base · F_i · S
    Σ L_i · pace_i = base · D

Stoppage time is added per waypoint: an explicit override when the plan has
one, else the plan default for every waypoint except the start (minimum
order) and the finish (maximum order).

Everything here is a pure function of its inputs. Missing data is not an
error: without an elevation series, segments, or with grade adjustment
disabled every factor is 1.0; without a resolvable pace every arrival time
is 0.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pacer.analysis.elevation_profile import ElevationPoint
from pacer.analysis.formatting import format_grade, format_pace_adjustment
from pacer.analysis.grade import GradeWindow, average_grade_between, grade_at_distance
from pacer.analysis.pace import grade_adjustment_factor, pace_per_meter, unit_meters
from pacer.analysis.smoothing import SmoothingConfig
from pacer.analysis.strategy import PacingStrategy, get_pacing_strategy
from pacer.analysis.waypoint_segments import WaypointSegment
from pacer.models.enums import PaceMode


@dataclass
class PacingContext:
    """
    Everything one plan computation needs.

    ``plan`` needs pace, pace_unit, pace_mode, target_time_seconds,
    default_stoppage_time, use_grade_adjustment and pacing_strategy
    attributes; ``waypoints`` need id, distance and order;
    ``stoppage_times`` need waypoint_id and stoppage_time.
    """
    plan: Any
    waypoints: Sequence[Any]
    stoppage_times: Sequence[Any] = ()
    elevation_profile: Sequence[ElevationPoint] = ()
    segments: Optional[Sequence[WaypointSegment]] = None
    smoothing: SmoothingConfig = field(default_factory=SmoothingConfig)


@dataclass
class SegmentPacing:
    from_waypoint: str
    to_waypoint: str
    distance: float            # meters
    factor: float              # F_i, distance-weighted mean adjustment factor
    pace_per_meter: float      # seconds per meter after normalization
    travel_time: float         # seconds


@dataclass
class WaypointTiming:
    waypoint_id: str
    distance: float
    travel_time: float         # cumulative travel seconds to this waypoint
    stoppage_time: float       # seconds spent at this waypoint
    elapsed_time: float        # cumulative travel + stoppage, including this waypoint's stop


@dataclass
class PacingResult:
    base_pace: Optional[float]           # seconds per plan unit, None when unresolvable
    base_pace_per_meter: float
    normalization_scale: float
    total_distance: float                # D
    equivalent_distance: float           # E
    grade_adjusted: bool
    segments: List[SegmentPacing] = field(default_factory=list)
    waypoints: List[WaypointTiming] = field(default_factory=list)

    def arrival_times(self) -> Dict[str, int]:
        """Waypoint id -> cumulative arrival time in whole seconds."""
        return {w.waypoint_id: round_seconds(w.elapsed_time) for w in self.waypoints}

    @property
    def total_travel_time(self) -> float:
        return sum(s.travel_time for s in self.segments)

    @property
    def total_stoppage_time(self) -> float:
        return sum(w.stoppage_time for w in self.waypoints)


@dataclass
class SegmentPacingInfo:
    average_grade: float
    grade_description: str
    adjustment_factor: float
    base_pace: float               # seconds per plan unit
    adjusted_pace: float           # seconds per plan unit
    pace_adjustment_description: str
    estimated_time_minutes: float
    segment_distance: float


@dataclass
class FinishTimeComparison:
    original_finish_time: float           # unadjusted travel + stoppage, seconds
    grade_adjusted_finish_time: int       # rounded arrival at the finish
    time_difference: float                # adjusted travel - unadjusted travel
    average_grade_adjustment_factor: float


def round_seconds(seconds: float) -> int:
    """Round half up to whole seconds."""
    return int(math.floor(seconds + 0.5))


# ─── Building blocks ──────────────────────────────────────────────────────────

def ordered_waypoints(waypoints: Sequence[Any]) -> List[Any]:
    return sorted(waypoints, key=lambda w: w.order)


def order_bounds(waypoints: Sequence[Any]) -> Optional[Tuple[int, int]]:
    """(minimum, maximum) ``order`` over the waypoints, or None when there are none."""
    if not waypoints:
        return None
    orders = [w.order for w in waypoints]
    return min(orders), max(orders)


def stoppage_for_waypoint(
    waypoint: Any,
    overrides: Dict[str, float],
    default_stoppage_time: float,
    bounds: Optional[Tuple[int, int]],
) -> float:
    """
    Stoppage seconds credited at ``waypoint``.

    An explicit override always wins. Otherwise the start (minimum order)
    and the finish (maximum order) get 0 and every other waypoint gets the
    default. ``bounds`` comes from order_bounds() over the whole course.
    """
    if waypoint.id in overrides:
        return overrides[waypoint.id]
    if bounds is None or waypoint.order in bounds:
        return 0.0
    return default_stoppage_time


def stoppage_overrides(stoppage_times: Sequence[Any]) -> Dict[str, float]:
    return {st.waypoint_id: float(st.stoppage_time) for st in stoppage_times}


def default_stoppage(plan: Any) -> float:
    return float(getattr(plan, "default_stoppage_time", None) or 0.0)


def total_stoppage_time(ctx: PacingContext) -> float:
    overrides = stoppage_overrides(ctx.stoppage_times)
    default = default_stoppage(ctx.plan)
    bounds = order_bounds(ctx.waypoints)
    return sum(stoppage_for_waypoint(w, overrides, default, bounds) for w in ctx.waypoints)


def course_distance(ctx: PacingContext) -> float:
    """D: total distance between the first and last waypoint by order."""
    return sum(distance for _, _, distance, _ in _legs(ctx))


def resolve_base_pace(ctx: PacingContext) -> Optional[float]:
    """
    Target pace in seconds per plan unit, or None when the plan has none.

    In time mode the pace is derived from the target finish time minus
    all stoppage, spread over the course distance.
    """
    plan = ctx.plan
    target = getattr(plan, "target_time_seconds", None)
    if getattr(plan, "pace_mode", PaceMode.PACE) == PaceMode.TIME and target is not None:
        distance = course_distance(ctx)
        if distance > 0:
            travel = max(0.0, float(target) - total_stoppage_time(ctx))
            return travel / distance * unit_meters(plan.pace_unit)

    if not plan.pace or plan.pace <= 0:
        return None
    return float(plan.pace)


def grade_adjustment_active(ctx: PacingContext) -> bool:
    return bool(
        getattr(ctx.plan, "use_grade_adjustment", True)
        and ctx.elevation_profile
        and ctx.segments
    )


def integrate_factor(
    series: Sequence[ElevationPoint],
    start: float,
    end: float,
    window: GradeWindow,
    sample_step_m: float,
    strategy: Optional[PacingStrategy] = None,
    course_length: float = 0.0,
    distances: Optional[List[float]] = None,
) -> float:
    """
    Σ factor(grade(mid)) · ΔL over [start, end].

    The range is cut into ``sample_step_m`` pieces (the last one shorter);
    each piece is weighted by its length. Returns 0.0 for an empty range.
    """
    if distances is None:
        distances = [p.distance for p in series]

    weighted = 0.0
    pos = start
    while pos < end:
        nxt = min(pos + sample_step_m, end)
        mid = (pos + nxt) / 2
        factor = grade_adjustment_factor(grade_at_distance(series, mid, window, distances))
        if strategy is not None:
            factor *= strategy.position_factor(mid, course_length)
        weighted += factor * (nxt - pos)
        pos = nxt
    return weighted


def _legs(ctx: PacingContext):
    """(from, to, distance, segment-or-None) for each consecutive waypoint pair."""
    ordered = ordered_waypoints(ctx.waypoints)
    lookup = {(s.from_waypoint, s.to_waypoint): s for s in (ctx.segments or ())}
    legs = []
    for prev, cur in zip(ordered, ordered[1:]):
        seg = lookup.get((prev.id, cur.id))
        distance = seg.distance if seg is not None else max(0.0, cur.distance - prev.distance)
        legs.append((prev, cur, distance, seg))
    return legs


def segment_factors(ctx: PacingContext) -> List[float]:
    """F_i for every consecutive waypoint pair (1.0 when adjustment is inactive)."""
    legs = _legs(ctx)
    if not grade_adjustment_active(ctx):
        return [1.0] * len(legs)

    series = ctx.elevation_profile
    distances = [p.distance for p in series]
    strategy = get_pacing_strategy(ctx.plan)
    ordered = ordered_waypoints(ctx.waypoints)
    course_length = ordered[-1].distance if ordered else 0.0

    factors = []
    for prev, cur, distance, seg in legs:
        if seg is None or distance <= 0:
            factors.append(1.0)
            continue
        start = min(prev.distance, cur.distance)
        end = max(prev.distance, cur.distance)
        weighted = integrate_factor(
            series, start, end,
            ctx.smoothing.grade_window,
            ctx.smoothing.sample_step_m,
            strategy, course_length, distances,
        )
        factors.append(weighted / distance)
    return factors


def normalization_scale(distances: Sequence[float], factors: Sequence[float]) -> float:
    """S = D / E, or 1.0 when the equivalent distance is not positive."""
    total = sum(distances)
    equivalent = sum(d * f for d, f in zip(distances, factors))
    return total / equivalent if equivalent > 0 else 1.0


# ─── Public API ───────────────────────────────────────────────────────────────

def compute_pacing(ctx: PacingContext) -> PacingResult:
    """
    Full pacing breakdown for a plan.

    Returns:
        PacingResult with unrounded per-segment and per-waypoint values.
        With no resolvable pace every time is 0.
    """
    ordered = ordered_waypoints(ctx.waypoints)
    overrides = stoppage_overrides(ctx.stoppage_times)
    default = default_stoppage(ctx.plan)
    bounds = order_bounds(ordered)

    base_pace = resolve_base_pace(ctx)
    legs = _legs(ctx)
    leg_distances = [distance for _, _, distance, _ in legs]

    if base_pace is None:
        return PacingResult(
            base_pace=None,
            base_pace_per_meter=0.0,
            normalization_scale=1.0,
            total_distance=sum(leg_distances),
            equivalent_distance=sum(leg_distances),
            grade_adjusted=False,
            segments=[
                SegmentPacing(prev.id, cur.id, distance, 1.0, 0.0, 0.0)
                for prev, cur, distance, _ in legs
            ],
            waypoints=[WaypointTiming(w.id, w.distance, 0.0, 0.0, 0.0) for w in ordered],
        )

    base_per_meter = pace_per_meter(base_pace, ctx.plan.pace_unit)
    factors = segment_factors(ctx)
    scale = normalization_scale(leg_distances, factors)

    segments: List[SegmentPacing] = []
    for (prev, cur, distance, _), factor in zip(legs, factors):
        leg_pace = base_per_meter * factor * scale
        segments.append(SegmentPacing(
            from_waypoint=prev.id,
            to_waypoint=cur.id,
            distance=distance,
            factor=factor,
            pace_per_meter=leg_pace,
            travel_time=distance * leg_pace,
        ))

    timings: List[WaypointTiming] = []
    travel = 0.0
    elapsed = 0.0
    for i, wp in enumerate(ordered):
        if i > 0:
            travel += segments[i - 1].travel_time
            elapsed += segments[i - 1].travel_time
        stop = stoppage_for_waypoint(wp, overrides, default, bounds)
        elapsed += stop
        timings.append(WaypointTiming(
            waypoint_id=wp.id,
            distance=wp.distance,
            travel_time=travel,
            stoppage_time=stop,
            elapsed_time=elapsed,
        ))

    return PacingResult(
        base_pace=base_pace,
        base_pace_per_meter=base_per_meter,
        normalization_scale=scale,
        total_distance=sum(leg_distances),
        equivalent_distance=sum(d * f for d, f in zip(leg_distances, factors)),
        grade_adjusted=grade_adjustment_active(ctx),
        segments=segments,
        waypoints=timings,
    )


def calculate_arrival_times(ctx: PacingContext) -> Dict[str, int]:
    """Waypoint id -> cumulative arrival time in whole seconds."""
    return compute_pacing(ctx).arrival_times()


def elapsed_time_to_waypoint(waypoint_id: str, ctx: PacingContext) -> int:
    """Arrival time at one waypoint; 0 for unknown ids."""
    return calculate_arrival_times(ctx).get(waypoint_id, 0)


def segment_pacing_info(
    from_waypoint_id: str,
    to_waypoint_id: str,
    ctx: PacingContext,
    result: Optional[PacingResult] = None,
) -> Optional[SegmentPacingInfo]:
    """
    Diagnostic breakdown of one segment for display.

    Pass ``result`` when reporting several segments of the same context so
    the pacing is computed once. Returns None when either waypoint or the
    segment between them is unknown, or the plan has no pace.
    """
    by_id = {w.id: w for w in ctx.waypoints}
    from_wp = by_id.get(from_waypoint_id)
    to_wp = by_id.get(to_waypoint_id)
    if from_wp is None or to_wp is None:
        return None

    if result is None:
        result = compute_pacing(ctx)
    if result.base_pace is None:
        return None

    leg = next(
        (s for s in result.segments if s.from_waypoint == from_waypoint_id and s.to_waypoint == to_waypoint_id),
        None,
    )
    if leg is None:
        return None

    average_grade = average_grade_between(
        ctx.elevation_profile,
        min(from_wp.distance, to_wp.distance),
        max(from_wp.distance, to_wp.distance),
    )
    adjusted_pace = result.base_pace * leg.factor * result.normalization_scale

    return SegmentPacingInfo(
        average_grade=average_grade,
        grade_description=format_grade(average_grade),
        adjustment_factor=leg.factor,
        base_pace=result.base_pace,
        adjusted_pace=adjusted_pace,
        pace_adjustment_description=format_pace_adjustment(
            adjusted_pace - result.base_pace, ctx.plan.pace_unit
        ),
        estimated_time_minutes=leg.travel_time / 60.0,
        segment_distance=leg.distance,
    )


def grade_adjusted_finish_time(ctx: PacingContext) -> FinishTimeComparison:
    """
    Compare the finish time with and without grade adjustment.

    Because of normalization the travel times differ only by rounding; the
    comparison exists so callers can show that the plan's target is kept.
    """
    result = compute_pacing(ctx)
    if result.base_pace is None or not result.waypoints:
        return FinishTimeComparison(0.0, 0, 0.0, 1.0)

    stoppage = result.total_stoppage_time
    original_travel = result.total_distance * result.base_pace_per_meter
    finish = result.waypoints[-1]
    adjusted_finish = round_seconds(finish.elapsed_time)
    adjusted_travel = adjusted_finish - stoppage

    return FinishTimeComparison(
        original_finish_time=original_travel + stoppage,
        grade_adjusted_finish_time=adjusted_finish,
        time_difference=adjusted_travel - original_travel,
        average_grade_adjustment_factor=(
            adjusted_travel / original_travel if original_travel > 0 else 1.0
        ),
    )
