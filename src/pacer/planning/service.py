"""
PlanService: loads courses and plans from the DB and runs the pacing engine.

Flow for a plan computation:
  1. Load Plan (PlanNotFoundError if missing) and its Course
  2. Parse the course GeoJSON → elevation series (corrupt JSON → empty series)
  3. Load waypoints (start/finish derived from the track when fewer than
     two are stored) and stoppage overrides, build waypoint segments
  4. Resolve smoothing (Settings defaults + course overrides)
  5. Hand a PacingContext to the pure analysis functions

Nothing is cached: every call re-reads the rows and recomputes. The only
write is filling a course's distance and gain/loss columns the first time
it is loaded.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from sqlmodel import Session, select

from pacer.analysis.elevation_profile import (
    ElevationPoint,
    ElevationStats,
    downsample,
    elevation_stats,
    extract_elevation_profile,
)
from pacer.analysis.geo import course_metrics
from pacer.analysis.pace_profile import PaceSample, actual_paces_for_target
from pacer.analysis.smoothing import SmoothingConfig
from pacer.analysis.splits import UnitSplit, calculate_unit_splits
from pacer.analysis.time_engine import (
    FinishTimeComparison,
    PacingContext,
    SegmentPacingInfo,
    compute_pacing,
    grade_adjusted_finish_time,
    resolve_base_pace,
    segment_pacing_info,
)
from pacer.analysis.waypoint_segments import (
    WaypointSegment,
    calculate_waypoint_segments,
    start_finish_waypoints,
)
from pacer.config import get_settings
from pacer.models.course import Course, Waypoint
from pacer.models.plan import Plan, WaypointStoppageTime

logger = logging.getLogger(__name__)


class PlanNotFoundError(LookupError):
    pass


class CourseNotFoundError(LookupError):
    pass


@dataclass
class SegmentReport:
    segment: WaypointSegment
    pacing: Optional[SegmentPacingInfo]


def _readable_feature_collection(course: Course) -> Optional[Dict[str, Any]]:
    try:
        return course.feature_collection()
    except ValueError as exc:  # json.JSONDecodeError is a ValueError
        logger.error("Course %s has unreadable geojson_data: %s", course.id, exc)
        return None


def course_elevation_profile(course: Course) -> List[ElevationPoint]:
    """Elevation series for a course; a corrupt geometry blob yields []."""
    feature_collection = _readable_feature_collection(course)
    if feature_collection is None:
        return []
    return extract_elevation_profile(feature_collection)


class PlanService:
    """Read-side orchestration between the DB and the pacing engine."""

    def __init__(self, session: Session, smoothing: Optional[SmoothingConfig] = None):
        """
        Args:
            session: Open SQLModel session.
            smoothing: System smoothing defaults; read from Settings when omitted.
        """
        self.session = session
        self.smoothing = smoothing or SmoothingConfig.from_settings(get_settings())

    # ─── Loading ──────────────────────────────────────────────────────────────

    def get_plan(self, plan_id: str) -> Plan:
        plan = self.session.get(Plan, plan_id)
        if plan is None:
            raise PlanNotFoundError(f"Plan {plan_id} not found")
        return plan

    def get_course(self, course_id: str) -> Course:
        course = self.session.get(Course, course_id)
        if course is None:
            raise CourseNotFoundError(f"Course {course_id} not found")
        if course.total_distance is None:
            self._fill_metrics(course)
        return course

    def _fill_metrics(self, course: Course) -> None:
        """Store whole-metre distance and gain/loss on a course loaded for the first time."""
        feature_collection = _readable_feature_collection(course)
        if feature_collection is None:
            return
        metrics = course_metrics(feature_collection)
        course.total_distance = metrics.total_distance
        course.elevation_gain = metrics.elevation_gain
        course.elevation_loss = metrics.elevation_loss
        self.session.add(course)
        self.session.commit()
        self.session.refresh(course)
        logger.info(
            "Course %s metrics: %d m, +%d/-%d m", course.id,
            metrics.total_distance, metrics.elevation_gain, metrics.elevation_loss,
        )

    def _waypoints(self, course_id: str) -> List[Waypoint]:
        return list(self.session.exec(
            select(Waypoint).where(Waypoint.course_id == course_id).order_by(Waypoint.order)
        ).all())

    def _stoppage_times(self, plan_id: str) -> List[WaypointStoppageTime]:
        return list(self.session.exec(
            select(WaypointStoppageTime).where(WaypointStoppageTime.plan_id == plan_id)
        ).all())

    def build_context(self, plan_id: str) -> PacingContext:
        """Everything the engine needs for one plan."""
        plan = self.get_plan(plan_id)
        course = self.get_course(plan.course_id)
        profile = course_elevation_profile(course)
        waypoints: List[Any] = self._waypoints(course.id)
        if len(waypoints) < 2:
            feature_collection = _readable_feature_collection(course) or {}
            waypoints = start_finish_waypoints(feature_collection)
            logger.debug("Course %s: using %d derived start/finish waypoints", course.id, len(waypoints))

        return PacingContext(
            plan=plan,
            waypoints=waypoints,
            stoppage_times=self._stoppage_times(plan.id),
            elevation_profile=profile,
            segments=calculate_waypoint_segments(waypoints, profile),
            smoothing=self.smoothing.for_course(course),
        )

    # ─── Plan computations ────────────────────────────────────────────────────

    def arrival_times(self, plan_id: str) -> Tuple[Dict[str, int], FinishTimeComparison]:
        """Rounded arrival seconds per waypoint id plus the finish comparison."""
        ctx = self.build_context(plan_id)
        result = compute_pacing(ctx)
        logger.debug(
            "Plan %s: D=%.1f E=%.1f S=%.5f", plan_id,
            result.total_distance, result.equivalent_distance, result.normalization_scale,
        )
        return result.arrival_times(), grade_adjusted_finish_time(ctx)

    def segments(self, plan_id: str) -> List[SegmentReport]:
        ctx = self.build_context(plan_id)
        result = compute_pacing(ctx)
        return [
            SegmentReport(
                segment=seg,
                pacing=segment_pacing_info(seg.from_waypoint, seg.to_waypoint, ctx, result),
            )
            for seg in ctx.segments or []
        ]

    def splits(self, plan_id: str) -> List[UnitSplit]:
        return calculate_unit_splits(self.build_context(plan_id))

    # ─── Course computations ──────────────────────────────────────────────────

    def elevation_profile(
        self, course_id: str, max_points: Optional[int] = None
    ) -> Tuple[List[ElevationPoint], ElevationStats]:
        """Series (optionally thinned) and stats computed on the full series."""
        profile = course_elevation_profile(self.get_course(course_id))
        stats = elevation_stats(profile)
        if max_points:
            profile = downsample(profile, max_points)
        return profile, stats

    def pace_profile(self, course_id: str, plan_id: str) -> List[PaceSample]:
        """
        Pace chart for ``plan_id`` on ``course_id``.

        Raises:
            PlanNotFoundError: plan missing or belonging to another course.
        """
        self.get_course(course_id)
        ctx = self.build_context(plan_id)
        if ctx.plan.course_id != course_id:
            raise PlanNotFoundError(f"Plan {plan_id} not found for course {course_id}")

        target = resolve_base_pace(ctx)
        if target is None:
            return []
        return actual_paces_for_target(
            ctx.elevation_profile,
            target,
            grade_window=ctx.smoothing.grade_window,
            pace_smoothing=ctx.smoothing.pace_smoothing,
        )
