"""Tests for the terrain pace-adjustment curve and pace unit helpers."""
from dataclasses import dataclass

import pytest

from pacer.analysis.pace import (
    LEFT_BREAKPOINT,
    MAX_FACTOR,
    METERS_PER_MILE,
    MIN_FACTOR,
    RIGHT_BREAKPOINT,
    adjust_pace_for_grade,
    format_pace,
    grade_adjustment_factor,
    pace_adjustment,
    pace_per_meter,
    target_average_pace_to_flat_pace,
    unit_meters,
)
from pacer.models.enums import PaceUnit


@dataclass
class _Sample:
    distance: float
    elevation: float


def _derivative(f, x, h=1e-4):
    return (f(x + h) - f(x - h)) / (2 * h)


class TestPaceAdjustment:
    def test_flat_grade_is_exactly_one(self):
        assert pace_adjustment(0.0) == 1.0

    def test_uphill_slower(self):
        assert pace_adjustment(10.0) > 1.0

    def test_gentle_downhill_faster(self):
        assert pace_adjustment(-5.0) < 1.0

    def test_minimum_near_minus_eight_percent(self):
        """The curve bottoms out around -8 %: steeper descents cost more again."""
        at_min = pace_adjustment(-8.0)
        assert at_min == pytest.approx(0.8736, abs=1e-3)
        assert pace_adjustment(-16.0) > at_min
        assert pace_adjustment(-4.0) > at_min

    def test_value_at_left_breakpoint(self):
        assert pace_adjustment(LEFT_BREAKPOINT) == pytest.approx(1.5884, abs=1e-3)

    def test_value_at_right_breakpoint(self):
        assert pace_adjustment(RIGHT_BREAKPOINT) == pytest.approx(3.3633, abs=1e-3)

    @pytest.mark.parametrize("breakpoint", [LEFT_BREAKPOINT, RIGHT_BREAKPOINT])
    def test_continuous_at_breakpoints(self, breakpoint):
        eps = 1e-9
        assert pace_adjustment(breakpoint - eps) == pytest.approx(
            pace_adjustment(breakpoint + eps), abs=1e-4
        )

    @pytest.mark.parametrize("breakpoint", [LEFT_BREAKPOINT, RIGHT_BREAKPOINT])
    def test_first_derivative_continuous_at_breakpoints(self, breakpoint):
        """Slopes measured just inside and just outside the breakpoint agree."""
        inside = breakpoint + (0.01 if breakpoint < 0 else -0.01)
        outside = breakpoint + (-0.01 if breakpoint < 0 else 0.01)
        assert _derivative(pace_adjustment, inside) == pytest.approx(
            _derivative(pace_adjustment, outside), abs=1e-3
        )

    def test_linear_beyond_breakpoints(self):
        left_step = pace_adjustment(-45.0) - pace_adjustment(-40.0)
        assert pace_adjustment(-40.0) - pace_adjustment(-35.0) == pytest.approx(left_step)
        right_step = pace_adjustment(45.0) - pace_adjustment(40.0)
        assert pace_adjustment(40.0) - pace_adjustment(35.0) == pytest.approx(right_step)


class TestGradeAdjustmentFactor:
    @pytest.mark.parametrize("grade", [-200, -100, -50, -20, -8, 0, 8, 20, 32, 50, 100, 200])
    def test_bounded(self, grade):
        factor = grade_adjustment_factor(grade)
        assert MIN_FACTOR <= factor <= MAX_FACTOR

    def test_grade_clamped_to_fifty_percent(self):
        assert grade_adjustment_factor(-100.0) == grade_adjustment_factor(-50.0)
        assert grade_adjustment_factor(80.0) == grade_adjustment_factor(50.0)

    def test_steep_uphill_hits_upper_bound(self):
        assert grade_adjustment_factor(50.0) == MAX_FACTOR

    def test_matches_curve_in_normal_range(self):
        assert grade_adjustment_factor(6.0) == pace_adjustment(6.0)

    def test_adjust_pace_for_grade(self):
        assert adjust_pace_for_grade(480.0, 0.0) == 480.0
        assert adjust_pace_for_grade(480.0, 10.0) == pytest.approx(480.0 * pace_adjustment(10.0))


class TestPaceUnits:
    def test_unit_meters(self):
        assert unit_meters(PaceUnit.MIN_PER_KM) == 1000.0
        assert unit_meters(PaceUnit.MIN_PER_MI) == METERS_PER_MILE
        assert unit_meters("min_per_mi") == METERS_PER_MILE

    def test_pace_per_meter_km(self):
        assert pace_per_meter(480.0, PaceUnit.MIN_PER_KM) == pytest.approx(0.48)

    def test_pace_per_meter_mile(self):
        assert pace_per_meter(1609.344, PaceUnit.MIN_PER_MI) == pytest.approx(1.0)


class TestTargetAverageToFlatPace:
    def test_fewer_than_two_points_returns_target(self):
        assert target_average_pace_to_flat_pace(480.0, [_Sample(0.0, 100.0)]) == 480.0

    def test_flat_course_unchanged(self):
        points = [_Sample(d, 100.0) for d in (0.0, 100.0, 200.0)]
        assert target_average_pace_to_flat_pace(480.0, points) == pytest.approx(480.0)

    def test_hilly_course_uses_weighted_factor(self):
        points = [_Sample(0.0, 0.0), _Sample(100.0, 10.0), _Sample(200.0, 10.0)]
        expected = 480.0 * (pace_adjustment(10.0) + 1.0) / 2
        assert target_average_pace_to_flat_pace(480.0, points) == pytest.approx(expected)


class TestFormatPace:
    def test_km(self):
        assert format_pace(480.0) == "8:00/km"

    def test_mile(self):
        assert format_pace(510.0, PaceUnit.MIN_PER_MI) == "8:30/mi"

    def test_rounds_seconds(self):
        assert format_pace(317.4) == "5:17/km"
