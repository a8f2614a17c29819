"""Tests for the waypoint segment builder."""
from typing import List

import pytest

from pacer.analysis.elevation_profile import ElevationPoint
from pacer.analysis.geo import haversine_distance
from pacer.analysis.waypoint_segments import (
    WaypointPosition,
    calculate_waypoint_segments,
    segment_after,
    segment_between,
    segment_elevation_stats,
    start_finish_waypoints,
    total_distance,
    total_elevation_gain,
    total_elevation_loss,
)


def make_series(elevations: List[float], spacing: float = 100.0) -> List[ElevationPoint]:
    return [
        ElevationPoint(distance=i * spacing, elevation=e, lat=46.0, lng=10.0, original_index=i)
        for i, e in enumerate(elevations)
    ]


def make_waypoints(*distances: float) -> List[WaypointPosition]:
    return [WaypointPosition(id=f"wp{i}", distance=d, order=i) for i, d in enumerate(distances)]


class TestCalculateWaypointSegments:
    def test_fewer_than_two_waypoints(self):
        assert calculate_waypoint_segments([]) == []
        assert calculate_waypoint_segments(make_waypoints(0.0)) == []

    def test_one_segment_per_consecutive_pair(self):
        segments = calculate_waypoint_segments(make_waypoints(0.0, 400.0, 1000.0))
        assert [(s.from_waypoint, s.to_waypoint) for s in segments] == [("wp0", "wp1"), ("wp1", "wp2")]
        assert [s.distance for s in segments] == [400.0, 600.0]

    def test_sorted_by_order_not_input_position(self):
        waypoints = make_waypoints(0.0, 400.0, 1000.0)[::-1]
        segments = calculate_waypoint_segments(waypoints)
        assert segments[0].from_waypoint == "wp0"

    def test_gain_and_loss_from_profile(self):
        # up 30 m, down 20 m, up 10 m between 0 and 300 m; flat afterwards
        series = make_series([100.0, 130.0, 110.0, 120.0, 120.0, 120.0])
        segments = calculate_waypoint_segments(make_waypoints(0.0, 300.0, 500.0), series)
        assert segments[0].elevation_gain == pytest.approx(40.0)
        assert segments[0].elevation_loss == pytest.approx(20.0)
        assert segments[1].elevation_gain == 0.0
        assert segments[1].elevation_loss == 0.0

    def test_waypoint_elevations_used_without_profile(self):
        waypoints = [
            WaypointPosition("a", 0.0, 0, elevation=500.0),
            WaypointPosition("b", 1000.0, 1, elevation=620.0),
            WaypointPosition("c", 2000.0, 2, elevation=580.0),
        ]
        segments = calculate_waypoint_segments(waypoints)
        assert (segments[0].elevation_gain, segments[0].elevation_loss) == (120.0, 0.0)
        assert (segments[1].elevation_gain, segments[1].elevation_loss) == (0.0, 40.0)

    def test_no_elevation_data_at_all(self):
        segments = calculate_waypoint_segments(make_waypoints(0.0, 1000.0))
        assert segments[0].elevation_gain == 0.0
        assert segments[0].elevation_loss == 0.0


class TestSegmentElevationStats:
    def test_single_point_inside_interpolates_both_ends(self):
        series = make_series([100.0, 110.0, 130.0])
        # only the point at 100 m lies inside [50, 150]: 105 m at 50, 120 m at 150
        gain, loss = segment_elevation_stats(series, 50.0, 150.0)
        assert gain == pytest.approx(15.0)
        assert loss == 0.0

    def test_no_point_inside_interpolates_both_ends(self):
        series = make_series([100.0, 110.0, 130.0])
        # 114 m at 120, 126 m at 180
        gain, loss = segment_elevation_stats(series, 120.0, 180.0)
        assert gain == pytest.approx(12.0)
        assert loss == 0.0

    def test_ends_clamped_to_series(self):
        series = make_series([100.0, 110.0, 130.0])
        # only the point at 200 m lies inside [150, 400]; the far end clamps to 130 m
        gain, loss = segment_elevation_stats(series, 150.0, 400.0)
        assert gain == pytest.approx(10.0)
        assert loss == 0.0

    def test_sparse_profile_climb_reported_as_gain(self):
        series = [
            ElevationPoint(distance=0.0, elevation=100.0, lat=46.0, lng=10.0, original_index=0),
            ElevationPoint(distance=1000.0, elevation=200.0, lat=46.0, lng=10.01, original_index=1),
        ]
        segments = calculate_waypoint_segments(make_waypoints(200.0, 800.0), series)
        assert segments[0].elevation_gain == pytest.approx(60.0)
        assert segments[0].elevation_loss == 0.0

    def test_empty_series(self):
        assert segment_elevation_stats([], 0.0, 100.0) == (0.0, 0.0)


class TestSegmentLookups:
    def setup_method(self):
        self.segments = calculate_waypoint_segments(make_waypoints(0.0, 400.0, 1000.0))

    def test_segment_between(self):
        seg = segment_between("wp1", "wp2", self.segments)
        assert seg.distance == 600.0
        assert segment_between("wp0", "wp2", self.segments) is None

    def test_segment_after(self):
        assert segment_after("wp0", self.segments).to_waypoint == "wp1"
        assert segment_after("wp2", self.segments) is None

    def test_totals(self):
        series = make_series([100.0, 105.0, 95.0, 95.0, 100.0, 100.0, 100.0, 100.0, 100.0, 100.0, 100.0])
        segments = calculate_waypoint_segments(make_waypoints(0.0, 400.0, 1000.0), series)
        assert total_distance(segments) == 1000.0
        assert total_elevation_gain(segments) == pytest.approx(10.0)
        assert total_elevation_loss(segments) == pytest.approx(10.0)


def line_feature(coords) -> dict:
    return {"type": "Feature", "properties": {}, "geometry": {"type": "LineString", "coordinates": coords}}


class TestStartFinishWaypoints:
    def test_start_and_finish_from_track(self):
        fc = {"type": "FeatureCollection", "features": [
            line_feature([[10.0, 46.0, 500.0], [10.01, 46.0, 550.0], [10.02, 46.0, 520.0]]),
        ]}
        start, finish = start_finish_waypoints(fc)

        assert (start.id, start.distance, start.order, start.elevation) == ("start", 0.0, 0, 500.0)
        assert (finish.id, finish.order, finish.elevation) == ("finish", 1, 520.0)
        assert finish.distance == pytest.approx(2 * haversine_distance(46.0, 10.0, 46.0, 10.01))

    def test_lines_joined_across_features(self):
        fc = {"type": "FeatureCollection", "features": [
            line_feature([[10.0, 46.0], [10.01, 46.0]]),
            {"type": "Feature", "properties": {}, "geometry": {"type": "Point", "coordinates": [11.0, 47.0]}},
            {"type": "Feature", "properties": {}, "geometry": {
                "type": "MultiLineString", "coordinates": [[[10.01, 46.0], [10.02, 46.0]]],
            }},
        ]}
        start, finish = start_finish_waypoints(fc)
        assert finish.distance == pytest.approx(2 * haversine_distance(46.0, 10.0, 46.0, 10.01))
        assert start.elevation is None
        assert finish.elevation is None

    def test_too_short_track(self):
        assert start_finish_waypoints({"type": "FeatureCollection", "features": []}) == []
        assert start_finish_waypoints({}) == []
        fc = {"type": "FeatureCollection", "features": [line_feature([[10.0, 46.0, 500.0]])]}
        assert start_finish_waypoints(fc) == []

    def test_segments_from_derived_waypoints(self):
        fc = {"type": "FeatureCollection", "features": [
            line_feature([[10.0, 46.0, 500.0], [10.01, 46.0, 560.0]]),
        ]}
        segments = calculate_waypoint_segments(start_finish_waypoints(fc))
        assert [(s.from_waypoint, s.to_waypoint) for s in segments] == [("start", "finish")]
        assert segments[0].elevation_gain == 60.0
