"""
Segment builder: one WaypointSegment per consecutive pair of waypoints.

Waypoints are duck-typed: anything with ``id``, ``distance`` (meters along
the route), ``order`` and ``elevation`` (meters or None) works, including
the Waypoint table model and WaypointPosition below.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pacer.analysis.elevation_profile import (
    ElevationPoint,
    _coord_distance,
    _is_number,
    _is_valid_coordinate,
    interpolate_at_distance,
)
from pacer.analysis.geo import extract_coordinates


@dataclass
class WaypointPosition:
    """Minimal waypoint for pacing calculations (no persistence fields)."""
    id: str
    distance: float
    order: int
    elevation: Optional[float] = None


@dataclass
class WaypointSegment:
    from_waypoint: str
    to_waypoint: str
    distance: float            # meters along the route
    elevation_gain: float      # meters
    elevation_loss: float      # meters, positive value


def _gain_loss(diff: float) -> Tuple[float, float]:
    if diff > 0:
        return diff, 0.0
    return 0.0, abs(diff)


def segment_elevation_stats(
    series: Sequence[ElevationPoint],
    start_distance: float,
    end_distance: float,
) -> Tuple[float, float]:
    """
    Cumulative (gain, loss) between two route distances.

    Sums deltas between consecutive profile points inside the range. With
    fewer than two points inside, uses the net difference between the
    elevations interpolated at both ends, clamped to the ends of the series.
    """
    if not series:
        return 0.0, 0.0

    inside = [p for p in series if start_distance <= p.distance <= end_distance]

    if len(inside) < 2:
        start = interpolate_at_distance(series, start_distance)
        end = interpolate_at_distance(series, end_distance)
        return _gain_loss(end.elevation - start.elevation)

    gain = 0.0
    loss = 0.0
    for prev, cur in zip(inside, inside[1:]):
        g, l = _gain_loss(cur.elevation - prev.elevation)
        gain += g
        loss += l
    return gain, loss


def calculate_waypoint_segments(
    waypoints: Sequence,
    elevation_profile: Optional[Sequence[ElevationPoint]] = None,
) -> List[WaypointSegment]:
    """
    Build segments between consecutive waypoints (sorted by ``order``).

    Gain/loss come from the elevation profile when one is supplied and
    non-empty; otherwise from the net difference of the two waypoints' own
    elevations when both are known.

    Returns:
        One segment per consecutive pair; empty for fewer than two waypoints.
    """
    if len(waypoints) < 2:
        return []

    ordered = sorted(waypoints, key=lambda w: w.order)
    segments: List[WaypointSegment] = []

    for from_wp, to_wp in zip(ordered, ordered[1:]):
        distance = abs(to_wp.distance - from_wp.distance)

        if elevation_profile:
            gain, loss = segment_elevation_stats(
                elevation_profile,
                min(from_wp.distance, to_wp.distance),
                max(from_wp.distance, to_wp.distance),
            )
        elif from_wp.elevation is not None and to_wp.elevation is not None:
            gain, loss = _gain_loss(to_wp.elevation - from_wp.elevation)
        else:
            gain, loss = 0.0, 0.0

        segments.append(WaypointSegment(
            from_waypoint=from_wp.id,
            to_waypoint=to_wp.id,
            distance=distance,
            elevation_gain=gain,
            elevation_loss=loss,
        ))

    return segments


def segment_between(
    from_waypoint_id: str,
    to_waypoint_id: str,
    segments: Sequence[WaypointSegment],
) -> Optional[WaypointSegment]:
    return next(
        (s for s in segments if s.from_waypoint == from_waypoint_id and s.to_waypoint == to_waypoint_id),
        None,
    )


def segment_after(waypoint_id: str, segments: Sequence[WaypointSegment]) -> Optional[WaypointSegment]:
    return next((s for s in segments if s.from_waypoint == waypoint_id), None)


def total_distance(segments: Sequence[WaypointSegment]) -> float:
    return sum(s.distance for s in segments)


def total_elevation_gain(segments: Sequence[WaypointSegment]) -> float:
    return sum(s.elevation_gain for s in segments)


def total_elevation_loss(segments: Sequence[WaypointSegment]) -> float:
    return sum(s.elevation_loss for s in segments)


# ─── Start / finish derivation ───────────────────────────────────────────────

def _route_coordinates(feature_collection: Dict[str, Any]) -> List[List[float]]:
    """Line coordinates of every LineString/MultiLineString feature, in file order."""
    coords: List[List[float]] = []
    for feature in feature_collection.get("features") or []:
        geometry = feature.get("geometry") or {}
        if geometry.get("type") in ("LineString", "MultiLineString"):
            coords.extend(extract_coordinates(geometry))
    return coords


def start_finish_waypoints(feature_collection: Dict[str, Any]) -> List[WaypointPosition]:
    """
    Derive a start and a finish waypoint from a course's line geometry.

    The start sits at distance 0 and the finish at the summed great-circle
    length of the route; both take the elevation of their coordinate when
    it has one. Returns an empty list when the route has fewer than two
    usable coordinates.
    """
    coords = [c for c in _route_coordinates(feature_collection) if _is_valid_coordinate(c)]
    if len(coords) < 2:
        return []

    length = sum(_coord_distance(a, b) for a, b in zip(coords, coords[1:]))

    def elevation(coord: Sequence[float]) -> Optional[float]:
        if len(coord) >= 3 and _is_number(coord[2]):
            return float(coord[2])
        return None

    return [
        WaypointPosition(id="start", distance=0.0, order=0, elevation=elevation(coords[0])),
        WaypointPosition(id="finish", distance=length, order=1, elevation=elevation(coords[-1])),
    ]
