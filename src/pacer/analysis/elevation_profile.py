"""
Elevation profile extraction from GeoJSON track geometry.

A course file frequently arrives as several features: the main recorded
track, fragments split off by GPS dropouts, and unrelated geometry such as
POI clusters or alternate routes. extract_elevation_profile() stitches the
fragments that plausibly continue the main track, discards everything else,
and walks the result into a single distance-indexed series.

ElevationPoint is the universal in-memory representation consumed by the
grade estimator, the segment decomposer and the time engine. An empty
series means "no elevation data"; every consumer falls back to flat-course
behaviour rather than raising.
"""
import bisect
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from pacer.analysis.geo import extract_coordinates, haversine_distance

logger = logging.getLogger(__name__)

# Consecutive points closer than this (degrees, on both axes) are duplicates.
DUPLICATE_EPSILON_DEG = 0.000001

# A point this far (meters) behind the furthest distance seen is out of order.
MAX_DISTANCE_REGRESSION_M = 500.0


@dataclass(frozen=True)
class ElevationPoint:
    distance: float        # cumulative meters from the start of the series
    elevation: float       # meters
    lat: float
    lng: float
    original_index: int    # index in the cleaned coordinate list, -1 if interpolated


@dataclass
class ElevationStats:
    min_elevation: float
    max_elevation: float
    total_distance: float
    elevation_gain: float
    elevation_loss: float


@dataclass(frozen=True)
class TrackStitchPolicy:
    """
    Decides whether a secondary track fragment continues the main track.

    A fragment is considered only when it has at least ``min_points`` points
    and one of its endpoints lies within ``connect_radius_m`` of an endpoint
    of the main track. It is spliced onto that end only when the closest
    connection is also within ``splice_radius_m``; the fragment is reversed
    when needed so that the touching endpoints meet.
    """
    min_points: int = 10
    connect_radius_m: float = 1000.0
    splice_radius_m: float = 500.0

    def splice(
        self,
        main: List[List[float]],
        fragment: List[List[float]],
    ) -> Optional[List[List[float]]]:
        """Return the main track with ``fragment`` attached, or None to reject it."""
        if len(fragment) < self.min_points or not main:
            return None

        frag_start, frag_end = fragment[0], fragment[-1]
        main_start, main_end = main[0], main[-1]
        if not all(_is_valid_coordinate(c) for c in (frag_start, frag_end, main_start, main_end)):
            return None

        # (distance, how to attach)
        candidates = [
            (_coord_distance(frag_start, main_end), "append"),
            (_coord_distance(frag_end, main_end), "append_reversed"),
            (_coord_distance(frag_end, main_start), "prepend"),
            (_coord_distance(frag_start, main_start), "prepend_reversed"),
        ]
        closest, how = min(candidates, key=lambda c: c[0])

        if closest >= self.connect_radius_m or closest >= self.splice_radius_m:
            return None

        if how == "append":
            return main + fragment
        if how == "append_reversed":
            return main + fragment[::-1]
        if how == "prepend":
            return fragment + main
        return fragment[::-1] + main


DEFAULT_STITCH_POLICY = TrackStitchPolicy()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _is_valid_coordinate(coord: Any) -> bool:
    """True for [lon, lat, ...] with finite, in-range longitude and latitude."""
    if not coord or len(coord) < 2:
        return False
    lon, lat = coord[0], coord[1]
    if not _is_number(lon) or not _is_number(lat):
        return False
    return -90 <= lat <= 90 and -180 <= lon <= 180


def _coord_distance(a: Sequence[float], b: Sequence[float]) -> float:
    return haversine_distance(a[1], a[0], b[1], b[0])


def _elevation_of(coord: Sequence[Any]) -> float:
    if len(coord) >= 3 and _is_number(coord[2]):
        return float(coord[2])
    return 0.0


def has_elevation_samples(feature_collection: Dict[str, Any]) -> bool:
    """True when at least one coordinate carries a finite elevation value."""
    for feature in feature_collection.get("features") or []:
        geometry = feature.get("geometry")
        if not geometry:
            continue
        if any(len(c) >= 3 and _is_number(c[2]) for c in extract_coordinates(geometry)):
            return True
    return False


def _select_track(
    feature_coordinates: List[List[List[float]]],
    policy: TrackStitchPolicy,
) -> List[List[float]]:
    """Pick the longest feature as the main track and stitch fragments onto it."""
    longest = max(feature_coordinates, key=len)
    track = list(longest)

    if len(feature_coordinates) == 1:
        return track

    for fragment in feature_coordinates:
        if fragment is longest:
            continue
        stitched = policy.splice(track, fragment)
        if stitched is not None:
            track = stitched

    return track


def extract_elevation_profile(
    feature_collection: Dict[str, Any],
    policy: TrackStitchPolicy = DEFAULT_STITCH_POLICY,
) -> List[ElevationPoint]:
    """
    Build a distance-indexed elevation series from a GeoJSON FeatureCollection.

    Steps:
      1. One coordinate list per feature (features without geometry skipped).
      2. Longest list is the main track; other lists are offered to ``policy``.
      3. Coordinates with missing, non-finite or out-of-range lat/lng dropped.
      4. Consecutive duplicates dropped.
      5. Haversine distance accumulated; missing elevation becomes 0.
      6. Points more than MAX_DISTANCE_REGRESSION_M behind the furthest
         distance seen are dropped.

    Returns:
        List of ElevationPoint ascending by distance; empty when no valid
        coordinates remain.
    """
    feature_coordinates: List[List[List[float]]] = []
    for feature in feature_collection.get("features") or []:
        geometry = feature.get("geometry")
        if not geometry:
            continue
        coords = extract_coordinates(geometry)
        if coords:
            feature_coordinates.append(coords)

    if not feature_coordinates:
        return []

    track = _select_track(feature_coordinates, policy)

    valid = [c for c in track if _is_valid_coordinate(c)]
    discarded = len(track) - len(valid)
    if discarded:
        logger.warning("Discarded %d coordinates with invalid latitude/longitude", discarded)

    deduplicated: List[List[float]] = []
    for coord in valid:
        if deduplicated:
            prev = deduplicated[-1]
            if (
                abs(coord[0] - prev[0]) < DUPLICATE_EPSILON_DEG
                and abs(coord[1] - prev[1]) < DUPLICATE_EPSILON_DEG
            ):
                continue
        deduplicated.append(coord)

    points: List[ElevationPoint] = []
    cumulative = 0.0
    for i, coord in enumerate(deduplicated):
        if i > 0:
            step = _coord_distance(deduplicated[i - 1], coord)
            if math.isfinite(step) and step >= 0:
                cumulative += step
        points.append(ElevationPoint(
            distance=cumulative,
            elevation=_elevation_of(coord),
            lat=float(coord[1]),
            lng=float(coord[0]),
            original_index=i,
        ))

    validated: List[ElevationPoint] = []
    max_seen = 0.0
    for point in points:
        if point.distance >= max_seen - MAX_DISTANCE_REGRESSION_M:
            validated.append(point)
            max_seen = max(max_seen, point.distance)
        else:
            logger.warning(
                "Removing out-of-order point at %.1f m (furthest seen %.1f m)",
                point.distance, max_seen,
            )

    return validated


def interpolate_at_distance(
    series: Sequence[ElevationPoint],
    target_distance: float,
) -> Optional[ElevationPoint]:
    """
    Linearly interpolate position and elevation at ``target_distance``.

    Distances before the first point or past the last point return that
    endpoint unchanged. Returns None for an empty series.
    """
    if not series:
        return None

    first, last = series[0], series[-1]
    if target_distance <= first.distance:
        return first
    if target_distance >= last.distance:
        return last

    distances = [p.distance for p in series]
    j = bisect.bisect_left(distances, target_distance)
    prev, nxt = series[j - 1], series[j]
    run = nxt.distance - prev.distance
    ratio = (target_distance - prev.distance) / run if run > 0 else 0.0

    return ElevationPoint(
        distance=target_distance,
        elevation=prev.elevation + ratio * (nxt.elevation - prev.elevation),
        lat=prev.lat + ratio * (nxt.lat - prev.lat),
        lng=prev.lng + ratio * (nxt.lng - prev.lng),
        original_index=-1,
    )


def elevation_stats(series: Sequence[ElevationPoint]) -> ElevationStats:
    """Min/max elevation, total distance and cumulative gain/loss of a series."""
    if not series:
        return ElevationStats(0.0, 0.0, 0.0, 0.0, 0.0)

    min_elev = max_elev = series[0].elevation
    gain = 0.0
    loss = 0.0
    for prev, cur in zip(series, series[1:]):
        min_elev = min(min_elev, cur.elevation)
        max_elev = max(max_elev, cur.elevation)
        diff = cur.elevation - prev.elevation
        if diff > 0:
            gain += diff
        else:
            loss += abs(diff)

    return ElevationStats(
        min_elevation=min_elev,
        max_elevation=max_elev,
        total_distance=series[-1].distance,
        elevation_gain=gain,
        elevation_loss=loss,
    )


def downsample(series: Sequence[ElevationPoint], max_points: int) -> List[ElevationPoint]:
    """
    Evenly thin a series to at most ``max_points`` points, keeping both ends.

    Used when handing long profiles to presentation layers.
    """
    n = len(series)
    if max_points <= 0 or n <= max_points:
        return list(series)
    if max_points == 1:
        return [series[0]]

    step = (n - 1) / (max_points - 1)
    return [series[round(i * step)] for i in range(max_points)]
