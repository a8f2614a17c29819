"""
Great-circle distance and whole-course metrics from GeoJSON.

Coordinates follow the GeoJSON convention: [longitude, latitude, elevation?].
"""
import math
from dataclasses import dataclass
from typing import Any, Dict, List

EARTH_RADIUS_M = 6371000.0


@dataclass
class CourseMetrics:
    """Rounded totals stored on a course row."""
    total_distance: int   # meters
    elevation_gain: int   # meters
    elevation_loss: int   # meters (positive value)


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Distance in meters between two points given in decimal degrees.

    Uses the haversine formula on a sphere of radius EARTH_RADIUS_M.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def extract_coordinates(geometry: Dict[str, Any]) -> List[List[float]]:
    """
    Flatten a GeoJSON geometry into a single list of coordinate arrays.

    Polygons contribute their outer ring only. Unknown geometry types
    contribute nothing.
    """
    coords: List[List[float]] = []
    if not geometry:
        return coords

    gtype = geometry.get("type")
    raw = geometry.get("coordinates") or []

    if gtype == "Point":
        if raw:
            coords.append(list(raw))
    elif gtype == "LineString":
        coords.extend(list(c) for c in raw)
    elif gtype == "MultiLineString":
        for line in raw:
            coords.extend(list(c) for c in line)
    elif gtype == "Polygon":
        if raw:
            coords.extend(list(c) for c in raw[0])
    elif gtype == "MultiPolygon":
        for polygon in raw:
            if polygon:
                coords.extend(list(c) for c in polygon[0])
    elif gtype == "GeometryCollection":
        for sub in geometry.get("geometries") or []:
            coords.extend(extract_coordinates(sub))

    return coords


def course_metrics(feature_collection: Dict[str, Any]) -> CourseMetrics:
    """
    Sum distance and elevation gain/loss over every feature of a collection.

    Each feature is walked independently (no stitching). Pairs with a
    missing or zero coordinate are skipped; elevation deltas are counted
    only when both samples carry an elevation.
    """
    total_distance = 0.0
    gain = 0.0
    loss = 0.0

    for feature in feature_collection.get("features") or []:
        coords = extract_coordinates(feature.get("geometry"))
        if len(coords) < 2:
            continue

        for prev, cur in zip(coords, coords[1:]):
            if len(prev) < 2 or len(cur) < 2:
                continue
            lon1, lat1 = prev[0], prev[1]
            lon2, lat2 = cur[0], cur[1]
            if not lon1 or not lat1 or not lon2 or not lat2:
                continue

            total_distance += haversine_distance(lat1, lon1, lat2, lon2)

            if len(prev) >= 3 and len(cur) >= 3 and prev[2] is not None and cur[2] is not None:
                diff = cur[2] - prev[2]
                if diff > 0:
                    gain += diff
                else:
                    loss += abs(diff)

    return CourseMetrics(
        total_distance=round(total_distance),
        elevation_gain=round(gain),
        elevation_loss=round(loss),
    )
