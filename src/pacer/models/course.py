"""Course data models: uploaded track geometry and the waypoints placed on it."""
import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlmodel import Field, Relationship, SQLModel


def _new_id() -> str:
    return uuid.uuid4().hex


class Course(SQLModel, table=True):
    """One row per uploaded course (GPX/TCX already converted to GeoJSON)."""

    id: str = Field(default_factory=_new_id, primary_key=True)
    name: str
    description: Optional[str] = None

    # GeoJSON FeatureCollection serialized as JSON text
    geojson_data: str = "{}"

    # Rounded course metrics (meters)
    total_distance: Optional[int] = None
    elevation_gain: Optional[int] = None
    elevation_loss: Optional[int] = None

    # Per-course smoothing overrides; None falls back to Settings defaults
    grade_window_m: Optional[float] = None    # 0 = raw slope
    pace_smoothing_m: Optional[float] = None  # 0 = no chart smoothing
    sample_step_m: Optional[float] = None     # 0 = default step

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    waypoints: List["Waypoint"] = Relationship(back_populates="course")

    def feature_collection(self) -> Dict[str, Any]:
        """Parsed geometry. Raises ValueError on corrupt JSON."""
        data = json.loads(self.geojson_data or "{}")
        if not isinstance(data, dict):
            raise ValueError("geojson_data is not a JSON object")
        return data


class Waypoint(SQLModel, table=True):
    """
    A point of interest snapped onto the course.

    ``order`` sequences waypoints along the route: 0 is the start and the
    highest order is the finish.
    """

    id: str = Field(default_factory=_new_id, primary_key=True)
    course_id: str = Field(foreign_key="course.id", index=True)
    name: str
    lat: float
    lng: float
    elevation: Optional[float] = None  # meters
    distance: float                    # meters along the route
    order: int

    course: Optional[Course] = Relationship(back_populates="waypoints")
