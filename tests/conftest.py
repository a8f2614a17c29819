"""Shared test fixtures."""
import json
from typing import Generator, List

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from pacer.analysis.elevation_profile import extract_elevation_profile
# Import all models so SQLModel.metadata knows about them
from pacer.models.course import Course, Waypoint  # noqa: F401
from pacer.models.plan import Plan, WaypointStoppageTime  # noqa: F401

HILL_POINTS = 130
HILL_SUMMIT_INDEX = 64


def make_hill_feature_collection(
    n_points: int = HILL_POINTS,
    summit_index: int = HILL_SUMMIT_INDEX,
    climb_per_point: float = 3.0,
) -> dict:
    """Single LineString heading east at 46°N: steady climb, then steady descent."""
    coords: List[List[float]] = []
    elevation = 100.0
    for i in range(n_points):
        if i > 0:
            elevation += climb_per_point if i <= summit_index else -climb_per_point
        coords.append([10.0 + i * 0.001, 46.0, elevation])
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"name": "Hill loop"},
                "geometry": {"type": "LineString", "coordinates": coords},
            }
        ],
    }


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine. Tables recreated fresh for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="test_session")
def test_session_fixture(engine) -> Generator[Session, None, None]:
    """Provides a DB session connected to in-memory SQLite."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="seeded_course")
def seeded_course_fixture(test_session: Session) -> Course:
    """A hill course with start, summit and finish waypoints."""
    fc = make_hill_feature_collection()
    profile = extract_elevation_profile(fc)

    course = Course(name="Hill loop", geojson_data=json.dumps(fc))
    test_session.add(course)
    test_session.commit()
    test_session.refresh(course)

    for order, (name, point) in enumerate([
        ("Start", profile[0]),
        ("Summit", profile[HILL_SUMMIT_INDEX]),
        ("Finish", profile[-1]),
    ]):
        test_session.add(Waypoint(
            id=name.lower(),
            course_id=course.id,
            name=name,
            lat=point.lat,
            lng=point.lng,
            elevation=point.elevation,
            distance=point.distance,
            order=order,
        ))
    test_session.commit()
    return course


@pytest.fixture(name="seeded_plan")
def seeded_plan_fixture(test_session: Session, seeded_course: Course) -> Plan:
    """8:00/km plan with a 2-minute default stop at intermediate waypoints."""
    plan = Plan(
        id="plan-1",
        course_id=seeded_course.id,
        name="Steady",
        pace=480.0,
        default_stoppage_time=120.0,
    )
    test_session.add(plan)
    test_session.commit()
    test_session.refresh(plan)
    return plan
