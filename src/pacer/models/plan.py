"""Pacing plan models: one plan per (course, user) plus stoppage overrides."""
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from pacer.models.enums import PaceMode, PaceUnit, PacingStrategyName


def _new_id() -> str:
    return uuid.uuid4().hex


class Plan(SQLModel, table=True):
    """User-authored pacing configuration for a course."""

    id: str = Field(default_factory=_new_id, primary_key=True)
    course_id: str = Field(foreign_key="course.id", index=True)
    user_id: int = Field(default=1, index=True)
    name: str

    pace: Optional[float] = None  # seconds per km or mile (see pace_unit)
    pace_unit: PaceUnit = PaceUnit.MIN_PER_KM
    pace_mode: PaceMode = PaceMode.PACE
    target_time_seconds: Optional[float] = None  # only used when pace_mode == "time"

    default_stoppage_time: float = 0.0  # seconds, intermediate waypoints only
    use_grade_adjustment: bool = True

    pacing_strategy: PacingStrategyName = PacingStrategyName.FLAT
    pacing_linear_percent: float = 0.0  # reserved for the linear strategy

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    stoppage_times: List["WaypointStoppageTime"] = Relationship(back_populates="plan")


class WaypointStoppageTime(SQLModel, table=True):
    """Per-plan override of the default stoppage time at one waypoint."""

    __table_args__ = (UniqueConstraint("plan_id", "waypoint_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    plan_id: str = Field(foreign_key="plan.id", index=True)
    waypoint_id: str = Field(foreign_key="waypoint.id", index=True)
    stoppage_time: float  # seconds

    plan: Optional[Plan] = Relationship(back_populates="stoppage_times")
