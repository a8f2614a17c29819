"""Course profile routes."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlmodel import Session

from pacer.db.engine import get_session
from pacer.planning.service import PlanService

router = APIRouter()


class ProfilePointResponse(BaseModel):
    distance: float
    elevation: float
    lat: float
    lng: float


class ElevationProfileResponse(BaseModel):
    course_id: str
    min_elevation: float
    max_elevation: float
    total_distance: float
    elevation_gain: float
    elevation_loss: float
    points: List[ProfilePointResponse]


class PaceSampleResponse(BaseModel):
    distance: float
    actual_pace: float
    grade: float


@router.get("/{course_id}/elevation-profile", response_model=ElevationProfileResponse)
def get_elevation_profile(
    course_id: str,
    max_points: Optional[int] = Query(default=None, ge=1),
    session: Session = Depends(get_session),
):
    """Distance-indexed elevation series, optionally thinned to ``max_points``."""
    try:
        points, stats = PlanService(session).elevation_profile(course_id, max_points)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))

    return ElevationProfileResponse(
        course_id=course_id,
        min_elevation=stats.min_elevation,
        max_elevation=stats.max_elevation,
        total_distance=stats.total_distance,
        elevation_gain=stats.elevation_gain,
        elevation_loss=stats.elevation_loss,
        points=[
            ProfilePointResponse(distance=p.distance, elevation=p.elevation, lat=p.lat, lng=p.lng)
            for p in points
        ],
    )


@router.get("/{course_id}/pace-profile", response_model=List[PaceSampleResponse])
def get_pace_profile(
    course_id: str,
    plan_id: str,
    session: Session = Depends(get_session),
):
    """Point-by-point pace needed to hold the plan's target average."""
    try:
        samples = PlanService(session).pace_profile(course_id, plan_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return [PaceSampleResponse(**vars(s)) for s in samples]
