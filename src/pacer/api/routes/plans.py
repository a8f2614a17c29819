"""Plan pacing routes."""
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session

from pacer.analysis.formatting import format_elapsed_time
from pacer.db.engine import get_session
from pacer.planning.service import PlanService

router = APIRouter()


class FinishTimeResponse(BaseModel):
    original_finish_time: float
    grade_adjusted_finish_time: int
    formatted: str
    time_difference: float
    average_grade_adjustment_factor: float


class ArrivalTimesResponse(BaseModel):
    plan_id: str
    arrival_times: Dict[str, int]
    finish: FinishTimeResponse


class SegmentPacingResponse(BaseModel):
    average_grade: float
    grade_description: str
    adjustment_factor: float
    base_pace: float
    adjusted_pace: float
    pace_adjustment_description: str
    estimated_time_minutes: float


class SegmentResponse(BaseModel):
    from_waypoint: str
    to_waypoint: str
    distance: float
    elevation_gain: float
    elevation_loss: float
    pacing: Optional[SegmentPacingResponse]


class SplitResponse(BaseModel):
    index: int
    start_distance: float
    end_distance: float
    travel_time: float
    elapsed_time: float
    split_time: float
    pace: float


@router.get("/{plan_id}/arrival-times", response_model=ArrivalTimesResponse)
def get_arrival_times(plan_id: str, session: Session = Depends(get_session)):
    """Cumulative arrival time (seconds) at every waypoint of the plan's course."""
    try:
        arrival_times, finish = PlanService(session).arrival_times(plan_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))

    return ArrivalTimesResponse(
        plan_id=plan_id,
        arrival_times=arrival_times,
        finish=FinishTimeResponse(
            original_finish_time=finish.original_finish_time,
            grade_adjusted_finish_time=finish.grade_adjusted_finish_time,
            formatted=format_elapsed_time(finish.grade_adjusted_finish_time),
            time_difference=finish.time_difference,
            average_grade_adjustment_factor=finish.average_grade_adjustment_factor,
        ),
    )


@router.get("/{plan_id}/segments", response_model=List[SegmentResponse])
def get_segments(plan_id: str, session: Session = Depends(get_session)):
    """Per-segment grade and pace diagnostics."""
    try:
        reports = PlanService(session).segments(plan_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))

    response = []
    for report in reports:
        pacing = None
        if report.pacing is not None:
            info = report.pacing
            pacing = SegmentPacingResponse(
                average_grade=info.average_grade,
                grade_description=info.grade_description,
                adjustment_factor=info.adjustment_factor,
                base_pace=info.base_pace,
                adjusted_pace=info.adjusted_pace,
                pace_adjustment_description=info.pace_adjustment_description,
                estimated_time_minutes=info.estimated_time_minutes,
            )
        seg = report.segment
        response.append(SegmentResponse(
            from_waypoint=seg.from_waypoint,
            to_waypoint=seg.to_waypoint,
            distance=seg.distance,
            elevation_gain=seg.elevation_gain,
            elevation_loss=seg.elevation_loss,
            pacing=pacing,
        ))
    return response


@router.get("/{plan_id}/splits", response_model=List[SplitResponse])
def get_splits(plan_id: str, session: Session = Depends(get_session)):
    """Cumulative times at every whole km or mile."""
    try:
        splits = PlanService(session).splits(plan_id)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return [SplitResponse(**vars(s)) for s in splits]
