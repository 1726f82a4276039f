# homely/routers/maintenance.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal
from ..db import get_db
from ..schemas import (
    AssignIn,
    DecisionIn,
    MaintenanceRequestCreate,
    MaintenanceRequestDetailOut,
    MaintenanceRequestOut,
    MaintenanceStatsOut,
    RatingIn,
    StatusUpdateIn,
    WorkOrderOut,
)
from ..services import maintenance_service, stats_service, work_order_service

router = APIRouter(prefix="/maintenance-requests", tags=["maintenance"])


@router.post("", response_model=MaintenanceRequestOut, status_code=201)
def create_request(
    payload: MaintenanceRequestCreate,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return maintenance_service.create_request(
        db,
        p,
        unit_id=payload.unit_id,
        title=payload.title,
        description=payload.description,
        priority=payload.priority,
        category=payload.category,
        estimated_cost=payload.estimated_cost,
    )


@router.get("", response_model=list[MaintenanceRequestOut])
def list_requests(
    status: Optional[str] = Query(default=None),
    priority: Optional[str] = Query(default=None),
    category: Optional[str] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    offset: int = Query(default=0),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return maintenance_service.list_requests(
        db, p, status=status, priority=priority, category=category, limit=limit, offset=offset
    )


# declared before /{request_id} so "stats" is not parsed as an id
@router.get("/stats", response_model=MaintenanceStatsOut)
def request_stats(db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    return stats_service.compute_stats(db, p).as_dict()


@router.get("/{request_id}", response_model=MaintenanceRequestDetailOut)
def get_request(request_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    return maintenance_service.get_request_detail(db, p, request_id)


@router.put("/{request_id}/status", response_model=MaintenanceRequestOut)
def update_status(
    request_id: int,
    payload: StatusUpdateIn,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return maintenance_service.update_status(db, p, request_id, payload.status, comments=payload.comments)


@router.put("/{request_id}/approve", response_model=MaintenanceRequestOut)
def decide_request(
    request_id: int,
    payload: DecisionIn,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return maintenance_service.decide_request(db, p, request_id, payload.status, comments=payload.comments)


@router.put("/{request_id}/assign", response_model=WorkOrderOut)
def assign_workman(
    request_id: int,
    payload: AssignIn,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return work_order_service.assign_workman(
        db,
        p,
        request_id,
        payload.workman_id,
        work_description=payload.work_description,
        estimated_hours=payload.estimated_hours,
        materials_required=payload.materials_required,
        special_instructions=payload.special_instructions,
    )


@router.post("/{request_id}/rate", response_model=MaintenanceRequestOut)
def rate_request(
    request_id: int,
    payload: RatingIn,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return maintenance_service.rate(db, p, request_id, payload.rating, feedback=payload.feedback)
