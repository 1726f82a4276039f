# homely/routers/work_orders.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal
from ..db import get_db
from ..schemas import UserOut, WorkOrderOut, WorkOrderStatusIn
from ..services import work_order_service

router = APIRouter(prefix="/work-orders", tags=["work-orders"])
workmen_router = APIRouter(prefix="/workmen", tags=["work-orders"])


@router.get("", response_model=list[WorkOrderOut])
def my_work_orders(
    status: Optional[str] = Query(default=None, description="assigned|in_progress|on_hold|completed|cancelled"),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return work_order_service.list_for_workman(db, p, status=status)


@router.get("/{work_order_id}", response_model=WorkOrderOut)
def get_work_order(work_order_id: int, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    return work_order_service.get_work_order(db, p, work_order_id)


@router.put("/{work_order_id}/status", response_model=WorkOrderOut)
def update_work_order_status(
    work_order_id: int,
    payload: WorkOrderStatusIn,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return work_order_service.update_work_order_status(
        db, p, work_order_id, payload.status, notes=payload.notes, actual_hours=payload.actual_hours
    )


@workmen_router.get("", response_model=list[UserOut])
def list_workmen(db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    return work_order_service.list_workmen(db, p)
