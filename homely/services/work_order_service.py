# homely/services/work_order_service.py
from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ..auth import Principal
from ..config import settings
from ..domain.audit import audit_write
from ..domain.errors import Forbidden, InvalidArgument, InvalidState, InvalidTransition
from ..domain.policy import Action, require
from ..domain.statuses import (
    WORK_ORDER_PARENT_STATUSES,
    RequestStatus,
    Role,
    WorkOrderStatus,
    ensure_request_transition,
    ensure_work_order_transition,
    parse_work_order_status,
)
from ..models import MaintenanceRequest, User, WorkOrder
from .ownership import must_get_request, must_get_user, must_get_work_order, resource_context

log = logging.getLogger("homely.work_orders")


def _utcnow() -> datetime:
    return datetime.utcnow()


def work_order_number(request_id: int, at: datetime) -> str:
    """WO-2026-000042: one number per request, stable for its lifetime."""
    return f"{settings.work_order_prefix}-{at.year}-{int(request_id):06d}"


def _clean_materials(items: Optional[Iterable[Any]]) -> Optional[list[str]]:
    if items is None:
        return None
    out = [str(x).strip() for x in items if str(x or "").strip()]
    return out or None


def _hours(value: Any, *, field: str, positive: bool) -> float:
    try:
        hours = float(value)
    except (TypeError, ValueError):
        raise InvalidArgument(f"{field} must be a number") from None
    # nan compares false against everything and sqlite stores it as NULL
    if not math.isfinite(hours):
        raise InvalidArgument(f"{field} must be a finite number")
    if positive and hours <= 0:
        raise InvalidArgument(f"{field} must be greater than 0")
    if hours < 0:
        raise InvalidArgument(f"{field} cannot be negative")
    return hours


# -----------------------------------------------------------------------------
# Assignment
# -----------------------------------------------------------------------------


def assign_workman(
    db: Session,
    actor: Principal,
    request_id: Any,
    workman_id: Any,
    *,
    work_description: Any,
    estimated_hours: Any,
    materials_required: Optional[Iterable[Any]] = None,
    special_instructions: Optional[str] = None,
) -> WorkOrder:
    """
    Binds a workman to an approved request and opens its work order.

    The request moves approved -> assigned with a conditional UPDATE, so of two
    concurrent assignments exactly one commits and the other sees InvalidState.
    """
    row = must_get_request(db, request_id=request_id)
    workman = must_get_user(db, user_id=workman_id)

    if row.status != RequestStatus.APPROVED.value:
        raise InvalidState(f"only approved requests can be assigned (status is {row.status})")
    if workman.role != Role.WORKMAN.value or not workman.is_active:
        raise InvalidArgument(f"user {workman.id} is not an active workman")

    require(actor, Action.ASSIGN_WORKMAN, resource_context(db, row))

    description = str(work_description or "").strip()
    if not description:
        raise InvalidArgument("work_description is required")
    hours = _hours(estimated_hours, field="estimated_hours", positive=True)

    now = _utcnow()
    before = row.model_dump()

    res = db.execute(
        update(MaintenanceRequest)
        .where(
            MaintenanceRequest.id == row.id,
            MaintenanceRequest.status == RequestStatus.APPROVED.value,
            MaintenanceRequest.assigned_to.is_(None),
        )
        .values(
            status=RequestStatus.ASSIGNED.value,
            assigned_to=workman.id,
            assigned_at=now,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        db.rollback()
        raise InvalidState(f"maintenance request {row.id} is no longer approved")

    wo = WorkOrder(
        maintenance_request_id=row.id,
        work_order_number=work_order_number(row.id, now),
        workman_id=workman.id,
        work_description=description,
        estimated_hours=hours,
        materials_required=_clean_materials(materials_required),
        special_instructions=(special_instructions or "").strip() or None,
        status=WorkOrderStatus.ASSIGNED.value,
        assigned_date=now,
        created_at=now,
        updated_at=now,
    )
    db.add(wo)
    db.flush()

    audit_write(
        db,
        actor_user_id=actor.user_id,
        action="maintenance_request.assign",
        entity_type="MaintenanceRequest",
        entity_id=row.id,
        before=before,
        after={**before, "status": RequestStatus.ASSIGNED.value, "assigned_to": workman.id},
    )
    audit_write(
        db,
        actor_user_id=actor.user_id,
        action="work_order.create",
        entity_type="WorkOrder",
        entity_id=wo.id,
        before=None,
        after=wo.model_dump(),
    )
    db.commit()
    db.refresh(wo)

    log.info(
        "workman assigned",
        extra={
            "user_id": actor.user_id,
            "maintenance_request_id": row.id,
            "work_order_id": wo.id,
            "from_status": RequestStatus.APPROVED.value,
            "to_status": RequestStatus.ASSIGNED.value,
        },
    )
    return wo


# -----------------------------------------------------------------------------
# Work-order transitions
# -----------------------------------------------------------------------------


def update_work_order_status(
    db: Session,
    actor: Principal,
    work_order_id: Any,
    new_status: Any,
    *,
    notes: Optional[str] = None,
    actual_hours: Optional[float] = None,
) -> WorkOrder:
    """
    Moves a work order and cascades onto its request.

    in_progress starts the request (assigned -> in_progress) the first time;
    completed closes it (in_progress -> completed) in the same transaction.
    on_hold and cancelled leave the request where it is.
    """
    wo = must_get_work_order(db, work_order_id=work_order_id)
    target = parse_work_order_status(new_status)
    hours = _hours(actual_hours, field="actual_hours", positive=False) if actual_hours is not None else None

    req = must_get_request(db, request_id=wo.maintenance_request_id)
    require(actor, Action.UPDATE_WORK_ORDER_STATUS, resource_context(db, req, wo))

    cur, tgt = ensure_work_order_transition(wo.status, target)

    if RequestStatus(req.status) not in WORK_ORDER_PARENT_STATUSES:
        raise InvalidState(f"maintenance request {req.id} is {req.status}; its work order cannot move")
    if tgt == WorkOrderStatus.COMPLETED:
        ensure_request_transition(req.status, RequestStatus.COMPLETED)

    now = _utcnow()
    before = wo.model_dump()

    values: dict[str, Any] = {"status": tgt.value, "updated_at": now}
    if notes is not None:
        values["notes"] = notes.strip() or None
    if hours is not None:
        values["actual_hours"] = hours
    if tgt == WorkOrderStatus.IN_PROGRESS and wo.started_date is None:
        values["started_date"] = now
    if tgt == WorkOrderStatus.COMPLETED:
        values["completed_date"] = now

    res = db.execute(
        update(WorkOrder)
        .where(WorkOrder.id == wo.id, WorkOrder.status == cur.value)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        db.rollback()
        raise InvalidTransition(f"work order {wo.work_order_number} changed status concurrently")

    parent_to: Optional[RequestStatus] = None
    if tgt == WorkOrderStatus.IN_PROGRESS:
        # Resuming from on_hold finds the request already in_progress.
        started = db.execute(
            update(MaintenanceRequest)
            .where(
                MaintenanceRequest.id == req.id,
                MaintenanceRequest.status == RequestStatus.ASSIGNED.value,
            )
            .values(status=RequestStatus.IN_PROGRESS.value, started_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if started.rowcount == 1:
            parent_to = RequestStatus.IN_PROGRESS

    elif tgt == WorkOrderStatus.COMPLETED:
        closed = db.execute(
            update(MaintenanceRequest)
            .where(
                MaintenanceRequest.id == req.id,
                MaintenanceRequest.status == RequestStatus.IN_PROGRESS.value,
            )
            .values(status=RequestStatus.COMPLETED.value, resolved_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if closed.rowcount != 1:
            db.rollback()
            raise InvalidTransition(f"maintenance request {req.id} is no longer in_progress")
        parent_to = RequestStatus.COMPLETED

    audit_write(
        db,
        actor_user_id=actor.user_id,
        action="work_order.status",
        entity_type="WorkOrder",
        entity_id=wo.id,
        before=before,
        after={**before, "status": tgt.value},
    )
    if parent_to is not None:
        audit_write(
            db,
            actor_user_id=actor.user_id,
            action="maintenance_request.status",
            entity_type="MaintenanceRequest",
            entity_id=req.id,
            before={"status": req.status},
            after={"status": parent_to.value},
        )
    db.commit()
    db.refresh(wo)

    log.info(
        "work order status changed",
        extra={
            "user_id": actor.user_id,
            "work_order_id": wo.id,
            "maintenance_request_id": req.id,
            "from_status": cur.value,
            "to_status": tgt.value,
        },
    )
    return wo


# -----------------------------------------------------------------------------
# Reads
# -----------------------------------------------------------------------------


def list_for_workman(db: Session, actor: Principal, *, status: Any = None) -> list[WorkOrder]:
    if actor.role != Role.WORKMAN:
        raise Forbidden("only workmen have a work-order queue")

    q = select(WorkOrder).where(WorkOrder.workman_id == actor.user_id)
    if status:
        q = q.where(WorkOrder.status == parse_work_order_status(status).value)
    q = q.order_by(WorkOrder.assigned_date.desc(), WorkOrder.id.desc())
    return list(db.scalars(q).all())


def get_work_order(db: Session, actor: Principal, work_order_id: Any) -> WorkOrder:
    wo = must_get_work_order(db, work_order_id=work_order_id)
    req = must_get_request(db, request_id=wo.maintenance_request_id)
    require(actor, Action.VIEW, resource_context(db, req, wo))
    return wo


def list_workmen(db: Session, actor: Principal) -> list[User]:
    require(actor, Action.LIST_WORKMEN)
    q = (
        select(User)
        .where(User.role == Role.WORKMAN.value, User.is_active.is_(True))
        .order_by(User.last_name, User.first_name, User.id)
    )
    return list(db.scalars(q).all())
