# homely/services/maintenance_service.py
from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from ..auth import Principal
from ..config import settings
from ..domain.audit import audit_write
from ..domain.errors import InvalidArgument, InvalidState, InvalidTransition
from ..domain.policy import Action, require
from ..domain.statuses import (
    Category,
    Priority,
    RequestStatus,
    WorkOrderStatus,
    can_transition_work_order,
    ensure_request_transition,
    is_terminal_request,
    is_terminal_work_order,
    parse_category,
    parse_priority,
    parse_request_status,
)
from ..models import MaintenanceApproval, MaintenanceRequest, WorkOrder
from .ownership import must_get_request, must_get_unit, resource_context
from .visibility import scoped_requests

log = logging.getLogger("homely.maintenance")

TITLE_MAX = 255
DESCRIPTION_MIN = 10

# Timestamp column stamped when a request enters the status.
_STAMPS = {
    RequestStatus.APPROVED: "approved_at",
    RequestStatus.IN_PROGRESS: "started_at",
    RequestStatus.COMPLETED: "resolved_at",
}

# Request status -> work order status it implies for a live work order.
_MIRROR = {
    RequestStatus.IN_PROGRESS: WorkOrderStatus.IN_PROGRESS,
    RequestStatus.COMPLETED: WorkOrderStatus.COMPLETED,
}


def _utcnow() -> datetime:
    return datetime.utcnow()


def _clean_text(value: Any, *, field: str, min_len: int = 1, max_len: Optional[int] = None) -> str:
    s = str(value or "").strip()
    if len(s) < min_len:
        if min_len <= 1:
            raise InvalidArgument(f"{field} is required")
        raise InvalidArgument(f"{field} must be at least {min_len} characters")
    if max_len is not None and len(s) > max_len:
        raise InvalidArgument(f"{field} must be at most {max_len} characters")
    return s


# -----------------------------------------------------------------------------
# Create / read
# -----------------------------------------------------------------------------


def create_request(
    db: Session,
    actor: Principal,
    *,
    unit_id: Any,
    title: Any,
    description: Any,
    priority: Any = None,
    category: Any = None,
    estimated_cost: Optional[float] = None,
) -> MaintenanceRequest:
    title_s = _clean_text(title, field="title", max_len=TITLE_MAX)
    description_s = _clean_text(description, field="description", min_len=DESCRIPTION_MIN)
    prio = parse_priority(priority) if priority else Priority.MEDIUM
    cat = parse_category(category) if category else Category.GENERAL
    if estimated_cost is not None:
        if not math.isfinite(float(estimated_cost)):
            raise InvalidArgument("estimated_cost must be a finite number")
        if float(estimated_cost) < 0:
            raise InvalidArgument("estimated_cost cannot be negative")

    unit = must_get_unit(db, unit_id=unit_id)
    require(actor, Action.CREATE_REQUEST)

    now = _utcnow()
    row = MaintenanceRequest(
        unit_id=unit.id,
        tenant_id=actor.user_id,
        assigned_to=None,
        title=title_s,
        description=description_s,
        priority=prio.value,
        category=cat.value,
        status=RequestStatus.PENDING.value,
        estimated_cost=estimated_cost,
        created_at=now,
        updated_at=now,
    )
    db.add(row)
    db.flush()

    audit_write(
        db,
        actor_user_id=actor.user_id,
        action="maintenance_request.create",
        entity_type="MaintenanceRequest",
        entity_id=row.id,
        before=None,
        after=row.model_dump(),
    )
    db.commit()
    db.refresh(row)

    log.info(
        "maintenance request created",
        extra={"user_id": actor.user_id, "maintenance_request_id": row.id, "to_status": row.status},
    )
    return row


def list_requests(
    db: Session,
    actor: Principal,
    *,
    status: Any = None,
    priority: Any = None,
    category: Any = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> list[MaintenanceRequest]:
    """
    Requests visible to `actor`, newest first.

    Ordering is by created_at desc with id desc as tie-break; clients page
    through it with limit/offset.
    """
    q = scoped_requests(actor)

    if status:
        q = q.where(MaintenanceRequest.status == parse_request_status(status).value)
    if priority:
        q = q.where(MaintenanceRequest.priority == parse_priority(priority).value)
    if category:
        q = q.where(MaintenanceRequest.category == parse_category(category).value)

    q = q.order_by(MaintenanceRequest.created_at.desc(), MaintenanceRequest.id.desc())

    if offset:
        if int(offset) < 0:
            raise InvalidArgument("offset cannot be negative")
        q = q.offset(int(offset))
    if limit is not None:
        if int(limit) < 1:
            raise InvalidArgument("limit must be at least 1")
        q = q.limit(min(int(limit), settings.list_limit_max))

    return list(db.scalars(q).all())


def get_request(db: Session, actor: Principal, request_id: Any) -> MaintenanceRequest:
    row = must_get_request(db, request_id=request_id)
    require(actor, Action.VIEW, resource_context(db, row))
    return row


def get_request_detail(db: Session, actor: Principal, request_id: Any) -> MaintenanceRequest:
    row = get_request(db, actor, request_id)
    return db.scalar(
        select(MaintenanceRequest)
        .options(selectinload(MaintenanceRequest.work_order), selectinload(MaintenanceRequest.approvals))
        .where(MaintenanceRequest.id == row.id)
        .execution_options(populate_existing=True)
    )


# -----------------------------------------------------------------------------
# Transitions
# -----------------------------------------------------------------------------


def _live_work_order_update(
    db: Session, row: MaintenanceRequest, target: RequestStatus, now: datetime
) -> Optional[tuple[WorkOrder, dict[str, Any]]]:
    """
    Work-order change implied by moving its request to `target`, or None.

    Terminal work orders (cancelled) are left alone; a live one that cannot
    follow (e.g. on_hold while the landlord closes the request) blocks the call.
    """
    implied = _MIRROR.get(target)
    if implied is None:
        return None

    wo = db.scalar(select(WorkOrder).where(WorkOrder.maintenance_request_id == row.id))
    if wo is None or is_terminal_work_order(wo.status):
        return None
    if wo.status == implied.value:
        return None
    if not can_transition_work_order(WorkOrderStatus(wo.status), implied):
        raise InvalidState(
            f"work order {wo.work_order_number} is {wo.status}; it must be able to move to {implied.value} first"
        )

    values: dict[str, Any] = {"status": implied.value, "updated_at": now}
    if implied == WorkOrderStatus.IN_PROGRESS and wo.started_date is None:
        values["started_date"] = now
    if implied == WorkOrderStatus.COMPLETED:
        values["completed_date"] = now
    return wo, values


def update_status(
    db: Session,
    actor: Principal,
    request_id: Any,
    new_status: Any,
    *,
    comments: Optional[str] = None,
) -> MaintenanceRequest:
    row = must_get_request(db, request_id=request_id)
    target = parse_request_status(new_status)
    if is_terminal_request(row.status):
        raise InvalidTransition(f"maintenance request {row.id} is {row.status} and closed")

    cur, tgt = ensure_request_transition(row.status, target)
    if tgt == RequestStatus.ASSIGNED:
        raise InvalidArgument("requests are assigned by creating a work order (PUT /assign)")

    ctx = resource_context(db, row)
    if tgt == RequestStatus.APPROVED:
        require(actor, Action.APPROVE, ctx)
    elif tgt == RequestStatus.REJECTED:
        require(actor, Action.REJECT, ctx)
    else:
        require(actor, Action.UPDATE_REQUEST_STATUS, ctx)

    now = _utcnow()
    mirror = _live_work_order_update(db, row, tgt, now)
    before = row.model_dump()

    values: dict[str, Any] = {"status": tgt.value, "updated_at": now}
    stamp = _STAMPS.get(tgt)
    if stamp:
        values[stamp] = now

    res = db.execute(
        update(MaintenanceRequest)
        .where(MaintenanceRequest.id == row.id, MaintenanceRequest.status == cur.value)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        db.rollback()
        raise InvalidTransition(f"maintenance request {row.id} changed status concurrently")

    if mirror is not None:
        wo, wo_values = mirror
        wo_res = db.execute(
            update(WorkOrder)
            .where(WorkOrder.id == wo.id, WorkOrder.status == wo.status)
            .values(**wo_values)
            .execution_options(synchronize_session=False)
        )
        if wo_res.rowcount != 1:
            db.rollback()
            raise InvalidTransition(f"work order {wo.work_order_number} changed status concurrently")

    if tgt in (RequestStatus.APPROVED, RequestStatus.REJECTED):
        db.add(
            MaintenanceApproval(
                maintenance_request_id=row.id,
                approver_id=actor.user_id,
                approver_role=actor.role.value,
                decision=tgt.value,
                comments=(comments or "").strip() or None,
                created_at=now,
            )
        )

    audit_write(
        db,
        actor_user_id=actor.user_id,
        action="maintenance_request.status",
        entity_type="MaintenanceRequest",
        entity_id=row.id,
        before=before,
        after={**before, "status": tgt.value},
    )
    db.commit()
    db.refresh(row)

    log.info(
        "maintenance request status changed",
        extra={
            "user_id": actor.user_id,
            "maintenance_request_id": row.id,
            "from_status": cur.value,
            "to_status": tgt.value,
        },
    )
    return row


def decide_request(
    db: Session,
    actor: Principal,
    request_id: Any,
    decision: Any,
    *,
    comments: Optional[str] = None,
) -> MaintenanceRequest:
    """Approve or reject a pending request, recording the approver's comments."""
    tgt = parse_request_status(decision)
    if tgt not in (RequestStatus.APPROVED, RequestStatus.REJECTED):
        raise InvalidArgument("decision must be approved or rejected")
    return update_status(db, actor, request_id, tgt, comments=comments)


# -----------------------------------------------------------------------------
# Rating
# -----------------------------------------------------------------------------


def rate(
    db: Session,
    actor: Principal,
    request_id: Any,
    rating: Any,
    *,
    feedback: Optional[str] = None,
) -> MaintenanceRequest:
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise InvalidArgument("rating must be an integer from 1 to 5")

    row = must_get_request(db, request_id=request_id)
    require(actor, Action.RATE, resource_context(db, row))

    if row.status != RequestStatus.COMPLETED.value:
        raise InvalidState("only completed maintenance requests can be rated")
    if row.tenant_rating is not None:
        raise InvalidState("maintenance request has already been rated")

    now = _utcnow()
    before = row.model_dump()
    res = db.execute(
        update(MaintenanceRequest)
        .where(
            MaintenanceRequest.id == row.id,
            MaintenanceRequest.status == RequestStatus.COMPLETED.value,
            MaintenanceRequest.tenant_rating.is_(None),
        )
        .values(
            tenant_rating=rating,
            tenant_feedback=(feedback or "").strip() or None,
            rated_at=now,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        db.rollback()
        raise InvalidState("maintenance request has already been rated")

    audit_write(
        db,
        actor_user_id=actor.user_id,
        action="maintenance_request.rate",
        entity_type="MaintenanceRequest",
        entity_id=row.id,
        before=before,
        after={**before, "tenant_rating": rating},
    )
    db.commit()
    db.refresh(row)

    log.info("maintenance request rated", extra={"user_id": actor.user_id, "maintenance_request_id": row.id})
    return row
