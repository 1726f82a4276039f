# homely/services/ownership.py
from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..domain.errors import InvalidArgument, NotFound
from ..domain.policy import ResourceContext
from ..models import MaintenanceRequest, Property, Unit, User, WorkOrder


def _as_id(value, *, field: str) -> int:
    try:
        i = int(value)
    except (TypeError, ValueError):
        raise InvalidArgument(f"{field} must be an integer") from None
    if i <= 0:
        raise InvalidArgument(f"{field} must be positive")
    return i


def must_get_user(db: Session, *, user_id) -> User:
    row = db.get(User, _as_id(user_id, field="user id"))
    if not row:
        raise NotFound("user not found")
    return row


def must_get_unit(db: Session, *, unit_id) -> Unit:
    row = db.get(Unit, _as_id(unit_id, field="unit id"))
    if not row:
        raise NotFound("unit not found")
    return row


def must_get_request(db: Session, *, request_id) -> MaintenanceRequest:
    row = db.get(MaintenanceRequest, _as_id(request_id, field="maintenance request id"))
    if not row:
        raise NotFound("maintenance request not found")
    return row


def must_get_work_order(db: Session, *, work_order_id) -> WorkOrder:
    row = db.get(WorkOrder, _as_id(work_order_id, field="work order id"))
    if not row:
        raise NotFound("work order not found")
    return row


def property_owner_id(db: Session, *, unit_id: int) -> Optional[int]:
    return db.scalar(
        select(Property.owner_id).join(Unit, Unit.property_id == Property.id).where(Unit.id == int(unit_id))
    )


def resource_context(db: Session, req: MaintenanceRequest, wo: Optional[WorkOrder] = None) -> ResourceContext:
    if wo is None:
        wo = db.scalar(select(WorkOrder).where(WorkOrder.maintenance_request_id == req.id))
    return ResourceContext(
        tenant_id=req.tenant_id,
        assigned_to=req.assigned_to,
        property_owner_id=property_owner_id(db, unit_id=req.unit_id),
        work_order_workman_id=wo.workman_id if wo is not None else None,
    )
