# homely/services/visibility.py
from __future__ import annotations

from sqlalchemy import Select, false, select, true
from sqlalchemy.sql.elements import ColumnElement

from ..auth import Principal
from ..domain.statuses import Role
from ..models import MaintenanceRequest, Property, Unit


def visible_requests_clause(actor: Principal) -> ColumnElement[bool]:
    """
    The scoped-visibility rule as one SQL predicate over maintenance_requests.

    list, get, stats and work-order listing all filter through this, so the
    counts on the dashboard always match what the list endpoint returns.
    """
    if actor.role == Role.ADMIN:
        return true()
    if actor.role == Role.TENANT:
        return MaintenanceRequest.tenant_id == actor.user_id
    if actor.role == Role.WORKMAN:
        return MaintenanceRequest.assigned_to == actor.user_id
    if actor.role == Role.LANDLORD:
        owned_units = (
            select(Unit.id)
            .join(Property, Property.id == Unit.property_id)
            .where(Property.owner_id == actor.user_id)
        )
        return MaintenanceRequest.unit_id.in_(owned_units)
    return false()


def scoped_requests(actor: Principal) -> Select:
    return select(MaintenanceRequest).where(visible_requests_clause(actor))
