# homely/domain/policy.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..auth import Principal
from .errors import Forbidden
from .statuses import Role

log = logging.getLogger("homely.policy")


class Action(str, Enum):
    CREATE_REQUEST = "create_request"
    APPROVE = "approve"
    REJECT = "reject"
    ASSIGN_WORKMAN = "assign_workman"
    UPDATE_REQUEST_STATUS = "update_request_status"
    UPDATE_WORK_ORDER_STATUS = "update_work_order_status"
    VIEW = "view"
    RATE = "rate"
    LIST_WORKMEN = "list_workmen"


@dataclass(frozen=True)
class ResourceContext:
    """
    The relations of a maintenance request (and its work order, if any)
    that authorization depends on. Built by the services from fresh rows.
    """

    tenant_id: Optional[int] = None
    assigned_to: Optional[int] = None
    property_owner_id: Optional[int] = None
    work_order_workman_id: Optional[int] = None


def _is_owner(actor: Principal, res: ResourceContext) -> bool:
    return actor.role == Role.LANDLORD and res.property_owner_id is not None and res.property_owner_id == actor.user_id


def can_perform(actor: Principal, action: Action, resource: Optional[ResourceContext] = None) -> bool:
    """
    Pure decision: may `actor` perform `action` on `resource`?

    No I/O. The caller is responsible for loading the resource first so that
    NotFound is reported before any decision here.
    """
    res = resource or ResourceContext()
    role = actor.role

    if action == Action.CREATE_REQUEST:
        return role == Role.TENANT

    if action == Action.LIST_WORKMEN:
        return role in (Role.LANDLORD, Role.ADMIN)

    if role == Role.ADMIN and action != Action.RATE:
        return True

    if action in (Action.APPROVE, Action.REJECT, Action.ASSIGN_WORKMAN):
        return _is_owner(actor, res)

    if action == Action.UPDATE_REQUEST_STATUS:
        if _is_owner(actor, res):
            return True
        return role == Role.WORKMAN and res.assigned_to is not None and res.assigned_to == actor.user_id

    if action == Action.UPDATE_WORK_ORDER_STATUS:
        if _is_owner(actor, res):
            return True
        return (
            role == Role.WORKMAN
            and res.work_order_workman_id is not None
            and res.work_order_workman_id == actor.user_id
        )

    if action == Action.VIEW:
        if role == Role.TENANT:
            return res.tenant_id == actor.user_id
        if role == Role.WORKMAN:
            return res.assigned_to is not None and res.assigned_to == actor.user_id
        if role == Role.LANDLORD:
            return _is_owner(actor, res)
        return False

    if action == Action.RATE:
        return role == Role.TENANT and res.tenant_id == actor.user_id

    return False


def require(actor: Principal, action: Action, resource: Optional[ResourceContext] = None) -> None:
    if can_perform(actor, action, resource):
        return
    log.warning(
        "denied %s",
        action.value,
        extra={"user_id": actor.user_id, "role": actor.role.value},
    )
    raise Forbidden(f"{actor.role.value} may not {action.value.replace('_', ' ')} on this resource")
