# homely/domain/statuses.py
from __future__ import annotations

from enum import Enum
from typing import Any, TypeVar

from .errors import InvalidArgument, InvalidTransition

# -----------------------------------------------------------------------------
# Maintenance lifecycle state machine
# -----------------------------------------------------------------------------
# Two graphs:
#   - the request lifecycle (what the tenant and landlord see)
#   - the work-order sub-machine (what the workman drives once assigned)
#
# Every status string that enters the system goes through parse_*() and every
# status change goes through ensure_*_transition(). Nothing else compares
# status strings.
# -----------------------------------------------------------------------------


class Role(str, Enum):
    TENANT = "tenant"
    LANDLORD = "landlord"
    WORKMAN = "workman"
    ADMIN = "admin"


class RequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class WorkOrderStatus(str, Enum):
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Category(str, Enum):
    PLUMBING = "plumbing"
    ELECTRICAL = "electrical"
    HVAC = "hvac"
    APPLIANCE = "appliance"
    STRUCTURAL = "structural"
    PEST_CONTROL = "pest_control"
    GENERAL = "general"
    OTHER = "other"


REQUEST_TRANSITIONS: dict[RequestStatus, frozenset[RequestStatus]] = {
    RequestStatus.PENDING: frozenset({RequestStatus.APPROVED, RequestStatus.REJECTED}),
    RequestStatus.APPROVED: frozenset({RequestStatus.ASSIGNED}),
    RequestStatus.ASSIGNED: frozenset({RequestStatus.IN_PROGRESS}),
    RequestStatus.IN_PROGRESS: frozenset({RequestStatus.COMPLETED}),
    RequestStatus.REJECTED: frozenset(),  # terminal
    RequestStatus.COMPLETED: frozenset(),  # terminal
}

WORK_ORDER_TRANSITIONS: dict[WorkOrderStatus, frozenset[WorkOrderStatus]] = {
    WorkOrderStatus.ASSIGNED: frozenset({WorkOrderStatus.IN_PROGRESS, WorkOrderStatus.CANCELLED}),
    WorkOrderStatus.IN_PROGRESS: frozenset(
        {WorkOrderStatus.ON_HOLD, WorkOrderStatus.COMPLETED, WorkOrderStatus.CANCELLED}
    ),
    WorkOrderStatus.ON_HOLD: frozenset({WorkOrderStatus.IN_PROGRESS, WorkOrderStatus.CANCELLED}),
    WorkOrderStatus.COMPLETED: frozenset(),  # terminal
    WorkOrderStatus.CANCELLED: frozenset(),  # terminal
}

# A work order may only exist while its request is in one of these.
WORK_ORDER_PARENT_STATUSES = frozenset(
    {RequestStatus.ASSIGNED, RequestStatus.IN_PROGRESS, RequestStatus.COMPLETED}
)

# Older clients send these.
PRIORITY_ALIASES = {"critical": Priority.URGENT, "emergency": Priority.URGENT}

E = TypeVar("E", bound=Enum)


def _parse(enum_cls: type[E], value: Any, *, field: str, aliases: dict[str, E] | None = None) -> E:
    if isinstance(value, enum_cls):
        return value
    s = str(value or "").strip().lower()
    if aliases and s in aliases:
        return aliases[s]
    try:
        return enum_cls(s)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidArgument(f"invalid {field} {value!r} (expected one of: {allowed})") from None


def parse_role(value: Any) -> Role:
    return _parse(Role, value, field="role")


def parse_request_status(value: Any) -> RequestStatus:
    return _parse(RequestStatus, value, field="status")


def parse_work_order_status(value: Any) -> WorkOrderStatus:
    return _parse(WorkOrderStatus, value, field="work order status")


def parse_priority(value: Any) -> Priority:
    return _parse(Priority, value, field="priority", aliases=PRIORITY_ALIASES)


def parse_category(value: Any) -> Category:
    return _parse(Category, value, field="category")


def can_transition_request(current: RequestStatus, target: RequestStatus) -> bool:
    return target in REQUEST_TRANSITIONS.get(current, frozenset())


def can_transition_work_order(current: WorkOrderStatus, target: WorkOrderStatus) -> bool:
    return target in WORK_ORDER_TRANSITIONS.get(current, frozenset())


def ensure_request_transition(current: Any, target: Any) -> tuple[RequestStatus, RequestStatus]:
    cur = parse_request_status(current)
    tgt = parse_request_status(target)
    if not can_transition_request(cur, tgt):
        raise InvalidTransition(f"maintenance request cannot move from {cur.value} to {tgt.value}")
    return cur, tgt


def ensure_work_order_transition(current: Any, target: Any) -> tuple[WorkOrderStatus, WorkOrderStatus]:
    cur = parse_work_order_status(current)
    tgt = parse_work_order_status(target)
    if not can_transition_work_order(cur, tgt):
        raise InvalidTransition(f"work order cannot move from {cur.value} to {tgt.value}")
    return cur, tgt


def is_terminal_request(status: Any) -> bool:
    return not REQUEST_TRANSITIONS[parse_request_status(status)]


def is_terminal_work_order(status: Any) -> bool:
    return not WORK_ORDER_TRANSITIONS[parse_work_order_status(status)]
