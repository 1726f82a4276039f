# homely/services/stats_service.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..auth import Principal
from ..domain.statuses import Priority, RequestStatus
from ..models import MaintenanceRequest
from .visibility import visible_requests_clause


@dataclass
class RequestStats:
    pending: int = 0
    approved: int = 0
    in_progress: int = 0
    completed: int = 0
    total: int = 0
    by_status: dict[str, int] = field(default_factory=dict)
    by_priority: dict[str, int] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "pending": self.pending,
            "approved": self.approved,
            "in_progress": self.in_progress,
            "completed": self.completed,
            "total": self.total,
            "by_status": dict(self.by_status),
            "by_priority": dict(self.by_priority),
        }


def _grouped(db: Session, actor: Principal, col) -> dict[str, int]:
    rows = db.execute(
        select(col, func.count(MaintenanceRequest.id))
        .where(visible_requests_clause(actor))
        .group_by(col)
    ).all()
    return {str(k): int(n) for k, n in rows}


def compute_stats(db: Session, actor: Principal) -> RequestStats:
    """
    Dashboard counts over exactly the requests `actor` can list.

    by_status and by_priority carry every known key (zero when empty) so the
    UI can render fixed tiles.
    """
    status_counts = _grouped(db, actor, MaintenanceRequest.status)
    priority_counts = _grouped(db, actor, MaintenanceRequest.priority)

    by_status = {s.value: status_counts.get(s.value, 0) for s in RequestStatus}
    by_priority = {p.value: priority_counts.get(p.value, 0) for p in Priority}

    return RequestStats(
        pending=by_status[RequestStatus.PENDING.value],
        approved=by_status[RequestStatus.APPROVED.value],
        in_progress=by_status[RequestStatus.IN_PROGRESS.value],
        completed=by_status[RequestStatus.COMPLETED.value],
        total=sum(status_counts.values()),
        by_status=by_status,
        by_priority=by_priority,
    )
