# homely/schemas.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# -------------------- Users --------------------

class UserOut(BaseModel):
    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: str

    model_config = ConfigDict(from_attributes=True)


# -------------------- Maintenance requests --------------------

class MaintenanceRequestCreate(BaseModel):
    unit_id: int
    title: str
    description: str
    priority: Optional[str] = Field(default=None, description="low|medium|high|urgent")
    category: Optional[str] = Field(default=None, description="plumbing|electrical|hvac|appliance|...")
    estimated_cost: Optional[float] = None


class MaintenanceRequestOut(BaseModel):
    id: int
    unit_id: int
    tenant_id: int
    assigned_to: Optional[int] = None

    title: str
    description: str
    priority: str
    status: str
    category: str
    estimated_cost: Optional[float] = None

    created_at: datetime
    updated_at: datetime
    approved_at: Optional[datetime] = None
    assigned_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    tenant_rating: Optional[int] = None
    tenant_feedback: Optional[str] = None
    rated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class StatusUpdateIn(BaseModel):
    status: str
    comments: Optional[str] = None


class DecisionIn(BaseModel):
    status: str = Field(..., description="approved|rejected")
    comments: Optional[str] = None


class RatingIn(BaseModel):
    rating: int
    feedback: Optional[str] = None


class ApprovalOut(BaseModel):
    id: int
    approver_id: int
    approver_role: str
    decision: str
    comments: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# -------------------- Work orders --------------------

class AssignIn(BaseModel):
    workman_id: int
    work_description: str
    estimated_hours: float
    materials_required: List[str] = Field(default_factory=list)
    special_instructions: Optional[str] = None

    @field_validator("materials_required", mode="before")
    @classmethod
    def _split_materials(cls, v):
        # the legacy form posts a comma-separated string
        if isinstance(v, str):
            return [x.strip() for x in v.split(",") if x.strip()]
        return v or []


class WorkOrderStatusIn(BaseModel):
    status: str
    notes: Optional[str] = None
    actual_hours: Optional[float] = None


class WorkOrderOut(BaseModel):
    id: int
    maintenance_request_id: int
    work_order_number: str
    workman_id: int

    work_description: str
    estimated_hours: float
    actual_hours: Optional[float] = None
    materials_required: Optional[List[str]] = None
    special_instructions: Optional[str] = None

    status: str
    assigned_date: datetime
    started_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class MaintenanceRequestDetailOut(MaintenanceRequestOut):
    work_order: Optional[WorkOrderOut] = None
    approvals: List[ApprovalOut] = Field(default_factory=list)


# -------------------- Stats --------------------

class MaintenanceStatsOut(BaseModel):
    pending: int
    approved: int
    in_progress: int
    completed: int
    total: int
    by_status: dict[str, int] = Field(default_factory=dict)
    by_priority: dict[str, int] = Field(default_factory=dict)


class HealthOut(BaseModel):
    status: str
    version: str
    env: str
