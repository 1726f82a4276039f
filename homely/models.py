# homely/models.py
from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


# -----------------------------
# People / places
# -----------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(200), nullable=False, unique=True, index=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)

    role: Mapped[str] = mapped_column(String(20), nullable=False, index=True)  # tenant|landlord|workman|admin
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    @property
    def full_name(self) -> Optional[str]:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) or None


class Property(Base):
    __tablename__ = "properties"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    owner_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(160), nullable=False)
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str] = mapped_column(String(120), nullable=False)
    state: Mapped[str] = mapped_column(String(2), nullable=False, default="MI")
    zip: Mapped[str] = mapped_column(String(10), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    units: Mapped[List["Unit"]] = relationship(back_populates="property", cascade="all, delete-orphan")


class Unit(Base):
    __tablename__ = "units"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    property_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )

    unit_number: Mapped[str] = mapped_column(String(40), nullable=False)
    bedrooms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    bathrooms: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    property: Mapped["Property"] = relationship(back_populates="units")


# -----------------------------
# Maintenance lifecycle
# -----------------------------
class MaintenanceRequest(Base):
    __tablename__ = "maintenance_requests"
    __table_args__ = (
        Index("ix_maintenance_requests_status_created", "status", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    unit_id: Mapped[int] = mapped_column(Integer, ForeignKey("units.id"), nullable=False, index=True)
    tenant_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    assigned_to: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    category: Mapped[str] = mapped_column(String(40), nullable=False, default="general")
    estimated_cost: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    assigned_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    tenant_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    tenant_feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    unit: Mapped["Unit"] = relationship()
    tenant: Mapped["User"] = relationship(foreign_keys=[tenant_id])
    workman: Mapped[Optional["User"]] = relationship(foreign_keys=[assigned_to])
    work_order: Mapped[Optional["WorkOrder"]] = relationship(back_populates="request", uselist=False)
    approvals: Mapped[List["MaintenanceApproval"]] = relationship(
        back_populates="request", order_by="MaintenanceApproval.id"
    )

    def model_dump(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "unit_id": self.unit_id,
            "tenant_id": self.tenant_id,
            "assigned_to": self.assigned_to,
            "title": self.title,
            "priority": self.priority,
            "status": self.status,
            "category": self.category,
            "resolved_at": self.resolved_at,
            "tenant_rating": self.tenant_rating,
        }


class WorkOrder(Base):
    __tablename__ = "work_orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    maintenance_request_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("maintenance_requests.id"), nullable=False, unique=True, index=True
    )
    work_order_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    workman_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    work_description: Mapped[str] = mapped_column(Text, nullable=False)
    estimated_hours: Mapped[float] = mapped_column(Float, nullable=False)
    actual_hours: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    materials_required: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    special_instructions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="assigned")
    assigned_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    started_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    completed_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    request: Mapped["MaintenanceRequest"] = relationship(back_populates="work_order")
    workman: Mapped["User"] = relationship()

    def model_dump(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "maintenance_request_id": self.maintenance_request_id,
            "work_order_number": self.work_order_number,
            "workman_id": self.workman_id,
            "status": self.status,
            "estimated_hours": self.estimated_hours,
            "actual_hours": self.actual_hours,
            "completed_date": self.completed_date,
        }


class MaintenanceApproval(Base):
    __tablename__ = "maintenance_approvals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    maintenance_request_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("maintenance_requests.id"), nullable=False, index=True
    )
    approver_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    approver_role: Mapped[str] = mapped_column(String(20), nullable=False)

    decision: Mapped[str] = mapped_column(String(20), nullable=False)  # approved|rejected
    comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    request: Mapped["MaintenanceRequest"] = relationship(back_populates="approvals")


# -----------------------------
# Audit
# -----------------------------
class AuditEvent(Base):
    __tablename__ = "audit_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    actor_user_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("users.id"), nullable=True)
    request_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)

    action: Mapped[str] = mapped_column(String(80), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(80), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(80), nullable=False, index=True)

    before_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    after_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
