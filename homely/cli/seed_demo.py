# homely/cli/seed_demo.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.orm import Session

from homely.db import SessionLocal, init_db
from homely.domain.statuses import Role
from homely.models import Property, Unit, User

DEMO_DOMAIN = "demo.local"


@dataclass(frozen=True)
class SeedResult:
    users: dict[str, int] = field(default_factory=dict)  # email -> id
    property_id: Optional[int] = None
    unit_ids: tuple[int, ...] = ()


def _get_or_create_user(db: Session, email: str, first: str, last: str, role: Role) -> User:
    row = db.query(User).filter(User.email == email).one_or_none()
    if row:
        return row
    row = User(email=email, first_name=first, last_name=last, role=role.value)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def _get_or_create_property(db: Session, owner_id: int, name: str) -> Property:
    row = (
        db.query(Property)
        .filter(Property.owner_id == int(owner_id), Property.name == name)
        .one_or_none()
    )
    if row:
        return row
    row = Property(
        owner_id=int(owner_id),
        name=name,
        address="1200 Woodward Ave",
        city="Detroit",
        state="MI",
        zip="48226",
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def _ensure_unit(db: Session, property_id: int, unit_number: str, bedrooms: int) -> Unit:
    row = (
        db.query(Unit)
        .filter(Unit.property_id == int(property_id), Unit.unit_number == unit_number)
        .one_or_none()
    )
    if row:
        return row
    row = Unit(property_id=int(property_id), unit_number=unit_number, bedrooms=bedrooms, bathrooms=1.0)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def seed_demo(*, domain: str = DEMO_DOMAIN, create_tables: bool = True) -> SeedResult:
    """
    Idempotent demo data: one landlord with a two-unit property, a tenant,
    two workmen and an admin. Safe to run repeatedly.
    """
    if create_tables:
        init_db()

    db = SessionLocal()
    try:
        people = [
            ("landlord", "Lena", "Lord", Role.LANDLORD),
            ("tenant", "Tom", "Tenant", Role.TENANT),
            ("plumber", "Pat", "Pipes", Role.WORKMAN),
            ("electrician", "Eli", "Watts", Role.WORKMAN),
            ("admin", "Ada", "Admin", Role.ADMIN),
        ]
        users = {}
        for local, first, last, role in people:
            u = _get_or_create_user(db, f"{local}@{domain}", first, last, role)
            users[u.email] = int(u.id)

        prop = _get_or_create_property(db, users[f"landlord@{domain}"], "Woodward Lofts")
        units = (
            _ensure_unit(db, prop.id, "1A", bedrooms=1),
            _ensure_unit(db, prop.id, "2B", bedrooms=2),
        )
        return SeedResult(users=users, property_id=int(prop.id), unit_ids=tuple(int(u.id) for u in units))
    finally:
        db.close()
