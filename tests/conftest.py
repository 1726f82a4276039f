# tests/conftest.py
from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from datetime import datetime

# Settings are read at import time; point them at a throwaway sqlite file first.
_DB_DIR = tempfile.mkdtemp(prefix="homely-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["APP_ENV"] = "test"
os.environ["AUTH_MODE"] = "dev"
os.environ["DEV_AUTO_PROVISION"] = "false"
os.environ["JWT_SECRET"] = "test-secret-0123456789abcdef0123456789"

import pytest  # noqa: E402

from homely.auth import Principal  # noqa: E402
from homely.db import Base, SessionLocal, engine  # noqa: E402
from homely.domain.statuses import Role  # noqa: E402
from homely.models import Property, Unit, User  # noqa: E402
from homely.services import maintenance_service, work_order_service  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_schema():
    from homely import models  # noqa: F401

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.rollback()
        s.close()


def as_principal(u: User) -> Principal:
    return Principal(user_id=int(u.id), email=u.email, role=Role(u.role))


@dataclass
class World:
    landlord: Principal
    landlord2: Principal
    tenant: Principal
    tenant2: Principal
    workman: Principal
    workman2: Principal
    admin: Principal
    unit_id: int
    unit2_id: int


def _mk_user(db, email: str, role: Role, first: str) -> User:
    u = User(email=email, first_name=first, last_name="Test", role=role.value, created_at=datetime.utcnow())
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


def _mk_unit(db, owner: User, name: str, unit_number: str) -> Unit:
    p = Property(owner_id=owner.id, name=name, address="1 Main St", city="Detroit", state="MI", zip="48201")
    db.add(p)
    db.commit()
    db.refresh(p)
    u = Unit(property_id=p.id, unit_number=unit_number, bedrooms=2, bathrooms=1.0)
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


@pytest.fixture
def world(db) -> World:
    landlord = _mk_user(db, "lena@t.local", Role.LANDLORD, "Lena")
    landlord2 = _mk_user(db, "larry@t.local", Role.LANDLORD, "Larry")
    tenant = _mk_user(db, "tom@t.local", Role.TENANT, "Tom")
    tenant2 = _mk_user(db, "tia@t.local", Role.TENANT, "Tia")
    workman = _mk_user(db, "pat@t.local", Role.WORKMAN, "Pat")
    workman2 = _mk_user(db, "eli@t.local", Role.WORKMAN, "Eli")
    admin = _mk_user(db, "ada@t.local", Role.ADMIN, "Ada")

    unit = _mk_unit(db, landlord, "Woodward Lofts", "1A")
    unit2 = _mk_unit(db, landlord2, "Cass Flats", "3C")

    return World(
        landlord=as_principal(landlord),
        landlord2=as_principal(landlord2),
        tenant=as_principal(tenant),
        tenant2=as_principal(tenant2),
        workman=as_principal(workman),
        workman2=as_principal(workman2),
        admin=as_principal(admin),
        unit_id=int(unit.id),
        unit2_id=int(unit2.id),
    )


def new_request(db, w: World, *, tenant: Principal | None = None, unit_id: int | None = None, **kw):
    return maintenance_service.create_request(
        db,
        tenant or w.tenant,
        unit_id=unit_id or w.unit_id,
        title=kw.pop("title", "Leaking kitchen faucet"),
        description=kw.pop("description", "Drips constantly, even when fully closed."),
        **kw,
    )


def approved_request(db, w: World, **kw):
    r = new_request(db, w, **kw)
    return maintenance_service.update_status(db, w.landlord, r.id, "approved")


def assigned_request(db, w: World, **kw):
    r = approved_request(db, w, **kw)
    wo = work_order_service.assign_workman(
        db, w.landlord, r.id, w.workman.user_id, work_description="Replace cartridge", estimated_hours=2
    )
    return r, wo
