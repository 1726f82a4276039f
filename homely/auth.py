# homely/auth.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

import jwt
from fastapi import Depends, Header, Request
from sqlalchemy import select
from sqlalchemy.orm import Session

from .config import settings
from .db import get_db
from .domain.errors import Unauthorized
from .domain.statuses import Role, parse_role
from .models import User

log = logging.getLogger("homely.auth")


@dataclass(frozen=True)
class Principal:
    user_id: int
    email: str
    role: Role


def _principal_from_user(user: User) -> Principal:
    if not user.is_active:
        raise Unauthorized("user is inactive")
    return Principal(user_id=int(user.id), email=str(user.email), role=parse_role(user.role))


# -------------------------
# JWT (verification only; tokens are issued elsewhere)
# -------------------------
def decode_access_token(token: str) -> dict[str, Any]:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise Unauthorized("token expired") from None
    except jwt.InvalidTokenError:
        raise Unauthorized("invalid token") from None


def _principal_from_token(db: Session, token: str) -> Principal:
    claims = decode_access_token(token)
    sub = str(claims.get("sub") or "")
    if not sub.isdigit():
        raise Unauthorized("token missing sub")

    user = db.get(User, int(sub))
    if user is None:
        raise Unauthorized("unknown user")
    return _principal_from_user(user)


# -------------------------
# Dev header spoofing
# -------------------------
def _principal_from_dev_headers(db: Session, request: Request) -> Principal:
    email = (request.headers.get(settings.dev_header_user_email) or "").strip().lower()
    if not email:
        raise Unauthorized(f"Missing {settings.dev_header_user_email} for dev auth")

    user = db.scalar(select(User).where(User.email == email))
    if user is None and settings.dev_auto_provision:
        role_hint = request.headers.get(settings.dev_header_user_role) or Role.TENANT.value
        user = User(
            email=email,
            first_name=email.split("@")[0],
            role=parse_role(role_hint).value,
            created_at=datetime.utcnow(),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        log.info("dev auth provisioned user", extra={"user_id": user.id, "role": user.role})

    if user is None:
        raise Unauthorized("unknown user")
    return _principal_from_user(user)


def get_principal(
    request: Request,
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
) -> Principal:
    """
    Resolves the caller for one HTTP call.

    Auth modes supported (in priority order):
      1) Authorization: Bearer <jwt>   (sub = users.id)
      2) dev header spoofing (ONLY if settings.auth_mode == "dev")

    The role always comes from the users row, never from the token or headers
    of an existing user.
    """
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
        return _principal_from_token(db, token)

    if settings.auth_mode == "dev":
        return _principal_from_dev_headers(db, request)

    raise Unauthorized("Not authenticated")
