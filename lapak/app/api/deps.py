from __future__ import annotations

from typing import Generator

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from lapak.app.db.session import SessionLocal
from lapak.services.auth import authenticate
from lapak.services.errors import Unauthenticated


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user_id(
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> int:
    if not authorization or not authorization.strip():
        raise Unauthenticated("Authorization header required")
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        raise Unauthenticated("Authorization scheme must be Bearer")
    return authenticate(db, token)


def get_optional_user_id(
    authorization: str | None = Header(default=None),
    db: Session = Depends(get_db),
) -> int | None:
    """Appelant identifié si un header est fourni, anonyme sinon."""
    if authorization is None:
        return None
    return get_current_user_id(authorization, db)
