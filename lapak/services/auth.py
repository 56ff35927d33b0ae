"""
Tokens bearer opaques et mots de passe (bcrypt).

Le token en clair n'est remis qu'une fois au client, la base ne garde
que son sha256. Un token inconnu, expiré ou révoqué -> Unauthenticated.
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
from sqlalchemy import select
from sqlalchemy.orm import Session

from lapak.app.core.config import SESSION_TTL_MINUTES
from lapak.app.db.models.models_v1 import AuthSession, utcnow
from lapak.services.errors import Unauthenticated


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def hash_password(password: str) -> str:
    """bcrypt, coût 12 (le sel est inclus dans le hash)."""
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def create_session(db: Session, user_id: int, *, ttl: timedelta | None = None) -> str:
    token = secrets.token_hex(32)
    now = utcnow()
    db.add(
        AuthSession(
            user_id=user_id,
            token_hash=hash_token(token),
            created_at=now,
            expires_at=now + (ttl or timedelta(minutes=SESSION_TTL_MINUTES)),
            revoked=False,
        )
    )
    db.commit()
    return token


def _as_aware(value: datetime) -> datetime:
    # SQLite rend des datetimes naïfs
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def authenticate(db: Session, token: str | None) -> int:
    if not token or not token.strip():
        raise Unauthenticated("Authorization header required")

    session = db.execute(
        select(AuthSession).where(AuthSession.token_hash == hash_token(token.strip()))
    ).scalar_one_or_none()

    if session is None or session.revoked or _as_aware(session.expires_at) <= utcnow():
        raise Unauthenticated("Invalid or expired token")

    return int(session.user_id)


def revoke_session(db: Session, token: str) -> None:
    session = db.execute(
        select(AuthSession).where(AuthSession.token_hash == hash_token(token))
    ).scalar_one_or_none()
    if session is not None:
        session.revoked = True
        db.commit()
