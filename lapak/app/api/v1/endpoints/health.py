from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lapak.app.api.deps import get_db
from lapak.app.api.errors import error_response
from lapak.app.core.config import APP_NAME, APP_VERSION

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health")


@router.get("")
def health():
    return {
        "success": True,
        "message": "API is healthy",
        "data": {
            "status": "ok",
            "service": APP_NAME,
            "version": APP_VERSION,
            "timestamp": datetime.now(timezone.utc),
        },
    }


@router.get("/ready")
def ready(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("readiness check failed")
        return error_response(503, "Database ping failed", "InternalError")

    return {
        "success": True,
        "message": "API is ready",
        "data": {"status": "ready", "timestamp": datetime.now(timezone.utc)},
    }
