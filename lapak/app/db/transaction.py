from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lapak.services.errors import InternalError, ServiceError

logger = logging.getLogger(__name__)


@contextmanager
def atomic(db: Session, *, failure_message: str = "Database error") -> Iterator[Session]:
    """
    Unité de travail tout-ou-rien.

    - commit si le bloc se termine normalement
    - rollback sur toute exception, puis propagation
    - les erreurs SQLAlchemy deviennent InternalError(failure_message),
      sans exposer le détail du moteur
    """
    try:
        yield db
        db.commit()
    except ServiceError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("transaction rolled back: %s", failure_message)
        raise InternalError(failure_message) from exc
    except Exception:
        db.rollback()
        raise
