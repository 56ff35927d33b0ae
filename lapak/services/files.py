from __future__ import annotations

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from lapak.app.db.models.models_v1 import FileUpload


def find_owned_file_ids(db: Session, file_ids: Iterable[int], user_id: int) -> set[int]:
    """Parmi file_ids, ceux qui existent ET appartiennent à user_id."""
    ids = sorted({int(fid) for fid in file_ids})
    if not ids:
        return set()

    rows = db.execute(
        select(FileUpload.id)
        .where(FileUpload.id.in_(ids))
        .where(FileUpload.user_id == user_id)
    ).all()
    return {int(fid) for (fid,) in rows}
