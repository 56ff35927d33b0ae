"""
Lecture produits / vendeurs.

Lectures en lot uniquement (une requête par appel), jamais de commit ici:
l'appelant porte la transaction.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from lapak.app.db.models.models_v1 import Product, User


def get_products_by_ids(
    db: Session,
    product_ids: Iterable[int],
    *,
    for_update: bool = False,
) -> dict[int, Product]:
    """
    Retourne {product_id: Product} pour les ids trouvés.

    for_update=True pose un verrou ligne (SELECT ... FOR UPDATE),
    ids triés pour un ordre de verrouillage stable entre transactions.
    """
    ids = sorted({int(pid) for pid in product_ids})
    if not ids:
        return {}

    stmt = select(Product).where(Product.id.in_(ids)).order_by(Product.id.asc())
    if for_update:
        # relecture forcée: l'identity map ne doit pas masquer la qty courante
        stmt = stmt.with_for_update().execution_options(populate_existing=True)

    rows = db.execute(stmt).scalars().all()
    return {int(p.id): p for p in rows}


def get_sellers_by_ids(db: Session, seller_ids: Iterable[int]) -> dict[int, User]:
    ids = sorted({int(sid) for sid in seller_ids})
    if not ids:
        return {}

    rows = db.execute(select(User).where(User.id.in_(ids))).scalars().all()
    return {int(u.id): u for u in rows}


def get_seller_ids_for_products(db: Session, product_ids: Iterable[int]) -> set[int]:
    """Ensemble des vendeurs distincts propriétaires des produits donnés."""
    ids = sorted({int(pid) for pid in product_ids})
    if not ids:
        return set()

    rows = db.execute(select(Product.user_id).where(Product.id.in_(ids)).distinct()).all()
    return {int(uid) for (uid,) in rows}
