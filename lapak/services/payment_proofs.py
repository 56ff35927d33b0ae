"""
Rapprochement des preuves de paiement (Proof Reconciliation).

Règle métier :
    nombre de fileIds == nombre de vendeurs DISTINCTS de la commande
    (pas le nombre de lignes).

Tout le lot est refusé si un seul fileId est invalide, inconnu ou
appartient à un autre utilisateur. Une commande qui a déjà ses preuves
refuse une seconde soumission.
"""

from __future__ import annotations

import logging
import uuid
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from lapak.app.db.models.models_v1 import Purchase, PurchaseItem, PurchasePaymentProof
from lapak.app.db.transaction import atomic
from lapak.services.catalog import get_seller_ids_for_products
from lapak.services.errors import ConflictError, InternalError, NotFoundError, ValidationError
from lapak.services.files import find_owned_file_ids
from lapak.services.validators import parse_numeric_id

logger = logging.getLogger(__name__)


def _parse_purchase_id(raw: str | uuid.UUID) -> uuid.UUID:
    if isinstance(raw, uuid.UUID):
        return raw
    try:
        return uuid.UUID(str(raw).strip())
    except ValueError:
        raise NotFoundError("Purchase not found") from None


def _parse_file_ids(file_ids: Sequence[str | int]) -> list[int]:
    ids = [parse_numeric_id(fid, message="fileIds must be valid numeric ids") for fid in file_ids]
    if len(set(ids)) != len(ids):
        raise ValidationError("fileIds must not contain duplicates")
    return ids


def required_proof_count(db: Session, purchase_id: uuid.UUID) -> int:
    """Nombre de vendeurs distincts parmi les lignes de la commande."""
    product_ids = db.execute(
        select(PurchaseItem.product_id).where(PurchaseItem.purchase_id == purchase_id)
    ).scalars().all()
    if not product_ids:
        # une commande sans ligne = donnée corrompue, pas une erreur client
        raise InternalError("Purchase has no items")

    sellers = get_seller_ids_for_products(db, product_ids)
    if not sellers:
        raise InternalError("No sellers found for purchase items")
    return len(sellers)


def submit_payment_proofs(
    db: Session,
    purchase_id: str | uuid.UUID,
    caller_id: int,
    file_ids: Sequence[str | int],
) -> None:
    pid = _parse_purchase_id(purchase_id)

    with atomic(db, failure_message="Failed to save payment proofs"):
        purchase = db.execute(
            select(Purchase).where(Purchase.id == pid).with_for_update()
        ).scalar_one_or_none()
        if purchase is None:
            raise NotFoundError("Purchase not found")

        expected = required_proof_count(db, purchase.id)
        if len(file_ids) != expected:
            logger.warning(
                "purchase %s: %d proof(s) submitted, %d required", pid, len(file_ids), expected
            )
            raise ValidationError(
                f"fileIds count does not match required proofs (expected {expected}, got {len(file_ids)})"
            )

        ids = _parse_file_ids(file_ids)
        owned = find_owned_file_ids(db, ids, caller_id)
        if owned != set(ids):
            raise ValidationError(
                "One or more file IDs are invalid, do not exist, or are not owned by the user"
            )

        already = db.execute(
            select(func.count(PurchasePaymentProof.id)).where(PurchasePaymentProof.purchase_id == purchase.id)
        ).scalar_one()
        if already:
            raise ConflictError("Payment proofs already submitted for this purchase")

        db.add_all([PurchasePaymentProof(purchase_id=purchase.id, file_upload_id=fid) for fid in ids])
        db.flush()

    logger.info("purchase %s: %d payment proof(s) stored by user %s", pid, len(ids), caller_id)
