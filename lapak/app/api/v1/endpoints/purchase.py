from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lapak.app.api.deps import get_current_user_id, get_db, get_optional_user_id
from lapak.app.schemas.purchase import PaymentProofCreate, PurchaseCreate, PurchaseRead
from lapak.services.payment_proofs import submit_payment_proofs
from lapak.services.purchases import create_purchase

router = APIRouter(prefix="/purchase")


@router.post("", status_code=201, response_model=PurchaseRead)
def purchase_products(
    payload: PurchaseCreate,
    db: Session = Depends(get_db),
    caller_id: int | None = Depends(get_optional_user_id),
):
    return create_purchase(db, payload, caller_id=caller_id)


@router.post("/{purchase_id}", status_code=201)
def process_purchase(
    purchase_id: str,
    payload: PaymentProofCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
):
    """
    Preuves de paiement d'une commande.

    - un fileId par vendeur distinct de la commande
    - chaque fileId doit appartenir à l'appelant
    """
    submit_payment_proofs(db, purchase_id, user_id, payload.file_ids)
    return {"success": True}
