"""
Prise de commande acheteur (Order Intake).

Règles métier :
    - panier non vide, qty >= 2 par ligne, productId numérique
    - contact = phone (E.164) ou email, rien d'autre
    - tous les produits doivent exister, aucun fulfillment partiel
    - stock vérifié pour TOUTES les lignes avant la moindre écriture

Propriétés :
    - tout-ou-rien (stock, purchase, lignes) via atomic()
    - verrou ligne (FOR UPDATE) + décrément conditionné sur la qty lue,
      donc deux commandes concurrentes ne peuvent pas survendre
    - aucun retry serveur : un conflit de stock remonte au client
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass

from sqlalchemy import update
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import set_committed_value

from lapak.app.db.models.models_v1 import Product, Purchase, PurchaseItem, User, utcnow
from lapak.app.db.transaction import atomic
from lapak.app.schemas.purchase import (
    PurchaseCreate,
    PurchasedItemRead,
    PurchaseRead,
    SellerPaymentRead,
)
from lapak.services.catalog import get_products_by_ids, get_sellers_by_ids
from lapak.services.errors import ConflictError, InternalError, NotFoundError, ValidationError
from lapak.services.validators import SenderContact, parse_numeric_id, parse_sender_contact

logger = logging.getLogger(__name__)

MIN_ITEM_QTY = 2
SENDER_NAME_MIN = 4
SENDER_NAME_MAX = 55


@dataclass(frozen=True)
class ValidatedCart:
    sender_name: str
    contact: SenderContact
    # product_id -> qty, ordre de première apparition conservé
    lines: dict[int, int]


def validate_cart(cart: PurchaseCreate) -> ValidatedCart:
    """Contrôles sans accès base, dans l'ordre métier."""
    if not cart.items:
        raise ValidationError("No items to purchase")

    for item in cart.items:
        if item.quantity < MIN_ITEM_QTY:
            raise ValidationError(f"Minimum quantity is {MIN_ITEM_QTY}")

    lines: dict[int, int] = {}
    for item in cart.items:
        pid = parse_numeric_id(item.product_id, message="Invalid product ID")
        # doublons fusionnés en une seule ligne
        lines[pid] = lines.get(pid, 0) + item.quantity

    contact = parse_sender_contact(cart.sender_contact_type, cart.sender_contact_detail)

    name = (cart.sender_name or "").strip()
    if not SENDER_NAME_MIN <= len(name) <= SENDER_NAME_MAX:
        raise ValidationError(
            f"Sender name must be between {SENDER_NAME_MIN} and {SENDER_NAME_MAX} characters"
        )

    return ValidatedCart(sender_name=name, contact=contact, lines=lines)


def decrement_stock(db: Session, product: Product, quantity: int, *, expected_qty: int) -> None:
    """
    Décrément conditionnel (compare-and-swap sur la qty lue).

    0 ligne touchée = quelqu'un a modifié le stock entre la lecture et
    l'écriture -> ConflictError, la transaction sera annulée.
    """
    now = utcnow()
    result = db.execute(
        update(Product)
        .where(Product.id == product.id)
        .where(Product.qty == expected_qty)
        .where(Product.qty >= quantity)
        .values(qty=Product.qty - quantity, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ConflictError(f"Insufficient product quantity for product ID {product.id}")

    # objet en session aligné sur la ligne écrite, sans le marquer modifié
    set_committed_value(product, "qty", expected_qty - quantity)
    set_committed_value(product, "updated_at", now)


def _item_read(product: Product, qty: int) -> PurchasedItemRead:
    return PurchasedItemRead(
        product_id=str(product.id),
        name=product.name,
        category=getattr(product.category, "value", product.category),
        qty=qty,
        price=product.price,
        sku=product.sku,
        file_id=str(product.file_id) if product.file_id is not None else "",
        file_uri=product.file_uri,
        file_thumbnail_uri=product.file_thumbnail_uri,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


def aggregate_seller_payments(
    lines: dict[int, int],
    products: dict[int, Product],
    sellers: dict[int, User],
) -> list[SellerPaymentRead]:
    """Un total par vendeur distinct (qty x prix figé), ordre d'apparition."""
    totals: dict[int, int] = {}
    for pid, qty in lines.items():
        product = products[pid]
        seller_id = int(product.user_id)
        totals[seller_id] = totals.get(seller_id, 0) + qty * product.price

    out: list[SellerPaymentRead] = []
    for seller_id, total in totals.items():
        seller = sellers.get(seller_id)
        if seller is None:
            raise InternalError("Failed to fetch seller information")
        out.append(
            SellerPaymentRead(
                seller_id=str(seller_id),
                bank_account_name=seller.bank_account_name,
                bank_account_holder=seller.bank_account_holder,
                bank_account_number=seller.bank_account_number,
                total_price=total,
            )
        )
    return out


def create_purchase(db: Session, cart: PurchaseCreate, *, caller_id: int | None = None) -> PurchaseRead:
    validated = validate_cart(cart)
    lines = validated.lines

    with atomic(db, failure_message="Failed to complete purchase transaction"):
        # ---------- RÉSOLUTION (verrouillée) ----------
        products = get_products_by_ids(db, lines.keys(), for_update=True)
        if len(products) < len(lines):
            raise NotFoundError("One or more products not found")

        for pid, qty in lines.items():
            if products[pid].qty < qty:
                logger.warning("purchase rejected: product %s has %s, requested %s", pid, products[pid].qty, qty)
                raise ConflictError(f"Insufficient product quantity for product ID {pid}")

        # ---------- STOCK ----------
        for pid, qty in lines.items():
            decrement_stock(db, products[pid], qty, expected_qty=products[pid].qty)

        # ---------- PAIEMENT PAR VENDEUR ----------
        sellers = get_sellers_by_ids(db, (p.user_id for p in products.values()))
        payment_details = aggregate_seller_payments(lines, products, sellers)

        # ---------- PURCHASE + LIGNES ----------
        total_price = sum(qty * products[pid].price for pid, qty in lines.items())
        purchase = Purchase(
            id=uuid.uuid4(),
            sender_name=validated.sender_name,
            sender_contact_type=validated.contact.type,
            sender_contact_detail=validated.contact.detail,
            total_price=total_price,
        )
        db.add(purchase)
        db.flush()

        db.add_all(
            [
                PurchaseItem(
                    purchase_id=purchase.id,
                    product_id=pid,
                    quantity=qty,
                    price=products[pid].price,
                )
                for pid, qty in lines.items()
            ]
        )
        db.flush()

        # construit avant commit (les objets sont expirés après)
        result = PurchaseRead(
            purchase_id=str(purchase.id),
            purchased_items=[_item_read(products[pid], qty) for pid, qty in lines.items()],
            total_price=total_price,
            payment_details=payment_details,
        )

    logger.info(
        "purchase %s created: %d item(s), %d seller(s), total=%d, caller=%s",
        result.purchase_id,
        len(lines),
        len(payment_details),
        total_price,
        caller_id,
    )
    return result
