from __future__ import annotations

import pytest
from sqlalchemy import event, func, select
from sqlalchemy.exc import OperationalError

from lapak.app.db.models.models_v1 import Product, Purchase, PurchaseItem, User
from lapak.app.schemas.purchase import PurchaseCreate
from lapak.services.errors import ConflictError, InternalError, NotFoundError, ValidationError
from lapak.services.purchases import create_purchase, decrement_stock


def _cart(make_cart, *items, **kw) -> PurchaseCreate:
    return PurchaseCreate.model_validate(make_cart(*items, **kw))


def _count(db, model) -> int:
    return db.execute(select(func.count()).select_from(model)).scalar_one()


def _qty(db, product_id: int) -> int:
    db.expire_all()
    return db.execute(select(Product.qty).where(Product.id == product_id)).scalar_one()


def test_single_seller_purchase_decrements_stock_and_totals(db_session, factory, make_cart):
    """
    GIVEN P1 qty=5, price=1000, vendeur S1 avec coordonnées bancaires
    WHEN  commande de 3 x P1
    THEN  total 3000, un seul agrégat S1 à 3000, stock P1 = 2
    """
    s1 = factory.seller(bank="Mandiri")
    p1 = factory.product(s1, qty=5, price=1000)

    result = create_purchase(db_session, _cart(make_cart, (p1.id, 3)))

    assert result.total_price == 3000
    assert len(result.payment_details) == 1
    payment = result.payment_details[0]
    assert payment.seller_id == str(s1.id)
    assert payment.total_price == 3000
    assert payment.bank_account_name == "Mandiri"
    assert payment.bank_account_number == s1.bank_account_number

    assert [i.product_id for i in result.purchased_items] == [str(p1.id)]
    assert result.purchased_items[0].qty == 3
    assert result.purchased_items[0].price == 1000

    assert _qty(db_session, p1.id) == 2


def test_purchase_persists_header_and_snapshot_lines(db_session, factory, make_cart):
    s1 = factory.seller()
    p1 = factory.product(s1, qty=10, price=1500)
    p2 = factory.product(s1, qty=10, price=700)

    result = create_purchase(db_session, _cart(make_cart, (p1.id, 2), (p2.id, 4)))

    purchase = db_session.execute(select(Purchase)).scalar_one()
    assert str(purchase.id) == result.purchase_id
    assert purchase.sender_contact_type.value == "email"

    lines = db_session.execute(select(PurchaseItem).order_by(PurchaseItem.product_id)).scalars().all()
    assert [(l.product_id, l.quantity, l.price) for l in lines] == [(p1.id, 2, 1500), (p2.id, 4, 700)]
    # total = somme des lignes
    assert purchase.total_price == sum(l.quantity * l.price for l in lines) == 5800


def test_price_change_after_purchase_does_not_touch_history(db_session, factory, make_cart):
    s1 = factory.seller()
    p1 = factory.product(s1, qty=10, price=1000)
    create_purchase(db_session, _cart(make_cart, (p1.id, 2)))

    p1 = db_session.get(Product, p1.id)
    p1.price = 9999
    db_session.commit()

    line = db_session.execute(select(PurchaseItem)).scalar_one()
    assert line.price == 1000
    assert db_session.execute(select(Purchase.total_price)).scalar_one() == 2000


def test_multi_seller_purchase_has_one_payment_per_distinct_seller(db_session, factory, make_cart):
    a = factory.seller(bank="BCA")
    b = factory.seller(bank="BNI")
    a1 = factory.product(a, qty=10, price=1000)
    a2 = factory.product(a, qty=10, price=500)
    b1 = factory.product(b, qty=10, price=2500)

    result = create_purchase(db_session, _cart(make_cart, (a1.id, 2), (b1.id, 3), (a2.id, 4)))

    by_seller = {p.seller_id: p for p in result.payment_details}
    assert set(by_seller) == {str(a.id), str(b.id)}
    assert by_seller[str(a.id)].total_price == 2 * 1000 + 4 * 500
    assert by_seller[str(b.id)].total_price == 3 * 2500
    assert by_seller[str(b.id)].bank_account_name == "BNI"
    assert result.total_price == sum(p.total_price for p in result.payment_details) == 11500


def test_duplicate_product_lines_are_merged(db_session, factory, make_cart):
    s1 = factory.seller()
    p1 = factory.product(s1, qty=10, price=100)

    result = create_purchase(db_session, _cart(make_cart, (p1.id, 2), (p1.id, 3)))

    assert len(result.purchased_items) == 1
    assert result.purchased_items[0].qty == 5
    assert result.total_price == 500
    assert _qty(db_session, p1.id) == 5


def test_quantity_one_is_rejected_and_two_is_accepted(db_session, factory, make_cart):
    s1 = factory.seller()
    p1 = factory.product(s1, qty=10)

    with pytest.raises(ValidationError, match="Minimum quantity is 2"):
        create_purchase(db_session, _cart(make_cart, (p1.id, 1)))
    assert _qty(db_session, p1.id) == 10

    create_purchase(db_session, _cart(make_cart, (p1.id, 2)))
    assert _qty(db_session, p1.id) == 8


def test_empty_cart_is_rejected(db_session, make_cart):
    with pytest.raises(ValidationError, match="No items"):
        create_purchase(db_session, _cart(make_cart))


@pytest.mark.parametrize(
    "bad_id", ["abc", "-1", "0", "1.5", "", "9223372036854775808", "99999999999999999999999"]
)
def test_malformed_product_id_is_rejected(db_session, make_cart, bad_id):
    with pytest.raises(ValidationError, match="Invalid product ID"):
        create_purchase(db_session, _cart(make_cart, (bad_id, 2)))


@pytest.mark.parametrize(
    "contact_type, detail",
    [
        ("fax", "12345"),
        ("", "a@b.com"),
        ("email", "not-an-email"),
        ("email", "a@b"),
        ("phone", "08123456789"),
        ("phone", "+62abc"),
    ],
)
def test_invalid_contact_is_rejected(db_session, factory, make_cart, contact_type, detail):
    s1 = factory.seller()
    p1 = factory.product(s1, qty=10)

    with pytest.raises(ValidationError):
        create_purchase(db_session, _cart(make_cart, (p1.id, 2), contact_type=contact_type, detail=detail))
    assert _count(db_session, Purchase) == 0


def test_phone_contact_is_accepted(db_session, factory, make_cart):
    s1 = factory.seller()
    p1 = factory.product(s1, qty=10)

    create_purchase(db_session, _cart(make_cart, (p1.id, 2), contact_type="phone", detail="+6281234567890"))

    purchase = db_session.execute(select(Purchase)).scalar_one()
    assert purchase.sender_contact_detail == "+6281234567890"


def test_short_sender_name_is_rejected(db_session, factory, make_cart):
    s1 = factory.seller()
    p1 = factory.product(s1, qty=10)

    with pytest.raises(ValidationError, match="Sender name"):
        create_purchase(db_session, _cart(make_cart, (p1.id, 2), name="Bo"))


def test_unknown_product_fails_whole_cart(db_session, factory, make_cart):
    s1 = factory.seller()
    p1 = factory.product(s1, qty=10)

    with pytest.raises(NotFoundError, match="One or more products not found"):
        create_purchase(db_session, _cart(make_cart, (p1.id, 2), (999_999, 2)))

    assert _qty(db_session, p1.id) == 10
    assert _count(db_session, Purchase) == 0


def test_insufficient_stock_leaves_everything_untouched(db_session, factory, make_cart):
    """
    GIVEN P1 qty=1, P2 qty=10
    WHEN  panier 3 x P1 + 2 x P2
    THEN  ConflictError, aucun stock modifié (même P2), aucune commande
    """
    s1 = factory.seller()
    p2 = factory.product(s1, qty=10)
    p1 = factory.product(s1, qty=1)

    with pytest.raises(ConflictError, match=f"product ID {p1.id}"):
        create_purchase(db_session, _cart(make_cart, (p2.id, 2), (p1.id, 3)))

    assert _qty(db_session, p1.id) == 1
    assert _qty(db_session, p2.id) == 10
    assert _count(db_session, Purchase) == 0
    assert _count(db_session, PurchaseItem) == 0


def test_exact_stock_can_be_sold_out(db_session, factory, make_cart):
    s1 = factory.seller()
    p1 = factory.product(s1, qty=4)

    create_purchase(db_session, _cart(make_cart, (p1.id, 4)))

    assert _qty(db_session, p1.id) == 0
    with pytest.raises(ConflictError):
        create_purchase(db_session, _cart(make_cart, (p1.id, 2)))


def test_projection_reflects_stock_update_timestamp(db_session, factory, make_cart):
    s1 = factory.seller()
    p1 = factory.product(s1, qty=5)
    before = p1.updated_at

    result = create_purchase(db_session, _cart(make_cart, (p1.id, 2)))

    db_session.expire_all()
    stored = db_session.get(Product, p1.id).updated_at
    echoed = result.purchased_items[0].updated_at
    # SQLite rend des datetimes naïfs
    assert echoed.replace(tzinfo=None) == stored.replace(tzinfo=None)
    assert echoed.replace(tzinfo=None) > before.replace(tzinfo=None)


def test_storage_failure_during_commit_rolls_back_stock(db_session, factory, make_cart):
    s1 = factory.seller()
    p1 = factory.product(s1, qty=5)
    p2 = factory.product(s1, qty=5)

    def _boom(mapper, connection, target):
        raise OperationalError("INSERT INTO purchase_items", {}, Exception("disk I/O error"))

    event.listen(PurchaseItem, "before_insert", _boom)
    try:
        with pytest.raises(InternalError) as excinfo:
            create_purchase(db_session, _cart(make_cart, (p1.id, 2), (p2.id, 3)))
    finally:
        event.remove(PurchaseItem, "before_insert", _boom)

    # message générique, pas de détail moteur
    assert "disk" not in excinfo.value.message
    assert _qty(db_session, p1.id) == 5
    assert _qty(db_session, p2.id) == 5
    assert _count(db_session, Purchase) == 0
    assert _count(db_session, PurchaseItem) == 0


def test_missing_seller_row_rolls_back_stock(db_session, factory, make_cart):
    s1 = factory.seller()
    p1 = factory.product(s1, qty=5)
    db_session.delete(db_session.get(User, s1.id))
    db_session.commit()

    with pytest.raises(InternalError, match="seller"):
        create_purchase(db_session, _cart(make_cart, (p1.id, 2)))

    assert _qty(db_session, p1.id) == 5
    assert _count(db_session, Purchase) == 0


def test_stale_quantity_read_is_rejected(db_session, session_factory, factory):
    """Décrément conditionné: une qty lue puis modifiée ailleurs -> conflit."""
    s1 = factory.seller()
    p1 = factory.product(s1, qty=5)
    stale = db_session.get(Product, p1.id)
    read_qty = stale.qty

    other = session_factory()
    try:
        other.get(Product, p1.id).qty = 4
        other.commit()
    finally:
        other.close()

    with pytest.raises(ConflictError):
        decrement_stock(db_session, stale, 2, expected_qty=read_qty)
    db_session.rollback()

    assert _qty(db_session, p1.id) == 4
