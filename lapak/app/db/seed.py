from __future__ import annotations

import logging

from sqlalchemy import select

from lapak.app.core.logging_setup import setup_logging
from lapak.app.db.session import SessionLocal
from lapak.app.db.models.models_v1 import FileUpload, Product, User
from lapak.app.db.models.core_types import ProductCategory
from lapak.services.auth import create_session, hash_password

logger = logging.getLogger(__name__)


def run_seed():
    db = SessionLocal()
    try:
        # 1) Vendeur de démo + coordonnées bancaires
        seller = db.scalar(select(User).where(User.email == "seller@lapak.local"))
        if not seller:
            seller = User(
                email="seller@lapak.local",
                password_hash=hash_password("Seller2026"),
                name="Demo Seller",
                bank_account_name="BCA",
                bank_account_holder="Demo Seller",
                bank_account_number="1234567890",
            )
            db.add(seller)
            db.commit()

        # 2) Produits
        if not db.scalar(select(Product).where(Product.user_id == seller.id)):
            db.add_all(
                [
                    Product(user_id=seller.id, name="Kopi Susu", category=ProductCategory.beverage,
                            qty=50, price=18000, sku="KOPI-001"),
                    Product(user_id=seller.id, name="Nasi Kotak", category=ProductCategory.food,
                            qty=20, price=25000, sku="NASI-001"),
                ]
            )
            db.commit()

        # 3) Acheteur + un fichier (preuve de paiement)
        buyer = db.scalar(select(User).where(User.email == "buyer@lapak.local"))
        if not buyer:
            buyer = User(email="buyer@lapak.local", password_hash=hash_password("Buyer2026"), name="Demo Buyer")
            db.add(buyer)
            db.commit()

        proof = db.scalar(select(FileUpload).where(FileUpload.user_id == buyer.id))
        if not proof:
            proof = FileUpload(
                user_id=buyer.id,
                file_name="transfer.jpg",
                file_size=102400,
                file_type="image/jpeg",
                file_uri="http://localhost:9000/lapak-files/transfer.jpg",
                file_thumbnail_uri="http://localhost:9000/lapak-files/transfer_thumb.jpg",
            )
            db.add(proof)
            db.commit()

        token = create_session(db, buyer.id)
        logger.info("seed ok: seller=%s buyer=%s proof_file=%s", seller.id, buyer.id, proof.id)
        print(f"SEED OK: buyer token = {token}")
    finally:
        db.close()


if __name__ == "__main__":
    setup_logging()
    run_seed()
