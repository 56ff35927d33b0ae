from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String,
    Integer,
    BigInteger,
    DateTime,
    Boolean,
    ForeignKey,
    Text,
    Enum,
    Uuid,
    UniqueConstraint,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lapak.app.db.base import Base, BigIntPK
from lapak.app.db.models.core_types import ContactType, ProductCategory


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------- USERS (vendeurs + acheteurs) ----------
class User(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    email: Mapped[str | None] = mapped_column(String(255), unique=True)
    phone: Mapped[str | None] = mapped_column(String(32), unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str | None] = mapped_column(String(255))

    # coordonnées de paiement du vendeur
    bank_account_name: Mapped[str | None] = mapped_column(String(64))
    bank_account_holder: Mapped[str | None] = mapped_column(String(64))
    bank_account_number: Mapped[str | None] = mapped_column(String(64))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class AuthSession(Base):
    __tablename__ = "auth_sessions"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # sha256 hex du token, le token en clair n'est jamais stocké
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    revoked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    user: Mapped[User] = relationship()


# ---------- FILES ----------
class FileUpload(Base):
    __tablename__ = "file_uploads"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    file_type: Mapped[str] = mapped_column(String(64), nullable=False)
    file_uri: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    file_thumbnail_uri: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (CheckConstraint("file_size >= 0", name="ck_file_upload_size_nonneg"),)


# ---------- CATALOG ----------
class Product(Base):
    __tablename__ = "products"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(32), nullable=False)
    category: Mapped[ProductCategory] = mapped_column(
        Enum(ProductCategory, name="product_category", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    qty: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False)  # plus petite unité monétaire
    sku: Mapped[str] = mapped_column(String(32), nullable=False)

    file_id: Mapped[int | None] = mapped_column(ForeignKey("file_uploads.id", ondelete="SET NULL"))
    file_uri: Mapped[str] = mapped_column(Text, default="", nullable=False)
    file_thumbnail_uri: Mapped[str] = mapped_column(Text, default="", nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    owner: Mapped[User] = relationship()

    __table_args__ = (
        CheckConstraint("qty >= 0", name="ck_product_qty_nonneg"),
        CheckConstraint("price > 0", name="ck_product_price_pos"),
    )


# ---------- PURCHASES ----------
class Purchase(Base):
    __tablename__ = "purchases"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    sender_name: Mapped[str] = mapped_column(String(55), nullable=False)
    sender_contact_type: Mapped[ContactType] = mapped_column(
        Enum(ContactType, name="contact_type"),
        nullable=False,
    )
    sender_contact_detail: Mapped[str] = mapped_column(String(255), nullable=False)
    total_price: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    items: Mapped[list["PurchaseItem"]] = relationship(back_populates="purchase", cascade="all, delete-orphan")
    payment_proofs: Mapped[list["PurchasePaymentProof"]] = relationship(
        back_populates="purchase",
        cascade="all, delete-orphan",
    )

    __table_args__ = (CheckConstraint("total_price >= 0", name="ck_purchase_total_nonneg"),)


class PurchaseItem(Base):
    __tablename__ = "purchase_items"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    purchase_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("purchases.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id", ondelete="RESTRICT"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    # prix figé au moment de l'achat, jamais relu depuis products
    price: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    purchase: Mapped[Purchase] = relationship(back_populates="items")
    product: Mapped[Product] = relationship()

    __table_args__ = (
        UniqueConstraint("purchase_id", "product_id", name="uq_purchase_item_product"),
        CheckConstraint("quantity >= 2", name="ck_purchase_item_qty_min2"),
        CheckConstraint("price > 0", name="ck_purchase_item_price_pos"),
    )


class PurchasePaymentProof(Base):
    __tablename__ = "purchase_payment_proofs"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    purchase_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("purchases.id", ondelete="CASCADE"),
        nullable=False,
    )
    file_upload_id: Mapped[int] = mapped_column(ForeignKey("file_uploads.id", ondelete="RESTRICT"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    purchase: Mapped[Purchase] = relationship(back_populates="payment_proofs")

    __table_args__ = (
        UniqueConstraint("purchase_id", "file_upload_id", name="uq_payment_proof_file"),
        Index("ix_payment_proofs_purchase", "purchase_id"),
    )
